import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from estore.config import settings
from estore.database import get_session
from estore.errors import GatewayUnavailable
from estore.models.user import User
from estore.schemas.checkout_schemas import CheckoutRequest, CheckoutResponse
from estore.schemas.notification_schemas import GatewayNotification
from estore.services import ledger, reconciler
from estore.services.payment_gateway import get_payment_gateway
from estore.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-transaction")
def create_transaction(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway=Depends(get_payment_gateway),
):
    order = ledger.create_order(session=session, user_id=current_user.id, cart=payload)

    try:
        result = gateway.create_transaction(order, current_user, payload.customer_details)
    except GatewayUnavailable:
        # the order stays pending; a new checkout creates a fresh one
        logger.warning(f"Order {order.external_order_id} left pending after gateway failure")
        raise

    return {
        "success": True,
        "data": CheckoutResponse(
            token=result["token"],
            redirect_url=result["redirect_url"],
            order_id=order.external_order_id,
        ),
    }


@router.post("/notification")
def payment_notification(
    notification: GatewayNotification,
    session: Session = Depends(get_session),
):
    """Gateway webhook. No user session: authenticity rests on the signature."""

    outcome = reconciler.apply_gateway_status(
        session=session,
        external_order_id=notification.order_id,
        gateway_status=notification.transaction_status,
        gross_amount=notification.gross_amount,
        signature=notification.signature_key,
        fraud_status=notification.fraud_status,
    )

    logger.info(f"Notification for {notification.order_id}: {outcome.value}")
    return {"success": True, "message": "Notification processed"}


@router.get("/client-key")
def client_key():
    return {
        "success": True,
        "data": {"clientKey": settings.MIDTRANS_CLIENT_KEY},
    }

# estore/services/reconciler.py
import hashlib
import hmac
import logging
from enum import Enum
from typing import Optional

from sqlmodel import Session

from estore.config import settings
from estore.constants.order_status import OrderStatus
from estore.errors import NotFound, Unauthorized
from estore.models.order import Order
from estore.schemas.notification_schemas import (
    GatewayStatus,
    TransactionStatus,
    Unrecognized,
    parse_transaction_status,
)
from estore.services import ledger

logger = logging.getLogger(__name__)


class CallbackOutcome(str, Enum):
    applied = "applied"
    unchanged = "unchanged"          # already in the mapped status
    no_change = "no_change"          # status maps to "leave as is"
    unrecognized = "unrecognized"
    rejected = "rejected"            # transition refused by the guard


def compute_signature(
    order_id: str, transaction_status: str, gross_amount: str, server_key: str
) -> str:
    payload = f"{order_id}{transaction_status}{gross_amount}{server_key}"
    return hashlib.sha512(payload.encode("utf-8")).hexdigest()


def verify_signature(
    order_id: str,
    transaction_status: str,
    gross_amount: str,
    signature: str,
    server_key: str,
) -> bool:
    expected = compute_signature(order_id, transaction_status, gross_amount, server_key)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def map_gateway_status(
    status: GatewayStatus, fraud_status: Optional[str] = None
) -> Optional[OrderStatus]:
    """Internal status for a gateway status, or None when the order stays as it is."""

    if isinstance(status, Unrecognized):
        return None

    if status is TransactionStatus.capture:
        return OrderStatus.paid if fraud_status == "accept" else None
    if status is TransactionStatus.settlement:
        return OrderStatus.paid
    if status in (TransactionStatus.cancel, TransactionStatus.deny, TransactionStatus.expire):
        return OrderStatus.cancelled
    if status is TransactionStatus.pending:
        return None

    raise AssertionError(f"unhandled transaction status {status!r}")


def apply_gateway_status(
    *,
    session: Session,
    external_order_id: str,
    gateway_status: str,
    gross_amount: str,
    signature: str,
    fraud_status: Optional[str] = None,
    server_key: Optional[str] = None,
    guarded: Optional[bool] = None,
) -> CallbackOutcome:
    if server_key is None:
        server_key = settings.MIDTRANS_SERVER_KEY
    if guarded is None:
        guarded = not settings.allow_terminal_status_overwrite

    if not verify_signature(external_order_id, gateway_status, gross_amount, signature, server_key):
        logger.warning(f"Rejected gateway callback with bad signature for {external_order_id}")
        raise Unauthorized("Invalid signature")

    status = parse_transaction_status(gateway_status)
    target = map_gateway_status(status, fraud_status)

    order = ledger.get_order_by_external_id(session, external_order_id)
    if not order:
        raise NotFound("Order not found")

    if isinstance(status, Unrecognized):
        logger.warning(
            f"Unrecognized transaction status {status.raw!r} for order {external_order_id}"
        )
        return CallbackOutcome.unrecognized

    if target is None:
        logger.info(
            f"Callback {gateway_status} (fraud={fraud_status}) leaves order "
            f"{external_order_id} as {order.status}"
        )
        return CallbackOutcome.no_change

    if order.status == target.value:
        return CallbackOutcome.unchanged

    order_id = order.id
    previous = order.status

    if ledger.set_status(session=session, order_id=order_id, status=target, guarded=guarded):
        logger.info(f"Order {external_order_id}: {previous} -> {target.value}")
        return CallbackOutcome.applied

    # lost a race or refused by the guard; re-read to tell which
    session.expire_all()
    current = session.get(Order, order_id)
    if current is not None and current.status == target.value:
        return CallbackOutcome.unchanged

    logger.warning(
        f"Ignored {target.value} callback for order {external_order_id} "
        f"in status {current.status if current else previous}"
    )
    return CallbackOutcome.rejected

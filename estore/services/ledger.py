# estore/services/ledger.py
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from estore.constants.order_status import OrderStatus, sources_for
from estore.errors import InvalidArgument, NotFound, StorageUnavailable
from estore.models.order import Order
from estore.models.order_line import OrderLine
from estore.models.product import Product
from estore.schemas.checkout_schemas import Cart

logger = logging.getLogger(__name__)


def new_external_order_id(user_id: int) -> str:
    return f"ORDER-{int(time.time() * 1000)}-{user_id}-{secrets.token_hex(6)}"


def create_order(*, session: Session, user_id: int, cart: Cart) -> Order:
    """
    Create a pending order with its lines priced from the current catalog.

    Every line is validated before anything is written; order and lines are
    committed together.
    """

    if not cart.items:
        raise InvalidArgument("Items are required")

    lines = []
    total = 0

    for item in cart.items:
        if item.quantity <= 0:
            raise InvalidArgument("Quantity must be positive")

        product = session.get(Product, item.product_id)
        if not product:
            raise NotFound(f"Product {item.product_id} not found")

        line = OrderLine(
            product_id=product.id,
            product_title=product.title,
            unit_price=product.price,
            quantity=item.quantity,
        )
        total += line.line_total
        lines.append(line)

    order = Order(
        external_order_id=new_external_order_id(user_id),
        user_id=user_id,
        total_amount=total,
        status=OrderStatus.pending.value,
        lines=lines,
    )

    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Order creation failed for user {user_id}: {e}")
        raise StorageUnavailable("Failed to create order") from e

    session.refresh(order)
    logger.info(
        f"Created order {order.external_order_id} for user {user_id}, total {total}"
    )
    return order


def get_order_by_external_id(session: Session, external_order_id: str) -> Optional[Order]:
    return session.exec(
        select(Order).where(Order.external_order_id == external_order_id)
    ).first()


def set_status(
    *,
    session: Session,
    order_id: int,
    status: OrderStatus,
    guarded: bool = True,
) -> bool:
    """
    Write ``status`` onto one order with a single UPDATE.

    When ``guarded`` the update only matches rows whose current status may
    move to ``status`` (see ALLOWED_TRANSITIONS). Returns whether a row was
    written.
    """

    stmt = (
        update(Order)
        .where(Order.id == order_id)
        .values(status=status.value, updated_at=datetime.now(timezone.utc))
    )
    if guarded:
        stmt = stmt.where(Order.status.in_(sources_for(status.value)))

    try:
        result = session.exec(stmt)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Status update failed for order {order_id}: {e}")
        raise StorageUnavailable("Failed to update order") from e

    return result.rowcount > 0

# estore/services/entitlement.py
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from estore.constants.order_status import OrderStatus
from estore.errors import Forbidden
from estore.models.download import DownloadRecord
from estore.models.order import Order
from estore.models.order_line import OrderLine
from estore.models.product import Product
from estore.schemas.purchase_schemas import DownloadGrant, PurchaseEntry, PurchasedProduct

logger = logging.getLogger(__name__)

NOT_ENTITLED = "Product not found or not purchased. Please complete payment first."


def find_paid_order(session: Session, user_id: int, product_id: int):
    return session.exec(
        select(Order, Product)
        .join(OrderLine, OrderLine.order_id == Order.id)
        .join(Product, Product.id == OrderLine.product_id)
        .where(Order.user_id == user_id)
        .where(OrderLine.product_id == product_id)
        .where(Order.status == OrderStatus.paid.value)
        .order_by(Order.id)
    ).first()


def _increment(session: Session, user_id: int, product_id: int, order_id: int, now: datetime) -> bool:
    result = session.exec(
        update(DownloadRecord)
        .where(DownloadRecord.user_id == user_id)
        .where(DownloadRecord.product_id == product_id)
        .where(DownloadRecord.order_id == order_id)
        .values(
            download_count=DownloadRecord.download_count + 1,
            last_downloaded_at=now,
        )
    )
    return result.rowcount > 0


def record_download(session: Session, user_id: int, product_id: int, order_id: int):
    """Count one download for the key, creating its record on first use."""

    now = datetime.now(timezone.utc)

    if _increment(session, user_id, product_id, order_id, now):
        session.commit()
        return

    session.add(
        DownloadRecord(
            user_id=user_id,
            product_id=product_id,
            order_id=order_id,
            download_count=1,
            last_downloaded_at=now,
        )
    )
    try:
        session.commit()
    except IntegrityError:
        # a concurrent first download created the row
        session.rollback()
        _increment(session, user_id, product_id, order_id, now)
        session.commit()


def authorize_download(session: Session, user_id: int, product_id: int, blob_store) -> DownloadGrant:
    row = find_paid_order(session, user_id, product_id)

    if not row:
        raise Forbidden(NOT_ENTITLED)

    order, product = row
    order_id = order.id
    file_key = product.file_key
    title = product.title

    try:
        record_download(session, user_id, product_id, order_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception(
            f"Download bookkeeping failed for user {user_id}, product {product_id}, order {order_id}"
        )

    return DownloadGrant(
        download_url=blob_store.get_reference(file_key),
        title=title,
    )


def list_purchases(session: Session, user_id: int) -> List[PurchaseEntry]:
    rows = session.exec(
        select(Order, OrderLine, Product, DownloadRecord)
        .join(OrderLine, OrderLine.order_id == Order.id)
        .join(Product, Product.id == OrderLine.product_id)
        .outerjoin(
            DownloadRecord,
            and_(
                DownloadRecord.order_id == Order.id,
                DownloadRecord.product_id == Product.id,
                DownloadRecord.user_id == user_id,
            ),
        )
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc(), OrderLine.id)
    ).all()

    # group by order, keeping the newest-first order of the query
    entries = {}
    for order, line, product, download in rows:
        entry = entries.get(order.id)
        if entry is None:
            entry = PurchaseEntry(
                order_id=order.id,
                external_order_id=order.external_order_id,
                total_amount=order.total_amount,
                status=order.status,
                order_date=order.created_at,
                products=[],
            )
            entries[order.id] = entry

        entry.products.append(
            PurchasedProduct(
                product_id=product.id,
                title=product.title,
                slug=product.slug,
                description=product.description,
                preview_image=product.preview_image,
                unit_price=line.unit_price,
                quantity=line.quantity,
                download_count=download.download_count if download else 0,
                last_downloaded_at=download.last_downloaded_at if download else None,
            )
        )

    return list(entries.values())

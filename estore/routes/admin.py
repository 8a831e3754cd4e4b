# -------- ADMIN PRODUCTS / ORDERS / STATS --------
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from slugify import slugify
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from estore.constants.order_status import OrderStatus
from estore.database import get_session
from estore.dependencies.admin import require_admin
from estore.errors import InvalidArgument, NotFound
from estore.models.order import Order
from estore.models.order_line import OrderLine
from estore.models.product import Product
from estore.models.user import User
from estore.schemas.product_schemas import ProductCreate, ProductUpdate
from estore.services.r2_client import get_blob_store
from estore.utils.pagination import paginate

router = APIRouter()


def _slug_taken(session: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Product.id).where(Product.slug == slug)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    return session.exec(query).first() is not None


def _commit_product(session: Session):
    try:
        session.commit()
    except IntegrityError:
        # another request took the slug between the check and the write
        session.rollback()
        raise InvalidArgument("Product with this slug already exists")


@router.get("/products")
def list_products(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    rows = session.exec(
        select(
            Product,
            func.count(func.distinct(OrderLine.order_id)),
            func.coalesce(func.sum(OrderLine.unit_price * OrderLine.quantity), 0),
        )
        .outerjoin(OrderLine, OrderLine.product_id == Product.id)
        .group_by(Product.id)
        .order_by(Product.created_at.desc(), Product.id.desc())
    ).all()

    return {
        "success": True,
        "data": [
            {
                **product.model_dump(),
                "total_sales": total_sales,
                "total_revenue": total_revenue,
            }
            for product, total_sales, total_revenue in rows
        ],
    }


@router.post("/products")
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    slug = payload.slug.strip() if payload.slug else ""
    if not slug:
        slug = slugify(payload.title)

    if _slug_taken(session, slug):
        raise InvalidArgument("Product with this slug already exists")

    product = Product(**payload.model_dump(exclude={"slug"}), slug=slug)

    session.add(product)
    _commit_product(session)
    session.refresh(product)

    return {
        "success": True,
        "data": {"id": product.id, "slug": product.slug, "message": "Product created successfully"},
    }


@router.put("/products/{product_id}")
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "slug" in changes:
        changes["slug"] = changes["slug"].strip() or slugify(changes.get("title", product.title))
        if _slug_taken(session, changes["slug"], exclude_id=product.id):
            raise InvalidArgument("Product with this slug already exists")

    for key, value in changes.items():
        setattr(product, key, value)
    product.updated_at = datetime.now(timezone.utc)

    session.add(product)
    _commit_product(session)

    return {"success": True, "message": "Product updated successfully"}


@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
    blob_store=Depends(get_blob_store),
):
    product = session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")

    # order lines keep referencing the product for entitlement checks
    sold = session.exec(
        select(OrderLine.id).where(OrderLine.product_id == product_id)
    ).first()
    if sold is not None:
        raise InvalidArgument("Product has orders and cannot be deleted")

    file_key = product.file_key
    session.delete(product)
    session.commit()

    blob_store.delete(file_key)

    return {"success": True, "message": "Product deleted successfully"}


@router.get("/orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[OrderStatus] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Order, User).join(User, User.id == Order.user_id)

    if status:
        query = query.where(Order.status == status.value)

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)

    results = []
    for order, user in data["results"]:
        results.append({
            "id": order.id,
            "external_order_id": order.external_order_id,
            "user_id": order.user_id,
            "total_amount": order.total_amount,
            "status": order.status,
            "created_at": order.created_at,
            "customer_name": user.name,
            "customer_email": user.email,
            "products": [line.product_title for line in order.lines],
        })
    data["results"] = results

    return {"success": True, "data": data}


@router.get("/stats")
def stats(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    total_revenue = session.exec(
        select(func.coalesce(func.sum(Order.total_amount), 0))
        .where(Order.status == OrderStatus.paid.value)
    ).one()
    total_orders = session.exec(select(func.count(Order.id))).one()
    total_products = session.exec(select(func.count(Product.id))).one()
    total_customers = session.exec(
        select(func.count(User.id)).where(User.role == "customer")
    ).one()

    recent = session.exec(
        select(Order, User)
        .join(User, User.id == Order.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(5)
    ).all()

    return {
        "success": True,
        "data": {
            "totalRevenue": total_revenue,
            "totalOrders": total_orders,
            "totalProducts": total_products,
            "totalCustomers": total_customers,
            "recentOrders": [
                {
                    "id": o.id,
                    "external_order_id": o.external_order_id,
                    "total_amount": o.total_amount,
                    "status": o.status,
                    "created_at": o.created_at,
                    "customer_name": u.name,
                }
                for o, u in recent
            ],
        },
    }

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from estore.database import get_session
from estore.errors import NotFound
from estore.models.product import Product
from estore.schemas.product_schemas import ProductPublic

router = APIRouter()


@router.get("")
def list_products(session: Session = Depends(get_session)):
    products = session.exec(
        select(Product).order_by(Product.created_at.desc(), Product.id.desc())
    ).all()

    return {
        "success": True,
        "data": [ProductPublic.model_validate(p) for p in products],
    }


@router.get("/{slug}")
def get_product(slug: str, session: Session = Depends(get_session)):
    product = session.exec(select(Product).where(Product.slug == slug)).first()

    if not product:
        raise NotFound("Product not found")

    return {"success": True, "data": ProductPublic.model_validate(product)}

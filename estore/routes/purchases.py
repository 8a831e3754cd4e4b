from fastapi import APIRouter, Depends
from sqlmodel import Session
from estore.database import get_session
from estore.models.user import User
from estore.services import entitlement
from estore.services.r2_client import get_blob_store
from estore.utils.token import get_current_user

router = APIRouter()


@router.get("/my-purchases")
def my_purchases(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return {
        "success": True,
        "data": entitlement.list_purchases(session, current_user.id),
    }


@router.get("/download/{product_id}")
def download_product(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    blob_store=Depends(get_blob_store),
):
    grant = entitlement.authorize_download(session, current_user.id, product_id, blob_store)
    return {"success": True, "data": grant}

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from estore.database import get_session
from estore.errors import InvalidArgument, Unauthorized
from estore.models.user import User
from estore.schemas.user_schemas import AuthData, UserLogin, UserPublic, UserRegister
from estore.utils.hash import hash_password, verify_password
from estore.utils.token import create_access_token, get_current_user


router = APIRouter()


def _auth_response(user: User) -> dict:
    token = create_access_token({"user_id": user.id, "role": user.role})
    return {
        "success": True,
        "data": AuthData(token=token, user=UserPublic.model_validate(user)),
    }


def _email_taken(session: Session, email: str) -> bool:
    return session.exec(select(User.id).where(User.email == email)).first() is not None


@router.post("/register")
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    if _email_taken(session, payload.email):
        raise InvalidArgument("Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        role="customer",
    )

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent registration took the email first
        session.rollback()
        raise InvalidArgument("Email already registered")
    session.refresh(user)

    return _auth_response(user)



@router.post("/login")
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email)).first()

    if not user or not verify_password(payload.password, user.password):
        raise Unauthorized("Invalid email or password")

    return _auth_response(user)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": UserPublic.model_validate(current_user)}

from fastapi import Depends
from estore.errors import Forbidden
from estore.models.user import User
from estore.utils.token import get_current_user

ADMIN_ROLE = "admin"


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ADMIN_ROLE:
        raise Forbidden("Admin access required")
    return current_user

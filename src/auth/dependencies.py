from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from src.auth.permissions import has_capability
from src.auth.service import UserService
from src.auth.utils import verify_token
from src.config import settings
from src.database import get_db
from src.exceptions import ForbiddenError, UnauthorizedError
from src.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Resolve the bearer token to an active user"""
    if not token:
        raise UnauthorizedError("Authorization header missing")

    token_data = verify_token(token)

    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise UnauthorizedError("User not found")
    if user.status != "active":
        raise UnauthorizedError("Account is inactive")

    return user

def require_capability(capability: str):
    """Dependency factory: the caller's role must grant ``capability``"""

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user.role, capability):
            raise ForbiddenError("Not enough permissions")
        return current_user

    return checker

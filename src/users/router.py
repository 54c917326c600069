from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from src import models
from src.activity import record_activity
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.auth.schemas import PasswordChange, User, UserCreate, UserUpdate
from src.auth.service import UserService
from src.database import get_db

router = APIRouter()

@router.get("/", response_model=List[User])
def get_users(
    current_user: models.User = Depends(require_capability(permissions.USERS_READ)),
    db: Session = Depends(get_db)
):
    """List operator accounts, newest first"""
    return UserService.list_users(db)

@router.post("/", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    current_user: models.User = Depends(require_capability(permissions.USERS_WRITE)),
    db: Session = Depends(get_db)
):
    created = UserService.create_user(db, user)
    record_activity(db, current_user.id, "user_created", f"Created user {created.username}")
    db.commit()
    return created

@router.get("/profile/me", response_model=User)
def get_profile(current_user: models.User = Depends(get_current_user)):
    return current_user

@router.put("/profile/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    change: PasswordChange,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the caller's own password"""
    UserService.change_password(db, current_user, change.current_password, change.new_password)

@router.patch("/{user_id}", response_model=User)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    current_user: models.User = Depends(require_capability(permissions.USERS_WRITE)),
    db: Session = Depends(get_db)
):
    """Update profile, role or status of an account"""
    return UserService.update_user(db, user_id, user_update)

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from src.database import get_db
from src.auth.schemas import User, LoginRequest, AuthResponse
from src.auth.service import UserService
from src.auth.utils import create_access_token
from src.auth.dependencies import get_current_user
from src.activity import record_activity
from src import models

router = APIRouter()

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Exchange username and password for a bearer token"""
    user = UserService.authenticate_user(db, login_data.username, login_data.password)

    record_activity(db, user.id, "login", "User logged in", request)
    db.commit()
    db.refresh(user)

    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        user=User.model_validate(user)
    )

@router.get("/me", response_model=User)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user

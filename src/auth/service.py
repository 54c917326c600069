from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from loguru import logger
from src.models import User
from src.auth.schemas import UserCreate, UserUpdate
from src.auth.utils import get_password_hash, verify_password
from src.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from src.utils import utcnow
from typing import List, Optional

DEFAULT_USERS = (
    {"username": "admin", "password": "admin123", "name": "Admin User",
     "email": "admin@example.com", "phone": "+1234567890", "role": "admin"},
    {"username": "manager", "password": "manager123", "name": "Manager User",
     "email": "manager@example.com", "phone": "+1234567891", "role": "manager"},
    {"username": "staff", "password": "staff123", "name": "Staff User",
     "email": "staff@example.com", "phone": "+1234567892", "role": "staff"},
)

class UserService:
    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        """Get user by username"""
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def create_user(db: Session, user: UserCreate) -> User:
        """Create a new user"""
        db_user = User(
            username=user.username,
            password_hash=get_password_hash(user.password),
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role.value,
            status=user.status.value,
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Username '{user.username}' is already taken")

        logger.info(f"Created user {db_user.username} with role {db_user.role}")
        return db_user

    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> User:
        """Check credentials and stamp last_login; raises UnauthorizedError"""
        user = UserService.get_user_by_username(db, username)
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid username or password")
        if user.status != "active":
            raise UnauthorizedError("Account is inactive")

        user.last_login = utcnow()
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, user_update: UserUpdate) -> User:
        """Update user information"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            raise NotFoundError("User not found")

        update_data = user_update.model_dump(exclude_unset=True)

        # Hash password if it's being updated
        if "password" in update_data:
            update_data["password_hash"] = get_password_hash(update_data.pop("password"))

        for field, value in update_data.items():
            if field in ("role", "status") and value is not None:
                value = value.value
            setattr(db_user, field, value)

        db.commit()
        db.refresh(db_user)
        return db_user

    @staticmethod
    def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = get_password_hash(new_password)
        db.commit()

    @staticmethod
    def ensure_default_users(db: Session) -> int:
        """Create the admin/manager/staff accounts that do not exist yet"""
        created = 0
        for data in DEFAULT_USERS:
            if UserService.get_user_by_username(db, data["username"]):
                continue
            fields = dict(data)
            db.add(User(password_hash=get_password_hash(fields.pop("password")), status="active", **fields))
            created += 1
            logger.info(f"Default {data['role']} user created (username: {data['username']})")

        if created:
            db.commit()
        return created

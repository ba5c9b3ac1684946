"""User repository - Database operations for admin portal users"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...database import read_operation, write_operation
from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    @read_operation("get_user")
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    @read_operation("get_user_by_username")
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    @read_operation("list_users")
    def get_users(db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.asc(), User.username.asc()).all()

    @staticmethod
    @write_operation("create_user")
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.flush()
        db.refresh(user)
        return user

    @staticmethod
    @write_operation("update_last_login", idempotent=True)
    def update_last_login(db: Session, user: User, when: Optional[datetime] = None) -> User:
        user.last_login = when or datetime.utcnow()
        db.flush()
        return user

    @staticmethod
    @write_operation("set_password", idempotent=True)
    def set_password_hash(db: Session, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        db.flush()
        return user

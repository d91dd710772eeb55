from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from app.models.user import User, UserRole


class AuthRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.user_id == user_id)
            .first()
        )

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.EMPLOYEE,
        single_device_login_enabled: bool = False,
    ) -> User:
        new_user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=generate_password_hash(password),
            role=role,
            single_device_login_enabled=single_device_login_enabled,
        )
        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)
        return new_user

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.models.base import Base
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(191), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    # single device login
    single_device_login_enabled = Column(Boolean, default=False, nullable=False)
    device_reset_at = Column(DateTime)
    device_reset_reason = Column(String(255))

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    devices = relationship(
        "UserDevice",
        back_populates="user",
        order_by="UserDevice.last_seen_at.desc()",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

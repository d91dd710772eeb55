from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.models.base import Base


class UserDevice(Base):
    """
    A browser/client previously seen for a user.

    `active_user_id` mirrors `user_id` only while the row is the enforced
    active device of a single-device user, so the unique constraint keeps at
    most one such row per user. Rows are deactivated, never deleted.
    """

    __tablename__ = "user_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)

    device_id = Column(String(64), nullable=False)
    compatible_device_id = Column(String(64), index=True)
    device_guid = Column(String(128))

    device_name = Column(String(150))
    browser_name = Column(String(50))
    browser_version = Column(String(50))
    platform = Column(String(50))
    device_type = Column(String(20), default="desktop")
    user_agent = Column(Text)
    accept_language = Column(String(100))
    ip_address = Column(String(45))

    session_id = Column(String(128), index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    active_user_id = Column(Integer, nullable=True)
    last_seen_at = Column(DateTime)

    deactivated_at = Column(DateTime)
    deactivation_reason = Column(String(255))

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="devices")

    __table_args__ = (
        UniqueConstraint("user_id", "device_id", name="uq_user_devices_user_device"),
        UniqueConstraint("active_user_id", name="uq_user_devices_active_user"),
    )

    @property
    def holds_active_slot(self) -> bool:
        return self.active_user_id is not None

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.models.user_device import UserDevice


class DeviceRepository:

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------
    # Lookups (always scoped to one user)
    # -------------------------------------------------
    def list_for_user(self, user_id: int) -> List[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(UserDevice.user_id == user_id)
            .order_by(UserDevice.last_seen_at.desc(), UserDevice.id.desc())
            .all()
        )

    def get_active_devices(self, user_id: int) -> List[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(
                UserDevice.user_id == user_id,
                UserDevice.is_active.is_(True),
            )
            .order_by(UserDevice.last_seen_at.desc(), UserDevice.id.desc())
            .all()
        )

    def get_by_id(self, user_id: int, device_row_id: int) -> Optional[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(
                UserDevice.user_id == user_id,
                UserDevice.id == device_row_id,
            )
            .first()
        )

    def get_by_device_id(self, user_id: int, device_id: str) -> Optional[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(
                UserDevice.user_id == user_id,
                UserDevice.device_id == device_id,
            )
            .first()
        )

    def get_by_session(self, user_id: int, session_id: str) -> Optional[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(
                UserDevice.user_id == user_id,
                UserDevice.session_id == session_id,
            )
            .order_by(UserDevice.is_active.desc())
            .first()
        )

    def get_by_session_any_user(self, session_id: str) -> List[UserDevice]:
        return (
            self.db.query(UserDevice)
            .filter(UserDevice.session_id == session_id)
            .all()
        )

    # -------------------------------------------------
    # Writes (the caller commits)
    # -------------------------------------------------
    def create(self, user_id: int, device_id: str) -> UserDevice:
        device = UserDevice(user_id=user_id, device_id=device_id, is_active=True)
        self.db.add(device)
        return device

    def deactivate(self, devices: Iterable[UserDevice], reason: str, at: datetime) -> int:
        count = 0
        for device in devices:
            device.is_active = False
            device.active_user_id = None
            device.session_id = None
            device.deactivated_at = at
            device.deactivation_reason = reason
            count += 1
        return count

    # -------------------------------------------------
    # Statistics
    # -------------------------------------------------
    def count_all(self) -> int:
        return self.db.query(UserDevice).count()

    def count_active(self) -> int:
        return self.db.query(UserDevice).filter(UserDevice.is_active.is_(True)).count()

    def count_online(self, window_minutes: int) -> int:
        since = datetime.utcnow() - timedelta(minutes=window_minutes)
        return (
            self.db.query(UserDevice)
            .filter(
                UserDevice.is_active.is_(True),
                UserDevice.last_seen_at > since,
            )
            .count()
        )

    def count_users_with_single_device(self) -> int:
        return (
            self.db.query(User)
            .filter(User.single_device_login_enabled.is_(True))
            .count()
        )

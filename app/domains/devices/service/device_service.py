import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.domains.devices.repository.device_repository import DeviceRepository
from app.domains.devices.service.fingerprint import (
    DeviceContext,
    DeviceFingerprint,
    DevicePolicy,
    compute_fingerprint,
    match_device,
)
from app.models.user import User
from app.models.user_device import UserDevice

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = (
    "Login blocked: this account is locked to another device. "
    "Only the registered device can access this account."
)
REPLACED_REASON = "Replaced by newer login"
RESET_REASON = "Admin reset"
FORCED_LOGOUT_REASON = "Forced logout"


@dataclass
class DeviceCheckResult:
    allowed: bool
    device_id: str
    message: str
    track_only: bool = False
    is_new_device: bool = False
    match: Optional[str] = None
    matched_device: Optional[UserDevice] = None
    blocked_by_device: Optional[UserDevice] = None


class DeviceTrackingService:
    """
    Single-device-login gate.

    A user with `single_device_login_enabled` may hold one active device;
    logins from a device that does not resemble it are refused. Users
    without the flag are tracked, never gated.
    """

    def __init__(self, db: Session, policy: Optional[DevicePolicy] = None):
        self.db = db
        self.repo = DeviceRepository(db)
        self.policy = policy or DevicePolicy.from_settings()

    def fingerprint(self, context: DeviceContext) -> DeviceFingerprint:
        return compute_fingerprint(context, self.policy)

    def _find_match(self, fingerprint: DeviceFingerprint, devices: Iterable[UserDevice]):
        # exact hits win over fuzzy ones
        best = None
        for device in devices:
            kind = match_device(fingerprint, device, self.policy)
            if kind == "exact":
                return device, kind
            if kind and best is None:
                best = (device, kind)
        return best or (None, None)

    # -------------------------------------------------
    # Login decision
    # -------------------------------------------------
    def check_login(self, user: User, context: DeviceContext) -> DeviceCheckResult:
        fingerprint = self.fingerprint(context)

        # 1) not enforced: track only
        if not user.single_device_login_enabled:
            device, kind = self._find_match(fingerprint, self.repo.list_for_user(user.user_id))
            return DeviceCheckResult(
                allowed=True,
                device_id=fingerprint.device_id,
                message="Login allowed",
                track_only=True,
                is_new_device=device is None,
                match=kind,
                matched_device=device,
            )

        # 2) enforced, nothing active: first device registration
        active = self.repo.get_active_devices(user.user_id)
        if not active:
            return DeviceCheckResult(
                allowed=True,
                device_id=fingerprint.device_id,
                message="Login allowed: no active device, registering this device",
                is_new_device=True,
            )

        # 3) enforced, same device re-login
        device, kind = self._find_match(fingerprint, active)
        if device is not None:
            return DeviceCheckResult(
                allowed=True,
                device_id=fingerprint.device_id,
                message="Login from registered device",
                match=kind,
                matched_device=device,
            )

        # 4) enforced, another device holds the account
        blocked_by = active[0]
        logger.warning(
            "DEVICE_LOGIN_BLOCKED: user=%s incoming=%s (%s) active=%s (%s)",
            user.user_id,
            fingerprint.device_id[:12],
            fingerprint.agent.device_name,
            blocked_by.id,
            blocked_by.device_name,
        )
        return DeviceCheckResult(
            allowed=False,
            device_id=fingerprint.device_id,
            message=BLOCKED_MESSAGE,
            blocked_by_device=blocked_by,
        )

    # -------------------------------------------------
    # Recording a successful login
    # -------------------------------------------------
    def register_login(
        self,
        user: User,
        context: DeviceContext,
        session_id: str,
        result: Optional[DeviceCheckResult] = None,
    ) -> UserDevice:
        fingerprint = self.fingerprint(context)
        enforced = bool(user.single_device_login_enabled)
        now = datetime.utcnow()

        target = self.repo.get_by_device_id(user.user_id, fingerprint.device_id)
        if target is None and result is not None and result.matched_device is not None:
            target = result.matched_device

        if enforced:
            others = [
                d for d in self.repo.get_active_devices(user.user_id)
                if target is None or d.id != target.id
            ]
            if others:
                self.repo.deactivate(others, REPLACED_REASON, now)
                # release the exclusivity slot before another row claims it
                self.db.flush()

        if target is None:
            target = self.repo.create(user.user_id, fingerprint.device_id)

        self._apply_fingerprint(target, fingerprint, user.user_id)
        target.session_id = session_id
        target.last_seen_at = now
        target.is_active = True
        target.active_user_id = user.user_id if enforced else None
        target.deactivated_at = None
        target.deactivation_reason = None

        self.db.commit()
        self.db.refresh(target)
        return target

    @staticmethod
    def _apply_fingerprint(device: UserDevice, fingerprint: DeviceFingerprint, user_id: int):
        agent = fingerprint.agent
        context = fingerprint.context
        device.device_id = fingerprint.device_id
        device.compatible_device_id = fingerprint.compatible_id(user_id)
        if context.device_guid:
            device.device_guid = context.device_guid
        device.device_name = agent.device_name
        device.browser_name = agent.browser_name
        device.browser_version = agent.browser_version
        device.platform = agent.platform
        device.device_type = agent.device_type
        device.user_agent = context.user_agent or None
        device.accept_language = (context.accept_language or "")[:100] or None
        device.ip_address = (context.ip_address or "")[:45] or None

    # -------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------
    def touch_session(self, user: User, session_id: Optional[str]) -> bool:
        """Refresh activity for the session's device; False if an enforced session lost its device."""
        device = self.repo.get_by_session(user.user_id, session_id) if session_id else None

        if user.single_device_login_enabled and (device is None or not device.is_active):
            return False

        if device is not None:
            device.last_seen_at = datetime.utcnow()
            self.db.commit()
        return True

    def release_session(self, session_id: Optional[str]) -> int:
        """Ordinary logout: the device stays registered and active."""
        if not session_id:
            return 0
        devices = self.repo.get_by_session_any_user(session_id)
        for device in devices:
            device.session_id = None
        if devices:
            self.db.commit()
        return len(devices)

    # -------------------------------------------------
    # Administration
    # -------------------------------------------------
    def reset_devices(self, user: User, reason: Optional[str] = None) -> int:
        now = datetime.utcnow()
        reason = reason or RESET_REASON
        count = self.repo.deactivate(self.repo.get_active_devices(user.user_id), reason, now)
        user.device_reset_at = now
        user.device_reset_reason = reason
        self.db.commit()
        logger.info("DEVICE_RESET: user=%s deactivated=%s reason=%s", user.user_id, count, reason)
        return count

    def force_logout(self, user: User, device_row_id: Optional[int] = None) -> Optional[int]:
        """Deactivate one device (or every active one). None when the device is unknown."""
        if device_row_id is not None:
            device = self.repo.get_by_id(user.user_id, device_row_id)
            if device is None:
                return None
            targets: List[UserDevice] = [device] if device.is_active else []
        else:
            targets = self.repo.get_active_devices(user.user_id)

        count = self.repo.deactivate(targets, FORCED_LOGOUT_REASON, datetime.utcnow())
        self.db.commit()
        logger.info("DEVICE_FORCED_LOGOUT: user=%s deactivated=%s", user.user_id, count)
        return count

    def set_single_device_login(self, user: User, enabled: bool) -> User:
        # existing devices are left alone; exclusivity applies from the next login
        user.single_device_login_enabled = enabled
        self.db.commit()
        self.db.refresh(user)
        return user

    def list_devices(self, user: User) -> List[UserDevice]:
        return self.repo.list_for_user(user.user_id)

    def active_device(self, user: User) -> Optional[UserDevice]:
        active = self.repo.get_active_devices(user.user_id)
        return active[0] if active else None

    def get_statistics(self) -> dict:
        total = self.repo.count_all()
        active = self.repo.count_active()
        return {
            "total_devices": total,
            "active_devices": active,
            "online_devices": self.repo.count_online(settings.DEVICE_ONLINE_MINUTES),
            "inactive_devices": total - active,
            "users_with_single_device_enabled": self.repo.count_users_with_single_device(),
        }

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.domains.auth.repository.auth_repository import AuthRepository
from app.domains.auth.service.session_service import SessionGuard
from app.domains.devices.exception import device_error
from app.domains.devices.service.device_service import DeviceTrackingService
from app.models.user import User
from app.models.user_device import UserDevice
from app.schemas.devices.device_schema import (
    DeviceLogoutRequest,
    DeviceResetRequest,
    DeviceToggleRequest,
)

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_dict(user: User) -> dict:
    return {
        "user_id": user.user_id,
        "name": user.name,
        "email": user.email,
        "single_device_login_enabled": bool(user.single_device_login_enabled),
        "device_reset_at": _iso(user.device_reset_at),
        "device_reset_reason": user.device_reset_reason,
    }


def device_dict(device: UserDevice, online_since: datetime) -> dict:
    return {
        "id": device.id,
        "device_name": device.device_name,
        "browser": device.browser_name,
        "browser_version": device.browser_version,
        "platform": device.platform,
        "device_type": device.device_type,
        "ip_address": device.ip_address,
        "is_active": bool(device.is_active),
        "is_online": bool(
            device.is_active and device.last_seen_at and device.last_seen_at > online_since
        ),
        "has_session": device.session_id is not None,
        "last_seen_at": _iso(device.last_seen_at),
        "deactivated_at": _iso(device.deactivated_at),
        "deactivation_reason": device.deactivation_reason,
        "created_at": _iso(device.created_at),
    }


class DeviceAdminService:

    @staticmethod
    def _device_list(user: User, db: Session) -> dict:
        service = DeviceTrackingService(db)
        online_since = datetime.utcnow() - timedelta(minutes=settings.DEVICE_ONLINE_MINUTES)
        devices = service.list_devices(user)
        active = service.active_device(user)
        return {
            "success": True,
            "user": user_dict(user),
            "devices": [device_dict(d, online_since) for d in devices],
            "active_device": device_dict(active, online_since) if active else None,
        }

    # -------------------------------------------------
    # 1) Own devices
    # -------------------------------------------------
    @staticmethod
    def my_devices(request: Request, db: Session):
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        try:
            return DeviceAdminService._device_list(user, db)
        except Exception:
            logger.exception("DEVICE_LIST_ERROR: user=%s", user.user_id)
            return device_error("DEVICE_500_2", request.url.path)

    # -------------------------------------------------
    # 2) Admin: devices of a user  (users.device.list)
    # -------------------------------------------------
    @staticmethod
    def user_devices(request: Request, user_id: int, db: Session):
        path = request.url.path
        _, error = SessionGuard.require_admin(request, db)
        if error is not None:
            return error

        target = AuthRepository(db).get_user_by_id(user_id)
        if target is None:
            return device_error("DEVICE_404_1", path)

        try:
            return DeviceAdminService._device_list(target, db)
        except Exception:
            logger.exception("DEVICE_LIST_ERROR: user=%s", user_id)
            return device_error("DEVICE_500_2", path)

    # -------------------------------------------------
    # 3) Admin: toggle enforcement  (users.device.toggle)
    # -------------------------------------------------
    @staticmethod
    def toggle(request: Request, body: DeviceToggleRequest, db: Session):
        path = request.url.path
        admin, error = SessionGuard.require_admin(request, db)
        if error is not None:
            return error

        target = AuthRepository(db).get_user_by_id(body.user_id)
        if target is None:
            return device_error("DEVICE_404_1", path)

        try:
            DeviceTrackingService(db).set_single_device_login(target, body.enabled)
        except Exception:
            logger.exception("DEVICE_TOGGLE_ERROR: user=%s", body.user_id)
            db.rollback()
            return device_error("DEVICE_500_1", path)

        state = "enabled" if body.enabled else "disabled"
        logger.info("DEVICE_TOGGLE: admin=%s user=%s %s", admin.user_id, target.user_id, state)
        return {
            "success": True,
            "user": user_dict(target),
            "message": f"Single device login {state} for {target.name}.",
        }

    # -------------------------------------------------
    # 4) Admin: reset devices  (users.device.reset)
    # -------------------------------------------------
    @staticmethod
    def reset(request: Request, body: DeviceResetRequest, db: Session):
        path = request.url.path
        _, error = SessionGuard.require_admin(request, db)
        if error is not None:
            return error

        target = AuthRepository(db).get_user_by_id(body.user_id)
        if target is None:
            return device_error("DEVICE_404_1", path)

        try:
            count = DeviceTrackingService(db).reset_devices(target, body.reason)
        except Exception:
            logger.exception("DEVICE_RESET_ERROR: user=%s", body.user_id)
            db.rollback()
            return device_error("DEVICE_500_1", path)

        return {
            "success": True,
            "user": user_dict(target),
            "message": f"Devices reset for {target.name}. The next login registers a new device.",
            "affected_devices": count,
        }

    # -------------------------------------------------
    # 5) Admin: force logout  (users.device.logout)
    # -------------------------------------------------
    @staticmethod
    def force_logout(request: Request, body: DeviceLogoutRequest, db: Session):
        path = request.url.path
        _, error = SessionGuard.require_admin(request, db)
        if error is not None:
            return error

        target = AuthRepository(db).get_user_by_id(body.user_id)
        if target is None:
            return device_error("DEVICE_404_1", path)

        try:
            count = DeviceTrackingService(db).force_logout(target, body.device_id)
        except Exception:
            logger.exception("DEVICE_FORCE_LOGOUT_ERROR: user=%s", body.user_id)
            db.rollback()
            return device_error("DEVICE_500_1", path)

        if count is None:
            return device_error("DEVICE_404_2", path)

        return {
            "success": True,
            "user": user_dict(target),
            "message": f"{count} device(s) logged out for {target.name}.",
            "affected_devices": count,
        }

    # -------------------------------------------------
    # 6) Admin: statistics
    # -------------------------------------------------
    @staticmethod
    def statistics(request: Request, db: Session):
        _, error = SessionGuard.require_admin(request, db)
        if error is not None:
            return error

        try:
            stats = DeviceTrackingService(db).get_statistics()
        except Exception:
            logger.exception("DEVICE_STATISTICS_ERROR")
            return device_error("DEVICE_500_2", request.url.path)

        return {"success": True, **stats}

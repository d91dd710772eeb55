import logging
import secrets
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from app.core.config import settings
from app.domains.auth.exception import auth_error
from app.domains.auth.repository.auth_repository import AuthRepository
from app.domains.auth.service.session_service import (
    SESSION_ID_KEY,
    SESSION_REMEMBER_KEY,
    SESSION_USER_KEY,
)
from app.domains.devices.service.device_service import DeviceTrackingService
from app.domains.devices.service.fingerprint import DeviceContext
from app.models.user_device import UserDevice
from app.schemas.auth.auth_schema import BlockedDeviceInfo, LoginBlockedResponse

logger = logging.getLogger(__name__)


def _blocked_device_info(device: Optional[UserDevice]) -> Optional[BlockedDeviceInfo]:
    if device is None:
        return None
    return BlockedDeviceInfo(
        device_name=device.device_name,
        browser=device.browser_name,
        browser_version=device.browser_version,
        platform=device.platform,
        device_type=device.device_type,
        last_seen_at=device.last_seen_at.isoformat() if device.last_seen_at else None,
    )


class AuthService:

    @staticmethod
    def login(
        request: Request,
        email: Optional[str],
        password: Optional[str],
        remember: bool,
        db: Session,
    ):
        path = request.url.path

        # 1) form
        if not email or not email.strip() or not password:
            return auth_error("AUTH_422_1", path)

        # 2) credentials
        user = AuthRepository(db).get_user_by_email(email)
        if user is None or not check_password_hash(user.password_hash, password):
            logger.info("AUTH_LOGIN_FAILED: email=%s", email.strip().lower())
            return auth_error("AUTH_422_2", path)

        if not user.active:
            return auth_error("AUTH_422_3", path)

        # 3) device gate
        devices = DeviceTrackingService(db)
        context = DeviceContext.from_request(request)
        result = devices.check_login(user, context)

        if not result.allowed:
            logger.warning("AUTH_LOGIN_BLOCKED: user=%s device=%s", user.user_id, result.device_id[:12])
            body = LoginBlockedResponse(
                deviceMessage=result.message,
                blockedDeviceInfo=_blocked_device_info(result.blocked_by_device),
            )
            return JSONResponse(status_code=200, content=body.model_dump())

        # 4) session + device registration
        session_id = secrets.token_urlsafe(32)
        try:
            devices.register_login(user, context, session_id, result)
        except Exception:
            logger.exception("AUTH_LOGIN_REGISTER_ERROR: user=%s", user.user_id)
            db.rollback()
            return auth_error("AUTH_500_1", path)

        request.session.clear()
        request.session[SESSION_USER_KEY] = user.user_id
        request.session[SESSION_ID_KEY] = session_id
        request.session[SESSION_REMEMBER_KEY] = bool(remember)

        logger.info(
            "AUTH_LOGIN_OK: user=%s new_device=%s track_only=%s",
            user.user_id, result.is_new_device, result.track_only,
        )
        return RedirectResponse(settings.LOGIN_REDIRECT_URL, status_code=303)

    @staticmethod
    def logout(request: Request, db: Session):
        # ordinary logout keeps the device registered
        session_id = request.session.get(SESSION_ID_KEY)
        try:
            DeviceTrackingService(db).release_session(session_id)
        except Exception:
            logger.exception("AUTH_LOGOUT_RELEASE_ERROR")
            db.rollback()

        request.session.clear()
        return RedirectResponse("/", status_code=303)

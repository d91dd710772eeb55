import logging
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.domains.auth.exception import auth_error, device_logged_out_error
from app.domains.auth.repository.auth_repository import AuthRepository
from app.domains.devices.service.device_service import DeviceTrackingService
from app.models.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_ID_KEY = "sid"
SESSION_REMEMBER_KEY = "remember"

GuardResult = Tuple[Optional[User], Optional[JSONResponse]]


class SessionGuard:
    """
    Resolves the logged-in user from the cookie session.

    Every call re-validates the session's device for users under
    single-device enforcement, so a device deactivated by a newer login,
    a reset or a forced logout is dropped on its next request.
    """

    @staticmethod
    def current_user(request: Request, db: Session) -> GuardResult:
        path = request.url.path

        # 1) session present
        user_id = request.session.get(SESSION_USER_KEY)
        if not user_id:
            return None, auth_error("AUTH_401_1", path)

        # 2) user still valid
        user = AuthRepository(db).get_user_by_id(user_id)
        if user is None or not user.active:
            request.session.clear()
            return None, auth_error("AUTH_401_2", path)

        # 3) device still active
        sid = request.session.get(SESSION_ID_KEY)
        if not DeviceTrackingService(db).touch_session(user, sid):
            logger.info("AUTH_SESSION_DEVICE_INACTIVE: user=%s", user.user_id)
            request.session.clear()
            return None, device_logged_out_error(path)

        return user, None

    @staticmethod
    def require_admin(request: Request, db: Session) -> GuardResult:
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return None, error
        if not user.is_admin:
            return None, auth_error("AUTH_403_1", request.url.path)
        return user, None

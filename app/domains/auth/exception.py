from dataclasses import dataclass
from datetime import datetime
from typing import Dict

from fastapi.responses import JSONResponse

from app.core.error_handler import catalog_error
from app.schemas.error_schema import ErrorResponse


@dataclass(frozen=True)
class AuthError:
    status: int
    code: str
    reason: str

    def to_dict(self, path: str) -> Dict:
        """Dict used for the OpenAPI examples."""
        return {
            "success": False,
            "status": self.status,
            "code": self.code,
            "reason": self.reason,
            "timeStamp": "...",
            "path": path,
        }


# Auth domain errors
AUTH_ERRORS: Dict[str, AuthError] = {
    # 401
    "AUTH_401_1": AuthError(401, "AUTH_401_1", "Authentication required."),
    "AUTH_401_2": AuthError(401, "AUTH_401_2", "Session user no longer exists or is inactive."),
    "AUTH_401_3": AuthError(401, "AUTH_401_3", "This device has been logged out. Please log in again."),

    # 403
    "AUTH_403_1": AuthError(403, "AUTH_403_1", "Administrator role required."),

    # 422
    "AUTH_422_1": AuthError(422, "AUTH_422_1", "Email and password are required."),
    "AUTH_422_2": AuthError(422, "AUTH_422_2", "These credentials do not match our records."),
    "AUTH_422_3": AuthError(422, "AUTH_422_3", "This account is inactive."),

    # 500
    "AUTH_500_1": AuthError(500, "AUTH_500_1", "Database error while processing the login."),
}


def auth_error(code: str, path: str):
    """Standard error response for an Auth error code."""
    return catalog_error(AUTH_ERRORS, code, path, "AUTH_500_1")


def device_logged_out_error(path: str) -> JSONResponse:
    """401 for a session whose device was deactivated; flagged so clients can show the reason."""
    err = AUTH_ERRORS["AUTH_401_3"]
    body = ErrorResponse(
        success=False,
        status=err.status,
        code=err.code,
        reason=err.reason,
        timeStamp=datetime.utcnow().isoformat(),
        path=path,
    ).model_dump(exclude_none=True)
    body["deviceBlocked"] = True
    return JSONResponse(status_code=err.status, content=body)


def _examples_for_codes(path: str, codes: Dict[str, AuthError]) -> Dict:
    """OpenAPI examples helper."""
    return {
        code: {"value": err.to_dict(path)}
        for code, err in codes.items()
    }


def _codes(prefix: str) -> Dict[str, AuthError]:
    return {k: v for k, v in AUTH_ERRORS.items() if k.startswith(prefix)}


# OpenAPI responses: login
AUTH_LOGIN_RESPONSES = {
    303: {"description": "Logged in; redirect to the landing page"},
    422: {
        "model": ErrorResponse,
        "description": "Invalid form or credentials",
        "content": {
            "application/json": {
                "examples": _examples_for_codes("/login", _codes("AUTH_422")),
            }
        },
    },
    500: {
        "model": ErrorResponse,
        "description": "Internal server error",
        "content": {
            "application/json": {
                "examples": _examples_for_codes("/login", _codes("AUTH_500")),
            }
        },
    },
}

# OpenAPI responses: endpoints behind the session guard
AUTH_SESSION_RESPONSES = {
    401: {
        "model": ErrorResponse,
        "description": "Not logged in, or the device was logged out",
        "content": {
            "application/json": {
                "examples": _examples_for_codes("/api/v1/...", _codes("AUTH_401")),
            }
        },
    },
}

AUTH_ADMIN_RESPONSES = {
    **AUTH_SESSION_RESPONSES,
    403: {
        "model": ErrorResponse,
        "description": "Not an administrator",
        "content": {
            "application/json": {
                "examples": _examples_for_codes("/api/v1/...", _codes("AUTH_403")),
            }
        },
    },
}

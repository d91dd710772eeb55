from dataclasses import dataclass
from typing import Dict

from app.core.error_handler import catalog_error
from app.schemas.error_schema import ErrorResponse


@dataclass(frozen=True)
class RfiError:
    status: int
    code: str
    reason: str

    def to_dict(self, path: str) -> Dict:
        return {
            "success": False,
            "status": self.status,
            "code": self.code,
            "reason": self.reason,
            "timeStamp": "...",
            "path": path,
        }


RFI_ERRORS: Dict[str, RfiError] = {
    # Daily works
    "RFI_404_1": RfiError(404, "RFI_404_1", "Daily work not found."),
    "RFI_409_1": RfiError(409, "RFI_409_1", "A daily work with this number already exists."),
    "RFI_500_1": RfiError(500, "RFI_500_1", "Database error while saving the daily work."),

    # Objections
    "OBJ_404_1": RfiError(404, "OBJ_404_1", "Objection not found."),
    "OBJ_404_2": RfiError(404, "OBJ_404_2", "One or more RFIs do not exist."),
    "OBJ_404_3": RfiError(404, "OBJ_404_3", "The RFI is not attached to this objection."),
    "OBJ_409_1": RfiError(409, "OBJ_409_1", "The objection cannot move to that status."),
    "OBJ_409_2": RfiError(409, "OBJ_409_2", "Resolved or rejected objections cannot be edited."),
    "OBJ_422_1": RfiError(422, "OBJ_422_1", "One or more chainages could not be read."),
    "OBJ_500_1": RfiError(500, "OBJ_500_1", "Database error while saving the objection."),
}


def rfi_error(code: str, path: str, errors=None):
    return catalog_error(RFI_ERRORS, code, path, "RFI_500_1", errors=errors)


def _examples(path: str, prefix: str) -> Dict:
    return {
        code: {"value": err.to_dict(path)}
        for code, err in RFI_ERRORS.items()
        if code.startswith(prefix)
    }


DAILY_WORK_RESPONSES = {
    409: {"model": ErrorResponse, "description": "Duplicate RFI number"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

OBJECTION_RESPONSES = {
    404: {
        "model": ErrorResponse,
        "description": "Objection or RFI not found",
        "content": {"application/json": {"examples": _examples("/api/v1/objections/1", "OBJ_404")}},
    },
    409: {
        "model": ErrorResponse,
        "description": "Invalid status transition",
        "content": {"application/json": {"examples": _examples("/api/v1/objections/1/submit", "OBJ_409")}},
    },
    422: {
        "model": ErrorResponse,
        "description": "Unreadable chainage (offending entries listed in `errors`)",
        "content": {"application/json": {"examples": _examples("/api/v1/objections", "OBJ_422")}},
    },
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

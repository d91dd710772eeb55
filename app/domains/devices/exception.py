from dataclasses import dataclass
from typing import Dict

from app.core.error_handler import catalog_error
from app.schemas.error_schema import ErrorResponse


@dataclass(frozen=True)
class DeviceError:
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


DEVICE_ERRORS: Dict[str, DeviceError] = {
    "DEVICE_404_1": DeviceError(404, "DEVICE_404_1", "User not found."),
    "DEVICE_404_2": DeviceError(404, "DEVICE_404_2", "Device not found for this user."),
    "DEVICE_500_1": DeviceError(500, "DEVICE_500_1", "Database error while updating devices."),
    "DEVICE_500_2": DeviceError(500, "DEVICE_500_2", "Database error while reading devices."),
}


def device_error(code: str, path: str):
    return catalog_error(DEVICE_ERRORS, code, path, "DEVICE_500_1")


def _examples(path: str, mapping: Dict[str, DeviceError]) -> Dict:
    return {
        code: {"value": err.to_dict(path)}
        for code, err in mapping.items()
    }


DEVICE_ADMIN_RESPONSES = {
    404: {
        "model": ErrorResponse,
        "description": "User or device not found",
        "content": {
            "application/json": {
                "examples": _examples(
                    "/api/v1/users/device/logout",
                    {k: v for k, v in DEVICE_ERRORS.items() if v.status == 404},
                ),
            }
        },
    },
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

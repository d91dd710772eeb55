from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.domains.auth.exception import AUTH_ADMIN_RESPONSES, AUTH_SESSION_RESPONSES
from app.domains.devices.exception import DEVICE_ADMIN_RESPONSES
from app.domains.devices.service.device_admin_service import DeviceAdminService
from app.schemas.devices.device_schema import (
    DeviceActionResponse,
    DeviceListResponse,
    DeviceLogoutRequest,
    DeviceResetRequest,
    DeviceStatisticsResponse,
    DeviceToggleRequest,
)

router = APIRouter(
    prefix="/api/v1",
    tags=["Devices"]
)


# -------------------------------------------------------
# 1) My devices
# -------------------------------------------------------
@router.get(
    "/me/devices",
    summary="My devices",
    description="Devices registered for the logged-in user.",
    response_model=DeviceListResponse,
    responses=AUTH_SESSION_RESPONSES,
)
def my_devices(request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.my_devices(request, db)


# -------------------------------------------------------
# 2) Statistics
# -------------------------------------------------------
@router.get(
    "/users/devices/statistics",
    summary="Device statistics",
    response_model=DeviceStatisticsResponse,
    responses=AUTH_ADMIN_RESPONSES,
)
def device_statistics(request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.statistics(request, db)


# -------------------------------------------------------
# 3) Devices of a user
# -------------------------------------------------------
@router.get(
    "/users/{user_id}/devices",
    summary="Devices of a user",
    description="All devices of a user, most recently seen first.",
    response_model=DeviceListResponse,
    responses={**AUTH_ADMIN_RESPONSES, **DEVICE_ADMIN_RESPONSES},
)
def user_devices(user_id: int, request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.user_devices(request, user_id, db)


# -------------------------------------------------------
# 4) Toggle single device login
# -------------------------------------------------------
@router.post(
    "/users/device/toggle",
    summary="Enable or disable single device login",
    description="Only flips the flag. Registered devices are left as they are.",
    response_model=DeviceActionResponse,
    responses={**AUTH_ADMIN_RESPONSES, **DEVICE_ADMIN_RESPONSES},
)
def toggle_single_device(body: DeviceToggleRequest, request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.toggle(request, body, db)


# -------------------------------------------------------
# 5) Reset devices
# -------------------------------------------------------
@router.post(
    "/users/device/reset",
    summary="Reset devices",
    description="Deactivates every active device; the next login registers a fresh one.",
    response_model=DeviceActionResponse,
    responses={**AUTH_ADMIN_RESPONSES, **DEVICE_ADMIN_RESPONSES},
)
def reset_devices(body: DeviceResetRequest, request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.reset(request, body, db)


# -------------------------------------------------------
# 6) Force logout
# -------------------------------------------------------
@router.post(
    "/users/device/logout",
    summary="Force logout",
    description="Deactivates one device, or all active devices when `device_id` is omitted.",
    response_model=DeviceActionResponse,
    responses={**AUTH_ADMIN_RESPONSES, **DEVICE_ADMIN_RESPONSES},
)
def force_logout(body: DeviceLogoutRequest, request: Request, db: Session = Depends(get_db)):
    return DeviceAdminService.force_logout(request, body, db)

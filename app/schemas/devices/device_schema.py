from pydantic import BaseModel, Field
from typing import List, Optional


class DeviceUser(BaseModel):
    """Owner of the devices"""
    user_id: int = Field(..., description="User ID")
    name: str = Field(..., description="Name")
    email: str = Field(..., description="Email")
    single_device_login_enabled: bool = Field(..., description="Single device login enforced")
    device_reset_at: Optional[str] = Field(None, description="Last reset (ISO format)")
    device_reset_reason: Optional[str] = Field(None, description="Last reset reason")


class DeviceItem(BaseModel):
    """A registered device"""
    id: int = Field(..., description="Device row ID")
    device_name: Optional[str] = Field(None, description="Human readable label")
    browser: Optional[str] = Field(None, description="Browser family")
    browser_version: Optional[str] = Field(None, description="Browser version")
    platform: Optional[str] = Field(None, description="Operating system")
    device_type: Optional[str] = Field(None, description="desktop / mobile / tablet")
    ip_address: Optional[str] = Field(None, description="Last IP address")
    is_active: bool = Field(..., description="Active device")
    is_online: bool = Field(..., description="Seen within the online window")
    has_session: bool = Field(..., description="A session is bound to this device")
    last_seen_at: Optional[str] = Field(None, description="Last activity (ISO format)")
    deactivated_at: Optional[str] = Field(None, description="Deactivation time (ISO format)")
    deactivation_reason: Optional[str] = Field(None, description="Deactivation reason")
    created_at: Optional[str] = Field(None, description="First seen (ISO format)")


class DeviceListResponse(BaseModel):
    """Devices of one user"""
    success: bool = Field(True, description="Success flag")
    user: DeviceUser
    devices: List[DeviceItem] = Field(default_factory=list)
    active_device: Optional[DeviceItem] = Field(None, description="Device holding the account")
    message: Optional[str] = None


class DeviceToggleRequest(BaseModel):
    user_id: int = Field(..., description="Target user")
    enabled: bool = Field(..., description="Enable single device login")


class DeviceResetRequest(BaseModel):
    user_id: int = Field(..., description="Target user")
    reason: Optional[str] = Field(None, max_length=255, description="Reason (defaults to 'Admin reset')")


class DeviceLogoutRequest(BaseModel):
    user_id: int = Field(..., description="Target user")
    device_id: Optional[int] = Field(None, description="Device row ID; all active devices when omitted")


class DeviceActionResponse(BaseModel):
    """Result of an admin device action"""
    success: bool = Field(True, description="Success flag")
    user: DeviceUser
    message: str
    affected_devices: Optional[int] = Field(None, description="Devices deactivated")


class DeviceStatisticsResponse(BaseModel):
    success: bool = True
    total_devices: int
    active_devices: int
    online_devices: int
    inactive_devices: int
    users_with_single_device_enabled: int

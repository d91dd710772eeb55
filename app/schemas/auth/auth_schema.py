from pydantic import BaseModel, Field
from typing import Optional


class BlockedDeviceInfo(BaseModel):
    """The device currently holding the account"""
    device_name: Optional[str] = Field(None, description="Human readable device label")
    browser: Optional[str] = Field(None, description="Browser family")
    browser_version: Optional[str] = Field(None, description="Browser version")
    platform: Optional[str] = Field(None, description="Operating system")
    device_type: Optional[str] = Field(None, description="desktop / mobile / tablet")
    last_seen_at: Optional[str] = Field(None, description="Last activity (ISO format)")


class LoginBlockedResponse(BaseModel):
    """Login refused by the single-device gate"""
    success: bool = Field(False, description="Always false")
    deviceBlocked: bool = Field(True, description="Always true")
    deviceMessage: str = Field(..., description="Why the login was refused")
    blockedDeviceInfo: Optional[BlockedDeviceInfo] = Field(None, description="The active device")

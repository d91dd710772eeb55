from datetime import date as date_type
from pydantic import BaseModel, Field
from typing import List, Optional


class InchargeUser(BaseModel):
    id: int
    name: str


class RfiItem(BaseModel):
    """Daily work (RFI) record"""
    id: int = Field(..., description="Daily work ID")
    number: str = Field(..., description="RFI number")
    location: Optional[str] = Field(None, description="Chainage point or range, as entered")
    description: Optional[str] = None
    type: Optional[str] = None
    date: Optional[str] = Field(None, description="Work date (YYYY-MM-DD)")
    side: Optional[str] = None
    status: Optional[str] = None
    incharge: Optional[int] = Field(None, description="In-charge user ID")
    incharge_user: Optional[InchargeUser] = None
    location_start: Optional[int] = Field(None, description="Parsed location start in metres")
    location_end: Optional[int] = Field(None, description="Parsed location end in metres (ranges only)")


class DailyWorkCreateRequest(BaseModel):
    number: str = Field(..., min_length=1, max_length=100, description="RFI number")
    date: Optional[date_type] = Field(None, description="Work date")
    type: Optional[str] = Field(None, max_length=50, description="Work type (Embankment, Structure...)")
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255, description="e.g. K23+066 or K35+560-K36+120")
    side: Optional[str] = Field(None, max_length=20)
    status: Optional[str] = Field("new", max_length=30)
    incharge_id: Optional[int] = None


class DailyWorkListResponse(BaseModel):
    success: bool = True
    count: int
    daily_works: List[RfiItem] = Field(default_factory=list)


class DailyWorkResponse(BaseModel):
    success: bool = True
    daily_work: RfiItem

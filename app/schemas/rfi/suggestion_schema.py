from pydantic import BaseModel, Field
from typing import List, Optional

from app.schemas.rfi.daily_work_schema import RfiItem


class ParsedChainages(BaseModel):
    specific_count: int = Field(0, description="Number of distinct specific chainages")
    range_start: Optional[int] = Field(None, description="Range start in metres")
    range_end: Optional[int] = Field(None, description="Range end in metres")


class SuggestRfisResponse(BaseModel):
    """RFIs whose location touches the requested chainages"""
    rfis: List[RfiItem] = Field(default_factory=list)
    count: int = 0
    total_found: int = 0
    match_type: str = Field(..., description="search / specific / range / none")
    parsed_chainages: Optional[ParsedChainages] = None
    message: Optional[str] = None

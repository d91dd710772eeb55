from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = Field(False, description="Always false")
    status: int = Field(..., description="HTTP status code")
    code: str = Field(..., description="Domain error code")
    reason: str = Field(..., description="Human readable reason")
    timeStamp: str = Field(..., description="Response time (ISO format)")
    path: str = Field(..., description="Request path")
    errors: Optional[List[Any]] = Field(None, description="Per-field details, when available")

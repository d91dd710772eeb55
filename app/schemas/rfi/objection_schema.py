from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional

from app.domains.rfi.chainage import split_chainages
from app.models.rfi_objection import ObjectionCategory
from app.schemas.rfi.daily_work_schema import RfiItem


def _as_list(value):
    # "K35+897, K36+987" and ["K35+897", "K36+987"] are both accepted
    if value is None:
        return value
    if isinstance(value, str):
        return split_chainages(value)
    return value


class ChainageItem(BaseModel):
    chainage: str = Field(..., description="As entered")
    chainage_meters: int = Field(..., description="Position in metres")
    normalized: str = Field(..., description="K##+### form")
    side: Optional[str] = Field(None, description="Side marker, display only")
    entry_type: str = Field(..., description="specific / range_start / range_end")


class ChainageSummary(BaseModel):
    specific: List[str] = Field(default_factory=list)
    range: Optional[str] = None


class ObjectionItem(BaseModel):
    """Objection raised against one or more RFIs"""
    id: int
    title: str
    category: str
    category_label: str
    type: Optional[str] = None
    chainage_from: Optional[str] = None
    chainage_to: Optional[str] = None
    description: str
    reason: str
    status: str
    status_label: str
    is_active: bool
    resolution_notes: Optional[str] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    chainages: List[ChainageItem] = Field(default_factory=list)
    chainage_summary: ChainageSummary
    rfis: List[RfiItem] = Field(default_factory=list)


class ObjectionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: ObjectionCategory = Field(ObjectionCategory.OTHER)
    type: Optional[str] = Field(None, max_length=50)
    description: str = Field(..., min_length=1, max_length=5000)
    reason: str = Field(..., min_length=1, max_length=5000)
    status: Literal["draft", "submitted"] = Field("draft", description="Initial status")

    specific_chainages: Optional[List[str]] = Field(
        None, description="Specific chainages, a list or a comma separated string"
    )
    chainage_range_from: Optional[str] = Field(None, max_length=50)
    chainage_range_to: Optional[str] = Field(None, max_length=50)

    # free text fields kept as entered
    chainage_from: Optional[str] = Field(None, max_length=5000)
    chainage_to: Optional[str] = Field(None, max_length=50)

    rfi_ids: List[int] = Field(default_factory=list, description="RFIs to attach")
    attachment_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("specific_chainages", mode="before")
    @classmethod
    def split_specific(cls, value):
        return _as_list(value)


class ObjectionUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[ObjectionCategory] = None
    type: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    reason: Optional[str] = Field(None, min_length=1, max_length=5000)

    specific_chainages: Optional[List[str]] = None
    chainage_range_from: Optional[str] = Field(None, max_length=50)
    chainage_range_to: Optional[str] = Field(None, max_length=50)
    chainage_from: Optional[str] = Field(None, max_length=5000)
    chainage_to: Optional[str] = Field(None, max_length=50)

    @field_validator("specific_chainages", mode="before")
    @classmethod
    def split_specific(cls, value):
        return _as_list(value)


class ObjectionNotesRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=5000, description="Resolution or rejection notes")


class ObjectionAttachRequest(BaseModel):
    rfi_ids: List[int] = Field(..., min_length=1)
    attachment_notes: Optional[str] = Field(None, max_length=1000)


class ObjectionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    objection: ObjectionItem


class ObjectionListResponse(BaseModel):
    success: bool = True
    count: int
    objections: List[ObjectionItem] = Field(default_factory=list)


class StatusLogItem(BaseModel):
    from_status: Optional[str] = None
    to_status: str
    notes: Optional[str] = None
    changed_by: Optional[int] = None
    changed_at: Optional[str] = None


class StatusLogResponse(BaseModel):
    success: bool = True
    objection_id: int
    logs: List[StatusLogItem] = Field(default_factory=list)


class SuggestedRfisResponse(BaseModel):
    success: bool = True
    objection_id: int
    match_type: str
    count: int
    rfis: List[RfiItem] = Field(default_factory=list)
    attached_ids: List[int] = Field(default_factory=list)

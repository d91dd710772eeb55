from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.models.base import Base
from app.models.objection_chainage import ChainageEntryType
import enum


class ObjectionStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ObjectionCategory(str, enum.Enum):
    DESIGN_CONFLICT = "design_conflict"
    SITE_MISMATCH = "site_mismatch"
    MATERIAL_CHANGE = "material_change"
    SAFETY_CONCERN = "safety_concern"
    SPECIFICATION_ERROR = "specification_error"
    OTHER = "other"


# draft/submitted/under_review objections still block the RFI
ACTIVE_STATUSES = (
    ObjectionStatus.DRAFT.value,
    ObjectionStatus.SUBMITTED.value,
    ObjectionStatus.UNDER_REVIEW.value,
)

STATUS_LABELS = {
    ObjectionStatus.DRAFT.value: "Draft",
    ObjectionStatus.SUBMITTED.value: "Submitted",
    ObjectionStatus.UNDER_REVIEW.value: "Under Review",
    ObjectionStatus.RESOLVED.value: "Resolved",
    ObjectionStatus.REJECTED.value: "Rejected",
}

CATEGORY_LABELS = {
    ObjectionCategory.DESIGN_CONFLICT.value: "Design Conflict",
    ObjectionCategory.SITE_MISMATCH.value: "Site Condition Mismatch",
    ObjectionCategory.MATERIAL_CHANGE.value: "Material Change",
    ObjectionCategory.SAFETY_CONCERN.value: "Safety Concern",
    ObjectionCategory.SPECIFICATION_ERROR.value: "Specification Error",
    ObjectionCategory.OTHER.value: "Other",
}


class RfiObjection(Base):
    __tablename__ = "rfi_objections"

    objection_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False, default=ObjectionCategory.OTHER.value)
    type = Column(String(50))

    # free text as entered; parsed copies live in objection_chainages
    chainage_from = Column(String(5000))
    chainage_to = Column(String(50))

    description = Column(Text, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=ObjectionStatus.DRAFT.value, index=True)

    resolution_notes = Column(Text)
    resolved_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))
    resolved_at = Column(DateTime)

    created_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))
    updated_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    chainages = relationship(
        "ObjectionChainage",
        back_populates="objection",
        cascade="all, delete-orphan",
        order_by="ObjectionChainage.chainage_id",
    )
    daily_works = relationship(
        "DailyWork",
        secondary="objection_daily_works",
        viewonly=True,
    )
    creator = relationship("User", foreign_keys=[created_by])

    # -------------------------------------------------
    # Chainage views
    # -------------------------------------------------
    @property
    def specific_meters(self):
        return [
            c.chainage_meters
            for c in self.chainages
            if c.entry_type == ChainageEntryType.SPECIFIC
        ]

    @property
    def range_meters(self):
        start = end = None
        for c in self.chainages:
            if c.entry_type == ChainageEntryType.RANGE_START:
                start = c.chainage_meters
            elif c.entry_type == ChainageEntryType.RANGE_END:
                end = c.chainage_meters
        if start is None or end is None:
            return None
        return (min(start, end), max(start, end))

    def chainage_summary(self):
        specific = [
            c.chainage for c in self.chainages if c.entry_type == ChainageEntryType.SPECIFIC
        ]
        start = next((c for c in self.chainages if c.entry_type == ChainageEntryType.RANGE_START), None)
        end = next((c for c in self.chainages if c.entry_type == ChainageEntryType.RANGE_END), None)
        return {
            "specific": specific,
            "range": f"{start.chainage} - {end.chainage}" if start and end else None,
        }

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)

    @property
    def category_label(self) -> str:
        return CATEGORY_LABELS.get(self.category, self.category)

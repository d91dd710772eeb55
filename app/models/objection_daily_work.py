from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, PrimaryKeyConstraint
from sqlalchemy.sql import func
from app.models.base import Base


class ObjectionDailyWork(Base):
    """Pivot between objections and the RFIs they are raised against."""

    __tablename__ = "objection_daily_works"

    objection_id = Column(Integer, ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"), nullable=False)
    daily_work_id = Column(Integer, ForeignKey("daily_works.daily_work_id", ondelete="CASCADE"), nullable=False)
    attached_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))
    attached_at = Column(DateTime, default=func.now())
    attachment_notes = Column(String(1000))

    __table_args__ = (
        PrimaryKeyConstraint("objection_id", "daily_work_id", name="pk_objection_daily_works"),
    )

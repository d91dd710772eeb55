from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.models.base import Base


class DailyWork(Base):
    """RFI (request for inspection) record tied to a chainage location."""

    __tablename__ = "daily_works"

    daily_work_id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(100), nullable=False, unique=True)
    date = Column(Date)
    type = Column(String(50))
    description = Column(Text)
    location = Column(String(255), index=True)
    side = Column(String(20))
    status = Column(String(30), default="new", nullable=False)
    incharge_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))

    created_at = Column(DateTime, default=func.now())

    incharge = relationship("User", foreign_keys=[incharge_id])
    objections = relationship(
        "RfiObjection",
        secondary="objection_daily_works",
        viewonly=True,
    )

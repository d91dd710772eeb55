from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from app.models.base import Base


class RfiObjectionStatusLog(Base):
    __tablename__ = "rfi_objection_status_logs"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    objection_id = Column(
        Integer,
        ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status = Column(String(20))
    to_status = Column(String(20), nullable=False)
    notes = Column(Text)
    changed_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"))
    changed_at = Column(DateTime, default=func.now())

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.models.base import Base


class ChainageEntryType:
    SPECIFIC = "specific"
    RANGE_START = "range_start"
    RANGE_END = "range_end"

    ALL = (SPECIFIC, RANGE_START, RANGE_END)


class ObjectionChainage(Base):
    __tablename__ = "objection_chainages"

    chainage_id = Column(Integer, primary_key=True, autoincrement=True)
    objection_id = Column(
        Integer,
        ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chainage = Column(String(50), nullable=False)
    chainage_meters = Column(Integer, nullable=False, index=True)
    side = Column(String(10))
    entry_type = Column(String(20), nullable=False, default=ChainageEntryType.SPECIFIC)

    created_at = Column(DateTime, default=func.now())

    objection = relationship("RfiObjection", back_populates="chainages")

from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.models.daily_work import DailyWork


class DailyWorkRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, daily_work_id: int) -> Optional[DailyWork]:
        return (
            self.db.query(DailyWork)
            .filter(DailyWork.daily_work_id == daily_work_id)
            .first()
        )

    def get_by_number(self, number: str) -> Optional[DailyWork]:
        return (
            self.db.query(DailyWork)
            .filter(DailyWork.number == number)
            .first()
        )

    def get_many(self, ids: Iterable[int]) -> List[DailyWork]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(DailyWork).filter(DailyWork.daily_work_id.in_(ids)).all()

    def create(self, **fields) -> DailyWork:
        work = DailyWork(**fields)
        self.db.add(work)
        self.db.commit()
        self.db.refresh(work)
        return work

    def list(self, type_: Optional[str] = None, status: Optional[str] = None,
             limit: int = 100, offset: int = 0) -> List[DailyWork]:
        query = self.db.query(DailyWork).options(joinedload(DailyWork.incharge))
        if type_:
            query = query.filter(DailyWork.type == type_)
        if status:
            query = query.filter(DailyWork.status == status)
        return (
            query.order_by(DailyWork.date.desc(), DailyWork.daily_work_id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    # -------------------------------------------------
    # Suggestion candidates (ordered by location, newest first)
    # -------------------------------------------------
    def search(self, term: str, type_: Optional[str] = None) -> List[DailyWork]:
        like = f"%{term}%"
        query = (
            self.db.query(DailyWork)
            .options(joinedload(DailyWork.incharge))
            .filter(or_(
                DailyWork.number.like(like),
                DailyWork.location.like(like),
                DailyWork.description.like(like),
            ))
        )
        if type_:
            query = query.filter(DailyWork.type == type_)
        return query.order_by(DailyWork.location, DailyWork.date.desc()).all()

    def located(self, type_: Optional[str] = None) -> List[DailyWork]:
        query = (
            self.db.query(DailyWork)
            .options(joinedload(DailyWork.incharge))
            .filter(DailyWork.location.isnot(None), DailyWork.location != "")
        )
        if type_:
            query = query.filter(DailyWork.type == type_)
        return query.order_by(DailyWork.location, DailyWork.date.desc()).all()

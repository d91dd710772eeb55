from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.models.objection_chainage import ObjectionChainage
from app.models.objection_daily_work import ObjectionDailyWork
from app.models.rfi_objection import RfiObjection
from app.models.rfi_objection_status_log import RfiObjectionStatusLog


class ObjectionRepository:

    def __init__(self, db: Session):
        self.db = db

    def get(self, objection_id: int) -> Optional[RfiObjection]:
        return (
            self.db.query(RfiObjection)
            .options(selectinload(RfiObjection.chainages), selectinload(RfiObjection.daily_works))
            .filter(RfiObjection.objection_id == objection_id)
            .first()
        )

    def list(self, status: Optional[str] = None, category: Optional[str] = None,
             search: Optional[str] = None) -> List[RfiObjection]:
        query = self.db.query(RfiObjection).options(
            selectinload(RfiObjection.chainages),
            selectinload(RfiObjection.daily_works),
        )
        if status:
            query = query.filter(RfiObjection.status == status)
        if category:
            query = query.filter(RfiObjection.category == category)
        if search:
            like = f"%{search}%"
            query = query.filter(or_(
                RfiObjection.title.like(like),
                RfiObjection.description.like(like),
                RfiObjection.chainage_from.like(like),
            ))
        return query.order_by(RfiObjection.created_at.desc(), RfiObjection.objection_id.desc()).all()

    def add(self, objection: RfiObjection) -> RfiObjection:
        self.db.add(objection)
        self.db.flush()
        return objection

    def delete(self, objection: RfiObjection):
        self.db.query(ObjectionDailyWork).filter(
            ObjectionDailyWork.objection_id == objection.objection_id
        ).delete(synchronize_session=False)
        self.db.query(RfiObjectionStatusLog).filter(
            RfiObjectionStatusLog.objection_id == objection.objection_id
        ).delete(synchronize_session=False)
        self.db.delete(objection)

    # -------------------------------------------------
    # Chainages
    # -------------------------------------------------
    def replace_chainages(self, objection: RfiObjection, entries: Iterable[ObjectionChainage]):
        objection.chainages.clear()
        self.db.flush()
        for entry in entries:
            objection.chainages.append(entry)

    # -------------------------------------------------
    # Status log
    # -------------------------------------------------
    def add_status_log(self, objection_id: int, from_status: Optional[str], to_status: str,
                       notes: Optional[str], changed_by: Optional[int]) -> RfiObjectionStatusLog:
        log = RfiObjectionStatusLog(
            objection_id=objection_id,
            from_status=from_status,
            to_status=to_status,
            notes=notes,
            changed_by=changed_by,
            changed_at=datetime.utcnow(),
        )
        self.db.add(log)
        return log

    def status_logs(self, objection_id: int) -> List[RfiObjectionStatusLog]:
        return (
            self.db.query(RfiObjectionStatusLog)
            .filter(RfiObjectionStatusLog.objection_id == objection_id)
            .order_by(RfiObjectionStatusLog.changed_at.desc(), RfiObjectionStatusLog.log_id.desc())
            .all()
        )

    # -------------------------------------------------
    # RFI attachments
    # -------------------------------------------------
    def attached_ids(self, objection_id: int) -> Set[int]:
        rows = (
            self.db.query(ObjectionDailyWork.daily_work_id)
            .filter(ObjectionDailyWork.objection_id == objection_id)
            .all()
        )
        return {row[0] for row in rows}

    def attach(self, objection_id: int, daily_work_ids: Iterable[int],
               attached_by: Optional[int], notes: Optional[str]) -> int:
        existing = self.attached_ids(objection_id)
        count = 0
        for daily_work_id in daily_work_ids:
            if daily_work_id in existing:
                continue
            self.db.add(ObjectionDailyWork(
                objection_id=objection_id,
                daily_work_id=daily_work_id,
                attached_by=attached_by,
                attached_at=datetime.utcnow(),
                attachment_notes=notes,
            ))
            existing.add(daily_work_id)
            count += 1
        return count

    def detach(self, objection_id: int, daily_work_id: int) -> int:
        return (
            self.db.query(ObjectionDailyWork)
            .filter(
                ObjectionDailyWork.objection_id == objection_id,
                ObjectionDailyWork.daily_work_id == daily_work_id,
            )
            .delete(synchronize_session=False)
        )

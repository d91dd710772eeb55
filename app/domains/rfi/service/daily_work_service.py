import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domains.auth.service.session_service import SessionGuard
from app.domains.rfi.chainage import parse_location
from app.domains.rfi.exception import rfi_error
from app.domains.rfi.repository.daily_work_repository import DailyWorkRepository
from app.models.daily_work import DailyWork
from app.schemas.rfi.daily_work_schema import DailyWorkCreateRequest

logger = logging.getLogger(__name__)


def rfi_dict(work: DailyWork) -> dict:
    location = parse_location(work.location)
    return {
        "id": work.daily_work_id,
        "number": work.number,
        "location": work.location,
        "description": work.description,
        "type": work.type,
        "date": work.date.isoformat() if work.date else None,
        "side": work.side,
        "status": work.status,
        "incharge": work.incharge_id,
        "incharge_user": (
            {"id": work.incharge.user_id, "name": work.incharge.name}
            if work.incharge is not None else None
        ),
        "location_start": location.start,
        "location_end": location.end,
    }


class DailyWorkService:

    @staticmethod
    def create(request: Request, body: DailyWorkCreateRequest, db: Session):
        path = request.url.path
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = DailyWorkRepository(db)
        number = body.number.strip()
        if repo.get_by_number(number) is not None:
            return rfi_error("RFI_409_1", path)

        location = body.location.strip() if body.location else None
        if location and not parse_location(location).is_valid:
            # kept as entered; it just never matches a chainage
            logger.info("RFI_LOCATION_UNPARSED: number=%s location=%r", number, location)

        try:
            work = repo.create(
                number=number,
                date=body.date,
                type=body.type,
                description=body.description,
                location=location,
                side=body.side,
                status=body.status or "new",
                incharge_id=body.incharge_id,
            )
        except IntegrityError:
            db.rollback()
            return rfi_error("RFI_409_1", path)
        except Exception:
            logger.exception("RFI_CREATE_ERROR: number=%s", number)
            db.rollback()
            return rfi_error("RFI_500_1", path)

        return {"success": True, "daily_work": rfi_dict(work)}

    @staticmethod
    def list(request: Request, type_: Optional[str], status: Optional[str],
             limit: int, offset: int, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        works = DailyWorkRepository(db).list(type_=type_, status=status, limit=limit, offset=offset)
        items = [rfi_dict(w) for w in works]
        return {"success": True, "count": len(items), "daily_works": items}

    @staticmethod
    def get(request: Request, daily_work_id: int, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        work = DailyWorkRepository(db).get_by_id(daily_work_id)
        if work is None:
            return rfi_error("RFI_404_1", request.url.path)
        return {"success": True, "daily_work": rfi_dict(work)}

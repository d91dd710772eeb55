import logging
from typing import Iterable, List, Optional, Sequence

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.domains.auth.service.session_service import SessionGuard
from app.domains.rfi.chainage import (
    Range,
    objection_matches_location,
    parse_chainage,
    parse_multiple_chainages,
    parse_range,
)
from app.domains.rfi.repository.daily_work_repository import DailyWorkRepository
from app.domains.rfi.service.daily_work_service import rfi_dict
from app.models.daily_work import DailyWork

logger = logging.getLogger(__name__)

NO_CHAINAGES_MESSAGE = "No valid chainages provided"


def filter_by_chainage(
    candidates: Iterable[DailyWork],
    specific_meters: Sequence[int],
    span: Optional[Range],
) -> List[DailyWork]:
    """Candidates whose location touches any specific point or the range; order kept."""
    return [
        work for work in candidates
        if objection_matches_location(specific_meters, span, work.location)
    ]


def parse_request_chainages(chainage_from: Optional[str], chainage_to: Optional[str]):
    """
    (specific_meters, range) for a suggestion request.

    Both ends given, or `chainage_from` written as a range such as
    ``K36+500 to K37+000`` -> range mode. Otherwise `chainage_from` is a
    comma separated list of specific chainages.
    """
    specific: List[int] = []
    span: Optional[Range] = None

    if chainage_from and chainage_from.strip():
        if chainage_to and chainage_to.strip():
            start = parse_chainage(chainage_from)
            end = parse_chainage(chainage_to)
            if start is not None and end is not None:
                span = (min(start, end), max(start, end))
        else:
            span = parse_range(chainage_from)
            if span is None:
                specific = parse_multiple_chainages(chainage_from)

    return specific, span


def suggest_rfis(
    db: Session,
    chainage_from: Optional[str] = None,
    chainage_to: Optional[str] = None,
    type_: Optional[str] = None,
    search: Optional[str] = None,
) -> dict:
    repo = DailyWorkRepository(db)

    # 1) free text search wins over chainages
    if search and search.strip():
        rfis = [rfi_dict(w) for w in repo.search(search.strip(), type_)]
        return {
            "rfis": rfis,
            "count": len(rfis),
            "total_found": len(rfis),
            "match_type": "search",
        }

    # 2) chainages
    specific, span = parse_request_chainages(chainage_from, chainage_to)
    if not specific and span is None:
        return {
            "rfis": [],
            "count": 0,
            "total_found": 0,
            "match_type": "none",
            "message": NO_CHAINAGES_MESSAGE,
        }

    # 3) match in Python against every located RFI
    candidates = repo.located(type_)
    matched = filter_by_chainage(candidates, specific, span)
    logger.debug(
        "SUGGEST_RFIS: specific=%s range=%s candidates=%s matched=%s",
        len(specific), span, len(candidates), len(matched),
    )

    rfis = [rfi_dict(w) for w in matched]
    return {
        "rfis": rfis,
        "count": len(rfis),
        "total_found": len(rfis),
        "match_type": "specific" if specific else "range",
        "parsed_chainages": {
            "specific_count": len(specific),
            "range_start": span[0] if span else None,
            "range_end": span[1] if span else None,
        },
    }


class SuggestionService:

    @staticmethod
    def suggest(
        request: Request,
        chainage_from: Optional[str],
        chainage_to: Optional[str],
        type_: Optional[str],
        search: Optional[str],
        db: Session,
    ):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        try:
            return suggest_rfis(db, chainage_from, chainage_to, type_, search)
        except Exception:
            logger.exception("SUGGEST_RFIS_ERROR")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Failed to suggest RFIs.",
                    "count": 0,
                    "match_type": "none",
                    "rfis": [],
                },
            )

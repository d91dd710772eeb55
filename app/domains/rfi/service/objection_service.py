import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from app.domains.auth.service.session_service import SessionGuard
from app.domains.rfi.chainage import (
    Range,
    extract_side,
    format_meters,
    invalid_chainages,
    objection_matches_location,
    parse_chainage,
    parse_multiple_chainages,
    parse_range,
    split_chainages,
)
from app.domains.rfi.exception import rfi_error
from app.domains.rfi.repository.daily_work_repository import DailyWorkRepository
from app.domains.rfi.repository.objection_repository import ObjectionRepository
from app.domains.rfi.service.daily_work_service import rfi_dict
from app.domains.rfi.service.suggestion_service import filter_by_chainage
from app.models.objection_chainage import ChainageEntryType, ObjectionChainage
from app.models.rfi_objection import (
    ACTIVE_STATUSES,
    CATEGORY_LABELS,
    STATUS_LABELS,
    ObjectionStatus,
    RfiObjection,
)
from app.schemas.rfi.objection_schema import (
    ObjectionAttachRequest,
    ObjectionCreateRequest,
    ObjectionNotesRequest,
    ObjectionUpdateRequest,
)

logger = logging.getLogger(__name__)

CHAINAGE_FIELDS = {"specific_chainages", "chainage_range_from", "chainage_range_to"}
LEGACY_FIELDS = {"chainage_from", "chainage_to"}

# action -> (allowed current statuses, new status, refusal message)
TRANSITIONS = {
    "submit": (
        {ObjectionStatus.DRAFT.value},
        ObjectionStatus.SUBMITTED.value,
        "Only draft objections can be submitted.",
    ),
    "review": (
        {ObjectionStatus.SUBMITTED.value},
        ObjectionStatus.UNDER_REVIEW.value,
        "Only submitted objections can be reviewed.",
    ),
    "resolve": (
        {ObjectionStatus.SUBMITTED.value, ObjectionStatus.UNDER_REVIEW.value},
        ObjectionStatus.RESOLVED.value,
        "Only submitted or under-review objections can be resolved.",
    ),
    "reject": (
        {ObjectionStatus.SUBMITTED.value, ObjectionStatus.UNDER_REVIEW.value},
        ObjectionStatus.REJECTED.value,
        "Only submitted or under-review objections can be rejected.",
    ),
}

TRANSITION_MESSAGES = {
    "submit": "Objection submitted for review.",
    "review": "Objection is now under review.",
    "resolve": "Objection resolved successfully.",
    "reject": "Objection rejected.",
}


# -------------------------------------------------
# Chainage input
# -------------------------------------------------
@dataclass
class ChainageInput:
    specific: List[str] = field(default_factory=list)
    range_from: Optional[str] = None
    range_to: Optional[str] = None

    @property
    def has_range(self) -> bool:
        return bool(self.range_from and self.range_from.strip() and self.range_to and self.range_to.strip())


def chainage_input_from(body) -> Optional[ChainageInput]:
    """
    Chainages a create/update request asks for, or None when it names none.

    The structured fields win; otherwise the free text `chainage_from` /
    `chainage_to` pair is read (a range when both are set or when
    `chainage_from` is itself a range, else a comma separated list).
    """
    sent = body.model_fields_set
    if sent & CHAINAGE_FIELDS:
        return ChainageInput(
            specific=[c.strip() for c in (body.specific_chainages or []) if c and c.strip()],
            range_from=body.chainage_range_from,
            range_to=body.chainage_range_to,
        )

    if not sent & LEGACY_FIELDS:
        return None

    chainage_from = (body.chainage_from or "").strip()
    chainage_to = (body.chainage_to or "").strip()
    if chainage_from and chainage_to:
        return ChainageInput(range_from=chainage_from, range_to=chainage_to)

    if chainage_from and parse_range(chainage_from) is not None:
        start, end = _split_range_text(chainage_from)
        return ChainageInput(range_from=start, range_to=end)

    return ChainageInput(specific=split_chainages(chainage_from))


def _split_range_text(text: str) -> Tuple[str, str]:
    start, end = parse_range(text)
    return format_meters(start), format_meters(end)


def validate_chainages(chainages: ChainageInput) -> List[dict]:
    """Per-entry problems; empty when every chainage is readable."""
    errors = [
        {"field": "specific_chainages", "value": raw, "message": "Unrecognised chainage format"}
        for raw in invalid_chainages(chainages.specific)
    ]

    range_from = (chainages.range_from or "").strip()
    range_to = (chainages.range_to or "").strip()
    if bool(range_from) != bool(range_to):
        missing = "chainage_range_to" if range_from else "chainage_range_from"
        errors.append({"field": missing, "value": None, "message": "A range needs both ends"})
        return errors

    for name, value in (("chainage_range_from", range_from), ("chainage_range_to", range_to)):
        if value and parse_chainage(value) is None:
            errors.append({"field": name, "value": value, "message": "Unrecognised chainage format"})
    return errors


def build_chainage_entries(chainages: ChainageInput) -> List[ObjectionChainage]:
    entries = []
    seen = set()
    for raw in chainages.specific:
        meters = parse_chainage(raw)
        if meters is None or meters in seen:
            continue
        seen.add(meters)
        entries.append(_entry(raw, meters, ChainageEntryType.SPECIFIC))

    if chainages.has_range:
        start_raw, end_raw = chainages.range_from.strip(), chainages.range_to.strip()
        start, end = parse_chainage(start_raw), parse_chainage(end_raw)
        if start > end:
            start_raw, end_raw, start, end = end_raw, start_raw, end, start
        entries.append(_entry(start_raw, start, ChainageEntryType.RANGE_START))
        entries.append(_entry(end_raw, end, ChainageEntryType.RANGE_END))
    return entries


def _entry(raw: str, meters: int, entry_type: str) -> ObjectionChainage:
    return ObjectionChainage(
        chainage=raw.strip()[:50],
        chainage_meters=meters,
        side=extract_side(raw),
        entry_type=entry_type,
    )


def _legacy_text(chainages: ChainageInput) -> Tuple[Optional[str], Optional[str]]:
    if chainages.specific:
        return ", ".join(chainages.specific), None
    if chainages.has_range:
        return chainages.range_from.strip(), chainages.range_to.strip()
    return None, None


def objection_search_chainages(objection: RfiObjection) -> Tuple[List[int], Optional[Range]]:
    """Stored chainage rows, falling back to the free text fields for older records."""
    specific = objection.specific_meters
    span = objection.range_meters
    if specific or span is not None:
        return specific, span

    chainage_from = (objection.chainage_from or "").strip()
    chainage_to = (objection.chainage_to or "").strip()
    if chainage_from and chainage_to:
        start, end = parse_chainage(chainage_from), parse_chainage(chainage_to)
        if start is not None and end is not None:
            return [], (min(start, end), max(start, end))
        return [], None
    if chainage_from:
        span = parse_range(chainage_from)
        if span is not None:
            return [], span
        return parse_multiple_chainages(chainage_from), None
    return [], None


# -------------------------------------------------
# Serialisation
# -------------------------------------------------
def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def objection_dict(objection: RfiObjection) -> dict:
    return {
        "id": objection.objection_id,
        "title": objection.title,
        "category": objection.category,
        "category_label": objection.category_label,
        "type": objection.type,
        "chainage_from": objection.chainage_from,
        "chainage_to": objection.chainage_to,
        "description": objection.description,
        "reason": objection.reason,
        "status": objection.status,
        "status_label": objection.status_label,
        "is_active": objection.is_active,
        "resolution_notes": objection.resolution_notes,
        "resolved_by": objection.resolved_by,
        "resolved_at": _iso(objection.resolved_at),
        "created_by": objection.created_by,
        "created_at": _iso(objection.created_at),
        "updated_at": _iso(objection.updated_at),
        "chainages": [
            {
                "chainage": c.chainage,
                "chainage_meters": c.chainage_meters,
                "normalized": format_meters(c.chainage_meters),
                "side": c.side,
                "entry_type": c.entry_type,
            }
            for c in objection.chainages
        ],
        "chainage_summary": objection.chainage_summary(),
        "rfis": [rfi_dict(w) for w in objection.daily_works],
    }


class ObjectionService:

    # -------------------------------------------------
    # 1) Create
    # -------------------------------------------------
    @staticmethod
    def create(request: Request, body: ObjectionCreateRequest, db: Session):
        path = request.url.path
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        chainages = chainage_input_from(body) or ChainageInput()
        problems = validate_chainages(chainages)
        if problems:
            return rfi_error("OBJ_422_1", path, errors=problems)

        rfi_ids = list(dict.fromkeys(body.rfi_ids))
        missing = _missing_rfis(db, rfi_ids)
        if missing:
            return rfi_error("OBJ_404_2", path, errors=[{"rfi_id": i} for i in missing])

        legacy_from, legacy_to = _legacy_text(chainages)
        repo = ObjectionRepository(db)
        user_id = user.user_id
        try:
            objection = repo.add(RfiObjection(
                title=body.title.strip(),
                category=body.category.value,
                type=body.type,
                description=body.description,
                reason=body.reason,
                status=body.status,
                chainage_from=body.chainage_from if body.chainage_from is not None else legacy_from,
                chainage_to=body.chainage_to if body.chainage_to is not None else legacy_to,
                created_by=user_id,
                updated_by=user_id,
            ))
            repo.replace_chainages(objection, build_chainage_entries(chainages))
            repo.add_status_log(objection.objection_id, None, body.status, "Objection created", user_id)
            repo.attach(objection.objection_id, rfi_ids, user_id, body.attachment_notes)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_CREATE_ERROR: user=%s", user_id)
            return rfi_error("OBJ_500_1", path)

        objection = repo.get(objection.objection_id)
        return {
            "success": True,
            "message": "Objection created.",
            "objection": objection_dict(objection),
        }

    # -------------------------------------------------
    # 2) Update
    # -------------------------------------------------
    @staticmethod
    def update(request: Request, objection_id: int, body: ObjectionUpdateRequest, db: Session):
        path = request.url.path
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        objection = repo.get(objection_id)
        if objection is None:
            return rfi_error("OBJ_404_1", path)
        if not objection.is_active:
            return rfi_error("OBJ_409_2", path)

        chainages = chainage_input_from(body)
        if chainages is not None:
            problems = validate_chainages(chainages)
            if problems:
                return rfi_error("OBJ_422_1", path, errors=problems)

        changes = body.model_dump(exclude_unset=True, exclude=CHAINAGE_FIELDS | LEGACY_FIELDS)
        try:
            for name, value in changes.items():
                if value is None:
                    continue
                setattr(objection, name, value.value if name == "category" else value)

            if chainages is not None:
                repo.replace_chainages(objection, build_chainage_entries(chainages))
                legacy_from, legacy_to = _legacy_text(chainages)
                sent = body.model_fields_set
                objection.chainage_from = body.chainage_from if "chainage_from" in sent else legacy_from
                objection.chainage_to = body.chainage_to if "chainage_to" in sent else legacy_to

            objection.updated_by = user.user_id
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_UPDATE_ERROR: objection=%s", objection_id)
            return rfi_error("OBJ_500_1", path)

        objection = repo.get(objection_id)
        return {
            "success": True,
            "message": "Objection updated.",
            "objection": objection_dict(objection),
        }

    # -------------------------------------------------
    # 3) Read
    # -------------------------------------------------
    @staticmethod
    def list(request: Request, status: Optional[str], category: Optional[str],
             chainage: Optional[str], search: Optional[str], db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        objections = ObjectionRepository(db).list(status=status, category=category, search=search)
        if chainage and chainage.strip():
            objections = [o for o in objections if _touches(o, chainage)]

        items = [objection_dict(o) for o in objections]
        return {"success": True, "count": len(items), "objections": items}

    @staticmethod
    def get(request: Request, objection_id: int, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        objection = ObjectionRepository(db).get(objection_id)
        if objection is None:
            return rfi_error("OBJ_404_1", request.url.path)
        return {"success": True, "objection": objection_dict(objection)}

    @staticmethod
    def status_logs(request: Request, objection_id: int, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        if repo.get(objection_id) is None:
            return rfi_error("OBJ_404_1", request.url.path)

        logs = [
            {
                "from_status": log.from_status,
                "to_status": log.to_status,
                "notes": log.notes,
                "changed_by": log.changed_by,
                "changed_at": _iso(log.changed_at),
            }
            for log in repo.status_logs(objection_id)
        ]
        return {"success": True, "objection_id": objection_id, "logs": logs}

    @staticmethod
    def metadata(request: Request, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        return {
            "categories": [{"value": k, "label": v} for k, v in CATEGORY_LABELS.items()],
            "statuses": [{"value": k, "label": v} for k, v in STATUS_LABELS.items()],
            "active_statuses": list(ACTIVE_STATUSES),
        }

    # -------------------------------------------------
    # 4) Delete
    # -------------------------------------------------
    @staticmethod
    def delete(request: Request, objection_id: int, db: Session):
        path = request.url.path
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        objection = repo.get(objection_id)
        if objection is None:
            return rfi_error("OBJ_404_1", path)

        try:
            repo.delete(objection)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_DELETE_ERROR: objection=%s", objection_id)
            return rfi_error("OBJ_500_1", path)

        return {"success": True, "message": "Objection deleted successfully."}

    # -------------------------------------------------
    # 5) Status transitions
    # -------------------------------------------------
    @staticmethod
    def transition(request: Request, objection_id: int, action: str,
                   body: Optional[ObjectionNotesRequest], db: Session):
        path = request.url.path
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        objection = repo.get(objection_id)
        if objection is None:
            return rfi_error("OBJ_404_1", path)

        allowed_from, new_status, refusal = TRANSITIONS[action]
        if objection.status not in allowed_from:
            return rfi_error(
                "OBJ_409_1",
                path,
                errors=[{"status": objection.status, "action": action, "message": refusal}],
            )

        notes = body.notes if body is not None else None
        old_status = objection.status
        try:
            repo.add_status_log(objection_id, old_status, new_status, notes, user.user_id)
            objection.status = new_status
            if new_status in (ObjectionStatus.RESOLVED.value, ObjectionStatus.REJECTED.value):
                objection.resolved_by = user.user_id
                objection.resolved_at = datetime.utcnow()
                if notes:
                    objection.resolution_notes = notes
            objection.updated_by = user.user_id
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_TRANSITION_ERROR: objection=%s action=%s", objection_id, action)
            return rfi_error("OBJ_500_1", path)

        logger.info("OBJECTION_STATUS: objection=%s %s -> %s", objection_id, old_status, new_status)
        objection = repo.get(objection_id)
        return {
            "success": True,
            "message": TRANSITION_MESSAGES[action],
            "objection": objection_dict(objection),
        }

    # -------------------------------------------------
    # 6) RFI attachments
    # -------------------------------------------------
    @staticmethod
    def attach(request: Request, objection_id: int, body: ObjectionAttachRequest, db: Session):
        path = request.url.path
        user, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        if repo.get(objection_id) is None:
            return rfi_error("OBJ_404_1", path)

        rfi_ids = list(dict.fromkeys(body.rfi_ids))
        missing = _missing_rfis(db, rfi_ids)
        if missing:
            return rfi_error("OBJ_404_2", path, errors=[{"rfi_id": i} for i in missing])

        try:
            count = repo.attach(objection_id, rfi_ids, user.user_id, body.attachment_notes)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_ATTACH_ERROR: objection=%s", objection_id)
            return rfi_error("OBJ_500_1", path)

        objection = repo.get(objection_id)
        return {
            "success": True,
            "message": f"{count} RFI(s) attached.",
            "objection": objection_dict(objection),
        }

    @staticmethod
    def detach(request: Request, objection_id: int, daily_work_id: int, db: Session):
        path = request.url.path
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        if repo.get(objection_id) is None:
            return rfi_error("OBJ_404_1", path)

        try:
            removed = repo.detach(objection_id, daily_work_id)
            if not removed:
                return rfi_error("OBJ_404_3", path)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("OBJECTION_DETACH_ERROR: objection=%s", objection_id)
            return rfi_error("OBJ_500_1", path)

        objection = repo.get(objection_id)
        return {
            "success": True,
            "message": "RFI detached.",
            "objection": objection_dict(objection),
        }

    # -------------------------------------------------
    # 7) Suggested RFIs for a stored objection
    # -------------------------------------------------
    @staticmethod
    def suggested_rfis(request: Request, objection_id: int, limit: int, db: Session):
        _, error = SessionGuard.current_user(request, db)
        if error is not None:
            return error

        repo = ObjectionRepository(db)
        objection = repo.get(objection_id)
        if objection is None:
            return rfi_error("OBJ_404_1", request.url.path)

        specific, span = objection_search_chainages(objection)
        if not specific and span is None:
            return {
                "success": True,
                "objection_id": objection_id,
                "match_type": "none",
                "count": 0,
                "rfis": [],
                "attached_ids": sorted(repo.attached_ids(objection_id)),
            }

        matched = filter_by_chainage(DailyWorkRepository(db).located(), specific, span)

        rfis = [rfi_dict(w) for w in matched[:limit]]
        return {
            "success": True,
            "objection_id": objection_id,
            "match_type": "specific" if specific else "range",
            "count": len(rfis),
            "rfis": rfis,
            "attached_ids": sorted(repo.attached_ids(objection_id)),
        }


def _missing_rfis(db: Session, rfi_ids: List[int]) -> List[int]:
    found = {w.daily_work_id for w in DailyWorkRepository(db).get_many(rfi_ids)}
    return [i for i in rfi_ids if i not in found]


def _touches(objection: RfiObjection, location: str) -> bool:
    specific, span = objection_search_chainages(objection)
    return objection_matches_location(specific, span, location)

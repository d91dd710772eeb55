from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.db import get_db
from app.domains.auth.exception import AUTH_SESSION_RESPONSES
from app.domains.rfi.exception import OBJECTION_RESPONSES
from app.domains.rfi.service.objection_service import ObjectionService
from app.schemas.rfi.objection_schema import (
    ObjectionAttachRequest,
    ObjectionCreateRequest,
    ObjectionListResponse,
    ObjectionNotesRequest,
    ObjectionResponse,
    ObjectionUpdateRequest,
    StatusLogResponse,
    SuggestedRfisResponse,
)

router = APIRouter(
    prefix="/api/v1/objections",
    tags=["Objections"]
)

RESPONSES = {**AUTH_SESSION_RESPONSES, **OBJECTION_RESPONSES}


# -------------------------------------------------------
# 1) Create / list / metadata
# -------------------------------------------------------
@router.post(
    "",
    summary="Create an objection",
    description="Unreadable chainages are rejected with 422 and listed in `errors`.",
    status_code=201,
    response_model=ObjectionResponse,
    responses=RESPONSES,
)
def create_objection(body: ObjectionCreateRequest, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.create(request, body, db)


@router.get(
    "",
    summary="List objections",
    response_model=ObjectionListResponse,
    responses=AUTH_SESSION_RESPONSES,
)
def list_objections(
    request: Request,
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    chainage: Optional[str] = Query(None, description="Only objections touching this chainage or range"),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    return ObjectionService.list(request, status, category, chainage, search, db)


@router.get(
    "/metadata",
    summary="Categories and statuses",
    responses=AUTH_SESSION_RESPONSES,
)
def objection_metadata(request: Request, db: Session = Depends(get_db)):
    return ObjectionService.metadata(request, db)


# -------------------------------------------------------
# 2) Single objection
# -------------------------------------------------------
@router.get(
    "/{objection_id}",
    summary="Objection detail",
    response_model=ObjectionResponse,
    responses=RESPONSES,
)
def get_objection(objection_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.get(request, objection_id, db)


@router.patch(
    "/{objection_id}",
    summary="Update an objection",
    description="Chainages are re-synced when any chainage field is sent.",
    response_model=ObjectionResponse,
    responses=RESPONSES,
)
def update_objection(
    objection_id: int,
    body: ObjectionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    return ObjectionService.update(request, objection_id, body, db)


@router.delete(
    "/{objection_id}",
    summary="Delete an objection",
    responses=RESPONSES,
)
def delete_objection(objection_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.delete(request, objection_id, db)


@router.get(
    "/{objection_id}/status-logs",
    summary="Status history",
    response_model=StatusLogResponse,
    responses=RESPONSES,
)
def objection_status_logs(objection_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.status_logs(request, objection_id, db)


# -------------------------------------------------------
# 3) Status transitions
# -------------------------------------------------------
@router.post("/{objection_id}/submit", summary="Submit for review",
             response_model=ObjectionResponse, responses=RESPONSES)
def submit_objection(objection_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.transition(request, objection_id, "submit", None, db)


@router.post("/{objection_id}/review", summary="Start review",
             response_model=ObjectionResponse, responses=RESPONSES)
def review_objection(objection_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.transition(request, objection_id, "review", None, db)


@router.post("/{objection_id}/resolve", summary="Resolve",
             response_model=ObjectionResponse, responses=RESPONSES)
def resolve_objection(
    objection_id: int,
    body: ObjectionNotesRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    return ObjectionService.transition(request, objection_id, "resolve", body, db)


@router.post("/{objection_id}/reject", summary="Reject",
             response_model=ObjectionResponse, responses=RESPONSES)
def reject_objection(
    objection_id: int,
    body: ObjectionNotesRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    return ObjectionService.transition(request, objection_id, "reject", body, db)


# -------------------------------------------------------
# 4) RFIs
# -------------------------------------------------------
@router.post(
    "/{objection_id}/rfis",
    summary="Attach RFIs",
    response_model=ObjectionResponse,
    responses=RESPONSES,
)
def attach_rfis(
    objection_id: int,
    body: ObjectionAttachRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    return ObjectionService.attach(request, objection_id, body, db)


@router.delete(
    "/{objection_id}/rfis/{daily_work_id}",
    summary="Detach an RFI",
    response_model=ObjectionResponse,
    responses=RESPONSES,
)
def detach_rfi(objection_id: int, daily_work_id: int, request: Request, db: Session = Depends(get_db)):
    return ObjectionService.detach(request, objection_id, daily_work_id, db)


@router.get(
    "/{objection_id}/suggested-rfis",
    summary="RFIs matching the objection's chainages",
    response_model=SuggestedRfisResponse,
    responses=RESPONSES,
)
def suggested_rfis(
    objection_id: int,
    request: Request,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return ObjectionService.suggested_rfis(request, objection_id, limit, db)

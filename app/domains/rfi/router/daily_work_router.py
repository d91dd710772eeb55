from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.db import get_db
from app.domains.auth.exception import AUTH_SESSION_RESPONSES
from app.domains.rfi.exception import DAILY_WORK_RESPONSES
from app.domains.rfi.service.daily_work_service import DailyWorkService
from app.schemas.rfi.daily_work_schema import (
    DailyWorkCreateRequest,
    DailyWorkListResponse,
    DailyWorkResponse,
)

router = APIRouter(
    prefix="/api/v1/daily-works",
    tags=["Daily Works"]
)


@router.post(
    "",
    summary="Register a daily work (RFI)",
    status_code=201,
    response_model=DailyWorkResponse,
    responses={**AUTH_SESSION_RESPONSES, **DAILY_WORK_RESPONSES},
)
def create_daily_work(body: DailyWorkCreateRequest, request: Request, db: Session = Depends(get_db)):
    return DailyWorkService.create(request, body, db)


@router.get(
    "",
    summary="List daily works",
    response_model=DailyWorkListResponse,
    responses=AUTH_SESSION_RESPONSES,
)
def list_daily_works(
    request: Request,
    type: Optional[str] = Query(None, description="Work type"),
    status: Optional[str] = Query(None, description="Work status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return DailyWorkService.list(request, type, status, limit, offset, db)


@router.get(
    "/{daily_work_id}",
    summary="Daily work detail",
    response_model=DailyWorkResponse,
    responses=AUTH_SESSION_RESPONSES,
)
def get_daily_work(daily_work_id: int, request: Request, db: Session = Depends(get_db)):
    return DailyWorkService.get(request, daily_work_id, db)

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.db import get_db
from app.domains.auth.exception import AUTH_SESSION_RESPONSES
from app.domains.rfi.service.suggestion_service import SuggestionService
from app.schemas.rfi.suggestion_schema import SuggestRfisResponse

router = APIRouter(tags=["Objections"])


@router.get(
    "/suggest-rfis",
    summary="Suggest RFIs for chainages",
    description=(
        "RFIs whose location touches the given chainages. `search` does a text "
        "search instead; `chainage_from` + `chainage_to` is a range; "
        "`chainage_from` alone is a comma separated list of points."
    ),
    response_model=SuggestRfisResponse,
    response_model_exclude_none=True,
    responses={
        **AUTH_SESSION_RESPONSES,
        500: {"description": "Unexpected failure (`error` with an empty `rfis` list)"},
    },
)
def suggest_rfis(
    request: Request,
    chainage_from: Optional[str] = Query(None, max_length=5000),
    chainage_to: Optional[str] = Query(None, max_length=50),
    type: Optional[str] = Query(None, max_length=50),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    return SuggestionService.suggest(request, chainage_from, chainage_to, type, search, db)

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.db import get_db
from app.domains.auth.exception import AUTH_LOGIN_RESPONSES
from app.domains.auth.service.auth_service import AuthService
from app.schemas.auth.auth_schema import LoginBlockedResponse

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    summary="Password login",
    description="Email/password login guarded by the single-device gate.",
    status_code=200,
    response_model=LoginBlockedResponse,
    responses=AUTH_LOGIN_RESPONSES,
)
def login(
    request: Request,
    email: Optional[str] = Form(None, description="Account email"),
    password: Optional[str] = Form(None, description="Account password"),
    remember: bool = Form(False, description="Keep the session"),
    db: Session = Depends(get_db),
):
    """
    Logs the user in with a cookie session.

    - success: 303 redirect with the session cookie set
    - another device holds an enforced account: 200 with `deviceBlocked`
    - bad form or credentials: 422
    """
    return AuthService.login(request, email, password, remember, db)


@router.post(
    "/logout",
    summary="Logout",
    description="Ends the session. The device stays registered.",
    status_code=303,
)
def logout(
    request: Request,
    db: Session = Depends(get_db),
):
    return AuthService.logout(request, db)

from datetime import datetime
from typing import Any, List, Optional

from fastapi.responses import JSONResponse

from app.schemas.error_schema import ErrorResponse


def error_response(
    status: int,
    code: str,
    reason: str,
    path: str,
    errors: Optional[List[Any]] = None,
) -> JSONResponse:
    """Uniform error body. `errors` carries per-field details (e.g. bad chainages)."""
    error = ErrorResponse(
        success=False,
        status=status,
        code=code,
        reason=reason,
        timeStamp=datetime.utcnow().isoformat(),
        path=path,
        errors=errors,
    )

    return JSONResponse(
        status_code=status,
        content=error.model_dump(exclude_none=True)
    )


def catalog_error(catalog: dict, code: str, path: str, fallback_code: str, errors=None) -> JSONResponse:
    """Look `code` up in a domain error catalogue; unknown codes become a 500."""
    err = catalog.get(code)
    if not err:
        return error_response(500, fallback_code, "Internal server error.", path)
    return error_response(err.status, err.code, err.reason, path, errors=errors)

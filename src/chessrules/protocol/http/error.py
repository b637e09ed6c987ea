from __future__ import annotations

import logging
from typing import Any, Dict, cast

from fastapi import Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...engine.errors import DecodeError, IllegalMoveError
from ...session.session import (
    GameOverError,
    NotYourTurnError,
    SeatTakenError,
    SessionError,
    UnknownPlayerError,
)


logger = logging.getLogger(__name__)


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: list[dict[str, str]] | None = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    return payload


def to_http_exception(exc: Exception) -> FastAPIHTTPException:
    """Translate an engine or session rejection into an HTTP error."""
    if isinstance(exc, DecodeError):
        return FastAPIHTTPException(status_code=400, detail=f"invalid FEN: {exc}")
    if isinstance(exc, IllegalMoveError):
        return FastAPIHTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, UnknownPlayerError):
        return FastAPIHTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, (NotYourTurnError, SeatTakenError, GameOverError)):
        return FastAPIHTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (SessionError, ValueError)):
        return FastAPIHTTPException(status_code=400, detail=str(exc))
    raise exc


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    if isinstance(exc, FastAPIHTTPException):
        status_code = exc.status_code
        payload = error_envelope(
            code=_status_to_code(status_code),
            message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
            err_type="client_error" if 400 <= status_code < 500 else "server_error",
            request_id=request_id,
        )
        return JSONResponse(status_code=status_code, content=payload)
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    if isinstance(exc, FastAPIHTTPException):
        return await http_exception_handler(request, exc)
    # Anything else reaching here is a bug, not a rejected request
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        errors.append(
            {
                "field": loc,
                "code": e.get("type", "value_error"),
                "message": e.get("msg", "invalid value"),
            }
        )
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=request_id,
        field_errors=errors or None,
    )
    return JSONResponse(status_code=422, content=payload)


def _status_to_code(status_code: int) -> str:
    codes = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "unprocessable_entity",
    }
    if status_code in codes:
        return codes[status_code]
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"

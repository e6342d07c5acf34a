"""Request-id middleware, access logging and JSON error responses."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from crewboard.core.config import settings
from crewboard.core.errors import CrewboardError
from crewboard.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_MAX_REQUEST_ID_LENGTH = 128


def _incoming_request_id(scope: Scope) -> str | None:
    header_name = REQUEST_ID_HEADER.lower().encode("latin-1")
    for name, value in scope.get("headers") or []:
        if name.lower() != header_name:
            continue
        candidate = value.decode("latin-1").strip()
        if candidate and len(candidate) <= _MAX_REQUEST_ID_LENGTH:
            return candidate
    return None


class RequestContextMiddleware:
    """Assign a request id, echo it in responses, and emit access logs."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        started = perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        async def _send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = list(message.get("headers") or [])
                header_name = REQUEST_ID_HEADER.lower().encode("latin-1")
                if not any(name.lower() == header_name for name, _ in headers):
                    headers.append((header_name, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            self._log_request(scope, request_id, status_code, started)

    @staticmethod
    def _log_request(scope: Scope, request_id: str, status_code: int, started: float) -> None:
        path = str(scope.get("path", ""))
        if path in _HEALTH_PATHS and not settings.request_log_include_health:
            return
        duration_ms = int((perf_counter() - started) * 1000)
        extra = {
            "request_id": request_id,
            "method": scope.get("method"),
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        logger.info("http.request", extra=extra)
        if settings.request_log_slow_ms and duration_ms >= settings.request_log_slow_ms:
            logger.warning(
                "http.request.slow",
                extra={**extra, "slow_threshold_ms": settings.request_log_slow_ms},
            )


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _json_safe(value: object) -> object:
    """Coerce validation error payloads into JSON-serializable values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


def _error_payload(*, detail: object, request_id: str | None, **fields: object) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    payload.update({key: value for key, value in fields.items() if value is not None})
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _error_response(
    request: Request,
    *,
    status_code: int,
    detail: object,
    headers: dict[str, str] | None = None,
    **fields: object,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=request_id, **fields),
        headers=response_headers,
    )


async def _crewboard_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, CrewboardError):
        msg = "Expected CrewboardError"
        raise TypeError(msg)
    log = logger.warning if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.info
    log(
        "http.request.rejected",
        extra={
            "request_id": _get_request_id(request),
            "code": exc.code,
            "status_code": exc.status_code,
        },
    )
    return _error_response(
        request,
        status_code=exc.status_code,
        detail=exc.message,
        code=exc.code,
        retryable=exc.retryable,
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return _error_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=_json_safe(exc.errors()),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error(
        "http.response.invalid",
        extra={"request_id": _get_request_id(request), "errors": _json_safe(exc.errors())},
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _http_exception_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return _error_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=dict(exc.headers or {}),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.request.unhandled",
        extra={"request_id": _get_request_id(request)},
        exc_info=exc,
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def install_error_handling(app: FastAPI) -> None:
    """Install request-id middleware and JSON exception handlers on an app."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(CrewboardError, _crewboard_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

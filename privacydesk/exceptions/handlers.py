# privacydesk/exceptions/handlers.py
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from privacydesk.core import tracing
from privacydesk.exceptions.errors import (
    PrivacyDeskError, InvalidArgumentError, InvalidTransitionError,
    ConcurrentModificationError, NotFoundError,
)
import time

DOMAIN_STATUS_CODES = {
    InvalidArgumentError: 400,
    InvalidTransitionError: 400,
    ConcurrentModificationError: 409,
    NotFoundError: 404,
}


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_safe_headers(request: Request) -> dict:
    """Extract request headers worth logging"""
    headers = request.headers
    return {
        "user_agent": headers.get("user-agent", "unknown"),
        "tenant_id": headers.get("x-tenant-id", "none"),
        "actor_id": headers.get("x-actor-id", "none"),
    }


def status_code_for(exc: PrivacyDeskError) -> int:
    for error_type, status_code in DOMAIN_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def domain_exception_handler(request: Request, exc: PrivacyDeskError) -> JSONResponse:
    status_code = status_code_for(exc)

    tracing.warning(
        f"⚠️ {exc.kind}: {exc.detail}",
        url=str(request.url),
        ip=get_client_ip(request),
        **get_safe_headers(request)
    )

    content = {
        "detail": exc.detail,
        "error": exc.kind,
        "status_code": status_code,
        "trace_id": tracing.get_current_trace_id(),
        "timestamp": time.time(),
        "path": request.url.path
    }
    if isinstance(exc, InvalidTransitionError):
        content["from_status"] = exc.from_status
        content["to_status"] = exc.to_status
        content["allowed_transitions"] = exc.allowed

    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    tracing.error(
        f"🚨 HTTP {exc.status_code}: {exc.detail}",
        url=str(request.url),
        ip=get_client_ip(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "status_code": exc.status_code,
            "trace_id": tracing.get_current_trace_id(),
            "timestamp": time.time(),
            "path": request.url.path
        },
        headers=getattr(exc, 'headers', None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]

    tracing.warning(
        f"⚠️ Validation error: {len(errors)} errors",
        url=str(request.url),
        ip=get_client_ip(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": errors,
            "trace_id": tracing.get_current_trace_id(),
            "timestamp": time.time(),
            "path": request.url.path
        }
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    tracing.error(
        f"🔥 UNHANDLED EXCEPTION: {str(exc)}",
        url=str(request.url),
        ip=get_client_ip(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "trace_id": tracing.get_current_trace_id(),
            "timestamp": time.time(),
            "error_type": type(exc).__name__
        }
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    tracing.warning(
        f"🔍 HTTP {exc.status_code}: {exc.detail}",
        url=str(request.url),
        ip=get_client_ip(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "status_code": exc.status_code,
            "trace_id": tracing.get_current_trace_id(),
            "timestamp": time.time(),
            "path": request.url.path
        }
    )

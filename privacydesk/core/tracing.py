# privacydesk/core/tracing.py - Request trace IDs and structured loguru logging

import os
import socket
import traceback
import sys
import json
import random
from datetime import datetime, timezone
from typing import Optional, Dict
from loguru import logger
from contextvars import ContextVar

from privacydesk.core.config import settings

SERVICE_NAME = "privacydesk-api"
SERVICE_VERSION = "1.0.0"
TRACE_HEADER = "x-trace-id"

# Context variables for per-request trace propagation
_trace_id_context: ContextVar[str] = ContextVar('trace_id', default='no-trace')
_span_id_context: ContextVar[str] = ContextVar('span_id', default='no-span')


def generate_trace_id() -> str:
    """Generate a 128-bit trace ID as 32-character hex string"""
    return f"{random.getrandbits(128):032x}"


def generate_span_id() -> str:
    """Generate a 64-bit span ID as 16-character hex string"""
    return f"{random.getrandbits(64):016x}"


class TracingMiddleware:
    """ASGI middleware giving every HTTP request a trace ID, echoed in X-Trace-Id"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(TRACE_HEADER.encode())
        trace_id = incoming.decode() if incoming else generate_trace_id()
        span_id = generate_span_id()

        trace_token = _trace_id_context.set(trace_id)
        span_token = _span_id_context.set(span_id)

        async def send_with_trace(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((TRACE_HEADER.encode(), trace_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace)
        finally:
            _trace_id_context.reset(trace_token)
            _span_id_context.reset(span_token)


def setup_tracing(app) -> bool:
    """Install trace middleware and structured logging"""
    app.add_middleware(TracingMiddleware)
    setup_structured_logging(enable_json=settings.should_use_json_logging)
    logger.bind(trace_id=generate_trace_id(), span_id=generate_span_id()).info(
        "📍 Local trace IDs enabled"
    )
    return True


def format_stack_trace(exception_info) -> Optional[str]:
    """Format exception stack trace for logging"""
    if not exception_info:
        return None

    try:
        if hasattr(exception_info, 'type') and hasattr(exception_info, 'traceback'):
            if exception_info.traceback:
                return ''.join(traceback.format_exception(
                    exception_info.type,
                    exception_info.value,
                    exception_info.traceback
                ))
        return str(exception_info)
    except Exception:
        return "Error formatting stack trace"


def setup_structured_logging(enable_json: bool = None):
    """Configure loguru sinks: JSON lines in production, colored text otherwise"""
    if enable_json is None:
        enable_json = settings.should_use_json_logging

    logger.remove()

    hostname = socket.gethostname()
    pid = os.getpid()
    environment = settings.ENVIRONMENT

    if enable_json:
        def json_sink(message):
            record = message.record
            extra = record["extra"]
            trace_id = extra.get("trace_id") or _trace_id_context.get()
            span_id = extra.get("span_id") or _span_id_context.get()

            log_entry = {
                "@timestamp": datetime.now(timezone.utc).isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "service": {
                    "name": SERVICE_NAME,
                    "version": SERVICE_VERSION,
                    "environment": environment,
                },
                "host": {"hostname": hostname},
                "process": {"pid": pid},
                "log": {
                    "origin": {
                        "file": {"name": record["file"].name, "line": record["line"]},
                        "function": record["function"]
                    },
                    "logger": record["name"]
                },
                "trace": {"id": trace_id, "span_id": span_id},
            }

            custom = {k: v for k, v in extra.items() if k not in ("trace_id", "span_id") and not k.startswith("_")}
            if custom:
                log_entry["custom"] = custom

            if record["exception"]:
                log_entry["error"] = {
                    "type": record["exception"].type.__name__ if record["exception"].type else "UnknownError",
                    "message": str(record["exception"].value) if record["exception"].value else "Unknown error",
                    "stack_trace": format_stack_trace(record["exception"]),
                }

            sys.stderr.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            sys.stderr.flush()

        logger.add(json_sink, level=settings.LOG_LEVEL, catch=True)
    else:
        def format_with_trace(record):
            trace_id = record["extra"].get("trace_id") or _trace_id_context.get()
            trace_info = f" [trace:{trace_id[:8]}]" if trace_id != "no-trace" else ""
            return (
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
                "<cyan>{name}:{function}:{line}</cyan>" + trace_info + " - <level>{message}</level>\n{exception}"
            )

        logger.add(
            sys.stderr,
            format=format_with_trace,
            level=settings.LOG_LEVEL,
            colorize=True,
            catch=True
        )


def get_current_trace_id() -> str:
    return _trace_id_context.get()


def get_current_span_id() -> str:
    return _span_id_context.get()


def get_trace_context() -> Dict[str, str]:
    return {"trace_id": get_current_trace_id(), "span_id": get_current_span_id()}


def log_with_trace(level: str, message: str, **kwargs):
    """Log through loguru with the current trace context bound as extras"""
    extra_data = {**get_trace_context(), **kwargs}
    try:
        log_func = getattr(logger.bind(**extra_data), level.lower())
    except AttributeError:
        logger.error(f"Invalid log level: {level}")
        return
    log_func(message)


# Convenience functions
def info(message: str, **kwargs):
    log_with_trace("info", message, **kwargs)


def debug(message: str, **kwargs):
    log_with_trace("debug", message, **kwargs)


def warning(message: str, **kwargs):
    log_with_trace("warning", message, **kwargs)


def error(message: str, **kwargs):
    log_with_trace("error", message, **kwargs)


__all__ = [
    'setup_tracing', 'setup_structured_logging', 'TracingMiddleware',
    'get_current_trace_id', 'get_current_span_id', 'get_trace_context',
    'log_with_trace', 'info', 'debug', 'warning', 'error'
]

"""
Request logging middleware.

Every API call is logged once, after the response is produced, with:
- A correlation id (taken from ``X-Request-ID`` or generated)
- Method, path, status and wall time
- The authenticated actor, when the route resolved one
- Optionally the JSON body, with credentials redacted
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("bookstore.api")

REDACTED = "[REDACTED]"


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True
    log_request_body: bool = False
    max_body_log_size: int = 4096

    # Probes and browser noise
    quiet_paths: frozenset = frozenset({"/health", "/favicon.ico"})

    # Compared case-insensitively against JSON keys at any depth
    redacted_fields: frozenset = frozenset({
        "password",
        "passwordhash",
        "password_hash",
        "token",
        "jwt_secret",
    })

    # Requests slower than this (seconds) are logged as warnings
    slow_request_threshold: float = 1.0

    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        for attr in ("http", "actor", "duration_ms"):
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def redact_sensitive_data(data: Any, redacted_fields: frozenset) -> Any:
    """Return a copy of ``data`` with credential-bearing keys masked."""
    if isinstance(data, dict):
        return {
            key: REDACTED if key.lower() in redacted_fields else redact_sensitive_data(value, redacted_fields)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields) for item in data]
    return data


def get_request_id() -> str:
    """Correlation id of the request being handled, or ''."""
    return request_id_var.get()


def choose_log_level(status_code: int, duration: float, slow_threshold: float) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400 or duration > slow_threshold:
        return logging.WARNING
    return logging.INFO


def describe_actor(request: Request) -> Optional[dict[str, str]]:
    """Identity attached by the authentication dependency, if any."""
    claims = getattr(request.state, "user", None)
    if claims is None:
        return None
    return {"user_id": claims.user_id, "role": claims.role.value}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and echoes the correlation id."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    async def _read_body(self, request: Request) -> Optional[Any]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_log_size:
            return f"<{len(body)} bytes>"
        try:
            return redact_sensitive_data(json.loads(body), self.config.redacted_fields)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "<non-JSON body>"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.request_id_header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)
        request.state.request_id = request_id

        if not self.config.enabled or request.url.path in self.config.quiet_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        http = {
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query or None,
            "client_ip": request.client.host if request.client else None,
        }
        if self.config.log_request_body and request.method in ("POST", "PUT"):
            http["body"] = await self._read_body(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - started

        response.headers[self.config.request_id_header] = request_id
        http["status"] = response.status_code

        level = choose_log_level(response.status_code, duration, self.config.slow_request_threshold)
        duration_ms = round(duration * 1000, 2)
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
            extra={"http": http, "actor": describe_actor(request), "duration_ms": duration_ms},
        )
        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the request logging middleware.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Emit JSON lines from the ``bookstore`` logger tree.
    """
    if structured:
        root = logging.getLogger("bookstore")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in root.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            root.addHandler(handler)
            root.propagate = False
        root.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config or LoggingConfig())

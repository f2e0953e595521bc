"""JSON logging with request correlation and bearer-token redaction."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
# Inbound headers accepted as the correlation id, in priority order
INBOUND_ID_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# ``extra=`` fields copied into the JSON line when present on the record
EXTRA_KEYS: tuple[str, ...] = (
    "endpoint",
    "elapsed_ms",
    "user_id",
    "revoked",
    "removed",
    "state",
    "backend",
)

# Compact JWS: three base64url segments, header starts with '{"' -> 'eyJ'
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
REDACTED = "[redacted-token]"


def redact_tokens(text: str) -> str:
    """Replace anything shaped like a compact JWT with :data:`REDACTED`."""
    return _JWT_RE.sub(REDACTED, text)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; message and traceback pass through :func:`redact_tokens`."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": redact_tokens(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        line.update({k: getattr(record, k) for k in EXTRA_KEYS if hasattr(record, k)})
        if record.exc_info:
            line["exc_info"] = redact_tokens(self.formatException(record.exc_info))
        return json.dumps(line, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """
    Correlation id of the current request.

    Taken from the first inbound header in :data:`INBOUND_ID_HEADERS`, or
    generated, then cached on ``flask.g``. Outside a request a fresh id is
    returned every call.
    """
    if not has_request_context():
        return str(uuid4())
    rid = g.get("request_id")
    if rid is None:
        inbound = (request.headers.get(h) for h in INBOUND_ID_HEADERS)
        rid = next((v for v in inbound if v), None) or str(uuid4())
        g.request_id = rid
    return rid


def configure_logging(level: str | int = "INFO") -> None:
    """Route the root logger to stdout as JSON at ``level``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Echo the correlation id on every response."""
    app.logger.addFilter(RequestIdFilter())

    @app.after_request
    def _echo_request_id(response: Response) -> Response:  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "ensure_request_id", "init_app", "redact_tokens"]

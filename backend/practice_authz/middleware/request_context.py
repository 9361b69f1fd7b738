"""
Request context: request id and acting identity for log correlation.

The middleware accepts a caller-supplied X-Request-ID (if it looks sane) or
mints one, and echoes it on the response. ``get_identity`` records the
verified actor (``role:user_id``) once the token is decoded, so every guard
denial and store write logged during the request names who asked.
"""

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_actor_var: ContextVar[str] = ContextVar("actor", default="anonymous")

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def get_request_id() -> str:
    return _request_id_var.get()


def get_actor() -> str:
    return _actor_var.get()


def set_actor(actor: str) -> None:
    """Record the verified caller for the rest of this request's context."""
    _actor_var.set(actor)


def _incoming_request_id(request: Request) -> str:
    candidate = request.headers.get("X-Request-ID", "")
    if _REQUEST_ID_RE.match(candidate):
        return candidate
    return uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = _incoming_request_id(request)
        token = _request_id_var.set(request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            _request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id

        # 401/403 are routine here; the guards log the reason themselves
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.0fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"duration_ms": duration_ms, "request_id": request_id},
        )
        return response

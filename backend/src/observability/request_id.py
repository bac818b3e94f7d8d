"""Request ID management for request correlation.

The request ID lives in a ContextVar, so it follows a request across
awaits and into the tasks spawned by the upload and bulk pipelines.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request."""
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


@contextmanager
def bound_request_id(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a request ID for the duration of a block and restore the previous one.

    Example:
        with bound_request_id(request.headers.get("X-Request-ID")) as rid:
            response = await call_next(request)
    """
    rid = request_id or generate_request_id()
    token = request_id_var.set(rid)
    try:
        yield rid
    finally:
        request_id_var.reset(token)

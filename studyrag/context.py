"""
Name: Request Context

Responsibilities:
  - Hold request-scoped data (request_id, method, path) for log enrichment
  - Bind and clear it around each HTTP request

Collaborators:
  - middleware.py: binds the context at request start, clears it at the end
  - logger.py: reads it through get_context_dict()

Notes:
  - One ContextVar holding an immutable snapshot; contextvars are copied
    into threadpool workers, so sync endpoints see the same values
"""

from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    request_id: str = ""
    method: str = ""
    path: str = ""


_EMPTY = RequestContext()

_request_context: ContextVar[RequestContext] = ContextVar(
    "request_context", default=_EMPTY
)


def bind_request_context(
    request_id: str, method: Optional[str] = None, path: Optional[str] = None
) -> RequestContext:
    """R: Set the current request context and return it."""
    ctx = RequestContext(request_id=request_id, method=method or "", path=path or "")
    _request_context.set(ctx)
    return ctx


def current_context() -> RequestContext:
    return _request_context.get()


def get_context_dict() -> dict:
    """R: Non-empty context fields, ready to merge into a log record."""
    return {key: value for key, value in asdict(current_context()).items() if value}


def clear_context() -> None:
    """R: Reset the context (called at request end)."""
    _request_context.set(_EMPTY)

"""
Name: Request Context Middleware

Responsibilities:
  - Assign each request a correlation id (incoming X-Request-Id or a new UUID)
  - Bind the logging context and expose the id on request.state
  - Log the outcome with latency and record request metrics

Collaborators:
  - context.py: bind_request_context / clear_context
  - metrics.py: record_request_metrics
  - error_responses.py: reads request.state.request_id for problem details

Constraints:
  - Must be the outermost app middleware (added last)
  - Unhandled errors are logged and re-raised, counted as 500
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .context import bind_request_context, clear_context
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_request_context(request_id, request.method, request.url.path)
        request.state.request_id = request_id

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.exception("request failed")
            raise
        finally:
            elapsed = time.perf_counter() - started
            logger.info(
                "request completed",
                extra={"status_code": status_code, "latency_ms": round(elapsed * 1000, 2)},
            )
            record_request_metrics(
                endpoint=request.url.path,
                method=request.method,
                status_code=status_code,
                latency_seconds=elapsed,
            )
            clear_context()

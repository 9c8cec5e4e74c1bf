"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata
  - Configure middleware (request context, CORS)
  - Mount the RAG router under /api
  - Expose liveness, readiness and metrics endpoints

Collaborators:
  - routes.router: ingest and query endpoints
  - RequestContextMiddleware: request ID, logging context, request metrics
  - infrastructure.db.pool: pool lifecycle (postgres backend)
  - exception_handlers: RFC 7807 error mapping

Constraints:
  - Settings are validated in the lifespan, not at import time
  - /healthz checks the chunk store only (no model or LLM call)

Notes:
  - Run with: uvicorn studyrag.main:app --port 3002
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .container import get_chunk_store
from .exception_handlers import register_exception_handlers
from .infrastructure.db.pool import close_pool, init_pool
from .logger import logger
from .metrics import get_metrics_response
from .middleware import RequestContextMiddleware
from .routes import router

SERVICE_NAME = "studyrag"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()

    if settings.store_backend == "postgres":
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    logger.info(
        "StudyRAG API starting up",
        extra={
            "store_backend": settings.store_backend,
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "default_top_k": settings.default_top_k,
            "embedding_model": settings.embedding_model,
            "fake_embeddings": settings.fake_embeddings,
            "fake_llm": settings.fake_llm,
        },
    )
    yield

    close_pool()
    logger.info("StudyRAG API shutting down")


def _get_allowed_origins() -> list[str]:
    """CORS origins from settings, with a local default when env is incomplete."""
    try:
        return get_settings().get_allowed_origins_list()
    except ValueError:
        return ["http://localhost:3000"]


app = FastAPI(
    title="StudyRAG API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "ingest", "description": "PDF ingestion"},
        {"name": "query", "description": "Grounded question answering"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-Id"],
)
# R: Added last so it runs first (outermost)
app.add_middleware(RequestContextMiddleware)

app.include_router(router, prefix="/api")

register_exception_handlers(app)


def _liveness() -> dict:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/")
def root():
    """R: Liveness probe (process is up)."""
    return _liveness()


@app.get("/health")
def health():
    """R: Liveness probe (alias of /)."""
    return _liveness()


@app.get("/healthz")
def healthz(request: Request, response: Response):
    """
    R: Readiness probe: verifies the chunk store.

    Returns:
        ok: True if the store answered
        db: "connected" or "disconnected"
        request_id: Correlation ID for this request
    """
    db_status = "disconnected"
    try:
        if get_chunk_store().ping():
            db_status = "connected"
    except Exception as e:
        logger.warning("Health check: store unavailable", extra={"error": str(e)})

    ok = db_status == "connected"
    if not ok:
        response.status_code = 503
    return {
        "ok": ok,
        "db": db_status,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.get("/metrics")
def metrics():
    """R: Expose Prometheus metrics."""
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)

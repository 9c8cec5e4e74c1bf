"""
Name: Problem Details Responses (RFC 7807)

Responsibilities:
  - Stable error codes for clients (ErrorCode)
  - AppHTTPException plus factories for upload validation failures
  - Render any error as application/problem+json

Collaborators:
  - middleware.py: request.state.request_id
  - exception_handlers.py: maps RAGError subclasses onto AppHTTPException
  - routes.py: raises the factory errors
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXTRACTION_ERROR = "EXTRACTION_ERROR"
    NO_CHUNKS = "NO_CHUNKS"
    UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    LLM_ERROR = "LLM_ERROR"
    EMBEDDING_ERROR = "EMBEDDING_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()


class ErrorDetail(BaseModel):
    """R: Problem Details body; `code` and `errors` are extension members."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


class AppHTTPException(HTTPException):
    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors


def validation_error(
    detail: str, errors: list[dict[str, Any]] | None = None
) -> AppHTTPException:
    return AppHTTPException(422, ErrorCode.VALIDATION_ERROR, detail, errors)


def payload_too_large(max_size: str) -> AppHTTPException:
    return AppHTTPException(
        413, ErrorCode.PAYLOAD_TOO_LARGE, f"File exceeds the maximum allowed size ({max_size})"
    )


def unsupported_media(detail: str) -> AppHTTPException:
    return AppHTTPException(415, ErrorCode.UNSUPPORTED_MEDIA, detail)


def problem_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """R: Build the problem+json response, appending the request id when known."""
    items = list(errors or [])
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        items.append({"request_id": request_id})

    body = ErrorDetail(
        type=f"about:blank/{code.value.lower()}",
        title=code.title,
        status=status_code,
        detail=detail,
        code=code,
        instance=str(request.url),
        errors=items or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True, mode="json"),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def app_exception_handler(request: Request, exc: AppHTTPException) -> JSONResponse:
    return problem_response(
        request,
        exc.status_code,
        exc.code,
        str(exc.detail),
        errors=exc.errors,
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """R: Last resort; internal details never reach the client."""
    return problem_response(
        request, 500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"
    )

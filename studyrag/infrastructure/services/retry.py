"""
Name: Provider Retry Policy

Responsibilities:
  - Decide whether a provider failure is worth retrying
  - Build the tenacity decorator used around completion calls

Collaborators:
  - tenacity
  - config.Settings: retry_max_attempts, retry_base_delay_seconds, retry_max_delay_seconds
  - google_completer: decorates generate_content

Constraints:
  - Retry only 429 / 5xx / timeout / connection style failures
  - retry_max_attempts defaults to 1 (no retry unless configured)
"""

from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...config import get_settings
from ...logger import logger

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
FATAL_STATUS = frozenset({400, 401, 403, 404})

# R: Lower-cased fragments of exception class names / messages that mean "try again"
_RETRYABLE_TYPE_HINTS = ("timeout", "connection", "temporary", "unavailable", "resourceexhausted", "deadline")
_RETRYABLE_TEXT_HINTS = ("rate limit", "too many requests", "quota exceeded", "temporarily unavailable", "connection reset", "timed out", "deadline exceeded")


def get_http_status_code(exception: BaseException) -> Optional[int]:
    """R: Status code carried by a google-genai / httpx style exception, if any."""
    candidates = (
        getattr(exception, "code", None),
        getattr(getattr(exception, "response", None), "status_code", None),
        getattr(exception, "status_code", None),
    )
    for value in candidates:
        if isinstance(value, int) and value >= 100:
            return value
    return None


def is_transient_error(exception: BaseException) -> bool:
    status = get_http_status_code(exception)
    if status in FATAL_STATUS:
        return False
    if status in RETRYABLE_STATUS:
        return True

    type_name = type(exception).__name__.lower()
    if any(hint in type_name for hint in _RETRYABLE_TYPE_HINTS):
        return True
    text = str(exception).lower()
    return any(hint in text for hint in _RETRYABLE_TEXT_HINTS)


def _before_sleep(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "provider call failed, retrying",
        extra={
            "target": getattr(state.fn, "__name__", "unknown"),
            "attempt": state.attempt_number,
            "wait_seconds": round(state.next_action.sleep, 2) if state.next_action else 0,
            "error_type": type(error).__name__ if error else None,
            "error": str(error) if error else None,
        },
    )


def create_retry_decorator(
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
) -> Callable:
    """
    R: tenacity decorator: exponential backoff with jitter, transient errors only.

    Arguments left as None fall back to Settings. The last error is re-raised
    once attempts run out.
    """
    settings = get_settings()
    attempts = max_attempts or settings.retry_max_attempts
    initial = base_delay or settings.retry_base_delay_seconds
    ceiling = max_delay or settings.retry_max_delay_seconds

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=initial, max=ceiling, jitter=initial),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_before_sleep,
        reraise=True,
    )

"""
Name: Google Gemini Completer (Adapter)

Responsibilities:
  - Implement domain.services.Completer with Google GenAI (Gemini)
  - Pass system prompt, temperature and output-token budget to the model
  - Report token usage from the response metadata
  - Translate provider failures into CompletionError

Collaborators:
  - google.genai.Client: external SDK
  - retry.create_retry_decorator: transient-error policy (tenacity)

Constraints:
  - One request per call, no streaming
  - Usage fields missing from the response are reported as 0
"""

from __future__ import annotations

from google import genai

from ...domain.entities import Completion, TokenUsage
from ...exceptions import CompletionError
from ...logger import logger
from .retry import create_retry_decorator


class GoogleCompleter:
    """
    R: Gemini implementation of Completer.
    """

    DEFAULT_MODEL_ID = "gemini-2.0-flash"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: genai.Client | None = None,
        model_id: str | None = None,
        retry_decorator=None,
    ) -> None:
        """
        Args:
            api_key: Google API key (ignored when client is injected)
            client: Pre-built genai client (tests)
            model_id: Model override
            retry_decorator: tenacity decorator (tests inject a no-op)

        Raises:
            CompletionError: If neither api_key nor client is provided
        """
        resolved_key = (api_key or "").strip()
        if not resolved_key and client is None:
            logger.error("GoogleCompleter: GOOGLE_API_KEY not configured")
            raise CompletionError("GOOGLE_API_KEY not configured")

        self._client = client or genai.Client(api_key=resolved_key)
        self._model_id = (model_id or self.DEFAULT_MODEL_ID).strip()

        decorator = retry_decorator or create_retry_decorator()
        self._generate_content = decorator(self._client.models.generate_content)

        logger.info("GoogleCompleter initialized", extra={"model_id": self._model_id})

    @property
    def model_id(self) -> str:
        return self._model_id

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """
        R: Generate a completion for the given prompts.

        Raises:
            CompletionError: On any provider failure
        """
        try:
            response = self._generate_content(
                model=self._model_id,
                contents=user_prompt,
                config={
                    "system_instruction": system_prompt,
                    "temperature": temperature,
                    "max_output_tokens": max_tokens,
                },
            )
        except Exception as exc:
            logger.error(
                "GoogleCompleter: Generation failed",
                exc_info=True,
                extra={"model_id": self._model_id, "error_type": type(exc).__name__},
            )
            raise CompletionError(
                f"LLM generation failed: {exc}", original_error=exc
            ) from exc

        text = getattr(response, "text", None) or ""
        usage = _usage_from(getattr(response, "usage_metadata", None))

        logger.info(
            "GoogleCompleter: Response generated",
            extra={
                "model_id": self._model_id,
                "answer_chars": len(text),
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            },
        )
        return Completion(text=text, usage=usage)


def _usage_from(metadata) -> TokenUsage:
    if metadata is None:
        return TokenUsage()
    prompt_tokens = getattr(metadata, "prompt_token_count", None) or 0
    completion_tokens = getattr(metadata, "candidates_token_count", None) or 0
    total_tokens = getattr(metadata, "total_token_count", None) or (
        prompt_tokens + completion_tokens
    )
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )

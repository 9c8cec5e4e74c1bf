"""
Name: Fake Completer (Deterministic Test Double)

Responsibilities:
  - Return deterministic completions without network access
  - Echo the structured-output contract when the prompt asks for JSON

Collaborators:
  - domain.services.Completer (contract)

Constraints:
  - No IO; same prompts -> same output
  - Token counts are whitespace word counts

Notes:
  - Used with FAKE_LLM=1 for local runs and CI
"""

from __future__ import annotations

import hashlib
import json

from ...domain.entities import Completion, TokenUsage
from ...logger import logger


def _word_count(text: str) -> int:
    return len((text or "").split())


class FakeCompleter:
    """R: Deterministic Completer."""

    MODEL_ID = "fake-completer-v1"

    @property
    def model_id(self) -> str:
        return self.MODEL_ID

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        digest = hashlib.sha256(user_prompt.encode("utf-8")).hexdigest()[:8]

        # R: The JSON instructions name the expected "type" tag
        if '"type": "flashcards"' in user_prompt:
            text = json.dumps(
                {
                    "type": "flashcards",
                    "data": [{"question": f"Key concept {digest}", "answer": "See context."}],
                }
            )
        elif '"type": "quiz"' in user_prompt:
            text = json.dumps(
                {
                    "type": "quiz",
                    "data": [{"question": f"Question {digest}", "answer": "See context."}],
                }
            )
        else:
            text = f"[fake answer {digest}] Based on the provided context."

        prompt_tokens = _word_count(system_prompt) + _word_count(user_prompt)
        completion_tokens = _word_count(text)
        logger.debug("FakeCompleter: Response generated", extra={"digest": digest})
        return Completion(
            text=text,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )

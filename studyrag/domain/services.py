"""
Name: Domain Service Interfaces

Responsibilities:
  - Define the capability contracts the pipelines depend on
  - Embedder: text -> unit vector
  - Completer: system + user prompt -> text + token usage
  - TextExtractor: document bytes -> text, page count, info

Collaborators:
  - infrastructure.services: SentenceTransformerEmbedder, FakeEmbedder,
    GoogleCompleter, FakeCompleter
  - infrastructure.parsers: PdfTextExtractor

Constraints:
  - Protocols only (structural typing, no inheritance required)
  - No knowledge of concrete providers
"""

from typing import List, Protocol, Sequence

from .entities import Completion, ExtractedDocument


class Embedder(Protocol):
    """
    R: Maps text to an L2-normalized vector.

    Implementations must:
      - raise EmptyInputError for blank text
      - truncate over-long input silently
      - return the same vectors from embed_many as from embed, in order
    """

    @property
    def dimension(self) -> int:
        ...

    def embed(self, text: str) -> List[float]:
        ...

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class Completer(Protocol):
    """R: Single-shot language model completion."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """
        Raises:
            CompletionError: If the model call fails
        """
        ...


class TextExtractor(Protocol):
    """R: Extract plain text from uploaded document bytes."""

    def extract(self, content: bytes) -> ExtractedDocument:
        """
        Raises:
            ExtractionError: If the document is malformed or has no text
        """
        ...

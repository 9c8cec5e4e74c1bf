"""
Name: Answer Query Use Case

Responsibilities:
  - Orchestrate embed -> retrieve -> compose for one question
  - Validate the question and top_k before any expensive call
  - Time each stage and report has_context

Collaborators:
  - domain.services.Embedder
  - application.retriever.Retriever
  - application.answer_composer.AnswerComposer
  - timing.StageTimings, metrics.record_query_stage_metrics

Constraints:
  - top_k must lie in [1, max_top_k], with max_top_k itself capped at 20;
    None means default_top_k
  - Empty retrieval is a successful answer (fallback text, no LLM call)
"""

from dataclasses import dataclass
from typing import Optional

from ...domain.entities import QueryResult
from ...domain.services import Embedder
from ...exceptions import ValidationError
from ...logger import logger
from ...metrics import record_query_stage_metrics
from ...timing import StageTimings
from ..answer_composer import AnswerComposer
from ..retriever import Retriever

DEFAULT_TOP_K = 5
MAX_TOP_K = 20


@dataclass
class AnswerQueryInput:
    """
    R: Input data for AnswerQuery use case.

    Attributes:
        question: User's natural language question
        top_k: Chunks to retrieve (None = configured default)
    """

    question: str
    top_k: Optional[int] = None


class AnswerQueryUseCase:
    """
    R: Use case for the full query flow (retrieval + generation).
    """

    def __init__(
        self,
        embedder: Embedder,
        retriever: Retriever,
        composer: AnswerComposer,
        *,
        default_top_k: int = DEFAULT_TOP_K,
        max_top_k: int = MAX_TOP_K,
    ):
        self.embedder = embedder
        self.retriever = retriever
        self.composer = composer
        if not 1 <= max_top_k <= MAX_TOP_K:
            raise ValueError(f"max_top_k must be within [1, {MAX_TOP_K}]")
        self.default_top_k = default_top_k
        self.max_top_k = max_top_k

    def _resolve_top_k(self, top_k: Optional[int]) -> int:
        if top_k is None:
            return self.default_top_k
        # R: bool is an int subclass; reject it explicitly
        if isinstance(top_k, bool) or not isinstance(top_k, int):
            raise ValidationError("topK must be an integer")
        if not 1 <= top_k <= self.max_top_k:
            raise ValidationError(f"topK must be between 1 and {self.max_top_k}")
        return top_k

    def execute(self, input_data: AnswerQueryInput) -> QueryResult:
        """
        R: Answer a question from the stored chunks.

        Returns:
            QueryResult with the Answer, has_context and stage timings

        Raises:
            ValidationError: Blank question or top_k out of range
            EmbeddingError, StorageError, CompletionError: Backend failures
        """
        question = (input_data.question or "").strip()
        if not question:
            raise ValidationError("Question is required")
        top_k = self._resolve_top_k(input_data.top_k)

        timings = StageTimings()

        # R: STEP 1 - Embed the question
        with timings.measure("embedding"):
            query_vector = self.embedder.embed(question)

        # R: STEP 2 - Rank stored chunks
        with timings.measure("search"):
            retrieved = self.retriever.retrieve(query_vector, top_k)

        # R: STEP 3 - Compose (skips the LLM when nothing was retrieved)
        with timings.measure("llm"):
            answer = self.composer.compose(question, retrieved)

        timing_data = timings.to_dict()
        logger.info(
            "query answered",
            extra={
                "top_k": top_k,
                "chunks_found": len(retrieved),
                "mode": answer.mode.value,
                **timing_data,
            },
        )
        record_query_stage_metrics(timing_data)

        return QueryResult(
            answer=answer,
            has_context=bool(answer.sources),
            timings=timing_data,
        )

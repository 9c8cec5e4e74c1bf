from .answer_query import AnswerQueryInput, AnswerQueryUseCase
from .ingest_document import IngestDocumentInput, IngestDocumentUseCase

__all__ = [
    "AnswerQueryInput",
    "AnswerQueryUseCase",
    "IngestDocumentInput",
    "IngestDocumentUseCase",
]

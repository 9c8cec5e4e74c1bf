"""
Name: Ingest Document Use Case

Responsibilities:
  - Orchestrate extraction -> chunking -> embedding -> storage for one file
  - Stop at the first failing step (no partial retry)
  - Time each step and report the timings

Collaborators:
  - domain.services.TextExtractor, Embedder
  - domain.repositories.ChunkStore
  - infrastructure.text.chunker: preprocess + SimpleTextChunker
  - timing.StageTimings, metrics.record_ingest_stage_metrics

Constraints:
  - Empty bytes are rejected before extraction
  - A failure during insert leaves the document and earlier chunks in place
"""

from dataclasses import dataclass
from typing import Optional

from ...domain.entities import ChunkDraft, IngestionResult
from ...domain.repositories import ChunkStore
from ...domain.services import Embedder, TextExtractor
from ...exceptions import ExtractionError, NoChunksError, ValidationError
from ...infrastructure.text.chunker import SimpleTextChunker, preprocess
from ...logger import logger
from ...metrics import record_ingest_stage_metrics
from ...timing import StageTimings


@dataclass
class IngestDocumentInput:
    """
    R: Input data for the ingestion use case.

    Attributes:
        file_bytes: Raw uploaded document
        file_name: Original file name
        title: Document title (defaults to file_name)
    """

    file_bytes: bytes
    file_name: str
    title: Optional[str] = None


class IngestDocumentUseCase:
    """
    R: Use case for turning an uploaded file into stored, embedded chunks.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: SimpleTextChunker,
        embedder: Embedder,
        store: ChunkStore,
    ):
        self.extractor = extractor
        self.chunker = chunker
        self.embedder = embedder
        self.store = store

    def execute(self, input_data: IngestDocumentInput) -> IngestionResult:
        """
        R: Run the ingestion pipeline.

        Returns:
            IngestionResult with ids, counts, document info and stage timings

        Raises:
            ValidationError: Empty file
            ExtractionError: No text recoverable
            NoChunksError: Text normalizes to nothing
            EmbeddingError, StorageError: Backend failures
        """
        if not input_data.file_bytes:
            raise ValidationError("Uploaded file is empty")

        timings = StageTimings()

        # R: STEP 1 - Extract text
        with timings.measure("extraction"):
            extracted = self.extractor.extract(input_data.file_bytes)
        if not extracted.text.strip():
            raise ExtractionError("No text could be extracted from the document")

        # R: STEP 2 - Clean and chunk
        with timings.measure("chunking"):
            chunks = self.chunker.chunk(preprocess(extracted.text))
        if not chunks:
            raise NoChunksError("No chunks could be created from the document")

        # R: STEP 3 - Embed chunk contents
        with timings.measure("embedding"):
            embeddings = self.embedder.embed_many([c.content for c in chunks])

        # R: STEP 4 - Persist document and chunks (index = content order)
        with timings.measure("storage"):
            document = self.store.create_document(input_data.title or input_data.file_name)
            self.store.insert_chunks(
                document.id,
                [
                    ChunkDraft(content=c.content, embedding=vector)
                    for c, vector in zip(chunks, embeddings)
                ],
            )

        timing_data = timings.to_dict()
        logger.info(
            "document ingested",
            extra={
                "document_id": str(document.id),
                "file_name": input_data.file_name,
                "page_count": extracted.page_count,
                "chunk_count": len(chunks),
                **timing_data,
            },
        )
        record_ingest_stage_metrics(timing_data)

        return IngestionResult(
            document_id=document.id,
            file_name=input_data.file_name,
            page_count=extracted.page_count,
            chunk_count=len(chunks),
            document_info=extracted.info,
            timings=timing_data,
        )

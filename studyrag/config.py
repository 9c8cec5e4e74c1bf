"""
Name: Settings

Responsibilities:
  - Load every tunable from the environment (or .env) via pydantic-settings
  - Reject inconsistent values before the app starts serving
  - Hold the defaults for chunking, retrieval, generation and storage

Collaborators:
  - main.py: pool sizing, CORS origins, startup log
  - container.py: reads settings to wire stores, embedders and completers
  - routes.py: reads settings for upload limits

Constraints:
  - No business logic, pure configuration
  - Chunk parameters are validated as a pair (overlap < size)

Notes:
  - Singleton via lru_cache
  - STORE_BACKEND=memory runs without PostgreSQL (dev/CI)
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# R: Hard ceiling for top_k; MAX_TOP_K may only lower it
TOP_K_LIMIT = 20


class Settings(BaseSettings):
    """
    Environment-driven settings (field name == upper-cased env var).

    Attributes:
        database_url: libpq URL, required when store_backend is "postgres"
        store_backend: "postgres" or "memory"
        google_api_key: Gemini key, required unless fake_llm
        llm_model: Gemini model id used for answers
        embedding_model: sentence-transformers model name
        embedding_dimension: Vector dimension stored per chunk (fixed per deployment)
        embedding_max_chars: Input truncation length for the embedder
        chunk_size: Characters per chunk (default: 500)
        chunk_overlap: Overlap between chunks (default: 50)
        default_top_k: Chunks retrieved when the caller gives none (default: 5)
        max_top_k: Upper bound for top_k (default and ceiling: 20)
        max_upload_bytes: Max uploaded file size (default: 10MB)
        embed_concurrency: Workers for embedding loops (1 = sequential)
        insert_concurrency: Workers for chunk inserts (1 = sequential)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str = ""
    store_backend: Literal["postgres", "memory"] = "postgres"

    # Generation
    google_api_key: str = ""
    llm_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 1024

    # Embeddings
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = 384
    embedding_max_chars: int = 2000

    # Testing/CI
    fake_llm: bool = False
    fake_embeddings: bool = False

    # Chunking
    chunk_size: int = 500
    chunk_overlap: int = 50

    # Retrieval
    default_top_k: int = 5
    max_top_k: int = 20

    # Ingestion
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Loop strategies
    embed_concurrency: int = 1
    insert_concurrency: int = 1

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # PostgreSQL pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000

    # Retry (1 attempt = no retry)
    retry_max_attempts: int = 1
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 30.0

    @field_validator("chunk_size", "embedding_dimension", "embedding_max_chars")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("chunk_overlap")
    @classmethod
    def chunk_overlap_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("chunk_overlap must be >= 0")
        return v

    @field_validator("max_top_k")
    @classmethod
    def max_top_k_within_limit(cls, v: int) -> int:
        if not 1 <= v <= TOP_K_LIMIT:
            raise ValueError(f"max_top_k must be within [1, {TOP_K_LIMIT}]")
        return v

    @field_validator("embed_concurrency", "insert_concurrency", "retry_max_attempts")
    @classmethod
    def must_be_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    def validate_chunk_params(self) -> None:
        """R: Cross-field check, chunk_overlap must stay below chunk_size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )

    def get_allowed_origins_list(self) -> list[str]:
        """R: ALLOWED_ORIGINS is comma separated; blanks are dropped."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_requirements(self):
        if not self.google_api_key and not self.fake_llm:
            raise ValueError("GOOGLE_API_KEY is required unless FAKE_LLM=1")
        if self.store_backend == "postgres" and not self.database_url:
            raise ValueError("DATABASE_URL is required unless STORE_BACKEND=memory")
        if not 1 <= self.default_top_k <= self.max_top_k:
            raise ValueError(
                f"default_top_k ({self.default_top_k}) must be within "
                f"[1, {self.max_top_k}]"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    R: Process-wide Settings, built on first use.

    Raises pydantic ValidationError for bad env values and ValueError for an
    overlap that is not smaller than the chunk size.
    """
    settings = Settings()
    settings.validate_chunk_params()
    return settings

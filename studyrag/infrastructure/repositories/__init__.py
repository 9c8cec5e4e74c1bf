from .in_memory_chunk_store import InMemoryChunkStore
from .postgres_chunk_store import PostgresChunkStore

__all__ = ["InMemoryChunkStore", "PostgresChunkStore"]

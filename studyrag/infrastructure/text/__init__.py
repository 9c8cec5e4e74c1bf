from .chunker import SimpleTextChunker, chunk_text, normalize, preprocess

__all__ = ["SimpleTextChunker", "chunk_text", "normalize", "preprocess"]

"""
StudyRAG: PDF ingestion and grounded question answering (RAG) service.
"""

__version__ = "0.1.0"

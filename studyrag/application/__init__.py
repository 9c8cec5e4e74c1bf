"""
Application layer: pipelines (use cases), retrieval and answer composition.
"""

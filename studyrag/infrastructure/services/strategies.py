"""
Name: Loop Execution Strategies

Responsibilities:
  - Run a per-item operation over an ordered sequence
  - Return results in input order regardless of execution order
  - Report the lowest failing index

Collaborators:
  - sentence_transformer_embedder / fake_embedding_service: embed_many loops
  - repositories: insert_chunks loops
  - container.py: picks a strategy from settings

Constraints:
  - SequentialStrategy stops at the first failure (later items never run)
  - BoundedParallelStrategy cancels items not yet started on failure;
    items already running may still complete

Notes:
  - concurrency=1 in settings selects SequentialStrategy
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Protocol, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ItemFailure(Exception):
    """R: An item operation failed; carries its position and the original error."""

    def __init__(self, index: int, error: Exception):
        super().__init__(f"item {index} failed: {error}")
        self.index = index
        self.error = error


class ExecutionStrategy(Protocol):
    def map(self, fn: Callable[[int, T], R], items: Sequence[T]) -> List[R]:
        """
        R: Apply fn(index, item) to every item.

        Raises:
            ItemFailure: For the lowest index whose call raised
        """
        ...


class SequentialStrategy:
    """R: One item at a time, in order."""

    def map(self, fn: Callable[[int, T], R], items: Sequence[T]) -> List[R]:
        results: List[R] = []
        for index, item in enumerate(items):
            try:
                results.append(fn(index, item))
            except Exception as exc:
                raise ItemFailure(index, exc) from exc
        return results

    def __repr__(self) -> str:
        return "SequentialStrategy()"


class BoundedParallelStrategy:
    """
    R: Up to max_workers items in flight; results still in input order.
    """

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers

    def map(self, fn: Callable[[int, T], R], items: Sequence[T]) -> List[R]:
        if not items:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(fn, index, item) for index, item in enumerate(items)
            ]

            results: List[R] = []
            for index, future in enumerate(futures):
                try:
                    results.append(future.result())
                except Exception as exc:
                    for pending in futures[index + 1:]:
                        pending.cancel()
                    raise ItemFailure(index, exc) from exc
            return results

    def __repr__(self) -> str:
        return f"BoundedParallelStrategy(max_workers={self.max_workers})"


def strategy_for(concurrency: int) -> ExecutionStrategy:
    """R: Sequential for concurrency <= 1, bounded-parallel otherwise."""
    if concurrency <= 1:
        return SequentialStrategy()
    return BoundedParallelStrategy(max_workers=concurrency)

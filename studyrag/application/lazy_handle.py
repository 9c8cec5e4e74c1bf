"""
Name: Lazy Handle (single-flight initialization)

Responsibilities:
  - Build an expensive resource on first use, exactly once per process
  - Make concurrent first callers wait on the same in-flight build
  - Remember failures so callers fail fast until reset()

Collaborators:
  - infrastructure.services.sentence_transformer_embedder: model handle

Constraints:
  - Thread-based (FastAPI runs sync endpoints in a threadpool)
  - The factory runs in the thread of the first caller, outside the lock

Notes:
  - States: UNINITIALIZED -> INITIALIZING(future) -> READY | FAILED
  - reset() returns the handle to UNINITIALIZED (e.g. to retry a failed load)
"""

import threading
from concurrent.futures import Future
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from ..logger import logger

T = TypeVar("T")


class HandleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class LazyHandle(Generic[T]):
    """
    R: Thread-safe lazily initialized value with single-flight semantics.

    Usage:
        model = LazyHandle(lambda: SentenceTransformer(name), name="embedder")
        model.get().encode(...)
    """

    def __init__(self, factory: Callable[[], T], *, name: str = "resource"):
        self._factory = factory
        self._name = name
        self._lock = threading.Lock()
        self._state = HandleState.UNINITIALIZED
        self._future: Optional[Future] = None

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is HandleState.READY

    def get(self) -> T:
        """
        R: Return the value, initializing it on first call.

        Raises:
            Exception: Whatever the factory raised (also on later calls,
                until reset())
        """
        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = Future()
                self._future = future
                self._state = HandleState.INITIALIZING

        if owner:
            self._initialize(future)

        # R: Contenders block here on the owner's future
        return future.result()

    def reset(self) -> None:
        """R: Drop a READY or FAILED value; no-op while initializing."""
        with self._lock:
            if self._state is HandleState.INITIALIZING:
                return
            self._future = None
            self._state = HandleState.UNINITIALIZED

    def _initialize(self, future: Future) -> None:
        logger.info("Initializing lazy resource", extra={"resource": self._name})
        try:
            value = self._factory()
        except BaseException as exc:
            with self._lock:
                self._state = HandleState.FAILED
            logger.error(
                "Lazy resource initialization failed",
                extra={"resource": self._name, "error": repr(exc)},
            )
            future.set_exception(exc)
            # R: KeyboardInterrupt / SystemExit still propagate from the owner
            if not isinstance(exc, Exception):
                raise
            return

        with self._lock:
            self._state = HandleState.READY
        future.set_result(value)
        logger.info("Lazy resource ready", extra={"resource": self._name})

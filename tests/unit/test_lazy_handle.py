"""
Name: Lazy Handle Tests

Responsibilities:
  - Verify single-flight initialization under concurrent first use
  - Verify failure memoization and reset()
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from studyrag.application.lazy_handle import HandleState, LazyHandle


@pytest.mark.unit
class TestLazyHandle:
    def test_factory_not_called_until_first_get(self):
        """R: Should not build anything at construction."""
        calls = []
        handle = LazyHandle(lambda: calls.append(1) or "model", name="test")

        assert calls == []
        assert handle.state is HandleState.UNINITIALIZED
        assert handle.is_ready is False

    def test_get_returns_same_value(self):
        handle = LazyHandle(lambda: object(), name="test")

        first = handle.get()
        second = handle.get()

        assert first is second
        assert handle.state is HandleState.READY

    def test_concurrent_first_calls_initialize_once(self):
        """R: Should run the factory once while several threads contend."""
        # Arrange
        calls = []
        barrier = threading.Barrier(8)

        def factory():
            calls.append(1)
            time.sleep(0.05)
            return {"model": "loaded"}

        handle = LazyHandle(factory, name="test")

        def contender(_):
            barrier.wait()
            return handle.get()

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(contender, range(8)))

        # Assert
        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_failure_is_remembered(self):
        """R: Should re-raise the original error without rerunning the factory."""
        calls = []

        def factory():
            calls.append(1)
            raise RuntimeError("model missing")

        handle = LazyHandle(factory, name="test")

        with pytest.raises(RuntimeError, match="model missing"):
            handle.get()
        with pytest.raises(RuntimeError, match="model missing"):
            handle.get()

        assert len(calls) == 1
        assert handle.state is HandleState.FAILED

    def test_reset_allows_retry_after_failure(self):
        attempts = {"count": 0}

        def factory():
            attempts["count"] += 1
            if attempts["count"] == 1:
                raise RuntimeError("transient")
            return "ready"

        handle = LazyHandle(factory, name="test")
        with pytest.raises(RuntimeError):
            handle.get()

        handle.reset()

        assert handle.state is HandleState.UNINITIALIZED
        assert handle.get() == "ready"
        assert attempts["count"] == 2

    def test_base_exception_marks_failed_and_unblocks_waiters(self):
        """R: Should resolve waiters when the factory is interrupted."""

        # Arrange
        class _Interrupted(BaseException):
            pass

        def factory():
            raise _Interrupted()

        handle = LazyHandle(factory, name="test")
        outcome = {}

        def second_caller():
            try:
                handle.get()
            except _Interrupted:
                outcome["raised"] = True

        # Act
        with pytest.raises(_Interrupted):
            handle.get()
        waiter = threading.Thread(target=second_caller)
        waiter.start()
        waiter.join(1.0)

        # Assert
        assert not waiter.is_alive()
        assert outcome == {"raised": True}
        assert handle.state is HandleState.FAILED

        handle.reset()
        assert handle.state is HandleState.UNINITIALIZED

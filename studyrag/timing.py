"""
Name: Stage Timings

Responsibilities:
  - Measure the wall-clock duration of named pipeline stages
  - Report them as "{stage}_ms" plus a running "total_ms"

Collaborators:
  - application/use_cases: wrap each pipeline step in measure()
  - metrics.py: turns the reported dict into stage histograms

Notes:
  - A stage is recorded even when its block raises
  - Milliseconds are rounded to 2 decimals
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator


def _ms_since(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


@dataclass
class StageTimings:
    """
    R: Per-request stage clock.

    Usage:
        timings = StageTimings()
        with timings.measure("embedding"):
            vector = embedder.embed(question)
        timings.to_dict()  # {"embedding_ms": 45.2, "total_ms": 45.9}
    """

    _stages: Dict[str, float] = field(default_factory=dict)
    _started: float = field(default_factory=time.perf_counter)

    @contextmanager
    def measure(self, stage_name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self._stages[stage_name] = _ms_since(start)

    @property
    def total_ms(self) -> float:
        return _ms_since(self._started)

    def to_dict(self) -> Dict[str, float]:
        result = {f"{name}_ms": ms for name, ms in self._stages.items()}
        result["total_ms"] = self.total_ms
        return result

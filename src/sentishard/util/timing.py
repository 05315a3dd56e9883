from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter


class PhaseClock:
    """Wall-clock seconds for the named phases of one run."""

    def __init__(self):
        self.seconds: dict[str, float] = {}

    @contextmanager
    def measure(self, phase: str):
        start = perf_counter()
        try:
            yield
        finally:
            self.seconds[phase] = perf_counter() - start

    def __getitem__(self, phase: str) -> float:
        return self.seconds.get(phase, 0.0)

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter


@dataclass(slots=True)
class Latency:
    """Elapsed milliseconds, overall and per named phase."""

    ms: float = 0.0
    phases: dict[str, float] = field(default_factory=dict)

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self.phases[name] = self.phases.get(name, 0.0) + (perf_counter() - start) * 1000


@contextmanager
def measure_latency() -> Iterator[Latency]:
    """Measure elapsed time in milliseconds; nest ``phase`` blocks for a breakdown."""
    start = perf_counter()
    latency = Latency()
    try:
        yield latency
    finally:
        latency.ms = (perf_counter() - start) * 1000

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from kmeans_api.src.adapters.base_clusterer import BaseClusterer
from kmeans_api.src.adapters.lloyd_clusterer import LloydClusterer
from kmeans_api.src.adapters.render_sink import NullSink, RenderSink
from kmeans_api.src.models.data_models import Centroid, Partition, Point, arena_order
from kmeans_api.src.models.errors import ConfigurationError
from kmeans_api.src.services.metrics_service import MetricsRecord, MetricsService
from kmeans_api.src.utils.geometry import inertia
from kmeans_api.src.utils.latency import measure_latency


class LoopState(str, Enum):
    INITIAL = "initial"
    ITERATING = "iterating"
    CONVERGED = "converged"
    CYCLE_DETECTED = "cycle_detected"
    ITERATION_LIMIT = "iteration_limit"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {LoopState.CONVERGED, LoopState.CYCLE_DETECTED, LoopState.ITERATION_LIMIT}
)


@dataclass(frozen=True, slots=True)
class IterationRecord:
    """Bookkeeping for one assign/render/update cycle."""

    iteration: int
    changed: bool
    inertia: int
    max_shift: float
    cluster_sizes: dict[int, int]
    latency_ms: float
    phase_ms: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConvergenceResult:
    """Terminal outcome of a run.

    Attributes:
        state: Terminal ``LoopState``.
        iterations: Number of assign/update cycles performed.
        partition: Last partition, with centroid snapshots at their final positions.
        centroids: Final centroid snapshots in arena order.
        history: One record per iteration.
        metrics: Quality metrics of the final partition, when a metrics service is attached.
    """

    state: LoopState
    iterations: int
    partition: Partition
    centroids: tuple[Centroid, ...]
    history: tuple[IterationRecord, ...]
    metrics: MetricsRecord | None = None

    @property
    def converged(self) -> bool:
        return self.state is LoopState.CONVERGED


class ConvergenceLoop:
    """Lloyd's algorithm: alternate assign and update until centroids stop moving.

    Every partition is handed to the sink after assignment and before the
    centroids move. Once the loop stops, the final partition is rendered once
    more. ``max_iterations`` and ``cycle_window`` guard against runs that would
    otherwise never settle.

    Example:
        loop = ConvergenceLoop(centroids, points, sink=RecordingSink())
        result = loop.run()
        assert result.converged
    """

    def __init__(
        self,
        centroids: Sequence[Centroid],
        points: Sequence[Point],
        *,
        clusterer: BaseClusterer | None = None,
        sink: RenderSink | None = None,
        max_iterations: int | None = None,
        cycle_window: int = 8,
        metrics: MetricsService | None = None,
        run_id: str | None = None,
        metrics_source: str | None = None,
    ) -> None:
        self._validate_params(centroids, max_iterations, cycle_window)
        self._centroids = arena_order(centroids)
        self._points = tuple(points)
        self._clusterer = clusterer or LloydClusterer()
        self._sink = sink or NullSink()
        self._max_iterations = max_iterations
        self._metrics = metrics
        self._run_id = run_id
        self._metrics_source = metrics_source
        self._recent: deque[tuple] = deque(maxlen=cycle_window)
        self._history: list[IterationRecord] = []
        self._partition: Partition | None = None
        self._state = LoopState.INITIAL
        self._log = logger.bind(run_id=run_id, k=len(self._centroids), n_points=len(self._points))

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def iterations(self) -> int:
        return len(self._history)

    @property
    def partition(self) -> Partition | None:
        return self._partition

    @property
    def centroids(self) -> tuple[Centroid, ...]:
        return tuple(centroid.snapshot() for centroid in self._centroids)

    def step(self) -> IterationRecord:
        """Run one assign, render, update cycle."""
        if self._state.is_terminal:
            msg = f"Loop already finished in state {self._state.value}"
            raise RuntimeError(msg)
        self._state = LoopState.ITERATING
        iteration = len(self._history) + 1

        with measure_latency() as timer:
            with timer.phase("assign"):
                partition = self._clusterer.assign(self._centroids, self._points)
            with timer.phase("render"):
                self._sink.render(partition)
            with timer.phase("update"):
                result = self._clusterer.update(partition, self._centroids)

        self._partition = partition
        record = IterationRecord(
            iteration=iteration,
            changed=result.changed,
            inertia=inertia(partition),
            max_shift=result.max_shift,
            cluster_sizes=partition.sizes(),
            latency_ms=timer.ms,
            phase_ms=dict(timer.phases),
        )
        self._history.append(record)
        self._log.bind(
            event="iteration",
            iteration=iteration,
            changed=record.changed,
            inertia=record.inertia,
            max_shift=record.max_shift,
            latency_ms=record.latency_ms,
        ).debug("Iteration finished")

        self._advance(partition, result.changed)
        return record

    def run(self) -> ConvergenceResult:
        """Iterate until a terminal state, then render the final partition."""
        while not self._state.is_terminal:
            self.step()
        final = self._partition.with_centroids(self._centroids)
        self._sink.render(final)

        metrics = None
        if self._metrics is not None:
            metrics = self._metrics.evaluate(
                final,
                source=self._metrics_source,
                run_id=self._run_id,
                iteration=self.iterations,
            )
        return ConvergenceResult(
            state=self._state,
            iterations=self.iterations,
            partition=final,
            centroids=final.centroids,
            history=tuple(self._history),
            metrics=metrics,
        )

    def _advance(self, partition: Partition, changed: bool) -> None:
        signature = partition.signature()
        if not changed:
            self._state = LoopState.CONVERGED
            self._log.bind(event="converged", iterations=self.iterations).info(
                "Centroids stable after {iterations} iterations", iterations=self.iterations,
            )
        elif signature in self._recent:
            self._state = LoopState.CYCLE_DETECTED
            self._log.bind(event="cycle_detected", iterations=self.iterations).warning(
                "Partition repeated while centroids still move; stopping",
            )
        elif self._max_iterations is not None and self.iterations >= self._max_iterations:
            self._state = LoopState.ITERATION_LIMIT
            self._log.bind(event="iteration_limit", iterations=self.iterations).warning(
                "Iteration limit {limit} reached before convergence", limit=self._max_iterations,
            )
        self._recent.append(signature)

    def _validate_params(
        self,
        centroids: Sequence[Centroid],
        max_iterations: int | None,
        cycle_window: int,
    ) -> None:
        if len(centroids) < 1:
            msg = f"k must be at least 1, got {len(centroids)}"
            raise ConfigurationError(msg, field="k")
        if max_iterations is not None and max_iterations < 1:
            msg = f"max_iterations must be at least 1 when provided, got {max_iterations}"
            raise ConfigurationError(msg, field="max_iterations")
        if cycle_window < 1:
            msg = f"cycle_window must be at least 1, got {cycle_window}"
            raise ConfigurationError(msg, field="cycle_window")

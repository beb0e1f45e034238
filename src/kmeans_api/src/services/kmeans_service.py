from __future__ import annotations

import uuid
from typing import Callable, Optional

from kmeans_api.src.adapters.base_clusterer import BaseClusterer
from kmeans_api.src.adapters.lloyd_clusterer import LloydClusterer
from kmeans_api.src.adapters.render_sink import RecordingSink
from kmeans_api.src.config import config
from kmeans_api.src.models.data_models import CentroidState, FrameState, RunRequest, RunSummary
from kmeans_api.src.services.convergence_service import ConvergenceLoop
from kmeans_api.src.services.generator_service import generate_initial_state
from kmeans_api.src.services.metrics_service import MetricsService, metrics_service
from kmeans_api.src.utils.latency import measure_latency
from kmeans_api.src.utils.logging_utils import run_logger


METRICS_SOURCE = "http"


class KMeansService:
    """Runs complete clustering sessions and remembers the latest outcome."""

    def __init__(
        self,
        clusterer_factory: Optional[Callable[[], BaseClusterer]] = None,
        metrics: Optional[MetricsService] = None,
        cycle_window: int = config.engine.cycle_window,
        default_max_iterations: Optional[int] = config.engine.max_iterations,
    ):
        self._factory = clusterer_factory or LloydClusterer
        self._metrics = metrics or metrics_service
        self._cycle_window = cycle_window
        self._default_max_iterations = default_max_iterations
        self._latest: Optional[RunSummary] = None

    def run(self, request: RunRequest) -> RunSummary:
        run_id = uuid.uuid4().hex[:12]
        log = run_logger(run_id, k=request.k, n_points=request.n_points, seed=request.seed)
        centroids, points = generate_initial_state(
            request.width,
            request.height,
            request.k,
            request.n_points,
            seed=request.seed,
        )
        sink = RecordingSink()
        loop = ConvergenceLoop(
            centroids,
            points,
            clusterer=self._factory(),
            sink=sink,
            max_iterations=request.max_iterations or self._default_max_iterations,
            cycle_window=self._cycle_window,
            metrics=self._metrics,
            run_id=run_id,
            metrics_source=METRICS_SOURCE,
        )
        with measure_latency() as timer:
            result = loop.run()

        sizes = result.partition.sizes()
        summary = RunSummary(
            run_id=run_id,
            state=result.state.value,
            iterations=result.iterations,
            n_points=len(points),
            centroids=[
                CentroidState.from_centroid(centroid, sizes[centroid.id])
                for centroid in result.centroids
            ],
            inertia=result.metrics.inertia,
            silhouette_score=result.metrics.silhouette_score,
            latency_ms=timer.ms,
            points=[point.position for point in points] if request.include_frames else [],
            frames=[
                FrameState.from_partition(index, partition)
                for index, partition in enumerate(sink.frames)
            ]
            if request.include_frames
            else [],
        )
        self._latest = summary
        log.bind(
            event="run_finished",
            state=summary.state,
            iterations=summary.iterations,
            latency_ms=summary.latency_ms,
        ).info("Clustering run finished")
        return summary

    def get_latest(self) -> Optional[RunSummary]:
        return self._latest

    def get_defaults(self) -> dict:
        return {
            "width": config.engine.width,
            "height": config.engine.height,
            "k": config.engine.k,
            "n_points": config.engine.n_points,
            "max_iterations": self._default_max_iterations,
            "cycle_window": self._cycle_window,
            "seed": config.engine.seed,
        }

    def reset(self) -> None:
        self._latest = None


kmeans_service = KMeansService()

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass

import numpy as np
from loguru import logger
from sklearn.metrics import silhouette_score

from kmeans_api.src.models.data_models import Partition
from kmeans_api.src.utils.geometry import coordinates, inertia

DEFAULT_SOURCE = "default"


@dataclass(frozen=True, slots=True)
class MetricsRecord:
    """Quality snapshot of one partition."""

    timestamp: float
    source: str
    run_id: str | None
    iteration: int | None
    n_samples: int
    number_of_clusters: int
    empty_clusters: int
    inertia: int
    silhouette_score: float | None


class MetricsService:
    """Compute and store clustering quality metrics, keeping a bounded history per source."""

    def __init__(self, history_size: int = 100) -> None:
        if history_size <= 0:
            msg = f"history_size must be greater than 0, got {history_size}"
            raise ValueError(msg)
        self._history_size = history_size
        self._history: dict[str, deque[MetricsRecord]] = {}

    def evaluate(
        self,
        partition: Partition,
        *,
        source: str | None = None,
        run_id: str | None = None,
        iteration: int | None = None,
    ) -> MetricsRecord:
        """Compute metrics for a partition and store the result."""
        points = partition.points()
        labels = np.asarray(partition.labels(), dtype=int)
        sizes = partition.sizes()
        number_of_clusters = sum(1 for size in sizes.values() if size > 0)

        record = MetricsRecord(
            timestamp=time.time(),
            source=source or DEFAULT_SOURCE,
            run_id=run_id,
            iteration=iteration,
            n_samples=len(points),
            number_of_clusters=number_of_clusters,
            empty_clusters=len(sizes) - number_of_clusters,
            inertia=inertia(partition),
            silhouette_score=self._safe_silhouette_score(
                coordinates(points), labels, number_of_clusters,
            ),
        )
        self._store(record)
        self._log(record)
        return record

    def get_latest(
        self, source: str | None = None,
    ) -> MetricsRecord | None | dict[str, MetricsRecord]:
        """Return the latest record for a source, or the latest of every source."""
        if source is None:
            return {
                name: records[-1] for name, records in self._history.items() if records
            }
        records = self._history.get(source)
        return records[-1] if records else None

    def get_history(self, source: str) -> tuple[MetricsRecord, ...]:
        records = self._history.get(source)
        return tuple(records) if records else ()

    def reset(self) -> None:
        self._history = {}

    def _store(self, record: MetricsRecord) -> None:
        records = self._history.setdefault(
            record.source,
            deque(maxlen=self._history_size),
        )
        records.append(record)

    def _safe_silhouette_score(
        self, data: np.ndarray, labels: np.ndarray, number_of_clusters: int,
    ) -> float | None:
        # silhouette needs 2 <= n_labels <= n_samples - 1
        if number_of_clusters < 2 or data.shape[0] <= number_of_clusters:
            return None
        if np.unique(data, axis=0).shape[0] < 2:
            return None
        return float(silhouette_score(data.astype(float), labels))

    def _log(self, record: MetricsRecord) -> None:
        log = logger.warning if record.n_samples == 0 else logger.info
        log(
            "metrics computed | source={source} run={run} iteration={iteration} n_samples={n} "
            "n_clusters={clusters} empty={empty} inertia={inertia} silhouette={silhouette}",
            source=record.source,
            run=record.run_id,
            iteration=record.iteration,
            n=record.n_samples,
            clusters=record.number_of_clusters,
            empty=record.empty_clusters,
            inertia=record.inertia,
            silhouette=record.silhouette_score,
        )


metrics_service = MetricsService()

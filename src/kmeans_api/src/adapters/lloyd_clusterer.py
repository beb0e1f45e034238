from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from kmeans_api.src.adapters.base_clusterer import BaseClusterer, UpdateResult
from kmeans_api.src.models.data_models import Centroid, Partition, Point, arena_order
from kmeans_api.src.models.errors import ConfigurationError
from kmeans_api.src.utils.geometry import coordinates, distance, squared_distance_matrix, truncated_mean


class LloydClusterer(BaseClusterer):
    """Nearest-centroid assignment and truncated-mean update on integer pixels."""

    def assign(self, centroids: Sequence[Centroid], points: Sequence[Point]) -> Partition:
        ordered = arena_order(centroids)
        if not ordered:
            msg = "at least one centroid is required to assign points"
            raise ConfigurationError(msg, field="k")
        snapshots = tuple(centroid.snapshot() for centroid in ordered)
        buckets: dict[int, list[Point]] = {centroid.id: [] for centroid in snapshots}
        if points:
            distances = squared_distance_matrix(coordinates(points), coordinates(snapshots))
            # argmin keeps the first minimum, i.e. the lowest centroid id on ties
            nearest = np.argmin(distances, axis=1)
            for point, index in zip(points, nearest.tolist()):
                buckets[snapshots[index].id].append(point)
        return Partition(
            centroids=snapshots,
            members={centroid_id: tuple(members) for centroid_id, members in buckets.items()},
        )

    def update(self, partition: Partition, centroids: Sequence[Centroid]) -> UpdateResult:
        positions: dict[int, tuple[int, int]] = {}
        shifts: dict[int, float] = {}
        changed = False
        for centroid in arena_order(centroids):
            try:
                members = partition[centroid.id]
            except KeyError:
                msg = f"Centroid {centroid.id} is missing from the partition"
                raise ValueError(msg) from None
            previous = centroid.snapshot()
            if members:
                centroid.move_to(
                    truncated_mean([point.x for point in members]),
                    truncated_mean([point.y for point in members]),
                )
            positions[centroid.id] = centroid.position
            shifts[centroid.id] = distance(previous, centroid)
            if centroid.position != previous.position:
                changed = True
        return UpdateResult(positions=positions, changed=changed, shifts=shifts)

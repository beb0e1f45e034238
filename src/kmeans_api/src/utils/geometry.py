from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from kmeans_api.src.models.data_models import Partition


class HasPosition(Protocol):
    x: int
    y: int


def distance(a: HasPosition, b: HasPosition) -> float:
    """Euclidean distance between two 2D positions."""
    displacement = np.array([a.x - b.x, a.y - b.y], dtype=float)
    return float(np.linalg.norm(displacement))


def coordinates(items: Iterable[HasPosition]) -> np.ndarray:
    """Stack ``x, y`` of the given items into an ``(n, 2)`` int64 array."""
    rows = [(item.x, item.y) for item in items]
    if not rows:
        return np.empty((0, 2), dtype=np.int64)
    return np.asarray(rows, dtype=np.int64)


def squared_distance_matrix(points_xy: np.ndarray, centroids_xy: np.ndarray) -> np.ndarray:
    """Exact squared distances, shape ``(n_points, n_centroids)``.

    Integer arithmetic keeps equal distances equal, so ties are decided by
    centroid order alone.
    """
    points_xy = np.asarray(points_xy, dtype=np.int64)
    centroids_xy = np.asarray(centroids_xy, dtype=np.int64)
    if points_xy.ndim != 2 or centroids_xy.ndim != 2:
        msg = "points and centroids must be 2D arrays of coordinates"
        raise ValueError(msg)
    diff = points_xy[:, None, :] - centroids_xy[None, :, :]
    return (diff**2).sum(axis=2)


def truncated_mean(values: Sequence[int]) -> int:
    """``floor(sum / count)`` over integers."""
    if not values:
        msg = "cannot take the mean of an empty sequence"
        raise ValueError(msg)
    return int(sum(values)) // len(values)


def inertia(partition: Partition) -> int:
    """Sum of squared distances from each point to the centroid it was assigned to."""
    total = 0
    for centroid in partition.centroids:
        members = partition.members[centroid.id]
        if not members:
            continue
        diff = coordinates(members) - np.array(centroid.position, dtype=np.int64)
        total += int((diff**2).sum())
    return total

from __future__ import annotations

from dataclasses import dataclass

from kmeans_api.src.models.data_models import Partition


@dataclass(frozen=True)
class CentroidSnapshot:
    """Centroid positions and colors as rendered in one frame."""

    frame: int
    centroids: dict[int, tuple[int, int]]
    colors: dict[int, str]


def snapshot_from_partition(frame: int, partition: Partition) -> CentroidSnapshot:
    return CentroidSnapshot(
        frame=frame,
        centroids={centroid.id: centroid.position for centroid in partition.centroids},
        colors={centroid.id: centroid.color.to_css() for centroid in partition.centroids},
    )


def append_history(
    history: list[CentroidSnapshot],
    snapshot: CentroidSnapshot,
    max_len: int,
) -> list[CentroidSnapshot]:
    """Append a snapshot and trim history to max_len (0 keeps everything)."""
    history.append(snapshot)
    if max_len > 0 and len(history) > max_len:
        history = history[-max_len:]
    return history

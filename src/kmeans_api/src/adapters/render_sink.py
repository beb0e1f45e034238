"""Boundary between the clustering loop and whatever draws its frames."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kmeans_api.src.models.data_models import Partition


@runtime_checkable
class RenderSink(Protocol):
    """Receives every assignment before the centroids move, plus the final one.

    Partitions are immutable snapshots; a sink may keep them without copying.
    """

    def render(self, partition: Partition) -> None: ...


class NullSink:
    def render(self, partition: Partition) -> None:
        return None


class RecordingSink:
    """Keeps every rendered partition in order."""

    def __init__(self) -> None:
        self.frames: list[Partition] = []

    def render(self, partition: Partition) -> None:
        self.frames.append(partition)

    @property
    def last(self) -> Partition | None:
        return self.frames[-1] if self.frames else None

    def clear(self) -> None:
        self.frames = []

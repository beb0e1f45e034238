from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

RGB_MAX = 255


class Color(BaseModel):
    """RGB triple used to paint a centroid and its cluster."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(..., ge=0, le=RGB_MAX)
    g: int = Field(..., ge=0, le=RGB_MAX)
    b: int = Field(..., ge=0, le=RGB_MAX)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_css(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"


BLACK = Color(r=0, g=0, b=0)


class Point(BaseModel):
    """Immutable pixel-space sample; ``id`` disambiguates equal coordinates."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    x: int
    y: int

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)


class Centroid(BaseModel):
    """Cluster representative; moved in place by the updater."""

    id: int = Field(..., ge=0)
    x: int
    y: int
    color: Color = BLACK

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def move_to(self, x: int, y: int) -> None:
        self.x = int(x)
        self.y = int(y)

    def snapshot(self) -> "Centroid":
        return self.model_copy()


def arena_order(centroids: Iterable[Centroid]) -> list[Centroid]:
    """Return centroids sorted by identity; nearest-centroid ties go to the first."""
    ordered = sorted(centroids, key=lambda centroid: centroid.id)
    ids = [centroid.id for centroid in ordered]
    if len(set(ids)) != len(ids):
        msg = f"Centroid ids must be unique, got {ids}"
        raise ValueError(msg)
    return ordered


@dataclass(frozen=True, slots=True)
class Partition:
    """Total, disjoint assignment of points to centroids for one iteration.

    Attributes:
        centroids: Snapshots of the centroids at assignment time, in arena order.
        members: Read-only mapping of centroid id to the points nearest to it.
            Every centroid id is present, possibly with an empty tuple. Member
            tuples preserve the input order of the points.
    """

    centroids: tuple[Centroid, ...]
    members: Mapping[int, tuple[Point, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen_members = {
            centroid.id: tuple(self.members.get(centroid.id, ()))
            for centroid in self.centroids
        }
        unknown = set(self.members) - set(frozen_members)
        if unknown:
            msg = f"Partition references unknown centroid ids: {sorted(unknown)}"
            raise ValueError(msg)
        object.__setattr__(self, "members", MappingProxyType(frozen_members))

    def __getitem__(self, centroid_id: int) -> tuple[Point, ...]:
        return self.members[centroid_id]

    def __len__(self) -> int:
        return len(self.centroids)

    @property
    def centroid_ids(self) -> list[int]:
        return [centroid.id for centroid in self.centroids]

    @property
    def is_empty(self) -> bool:
        return all(not members for members in self.members.values())

    def centroid(self, centroid_id: int) -> Centroid:
        for centroid in self.centroids:
            if centroid.id == centroid_id:
                return centroid
        raise KeyError(centroid_id)

    def sizes(self) -> dict[int, int]:
        return {centroid_id: len(members) for centroid_id, members in self.members.items()}

    def points(self) -> list[Point]:
        """All assigned points ordered by point id."""
        collected = [point for members in self.members.values() for point in members]
        return sorted(collected, key=lambda point: point.id)

    def labels(self) -> list[int]:
        """Centroid id for each point, aligned with ``points()``."""
        owner = {
            point.id: centroid_id
            for centroid_id, members in self.members.items()
            for point in members
        }
        return [owner[point_id] for point_id in sorted(owner)]

    def signature(self) -> tuple[tuple[int, tuple[int, ...]], ...]:
        """Hashable fingerprint of the membership, independent of positions."""
        return tuple(
            (centroid_id, tuple(point.id for point in members))
            for centroid_id, members in self.members.items()
        )

    def with_centroids(self, centroids: Iterable[Centroid]) -> "Partition":
        """Same membership, with fresh snapshots of the given centroids."""
        snapshots = tuple(centroid.snapshot() for centroid in arena_order(centroids))
        return Partition(centroids=snapshots, members=dict(self.members))


class RunRequest(BaseModel):
    """Parameters for a single clustering run."""

    width: int = Field(300, gt=0, le=2000)
    height: int = Field(300, gt=0, le=2000)
    k: int = Field(5, ge=1, le=20)
    n_points: int = Field(500, ge=0, le=2000)
    seed: Optional[int] = None
    max_iterations: Optional[int] = Field(None, ge=1, le=10000)
    include_frames: bool = False

    @field_validator("seed")
    def _non_negative_seed(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("seed must be non-negative")
        return value


class CentroidState(BaseModel):
    id: int
    x: int
    y: int
    color: Tuple[int, int, int]
    size: int = Field(0, ge=0)

    @classmethod
    def from_centroid(cls, centroid: Centroid, size: int = 0) -> "CentroidState":
        return cls(
            id=centroid.id,
            x=centroid.x,
            y=centroid.y,
            color=centroid.color.as_tuple(),
            size=size,
        )


class FrameState(BaseModel):
    """One rendered frame: centroid positions and point membership by id."""

    index: int = Field(..., ge=0)
    centroids: list[CentroidState]
    assignments: dict[int, list[int]]

    @classmethod
    def from_partition(cls, index: int, partition: Partition) -> "FrameState":
        sizes = partition.sizes()
        return cls(
            index=index,
            centroids=[
                CentroidState.from_centroid(centroid, sizes[centroid.id])
                for centroid in partition.centroids
            ],
            assignments={
                centroid_id: [point.id for point in members]
                for centroid_id, members in partition.members.items()
            },
        )


class RunSummary(BaseModel):
    """Outcome of a clustering run as exposed over HTTP."""

    run_id: str
    state: Literal["converged", "cycle_detected", "iteration_limit"]
    iterations: int = Field(..., ge=0)
    n_points: int = Field(..., ge=0)
    centroids: list[CentroidState]
    inertia: int = Field(..., ge=0)
    silhouette_score: Optional[float] = None
    latency_ms: float = Field(0.0, ge=0.0)
    points: list[Tuple[int, int]] = Field(default_factory=list)
    frames: list[FrameState] = Field(default_factory=list)

"""Shared abstraction for the two halves of Lloyd's iteration.

The convergence loop only talks to this interface, so alternative assignment
or update strategies can be swapped in without touching the loop.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kmeans_api.src.models.data_models import Centroid, Partition, Point


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of one update step.

    Attributes:
        positions: New ``(x, y)`` per centroid id.
        changed: True when at least one centroid moved.
        shifts: Euclidean distance moved per centroid id.
    """

    positions: dict[int, tuple[int, int]]
    changed: bool
    shifts: dict[int, float] = field(default_factory=dict)

    @property
    def max_shift(self) -> float:
        return max(self.shifts.values(), default=0.0)


class BaseClusterer(abc.ABC):
    """Common contract for centroid clusterers."""

    @abc.abstractmethod
    def assign(self, centroids: Sequence[Centroid], points: Sequence[Point]) -> Partition:
        """Partition the points by their nearest centroid."""

    @abc.abstractmethod
    def update(self, partition: Partition, centroids: Sequence[Centroid]) -> UpdateResult:
        """Move each centroid to the mean of its members."""

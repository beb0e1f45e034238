from __future__ import annotations

import numpy as np
from loguru import logger

from kmeans_api.src.models.data_models import RGB_MAX, Centroid, Color, Point
from kmeans_api.src.models.errors import ConfigurationError


def validate_parameters(width: int, height: int, k: int, n_points: int) -> None:
    if width <= 0 or height <= 0:
        msg = f"bounds must be positive, got {width}x{height}"
        raise ConfigurationError(msg, field="bounds")
    if k < 1:
        msg = f"k must be at least 1, got {k}"
        raise ConfigurationError(msg, field="k")
    if n_points < 0:
        msg = f"n_points must be non-negative, got {n_points}"
        raise ConfigurationError(msg, field="n_points")


def generate_initial_state(
    width: int,
    height: int,
    k: int,
    n_points: int,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> tuple[list[Centroid], list[Point]]:
    """Draw ``k`` colored centroids and ``n_points`` points uniformly in the bounds.

    Coordinates fall in ``[0, width) x [0, height)``; colors are uniform over
    the RGB cube. Centroids and points are numbered from 0 in draw order.
    """
    validate_parameters(width, height, k, n_points)
    generator = rng or np.random.default_rng(seed)

    centroid_xs = generator.integers(0, width, size=k)
    centroid_ys = generator.integers(0, height, size=k)
    colors = generator.integers(0, RGB_MAX + 1, size=(k, 3))
    centroids = [
        Centroid(
            id=idx,
            x=int(x),
            y=int(y),
            color=Color(r=int(rgb[0]), g=int(rgb[1]), b=int(rgb[2])),
        )
        for idx, (x, y, rgb) in enumerate(zip(centroid_xs, centroid_ys, colors))
    ]

    point_xs = generator.integers(0, width, size=n_points)
    point_ys = generator.integers(0, height, size=n_points)
    points = [
        Point(id=idx, x=int(x), y=int(y))
        for idx, (x, y) in enumerate(zip(point_xs, point_ys))
    ]

    logger.bind(
        event="initial_state",
        width=width,
        height=height,
        k=k,
        n_points=n_points,
        seed=seed,
    ).debug("Initial state generated")
    return centroids, points

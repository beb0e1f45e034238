import numpy as np
import pytest

from kmeans_api.src.adapters.lloyd_clusterer import LloydClusterer
from kmeans_api.src.adapters.render_sink import RecordingSink
from kmeans_api.src.models.data_models import Centroid, Point
from kmeans_api.src.services.convergence_service import ConvergenceLoop, LoopState
from kmeans_api.src.services.generator_service import generate_initial_state
from kmeans_api.src.utils.geometry import distance, truncated_mean


def _blobs(rng: np.random.Generator, centers: list[tuple[int, int]], per_blob: int) -> list[Point]:
    coords = []
    for cx, cy in centers:
        offsets = rng.integers(-10, 11, size=(per_blob, 2))
        coords.extend((cx + int(dx), cy + int(dy)) for dx, dy in offsets)
    return [Point(id=idx, x=x, y=y) for idx, (x, y) in enumerate(coords)]


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_random_runs_keep_partition_invariants(seed):
    # Arrange
    centroids, points = generate_initial_state(300, 300, 5, 400, seed=seed)
    sink = RecordingSink()

    # Act
    result = ConvergenceLoop(centroids, points, sink=sink, max_iterations=500).run()

    # Assert
    assert result.state is LoopState.CONVERGED
    for frame in sink.frames:
        assigned = [point.id for members in frame.members.values() for point in members]
        assert sorted(assigned) == list(range(len(points)))
    for centroid in result.centroids:
        members = result.partition[centroid.id]
        if members:
            assert centroid.x == truncated_mean([p.x for p in members])
            assert centroid.y == truncated_mean([p.y for p in members])


def test_empty_clusters_never_move_during_a_run():
    centroids = [Centroid(id=0, x=50, y=50), Centroid(id=1, x=299, y=0)]
    points = [Point(id=idx, x=40 + idx, y=60) for idx in range(5)]
    sink = RecordingSink()

    result = ConvergenceLoop(centroids, points, sink=sink).run()

    assert result.converged
    assert result.centroids[1].position == (299, 0)
    assert all(frame[1] == () for frame in sink.frames)


def test_well_separated_blobs_are_recovered():
    # Arrange
    rng = np.random.default_rng(7)
    centers = [(50, 50), (250, 60), (150, 250)]
    points = _blobs(rng, centers, per_blob=40)
    centroids = [
        Centroid(id=0, x=60, y=40),
        Centroid(id=1, x=240, y=70),
        Centroid(id=2, x=140, y=240),
    ]

    # Act
    result = ConvergenceLoop(centroids, points).run()

    # Assert
    assert result.converged
    assert result.partition.sizes() == {0: 40, 1: 40, 2: 40}
    for centroid, (cx, cy) in zip(result.centroids, centers):
        assert distance(centroid, Point(id=0, x=cx, y=cy)) <= 5.0


def test_converged_run_is_a_fixed_point_for_a_fresh_clusterer():
    centroids, points = generate_initial_state(300, 300, 8, 500, seed=99)
    result = ConvergenceLoop(centroids, points).run()
    assert result.converged

    clusterer = LloydClusterer()
    replay = [c.snapshot() for c in result.centroids]
    update = clusterer.update(clusterer.assign(replay, points), replay)

    assert update.changed is False

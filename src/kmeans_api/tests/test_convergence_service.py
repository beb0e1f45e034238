import pytest

from kmeans_api.src.adapters.base_clusterer import BaseClusterer, UpdateResult
from kmeans_api.src.adapters.lloyd_clusterer import LloydClusterer
from kmeans_api.src.adapters.render_sink import RecordingSink
from kmeans_api.src.models.data_models import Centroid, Partition, Point
from kmeans_api.src.models.errors import ConfigurationError
from kmeans_api.src.services.convergence_service import ConvergenceLoop, LoopState
from kmeans_api.src.services.metrics_service import MetricsService


def _points(*coords):
    return [Point(id=idx, x=x, y=y) for idx, (x, y) in enumerate(coords)]


class LivePositionSink:
    """Reads the positions of the live centroid objects while a frame is rendered."""

    def __init__(self, centroids):
        self.centroids = centroids
        self.positions = []

    def render(self, partition):
        self.positions.append([centroid.position for centroid in self.centroids])


class AlternatingClusterer(BaseClusterer):
    """Flips every point between two centroids and always claims movement."""

    def __init__(self):
        self.calls = 0

    def assign(self, centroids, points):
        owner = centroids[self.calls % 2].id
        self.calls += 1
        return Partition(
            centroids=tuple(c.snapshot() for c in centroids),
            members={owner: tuple(points)},
        )

    def update(self, partition, centroids):
        return UpdateResult(
            positions={c.id: c.position for c in centroids},
            changed=True,
            shifts={c.id: 1.0 for c in centroids},
        )


def test_single_cluster_converges_and_renders_each_frame():
    # Arrange
    centroids = [Centroid(id=0, x=100, y=100)]
    sink = RecordingSink()
    loop = ConvergenceLoop(centroids, _points((0, 0), (10, 0), (5, 10)), sink=sink)

    # Act
    result = loop.run()

    # Assert
    assert result.state is LoopState.CONVERGED
    assert result.converged
    assert result.iterations == 2
    assert [record.changed for record in result.history] == [True, False]
    assert result.centroids[0].position == (5, 3)
    assert len(sink.frames) == 3
    assert sink.frames[0].centroid(0).position == (100, 100)
    assert sink.last.centroid(0).position == (5, 3)



def test_frame_is_rendered_before_centroids_move():
    # Arrange
    centroids = [Centroid(id=0, x=100, y=100)]
    sink = LivePositionSink(centroids)
    loop = ConvergenceLoop(centroids, _points((0, 0), (10, 0), (5, 10)), sink=sink)

    # Act
    loop.run()

    # Assert
    assert sink.positions == [[(100, 100)], [(5, 3)], [(5, 3)]]

def test_two_clusters_settle_on_their_points():
    centroids = [Centroid(id=0, x=0, y=0), Centroid(id=1, x=100, y=0)]
    loop = ConvergenceLoop(centroids, _points((10, 0), (90, 0)))

    result = loop.run()

    assert result.converged
    assert [c.position for c in result.centroids] == [(10, 0), (90, 0)]
    assert result.history[0].cluster_sizes == {0: 1, 1: 1}
    assert result.history[-1].changed is False


def test_empty_point_set_converges_immediately():
    centroids = [Centroid(id=0, x=4, y=4), Centroid(id=1, x=9, y=9)]
    sink = RecordingSink()

    result = ConvergenceLoop(centroids, [], sink=sink).run()

    assert result.state is LoopState.CONVERGED
    assert result.iterations == 1
    assert [c.position for c in result.centroids] == [(4, 4), (9, 9)]
    assert result.partition.is_empty
    assert len(sink.frames) == 2


def test_zero_centroids_fail_before_loop_starts():
    with pytest.raises(ConfigurationError) as exc_info:
        ConvergenceLoop([], _points((0, 0)))
    assert exc_info.value.field == "k"


@pytest.mark.parametrize(
    "kwargs",
    [{"max_iterations": 0}, {"cycle_window": 0}],
)
def test_invalid_safety_bounds_raise(kwargs):
    with pytest.raises(ConfigurationError):
        ConvergenceLoop([Centroid(id=0, x=0, y=0)], [], **kwargs)


def test_state_transitions_and_step_after_finish():
    loop = ConvergenceLoop([Centroid(id=0, x=100, y=100)], _points((0, 0), (10, 0)))
    assert loop.state is LoopState.INITIAL

    loop.step()
    assert loop.state is LoopState.ITERATING

    loop.step()
    assert loop.state is LoopState.CONVERGED
    with pytest.raises(RuntimeError):
        loop.step()


def test_iteration_limit_stops_unsettled_run():
    loop = ConvergenceLoop(
        [Centroid(id=0, x=100, y=100)],
        _points((0, 0), (10, 0), (5, 10)),
        max_iterations=1,
    )

    result = loop.run()

    assert result.state is LoopState.ITERATION_LIMIT
    assert result.iterations == 1
    assert result.centroids[0].position == (5, 3)


def test_repeated_partition_with_movement_is_reported_as_cycle():
    centroids = [Centroid(id=0, x=0, y=0), Centroid(id=1, x=9, y=9)]
    loop = ConvergenceLoop(
        centroids,
        _points((1, 1), (2, 2)),
        clusterer=AlternatingClusterer(),
        max_iterations=50,
    )

    result = loop.run()

    assert result.state is LoopState.CYCLE_DETECTED
    assert result.iterations == 3


def test_converged_state_is_a_fixed_point():
    centroids = [Centroid(id=0, x=0, y=0), Centroid(id=1, x=299, y=299), Centroid(id=2, x=150, y=0)]
    points = _points((5, 5), (20, 30), (280, 290), (260, 250), (140, 10), (160, 40), (100, 100))
    result = ConvergenceLoop(centroids, points).run()
    assert result.converged

    clusterer = LloydClusterer()
    again = clusterer.update(clusterer.assign(centroids, points), centroids)

    assert again.changed is False
    assert clusterer.assign(centroids, points).signature() == result.partition.signature()


def test_every_frame_is_a_total_partition():
    from kmeans_api.src.services.generator_service import generate_initial_state

    centroids, points = generate_initial_state(300, 300, 5, 300, seed=21)
    sink = RecordingSink()

    result = ConvergenceLoop(centroids, points, sink=sink, max_iterations=500).run()

    assert result.state is not LoopState.ITERATING
    expected = [point.id for point in points]
    for frame in sink.frames:
        assigned = sorted(point.id for members in frame.members.values() for point in members)
        assert assigned == expected
        assert set(frame.centroid_ids) == {c.id for c in centroids}


def test_metrics_are_attached_to_result():
    metrics = MetricsService()
    centroids = [Centroid(id=0, x=0, y=0), Centroid(id=1, x=100, y=0)]

    result = ConvergenceLoop(
        centroids, _points((8, 0), (12, 0), (88, 0), (92, 0)), metrics=metrics, run_id="r1",
        metrics_source="loop",
    ).run()

    assert result.metrics is not None
    assert result.metrics.run_id == "r1"
    assert result.metrics.inertia == 4 * 4
    assert result.metrics.iteration == result.iterations
    assert metrics.get_latest("loop") == result.metrics


def test_history_records_phase_latency():
    result = ConvergenceLoop([Centroid(id=0, x=1, y=1)], _points((3, 3))).run()

    record = result.history[0]
    assert set(record.phase_ms) == {"assign", "render", "update"}
    assert record.latency_ms >= 0.0
    assert record.max_shift == pytest.approx(2 ** 1.5)

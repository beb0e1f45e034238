import pytest

from kmeans_api.src.models.errors import ConfigurationError
from kmeans_api.src.services.generator_service import generate_initial_state


def test_generated_state_respects_bounds_and_ids():
    centroids, points = generate_initial_state(300, 200, 4, 250, seed=5)

    assert [c.id for c in centroids] == [0, 1, 2, 3]
    assert [p.id for p in points] == list(range(250))
    assert all(0 <= p.x < 300 and 0 <= p.y < 200 for p in points + centroids)
    assert all(0 <= channel <= 255 for c in centroids for channel in c.color.as_tuple())


def test_same_seed_reproduces_state():
    first = generate_initial_state(300, 300, 3, 50, seed=42)
    second = generate_initial_state(300, 300, 3, 50, seed=42)

    assert first == second


def test_zero_points_is_allowed():
    centroids, points = generate_initial_state(10, 10, 1, 0, seed=0)

    assert len(centroids) == 1
    assert points == []


@pytest.mark.parametrize(
    ("width", "height", "k", "n_points", "field"),
    [
        (300, 300, 0, 10, "k"),
        (300, 300, 2, -1, "n_points"),
        (0, 300, 2, 10, "bounds"),
        (300, -5, 2, 10, "bounds"),
    ],
)
def test_invalid_parameters_fail_fast(width, height, k, n_points, field):
    with pytest.raises(ConfigurationError) as exc_info:
        generate_initial_state(width, height, k, n_points)
    assert exc_info.value.field == field

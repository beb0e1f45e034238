from kmeans_api.src.utils.latency import measure_latency


def test_phases_accumulate_inside_total():
    with measure_latency() as timer:
        with timer.phase("assign"):
            pass
        with timer.phase("assign"):
            pass
        with timer.phase("update"):
            pass

    assert set(timer.phases) == {"assign", "update"}
    assert timer.ms >= sum(timer.phases.values()) >= 0.0

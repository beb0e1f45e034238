from kmeans_api.src.config import config, load_config


def test_bundled_config_defaults():
    assert config.engine.width == 300
    assert config.engine.height == 300
    assert config.render.point_size == 4
    assert config.render.centroid_size == 6
    assert config.engine.k >= 1


def test_environment_overrides_are_coerced(tmp_path, monkeypatch):
    # Arrange
    path = tmp_path / "config.yaml"
    path.write_text(
        "version: 2\n"
        "app:\n"
        "  server_port: !ENV ${TEST_KMEANS_PORT:8000}\n"
        "  log_level: debug\n"
        "engine:\n"
        "  k: !ENV ${TEST_KMEANS_K:5}\n"
        "  max_iterations: null\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TEST_KMEANS_PORT", "9100")
    monkeypatch.setenv("TEST_KMEANS_K", "7")

    # Act
    loaded = load_config(str(path))

    # Assert
    assert loaded.version == 2
    assert loaded.app.server_port == 9100
    assert loaded.app.log_level == "DEBUG"
    assert loaded.engine.k == 7
    assert loaded.engine.max_iterations is None
    assert loaded.render.frame_delay_ms == 100

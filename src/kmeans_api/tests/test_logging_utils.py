from typing import List, Tuple

import pytest
from loguru import logger as loguru_logger

from kmeans_api.src.utils import logging_utils


@pytest.fixture(autouse=True)
def restore_logger_state():
    """Ensure Loguru sinks do not leak between tests."""
    loguru_logger.remove()
    yield
    loguru_logger.remove()


def _capture():
    records = []

    def sink(message):
        records.append(
            (
                message.record["level"].name,
                message.record["message"],
                dict(message.record["extra"]),
            )
        )

    logging_utils.logger.add(sink, level="DEBUG")
    return records


def test_configure_logger_sets_up_colored_sink(monkeypatch):
    add_calls: List[Tuple[tuple, dict]] = []
    removed = {"value": False}

    def fake_remove():
        removed["value"] = True

    def fake_add(*args, **kwargs):
        add_calls.append((args, kwargs))
        return 7

    monkeypatch.setattr(logging_utils.logger, "remove", fake_remove)
    monkeypatch.setattr(logging_utils.logger, "add", fake_add)

    sink_id = logging_utils.configure_logger(level="debug")

    assert removed["value"] is True, "Logger.remove should be called before reconfiguration"
    assert sink_id == 7
    args, kwargs = add_calls[0]
    assert kwargs["format"] == logging_utils.LOG_FORMAT
    assert kwargs["level"] == "DEBUG"


def test_log_warning_binds_context():
    records = _capture()

    logging_utils.log_warning("Rejected clustering run", field="k", reason="k must be at least 1")

    assert records == [
        ("WARNING", "Rejected clustering run", {"field": "k", "reason": "k must be at least 1"}),
    ]


def test_run_logger_binds_run_id():
    records = _capture()

    logging_utils.run_logger("abc", k=3).info("started")

    assert records == [("INFO", "started", {"run_id": "abc", "k": 3})]

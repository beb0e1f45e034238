from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import plotly.graph_objects as go  # type: ignore[import-untyped]
from loguru import logger

from frontend.history import CentroidSnapshot, append_history, snapshot_from_partition
from frontend.plotting import DEFAULT_CENTROID_SIZE, DEFAULT_POINT_SIZE, build_partition_figure
from kmeans_api.src.models.data_models import Partition


class RenderContextClosedError(RuntimeError):
    """Raised when a frame arrives before ``open`` or after ``close``."""


@dataclass
class RenderContext:
    """Canvas settings plus an explicit open/closed lifecycle."""

    width: int = 300
    height: int = 300
    point_size: int = DEFAULT_POINT_SIZE
    centroid_size: int = DEFAULT_CENTROID_SIZE
    title: str = "K-Means"
    is_open: bool = False

    def open(self) -> RenderContext:
        self.is_open = True
        logger.bind(event="render_context", width=self.width, height=self.height).debug(
            "Render context opened"
        )
        return self

    def close(self) -> None:
        self.is_open = False
        logger.bind(event="render_context").debug("Render context closed")

    def __enter__(self) -> RenderContext:
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()


class PlotlyRenderer:
    """Render sink turning each partition into a Plotly figure.

    ``on_frame`` receives every figure (a Streamlit placeholder, a file
    writer, ...). ``frame_delay_ms`` paces the loop between frames and has no
    effect on the clustering itself.
    """

    def __init__(
        self,
        context: RenderContext,
        on_frame: Callable[[go.Figure], None] | None = None,
        frame_delay_ms: int = 0,
        history_size: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if frame_delay_ms < 0:
            msg = f"frame_delay_ms must be non-negative, got {frame_delay_ms}"
            raise ValueError(msg)
        self._context = context
        self._on_frame = on_frame
        self._delay_seconds = frame_delay_ms / 1000
        self._history_size = history_size
        self._sleep = sleep
        self.history: list[CentroidSnapshot] = []
        self.frames_rendered = 0
        self.last_figure: go.Figure | None = None

    def render(self, partition: Partition) -> None:
        if not self._context.is_open:
            msg = "Render context is not open"
            raise RenderContextClosedError(msg)
        figure = build_partition_figure(
            partition,
            width=self._context.width,
            height=self._context.height,
            point_size=self._context.point_size,
            centroid_size=self._context.centroid_size,
            title=f"{self._context.title} - frame {self.frames_rendered}",
        )
        self.history = append_history(
            self.history,
            snapshot_from_partition(self.frames_rendered, partition),
            self._history_size,
        )
        self.last_figure = figure
        self.frames_rendered += 1
        if self._on_frame is not None:
            self._on_frame(figure)
        if self._delay_seconds > 0:
            self._sleep(self._delay_seconds)

from __future__ import annotations

import plotly.graph_objects as go  # type: ignore[import-untyped]

from frontend.history import CentroidSnapshot
from kmeans_api.src.models.data_models import Partition

POINT_COLOR = "black"
DEFAULT_POINT_SIZE = 4
DEFAULT_CENTROID_SIZE = 6


def build_partition_figure(
    partition: Partition,
    *,
    width: int = 300,
    height: int = 300,
    point_size: int = DEFAULT_POINT_SIZE,
    centroid_size: int = DEFAULT_CENTROID_SIZE,
    title: str = "K-Means",
) -> go.Figure:
    """Draw every member joined to its centroid by a line in the centroid's color."""
    fig = go.Figure()
    for centroid in partition.centroids:
        members = partition[centroid.id]
        color = centroid.color.to_css()
        if members:
            xs: list[int | None] = []
            ys: list[int | None] = []
            for point in members:
                xs.extend([point.x, centroid.x, None])
                ys.extend([point.y, centroid.y, None])
            fig.add_trace(
                go.Scatter(
                    x=xs,
                    y=ys,
                    mode="lines",
                    name=f"Links {centroid.id}",
                    line=dict(color=color, width=1),
                    hoverinfo="skip",
                    showlegend=False,
                )
            )
            fig.add_trace(
                go.Scatter(
                    x=[point.x for point in members],
                    y=[point.y for point in members],
                    mode="markers",
                    name=f"Cluster {centroid.id}",
                    marker=dict(color=POINT_COLOR, size=point_size, symbol="square"),
                )
            )
        fig.add_trace(
            go.Scatter(
                x=[centroid.x],
                y=[centroid.y],
                mode="markers",
                name=f"C{centroid.id}",
                marker=dict(color=color, size=centroid_size, symbol="square"),
            )
        )

    # pixel space: origin top-left, y grows downwards
    fig.update_layout(
        title=title,
        xaxis=dict(range=[0, width], showgrid=False, zeroline=False),
        yaxis=dict(range=[height, 0], showgrid=False, zeroline=False, scaleanchor="x"),
        plot_bgcolor="white",
        showlegend=False,
        uirevision="partition",
        height=max(height + 80, 400),
        margin=dict(l=20, r=20, t=40, b=20),
    )
    return fig


def build_centroid_trajectories(
    history: list[CentroidSnapshot],
    *,
    show_labels: bool = True,
    only_last_n: int | None = None,
) -> go.Figure:
    """Build a 2D trajectory plot for centroid history."""
    fig = go.Figure()
    if not history:
        fig.update_layout(
            title="Centroid trajectories",
            xaxis_title="x",
            yaxis_title="y",
            uirevision="centroid-trajectories",
        )
        return fig

    snapshots = history[-only_last_n:] if only_last_n else history
    centroid_ids = sorted({cid for snap in snapshots for cid in snap.centroids})

    for centroid_id in centroid_ids:
        visits = [snap for snap in snapshots if centroid_id in snap.centroids]
        color = visits[-1].colors.get(centroid_id, POINT_COLOR)
        fig.add_trace(
            go.Scatter(
                x=[snap.centroids[centroid_id][0] for snap in visits],
                y=[snap.centroids[centroid_id][1] for snap in visits],
                mode="lines+markers",
                name=f"Centroid {centroid_id}",
                line=dict(color=color),
                marker=dict(color=color, size=6),
            )
        )
        if show_labels:
            last_x, last_y = visits[-1].centroids[centroid_id]
            fig.add_trace(
                go.Scatter(
                    x=[last_x],
                    y=[last_y],
                    mode="markers+text",
                    name=f"C{centroid_id}",
                    text=[f"C{centroid_id}"],
                    textposition="top center",
                    marker=dict(color=color, size=10, symbol="circle-open"),
                    showlegend=False,
                )
            )

    fig.update_layout(
        title="Centroid trajectories",
        xaxis_title="x",
        yaxis=dict(title="y", autorange="reversed"),
        legend=dict(orientation="v"),
        uirevision="centroid-trajectories",
        height=500,
        margin=dict(l=20, r=20, t=40, b=20),
    )
    return fig

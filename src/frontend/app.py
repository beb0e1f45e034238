from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

SRC_ROOT = Path(__file__).resolve().parents[1]
if str(SRC_ROOT) not in sys.path:
    sys.path.append(str(SRC_ROOT))

from frontend.plotting import build_centroid_trajectories, build_partition_figure  # noqa: E402
from frontend.renderer import PlotlyRenderer, RenderContext  # noqa: E402
from kmeans_api.src.config import config  # noqa: E402
from kmeans_api.src.models.errors import ConfigurationError  # noqa: E402
from kmeans_api.src.services.convergence_service import ConvergenceLoop  # noqa: E402
from kmeans_api.src.services.generator_service import generate_initial_state  # noqa: E402
from kmeans_api.src.services.metrics_service import MetricsService  # noqa: E402


def _init_state() -> None:
    if "result" not in st.session_state:
        st.session_state.result = None
    if "history" not in st.session_state:
        st.session_state.history = []
    if "metrics_service" not in st.session_state:
        st.session_state.metrics_service = MetricsService()


def _reset_state() -> None:
    st.session_state.result = None
    st.session_state.history = []
    st.session_state.metrics_service.reset()


def _run(
    *,
    k: int,
    n_points: int,
    seed: int | None,
    frame_delay_ms: int,
    max_iterations: int,
    placeholder,
) -> None:
    engine = config.engine
    centroids, points = generate_initial_state(
        engine.width, engine.height, k, n_points, seed=seed,
    )
    context = RenderContext(
        width=engine.width,
        height=engine.height,
        point_size=config.render.point_size,
        centroid_size=config.render.centroid_size,
    )
    with context:
        renderer = PlotlyRenderer(
            context,
            on_frame=lambda figure: placeholder.plotly_chart(figure, use_container_width=True),
            frame_delay_ms=frame_delay_ms,
        )
        loop = ConvergenceLoop(
            centroids,
            points,
            sink=renderer,
            max_iterations=max_iterations,
            cycle_window=engine.cycle_window,
            metrics=st.session_state.metrics_service,
        )
        st.session_state.result = loop.run()
    st.session_state.history = renderer.history


def _show_result(placeholder) -> None:
    result = st.session_state.result
    if result is None:
        st.info("Press Run to start clustering.")
        return
    if not st.session_state.history:
        return
    placeholder.plotly_chart(
        build_partition_figure(
            result.partition,
            width=config.engine.width,
            height=config.engine.height,
            point_size=config.render.point_size,
            centroid_size=config.render.centroid_size,
        ),
        use_container_width=True,
    )
    cols = st.columns(4)
    cols[0].metric("State", result.state.value)
    cols[1].metric("Iterations", result.iterations)
    cols[2].metric("Inertia", f"{result.metrics.inertia:,}")
    silhouette = result.metrics.silhouette_score
    cols[3].metric("Silhouette", "n/a" if silhouette is None else f"{silhouette:.3f}")
    st.plotly_chart(
        build_centroid_trajectories(st.session_state.history),
        use_container_width=True,
    )
    st.dataframe(
        [
            {
                "iteration": record.iteration,
                "changed": record.changed,
                "inertia": record.inertia,
                "max_shift": round(record.max_shift, 2),
                "latency_ms": round(record.latency_ms, 2),
            }
            for record in result.history
        ],
        use_container_width=True,
    )


def main() -> None:
    st.set_page_config(page_title="K-Means", layout="wide")
    _init_state()

    st.title("K-Means")
    st.write("Lloyd's algorithm on random pixels: assign, move centroids, repeat until stable.")

    with st.sidebar:
        st.subheader("Parameters")
        k = st.slider("k", 1, 20, config.engine.k)
        n_points = st.slider("points", 0, 2000, config.engine.n_points, step=50)
        seed_text = st.text_input("seed", value="" if config.engine.seed is None else str(config.engine.seed))
        frame_delay_ms = st.slider("frame delay (ms)", 0, 1000, config.render.frame_delay_ms, step=50)
        max_iterations = st.number_input(
            "max iterations", min_value=1, max_value=10000, value=config.engine.max_iterations or 500,
        )
        run = st.button("Run", use_container_width=True)
        reset = st.button("Reset", use_container_width=True)

    if reset:
        _reset_state()

    placeholder = st.empty()
    if run:
        seed_text = seed_text.strip()
        seed = int(seed_text) if seed_text.isdigit() else None
        if seed_text and seed is None:
            st.warning(f"Seed '{seed_text}' is not a non-negative integer; running unseeded.")
        try:
            _run(
                k=k,
                n_points=n_points,
                seed=seed,
                frame_delay_ms=frame_delay_ms,
                max_iterations=int(max_iterations),
                placeholder=placeholder,
            )
        except ConfigurationError as exc:
            st.error(str(exc))
            return
    _show_result(placeholder)


if __name__ == "__main__":
    main()

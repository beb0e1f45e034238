import os
from dataclasses import dataclass
from typing import Optional

from pyaml_env import parse_config


def _optional_int(value) -> Optional[int]:
    if value is None or value == "" or str(value).lower() in {"null", "none"}:
        return None
    return int(value)


class KMeansConfig:
    @dataclass
    class App:
        server_port: int
        log_level: str = "INFO"

        def __post_init__(self):
            self.server_port = int(self.server_port)
            self.log_level = str(self.log_level).upper()

    @dataclass
    class Engine:
        width: int = 300
        height: int = 300
        k: int = 5
        n_points: int = 500
        max_iterations: Optional[int] = 500
        cycle_window: int = 8
        seed: Optional[int] = None

        def __post_init__(self):
            # values substituted from the environment arrive as strings
            self.width = int(self.width)
            self.height = int(self.height)
            self.k = int(self.k)
            self.n_points = int(self.n_points)
            self.max_iterations = _optional_int(self.max_iterations)
            self.cycle_window = int(self.cycle_window)
            self.seed = _optional_int(self.seed)

    @dataclass
    class Render:
        frame_delay_ms: int = 100
        point_size: int = 4
        centroid_size: int = 6

        def __post_init__(self):
            self.frame_delay_ms = int(self.frame_delay_ms)
            self.point_size = int(self.point_size)
            self.centroid_size = int(self.centroid_size)

    def __init__(self, version, app, engine=None, render=None):
        self.version = version
        self.app = KMeansConfig.App(**app)
        self.engine = KMeansConfig.Engine(**(engine or {}))
        self.render = KMeansConfig.Render(**(render or {}))


def load_config(path: str) -> KMeansConfig:
    return KMeansConfig(**parse_config(path=path))


current_dir = os.path.dirname(os.path.abspath(__file__))
config_path = os.path.join(current_dir, '..', 'config.yaml')
config = load_config(config_path)

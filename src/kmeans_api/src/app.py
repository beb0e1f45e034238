from fastapi import FastAPI

from kmeans_api.src.config import config
from kmeans_api.src.controllers.health_controller import health_api
from kmeans_api.src.controllers.kmeans_controller import router as kmeans_api
from kmeans_api.src.utils.logging_utils import configure_logger


def create_app() -> FastAPI:
    configure_logger(config.app.log_level)
    app = FastAPI(title="K-Means API")
    app.include_router(health_api)
    app.include_router(kmeans_api)
    return app

from fastapi import APIRouter

from kmeans_api.src.config import config

health_api = APIRouter(prefix="/v1/health", tags=["Health"])


@health_api.get("")
def health():
    return {"status": "ok", "version": config.version}

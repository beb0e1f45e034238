from fastapi import APIRouter, HTTPException

from kmeans_api.src.models.data_models import RunRequest, RunSummary
from kmeans_api.src.models.errors import ConfigurationError
from kmeans_api.src.services.kmeans_service import kmeans_service
from kmeans_api.src.utils.logging_utils import log_warning

router = APIRouter(prefix="/v1/kmeans", tags=["KMeans"])


@router.post("/run", summary="Run k-means from a fresh random state", response_model=RunSummary)
def run_kmeans(request: RunRequest):
    try:
        return kmeans_service.run(request)
    except ConfigurationError as exc:
        log_warning("Rejected clustering run", field=exc.field, reason=str(exc))
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/latest", summary="Summary of the most recent run", response_model=RunSummary)
def get_latest_run():
    summary = kmeans_service.get_latest()
    if summary is None:
        raise HTTPException(status_code=404, detail="No clustering run yet")
    return summary


@router.get("/config", summary="Default run parameters")
def get_run_defaults():
    return kmeans_service.get_defaults()

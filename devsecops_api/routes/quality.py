"""
Code quality metrics (coverage, complexity, debt, smells).

One record per pipeline run. POST /api/code/metrics upserts on
pipelineRunId: the first report for a run creates the record, later
reports merge into it.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.errors import INVALID_BODY
from devsecops_api.models.schemas import CodeMetrics, CodeMetricsUpsert, ErrorResponse
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Quality"])


def latest_code_metrics(store: DevSecOpsStore) -> CodeMetrics:
    metrics = store.get_code_metrics()
    if metrics is None:
        raise HTTPException(status_code=404, detail="Code metrics not found")
    return metrics


@router.get(
    "/api/code/metrics",
    response_model=CodeMetrics,
    responses={404: {"model": ErrorResponse}},
    summary="Get the latest code metrics",
    description="Returns the most recently created code-metrics record across all runs.",
)
async def get_code_metrics(store: DevSecOpsStore = Depends(get_store)) -> CodeMetrics:
    return latest_code_metrics(store)


@router.get(
    "/api/pipelines/{pipeline_id}/code/metrics",
    response_model=CodeMetrics,
    responses={404: {"model": ErrorResponse}},
    summary="Get the code metrics of a pipeline run",
)
async def get_pipeline_code_metrics(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> CodeMetrics:
    metrics = store.get_code_metrics_by_pipeline(pipeline_id)
    if metrics is None:
        raise HTTPException(status_code=404, detail="Code metrics not found for pipeline run")
    return metrics


@router.post(
    "/api/code/metrics",
    response_model=CodeMetrics,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Create or update code metrics for a pipeline run",
    description="The first report for a run creates its record and must include coverage.",
)
async def upsert_code_metrics(
    body: CodeMetricsUpsert,
    store: DevSecOpsStore = Depends(get_store),
) -> CodeMetrics:
    if body.pipeline_run_id is not None:
        require_pipeline(store, body.pipeline_run_id)
    try:
        return store.create_or_update_code_metrics(body.model_dump(exclude_none=True))
    except ValidationError:
        raise HTTPException(status_code=400, detail=INVALID_BODY)

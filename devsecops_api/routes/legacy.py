"""
Pre-rename routes kept for older dashboard builds.

Each one is an alias onto the current endpoint and returns the current
schema. They are hidden from /docs and can be switched off with
DEVSECOPS_ENABLE_LEGACY_ROUTES=false.

  GET  /api/metrics           -> GET  /api/dashboard/metrics
  GET  /api/pipeline/current  -> GET  /api/pipelines/current
  POST /api/pipeline/start    -> POST /api/pipelines/start
  GET  /api/quality           -> GET  /api/code/metrics
"""

from fastapi import APIRouter, Depends

from devsecops_api.deps import get_store
from devsecops_api.models.schemas import CodeMetrics, DashboardMetrics, PipelineRun
from devsecops_api.routes.dashboard import dashboard_metrics
from devsecops_api.routes.pipelines import current_pipeline_run, start_pipeline_run
from devsecops_api.routes.quality import latest_code_metrics
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Legacy"], include_in_schema=False)


@router.get("/api/metrics", response_model=DashboardMetrics)
async def legacy_metrics(store: DevSecOpsStore = Depends(get_store)) -> DashboardMetrics:
    return dashboard_metrics(store)


@router.get("/api/pipeline/current", response_model=PipelineRun)
async def legacy_current_pipeline(store: DevSecOpsStore = Depends(get_store)) -> PipelineRun:
    return current_pipeline_run(store)


@router.post("/api/pipeline/start", response_model=PipelineRun)
async def legacy_start_pipeline(store: DevSecOpsStore = Depends(get_store)) -> PipelineRun:
    return start_pipeline_run(store, None)


@router.get("/api/quality", response_model=CodeMetrics)
async def legacy_quality(store: DevSecOpsStore = Depends(get_store)) -> CodeMetrics:
    return latest_code_metrics(store)

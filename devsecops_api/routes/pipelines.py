"""
Pipeline runs and their stages.

Nothing here executes a pipeline. Starting a run only records it with
status "running" at the first stage; progress is reported afterwards by
whoever drives the run, through PATCH /api/pipelines/{id} and
PATCH /api/stages/{id}.
"""

from fastapi import APIRouter, Depends, HTTPException

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.models.schemas import (
    INITIAL_STAGE,
    ErrorResponse,
    PipelineRun,
    PipelineRunUpdate,
    PipelineStage,
    PipelineStageCreate,
    PipelineStageUpdate,
    PipelineStartRequest,
)
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Pipelines"])

NOT_FOUND = {404: {"model": ErrorResponse}}


def start_pipeline_run(store: DevSecOpsStore, request: PipelineStartRequest | None) -> PipelineRun:
    """Record a new run at the initial stage. Shared with the legacy alias."""
    request = request or PipelineStartRequest()
    fields = request.model_dump()
    fields.update(status="running", current_stage=INITIAL_STAGE)
    return store.create_pipeline_run(fields)


def current_pipeline_run(store: DevSecOpsStore) -> PipelineRun:
    run = store.get_current_pipeline_run()
    if run is None:
        raise HTTPException(status_code=404, detail="No pipeline run in progress")
    return run


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

@router.get(
    "/api/pipelines",
    response_model=list[PipelineRun],
    summary="List pipeline runs",
)
async def list_pipeline_runs(store: DevSecOpsStore = Depends(get_store)) -> list[PipelineRun]:
    return store.get_pipeline_runs()


@router.get(
    "/api/pipelines/current",
    response_model=PipelineRun,
    responses=NOT_FOUND,
    summary="Get the running pipeline",
    description="Returns the first pipeline run whose status is 'running'.",
)
async def get_current_pipeline_run(store: DevSecOpsStore = Depends(get_store)) -> PipelineRun:
    return current_pipeline_run(store)


@router.post(
    "/api/pipelines/start",
    response_model=PipelineRun,
    summary="Start a pipeline run",
    description=(
        "Creates a run with status 'running' at the 'source' stage. "
        "The body is optional and only overrides name, branch, trigger, commit and environment."
    ),
)
async def start_pipeline(
    body: PipelineStartRequest | None = None,
    store: DevSecOpsStore = Depends(get_store),
) -> PipelineRun:
    return start_pipeline_run(store, body)


# Registered ahead of /api/pipelines/{pipeline_id} so that, say, GET
# /api/pipelines/start is a 405 rather than an invalid-id 400.
@router.api_route(
    "/api/pipelines/start",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def start_method_not_allowed() -> None:
    raise HTTPException(status_code=405, detail="Method Not Allowed", headers={"Allow": "POST"})


@router.api_route(
    "/api/pipelines/current",
    methods=["POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def current_method_not_allowed() -> None:
    raise HTTPException(status_code=405, detail="Method Not Allowed", headers={"Allow": "GET"})


@router.get(
    "/api/pipelines/{pipeline_id}",
    response_model=PipelineRun,
    responses=NOT_FOUND,
    summary="Get a pipeline run",
)
async def get_pipeline_run(pipeline_id: int, store: DevSecOpsStore = Depends(get_store)) -> PipelineRun:
    run = store.get_pipeline_run(pipeline_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Pipeline run not found")
    return run


@router.patch(
    "/api/pipelines/{pipeline_id}",
    response_model=PipelineRun,
    responses=NOT_FOUND,
    summary="Update a pipeline run",
    description="Report progress: status, current stage, timestamps, duration.",
)
async def update_pipeline_run(
    pipeline_id: int,
    body: PipelineRunUpdate,
    store: DevSecOpsStore = Depends(get_store),
) -> PipelineRun:
    run = store.update_pipeline_run(pipeline_id, body.model_dump(exclude_unset=True))
    if run is None:
        raise HTTPException(status_code=404, detail="Pipeline run not found")
    return run


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

@router.get(
    "/api/pipelines/{pipeline_id}/stages",
    response_model=list[PipelineStage],
    summary="List the stages of a pipeline run",
)
async def list_pipeline_stages(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> list[PipelineStage]:
    return store.get_pipeline_stages(pipeline_id)


@router.post(
    "/api/pipelines/{pipeline_id}/stages",
    response_model=PipelineStage,
    responses=NOT_FOUND,
    summary="Add a stage to a pipeline run",
)
async def create_pipeline_stage(
    pipeline_id: int,
    body: PipelineStageCreate,
    store: DevSecOpsStore = Depends(get_store),
) -> PipelineStage:
    require_pipeline(store, pipeline_id)
    return store.create_pipeline_stage({**body.model_dump(), "pipeline_run_id": pipeline_id})


@router.patch(
    "/api/stages/{stage_id}",
    response_model=PipelineStage,
    responses=NOT_FOUND,
    summary="Update a pipeline stage",
)
async def update_pipeline_stage(
    stage_id: int,
    body: PipelineStageUpdate,
    store: DevSecOpsStore = Depends(get_store),
) -> PipelineStage:
    stage = store.update_pipeline_stage(stage_id, body.model_dump(exclude_unset=True))
    if stage is None:
        raise HTTPException(status_code=404, detail="Pipeline stage not found")
    return stage

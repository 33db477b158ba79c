"""Test-suite results per pipeline run. Append-only: results are never edited."""

from fastapi import APIRouter, Depends

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.models.schemas import ErrorResponse, TestResults, TestResultsCreate
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Tests"])


@router.get(
    "/api/pipelines/{pipeline_id}/tests",
    response_model=list[TestResults],
    summary="List test results of a pipeline run",
)
async def list_test_results(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> list[TestResults]:
    return store.get_test_results(pipeline_id)


@router.post(
    "/api/pipelines/{pipeline_id}/tests",
    response_model=TestResults,
    responses={404: {"model": ErrorResponse}},
    summary="Record test-suite results for a pipeline run",
)
async def create_test_results(
    pipeline_id: int,
    body: TestResultsCreate,
    store: DevSecOpsStore = Depends(get_store),
) -> TestResults:
    require_pipeline(store, pipeline_id)
    return store.create_test_results({**body.model_dump(), "pipeline_run_id": pipeline_id})

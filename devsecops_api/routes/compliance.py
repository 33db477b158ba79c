"""
Compliance checks (SOC2, ISO27001, GDPR, PCI-DSS...) per pipeline run.

A run with no checks yet returns an empty list, not a 404.
"""

from fastapi import APIRouter, Depends

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.models.schemas import ComplianceCheck, ComplianceCheckCreate, ErrorResponse
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Compliance"])


@router.get(
    "/api/pipelines/{pipeline_id}/compliance",
    response_model=list[ComplianceCheck],
    summary="List compliance checks of a pipeline run",
)
async def list_compliance_checks(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> list[ComplianceCheck]:
    return store.get_compliance_checks(pipeline_id)


@router.post(
    "/api/pipelines/{pipeline_id}/compliance",
    response_model=ComplianceCheck,
    responses={404: {"model": ErrorResponse}},
    summary="Record a compliance check for a pipeline run",
)
async def create_compliance_check(
    pipeline_id: int,
    body: ComplianceCheckCreate,
    store: DevSecOpsStore = Depends(get_store),
) -> ComplianceCheck:
    require_pipeline(store, pipeline_id)
    return store.create_compliance_check({**body.model_dump(), "pipeline_run_id": pipeline_id})

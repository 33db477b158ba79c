"""
Deployments of a pipeline run's build to an environment.

The rollout itself happens elsewhere; this only records it. Status moves
pending -> deploying -> success/failed (or rolled_back) through PATCH.
"""

from fastapi import APIRouter, Depends, HTTPException

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.models.schemas import Deployment, DeploymentCreate, DeploymentUpdate, ErrorResponse
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Deployments"])


@router.get(
    "/api/deployments",
    response_model=list[Deployment],
    summary="List all deployments",
)
async def list_deployments(store: DevSecOpsStore = Depends(get_store)) -> list[Deployment]:
    return store.get_deployments()


@router.get(
    "/api/pipelines/{pipeline_id}/deployments",
    response_model=list[Deployment],
    summary="List deployments of a pipeline run",
)
async def list_pipeline_deployments(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> list[Deployment]:
    return store.get_deployments_by_pipeline(pipeline_id)


@router.post(
    "/api/deployments",
    response_model=Deployment,
    responses={404: {"model": ErrorResponse}},
    summary="Record a deployment",
)
async def create_deployment(
    body: DeploymentCreate,
    store: DevSecOpsStore = Depends(get_store),
) -> Deployment:
    require_pipeline(store, body.pipeline_run_id)
    return store.create_deployment(body.model_dump())


@router.patch(
    "/api/deployments/{deployment_id}",
    response_model=Deployment,
    responses={404: {"model": ErrorResponse}},
    summary="Update a deployment",
)
async def update_deployment(
    deployment_id: int,
    body: DeploymentUpdate,
    store: DevSecOpsStore = Depends(get_store),
) -> Deployment:
    deployment = store.update_deployment(deployment_id, body.model_dump(exclude_unset=True))
    if deployment is None:
        raise HTTPException(status_code=404, detail="Deployment not found")
    return deployment

"""
Security findings reported by SAST, SCA, secret-scanning and DAST tools.

New issues always start "open". Triage happens through PATCH: acknowledge,
assign, resolve, or mark as a false positive.
"""

from fastapi import APIRouter, Depends, HTTPException

from devsecops_api.deps import get_store, require_pipeline
from devsecops_api.models.schemas import (
    ErrorResponse,
    SecurityIssue,
    SecurityIssueCreate,
    SecurityIssueUpdate,
)
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Security"])


@router.get(
    "/api/security/issues",
    response_model=list[SecurityIssue],
    summary="List all security issues",
)
async def list_security_issues(store: DevSecOpsStore = Depends(get_store)) -> list[SecurityIssue]:
    return store.get_security_issues()


@router.get(
    "/api/pipelines/{pipeline_id}/security/issues",
    response_model=list[SecurityIssue],
    summary="List security issues found by a pipeline run",
)
async def list_pipeline_security_issues(
    pipeline_id: int,
    store: DevSecOpsStore = Depends(get_store),
) -> list[SecurityIssue]:
    return store.get_security_issues_by_pipeline(pipeline_id)


@router.post(
    "/api/security/issues",
    response_model=SecurityIssue,
    responses={404: {"model": ErrorResponse}},
    summary="Report a security issue",
    description="pipelineRunId is optional; when given it must name an existing run.",
)
async def create_security_issue(
    body: SecurityIssueCreate,
    store: DevSecOpsStore = Depends(get_store),
) -> SecurityIssue:
    if body.pipeline_run_id is not None:
        require_pipeline(store, body.pipeline_run_id)
    return store.create_security_issue(body.model_dump())


@router.patch(
    "/api/security/issues/{issue_id}",
    response_model=SecurityIssue,
    responses={404: {"model": ErrorResponse}},
    summary="Update a security issue",
    description="Typically used to change status (acknowledged, resolved, false_positive) or assignee.",
)
async def update_security_issue(
    issue_id: int,
    body: SecurityIssueUpdate,
    store: DevSecOpsStore = Depends(get_store),
) -> SecurityIssue:
    issue = store.update_security_issue(issue_id, body.model_dump(exclude_unset=True))
    if issue is None:
        raise HTTPException(status_code=404, detail="Security issue not found")
    return issue

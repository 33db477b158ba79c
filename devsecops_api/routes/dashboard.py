"""
/api/dashboard/metrics -- Aggregate dashboard counters.

A single record per process: pipeline, security, quality and deployment
totals for the landing page. POST merges whatever fields are sent onto
the existing record (or creates it) and refreshes lastUpdated.

The counters are not derived from the other entities. Whatever reports
them (a nightly job, a CI hook) pushes the numbers here.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from devsecops_api.deps import get_store
from devsecops_api.errors import INVALID_BODY
from devsecops_api.models.schemas import DashboardMetrics, DashboardMetricsUpsert, ErrorResponse
from devsecops_api.store import DevSecOpsStore

router = APIRouter(tags=["Dashboard"])


def dashboard_metrics(store: DevSecOpsStore) -> DashboardMetrics:
    metrics = store.get_dashboard_metrics()
    if metrics is None:
        raise HTTPException(status_code=404, detail="Dashboard metrics not found")
    return metrics


@router.get(
    "/api/dashboard/metrics",
    response_model=DashboardMetrics,
    responses={404: {"model": ErrorResponse}},
    summary="Get dashboard metrics",
    description="Returns the aggregate counters shown on the dashboard landing page.",
)
async def get_dashboard_metrics(store: DevSecOpsStore = Depends(get_store)) -> DashboardMetrics:
    return dashboard_metrics(store)


@router.post(
    "/api/dashboard/metrics",
    response_model=DashboardMetrics,
    summary="Create or update dashboard metrics",
    description=(
        "Merges the supplied counters onto the dashboard record. "
        "Fields left out (or sent as null) keep their current values. "
        "The first upsert creates the record and must include period."
    ),
    responses={400: {"model": ErrorResponse}},
)
async def upsert_dashboard_metrics(
    body: DashboardMetricsUpsert,
    store: DevSecOpsStore = Depends(get_store),
) -> DashboardMetrics:
    try:
        return store.create_or_update_dashboard_metrics(body.model_dump(exclude_none=True))
    except ValidationError:
        raise HTTPException(status_code=400, detail=INVALID_BODY)

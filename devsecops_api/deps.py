"""FastAPI dependencies shared by the route modules."""

from fastapi import HTTPException, Request

from devsecops_api.store import DevSecOpsStore


def get_store(request: Request) -> DevSecOpsStore:
    """The store the running app was built with (see ``create_app``)."""
    return request.app.state.store


def require_pipeline(store: DevSecOpsStore, pipeline_id: int) -> None:
    """Reject writes that point at a pipeline run that does not exist."""
    if not store.pipeline_exists(pipeline_id):
        raise HTTPException(status_code=404, detail="Pipeline run not found")

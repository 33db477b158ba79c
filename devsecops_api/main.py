"""
DevSecOps Dashboard API -- Application entry point.

Run with:
    uvicorn devsecops_api.main:app --reload

or, once installed:
    devsecops-dashboard

Then open http://localhost:8000/docs for the interactive Swagger UI.

This file:
  1. Configures logging
  2. Builds the store (seeded with sample data unless disabled)
  3. Creates the FastAPI application and registers the error handlers
  4. Mounts all route modules, plus the legacy aliases when enabled
  5. Defines the health check endpoint
"""

import logging

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devsecops_api.config import Settings, settings as default_settings
from devsecops_api.deps import get_store
from devsecops_api.errors import register_error_handlers
from devsecops_api.models.schemas import HealthResponse
from devsecops_api.routes import (
    compliance,
    dashboard,
    deployments,
    legacy,
    pipelines,
    quality,
    security,
    testing,
)
from devsecops_api.seed import seed_store
from devsecops_api.store import DevSecOpsStore

logger = logging.getLogger(__name__)

DESCRIPTION = (
    "Status API behind the DevSecOps dashboard. "
    "The UI polls these endpoints for pipeline state, security findings, "
    "code-quality metrics and compliance checks.\n\n"
    "---\n\n"
    "| Endpoint group | Purpose |\n"
    "|----------------|--------|\n"
    "| `/api/dashboard/metrics` | Aggregate counters (singleton) |\n"
    "| `/api/pipelines` | Pipeline runs and their stages |\n"
    "| `/api/security/issues` | Security findings and triage |\n"
    "| `/api/code/metrics` | Code quality metrics per run |\n"
    "| `/api/pipelines/{id}/tests` | Test-suite results |\n"
    "| `/api/deployments` | Deployments per environment |\n"
    "| `/api/pipelines/{id}/compliance` | Compliance checks |\n\n"
    "All state is in memory and is lost on restart."
)


def create_app(settings: Settings | None = None, store: DevSecOpsStore | None = None) -> FastAPI:
    """Build the application around ``store``.

    When no store is given a new one is created and, if
    ``settings.seed_sample_data`` is on, loaded with the sample records.
    """
    settings = settings or default_settings

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if store is None:
        store = DevSecOpsStore()
        if settings.seed_sample_data:
            seed_store(store)
            logger.info("Loaded sample data (%s)", store.counts())

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description=DESCRIPTION,
    )
    app.state.store = store
    app.state.settings = settings

    # -----------------------------------------------------------------------
    # CORS: the dashboard UI may be served from a different origin.
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(dashboard.router)
    app.include_router(pipelines.router)
    app.include_router(security.router)
    app.include_router(quality.router)
    app.include_router(testing.router)
    app.include_router(deployments.router)
    app.include_router(compliance.router)
    if settings.enable_legacy_routes:
        app.include_router(legacy.router)

    @app.get(
        "/api/health",
        response_model=HealthResponse,
        summary="Health check",
        description="Returns the API status and how many records the store holds.",
        tags=["System"],
    )
    async def health(store: DevSecOpsStore = Depends(get_store)) -> HealthResponse:
        return HealthResponse(status="healthy", version=settings.version, records=store.counts())

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "devsecops_api.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

"""
In-memory data store.

Every entity lives in a plain dict keyed by an integer id. All entity types
share one id counter, so an id is never handed out twice while the process
lives. Data is lost on restart -- there is no persistence layer.

The store is constructed explicitly and handed to the app (see
``devsecops_api.main.create_app``), so each test can build its own.
Handlers are async and run on a single event loop, but every mutation and
every read snapshot still go through one lock so the store stays
consistent under a threaded server too.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel

from devsecops_api.models.schemas import (
    CodeMetrics,
    CodeMetricsCreate,
    ComplianceCheck,
    DashboardMetrics,
    DashboardMetricsCreate,
    Deployment,
    PipelineRun,
    PipelineStage,
    SecurityIssue,
    TestResults,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdSequence:
    """Process-wide, ever-increasing identifier counter."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    def advance_to(self, value: int) -> None:
        """Move the counter forward so it never collides with seeded ids."""
        self._next = max(self._next, value)


class Repository(Generic[RecordT]):
    """Generic get/list/create/update over one entity type.

    ``stamp`` returns the fields every new record gets regardless of
    input (creation timestamps, forced initial status). It is called with
    the current time.

    Lookups by field (``filter``/``find``) are full O(n) scans. There are
    no secondary indexes; the collections are small and in memory.
    """

    def __init__(
        self,
        name: str,
        model: type[RecordT],
        ids: IdSequence,
        lock: threading.RLock,
        clock: Clock,
        stamp: Callable[[datetime], dict[str, Any]] | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self._ids = ids
        self._lock = lock
        self._clock = clock
        self._stamp = stamp
        self._records: dict[int, RecordT] = {}

    # -- reads ---------------------------------------------------------------

    def get(self, record_id: int) -> RecordT | None:
        return self._records.get(record_id)

    def list(self) -> list[RecordT]:
        with self._lock:
            return list(self._records.values())

    def filter(self, **criteria: Any) -> list[RecordT]:
        return [r for r in self.list() if _matches(r, criteria)]

    def find(self, **criteria: Any) -> RecordT | None:
        for record in self.list():
            if _matches(record, criteria):
                return record
        return None

    def latest(self) -> RecordT | None:
        records = self.list()
        return records[-1] if records else None

    def count(self) -> int:
        return len(self._records)

    # -- writes --------------------------------------------------------------

    def create(self, fields: dict[str, Any]) -> RecordT:
        """Assign the next id, apply creation defaults and store the record."""
        with self._lock:
            record_id = self._ids.next()
            values = dict(fields)
            values.pop("id", None)
            if self._stamp is not None:
                values.update(self._stamp(self._clock()))
            record = self.model(id=record_id, **values)
            self._records[record_id] = record
        logger.info("Created %s id=%d", self.name, record_id)
        return record

    def insert(self, record: RecordT) -> RecordT:
        """Store a fully built record under its own id (used for seeding)."""
        with self._lock:
            self._records[record.id] = record
        return record

    def update(self, record_id: int, fields: dict[str, Any]) -> RecordT | None:
        """Merge ``fields`` onto the stored record. ``id`` is never changed."""
        changes = {k: v for k, v in fields.items() if k != "id"}
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                logger.debug("Update of missing %s id=%d", self.name, record_id)
                return None
            updated = current.model_copy(update=changes)
            self._records[record_id] = updated
        logger.info("Updated %s id=%d fields=%s", self.name, record_id, sorted(changes))
        return updated

    def upsert(
        self,
        scope: dict[str, Any],
        fields: dict[str, Any],
        create_model: type[BaseModel] | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> RecordT:
        """Merge into the record matching ``scope``, or create one.

        On the create path ``fields`` must satisfy ``create_model`` (pydantic
        ``ValidationError`` otherwise) and ``defaults`` fill what was left
        out. ``lastUpdated`` is refreshed on both paths.
        """
        with self._lock:
            existing = self.find(**scope)
            if existing is not None:
                changes = {k: v for k, v in fields.items() if k != "id"}
                changes["last_updated"] = self._clock()
                merged = existing.model_copy(update=changes)
                self._records[existing.id] = merged
                logger.info("Merged %s id=%d fields=%s", self.name, existing.id, sorted(fields))
                return merged
            if create_model is not None:
                create_model.model_validate(fields)
            return self.create({**(defaults or {}), **fields, **scope})


def _matches(record: BaseModel, criteria: dict[str, Any]) -> bool:
    return all(getattr(record, key) == value for key, value in criteria.items())


# ---------------------------------------------------------------------------
# Creation defaults per entity
# ---------------------------------------------------------------------------

def _run_stamp(now: datetime) -> dict[str, Any]:
    return {"start_time": now, "end_time": None, "duration": None}


def _issue_stamp(now: datetime) -> dict[str, Any]:
    return {"status": "open", "created_at": now, "resolved_at": None}


def _deployment_stamp(now: datetime) -> dict[str, Any]:
    return {"start_time": now, "end_time": None, "rollback_time": None}


def _created_stamp(now: datetime) -> dict[str, Any]:
    return {"created_at": now}


def _metrics_stamp(now: datetime) -> dict[str, Any]:
    return {"last_updated": now}


# ---------------------------------------------------------------------------
# The store
# ---------------------------------------------------------------------------

class DevSecOpsStore:
    """Sole owner of all dashboard state.

    Exposes the named operations the HTTP layer calls; each one delegates
    to the repository for that entity type. Absence is always reported as
    ``None`` (or ``[]`` for lists), never as an exception.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self.clock = clock
        self.ids = IdSequence()
        self._lock = threading.RLock()

        def repo(name, model, stamp=None):
            return Repository(name, model, self.ids, self._lock, clock, stamp)

        self.pipeline_runs: Repository[PipelineRun] = repo("pipeline_run", PipelineRun, _run_stamp)
        self.pipeline_stages: Repository[PipelineStage] = repo("pipeline_stage", PipelineStage)
        self.security_issues: Repository[SecurityIssue] = repo("security_issue", SecurityIssue, _issue_stamp)
        self.code_metrics: Repository[CodeMetrics] = repo("code_metrics", CodeMetrics, _metrics_stamp)
        self.test_results: Repository[TestResults] = repo("test_results", TestResults, _created_stamp)
        self.deployments: Repository[Deployment] = repo("deployment", Deployment, _deployment_stamp)
        self.compliance_checks: Repository[ComplianceCheck] = repo(
            "compliance_check", ComplianceCheck, _created_stamp
        )
        # Singleton: upserts always target the one record, whatever its id.
        self.dashboard: Repository[DashboardMetrics] = repo("dashboard_metrics", DashboardMetrics, _metrics_stamp)

    # -- pipeline runs -------------------------------------------------------

    def get_pipeline_runs(self) -> list[PipelineRun]:
        return self.pipeline_runs.list()

    def get_pipeline_run(self, run_id: int) -> PipelineRun | None:
        return self.pipeline_runs.get(run_id)

    def get_current_pipeline_run(self) -> PipelineRun | None:
        """The first run (in creation order) whose status is "running"."""
        return self.pipeline_runs.find(status="running")

    def create_pipeline_run(self, fields: dict[str, Any]) -> PipelineRun:
        return self.pipeline_runs.create(fields)

    def update_pipeline_run(self, run_id: int, fields: dict[str, Any]) -> PipelineRun | None:
        return self.pipeline_runs.update(run_id, fields)

    def pipeline_exists(self, run_id: int) -> bool:
        return self.pipeline_runs.get(run_id) is not None

    # -- stages --------------------------------------------------------------

    def get_pipeline_stages(self, run_id: int) -> list[PipelineStage]:
        return self.pipeline_stages.filter(pipeline_run_id=run_id)

    def create_pipeline_stage(self, fields: dict[str, Any]) -> PipelineStage:
        return self.pipeline_stages.create(fields)

    def update_pipeline_stage(self, stage_id: int, fields: dict[str, Any]) -> PipelineStage | None:
        return self.pipeline_stages.update(stage_id, fields)

    # -- security issues -----------------------------------------------------

    def get_security_issues(self) -> list[SecurityIssue]:
        return self.security_issues.list()

    def get_security_issues_by_pipeline(self, run_id: int) -> list[SecurityIssue]:
        return self.security_issues.filter(pipeline_run_id=run_id)

    def create_security_issue(self, fields: dict[str, Any]) -> SecurityIssue:
        return self.security_issues.create(fields)

    def update_security_issue(self, issue_id: int, fields: dict[str, Any]) -> SecurityIssue | None:
        return self.security_issues.update(issue_id, fields)

    # -- code metrics --------------------------------------------------------

    def get_code_metrics(self) -> CodeMetrics | None:
        """Most recently created code-metrics record, across all runs."""
        return self.code_metrics.latest()

    def get_code_metrics_by_pipeline(self, run_id: int) -> CodeMetrics | None:
        return self.code_metrics.find(pipeline_run_id=run_id)

    def create_or_update_code_metrics(self, fields: dict[str, Any]) -> CodeMetrics:
        """Upsert keyed on the pipeline run; records without a run share one slot.

        The first report for a run must carry ``coverage``.
        """
        fields = dict(fields)
        scope = {"pipeline_run_id": fields.pop("pipeline_run_id", None)}
        return self.code_metrics.upsert(scope, fields, create_model=CodeMetricsCreate)

    # -- test results --------------------------------------------------------

    def get_test_results(self, run_id: int) -> list[TestResults]:
        return self.test_results.filter(pipeline_run_id=run_id)

    def create_test_results(self, fields: dict[str, Any]) -> TestResults:
        return self.test_results.create(fields)

    # -- deployments ---------------------------------------------------------

    def get_deployments(self) -> list[Deployment]:
        return self.deployments.list()

    def get_deployments_by_pipeline(self, run_id: int) -> list[Deployment]:
        return self.deployments.filter(pipeline_run_id=run_id)

    def create_deployment(self, fields: dict[str, Any]) -> Deployment:
        return self.deployments.create(fields)

    def update_deployment(self, deployment_id: int, fields: dict[str, Any]) -> Deployment | None:
        return self.deployments.update(deployment_id, fields)

    # -- compliance ----------------------------------------------------------

    def get_compliance_checks(self, run_id: int) -> list[ComplianceCheck]:
        return self.compliance_checks.filter(pipeline_run_id=run_id)

    def create_compliance_check(self, fields: dict[str, Any]) -> ComplianceCheck:
        return self.compliance_checks.create(fields)

    # -- dashboard singleton -------------------------------------------------

    def get_dashboard_metrics(self) -> DashboardMetrics | None:
        return self.dashboard.latest()

    def create_or_update_dashboard_metrics(self, fields: dict[str, Any]) -> DashboardMetrics:
        """Merge into the singleton. Creating it requires ``period``."""
        return self.dashboard.upsert(
            {}, fields, create_model=DashboardMetricsCreate, defaults={"date": self.clock()}
        )

    # -- misc ----------------------------------------------------------------

    def counts(self) -> dict[str, int]:
        """Record count per entity type, for the health endpoint."""
        return {
            "pipeline_runs": self.pipeline_runs.count(),
            "pipeline_stages": self.pipeline_stages.count(),
            "security_issues": self.security_issues.count(),
            "code_metrics": self.code_metrics.count(),
            "test_results": self.test_results.count(),
            "deployments": self.deployments.count(),
            "compliance_checks": self.compliance_checks.count(),
            "dashboard_metrics": self.dashboard.count(),
        }

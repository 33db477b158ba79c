"""
DevSecOps Dashboard -- Python client

Lightweight client for the dashboard API. Useful from CI jobs that report
progress, and from scripts that want the same view the dashboard polls.

Usage:

    from devsecops_sdk.client import DashboardClient

    dash = DashboardClient("http://localhost:8000")

    # Start a run and report progress as stages finish
    run = dash.start_pipeline()
    dash.add_stage(run["id"], stage_name="build", status="running")
    dash.update_pipeline(run["id"], current_stage="build")

    # Triage a finding
    dash.update_security_issue(3, status="resolved")

    # What the dashboard landing page shows
    snap = dash.snapshot()
    print(snap.open_issues_by_severity)

Records are returned as plain dicts with the API's camelCase keys.

Requirements: requests
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10

SEVERITY_ORDER = ("critical", "high", "medium", "low", "info")


# ── Result types ──────────────────────────────────────────────────────────


@dataclass
class DashboardSnapshot:
    """Everything the dashboard landing page polls, fetched in one go."""

    metrics: Optional[Dict[str, Any]]
    current_pipeline: Optional[Dict[str, Any]]
    security_issues: List[Dict[str, Any]] = field(default_factory=list)
    code_metrics: Optional[Dict[str, Any]] = None

    @property
    def open_issues(self) -> List[Dict[str, Any]]:
        return [i for i in self.security_issues if i.get("status") == "open"]

    @property
    def open_issues_by_severity(self) -> Dict[str, int]:
        """Open issue count per severity, most severe first, zeros included."""
        counts = Counter(i["severity"] for i in self.open_issues)
        return {severity: counts.get(severity, 0) for severity in SEVERITY_ORDER}

    @property
    def pipeline_success_rate(self) -> Optional[float]:
        """Successful / total pipelines as a percentage, one decimal."""
        if not self.metrics or not self.metrics.get("totalPipelines"):
            return None
        rate = self.metrics["successfulPipelines"] / self.metrics["totalPipelines"] * 100
        return round(rate, 1)


# ── Exceptions ────────────────────────────────────────────────────────────


class DashboardError(Exception):
    """Base exception for dashboard API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFoundError(DashboardError):
    """Raised when the API answers 404 (unknown id, nothing running...)."""


# ── Client ────────────────────────────────────────────────────────────────


class DashboardClient:
    """
    Client for the DevSecOps dashboard API.

    Args:
        base_url: API base URL. Defaults to http://localhost:8000.
        timeout: Request timeout in seconds. Defaults to 10.
        session: Optional pre-configured session (anything with a
            requests-style ``request`` method).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[Any] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.headers.update({"Content-Type": "application/json"})
        self._session = session

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        resp = self._session.request(method, url, **kwargs)
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
            message = body.get("error") if isinstance(body, dict) else body
            exc_type = NotFoundError if resp.status_code == 404 else DashboardError
            raise exc_type(
                f"API error {resp.status_code}: {message}",
                status_code=resp.status_code,
                body=body,
            )
        return resp.json()

    def _get_or_none(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return self._request("GET", path)
        except NotFoundError:
            return None

    # ── Dashboard metrics ─────────────────────────────────────────────

    def metrics(self) -> Optional[Dict[str, Any]]:
        """Aggregate dashboard counters, or None if none were reported yet."""
        return self._get_or_none("/api/dashboard/metrics")

    def update_metrics(self, **fields: Any) -> Dict[str, Any]:
        """Merge counters (camelCase or snake_case keys) into the dashboard record."""
        return self._request("POST", "/api/dashboard/metrics", json=fields)

    # ── Pipelines ─────────────────────────────────────────────────────

    def pipelines(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/pipelines")

    def pipeline(self, pipeline_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/pipelines/{pipeline_id}")

    def current_pipeline(self) -> Optional[Dict[str, Any]]:
        """The running pipeline, or None when nothing is running."""
        return self._get_or_none("/api/pipelines/current")

    def start_pipeline(self, **overrides: Any) -> Dict[str, Any]:
        """
        Record a new pipeline run at the "source" stage.

        Args:
            overrides: Optional name, branch, triggered_by, commit_hash,
                environment.
        """
        return self._request("POST", "/api/pipelines/start", json=overrides or None)

    def update_pipeline(self, pipeline_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/pipelines/{pipeline_id}", json=fields)

    def stages(self, pipeline_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/pipelines/{pipeline_id}/stages")

    def add_stage(self, pipeline_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", f"/api/pipelines/{pipeline_id}/stages", json=fields)

    def update_stage(self, stage_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/stages/{stage_id}", json=fields)

    # ── Security ──────────────────────────────────────────────────────

    def security_issues(self, pipeline_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """All security issues, or only those found by ``pipeline_id``."""
        if pipeline_id is None:
            return self._request("GET", "/api/security/issues")
        return self._request("GET", f"/api/pipelines/{pipeline_id}/security/issues")

    def create_security_issue(self, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", "/api/security/issues", json=fields)

    def update_security_issue(self, issue_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/security/issues/{issue_id}", json=fields)

    # ── Code quality ──────────────────────────────────────────────────

    def code_metrics(self, pipeline_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Latest code metrics, or those of ``pipeline_id``. None if absent."""
        if pipeline_id is None:
            return self._get_or_none("/api/code/metrics")
        return self._get_or_none(f"/api/pipelines/{pipeline_id}/code/metrics")

    def upsert_code_metrics(self, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", "/api/code/metrics", json=fields)

    # ── Tests ─────────────────────────────────────────────────────────

    def test_results(self, pipeline_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/pipelines/{pipeline_id}/tests")

    def add_test_results(self, pipeline_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", f"/api/pipelines/{pipeline_id}/tests", json=fields)

    # ── Deployments ───────────────────────────────────────────────────

    def deployments(self, pipeline_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if pipeline_id is None:
            return self._request("GET", "/api/deployments")
        return self._request("GET", f"/api/pipelines/{pipeline_id}/deployments")

    def create_deployment(self, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", "/api/deployments", json=fields)

    def update_deployment(self, deployment_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/deployments/{deployment_id}", json=fields)

    # ── Compliance ────────────────────────────────────────────────────

    def compliance_checks(self, pipeline_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/pipelines/{pipeline_id}/compliance")

    def add_compliance_check(self, pipeline_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", f"/api/pipelines/{pipeline_id}/compliance", json=fields)

    # ── Snapshot ──────────────────────────────────────────────────────

    def snapshot(self) -> DashboardSnapshot:
        """Fetch what the dashboard landing page shows."""
        return DashboardSnapshot(
            metrics=self.metrics(),
            current_pipeline=self.current_pipeline(),
            security_issues=self.security_issues(),
            code_metrics=self.code_metrics(),
        )

"""
DevSecOps Dashboard API -- Pydantic Data Models

Every record the store holds and every request body the API accepts is
defined here as a Pydantic model. Pydantic gives us:
  - Validation at the HTTP boundary (bad bodies never reach the store)
  - Auto-generated JSON Schema for the Swagger docs at /docs
  - camelCase JSON on the wire with snake_case attributes in Python

Measures that look like decimals (coverage, CVSS score, complexity) are
strings, matching what the dashboard UI already parses.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Constrained choices
# ---------------------------------------------------------------------------

PipelineStatus = Literal["pending", "running", "success", "failed", "cancelled"]
StageStatus = Literal["pending", "running", "success", "failed", "skipped"]
Severity = Literal["critical", "high", "medium", "low", "info"]
IssueStatus = Literal["open", "acknowledged", "resolved", "false_positive"]
DeploymentStatus = Literal["pending", "deploying", "success", "failed", "rolled_back"]
ComplianceStatus = Literal["passed", "failed", "warning", "not_applicable"]

# Canonical stage order shown by the pipeline view. Runs start at "source".
PIPELINE_STAGES = ("source", "build", "security", "test", "deploy")
INITIAL_STAGE = PIPELINE_STAGES[0]


class CamelModel(BaseModel):
    """Base for every API model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatchModel(CamelModel):
    """Base for PATCH bodies. Unknown fields (including ``id``) are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ---------------------------------------------------------------------------
# Pipeline runs
# ---------------------------------------------------------------------------

class PipelineRun(CamelModel):
    """One end-to-end execution record of a CI/CD pipeline for a commit."""

    id: int = Field(description="Store-assigned identifier.", examples=[1])
    name: str = Field(examples=["Build & Deploy - Main Branch"])
    branch: str = Field(default="main", examples=["main"])
    status: PipelineStatus = Field(examples=["running"])
    current_stage: str | None = Field(
        default=None,
        description="Stage the run is currently in (source, build, sast, test, dast, deploy).",
        examples=["sast"],
    )
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = Field(default=None, description="Run duration in seconds.")
    triggered_by: str = Field(examples=["marie.dupont"])
    commit_hash: str | None = Field(default=None, examples=["a7b2c9d4e5f6"])
    environment: str | None = Field(default="staging", examples=["staging"])


class PipelineStartRequest(CamelModel):
    """Optional overrides for POST /api/pipelines/start.

    Sending no body at all is the normal case: the run is created with
    the defaults below, status "running" and the initial stage."""

    name: str = "Automated pipeline"
    branch: str = "main"
    triggered_by: str = "dashboard"
    commit_hash: str | None = "abc123def456"
    environment: str | None = "staging"


class PipelineRunUpdate(PatchModel):
    # Fields typed without None cannot be nulled; leaving them out is fine.
    name: str = None
    branch: str = None
    status: PipelineStatus = None
    current_stage: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None
    triggered_by: str = None
    commit_hash: str | None = None
    environment: str | None = None


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

class PipelineStage(CamelModel):
    """A single named phase of a pipeline run."""

    id: int
    pipeline_run_id: int
    stage_name: str = Field(examples=["build"])
    status: StageStatus = Field(examples=["success"])
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = Field(default=None, description="Stage duration in seconds.")
    logs: str | None = None
    artifacts_url: str | None = Field(default=None, examples=["/artifacts/build"])


class PipelineStageCreate(CamelModel):
    stage_name: str
    status: StageStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None
    logs: str | None = None
    artifacts_url: str | None = None


class PipelineStageUpdate(PatchModel):
    stage_name: str = None
    status: StageStatus = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None
    logs: str | None = None
    artifacts_url: str | None = None


# ---------------------------------------------------------------------------
# Security issues
# ---------------------------------------------------------------------------

class SecurityIssue(CamelModel):
    """A finding reported by a security tool (SAST, SCA, secret scanning, DAST).

    Issues always start out "open"; triage moves them through acknowledged,
    resolved or false_positive via PATCH."""

    id: int
    pipeline_run_id: int | None = Field(
        default=None,
        description="Run that produced the finding, if any.",
    )
    title: str = Field(examples=["Potential SQL injection"])
    severity: Severity = Field(examples=["critical"])
    category: str = Field(
        description="vulnerability, secret, license or dependency.",
        examples=["vulnerability"],
    )
    tool: str = Field(examples=["SonarQube"])
    file: str = Field(examples=["src/auth/login.js"])
    line: int | None = None
    column: int | None = None
    description: str | None = None
    recommendation: str | None = None
    cwe_id: str | None = Field(default=None, examples=["CWE-89"])
    cvss_score: str | None = Field(default=None, examples=["9.1"])
    status: IssueStatus = "open"
    assigned_to: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class SecurityIssueCreate(CamelModel):
    pipeline_run_id: int | None = None
    title: str
    severity: Severity
    category: str
    tool: str
    file: str
    line: int | None = None
    column: int | None = None
    description: str | None = None
    recommendation: str | None = None
    cwe_id: str | None = None
    cvss_score: str | None = None
    assigned_to: str | None = None


class SecurityIssueUpdate(PatchModel):
    title: str = None
    severity: Severity = None
    category: str = None
    tool: str = None
    file: str = None
    line: int | None = None
    column: int | None = None
    description: str | None = None
    recommendation: str | None = None
    cwe_id: str | None = None
    cvss_score: str | None = None
    status: IssueStatus = None
    assigned_to: str | None = None
    resolved_at: datetime | None = None


# ---------------------------------------------------------------------------
# Code quality metrics
# ---------------------------------------------------------------------------

class CodeMetrics(CamelModel):
    """Static-analysis quality metrics. At most one record per pipeline run."""

    id: int
    pipeline_run_id: int | None = None
    coverage: str = Field(description="Test coverage percentage.", examples=["87.3"])
    lines_of_code: int | None = None
    cyclomatic_complexity: str | None = Field(default=None, examples=["6.2"])
    maintainability_index: str | None = Field(default=None, description="Letter grade A-F.", examples=["A"])
    technical_debt: str | None = Field(default=None, examples=["14.5h"])
    duplicated_lines: int | None = None
    code_smells: int | None = None
    bugs: int | None = None
    vulnerabilities: int | None = None
    security_hotspots: int | None = None
    last_updated: datetime | None = None


class CodeMetricsUpsert(CamelModel):
    """Body for POST /api/code/metrics.

    Fields sent replace the stored values for the run, fields left out keep
    whatever was there before. The first report for a run must include
    coverage (see ``CodeMetricsCreate``)."""

    pipeline_run_id: int | None = None
    coverage: str | None = None
    lines_of_code: int | None = None
    cyclomatic_complexity: str | None = None
    maintainability_index: str | None = None
    technical_debt: str | None = None
    duplicated_lines: int | None = None
    code_smells: int | None = None
    bugs: int | None = None
    vulnerabilities: int | None = None
    security_hotspots: int | None = None


class CodeMetricsCreate(CodeMetricsUpsert):
    coverage: str


# ---------------------------------------------------------------------------
# Test results
# ---------------------------------------------------------------------------

class TestResults(CamelModel):
    """Outcome of one test suite within a pipeline run."""

    __test__ = False  # not a pytest test class

    id: int
    pipeline_run_id: int
    test_suite: str = Field(
        description="unit, integration, e2e, performance or security.",
        examples=["unit"],
    )
    total_tests: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    duration: int | None = Field(default=None, description="Suite duration in milliseconds.")
    coverage: str | None = None
    report_url: str | None = None
    created_at: datetime | None = None


class TestResultsCreate(CamelModel):
    __test__ = False

    test_suite: str
    total_tests: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    duration: int | None = None
    coverage: str | None = None
    report_url: str | None = None


# ---------------------------------------------------------------------------
# Deployments
# ---------------------------------------------------------------------------

class Deployment(CamelModel):
    """A rollout of a pipeline run's build to an environment."""

    id: int
    pipeline_run_id: int
    environment: str = Field(examples=["staging"])
    version: str = Field(examples=["v2.3.1"])
    status: DeploymentStatus = Field(examples=["pending"])
    deployed_by: str = Field(examples=["pipeline-automation"])
    deployment_url: str | None = None
    health_check_url: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    rollback_time: datetime | None = None


class DeploymentCreate(CamelModel):
    pipeline_run_id: int
    environment: str
    version: str
    status: DeploymentStatus
    deployed_by: str
    deployment_url: str | None = None
    health_check_url: str | None = None


class DeploymentUpdate(PatchModel):
    environment: str = None
    version: str = None
    status: DeploymentStatus = None
    deployed_by: str = None
    deployment_url: str | None = None
    health_check_url: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    rollback_time: datetime | None = None


# ---------------------------------------------------------------------------
# Compliance checks
# ---------------------------------------------------------------------------

class ComplianceCheck(CamelModel):
    """Result of one control/policy/requirement check against a framework."""

    id: int
    pipeline_run_id: int
    framework: str = Field(description="SOC2, ISO27001, GDPR, PCI-DSS...", examples=["SOC2"])
    check_type: str = Field(description="policy, control or requirement.", examples=["control"])
    check_name: str = Field(examples=["Access Control Management"])
    status: ComplianceStatus = Field(examples=["passed"])
    severity: str | None = None
    description: str | None = None
    evidence: str | None = None
    remediation: str | None = None
    created_at: datetime | None = None


class ComplianceCheckCreate(CamelModel):
    framework: str
    check_type: str
    check_name: str
    status: ComplianceStatus
    severity: str | None = None
    description: str | None = None
    evidence: str | None = None
    remediation: str | None = None


# ---------------------------------------------------------------------------
# Dashboard aggregate metrics (singleton)
# ---------------------------------------------------------------------------

class DashboardMetrics(CamelModel):
    """Aggregate counters shown on the dashboard's landing page.

    There is at most one of these per process. Counters are whatever the
    last upsert said; nothing recomputes them from the other entities."""

    id: int
    period: str = Field(description="daily, weekly or monthly.", examples=["daily"])
    date: datetime | None = None

    total_pipelines: int = 0
    successful_pipelines: int = 0
    failed_pipelines: int = 0
    average_duration: int | None = Field(default=0, description="Seconds.")

    total_security_issues: int = 0
    critical_issues: int = 0
    high_issues: int = 0
    medium_issues: int = 0
    low_issues: int = 0
    resolved_issues: int = 0

    average_coverage: str | None = "0"
    average_complexity: str | None = "0"
    total_technical_debt: str | None = "0h"

    total_deployments: int = 0
    successful_deployments: int = 0
    failed_deployments: int = 0
    average_deployment_time: int | None = Field(default=0, description="Seconds.")

    last_updated: datetime | None = None


class DashboardMetricsUpsert(CamelModel):
    period: str | None = None
    date: datetime | None = None
    total_pipelines: int | None = None
    successful_pipelines: int | None = None
    failed_pipelines: int | None = None
    average_duration: int | None = None
    total_security_issues: int | None = None
    critical_issues: int | None = None
    high_issues: int | None = None
    medium_issues: int | None = None
    low_issues: int | None = None
    resolved_issues: int | None = None
    average_coverage: str | None = None
    average_complexity: str | None = None
    total_technical_debt: str | None = None
    total_deployments: int | None = None
    successful_deployments: int | None = None
    failed_deployments: int | None = None
    average_deployment_time: int | None = None


class DashboardMetricsCreate(DashboardMetricsUpsert):
    """What the very first upsert must carry: the record has no period otherwise."""

    period: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str = Field(examples=["Pipeline run not found"])


class HealthResponse(BaseModel):
    status: str = Field(examples=["healthy"])
    version: str = Field(examples=["1.0.0"])
    records: dict[str, int] = Field(
        description="Number of records held per entity type.",
        examples=[{"pipeline_runs": 1, "security_issues": 5}],
    )

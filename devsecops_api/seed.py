"""Seed the store with a realistic in-flight pipeline and its findings.

Everything here is loaded once at startup. The seeded records are ordinary
live records afterwards: PATCH and upsert calls mutate them like any other.
"""

from datetime import timedelta

from devsecops_api.models.schemas import (
    CodeMetrics,
    ComplianceCheck,
    DashboardMetrics,
    Deployment,
    PipelineRun,
    PipelineStage,
    SecurityIssue,
    TestResults,
)
from devsecops_api.store import DevSecOpsStore

# Ids created at runtime start here, well clear of the seeded ones.
FIRST_RUNTIME_ID = 100

SEED_PIPELINE_ID = 1

# ──────────────────────────────────────────────
# Stages of the running pipeline (durations in seconds)
# ──────────────────────────────────────────────
STAGES = [
    {"stage_name": "source", "status": "success", "duration": 32},
    {"stage_name": "build", "status": "success", "duration": 156},
    {"stage_name": "sast", "status": "running", "duration": None},
    {"stage_name": "test", "status": "pending", "duration": None},
    {"stage_name": "dast", "status": "pending", "duration": None},
    {"stage_name": "deploy", "status": "pending", "duration": None},
]

# ──────────────────────────────────────────────
# Open findings from the SAST / SCA / secrets stage
# ──────────────────────────────────────────────
SECURITY_ISSUES = [
    {
        "title": "Potential SQL injection",
        "severity": "critical",
        "category": "vulnerability",
        "tool": "SonarQube",
        "file": "src/auth/login.js",
        "line": 42,
        "description": "SQL injection vulnerability detected in user authentication",
        "recommendation": "Use prepared statements or an ORM to prevent SQL injection",
        "cwe_id": "CWE-89",
        "cvss_score": "9.1",
    },
    {
        "title": "Outdated dependencies with known vulnerabilities",
        "severity": "high",
        "category": "dependency",
        "tool": "Snyk",
        "file": "package.json",
        "line": None,
        "description": "Several dependencies have known security vulnerabilities",
        "recommendation": "Upgrade dependencies to their latest patched versions",
        "cwe_id": "CWE-1104",
        "cvss_score": "7.5",
    },
    {
        "title": "API key exposed in source code",
        "severity": "critical",
        "category": "secret",
        "tool": "GitLeaks",
        "file": "src/config/database.js",
        "line": 15,
        "description": "Hardcoded API key found in a configuration file",
        "recommendation": "Move secrets to environment variables or a secrets manager",
        "cwe_id": "CWE-798",
        "cvss_score": "8.7",
    },
    {
        "title": "Missing security headers",
        "severity": "medium",
        "category": "vulnerability",
        "tool": "OWASP ZAP",
        "file": "src/middleware/security.js",
        "line": 23,
        "description": "Security headers are not configured correctly",
        "recommendation": "Add Content-Security-Policy, X-Frame-Options and related headers",
        "cwe_id": "CWE-693",
        "cvss_score": "5.3",
    },
    {
        "title": "Insufficient input validation",
        "severity": "medium",
        "category": "vulnerability",
        "tool": "ESLint Security",
        "file": "src/api/users.js",
        "line": 67,
        "description": "User-supplied data is not sufficiently validated",
        "recommendation": "Apply strict validation to all user input",
        "cwe_id": "CWE-20",
        "cvss_score": "6.1",
    },
]

# Test suite durations are in milliseconds.
TEST_SUITES = [
    {"test_suite": "unit", "total_tests": 1247, "passed_tests": 1235, "failed_tests": 12, "skipped_tests": 0, "duration": 45000, "coverage": "89.2"},
    {"test_suite": "integration", "total_tests": 186, "passed_tests": 184, "failed_tests": 2, "skipped_tests": 0, "duration": 120000, "coverage": "78.5"},
    {"test_suite": "e2e", "total_tests": 67, "passed_tests": 65, "failed_tests": 2, "skipped_tests": 0, "duration": 340000, "coverage": "92.1"},
]

COMPLIANCE_CHECKS = [
    {
        "framework": "SOC2",
        "check_type": "control",
        "check_name": "Access Control Management",
        "status": "passed",
        "severity": None,
        "description": "User access controls verified",
        "evidence": "Audit logs available",
        "remediation": None,
    },
    {
        "framework": "GDPR",
        "check_type": "requirement",
        "check_name": "Data Protection Impact Assessment",
        "status": "warning",
        "severity": "medium",
        "description": "A DPIA is required for this deployment",
        "evidence": "Personal data detected",
        "remediation": "Complete the DPIA before deploying to production",
    },
    {
        "framework": "ISO27001",
        "check_type": "policy",
        "check_name": "Incident Response Plan",
        "status": "passed",
        "severity": None,
        "description": "Incident response plan documented and tested",
        "evidence": "Documented procedure v2.1",
        "remediation": None,
    },
]


def seed_store(store: DevSecOpsStore) -> DevSecOpsStore:
    """Load the sample records into ``store`` and return it."""
    now = store.clock()

    store.dashboard.insert(DashboardMetrics(
        id=1,
        period="daily",
        date=now,
        total_pipelines=156,
        successful_pipelines=147,
        failed_pipelines=9,
        average_duration=892,
        total_security_issues=24,
        critical_issues=3,
        high_issues=8,
        medium_issues=10,
        low_issues=3,
        resolved_issues=18,
        average_coverage="87.3",
        average_complexity="6.2",
        total_technical_debt="14.5h",
        total_deployments=89,
        successful_deployments=85,
        failed_deployments=4,
        average_deployment_time=245,
        last_updated=now,
    ))

    store.pipeline_runs.insert(PipelineRun(
        id=SEED_PIPELINE_ID,
        name="Build & Deploy - Main Branch",
        branch="main",
        status="running",
        current_stage="sast",
        start_time=now - timedelta(seconds=342),
        triggered_by="marie.dupont",
        commit_hash="a7b2c9d4e5f6",
        environment="staging",
    ))

    for index, stage in enumerate(STAGES):
        started = stage["status"] != "pending"
        start_time = now - timedelta(seconds=300) + timedelta(seconds=60 * index)
        succeeded = stage["status"] == "success"
        store.pipeline_stages.insert(PipelineStage(
            id=index + 1,
            pipeline_run_id=SEED_PIPELINE_ID,
            stage_name=stage["stage_name"],
            status=stage["status"],
            start_time=start_time if started else None,
            end_time=start_time + timedelta(seconds=stage["duration"]) if succeeded else None,
            duration=stage["duration"],
            logs=f"{stage['stage_name']} completed successfully" if succeeded else None,
            artifacts_url=f"/artifacts/{stage['stage_name']}" if succeeded else None,
        ))

    for index, issue in enumerate(SECURITY_ISSUES):
        store.security_issues.insert(SecurityIssue(
            id=index + 1,
            pipeline_run_id=SEED_PIPELINE_ID,
            status="open",
            created_at=now,
            **issue,
        ))

    store.code_metrics.insert(CodeMetrics(
        id=1,
        pipeline_run_id=SEED_PIPELINE_ID,
        coverage="87.3",
        lines_of_code=12547,
        cyclomatic_complexity="6.2",
        maintainability_index="A",
        technical_debt="14.5h",
        duplicated_lines=234,
        code_smells=18,
        bugs=5,
        vulnerabilities=3,
        security_hotspots=7,
        last_updated=now,
    ))

    for index, suite in enumerate(TEST_SUITES):
        store.test_results.insert(TestResults(
            id=index + 1,
            pipeline_run_id=SEED_PIPELINE_ID,
            report_url=f"/reports/{suite['test_suite']}",
            created_at=now,
            **suite,
        ))

    store.deployments.insert(Deployment(
        id=1,
        pipeline_run_id=SEED_PIPELINE_ID,
        environment="staging",
        version="v2.3.1",
        status="pending",
        deployed_by="pipeline-automation",
        health_check_url="https://staging.app.com/health",
        start_time=now,
    ))

    for index, check in enumerate(COMPLIANCE_CHECKS):
        store.compliance_checks.insert(ComplianceCheck(
            id=index + 1,
            pipeline_run_id=SEED_PIPELINE_ID,
            created_at=now,
            **check,
        ))

    store.ids.advance_to(FIRST_RUNTIME_ID)
    return store


def build_seeded_store(**kwargs) -> DevSecOpsStore:
    """Convenience: a fresh store with the sample data already loaded."""
    return seed_store(DevSecOpsStore(**kwargs))

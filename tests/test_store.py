"""
Tests for the in-memory store.

Covers:
1. One id sequence shared by every entity type
2. Creation defaults that override whatever the caller sent
3. Partial updates (id untouched, omitted fields kept, idempotent)
4. Upserts for code metrics (per run) and the dashboard singleton
5. Foreign-key listings in creation order
"""

import threading
from datetime import timedelta

import pytest
from pydantic import ValidationError

from devsecops_api.seed import FIRST_RUNTIME_ID, SEED_PIPELINE_ID
from devsecops_api.store import IdSequence

from conftest import FIXED_NOW


NEW_ISSUE = {
    "title": "Reflected XSS in search page",
    "severity": "high",
    "category": "vulnerability",
    "tool": "OWASP ZAP",
    "file": "src/views/search.js",
}


class TestIdSequence:
    def test_counts_up_from_start(self):
        ids = IdSequence()
        assert [ids.next(), ids.next(), ids.next()] == [1, 2, 3]

    def test_advance_never_moves_backwards(self):
        ids = IdSequence(start=50)
        ids.advance_to(10)
        assert ids.next() == 50
        ids.advance_to(60)
        assert ids.next() == 60


class TestCreate:
    """New records get a fresh id and their entity's creation defaults."""

    def test_ids_shared_across_entities(self, empty_store):
        run = empty_store.create_pipeline_run({"name": "r", "status": "pending", "triggered_by": "ci"})
        stage = empty_store.create_pipeline_stage(
            {"pipeline_run_id": run.id, "stage_name": "build", "status": "pending"}
        )
        issue = empty_store.create_security_issue(NEW_ISSUE)
        assert (run.id, stage.id, issue.id) == (1, 2, 3)

    def test_runtime_ids_start_after_seed(self, store):
        issue = store.create_security_issue(NEW_ISSUE)
        assert issue.id == FIRST_RUNTIME_ID

    def test_supplied_id_is_ignored(self, empty_store):
        issue = empty_store.create_security_issue({**NEW_ISSUE, "id": 999})
        assert issue.id == 1
        assert empty_store.security_issues.get(999) is None

    def test_get_returns_created_record(self, empty_store):
        issue = empty_store.create_security_issue(NEW_ISSUE)
        assert empty_store.security_issues.get(issue.id) == issue

    def test_issue_always_starts_open(self, empty_store):
        issue = empty_store.create_security_issue(
            {**NEW_ISSUE, "status": "resolved", "resolved_at": FIXED_NOW}
        )
        assert issue.status == "open"
        assert issue.created_at == FIXED_NOW
        assert issue.resolved_at is None

    def test_run_gets_start_time(self, empty_store):
        run = empty_store.create_pipeline_run(
            {"name": "r", "status": "running", "triggered_by": "ci", "duration": 40}
        )
        assert run.start_time == FIXED_NOW
        assert run.end_time is None
        assert run.duration is None

    def test_deployment_gets_start_time(self, store):
        deployment = store.create_deployment({
            "pipeline_run_id": SEED_PIPELINE_ID,
            "environment": "production",
            "version": "v2.4.0",
            "status": "pending",
            "deployed_by": "release-bot",
        })
        assert deployment.start_time == FIXED_NOW
        assert deployment.end_time is None
        assert deployment.rollback_time is None

    def test_missing_get_returns_none(self, store):
        assert store.get_pipeline_run(12345) is None


class TestUpdate:
    def test_omitted_fields_keep_their_values(self, store):
        before = store.security_issues.get(1)
        after = store.update_security_issue(1, {"status": "acknowledged"})
        assert after.status == "acknowledged"
        assert after.title == before.title
        assert after.cvss_score == before.cvss_score

    def test_id_is_never_changed(self, store):
        updated = store.update_pipeline_run(SEED_PIPELINE_ID, {"id": 77, "status": "success"})
        assert updated.id == SEED_PIPELINE_ID
        assert store.get_pipeline_run(77) is None

    def test_repeated_update_is_idempotent(self, store):
        once = store.update_deployment(1, {"status": "success"})
        twice = store.update_deployment(1, {"status": "success"})
        assert once == twice

    def test_missing_record_returns_none(self, store):
        before = store.counts()
        assert store.update_pipeline_run(4242, {"status": "failed"}) is None
        assert store.counts() == before


class TestCurrentPipeline:
    def test_first_running_in_creation_order(self, store):
        store.create_pipeline_run({"name": "later", "status": "running", "triggered_by": "ci"})
        assert store.get_current_pipeline_run().id == SEED_PIPELINE_ID

    def test_none_when_nothing_running(self, store):
        store.update_pipeline_run(SEED_PIPELINE_ID, {"status": "success"})
        assert store.get_current_pipeline_run() is None


class TestCodeMetricsUpsert:
    """Keyed on the pipeline run: one record per run."""

    def test_merges_into_existing_run_record(self, store):
        merged = store.create_or_update_code_metrics(
            {"pipeline_run_id": SEED_PIPELINE_ID, "bugs": 2}
        )
        assert merged.id == 1
        assert merged.bugs == 2
        assert merged.coverage == "87.3"
        assert store.code_metrics.count() == 1

    def test_creates_for_new_run(self, store):
        run = store.create_pipeline_run({"name": "r", "status": "running", "triggered_by": "ci"})
        created = store.create_or_update_code_metrics(
            {"pipeline_run_id": run.id, "coverage": "72.5", "bugs": 0}
        )
        assert created.id != 1
        assert created.coverage == "72.5"
        assert store.get_code_metrics_by_pipeline(run.id) == created

    def test_new_run_without_coverage_is_rejected(self, store):
        """Coverage is never made up: the first report for a run must carry it."""
        run = store.create_pipeline_run({"name": "r", "status": "running", "triggered_by": "ci"})
        with pytest.raises(ValidationError):
            store.create_or_update_code_metrics({"pipeline_run_id": run.id, "bugs": 3})
        assert store.get_code_metrics_by_pipeline(run.id) is None
        assert store.code_metrics.count() == 1

    def test_merge_does_not_need_coverage(self, store):
        merged = store.create_or_update_code_metrics({"pipeline_run_id": SEED_PIPELINE_ID, "bugs": 9})
        assert merged.coverage == "87.3"

    def test_latest_is_most_recently_created(self, store):
        run = store.create_pipeline_run({"name": "r", "status": "running", "triggered_by": "ci"})
        created = store.create_or_update_code_metrics({"pipeline_run_id": run.id, "coverage": "91.0"})
        store.create_or_update_code_metrics({"pipeline_run_id": SEED_PIPELINE_ID, "bugs": 1})
        assert store.get_code_metrics().id == created.id

    def test_refreshes_last_updated(self, store, clock):
        clock.now = FIXED_NOW + timedelta(minutes=5)
        merged = store.create_or_update_code_metrics({"pipeline_run_id": SEED_PIPELINE_ID})
        assert merged.last_updated == clock.now


class TestDashboardUpsert:
    def test_first_upsert_creates(self, empty_store):
        metrics = empty_store.create_or_update_dashboard_metrics(
            {"period": "weekly", "total_pipelines": 3}
        )
        assert metrics.total_pipelines == 3
        assert metrics.period == "weekly"
        assert metrics.date == FIXED_NOW
        assert metrics.failed_pipelines == 0

    def test_first_upsert_without_period_is_rejected(self, empty_store):
        with pytest.raises(ValidationError):
            empty_store.create_or_update_dashboard_metrics({"total_pipelines": 1})
        assert empty_store.get_dashboard_metrics() is None

    def test_disjoint_upserts_union(self, empty_store, clock):
        first = empty_store.create_or_update_dashboard_metrics({"period": "daily", "total_pipelines": 3})
        clock.now = FIXED_NOW + timedelta(hours=1)
        second = empty_store.create_or_update_dashboard_metrics({"critical_issues": 2})
        assert second.id == first.id
        assert second.total_pipelines == 3
        assert second.critical_issues == 2
        assert second.last_updated == clock.now
        assert empty_store.dashboard.count() == 1

    def test_seeded_record_is_the_singleton(self, store):
        metrics = store.create_or_update_dashboard_metrics({"failed_pipelines": 10})
        assert metrics.id == 1
        assert metrics.total_pipelines == 156


class TestConcurrency:
    """Reads and read-modify-write upserts hold the store lock."""

    def test_competing_upsert_waits_for_create(self, store, monkeypatch):
        """A second upsert for the same run lands after the first, never inside it."""
        run = store.create_pipeline_run({"name": "r", "status": "running", "triggered_by": "ci"})
        original_find = store.code_metrics.find
        competitor = threading.Thread(
            target=store.create_or_update_code_metrics,
            args=({"pipeline_run_id": run.id, "coverage": "91.0"},),
        )

        def find_while_competing(**criteria):
            if competitor.ident is None:
                competitor.start()
                competitor.join(timeout=0.2)
            return original_find(**criteria)

        monkeypatch.setattr(store.code_metrics, "find", find_while_competing)
        first = store.create_or_update_code_metrics(
            {"pipeline_run_id": run.id, "coverage": "80.0", "bugs": 1}
        )
        competitor.join(timeout=5)

        assert first.coverage == "80.0"
        records = store.code_metrics.filter(pipeline_run_id=run.id)
        assert len(records) == 1
        assert records[0].coverage == "91.0"
        assert records[0].bugs == 1

    def test_reads_during_concurrent_creates(self, store):
        errors = []

        def writer():
            for _ in range(200):
                store.create_test_results({
                    "pipeline_run_id": SEED_PIPELINE_ID,
                    "test_suite": "unit",
                    "total_tests": 1,
                    "passed_tests": 1,
                    "failed_tests": 0,
                    "skipped_tests": 0,
                })

        def reader():
            try:
                for _ in range(200):
                    store.get_test_results(SEED_PIPELINE_ID)
                    store.test_results.latest()
            except RuntimeError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=writer) for _ in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        results = store.get_test_results(SEED_PIPELINE_ID)
        assert len(results) == 3 + 4 * 200
        assert len({r.id for r in results}) == len(results)


class TestForeignKeyListing:
    def test_stages_in_creation_order(self, store):
        names = [s.stage_name for s in store.get_pipeline_stages(SEED_PIPELINE_ID)]
        assert names == ["source", "build", "sast", "test", "dast", "deploy"]

    def test_only_matching_records(self, store):
        run = store.create_pipeline_run({"name": "r", "status": "running", "triggered_by": "ci"})
        check = store.create_compliance_check({
            "pipeline_run_id": run.id,
            "framework": "PCI-DSS",
            "check_type": "requirement",
            "check_name": "Cardholder data encryption",
            "status": "passed",
        })
        assert store.get_compliance_checks(run.id) == [check]
        assert len(store.get_compliance_checks(SEED_PIPELINE_ID)) == 3

    def test_unknown_key_gives_empty_list(self, store):
        assert store.get_test_results(999) == []
        assert store.get_deployments_by_pipeline(999) == []
        assert store.get_security_issues_by_pipeline(999) == []


class TestSeed:
    def test_counts(self, store):
        assert store.counts() == {
            "pipeline_runs": 1,
            "pipeline_stages": 6,
            "security_issues": 5,
            "code_metrics": 1,
            "test_results": 3,
            "deployments": 1,
            "compliance_checks": 3,
            "dashboard_metrics": 1,
        }

    def test_all_seeded_issues_open(self, store):
        assert {i.status for i in store.get_security_issues()} == {"open"}

"""
Tests for the pipeline endpoints: runs, stages and the "current" view.
"""

from devsecops_api.models.schemas import INITIAL_STAGE
from devsecops_api.seed import FIRST_RUNTIME_ID


class TestStartPipeline:
    def test_start_without_body(self, client):
        """A bare POST records a running run at the first stage."""
        resp = client.post("/api/pipelines/start")
        assert resp.status_code == 200
        run = resp.json()
        assert run["status"] == "running"
        assert run["currentStage"] == INITIAL_STAGE == "source"
        assert run["id"] >= FIRST_RUNTIME_ID
        assert run["startTime"] is not None
        assert run["triggeredBy"] == "dashboard"

    def test_start_ids_are_fresh(self, client):
        first = client.post("/api/pipelines/start").json()
        second = client.post("/api/pipelines/start").json()
        assert second["id"] > first["id"]

    def test_start_with_overrides(self, client):
        resp = client.post(
            "/api/pipelines/start",
            json={"name": "Nightly", "branch": "develop", "triggeredBy": "cron"},
        )
        run = resp.json()
        assert run["name"] == "Nightly"
        assert run["branch"] == "develop"
        assert run["triggeredBy"] == "cron"
        assert run["status"] == "running"

    def test_started_run_is_listed(self, client):
        run = client.post("/api/pipelines/start").json()
        ids = [r["id"] for r in client.get("/api/pipelines").json()]
        assert ids == [1, run["id"]]


class TestGetPipelines:
    def test_current_is_seeded_run(self, client):
        resp = client.get("/api/pipelines/current")
        assert resp.status_code == 200
        run = resp.json()
        assert run["id"] == 1
        assert run["currentStage"] == "sast"
        assert run["triggeredBy"] == "marie.dupont"

    def test_current_404_when_nothing_running(self, client):
        client.patch("/api/pipelines/1", json={"status": "success"})
        resp = client.get("/api/pipelines/current")
        assert resp.status_code == 404
        assert resp.json() == {"error": "No pipeline run in progress"}

    def test_get_by_id(self, client):
        assert client.get("/api/pipelines/1").json()["name"] == "Build & Deploy - Main Branch"

    def test_wrong_method_on_fixed_paths(self, client):
        """/start and /current are not pipeline ids: wrong methods get 405."""
        resp = client.get("/api/pipelines/start")
        assert resp.status_code == 405
        assert resp.json() == {"error": "Method Not Allowed"}
        assert resp.headers["allow"] == "POST"

        resp = client.patch("/api/pipelines/current", json={"status": "failed"})
        assert resp.status_code == 405
        assert resp.headers["allow"] == "GET"
        assert client.get("/api/pipelines/1").json()["status"] == "running"

    def test_get_unknown_id(self, client):
        resp = client.get("/api/pipelines/999")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Pipeline run not found"}


class TestUpdatePipeline:
    def test_patch_reports_progress(self, client):
        resp = client.patch("/api/pipelines/1", json={"currentStage": "test", "duration": 400})
        assert resp.status_code == 200
        run = resp.json()
        assert run["currentStage"] == "test"
        assert run["duration"] == 400
        assert run["status"] == "running"

    def test_patch_unknown_id_is_404_and_changes_nothing(self, client, store):
        before = store.counts()
        runs_before = client.get("/api/pipelines").json()
        resp = client.patch("/api/pipelines/999", json={"status": "failed"})
        assert resp.status_code == 404
        assert "error" in resp.json()
        assert store.counts() == before
        assert client.get("/api/pipelines").json() == runs_before

    def test_patch_rejects_id(self, client):
        resp = client.patch("/api/pipelines/1", json={"id": 5})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}

    def test_patch_rejects_unknown_status(self, client):
        resp = client.patch("/api/pipelines/1", json={"status": "exploded"})
        assert resp.status_code == 400

    def test_patch_rejects_null_status(self, client):
        resp = client.patch("/api/pipelines/1", json={"status": None})
        assert resp.status_code == 400
        assert client.get("/api/pipelines/1").json()["status"] == "running"

    def test_patch_can_clear_nullable_field(self, client):
        resp = client.patch("/api/pipelines/1", json={"commitHash": None})
        assert resp.status_code == 200
        assert resp.json()["commitHash"] is None


class TestStages:
    def test_list_seeded_stages(self, client):
        stages = client.get("/api/pipelines/1/stages").json()
        assert [s["stageName"] for s in stages] == ["source", "build", "sast", "test", "dast", "deploy"]
        assert stages[0]["artifactsUrl"] == "/artifacts/source"
        assert stages[3]["startTime"] is None

    def test_unknown_pipeline_lists_empty(self, client):
        resp = client.get("/api/pipelines/999/stages")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_add_stage(self, client):
        resp = client.post(
            "/api/pipelines/1/stages",
            json={"stageName": "container-scan", "status": "running"},
        )
        assert resp.status_code == 200
        stage = resp.json()
        assert stage["pipelineRunId"] == 1
        assert stage["id"] >= 100
        assert len(client.get("/api/pipelines/1/stages").json()) == 7

    def test_add_stage_path_id_wins(self, client):
        stage = client.post(
            "/api/pipelines/1/stages",
            json={"stageName": "lint", "status": "pending", "pipelineRunId": 55},
        ).json()
        assert stage["pipelineRunId"] == 1

    def test_add_stage_to_unknown_pipeline(self, client):
        resp = client.post("/api/pipelines/999/stages", json={"stageName": "x", "status": "pending"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Pipeline run not found"}

    def test_add_stage_missing_fields(self, client):
        resp = client.post("/api/pipelines/1/stages", json={"status": "pending"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}

    def test_patch_stage(self, client):
        resp = client.patch("/api/stages/3", json={"status": "success", "duration": 88})
        assert resp.status_code == 200
        stage = resp.json()
        assert stage["status"] == "success"
        assert stage["stageName"] == "sast"

    def test_patch_unknown_stage(self, client):
        resp = client.patch("/api/stages/999", json={"status": "success"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Pipeline stage not found"}

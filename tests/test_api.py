"""
Tests for FastAPI endpoints and API functionality.
"""

from fastapi.testclient import TestClient

from skillgov.core.config import settings
from skillgov.core.logging_config import log_buffer


def _create(client: TestClient, skill_id: str = "s1", damage: float = 100, **fields):
    skill = {
        "id": skill_id,
        "name": "Slash",
        "description": "A quick blade strike.",
        "cooldown": 5,
        "effects": [{"kind": "damage", "value": damage}],
    }
    skill.update(fields)
    return client.post("/skills", json={"skill": skill, "author": "alice"})


class TestHealthCheck:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, api_client: TestClient):
        """Root endpoint should return service info."""
        response = api_client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()


class TestSkillsEndpoint:
    """Tests for the /skills endpoints."""

    def test_create_and_get(self, api_client: TestClient):
        response = _create(api_client)
        assert response.status_code == 201
        assert response.json()["status"] == "applied"

        response = api_client.get("/skills/s1")
        assert response.status_code == 200
        assert response.json()["effects"][0]["value"] == 100

    def test_get_unknown_skill(self, api_client: TestClient):
        assert api_client.get("/skills/ghost").status_code == 404

    def test_list_with_filters(self, api_client: TestClient):
        _create(api_client, "s1")
        _create(api_client, "s2", category="magic")

        ids = [s["id"] for s in api_client.get("/skills", params={"category": "magic"}).json()]
        assert ids == ["s2"]
        assert len(api_client.get("/skills").json()) == 2

    def test_validation_error_maps_to_422(self, api_client: TestClient):
        response = _create(api_client, level=5, max_level=3)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"][0]["field"] == "max_level"

    def test_duplicate_create_maps_to_409(self, api_client: TestClient):
        _create(api_client)
        response = _create(api_client)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_validate_dry_run(self, api_client: TestClient):
        response = api_client.post("/skills/validate", json={"skill": {"name": "x", "description": ""}})

        assert response.status_code == 200
        assert [e["field"] for e in response.json()["errors"]] == ["description"]
        assert api_client.get("/skills").json() == []

    def test_templates(self, api_client: TestClient):
        templates = api_client.get("/skills/templates").json()
        assert {t["id"] for t in templates} >= {"basic_attack_template"}

        assert api_client.get("/skills/templates/magic_spell_template").status_code == 200
        assert api_client.get("/skills/templates/nope").status_code == 404

    def test_gated_update_returns_workflow(self, api_client: TestClient):
        _create(api_client)

        response = api_client.patch(
            "/skills/s1", json={"fields": {"effects": [{"kind": "damage", "value": 160}]}, "author": "bob"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending_approval"
        assert body["impact"]["severity"] == "critical"
        assert body["workflow_id"].startswith("workflow_")
        assert api_client.get("/skills/s1").json()["effects"][0]["value"] == 100

    def test_delete_and_rollback(self, api_client: TestClient):
        _create(api_client)

        deleted = api_client.delete("/skills/s1", params={"author": "alice", "reason": "retired"})
        assert deleted.status_code == 200
        assert api_client.get("/skills/s1").json()["is_active"] is False

        response = api_client.post(
            "/skills/s1/rollback", json={"change_log_id": deleted.json()["change_log_id"], "author": "alice"}
        )
        assert response.status_code == 200
        assert api_client.get("/skills/s1").json()["is_active"] is True

    def test_delete_blocked_by_dependents(self, api_client: TestClient):
        _create(api_client, "base")
        _create(api_client, "combo", requirements=[{"kind": "skill", "target_id": "base"}])

        response = api_client.delete("/skills/base")

        assert response.status_code == 409
        assert response.json()["details"]["dependents"] == ["combo"]

    def test_run_tests(self, api_client: TestClient):
        _create(api_client, damage=250, cooldown=1)

        response = api_client.post("/skills/s1/tests", json={"suites": ["balance_check"]})

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        history = api_client.get("/skills/s1/tests").json()
        assert [r["test_id"] for r in history] == [response.json()["test_id"]]


class TestWorkflowsEndpoint:
    """Tests for the /workflows endpoints."""

    def _open(self, client: TestClient) -> str:
        _create(client)
        response = client.patch("/skills/s1", json={"fields": {"effects": [{"kind": "damage", "value": 125}]}})
        return response.json()["workflow_id"]

    def test_approval_flow(self, api_client: TestClient):
        workflow_id = self._open(api_client)

        response = api_client.post(f"/workflows/{workflow_id}/approve", json={"role": "lead_designer"})
        assert response.json()["status"] == "reviewing"

        response = api_client.post(
            f"/workflows/{workflow_id}/approve", json={"role": "balance_team", "approver": "erin"}
        )
        assert response.json()["status"] == "approved"
        assert api_client.get("/skills/s1").json()["effects"][0]["value"] == 125

    def test_unauthorized_role_maps_to_403(self, api_client: TestClient):
        workflow_id = self._open(api_client)

        response = api_client.post(f"/workflows/{workflow_id}/approve", json={"role": "game_director"})

        assert response.status_code == 403
        assert response.json()["error"] == "authorization_error"

    def test_reject_and_list(self, api_client: TestClient):
        workflow_id = self._open(api_client)

        response = api_client.post(
            f"/workflows/{workflow_id}/reject", json={"role": "balance_team", "reason": "too strong"}
        )
        assert response.json()["rejection_reason"] == "too strong"

        rejected = api_client.get("/workflows", params={"status": "rejected"}).json()
        assert [w["id"] for w in rejected] == [workflow_id]
        assert api_client.post(f"/workflows/{workflow_id}/cancel", json={}).status_code == 409

    def test_unknown_workflow(self, api_client: TestClient):
        assert api_client.get("/workflows/workflow_missing").status_code == 404


class TestChangeLogsEndpoint:
    def test_history_newest_first(self, api_client: TestClient):
        _create(api_client)
        api_client.patch("/skills/s1", json={"fields": {"name": "Heavy Slash"}})

        entries = api_client.get("/changelogs", params={"skill_id": "s1"}).json()

        assert [e["kind"] for e in entries] == ["update", "create"]
        assert entries[0]["changes"][0]["field"] == "name"
        assert api_client.get(f"/changelogs/{entries[0]['id']}").status_code == 200
        assert api_client.get("/changelogs/change_missing").status_code == 404


class TestAdminEndpoint:
    def test_status(self, api_client: TestClient):
        _create(api_client)

        status = api_client.get("/admin/status").json()

        assert status["total_skills"] == 1
        assert status["unsaved_changes"] is False

    def test_logs_and_reconcile(self, api_client: TestClient):
        _create(api_client)
        log_buffer.append({"time": "t", "logger": "tests", "level": "ERROR", "message": "marker"})

        logs = api_client.get("/admin/log", params={"limit": 5}).json()["logs"]
        assert 0 < len(logs) <= 5
        assert logs[-1]["message"] == "marker"

        errors = api_client.get("/admin/log", params={"level": "ERROR"}).json()["logs"]
        assert all(e["level"] in ("ERROR", "CRITICAL") for e in errors)
        assert errors[-1]["message"] == "marker"
        assert api_client.post("/admin/reconcile").json() == {"saved": True}

    def test_api_key_required_when_configured(self, api_client: TestClient, mocker):
        mocker.patch.object(settings, "ADMIN_API_KEY", "secret")

        assert api_client.get("/admin/status").status_code == 401
        assert api_client.get("/admin/status", headers={"X-API-Key": "wrong"}).status_code == 403
        assert api_client.get("/admin/status", headers={"X-API-Key": "secret"}).status_code == 200

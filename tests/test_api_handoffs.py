# tests/test_api_handoffs.py
"""
Test the handoff HTTP API.

Verifies request validation, status codes for lifecycle errors and the
response shapes.
"""


def _create(client, **body):
    payload = {
        "task": "Review PR #42",
        "to_agent": "@code-reviewer",
        "repository": "octo/widgets",
        "issue_number": 42,
    }
    payload.update(body)
    response = client.post("/api/handoffs", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateEndpoint:
    """Tests for POST /api/handoffs."""

    def test_create(self, client):
        data = _create(client, priority="high", sla_hours=4)

        assert data["status"] == "pending"
        assert data["priority"] == "high"
        assert data["repository_full_name"] == "octo/widgets"
        assert data["sla_hours"] == 4
        assert data["sla_deadline"] is not None
        assert data["is_overdue"] is False

    def test_to_alias(self, client):
        data = _create(client, to_agent=None, to="@security-specialist")
        assert data["to_agent"] == "@security-specialist"

    def test_task_required(self, client):
        response = client.post("/api/handoffs", json={"to_agent": "@code-reviewer"})
        assert response.status_code == 400

    def test_blank_task_rejected(self, client):
        response = client.post("/api/handoffs", json={"task": "   "})
        assert response.status_code == 400

    def test_invalid_priority(self, client):
        response = client.post("/api/handoffs", json={"task": "t", "priority": "urgent"})

        assert response.status_code == 400
        assert "Invalid priority" in response.json()["detail"]


class TestLifecycleEndpoints:
    """Tests for accept, complete and fail."""

    def test_accept_then_complete(self, client):
        handoff_id = _create(client)["handoff_id"]

        accepted = client.post(f"/api/handoffs/{handoff_id}/accept", json={"agent_name": "@code-reviewer"})
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "active"

        completed = client.post(f"/api/handoffs/{handoff_id}/complete", json={"outputs": {"summary": "LGTM"}})
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["outputs"] == {"summary": "LGTM"}

    def test_complete_without_body_fast_tracks(self, client):
        handoff_id = _create(client)["handoff_id"]

        response = client.post(f"/api/handoffs/{handoff_id}/complete")
        assert response.status_code == 200

        history = client.get(f"/api/handoffs/{handoff_id}").json()["history"]
        assert [h["to_state"] for h in history] == ["active", "completed"]

    def test_accept_unknown_is_404(self, client):
        response = client.post("/api/handoffs/missing/accept", json={})
        assert response.status_code == 404

    def test_complete_unknown_is_404(self, client):
        response = client.post("/api/handoffs/missing/complete", json={})
        assert response.status_code == 404

    def test_fail_unknown_is_404(self, client):
        response = client.post("/api/handoffs/missing/fail", json={"reason": "error:x"})
        assert response.status_code == 404

    def test_terminal_conflict_is_409(self, client):
        handoff_id = _create(client)["handoff_id"]
        client.post(f"/api/handoffs/{handoff_id}/fail", json={"reason": "rejected:scope"})

        response = client.post(f"/api/handoffs/{handoff_id}/accept", json={})

        assert response.status_code == 409
        assert "terminal state" in response.json()["detail"]

    def test_fail_records_reason(self, client):
        handoff_id = _create(client)["handoff_id"]

        response = client.post(f"/api/handoffs/{handoff_id}/fail", json={"reason": "timeout:sla_breach"})

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["failure_reason"] == "timeout:sla_breach"


class TestReadEndpoints:
    """Tests for get, list and stats."""

    def test_get_includes_history(self, client):
        handoff_id = _create(client)["handoff_id"]
        client.post(f"/api/handoffs/{handoff_id}/accept", json={"accepted_by": "@code-reviewer"})

        data = client.get(f"/api/handoffs/{handoff_id}").json()

        assert data["status"] == "active"
        assert data["is_overdue"] is False
        assert len(data["history"]) == 1
        assert data["history"][0]["triggered_by"] == "@code-reviewer"

    def test_get_unknown_is_404(self, client):
        assert client.get("/api/handoffs/missing").status_code == 404

    def test_list_with_filters(self, client):
        a = _create(client)
        _create(client, to_agent="@security-specialist")
        _create(client, repository="octo/other")

        response = client.get(
            "/api/handoffs",
            params={"to_agent": "@code-reviewer", "repo": "octo/widgets"},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["count"] == 1
        assert data["handoffs"][0]["handoff_id"] == a["handoff_id"]
        assert data["filters"]["repository_full_name"] == "octo/widgets"

    def test_list_legacy_status(self, client):
        _create(client)
        data = client.get("/api/handoffs", params={"status": "initiated"}).json()
        assert data["count"] == 1

    def test_list_unknown_status_is_400(self, client):
        assert client.get("/api/handoffs", params={"status": "paused"}).status_code == 400

    def test_stats(self, client):
        handoff_id = _create(client)["handoff_id"]
        client.post(f"/api/handoffs/{handoff_id}/complete", json={})
        _create(client)

        data = client.get("/api/handoffs/stats").json()

        assert data["total"] == 2
        assert data["by_status"]["completed"] == 1
        assert data["by_status"]["pending"] == 1
        assert data["sla_compliance_rate"] == 100.0


class TestAppWiring:
    """Tests for health and middleware."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_db_health_memory(self, client):
        assert client.get("/health/db").json()["database"] == "not configured"

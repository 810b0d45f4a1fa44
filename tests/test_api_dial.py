# tests/test_api_dial.py
"""
Test the autonomy dial HTTP API and the route permission guard.
"""

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from craftworks.api.deps import require_permission


class TestDialEndpoints:
    """Tests for GET/POST /api/dial/{owner}/{repo}."""

    def test_get_default(self, client):
        data = client.get("/api/dial/octo/widgets").json()

        assert data["dial_level"] == 1
        assert data["engagement_level"] == "observer"
        assert data["is_default"] is True

    def test_set_numeric(self, client):
        response = client.post("/api/dial/octo/widgets", json={"dial_level": 4, "updated_by": "alice"})

        assert response.status_code == 200
        assert response.json()["dial_level"] == 4
        assert client.get("/api/dial/octo/widgets").json()["engagement_level"] == "agent-team"

    def test_set_by_engagement_name(self, client):
        response = client.post(
            "/api/dial/octo/widgets",
            json={"engagement": "peer-programmer", "updated_by": "alice"},
        )
        assert response.json()["dial_level"] == 3

    def test_set_by_legacy_number(self, client):
        response = client.post("/api/dial/octo/widgets", json={"engagement": 9, "updated_by": "alice"})
        assert response.json()["dial_level"] == 5

    def test_invalid_level_is_400(self, client):
        response = client.post("/api/dial/octo/widgets", json={"dial_level": 7, "updated_by": "alice"})
        assert response.status_code == 400

    def test_unknown_engagement_is_400(self, client):
        response = client.post("/api/dial/octo/widgets", json={"engagement": "overlord", "updated_by": "alice"})
        assert response.status_code == 400

    def test_missing_level_is_400(self, client):
        response = client.post("/api/dial/octo/widgets", json={"updated_by": "alice"})
        assert response.status_code == 400

    def test_updated_by_required(self, client):
        response = client.post("/api/dial/octo/widgets", json={"dial_level": 3})
        assert response.status_code == 400


class TestActionEndpoints:
    """Tests for /api/dial/actions and /api/dial/check."""

    def test_list_actions(self, client):
        data = client.get("/api/dial/actions").json()

        assert data["actions"]["merge_pr"] == "T5"
        assert data["total_actions"] == len(data["actions"])
        assert set(data["tiers"]) == {"T1", "T2", "T3", "T4", "T5"}

    def test_check_blocked_in_production(self, client):
        client.post("/api/dial/octo/widgets", json={"dial_level": 5, "updated_by": "alice"})

        data = client.post(
            "/api/dial/check",
            json={"action": "merge_pr", "owner": "octo", "repo": "widgets", "environment": "production"},
        ).json()

        assert data["permitted"] is False
        assert data["tier"] == "T5"
        assert data["tier_name"] == "Merge/Deploy"
        assert data["is_known_action"] is True
        assert data["dial_level"] == 5
        assert data["effective_level"] == 3
        assert data["environment"] == "production"
        assert data["reason"] == "Action blocked: effective level 3 insufficient for T5, requires 5"

    def test_check_unknown_action(self, client):
        data = client.post(
            "/api/dial/check",
            json={"action": "summon_kraken", "owner": "octo", "repo": "widgets"},
        ).json()

        assert data["tier"] == "T3"
        assert data["is_known_action"] is False
        assert data["permitted"] is False

    def test_check_missing_fields(self, client):
        response = client.post("/api/dial/check", json={"action": "merge_pr"})
        assert response.status_code == 400

    def test_check_unknown_environment(self, client):
        response = client.post(
            "/api/dial/check",
            json={"action": "merge_pr", "owner": "octo", "repo": "widgets", "environment": "moon"},
        )
        assert response.status_code == 400


class TestRequirePermission:
    """Tests for the require_permission route guard."""

    def _guarded_client(self, services) -> TestClient:
        app = FastAPI()
        app.state.services = services

        @app.post("/repos/{owner}/{repo}/merge")
        async def merge(permission=Depends(require_permission("merge_pr"))):
            return {"merged": True, "tier": permission.tier.value}

        @app.post("/merge")
        async def merge_without_repo(permission=Depends(require_permission("merge_pr"))):
            return {"merged": True}

        return TestClient(app)

    def test_denied_is_403(self, services):
        client = self._guarded_client(services)

        response = client.post("/repos/octo/widgets/merge")

        assert response.status_code == 403
        assert response.json()["detail"].startswith("Action blocked")

    def test_permitted(self, services, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        client = self._guarded_client(services)

        response = client.post("/repos/octo/widgets/merge")

        assert response.status_code == 200
        assert response.json() == {"merged": True, "tier": "T5"}

    def test_environment_from_query(self, services, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        client = self._guarded_client(services)

        response = client.post("/repos/octo/widgets/merge", params={"environment": "staging"})

        assert response.status_code == 403

    def test_missing_repo_is_400(self, services):
        client = self._guarded_client(services)
        assert client.post("/merge").status_code == 400

    def test_repo_from_query(self, services, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        client = self._guarded_client(services)

        response = client.post("/merge", params={"owner": "octo", "repo": "widgets"})

        assert response.status_code == 200

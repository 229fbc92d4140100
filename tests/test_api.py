from fastapi.testclient import TestClient

from funnel_builder.db.deps import get_session
from funnel_builder.main import app


def test_protected_routes_require_user_header():
    app.dependency_overrides.clear()
    with TestClient(app) as client:
        resp = client.get("/projects")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Missing user context"


def test_health_endpoints():
    with TestClient(app) as client:
        health = client.get("/health")
        db_health = client.get("/health/db")

    assert health.status_code == 200
    assert health.json() == {"ok": True}
    assert db_health.status_code == 200
    assert db_health.json() == {"db": "ok"}


def test_user_header_scopes_projects(db_session):
    app.dependency_overrides.clear()

    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    try:
        with TestClient(app) as client:
            created = client.post("/projects", headers={"X-User-Id": "alice"}, json={"name": "Alice Funnel"})
            assert created.status_code == 201
            project_id = created.json()["id"]

            own = client.get(f"/projects/{project_id}", headers={"X-User-Id": "alice"})
            other = client.get(f"/projects/{project_id}", headers={"X-User-Id": "bob"})
            bob_list = client.get("/projects", headers={"X-User-Id": "bob"})

        assert own.status_code == 200
        assert own.json()["user_id"] == "alice"
        assert other.status_code == 404
        assert other.json()["detail"] == "Funnel not found"
        assert bob_list.json() == []
    finally:
        app.dependency_overrides.clear()


def test_malformed_identifiers_are_rejected(api_client):
    resp = api_client.get("/projects/not-a-uuid")
    assert resp.status_code == 422

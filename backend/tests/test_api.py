"""Tests for the FastAPI host facade."""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import main
from main import app
from tfs_provider.models.tfs_models import Project, Release
from tfs_provider.services.execution_provider import ExecutionProvider
from tfs_provider.services.request_provider import RequestProvider
from tfs_provider.services.tfs_client import TFSClientError

client = TestClient(app)


@pytest.fixture
def tfs(monkeypatch, app_settings):
    """Providers built by the app share one mocked TFSClient."""
    tfs_client = MagicMock()
    monkeypatch.setitem(main.PROVIDERS, "request", lambda: RequestProvider(tfs_client, app_settings))
    monkeypatch.setitem(main.PROVIDERS, "execution", lambda: ExecutionProvider(tfs_client, app_settings))
    return tfs_client


def test_health_returns_200():
    """GET /health returns 200 and status ok."""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_list_operations(tfs):
    r = client.get("/providers/request/services")
    assert r.status_code == 200
    names = [op["name"] for op in r.json()["operations"]]
    assert "findRequests" in names
    assert "project" in names
    tfs.close.assert_called_once()


def test_unknown_provider_is_404():
    r = client.get("/providers/nope/services")
    assert r.status_code == 404


def test_field_values(tfs):
    tfs.list_projects.return_value = [Project(id="p1", title="Alpha")]
    r = client.post("/providers/request/fields/project", json=[])
    assert r.status_code == 200
    assert r.json()["values"][0] == {"value": "p1", "label": "Alpha", "description": "Alpha"}


def test_missing_property_is_400(tfs):
    r = client.post("/providers/request/fields/query", json=[])
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required property: project"


def test_client_error_is_400(tfs):
    tfs.list_projects.side_effect = TFSClientError("Server not available")
    r = client.post("/providers/request/fields/project", json=[])
    assert r.status_code == 400
    assert r.json()["detail"] == "Server not available"


def test_find_requests_service(tfs):
    tfs.list_work_items.return_value = []
    body = {"properties": [{"name": "project", "value": "p1"}, {"name": "query", "value": "q1"}]}
    r = client.post("/providers/request/services/findRequests", json=body)
    assert r.status_code == 200
    assert r.json() == []


def test_execute_deploy_release(tfs):
    tfs.deploy_release.return_value = Release(id="10")
    tfs.get_release_environment_status.return_value = "inProgress"
    body = {
        "action": "deployRelease",
        "task_title": "Deploy",
        "properties": [
            {"name": "project", "value": "p1"},
            {"name": "releaseDefinition", "value": "2"},
            {"name": "release", "value": 5},
            {"name": "environment", "value": 10},
        ],
    }
    r = client.post("/providers/execution/execute", json=body)
    assert r.status_code == 200
    data = r.json()
    assert data["execution_id"] == "vsrm-5-10"
    assert data["status"] == "COMPLETED"


def test_execute_unknown_action_is_400(tfs):
    r = client.post("/providers/execution/execute", json={"action": "rollback"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Unsupported action: rollback"

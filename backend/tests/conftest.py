"""Pytest configuration and fixtures."""
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Make sure backend is on the path
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests that need a live TFS server (.env credentials)")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)


def make_response(status_code: int = 200, payload=None, text: str | None = None, reason: str = "OK"):
    """Stand-in for requests.Response with the attributes the client reads."""
    r = MagicMock()
    r.status_code = status_code
    r.reason = reason
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    r.text = text
    return r


@pytest.fixture
def connection_config():
    from tfs_provider.services.tfs_client import ConnectionConfig
    return ConnectionConfig(
        tfs_url="http://tfs:8080/tfs",
        tfs_api_version="1.0",
        vsrm_url="http://tfs.vsrm",
        vsrm_api_version="3.0-preview.1",
        tfs_build_api_version="2.0",
        collection="DefaultCollection",
        username="svc",
        password="secret",
    )


@pytest.fixture
def tfs_client(connection_config):
    """TFSClient whose HTTP session is a MagicMock."""
    from tfs_provider.services.tfs_client import TFSClient
    client = TFSClient(connection_config)
    client.session = MagicMock()
    return client


@pytest.fixture
def app_settings():
    from tfs_provider.config import Settings
    return Settings(
        TFS_URL="http://tfs:8080/tfs",
        TFS_COLLECTION="DefaultCollection",
        REQUEST_RESULT_LIMIT=50,
        DEPLOY_UNIT_RESULT_LIMIT=25,
        EXECUTION_ACTION_WAIT_FOR_CALLBACK=False,
    )


@pytest.fixture
def mock_client():
    return MagicMock()

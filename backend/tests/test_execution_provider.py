"""Unit tests for ExecutionProvider with a mocked TFSClient."""
import pytest

from tfs_provider.config import Settings
from tfs_provider.models.provider_models import ExecutionStatus, Field, ProviderError, ServiceRequest
from tfs_provider.models.tfs_models import Build, Environment, Release
from tfs_provider.services.execution_provider import ExecutionProvider
from tfs_provider.services.tfs_client import TFSClientError

DEPLOY_PROPS = [
    Field(name="project", value="p1"),
    Field(name="releaseDefinition", value="2"),
    Field(name="release", value="5"),
    Field(name="environment", value="10"),
]

RELEASE_URL = (
    "http://tfs:8080/tfs/DefaultCollection/p1/_apps/hub/ms.vss-releaseManagement-web.hub-explorer"
    "?definitionId=2&_a=release-summary&releaseId=5"
)


@pytest.fixture
def provider(mock_client, app_settings):
    return ExecutionProvider(client=mock_client, app_settings=app_settings)


def test_deploy_release(provider, mock_client):
    mock_client.deploy_release.return_value = Release(id="10", title="Prod")
    mock_client.get_release_environment_status.return_value = "inProgress"
    info = provider.execute("deployRelease", "Deploy web", "", DEPLOY_PROPS)
    mock_client.deploy_release.assert_called_once_with("p1", "5", "10")
    mock_client.get_release_environment_status.assert_called_once_with("p1", "5", "10")
    assert info.execution_id == "vsrm-5-10"
    assert info.message == "Release: 5, Environment 10"
    assert info.execution_url == RELEASE_URL
    assert info.status == ExecutionStatus.COMPLETED


def test_deploy_release_pending_when_waiting_for_callback(mock_client):
    settings = Settings(_env_file=None, TFS_URL="http://tfs:8080/tfs", EXECUTION_ACTION_WAIT_FOR_CALLBACK="true")
    provider = ExecutionProvider(client=mock_client, app_settings=settings)
    mock_client.deploy_release.return_value = Release(id="10")
    mock_client.get_release_environment_status.return_value = "unknown"
    assert provider.execute("deployRelease", None, None, DEPLOY_PROPS).status == ExecutionStatus.PENDING


def test_deploy_release_failure_keeps_url(provider, mock_client):
    mock_client.deploy_release.side_effect = TFSClientError("Server not available")
    info = provider.execute("deployRelease", None, None, DEPLOY_PROPS)
    assert info.status == ExecutionStatus.FAILED
    assert info.message == "Error starting deployment of Release"
    assert info.execution_url == RELEASE_URL
    assert info.execution_id is None


def test_deploy_release_missing_environment(provider, mock_client):
    with pytest.raises(ProviderError) as exc:
        provider.execute("deployRelease", None, None, DEPLOY_PROPS[:3])
    assert exc.value.message == "Missing required property: environment"
    mock_client.deploy_release.assert_not_called()


def test_queue_build(provider, mock_client):
    mock_client.queue_build.return_value = Build(id="55", build_number="20160502.1")
    props = [Field(name="project", value="p1"), Field(name="buildDefinition", value="9"), Field(name="buildQueue", value="3")]
    info = provider.execute("queueBuild", None, None, props)
    mock_client.queue_build.assert_called_once_with("p1", "9", "3", None)
    assert info.execution_id == "build-55"
    assert info.message == "Build: 20160502.1, Definition 9"
    assert info.execution_url == "http://tfs:8080/tfs/DefaultCollection/p1/_build?_a=summary&buildId=55"
    assert info.status == ExecutionStatus.COMPLETED


def test_queue_build_failure(provider, mock_client):
    mock_client.queue_build.side_effect = TFSClientError("TFS: Bad request. nope", 400)
    props = [Field(name="project", value="p1"), Field(name="buildDefinition", value="9")]
    assert provider.execute("queueBuild", None, None, props).status == ExecutionStatus.FAILED


def test_unknown_action(provider):
    with pytest.raises(ProviderError) as exc:
        provider.execute("rollback", None, None, [])
    assert exc.value.message == "Unsupported action: rollback"


def test_validate_cancel_retry(provider, mock_client):
    assert provider.validate("deployRelease", None, None, []).valid is True
    assert provider.validate("deployRelease", None, None, []).message == "task is valid"
    assert provider.cancel("deployRelease", None, None, []).status == ExecutionStatus.FAILED
    mock_client.deploy_release.return_value = Release(id="10")
    mock_client.get_release_environment_status.return_value = "queued"
    assert provider.retry("deployRelease", None, None, DEPLOY_PROPS).execution_id == "vsrm-5-10"


def test_services_route_through_registry(provider):
    info = provider.call_service("validate", ServiceRequest(action="queueBuild"))
    assert info.valid is True


def test_environment_values(provider, mock_client):
    mock_client.get_release.return_value = Release(
        id="5", environments=[Environment(id="10", title="QA"), Environment(id="11", title="Prod")]
    )
    info = provider.get_field_values("environment", DEPLOY_PROPS)
    mock_client.get_release.assert_called_once_with("p1", "5")
    assert [v.value for v in info.values] == ["10", "11"]


def test_environment_values_unknown_environments(provider, mock_client):
    mock_client.get_release.return_value = Release(id="5")
    assert provider.get_field_values("environment", DEPLOY_PROPS) is None


def test_unknown_field_returns_none(provider):
    assert provider.get_field_values("query") is None

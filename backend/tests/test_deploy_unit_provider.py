"""Unit tests for DeployUnitProvider with a mocked TFSClient."""
import pytest

from tfs_provider.models.provider_models import Field, ProviderError
from tfs_provider.models.tfs_models import Build, BuildDefinition, BuildQueue
from tfs_provider.services.deploy_unit_provider import DeployUnitProvider, parse_build_specification
from tfs_provider.services.tfs_client import TFSClientError


@pytest.fixture
def provider(mock_client, app_settings):
    return DeployUnitProvider(client=mock_client, app_settings=app_settings)


def test_parse_build_specification():
    assert parse_build_specification("p1:55") == ("p1", "55")


@pytest.mark.parametrize("spec", ["p1", "p1:", ":55", "a:b:c", ""])
def test_parse_build_specification_invalid(spec):
    with pytest.raises(ProviderError) as exc:
        parse_build_specification(spec)
    assert exc.value.message == "Invalid build specification: buildSpecification"


def test_find_deploy_units(provider, mock_client):
    mock_client.list_builds.return_value = [
        Build(id="55", build_number="20160502.1", state="completed", build_result="succeeded",
              definition=BuildDefinition(id="9", title="CI")),
    ]
    properties = [
        Field(name="project", value="p1", display_value="My Project"),
        Field(name="buildDefinition", value="9"),
        Field(name="buildStatusFilter", value="completed"),
        Field(name="buildStatusFilter", value="inProgress"),
        Field(name="buildResultFilter", value="succeeded"),
    ]
    units = provider.find_deploy_units(properties)
    mock_client.list_builds.assert_called_once_with("p1", "9", "completed,inProgress", "succeeded", 25)
    unit = units[0]
    assert unit.id == "p1:55"
    assert unit.title == "My Project:20160502.1"
    assert unit.type == "Build"
    assert unit.url == "http://tfs:8080/tfs/DefaultCollection/p1/_build?_a=summary&buildId=55"
    assert {f.name: f.value for f in unit.properties} == {
        "status": "completed",
        "result": "succeeded",
        "buildDefinition": "CI",
    }


def test_find_deploy_units_needs_definition(provider, mock_client):
    with pytest.raises(ProviderError) as exc:
        provider.find_deploy_units([Field(name="project", value="p1")])
    assert exc.value.message == "Missing required property: buildDefinition"


def test_get_deploy_unit(provider, mock_client):
    mock_client.get_build.return_value = Build(id="55", build_number="20160502.1")
    unit = provider.get_deploy_unit([Field(name="buildSpecification", value="p1:55")])
    mock_client.get_build.assert_called_once_with("p1", "55")
    assert unit.id == "p1:55"
    assert unit.title == "20160502.1"


def test_get_deploy_unit_client_error_propagates(provider, mock_client):
    mock_client.get_build.side_effect = TFSClientError("TFS: Request URL not found.", 404)
    with pytest.raises(ProviderError) as exc:
        provider.get_deploy_unit([Field(name="buildSpecification", value="p1:55")])
    assert exc.value.message == "TFS: Request URL not found."


def test_unknown_field_returns_none(provider):
    assert provider.get_field_values("release") is None


def test_filter_getters_use_settings(provider):
    info = provider.get_field_values("buildResultFilter")
    assert [v.value for v in info.values] == ["succeeded", "partiallySucceeded", "failed", "canceled"]
    assert "notStarted" in [v.value for v in provider.get_field_values("buildStatusFilter").values]


def test_queue_type_values(provider):
    assert [v.value for v in provider.get_field_values("queueType").values] == ["buildController", "agentPool"]


def test_build_queue_values_pass_queue_type(provider, mock_client):
    mock_client.list_build_queues.return_value = [BuildQueue(id="3", title="Hosted", type="agentPool")]
    info = provider.get_field_values("buildQueue", [Field(name="queueType", value="agentPool")])
    mock_client.list_build_queues.assert_called_once_with("agentPool", None)
    assert info.values[0].label == "Hosted"

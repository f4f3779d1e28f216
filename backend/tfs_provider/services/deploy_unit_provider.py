"""Deployment unit provider: TFS builds exposed to the host as deployable units."""
import logging

from tfs_provider.models.provider_models import Field, ProviderError, ProviderInfo
from tfs_provider.models.tfs_models import Build
from tfs_provider.services.base_provider import (
    BUILD_DEFINITION,
    BUILD_QUEUE,
    BUILD_RESULT_FILTER,
    BUILD_STATUS_FILTER,
    PROJECT,
    QUEUE_TYPE,
    BaseProvider,
    Operation,
    param,
)
from tfs_provider.utils.field_utils import (
    add_field,
    build_summary_url,
    display_value,
    join_values,
    require_value,
)

logger = logging.getLogger(__name__)

FIND_DEPLOY_UNITS = "findDeployUnits"
GET_DEPLOY_UNIT = "getDeployUnit"
BUILD_SPECIFICATION = "buildSpecification"
BUILD_TYPE = "Build"


def parse_build_specification(spec: str | None) -> tuple[str, str]:
    """
    Split a deploy unit id "projectId:buildId".

    Raises:
        ProviderError: not exactly two non-empty parts.
    """
    parts = (spec or "").split(":")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ProviderError(f"Invalid build specification: {BUILD_SPECIFICATION}")
    return parts[0].strip(), parts[1].strip()


class DeployUnitProvider(BaseProvider):
    """Lists builds of a definition and resolves single builds."""

    getter_names = (PROJECT, BUILD_DEFINITION, BUILD_QUEUE, QUEUE_TYPE, BUILD_STATUS_FILTER, BUILD_RESULT_FILTER)

    @property
    def name(self) -> str:
        return self.settings.DEPLOY_UNIT_PROVIDER_NAME

    @property
    def description(self) -> str:
        return self.settings.DEPLOY_UNIT_PROVIDER_DESCRIPTION

    def register_operations(self) -> None:
        self.register_service(Operation(
            FIND_DEPLOY_UNITS,
            "Find Builds",
            lambda request: self.find_deploy_units(request.properties),
            "Find builds of a build definition",
            (
                param(PROJECT, "Project"),
                param(BUILD_DEFINITION, "Build Definition"),
                param(BUILD_STATUS_FILTER, "Build Status Filter", required=False),
                param(BUILD_RESULT_FILTER, "Build Result Filter", required=False),
            ),
        ))
        self.register_service(Operation(
            GET_DEPLOY_UNIT,
            "Get Build",
            lambda request: self.get_deploy_unit(request.properties),
            "Get a build from its specification (projectId:buildId)",
            (param(BUILD_SPECIFICATION, "Build Specification"),),
        ))

    def find_deploy_units(self, properties: list[Field]) -> list[ProviderInfo]:
        project = require_value(properties, PROJECT)
        project_name = display_value(properties, PROJECT) or project
        definition = require_value(properties, BUILD_DEFINITION)
        status_filter = join_values(properties, BUILD_STATUS_FILTER)
        result_filter = join_values(properties, BUILD_RESULT_FILTER)
        limit = self.settings.DEPLOY_UNIT_RESULT_LIMIT
        logger.info(
            "Finding TFS builds (project=%s, definition=%s, status=%s, result=%s)",
            project, definition, status_filter, result_filter,
        )
        builds = self._call(
            "Builds", self.client.list_builds, project, definition, status_filter, result_filter, limit
        )
        return [
            self._to_provider_info(build, project, title=f"{project_name}:{build.build_number}")
            for build in builds
        ]

    def get_deploy_unit(self, properties: list[Field]) -> ProviderInfo | None:
        spec = require_value(properties, BUILD_SPECIFICATION)
        project, build_id = parse_build_specification(spec)
        build = self._call("Build", self.client.get_build, project, build_id)
        if build is None:
            return None
        return self._to_provider_info(build, project)

    def _to_provider_info(self, build: Build, project: str, title: str | None = None) -> ProviderInfo:
        properties: list[Field] = []
        add_field(properties, "status", "Status", build.state)
        add_field(properties, "result", "Result", build.build_result)
        if build.definition is not None:
            add_field(properties, BUILD_DEFINITION, "Build Definition", build.definition.title)
        return ProviderInfo(
            id=f"{project}:{build.id}",
            name=build.build_number,
            type=BUILD_TYPE,
            title=title or build.build_number,
            description=build.build_number,
            url=build_summary_url(self.settings.TFS_URL, self.settings.TFS_COLLECTION, project, build.id),
            properties=properties,
        )

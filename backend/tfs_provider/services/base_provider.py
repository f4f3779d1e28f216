"""Base for the TFS providers: shared field getters and the explicit operation registry."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar

from tfs_provider.config import Settings, settings as default_settings
from tfs_provider.models.provider_models import (
    Field,
    FieldInfo,
    FieldValueInfo,
    OperationInfo,
    ParamInfo,
    ProviderError,
    ServiceRequest,
)
from tfs_provider.models.tfs_models import TFSObject
from tfs_provider.services.tfs_client import TFSClient, TFSClientError
from tfs_provider.utils.field_utils import optional_value, require_value, split_filter_values

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Property / getter names shared with the host
PROJECT = "project"
QUERY = "query"
RELEASE_DEFINITION = "releaseDefinition"
RELEASE = "release"
ENVIRONMENT = "environment"
BUILD_DEFINITION = "buildDefinition"
BUILD_QUEUE = "buildQueue"
QUEUE_TYPE = "queueType"
BUILD_STATUS_FILTER = "buildStatusFilter"
BUILD_RESULT_FILTER = "buildResultFilter"

SHARED_QUERIES_FOLDER = "Shared Queries"
QUEUE_TYPES = ("buildController", "agentPool")

GETTER = "getter"
SERVICE = "service"
ACTION = "action"


@dataclass(frozen=True)
class Operation:
    """Registered getter, service or action: public metadata plus the handler it routes to."""

    name: str
    display_name: str
    handler: Callable[..., Any]
    description: str = ""
    params: tuple[ParamInfo, ...] = ()

    def info(self, kind: str) -> OperationInfo:
        return OperationInfo(
            name=self.name,
            kind=kind,
            display_name=self.display_name,
            description=self.description,
            params=list(self.params),
        )


def param(field_name: str, display_name: str, required: bool = True) -> ParamInfo:
    return ParamInfo(field_name=field_name, display_name=display_name, required=required)


class BaseProvider:
    """
    Getters common to every TFS provider and name-based routing.

    Subclasses list the shared getters they expose in `getter_names` and add
    their own services/actions in `register_operations`.
    """

    getter_names: tuple[str, ...] = ()

    def __init__(self, client: TFSClient | None = None, app_settings: Settings | None = None) -> None:
        self.settings = app_settings or default_settings
        self.client = client or TFSClient(self.settings.connection_config())
        self.getters: dict[str, Operation] = {}
        self.services: dict[str, Operation] = {}
        self.actions: dict[str, Operation] = {}
        shared = self._shared_getters()
        for name in self.getter_names:
            self._register(self.getters, shared[name])
        self.register_operations()

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def description(self) -> str:
        return ""

    def register_operations(self) -> None:
        """Hook for subclasses to fill `services` and `actions`."""

    @staticmethod
    def _register(registry: dict[str, Operation], operation: Operation) -> None:
        registry[operation.name.lower()] = operation

    def register_service(self, operation: Operation) -> None:
        self._register(self.services, operation)

    def register_action(self, operation: Operation) -> None:
        self._register(self.actions, operation)

    def close(self) -> None:
        self.client.close()

    # Routing

    def list_operations(self) -> list[OperationInfo]:
        return (
            [op.info(GETTER) for op in self.getters.values()]
            + [op.info(SERVICE) for op in self.services.values()]
            + [op.info(ACTION) for op in self.actions.values()]
        )

    def get_field_values(self, field_name: str, properties: list[Field] | None = None) -> Optional[FieldInfo]:
        """Values for a host field, dispatched case-insensitively to the registered getter."""
        operation = self.getters.get((field_name or "").lower())
        if operation is None:
            return self.unsupported_field(field_name)
        return operation.handler(field_name, properties or [])

    def unsupported_field(self, field_name: str) -> Optional[FieldInfo]:
        logger.debug("%s has no getter for field %s", self.name, field_name)
        return None

    def call_service(self, service_name: str, request: ServiceRequest) -> Any:
        operation = self.services.get((service_name or "").lower())
        if operation is None:
            raise ProviderError(f"Unsupported service: {service_name}")
        return operation.handler(request)

    # Helpers

    def _call(self, what: str, fn: Callable[..., T], *args: Any) -> T:
        """Run a client call, turning TFSClientError into ProviderError."""
        try:
            return fn(*args)
        except TFSClientError as e:
            logger.error("Unable to retrieve TFS %s: %s", what, e.message)
            raise ProviderError(e.message) from e

    @staticmethod
    def _field_info(field_name: str, records: Iterable[TFSObject] | None) -> Optional[FieldInfo]:
        values = [
            FieldValueInfo(value=record.id or record.title, label=record.title, description=record.title)
            for record in records or ()
        ]
        if not values:
            return None
        return FieldInfo(field_name=field_name, values=values)

    @staticmethod
    def _static_field_info(field_name: str, values: Iterable[str]) -> Optional[FieldInfo]:
        items = [FieldValueInfo(value=value, label=value) for value in values]
        if not items:
            return None
        return FieldInfo(field_name=field_name, values=items)

    # Shared getters

    def _shared_getters(self) -> dict[str, Operation]:
        return {
            PROJECT: Operation(PROJECT, "Project", self.get_project_values, "TFS team projects"),
            QUERY: Operation(
                QUERY, "Query", self.get_query_values, "Shared queries of a project",
                (param(PROJECT, "Project"),),
            ),
            RELEASE_DEFINITION: Operation(
                RELEASE_DEFINITION, "Release Definition", self.get_release_definition_values,
                "Release definitions of a project", (param(PROJECT, "Project"),),
            ),
            RELEASE: Operation(
                RELEASE, "Release", self.get_release_values, "Releases of a release definition",
                (param(PROJECT, "Project"), param(RELEASE_DEFINITION, "Release Definition")),
            ),
            ENVIRONMENT: Operation(
                ENVIRONMENT, "Environment", self.get_environment_values, "Environments of a release",
                (param(PROJECT, "Project"), param(RELEASE, "Release")),
            ),
            BUILD_DEFINITION: Operation(
                BUILD_DEFINITION, "Build Definition", self.get_build_definition_values,
                "Build definitions of a project", (param(PROJECT, "Project"),),
            ),
            BUILD_QUEUE: Operation(
                BUILD_QUEUE, "Build Queue", self.get_build_queue_values, "Build queues",
                (param(QUEUE_TYPE, "Queue Type", required=False),),
            ),
            QUEUE_TYPE: Operation(QUEUE_TYPE, "Queue Type", self.get_queue_type_values, "Build queue types"),
            BUILD_STATUS_FILTER: Operation(
                BUILD_STATUS_FILTER, "Build Status Filter", self.get_build_status_filter_values,
                "Build status filter values",
            ),
            BUILD_RESULT_FILTER: Operation(
                BUILD_RESULT_FILTER, "Build Result Filter", self.get_build_result_filter_values,
                "Build result filter values",
            ),
        }

    def get_project_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        return self._field_info(field_name, self._call("Projects", self.client.list_projects))

    def get_query_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        project = require_value(properties, PROJECT)
        queries = self._call("Queries", self.client.list_queries, project, SHARED_QUERIES_FOLDER)
        return self._field_info(field_name, queries)

    def get_release_definition_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        project = require_value(properties, PROJECT)
        definitions = self._call("Release Definitions", self.client.list_release_definitions, project)
        return self._field_info(field_name, definitions)

    def get_release_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        project = require_value(properties, PROJECT)
        release_definition = require_value(properties, RELEASE_DEFINITION)
        releases = self._call("Releases", self.client.list_releases, project, release_definition)
        return self._field_info(field_name, releases)

    def get_environment_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        project = require_value(properties, PROJECT)
        release_id = require_value(properties, RELEASE)
        release = self._call("Release", self.client.get_release, project, release_id)
        return self._field_info(field_name, release.environments if release else None)

    def get_build_definition_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        project = require_value(properties, PROJECT)
        definitions = self._call("Build Definitions", self.client.list_build_definitions, project, None)
        return self._field_info(field_name, definitions)

    def get_build_queue_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        queue_type = optional_value(properties, QUEUE_TYPE)
        queues = self._call("Build Queues", self.client.list_build_queues, queue_type, None)
        return self._field_info(field_name, queues)

    def get_queue_type_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        return self._static_field_info(field_name, QUEUE_TYPES)

    def get_build_status_filter_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        return self._static_field_info(field_name, split_filter_values(self.settings.BUILD_STATUS_FILTER))

    def get_build_result_filter_values(self, field_name: str, properties: list[Field]) -> Optional[FieldInfo]:
        return self._static_field_info(field_name, split_filter_values(self.settings.BUILD_RESULT_FILTER))

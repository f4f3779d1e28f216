"""Execution provider: deploys TFS releases and queues builds on behalf of host tasks."""
import logging

from tfs_provider.models.provider_models import (
    ExecutionInfo,
    ExecutionStatus,
    Field,
    ProviderError,
    ServiceRequest,
)
from tfs_provider.services.base_provider import (
    BUILD_DEFINITION,
    BUILD_QUEUE,
    ENVIRONMENT,
    PROJECT,
    QUEUE_TYPE,
    RELEASE,
    RELEASE_DEFINITION,
    BaseProvider,
    Operation,
    param,
)
from tfs_provider.services.tfs_client import TFSClientError
from tfs_provider.utils.field_utils import (
    build_summary_url,
    optional_value,
    release_summary_url,
    require_value,
)

logger = logging.getLogger(__name__)

DEPLOY_RELEASE = "deployRelease"
QUEUE_BUILD = "queueBuild"
BRANCH = "branch"

EXECUTE = "execute"
VALIDATE = "validate"
CANCEL = "cancel"
RETRY = "retry"


class ExecutionProvider(BaseProvider):
    """Runs deployRelease and queueBuild actions; execute/validate/cancel/retry are its services."""

    getter_names = (PROJECT, RELEASE_DEFINITION, RELEASE, ENVIRONMENT, BUILD_DEFINITION, BUILD_QUEUE, QUEUE_TYPE)

    @property
    def name(self) -> str:
        return self.settings.EXECUTION_PROVIDER_NAME

    @property
    def description(self) -> str:
        return self.settings.EXECUTION_PROVIDER_DESCRIPTION

    def register_operations(self) -> None:
        self.register_action(Operation(
            DEPLOY_RELEASE,
            "Deploy Release",
            self.deploy_release,
            "Start deployment of a release to an environment",
            (
                param(PROJECT, "Project"),
                param(RELEASE_DEFINITION, "Release Definition"),
                param(RELEASE, "Release"),
                param(ENVIRONMENT, "Environment"),
            ),
        ))
        self.register_action(Operation(
            QUEUE_BUILD,
            "Queue Build",
            self.queue_build,
            "Queue a build of a build definition",
            (
                param(PROJECT, "Project"),
                param(BUILD_DEFINITION, "Build Definition"),
                param(BUILD_QUEUE, "Build Queue", required=False),
                param(BRANCH, "Source Branch", required=False),
            ),
        ))
        for name, handler in (
            (EXECUTE, self.execute),
            (VALIDATE, self.validate),
            (CANCEL, self.cancel),
            (RETRY, self.retry),
        ):
            self.register_service(Operation(name, name.capitalize(), self._service_handler(handler)))

    @staticmethod
    def _service_handler(handler):
        def call(request: ServiceRequest) -> ExecutionInfo:
            return handler(request.action, request.task_title, request.task_description, request.properties)

        return call

    # Services

    def execute(
        self, action: str | None, task_title: str | None, task_description: str | None, properties: list[Field]
    ) -> ExecutionInfo:
        operation = self.actions.get((action or "").lower())
        if operation is None:
            raise ProviderError(f"Unsupported action: {action}")
        logger.info("Executing %s for task %r", operation.name, task_title)
        return operation.handler(properties or [])

    def validate(
        self, action: str | None, task_title: str | None, task_description: str | None, properties: list[Field]
    ) -> ExecutionInfo:
        return ExecutionInfo(message="task is valid", valid=True)

    def cancel(
        self, action: str | None, task_title: str | None, task_description: str | None, properties: list[Field]
    ) -> ExecutionInfo:
        logger.warning("Cancel requested for %s (task %r); not supported", action, task_title)
        return ExecutionInfo(
            message=f"Cancel is not supported for action: {action}",
            status=ExecutionStatus.FAILED,
        )

    def retry(
        self, action: str | None, task_title: str | None, task_description: str | None, properties: list[Field]
    ) -> ExecutionInfo:
        return self.execute(action, task_title, task_description, properties)

    # Actions

    def _submitted_status(self) -> ExecutionStatus:
        if self.settings.EXECUTION_ACTION_WAIT_FOR_CALLBACK:
            return ExecutionStatus.PENDING
        return ExecutionStatus.COMPLETED

    def deploy_release(self, properties: list[Field]) -> ExecutionInfo:
        project = require_value(properties, PROJECT)
        release_definition = require_value(properties, RELEASE_DEFINITION)
        release_id = require_value(properties, RELEASE)
        environment_id = require_value(properties, ENVIRONMENT)
        url = release_summary_url(
            self.settings.TFS_URL, self.settings.TFS_COLLECTION, project, release_definition, release_id
        )
        try:
            release = self.client.deploy_release(project, release_id, environment_id)
            if release is None:
                return ExecutionInfo(
                    message="Unable to start deployment of Release",
                    status=ExecutionStatus.FAILED,
                    execution_url=url,
                )
            status = self.client.get_release_environment_status(project, release_id, environment_id)
        except TFSClientError as e:
            logger.error("Error starting deployment of Release %s: %s", release_id, e.message)
            return ExecutionInfo(
                message="Error starting deployment of Release",
                status=ExecutionStatus.FAILED,
                execution_url=url,
            )
        logger.info("Release %s environment %s deployment status: %s", release_id, environment_id, status)
        return ExecutionInfo(
            message=f"Release: {release_id}, Environment {environment_id}",
            status=self._submitted_status(),
            execution_id=f"vsrm-{release_id}-{environment_id}",
            execution_url=url,
        )

    def queue_build(self, properties: list[Field]) -> ExecutionInfo:
        project = require_value(properties, PROJECT)
        definition = require_value(properties, BUILD_DEFINITION)
        queue = optional_value(properties, BUILD_QUEUE)
        branch = optional_value(properties, BRANCH)
        try:
            build = self.client.queue_build(project, definition, queue, branch)
        except TFSClientError as e:
            logger.error("Error queueing Build for definition %s: %s", definition, e.message)
            return ExecutionInfo(message="Error queueing Build", status=ExecutionStatus.FAILED)
        if build is None:
            return ExecutionInfo(message="Unable to queue Build", status=ExecutionStatus.FAILED)
        return ExecutionInfo(
            message=f"Build: {build.build_number}, Definition {definition}",
            status=self._submitted_status(),
            execution_id=f"build-{build.id}",
            execution_url=build_summary_url(
                self.settings.TFS_URL, self.settings.TFS_COLLECTION, project, build.id
            ),
        )

"""Request provider: TFS work items exposed to the host as requests."""
import logging
from typing import Optional

from tfs_provider.models.provider_models import Field, FieldInfo, ProviderError, ProviderInfo
from tfs_provider.models.tfs_models import WorkItem
from tfs_provider.services.base_provider import PROJECT, QUERY, BaseProvider, Operation, param
from tfs_provider.utils.field_utils import add_field, optional_value, require_value, work_item_ui_url

logger = logging.getLogger(__name__)

FIND_REQUESTS = "findRequests"
GET_REQUEST = "getRequest"
TITLE_FILTER = "titleFilter"
REQUEST_ID = "requestId"


class RequestProvider(BaseProvider):
    """Finds work items through a shared query and reads single work items."""

    getter_names = (PROJECT, QUERY)

    @property
    def name(self) -> str:
        return self.settings.REQUEST_PROVIDER_NAME

    @property
    def description(self) -> str:
        return self.settings.REQUEST_PROVIDER_DESCRIPTION

    def register_operations(self) -> None:
        self.register_service(Operation(
            FIND_REQUESTS,
            "Find Work Items",
            lambda request: self.find_requests(request.properties),
            "Find TFS work items returned by a shared query",
            (param(PROJECT, "Project"), param(QUERY, "Query"), param(TITLE_FILTER, "Title Filter", required=False)),
        ))
        self.register_service(Operation(
            GET_REQUEST,
            "Get Work Item",
            lambda request: self.get_request(request.properties),
            "Get a TFS work item by id",
            (param(REQUEST_ID, "Work Item Id"),),
        ))

    def unsupported_field(self, field_name: str) -> Optional[FieldInfo]:
        raise ProviderError(f"Unsupported get values for field name: {field_name}")

    def find_requests(self, properties: list[Field]) -> list[ProviderInfo]:
        project = require_value(properties, PROJECT)
        query = require_value(properties, QUERY)
        title_filter = optional_value(properties, TITLE_FILTER)
        limit = self.settings.REQUEST_RESULT_LIMIT
        logger.info("Finding TFS work items (project=%s, query=%s, limit=%s)", project, query, limit)
        work_items = self._call("Work Items", self.client.list_work_items, query, title_filter, limit)
        return [self._to_provider_info(item) for item in work_items]

    def get_request(self, properties: list[Field]) -> ProviderInfo:
        request_id = require_value(properties, REQUEST_ID)
        work_item = self._call("Work Item", self.client.get_work_item, request_id)
        if work_item is None:
            raise ProviderError(f"Unable to find work item: {request_id}")
        return self._to_provider_info(work_item)

    def _to_provider_info(self, work_item: WorkItem) -> ProviderInfo:
        properties: list[Field] = []
        add_field(properties, "project", "Project", work_item.project)
        add_field(properties, "owner", "Owner", work_item.assigned_to)
        add_field(properties, "status", "Status", work_item.state)
        add_field(properties, "severity", "Severity", work_item.severity)
        add_field(properties, "creator", "Creator", work_item.created_by)
        add_field(properties, "dateCreated", "Date Created", work_item.date_created)
        add_field(properties, "lastUpdated", "Last Updated", work_item.date_changed)
        return ProviderInfo(
            id=work_item.id,
            name=work_item.title,
            type=work_item.type,
            title=work_item.title,
            description=work_item.description or work_item.title,
            url=work_item_ui_url(self.settings.TFS_URL, work_item.project, work_item.id),
            properties=properties,
        )

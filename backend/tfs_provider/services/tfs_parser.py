"""Conversion of TFS/VSRM JSON payloads into the entities in tfs_models.

Every function accepts raw JSON text or an already decoded object. Unreadable
input is logged and yields an empty list (collections) or None (single objects);
absent keys become None on the record.
"""
import json
import logging
from typing import Any, Optional

from tfs_provider.models.tfs_models import (
    Build,
    BuildDefinition,
    BuildQueue,
    Environment,
    Project,
    Query,
    Release,
    ReleaseDefinition,
    WorkItem,
)

logger = logging.getLogger(__name__)

# Work item fields copied onto WorkItem; anything else in "fields" is ignored.
WORK_ITEM_FIELD_MAP: dict[str, str] = {
    "System.Title": "title",
    "System.Description": "description",
    "System.TeamProject": "project",
    "System.State": "state",
    "System.WorkItemType": "type",
    "System.CreatedDate": "date_created",
    "System.CreatedBy": "created_by",
    "System.ChangedDate": "date_changed",
    "System.ChangedBy": "changed_by",
    "System.AreaPath": "area_path",
    "System.IterationPath": "iteration_path",
    "System.Reason": "reason",
    "Microsoft.VSTS.Common.Severity": "severity",
}

FLAT_QUERY_TYPE = "flat"


def _load(doc: Any) -> Any:
    if isinstance(doc, (str, bytes, bytearray)):
        if not doc.strip():
            return None
        try:
            return json.loads(doc)
        except ValueError as e:
            logger.error("Error while parsing TFS JSON payload: %s", e)
            return None
    return doc


def _object(doc: Any) -> Optional[dict]:
    data = _load(doc)
    return data if isinstance(data, dict) else None


def _items(doc: Any, key: str | None) -> list[dict]:
    data = _load(doc)
    if key is not None:
        data = data.get(key) if isinstance(data, dict) else None
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        # identity reference (newer servers): {"displayName": ..., "uniqueName": ...}
        return _text(value.get("displayName") or value.get("uniqueName"))
    if isinstance(value, str):
        return value
    return str(value)


def _int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_project(doc: Any) -> Optional[Project]:
    data = _object(doc)
    if data is None:
        return None
    return Project(
        id=data.get("id"),
        title=_text(data.get("name")),
        description=_text(data.get("description")),
        url=_text(data.get("url")),
        state=_text(data.get("state")),
        revision=_int(data.get("revision")),
    )


def parse_projects(doc: Any) -> list[Project]:
    return [parse_project(item) for item in _items(doc, "value")]


def parse_query(doc: Any) -> Optional[Query]:
    data = _object(doc)
    if data is None:
        return None
    return Query(
        id=data.get("id"),
        title=_text(data.get("name")),
        path=_text(data.get("path")),
        url=_text(data.get("url")),
        is_folder=bool(data.get("isFolder", False)),
    )


def parse_queries(doc: Any) -> list[Query]:
    """Children of a query folder node."""
    return [parse_query(item) for item in _items(doc, "children")]


def parse_work_item_refs(doc: Any) -> list[WorkItem]:
    """Work item references (id and url) from a WIQL result. Only flat queries are supported."""
    data = _object(doc)
    if data is None:
        return []
    query_type = data.get("queryType")
    if query_type != FLAT_QUERY_TYPE:
        logger.warning("Unsupported TFS query type %r; only flat queries are read", query_type)
        return []
    return [
        WorkItem(id=item.get("id"), url=_text(item.get("url")))
        for item in _items(data, "workItems")
    ]


def parse_work_item(doc: Any) -> Optional[WorkItem]:
    data = _object(doc)
    if data is None:
        return None
    values: dict[str, Any] = {
        "id": data.get("id"),
        "url": _text(data.get("url")),
        "revision": _int(data.get("rev")),
    }
    fields = data.get("fields")
    if isinstance(fields, dict):
        for key, value in fields.items():
            attr = WORK_ITEM_FIELD_MAP.get(key)
            if attr:
                values[attr] = _text(value)
    return WorkItem(**values)


def parse_work_items(doc: Any) -> list[WorkItem]:
    return [parse_work_item(item) for item in _items(doc, "value")]


def parse_build_definition(doc: Any) -> Optional[BuildDefinition]:
    data = _object(doc)
    if data is None:
        return None
    return BuildDefinition(
        id=data.get("id"),
        title=_text(data.get("name")),
        quality=_text(data.get("quality")),
        type=_text(data.get("type")),
        url=_text(data.get("url")),
        revision=_int(data.get("revision")),
    )


def parse_build_definitions(doc: Any) -> list[BuildDefinition]:
    return [parse_build_definition(item) for item in _items(doc, "value")]


def parse_build_queue(doc: Any) -> Optional[BuildQueue]:
    data = _object(doc)
    if data is None:
        return None
    return BuildQueue(
        id=data.get("id"),
        title=_text(data.get("name")),
        type=_text(data.get("queueType") or data.get("type")),
        url=_text(data.get("url")),
    )


def parse_build_queues(doc: Any) -> list[BuildQueue]:
    return [parse_build_queue(item) for item in _items(doc, "value")]


def parse_build(doc: Any) -> Optional[Build]:
    data = _object(doc)
    if data is None:
        return None
    build_number = _text(data.get("buildNumber"))
    return Build(
        id=data.get("id"),
        title=build_number,
        build_number=build_number,
        build_result=_text(data.get("result")),
        state=_text(data.get("status")),
        url=_text(data.get("url")),
        created=_text(data.get("queueTime")),
        definition=parse_build_definition(data.get("definition")),
    )


def parse_builds(doc: Any) -> list[Build]:
    return [parse_build(item) for item in _items(doc, "value")]


def parse_environment(doc: Any) -> Optional[Environment]:
    data = _object(doc)
    if data is None:
        return None
    return Environment(
        id=data.get("id"),
        title=_text(data.get("name")),
        state=_text(data.get("status")),
    )


def parse_environments(doc: Any) -> list[Environment]:
    """Environments arrive as a bare JSON array."""
    return [parse_environment(item) for item in _items(doc, None)]


def _nested_environments(data: dict) -> Optional[list[Environment]]:
    if "environments" not in data or data["environments"] is None:
        return None
    return parse_environments(data["environments"])


def parse_release_definition(doc: Any) -> Optional[ReleaseDefinition]:
    data = _object(doc)
    if data is None:
        return None
    return ReleaseDefinition(
        id=data.get("id"),
        title=_text(data.get("name")),
        url=_text(data.get("url")),
        revision=_int(data.get("revision")),
        project=parse_project(data.get("projectReference")),
        environments=_nested_environments(data),
    )


def parse_release_definitions(doc: Any) -> list[ReleaseDefinition]:
    return [parse_release_definition(item) for item in _items(doc, "value")]


def parse_release(doc: Any) -> Optional[Release]:
    data = _object(doc)
    if data is None:
        return None
    return Release(
        id=data.get("id"),
        title=_text(data.get("name")),
        description=_text(data.get("description")),
        state=_text(data.get("status")),
        url=_text(data.get("url")),
        created=_text(data.get("createdOn")),
        release_definition=parse_release_definition(data.get("releaseDefinition")),
        environments=_nested_environments(data),
    )


def parse_releases(doc: Any) -> list[Release]:
    return [parse_release(item) for item in _items(doc, "value")]

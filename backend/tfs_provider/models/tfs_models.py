"""TFS/VSTS entities built from REST payloads (projects, queries, work items, builds, releases)."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def normalize_id(value: Any) -> Optional[str]:
    """Canonical string id: JSON numbers become their decimal text, blanks become None."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


class TFSObject(BaseModel):
    """Common record for every TFS entity. When only one of id/title is known, the other mirrors it."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    state: Optional[str] = None
    revision: Optional[int] = None
    created: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def mirror_id_and_title(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        ident = normalize_id(data.get("id"))
        title = data.get("title")
        if not title and ident:
            return {**data, "title": ident}
        if not ident and title:
            return {**data, "id": title}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def parse_id(cls, v: Any) -> Optional[str]:
        return normalize_id(v)


class Project(TFSObject):
    """Team project."""


class Query(TFSObject):
    """Saved work item query (or query folder) under a project."""

    path: Optional[str] = None
    is_folder: bool = False


class WorkItem(TFSObject):
    """Work item with the subset of system fields the providers expose."""

    project: Optional[str] = None
    assigned_to: Optional[str] = None
    severity: Optional[str] = None
    type: Optional[str] = None
    date_created: Optional[str] = None
    created_by: Optional[str] = None
    date_changed: Optional[str] = None
    changed_by: Optional[str] = None
    area_path: Optional[str] = None
    iteration_path: Optional[str] = None
    reason: Optional[str] = None


class BuildDefinition(TFSObject):
    quality: Optional[str] = None
    type: Optional[str] = None


class BuildQueue(TFSObject):
    type: Optional[str] = None


class Build(TFSObject):
    """A build run. `build_number` is the human label, `id` the server key."""

    build_number: Optional[str] = None
    build_result: Optional[str] = None
    definition: Optional[BuildDefinition] = None


class Environment(TFSObject):
    """Release environment (stage); `state` holds the deployment status."""


class ReleaseDefinition(TFSObject):
    project: Optional[Project] = None
    # None when the payload carries no environments key, [] when it is empty
    environments: Optional[list[Environment]] = None


class Release(TFSObject):
    release_definition: Optional[ReleaseDefinition] = None
    environments: Optional[list[Environment]] = None

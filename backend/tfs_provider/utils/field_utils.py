"""Helpers for host properties (lookup, required values, filter lists) and TFS web UI links."""
import re
from typing import Iterable, Optional

from tfs_provider.models.provider_models import Field, ProviderError

# Separators accepted in configured filter lists
FILTER_SEPARATORS = re.compile(r"[,;]")


def get_field(properties: Iterable[Field] | None, name: str) -> Optional[Field]:
    """First property named `name`, or None."""
    for field in properties or ():
        if field.name == name:
            return field
    return None


def get_fields(properties: Iterable[Field] | None, name: str) -> list[Field]:
    """All properties named `name` (multi-valued fields repeat the name)."""
    return [field for field in properties or () if field.name == name]


def optional_value(properties: Iterable[Field] | None, name: str) -> Optional[str]:
    field = get_field(properties, name)
    if field is None or not (field.value or "").strip():
        return None
    return field.value.strip()


def require_value(properties: Iterable[Field] | None, name: str) -> str:
    """
    Value of a required property.

    Raises:
        ProviderError: property absent or empty.
    """
    value = optional_value(properties, name)
    if value is None:
        raise ProviderError(f"Missing required property: {name}")
    return value


def display_value(properties: Iterable[Field] | None, name: str) -> Optional[str]:
    """Display value of a property, falling back to its value."""
    field = get_field(properties, name)
    if field is None:
        return None
    return field.display_value or field.value


def join_values(properties: Iterable[Field] | None, name: str, separator: str = ",") -> str:
    """Non-empty values of a multi-valued property joined with `separator`."""
    return separator.join(
        field.value.strip() for field in get_fields(properties, name) if field.value and field.value.strip()
    )


def split_filter_values(raw: str | None) -> list[str]:
    """
    Split a configured list on commas or semicolons.

    Ex.: "succeeded; failed,,canceled" -> ["succeeded", "failed", "canceled"].
    """
    if not raw:
        return []
    return [part.strip() for part in FILTER_SEPARATORS.split(raw) if part.strip()]


def encode_spaces(segment: str | None) -> str:
    return (segment or "").replace(" ", "%20")


def add_field(fields: list[Field], name: str, display_name: str, value: Optional[str]) -> None:
    """Append a property only when it has a value."""
    if value:
        fields.append(Field(name=name, display_name=display_name, value=value))


def work_item_ui_url(tfs_url: str, project: str | None, work_item_id: str | None) -> str:
    """Web UI link to edit a work item."""
    return f"{tfs_url.rstrip('/')}/{encode_spaces(project)}/_workitems?id={work_item_id}&_a=edit"


def build_summary_url(tfs_url: str, collection: str, project: str, build_id: str | None) -> str:
    return f"{tfs_url.rstrip('/')}/{collection}/{encode_spaces(project)}/_build?_a=summary&buildId={build_id}"


def release_summary_url(
    tfs_url: str, collection: str, project: str, release_definition_id: str, release_id: str
) -> str:
    return (
        f"{tfs_url.rstrip('/')}/{collection}/{encode_spaces(project)}"
        "/_apps/hub/ms.vss-releaseManagement-web.hub-explorer"
        f"?definitionId={release_definition_id}&_a=release-summary&releaseId={release_id}"
    )

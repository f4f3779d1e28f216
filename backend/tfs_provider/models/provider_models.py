"""Records exchanged with the orchestration host: properties, value lists, provider results and executions."""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class ProviderError(Exception):
    """Failure reported back to the host; only the message crosses the boundary."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ExecutionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Field(BaseModel):
    """Named property supplied by the host (a field may appear more than once)."""

    name: str
    value: Optional[str] = None
    display_name: Optional[str] = None
    display_value: Optional[str] = None

    @field_validator("value", "display_value", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class FieldValueInfo(BaseModel):
    """One selectable value: (value, label, description)."""

    value: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None


class FieldInfo(BaseModel):
    field_name: str
    values: list[FieldValueInfo] = []


class ProviderInfo(BaseModel):
    """Object returned by find/get services (work item or build)."""

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    properties: list[Field] = []


class ExecutionInfo(BaseModel):
    """Outcome of an execution action or service call."""

    message: str = ""
    status: Optional[ExecutionStatus] = None
    execution_id: Optional[str] = None
    execution_url: Optional[str] = None
    valid: Optional[bool] = None


class ParamInfo(BaseModel):
    field_name: str
    display_name: str
    required: bool = True


class OperationInfo(BaseModel):
    """Public description of a registered getter, service or action."""

    name: str
    kind: str
    display_name: str
    description: str = ""
    params: list[ParamInfo] = []


class ServiceRequest(BaseModel):
    """Body of a service call. Execution services also read action and task data."""

    properties: list[Field] = []
    action: Optional[str] = None
    task_title: Optional[str] = None
    task_description: Optional[str] = None

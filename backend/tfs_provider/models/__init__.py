"""Domain models and DTOs."""
from tfs_provider.models.provider_models import (
    ExecutionInfo,
    ExecutionStatus,
    Field,
    FieldInfo,
    FieldValueInfo,
    OperationInfo,
    ParamInfo,
    ProviderError,
    ProviderInfo,
    ServiceRequest,
)
from tfs_provider.models.tfs_models import (
    Build,
    BuildDefinition,
    BuildQueue,
    Environment,
    Project,
    Query,
    Release,
    ReleaseDefinition,
    TFSObject,
    WorkItem,
)

__all__ = [
    "Build",
    "BuildDefinition",
    "BuildQueue",
    "Environment",
    "ExecutionInfo",
    "ExecutionStatus",
    "Field",
    "FieldInfo",
    "FieldValueInfo",
    "OperationInfo",
    "ParamInfo",
    "ProviderError",
    "ProviderInfo",
    "Project",
    "Query",
    "Release",
    "ReleaseDefinition",
    "ServiceRequest",
    "TFSObject",
    "WorkItem",
]

"""Settings for the TFS providers using Pydantic Settings."""
import logging
from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tfs_provider.services.tfs_client import ConnectionConfig

logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

DEFAULT_RESULT_LIMIT = 200


class Settings(BaseSettings):
    """Application settings with automatic validation."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # TFS / VSTS connection
    TFS_URL: str = Field(
        default="http://localhost",
        description="TFS server URL (ex.: http://<server>:8080/tfs or https://<account>.visualstudio.com)",
    )
    TFS_API_VERSION: str = Field(default="1.0", description="api-version for core (work item) requests")
    VSRM_URL: str = Field(
        default="http://localhost.vsrm",
        description="Release Management URL (ex.: https://<account>.vsrm.visualstudio.com)",
    )
    VSRM_API_VERSION: str = Field(default="3.0-preview.1", description="api-version for release requests")
    VSRM_DEPLOY_API_VERSION: str = Field(
        default="3.0-preview.2",
        description="api-version for the release environment PATCH that starts a deployment",
    )
    TFS_BUILD_API_VERSION: str = Field(default="2.0", description="api-version for build requests")
    TFS_COLLECTION: str = Field(default="DefaultCollection", description="Project collection name")
    TFS_SERVICE_USER: str = Field(default="", description="Service account user (basic auth)")
    TFS_SERVICE_PASSWORD: str = Field(
        default="",
        description="Service account password or personal access token (set via env var)",
    )

    @field_validator(
        "TFS_URL",
        "TFS_API_VERSION",
        "VSRM_URL",
        "VSRM_API_VERSION",
        "VSRM_DEPLOY_API_VERSION",
        "TFS_BUILD_API_VERSION",
        "TFS_COLLECTION",
        mode="before",
    )
    @classmethod
    def default_when_blank(cls, v: object, info: ValidationInfo) -> object:
        """Blank values fall back to the field default; surrounding whitespace is dropped."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        if isinstance(v, str):
            return v.strip()
        return v

    # Provider options
    REQUEST_RESULT_LIMIT: int = Field(
        default=DEFAULT_RESULT_LIMIT,
        description="Maximum number of work items returned by findRequests",
    )
    DEPLOY_UNIT_RESULT_LIMIT: int = Field(
        default=DEFAULT_RESULT_LIMIT,
        description="Maximum number of builds returned by findDeployUnits",
    )

    @field_validator("REQUEST_RESULT_LIMIT", "DEPLOY_UNIT_RESULT_LIMIT", mode="before")
    @classmethod
    def parse_result_limit(cls, v: object, info: ValidationInfo) -> int:
        """Unparseable limits fall back to 200."""
        if isinstance(v, bool):
            v = None
        try:
            return int(str(v).strip())
        except ValueError:
            logger.warning("Invalid %s value %r, using %s", info.field_name, v, DEFAULT_RESULT_LIMIT)
            return DEFAULT_RESULT_LIMIT

    BUILD_STATUS_FILTER: str = Field(
        default="inProgress,completed,cancelling,postponed,notStarted,all",
        description="Values offered for buildStatusFilter (comma or semicolon separated)",
    )
    BUILD_RESULT_FILTER: str = Field(
        default="succeeded,partiallySucceeded,failed,canceled",
        description="Values offered for buildResultFilter (comma or semicolon separated)",
    )

    EXECUTION_ACTION_WAIT_FOR_CALLBACK: bool = Field(
        default=False,
        description="If True (1/true/yes), started executions are reported PENDING instead of COMPLETED",
    )

    @field_validator("EXECUTION_ACTION_WAIT_FOR_CALLBACK", mode="before")
    @classmethod
    def parse_wait_for_callback(cls, v: object) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes")
        return False

    REQUEST_PROVIDER_NAME: str = Field(default="TFS Work Item Provider")
    REQUEST_PROVIDER_DESCRIPTION: str = Field(default="TFS work item provider: finds and reads work items.")
    DEPLOY_UNIT_PROVIDER_NAME: str = Field(default="TFS Deployment Unit Provider")
    DEPLOY_UNIT_PROVIDER_DESCRIPTION: str = Field(default="TFS deployment unit provider: exposes builds as deployable units.")
    EXECUTION_PROVIDER_NAME: str = Field(default="TFS Release Provider")
    EXECUTION_PROVIDER_DESCRIPTION: str = Field(default="TFS execution provider: deploys releases and queues builds.")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    def connection_config(self) -> ConnectionConfig:
        """Immutable connection parameters for a TFSClient."""
        return ConnectionConfig(
            tfs_url=self.TFS_URL,
            tfs_api_version=self.TFS_API_VERSION,
            vsrm_url=self.VSRM_URL,
            vsrm_api_version=self.VSRM_API_VERSION,
            vsrm_deploy_api_version=self.VSRM_DEPLOY_API_VERSION,
            tfs_build_api_version=self.TFS_BUILD_API_VERSION,
            collection=self.TFS_COLLECTION,
            username=self.TFS_SERVICE_USER,
            password=self.TFS_SERVICE_PASSWORD,
        )


settings = Settings()

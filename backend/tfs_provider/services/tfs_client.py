"""TFS/VSTS REST client: projects, queries, work items, builds, releases and deployments."""
import base64
import logging
from enum import Enum
from typing import Any, Optional

import requests
from pydantic import BaseModel, ConfigDict, field_validator
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tfs_provider.models.tfs_models import (
    Build,
    BuildDefinition,
    BuildQueue,
    Project,
    Query,
    Release,
    ReleaseDefinition,
    WorkItem,
)
from tfs_provider.services import tfs_parser

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
DEFAULT_MAX_BUILDS_PER_DEFINITION = 100
UNKNOWN_STATUS = "unknown"
DEPLOY_STATUS = "InProgress"


class VisualStudioApi(str, Enum):
    """Which server and api-version a request goes to."""

    TFS_API = "tfs"
    TFSBUILD_API = "tfs-build"
    RM_API = "rm"


class TFSClientError(Exception):
    """Any failure talking to TFS/VSRM: transport, HTTP status or missing configuration."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConnectionConfig(BaseModel):
    """Immutable connection parameters; build a new one to change anything."""

    model_config = ConfigDict(frozen=True)

    tfs_url: str
    tfs_api_version: str = "1.0"
    vsrm_url: Optional[str] = None
    vsrm_api_version: Optional[str] = None
    vsrm_deploy_api_version: Optional[str] = "3.0-preview.2"
    tfs_build_api_version: Optional[str] = None
    collection: str = "DefaultCollection"
    username: str = ""
    password: str = ""

    @field_validator("tfs_url", "vsrm_url", mode="before")
    @classmethod
    def strip_url(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v


def build_queue_request_body(
    definition_id: str | int,
    queue_id: str | int | None = None,
    branch: str | None = None,
) -> dict[str, Any]:
    """Body for POST build/builds. The queue goes both nested and under the flat "queue.id" key older servers read."""
    body: dict[str, Any] = {"definition": {"id": _numeric_id(definition_id, "build definition")}}
    if queue_id is not None and str(queue_id).strip():
        queue = _numeric_id(queue_id, "build queue")
        body["queue"] = {"id": queue}
        body["queue.id"] = queue
    if branch:
        body["sourceBranch"] = branch
    return body


def _numeric_id(value: str | int, label: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise TFSClientError(f"Invalid {label} id: {value}") from e


class TFSClient:
    """Client for TFS/VSTS core, build and release management REST APIs."""

    def __init__(self, config: ConnectionConfig | None = None) -> None:
        self.config = config
        self.session = requests.Session()
        # single attempt per call
        retry = Retry(total=0, read=False)
        adapter = HTTPAdapter(pool_connections=10, pool_maxsize=20, max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def configure(
        self,
        tfs_url: str,
        tfs_api_version: str,
        vsrm_url: str | None,
        vsrm_api_version: str | None,
        tfs_build_api_version: str | None,
        collection: str,
        username: str,
        password: str,
        vsrm_deploy_api_version: str | None = None,
    ) -> "TFSClient":
        """Replace the connection configuration. No I/O."""
        values: dict[str, Any] = {
            "tfs_url": tfs_url,
            "tfs_api_version": tfs_api_version,
            "vsrm_url": vsrm_url,
            "vsrm_api_version": vsrm_api_version,
            "tfs_build_api_version": tfs_build_api_version,
            "collection": collection,
            "username": username or "",
            "password": password or "",
        }
        if vsrm_deploy_api_version:
            values["vsrm_deploy_api_version"] = vsrm_deploy_api_version
        self.config = ConnectionConfig(**values)
        return self

    def close(self) -> None:
        self.session.close()

    def _require_config(self) -> ConnectionConfig:
        if self.config is None:
            raise TFSClientError("TFS connection is not configured")
        return self.config

    def _encode_credentials(self, config: ConnectionConfig) -> str:
        raw = f"{config.username}:{config.password}"
        return base64.b64encode(raw.encode("utf-8")).decode("utf-8")

    def build_url(
        self,
        api: VisualStudioApi,
        path: str,
        params: str = "",
        api_version: str | None = None,
    ) -> str:
        """Absolute request URL: base for the API + path + params + api-version."""
        config = self._require_config()
        if api is VisualStudioApi.RM_API:
            base, version = config.vsrm_url, config.vsrm_api_version
        elif api is VisualStudioApi.TFSBUILD_API:
            base, version = config.tfs_url, config.tfs_build_api_version
        else:
            base, version = config.tfs_url, config.tfs_api_version
        version = api_version or version
        if not base:
            raise TFSClientError(f"TFS connection is not configured: missing URL for {api.value} API")
        if not version:
            raise TFSClientError(f"TFS connection is not configured: missing api-version for {api.value} API")
        path = path.strip().replace(" ", "%20")
        if not path.startswith("/"):
            path = "/" + path
        if params:
            return f"{base}{path}?{params}&api-version={version}"
        return f"{base}{path}?api-version={version}"

    def _make_request(
        self,
        method: str,
        api: VisualStudioApi,
        path: str,
        params: str = "",
        body: dict[str, Any] | None = None,
        api_version: str | None = None,
    ) -> str:
        config = self._require_config()
        url = self.build_url(api, path, params, api_version)
        logger.debug("TFS %s %s", method, url)
        try:
            r = self.session.request(
                method=method,
                url=url,
                json=body,
                headers={"Authorization": f"Basic {self._encode_credentials(config)}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("TFS %s %s failed: %s", method, url, e)
            raise TFSClientError("Server not available") from e
        if not 200 <= r.status_code < 300:
            raise self._status_error(r)
        return r.text

    @staticmethod
    def _status_error(r: requests.Response) -> TFSClientError:
        body = r.text or ""
        logger.debug(
            "TFS request not successful: %s %s. Reason: %s", r.status_code, r.reason, body
        )
        if r.status_code == 401:
            return TFSClientError("TFS: Invalid credentials provided.", 401)
        if r.status_code == 404:
            return TFSClientError("TFS: Request URL not found.", 404)
        if r.status_code == 400:
            return TFSClientError(f"TFS: Bad request. {body}", 400)
        return TFSClientError(
            f"TFS request not successful: {r.status_code} {r.reason}. Reason: {body}",
            r.status_code,
        )

    def _collection(self) -> str:
        return self._require_config().collection

    def list_projects(self) -> list[Project]:
        c = self._collection()
        return tfs_parser.parse_projects(
            self._make_request("GET", VisualStudioApi.TFS_API, f"{c}/_apis/projects", "statefilter=All")
        )

    def list_queries(self, project_id: str, folder_path: str) -> list[Query]:
        """Queries directly under a folder (e.g. "Shared Queries")."""
        c = self._collection()
        return tfs_parser.parse_queries(
            self._make_request(
                "GET", VisualStudioApi.TFS_API, f"{c}/{project_id}/_apis/wit/queries/{folder_path}", "$depth=2"
            )
        )

    def list_work_items(
        self, query_id: str, title_filter: str | None = None, result_limit: int = 200
    ) -> list[WorkItem]:
        """
        Run a saved flat query and fetch its work items.
        Up to result_limit + 1 ids are kept (legacy cutoff); title_filter is not applied.
        """
        c = self._collection()
        if title_filter:
            logger.debug("Title filter %r is not applied to TFS work item search", title_filter)
        refs = tfs_parser.parse_work_item_refs(
            self._make_request("GET", VisualStudioApi.TFS_API, f"{c}/_apis/wit/wiql/{query_id}")
        )
        ids = [ref.id for count, ref in enumerate(refs) if count <= result_limit and ref.id]
        if not ids:
            return []
        logger.debug("Retrieving %s TFS work items for query %s", len(ids), query_id)
        return tfs_parser.parse_work_items(
            self._make_request("GET", VisualStudioApi.TFS_API, f"{c}/_apis/wit/workitems", "ids=" + ",".join(ids))
        )

    def get_work_item(self, work_item_id: str) -> WorkItem | None:
        c = self._collection()
        return tfs_parser.parse_work_item(
            self._make_request("GET", VisualStudioApi.TFS_API, f"{c}/_apis/wit/workitems/{work_item_id}")
        )

    def list_build_definitions(
        self, project_id: str, name_starts_with: str | None = None
    ) -> list[BuildDefinition]:
        c = self._collection()
        return tfs_parser.parse_build_definitions(
            self._make_request(
                "GET",
                VisualStudioApi.TFSBUILD_API,
                f"{c}/{project_id}/_apis/build/definitions",
                f"name={name_starts_with or ''}",
            )
        )

    def list_build_queues(
        self, queue_type: str | None = None, name_starts_with: str | None = None
    ) -> list[BuildQueue]:
        c = self._collection()
        params = "&".join(
            f"{key}={value}" for key, value in (("type", queue_type), ("name", name_starts_with)) if value
        )
        return tfs_parser.parse_build_queues(
            self._make_request("GET", VisualStudioApi.TFSBUILD_API, f"{c}/_apis/build/queues", params)
        )

    def list_builds(
        self,
        project_id: str,
        build_definition_id: str,
        status_filter: str | None = None,
        result_filter: str | None = None,
        max_results: int = 0,
    ) -> list[Build]:
        c = self._collection()
        max_builds = max_results if max_results > 0 else DEFAULT_MAX_BUILDS_PER_DEFINITION
        params = (
            f"definitions={build_definition_id}"
            f"&statusFilter={status_filter or ''}"
            f"&resultFilter={result_filter or ''}"
            f"&maxBuildsPerDefinition={max_builds}"
        )
        return tfs_parser.parse_builds(
            self._make_request("GET", VisualStudioApi.TFSBUILD_API, f"{c}/{project_id}/_apis/build/builds", params)
        )

    def get_build(self, project_id: str, build_id: str) -> Build | None:
        c = self._collection()
        return tfs_parser.parse_build(
            self._make_request("GET", VisualStudioApi.TFSBUILD_API, f"{c}/{project_id}/_apis/build/builds/{build_id}")
        )

    def queue_build(
        self,
        project_id: str,
        build_definition_id: str,
        queue_id: str | None = None,
        branch: str | None = None,
    ) -> Build | None:
        c = self._collection()
        body = build_queue_request_body(build_definition_id, queue_id, branch)
        logger.info("Queueing TFS build for definition %s in project %s", build_definition_id, project_id)
        return tfs_parser.parse_build(
            self._make_request(
                "POST", VisualStudioApi.TFSBUILD_API, f"{c}/{project_id}/_apis/build/builds", body=body
            )
        )

    def list_release_definitions(self, project_id: str) -> list[ReleaseDefinition]:
        c = self._collection()
        return tfs_parser.parse_release_definitions(
            self._make_request(
                "GET", VisualStudioApi.RM_API, f"{c}/{project_id}/_apis/release/definitions", "$expand=environments"
            )
        )

    def list_releases(self, project_id: str, release_definition_id: str) -> list[Release]:
        c = self._collection()
        return tfs_parser.parse_releases(
            self._make_request(
                "GET",
                VisualStudioApi.RM_API,
                f"{c}/{project_id}/_apis/release/releases",
                f"definitionId={release_definition_id}&$expand=environments",
            )
        )

    def get_release(self, project_id: str, release_id: str) -> Release | None:
        c = self._collection()
        return tfs_parser.parse_release(
            self._make_request("GET", VisualStudioApi.RM_API, f"{c}/{project_id}/_apis/release/releases/{release_id}")
        )

    def get_release_environment_status(
        self, project_id: str, release_id: str, environment_id: str | int
    ) -> str:
        """Deployment status of one environment of a release, "unknown" when it is not listed."""
        release = self.get_release(project_id, release_id)
        environments = (release.environments if release else None) or []
        for environment in environments:
            if environment.id == str(environment_id):
                return environment.state or UNKNOWN_STATUS
        return UNKNOWN_STATUS

    def deploy_release(self, project_id: str, release_id: str, environment_id: str) -> Release | None:
        """Start deployment of a release environment (PATCH status=InProgress)."""
        config = self._require_config()
        c = config.collection
        logger.info("Deploying TFS release %s to environment %s", release_id, environment_id)
        return tfs_parser.parse_release(
            self._make_request(
                "PATCH",
                VisualStudioApi.RM_API,
                f"{c}/{project_id}/_apis/release/releases/{release_id}/environments/{environment_id}",
                body={"status": DEPLOY_STATUS},
                api_version=config.vsrm_deploy_api_version,
            )
        )

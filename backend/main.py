"""FastAPI app: host facade for the TFS providers (field values, services, execution)."""
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, HTTPException, status

from tfs_provider.config import settings
from tfs_provider.models.provider_models import Field, ProviderError, ServiceRequest
from tfs_provider.services.base_provider import BaseProvider
from tfs_provider.services.deploy_unit_provider import DeployUnitProvider
from tfs_provider.services.execution_provider import ExecutionProvider
from tfs_provider.services.request_provider import RequestProvider

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# One provider (and TFS session) per call
PROVIDERS: dict[str, Callable[[], BaseProvider]] = {
    "request": RequestProvider,
    "deploy-unit": DeployUnitProvider,
    "execution": ExecutionProvider,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("TFS providers: %s (server %s)", ", ".join(PROVIDERS), settings.TFS_URL)
    yield


app = FastAPI(
    title="TFS Provider",
    description="TFS/VSTS work items, builds and releases for the release orchestration host",
    lifespan=lifespan,
)


def _run(provider_name: str, call: Callable[[BaseProvider], Any]) -> Any:
    factory = PROVIDERS.get(provider_name)
    if factory is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {provider_name}")
    provider = factory()
    try:
        return call(provider)
    except ProviderError as e:
        logger.error("%s: %s", provider.name, e.message)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    finally:
        provider.close()


@app.get("/health")
async def health():
    """Health check for monitoring and deploy."""
    return {"status": "ok"}


@app.get("/providers/{provider}/services")
def list_operations(provider: str):
    """Getters, services and actions the provider exposes."""
    return _run(provider, lambda p: {
        "name": p.name,
        "description": p.description,
        "operations": p.list_operations(),
    })


@app.post("/providers/{provider}/fields/{field_name}")
def field_values(provider: str, field_name: str, properties: list[Field] | None = None):
    """Selectable values for a field; null when there are none."""
    return _run(provider, lambda p: p.get_field_values(field_name, properties or []))


@app.post("/providers/{provider}/services/{service}")
def call_service(provider: str, service: str, request: ServiceRequest):
    return _run(provider, lambda p: p.call_service(service, request))


@app.post("/providers/execution/{operation}")
def execution(operation: str, request: ServiceRequest):
    """execute | validate | cancel | retry."""
    return _run("execution", lambda p: p.call_service(operation, request))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

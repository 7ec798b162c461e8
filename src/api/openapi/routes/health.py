"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.infrastructure.blob.base import HealthStatus as ProviderHealth
from src.commons.telemetry import get_logger
from src.infrastructure.factory import InfrastructureFactory

router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Health check latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    active_uploads: int = Field(description="Upload sessions still receiving chunks")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _check_providers(
    factory: InfrastructureFactory,
) -> dict[str, ProviderHealth]:
    """Run the health check of every backing store."""
    results: dict[str, ProviderHealth] = {}
    providers = {
        "blob_storage": factory.get_blob_storage,
        "document_db": factory.get_document_db,
    }
    for name, provider in providers.items():
        try:
            results[name] = await provider().health_check()
        except Exception as e:
            logger.exception("Health check failed", extra={"component": name})
            results[name] = ProviderHealth(
                healthy=False, latency_ms=0.0, message=str(e)
            )
    return results


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components."""
    components = [
        ComponentHealth(
            name=name,
            status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
            latency_ms=round(result.latency_ms, 2),
            message=result.message,
        )
        for name, result in (await _check_providers(factory)).items()
    ]

    unhealthy_count = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    if unhealthy_count == 0:
        overall_status = HealthStatus.HEALTHY
    elif unhealthy_count < len(components):
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.UNHEALTHY

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        active_uploads=factory.get_chunk_receiver().active_sessions,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Simple liveness check for Kubernetes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check for Kubernetes.",
)
async def readiness(
    factory: FactoryDep,
) -> ReadinessResponse:
    """Check if service is ready to accept requests.

    Verifies all critical dependencies are available.
    """
    results = await _check_providers(factory)
    checks = {name: result.healthy for name, result in results.items()}
    return ReadinessResponse(ready=all(checks.values()), checks=checks)

"""Health endpoint router reporting deployment identity."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pubsite.config import Configuration, EnvConfig


def api_create_health_router(configuration: Configuration, env_config: EnvConfig) -> APIRouter:
    """Create health-check router with deployment identity details.

    Args:
        configuration: Active deployment configuration.
        env_config: Process environment snapshot.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when configuration or env_config is None.
    """

    if configuration is None:
        raise ValueError("configuration must not be None")
    if env_config is None:
        raise ValueError("env_config must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application health and deployment identity.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.
        """

        payload = {
            "status": "ok",
            "app": "up",
            "running_locally": env_config.is_running_locally,
            "service": env_config.gae_service,
            "version": env_config.gae_version,
            "instance": env_config.gae_instance,
            "frontend_count": env_config.frontend_count,
            "worker_count": env_config.worker_count,
            "primary_api_uri": str(configuration.primary_api_uri),
            "primary_site_uri": str(configuration.primary_site_uri),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router

"""FastAPI application factory for the pub site runtime.

This module defines API application composition on top of a validated
deployment configuration.
"""

from fastapi import FastAPI

from pubsite.config import Configuration, EnvConfig

from .routers import api_create_health_router


def create_api_application(configuration: Configuration, env_config: EnvConfig) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        configuration: Validated deployment configuration.
        env_config: Process environment snapshot used for runtime metadata.

    Returns:
        FastAPI: Framework application instance with foundation metadata.
    """
    application = FastAPI(title="Pub Site")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str | bool | None]:
        """Return a minimal foundation response for bootstrap verification.

        Returns:
            dict[str, str | bool | None]: Service identity for API framework verification.
        """

        return {
            "service": "pub-site",
            "status": "foundation-ready",
            "project": configuration.project_id,
            "running_locally": env_config.is_running_locally,
        }

    application.include_router(api_create_health_router(configuration=configuration, env_config=env_config))

    return application

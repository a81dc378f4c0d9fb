"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from pubsite.api import create_api_application
from pubsite.config import config_get_active_configuration, env_config_current


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        ConfigurationLoadError: Raised when the configuration file is missing,
            unreadable, malformed or violates the schema.
    """

    env_config = env_config_current()
    configuration = config_get_active_configuration()
    return create_api_application(configuration=configuration, env_config=env_config)

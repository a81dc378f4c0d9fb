"""Configuration package for deployment settings and the active configuration registry."""

from .environment import CONFIG_PATH_ENV_VARIABLE, EnvConfig, env_config_current
from .errors import (
    ConfigurationLoadError,
    ConfigurationParseError,
    ConfigurationReadError,
    ConfigurationRegistryError,
    MissingConfigFileError,
    SchemaViolation,
    SchemaViolationError,
)
from .loader import (
    config_load_configuration_file,
    config_load_configuration_from_env,
    config_normalize_yaml_value,
    config_parse_configuration_text,
)
from .models import FAKE_SITE_AUDIENCE, AdminId, AdminPermission, Configuration
from .registry import (
    config_configuration_scope,
    config_get_active_configuration,
    config_register_active_configuration,
)

__all__ = [
    "CONFIG_PATH_ENV_VARIABLE",
    "FAKE_SITE_AUDIENCE",
    "AdminId",
    "AdminPermission",
    "Configuration",
    "ConfigurationLoadError",
    "ConfigurationParseError",
    "ConfigurationReadError",
    "ConfigurationRegistryError",
    "EnvConfig",
    "MissingConfigFileError",
    "SchemaViolation",
    "SchemaViolationError",
    "config_configuration_scope",
    "config_get_active_configuration",
    "config_load_configuration_file",
    "config_load_configuration_from_env",
    "config_normalize_yaml_value",
    "config_parse_configuration_text",
    "config_register_active_configuration",
    "env_config_current",
]

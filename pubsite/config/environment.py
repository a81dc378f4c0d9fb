"""Process environment snapshot captured once at startup."""

import logging
import re
import threading

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_VARIABLE = "PUB_CONFIG"

_DECIMAL_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class EnvConfig(BaseSettings):
    """Read-only view of the environment variables consumed by the pub site.

    Field values are read from the environment variables named by each alias.

    Attributes:
        config_path: Path of the YAML configuration file (`PUB_CONFIG`).
        gae_service: AppEngine service of this process, None when running locally.
        gae_version: AppEngine service version, None when running locally.
        gae_instance: AppEngine instance id, None when running locally.
            Use only for narrow debug flows.
        gcloud_project: Cloud project id.
        gcloud_key: Path of the Cloud service account key.
        stable_dart_sdk_dir: Stable Dart SDK directory used by analysis tooling.
        stable_flutter_sdk_dir: Stable Flutter SDK directory.
        preview_dart_sdk_dir: Preview Dart SDK directory.
        preview_flutter_sdk_dir: Preview Flutter SDK directory.
        frontend_count: Number of frontend replicas, 1 when absent or invalid.
        worker_count: Number of worker replicas, 1 when absent or invalid.
    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    config_path: str | None = Field(default=None, validation_alias=CONFIG_PATH_ENV_VARIABLE)
    gae_service: str | None = Field(default=None, validation_alias="GAE_SERVICE")
    gae_version: str | None = Field(default=None, validation_alias="GAE_VERSION")
    gae_instance: str | None = Field(default=None, validation_alias="GAE_INSTANCE")
    gcloud_project: str | None = Field(default=None, validation_alias="GCLOUD_PROJECT")
    gcloud_key: str | None = Field(default=None, validation_alias="GCLOUD_KEY")
    stable_dart_sdk_dir: str | None = Field(default=None, validation_alias="TOOL_STABLE_DART_SDK")
    stable_flutter_sdk_dir: str | None = Field(default=None, validation_alias="TOOL_STABLE_FLUTTER_SDK")
    preview_dart_sdk_dir: str | None = Field(default=None, validation_alias="TOOL_PREVIEW_DART_SDK")
    preview_flutter_sdk_dir: str | None = Field(default=None, validation_alias="TOOL_PREVIEW_FLUTTER_SDK")
    frontend_count: int = Field(default=1, validation_alias="FRONTEND_COUNT")
    worker_count: int = Field(default=1, validation_alias="WORKER_COUNT")

    @field_validator("frontend_count", "worker_count", mode="before")
    @classmethod
    def _parse_replica_count(cls, value: object) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        text = str(value).strip()
        if not _DECIMAL_INTEGER_PATTERN.fullmatch(text):
            logger.debug("Replica count %r is not an integer, falling back to 1", value)
            return 1
        return int(text)

    @property
    def is_running_locally(self) -> bool:
        """True, if running locally and not inside AppEngine."""

        return self.gae_service is None or self.gae_version is None


_env_config_lock = threading.Lock()
_env_config: EnvConfig | None = None


def env_config_current() -> EnvConfig:
    """Return the process environment snapshot, capturing it on first access.

    Returns:
        EnvConfig: Snapshot shared by every caller for the process lifetime.
    """

    global _env_config
    if _env_config is None:
        with _env_config_lock:
            if _env_config is None:
                _env_config = EnvConfig()
                logger.debug("Captured environment snapshot, running locally: %s", _env_config.is_running_locally)
    return _env_config

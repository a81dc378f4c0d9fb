"""Configuration file loading: YAML text to strict configuration model."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .environment import CONFIG_PATH_ENV_VARIABLE, EnvConfig
from .errors import (
    ConfigurationParseError,
    ConfigurationReadError,
    MissingConfigFileError,
    SchemaViolation,
    SchemaViolationError,
)
from .models import Configuration

logger = logging.getLogger(__name__)


def config_normalize_yaml_value(value: Any, source: str | None = None) -> Any:
    """Convert a YAML parse tree into plain JSON-shaped values.

    Mappings become `dict[str, Any]`, sequences become lists and timestamps
    become ISO strings, so the strict decoder sees the same shapes it would
    get from JSON text. Aliases reused in several places are expanded; an
    alias that contains itself is rejected.

    Args:
        value: Value produced by the YAML parser.
        source: Optional file path used in error messages.

    Returns:
        Any: Equivalent value built only from dict, list, str, int, float,
        bool and None.

    Raises:
        SchemaViolationError: Raised when an alias refers to one of its own ancestors.
    """

    return _normalize_yaml_node(value, path=(), active_ids=set(), source=source)


def _normalize_yaml_node(value: Any, path: tuple[str, ...], active_ids: set[int], source: str | None) -> Any:
    if not isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if isinstance(value, (datetime.date, datetime.datetime)):
            return value.isoformat()
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value

    if id(value) in active_ids:
        raise SchemaViolationError(
            (SchemaViolation(".".join(path) or "<root>", "recursive alias"),),
            source=source,
        )
    active_ids.add(id(value))
    try:
        if isinstance(value, Mapping):
            return {
                str(key): _normalize_yaml_node(item, path + (str(key),), active_ids, source)
                for key, item in value.items()
            }
        return [
            _normalize_yaml_node(item, path + (str(index),), active_ids, source)
            for index, item in enumerate(value)
        ]
    finally:
        active_ids.discard(id(value))


def config_parse_configuration_text(content: str, source: str | None = None) -> Configuration:
    """Parse YAML text and decode it into a validated configuration.

    Args:
        content: YAML document text.
        source: Optional file path used in error messages.

    Returns:
        Configuration: Validated immutable configuration.

    Raises:
        ConfigurationParseError: Raised when the YAML syntax is invalid.
        SchemaViolationError: Raised when the document violates the schema.
    """

    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as error:
        mark = getattr(error, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        location = f" at line {line}, column {column}" if line is not None else ""
        target = source or "<string>"
        raise ConfigurationParseError(
            f"Configuration file {target} is not valid YAML{location}: {error}",
            source=source,
            line=line,
            column=column,
        ) from error

    normalized = config_normalize_yaml_value(parsed, source=source)
    if not isinstance(normalized, dict):
        kind = "an empty document" if normalized is None else type(normalized).__name__
        raise SchemaViolationError(
            (SchemaViolation("<root>", f"expected a top-level mapping, got {kind}"),),
            source=source,
        )
    return Configuration.from_serialized(normalized, source=source)


def config_load_configuration_file(path: str | Path) -> Configuration:
    """Read, parse and validate the configuration file at `path`.

    Args:
        path: Path of the YAML configuration file.

    Returns:
        Configuration: Validated immutable configuration.

    Raises:
        MissingConfigFileError: Raised when the file does not exist.
        ConfigurationReadError: Raised when the file cannot be read.
        ConfigurationParseError: Raised when the YAML syntax is invalid.
        SchemaViolationError: Raised when the document violates the schema.
    """

    source = str(path)
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise MissingConfigFileError(source) from error
    except (OSError, UnicodeDecodeError) as error:
        raise ConfigurationReadError(f"Configuration file {source} cannot be read: {error}", source=source) from error

    configuration = config_parse_configuration_text(content, source=source)
    logger.info("Loaded configuration from %s", source)
    return configuration


def config_load_configuration_from_env(env: EnvConfig) -> Configuration:
    """Load the configuration file referenced by the environment snapshot.

    A missing file is a deployment error; there is no fallback to defaults.

    Args:
        env: Environment snapshot providing `config_path`.

    Returns:
        Configuration: Validated immutable configuration.

    Raises:
        MissingConfigFileError: Raised when `PUB_CONFIG` is unset or points to
            a path that does not exist.
        ConfigurationLoadError: Raised for read, parse or schema failures.
    """

    if env.config_path is None or not Path(env.config_path).is_file():
        raise MissingConfigFileError(env.config_path, env_variable=CONFIG_PATH_ENV_VARIABLE)
    return config_load_configuration_file(env.config_path)

"""Project-native typed exceptions for deployment configuration failures."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SchemaViolation:
    """One field-level schema failure.

    Attributes:
        path: Dotted field path, for example `admins.0.permissions.1`.
        message: Human-readable description of the failure.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ConfigurationLoadError(Exception):
    """Base exception for configuration loading and validation failures.

    Attributes:
        source: Configuration file path, or None for in-memory input.
    """

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class MissingConfigFileError(ConfigurationLoadError, FileNotFoundError):
    """Resolved configuration path does not point to an existing file."""

    def __init__(self, path: str | None, env_variable: str = "PUB_CONFIG"):
        if path is None:
            message = f"No configuration file configured. Please ensure {env_variable} env is pointing to the config"
        else:
            message = f"File {path} doesnt exist. Please ensure {env_variable} env is pointing to the config"
        super().__init__(message, source=path)
        self.path = path
        self.env_variable = env_variable


class ConfigurationReadError(ConfigurationLoadError, OSError):
    """Configuration file exists but cannot be read."""


class ConfigurationParseError(ConfigurationLoadError, ValueError):
    """YAML syntax failure with 1-based location from the parser mark.

    Attributes:
        line: 1-based line of the failure, when the parser reported one.
        column: 1-based column of the failure, when the parser reported one.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ):
        super().__init__(message, source=source)
        self.line = line
        self.column = column


class SchemaViolationError(ConfigurationLoadError, ValueError):
    """Decoded document does not match the strict configuration schema.

    Attributes:
        violations: Every field-level failure reported for the document.
    """

    def __init__(self, violations: tuple[SchemaViolation, ...], source: str | None = None):
        details = "; ".join(str(violation) for violation in violations)
        if source is None:
            message = f"Configuration schema validation failed: {details}"
        else:
            message = f"Configuration file {source} failed schema validation: {details}"
        super().__init__(message, source=source)
        self.violations = violations

    @property
    def field_paths(self) -> tuple[str, ...]:
        """Return the dotted paths of every violated field."""

        return tuple(violation.path for violation in self.violations)


class ConfigurationRegistryError(RuntimeError):
    """Active configuration registration conflicts with the current scope."""

"""Active configuration registry with scoped overrides.

The registry is a chain of scopes held in a context variable. The root scope
lives for the whole process; `config_configuration_scope` pushes a child scope
for the duration of a `with` block (one test case, one alternate entry point).
Lookups walk from the innermost scope outwards, and lazy loading registers the
loaded configuration into the innermost scope.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from .environment import env_config_current
from .errors import ConfigurationRegistryError
from .loader import config_load_configuration_from_env
from .models import Configuration

logger = logging.getLogger(__name__)


class _ConfigurationScope:
    """One registry scope holding at most one configuration."""

    def __init__(self, parent: _ConfigurationScope | None = None):
        self.parent = parent
        self._lock = threading.Lock()
        self._configuration: Configuration | None = None

    def lookup(self) -> Configuration | None:
        scope: _ConfigurationScope | None = self
        while scope is not None:
            configuration = scope._configuration
            if configuration is not None:
                return configuration
            scope = scope.parent
        return None

    def get_or_load(self, loader: Callable[[], Configuration]) -> Configuration:
        configuration = self.lookup()
        if configuration is not None:
            return configuration
        with self._lock:
            configuration = self.lookup()
            if configuration is None:
                configuration = loader()
                self._configuration = configuration
                logger.debug("Loaded active configuration lazily")
            return configuration

    def register(self, configuration: Configuration) -> None:
        with self._lock:
            if self._configuration is not None:
                raise ConfigurationRegistryError(
                    "An active configuration is already registered in this scope; "
                    "open a new configuration scope to override it"
                )
            self._configuration = configuration
        logger.debug("Registered active configuration for project %s", configuration.project_id)


_ROOT_SCOPE = _ConfigurationScope()
_current_scope: ContextVar[_ConfigurationScope] = ContextVar("pubsite_configuration_scope", default=_ROOT_SCOPE)


def _load_from_environment() -> Configuration:
    return config_load_configuration_from_env(env_config_current())


def config_get_active_configuration() -> Configuration:
    """Return the active configuration, loading it from the environment once.

    Concurrent first access from threads or tasks sharing a scope performs a
    single load, and every caller observes the same instance.

    Returns:
        Configuration: Configuration registered in the current scope chain.

    Raises:
        ConfigurationLoadError: Raised when lazy loading fails.
    """

    return _current_scope.get().get_or_load(_load_from_environment)


def config_register_active_configuration(configuration: Configuration) -> None:
    """Install `configuration` as the active configuration of the current scope.

    Args:
        configuration: Configuration to register.

    Raises:
        ConfigurationRegistryError: Raised when the current scope already
            holds a configuration.
    """

    _current_scope.get().register(configuration)


@contextmanager
def config_configuration_scope(configuration: Configuration | None = None) -> Iterator[None]:
    """Run a block inside a child registry scope.

    Registrations made inside the block are discarded when it exits, so the
    enclosing scope keeps its own configuration.

    Args:
        configuration: Optional configuration registered into the new scope.

    Yields:
        None: Control returns to the caller inside the new scope.
    """

    scope = _ConfigurationScope(parent=_current_scope.get())
    if configuration is not None:
        scope.register(configuration)
    token = _current_scope.set(scope)
    try:
        yield
    finally:
        _current_scope.reset(token)

"""Tests for active configuration registry scoping and single initialization."""

from __future__ import annotations

import asyncio
import contextvars
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from pubsite.config import (
    Configuration,
    ConfigurationRegistryError,
    EnvConfig,
    MissingConfigFileError,
    config_configuration_scope,
    config_get_active_configuration,
    config_register_active_configuration,
)
from pubsite.config import registry as registry_module


class _CountingLoader:
    """Loader stub that counts calls and widens the first-access race window."""

    def __init__(self, delay_seconds: float = 0.05):
        self.calls = 0
        self._delay_seconds = delay_seconds
        self._lock = threading.Lock()

    def __call__(self, env: EnvConfig) -> Configuration:
        """Return a fresh configuration after a short delay.

        Args:
            env: Environment snapshot passed by the registry.

        Returns:
            Configuration: New configuration instance per call.
        """

        _ = env
        with self._lock:
            self.calls += 1
        time.sleep(self._delay_seconds)
        return Configuration.for_tests()


@pytest.fixture
def counting_loader(monkeypatch: pytest.MonkeyPatch) -> _CountingLoader:
    """Route lazy loading through a counting loader and a fixed environment."""

    loader = _CountingLoader()
    monkeypatch.setattr(registry_module, "env_config_current", lambda: EnvConfig(PUB_CONFIG="/unused.yaml"))
    monkeypatch.setattr(registry_module, "config_load_configuration_from_env", loader)
    return loader


def test_config_register_active_configuration_is_returned_by_get() -> None:
    """Return the configuration registered in the current scope.

    Returns:
        None: Assertions validate explicit registration.

    Raises:
        AssertionError: Raised when a different instance is returned.
    """

    configuration = Configuration.for_tests()

    with config_configuration_scope():
        config_register_active_configuration(configuration)

        assert config_get_active_configuration() is configuration
        assert config_get_active_configuration() is configuration


def test_config_register_active_configuration_rejects_second_registration() -> None:
    """Refuse a second registration in a scope that already holds a configuration."""

    with config_configuration_scope(Configuration.for_tests()):
        with pytest.raises(ConfigurationRegistryError):
            config_register_active_configuration(Configuration.for_tests())


def test_config_configuration_scope_isolates_inner_registration() -> None:
    """Let inner scopes see the outer configuration until they register their own.

    Returns:
        None: Assertions validate scope-chain lookup and discard on exit.

    Raises:
        AssertionError: Raised when inner registration leaks outwards.
    """

    outer = Configuration.for_tests()
    inner = Configuration.for_fake_pub_server(frontend_port=8080, search_port=8081, storage_base_url="http://localhost:8082")

    with config_configuration_scope(outer):
        with config_configuration_scope():
            assert config_get_active_configuration() is outer
            config_register_active_configuration(inner)
            assert config_get_active_configuration() is inner

        assert config_get_active_configuration() is outer


def test_config_configuration_scope_keeps_concurrent_outer_view() -> None:
    """Keep an outer-scope accessor's value while an inner scope overrides it."""

    outer = Configuration.for_tests()
    inner = Configuration.for_tests(storage_base_url="http://localhost:9000")

    with config_configuration_scope(outer):
        outer_context = contextvars.copy_context()
        with config_configuration_scope(inner):
            assert config_get_active_configuration() is inner
            assert outer_context.run(config_get_active_configuration) is outer


def test_config_get_active_configuration_loads_once_for_concurrent_threads(counting_loader: _CountingLoader) -> None:
    """Load exactly once when several threads race on first access.

    Returns:
        None: Assertions validate single initialization and shared identity.

    Raises:
        AssertionError: Raised when the loader runs more than once.
    """

    with config_configuration_scope():
        barrier = threading.Barrier(8)

        def _access() -> Configuration:
            barrier.wait()
            return config_get_active_configuration()

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [executor.submit(contextvars.copy_context().run, _access) for _ in range(8)]
            results = [future.result() for future in futures]

        assert counting_loader.calls == 1
        assert all(result is results[0] for result in results)
        assert config_get_active_configuration() is results[0]


def test_config_get_active_configuration_loads_once_for_concurrent_tasks(counting_loader: _CountingLoader) -> None:
    """Load exactly once when concurrently scheduled tasks race on first access."""

    async def _access_concurrently() -> list[Configuration]:
        return await asyncio.gather(*(asyncio.to_thread(config_get_active_configuration) for _ in range(6)))

    with config_configuration_scope():
        results = asyncio.run(_access_concurrently())

    assert counting_loader.calls == 1
    assert all(result is results[0] for result in results)


def test_config_get_active_configuration_loads_per_scope(counting_loader: _CountingLoader) -> None:
    """Load again in a fresh sibling scope and never leak into the enclosing scope."""

    with config_configuration_scope():
        first = config_get_active_configuration()
    with config_configuration_scope():
        second = config_get_active_configuration()

    assert counting_loader.calls == 2
    assert first is not second


def test_config_get_active_configuration_propagates_missing_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Propagate the fail-fast error and leave the scope unregistered.

    Returns:
        None: Assertions validate error propagation.

    Raises:
        AssertionError: Raised when a configuration is returned or registered.
    """

    missing_path = str(tmp_path / "missing.yaml")
    monkeypatch.setattr(registry_module, "env_config_current", lambda: EnvConfig(PUB_CONFIG=missing_path))

    with config_configuration_scope():
        with pytest.raises(MissingConfigFileError) as error_info:
            config_get_active_configuration()

        assert missing_path in str(error_info.value)
        configuration = Configuration.for_tests()
        config_register_active_configuration(configuration)
        assert config_get_active_configuration() is configuration

"""Tests for the command-line entrypoint."""

from pathlib import Path

import pytest

from pubsite.config import Configuration, EnvConfig, config_configuration_scope
from pubsite.config import registry as registry_module
from pubsite.main import main


def test_main_config_check_prints_summary(capsys: pytest.CaptureFixture[str]) -> None:
    """Print a one-line summary for a valid active configuration.

    Returns:
        None: Assertions validate command output.

    Raises:
        AssertionError: Raised when the summary is missing.
    """

    with config_configuration_scope(Configuration.for_tests()):
        main(["config-check"])

    output = capsys.readouterr().out
    assert "Configuration OK" in output
    assert "project=dartlang-pub-test" in output
    assert "admins=1" in output


def test_main_config_check_exits_with_error_for_invalid_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Exit with status 1 when the configuration file violates the schema."""

    path = tmp_path / "config.yaml"
    path.write_text("packageBucketName: pub\n", encoding="utf-8")
    monkeypatch.setattr(registry_module, "env_config_current", lambda: EnvConfig(PUB_CONFIG=str(path)))

    with config_configuration_scope():
        with pytest.raises(SystemExit) as exit_info:
            main(["config-check"])

    assert exit_info.value.code == 1

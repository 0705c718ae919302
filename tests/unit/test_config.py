"""Unit tests for askpass.config."""

from pathlib import Path

import pytest

from askpass.config import (
    PASSWORD_VARS,
    SERVICE_LABEL,
    SUDO_PATH,
    AskpassConfig,
)
from askpass.utils import is_truthy


class TestFromEnviron:
    """Tests for building the config from an environment mapping."""

    def test_empty_environment(self) -> None:
        config = AskpassConfig.from_environ({"USER": "alice"})

        assert config.ci_password is None
        assert config.session_password is None
        assert config.askpass_path is None
        assert config.non_interactive is False
        assert config.debug is False
        assert config.timeout is None
        assert config.store_backend is None
        assert config.account == "alice"
        assert config.service == SERVICE_LABEL
        assert config.warnings == ()

    def test_password_variables_in_priority_order(self) -> None:
        config = AskpassConfig.from_environ(
            {"CI_SUDO_PASSWORD": "ci_password", "SUDO_PASSWORD": "sudo_password"}
        )

        variables = config.password_variables()
        assert list(variables) == list(PASSWORD_VARS)
        assert variables["CI_SUDO_PASSWORD"] == "ci_password"
        assert variables["SUDO_PASSWORD"] == "sudo_password"

    def test_empty_password_is_kept_raw(self) -> None:
        """Emptiness is judged at lookup time so 'config' can report it."""
        config = AskpassConfig.from_environ({"SUDO_PASSWORD": ""})
        assert config.session_password == ""

    def test_account_falls_back_to_logname(self) -> None:
        config = AskpassConfig.from_environ({"LOGNAME": "bob"})
        assert config.account == "bob"

    @pytest.mark.parametrize(
        "raw, expected",
        [("1", True), ("true", True), ("yes", True), ("0", False), ("false", False), ("", False)],
    )
    def test_flags(self, raw: str, expected: bool) -> None:
        config = AskpassConfig.from_environ(
            {"ASKPASS_DEBUG": raw, "ASKPASS_NONINTERACTIVE": raw}
        )
        assert config.debug is expected
        assert config.non_interactive is expected

    def test_timeout_parsed(self) -> None:
        config = AskpassConfig.from_environ({"ASKPASS_TIMEOUT": "2.5"})
        assert config.timeout == 2.5
        assert config.warnings == ()

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_invalid_timeout_ignored_with_warning(self, raw: str) -> None:
        config = AskpassConfig.from_environ({"ASKPASS_TIMEOUT": raw})
        assert config.timeout is None
        assert len(config.warnings) == 1
        assert "ASKPASS_TIMEOUT" in config.warnings[0]

    def test_store_backend(self) -> None:
        config = AskpassConfig.from_environ({"ASKPASS_STORE_BACKEND": " Keyring "})
        assert config.store_backend == "keyring"

    def test_unknown_store_backend_ignored_with_warning(self) -> None:
        config = AskpassConfig.from_environ({"ASKPASS_STORE_BACKEND": "vault"})
        assert config.store_backend is None
        assert "ASKPASS_STORE_BACKEND" in config.warnings[0]

    def test_session_detection(self) -> None:
        config = AskpassConfig.from_environ({"SSH_CONNECTION": "1 2 3 4", "DISPLAY": ":0"})
        assert config.ssh_session is True
        assert config.display_available is True

    def test_repr_hides_passwords(self) -> None:
        config = AskpassConfig.from_environ(
            {"CI_SUDO_PASSWORD": "ci-secret", "SUDO_PASSWORD": "session-secret"}
        )
        text = repr(config)
        assert "ci-secret" not in text
        assert "session-secret" not in text


class TestHelpers:
    """Tests for derived config values."""

    def test_allowed_programs(self) -> None:
        config = AskpassConfig(helper_path="/usr/local/bin/askpass")
        assert config.allowed_programs() == ["/usr/local/bin/askpass", SUDO_PATH]

    def test_allowed_programs_without_helper(self) -> None:
        assert AskpassConfig(helper_path="").allowed_programs() == [SUDO_PATH]

    def test_askpass_points_here(self, tmp_path: Path) -> None:
        helper = tmp_path / "askpass"
        helper.write_text("#!/bin/sh\n")
        config = AskpassConfig(askpass_path=str(helper), helper_path=str(helper))
        assert config.askpass_points_here() is True

        other = AskpassConfig(askpass_path=str(tmp_path / "other"), helper_path=str(helper))
        assert other.askpass_points_here() is False

    def test_askpass_points_here_unset(self) -> None:
        assert AskpassConfig(helper_path="/usr/local/bin/askpass").askpass_points_here() is False


@pytest.mark.parametrize(
    "value, expected",
    [(None, False), ("", False), ("  ", False), ("off", False), ("NO", False), ("on", True)],
)
def test_is_truthy(value, expected) -> None:
    assert is_truthy(value) is expected

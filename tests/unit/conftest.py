"""Unit test configuration - runs before any test collection or imports.

Forces the keyring null backend so no test ever touches the real macOS
Keychain or Secret Service, and replaces the secret store and interactive
prompt used by the CLI with in-memory fakes.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import keyring
import pytest
from keyring.backends.null import Keyring as NullKeyring

from askpass.prompts import DEFAULT_PROMPT, InteractivePrompter
from askpass.secret_store import SecretStore

# Force the null backend BEFORE any test triggers a real keyring call.
keyring.set_keyring(NullKeyring())

ASKPASS_ENV_VARS = [
    "CI_SUDO_PASSWORD",
    "SUDO_PASSWORD",
    "SUDO_ASKPASS",
    "ASKPASS_NONINTERACTIVE",
    "ASKPASS_DEBUG",
    "ASKPASS_TIMEOUT",
    "ASKPASS_STORE_BACKEND",
]

# Modules that bind create_secret_store / select_prompter at import time.
STORE_MODULES = ["askpass.main", "askpass.config_click", "askpass.store_click"]
PROMPTER_MODULES = ["askpass.main"]


class FakeSecretStore(SecretStore):
    """In-memory secret store."""

    name = "fake-store"
    supports_acl = True

    def __init__(self) -> None:
        self.entries: Dict[Tuple[str, str], str] = {}
        self.acls: Dict[Tuple[str, str], List[str]] = {}

    def get(self, account: str, service: str) -> Optional[str]:
        return self.entries.get((account, service))

    def put(
        self, account: str, service: str, secret: str, allowed_programs: Sequence[str]
    ) -> None:
        self.entries[(account, service)] = secret
        self.acls[(account, service)] = list(allowed_programs)

    def delete(self, account: str, service: str) -> bool:
        self.acls.pop((account, service), None)
        return self.entries.pop((account, service), None) is not None


class FakePrompter(InteractivePrompter):
    """Prompter that returns a canned answer and records the prompts shown."""

    name = "fake-prompt"

    def __init__(self, answer: Optional[str]) -> None:
        self.answer = answer
        self.prompts: List[str] = []

    def ask(self, prompt: str = DEFAULT_PROMPT) -> Optional[str]:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without any askpass-related variables set."""
    for name in ASKPASS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("USER", "tester")


@pytest.fixture(autouse=True)
def fake_store(monkeypatch: pytest.MonkeyPatch) -> FakeSecretStore:
    """Replace the OS secret store with an in-memory one for CLI tests."""
    store = FakeSecretStore()
    for module in STORE_MODULES:
        monkeypatch.setattr(f"{module}.create_secret_store", lambda config: store)
    return store


@pytest.fixture(autouse=True)
def no_prompter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Simulate a session with neither a GUI nor a terminal to prompt on."""
    for module in PROMPTER_MODULES:
        monkeypatch.setattr(f"{module}.select_prompter", lambda config: None)


@pytest.fixture
def use_prompter(monkeypatch: pytest.MonkeyPatch):
    """Return a function that installs a FakePrompter answering ``answer``."""

    def _install(answer: Optional[str]) -> FakePrompter:
        prompter = FakePrompter(answer)
        for module in PROMPTER_MODULES:
            monkeypatch.setattr(f"{module}.select_prompter", lambda config: prompter)
        return prompter

    return _install

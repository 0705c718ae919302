"""Password resolution: the ordered chain of sources askpass consults.

Priority order:
1. CI_SUDO_PASSWORD environment variable (ephemeral, per pipeline run)
2. SUDO_PASSWORD environment variable (per shell session)
3. OS secret store entry for the current account
4. Interactive prompt (GUI dialog or terminal), when one is available

The first source that yields a non-empty value wins; later sources are not
consulted. Running out of sources is a normal outcome and returns None.
"""

import subprocess
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Tuple

from .config import PASSWORD_VARS, SUDO_PATH, AskpassConfig
from .prompts import InteractivePrompter
from .secret_store import SecretStore, SecretStoreError
from .utils import debug

SUDO_VERIFY_TIMEOUT = 10.0


@dataclass(frozen=True)
class Resolution:
    """A resolved password and the name of the source that supplied it."""

    secret: str = field(repr=False)
    source: str


def lookup_environment(
    names: Iterable[str], environ: Mapping[str, Optional[str]]
) -> Optional[Tuple[str, str]]:
    """Return ``(name, value)`` for the first variable that is set and non-empty."""
    for name in names:
        value = environ.get(name)
        if value:
            return name, value
    return None


def describe_source(source: str) -> str:
    """Human-readable description of a resolution source."""
    if source in PASSWORD_VARS:
        return f"{source} environment variable"
    descriptions = {
        "keychain": "macOS keychain",
        "keyring": "system keyring",
        "dialog": "password dialog",
        "terminal": "terminal prompt",
    }
    return descriptions.get(source, source)


def resolve(
    config: AskpassConfig,
    store: Optional[SecretStore],
    prompter: Optional[InteractivePrompter],
    prompt_text: Optional[str] = None,
) -> Optional[Resolution]:
    """Resolve the sudo password from the first source that has one."""
    if prompt_text is not None:
        debug(config.debug, f"Called by sudo with prompt {prompt_text!r}")
    for warning in config.warnings:
        debug(config.debug, warning)

    found = lookup_environment(PASSWORD_VARS, config.password_variables())
    if found is not None:
        name, value = found
        debug(config.debug, f"Using {name} environment variable")
        return Resolution(secret=value, source=name)
    debug(config.debug, "No password environment variable set")

    if store is not None:
        try:
            secret = store.get(config.account, config.service)
        except SecretStoreError as exc:
            debug(config.debug, f"Secret store lookup failed: {exc}")
            secret = None
        if secret:
            debug(config.debug, f"Using password from {store.name} ({config.service})")
            return Resolution(secret=secret, source=store.name)
        debug(config.debug, f"No password stored in {store.name} for '{config.account}'")

    if prompter is None:
        debug(config.debug, "No GUI session or terminal available for prompting")
        return None

    debug(config.debug, f"Prompting for password via {prompter.name}")
    secret = prompter.ask()
    if not secret:
        debug(config.debug, f"No password entered via {prompter.name}")
        return None
    return Resolution(secret=secret, source=prompter.name)


def verify_with_sudo(
    secret: str, timeout: Optional[float] = None, sudo_path: str = SUDO_PATH
) -> bool:
    """Check ``secret`` against sudo, ignoring any cached sudo credentials."""
    try:
        result = subprocess.run(  # noqa: S603
            [sudo_path, "-k", "-S", "-p", "", "true"],
            input=f"{secret}\n",
            capture_output=True,
            text=True,
            timeout=timeout or SUDO_VERIFY_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0

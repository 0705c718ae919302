"""Runtime configuration for askpass.

Everything askpass needs from its environment is read once, at process start,
into an :class:`AskpassConfig`. The resolver and the CLI commands receive that
object instead of consulting ``os.environ`` themselves.

Environment Variables:
    CI_SUDO_PASSWORD         -> highest-priority password (per pipeline run)
    SUDO_PASSWORD            -> second-priority password (per shell session)
    SUDO_ASKPASS             -> read by sudo to locate this helper (displayed only)
    ASKPASS_NONINTERACTIVE=1 -> never show the GUI password dialog
    ASKPASS_DEBUG=1          -> trace source selection on stderr (never the value)
    ASKPASS_TIMEOUT=<secs>   -> give up on prompts and store reads after this long
    ASKPASS_STORE_BACKEND    -> force the secret store: "keychain" or "keyring"
"""

import getpass
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .utils import is_truthy

CI_PASSWORD_VAR = "CI_SUDO_PASSWORD"
SESSION_PASSWORD_VAR = "SUDO_PASSWORD"
ASKPASS_PATH_VAR = "SUDO_ASKPASS"
NON_INTERACTIVE_VAR = "ASKPASS_NONINTERACTIVE"
DEBUG_VAR = "ASKPASS_DEBUG"
TIMEOUT_VAR = "ASKPASS_TIMEOUT"
STORE_BACKEND_VAR = "ASKPASS_STORE_BACKEND"

# Lookup order matters: the CI variable always wins over the session variable.
PASSWORD_VARS: Tuple[str, ...] = (CI_PASSWORD_VAR, SESSION_PASSWORD_VAR)

SERVICE_LABEL = "macos-askpass-sudo"
SUDO_PATH = "/usr/bin/sudo"
PROGRAM_NAME = "askpass"

STORE_BACKEND_KEYCHAIN = "keychain"
STORE_BACKEND_KEYRING = "keyring"
STORE_BACKENDS = (STORE_BACKEND_KEYCHAIN, STORE_BACKEND_KEYRING)


def _current_account(environ: Mapping[str, str]) -> str:
    account = environ.get("USER") or environ.get("LOGNAME")
    if account:
        return account
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def resolve_helper_path() -> str:
    """Return the absolute path of the running askpass executable, if it can be found."""
    argv0 = sys.argv[0] if sys.argv else ""
    if argv0 and Path(argv0).name not in ("__main__.py", "-c", ""):
        candidate = Path(argv0)
        if candidate.is_file():
            return str(candidate.resolve())
    return shutil.which(PROGRAM_NAME) or ""


def _parse_timeout(raw: Optional[str], warnings: List[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        warnings.append(f"Ignoring invalid {TIMEOUT_VAR} value {raw!r}")
        return None
    if value <= 0:
        warnings.append(f"Ignoring non-positive {TIMEOUT_VAR} value {raw!r}")
        return None
    return value


def _parse_store_backend(raw: Optional[str], warnings: List[str]) -> Optional[str]:
    if raw is None or not raw.strip():
        return None
    backend = raw.strip().lower()
    if backend not in STORE_BACKENDS:
        warnings.append(
            f"Ignoring unknown {STORE_BACKEND_VAR} value {raw!r} "
            f"(expected one of: {', '.join(STORE_BACKENDS)})"
        )
        return None
    return backend


@dataclass(frozen=True)
class AskpassConfig:
    """Snapshot of the environment askpass runs in."""

    ci_password: Optional[str] = field(default=None, repr=False)
    session_password: Optional[str] = field(default=None, repr=False)
    askpass_path: Optional[str] = None
    non_interactive: bool = False
    debug: bool = False
    timeout: Optional[float] = None
    store_backend: Optional[str] = None
    account: str = ""
    service: str = SERVICE_LABEL
    helper_path: str = ""
    ssh_session: bool = False
    display_available: bool = False
    warnings: Tuple[str, ...] = ()

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "AskpassConfig":
        """Build a config from ``environ`` (defaults to the process environment)."""
        if environ is None:
            environ = os.environ
        warnings: List[str] = []
        return cls(
            ci_password=environ.get(CI_PASSWORD_VAR),
            session_password=environ.get(SESSION_PASSWORD_VAR),
            askpass_path=environ.get(ASKPASS_PATH_VAR) or None,
            non_interactive=is_truthy(environ.get(NON_INTERACTIVE_VAR)),
            debug=is_truthy(environ.get(DEBUG_VAR)),
            timeout=_parse_timeout(environ.get(TIMEOUT_VAR), warnings),
            store_backend=_parse_store_backend(environ.get(STORE_BACKEND_VAR), warnings),
            account=_current_account(environ),
            helper_path=resolve_helper_path(),
            ssh_session=any(
                environ.get(name) for name in ("SSH_CONNECTION", "SSH_CLIENT", "SSH_TTY")
            ),
            display_available=bool(environ.get("DISPLAY") or environ.get("WAYLAND_DISPLAY")),
            warnings=tuple(warnings),
        )

    def password_variables(self) -> Dict[str, Optional[str]]:
        """Return the password-carrying variables keyed by name."""
        return {
            CI_PASSWORD_VAR: self.ci_password,
            SESSION_PASSWORD_VAR: self.session_password,
        }

    def allowed_programs(self) -> List[str]:
        """Programs granted access to the stored password: this helper and sudo."""
        programs = [path for path in (self.helper_path, SUDO_PATH) if path]
        return list(dict.fromkeys(programs))

    def askpass_points_here(self) -> bool:
        """Check whether SUDO_ASKPASS names the running helper."""
        if not self.askpass_path or not self.helper_path:
            return False
        try:
            return Path(self.askpass_path).resolve() == Path(self.helper_path).resolve()
        except OSError:
            return False

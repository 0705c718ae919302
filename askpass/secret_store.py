"""OS credential store access for askpass.

The stored sudo password lives in exactly one entry keyed by
``(account, service)``. On macOS the login keychain is driven through
``/usr/bin/security`` so the entry can carry an access-control list; every
other platform goes through the ``keyring`` library.
"""

import platform
import re
import subprocess
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .config import STORE_BACKEND_KEYCHAIN, STORE_BACKEND_KEYRING, AskpassConfig

SECURITY_TOOL = "/usr/bin/security"

# errSecItemNotFound, as reported by security(1)
ITEM_NOT_FOUND_EXIT = 44
# errSecDuplicateItem
DUPLICATE_ITEM_EXIT = 45

_PASSWORD_LINE = re.compile(
    r'^password:[ \t]*(?:0x([0-9A-Fa-f]+))?[ \t]*(?:"(.*)")?[ \t]*$', re.MULTILINE
)
_ESCAPED_CHAR = re.compile(r"\\(.)")


class SecretStoreError(RuntimeError):
    """Raised when the OS credential store refuses or fails an operation."""


class SecretStore(ABC):
    """Credential store interface."""

    name = "secret store"
    supports_acl = False

    @abstractmethod
    def get(self, account: str, service: str) -> Optional[str]:
        """Return the stored secret, or None when there is no entry."""

    @abstractmethod
    def put(
        self, account: str, service: str, secret: str, allowed_programs: Sequence[str]
    ) -> None:
        """Create or replace the entry, granting access to ``allowed_programs``."""

    @abstractmethod
    def delete(self, account: str, service: str) -> bool:
        """Remove the entry. Returns False when there was nothing to remove."""

    def exists(self, account: str, service: str) -> bool:
        """Check for an entry without handing its contents to the caller."""
        return self.get(account, service) is not None


class KeyringSecretStore(SecretStore):
    """Secret store backed by the ``keyring`` library's default backend.

    A locked Secret Service or KWallet backend can block indefinitely, so every
    call runs on a daemon worker that is abandoned once ``timeout`` expires.
    """

    name = "keyring"

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def _call(self, func: Callable[..., Any], *args: str) -> Any:
        if not self._timeout:
            return func(*args)

        outcome: Dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["value"] = func(*args)
            except Exception as exc:  # re-raised on the calling thread
                outcome["error"] = exc

        worker = threading.Thread(target=run, name="askpass-keyring", daemon=True)
        worker.start()
        worker.join(timeout=self._timeout)
        if worker.is_alive():
            raise SecretStoreError(f"keyring did not respond within {self._timeout:g} seconds")
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("value")

    def get(self, account: str, service: str) -> Optional[str]:
        try:
            value = self._call(keyring.get_password, service, account)
        except KeyringError as exc:
            raise SecretStoreError(f"failed to read keyring entry '{service}': {exc}") from exc
        return value or None

    def put(
        self, account: str, service: str, secret: str, allowed_programs: Sequence[str]
    ) -> None:
        # Access control is up to the keyring backend; allowed_programs cannot be applied.
        try:
            self._call(keyring.set_password, service, account, secret)
        except KeyringError as exc:
            raise SecretStoreError(f"failed to write keyring entry '{service}': {exc}") from exc

    def delete(self, account: str, service: str) -> bool:
        try:
            self._call(keyring.delete_password, service, account)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise SecretStoreError(f"failed to delete keyring entry '{service}': {exc}") from exc
        return True


def parse_password_line(output: str) -> Optional[str]:
    """Extract the secret from ``security find-generic-password -g`` diagnostics.

    security(1) prints ``password: "text"`` when every byte is printable ASCII
    (escaping quotes and backslashes), and ``password: 0x<HEX>  "..."`` otherwise.
    The hex form is authoritative and is decoded as UTF-8.
    """
    match = _PASSWORD_LINE.search(output)
    if match is None:
        raise SecretStoreError("unexpected output from security: no password line")
    hex_data, quoted = match.group(1), match.group(2)
    if hex_data:
        try:
            return bytes.fromhex(hex_data).decode("utf-8")
        except ValueError as exc:
            raise SecretStoreError("stored keychain password is not valid UTF-8") from exc
    if quoted:
        return _ESCAPED_CHAR.sub(r"\1", quoted)
    return None


class KeychainSecretStore(SecretStore):
    """macOS keychain store driven through security(1)."""

    name = "keychain"
    supports_acl = True

    def __init__(self, timeout: Optional[float] = None, tool: str = SECURITY_TOOL) -> None:
        self._timeout = timeout
        self._tool = tool

    def _run(
        self, args: List[str], stdin_text: Optional[str] = None
    ) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(  # noqa: S603
                [self._tool, *args],
                input=stdin_text,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise SecretStoreError(f"{self._tool} not found; is this macOS?") from exc
        except subprocess.TimeoutExpired as exc:
            raise SecretStoreError(
                f"keychain did not respond within {self._timeout:g} seconds"
            ) from exc

    @staticmethod
    def _diagnostic(result: subprocess.CompletedProcess) -> str:
        message = (result.stderr or "").strip()
        return message or f"security exited with status {result.returncode}"

    def get(self, account: str, service: str) -> Optional[str]:
        # -g rather than -w: -w prints non-ASCII passwords as bare hex.
        result = self._run(["find-generic-password", "-a", account, "-s", service, "-g"])
        if result.returncode == ITEM_NOT_FOUND_EXIT:
            return None
        if result.returncode != 0:
            raise SecretStoreError(
                f"failed to read keychain entry '{service}': {self._diagnostic(result)}"
            )
        return parse_password_line(result.stderr or "") or None

    def exists(self, account: str, service: str) -> bool:
        # Without -g only the item attributes are read, so no access prompt appears.
        result = self._run(["find-generic-password", "-a", account, "-s", service])
        if result.returncode == ITEM_NOT_FOUND_EXIT:
            return False
        if result.returncode != 0:
            raise SecretStoreError(
                f"failed to query keychain entry '{service}': {self._diagnostic(result)}"
            )
        return True

    def _add(
        self, account: str, service: str, secret: str, allowed_programs: Sequence[str]
    ) -> subprocess.CompletedProcess:
        args = ["add-generic-password", "-a", account, "-s", service]
        for program in allowed_programs:
            args.extend(["-T", program])
        # A trailing bare -w makes security read the password from stdin, keeping it off argv.
        args.append("-w")
        return self._run(args, stdin_text=f"{secret}\n{secret}\n")

    def put(
        self, account: str, service: str, secret: str, allowed_programs: Sequence[str]
    ) -> None:
        result = self._add(account, service, secret, allowed_programs)
        if result.returncode == DUPLICATE_ITEM_EXIT:
            # Replace rather than update (-U) so the ACL ends up exactly as requested.
            # The previous password is put back if the new entry cannot be written.
            previous = self.get(account, service)
            self.delete(account, service)
            result = self._add(account, service, secret, allowed_programs)
            if result.returncode != 0 and previous is not None:
                restored = self._add(account, service, previous, allowed_programs)
                if restored.returncode != 0:
                    raise SecretStoreError(
                        f"failed to write keychain entry '{service}' and the previous "
                        f"password could not be restored: {self._diagnostic(result)}"
                    )
        if result.returncode != 0:
            raise SecretStoreError(
                f"failed to write keychain entry '{service}': {self._diagnostic(result)}"
            )

    def delete(self, account: str, service: str) -> bool:
        result = self._run(["delete-generic-password", "-a", account, "-s", service])
        if result.returncode == ITEM_NOT_FOUND_EXIT:
            return False
        if result.returncode != 0:
            raise SecretStoreError(
                f"failed to delete keychain entry '{service}': {self._diagnostic(result)}"
            )
        return True


def create_secret_store(config: AskpassConfig) -> SecretStore:
    """Pick the secret store for this platform, honoring ASKPASS_STORE_BACKEND."""
    backend = config.store_backend
    if backend is None:
        backend = (
            STORE_BACKEND_KEYCHAIN if platform.system() == "Darwin" else STORE_BACKEND_KEYRING
        )
    if backend == STORE_BACKEND_KEYCHAIN:
        return KeychainSecretStore(timeout=config.timeout)
    return KeyringSecretStore(timeout=config.timeout)

"""CLI commands for storing and removing the sudo password."""

from typing import Any

import click

from .config import AskpassConfig
from .secret_store import SecretStoreError, create_secret_store
from .utils import ExitCodes, exit_with_error, format_success


def _read_secret(from_stdin: bool) -> str:
    if from_stdin:
        data = click.get_text_stream("stdin").read()
        return data.removesuffix("\n").removesuffix("\r")
    return click.prompt(
        "Enter your sudo password",
        hide_input=True,
        confirmation_prompt="Confirm your sudo password",
    )


def register_store_commands(cli: Any) -> None:
    """Register the 'store' and 'remove' commands."""

    @cli.command()
    @click.option(
        "--stdin",
        "from_stdin",
        is_flag=True,
        help="Read the password from standard input instead of prompting",
    )
    def store(from_stdin: bool) -> None:
        """Save your sudo password in the OS secret store.

        Any previously stored password is replaced. Only askpass and sudo are
        granted access to the entry where the store supports access lists.
        """
        config = AskpassConfig.from_environ()
        secret = _read_secret(from_stdin)
        if not secret:
            exit_with_error("Password cannot be empty.", ExitCodes.INVALID_INPUT)
        if "\n" in secret or "\r" in secret:
            exit_with_error("Password must be a single line.", ExitCodes.INVALID_INPUT)

        secret_store = create_secret_store(config)
        try:
            secret_store.put(config.account, config.service, secret, config.allowed_programs())
        except SecretStoreError as exc:
            exit_with_error(f"Failed to store password: {exc}")

        details = {
            "Account": config.account,
            "Service": config.service,
            "Backend": secret_store.name,
        }
        if secret_store.supports_acl:
            details["Access"] = ", ".join(config.allowed_programs())
        format_success("Password stored securely", details)

    @cli.command()
    def remove() -> None:
        """Delete the stored sudo password. Succeeds if none is stored."""
        config = AskpassConfig.from_environ()
        secret_store = create_secret_store(config)
        try:
            removed = secret_store.delete(config.account, config.service)
        except SecretStoreError as exc:
            exit_with_error(f"Failed to remove password: {exc}")

        if removed:
            format_success(f"Stored password removed from {secret_store.name}")
        else:
            click.echo("No stored password found; nothing to remove.")

"""Shared utility functions for askpass."""

import sys
from typing import Any, Dict, NoReturn, Optional

import click


class ExitCodes:
    """Standard exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_INPUT = 2


DEBUG_PREFIX = "ASKPASS DEBUG:"


def is_truthy(value: Optional[str]) -> bool:
    """Interpret an environment flag value. Unset, empty, 0, false and no are off."""
    if value is None:
        return False
    value = value.strip().lower()
    return bool(value) and value not in ("0", "false", "no", "off")


def debug(enabled: bool, message: str) -> None:
    """Write a diagnostic trace line to stderr when debugging is enabled.

    Callers must never pass secret material in ``message``.
    """
    if enabled:
        click.echo(f"{DEBUG_PREFIX} {message}", err=True)


def format_success(message: str, data: Optional[Dict[str, Any]] = None) -> None:
    """Format success messages consistently.

    Args:
        message: Success message to display
        data: Optional data to display with the message
    """
    click.echo(f"✓ {message}")
    if data:
        for key, value in data.items():
            click.echo(f"  {key}: {value}")


def exit_with_error(message: str, code: int = ExitCodes.GENERAL_ERROR) -> NoReturn:
    """Print an error to stderr and terminate with ``code``."""
    click.echo(f"✗ {message}", err=True)
    sys.exit(code)

"""CLI command for showing how askpass is configured."""

import json
from typing import Any, Dict, List

import click

from .config import (
    CI_PASSWORD_VAR,
    NON_INTERACTIVE_VAR,
    SESSION_PASSWORD_VAR,
    AskpassConfig,
)
from .prompts import find_dialog_program, has_terminal
from .secret_store import SecretStore, SecretStoreError, create_secret_store
from .table_utils import output_table


def _variable_status(value: Any) -> str:
    if value is None:
        return "not set"
    if not value:
        return "set but empty (ignored)"
    return "set"


def _store_status(config: AskpassConfig, store: SecretStore) -> str:
    try:
        return "stored" if store.exists(config.account, config.service) else "not stored"
    except SecretStoreError as exc:
        return f"error: {exc}"


def _dialog_status(config: AskpassConfig) -> str:
    program = find_dialog_program(config)
    if program is None:
        return "unavailable"
    if config.non_interactive:
        return f"suppressed ({NON_INTERACTIVE_VAR})"
    return f"available ({program})"


def get_config_info(config: AskpassConfig, store: SecretStore) -> Dict[str, Any]:
    """Describe the configured password sources without revealing any secret.

    Returns:
        Dictionary with the ordered sources and the settings that affect them.
    """
    sources: List[Dict[str, Any]] = [
        {
            "priority": 1,
            "source": CI_PASSWORD_VAR,
            "status": _variable_status(config.ci_password),
        },
        {
            "priority": 2,
            "source": SESSION_PASSWORD_VAR,
            "status": _variable_status(config.session_password),
        },
        {
            "priority": 3,
            "source": f"{store.name} ({config.service})",
            "status": _store_status(config, store),
        },
        {"priority": 4, "source": "GUI dialog", "status": _dialog_status(config)},
        {
            "priority": 5,
            "source": "terminal prompt",
            "status": "available" if has_terminal() else "unavailable",
        },
    ]
    return {
        "sources": sources,
        "account": config.account,
        "service": config.service,
        "store_backend": store.name,
        "helper_path": config.helper_path or None,
        "sudo_askpass": config.askpass_path,
        "sudo_askpass_matches": config.askpass_points_here(),
        "debug": config.debug,
        "non_interactive": config.non_interactive,
        "timeout": config.timeout,
        "warnings": list(config.warnings),
    }


def register_config_commands(cli: Any) -> None:
    """Register the 'config' command."""

    @cli.command(name="config")
    @click.option(
        "--format",
        "-f",
        type=click.Choice(["table", "json"]),
        default="table",
        help="Output format",
    )
    def show_config(format: str) -> None:
        """Show password sources in priority order and current settings."""
        config = AskpassConfig.from_environ()
        info = get_config_info(config, create_secret_store(config))

        if format == "json":
            click.echo(json.dumps(info, indent=2))
            return

        click.echo("ASKPASS Configuration")
        click.echo("")
        click.echo("Password Sources (highest priority first):")
        output_table(
            [[s["priority"], s["source"], s["status"]] for s in info["sources"]],
            headers=["#", "SOURCE", "STATUS"],
            column_widths=[1, 32, 40],
        )
        click.echo("")
        click.echo("Settings:")
        click.echo(f"  Account:       {info['account'] or '(unknown)'}")
        click.echo(f"  Service:       {info['service']}")
        click.echo(f"  Store backend: {info['store_backend']}")
        click.echo(f"  Helper path:   {info['helper_path'] or '(not found on PATH)'}")
        if info["sudo_askpass"] is None:
            click.echo("  SUDO_ASKPASS:  not set")
        else:
            marker = "✓" if info["sudo_askpass_matches"] else "⚠️  does not point to this helper"
            click.echo(f"  SUDO_ASKPASS:  {info['sudo_askpass']} {marker}")
        click.echo(f"  Debug:         {'enabled' if info['debug'] else 'disabled'}")
        timeout = info["timeout"]
        click.echo(f"  Timeout:       {f'{timeout:g}s' if timeout else 'none'}")
        for warning in info["warnings"]:
            click.echo(f"⚠️  {warning}", err=True)

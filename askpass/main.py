"""askpass entry points."""

import re
from pathlib import Path
from typing import Any, List, Mapping

import click
import tomllib

from .config import AskpassConfig
from .config_click import register_config_commands
from .prompts import select_prompter
from .resolver import describe_source, resolve, verify_with_sudo
from .secret_store import create_secret_store
from .setup_click import register_setup_commands
from .store_click import register_store_commands
from .utils import ExitCodes, exit_with_error, format_success

PROMPT_TEXT_KEY = "askpass.prompt_text"

# Lowercase words are reserved for subcommands; anything else sudo might pass
# ("Password:", "[sudo] password for alice: ") is prompt text.
_COMMAND_WORD = re.compile(r"[a-z][a-z0-9_-]*")


def get_version() -> str:
    """Get version from _version.py (installed package) or pyproject.toml (development)."""
    try:
        from ._version import __version__

        return __version__
    except ImportError:
        try:
            pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
            with open(pyproject_path, "rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data["project"]["version"]
        except (OSError, KeyError, tomllib.TOMLDecodeError):
            return "unknown"


def is_prompt_text(arg: str, commands: Mapping[str, Any]) -> bool:
    """Decide whether a lone argument is sudo's prompt rather than a subcommand."""
    if arg in commands or arg.startswith("-"):
        return False
    return _COMMAND_WORD.fullmatch(arg) is None


class AskpassGroup(click.Group):
    """Command group that honors the ASKPASS calling convention.

    sudo runs the helper with its prompt as the only argument. That argument
    is accepted, remembered for debug output and otherwise ignored, so
    ``askpass "Password:"`` resolves exactly like ``askpass``.

    A lone bare lowercase word (``password``, ``foo-bar``) is reserved for
    subcommands and fails as an unknown command. A custom ``sudo -p`` prompt
    therefore needs a capital letter, a space or a character such as ``:``.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        if len(args) == 1 and is_prompt_text(args[0], self.commands):
            ctx.meta[PROMPT_TEXT_KEY] = args[0]
            args = []
        return super().parse_args(ctx, args)


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.group(cls=AskpassGroup, context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """askpass - supply the sudo password through SUDO_ASKPASS.

    Run without a command (sudo passes its prompt as the only argument) to
    print the password from the first available source:

    \b
      1. CI_SUDO_PASSWORD environment variable
      2. SUDO_PASSWORD environment variable
      3. OS secret store (see 'askpass store')
      4. GUI password dialog, or a terminal prompt

    \b
    Usage with sudo:
      export SUDO_ASKPASS=$(which askpass)
      sudo -A <command>

    Set ASKPASS_DEBUG=1 to trace source selection on stderr,
    ASKPASS_NONINTERACTIVE=1 to disable the dialog and ASKPASS_TIMEOUT to
    bound how long prompts may wait.

    A custom sudo -p prompt must not be a bare lowercase word such as
    "password"; that is read as an unknown command. Use "Password:" instead.
    """
    if version:
        click.echo(f"askpass version {get_version()}")
        ctx.exit()
    if ctx.invoked_subcommand is not None:
        return

    config = AskpassConfig.from_environ()
    result = resolve(
        config,
        create_secret_store(config),
        select_prompter(config),
        prompt_text=ctx.meta.get(PROMPT_TEXT_KEY),
    )
    if result is None:
        click.echo("✗ askpass: no password available.", err=True)
        click.echo(
            "  Set CI_SUDO_PASSWORD or SUDO_PASSWORD, or run 'askpass setup'.", err=True
        )
        ctx.exit(ExitCodes.GENERAL_ERROR)
    click.echo(result.secret, nl=False)


@cli.command(name="test")
@click.option("--verify", is_flag=True, help="Also check the password against sudo")
def run_self_test(verify: bool) -> None:
    """Check that a password can be resolved, without printing it."""
    config = AskpassConfig.from_environ()
    click.echo("Testing password resolution...")
    result = resolve(config, create_secret_store(config), select_prompter(config))
    if result is None:
        exit_with_error("No password source is available. Run 'askpass setup' to configure one.")

    format_success(f"Password retrieved from {describe_source(result.source)}")
    if verify:
        click.echo("Verifying password with sudo...")
        if not verify_with_sudo(result.secret, timeout=config.timeout):
            exit_with_error("sudo rejected the password (or did not respond).")
        format_success("sudo accepted the password")


@cli.command()
def version() -> None:
    """Show version and exit."""
    click.echo(f"askpass version {get_version()}")


@cli.command(name="help")
@click.pass_context
def show_help(ctx: click.Context) -> None:
    """Show usage and exit."""
    click.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


register_config_commands(cli)
register_setup_commands(cli)
register_store_commands(cli)


def main() -> None:
    """Console script entry point."""
    cli(prog_name="askpass")


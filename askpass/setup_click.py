"""Interactive setup wizard."""

from typing import Any

import click

from .config import ASKPASS_PATH_VAR, CI_PASSWORD_VAR, SESSION_PASSWORD_VAR, AskpassConfig

CHOICE_STORE = "1"
CHOICE_SESSION = "2"
CHOICE_CI = "3"


def _print_session_instructions() -> None:
    click.echo("")
    click.echo("Set the password for the current shell session only:")
    click.echo(f"  read -s {SESSION_PASSWORD_VAR} && export {SESSION_PASSWORD_VAR}")
    click.echo("")
    click.echo("Do not put it in a shell profile. Clear it when you are done:")
    click.echo(f"  unset {SESSION_PASSWORD_VAR}")


def _print_ci_instructions() -> None:
    click.echo("")
    click.echo("Inject the password from your CI secret manager for each run, e.g.")
    click.echo("GitHub Actions:")
    click.echo("  env:")
    click.echo(f"    {CI_PASSWORD_VAR}: ${{{{ secrets.SUDO_PASSWORD }}}}")
    click.echo("  run: |")
    click.echo(f"    export {ASKPASS_PATH_VAR}=$(which askpass)")
    click.echo("    sudo -A make integration-test")
    click.echo("")
    click.echo(f"{CI_PASSWORD_VAR} overrides every other source while it is set.")


def register_setup_commands(cli: Any) -> None:
    """Register the 'setup' command."""

    @cli.command()
    @click.pass_context
    def setup(ctx: click.Context) -> None:
        """Choose and configure where askpass gets the sudo password."""
        config = AskpassConfig.from_environ()

        click.echo("askpass setup")
        click.echo("")
        click.echo("Where should askpass find your sudo password?")
        click.echo(f"  {CHOICE_STORE}) OS secret store (recommended for workstations)")
        click.echo(f"  {CHOICE_SESSION}) {SESSION_PASSWORD_VAR} for one shell session")
        click.echo(f"  {CHOICE_CI}) {CI_PASSWORD_VAR} for CI/CD pipelines")
        choice = click.prompt(
            "Selection",
            type=click.Choice([CHOICE_STORE, CHOICE_SESSION, CHOICE_CI]),
            default=CHOICE_STORE,
        )

        if choice == CHOICE_STORE:
            ctx.invoke(cli.get_command(ctx, "store"))
        elif choice == CHOICE_SESSION:
            _print_session_instructions()
        else:
            _print_ci_instructions()

        helper = config.helper_path or "$(which askpass)"
        click.echo("")
        click.echo("Point sudo at askpass, then run privileged commands with 'sudo -A':")
        click.echo(f"  export {ASKPASS_PATH_VAR}={helper}")

        if choice == CHOICE_STORE and click.confirm("Test password retrieval now?", default=True):
            ctx.invoke(cli.get_command(ctx, "test"))

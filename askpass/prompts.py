"""Interactive password prompts: a native GUI dialog or the controlling terminal.

Neither prompter ever writes to standard output, which belongs to sudo.
"""

import getpass
import os
import platform
import shutil
import signal
import subprocess
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .config import AskpassConfig

DEFAULT_PROMPT = "Enter your password for sudo:"
DIALOG_TITLE = "ASKPASS"

# Checked in order on X11/Wayland desktops.
LINUX_DIALOG_PROGRAMS = ("zenity", "kdialog")


class PromptTimeout(Exception):
    """Raised inside a prompt when ASKPASS_TIMEOUT expires."""


class InteractivePrompter(ABC):
    """Asks a human for the password."""

    name = "prompt"

    @abstractmethod
    def ask(self, prompt: str = DEFAULT_PROMPT) -> Optional[str]:
        """Return the entered password, or None on cancel, empty input or timeout."""


def _applescript_quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dialog_command(program: str, prompt: str) -> List[str]:
    """Build the argv that shows a hidden-input password dialog with ``program``."""
    name = os.path.basename(program)
    if name == "osascript":
        script = (
            f"text returned of (display dialog {_applescript_quote(prompt)} "
            'default answer "" with hidden answer '
            f"with title {_applescript_quote(DIALOG_TITLE)} with icon caution "
            'buttons {"Cancel", "OK"} default button "OK" cancel button "Cancel")'
        )
        return [program, "-e", script]
    if name == "zenity":
        return [program, "--entry", "--hide-text", "--title", DIALOG_TITLE, "--text", prompt]
    if name == "kdialog":
        return [program, "--title", DIALOG_TITLE, "--password", prompt]
    raise ValueError(f"Unsupported dialog program: {program}")


class DialogPrompter(InteractivePrompter):
    """Native password dialog (osascript on macOS, zenity/kdialog elsewhere)."""

    name = "dialog"

    def __init__(self, program: str, timeout: Optional[float] = None) -> None:
        self.program = program
        self._timeout = timeout

    def ask(self, prompt: str = DEFAULT_PROMPT) -> Optional[str]:
        try:
            result = subprocess.run(  # noqa: S603
                dialog_command(self.program, prompt),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None
        # Any non-zero status means the user cancelled or the dialog failed.
        if result.returncode != 0:
            return None
        value = result.stdout.rstrip("\n")
        return value or None


@contextmanager
def _deadline(seconds: Optional[float]) -> Iterator[None]:
    """Raise PromptTimeout in the block once ``seconds`` have elapsed (POSIX only)."""
    if not seconds or not hasattr(signal, "SIGALRM"):
        yield
        return

    def _expire(signum: int, frame: object) -> None:
        raise PromptTimeout()

    previous = signal.signal(signal.SIGALRM, _expire)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous if previous is not None else signal.SIG_DFL)


class TerminalPrompter(InteractivePrompter):
    """Echo-free prompt on the controlling terminal."""

    name = "terminal"

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def ask(self, prompt: str = DEFAULT_PROMPT) -> Optional[str]:
        try:
            with _deadline(self._timeout):
                value = getpass.getpass(f"{prompt} ")
        except (EOFError, PromptTimeout):
            return None
        return value or None


def find_dialog_program(config: AskpassConfig) -> Optional[str]:
    """Return the dialog program to use for a GUI prompt, or None without a GUI session."""
    if platform.system() == "Darwin":
        if config.ssh_session:
            return None
        return shutil.which("osascript")
    if not config.display_available:
        return None
    for program in LINUX_DIALOG_PROGRAMS:
        path = shutil.which(program)
        if path:
            return path
    return None


def has_terminal() -> bool:
    """Check whether a controlling terminal can be opened."""
    try:
        fd = os.open("/dev/tty", os.O_RDWR | getattr(os, "O_NOCTTY", 0))
    except OSError:
        return False
    os.close(fd)
    return True


def select_prompter(config: AskpassConfig) -> Optional[InteractivePrompter]:
    """Pick the interactive prompt: GUI dialog, then terminal, else nothing.

    ASKPASS_NONINTERACTIVE suppresses the dialog even inside a GUI session.
    """
    if not config.non_interactive:
        program = find_dialog_program(config)
        if program:
            return DialogPrompter(program, timeout=config.timeout)
    if has_terminal():
        return TerminalPrompter(timeout=config.timeout)
    return None

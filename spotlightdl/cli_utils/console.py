"""
spotlightdl console utilities

This module provides application-wide access to Rich Console objects for
handling writing to stdout and stderr. Human readable messages go through 'console'
and 'error_console'. Paths of downloaded files go through 'machine_console', which
never applies markup or highlighting so that output can be piped into other tools.
"""

from rich.console import Console
from rich.theme import Theme
from rich.markup import escape

spotlight_theme = Theme(
    {"fail": "bold red", "confirm": "", "describe": ""}
)

console = Console(theme=spotlight_theme)
error_console = Console(theme=spotlight_theme, stderr=True)
machine_console = Console(theme=spotlight_theme, highlight=False, soft_wrap=True)


"""
Formatting helpers
"""


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stdout.
    """

    console.print(escape(msg), style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stdout. Accept any additional kwargs that console.print from
    rich module exposes.
    """

    console.print(escape(msg), style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {escape(msg)}", style="fail")


def emit_path(path):
    """
    Print a single file path to stdout with no decoration. One path per line.
    """

    machine_console.print(str(path), markup=False, emoji=False)

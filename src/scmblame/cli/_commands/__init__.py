"""scmblame CLI commands."""

from cyclopts import App

from ._blame import blame_command, check_command, ignored_command
from ._shared import ExitCode, exit_with_error, format_json, get_error_console

__all__ = [
    "ExitCode",
    "blame_command",
    "check_command",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "ignored_command",
    "register_commands",
]


def register_commands(app: App) -> None:
    app.command(blame_command, name="blame")
    app.command(check_command, name="check")
    app.command(ignored_command, name="ignored")

"""The scmblame command-line interface."""

from ._app import app, create_app, main
from ._context import CLIContext, LoadedContext

__all__ = ["CLIContext", "LoadedContext", "app", "create_app", "main"]

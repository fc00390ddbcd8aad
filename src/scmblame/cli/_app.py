"""The command-line interface for scmblame."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated, Any

from cyclopts import App, Parameter
from rich.console import Console

from scmblame.enums import BlameAlgorithm

from ._commands import register_commands
from ._context import CLIContext

_HELP = "Collect per-line blame information for files in a git work tree."


def _build_overrides(
    *,
    verbose: bool,
    submodules: bool | None,
    algorithm: BlameAlgorithm | None,
) -> dict[str, Any] | None:  # pyright: ignore[reportExplicitAny]
    """Translate global flags into configuration overrides.

    Returns:
        Nested override dictionary, or None when no flag was given.
    """
    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    scm: dict[str, object] = {}
    if submodules is not None:
        scm["submodules_included"] = submodules
    if algorithm is not None:
        scm["blame_algorithm"] = algorithm.value
    if scm:
        overrides["scm"] = scm
    if verbose:
        overrides["logging"] = {"level": "debug"}
    return overrides or None


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="scmblame",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        submodules: Annotated[
            bool | None,
            Parameter(
                name="--submodules",
                negative="--no-submodules",
                help="Include checked-out submodules",
            ),
        ] = None,
        algorithm: Annotated[
            BlameAlgorithm | None,
            Parameter(name="--algorithm", help="Force one blame back-end"),
        ] = None,
    ) -> None:
        """Launch scmblame CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Enable debug logging.
            config: Explicit path to config file.
            submodules: Include or exclude checked-out submodules.
            algorithm: Force one blame back-end for every batch.
        """
        ctx = CLIContext(
            config_path=config,
            cli_overrides=_build_overrides(
                verbose=verbose, submodules=submodules, algorithm=algorithm
            ),
            verbose=verbose,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `scmblame` CLI."""
    app.meta()


if __name__ == "__main__":
    main()

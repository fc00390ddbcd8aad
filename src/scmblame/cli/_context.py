# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

This module provides thread-safe context management for the global CLI
options. The CLIContext is set once at CLI startup and made available to
all commands via contextvars. Configuration is loaded by each command once
it knows the analysis base directory, since the project config file lives
there.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.config import Config, safe_load_config
from scmblame.utils import create_cli_logger


@dataclass(frozen=True, slots=True)
class LoadedContext:
    """Configuration and logger resolved for one command invocation.

    Attributes:
        config: Merged configuration.
        config_error: Error message if config loading failed.
        logger: Structured logger for the command.
    """

    config: Config = field(repr=False)
    config_error: str | None
    logger: FilteringBoundLogger = field(repr=False)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI options.

    Attributes:
        config_path: Explicit config file (--config), or None for discovery.
        cli_overrides: Configuration overrides built from global flags.
        verbose: Enable verbose output with additional details.
    """

    config_path: Path | None = None
    cli_overrides: dict[str, Any] | None = None  # pyright: ignore[reportExplicitAny]
    verbose: bool = False

    @classmethod
    def get_current(cls) -> "CLIContext":  # noqa: UP037
        """Get current active CLIContext, or create a default if not set.

        Returns:
            The currently active CLIContext, or a default instance if none is set.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls()

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:  # noqa: UP037
        """Set the current active CLIContext.

        Args:
            ctx: The CLIContext to set as current.
        """
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context.

        This is primarily useful for testing to ensure a clean state between tests.
        """
        _current_cli_context.set(None)

    def load(self, base_dir: Path | None, *, command: str) -> LoadedContext:
        """Load configuration for a base directory and build the command logger.

        Args:
            base_dir: Analysis base directory holding `.scmblame.toml`.
            command: Command name bound to every log entry.

        Returns:
            The loaded configuration and logger.
        """
        config, config_error = safe_load_config(
            config_path=self.config_path,
            base_dir=base_dir,
            cli_overrides=self.cli_overrides,
        )
        logger = create_cli_logger(
            level=config.logging.level.value,
            log_format=config.logging.format.value,  # type: ignore[arg-type]
            log_file=config.logging.file,
            command=command,
        )
        return LoadedContext(config=config, config_error=config_error, logger=logger)


# Thread-safe context variable for CLIContext
_current_cli_context: contextvars.ContextVar[CLIContext | None] = contextvars.ContextVar(
    "cli_context", default=None
)

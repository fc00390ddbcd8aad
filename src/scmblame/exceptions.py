"""scmblame exceptions."""

from pathlib import Path  # noqa: TC003
from typing import Any


class ScmBlameError(Exception):
    """Base exception for scmblame errors."""


class NotInsideWorkTreeError(ScmBlameError):
    """Raised when the base directory is not inside a Git work tree.

    This is the only error that aborts a whole blame invocation.

    Attributes:
        path: The directory that was expected to be inside a work tree.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and the offending directory.

        Args:
            message: Human-readable error message.
            path: The directory that is not inside a work tree.
        """
        super().__init__(message)
        self.path: Path | None = path


class IgnoreIndexNotInitializedError(ScmBlameError):
    """Raised when an ignore index is queried before init() or after clean()."""


class BlameProviderError(ScmBlameError):
    """Base exception for per-file blame provider failures."""


class NativeBlameError(BlameProviderError):
    """Raised when the native git blame subprocess fails for a file.

    Attributes:
        path: Repository-relative path of the file being blamed.
        exit_code: Process exit code, or None if the process never ran.
        stderr: Standard error captured from the process.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            path: Repository-relative path of the file being blamed.
            exit_code: Process exit code, if the process ran.
            stderr: Standard error captured from the process.
        """
        super().__init__(message)
        self.path: str | None = path
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr


class ConfigError(ScmBlameError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.source: str | None = source

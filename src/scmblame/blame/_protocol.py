# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""Collaborator protocols for the blame orchestrator.

The orchestrator receives each of its collaborators through its constructor.
These runtime-checkable protocols describe what it relies on, so tests can
pass fakes or mocks without patching module globals.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, TypeAlias, runtime_checkable

from scmblame.blame._models import BlameLine, InputFile, RepositoryHandle
from scmblame.enums import BlameAlgorithm, RepositoryState

StrategySelector: TypeAlias = Callable[[int, int], BlameAlgorithm]
"""Policy choosing the back-end from (file_count, available_parallelism)."""


@runtime_checkable
class BlameOutput(Protocol):
    """Sink receiving blame results, one call per successfully blamed file."""

    def blame_result(self, file: InputFile, lines: Sequence[BlameLine]) -> None:
        """Receive the blame of one file.

        Args:
            file: The file that was blamed.
            lines: One entry per line, in file order. Never empty.
        """
        ...


@runtime_checkable
class AnalysisWarnings(Protocol):
    """Sink for user-facing warnings."""

    def add_unique(self, message: str) -> None:
        """Record a warning, ignoring messages already recorded.

        Args:
            message: Warning text shown to the user.
        """
        ...


@runtime_checkable
class RepositoryGuardProtocol(Protocol):
    """Opens and classifies the repository holding a base directory."""

    def open(self, base_dir: Path) -> tuple[RepositoryHandle, RepositoryState]:
        """Open the repository and classify its health."""
        ...

    def resolve_head(self, handle: RepositoryHandle) -> str | None:
        """Return the HEAD commit id, or None when HEAD cannot be resolved."""
        ...


@runtime_checkable
class IgnoreIndexProtocol(Protocol):
    """Inclusion index built from ignore rules."""

    def init(self, root: Path) -> None:
        """Build the index for paths under `root`."""
        ...

    def is_ignored(self, path: Path) -> bool:
        """Return True unless `path` is an indexed, non-excluded file."""
        ...

    def clean(self) -> None:
        """Discard the index."""
        ...


@runtime_checkable
class LibraryBlameProviderProtocol(Protocol):
    """In-process blame back-end."""

    def blame(
        self, repository: RepositoryHandle, relative_path: str
    ) -> list[BlameLine] | None:
        """Blame one file, returning None when no result can be produced."""
        ...


@runtime_checkable
class NativeBlameProviderProtocol(Protocol):
    """Subprocess blame back-end."""

    def check_if_enabled(self) -> bool:
        """Return True if the external executable can be used."""
        ...

    def blame(self, base_dir: Path, relative_path: str) -> list[BlameLine] | None:
        """Blame one file, raising on subprocess failure."""
        ...

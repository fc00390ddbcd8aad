# ruff: noqa: TC003  # Path and datetime needed at runtime for dataclass fields
"""Blame data structures.

This module defines the value types passed between the blame components:
per-line attribution, the files handed in by the caller and the repository
handles produced by the guard.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Self

from dulwich.repo import Repo


@dataclass(frozen=True, slots=True)
class BlameLine:
    """Attribution of a single source line.

    Attributes:
        revision: Commit that last touched the line (40-char hex).
        author: E-mail address of the commit author.
        date: Committer timestamp of that commit (timezone-aware).
    """

    revision: str
    author: str
    date: datetime


@dataclass(frozen=True, slots=True)
class InputFile:
    """A file submitted for blame.

    Attributes:
        path: Absolute path of the file.
        lines: Number of lines the analysis pipeline counted for the file.
    """

    path: Path
    lines: int

    @classmethod
    def from_path(cls, path: Path) -> Self:
        """Build an InputFile, counting lines the way the analyzer does.

        The count is the number of newline characters plus one, so a file
        ending with a newline counts one more line than git reports.

        Args:
            path: Path to an existing file.

        Returns:
            InputFile with an absolute path and its line count.
        """
        resolved = path.resolve()
        return cls(path=resolved, lines=resolved.read_bytes().count(b"\n") + 1)


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    """An open repository together with its work tree.

    Attributes:
        repo: The open dulwich repository.
        work_tree: Resolved work tree directory.
        name: Submodule name, or None for the top-level repository.
    """

    repo: Repo
    work_tree: Path
    name: str | None = None

    def close(self) -> None:
        """Release file handles held by the repository."""
        self.repo.close()


@dataclass(frozen=True, slots=True)
class Submodule:
    """A submodule registered in a parent repository's `.gitmodules`.

    Attributes:
        name: Submodule name from its `[submodule "<name>"]` section.
        path: Absolute path where the submodule is checked out.
        work_tree_repository: Handle on the submodule repository, or None
            when it is not checked out.
    """

    name: str
    path: Path
    work_tree_repository: RepositoryHandle | None = None

    @property
    def checked_out(self) -> bool:
        """Return True if the submodule repository could be opened."""
        return self.work_tree_repository is not None

"""Per-line blame collection for files inside a git work tree.

This package provides the components that collect blame information:

- RepositoryGuard: opens the repository and classifies its health.
- IgnoreIndex: decides which files are eligible, following gitignore rules.
- LibraryBlameProvider: in-process blame from the dulwich object store.
- NativeBlameProvider: blame through the git executable.
- DefaultBlameStrategy: chooses which provider to try first.
- CompositeBlameCommand: orchestrates the above across a thread pool.

Example:
    >>> from scmblame.blame import BlameResultCollector, CompositeBlameCommand, InputFile
    >>> command = CompositeBlameCommand()
    >>> collector = BlameResultCollector()
    >>> command.blame(base_dir, [InputFile.from_path(base_dir / "main.py")], collector)
    >>> collector.results
"""

from ._collectors import BlameResultCollector, WarningCollector
from ._composite import CompositeBlameCommand, attempts_for, pad_to_line_count
from ._guard import SHALLOW_WARNING, RepositoryGuard
from ._ignore import IgnoreIndex, is_excluded, load_ignore_lines
from ._library import LibraryBlameProvider, match_lines, split_lines, strip_whitespace
from ._models import BlameLine, InputFile, RepositoryHandle, Submodule
from ._native import (
    MINIMUM_GIT_VERSION,
    NOT_COMMITTED_REVISION,
    NativeBlameProvider,
    parse_git_version,
    parse_line_porcelain,
)
from ._protocol import (
    AnalysisWarnings,
    BlameOutput,
    IgnoreIndexProtocol,
    LibraryBlameProviderProtocol,
    NativeBlameProviderProtocol,
    RepositoryGuardProtocol,
    StrategySelector,
)
from ._strategy import DefaultBlameStrategy
from ._submodules import close_submodules, list_submodules, walk_submodules

__all__ = [
    "MINIMUM_GIT_VERSION",
    "NOT_COMMITTED_REVISION",
    "SHALLOW_WARNING",
    "AnalysisWarnings",
    "BlameLine",
    "BlameOutput",
    "BlameResultCollector",
    "CompositeBlameCommand",
    "DefaultBlameStrategy",
    "IgnoreIndex",
    "IgnoreIndexProtocol",
    "InputFile",
    "LibraryBlameProvider",
    "LibraryBlameProviderProtocol",
    "NativeBlameProvider",
    "NativeBlameProviderProtocol",
    "RepositoryGuard",
    "RepositoryGuardProtocol",
    "RepositoryHandle",
    "StrategySelector",
    "Submodule",
    "WarningCollector",
    "attempts_for",
    "close_submodules",
    "is_excluded",
    "list_submodules",
    "load_ignore_lines",
    "match_lines",
    "pad_to_line_count",
    "parse_git_version",
    "parse_line_porcelain",
    "split_lines",
    "strip_whitespace",
    "walk_submodules",
]

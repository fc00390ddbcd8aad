"""Ignore-rule aware index of the files eligible for blame.

The index walks the work tree below a root directory once, applying
gitignore rules with pathspec, and remembers every file that is not
excluded. Queries are then set lookups that are safe to share between
worker threads.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dulwich.repo import Repo  # noqa: TC002
from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern
from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._models import Submodule  # noqa: TC001
from scmblame.blame._submodules import close_submodules, list_submodules
from scmblame.exceptions import IgnoreIndexNotInitializedError, NotInsideWorkTreeError
from scmblame.utils import create_logger, decode_bytes, discover_repo, get_worktree_dir

GITIGNORE_FILE = ".gitignore"
GIT_DIR_NAME = ".git"


@dataclass(frozen=True, slots=True)
class _IgnoreLayer:
    """Patterns from one ignore file, relative to the directory they apply to."""

    base: Path
    spec: PathSpec


def load_ignore_lines(path: Path) -> list[str]:
    """Load the raw lines of an ignore file.

    Comments and blank lines are kept; pathspec turns them into null
    patterns.

    Args:
        path: Path to a gitignore-format file.

    Returns:
        Lines of the file. Empty if the file doesn't exist or can't be read.
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


def _read_layer(base: Path, path: Path) -> _IgnoreLayer | None:
    lines = load_ignore_lines(path)
    if not lines:
        return None
    return _IgnoreLayer(base=base, spec=PathSpec.from_lines(GitWildMatchPattern, lines))


def is_excluded(path: Path, *, is_dir: bool, layers: tuple[_IgnoreLayer, ...]) -> bool:
    """Decide whether gitignore rules exclude a path.

    Layers are ordered from the outermost ignore file to the innermost one.
    The last matching pattern wins, so deeper files override shallower ones
    and later lines override earlier ones.

    Args:
        path: Absolute path to test.
        is_dir: Whether the path is a directory (enables `dir/` patterns).
        layers: Applicable ignore files, outermost first.

    Returns:
        True if the path is excluded.
    """
    excluded = False
    for layer in layers:
        relative = path.relative_to(layer.base).as_posix()
        if is_dir:
            relative += "/"
        for pattern in layer.spec.patterns:
            if pattern.include is None:
                continue
            if pattern.match_file(relative):
                excluded = bool(pattern.include)
    return excluded


def _exclude_file(repo: Repo) -> Path:
    return Path(decode_bytes(repo.controldir())) / "info" / "exclude"


class IgnoreIndex:
    """Index of non-excluded files below a root directory.

    Files outside the root are never indexed, even when they belong to the
    same repository. Nested repositories are skipped, except registered
    submodules when submodule inclusion is enabled, which are indexed with
    their own ignore rules.

    After `clean()` the index is absent: queries raise
    IgnoreIndexNotInitializedError until `init()` runs again.
    """

    def __init__(
        self,
        *,
        submodules_included: bool = False,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.submodules_included: bool = submodules_included
        self._logger: FilteringBoundLogger = logger or create_logger()
        self._included: frozenset[Path] | None = None
        self._root: Path | None = None

    @property
    def root(self) -> Path | None:
        """Return the root the index was built for, or None when absent."""
        return self._root

    @property
    def included_count(self) -> int:
        """Return the number of indexed, non-excluded files.

        Raises:
            IgnoreIndexNotInitializedError: If the index is absent.
        """
        return len(self._require_index())

    @property
    def included_files(self) -> list[Path]:
        """Return the indexed, non-excluded files in path order.

        Raises:
            IgnoreIndexNotInitializedError: If the index is absent.
        """
        return sorted(self._require_index())

    def init(self, root: Path) -> None:
        """Build the index for every file below `root`.

        Args:
            root: Directory inside a git work tree.

        Raises:
            NotInsideWorkTreeError: If `root` is not inside a git work tree.
        """
        resolved_root = root.resolve()
        repo = discover_repo(resolved_root)
        if repo is None or repo.bare:
            if repo is not None:
                repo.close()
            msg = f"Not inside a Git work tree: {root}"
            raise NotInsideWorkTreeError(msg, path=root)

        included: set[Path] = set()
        try:
            work_tree = get_worktree_dir(repo)
            layers = self._scope_layers(repo, work_tree, resolved_root)
            if layers is not None:
                self._index_repository(work_tree, resolved_root, layers, included)
        finally:
            repo.close()

        self._included = frozenset(included)
        self._root = resolved_root
        self._logger.debug(f"{len(included)} non excluded files in this Git repository")

    def is_ignored(self, path: Path) -> bool:
        """Check whether a path is excluded from blame.

        Args:
            path: File path, absolute or relative to the current directory.

        Returns:
            False for indexed, non-excluded files. True otherwise, including
            directories and paths the index never saw.

        Raises:
            IgnoreIndexNotInitializedError: If the index is absent.
        """
        included = self._require_index()
        absolute = Path(os.path.abspath(path))  # noqa: PTH100
        return (absolute.parent.resolve() / absolute.name) not in included

    def clean(self) -> None:
        """Discard the index."""
        self._included = None
        self._root = None

    def _require_index(self) -> frozenset[Path]:
        if self._included is None:
            msg = "Ignore index is not initialized, call init() first"
            raise IgnoreIndexNotInitializedError(msg)
        return self._included

    def _scope_layers(
        self, repo: Repo, work_tree: Path, root: Path
    ) -> tuple[_IgnoreLayer, ...] | None:
        """Collect ignore files applying above `root`.

        Returns None when `root` itself sits in an excluded directory.
        """
        layers: tuple[_IgnoreLayer, ...] = ()
        exclude = _read_layer(work_tree, _exclude_file(repo))
        if exclude is not None:
            layers = (exclude,)

        directory = work_tree
        for part in root.relative_to(work_tree).parts:
            layer = _read_layer(directory, directory / GITIGNORE_FILE)
            if layer is not None:
                layers = (*layers, layer)
            directory /= part
            if part == GIT_DIR_NAME or is_excluded(directory, is_dir=True, layers=layers):
                return None
        return layers

    def _index_repository(
        self,
        work_tree: Path,
        root: Path,
        layers: tuple[_IgnoreLayer, ...],
        included: set[Path],
    ) -> None:
        submodules: dict[Path, Submodule] = {}
        if self.submodules_included:
            declared = list_submodules(work_tree, logger=self._logger)
            submodules = {submodule.path: submodule for submodule in declared}

        try:
            for submodule in submodules.values():
                if submodule.work_tree_repository is None:
                    self._logger.info(
                        f"Submodule {submodule.name} given, failed to get submodule "
                        "repository, is it not checked out?"
                    )
            self._walk(root, layers, submodules, included)
        finally:
            close_submodules(list(submodules.values()))

    def _index_submodule(self, submodule: Submodule, included: set[Path]) -> None:
        handle = submodule.work_tree_repository
        if handle is None:
            return
        self._logger.debug("Indexing submodule", submodule=submodule.name)
        layers: tuple[_IgnoreLayer, ...] = ()
        exclude = _read_layer(handle.work_tree, _exclude_file(handle.repo))
        if exclude is not None:
            layers = (exclude,)
        self._index_repository(handle.work_tree, handle.work_tree, layers, included)

    def _walk(
        self,
        directory: Path,
        layers: tuple[_IgnoreLayer, ...],
        submodules: dict[Path, Submodule],
        included: set[Path],
    ) -> None:
        layer = _read_layer(directory, directory / GITIGNORE_FILE)
        if layer is not None:
            layers = (*layers, layer)

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self._logger.warning("Unable to list directory", path=str(directory), error=str(e))
            return

        for entry in entries:
            if entry.name == GIT_DIR_NAME:
                continue

            path = directory / entry.name
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_excluded(path, is_dir=is_dir, layers=layers):
                continue

            if not is_dir:
                included.add(path)
                continue

            if path in submodules:
                self._index_submodule(submodules[path], included)
            elif not (path / GIT_DIR_NAME).exists():
                self._walk(path, layers, submodules, included)

"""Repository preflight checks.

The guard opens the repository holding an analysis base directory and
classifies its health before any blame work is scheduled.
"""

from pathlib import Path  # noqa: TC003 - Used at runtime in function parameters

from dulwich.repo import Repo  # noqa: TC002
from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._models import RepositoryHandle
from scmblame.blame._protocol import AnalysisWarnings  # noqa: TC001
from scmblame.enums import RepositoryState
from scmblame.exceptions import NotInsideWorkTreeError
from scmblame.utils import (
    create_logger,
    decode_bytes,
    discover_repo,
    get_common_dir,
    get_worktree_dir,
)

ALTERNATES_MESSAGE = (
    "This git repository references another local repository which is not well "
    "supported. SCM information might be missing for some files. You can avoid "
    "borrow objects from another local repository by not using --reference or "
    "--shared when cloning it."
)
SHALLOW_LOG_MESSAGE = (
    "Shallow clone detected, no blame information will be provided. "
    "You can convert to non-shallow with 'git fetch --unshallow'."
)
SHALLOW_WARNING = (
    "Shallow clone detected during the analysis. Some files will miss SCM "
    "information. This will affect features like auto-assignment of issues. "
    "Please configure your build to disable shallow clone."
)


def _uses_alternates(repo: Repo) -> bool:
    return (get_common_dir(repo) / "objects" / "info" / "alternates").is_file()


def _is_shallow(repo: Repo) -> bool:
    return bool(repo.get_shallow())


def _inspect(repo: Repo) -> RepositoryState:
    if _is_shallow(repo):
        return RepositoryState.SHALLOW
    if _uses_alternates(repo):
        return RepositoryState.USES_ALTERNATES
    return RepositoryState.NORMAL


class RepositoryGuard:
    """Opens the repository for a base directory and reports its health.

    Shallow clones take precedence over alternates: a shallow clone that also
    borrows objects is reported as SHALLOW, although both notices are logged.

    Attributes:
        warnings: Sink receiving the user-facing shallow clone warning.
    """

    def __init__(
        self,
        warnings: AnalysisWarnings,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.warnings: AnalysisWarnings = warnings
        self._logger: FilteringBoundLogger = logger or create_logger()

    def open(self, base_dir: Path) -> tuple[RepositoryHandle, RepositoryState]:
        """Open and classify the repository holding `base_dir`.

        Args:
            base_dir: Analysis base directory.

        Returns:
            Tuple of the open repository handle and its state. The caller
            owns the handle and must close it.

        Raises:
            NotInsideWorkTreeError: If `base_dir` is not inside a git work
                tree (including bare repositories).
        """
        self._logger.debug("Building repository for base path", base_dir=str(base_dir))
        repo = discover_repo(base_dir)
        if repo is None or repo.bare:
            if repo is not None:
                repo.close()
            msg = f"Not inside a Git work tree: {base_dir}"
            raise NotInsideWorkTreeError(msg, path=base_dir)

        handle = RepositoryHandle(repo=repo, work_tree=get_worktree_dir(repo))
        self._logger.debug(
            "The current repository base dir is", work_tree=str(handle.work_tree)
        )

        if _uses_alternates(repo):
            self._logger.info(ALTERNATES_MESSAGE)

        if _is_shallow(repo):
            self._logger.warning(SHALLOW_LOG_MESSAGE)
            self.warnings.add_unique(SHALLOW_WARNING)

        return handle, _inspect(repo)

    def resolve_head(self, handle: RepositoryHandle) -> str | None:
        """Resolve the HEAD commit of an open repository.

        Args:
            handle: Repository handle returned by `open`.

        Returns:
            The 40-char hex HEAD commit id, or None if HEAD cannot be
            resolved (for example a repository without commits).
        """
        try:
            return decode_bytes(handle.repo.head())
        except KeyError:
            self._logger.warning("Could not find HEAD commit", work_tree=str(handle.work_tree))
            return None

    def classify(self, base_dir: Path) -> RepositoryState:
        """Classify the repository holding `base_dir` without raising or warning.

        Args:
            base_dir: Directory to inspect.

        Returns:
            The repository state, NOT_A_REPOSITORY when there is no work tree.
        """
        repo = discover_repo(base_dir)
        if repo is None:
            return RepositoryState.NOT_A_REPOSITORY
        try:
            if repo.bare:
                return RepositoryState.NOT_A_REPOSITORY
            return _inspect(repo)
        finally:
            repo.close()

"""Submodule discovery.

Reads `.gitmodules` from a work tree and opens the repositories of the
submodules that are checked out.
"""

from pathlib import Path  # noqa: TC003 - Used at runtime in function parameters

from dulwich.config import ConfigFile, parse_submodules
from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._models import RepositoryHandle, Submodule
from scmblame.utils import create_logger, decode_bytes, get_worktree_dir, open_repo

GITMODULES_FILE = ".gitmodules"


def _open_submodule(path: Path, name: str) -> RepositoryHandle | None:
    if not (path / ".git").exists():
        return None
    repo = open_repo(path)
    if repo is None:
        return None
    return RepositoryHandle(repo=repo, work_tree=get_worktree_dir(repo), name=name)


def list_submodules(
    work_tree: Path,
    *,
    logger: FilteringBoundLogger | None = None,
) -> list[Submodule]:
    """List the submodules declared in a work tree's `.gitmodules`.

    Submodules that are checked out carry an open repository handle, which
    the caller must close.

    Args:
        work_tree: Work tree holding the `.gitmodules` file.
        logger: Optional logger. A default one is created when omitted.

    Returns:
        Declared submodules, in declaration order. Empty if there is no
        `.gitmodules` file or it cannot be read.
    """
    log = logger or create_logger()
    gitmodules = work_tree / GITMODULES_FILE
    if not gitmodules.is_file():
        return []

    try:
        config = ConfigFile.from_path(str(gitmodules))
        entries = list(parse_submodules(config))
    except (OSError, ValueError, KeyError) as e:
        log.warning("Failed to read submodule configuration", path=str(gitmodules), error=str(e))
        return []

    submodules: list[Submodule] = []
    for raw_path, _url, raw_name in entries:
        name = decode_bytes(raw_name)
        path = (work_tree / decode_bytes(raw_path)).resolve()
        submodules.append(
            Submodule(name=name, path=path, work_tree_repository=_open_submodule(path, name))
        )
    return submodules


def walk_submodules(
    handle: RepositoryHandle,
    *,
    logger: FilteringBoundLogger | None = None,
) -> list[Submodule]:
    """Collect submodules of a repository, descending into checked-out ones.

    The walk stops at submodules that are not checked out, after logging an
    informational message naming them. Each nested level is read from the
    submodule's own `.gitmodules`.

    Args:
        handle: Repository to start from.
        logger: Optional logger. A default one is created when omitted.

    Returns:
        All reachable submodules, parents before their children.
    """
    log = logger or create_logger()
    found: list[Submodule] = []
    pending = [handle.work_tree]

    while pending:
        work_tree = pending.pop(0)
        for submodule in list_submodules(work_tree, logger=log):
            found.append(submodule)
            if submodule.work_tree_repository is None:
                log.info(
                    f"Submodule {submodule.name} given, failed to get submodule "
                    "repository, is it not checked out?"
                )
                continue
            pending.append(submodule.work_tree_repository.work_tree)

    return found


def close_submodules(submodules: list[Submodule]) -> None:
    """Close the repository handles held by the given submodules."""
    for submodule in submodules:
        if submodule.work_tree_repository is not None:
            submodule.work_tree_repository.close()

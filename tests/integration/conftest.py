from pathlib import Path

import pytest
from dulwich.repo import Repo
from structlog.typing import FilteringBoundLogger

from scmblame.blame import (
    BlameLine,
    BlameResultCollector,
    CompositeBlameCommand,
    InputFile,
    RepositoryHandle,
    WarningCollector,
)
from scmblame.config import Config


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def open_handle(path: Path) -> RepositoryHandle:
    """Open the repository rooted at `path` as a RepositoryHandle."""
    repo = Repo(str(path))
    return RepositoryHandle(repo=repo, work_tree=path.resolve())


def blame_files(
    base_dir: Path,
    paths: list[Path],
    *,
    config: Config | None = None,
    warnings: WarningCollector | None = None,
    logger: FilteringBoundLogger | None = None,
    parallelism: int | None = None,
) -> tuple[CompositeBlameCommand, dict[InputFile, list[BlameLine]]]:
    """Run a full blame over existing files and return the command and results."""
    command = CompositeBlameCommand(
        config=config,
        warnings=warnings,
        logger=logger,
        parallelism=parallelism,
    )
    collector = BlameResultCollector()
    command.blame(base_dir, [InputFile.from_path(path) for path in paths], collector)
    return command, collector.results


def by_name(results: dict[InputFile, list[BlameLine]]) -> dict[str, list[BlameLine]]:
    return {file.path.name: lines for file, lines in results.items()}

"""Blame orchestration.

CompositeBlameCommand runs the repository preflight checks, narrows the
caller's files down to the eligible ones, picks a back-end per batch and
blames every file on a bounded thread pool, falling back from native to
library blame for files where the native tool fails.
"""

import os
import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path

from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._collectors import WarningCollector
from scmblame.blame._guard import RepositoryGuard
from scmblame.blame._ignore import IgnoreIndex
from scmblame.blame._library import LibraryBlameProvider
from scmblame.blame._models import BlameLine, InputFile, RepositoryHandle, Submodule
from scmblame.blame._native import NativeBlameProvider
from scmblame.blame._protocol import (
    AnalysisWarnings,
    BlameOutput,
    IgnoreIndexProtocol,
    LibraryBlameProviderProtocol,
    NativeBlameProviderProtocol,
    RepositoryGuardProtocol,
    StrategySelector,
)
from scmblame.blame._strategy import DefaultBlameStrategy
from scmblame.blame._submodules import close_submodules, walk_submodules
from scmblame.config import Config
from scmblame.enums import BlameAlgorithm, BlameCommandState, RepositoryState
from scmblame.exceptions import NotInsideWorkTreeError
from scmblame.utils import create_logger

ROOT_REPOSITORY_LABEL = "root repository"
SUBMODULES_LABEL = "submodules"


@dataclass(frozen=True, slots=True)
class _BlameTask:
    """One file to blame, located inside the repository that owns it."""

    file: InputFile
    relative_path: str


@dataclass(slots=True)
class _Batch:
    """Files owned by one repository, blamed on one pool."""

    repository: RepositoryHandle
    label: str
    tasks: list[_BlameTask]


def attempts_for(algorithm: BlameAlgorithm) -> tuple[BlameAlgorithm, ...]:
    """Return the ordered back-ends tried for one file.

    Native blame may fall back to library blame once. Library blame never
    falls back.
    """
    if algorithm is BlameAlgorithm.NATIVE_BLAME:
        return (BlameAlgorithm.NATIVE_BLAME, BlameAlgorithm.LIBRARY_BLAME)
    return (BlameAlgorithm.LIBRARY_BLAME,)


def pad_to_line_count(file: InputFile, lines: Sequence[BlameLine]) -> list[BlameLine]:
    """Compensate for git not reporting the empty line after a final newline.

    When the result is exactly one line short of the file's line count, the
    last entry is repeated.
    """
    padded = list(lines)
    if padded and len(padded) == file.lines - 1:
        padded.append(padded[-1])
    return padded


def _normalize(path: Path) -> Path:
    absolute = Path(os.path.abspath(path))  # noqa: PTH100
    return absolute.parent.resolve() / absolute.name


class _SynchronizedOutput:
    """Single insertion point into the output sink, at most once per file."""

    def __init__(self, output: BlameOutput) -> None:
        self._output: BlameOutput = output
        self._lock = threading.Lock()
        self._emitted: set[InputFile] = set()

    def emit(self, file: InputFile, lines: Sequence[BlameLine] | None) -> bool:
        if not lines:
            return False
        padded = pad_to_line_count(file, lines)
        with self._lock:
            if file in self._emitted:
                return False
            self._emitted.add(file)
            self._output.blame_result(file, padded)
        return True


class CompositeBlameCommand:
    """Collects blame for a set of files inside a git work tree.

    Collaborators are injected through the constructor; any that are
    omitted are built from the configuration. The configuration is read
    once, here.

    Attributes:
        submodules_included: Whether checked-out submodules are blamed.
        parallelism: Number of workers per batch.
        last_state: Where the most recent `blame` call ended.
    """

    def __init__(
        self,
        *,
        config: Config | None = None,
        warnings: AnalysisWarnings | None = None,
        guard: RepositoryGuardProtocol | None = None,
        ignore_index: IgnoreIndexProtocol | None = None,
        library: LibraryBlameProviderProtocol | None = None,
        native: NativeBlameProviderProtocol | None = None,
        strategy: StrategySelector | None = None,
        parallelism: int | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        config = config if config is not None else Config.from_dict({})
        scm = config.scm
        log = logger or create_logger()

        self._logger: FilteringBoundLogger = log
        self.submodules_included: bool = scm.submodules_included
        self.parallelism: int = (
            parallelism if parallelism is not None else scm.parallelism or os.cpu_count() or 1
        )
        self.warnings: AnalysisWarnings = warnings if warnings is not None else WarningCollector()
        self._guard: RepositoryGuardProtocol = guard or RepositoryGuard(self.warnings, logger=log)
        self._ignore_index: IgnoreIndexProtocol = ignore_index or IgnoreIndex(
            submodules_included=self.submodules_included, logger=log
        )
        self._library: LibraryBlameProviderProtocol = library or LibraryBlameProvider(logger=log)
        self._native: NativeBlameProviderProtocol = native or NativeBlameProvider(
            git_executable=scm.git_executable,
            timeout_ms=scm.native_timeout_ms,
            logger=log,
        )
        self._strategy: StrategySelector = strategy or DefaultBlameStrategy(
            scm.blame_algorithm, logger=log
        )
        self.last_state: BlameCommandState = BlameCommandState.INIT

        status = "enabled" if self.submodules_included else "disabled"
        log.info(f"SCM submodules analysis and retrieving blame information is {status}")

    def blame(self, base_dir: Path, files: Iterable[InputFile], output: BlameOutput) -> None:
        """Blame `files` and report each result to `output`.

        Shallow clones and repositories without a HEAD commit produce no
        results. Files that cannot be blamed are left out of the output.

        Args:
            base_dir: Analysis base directory inside a git work tree.
            files: Files to blame.
            output: Sink receiving one call per blamed file.

        Raises:
            NotInsideWorkTreeError: If `base_dir` is not inside a git work tree.
        """
        self.last_state = BlameCommandState.INIT
        try:
            handle, state = self._guard.open(base_dir)
        except NotInsideWorkTreeError:
            self.last_state = BlameCommandState.ABORTED_NOT_REPO
            raise

        try:
            self.last_state = BlameCommandState.GUARD_CHECKED
            if state is RepositoryState.NOT_A_REPOSITORY:
                self.last_state = BlameCommandState.ABORTED_NOT_REPO
                msg = f"Not inside a Git work tree: {base_dir}"
                raise NotInsideWorkTreeError(msg, path=base_dir)
            if state is RepositoryState.SHALLOW:
                self.last_state = BlameCommandState.EARLY_RETURN_SHALLOW
                return
            if self._guard.resolve_head(handle) is None:
                self.last_state = BlameCommandState.EARLY_RETURN_NO_HEAD
                return

            self.last_state = BlameCommandState.DISPATCHING
            self._dispatch(base_dir, handle, files, _SynchronizedOutput(output))
            self.last_state = BlameCommandState.COMPLETE
        finally:
            handle.close()

    def _dispatch(
        self,
        base_dir: Path,
        handle: RepositoryHandle,
        files: Iterable[InputFile],
        output: _SynchronizedOutput,
    ) -> None:
        submodules: list[Submodule] = []
        try:
            self._ignore_index.init(base_dir)
            if self.submodules_included:
                self._logger.debug("Collecting blame information from submodules")
                submodules = walk_submodules(handle, logger=self._logger)

            main, nested = self._partition(handle, submodules, files)
            self._run_batch(main, output)
            self._run_submodule_batches(nested, output)
        finally:
            self._ignore_index.clean()
            close_submodules(submodules)

    def _partition(
        self,
        handle: RepositoryHandle,
        submodules: list[Submodule],
        files: Iterable[InputFile],
    ) -> tuple[_Batch, list[_Batch]]:
        """Split eligible files by the repository that owns them."""
        main = _Batch(handle, ROOT_REPOSITORY_LABEL, [])
        nested = [
            _Batch(submodule.work_tree_repository, f"submodule {submodule.name}", [])
            for submodule in submodules
            if submodule.work_tree_repository is not None
        ]
        # Deepest work tree first, so nested submodules win over their parents
        owners = sorted(nested, key=lambda batch: len(batch.repository.work_tree.parts), reverse=True)

        for file in files:
            path = _normalize(file.path)
            if not path.is_relative_to(handle.work_tree):
                self._logger.debug(
                    f"Unable to blame file {file.path}, not found under base directory "
                    f"{handle.work_tree}"
                )
                continue
            if self._ignore_index.is_ignored(path):
                continue

            batch = next(
                (owner for owner in owners if path.is_relative_to(owner.repository.work_tree)),
                main,
            )
            relative = path.relative_to(batch.repository.work_tree).as_posix()
            batch.tasks.append(_BlameTask(file=file, relative_path=relative))

        return main, [batch for batch in nested if batch.tasks]

    def _run_submodule_batches(self, batches: list[_Batch], output: _SynchronizedOutput) -> None:
        if not batches:
            return
        executor = ThreadPoolExecutor(
            max_workers=len(batches), thread_name_prefix="scmblame-submodules"
        )
        futures = [executor.submit(self._run_batch, batch, output) for batch in batches]
        self._await(executor, futures, SUBMODULES_LABEL)

    def _run_batch(self, batch: _Batch, output: _SynchronizedOutput) -> None:
        if not batch.tasks:
            return
        algorithm = self._strategy(len(batch.tasks), self.parallelism)
        if algorithm is BlameAlgorithm.NATIVE_BLAME and not self._native.check_if_enabled():
            self._logger.debug(
                "Native git blame is disabled, falling back to library blame",
                repository=batch.label,
            )
            algorithm = BlameAlgorithm.LIBRARY_BLAME
        self._logger.debug(
            f"Using {algorithm.name} strategy to blame files",
            repository=batch.label,
            files=len(batch.tasks),
        )
        executor = ThreadPoolExecutor(
            max_workers=max(1, self.parallelism), thread_name_prefix="scmblame"
        )
        futures = [
            executor.submit(self._blame_file, batch.repository, task, algorithm, output)
            for task in batch.tasks
        ]
        self._await(executor, futures, batch.label)

    def _await(
        self, executor: ThreadPoolExecutor, futures: list[Future[None]], label: str
    ) -> None:
        """Wait for every task, then shut the pool down."""
        interrupted = False
        try:
            _ = wait(futures)
        except KeyboardInterrupt:
            interrupted = True
            self._logger.info(f"Git blame for {label} interrupted")
            raise
        finally:
            executor.shutdown(wait=not interrupted)

        for future in futures:
            future.result()

    def _blame_file(
        self,
        repository: RepositoryHandle,
        task: _BlameTask,
        algorithm: BlameAlgorithm,
        output: _SynchronizedOutput,
    ) -> None:
        """Blame one file, trying each back-end from `attempts_for` once."""
        for attempt in attempts_for(algorithm):
            if attempt is BlameAlgorithm.NATIVE_BLAME:
                if not self._native.check_if_enabled():
                    continue
                try:
                    lines = self._native.blame(repository.work_tree, task.relative_path)
                except Exception as e:  # noqa: BLE001
                    self._logger.debug(
                        "Native git blame failed, falling back to library blame: "
                        f"{task.relative_path}",
                        error=str(e),
                    )
                    continue
            else:
                try:
                    lines = self._library.blame(repository, task.relative_path)
                except Exception as e:  # noqa: BLE001
                    self._logger.error(
                        f"Unable to blame file {task.relative_path}",
                        repository=str(repository.work_tree),
                        error=str(e),
                    )
                    return

            _ = output.emit(task.file, lines)
            return

# pyright: reportUnusedCallResult=false
# pyright: reportImplicitStringConcatenation=false
# ruff: noqa: D415, FBT002, TC003
"""Blame collection commands."""

from collections import Counter
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.table import Table

from scmblame.blame import (
    BlameLine,
    BlameResultCollector,
    CompositeBlameCommand,
    IgnoreIndex,
    InputFile,
    NativeBlameProvider,
    RepositoryGuard,
    WarningCollector,
)
from scmblame.cli._context import CLIContext
from scmblame.enums import RepositoryState
from scmblame.exceptions import NotInsideWorkTreeError

from ._shared import ExitCode, exit_with_error, format_json, get_error_console

__all__ = ["blame_command", "check_command", "ignored_command"]

_SHORT_SHA_LENGTH: int = 8


def _resolve_inputs(base_dir: Path, files: tuple[Path, ...], index: IgnoreIndex) -> list[InputFile]:
    """Turn command-line paths into InputFiles, defaulting to every eligible file.

    Args:
        base_dir: Resolved analysis base directory.
        files: Paths given on the command line, absolute or relative to base_dir.
        index: Ignore index, initialized for base_dir.

    Returns:
        Files to blame.
    """
    paths = [p if p.is_absolute() else base_dir / p for p in files] or index.included_files
    inputs: list[InputFile] = []
    for path in paths:
        try:
            inputs.append(InputFile.from_path(path))
        except FileNotFoundError:
            exit_with_error(f"File not found: {path}", ExitCode.NOT_FOUND)
        except OSError as e:
            exit_with_error(f"Unable to read {path}: {e}", ExitCode.IO_ERROR)
    return inputs


def _serialize(base_dir: Path, results: dict[InputFile, list[BlameLine]]) -> dict[str, object]:
    data: dict[str, object] = {}
    for file, lines in sorted(results.items(), key=lambda item: item[0].path):
        key = file.path.relative_to(base_dir).as_posix() if file.path.is_relative_to(base_dir) else str(file.path)
        data[key] = [
            {"revision": line.revision, "author": line.author, "date": line.date.isoformat()}
            for line in lines
        ]
    return data


def _render_table(base_dir: Path, results: dict[InputFile, list[BlameLine]]) -> Table:
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("File", style="cyan")
    table.add_column("Lines", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Top author")
    table.add_column("Last change", style="dim")

    for file, lines in sorted(results.items(), key=lambda item: item[0].path):
        display = file.path.relative_to(base_dir) if file.path.is_relative_to(base_dir) else file.path
        top_author, _ = Counter(line.author for line in lines).most_common(1)[0]
        latest = max(lines, key=lambda line: line.date)
        table.add_row(
            str(display),
            str(len(lines)),
            str(len({line.revision for line in lines})),
            top_author,
            f"{latest.revision[:_SHORT_SHA_LENGTH]} {latest.date:%Y-%m-%d}",
        )
    return table


def blame_command(
    base_dir: Path,
    /,
    *files: Path,
    json: Annotated[bool, Parameter(help="Print per-line results as JSON")] = False,
) -> None:
    """Collect blame information for files in a git work tree

    Args:
        base_dir: Analysis base directory inside a git work tree
        files: Files to blame. Defaults to every file not excluded by ignore rules
        json: Print per-line results as JSON instead of a summary table
    """
    console = Console()
    error_console = get_error_console()
    loaded = CLIContext.get_current().load(base_dir, command="blame")
    base = base_dir.resolve()

    index = IgnoreIndex(
        submodules_included=loaded.config.scm.submodules_included, logger=loaded.logger
    )
    try:
        index.init(base)
        inputs = _resolve_inputs(base, files, index)
    except NotInsideWorkTreeError as e:
        exit_with_error(str(e), ExitCode.NOT_A_WORK_TREE, console=error_console)
    finally:
        index.clean()

    warnings = WarningCollector()
    collector = BlameResultCollector()
    command = CompositeBlameCommand(config=loaded.config, warnings=warnings, logger=loaded.logger)
    try:
        command.blame(base, inputs, collector)
    except NotInsideWorkTreeError as e:
        exit_with_error(str(e), ExitCode.NOT_A_WORK_TREE, console=error_console)

    for message in warnings.messages:
        error_console.print(f"[yellow]Warning:[/yellow] {message}")

    results = collector.results
    if json:
        print(format_json(_serialize(base, results)))  # noqa: T201
        return

    if not results:
        console.print("[dim]No blame information available[/dim]")
        return
    console.print(_render_table(base, results))
    console.print(f"\n[dim]{len(results)} of {len(inputs)} file(s) blamed[/dim]")


def check_command(base_dir: Path, /) -> None:
    """Show the repository state and whether native git blame is usable

    Args:
        base_dir: Directory to inspect
    """
    console = Console()
    loaded = CLIContext.get_current().load(base_dir, command="check")
    scm = loaded.config.scm

    state = RepositoryGuard(WarningCollector(), logger=loaded.logger).classify(base_dir)
    native = NativeBlameProvider(
        git_executable=scm.git_executable,
        timeout_ms=scm.native_timeout_ms,
        logger=loaded.logger,
    )

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Repository state", state.value)
    table.add_row("Native git blame", "enabled" if native.check_if_enabled() else "disabled")
    table.add_row("Submodules", "included" if scm.submodules_included else "excluded")
    table.add_row("Forced algorithm", scm.blame_algorithm.value if scm.blame_algorithm else "-")
    console.print(table)
    for source in loaded.config.sources:
        if source.path is not None and source.exists:
            console.print(
                f"Config file ({source.name.value}): {source.path}",
                soft_wrap=True,
                highlight=False,
                markup=False,
            )

    if state is RepositoryState.NOT_A_REPOSITORY:
        raise SystemExit(ExitCode.NOT_A_WORK_TREE)


def ignored_command(base_dir: Path, /, *paths: Path) -> None:
    """Show whether each path is excluded by ignore rules

    Args:
        base_dir: Analysis base directory inside a git work tree
        paths: Paths to check, absolute or relative to base_dir
    """
    console = Console()
    loaded = CLIContext.get_current().load(base_dir, command="ignored")
    base = base_dir.resolve()

    index = IgnoreIndex(
        submodules_included=loaded.config.scm.submodules_included, logger=loaded.logger
    )
    try:
        index.init(base)
        for path in paths:
            target = path if path.is_absolute() else base / path
            if index.is_ignored(target):
                console.print(f"[yellow]ignored[/yellow]  {path}")
            else:
                console.print(f"[green]included[/green] {path}")
    except NotInsideWorkTreeError as e:
        exit_with_error(str(e), ExitCode.NOT_A_WORK_TREE)
    finally:
        index.clean()

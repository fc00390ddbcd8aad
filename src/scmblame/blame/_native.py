"""Blame through the native git executable.

Runs `git blame -w --line-porcelain` once per file and parses its output.
"""

import re
import threading
from collections.abc import Callable
from pathlib import Path  # noqa: TC003 - Used at runtime in function parameters
from typing import TypeAlias

from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._models import BlameLine
from scmblame.exceptions import NativeBlameError
from scmblame.utils import (
    CommandConfig,
    CommandResult,
    create_logger,
    parse_tz_offset,
    run_command,
    to_datetime,
)
from scmblame.utils._exec import DEFAULT_TIMEOUT_MS

MINIMUM_GIT_VERSION: tuple[int, int, int] = (2, 24, 0)
"""Oldest git release whose blame output is trusted."""

NOT_COMMITTED_REVISION = "0" * 40

_VERSION_PATTERN = re.compile(r"git version (\d+)\.(\d+)(?:\.(\d+))?")

# <sha> <orig_line> <final_line> [<num_lines>]
_HEADER_PATTERN = re.compile(r"^(?P<sha>[0-9a-f]{40}|[0-9a-f]{64}) \d+ \d+(?: \d+)?$")

CommandRunner: TypeAlias = Callable[[CommandConfig], CommandResult]


def parse_git_version(output: str) -> tuple[int, int, int] | None:
    """Parse the output of `git --version`.

    Args:
        output: Text such as "git version 2.39.2" or
            "git version 2.37.1 (Apple Git-137.1)".

    Returns:
        (major, minor, patch), or None if the text is not recognized.
    """
    match = _VERSION_PATTERN.search(output)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def _is_blame_header_line(line: str) -> re.Match[str] | None:
    return _HEADER_PATTERN.match(line)


def _extract_commit_header(header_line: str, commit_info: dict[str, str]) -> None:
    key, _, value = header_line.partition(" ")
    if key in ("author-mail", "committer-time", "committer-tz"):
        commit_info[key] = value


def _create_blame_line(sha: str, commit_info: dict[str, str]) -> BlameLine:
    email = commit_info.get("author-mail", "").strip()
    if email.startswith("<") and email.endswith(">"):
        email = email[1:-1]

    raw_time = commit_info.get("committer-time")
    if raw_time is None or not raw_time.isdigit():
        msg = f"Missing or invalid committer-time for commit {sha}"
        raise ValueError(msg)

    offset = parse_tz_offset(commit_info.get("committer-tz", "+0000"))
    return BlameLine(revision=sha, author=email, date=to_datetime(int(raw_time), offset))


def parse_line_porcelain(output: str) -> list[BlameLine]:
    """Parse `git blame --line-porcelain` output.

    The format repeats, for every line of the file::

        <sha> <orig_line> <final_line> [<num_lines>]
        author <name>
        author-mail <<email>>
        ... other headers ...
        committer-time <timestamp>
        committer-tz <tz>
        filename <path>
        \t<content>

    Args:
        output: Raw output of the blame command.

    Returns:
        One BlameLine per content line, in file order.

    Raises:
        ValueError: If the output does not follow the format.
    """
    result: list[BlameLine] = []
    commit_cache: dict[str, dict[str, str]] = {}
    sha: str | None = None
    commit_info: dict[str, str] = {}

    for number, line in enumerate(output.split("\n"), start=1):
        if sha is None:
            if not line:
                continue
            header = _is_blame_header_line(line)
            if header is None:
                msg = f"Expected a blame header at output line {number}: {line[:80]!r}"
                raise ValueError(msg)
            sha = header.group("sha")
            commit_info = commit_cache.setdefault(sha, {})
        elif line.startswith("\t"):
            result.append(_create_blame_line(sha, commit_info))
            sha = None
        else:
            _extract_commit_header(line, commit_info)

    if sha is not None:
        msg = "Blame output ended before the content line"
        raise ValueError(msg)
    return result


class NativeBlameProvider:
    """Computes blame by running the git executable as a subprocess.

    Attributes:
        git_executable: Name or path of the git executable.
        timeout_ms: Timeout applied to every subprocess.
    """

    def __init__(
        self,
        *,
        git_executable: str = "git",
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        runner: CommandRunner = run_command,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.git_executable: str = git_executable
        self.timeout_ms: int = timeout_ms
        self._runner: CommandRunner = runner
        self._logger: FilteringBoundLogger = logger or create_logger()
        self._enabled: bool | None = None
        self._lock = threading.Lock()

    def check_if_enabled(self) -> bool:
        """Check whether the git executable is usable for blame.

        The probe runs once per provider; later calls return the cached
        answer.

        Returns:
            True if git runs and is at least version 2.24.0.
        """
        with self._lock:
            if self._enabled is None:
                self._enabled = self._probe()
            return self._enabled

    def _probe(self) -> bool:
        result = self._runner(
            CommandConfig(args=(self.git_executable, "--version"), timeout_ms=self.timeout_ms)
        )
        if not result.ok:
            self._logger.debug(
                "Native git blame is disabled, git executable is not usable",
                executable=self.git_executable,
                error=result.error or result.stderr.strip(),
            )
            return False

        version = parse_git_version(result.stdout)
        if version is None:
            self._logger.debug(
                "Native git blame is disabled, unable to parse git version",
                output=result.stdout.strip(),
            )
            return False

        if version < MINIMUM_GIT_VERSION:
            self._logger.debug(
                "Native git blame is disabled, git version is too old",
                version=".".join(map(str, version)),
                minimum=".".join(map(str, MINIMUM_GIT_VERSION)),
            )
            return False

        self._logger.debug("Native git blame is enabled", version=".".join(map(str, version)))
        return True

    def blame(self, base_dir: Path, relative_path: str) -> list[BlameLine] | None:
        """Blame one file with `git blame`.

        Args:
            base_dir: Work tree the path is relative to; used as the cwd.
            relative_path: Path of the file relative to `base_dir`.

        Returns:
            One BlameLine per line, or None when the file is empty or holds
            lines that are not committed yet.

        Raises:
            NativeBlameError: If git cannot be run, times out, exits with a
                non-zero status or prints output that cannot be parsed.
        """
        result = self._runner(
            CommandConfig(
                args=(
                    self.git_executable,
                    "blame",
                    "-w",
                    "--line-porcelain",
                    "--encoding=UTF-8",
                    "--",
                    relative_path,
                ),
                cwd=base_dir,
                timeout_ms=self.timeout_ms,
            )
        )

        if not result.success:
            msg = f"Unable to run git blame on {relative_path}: {result.error}"
            raise NativeBlameError(msg, path=relative_path)
        if result.exit_code != 0:
            msg = f"git blame exited with status {result.exit_code} for {relative_path}"
            raise NativeBlameError(
                msg, path=relative_path, exit_code=result.exit_code, stderr=result.stderr
            )

        try:
            lines = parse_line_porcelain(result.stdout)
        except ValueError as e:
            msg = f"Unable to parse git blame output for {relative_path}: {e}"
            raise NativeBlameError(msg, path=relative_path, exit_code=0) from e

        if not lines:
            self._logger.debug(f"Unable to blame file {relative_path}. It is empty.")
            return None

        for number, line in enumerate(lines, start=1):
            if line.revision == NOT_COMMITTED_REVISION or not line.author:
                self._logger.debug(
                    f"Unable to blame file {relative_path}. No blame info at line {number}. "
                    "Is file committed?"
                )
                return None

        return lines

"""Shared test fixtures for scmblame tests."""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path

import pytest
import structlog
from rich.console import Console
from structlog.testing import CapturingLogger
from structlog.typing import FilteringBoundLogger

GIT_AVAILABLE = shutil.which("git") is not None

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git executable not available")

# Fixed start for commit timestamps, so history order never depends on the clock
_EPOCH_START = 1_600_000_000


def _git_env() -> dict[str, str]:
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith(("GIT_", "SCMBLAME_"))
    }
    env["GIT_CONFIG_NOSYSTEM"] = "1"
    env["GIT_CONFIG_GLOBAL"] = os.devnull
    return env


@dataclass(slots=True)
class GitRepo:
    """A real git repository driven through the git executable."""

    root: Path
    clock: int = _EPOCH_START
    authors: list[str] = field(default_factory=list)

    def git(self, *args: str, env: dict[str, str] | None = None) -> str:
        result = subprocess.run(
            [
                "git",
                "-c",
                "commit.gpgsign=false",
                "-c",
                "protocol.file.allow=always",
                *args,
            ],
            cwd=str(self.root),
            capture_output=True,
            check=True,
            text=True,
            env={**_git_env(), **(env or {})},
        )
        return result.stdout

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(content, encoding="utf-8")
        return path

    def commit(
        self,
        message: str = "commit",
        *,
        email: str = "test@example.com",
        name: str = "Test User",
    ) -> str:
        """Stage everything and commit, one minute after the previous commit.

        Returns:
            The new HEAD commit id.
        """
        self.clock += 60
        date = f"{self.clock} +0200"
        _ = self.git("add", "-A")
        _ = self.git(
            "commit",
            "-q",
            "-m",
            message,
            env={
                "GIT_AUTHOR_NAME": name,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_AUTHOR_DATE": date,
                "GIT_COMMITTER_NAME": name,
                "GIT_COMMITTER_EMAIL": email,
                "GIT_COMMITTER_DATE": date,
            },
        )
        self.authors.append(email)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


def init_git_repo(path: Path) -> GitRepo:
    """Initialize a git repository in the given path."""
    path.mkdir(parents=True, exist_ok=True)
    repo = GitRepo(root=path.resolve())
    _ = repo.git("init", "-q")
    _ = repo.git("config", "user.email", "test@example.com")
    _ = repo.git("config", "user.name", "Test User")
    return repo


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Create an empty git repository with a test identity."""
    if not GIT_AVAILABLE:
        pytest.skip("git executable not available")
    return init_git_repo(tmp_path / "repo")


@dataclass(frozen=True, slots=True)
class LogCapture:
    """A logger recording every call, plus helpers to query the records."""

    capturing: CapturingLogger
    logger: FilteringBoundLogger

    def events(self, level: str | None = None) -> list[str]:
        return [
            str(call.kwargs["event"])
            for call in self.capturing.calls
            if level is None or call.method_name == level
        ]

    def has(self, fragment: str, level: str | None = None) -> bool:
        return any(fragment in event for event in self.events(level))


@pytest.fixture
def log_capture() -> LogCapture:
    """Create a debug-level logger that records calls instead of printing."""
    capturing = CapturingLogger()
    logger = structlog.wrap_logger(
        capturing,
        processors=[structlog.stdlib.add_log_level],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )
    return LogCapture(capturing=capturing, logger=logger)


@pytest.fixture
def console() -> Console:
    """Create a Rich console that writes to a buffer."""
    return Console(file=StringIO(), width=200, force_terminal=False)

"""Common git utility functions.

This module provides shared helper functions used by the blame components
including repository discovery, path handling, and byte/string conversion.
"""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

# "Name <email>" identity as stored in commit objects
_IDENTITY_PATTERN = re.compile(rb"^(?P<name>.*?)\s*<(?P<email>[^<>]*)>\s*$")


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def discover_repo(cwd: Path | str) -> Repo | None:
    """Discover git repository from the given directory, searching upward.

    Args:
        cwd: Directory to start search from.

    Returns:
        Repo instance if found, None otherwise.
    """
    try:
        return Repo.discover(str(cwd))
    except NotGitRepository:
        return None


def open_repo(path: Path | str) -> Repo | None:
    """Open the repository whose work tree is exactly `path`.

    Handles both `.git` directories and `.git` files pointing elsewhere
    (submodules, linked worktrees).

    Args:
        path: Work tree directory.

    Returns:
        Repo instance, or None if `path` is not a repository work tree.
    """
    try:
        return Repo(str(path))
    except (NotGitRepository, OSError):
        return None


def get_worktree_dir(repo: Repo) -> Path:
    """Get the worktree directory for a repository.

    Args:
        repo: The repository instance.

    Returns:
        Resolved path to the worktree directory.
    """
    repo_path = decode_bytes(repo.path)

    path = Path(repo_path)
    # If path is .git directory, return parent
    if path.name == ".git":
        return path.parent.resolve()
    return path.resolve()


def get_common_dir(repo: Repo) -> Path:
    """Get the common git directory (shared by all worktrees).

    Args:
        repo: The repository instance.

    Returns:
        Path to the common git directory.
    """
    return Path(decode_bytes(repo.commondir())).resolve()


def parse_identity_email(identity: bytes) -> str | None:
    """Extract the e-mail address from a git identity line.

    Args:
        identity: Raw identity such as b"Jane Doe <jane@example.com>".

    Returns:
        The e-mail address, or None if the identity has no e-mail part.
    """
    match = _IDENTITY_PATTERN.match(identity)
    if match is None:
        return None
    email = match.group("email").strip()
    if not email:
        return None
    return decode_bytes(email)


def to_datetime(epoch_seconds: int, offset_seconds: int) -> datetime:
    """Convert a git timestamp and timezone offset to an aware datetime.

    Args:
        epoch_seconds: Seconds since the Unix epoch.
        offset_seconds: Timezone offset east of UTC, in seconds.

    Returns:
        Timezone-aware datetime in the recorded offset.
    """
    tz = timezone(timedelta(seconds=offset_seconds))
    return datetime.fromtimestamp(epoch_seconds, tz=tz)


def parse_tz_offset(tz_string: str) -> int:
    """Convert a git "+HHMM" / "-HHMM" timezone string to seconds.

    Args:
        tz_string: Timezone as printed by git.

    Returns:
        Offset east of UTC in seconds. Malformed values return 0.
    """
    if len(tz_string) != 5 or tz_string[0] not in "+-" or not tz_string[1:].isdigit():  # noqa: PLR2004
        return 0
    sign = -1 if tz_string[0] == "-" else 1
    hours = int(tz_string[1:3])
    minutes = int(tz_string[3:5])
    return sign * (hours * 3600 + minutes * 60)

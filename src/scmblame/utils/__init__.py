"""Shared utilities for scmblame."""

from ._exec import CommandConfig, CommandResult, run_command
from ._git import (
    decode_bytes,
    discover_repo,
    get_common_dir,
    get_worktree_dir,
    open_repo,
    parse_identity_email,
    parse_tz_offset,
    to_datetime,
)
from ._json import dump_json
from ._logging import create_cli_logger, create_logger

__all__ = [
    "CommandConfig",
    "CommandResult",
    "create_cli_logger",
    "create_logger",
    "decode_bytes",
    "discover_repo",
    "dump_json",
    "get_common_dir",
    "get_worktree_dir",
    "open_repo",
    "parse_identity_email",
    "parse_tz_offset",
    "run_command",
    "to_datetime",
]

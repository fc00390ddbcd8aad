"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "text",
        "file": "",
    },
    "scm": {
        "submodules_included": False,
        "blame_algorithm": "",
        "git_executable": "git",
        "native_timeout_ms": 60000,
        "parallelism": 0,
    },
}

"""Per-line blame collection for files in git work trees."""

from scmblame.blame import (
    BlameLine,
    BlameResultCollector,
    CompositeBlameCommand,
    InputFile,
    WarningCollector,
)
from scmblame.enums import BlameAlgorithm, BlameCommandState, RepositoryState
from scmblame.exceptions import NotInsideWorkTreeError, ScmBlameError

__all__ = [
    "BlameAlgorithm",
    "BlameCommandState",
    "BlameLine",
    "BlameResultCollector",
    "CompositeBlameCommand",
    "InputFile",
    "NotInsideWorkTreeError",
    "RepositoryState",
    "ScmBlameError",
    "WarningCollector",
]

"""Enumeration types for scmblame."""

from enum import StrEnum


class RepositoryState(StrEnum):
    """Health classification of a repository, computed before any blame work."""

    NORMAL = "normal"
    NOT_A_REPOSITORY = "not_a_repository"
    SHALLOW = "shallow"
    USES_ALTERNATES = "uses_alternates"


class BlameAlgorithm(StrEnum):
    """Blame back-end chosen for a batch of files."""

    LIBRARY_BLAME = "library_blame"
    NATIVE_BLAME = "native_blame"


class BlameCommandState(StrEnum):
    """Lifecycle states of one CompositeBlameCommand invocation."""

    INIT = "init"
    GUARD_CHECKED = "guard_checked"
    ABORTED_NOT_REPO = "aborted_not_repo"
    EARLY_RETURN_SHALLOW = "early_return_shallow"
    EARLY_RETURN_NO_HEAD = "early_return_no_head"
    DISPATCHING = "dispatching"
    COMPLETE = "complete"

"""SCM configuration model.

This module provides the ScmConfig Pydantic model holding the options that
drive blame collection.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scmblame.enums import BlameAlgorithm


class ScmConfig(BaseModel):
    """SCM configuration section.

    Attributes:
        submodules_included: Whether files inside checked-out submodules are
            indexed and blamed.
        blame_algorithm: Forces one blame back-end for every batch. None lets
            the strategy selector decide.
        git_executable: Name or path of the git executable used for native blame.
        native_timeout_ms: Timeout for one native blame subprocess.
        parallelism: Worker count per batch. 0 uses the host CPU count.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    submodules_included: bool = False
    blame_algorithm: BlameAlgorithm | None = None
    git_executable: str = Field(default="git", min_length=1)
    native_timeout_ms: int = Field(default=60000, gt=0)
    parallelism: int = Field(default=0, ge=0)

    @field_validator("blame_algorithm", mode="before")
    @classmethod
    def _empty_algorithm_is_unset(cls, value: object) -> object:
        if value == "":
            return None
        return value

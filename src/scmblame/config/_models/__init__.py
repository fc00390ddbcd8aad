"""Configuration models."""

from scmblame.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from scmblame.config._models._config import Config
from scmblame.config._models._logging import LoggingConfig
from scmblame.config._models._scm import ScmConfig

__all__ = [
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ScmConfig",
]

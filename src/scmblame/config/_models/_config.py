# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing scmblame configuration values.
"""

from pathlib import Path  # noqa: TC003
from typing import Any, ClassVar, Self, TypeVar

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from scmblame.config._defaults import DEFAULT_CONFIG
from scmblame.config._loader import deep_merge, parse_env_vars, read_toml_file
from scmblame.config._models._common import ConfigSource, ConfigSourceName
from scmblame.config._models._logging import LoggingConfig
from scmblame.config._models._scm import ScmConfig
from scmblame.exceptions import ConfigValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_section(
    model: type[ModelT],
    section: str,
    data: dict[str, Any],
    *,
    source: str | None = None,
) -> ModelT:
    """Validate one configuration section into its model.

    Args:
        model: The pydantic model for the section.
        section: Section name, used to build dotted keys in errors.
        data: Merged configuration dictionary.
        source: Where the values came from, for error messages.

    Returns:
        The validated section model.

    Raises:
        ConfigValidationError: If the section contains invalid values.
    """
    values = data.get(section, {})
    if not isinstance(values, dict):
        msg = f"Configuration section '{section}' must be a table"
        raise ConfigValidationError(msg, key=section, value=values, source=source)

    try:
        return model.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        key = f"{section}.{field}" if field else section
        msg = f"Invalid value for '{key}': {first['msg']}"
        raise ConfigValidationError(
            msg, key=key, value=first.get("input"), source=source
        ) from e


class Config(BaseModel):
    """Merged scmblame configuration.

    Holds the validated, typed sections and the sources they came from.
    Instances are read once when a blame command is constructed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _sources: tuple[ConfigSource, ...] = PrivateAttr(default_factory=tuple)
    _scm: ScmConfig = PrivateAttr(default_factory=ScmConfig)
    _logging: LoggingConfig = PrivateAttr(default_factory=LoggingConfig)

    def __init__(
        self,
        *,
        _sources: tuple[ConfigSource, ...] = (),
        _scm: ScmConfig | None = None,
        _logging: LoggingConfig | None = None,
    ) -> None:
        """Initialize Config with parsed sections.

        Args:
            _sources: Sources that contributed to the configuration.
            _scm: Parsed SCM configuration section.
            _logging: Parsed logging configuration section.
        """
        super().__init__()
        self._sources = _sources
        self._scm = _scm if _scm is not None else ScmConfig()
        self._logging = _logging if _logging is not None else LoggingConfig()

    @classmethod
    def from_merged(
        cls,
        merged: dict[str, Any],
        sources: tuple[ConfigSource, ...],
        *,
        source: str | None = None,
    ) -> Self:
        return cls(
            _sources=sources,
            _scm=_parse_section(ScmConfig, "scm", merged, source=source),
            _logging=_parse_section(LoggingConfig, "logging", merged, source=source),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Configuration object from the dictionary.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls.from_merged(deep_merge(DEFAULT_CONFIG, data), ())

    @classmethod
    def from_file(
        cls, path: Path, *, overrides: dict[str, Any] | None = None
    ) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.
            overrides: Values applied on top of the file, such as CLI flags.

        Returns:
            Configuration object from the file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.PROJECT,
            path=path,
            exists=True,
            values=data,
        )
        merged = deep_merge(DEFAULT_CONFIG, data)
        if overrides:
            merged = deep_merge(merged, overrides)
        return cls.from_merged(merged, (source,), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        base_dir: Path | None = None,
        include_env: bool = True,
        include_cli: bool = False,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Merges sources in precedence order
        (defaults -> user -> project -> env -> cli).

        Args:
            base_dir: Analysis base directory holding `.scmblame.toml`.
            include_env: Include environment variables as a source.
            include_cli: Include CLI overrides.
            cli_overrides: Dict of CLI argument overrides.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be loaded.
            ConfigValidationError: If merged config fails validation.
        """
        # Deferred import to avoid circular dependency
        from scmblame.config._discovery import discover_sources  # noqa: PLC0415

        sources = discover_sources(
            base_dir,
            include_env=include_env,
            include_cli=include_cli,
            cli_overrides=cli_overrides,
        )

        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        # Sources are discovered highest-to-lowest, so reverse for merging
        for source in reversed(sources):
            values: dict[str, Any] = {}

            if source.name == ConfigSourceName.DEFAULT:
                values = source.values
            elif source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.name == ConfigSourceName.CLI:
                values = cli_overrides or {}
            elif source.path and source.exists:
                values = read_toml_file(source.path)

            loaded_sources.append(
                ConfigSource(
                    name=source.name,
                    path=source.path,
                    exists=source.exists,
                    values=values,
                )
            )

            if values:
                merged = deep_merge(merged, values)

        return cls.from_merged(merged, tuple(reversed(loaded_sources)))

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration."""
        return list(self._sources)

    @property
    def scm(self) -> ScmConfig:
        """Return the SCM configuration section."""
        return self._scm

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._logging

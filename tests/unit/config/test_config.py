from pathlib import Path

import pytest

from scmblame.config import (
    DEFAULT_CONFIG,
    Config,
    ConfigSourceName,
    LogLevel,
    deep_merge,
    parse_env_vars,
    safe_load_config,
    set_nested_key,
)
from scmblame.enums import BlameAlgorithm
from scmblame.exceptions import ConfigLoadError, ConfigValidationError


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    user_config = tmp_path / "user" / "config.toml"
    monkeypatch.setattr(
        "scmblame.config._discovery.get_user_config_path", lambda: user_config
    )
    for key in ("SCMBLAME_SCM__PARALLELISM", "SCMBLAME_STRICT_CONFIG", "SCMBLAME_DEBUG"):
        monkeypatch.delenv(key, raising=False)
    return user_config


def write_toml(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_text(content)
    return path


class TestDeepMerge:
    def test_merges_nested_tables(self) -> None:
        merged = deep_merge({"scm": {"a": 1, "b": 2}}, {"scm": {"b": 3}})

        assert merged == {"scm": {"a": 1, "b": 3}}

    def test_does_not_modify_inputs(self) -> None:
        base = {"scm": {"a": [1]}}
        _ = deep_merge(base, {"scm": {"a": [2]}})

        assert base == {"scm": {"a": [1]}}


class TestParseEnvVars:
    def test_maps_double_underscores_to_nesting(self) -> None:
        parsed = parse_env_vars(
            environ={
                "SCMBLAME_SCM__PARALLELISM": "4",
                "SCMBLAME_SCM__SUBMODULES_INCLUDED": "yes",
                "SCMBLAME_LOGGING__LEVEL": "debug",
                "OTHER": "ignored",
            }
        )

        assert parsed == {
            "scm": {"parallelism": 4, "submodules_included": True},
            "logging": {"level": "debug"},
        }

    def test_skips_reserved_variables(self) -> None:
        assert parse_env_vars(environ={"SCMBLAME_DEBUG": "1", "SCMBLAME_STRICT_CONFIG": "1"}) == {}


class TestSetNestedKey:
    def test_creates_intermediate_tables(self) -> None:
        data: dict[str, object] = {}

        set_nested_key(data, "scm.parallelism", 2)

        assert data == {"scm": {"parallelism": 2}}


class TestConfigFromDict:
    def test_defaults(self) -> None:
        config = Config.from_dict({})

        assert config.scm.submodules_included is False
        assert config.scm.blame_algorithm is None
        assert config.scm.git_executable == "git"
        assert config.scm.parallelism == 0
        assert config.logging.level is LogLevel.INFO
        assert config.scm.native_timeout_ms == DEFAULT_CONFIG["scm"]["native_timeout_ms"]

    def test_forced_algorithm(self) -> None:
        config = Config.from_dict({"scm": {"blame_algorithm": "native_blame"}})

        assert config.scm.blame_algorithm is BlameAlgorithm.NATIVE_BLAME

    @pytest.mark.parametrize(
        ("values", "key"),
        [
            ({"scm": {"parallelism": -1}}, "scm.parallelism"),
            ({"scm": {"blame_algorithm": "svn"}}, "scm.blame_algorithm"),
            ({"scm": {"native_timeout_ms": 0}}, "scm.native_timeout_ms"),
            ({"logging": {"level": "loud"}}, "logging.level"),
            ({"scm": "yes"}, "scm"),
        ],
    )
    def test_invalid_values_raise(self, values: dict[str, object], key: str) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict(values)

        assert exc_info.value.key == key

    def test_get_missing_key_returns_default(self) -> None:
        assert Config.from_dict({}).get("scm.nothing", "fallback") == "fallback"


class TestConfigLoad:
    def test_project_file_overrides_user_file(
        self, tmp_path: Path, isolated_user_config: Path
    ) -> None:
        _ = write_toml(isolated_user_config, "[scm]\nparallelism = 2\nsubmodules_included = true\n")
        base_dir = tmp_path / "project"
        _ = write_toml(base_dir / ".scmblame.toml", "[scm]\nparallelism = 6\n")

        config = Config.load(base_dir=base_dir)

        assert config.scm.parallelism == 6
        assert config.scm.submodules_included is True

    def test_environment_overrides_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        base_dir = tmp_path / "project"
        _ = write_toml(base_dir / ".scmblame.toml", "[scm]\nparallelism = 6\n")
        monkeypatch.setenv("SCMBLAME_SCM__PARALLELISM", "9")

        assert Config.load(base_dir=base_dir).scm.parallelism == 9

    def test_cli_overrides_win(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCMBLAME_SCM__PARALLELISM", "9")

        config = Config.load(
            base_dir=tmp_path,
            include_cli=True,
            cli_overrides={"scm": {"parallelism": 1}},
        )

        assert config.scm.parallelism == 1
        assert config.sources[0].name is ConfigSourceName.CLI

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        _ = write_toml(tmp_path / ".scmblame.toml", "[scm\n")

        with pytest.raises(ConfigLoadError):
            _ = Config.load(base_dir=tmp_path)


class TestSafeLoadConfig:
    def test_returns_default_config_on_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _ = write_toml(tmp_path / ".scmblame.toml", "[scm]\nparallelism = -3\n")

        config, error = safe_load_config(base_dir=tmp_path)

        assert config.scm.parallelism == 0
        assert error is not None
        assert "scm.parallelism" in error
        assert "Warning: Failed to load config" in capsys.readouterr().err

    def test_strict_mode_exits(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _ = write_toml(tmp_path / ".scmblame.toml", "[scm\n")
        monkeypatch.setenv("SCMBLAME_STRICT_CONFIG", "1")

        with pytest.raises(SystemExit) as exc_info:
            _ = safe_load_config(base_dir=tmp_path)

        assert exc_info.value.code == 1

    def test_missing_explicit_file_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            _ = safe_load_config(config_path=tmp_path / "missing.toml")

    def test_explicit_file_with_overrides(self, tmp_path: Path) -> None:
        path = write_toml(tmp_path / "custom.toml", "[scm]\nparallelism = 5\ngit_executable = 'git2'\n")

        config, error = safe_load_config(
            config_path=path, cli_overrides={"scm": {"parallelism": 1}}
        )

        assert error is None
        assert config.scm.parallelism == 1
        assert config.scm.git_executable == "git2"

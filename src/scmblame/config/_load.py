import os
import sys
from pathlib import Path  # noqa: TC003

from scmblame.exceptions import ConfigError

from ._models import Config

STRICT_CONFIG_ENV = "SCMBLAME_STRICT_CONFIG"


def _fail_or_warn(message: str, *, strict: bool) -> None:
    if strict:
        print(f"Error: {message}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    print(f"Warning: {message}", file=sys.stderr)  # noqa: T201


def safe_load_config(
    *,
    config_path: Path | None = None,
    base_dir: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> tuple[Config, str | None]:
    """Load configuration with error handling.

    Attempts to load configuration and handles errors based on the
    SCMBLAME_STRICT_CONFIG environment variable:
    - If unset or "0": warn to stderr and return the default config
    - If "1": fail fast with sys.exit(1)

    When config_path is provided, the file must exist (explicit user request).

    Args:
        config_path: Explicit path to config file (--config flag).
        base_dir: Analysis base directory holding `.scmblame.toml`.
        cli_overrides: CLI argument overrides to pass to Config.load().

    Returns:
        Tuple of (Config, error_message). On success, error_message is None.
        On failure (non-strict mode), returns default Config with error message.
    """
    strict_mode = os.environ.get(STRICT_CONFIG_ENV, "0") == "1"

    try:
        if config_path is not None:
            if not config_path.exists():
                # Always fail for an explicit path
                print(f"Error: Config file not found: {config_path}", file=sys.stderr)  # noqa: T201
                sys.exit(1)
            config = Config.from_file(
                config_path, overrides=dict(cli_overrides) if cli_overrides else None
            )
        else:
            config = Config.load(
                base_dir=base_dir,
                include_env=True,
                include_cli=cli_overrides is not None,
                cli_overrides=dict(cli_overrides) if cli_overrides else None,
            )
    except ConfigError as e:
        error_msg = str(e)
        _fail_or_warn(f"Failed to load config: {error_msg}", strict=strict_mode)
        return Config.from_dict({}), error_msg
    except OSError as e:
        error_msg = f"Failed to load config: {e}"
        _fail_or_warn(error_msg, strict=strict_mode)
        return Config.from_dict({}), error_msg
    else:
        return config, None

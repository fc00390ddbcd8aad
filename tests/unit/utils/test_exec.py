import sys
from pathlib import Path

from scmblame.utils import CommandConfig, run_command


class TestRunCommand:
    def test_captures_output_and_exit_code(self, tmp_path: Path) -> None:
        result = run_command(
            CommandConfig(
                args=(sys.executable, "-c", "import os, sys; print(os.getcwd()); sys.exit(3)"),
                cwd=tmp_path,
            )
        )

        assert result.success is True
        assert result.exit_code == 3
        assert result.ok is False
        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    def test_passes_extra_environment(self) -> None:
        result = run_command(
            CommandConfig(
                args=(sys.executable, "-c", "import os; print(os.environ['SCMBLAME_TEST'])"),
                env={"SCMBLAME_TEST": "value"},
            )
        )

        assert result.ok is True
        assert result.stdout.strip() == "value"

    def test_missing_executable(self) -> None:
        result = run_command(CommandConfig(args=("scmblame-definitely-missing",)))

        assert result.success is False
        assert result.command_not_found is True

    def test_timeout(self) -> None:
        result = run_command(
            CommandConfig(args=(sys.executable, "-c", "import time; time.sleep(5)"), timeout_ms=100)
        )

        assert result.timed_out is True
        assert result.exit_code is None

    def test_empty_command(self) -> None:
        assert run_command(CommandConfig(args=())).error == "No command specified"

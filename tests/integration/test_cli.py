import json
from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from scmblame.cli import CLIContext, create_app
from scmblame.cli._commands import ExitCode
from tests.conftest import GitRepo


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "scmblame.config._discovery.get_user_config_path", lambda: tmp_path / "user.toml"
    )
    CLIContext.reset()


@pytest.fixture
def cli(console: Console) -> Callable[..., int]:
    """Run the CLI through its global options and return the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        return 0

    return _run


@pytest.fixture
def project(git_repo: GitRepo) -> GitRepo:
    _ = git_repo.write(".gitignore", "*.log\n")
    _ = git_repo.write("src/app.py", "import os\nprint(os.name)\n")
    _ = git_repo.write("README.md", "# Project\n")
    _ = git_repo.commit("initial", email="alice@example.com")
    _ = git_repo.write("run.log", "noise\n")
    return git_repo


class TestBlameCommand:
    def test_json_output_for_every_eligible_file(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = cli("blame", str(project.root), "--json")

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert set(data) == {".gitignore", "README.md", "src/app.py"}
        assert len(data["src/app.py"]) == 3
        assert data["src/app.py"][0]["author"] == "alice@example.com"
        assert data["src/app.py"][0]["revision"] == project.head()

    def test_explicit_files(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = cli("--algorithm", "library-blame", "blame", str(project.root), "src/app.py", "--json")

        assert code == 0
        assert set(json.loads(capsys.readouterr().out)) == {"src/app.py"}

    def test_table_output(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = cli("blame", str(project.root))

        out = capsys.readouterr().out
        assert code == 0
        assert "src/app.py" in out
        assert "alice@example.com" in out

    def test_missing_file(self, cli: Callable[..., int], project: GitRepo) -> None:
        assert cli("blame", str(project.root), "missing.py") == ExitCode.NOT_FOUND

    def test_not_a_work_tree(self, cli: Callable[..., int], tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        assert cli("blame", str(plain)) == ExitCode.NOT_A_WORK_TREE

    def test_shallow_warning_printed(
        self,
        cli: Callable[..., int],
        project: GitRepo,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _ = project.write("README.md", "# Project\n\nMore.\n")
        _ = project.commit("second")
        clone = tmp_path / "shallow"
        _ = project.git("clone", "-q", "--depth", "1", f"file://{project.root}", str(clone))

        code = cli("blame", str(clone), "--json")

        captured = capsys.readouterr()
        assert code == 0
        assert json.loads(captured.out) == {}
        assert "Shallow clone detected during the analysis" in captured.err


class TestCheckCommand:
    def test_reports_normal_repository(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = cli("check", str(project.root))

        out = capsys.readouterr().out
        assert code == 0
        assert "normal" in out
        assert "enabled" in out

    def test_lists_loaded_config_files(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_path = project.root / ".scmblame.toml"
        _ = config_path.write_text("[scm]\nsubmodules_included = false\n")

        code = cli("check", str(project.root))

        out = capsys.readouterr().out
        assert code == 0
        assert f"Config file (project): {config_path}" in out
        assert "Config file (user)" not in out

    def test_no_config_files_listed_without_files(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli("check", str(project.root)) == 0
        assert "Config file" not in capsys.readouterr().out

    def test_not_a_repository(self, cli: Callable[..., int], tmp_path: Path) -> None:
        assert cli("check", str(tmp_path)) == ExitCode.NOT_A_WORK_TREE


class TestIgnoredCommand:
    def test_reports_each_path(
        self, cli: Callable[..., int], project: GitRepo, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = cli("ignored", str(project.root), "run.log", "src/app.py")

        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert any("ignored" in line and "run.log" in line for line in lines)
        assert any("included" in line and "src/app.py" in line for line in lines)

from pathlib import Path

import pytest

from scmblame.blame import SHALLOW_WARNING, WarningCollector
from scmblame.blame._guard import ALTERNATES_MESSAGE
from scmblame.config import Config
from scmblame.enums import BlameAlgorithm, BlameCommandState
from scmblame.exceptions import NotInsideWorkTreeError
from tests.conftest import GitRepo, LogCapture, init_git_repo
from tests.integration.conftest import blame_files, by_name

ALGORITHMS = pytest.mark.parametrize(
    "algorithm", ["", "library_blame", "native_blame"], ids=["auto", "library", "native"]
)


def forced(algorithm: str, **scm: object) -> Config:
    return Config.from_dict({"scm": {"blame_algorithm": algorithm, **scm}})


@pytest.fixture
def history(git_repo: GitRepo) -> GitRepo:
    _ = git_repo.write(".gitignore", "*.log\n")
    _ = git_repo.write("committed.py", "one\ntwo\nthree\n")
    _ = git_repo.write("modified.py", "alpha\nbeta\n")
    _ = git_repo.write("no_newline.py", "last")
    _ = git_repo.commit("initial", email="alice@example.com")
    _ = git_repo.write("modified.py", "alpha\nchanged\n")
    _ = git_repo.write("untracked.py", "new\n")
    _ = git_repo.write("debug.log", "noise\n")
    return git_repo


@ALGORITHMS
class TestWorkTreeStates:
    def test_only_fully_committed_files_are_reported(self, history: GitRepo, algorithm: str) -> None:
        names = ["committed.py", "modified.py", "no_newline.py", "untracked.py", "debug.log"]

        command, results = blame_files(
            history.root, [history.root / name for name in names], config=forced(algorithm)
        )

        assert command.last_state is BlameCommandState.COMPLETE
        assert set(by_name(results)) == {"committed.py", "no_newline.py"}

    def test_results_cover_every_counted_line(self, history: GitRepo, algorithm: str) -> None:
        _, results = blame_files(
            history.root,
            [history.root / "committed.py", history.root / "no_newline.py"],
            config=forced(algorithm),
        )

        for file, lines in results.items():
            assert len(lines) == file.lines
        committed = by_name(results)["committed.py"]
        assert committed[-1] == committed[-2]
        assert {line.author for line in committed} == {"alice@example.com"}

    def test_deleted_file_is_skipped(self, history: GitRepo, algorithm: str) -> None:
        path = history.root / "committed.py"
        file_paths = [path]
        command, results = blame_files(history.root, file_paths, config=forced(algorithm))
        assert results

        path.unlink()
        _ = history.commit("delete")
        _ = path.write_text("recreated\n")

        command, results = blame_files(history.root, file_paths, config=forced(algorithm))

        assert command.last_state is BlameCommandState.COMPLETE
        assert results == {}


class TestRepositoryStates:
    def test_not_a_work_tree_raises(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        _ = (plain / "a.py").write_text("x\n")

        with pytest.raises(NotInsideWorkTreeError):
            _ = blame_files(plain, [plain / "a.py"])

    def test_repository_without_commits(self, git_repo: GitRepo) -> None:
        _ = git_repo.write("a.py", "x\n")

        command, results = blame_files(git_repo.root, [git_repo.root / "a.py"])

        assert command.last_state is BlameCommandState.EARLY_RETURN_NO_HEAD
        assert results == {}

    def test_shallow_clone_reports_nothing(self, history: GitRepo, tmp_path: Path) -> None:
        _ = history.commit("second")
        clone = tmp_path / "shallow"
        _ = history.git("clone", "-q", "--depth", "1", f"file://{history.root}", str(clone))
        warnings = WarningCollector()

        command, results = blame_files(clone, [clone / "committed.py"], warnings=warnings)

        assert command.last_state is BlameCommandState.EARLY_RETURN_SHALLOW
        assert results == {}
        assert warnings.messages == [SHALLOW_WARNING]

    def test_shared_clone_still_blames(
        self, history: GitRepo, tmp_path: Path, log_capture: LogCapture
    ) -> None:
        clone = tmp_path / "shared"
        _ = history.git("clone", "-q", "--shared", str(history.root), str(clone))

        command, results = blame_files(
            clone,
            [clone / "committed.py"],
            config=forced("library_blame"),
            logger=log_capture.logger,
        )

        assert command.last_state is BlameCommandState.COMPLETE
        assert set(by_name(results)) == {"committed.py"}
        assert ALTERNATES_MESSAGE in log_capture.events("info")

    def test_base_dir_scopes_eligible_files(self, git_repo: GitRepo) -> None:
        _ = git_repo.write("module/a.py", "a\n")
        _ = git_repo.write("other/b.py", "b\n")
        _ = git_repo.commit()

        _, results = blame_files(
            git_repo.root / "module",
            [git_repo.root / "module" / "a.py", git_repo.root / "other" / "b.py"],
        )

        assert set(by_name(results)) == {"a.py"}


@pytest.fixture
def with_submodule(git_repo: GitRepo, tmp_path: Path) -> tuple[GitRepo, GitRepo]:
    library = init_git_repo(tmp_path / "lib-origin")
    _ = library.write("file.txt", "from the library\n")
    _ = library.commit("library", email="lib@example.com")

    _ = git_repo.write("main.py", "main\n")
    _ = git_repo.commit("main", email="app@example.com")
    _ = git_repo.git("submodule", "add", "-q", str(library.root), "lib")
    _ = git_repo.commit("add submodule", email="app@example.com")
    return git_repo, library


@ALGORITHMS
class TestSubmodules:
    def test_included_submodule_files_are_blamed(
        self, with_submodule: tuple[GitRepo, GitRepo], algorithm: str
    ) -> None:
        parent, library = with_submodule

        _, results = blame_files(
            parent.root,
            [parent.root / "main.py", parent.root / "lib" / "file.txt"],
            config=forced(algorithm, submodules_included=True),
        )

        blamed = by_name(results)
        assert set(blamed) == {"main.py", "file.txt"}
        assert {line.revision for line in blamed["file.txt"]} == {library.head()}
        assert {line.author for line in blamed["file.txt"]} == {"lib@example.com"}

    def test_submodule_files_skipped_when_disabled(
        self, with_submodule: tuple[GitRepo, GitRepo], algorithm: str
    ) -> None:
        parent, _ = with_submodule

        _, results = blame_files(
            parent.root,
            [parent.root / "main.py", parent.root / "lib" / "file.txt"],
            config=forced(algorithm, submodules_included=False),
        )

        assert set(by_name(results)) == {"main.py"}


class TestSubmoduleNotCheckedOut:
    def test_logs_and_blames_the_rest(
        self,
        with_submodule: tuple[GitRepo, GitRepo],
        tmp_path: Path,
        log_capture: LogCapture,
    ) -> None:
        parent, _ = with_submodule
        clone = tmp_path / "clone"
        _ = parent.git("clone", "-q", str(parent.root), str(clone))

        _, results = blame_files(
            clone,
            [clone / "main.py"],
            config=Config.from_dict({"scm": {"submodules_included": True}}),
            logger=log_capture.logger,
        )

        assert set(by_name(results)) == {"main.py"}
        assert log_capture.has(
            "Submodule lib given, failed to get submodule repository, is it not checked out?",
            "info",
        )


@pytest.mark.parametrize("algorithm", list(BlameAlgorithm))
def test_many_files_on_a_small_pool(git_repo: GitRepo, algorithm: BlameAlgorithm) -> None:
    for batch in range(3):
        for index in range(batch * 10, batch * 10 + 10):
            _ = git_repo.write(f"pkg{index % 4}/file{index}.py", f"value = {index}\n")
        _ = git_repo.commit(f"batch {batch}", email=f"dev{batch}@example.com")
    paths = sorted(git_repo.root.glob("pkg*/*.py"))

    _, results = blame_files(
        git_repo.root, paths, config=forced(algorithm.value), parallelism=4
    )

    assert len(results) == 30
    for file, lines in results.items():
        index = int(file.path.stem.removeprefix("file"))
        assert lines[0].author == f"dev{index // 10}@example.com"

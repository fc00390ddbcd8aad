"""In-process blame built on the dulwich object store.

The working tree content of a file is matched against its HEAD version, then
attributed line by line by walking history from HEAD, newest commit first.
Lines are compared with all whitespace removed, so reformatting keeps the
original authorship.
"""

import heapq
import stat
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import cast

from dulwich.diff_tree import CHANGE_RENAME, RenameDetector, tree_changes
from dulwich.errors import NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Commit
from dulwich.repo import Repo  # noqa: TC002
from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.blame._models import BlameLine, RepositoryHandle
from scmblame.utils import (
    create_logger,
    decode_bytes,
    open_repo,
    parse_identity_email,
    to_datetime,
)


def split_lines(content: bytes) -> list[bytes]:
    """Split file content into lines the way git counts them.

    Only LF separates lines. A trailing newline does not start a new line.
    """
    if not content:
        return []
    lines = content.split(b"\n")
    if lines[-1] == b"":
        _ = lines.pop()
    return lines


def strip_whitespace(line: bytes) -> bytes:
    """Remove every whitespace byte from a line."""
    return b"".join(line.split())


def match_lines(old: Sequence[bytes], new: Sequence[bytes]) -> dict[int, int]:
    """Pair up lines of two versions of a file, ignoring all whitespace.

    The pairing is a longest common subsequence found with Myers' O(ND)
    difference algorithm, the same minimal diff git computes, so every line
    the two versions share stays paired.

    Args:
        old: Lines of the older version.
        new: Lines of the newer version.

    Returns:
        Mapping from indexes in `new` to the index of the same line in
        `old`. Lines of `new` missing from the mapping were added or changed.
    """
    a = [strip_whitespace(line) for line in old]
    b = [strip_whitespace(line) for line in new]
    mapping: dict[int, int] = {}

    start = 0
    while start < len(a) and start < len(b) and a[start] == b[start]:
        mapping[start] = start
        start += 1
    end_a, end_b = len(a), len(b)
    while end_a > start and end_b > start and a[end_a - 1] == b[end_b - 1]:
        end_a -= 1
        end_b -= 1
        mapping[end_b] = end_a

    for old_index, new_index in _common_subsequence(a[start:end_a], b[start:end_b]):
        mapping[start + new_index] = start + old_index
    return mapping


def _common_subsequence(a: Sequence[bytes], b: Sequence[bytes]) -> list[tuple[int, int]]:
    """Return the `(index in a, index in b)` pairs of a longest common subsequence."""
    n, m = len(a), len(b)
    if not n or not m:
        return []

    # Furthest x reached on each diagonal k = x - y, one snapshot per edit count
    frontier: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []
    for d in range(n + m + 1):
        trace.append(frontier.copy())
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
                x = frontier[k + 1]
            else:
                x = frontier[k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            frontier[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)
    return []


def _backtrack(trace: list[dict[int, int]], n: int, m: int) -> list[tuple[int, int]]:
    pairs: list[tuple[int, int]] = []
    x, y = n, m
    for d in range(len(trace) - 1, -1, -1):
        frontier = trace[d]
        k = x - y
        if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
            previous_k = k + 1
        else:
            previous_k = k - 1
        previous_x = frontier[previous_k]
        previous_y = previous_x - previous_k
        while x > previous_x and y > previous_y:
            x -= 1
            y -= 1
            pairs.append((x, y))
        x, y = previous_x, previous_y
    pairs.reverse()
    return pairs


@dataclass(slots=True)
class _Candidate:
    """A version of the file whose lines still await attribution.

    Attributes:
        path: Path of the file in this commit's tree.
        blob_id: Blob holding this version.
        lines: Lines of this version.
        origins: Line index in this version -> indexes of the HEAD lines it
            stands for.
    """

    path: bytes
    blob_id: bytes
    lines: list[bytes]
    origins: dict[int, list[int]] = field(default_factory=dict)


class _HistoryWalk:
    """Attributes HEAD lines to the commits that introduced them."""

    def __init__(self, repo: Repo) -> None:
        self._repo: Repo = repo
        self._queue: list[tuple[int, int, bytes]] = []
        self._pending: dict[bytes, _Candidate] = {}
        self._sequence: int = 0

    def run(self, head: Commit, path: bytes, blob_id: bytes, lines: list[bytes]) -> list[bytes]:
        attributed: list[bytes] = [b""] * len(lines)
        self._push(head, _Candidate(path, blob_id, lines, {i: [i] for i in range(len(lines))}))

        while self._queue:
            _, _, commit_id = heapq.heappop(self._queue)
            candidate = self._pending.pop(commit_id, None)
            if candidate is None:
                continue
            commit = cast("Commit", self._repo[commit_id])
            for origins in self._pass_to_parents(commit, candidate).values():
                for origin in origins:
                    attributed[origin] = commit_id

        return attributed

    def _push(self, commit: Commit, candidate: _Candidate) -> None:
        commit_id = commit.id
        existing = self._pending.get(commit_id)
        if existing is not None:
            for index, origins in candidate.origins.items():
                existing.origins.setdefault(index, []).extend(origins)
            return
        self._pending[commit_id] = candidate
        self._sequence += 1
        heapq.heappush(self._queue, (-commit.commit_time, self._sequence, commit_id))

    def _pass_to_parents(self, commit: Commit, candidate: _Candidate) -> dict[int, list[int]]:
        """Hand unchanged lines to parents and return the lines left over.

        A parent holding the very same blob takes every line before any
        parent is diffed. Otherwise parents are diffed in order and each
        takes the lines it shares with this version.
        """
        parents: list[tuple[Commit, bytes, bytes]] = []
        for parent_id in commit.parents:
            parent = self._parent(parent_id)
            if parent is None:
                continue
            located = self._locate(commit, parent, candidate.path)
            if located is None:
                continue
            parent_path, parent_blob_id = located
            if parent_blob_id == candidate.blob_id:
                self._push(
                    parent, _Candidate(parent_path, parent_blob_id, candidate.lines, candidate.origins)
                )
                return {}
            parents.append((parent, parent_path, parent_blob_id))

        remaining = candidate.origins
        for parent, parent_path, parent_blob_id in parents:
            if not remaining:
                break
            parent_lines = split_lines(self._blob_data(parent_blob_id))
            mapping = match_lines(parent_lines, candidate.lines)
            passed: dict[int, list[int]] = {}
            kept: dict[int, list[int]] = {}
            for index, origins in remaining.items():
                if index in mapping:
                    passed[mapping[index]] = origins
                else:
                    kept[index] = origins
            if passed:
                self._push(parent, _Candidate(parent_path, parent_blob_id, parent_lines, passed))
            remaining = kept
        return remaining

    def _parent(self, parent_id: bytes) -> Commit | None:
        try:
            parent = self._repo[parent_id]
        except KeyError:
            # Missing from the object store (grafted or borrowed history)
            return None
        return parent if isinstance(parent, Commit) else None

    def _locate(self, commit: Commit, parent: Commit, path: bytes) -> tuple[bytes, bytes] | None:
        """Find the file in the parent tree, following a rename if needed."""
        blob_id = lookup_blob(self._repo, parent.tree, path)
        if blob_id is not None:
            return path, blob_id

        store = self._repo.object_store
        changes = tree_changes(
            store,
            parent.tree,
            commit.tree,
            rename_detector=RenameDetector(store),
        )
        for change in changes:
            if change.type == CHANGE_RENAME and change.new.path == path:
                old_blob = lookup_blob(self._repo, parent.tree, change.old.path)
                if old_blob is not None:
                    return change.old.path, old_blob
        return None

    def _blob_data(self, blob_id: bytes) -> bytes:
        return self._repo.object_store[blob_id].as_raw_string()


def lookup_blob(repo: Repo, tree_id: bytes, path: bytes) -> bytes | None:
    """Look up a regular file in a tree.

    Args:
        repo: Repository holding the tree.
        tree_id: Root tree to search.
        path: Slash-separated path relative to the tree.

    Returns:
        The blob id, or None if the path is missing or not a regular file
        (symlinks and submodule gitlinks included).
    """
    try:
        mode, sha = tree_lookup_path(repo.object_store.__getitem__, tree_id, path)
    except (KeyError, NotTreeError):
        return None
    if not stat.S_ISREG(mode):
        return None
    return sha


class LibraryBlameProvider:
    """Computes blame for one file from the dulwich object store.

    Each call opens its own repository instance, so one provider can serve
    several worker threads at once.
    """

    def __init__(self, *, logger: FilteringBoundLogger | None = None) -> None:
        self._logger: FilteringBoundLogger = logger or create_logger()

    def blame(
        self, repository: RepositoryHandle, relative_path: str
    ) -> list[BlameLine] | None:
        """Blame the working tree content of a file.

        Args:
            repository: Repository the file belongs to.
            relative_path: Path relative to the repository work tree.

        Returns:
            One BlameLine per line of the working file, or None when the
            file has no committed history to attribute every line to.
        """
        repo = open_repo(repository.work_tree)
        if repo is None:
            self._logger.debug(
                "Unable to open repository", work_tree=str(repository.work_tree)
            )
            return None
        try:
            return self._blame(repo, repository, PurePosixPath(relative_path).as_posix())
        finally:
            repo.close()

    def _blame(
        self, repo: Repo, repository: RepositoryHandle, relative_path: str
    ) -> list[BlameLine] | None:
        try:
            head = repo[repo.head()]
        except KeyError:
            self._logger.debug("Unable to blame file, HEAD cannot be resolved", file=relative_path)
            return None
        if not isinstance(head, Commit):
            return None

        path = relative_path.encode("utf-8")
        blob_id = lookup_blob(repo, head.tree, path)
        if blob_id is None:
            self._logger.debug(
                f"Unable to blame file {relative_path}. It is probably a symlink, "
                "part of a submodule or not committed."
            )
            return None

        try:
            working = split_lines((repository.work_tree / relative_path).read_bytes())
        except OSError:
            self._logger.debug(f"Unable to blame file {relative_path}. It is not in the work tree.")
            return None
        if not working:
            self._logger.debug(f"Unable to blame file {relative_path}. It is empty.")
            return None

        committed = split_lines(repo.object_store[blob_id].as_raw_string())
        to_committed = match_lines(committed, working)
        if len(to_committed) != len(working):
            line = next(i for i in range(len(working)) if i not in to_committed)
            self._logger.debug(
                f"Unable to blame file {relative_path}. No blame info at line {line + 1}. "
                "Is file committed?"
            )
            return None

        self._logger.debug(f"Collecting blame information from file {relative_path}")
        attributed = _HistoryWalk(repo).run(head, path, blob_id, committed)
        return self._to_blame_lines(repo, relative_path, working, to_committed, attributed)

    def _to_blame_lines(
        self,
        repo: Repo,
        relative_path: str,
        working: list[bytes],
        to_committed: dict[int, int],
        attributed: list[bytes],
    ) -> list[BlameLine] | None:
        cache: dict[bytes, BlameLine | None] = {}
        result: list[BlameLine] = []

        for index in range(len(working)):
            commit_id = attributed[to_committed[index]]
            if commit_id not in cache:
                cache[commit_id] = self._commit_line(repo, commit_id)
            line = cache[commit_id]
            if line is None:
                self._logger.debug(
                    f"Unable to blame file {relative_path}. No blame info at line {index + 1}. "
                    "Is file committed?",
                    commit=decode_bytes(commit_id),
                )
                return None
            result.append(line)

        return result

    def _commit_line(self, repo: Repo, commit_id: bytes) -> BlameLine | None:
        if not commit_id:
            return None
        try:
            commit = repo[commit_id]
        except KeyError:
            return None
        if not isinstance(commit, Commit):
            return None
        author = parse_identity_email(commit.author)
        if author is None:
            return None
        return BlameLine(
            revision=decode_bytes(commit_id),
            author=author,
            date=to_datetime(commit.commit_time, commit.commit_timezone),
        )

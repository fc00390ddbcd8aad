"""In-memory, thread-safe result and warning sinks."""

import threading
from collections.abc import Sequence

from scmblame.blame._models import BlameLine, InputFile


class BlameResultCollector:
    """Collects blame results keyed by file.

    Safe to call from several worker threads. A file reported twice keeps
    its first result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[InputFile, list[BlameLine]] = {}

    def blame_result(self, file: InputFile, lines: Sequence[BlameLine]) -> None:
        with self._lock:
            _ = self._results.setdefault(file, list(lines))

    @property
    def results(self) -> dict[InputFile, list[BlameLine]]:
        """Return a snapshot of the collected results."""
        with self._lock:
            return dict(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, file: object) -> bool:
        with self._lock:
            return file in self._results


class WarningCollector:
    """Collects user-facing warnings in insertion order, without duplicates."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[str] = []

    def add_unique(self, message: str) -> None:
        with self._lock:
            if message not in self._messages:
                self._messages.append(message)

    @property
    def messages(self) -> list[str]:
        """Return the recorded warnings."""
        with self._lock:
            return list(self._messages)

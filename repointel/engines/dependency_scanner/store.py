"""ScanStore: the repository name -> ExtractedSet table shared by ingestion and queries."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from repointel.engines.dependency_scanner.models import ExtractedSet


class ScanStore:
    """Thread-safe, last-write-wins table of scan results.

    Values are immutable :class:`ExtractedSet` objects replaced wholesale,
    so a reader sees either the previous or the new result for a repository.
    Insertion order is kept; a rescan keeps the repository's position.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, ExtractedSet] = {}

    def put(self, result: ExtractedSet) -> None:
        with self._lock:
            self._results[result.repo_name] = result

    def get(self, repo_name: str) -> ExtractedSet | None:
        with self._lock:
            return self._results.get(repo_name)

    def remove(self, repo_name: str) -> ExtractedSet | None:
        with self._lock:
            return self._results.pop(repo_name, None)

    def clear(self) -> None:
        with self._lock:
            self._results.clear()

    def snapshot(self) -> dict[str, ExtractedSet]:
        """Point-in-time copy of the table."""
        with self._lock:
            return dict(self._results)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._results)

    def items(self) -> Iterator[tuple[str, ExtractedSet]]:
        return iter(self.snapshot().items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, repo_name: object) -> bool:
        with self._lock:
            return repo_name in self._results

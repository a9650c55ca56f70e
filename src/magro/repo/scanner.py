"""Bounded-depth repository discovery under a collection directory.

The walk is breadth-first and best-effort: directories that cannot be read
are recorded as ScanIoError and skipped, everything else is still reported.
Repository roots are never descended into and symlinks are never followed.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import NamedTuple

from magro.common.errors import ScanIoError
from magro.repo.entry import RepoKind, RepositoryEntry
from magro.repo.probe import GIT_DIR_NAME, classify

logger = logging.getLogger(__name__)

# Deepest level probed below a collection directory (its children are level 1)
DEFAULT_SCAN_DEPTH = 4


class ScanResult(NamedTuple):
    """Everything a completed scan found, plus the subtrees it could not read."""

    entries: list[RepositoryEntry]
    errors: list[ScanIoError]


class RepositoryScanner:
    """Lazy iterator over the repositories under ``base_dir``.

    Errors are appended to ``errors`` as the walk reaches them, so the list is
    only complete once iteration has finished.
    """

    def __init__(
        self,
        base_dir: Path,
        max_depth: int = DEFAULT_SCAN_DEPTH,
        *,
        collection: str | None = None,
        classifier: Callable[[Path], RepoKind | None] = classify,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.max_depth = max_depth
        self.collection = collection
        self.classifier = classifier
        self.errors: list[ScanIoError] = []

    def __iter__(self) -> Iterator[RepositoryEntry]:
        if not self._check_base():
            return

        queue: deque[tuple[Path, int]] = deque([(self.base_dir, 0)])
        while queue:
            directory, depth = queue.popleft()
            if depth >= self.max_depth:
                continue
            for child in self._subdirectories(directory):
                kind = self.classifier(child)
                if kind is None:
                    queue.append((child, depth + 1))
                    continue
                logger.info("Found %s repository %s", kind.value, child)
                yield RepositoryEntry(self.collection, child, kind)

    def _check_base(self) -> bool:
        """Return True if the base directory can be walked."""
        base = self.base_dir
        try:
            if base.is_dir():
                return True
            if base.is_symlink():
                self._record(base, "broken symlink")
            elif base.exists():
                self._record(base, "not a directory")
            else:
                # Nothing cloned into this collection yet
                logger.info("Collection directory %s does not exist", base)
        except OSError as e:
            self._record(base, e)
        return False

    def _subdirectories(self, directory: Path) -> list[Path]:
        """Real (non-symlink) subdirectories of ``directory`` in name order."""
        children: list[Path] = []
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            self._record(directory, e)
            return children

        for entry in entries:
            if entry.name == GIT_DIR_NAME:
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    children.append(Path(entry.path))
            except OSError as e:
                # Vanished or unreadable between listing and stat
                self._record(Path(entry.path), e)
        return children

    def _record(self, path: Path, cause: BaseException | str) -> None:
        error = ScanIoError(path, cause)
        logger.warning("%s", error)
        self.errors.append(error)


def scan(
    base_dir: Path,
    max_depth: int = DEFAULT_SCAN_DEPTH,
    *,
    collection: str | None = None,
) -> ScanResult:
    """Scan ``base_dir`` to completion. Never raises for filesystem errors."""
    scanner = RepositoryScanner(base_dir, max_depth, collection=collection)
    entries = list(scanner)
    return ScanResult(entries, scanner.errors)

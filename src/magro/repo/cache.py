"""Per-collection cache of discovered repository locations.

A record is only ever replaced by a refresh. There is no expiry: the cache
goes stale when repositories are moved by hand, and the fix is an explicit
refresh. magro's own mutating commands keep it current through
``invalidate`` and ``insert``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from magro.common.errors import ScanIoError
from magro.repo.entry import RepoKind, RepositoryEntry
from magro.repo.scanner import DEFAULT_SCAN_DEPTH, ScanResult, scan

if TYPE_CHECKING:
    from magro.collection.registry import Collection

logger = logging.getLogger(__name__)

Scanner = Callable[..., ScanResult]


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass
class CacheRecord:
    """Cached repositories of one collection, sorted and unique by path."""

    entries: tuple[RepositoryEntry, ...] = ()
    generation: int = 0
    refreshed_at: str | None = None

    def __post_init__(self) -> None:
        by_path = {entry.path: entry for entry in self.entries}
        self.entries = tuple(by_path[p] for p in sorted(by_path))

    def with_entry(self, entry: RepositoryEntry) -> CacheRecord:
        """Copy of this record with ``entry`` added (or replacing its path)."""
        return CacheRecord(
            entries=(*self.entries, entry),
            generation=self.generation + 1,
            refreshed_at=self.refreshed_at,
        )

    def renamed(self, collection: str) -> CacheRecord:
        """Copy of this record whose entries belong to ``collection``."""
        return CacheRecord(
            entries=tuple(e._replace(collection=collection) for e in self.entries),
            generation=self.generation,
            refreshed_at=self.refreshed_at,
        )


class CacheLookup(NamedTuple):
    """Result of CollectionCache.get."""

    entries: list[RepositoryEntry]
    errors: list[ScanIoError]


@dataclass
class CollectionCache:
    """Cache records keyed by collection name."""

    records: dict[str, CacheRecord] = field(default_factory=dict)
    scanner: Scanner = scan
    max_depth: int = DEFAULT_SCAN_DEPTH
    dirty: bool = False

    def __contains__(self, name: object) -> bool:
        return name in self.records

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.records))

    def __len__(self) -> int:
        return len(self.records)

    def record(self, name: str) -> CacheRecord | None:
        """Cache record for ``name``, or None if never scanned."""
        return self.records.get(name)

    def get(
        self,
        collection: Collection,
        *,
        refresh: bool = False,
        keep_going: bool = False,
    ) -> CacheLookup:
        """Repositories of ``collection``, scanning only when needed.

        With a record present and ``refresh`` false the filesystem is not
        touched. Otherwise the collection directory is scanned; scan errors
        raise the first ScanIoError unless ``keep_going`` is set, in which case
        whatever was found is committed and the errors are returned.
        """
        current = self.records.get(collection.name)
        if current is not None and not refresh:
            return CacheLookup(list(current.entries), [])

        if current is None:
            logger.info("No cache for collection '%s', scanning", collection.name)
        else:
            logger.info("Refreshing collection '%s'", collection.name)

        result = self.scanner(
            collection.base_dir, self.max_depth, collection=collection.name
        )
        if result.errors and not keep_going:
            # Leave the previous record untouched
            raise result.errors[0]

        generation = current.generation + 1 if current is not None else 1
        record = CacheRecord(
            entries=tuple(result.entries),
            generation=generation,
            refreshed_at=_now(),
        )
        self.records[collection.name] = record
        self.dirty = True
        logger.debug(
            "Cached %d repositories for '%s' (generation %d)",
            len(record.entries),
            collection.name,
            generation,
        )
        return CacheLookup(list(record.entries), list(result.errors))

    def refresh(self, collection: Collection, *, keep_going: bool = False) -> CacheLookup:
        """Rescan ``collection`` and replace its record."""
        return self.get(collection, refresh=True, keep_going=keep_going)

    def invalidate(self, name: str) -> None:
        """Drop the record for ``name`` so the next get rescans."""
        if self.records.pop(name, None) is not None:
            logger.debug("Invalidated cache for '%s'", name)
            self.dirty = True

    remove = invalidate

    def insert(self, collection: Collection, path: Path, kind: RepoKind) -> bool:
        """Add one repository without rescanning, e.g. right after a clone.

        Only applies when the collection already has a record; without one the
        next get scans anyway. Returns True if the record was updated.
        """
        current = self.records.get(collection.name)
        if current is None:
            return False
        entry = RepositoryEntry(collection.name, Path(path), kind)
        self.records[collection.name] = current.with_entry(entry)
        self.dirty = True
        return True

    def rename(self, old: str, new: str) -> None:
        """Move the record of ``old`` to ``new``."""
        record = self.records.pop(old, None)
        stale = self.records.pop(new, None)
        if record is not None:
            self.records[new] = record.renamed(new)
        if record is not None or stale is not None:
            self.dirty = True

    def prune(self, live_names: Iterable[str]) -> list[str]:
        """Drop records whose collection no longer exists. Returns their names."""
        live = set(live_names)
        orphans = sorted(name for name in self.records if name not in live)
        for name in orphans:
            logger.debug("Pruning cache for unknown collection '%s'", name)
            del self.records[name]
        if orphans:
            self.dirty = True
        return orphans

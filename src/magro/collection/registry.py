"""Collection registry: named collection directories plus a default.

The registry owns the repository cache so every mutation here keeps the
cache records in step (rename moves a record, set_path and delete drop it).
Single-target operations validate everything before changing anything.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from magro.common.errors import (
    DuplicateName,
    NoDefaultCollection,
    UnknownCollection,
)
from magro.common.validate import normalize_base_dir, validate_collection_name
from magro.repo.cache import CollectionCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    """A named directory holding repositories."""

    name: str
    base_dir: Path

    @classmethod
    def create(cls, name: str, base_dir: str | Path) -> Collection:
        """Validate ``name`` and normalize ``base_dir`` into a Collection."""
        return cls(validate_collection_name(name), normalize_base_dir(base_dir))


class DeleteResult(NamedTuple):
    """Outcome of a batch delete: what went away and what was not found."""

    removed: list[Collection]
    failures: list[UnknownCollection]


@dataclass
class CollectionRegistry:
    """Registered collections keyed by name."""

    collections: dict[str, Collection] = field(default_factory=dict)
    default: str | None = None
    cache: CollectionCache = field(default_factory=CollectionCache)
    dirty: bool = False

    def __contains__(self, name: object) -> bool:
        return name in self.collections

    def __iter__(self) -> Iterator[Collection]:
        return iter(self.sorted())

    def __len__(self) -> int:
        return len(self.collections)

    def sorted(self) -> list[Collection]:
        """All collections in name order."""
        return [self.collections[name] for name in sorted(self.collections)]

    def get(self, name: str) -> Collection | None:
        """Collection named ``name``, or None."""
        return self.collections.get(name)

    def require(self, name: str) -> Collection:
        """Collection named ``name``; raises UnknownCollection."""
        collection = self.collections.get(name)
        if collection is None:
            raise UnknownCollection(name)
        return collection

    @property
    def default_collection(self) -> Collection | None:
        if self.default is None:
            return None
        return self.collections.get(self.default)

    def add(
        self, name: str, base_dir: str | Path, *, make_default: bool = False
    ) -> Collection:
        """Register a new collection. Its cache starts out unscanned."""
        collection = Collection.create(name, base_dir)
        if collection.name in self.collections:
            raise DuplicateName(collection.name)

        self.collections[collection.name] = collection
        self.cache.invalidate(collection.name)
        if make_default:
            self.default = collection.name
        self.dirty = True
        logger.debug("Added collection '%s' at %s", collection.name, collection.base_dir)
        return collection

    def delete(self, names: Iterable[str]) -> DeleteResult:
        """Remove collections and their cache records.

        Unknown names do not stop the batch: each one is reported in
        ``failures`` while the known ones are still removed.
        """
        removed: list[Collection] = []
        failures: list[UnknownCollection] = []
        for name in dict.fromkeys(names):
            collection = self.collections.pop(name, None)
            if collection is None:
                failures.append(UnknownCollection(name))
                continue
            self.cache.remove(name)
            if self.default == name:
                logger.info("Unset default collection '%s'", name)
                self.default = None
            removed.append(collection)
            logger.debug("Deleted collection '%s'", name)

        if removed:
            self.dirty = True
        return DeleteResult(removed, failures)

    def rename(self, old: str, new: str) -> Collection:
        """Rename a collection. Cache record and default follow it."""
        validate_collection_name(new)
        collection = self.require(old)
        if new == old:
            return collection
        if new in self.collections:
            raise DuplicateName(new)

        renamed = Collection(new, collection.base_dir)
        del self.collections[old]
        self.collections[new] = renamed
        self.cache.rename(old, new)
        if self.default == old:
            self.default = new
        self.dirty = True
        logger.debug("Renamed collection '%s' to '%s'", old, new)
        return renamed

    def set_path(self, name: str, base_dir: str | Path) -> Collection:
        """Point a collection at a new directory and drop its cached entries."""
        collection = self.require(name)
        updated = Collection(name, normalize_base_dir(base_dir))
        self.collections[name] = updated
        self.cache.invalidate(name)
        self.dirty = True
        logger.debug(
            "Moved collection '%s' from %s to %s",
            name,
            collection.base_dir,
            updated.base_dir,
        )
        return updated

    def set_default(self, name: str | None) -> None:
        """Set the default collection, or unset it with None."""
        if name is not None:
            self.require(name)
        if self.default != name:
            self.default = name
            self.dirty = True

    def resolve(self, names: Sequence[str] | None = None) -> list[Collection]:
        """Collections for the given names, in the order they were asked for.

        ``None`` means the default collection. An empty sequence means every
        collection. Any unknown name fails the whole call.
        """
        if names is None:
            default = self.default_collection
            if default is None:
                raise NoDefaultCollection()
            return [default]

        if not names:
            return self.sorted()

        wanted = list(dict.fromkeys(names))
        missing = [name for name in wanted if name not in self.collections]
        if missing:
            raise UnknownCollection(missing)
        return [self.collections[name] for name in wanted]

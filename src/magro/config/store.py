"""Load and save the collection registry and the repository cache.

Two JSON documents are kept: the registry (collections and the default name)
in the config directory, and the cache (repositories per collection) in the
cache directory. Both are written with sorted keys and one entry per line
group so unrelated entries never change between saves, and both are replaced
atomically: write a temp file next to the target with the old file's mode,
fsync it, os.replace, then fsync the directory.

There is no lock. Two concurrent writers each replace the whole file and the
last one wins.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

from magro.collection.registry import Collection, CollectionRegistry
from magro.common.errors import ConfigCorrupt, ConfigIoError, InvalidName
from magro.common.validate import normalize_base_dir, validate_collection_name
from magro.config.settings import Settings
from magro.repo.cache import CacheRecord, CollectionCache
from magro.repo.entry import RepoKind, RepositoryEntry
from magro.repo.scanner import DEFAULT_SCAN_DEPTH

logger = logging.getLogger(__name__)

_REGISTRY_KEYS = {"collections", "default-collection"}
_RECORD_KEYS = {"generation", "refreshed-at", "repos"}


def dump_json(data: Any) -> str:
    """Serialize in the stable on-disk format."""
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def _file_mode(path: Path) -> int:
    """Mode for a new version of ``path``: the old file's, else 0666 minus umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _fsync_dir(directory: Path) -> None:
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` so readers see old or new, never half.

    The new file keeps the permissions of the one it replaces (a first write
    gets the umask default, not the private mode of a temp file).
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = _file_mode(path)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            try:
                tmp.write(text)
                tmp.flush()
                os.chmod(tmp_path, mode)
                os.fsync(tmp.fileno())
            except BaseException:
                tmp.close()
                tmp_path.unlink(missing_ok=True)
                raise
        try:
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        _fsync_dir(path.parent)
    except OSError as e:
        raise ConfigIoError(path, e) from e


def _read_json(path: Path) -> Any | None:
    """Decoded contents of ``path``, or None if the file does not exist."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("%s does not exist, starting empty", path)
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigIoError(path, e) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigCorrupt(path, f"invalid JSON ({e})") from e


class ConfigStore:
    """Reads and writes the registry and cache documents."""

    def __init__(
        self,
        config_path: Path,
        cache_path: Path,
        *,
        scan_depth: int = DEFAULT_SCAN_DEPTH,
    ) -> None:
        self.config_path = config_path
        self.cache_path = cache_path
        self.scan_depth = scan_depth

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfigStore:
        return cls(
            settings.collections_path,
            settings.cache_path,
            scan_depth=settings.scan_depth,
        )

    # Loading

    def load(self) -> CollectionRegistry:
        """Load both documents. Missing files give an empty registry."""
        collections, default, stale_default = self._load_registry()
        registry = CollectionRegistry(collections=collections, default=default)
        registry.cache = self._load_cache(registry)

        orphans = registry.cache.prune(registry.collections)
        if orphans:
            logger.info("Dropped cache for removed collections: %s", ", ".join(orphans))

        # Dirty so the next save drops a dangling default from disk
        registry.dirty = stale_default
        registry.cache.dirty = bool(orphans)
        return registry

    def _load_registry(self) -> tuple[dict[str, Collection], str | None, bool]:
        path = self.config_path
        data = _read_json(path)
        if data is None:
            return {}, None, False
        if not isinstance(data, dict):
            raise ConfigCorrupt(path, "top level must be an object")
        unknown = set(data) - _REGISTRY_KEYS
        if unknown:
            raise ConfigCorrupt(path, f"unknown keys: {', '.join(sorted(unknown))}")

        items = data.get("collections", [])
        if not isinstance(items, list):
            raise ConfigCorrupt(path, "'collections' must be a list")

        collections: dict[str, Collection] = {}
        for item in items:
            collection = _parse_collection(path, item)
            if collection.name in collections:
                raise ConfigCorrupt(
                    path, f"collections with duplicate name {collection.name!r}"
                )
            collections[collection.name] = collection

        default = data.get("default-collection")
        if default is not None and not isinstance(default, str):
            raise ConfigCorrupt(path, "'default-collection' must be a string")
        if default is not None and default not in collections:
            logger.warning(
                "Default collection '%s' does not exist, treating it as unset",
                default,
            )
            return collections, None, True
        return collections, default, False

    def _load_cache(self, registry: CollectionRegistry) -> CollectionCache:
        path = self.cache_path
        cache = CollectionCache(max_depth=self.scan_depth)
        data = _read_json(path)
        if data is None:
            return cache
        if not isinstance(data, dict) or not isinstance(
            data.get("collections", {}), dict
        ):
            raise ConfigCorrupt(path, "expected an object with a 'collections' object")

        for name, raw in data.get("collections", {}).items():
            collection = registry.get(name)
            # Orphans are parsed only far enough to be pruned
            base_dir = collection.base_dir if collection else Path("/")
            cache.records[name] = _parse_record(path, name, base_dir, raw)
        return cache

    # Saving

    def save(self, registry: CollectionRegistry) -> None:
        """Write both documents."""
        self.save_config(registry)
        self.save_cache(registry)

    def save_changed(self, registry: CollectionRegistry) -> None:
        """Write only the documents that changed since load."""
        if registry.dirty:
            self.save_config(registry)
        if registry.cache.dirty:
            self.save_cache(registry)

    def save_config(self, registry: CollectionRegistry) -> None:
        data: dict[str, Any] = {
            "collections": [
                {"name": c.name, "path": str(c.base_dir)} for c in registry.sorted()
            ],
        }
        if registry.default is not None:
            data["default-collection"] = registry.default
        atomic_write_text(self.config_path, dump_json(data))
        registry.dirty = False
        logger.debug("Saved %s", self.config_path)

    def save_cache(self, registry: CollectionRegistry) -> None:
        cache = registry.cache
        records: dict[str, Any] = {}
        for name in cache:
            collection = registry.get(name)
            record = cache.record(name)
            if collection is None or record is None:
                continue
            records[name] = {
                "generation": record.generation,
                "refreshed-at": record.refreshed_at,
                "repos": [
                    {
                        "kind": entry.kind.value,
                        "path": entry.relative_to(collection.base_dir).as_posix(),
                    }
                    for entry in record.entries
                ],
            }
        atomic_write_text(self.cache_path, dump_json({"collections": records}))
        cache.dirty = False
        logger.debug("Saved %s", self.cache_path)


def _parse_collection(path: Path, item: Any) -> Collection:
    if not isinstance(item, dict):
        raise ConfigCorrupt(path, "each collection must be an object")
    name = item.get("name")
    base_dir = item.get("path")
    if not isinstance(name, str) or not isinstance(base_dir, str):
        raise ConfigCorrupt(path, "each collection needs string 'name' and 'path'")
    unknown = set(item) - {"name", "path"}
    if unknown:
        raise ConfigCorrupt(path, f"unknown keys in collection {name!r}")
    try:
        validate_collection_name(name)
    except InvalidName as e:
        raise ConfigCorrupt(path, str(e)) from e
    if not base_dir:
        raise ConfigCorrupt(path, f"empty path for collection {name!r}")
    return Collection(name, normalize_base_dir(base_dir))


def _parse_record(path: Path, name: str, base_dir: Path, raw: Any) -> CacheRecord:
    if not isinstance(raw, dict) or set(raw) - _RECORD_KEYS:
        raise ConfigCorrupt(path, f"malformed cache record for {name!r}")

    generation = raw.get("generation", 0)
    refreshed_at = raw.get("refreshed-at")
    repos = raw.get("repos", [])
    if (
        not isinstance(generation, int)
        or isinstance(generation, bool)
        or not (refreshed_at is None or isinstance(refreshed_at, str))
        or not isinstance(repos, list)
    ):
        raise ConfigCorrupt(path, f"malformed cache record for {name!r}")

    entries: list[RepositoryEntry] = []
    for repo in repos:
        if not isinstance(repo, dict) or not isinstance(repo.get("path"), str):
            raise ConfigCorrupt(path, f"malformed repository entry in {name!r}")
        try:
            kind = RepoKind(repo.get("kind"))
        except ValueError as e:
            raise ConfigCorrupt(
                path, f"unknown repository kind {repo.get('kind')!r} in {name!r}"
            ) from e
        entries.append(RepositoryEntry(name, base_dir.joinpath(repo["path"]), kind))

    return CacheRecord(
        entries=tuple(entries), generation=generation, refreshed_at=refreshed_at
    )

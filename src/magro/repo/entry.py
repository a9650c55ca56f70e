"""Repository kinds and discovered repository entries."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import NamedTuple


class RepoKind(enum.Enum):
    """Layout of a repository root. The value is the on-disk tag."""

    BARE = "bare"
    WORKDIR = "workdir"


class RepositoryEntry(NamedTuple):
    """A repository found under a collection's base directory."""

    collection: str | None
    path: Path
    kind: RepoKind

    def relative_to(self, base_dir: Path) -> Path:
        """Path relative to ``base_dir``, or the absolute path if outside it."""
        try:
            return self.path.relative_to(base_dir)
        except ValueError:
            return self.path

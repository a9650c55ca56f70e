"""Decide whether a directory is a repository root.

Only existence and file-type checks are made; nothing is parsed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from magro.repo.entry import RepoKind

logger = logging.getLogger(__name__)

# Name of the metadata directory (or gitfile) of a working tree
GIT_DIR_NAME = ".git"

# Top-level layout every bare repository has
_BARE_FILES = ("HEAD",)
_BARE_DIRS = ("objects", "refs")


def is_workdir_root(path: Path) -> bool:
    """True if ``path`` directly contains ``.git`` (directory or gitfile)."""
    marker = path / GIT_DIR_NAME
    # Linked worktrees and submodules use a ".git" file pointing elsewhere
    return marker.is_dir() or marker.is_file()


def is_bare_root(path: Path) -> bool:
    """True if ``path`` has the top-level layout of a bare repository."""
    return all((path / name).is_file() for name in _BARE_FILES) and all(
        (path / name).is_dir() for name in _BARE_DIRS
    )


def classify(path: Path) -> RepoKind | None:
    """Classify ``path`` as a working-tree root, a bare root, or neither.

    A directory matching both layouts is a working tree. Unreadable
    directories are logged and classified as None.
    """
    try:
        if is_workdir_root(path):
            return RepoKind.WORKDIR
        if is_bare_root(path):
            return RepoKind.BARE
    except OSError as e:
        logger.warning("Cannot probe %s: %s", path, e)
    return None

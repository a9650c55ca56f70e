"""Input validation for collection names and paths."""

from __future__ import annotations

import os
import re
from pathlib import Path

from magro.common.errors import InvalidName, ValidationError

_COLLECTION_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")


def validate_collection_name(name: str) -> str:
    """Validate a collection name.

    Names must be non-empty, use only ASCII letters, digits, hyphens and
    underscores, and must not start with a hyphen (it would read as an option).

    Returns the name or raises InvalidName.
    """
    if not name:
        raise InvalidName(name, "name cannot be empty")

    # Block path separators
    if "/" in name or "\\" in name:
        raise InvalidName(name, "path separators not allowed")

    if name.startswith("-"):
        raise InvalidName(name, "name cannot start with '-'")

    if not _COLLECTION_NAME_RE.fullmatch(name):
        bad = next(c for c in name if not (c.isascii() and (c.isalnum() or c in "-_")))
        raise InvalidName(name, f"invalid character {bad!r}")

    return name


def normalize_base_dir(path: str | Path) -> Path:
    """Turn user input into an absolute collection directory.

    ``~`` is expanded and relative paths are taken relative to the home
    directory. Symlinks are left as they are, so ``.`` and ``..`` are
    collapsed by text only: ``link/..`` becomes the directory holding
    ``link``, not the parent of its target.
    """
    if not str(path):
        raise ValidationError("Collection path cannot be empty")

    expanded = Path(path).expanduser()
    if not expanded.is_absolute():
        expanded = Path.home() / expanded
    # Lexical only, the filesystem is not read
    return Path(os.path.normpath(expanded))

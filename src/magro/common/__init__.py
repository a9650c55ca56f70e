"""Shared utilities for magro."""

from magro.common.errors import (
    CloneError,
    ConfigCorrupt,
    ConfigIoError,
    DuplicateName,
    InvalidName,
    MagroError,
    NoDefaultCollection,
    ScanIoError,
    UnknownCollection,
    ValidationError,
)
from magro.common.ui import (
    CYAN,
    DIM,
    GREEN,
    RED,
    YELLOW,
    fuzzy_select,
    shorten_home,
    style_dim,
    style_error,
    style_info,
    style_success,
    style_warn,
)
from magro.common.validate import normalize_base_dir, validate_collection_name

__all__ = [
    "CYAN",
    "DIM",
    "GREEN",
    "RED",
    "YELLOW",
    "CloneError",
    "ConfigCorrupt",
    "ConfigIoError",
    "DuplicateName",
    "InvalidName",
    "MagroError",
    "NoDefaultCollection",
    "ScanIoError",
    "UnknownCollection",
    "ValidationError",
    "fuzzy_select",
    "normalize_base_dir",
    "shorten_home",
    "style_dim",
    "style_error",
    "style_info",
    "style_success",
    "style_warn",
    "validate_collection_name",
]

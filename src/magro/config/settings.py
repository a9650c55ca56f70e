"""Runtime settings resolved from the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

from magro.repo.scanner import DEFAULT_SCAN_DEPTH

logger = logging.getLogger(__name__)

APP_NAME = "magro"

CONFIG_DIR_ENV = "MAGRO_CONFIG_DIR"
CACHE_DIR_ENV = "MAGRO_CACHE_DIR"
SCAN_DEPTH_ENV = "MAGRO_SCAN_DEPTH"
LOG_LEVEL_ENV = "MAGRO_LOG_LEVEL"

COLLECTIONS_FILE = "collections.json"
CACHE_FILE = "cache.json"


@dataclass(frozen=True)
class Settings:
    config_dir: Path
    cache_dir: Path
    scan_depth: int = DEFAULT_SCAN_DEPTH
    log_level: str | None = None

    @property
    def collections_path(self) -> Path:
        return self.config_dir / COLLECTIONS_FILE

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (default: os.environ)."""
        env = os.environ if environ is None else environ

        config_dir = env.get(CONFIG_DIR_ENV) or user_config_dir(APP_NAME)
        cache_dir = env.get(CACHE_DIR_ENV) or user_cache_dir(APP_NAME)

        return cls(
            config_dir=Path(config_dir).expanduser(),
            cache_dir=Path(cache_dir).expanduser(),
            scan_depth=_parse_depth(env.get(SCAN_DEPTH_ENV)),
            log_level=env.get(LOG_LEVEL_ENV) or None,
        )


def _parse_depth(raw: str | None) -> int:
    if not raw:
        return DEFAULT_SCAN_DEPTH
    try:
        depth = int(raw)
    except ValueError:
        depth = -1
    if depth < 1:
        logger.warning(
            "Ignoring %s=%r (expected a positive integer), using %d",
            SCAN_DEPTH_ENV,
            raw,
            DEFAULT_SCAN_DEPTH,
        )
        return DEFAULT_SCAN_DEPTH
    return depth

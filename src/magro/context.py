"""Per-invocation state shared by the CLI commands."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NoReturn

import click

from magro.collection.registry import CollectionRegistry
from magro.common import MagroError, style_error
from magro.config.settings import Settings
from magro.config.store import ConfigStore

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class AppContext:
    """Settings and config store for one command run."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.store = ConfigStore.from_settings(settings)

    def load(self) -> CollectionRegistry:
        return self.store.load()

    def save(self, registry: CollectionRegistry) -> None:
        self.store.save_changed(registry)


pass_app = click.make_pass_decorator(AppContext)


def configure_logging(verbosity: int, level_name: str | None = None) -> None:
    """Send log records to stderr. -v is INFO, -vv is DEBUG."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def fail(error: MagroError) -> NoReturn:
    """Print ``error`` and exit with its code."""
    click.echo(style_error(str(error)), err=True)
    sys.exit(error.exit_code)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn MagroError into a styled message and the matching exit code."""
    try:
        yield
    except MagroError as e:
        fail(e)

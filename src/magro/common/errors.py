"""Error taxonomy shared by the registry, cache, scanner and config store.

Every error carries an ``exit_code`` that the CLI uses when it gives up.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

# Exit codes (click itself uses 2 for usage errors)
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CONFIG = 3
EXIT_SCAN = 4
EXIT_CLONE = 5


class MagroError(Exception):
    """Base class for all magro errors."""

    exit_code = EXIT_FAILURE


class ValidationError(MagroError):
    """Raised when input validation fails."""

    exit_code = EXIT_USAGE


class InvalidName(ValidationError):
    """Collection name is empty or contains forbidden characters."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid collection name {name!r}: {reason}")
        self.name = name
        self.reason = reason


class DuplicateName(MagroError):
    """A collection with this name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Collection '{name}' already exists")
        self.name = name


class UnknownCollection(MagroError):
    """One or more collection names are not registered."""

    def __init__(self, names: str | Iterable[str]) -> None:
        self.names = [names] if isinstance(names, str) else list(names)
        if len(self.names) == 1:
            message = f"Collection '{self.names[0]}' does not exist"
        else:
            joined = ", ".join(f"'{n}'" for n in self.names)
            message = f"Collections {joined} do not exist"
        super().__init__(message)


class NoDefaultCollection(MagroError):
    """No collection was named and no default collection is set."""

    def __init__(self) -> None:
        super().__init__(
            "No collection specified and no default collection is set "
            "(use 'magro collection set-default NAME')"
        )


class ScanIoError(MagroError):
    """A directory could not be read during a repository scan."""

    exit_code = EXIT_SCAN

    def __init__(self, path: Path, cause: BaseException | str) -> None:
        super().__init__(f"Cannot scan {path}: {cause}")
        self.path = path
        self.cause = cause


class ConfigIoError(MagroError):
    """Reading or writing a config document failed."""

    exit_code = EXIT_CONFIG

    def __init__(self, path: Path, cause: BaseException | str) -> None:
        super().__init__(f"I/O error on {path}: {cause}")
        self.path = path
        self.cause = cause


class ConfigCorrupt(MagroError):
    """A config document exists but cannot be decoded."""

    exit_code = EXIT_CONFIG

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Corrupt config file {path}: {reason} (fix or remove it by hand)"
        )
        self.path = path
        self.reason = reason


class CloneError(MagroError):
    """The external clone command failed."""

    exit_code = EXIT_CLONE

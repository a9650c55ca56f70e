"""Git operations: cloning and clone destination layout.

magro never speaks the git protocol itself. Cloning is delegated to the
``git`` binary, and the only thing we derive locally is where a clone should
land inside a collection.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path, PurePosixPath

from magro.common.errors import CloneError

logger = logging.getLogger(__name__)

GIT = "git"


def clone_repository(source: str, destination: Path, *, bare: bool = False) -> None:
    """Clone ``source`` into ``destination``.

    The destination may already exist as an empty directory (git accepts
    that); anything else at that path is an error. Raises CloneError.
    """
    logger.debug("Cloning %r into %s (bare=%s)", source, destination, bare)

    if destination.exists() and not destination.is_dir():
        raise CloneError(f"Destination {destination} exists and is not a directory")
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CloneError(f"Cannot create {destination.parent}: {e}") from e

    args = ["clone"]
    if bare:
        args.append("--bare")
    args.extend(["--", source, str(destination)])

    try:
        result = subprocess.run(
            [GIT, *args],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise CloneError("git executable not found") from e

    if result.returncode != 0:
        detail = result.stderr.strip().splitlines()
        reason = detail[-1] if detail else f"git exited with {result.returncode}"
        raise CloneError(f"Failed to clone {source!r}: {reason}")

    logger.debug("Cloned %r into %s", source, destination)


def guess_vcs(uri: str) -> str | None:
    """Guess the VCS for a URI. Returns "git" or None if unsure."""
    if uri.endswith(".git") or uri.startswith("git://"):
        return "git"

    scheme_end = uri.find("://")
    if scheme_end == -1:
        return None
    authority_start = scheme_end + 3
    first_slash = uri.find("/", authority_start)
    if first_slash == -1:
        return None

    # authority: [user[:pass]@]hostname[:port]
    authority = uri[authority_start:first_slash]
    host = authority.rpartition("@")[2].partition(":")[0]
    logger.debug("Hostname of %r is %r", uri, host)
    if host.startswith("git"):
        return "git"
    return None


def git_dest_relpath(uri: str, *, bare: bool = False) -> PurePosixPath:
    """Relative clone destination for a remote git URI.

    ``https://github.com/me/repo.git`` becomes ``github.com/me/repo`` and the
    scp-like ``git@github.com:me/repo.git`` becomes the same. The ``git`` user
    is dropped since it carries no information. Bare clones keep the ``.git``
    suffix.

    Raises ValueError for local paths, which have no host to lay out under.
    """
    stripped = uri if bare else uri.removesuffix(".git")

    colon = stripped.find(":")
    # git reads "a/b:c" as a local path: scp syntax needs no slash before ':'
    if colon == -1 or "/" in stripped[:colon]:
        raise ValueError(f"Cannot derive a destination for local repository {uri!r}")

    rest = stripped[colon + 1 :]
    if not rest.startswith("//"):
        # scp-like: [user@]host:path
        host = stripped[:colon].removeprefix("git@")
        path = rest.lstrip("/")
    else:
        # scheme://[user@]host[:port]/path
        host_and_path = rest[2:].removeprefix("git@")
        host, _, path = host_and_path.partition("/")
        path = path.lstrip("/")

    relpath = PurePosixPath(host, path)
    if not host or not path or ".." in relpath.parts:
        raise ValueError(f"Cannot derive a destination for {uri!r}")
    return relpath

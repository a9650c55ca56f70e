"""Repository commands: refresh, list and clone."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from magro.collection.registry import Collection, CollectionRegistry
from magro.common import (
    MagroError,
    UnknownCollection,
    fuzzy_select,
    shorten_home,
    style_dim,
    style_error,
    style_info,
    style_success,
    style_warn,
)
from magro.common.errors import EXIT_FAILURE, EXIT_SCAN, EXIT_USAGE
from magro.common.git import clone_repository, git_dest_relpath, guess_vcs
from magro.context import AppContext, handle_errors, pass_app
from magro.repo.entry import RepoKind, RepositoryEntry

PATH_BASES = ("root", "collection", "home")


def parse_collection_names(values: tuple[str, ...]) -> list[str]:
    """Flatten repeated and comma-separated ``-c`` values."""
    names: list[str] = []
    for value in values:
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


def format_path(entry: RepositoryEntry, collection: Collection, base: str) -> str:
    """Render a repository path relative to the requested base.

    Falls back to the absolute path when relativizing is impossible.
    """
    if base == "collection":
        return str(entry.relative_to(collection.base_dir))
    if base == "home":
        try:
            return str(entry.path.relative_to(Path.home()))
        except ValueError:
            return str(entry.path)
    return str(entry.path)


def format_repo_options(entries: list[tuple[Collection, RepositoryEntry]]) -> list[str]:
    """Format repos for picker: collection/name + path."""
    if not entries:
        return []
    labels = [f"{c.name}/{e.relative_to(c.base_dir)}" for c, e in entries]
    width = max(len(label) for label in labels)
    return [
        f"{label.ljust(width)}  {shorten_home(e.path)}"
        for label, (_, e) in zip(labels, entries)
    ]


def _resolve_keep_going(
    registry: CollectionRegistry, names: list[str]
) -> tuple[list[Collection], list[UnknownCollection]]:
    """Like registry.resolve, but collect unknown names instead of failing."""
    if not names:
        return registry.resolve([]), []
    found = [n for n in dict.fromkeys(names) if n in registry]
    missing = [UnknownCollection(n) for n in dict.fromkeys(names) if n not in registry]
    return registry.resolve(found) if found else [], missing


@click.command("refresh")
@click.option(
    "--collection",
    "-c",
    "collections",
    multiple=True,
    help="Collection(s) to refresh, comma-separated or repeated (default: all)",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Keep scanning past errors and save what was found (still exits non-zero)",
)
@click.option("--verbose", "-v", is_flag=True, help="Print each repository found")
@pass_app
def refresh_cmd(
    app: AppContext, collections: tuple[str, ...], *, keep_going: bool, verbose: bool
) -> None:
    """Rescan collection directories and rebuild the repository cache.

    Needed after repositories were added, moved or removed by hand.

    EXAMPLES:
        magro refresh                 # All collections
        magro refresh -c work,oss     # Selected collections
        magro refresh --keep-going    # Save partial results on errors
    """
    names = parse_collection_names(collections)
    failures: list[MagroError] = []

    with handle_errors():
        registry = app.load()
        if keep_going:
            targets, unknown = _resolve_keep_going(registry, names)
            failures.extend(unknown)
        else:
            targets = registry.resolve(names)

        for collection in targets:
            click.echo(style_info(f"Refreshing '{collection.name}'..."), err=True)
            lookup = registry.cache.refresh(collection, keep_going=keep_going)
            failures.extend(lookup.errors)
            if verbose:
                for entry in lookup.entries:
                    click.echo(f"Found {entry.kind.value} repository {entry.path}")
            click.echo(
                style_success(
                    f"{collection.name}: {len(lookup.entries)} repositories"
                ),
                err=True,
            )

        app.save(registry)

    if failures:
        for failure in failures:
            click.echo(style_error(str(failure)), err=True)
        sys.exit(EXIT_SCAN)


@click.command("list")
@click.option(
    "--collection",
    "-c",
    "collections",
    multiple=True,
    help="Only these collection(s), comma-separated or repeated (default: all)",
)
@click.option(
    "--kind",
    type=click.Choice([k.value for k in RepoKind]),
    multiple=True,
    help="Only repositories of this kind",
)
@click.option("--null-data", "-z", is_flag=True, help="Separate lines by NUL")
@click.option(
    "--path-base",
    type=click.Choice(PATH_BASES),
    default="root",
    show_default=True,
    help="Print paths relative to this base",
)
@click.option("--refresh", is_flag=True, help="Rescan before listing")
@click.option("--keep-going", is_flag=True, help="Do not stop on scan errors")
@click.option("--pick", is_flag=True, help="Pick one repository interactively")
@pass_app
def list_cmd(
    app: AppContext,
    collections: tuple[str, ...],
    kind: tuple[str, ...],
    path_base: str,
    *,
    null_data: bool,
    refresh: bool,
    keep_going: bool,
    pick: bool,
) -> None:
    """List repositories from the cache.

    Collections that were never scanned are scanned on first use.

    EXAMPLES:
        magro list                       # Everything
        magro ls -c work --kind workdir  # Working trees in 'work'
        magro ls -z | xargs -0 ...       # NUL-separated for scripts
        magro ls --pick                  # Fuzzy-pick one and print it
    """
    names = parse_collection_names(collections)
    kinds = {RepoKind(k) for k in kind}
    scan_errors: list[MagroError] = []
    found: list[tuple[Collection, RepositoryEntry]] = []

    with handle_errors():
        registry = app.load()
        for collection in registry.resolve(names):
            lookup = registry.cache.get(
                collection, refresh=refresh, keep_going=keep_going
            )
            scan_errors.extend(lookup.errors)
            found.extend(
                (collection, entry)
                for entry in lookup.entries
                if not kinds or entry.kind in kinds
            )
        app.save(registry)

    for error in scan_errors:
        click.echo(style_warn(str(error)), err=True)

    if pick:
        if not found:
            click.echo(style_error("No repositories found"), err=True)
            sys.exit(EXIT_FAILURE)
        index = fuzzy_select(format_repo_options(found), "Select repository")
        if index is None:
            click.echo(style_dim("Cancelled."), err=True)
            return
        collection, entry = found[index]
        click.echo(format_path(entry, collection, path_base))
        return

    end = "\0" if null_data else "\n"
    for collection, entry in found:
        click.echo(format_path(entry, collection, path_base) + end, nl=False)

    if scan_errors:
        sys.exit(EXIT_SCAN)


@click.command("clone")
@click.argument("uri")
@click.option("--collection", "-c", help="Target collection (default: the default one)")
@click.option("--bare", is_flag=True, help="Make a bare clone")
@pass_app
def clone_cmd(app: AppContext, uri: str, collection: str | None, *, bare: bool) -> None:
    """Clone a repository into a collection.

    The destination mirrors the URI: host/path/to/repo under the
    collection directory.

    EXAMPLES:
        magro clone https://github.com/owner/repo.git
        magro clone git@github.com:owner/repo.git -c oss
        magro clone https://example.com/mirror.git --bare
    """
    if guess_vcs(uri) is None:
        click.echo(
            style_warn(f"Cannot tell the VCS of {uri!r}, assuming git"), err=True
        )
    try:
        relpath = git_dest_relpath(uri, bare=bare)
    except ValueError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(EXIT_USAGE)

    with handle_errors():
        registry = app.load()
        target = registry.resolve([collection] if collection else None)[0]
        destination = target.base_dir / relpath
        if destination.exists() and (
            not destination.is_dir() or any(destination.iterdir())
        ):
            click.echo(
                style_error(f"Destination {destination} already exists"), err=True
            )
            sys.exit(EXIT_FAILURE)

        click.echo(style_info(f"Cloning {uri} into {shorten_home(destination)}..."))
        clone_repository(uri, destination, bare=bare)

        kind = RepoKind.BARE if bare else RepoKind.WORKDIR
        registry.cache.insert(target, destination, kind)
        app.save(registry)

    click.echo(style_success(f"Cloned to {destination}"))


"""Collection management commands."""

from __future__ import annotations

import json
import sys

import click

from magro.common import (
    CYAN,
    DIM,
    GREEN,
    shorten_home,
    style_dim,
    style_error,
    style_info,
    style_success,
)
from magro.common.errors import EXIT_FAILURE
from magro.context import AppContext, handle_errors, pass_app


@click.group()
def cli() -> None:
    """Manage collections: named directories that hold repositories.

    EXAMPLES:
        magro collection add work ~/work --default
        magro collection list
        magro collection rename work job
        magro collection set-path job ~/src/job
        magro collection del job

    ALIASES:
        magro collection ls = magro collection list
    """


@cli.command("add")
@click.argument("name")
@click.argument("path", type=click.Path(file_okay=False))
@click.option("--default", "make_default", is_flag=True, help="Also make it the default")
@pass_app
def add_cmd(app: AppContext, name: str, path: str, *, make_default: bool) -> None:
    """Register a new collection.

    Relative paths are taken relative to the home directory. The directory
    does not have to exist yet.

    EXAMPLES:
        magro collection add work ~/work
        magro collection add oss src/oss --default
    """
    with handle_errors():
        registry = app.load()
        collection = registry.add(name, path, make_default=make_default)
        app.save(registry)

    click.echo(
        style_success(
            f"Added collection '{collection.name}' at {shorten_home(collection.base_dir)}"
        )
    )
    if make_default:
        click.echo(style_dim(f"  '{collection.name}' is now the default collection"))


@cli.command("del")
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--allow-remove-nothing",
    is_flag=True,
    help="Do not fail for names that are not registered",
)
@pass_app
def del_cmd(app: AppContext, names: tuple[str, ...], *, allow_remove_nothing: bool) -> None:
    """Unregister collections.

    Only magro's records are removed, never files on disk. Every unknown
    name is reported; the known ones are removed regardless.

    EXAMPLES:
        magro collection del old
        magro collection del a b c --allow-remove-nothing
    """
    with handle_errors():
        registry = app.load()
        result = registry.delete(names)
        app.save(registry)

    for collection in result.removed:
        click.echo(style_success(f"Unregistered collection '{collection.name}'"))
    if not result.failures:
        return
    for failure in result.failures:
        if allow_remove_nothing:
            click.echo(style_dim(str(failure)))
        else:
            click.echo(style_error(str(failure)), err=True)
    if not allow_remove_nothing:
        sys.exit(EXIT_FAILURE)


@cli.command("rename")
@click.argument("old")
@click.argument("new")
@pass_app
def rename_cmd(app: AppContext, old: str, new: str) -> None:
    """Rename a collection. Cached repositories and the default follow it.

    EXAMPLES:
        magro collection rename work job
    """
    with handle_errors():
        registry = app.load()
        registry.rename(old, new)
        app.save(registry)
    click.echo(style_success(f"Renamed collection '{old}' → '{new}'"))


@cli.command("set-path")
@click.argument("name")
@click.argument("path", type=click.Path(file_okay=False))
@pass_app
def set_path_cmd(app: AppContext, name: str, path: str) -> None:
    """Point a collection at another directory.

    Nothing is moved on disk. The collection's cached repositories are
    discarded and rescanned on next use.

    EXAMPLES:
        magro collection set-path work ~/src/work
    """
    with handle_errors():
        registry = app.load()
        collection = registry.set_path(name, path)
        app.save(registry)
    click.echo(
        style_success(
            f"Collection '{name}' now at {shorten_home(collection.base_dir)}"
        )
    )


@cli.command("set-default")
@click.argument("name", required=False)
@click.option("--unset", is_flag=True, help="Clear the default collection")
@pass_app
def set_default_cmd(app: AppContext, name: str | None, *, unset: bool) -> None:
    """Set or clear the default collection.

    Without NAME, prints the current default.

    EXAMPLES:
        magro collection set-default work
        magro collection set-default --unset
        magro collection set-default
    """
    if name and unset:
        raise click.UsageError("Give either NAME or --unset, not both")

    with handle_errors():
        registry = app.load()
        if not name and not unset:
            if registry.default is None:
                click.echo(style_dim("No default collection"))
            else:
                click.echo(registry.default)
            return
        registry.set_default(None if unset else name)
        app.save(registry)

    if unset:
        click.echo(style_info("Default collection cleared"))
    else:
        click.echo(style_success(f"Default collection is now '{name}'"))


@cli.command("list")
@click.option("--json", "-j", "as_json", is_flag=True, help="Output as JSON")
@pass_app
def list_cmd(app: AppContext, *, as_json: bool) -> None:
    """List registered collections.

    EXAMPLES:
        magro collection list
        magro collection ls --json
    """
    with handle_errors():
        registry = app.load()

    collections = registry.sorted()
    if as_json:
        data = [
            {
                "name": c.name,
                "path": str(c.base_dir),
                "default": c.name == registry.default,
                "cached": c.name in registry.cache,
            }
            for c in collections
        ]
        click.echo(json.dumps(data, indent=2))
        return

    if not collections:
        click.echo(style_dim("No collections (add one with 'magro collection add')"))
        return

    max_name = max(len(c.name) for c in collections)
    for c in collections:
        marker = click.style("*", fg=GREEN) if c.name == registry.default else " "
        name_styled = click.style(c.name.ljust(max_name), fg=CYAN, bold=True)
        path_styled = click.style(shorten_home(c.base_dir), fg=DIM)
        click.echo(f"{marker} {name_styled} {path_styled}")


# Command aliases
cli.add_command(list_cmd, name="ls")

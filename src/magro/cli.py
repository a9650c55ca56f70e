"""Unified CLI for magro: collections of git repositories."""

from __future__ import annotations

import click

from magro.collection.cli import cli as collection_cli
from magro.config.settings import Settings
from magro.context import AppContext, configure_logging
from magro.repo.cli import clone_cmd, list_cmd, refresh_cmd


@click.group()
@click.version_option(package_name="magro")
@click.option(
    "--verbose",
    "-v",
    "verbosity",
    count=True,
    help="Log more (-v info, -vv debug); MAGRO_LOG_LEVEL also works",
)
@click.pass_context
def cli(ctx: click.Context, verbosity: int) -> None:
    """Manage git repositories grouped into collections.

    A collection is a named directory. magro remembers where the
    repositories inside each collection are, so listing them is instant;
    run 'magro refresh' after moving repositories around by hand.

    COMMANDS:
        collection   Add, remove, rename and configure collections
        list         List repositories (from cache)
        refresh      Rescan collections and rebuild the cache
        clone        Clone a repository into a collection

    EXAMPLES:
        magro collection add work ~/work --default
        magro clone https://github.com/owner/repo.git
        magro list -c work
        magro refresh --keep-going

    FILES:
        $MAGRO_CONFIG_DIR/collections.json   Collections and default
        $MAGRO_CACHE_DIR/cache.json          Repository cache
    """
    settings = Settings.from_env()
    configure_logging(verbosity, settings.log_level)
    ctx.obj = AppContext(settings)


cli.add_command(collection_cli, name="collection")
cli.add_command(list_cmd, name="list")
cli.add_command(refresh_cmd, name="refresh")
cli.add_command(clone_cmd, name="clone")

# Command aliases
cli.add_command(list_cmd, name="ls")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

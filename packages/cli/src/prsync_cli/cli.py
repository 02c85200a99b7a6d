"""CLI entry point for prsync.

Commands:
  reconcile   sync file review comments for one pull request
  records     display the stored per-file comment records of a repository
  dispatch    replay a saved webhook delivery through the dispatcher
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prsync_cli.commands.dispatch import dispatch_cmd
from prsync_cli.commands.reconcile import reconcile_cmd
from prsync_cli.commands.records import records_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .prsync.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default .prsync.db)
      store: memory → MemoryStore (nothing survives the process)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from prsync_store.memory import MemoryStore

        return MemoryStore()

    if store_type == "sqlite":
        from prsync_store.sqlite import SQLiteStore

        db_path = config.get("store_path", ".prsync.db")
        return SQLiteStore(db_path=db_path)

    raise click.UsageError(f"Unknown store: {store_type!r}. Choose 'sqlite' or 'memory'.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prsync"),
    prog_name="prsync",
)
@click.option(
    "--config",
    "config_path",
    default=".prsync.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRSYNC_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every decision to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Keep one AI review comment per changed file on your pull requests."""
    from prsync_core.config import load_config
    from prsync_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(reconcile_cmd)
main.add_command(records_cmd)
main.add_command(dispatch_cmd)

"""records command: display stored per-file comment records."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("records")
@click.option("--repo", required=True, help="Repository (owner/name).")
@click.option("--limit", default=50, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def records_cmd(ctx, repo: str, limit: int):
    """Show which files of a repository have a tracked review comment.

    Records are never deleted, so files removed from the repository still
    appear with their last known blob hash.
    """
    store = ctx.obj["store"]
    config = ctx.obj["config"]

    if repo.count("/") != 1:
        raise click.UsageError("--repo must be in owner/name format.")
    owner, name = repo.split("/")

    records = store.list_records(config.get("provider", "github"), owner, name)
    if not records:
        console.print("[yellow]No records found.[/yellow]")
        return

    table = Table(title=f"Tracked files in {repo}", show_header=True, header_style="bold cyan")
    table.add_column("File")
    table.add_column("SHA", width=8)
    table.add_column("Comment", width=12)
    table.add_column("Updated At", width=20)

    for r in records[:limit]:
        table.add_row(
            r.identity.file_path,
            r.content_hash[:7],
            r.comment_id,
            r.updated_at[:19].replace("T", " "),
        )

    console.print(table)
    if len(records) > limit:
        console.print(f"[dim]{len(records) - limit} more record(s) not shown.[/dim]")

"""reconcile command: sync file review comments for one pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prsync_core.errors import ProviderError
from prsync_core.hosts.factory import build_host_client
from prsync_core.models import PullRequestRef
from prsync_core.reconciler import FileOutcome, ReconcileSummary, run_reconcile

console = Console()

_OUTCOME_STYLE = {
    FileOutcome.CREATED: "green",
    FileOutcome.UPDATED: "green",
    FileOutcome.RECREATED: "yellow",
    FileOutcome.UNCHANGED: "dim",
    FileOutcome.FILTERED: "dim",
    FileOutcome.REVIEW_FAILED: "red",
    FileOutcome.FAILED: "red",
}


def print_summary(summary: ReconcileSummary) -> None:
    if not summary.outcomes:
        console.print("[yellow]No files in this pull request.[/yellow]")
        return

    table = Table(title=f"Reconciled {summary.pull_request}", show_header=True, header_style="bold cyan")
    table.add_column("File")
    table.add_column("Outcome", width=14)
    for path, outcome in summary.outcomes.items():
        style = _OUTCOME_STYLE.get(outcome, "white")
        table.add_row(path, f"[{style}]{outcome.value}[/{style}]")
    console.print(table)
    console.print(f"{summary.remote_writes} remote write(s), {summary.failures} failure(s).")


def check_review_source(config: dict) -> None:
    source = config.get("review_source")
    if source == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if source == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")


@click.command("reconcile")
@click.option("--repo", required=True, help="Repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def reconcile_cmd(ctx, repo: str, pr_number: int):
    """Post or update one review comment per changed file of a pull request.

    Files whose content is unchanged since the last run are left alone.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      AI_WORKFLOW_URL      Required when review_source is workflow
      ANTHROPIC_API_KEY    Required when review_source is anthropic
      OPENAI_API_KEY       Required when review_source is openai
    """
    config = ctx.obj["config"]
    store = ctx.obj["store"]

    if repo.count("/") != 1:
        raise click.UsageError("--repo must be in owner/name format.")
    owner, name = repo.split("/")

    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    check_review_source(config)

    try:
        client = build_host_client(config.get("provider", "github"), owner, name, token)
    except ValueError as e:
        raise click.UsageError(str(e))

    try:
        head_sha = client.get_head_sha(pr_number)
        pull_request = PullRequestRef(
            provider=client.provider,
            owner=owner,
            repo=name,
            number=pr_number,
            head_sha=head_sha,
        )
        summary = run_reconcile(config, store, pull_request, client)
    except ProviderError as e:
        raise click.ClickException(str(e))

    print_summary(summary)

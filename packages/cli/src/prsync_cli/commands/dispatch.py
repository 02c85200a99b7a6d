"""dispatch command: replay a saved webhook delivery."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from prsync_cli.auth import build_token_provider
from prsync_cli.commands.reconcile import check_review_source, print_summary
from prsync_core.errors import ProviderError, WebhookError
from prsync_core.webhooks.dispatcher import WebhookDispatcher, make_reconcile_handler

console = Console()


@click.command("dispatch")
@click.argument("payload", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--event", "event_name", default="pull_request", show_default=True, help="X-GitHub-Event value.")
@click.option("--signature", default=None, help="X-Hub-Signature-256 value of the delivery.")
@click.option("--delivery", "delivery_id", default=None, help="X-GitHub-Delivery value, for logs.")
@click.option("--no-verify", is_flag=True, help="Skip signature verification even if a secret is configured.")
@click.pass_context
def dispatch_cmd(ctx, payload: Path, event_name: str, signature: str | None, delivery_id: str | None, no_verify: bool):
    """Run a saved webhook delivery body through the event dispatcher.

    Useful for re-processing a delivery that failed, exactly as the webhook
    endpoint would have. The signature is checked against
    GITHUB_WEBHOOK_SECRET unless --no-verify is given.
    """
    config = ctx.obj["config"]
    store = ctx.obj["store"]
    check_review_source(config)

    secret = None if no_verify else (config.get("webhook_secret") or None)
    dispatcher = WebhookDispatcher(
        make_reconcile_handler(config, store, build_token_provider(config)),
        secret=secret,
    )

    try:
        result = dispatcher.dispatch(event_name, payload.read_bytes(), signature=signature, delivery_id=delivery_id)
    except (WebhookError, ProviderError, ValueError) as e:
        raise click.ClickException(str(e))

    if result.summary is None:
        console.print(f"[yellow]Ignored: {result.reason}[/yellow]")
        return
    print_summary(result.summary)

"""Webhook dispatch: authenticate, classify, validate, then reconcile.

The dispatcher is transport-agnostic. Whatever receives the HTTP request
hands over the event name, raw body and signature header; the CLI `dispatch`
command does the same for a saved delivery.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from pydantic import ValidationError

from prsync_core.errors import InvalidPayloadError, SignatureError
from prsync_core.hosts.factory import build_host_client
from prsync_core.reconciler import ReconcileSummary, run_reconcile
from prsync_core.webhooks.events import PullRequestEvent

if TYPE_CHECKING:
    from prsync_store.base import BaseStore

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENT = "pull_request"
RECONCILED_ACTIONS = ("opened", "synchronize")

ReconcileHandler = Callable[[PullRequestEvent], ReconcileSummary]
TokenProvider = Callable[[Optional[int]], Optional[str]]


@dataclass
class DispatchResult:
    status: str  # "processed" | "ignored"
    reason: str = ""
    summary: ReconcileSummary | None = None


def verify_signature(secret: str, body: bytes, signature: str | None) -> None:
    """Check an X-Hub-Signature-256 header against the raw body.

    Raises SignatureError when the header is missing or does not match.
    """
    if not signature:
        raise SignatureError("Missing X-Hub-Signature-256 header")
    digest = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(digest, signature):
        raise SignatureError("Invalid signature")


class WebhookDispatcher:
    """Routes deliveries to a reconcile handler.

    When secret is None signatures are not checked; only do that for
    trusted replays.
    """

    def __init__(self, handler: ReconcileHandler, secret: str | None = None):
        self._handler = handler
        self._secret = secret

    def dispatch(
        self,
        event_name: str,
        body: bytes,
        signature: str | None = None,
        delivery_id: str | None = None,
    ) -> DispatchResult:
        if self._secret is not None:
            verify_signature(self._secret, body, signature)

        logger.info("Received %s event (delivery %s)", event_name, delivery_id or "-")
        if event_name != PULL_REQUEST_EVENT:
            return DispatchResult(status="ignored", reason=f"event is '{event_name}', not '{PULL_REQUEST_EVENT}'")

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidPayloadError(f"Body is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise InvalidPayloadError(f"Body is not a JSON object: {type(payload).__name__}")
        action = payload.get("action")
        if not isinstance(action, str) or not action:
            raise InvalidPayloadError("pull_request payload has no action")
        if action not in RECONCILED_ACTIONS:
            if action == "closed":
                logger.info("PR closed. No action taken.")
            else:
                logger.info("Unhandled pull_request action: %s", action)
            return DispatchResult(status="ignored", reason=f"action is '{action}'")

        try:
            event = PullRequestEvent.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayloadError(f"Malformed pull_request payload: {e}") from e

        summary = self._handler(event)
        logger.info("Processed pull_request event for %s", event.repository.full_name)
        return DispatchResult(status="processed", reason=action, summary=summary)


def make_reconcile_handler(config: dict, store: BaseStore, token_provider: TokenProvider) -> ReconcileHandler:
    """Build the handler that turns a validated event into one reconciliation."""
    provider = config.get("provider", "github")

    def handle(event: PullRequestEvent) -> ReconcileSummary:
        token = token_provider(event.installation_id)
        client = build_host_client(provider, event.repository.owner.login, event.repository.name, token)
        return run_reconcile(config, store, event.to_ref(provider), client)

    return handle

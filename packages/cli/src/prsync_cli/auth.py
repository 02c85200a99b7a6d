"""GitHub credential resolution.

Two kinds of credentials:
- A plain token for manual runs. Resolution order (stops at first success):
    1. GITHUB_TOKEN environment variable (CI / explicit override)
    2. `gh auth token` (GitHub CLI session, works after `gh auth login`)
- GitHub App credentials (GITHUB_APP_ID + GITHUB_PRIVATE_KEY) for webhook
  deliveries, which carry an installation id and get a per-installation token.
"""

from __future__ import annotations

import logging
import os
import subprocess

from prsync_core.hosts.auth import InstallationTokenCache
from prsync_core.webhooks.dispatcher import TokenProvider

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises; callers should check for None and emit a UsageError.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out
        pass

    return None


def build_token_provider(config: dict) -> TokenProvider:
    """Return a callable mapping an installation id to an access token.

    Deliveries with an installation id use App credentials when configured;
    everything else falls back to the plain token.
    """
    static_token = config.get("github_token")
    app_id = config.get("github_app_id")
    private_key = config.get("github_private_key")

    if not (app_id and private_key):
        return lambda installation_id: static_token

    cache = InstallationTokenCache(app_id, private_key)

    def provide(installation_id: int | None) -> str | None:
        if installation_id is None:
            return static_token
        return cache.get_token(installation_id)

    return provide

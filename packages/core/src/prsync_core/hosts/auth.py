"""GitHub App installation token cache.

Installation tokens live for an hour. Minting one per webhook delivery is
wasteful and rate limited, so tokens are cached per installation and reused
until they are within EXPIRY_MARGIN of expiring.

Injected into whatever builds host clients; the reconciler never sees it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from github import Auth, GithubException, GithubIntegration

from prsync_core.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CachedToken:
    token: str
    expires_at: datetime


class InstallationTokenCache:
    """Thread-safe, expiry-checked cache of installation access tokens."""

    EXPIRY_MARGIN = timedelta(seconds=30)

    def __init__(
        self,
        app_id: int | str,
        private_key: str,
        integration: GithubIntegration | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if not private_key:
            raise ValueError("GITHUB_PRIVATE_KEY is not defined in the environment.")
        self._integration = integration or GithubIntegration(auth=Auth.AppAuth(int(app_id), private_key))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tokens: dict[int, _CachedToken] = {}
        self._lock = threading.Lock()

    def get_token(self, installation_id: int) -> str:
        # Held across the mint call; one refresh per installation.
        with self._lock:
            cached = self._tokens.get(installation_id)
            if cached is not None and cached.expires_at > self._clock() + self.EXPIRY_MARGIN:
                return cached.token

            try:
                authorization = self._integration.get_access_token(installation_id)
            except GithubException as e:
                raise ProviderError(f"Could not mint a token for installation {installation_id}: {e}") from e

            expires_at = authorization.expires_at
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            self._tokens[installation_id] = _CachedToken(authorization.token, expires_at)
            logger.debug("Minted token for installation %s (expires %s)", installation_id, expires_at.isoformat())
            return authorization.token

from __future__ import annotations

from prsync_core.hosts.base import ReviewHostClient


def build_host_client(provider: str, owner: str, repo: str, token: str | None) -> ReviewHostClient:
    """Return the client for provider, scoped to owner/repo."""
    if provider == "github":
        from prsync_core.hosts.github import GitHubClient

        return GitHubClient(owner, repo, token=token)
    if provider == "gitlab":
        raise ValueError("GitLab is not supported yet. Set provider: github in .prsync.yml.")
    raise ValueError(f"Unknown provider: {provider!r}. Choose 'github'.")

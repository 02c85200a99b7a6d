"""Typed webhook payloads.

Only the fields reconciliation needs are declared; everything else GitHub
sends is ignored. A payload missing any declared field fails validation at
the boundary instead of surfacing as a KeyError mid-reconciliation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from prsync_core.models import PullRequestRef


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Account(_Payload):
    login: str


class Repository(_Payload):
    name: str
    owner: Account

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


class CommitRef(_Payload):
    sha: str


class PullRequest(_Payload):
    number: int
    head: CommitRef


class Installation(_Payload):
    id: int


class PullRequestEvent(_Payload):
    """`pull_request` delivery."""

    action: str
    pull_request: PullRequest
    repository: Repository
    installation: Optional[Installation] = None

    @property
    def installation_id(self) -> int | None:
        return self.installation.id if self.installation else None

    def to_ref(self, provider: str = "github") -> PullRequestRef:
        return PullRequestRef(
            provider=provider,
            owner=self.repository.owner.login,
            repo=self.repository.name,
            number=self.pull_request.number,
            head_sha=self.pull_request.head.sha,
        )

"""Ephemeral per-event data passed between the host client, review sources and
the reconciler. Nothing here is persisted; see prsync_store.models for that.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class PullRequestRef:
    """Identity of a pull request at the moment an event is processed."""

    provider: str
    owner: str
    repo: str
    number: int
    head_sha: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}@{self.head_sha[:7]}"


@dataclass(frozen=True)
class ChangedFile:
    """One entry of a pull request's file listing as reported by the host."""

    path: str
    content_hash: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0


@dataclass(frozen=True)
class PullRequestSnapshot:
    """A pull request plus its files, in the order the host returned them."""

    pull_request: PullRequestRef
    files: tuple[ChangedFile, ...] = ()


class ReviewStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class ReviewOutcome:
    """Text produced by a review source for one file."""

    text: str
    status: ReviewStatus = ReviewStatus.OK
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ReviewStatus.OK

    @classmethod
    def failed(cls, error: str) -> ReviewOutcome:
        return cls(text="", status=ReviewStatus.ERROR, error=error)


@dataclass
class FileReview:
    """Structured review returned by the LLM sources before formatting."""

    summary: str
    security: str = ""
    best_practices: str = ""

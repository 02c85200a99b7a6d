"""Comment store data models.

Decoupled from prsync_core so the store layer can be used independently
and prsync_core has no knowledge of how records are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileIdentity:
    """Key of a FileRecord: one file in one repository on one host."""

    provider: str
    owner: str
    repo: str
    file_path: str

    def __str__(self) -> str:
        return f"{self.provider}:{self.owner}/{self.repo}:{self.file_path}"


@dataclass(frozen=True)
class FileRecord:
    """Last comment posted (or confirmed) for a file identity.

    Frozen so a record handed out by a store can never be half-mutated by a
    caller; stores replace records wholesale.
    """

    identity: FileIdentity
    content_hash: str
    comment_id: str
    created_at: str = ""  # ISO-8601 UTC timestamp
    updated_at: str = ""  # ISO-8601 UTC timestamp

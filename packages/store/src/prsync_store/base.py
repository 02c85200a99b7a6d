"""Abstract store interface.

Any storage backend (SQLite, in-memory, Postgres) implements this interface.
The reconciler depends on BaseStore, not on a concrete backend, so backends
are swappable without touching reconciliation code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prsync_store.models import FileIdentity, FileRecord


class StoreError(Exception):
    """Raised when a record cannot be read or written."""


class BaseStore(ABC):
    """Pluggable persistence layer for per-file comment state.

    Writes must be atomic per identity: content_hash and comment_id change
    together or not at all. Concurrent writers to the same identity are
    allowed and the last writer wins.
    """

    @abstractmethod
    def find(self, identity: FileIdentity) -> FileRecord | None:
        """Return the record for identity, or None when the file is untracked."""

    @abstractmethod
    def upsert(self, identity: FileIdentity, content_hash: str, comment_id: str) -> None:
        """Create or replace the record for identity."""

    @abstractmethod
    def update(self, identity: FileIdentity, content_hash: str) -> None:
        """Advance content_hash of an existing record, keeping its comment_id.

        Raises StoreError if no record exists for identity.
        """

    @abstractmethod
    def list_records(self, provider: str, owner: str, repo: str) -> list[FileRecord]:
        """Return all records for a repository ordered by file path.

        Returns an empty list if none exist.
        """

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Default is a no-op so callers can always call close() safely.
        """

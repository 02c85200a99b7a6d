"""MemoryStore: process-local store for tests and one-off dry runs.

Records vanish with the process, so a second run re-posts every comment.
Use SQLiteStore for anything that must survive a restart.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone

from prsync_store.base import BaseStore, StoreError
from prsync_store.models import FileIdentity, FileRecord


class MemoryStore(BaseStore):
    """Keeps records in a dict keyed by FileIdentity.

    Records are frozen and swapped under a lock, so readers never observe a
    record whose hash and comment id come from different writes.
    """

    def __init__(self):
        self._records: dict[FileIdentity, FileRecord] = {}
        self._lock = threading.Lock()

    def find(self, identity: FileIdentity) -> FileRecord | None:
        with self._lock:
            return self._records.get(identity)

    def upsert(self, identity: FileIdentity, content_hash: str, comment_id: str) -> None:
        now = _now()
        with self._lock:
            existing = self._records.get(identity)
            created_at = existing.created_at if existing else now
            self._records[identity] = FileRecord(
                identity=identity,
                content_hash=content_hash,
                comment_id=comment_id,
                created_at=created_at,
                updated_at=now,
            )

    def update(self, identity: FileIdentity, content_hash: str) -> None:
        with self._lock:
            existing = self._records.get(identity)
            if existing is None:
                raise StoreError(f"No record to update for {identity}")
            self._records[identity] = replace(existing, content_hash=content_hash, updated_at=_now())

    def list_records(self, provider: str, owner: str, repo: str) -> list[FileRecord]:
        with self._lock:
            matches = [
                r
                for key, r in self._records.items()
                if (key.provider, key.owner, key.repo) == (provider, owner, repo)
            ]
        return sorted(matches, key=lambda r: r.identity.file_path)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

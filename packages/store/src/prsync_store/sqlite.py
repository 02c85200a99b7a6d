"""SQLiteStore: file-based store for a single webhook worker or CI cache.

Schema:
  file_comments: one row per (provider, owner, repo, file_path). The UNIQUE
                 constraint is what makes "one comment per file" hold even
                 when two events for the same PR race each other.

Every write is a single statement executed inside a transaction, so a row's
file_sha and comment_id are always from the same write.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone

from prsync_store.base import BaseStore, StoreError
from prsync_store.models import FileIdentity, FileRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS file_comments (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    provider    TEXT NOT NULL,
    owner       TEXT NOT NULL,
    repo        TEXT NOT NULL,
    file_path   TEXT NOT NULL,
    file_sha    TEXT NOT NULL,
    comment_id  TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    UNIQUE (provider, owner, repo, file_path)
);
CREATE INDEX IF NOT EXISTS idx_file_comments_repo ON file_comments (provider, owner, repo);
"""

_UPSERT = """
INSERT INTO file_comments
  (provider, owner, repo, file_path, file_sha, comment_id, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (provider, owner, repo, file_path) DO UPDATE SET
  file_sha   = excluded.file_sha,
  comment_id = excluded.comment_id,
  updated_at = excluded.updated_at
"""


class SQLiteStore(BaseStore):
    """Stores file comment state in a local SQLite database file.

    The database file path defaults to `.prsync.db` in the current working
    directory. Configure via .prsync.yml: `store_path: /path/to/prsync.db`.

    One connection is shared by all threads of the process and every
    statement runs under a lock; SQLite's own file locking serialises writers
    from other processes.
    """

    def __init__(self, db_path: str = ".prsync.db"):
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False, timeout=30)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Could not open SQLite store at {db_path}: {e}") from e

    def find(self, identity: FileIdentity) -> FileRecord | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT * FROM file_comments WHERE provider=? AND owner=? AND repo=? AND file_path=?",
                    (identity.provider, identity.owner, identity.repo, identity.file_path),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Lookup failed for {identity}: {e}") from e
        return self._row_to_record(row) if row is not None else None

    def upsert(self, identity: FileIdentity, content_hash: str, comment_id: str) -> None:
        now = _now()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    _UPSERT,
                    (
                        identity.provider,
                        identity.owner,
                        identity.repo,
                        identity.file_path,
                        content_hash,
                        comment_id,
                        now,
                        now,
                    ),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Upsert failed for {identity}: {e}") from e
        logger.debug("Upserted %s -> (%s, %s)", identity, content_hash, comment_id)

    def update(self, identity: FileIdentity, content_hash: str) -> None:
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    """
                    UPDATE file_comments SET file_sha=?, updated_at=?
                    WHERE provider=? AND owner=? AND repo=? AND file_path=?
                    """,
                    (content_hash, _now(), identity.provider, identity.owner, identity.repo, identity.file_path),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Update failed for {identity}: {e}") from e
        if cursor.rowcount == 0:
            raise StoreError(f"No record to update for {identity}")
        logger.debug("Updated %s -> %s", identity, content_hash)

    def list_records(self, provider: str, owner: str, repo: str) -> list[FileRecord]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT * FROM file_comments WHERE provider=? AND owner=? AND repo=? ORDER BY file_path",
                    (provider, owner, repo),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Listing failed for {owner}/{repo}: {e}") from e
        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> FileRecord:
        return FileRecord(
            identity=FileIdentity(
                provider=row["provider"],
                owner=row["owner"],
                repo=row["repo"],
                file_path=row["file_path"],
            ),
            content_hash=row["file_sha"],
            comment_id=row["comment_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

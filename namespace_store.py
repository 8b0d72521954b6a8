"""
namespace_store.py
------------------
Small SQLite-backed store for starred Pinecone namespaces.

One row per namespace name; the name is the primary key so the database
itself rejects duplicates.
"""
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List

class StarredNamespaceError(LookupError):
    pass

class AlreadyStarredError(StarredNamespaceError):
    pass

class NotStarredError(StarredNamespaceError):
    pass


class StarredNamespaceStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS starred_namespaces (
                    namespace TEXT PRIMARY KEY,
                    created_at TIMESTAMP NOT NULL
                )
            """)

    def list_starred(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT namespace FROM starred_namespaces ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
        return [r[0] for r in rows]

    def star(self, namespace: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO starred_namespaces (namespace, created_at) VALUES (?, ?)",
                    (namespace, now),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyStarredError(f"Namespace '{namespace}' is already starred") from e

    def unstar(self, namespace: str) -> None:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM starred_namespaces WHERE namespace = ?", (namespace,))
            deleted = cur.rowcount
        if not deleted:
            raise NotStarredError(f"Namespace '{namespace}' is not starred")

    def is_starred(self, namespace: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM starred_namespaces WHERE namespace = ?", (namespace,)
            ).fetchone()
        return row is not None

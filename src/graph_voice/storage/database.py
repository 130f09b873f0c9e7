"""SQLite-backed pending action store."""

import sqlite3
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

from pydantic import ValidationError

from graph_voice.actions.models import PendingAction
from graph_voice.actions.store import ActionStore, Check, Clock, Mutator, as_timedelta


def _safe_load_action(record: str) -> PendingAction | None:
    """Parse a stored record, returning None for corrupted rows."""
    try:
        return PendingAction.model_validate_json(record)
    except ValidationError as e:
        print(f"Warning: Skipping unreadable pending action: {e}", file=sys.stderr)
        return None


class SqliteActionStore(ActionStore):
    """Pending action store persisted in a SQLite database.

    Each operation runs in its own IMMEDIATE transaction, which takes the
    database write lock up front. That makes read-modify-write sequences
    atomic across threads and processes sharing the same file.
    """

    def __init__(
        self,
        db_path: Path,
        clock: Clock = datetime.now,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
            clock: Source of the current time for sweeps.
            timeout: Seconds to wait for the database write lock.
        """
        self.db_path = db_path
        self.timeout = timeout
        self._clock = clock
        self._ensure_schema()

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection and hold an immediate transaction on it."""
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=self.timeout)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        """Create the table if it doesn't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS pending_actions (
                    id TEXT PRIMARY KEY,
                    session_id TEXT,
                    created_ts REAL NOT NULL,
                    record TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_pending_created
                    ON pending_actions(created_ts)
            """)

    def _fetch(self, conn: sqlite3.Connection, action_id: str) -> PendingAction | None:
        row = conn.execute(
            "SELECT record FROM pending_actions WHERE id = ?",
            (action_id,),
        ).fetchone()
        if not row:
            return None
        return _safe_load_action(row["record"])

    def put(self, action: PendingAction) -> None:
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO pending_actions (id, session_id, created_ts, record)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        action.id,
                        action.session_id,
                        action.created_at.timestamp(),
                        action.model_dump_json(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Duplicate action ID: {action.id}") from e

    def get(self, action_id: str) -> PendingAction | None:
        with self._transaction() as conn:
            return self._fetch(conn, action_id)

    def update(self, action_id: str, mutate: Mutator) -> PendingAction | None:
        with self._transaction() as conn:
            action = self._fetch(conn, action_id)
            if action is None:
                return None
            mutate(action)
            conn.execute(
                "UPDATE pending_actions SET record = ? WHERE id = ?",
                (action.model_dump_json(), action_id),
            )
            return action

    def pop(self, action_id: str, check: Check | None = None) -> PendingAction | None:
        with self._transaction() as conn:
            action = self._fetch(conn, action_id)
            if action is None:
                return None
            if check is not None:
                check(action.model_copy(deep=True))
            conn.execute("DELETE FROM pending_actions WHERE id = ?", (action_id,))
            return action

    def delete(self, action_id: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM pending_actions WHERE id = ?", (action_id,))

    def sweep_expired(
        self,
        max_age: "timedelta | float",
        now: datetime | None = None,
    ) -> int:
        cutoff = (now or self._clock()) - as_timedelta(max_age)
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM pending_actions WHERE created_ts < ?",
                (cutoff.timestamp(),),
            )
            return cursor.rowcount

    def list_actions(self, session_id: str | None = None) -> list[PendingAction]:
        query = "SELECT record FROM pending_actions"
        params: tuple = ()
        if session_id is not None:
            query += " WHERE session_id = ?"
            params = (session_id,)
        query += " ORDER BY created_ts"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()

        actions = [_safe_load_action(row["record"]) for row in rows]
        return [a for a in actions if a is not None]

    def __len__(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM pending_actions").fetchone()[0]

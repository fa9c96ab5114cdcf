"""SQLite-backed storage for builds and their action records.

Layout:
- ``builds`` keyed by ``build_id``.
- ``build_actions`` keyed by ``(build_id, step_number)``; a range scan on
  the ``build_id`` prefix returns a build's actions in step order.

Writes go through ``write_transaction()``, which holds a per-build
in-process lock and a SQLite ``BEGIN IMMEDIATE`` transaction.  Together
they serialize the read-increment-insert-update of an append against
other threads and other processes.  There is no update of action rows
and no delete of anything.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from forgeledger.core.errors import DuplicateBuildIdError, StoreContentionError
from forgeledger.models.actions import BuildAction
from forgeledger.models.builds import Build, BuildStats, BuildStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_BUILDS = """
CREATE TABLE IF NOT EXISTS builds (
    build_id        TEXT PRIMARY KEY,
    authority       TEXT NOT NULL,
    project_name    TEXT NOT NULL,
    step_count      INTEGER NOT NULL DEFAULT 0,
    started_at      TEXT NOT NULL,
    completed_at    TEXT,
    status          TEXT NOT NULL,
    artifact_id     TEXT
);
"""

_CREATE_ACTIONS = """
CREATE TABLE IF NOT EXISTS build_actions (
    build_id             TEXT NOT NULL REFERENCES builds(build_id),
    step_number          INTEGER NOT NULL,
    action_type          TEXT NOT NULL,
    description          TEXT NOT NULL DEFAULT '',
    content_hash         BLOB NOT NULL,
    timestamp            TEXT NOT NULL,
    idempotency_key      TEXT,
    previous_entry_hash  TEXT NOT NULL DEFAULT '',
    entry_hash           TEXT NOT NULL UNIQUE,
    PRIMARY KEY (build_id, step_number)
);
"""

_CREATE_IDX_AUTHORITY = """
CREATE INDEX IF NOT EXISTS idx_builds_authority ON builds(authority, started_at);
"""

_CREATE_IDX_IDEMPOTENCY = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_actions_idempotency
    ON build_actions(build_id, idempotency_key);
"""

_BUILD_COLUMNS = (
    "build_id, authority, project_name, step_count, started_at, "
    "completed_at, status, artifact_id"
)

_ACTION_COLUMNS = (
    "build_id, step_number, action_type, description, content_hash, "
    "timestamp, idempotency_key, previous_entry_hash, entry_hash"
)


def _is_lock_error(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


class LedgerStore:
    """Durable store for ``Build`` and ``BuildAction`` records.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    busy_timeout_ms:
        Upper bound on how long a writer waits for the database lock
        before ``StoreContentionError`` is raised.
    """

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5000) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._busy_timeout_ms = busy_timeout_ms
        # build_id -> lock, held only while some writer references it;
        # the guard protects the table itself
        self._locks_guard = threading.Lock()
        self._build_locks: weakref.WeakValueDictionary[str, threading.RLock] = (
            weakref.WeakValueDictionary()
        )
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly below
        conn = sqlite3.connect(
            str(self._db_path),
            timeout=self._busy_timeout_ms / 1000,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(_CREATE_BUILDS)
            conn.execute(_CREATE_ACTIONS)
            conn.execute(_CREATE_IDX_AUTHORITY)
            conn.execute(_CREATE_IDX_IDEMPOTENCY)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _lock_for(self, build_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._build_locks.get(build_id)
            if lock is None:
                lock = threading.RLock()
                self._build_locks[build_id] = lock
            return lock

    @contextmanager
    def write_transaction(self, build_id: str) -> Iterator[sqlite3.Connection]:
        """Serialize a mutation of *build_id* and run it atomically.

        Commits when the block exits normally, rolls back when it raises.
        """
        lock = self._lock_for(build_id)
        with lock:
            conn = self._connect()
            try:
                try:
                    conn.execute("BEGIN IMMEDIATE")
                except sqlite3.OperationalError as exc:
                    if _is_lock_error(exc):
                        raise StoreContentionError(
                            f"Timed out waiting for write lock on build {build_id!r}"
                        ) from exc
                    raise
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                try:
                    conn.execute("COMMIT")
                except sqlite3.OperationalError as exc:
                    conn.execute("ROLLBACK")
                    if _is_lock_error(exc):
                        raise StoreContentionError(
                            f"Commit contended for build {build_id!r}"
                        ) from exc
                    raise
            finally:
                conn.close()

    @contextmanager
    def reader(self) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection for read-only queries."""
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------

    def insert_build(self, conn: sqlite3.Connection, build: Build) -> None:
        """Insert a new build.  The primary key makes this a check-and-set."""
        try:
            conn.execute(
                f"INSERT INTO builds ({_BUILD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    build.build_id,
                    build.authority,
                    build.project_name,
                    build.step_count,
                    build.started_at.isoformat(),
                    build.completed_at.isoformat() if build.completed_at else None,
                    build.status.value,
                    build.artifact_id,
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateBuildIdError(build.build_id) from exc

    def fetch_build(self, conn: sqlite3.Connection, build_id: str) -> Build | None:
        row = conn.execute(
            f"SELECT {_BUILD_COLUMNS} FROM builds WHERE build_id = ?",
            (build_id,),
        ).fetchone()
        return self._row_to_build(row) if row else None

    def advance_step_count(
        self, conn: sqlite3.Connection, build_id: str, expected: int
    ) -> int:
        """Compare-and-swap ``step_count`` from *expected* to *expected + 1*.

        Returns the new step count.
        """
        cursor = conn.execute(
            "UPDATE builds SET step_count = ? "
            "WHERE build_id = ? AND step_count = ? AND status = ?",
            (expected + 1, build_id, expected, BuildStatus.IN_PROGRESS.value),
        )
        if cursor.rowcount != 1:
            raise StoreContentionError(
                f"step_count of build {build_id!r} moved past {expected} concurrently"
            )
        return expected + 1

    def finalize_build(self, conn: sqlite3.Connection, build: Build) -> None:
        """Persist the terminal status of a build that is still in progress."""
        cursor = conn.execute(
            "UPDATE builds SET status = ?, completed_at = ?, artifact_id = ? "
            "WHERE build_id = ? AND status = ?",
            (
                build.status.value,
                build.completed_at.isoformat() if build.completed_at else None,
                build.artifact_id,
                build.build_id,
                BuildStatus.IN_PROGRESS.value,
            ),
        )
        if cursor.rowcount != 1:
            raise StoreContentionError(
                f"Build {build.build_id!r} left in_progress concurrently"
            )

    def list_builds(
        self,
        conn: sqlite3.Connection,
        *,
        authority: str | None = None,
        status: BuildStatus | None = None,
    ) -> list[Build]:
        """Return builds newest first, optionally filtered."""
        clauses: list[str] = []
        params: list[str] = []
        if authority is not None:
            clauses.append("authority = ?")
            params.append(authority)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = conn.execute(
            f"SELECT {_BUILD_COLUMNS} FROM builds {where} "
            "ORDER BY started_at DESC, build_id ASC",
            params,
        ).fetchall()
        return [self._row_to_build(row) for row in rows]

    def stats(self, conn: sqlite3.Connection) -> BuildStats:
        counts = dict(
            conn.execute("SELECT status, COUNT(*) FROM builds GROUP BY status").fetchall()
        )
        total_actions = conn.execute("SELECT COUNT(*) FROM build_actions").fetchone()[0]
        return BuildStats(
            total_builds=sum(counts.values()),
            in_progress=counts.get(BuildStatus.IN_PROGRESS.value, 0),
            completed=counts.get(BuildStatus.COMPLETED.value, 0),
            failed=counts.get(BuildStatus.FAILED.value, 0),
            total_actions=total_actions,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def insert_action(self, conn: sqlite3.Connection, action: BuildAction) -> None:
        """Insert a sealed action.  This is the only write on build_actions."""
        conn.execute(
            f"INSERT INTO build_actions ({_ACTION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                action.build_id,
                action.step_number,
                action.action_type.value,
                action.description,
                action.content_hash,
                action.timestamp.isoformat(),
                action.idempotency_key,
                action.previous_entry_hash,
                action.entry_hash,
            ),
        )

    def fetch_action(
        self, conn: sqlite3.Connection, build_id: str, step_number: int
    ) -> BuildAction | None:
        row = conn.execute(
            f"SELECT {_ACTION_COLUMNS} FROM build_actions "
            "WHERE build_id = ? AND step_number = ?",
            (build_id, step_number),
        ).fetchone()
        return self._row_to_action(row) if row else None

    def fetch_action_by_key(
        self, conn: sqlite3.Connection, build_id: str, idempotency_key: str
    ) -> BuildAction | None:
        row = conn.execute(
            f"SELECT {_ACTION_COLUMNS} FROM build_actions "
            "WHERE build_id = ? AND idempotency_key = ?",
            (build_id, idempotency_key),
        ).fetchone()
        return self._row_to_action(row) if row else None

    def fetch_actions(self, conn: sqlite3.Connection, build_id: str) -> list[BuildAction]:
        rows = conn.execute(
            f"SELECT {_ACTION_COLUMNS} FROM build_actions "
            "WHERE build_id = ? ORDER BY step_number ASC",
            (build_id,),
        ).fetchall()
        return [self._row_to_action(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_build(row: tuple) -> Build:
        (
            build_id,
            authority,
            project_name,
            step_count,
            started_at,
            completed_at,
            status,
            artifact_id,
        ) = row
        return Build(
            build_id=build_id,
            authority=authority,
            project_name=project_name,
            step_count=step_count,
            started_at=datetime.fromisoformat(started_at),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            status=BuildStatus(status),
            artifact_id=artifact_id,
        )

    @staticmethod
    def _row_to_action(row: tuple) -> BuildAction:
        (
            build_id,
            step_number,
            action_type,
            description,
            content_hash,
            timestamp,
            idempotency_key,
            previous_entry_hash,
            entry_hash,
        ) = row
        return BuildAction(
            build_id=build_id,
            step_number=step_number,
            action_type=action_type,
            description=description,
            content_hash=bytes(content_hash),
            timestamp=datetime.fromisoformat(timestamp),
            idempotency_key=idempotency_key,
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )

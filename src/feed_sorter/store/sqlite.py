"""SQLite-backed store with deterministic migration bootstrap."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
import json
from pathlib import Path
import sqlite3

from feed_sorter.errors import StoreError
from feed_sorter.models import (
    CollectionMode,
    CollectionPhase,
    FeedVariant,
    PostItem,
    SessionState,
    SortKey,
)


@dataclass(frozen=True)
class Migration:
    version: str
    statements: tuple[str, ...]


@dataclass(frozen=True)
class RunSummary:
    run_id: int
    session_key: str
    started_at: datetime | None
    finished_at: datetime | None
    status: str
    fused_count: int
    emitted_count: int
    stop_reason: str | None
    error: str | None


DEFAULT_MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version="0001_initial_store_schema",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                session_key TEXT PRIMARY KEY,
                phase TEXT NOT NULL,
                target_size INTEGER,
                requested_size INTEGER,
                collect_all INTEGER NOT NULL DEFAULT 0 CHECK (collect_all IN (0, 1)),
                sort_key TEXT,
                mode TEXT NOT NULL,
                variant TEXT NOT NULL,
                fused_count INTEGER NOT NULL DEFAULT 0,
                started_at TEXT,
                updated_at TEXT
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS items (
                session_key TEXT NOT NULL,
                item_id TEXT NOT NULL,
                author_name TEXT NOT NULL,
                text TEXT NOT NULL DEFAULT '',
                timestamp TEXT,
                like_count INTEGER NOT NULL DEFAULT 0,
                comment_count INTEGER NOT NULL DEFAULT 0,
                share_count INTEGER NOT NULL DEFAULT 0,
                is_promoted INTEGER NOT NULL DEFAULT 0 CHECK (is_promoted IN (0, 1)),
                author_urn TEXT NOT NULL DEFAULT '',
                hashtags TEXT NOT NULL DEFAULT '[]',
                position INTEGER NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (session_key, item_id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_key TEXT NOT NULL,
                started_at TEXT NOT NULL,
                finished_at TEXT,
                status TEXT NOT NULL DEFAULT 'running',
                fused_count INTEGER NOT NULL DEFAULT 0,
                emitted_count INTEGER NOT NULL DEFAULT 0,
                stop_reason TEXT,
                error TEXT
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_items_session_position ON items(session_key, position)",
            "CREATE INDEX IF NOT EXISTS idx_runs_session_started ON runs(session_key, started_at)",
        ),
    ),
)


class SQLiteMigrationRunner:
    """Apply ordered migrations and enforce base pragmas."""

    def __init__(self, migrations: Sequence[Migration] | None = None) -> None:
        self._migrations = tuple(migrations or DEFAULT_MIGRATIONS)
        versions = [migration.version for migration in self._migrations]
        if versions != sorted(versions):
            raise StoreError("Migrations must be in ascending version order.")
        if len(set(versions)) != len(versions):
            raise StoreError("Migration versions must be unique.")

    def bootstrap(self, conn: sqlite3.Connection) -> None:
        self._apply_pragmas(conn)
        self._ensure_migration_table(conn)
        self._apply_pending_migrations(conn)

    def applied_versions(self, conn: sqlite3.Connection) -> tuple[str, ...]:
        rows = conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()
        return tuple(str(row[0]) for row in rows)

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.execute("PRAGMA busy_timeout = 5000")

    def _ensure_migration_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def _apply_pending_migrations(self, conn: sqlite3.Connection) -> None:
        applied = set(self.applied_versions(conn))
        for migration in self._migrations:
            if migration.version in applied:
                continue
            try:
                conn.execute("BEGIN")
                for statement in migration.statements:
                    conn.execute(statement)
                conn.execute(
                    "INSERT INTO schema_migrations(version, applied_at) VALUES(?, ?)",
                    (migration.version, _dt_to_db(_utcnow())),
                )
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StoreError(
                    f"Failed applying migration '{migration.version}': {exc}."
                ) from exc


class SQLiteStore:
    """SQLite implementation of session, fused-item and run persistence."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        migration_runner: SQLiteMigrationRunner | None = None,
    ) -> None:
        self._db_path = Path(db_path).expanduser()
        self._migration_runner = migration_runner or SQLiteMigrationRunner()

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open SQLite database '{self._db_path}': {exc}.") from exc
        except OSError as exc:
            raise StoreError(f"Could not prepare database path '{self._db_path}': {exc}.") from exc

        self._conn.row_factory = sqlite3.Row
        self._migration_runner.bootstrap(self._conn)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not close SQLite database '{self._db_path}': {exc}.") from exc

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.close()
        return False

    def migration_versions(self) -> tuple[str, ...]:
        return self._migration_runner.applied_versions(self._conn)

    def get(self, session_key: str) -> SessionState | None:
        try:
            row = self._conn.execute(
                """
                SELECT phase, target_size, requested_size, collect_all, sort_key,
                       mode, variant, fused_count, started_at, updated_at
                FROM sessions
                WHERE session_key = ?
                """,
                (session_key,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load session '{session_key}': {exc}.") from exc
        if row is None:
            return None
        try:
            return SessionState(
                phase=CollectionPhase(row["phase"]),
                target_size=_optional_int(row["target_size"]),
                requested_size=_optional_int(row["requested_size"]),
                collect_all=bool(row["collect_all"]),
                sort_key=SortKey(row["sort_key"]) if row["sort_key"] else None,
                mode=CollectionMode(row["mode"]),
                variant=FeedVariant(row["variant"]),
                fused_count=int(row["fused_count"]),
                started_at=_db_to_dt(row["started_at"]),
                updated_at=_db_to_dt(row["updated_at"]),
            )
        except ValueError as exc:
            raise StoreError(f"Session row for '{session_key}' is invalid: {exc}.") from exc

    def set(self, session_key: str, state: SessionState) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO sessions(
                    session_key, phase, target_size, requested_size, collect_all,
                    sort_key, mode, variant, fused_count, started_at, updated_at
                )
                VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(session_key) DO UPDATE SET
                    phase = excluded.phase,
                    target_size = excluded.target_size,
                    requested_size = excluded.requested_size,
                    collect_all = excluded.collect_all,
                    sort_key = excluded.sort_key,
                    mode = excluded.mode,
                    variant = excluded.variant,
                    fused_count = excluded.fused_count,
                    started_at = excluded.started_at,
                    updated_at = excluded.updated_at
                """,
                (
                    session_key,
                    state.phase.value,
                    state.target_size,
                    state.requested_size,
                    int(state.collect_all),
                    state.sort_key.value if state.sort_key is not None else None,
                    state.mode.value,
                    state.variant.value,
                    state.fused_count,
                    _dt_to_db(state.started_at),
                    _dt_to_db(state.updated_at),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not save session '{session_key}': {exc}.") from exc

    def load_items(self, session_key: str) -> tuple[PostItem, ...]:
        try:
            rows = self._conn.execute(
                """
                SELECT item_id, author_name, text, timestamp, like_count, comment_count,
                       share_count, is_promoted, author_urn, hashtags
                FROM items
                WHERE session_key = ?
                ORDER BY position ASC, item_id ASC
                """,
                (session_key,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load items for session '{session_key}': {exc}.") from exc

        return tuple(
            PostItem(
                item_id=str(row["item_id"]),
                author_name=str(row["author_name"]),
                text=str(row["text"]),
                timestamp=_db_to_dt(row["timestamp"]),
                like_count=int(row["like_count"]),
                comment_count=int(row["comment_count"]),
                share_count=int(row["share_count"]),
                is_promoted=bool(row["is_promoted"]),
                author_urn=str(row["author_urn"]),
                hashtags=_load_hashtags(row["hashtags"]),
            )
            for row in rows
        )

    def save_items(self, session_key: str, items: Iterable[PostItem]) -> int:
        batch = tuple(items)
        if not batch:
            return 0
        now = _dt_to_db(_utcnow())
        try:
            row = self._conn.execute(
                "SELECT COALESCE(MAX(position), -1) FROM items WHERE session_key = ?",
                (session_key,),
            ).fetchone()
            next_position = int(row[0]) + 1 if row is not None else 0
            rows = [
                (
                    session_key,
                    item.item_id,
                    item.author_name,
                    item.text,
                    _dt_to_db(item.timestamp),
                    item.like_count,
                    item.comment_count,
                    item.share_count,
                    int(item.is_promoted),
                    item.author_urn,
                    json.dumps(list(item.hashtags)),
                    next_position + offset,
                    now,
                )
                for offset, item in enumerate(batch)
            ]
            self._conn.executemany(
                """
                INSERT INTO items(
                    session_key, item_id, author_name, text, timestamp, like_count,
                    comment_count, share_count, is_promoted, author_urn, hashtags,
                    position, updated_at
                )
                VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(session_key, item_id) DO UPDATE SET
                    author_name = excluded.author_name,
                    text = excluded.text,
                    timestamp = excluded.timestamp,
                    like_count = excluded.like_count,
                    comment_count = excluded.comment_count,
                    share_count = excluded.share_count,
                    is_promoted = excluded.is_promoted,
                    author_urn = excluded.author_urn,
                    hashtags = excluded.hashtags,
                    updated_at = excluded.updated_at
                """,
                rows,
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not persist items for session '{session_key}': {exc}.") from exc
        return len(batch)

    def clear_items(self, session_key: str) -> int:
        try:
            cursor = self._conn.execute("DELETE FROM items WHERE session_key = ?", (session_key,))
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not clear items for session '{session_key}': {exc}.") from exc
        return int(cursor.rowcount)

    def begin_run(self, session_key: str, started_at: datetime | None = None) -> int:
        started = _dt_to_db(started_at or _utcnow())
        try:
            cursor = self._conn.execute(
                """
                INSERT INTO runs(session_key, started_at, status)
                VALUES(?, ?, 'running')
                """,
                (session_key, started),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not begin run for session '{session_key}': {exc}.") from exc
        run_id = cursor.lastrowid
        if run_id is None:
            raise StoreError("SQLite did not return run id for inserted run.")
        return int(run_id)

    def finish_run(
        self,
        run_id: int,
        *,
        status: str,
        fused_count: int = 0,
        emitted_count: int = 0,
        stop_reason: str | None = None,
        error: str | None = None,
        finished_at: datetime | None = None,
    ) -> None:
        finished = _dt_to_db(finished_at or _utcnow())
        try:
            cursor = self._conn.execute(
                """
                UPDATE runs
                SET finished_at = ?,
                    status = ?,
                    fused_count = ?,
                    emitted_count = ?,
                    stop_reason = ?,
                    error = ?
                WHERE run_id = ?
                """,
                (finished, status, fused_count, emitted_count, stop_reason, error, int(run_id)),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not finish run '{run_id}': {exc}.") from exc
        if cursor.rowcount == 0:
            raise StoreError(f"Run id '{run_id}' was not found.")

    def recent_runs(self, session_key: str, *, limit: int = 5) -> tuple[RunSummary, ...]:
        if limit <= 0:
            raise StoreError("limit must be > 0.")
        try:
            rows = self._conn.execute(
                """
                SELECT run_id, session_key, started_at, finished_at, status,
                       fused_count, emitted_count, stop_reason, error
                FROM runs
                WHERE session_key = ?
                ORDER BY run_id DESC
                LIMIT ?
                """,
                (session_key, limit),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load runs for session '{session_key}': {exc}.") from exc
        return tuple(
            RunSummary(
                run_id=int(row["run_id"]),
                session_key=str(row["session_key"]),
                started_at=_db_to_dt(row["started_at"]),
                finished_at=_db_to_dt(row["finished_at"]),
                status=str(row["status"]),
                fused_count=int(row["fused_count"]),
                emitted_count=int(row["emitted_count"]),
                stop_reason=row["stop_reason"],
                error=row["error"],
            )
            for row in rows
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _dt_to_db(value: datetime | None) -> str | None:
    if value is None:
        return None
    return _normalize_datetime(value).isoformat()


def _db_to_dt(raw: object) -> datetime | None:
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = f"{value[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return _normalize_datetime(parsed)


def _optional_int(raw: object) -> int | None:
    if raw is None:
        return None
    return int(raw)  # type: ignore[arg-type]


def _load_hashtags(raw: object) -> tuple[str, ...]:
    try:
        decoded = json.loads(str(raw)) if raw else []
    except json.JSONDecodeError:
        return ()
    if not isinstance(decoded, list):
        return ()
    return tuple(str(tag) for tag in decoded)

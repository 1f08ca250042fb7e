"""SQLite database layer for timebox."""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from timebox.streaks import StreakSnapshot

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".timebox" / "timebox.db"

TASK_COLUMNS = {"title", "priority", "date", "color", "category", "is_recurring", "recurring_days"}
BLOCK_COLUMNS = {"task_id", "is_completed"}


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _task_from_row(row: sqlite3.Row) -> dict:
    task = dict(row)
    task["is_recurring"] = bool(task["is_recurring"])
    raw_days = task.get("recurring_days")
    task["recurring_days"] = json.loads(raw_days) if raw_days else []
    return task


def _block_from_row(row: sqlite3.Row) -> dict:
    block = dict(row)
    block["is_completed"] = bool(block["is_completed"])
    return block


class Database:
    """SQLite database manager with WAL mode.

    One instance owns one connection; create it at startup, pass it to the
    service functions, and close it at shutdown.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        logger.debug("Initialising schema in %s", self.db_path)
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                priority TEXT NOT NULL DEFAULT 'medium',
                date TEXT NOT NULL,
                color TEXT NOT NULL DEFAULT '#6366f1',
                category TEXT NOT NULL DEFAULT 'work',
                is_recurring BOOLEAN NOT NULL DEFAULT 0,
                recurring_days TEXT,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks (user_id, date);

            CREATE TABLE IF NOT EXISTS time_blocks (
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                hour INTEGER NOT NULL,
                minute INTEGER NOT NULL,
                task_id TEXT REFERENCES tasks (id) ON DELETE SET NULL,
                is_completed BOOLEAN NOT NULL DEFAULT 0,
                PRIMARY KEY (user_id, date, hour, minute)
            );

            CREATE TABLE IF NOT EXISTS journal_entries (
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                updated_at TEXT NOT NULL,
                PRIMARY KEY (user_id, date)
            );

            CREATE TABLE IF NOT EXISTS user_streaks (
                user_id TEXT PRIMARY KEY,
                current_streak INTEGER NOT NULL DEFAULT 0,
                longest_streak INTEGER NOT NULL DEFAULT 0,
                last_active_date TEXT,
                updated_at TEXT NOT NULL
            );
        """)
        self.conn.commit()

    # -- tasks ---------------------------------------------------------------

    def create_task(
        self,
        user_id: str,
        title: str,
        date: str,
        priority: str = "medium",
        color: str = "#6366f1",
        category: str = "work",
        is_recurring: bool = False,
        recurring_days: list[int] | None = None,
    ) -> dict:
        """Insert a task and return it."""
        task_id = uuid.uuid4().hex
        self.conn.execute(
            "INSERT INTO tasks (id, user_id, title, priority, date, color, category, "
            "is_recurring, recurring_days, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task_id, user_id, title, priority, date, color, category, is_recurring,
                json.dumps(recurring_days) if recurring_days is not None else None,
                _now(),
            ),
        )
        self.conn.commit()
        return self.get_task(user_id, task_id)

    def get_task(self, user_id: str, task_id: str) -> dict | None:
        """Get a single task owned by user_id."""
        row = self.conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
        ).fetchone()
        return _task_from_row(row) if row else None

    def list_tasks(self, user_id: str, date: str | None = None) -> list[dict]:
        """List tasks, newest first, optionally only those scheduled on date."""
        query = "SELECT * FROM tasks WHERE user_id = ?"
        params: list = [user_id]
        if date:
            query += " AND date = ?"
            params.append(date)
        query += " ORDER BY created_at DESC, rowid DESC"
        return [_task_from_row(row) for row in self.conn.execute(query, params).fetchall()]

    def list_tasks_range(self, user_id: str, start_date: str, end_date: str) -> list[dict]:
        """List tasks scheduled between two dates (inclusive)."""
        rows = self.conn.execute(
            "SELECT * FROM tasks WHERE user_id = ? AND date >= ? AND date <= ? ORDER BY date",
            (user_id, start_date, end_date),
        ).fetchall()
        return [_task_from_row(row) for row in rows]

    def list_recurring_tasks(self, user_id: str) -> list[dict]:
        """List recurring task templates."""
        rows = self.conn.execute(
            "SELECT * FROM tasks WHERE user_id = ? AND is_recurring = 1 ORDER BY created_at",
            (user_id,),
        ).fetchall()
        return [_task_from_row(row) for row in rows]

    def find_task_by_title(self, user_id: str, title: str, date: str) -> dict | None:
        """Find any task with the given title on date."""
        row = self.conn.execute(
            "SELECT * FROM tasks WHERE user_id = ? AND title = ? AND date = ? LIMIT 1",
            (user_id, title, date),
        ).fetchone()
        return _task_from_row(row) if row else None

    def update_task(self, user_id: str, task_id: str, **fields) -> dict | None:
        """Update the given task columns. Returns None if the task does not exist."""
        unknown = set(fields) - TASK_COLUMNS
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        if self.get_task(user_id, task_id) is None:
            return None
        if "recurring_days" in fields and fields["recurring_days"] is not None:
            fields["recurring_days"] = json.dumps(fields["recurring_days"])
        if fields:
            set_clause = ", ".join(f"{k} = ?" for k in fields)
            values = list(fields.values()) + [task_id, user_id]
            self.conn.execute(
                f"UPDATE tasks SET {set_clause} WHERE id = ? AND user_id = ?",
                values,
            )
            self.conn.commit()
        return self.get_task(user_id, task_id)

    def delete_task(self, user_id: str, task_id: str) -> bool:
        """Delete a task. Blocks assigned to it keep their slot but lose the task."""
        cursor = self.conn.execute(
            "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def count_tasks(self, user_id: str) -> int:
        """Total number of tasks the user has created."""
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM tasks WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["n"]

    # -- time blocks ---------------------------------------------------------

    def _upsert_time_block(self, user_id: str, date: str, hour: int, minute: int, fields: dict) -> None:
        unknown = set(fields) - BLOCK_COLUMNS
        if unknown:
            raise ValueError(f"Unknown time block fields: {', '.join(sorted(unknown))}")
        columns = ["user_id", "date", "hour", "minute"] + list(fields.keys())
        placeholders = ", ".join(["?"] * len(columns))
        col_str = ", ".join(columns)
        values = [user_id, date, hour, minute] + list(fields.values())
        if fields:
            set_clause = ", ".join(f"{k} = excluded.{k}" for k in fields)
            conflict = f"DO UPDATE SET {set_clause}"
        else:
            conflict = "DO NOTHING"
        self.conn.execute(
            f"INSERT INTO time_blocks ({col_str}) VALUES ({placeholders}) "
            f"ON CONFLICT(user_id, date, hour, minute) {conflict}",
            values,
        )

    def upsert_time_block(self, user_id: str, date: str, hour: int, minute: int, **fields) -> dict:
        """Insert or update one time block.

        Only the given columns (task_id, is_completed) are written; columns not
        passed keep their stored value.
        """
        self._upsert_time_block(user_id, date, hour, minute, fields)
        self.conn.commit()
        return self.get_time_block(user_id, date, hour, minute)

    def upsert_time_blocks(self, user_id: str, blocks: list[dict]) -> list[dict]:
        """Upsert several blocks in one transaction; nothing is written if any fails.

        Each dict has date, hour, minute and optionally task_id / is_completed.
        """
        with self.conn:
            for block in blocks:
                fields = {k: block[k] for k in BLOCK_COLUMNS if k in block}
                self._upsert_time_block(user_id, block["date"], block["hour"], block["minute"], fields)
        return [
            self.get_time_block(user_id, b["date"], b["hour"], b["minute"]) for b in blocks
        ]

    _BLOCK_SELECT = (
        "SELECT b.date, b.hour, b.minute, b.task_id, b.is_completed, "
        "t.title AS task_title, t.priority AS task_priority, "
        "t.category AS task_category, t.color AS task_color "
        "FROM time_blocks b LEFT JOIN tasks t ON t.id = b.task_id "
    )

    def get_time_block(self, user_id: str, date: str, hour: int, minute: int) -> dict | None:
        """Get a single time block with its task columns."""
        row = self.conn.execute(
            self._BLOCK_SELECT
            + "WHERE b.user_id = ? AND b.date = ? AND b.hour = ? AND b.minute = ?",
            (user_id, date, hour, minute),
        ).fetchone()
        return _block_from_row(row) if row else None

    def get_time_blocks(self, user_id: str, date: str) -> list[dict]:
        """Get all blocks for one day, ordered by time."""
        rows = self.conn.execute(
            self._BLOCK_SELECT + "WHERE b.user_id = ? AND b.date = ? ORDER BY b.hour, b.minute",
            (user_id, date),
        ).fetchall()
        return [_block_from_row(row) for row in rows]

    def get_time_blocks_range(
        self, user_id: str, start_date: str | None = None, end_date: str | None = None
    ) -> list[dict]:
        """Get blocks between two dates (inclusive, either bound optional)."""
        query = self._BLOCK_SELECT + "WHERE b.user_id = ?"
        params: list = [user_id]
        if start_date:
            query += " AND b.date >= ?"
            params.append(start_date)
        if end_date:
            query += " AND b.date <= ?"
            params.append(end_date)
        query += " ORDER BY b.date, b.hour, b.minute"
        return [_block_from_row(row) for row in self.conn.execute(query, params).fetchall()]

    def get_active_dates(self, user_id: str) -> set[str]:
        """Distinct dates on which the user completed at least one block."""
        rows = self.conn.execute(
            "SELECT DISTINCT date FROM time_blocks WHERE user_id = ? AND is_completed = 1",
            (user_id,),
        ).fetchall()
        return {row["date"] for row in rows}

    def count_completed_blocks(self, user_id: str) -> int:
        """Total number of completed blocks across all days."""
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM time_blocks WHERE user_id = ? AND is_completed = 1",
            (user_id,),
        ).fetchone()
        return row["n"]

    # -- streak cache --------------------------------------------------------

    def upsert_streak(self, user_id: str, snapshot: StreakSnapshot) -> None:
        """Store the latest streak snapshot for user_id (idempotent)."""
        logger.debug("Caching streak for %s: %s", user_id, snapshot)
        self.conn.execute(
            "INSERT INTO user_streaks (user_id, current_streak, longest_streak, last_active_date, updated_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET current_streak = excluded.current_streak, "
            "longest_streak = excluded.longest_streak, last_active_date = excluded.last_active_date, "
            "updated_at = excluded.updated_at",
            (
                user_id, snapshot.current_streak, snapshot.longest_streak,
                snapshot.last_active_date, _now(),
            ),
        )
        self.conn.commit()

    def get_streak(self, user_id: str) -> dict | None:
        """Get the cached streak row, if any."""
        row = self.conn.execute(
            "SELECT * FROM user_streaks WHERE user_id = ?", (user_id,)
        ).fetchone()
        return dict(row) if row else None

    # -- journal -------------------------------------------------------------

    def upsert_journal_entry(self, user_id: str, date: str, content: str) -> dict:
        """Insert or replace the journal entry for a day."""
        self.conn.execute(
            "INSERT INTO journal_entries (user_id, date, content, updated_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(user_id, date) DO UPDATE SET content = excluded.content, "
            "updated_at = excluded.updated_at",
            (user_id, date, content, _now()),
        )
        self.conn.commit()
        return self.get_journal_entry(user_id, date)

    def get_journal_entry(self, user_id: str, date: str) -> dict | None:
        """Get the journal entry for a day."""
        row = self.conn.execute(
            "SELECT * FROM journal_entries WHERE user_id = ? AND date = ?", (user_id, date)
        ).fetchone()
        return dict(row) if row else None

    def list_journal_entries(self, user_id: str, limit: int = 30) -> list[dict]:
        """Most recent journal entries, newest date first."""
        rows = self.conn.execute(
            "SELECT * FROM journal_entries WHERE user_id = ? ORDER BY date DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [dict(row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

"""Request handlers for timebox.

Every function takes an open Database and the acting user id; the CLI and
the MCP server are thin callers. Input is validated here and rejected with
ValueError; unknown tasks raise TaskNotFound. Storage errors propagate.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict
from datetime import date

from timebox import analytics
from timebox.badges import compute_badges, get_newly_unlocked
from timebox.db import Database
from timebox.export import build_csv, build_json
from timebox.recurring import DEFAULT_RECURRING_DAYS, is_due
from timebox.streaks import StreakSnapshot, compute_streak

logger = logging.getLogger(__name__)

PRIORITIES = analytics.PRIORITIES
DEFAULT_COLOR = "#6366f1"
DEFAULT_CATEGORY = "work"
ANALYTICS_TYPES = ("daily", "weekly", "heatmap", "category")
EXPORT_FORMATS = ("csv", "json")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TaskNotFound(LookupError):
    """Raised when a task id does not exist for the acting user."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


def _today() -> str:
    return date.today().isoformat()


def validate_date(value: object, field: str = "date") -> str:
    """Return value if it is a real zero-padded YYYY-MM-DD date."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"{field} must be a YYYY-MM-DD date, got {value!r}")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{field} is not a calendar date: {value!r}") from None
    return value


def _validate_priority(priority: str) -> str:
    if priority not in PRIORITIES:
        raise ValueError(f"priority must be one of: {', '.join(PRIORITIES)}")
    return priority


def _validate_slot(hour: object, minute: object) -> None:
    if not isinstance(hour, int) or isinstance(hour, bool) or not 0 <= hour <= 23:
        raise ValueError(f"hour must be an integer 0-23, got {hour!r}")
    if (
        not isinstance(minute, int) or isinstance(minute, bool)
        or not 0 <= minute <= 55 or minute % 5
    ):
        raise ValueError(f"minute must be a multiple of 5 between 0 and 55, got {minute!r}")


def _validate_days(days: list[int]) -> list[int]:
    if any(not isinstance(d, int) or isinstance(d, bool) or not 0 <= d <= 6 for d in days):
        raise ValueError("recurring days must be weekday numbers 0 (Sun) to 6 (Sat)")
    return sorted(set(days))


# -- streaks and badges --------------------------------------------------


def refresh_streak(db: Database, user_id: str, today: str | None = None) -> StreakSnapshot:
    """Recompute the streak from completed blocks and cache it."""
    today = validate_date(today or _today(), "today")
    snapshot = compute_streak(db.get_active_dates(user_id), today)
    db.upsert_streak(user_id, snapshot)
    logger.info(
        "Streak for %s: current=%d longest=%d",
        user_id, snapshot.current_streak, snapshot.longest_streak,
    )
    return snapshot


def _badges_for(db: Database, user_id: str, snapshot: StreakSnapshot) -> list:
    return compute_badges(snapshot, db.count_completed_blocks(user_id), db.count_tasks(user_id))


def gamification_state(db: Database, user_id: str, today: str | None = None) -> dict:
    """Current streak, badges and completed block total for user_id."""
    snapshot = refresh_streak(db, user_id, today)
    completed_total = db.count_completed_blocks(user_id)
    badges = compute_badges(snapshot, completed_total, db.count_tasks(user_id))
    return {
        **asdict(snapshot),
        "badges": [asdict(b) for b in badges],
        "completed_blocks_total": completed_total,
    }


# -- time blocks ---------------------------------------------------------


def day_blocks(db: Database, user_id: str, day: str) -> list[dict]:
    return db.get_time_blocks(user_id, validate_date(day))


def save_blocks(db: Database, user_id: str, blocks: list[dict], today: str | None = None) -> dict:
    """Upsert time blocks; recompute the streak when completion state changes.

    blocks: dicts with date, hour, minute and optionally task_id and
    is_completed. All blocks are validated before anything is written, and
    they are written in a single transaction.
    """
    if not blocks:
        raise ValueError("no blocks given")
    cleaned: list[dict] = []
    for block in blocks:
        _validate_slot(block.get("hour"), block.get("minute"))
        item = {
            "date": validate_date(block.get("date")),
            "hour": block["hour"],
            "minute": block["minute"],
        }
        if "task_id" in block:
            task_id = block["task_id"]
            if task_id is not None and db.get_task(user_id, task_id) is None:
                raise TaskNotFound(task_id)
            item["task_id"] = task_id
        if "is_completed" in block:
            item["is_completed"] = bool(block["is_completed"])
        cleaned.append(item)

    touches_completion = any("is_completed" in b for b in cleaned)
    badges_before = []
    if touches_completion:
        badges_before = _badges_for(db, user_id, refresh_streak(db, user_id, today))

    saved = db.upsert_time_blocks(user_id, cleaned)
    result: dict = {"blocks": saved, "streak": None, "new_badges": []}
    if touches_completion:
        snapshot = refresh_streak(db, user_id, today)
        badges_after = _badges_for(db, user_id, snapshot)
        result["streak"] = asdict(snapshot)
        result["new_badges"] = [asdict(b) for b in get_newly_unlocked(badges_before, badges_after)]
    return result


def complete_block(
    db: Database, user_id: str, day: str, hour: int, minute: int,
    completed: bool = True, today: str | None = None,
) -> dict:
    """Mark one block complete (or not) and return the refreshed state."""
    return save_blocks(
        db, user_id, [{"date": day, "hour": hour, "minute": minute, "is_completed": completed}], today
    )


def assign_block(db: Database, user_id: str, day: str, hour: int, minute: int, task_id: str | None) -> dict:
    """Assign a block to a task, or clear it with task_id=None."""
    result = save_blocks(db, user_id, [{"date": day, "hour": hour, "minute": minute, "task_id": task_id}])
    return result["blocks"][0]


# -- tasks ---------------------------------------------------------------


def add_task(
    db: Database, user_id: str, title: str, day: str,
    priority: str = "medium", color: str | None = None, category: str | None = None,
) -> dict:
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")
    return db.create_task(
        user_id, title, validate_date(day),
        priority=_validate_priority(priority or "medium"),
        color=color or DEFAULT_COLOR,
        category=category or DEFAULT_CATEGORY,
    )


def resolve_task_id(db: Database, user_id: str, prefix: str) -> str:
    """Expand a unique id prefix (as shown by the CLI) to a full task id."""
    if not prefix:
        raise ValueError("task id is required")
    if db.get_task(user_id, prefix):
        return prefix
    matches = [t["id"] for t in db.list_tasks(user_id) if t["id"].startswith(prefix)]
    if not matches:
        raise TaskNotFound(prefix)
    if len(matches) > 1:
        raise ValueError(f"Task id prefix {prefix!r} is ambiguous")
    return matches[0]


def list_tasks(db: Database, user_id: str, day: str | None = None) -> list[dict]:
    return db.list_tasks(user_id, validate_date(day) if day else None)


def update_task(db: Database, user_id: str, task_id: str, **changes) -> dict:
    """Apply partial changes to a task. None values are ignored."""
    changes = {k: v for k, v in changes.items() if v is not None}
    if "title" in changes and not changes["title"].strip():
        raise ValueError("title cannot be empty")
    if "date" in changes:
        validate_date(changes["date"])
    if "priority" in changes:
        _validate_priority(changes["priority"])
    if "recurring_days" in changes:
        changes["recurring_days"] = _validate_days(changes["recurring_days"])
    task = db.update_task(user_id, task_id, **changes)
    if task is None:
        raise TaskNotFound(task_id)
    return task


def delete_task(db: Database, user_id: str, task_id: str) -> None:
    if not db.delete_task(user_id, task_id):
        raise TaskNotFound(task_id)


def add_recurring_task(
    db: Database, user_id: str, title: str,
    days: list[int] | None = None, priority: str = "medium",
    color: str | None = None, category: str | None = None, today: str | None = None,
) -> dict:
    """Create a recurring task template, dated today."""
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")
    return db.create_task(
        user_id, title, validate_date(today or _today(), "today"),
        priority=_validate_priority(priority or "medium"),
        color=color or DEFAULT_COLOR,
        category=category or DEFAULT_CATEGORY,
        is_recurring=True,
        recurring_days=_validate_days(days) if days is not None else list(DEFAULT_RECURRING_DAYS),
    )


def apply_recurring_tasks(db: Database, user_id: str, day: str) -> list[dict]:
    """Create the day's instances of every recurring template due on it.

    A template is skipped when a task with the same title already exists on
    that day, so applying twice creates nothing new.
    """
    validate_date(day)
    applied = []
    for template in db.list_recurring_tasks(user_id):
        if not is_due(template["recurring_days"], day):
            continue
        if db.find_task_by_title(user_id, template["title"], day):
            continue
        applied.append(db.create_task(
            user_id, template["title"], day,
            priority=template["priority"],
            color=template["color"],
            category=template["category"],
        ))
    if applied:
        logger.info("Applied %d recurring task(s) for %s on %s", len(applied), user_id, day)
    return applied


# -- journal -------------------------------------------------------------


def write_journal(db: Database, user_id: str, day: str, content: str | None) -> dict:
    return db.upsert_journal_entry(user_id, validate_date(day), content or "")


def read_journal(db: Database, user_id: str, day: str) -> dict | None:
    return db.get_journal_entry(user_id, validate_date(day))


def recent_journal(db: Database, user_id: str, limit: int = 30) -> list[dict]:
    return db.list_journal_entries(user_id, limit)


# -- analytics and export ------------------------------------------------


def get_analytics(db: Database, user_id: str, kind: str = "daily", day: str | None = None) -> dict:
    """Aggregate blocks and tasks for one of the analytics views."""
    if kind not in ANALYTICS_TYPES:
        raise ValueError(f"Invalid analytics type. Must be one of: {', '.join(ANALYTICS_TYPES)}")
    day = validate_date(day or _today())

    if kind == "daily":
        return analytics.daily_summary(
            day, db.get_time_blocks(user_id, day), db.list_tasks(user_id, day)
        )
    if kind == "weekly":
        week = analytics.get_week_dates(day)
        return analytics.weekly_summary(
            week,
            db.get_time_blocks_range(user_id, week[0], week[-1]),
            db.list_tasks_range(user_id, week[0], week[-1]),
        )
    if kind == "heatmap":
        start, end = analytics.get_heatmap_window(day)
        return analytics.heatmap(start, end, db.get_time_blocks_range(user_id, start, end))
    return analytics.category_breakdown(day, db.get_time_blocks(user_id, day))


def export_blocks(
    db: Database, user_id: str, fmt: str = "csv",
    start_date: str | None = None, end_date: str | None = None,
) -> str:
    """Render the user's blocks in a date range as CSV or JSON text."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Invalid export format. Must be one of: {', '.join(EXPORT_FORMATS)}")
    if start_date:
        validate_date(start_date, "from")
    if end_date:
        validate_date(end_date, "to")
    blocks = db.get_time_blocks_range(user_id, start_date, end_date)
    return build_csv(blocks) if fmt == "csv" else build_json(blocks)

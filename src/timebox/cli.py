"""CLI commands for timebox."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

from timebox import service
from timebox.badges import badge_stats, check_badges, get_closest_badges
from timebox.config import get_db_path, get_user_id, update_config
from timebox.db import DEFAULT_DB_PATH, Database
from timebox.display import (
    configure_logging,
    print_block_result,
    print_blocks,
    print_badges,
    print_categories,
    print_daily,
    print_dashboard,
    print_error,
    print_export_result,
    print_heatmap,
    print_journal_entry,
    print_journal_list,
    print_setup_result,
    print_streak,
    print_task_deleted,
    print_task_saved,
    print_tasks,
    print_weekly,
)
from timebox.export import default_export_name, write_export
from timebox.streaks import StreakSnapshot


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="timebox",
        description="Time-blocking planner with streaks and badges",
    )
    parser.add_argument("--db", default=None, help="Path to the SQLite database")
    parser.add_argument("--user", "-u", default=None, help="User id to act as")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("dashboard", help="Show today's summary and streak")
    subparsers.add_parser("streak", help="Recalculate and show the current streak")
    subparsers.add_parser("badges", help="List all badges with progress")

    task_parser = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task_parser.add_subparsers(dest="task_command")
    task_add_p = task_sub.add_parser("add", help="Create a task")
    task_add_p.add_argument("title")
    task_add_p.add_argument("--date", "-d", default=None, help="YYYY-MM-DD (default today)")
    task_add_p.add_argument("--priority", "-p", choices=service.PRIORITIES, default="medium")
    task_add_p.add_argument("--color", default=None)
    task_add_p.add_argument("--category", "-c", default=None)
    task_list_p = task_sub.add_parser("list", help="List tasks")
    task_list_p.add_argument("--date", "-d", default=None, help="Only tasks on this date")
    task_update_p = task_sub.add_parser("update", help="Edit a task")
    task_update_p.add_argument("task_id")
    task_update_p.add_argument("--title", default=None)
    task_update_p.add_argument("--date", "-d", default=None)
    task_update_p.add_argument("--priority", "-p", choices=service.PRIORITIES, default=None)
    task_update_p.add_argument("--color", default=None)
    task_update_p.add_argument("--category", "-c", default=None)
    task_delete_p = task_sub.add_parser("delete", help="Delete a task")
    task_delete_p.add_argument("task_id")

    block_parser = subparsers.add_parser("block", help="Manage time blocks")
    block_sub = block_parser.add_subparsers(dest="block_command")
    block_list_p = block_sub.add_parser("list", help="Show a day's blocks")
    block_list_p.add_argument("--date", "-d", default=None)
    block_assign_p = block_sub.add_parser("assign", help="Assign a block to a task")
    block_complete_p = block_sub.add_parser("complete", help="Mark a block complete")
    for p in (block_assign_p, block_complete_p):
        p.add_argument("--date", "-d", default=None)
        p.add_argument("--hour", type=int, required=True)
        p.add_argument("--minute", type=int, default=0)
    assign_target = block_assign_p.add_mutually_exclusive_group(required=True)
    assign_target.add_argument("--task", "-t", default=None, help="Task id or unique prefix")
    assign_target.add_argument("--clear", action="store_true", help="Unassign the block")
    block_complete_p.add_argument("--undo", action="store_true", help="Mark as not complete")

    rec_parser = subparsers.add_parser("recurring", help="Recurring task templates")
    rec_sub = rec_parser.add_subparsers(dest="recurring_command")
    rec_add_p = rec_sub.add_parser("add", help="Create a recurring template")
    rec_add_p.add_argument("title")
    rec_add_p.add_argument(
        "--days", type=int, nargs="*", default=None,
        help="Weekdays 0=Sun..6=Sat (default Mon-Fri; no values = every day)",
    )
    rec_add_p.add_argument("--priority", "-p", choices=service.PRIORITIES, default="medium")
    rec_add_p.add_argument("--color", default=None)
    rec_add_p.add_argument("--category", "-c", default=None)
    rec_apply_p = rec_sub.add_parser("apply", help="Create today's recurring tasks")
    rec_apply_p.add_argument("--date", "-d", default=None)
    rec_sub.add_parser("list", help="List recurring templates")

    journal_parser = subparsers.add_parser("journal", help="Daily journal")
    journal_sub = journal_parser.add_subparsers(dest="journal_command")
    journal_write_p = journal_sub.add_parser("write", help="Write the entry for a day")
    journal_write_p.add_argument("content")
    journal_write_p.add_argument("--date", "-d", default=None)
    journal_show_p = journal_sub.add_parser("show", help="Show one entry or the recent ones")
    journal_show_p.add_argument("--date", "-d", default=None)

    analytics_parser = subparsers.add_parser("analytics", help="Productivity analytics")
    analytics_parser.add_argument("--type", choices=service.ANALYTICS_TYPES, default="daily")
    analytics_parser.add_argument("--date", "-d", default=None)

    export_parser = subparsers.add_parser("export", help="Export time blocks")
    export_parser.add_argument("--format", "-f", choices=service.EXPORT_FORMATS, default="csv")
    export_parser.add_argument("--from", dest="start_date", default=None)
    export_parser.add_argument("--to", dest="end_date", default=None)
    export_parser.add_argument("--output", "-o", default=None, help="Output file path")

    setup_parser = subparsers.add_parser("setup", help="Save default user and database path")
    setup_parser.add_argument("--user", dest="setup_user", default=None)
    setup_parser.add_argument("--db", dest="setup_db", default=None)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    command = args.command or "dashboard"

    if command == "setup":
        do_setup(user_id=args.setup_user or args.user, db_path=args.setup_db or args.db)
        return

    user_id = args.user or get_user_id()
    db = Database(Path(args.db).expanduser() if args.db else get_db_path())

    try:
        if command == "dashboard":
            do_dashboard(db, user_id)
        elif command == "streak":
            do_streak(db, user_id)
        elif command == "badges":
            do_badges(db, user_id)
        elif command == "task":
            task_cmd = getattr(args, "task_command", None)
            if task_cmd == "add":
                do_task_add(
                    db, user_id, args.title, day=args.date, priority=args.priority,
                    color=args.color, category=args.category,
                )
            elif task_cmd == "update":
                do_task_update(
                    db, user_id, args.task_id, title=args.title, date=args.date,
                    priority=args.priority, color=args.color, category=args.category,
                )
            elif task_cmd == "delete":
                do_task_delete(db, user_id, args.task_id)
            else:
                do_task_list(db, user_id, day=getattr(args, "date", None))
        elif command == "block":
            block_cmd = getattr(args, "block_command", None)
            if block_cmd == "assign":
                do_block_assign(
                    db, user_id, args.date, args.hour, args.minute,
                    task=None if args.clear else args.task,
                )
            elif block_cmd == "complete":
                do_block_complete(db, user_id, args.date, args.hour, args.minute, undo=args.undo)
            else:
                do_block_list(db, user_id, day=getattr(args, "date", None))
        elif command == "recurring":
            rec_cmd = getattr(args, "recurring_command", None)
            if rec_cmd == "add":
                do_recurring_add(
                    db, user_id, args.title, days=args.days, priority=args.priority,
                    color=args.color, category=args.category,
                )
            elif rec_cmd == "apply":
                do_recurring_apply(db, user_id, day=args.date)
            else:
                do_recurring_list(db, user_id)
        elif command == "journal":
            journal_cmd = getattr(args, "journal_command", None)
            if journal_cmd == "write":
                do_journal_write(db, user_id, args.content, day=args.date)
            else:
                do_journal_show(db, user_id, day=getattr(args, "date", None))
        elif command == "analytics":
            do_analytics(db, user_id, kind=args.type, day=args.date)
        elif command == "export":
            do_export(
                db, user_id, fmt=args.format, start_date=args.start_date,
                end_date=args.end_date, output=args.output,
            )
    except (ValueError, service.TaskNotFound) as exc:
        print_error(str(exc))
        sys.exit(1)
    finally:
        db.close()


def _today() -> str:
    return date.today().isoformat()


def do_setup(user_id: str | None = None, db_path: str | None = None, config_path: Path | None = None) -> dict:
    """Persist the default user id and database path."""
    values: dict[str, str] = {}
    if user_id:
        values["user_id"] = user_id
    if db_path:
        values["db_path"] = str(Path(db_path).expanduser().resolve())
    config = update_config(config_path, **values)
    result = {
        "ok": True,
        "user_id": config.get("user_id") or get_user_id(config_path),
        "db_path": config.get("db_path") or str(DEFAULT_DB_PATH),
    }
    print_setup_result(result)
    return result


def do_streak(db: Database, user_id: str, today: str | None = None) -> dict:
    """Recalculate the streak from completed blocks and show it with badges."""
    state = service.gamification_state(db, user_id, today)
    print_streak(state)
    return state


def _badge_rows(db: Database, user_id: str, snapshot: StreakSnapshot) -> list[dict]:
    stats = badge_stats(snapshot, db.count_completed_blocks(user_id), db.count_tasks(user_id))
    rows = []
    for status in check_badges(stats):
        badge_def = status.definition
        rows.append({
            "id": badge_def.id,
            "label": badge_def.badge.label,
            "icon": badge_def.badge.icon,
            "description": badge_def.badge.description,
            "progress": status.progress,
            "unlocked": status.unlocked,
            "current": min(stats[badge_def.check_field], badge_def.threshold),
            "threshold": badge_def.threshold,
        })
    return rows


def do_badges(db: Database, user_id: str, today: str | None = None) -> list[dict]:
    """Show all badges with progress towards each threshold."""
    snapshot = service.refresh_streak(db, user_id, today)
    rows = _badge_rows(db, user_id, snapshot)
    print_badges(rows)
    return rows


def do_dashboard(db: Database, user_id: str, today: str | None = None) -> dict:
    """Show today's summary, streak, badges and the badges closest to unlocking."""
    today = today or _today()
    state = service.gamification_state(db, user_id, today)
    summary = service.get_analytics(db, user_id, "daily", today)
    snapshot = StreakSnapshot(
        current_streak=state["current_streak"],
        longest_streak=state["longest_streak"],
        last_active_date=state["last_active_date"],
    )
    stats = badge_stats(snapshot, state["completed_blocks_total"], db.count_tasks(user_id))
    closest = [
        {
            "label": s.definition.badge.label,
            "progress": s.progress,
            "current": stats[s.definition.check_field],
            "threshold": s.definition.threshold,
        }
        for s in get_closest_badges(check_badges(stats))
    ]
    data = {"summary": summary, "streak": state, "closest_badges": closest}
    print_dashboard(data)
    return data


def do_task_add(
    db: Database, user_id: str, title: str, day: str | None = None,
    priority: str = "medium", color: str | None = None, category: str | None = None,
) -> dict:
    task = service.add_task(
        db, user_id, title, day or _today(), priority=priority, color=color, category=category,
    )
    print_task_saved(task, "Added")
    return task


def do_task_list(db: Database, user_id: str, day: str | None = None) -> list[dict]:
    tasks = service.list_tasks(db, user_id, day)
    print_tasks(tasks)
    return tasks


def do_task_update(db: Database, user_id: str, task_id: str, **changes) -> dict:
    task_id = service.resolve_task_id(db, user_id, task_id)
    task = service.update_task(db, user_id, task_id, **changes)
    print_task_saved(task, "Updated")
    return task


def do_task_delete(db: Database, user_id: str, task_id: str) -> dict:
    task_id = service.resolve_task_id(db, user_id, task_id)
    service.delete_task(db, user_id, task_id)
    print_task_deleted(task_id)
    return {"ok": True, "deleted": task_id}


def do_block_list(db: Database, user_id: str, day: str | None = None) -> list[dict]:
    day = day or _today()
    blocks = service.day_blocks(db, user_id, day)
    print_blocks(day, blocks)
    return blocks


def do_block_assign(
    db: Database, user_id: str, day: str | None, hour: int, minute: int, task: str | None,
) -> dict:
    task_id = service.resolve_task_id(db, user_id, task) if task else None
    block = service.assign_block(db, user_id, day or _today(), hour, minute, task_id)
    print_block_result({"blocks": [block]})
    return block


def do_block_complete(
    db: Database, user_id: str, day: str | None, hour: int, minute: int,
    undo: bool = False, today: str | None = None,
) -> dict:
    result = service.complete_block(
        db, user_id, day or _today(), hour, minute, completed=not undo, today=today,
    )
    print_block_result(result)
    return result


def do_recurring_add(
    db: Database, user_id: str, title: str, days: list[int] | None = None,
    priority: str = "medium", color: str | None = None, category: str | None = None,
) -> dict:
    task = service.add_recurring_task(
        db, user_id, title, days=days, priority=priority, color=color, category=category,
    )
    print_task_saved(task, "Added recurring")
    return task


def do_recurring_apply(db: Database, user_id: str, day: str | None = None) -> list[dict]:
    applied = service.apply_recurring_tasks(db, user_id, day or _today())
    print_tasks(applied, title="Created tasks")
    return applied


def do_recurring_list(db: Database, user_id: str) -> list[dict]:
    templates = db.list_recurring_tasks(user_id)
    print_tasks(templates, title="Recurring tasks")
    return templates


def do_journal_write(db: Database, user_id: str, content: str, day: str | None = None) -> dict:
    entry = service.write_journal(db, user_id, day or _today(), content)
    print_journal_entry(entry)
    return entry


def do_journal_show(db: Database, user_id: str, day: str | None = None) -> dict | list[dict] | None:
    if day:
        entry = service.read_journal(db, user_id, day)
        print_journal_entry(entry, day)
        return entry
    entries = service.recent_journal(db, user_id)
    print_journal_list(entries)
    return entries


def do_analytics(db: Database, user_id: str, kind: str = "daily", day: str | None = None) -> dict:
    data = service.get_analytics(db, user_id, kind, day)
    printer = {
        "daily": print_daily,
        "weekly": print_weekly,
        "heatmap": print_heatmap,
        "category": print_categories,
    }[kind]
    printer(data)
    return data


def do_export(
    db: Database, user_id: str, fmt: str = "csv",
    start_date: str | None = None, end_date: str | None = None, output: str | None = None,
) -> dict:
    """Export blocks in a date range to a CSV or JSON file."""
    content = service.export_blocks(db, user_id, fmt, start_date, end_date)
    output_path = Path(output) if output else Path(default_export_name(start_date, fmt))
    write_export(content, output_path)
    rows = len(db.get_time_blocks_range(user_id, start_date, end_date))
    result = {"ok": True, "output": str(output_path.resolve()), "rows": rows}
    print_export_result(result)
    return result



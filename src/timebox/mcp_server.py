"""MCP server for timebox.

Exposes the planner as MCP tools so an assistant can read and update it
mid-conversation. Run via: python3 -m timebox.mcp_server
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from timebox import service
from timebox.badges import badge_stats, check_badges
from timebox.config import get_db_path, get_user_id
from timebox.db import Database


def create_server(db: Database, user_id: str) -> FastMCP:
    """Build a FastMCP server whose tools act on db as user_id."""
    mcp = FastMCP(name="timebox")

    @mcp.tool()
    def get_streak() -> dict[str, Any]:
        """Get the current and longest streak, last active date and earned badges."""
        return service.gamification_state(db, user_id)

    @mcp.tool()
    def get_badges() -> dict[str, Any]:
        """Get every badge with unlock status and progress."""
        snapshot = service.refresh_streak(db, user_id)
        stats = badge_stats(snapshot, db.count_completed_blocks(user_id), db.count_tasks(user_id))
        result = []
        for status in check_badges(stats):
            result.append({
                **asdict(status.definition.badge),
                "threshold": status.definition.threshold,
                "progress_pct": int(status.progress * 100),
                "unlocked": status.unlocked,
            })
        return {"badges": result, "unlocked_count": sum(1 for b in result if b["unlocked"]),
                "total_count": len(result)}

    @mcp.tool()
    def list_tasks(date: str = "") -> dict[str, Any]:
        """List tasks, optionally only those scheduled on date (YYYY-MM-DD)."""
        try:
            tasks = service.list_tasks(db, user_id, date or None)
        except ValueError as exc:
            return {"error": str(exc)}
        return {"tasks": tasks, "count": len(tasks)}

    @mcp.tool()
    def add_task(title: str, date: str, priority: str = "medium", category: str = "") -> dict[str, Any]:
        """Create a task on date (YYYY-MM-DD). Priority: low, medium, high or urgent."""
        try:
            return service.add_task(db, user_id, title, date, priority=priority, category=category or None)
        except ValueError as exc:
            return {"error": str(exc)}

    @mcp.tool()
    def complete_block(date: str, hour: int, minute: int = 0, completed: bool = True) -> dict[str, Any]:
        """Mark the time block at date/hour/minute complete and return the new streak."""
        try:
            return service.complete_block(db, user_id, date, hour, minute, completed=completed)
        except (ValueError, service.TaskNotFound) as exc:
            return {"error": str(exc)}

    @mcp.tool()
    def get_analytics(type: str = "daily", date: str = "") -> dict[str, Any]:
        """Get daily, weekly, heatmap or category analytics for date (default today)."""
        try:
            return service.get_analytics(db, user_id, type, date or None)
        except ValueError as exc:
            return {"error": str(exc)}

    @mcp.tool()
    def get_journal(date: str = "") -> dict[str, Any]:
        """Get the journal entry for date, or the 30 most recent entries."""
        try:
            if date:
                return {"entry": service.read_journal(db, user_id, date)}
            return {"entries": service.recent_journal(db, user_id)}
        except ValueError as exc:
            return {"error": str(exc)}

    return mcp


def main() -> None:
    db = Database(get_db_path())
    try:
        create_server(db, get_user_id()).run()
    finally:
        db.close()


if __name__ == "__main__":
    main()

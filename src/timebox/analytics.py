"""Analytics aggregation for timebox.

Pure functions that aggregate time block and task rows into summary dicts.
No side effects, no DB access - accepts raw rows as input.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from timebox.streaks import longest_run

PRIORITIES = ("low", "medium", "high", "urgent")

# Each completed block counts as five focused minutes regardless of its span.
FOCUS_MINUTES_PER_BLOCK = 5


def percent(part: int, whole: int) -> int:
    """Integer percentage, rounding halves up."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def get_week_dates(day: str) -> list[str]:
    """Return the Monday..Sunday ISO dates of the week containing day."""
    ref = date.fromisoformat(day)
    monday = ref - timedelta(days=ref.weekday())
    return [(monday + timedelta(days=i)).isoformat() for i in range(7)]


def get_heatmap_window(day: str) -> tuple[str, str]:
    """Return (start_date, end_date) covering the year that ends on day."""
    ref = date.fromisoformat(day)
    try:
        start = ref.replace(year=ref.year - 1)
    except ValueError:
        # Feb 29 rolls over to Mar 1 of the previous year
        start = date(ref.year - 1, 3, 1)
    return (start.isoformat(), ref.isoformat())


def _empty_priority_counts() -> dict[str, dict[str, int]]:
    return {p: {"total": 0, "completed": 0} for p in PRIORITIES}


def daily_summary(day: str, blocks: list[dict], tasks: list[dict]) -> dict:
    """Summarise one day's blocks and tasks."""
    total_blocks = len(blocks)
    completed = sum(1 for b in blocks if b.get("is_completed"))
    assigned = sum(1 for b in blocks if b.get("task_id"))
    completion_rate = percent(completed, max(assigned, 1)) if total_blocks > 0 else 0

    priority_counts = _empty_priority_counts()
    for block in blocks:
        priority = block.get("task_priority")
        if block.get("task_id") and priority in priority_counts:
            priority_counts[priority]["total"] += 1
            if block.get("is_completed"):
                priority_counts[priority]["completed"] += 1

    hourly: dict[int, dict[str, int]] = {}
    for block in blocks:
        slot = hourly.setdefault(block["hour"], {"assigned": 0, "completed": 0})
        if block.get("task_id"):
            slot["assigned"] += 1
        if block.get("is_completed"):
            slot["completed"] += 1

    return {
        "date": day,
        "total_tasks": len(tasks),
        "total_blocks": total_blocks,
        "assigned_blocks": assigned,
        "completed_blocks": completed,
        "completion_rate": completion_rate,
        "focus_minutes": completed * FOCUS_MINUTES_PER_BLOCK,
        "priority_counts": priority_counts,
        "hourly": dict(sorted(hourly.items())),
    }


def weekly_summary(week_dates: list[str], blocks: list[dict], tasks: list[dict]) -> dict:
    """Per-day stats for each date in week_dates."""
    daily_stats = []
    for day in week_dates:
        day_blocks = [b for b in blocks if b["date"] == day]
        assigned = sum(1 for b in day_blocks if b.get("task_id"))
        completed = sum(1 for b in day_blocks if b.get("is_completed"))
        daily_stats.append({
            "date": day,
            "total_tasks": sum(1 for t in tasks if t["date"] == day),
            "assigned_blocks": assigned,
            "completed_blocks": completed,
            "completion_rate": percent(completed, assigned),
            "focus_minutes": completed * FOCUS_MINUTES_PER_BLOCK,
        })

    return {
        "week_dates": week_dates,
        "daily_stats": daily_stats,
        "total_focus_minutes": sum(d["focus_minutes"] for d in daily_stats),
        "best_streak": period_streak(blocks),
    }


def heatmap(start_date: str, end_date: str, blocks: list[dict]) -> dict:
    """Per-day completed counts and completion rates, for days with any block."""
    day_map: dict[str, dict[str, int]] = {}
    for block in blocks:
        if not start_date <= block["date"] <= end_date:
            continue
        counts = day_map.setdefault(block["date"], {"assigned": 0, "completed": 0})
        if block.get("task_id"):
            counts["assigned"] += 1
        if block.get("is_completed"):
            counts["completed"] += 1

    cells = [
        {"date": d, "count": v["completed"], "rate": percent(v["completed"], v["assigned"])}
        for d, v in sorted(day_map.items())
    ]
    return {"heatmap": cells, "start_date": start_date, "end_date": end_date}


def category_breakdown(day: str, blocks: list[dict]) -> dict:
    """Assigned and completed block counts per task category."""
    categories: dict[str, dict[str, int]] = {}
    for block in blocks:
        category = block.get("task_category") or "uncategorized"
        counts = categories.setdefault(category, {"total": 0, "completed": 0})
        if block.get("task_id"):
            counts["total"] += 1
        if block.get("is_completed"):
            counts["completed"] += 1
    return {"date": day, "categories": categories}


def period_streak(blocks: list[dict]) -> int:
    """Longest run of consecutive days with a completed block in blocks."""
    return longest_run(b["date"] for b in blocks if b.get("is_completed"))

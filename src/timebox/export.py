"""Time block export for timebox.

Pure functions for rendering blocks as CSV or JSON, plus an atomic file write.
"""
from __future__ import annotations

import csv
import io
import json
import os
import tempfile
from pathlib import Path

CSV_HEADERS = ["Date", "Time", "Task", "Priority", "Category", "Completed"]


def format_hour(hour: int) -> str:
    """12-hour clock label: 0 -> '12am', 9 -> '9am', 12 -> '12pm', 15 -> '3pm'."""
    if hour == 0:
        return "12am"
    if hour < 12:
        return f"{hour}am"
    if hour == 12:
        return "12pm"
    return f"{hour - 12}pm"


def format_block_time(hour: int, minute: int) -> str:
    return f"{format_hour(hour)}:{minute:02d}"


def block_row(block: dict) -> list[str]:
    return [
        block["date"],
        format_block_time(block["hour"], block["minute"]),
        block.get("task_title") or "",
        block.get("task_priority") or "",
        block.get("task_category") or "",
        "Yes" if block.get("is_completed") else "No",
    ]


def build_csv(blocks: list[dict]) -> str:
    """Render blocks as CSV with every cell quoted, rows joined by newlines."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(block_row(b) for b in blocks)
    return buf.getvalue().rstrip("\n")


def build_json(blocks: list[dict]) -> str:
    return json.dumps(blocks, indent=2, ensure_ascii=False)


def default_export_name(start_date: str | None, fmt: str = "csv") -> str:
    return f"timebox-export-{start_date or 'all'}.{fmt}"


def write_export(content: str, output_path: Path) -> None:
    """Write export content to output_path using atomic write."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=output_path.parent, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.write("\n")
        os.replace(tmp_path, output_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

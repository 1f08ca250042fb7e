"""Rich terminal display for timebox."""

from __future__ import annotations

import logging

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from timebox.export import format_block_time, format_hour
from timebox.recurring import format_days

console = Console()

# Map task priorities to Rich color names
_PRIORITY_COLORS: dict[str, str] = {
    "low": "green",
    "medium": "slate_blue1",
    "high": "orange1",
    "urgent": "red1",
}


def configure_logging(verbose: bool = False) -> None:
    """Route log records through the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _priority_text(priority: str | None) -> str:
    if not priority:
        return ""
    color = _PRIORITY_COLORS.get(priority, "white")
    return f"[{color}]{priority}[/{color}]"


def _progress_bar(current: int, total: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/]")


def print_streak(state: dict) -> None:
    """Print streak numbers and earned badges."""
    lines: list[str] = []
    lines.append("")
    lines.append(
        f"  \U0001f525 Current streak: [bold orange1]{state.get('current_streak', 0)}[/] days"
    )
    lines.append(
        f"  \U0001f3c6 Longest streak: [bold gold1]{state.get('longest_streak', 0)}[/] days"
    )
    lines.append(f"  ✅ Total blocks:   {state.get('completed_blocks_total', 0)}")
    lines.append(f"  Last active:       {state.get('last_active_date') or 'never'}")

    badges = state.get("badges", [])
    lines.append("")
    if badges:
        lines.append(f"  [bold]Badges ({len(badges)}):[/]")
        for badge in badges:
            lines.append(f"  {badge['icon']} {badge['label']} ({badge['description']})")
    else:
        lines.append("  Complete time blocks to earn badges!")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]STREAK[/]",
        box=box.ROUNDED,
        border_style="orange1",
        width=56,
    )
    console.print(panel)


def print_dashboard(data: dict) -> None:
    """Print today's summary alongside the streak panel."""
    summary = data.get("summary", {})
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{summary.get('date', '')}[/]")
    completed = summary.get("completed_blocks", 0)
    assigned = summary.get("assigned_blocks", 0)
    lines.append(f"  {_progress_bar(completed, assigned)} {completed}/{assigned} blocks")
    lines.append(f"  Completion: {summary.get('completion_rate', 0)}%")
    lines.append(f"  Focus: {summary.get('focus_minutes', 0)} min")
    lines.append(f"  Tasks today: {summary.get('total_tasks', 0)}")

    closest = data.get("closest_badges", [])
    if closest:
        lines.append("")
        lines.append("  [bold]Almost There:[/]")
        for badge in closest:
            pct = int(badge.get("progress", 0.0) * 100)
            lines.append(
                f"  ⏳ {badge['label']}: {badge['current']}/{badge['threshold']} ({pct}%)"
            )
    lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]TIMEBOX[/]",
        box=box.ROUNDED,
        border_style="slate_blue1",
        width=56,
    ))
    print_streak(data.get("streak", {}))


def print_badges(badges: list[dict]) -> None:
    """Print every badge with progress.

    Each dict has: id, label, icon, description, progress (0.0-1.0),
    unlocked (bool), current (int), threshold (int).
    """
    table = Table(
        title="Badges",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("", width=2)
    table.add_column("Badge", min_width=20)
    table.add_column("Progress", min_width=18)

    unlocked = [b for b in badges if b.get("unlocked")]
    locked = sorted((b for b in badges if not b.get("unlocked")), key=lambda b: b.get("progress", 0), reverse=True)
    for badge in unlocked + locked:
        icon = badge["icon"] if badge.get("unlocked") else "⏳"
        name_text = f"[bold]{badge['label']}[/]\n{badge.get('description', '')}"
        bar = _progress_bar(badge.get("current", 0), badge.get("threshold", 0), width=10)
        progress_text = f"{bar} {int(badge.get('progress', 0.0) * 100)}%"
        table.add_row(icon, name_text, progress_text)

    console.print(table)


def print_tasks(tasks: list[dict], title: str = "Tasks") -> None:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date", width=10)
    table.add_column("Title", min_width=20)
    table.add_column("Priority")
    table.add_column("Category")
    table.add_column("Repeats")

    for task in tasks:
        repeats = format_days(task["recurring_days"]) if task.get("is_recurring") else ""
        table.add_row(
            task["id"][:8], task["date"], escape(task["title"]),
            _priority_text(task.get("priority")), escape(task.get("category") or ""), repeats,
        )

    if not tasks:
        console.print(f"[grey50]No {title.lower()} found.[/]")
        return
    console.print(table)


def print_task_saved(task: dict, verb: str = "Saved") -> None:
    console.print(f"[green]{verb}[/] {escape(task['title'])} [dim]({task['id']})[/] on {task['date']}")


def print_task_deleted(task_id: str) -> None:
    console.print(f"[green]Deleted[/] task [dim]{task_id}[/]")


def print_blocks(day: str, blocks: list[dict]) -> None:
    """Print one day's grid, one row per hour that has blocks."""
    table = Table(title=f"Time blocks {day}", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Time", justify="right")
    table.add_column("Task")
    table.add_column("Priority")
    table.add_column("Done", justify="center")

    for block in blocks:
        table.add_row(
            format_block_time(block["hour"], block["minute"]),
            escape(block.get("task_title") or "") or "[grey50]-[/]",
            _priority_text(block.get("task_priority")),
            "✅" if block.get("is_completed") else "",
        )

    if not blocks:
        console.print(f"[grey50]No time blocks on {day}.[/]")
        return
    console.print(table)


def print_block_result(result: dict) -> None:
    for block in result.get("blocks", []):
        state = "done" if block.get("is_completed") else "open"
        task = escape(block.get("task_title") or "unassigned")
        console.print(
            f"  {block['date']} {format_block_time(block['hour'], block['minute'])}  {task}  [{state}]"
        )
    streak = result.get("streak")
    if streak:
        console.print(f"  \U0001f525 Streak: {streak['current_streak']} days")
    for badge in result.get("new_badges", []):
        console.print(f"  [bold]New badge:[/] {badge['icon']} {badge['label']}")


def print_daily(data: dict) -> None:
    table = Table(title=f"Daily analytics {data['date']}", box=box.ROUNDED, header_style="bold")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Tasks", str(data["total_tasks"]))
    table.add_row("Blocks", str(data["total_blocks"]))
    table.add_row("Assigned", str(data["assigned_blocks"]))
    table.add_row("Completed", str(data["completed_blocks"]))
    table.add_row("Completion Rate", f"{data['completion_rate']}%")
    table.add_row("Focus Minutes", str(data["focus_minutes"]))

    table.add_section()
    table.add_row("[bold]By Priority[/]", "")
    for priority, counts in data["priority_counts"].items():
        table.add_row(f"  {_priority_text(priority)}", f"{counts['completed']}/{counts['total']}")

    if data["hourly"]:
        table.add_section()
        table.add_row("[bold]By Hour[/]", "")
        for hour, counts in data["hourly"].items():
            table.add_row(f"  {format_hour(hour)}", f"{counts['completed']}/{counts['assigned']}")

    console.print(table)


def print_weekly(data: dict) -> None:
    table = Table(title="Weekly analytics", box=box.ROUNDED, header_style="bold")
    table.add_column("Date")
    table.add_column("Tasks", justify="right")
    table.add_column("Done", justify="right")
    table.add_column("Rate", min_width=18)
    table.add_column("Focus", justify="right")
    for day in data["daily_stats"]:
        table.add_row(
            day["date"],
            str(day["total_tasks"]),
            f"{day['completed_blocks']}/{day['assigned_blocks']}",
            f"{_progress_bar(day['completion_rate'], 100, width=10)} {day['completion_rate']}%",
            f"{day['focus_minutes']} min",
        )
    console.print(table)
    console.print(
        f"  Total focus: {data['total_focus_minutes']} min  |  Best streak: {data['best_streak']} days"
    )


def print_heatmap(data: dict) -> None:
    cells = data["heatmap"]
    active = [c for c in cells if c["count"] > 0]
    lines = [
        "",
        f"  {data['start_date']} to {data['end_date']}",
        f"  Active days: {len(active)}",
        f"  Completed blocks: {sum(c['count'] for c in cells)}",
    ]
    if active:
        best = max(active, key=lambda c: c["count"])
        lines.append(f"  Busiest day: {best['date']} ({best['count']} blocks)")
    lines.append("")
    console.print(Panel(
        "\n".join(lines), title="[bold]Activity[/]", box=box.ROUNDED, border_style="green", width=56,
    ))


def print_categories(data: dict) -> None:
    table = Table(title=f"Categories {data['date']}", box=box.ROUNDED, header_style="bold")
    table.add_column("Category")
    table.add_column("Done", justify="right")
    for category, counts in sorted(data["categories"].items()):
        table.add_row(escape(category), f"{counts['completed']}/{counts['total']}")
    console.print(table)


def print_journal_entry(entry: dict | None, day: str | None = None) -> None:
    if entry is None:
        console.print(f"[grey50]No journal entry for {day}.[/]")
        return
    console.print(Panel(
        escape(entry["content"]) if entry["content"] else "[grey50](empty)[/]",
        title=f"[bold]Journal {entry['date']}[/]",
        box=box.ROUNDED,
        border_style="cyan",
        width=56,
    ))


def print_journal_list(entries: list[dict]) -> None:
    if not entries:
        console.print("[grey50]No journal entries yet.[/]")
        return
    table = Table(title="Recent journal", box=box.ROUNDED, header_style="bold")
    table.add_column("Date", width=10)
    table.add_column("Entry")
    for entry in entries:
        first_line = (entry["content"] or "").splitlines()[0] if entry["content"] else ""
        table.add_row(entry["date"], escape(first_line))
    console.print(table)


def print_export_result(result: dict) -> None:
    console.print(f"[green]Exported[/] {result['rows']} blocks to [bold]{escape(result['output'])}[/]")


def print_setup_result(result: dict) -> None:
    console.print(f"  User:     [bold]{escape(result['user_id'])}[/]")
    console.print(f"  Database: [bold]{escape(result['db_path'])}[/]")

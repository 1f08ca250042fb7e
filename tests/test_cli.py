"""Tests for CLI commands."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from rich.console import Console

from timebox import display
from timebox.cli import (
    build_parser,
    do_badges,
    do_block_assign,
    do_block_complete,
    do_block_list,
    do_dashboard,
    do_export,
    do_journal_show,
    do_journal_write,
    do_recurring_add,
    do_recurring_apply,
    do_setup,
    do_streak,
    do_task_add,
    do_task_delete,
    do_task_list,
    do_task_update,
    main,
)
from timebox.config import load_config
from timebox.db import Database

TODAY = "2024-06-10"


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


# ── Argument Parsing ──────────────────────────────────────────────────────────


class TestArgumentParsing:
    def test_no_args_defaults_to_none_command(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_global_options(self):
        args = build_parser().parse_args(["--db", "x.db", "-u", "alice", "-v", "streak"])
        assert (args.db, args.user, args.verbose, args.command) == ("x.db", "alice", True, "streak")

    def test_task_add(self):
        args = build_parser().parse_args(["task", "add", "Write report", "-p", "high", "-d", TODAY])
        assert args.task_command == "add"
        assert args.title == "Write report"
        assert args.priority == "high"
        assert args.date == TODAY

    def test_task_add_rejects_priority(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["task", "add", "x", "-p", "critical"])

    def test_block_complete_requires_hour(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["block", "complete"])

    def test_block_assign_needs_task_or_clear(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["block", "assign", "--hour", "9"])
        args = build_parser().parse_args(["block", "assign", "--hour", "9", "--clear"])
        assert args.clear is True
        assert args.minute == 0

    def test_recurring_days(self):
        args = build_parser().parse_args(["recurring", "add", "Standup", "--days", "1", "3"])
        assert args.days == [1, 3]
        assert build_parser().parse_args(["recurring", "add", "Standup", "--days"]).days == []
        assert build_parser().parse_args(["recurring", "add", "Standup"]).days is None

    def test_recurring_list(self):
        assert build_parser().parse_args(["recurring", "list"]).recurring_command == "list"

    def test_export_range(self):
        args = build_parser().parse_args(["export", "-f", "json", "--from", "2024-06-01", "--to", TODAY])
        assert (args.format, args.start_date, args.end_date) == ("json", "2024-06-01", TODAY)

    def test_analytics_type(self):
        assert build_parser().parse_args(["analytics", "--type", "weekly"]).type == "weekly"
        with pytest.raises(SystemExit):
            build_parser().parse_args(["analytics", "--type", "monthly"])

    def test_invalid_command_raises(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["nonexistent"])


# ── Commands ──────────────────────────────────────────────────────────────────


class TestStreakCommands:
    def test_empty_db(self, db):
        state = do_streak(db, "u1", today=TODAY)
        assert state["current_streak"] == 0
        assert state["badges"] == []

    def test_streak_after_completion(self, db):
        do_block_complete(db, "u1", "2024-06-09", 9, 0, today=TODAY)
        do_block_complete(db, "u1", TODAY, 9, 0, today=TODAY)
        state = do_streak(db, "u1", today=TODAY)
        assert state["current_streak"] == 2
        assert [b["id"] for b in state["badges"]] == ["first_day"]

    def test_badges_lists_all(self, db):
        rows = do_badges(db, "u1", today=TODAY)
        assert len(rows) == 8
        assert not any(r["unlocked"] for r in rows)
        assert all(r["current"] == 0 for r in rows)

    def test_badges_progress(self, db):
        do_block_complete(db, "u1", TODAY, 9, 0, today=TODAY)
        rows = {r["id"]: r for r in do_badges(db, "u1", today=TODAY)}
        assert rows["first_day"]["unlocked"] is True
        assert rows["blocks_10"]["current"] == 1
        assert rows["blocks_10"]["threshold"] == 10

    def test_dashboard(self, db):
        do_block_complete(db, "u1", TODAY, 9, 0, today=TODAY)
        data = do_dashboard(db, "u1", today=TODAY)
        assert data["summary"]["date"] == TODAY
        assert data["streak"]["current_streak"] == 1
        assert len(data["closest_badges"]) <= 3
        assert all(b["label"] != "First Day" for b in data["closest_badges"])


class TestTaskCommands:
    def test_add_update_delete_by_prefix(self, db):
        task = do_task_add(db, "u1", "Write report", day=TODAY)
        prefix = task["id"][:8]
        updated = do_task_update(db, "u1", prefix, title="Write summary")
        assert updated["title"] == "Write summary"
        result = do_task_delete(db, "u1", prefix)
        assert result == {"ok": True, "deleted": task["id"]}
        assert db.get_task("u1", task["id"]) is None


class TestBlockCommands:
    def test_assign_then_list(self, db):
        task = do_task_add(db, "u1", "Write report", day=TODAY)
        do_block_assign(db, "u1", TODAY, 9, 5, task["id"][:8])
        blocks = do_block_list(db, "u1", day=TODAY)
        assert [(b["hour"], b["minute"], b["task_title"]) for b in blocks] == [(9, 5, "Write report")]

    def test_clear_assignment(self, db):
        task = do_task_add(db, "u1", "Write report", day=TODAY)
        do_block_assign(db, "u1", TODAY, 9, 0, task["id"])
        assert do_block_assign(db, "u1", TODAY, 9, 0, None)["task_id"] is None

    def test_undo(self, db):
        do_block_complete(db, "u1", TODAY, 9, 0, today=TODAY)
        result = do_block_complete(db, "u1", TODAY, 9, 0, undo=True, today=TODAY)
        assert result["blocks"][0]["is_completed"] is False
        assert result["streak"]["current_streak"] == 0


class TestRecurringAndJournal:
    def test_recurring_apply(self, db):
        do_recurring_add(db, "u1", "Standup", days=[])
        created = do_recurring_apply(db, "u1", day="2030-01-01")
        assert [t["title"] for t in created] == ["Standup"]

    def test_journal(self, db):
        do_journal_write(db, "u1", "Good day", day=TODAY)
        assert do_journal_show(db, "u1", day=TODAY)["content"] == "Good day"
        assert [e["date"] for e in do_journal_show(db, "u1")] == [TODAY]

    def test_journal_missing_day(self, db):
        assert do_journal_show(db, "u1", day="2024-01-01") is None


class TestExportCommand:
    def test_writes_file(self, db, tmp_path):
        do_block_complete(db, "u1", TODAY, 9, 0, today=TODAY)
        output = tmp_path / "out.json"
        result = do_export(db, "u1", fmt="json", output=str(output))
        assert result["rows"] == 1
        assert json.loads(output.read_text())[0]["date"] == TODAY


class TestSetupCommand:
    def test_stores_user_and_db(self, tmp_path):
        config_path = tmp_path / "config.json"
        result = do_setup(user_id="alice", db_path=str(tmp_path / "t.db"), config_path=config_path)
        assert result["user_id"] == "alice"
        config = load_config(config_path)
        assert config["user_id"] == "alice"
        assert config["db_path"] == str((tmp_path / "t.db").resolve())


class TestMain:
    def test_runs_task_add(self, tmp_path):
        db_path = tmp_path / "main.db"
        main(["--db", str(db_path), "-u", "u1", "task", "add", "Write report", "-d", TODAY])
        database = Database(db_path=db_path)
        try:
            assert [t["title"] for t in database.list_tasks("u1")] == ["Write report"]
        finally:
            database.close()

    def test_invalid_input_exits_nonzero(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(tmp_path / "main.db"), "-u", "u1", "task", "add", "x", "-d", "June 10"])
        assert exc_info.value.code == 1

    def test_unknown_task_exits_nonzero(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(tmp_path / "main.db"), "-u", "u1", "task", "delete", "nope"])
        assert exc_info.value.code == 1

    @patch("timebox.cli.do_setup")
    def test_setup_uses_global_flags(self, mock_setup):
        main(["--user", "alice", "--db", "/data/t.db", "setup"])
        mock_setup.assert_called_once_with(user_id="alice", db_path="/data/t.db")

    @patch("timebox.cli.do_setup")
    def test_setup_flags_win_over_global(self, mock_setup):
        main(["--user", "alice", "setup", "--user", "bob"])
        mock_setup.assert_called_once_with(user_id="bob", db_path=None)


class TestBracketText:
    @pytest.fixture(autouse=True)
    def wide_console(self, monkeypatch):
        monkeypatch.setattr(display, "console", Console(width=200))

    def test_task_titles_print_literally(self, db, capsys):
        do_task_add(db, "u1", "fix [/] parser", day=TODAY)
        db.create_task("u1", "[bold]plan[/bold]", TODAY)
        out = capsys.readouterr().out
        assert "fix [/] parser" in out
        do_task_list(db, "u1", day=TODAY)
        out = capsys.readouterr().out
        assert "fix [/] parser" in out
        assert "[bold]plan[/bold]" in out

    def test_block_titles_print_literally(self, db, capsys):
        task = do_task_add(db, "u1", "[red]x[/red]", day=TODAY)
        do_block_assign(db, "u1", TODAY, 9, 0, task["id"])
        do_block_list(db, "u1", day=TODAY)
        assert "[red]x[/red]" in capsys.readouterr().out

    def test_journal_prints_literally(self, db, capsys):
        do_journal_write(db, "u1", "tried a[/]b notation", day=TODAY)
        assert "tried a[/]b notation" in capsys.readouterr().out
        do_journal_write(db, "u1", "[bold]x[/bold]", day="2024-06-09")
        do_journal_show(db, "u1")
        out = capsys.readouterr().out
        assert "tried a[/]b notation" in out
        assert "[bold]x[/bold]" in out

    def test_error_message_prints_literally(self, capsys):
        display.print_error("bad date '[/]'")
        assert "bad date '[/]'" in capsys.readouterr().out

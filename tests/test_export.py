import json

from timebox.export import (
    build_csv,
    build_json,
    default_export_name,
    format_block_time,
    format_hour,
    write_export,
)


def _block(**overrides):
    block = {
        "date": "2026-01-05", "hour": 9, "minute": 5, "task_id": "t1", "is_completed": True,
        "task_title": "Write report", "task_priority": "high", "task_category": "work",
        "task_color": "#6366f1",
    }
    block.update(overrides)
    return block


class TestFormatHour:
    def test_midnight(self):
        assert format_hour(0) == "12am"

    def test_morning(self):
        assert format_hour(9) == "9am"

    def test_noon(self):
        assert format_hour(12) == "12pm"

    def test_evening(self):
        assert format_hour(23) == "11pm"

    def test_block_time_pads_minute(self):
        assert format_block_time(14, 5) == "2pm:05"


class TestBuildCsv:
    def test_header_only(self):
        assert build_csv([]) == '"Date","Time","Task","Priority","Category","Completed"'

    def test_row(self):
        lines = build_csv([_block()]).split("\n")
        assert lines[1] == '"2026-01-05","9am:05","Write report","high","work","Yes"'

    def test_unassigned_block(self):
        block = _block(task_id=None, task_title=None, task_priority=None, task_category=None,
                       is_completed=False)
        assert build_csv([block]).split("\n")[1] == '"2026-01-05","9am:05","","","","No"'

    def test_quotes_doubled(self):
        line = build_csv([_block(task_title='Read "Deep Work", ch. 2')]).split("\n")[1]
        assert '"Read ""Deep Work"", ch. 2"' in line

    def test_no_trailing_newline(self):
        assert not build_csv([_block(), _block(minute=10)]).endswith("\n")


class TestBuildJson:
    def test_roundtrip(self):
        assert json.loads(build_json([_block()]))[0]["task_title"] == "Write report"


class TestExportFile:
    def test_default_name(self):
        assert default_export_name("2026-01-01") == "timebox-export-2026-01-01.csv"
        assert default_export_name(None) == "timebox-export-all.csv"
        assert default_export_name(None, "json") == "timebox-export-all.json"

    def test_write_creates_parents(self, tmp_path):
        path = tmp_path / "out" / "export.csv"
        write_export("a,b", path)
        assert path.read_text(encoding="utf-8") == "a,b\n"
        assert list(path.parent.glob("*.tmp")) == []

    def test_write_overwrites(self, tmp_path):
        path = tmp_path / "export.csv"
        write_export("first", path)
        write_export("second", path)
        assert path.read_text(encoding="utf-8") == "second\n"

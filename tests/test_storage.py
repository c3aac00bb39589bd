"""Tests for report persistence."""

import json
import os
import re
from datetime import datetime, timedelta, timezone

import pytest

from copilot_admin.storage import format_report_timestamp, persist_report, report_filename

WHEN = datetime(2026, 2, 10, 12, 30, 45, 123456, tzinfo=timezone.utc)


class TestFilename:
    def test_timestamp_has_no_colons_or_dots(self):
        assert format_report_timestamp(WHEN) == "2026-02-10T12-30-45-123Z"

    def test_converts_to_utc(self):
        local = WHEN.astimezone(timezone(timedelta(hours=2)))
        assert format_report_timestamp(local) == "2026-02-10T12-30-45-123Z"

    def test_naive_treated_as_utc(self):
        assert format_report_timestamp(WHEN.replace(tzinfo=None)) == "2026-02-10T12-30-45-123Z"

    def test_metrics_filename_pattern(self):
        name = report_filename("copilot-metrics", "Acme", WHEN)
        assert re.fullmatch(r"copilot-metrics-Acme-[0-9T\-]+Z\.json", name)
        assert ":" not in name
        assert name.count(".") == 1

    def test_sortable(self):
        earlier = report_filename("p", "Acme", WHEN - timedelta(milliseconds=1))
        assert earlier < report_filename("p", "Acme", WHEN)


class TestPersistReport:
    def test_creates_directory_and_writes_json(self, tmp_path):
        out = tmp_path / "nested" / "reports"
        path = persist_report({"organization": "Acme", "n": 1}, "Acme", out, when=WHEN)
        assert path == out / "copilot-metrics-Acme-2026-02-10T12-30-45-123Z.json"
        assert json.loads(path.read_text()) == {"organization": "Acme", "n": 1}

    def test_existing_directory_ok(self, tmp_path):
        persist_report({}, "Acme", tmp_path, when=WHEN)
        path = persist_report({}, "Acme", tmp_path, prefix="policy-overview", when=WHEN)
        assert path.name.startswith("policy-overview-Acme-")
        assert len(list(tmp_path.iterdir())) == 2

    def test_default_directory_is_cwd_reports(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = persist_report({}, "Acme", when=WHEN)
        assert path.parent == tmp_path / "reports"

    def test_serializes_datetimes(self, tmp_path):
        path = persist_report({"at": WHEN}, "Acme", tmp_path, when=WHEN)
        assert json.loads(path.read_text())["at"].startswith("2026-02-10 12:30:45")

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0,
                        reason="permission bits are not enforced")
    def test_write_failure_propagates(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(OSError):
                persist_report({}, "Acme", locked, when=WHEN)
        finally:
            locked.chmod(0o700)

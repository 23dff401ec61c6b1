"""End-to-end tests for the sessions CLI."""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from sessions.__main__ import main

from tests.fixtures import capture_output, run_module, session_record, temp_sessions_file


class CLITestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        env = {
            "CREDENTIALS": os.path.join(self._tmp.name, "credentials.ini"),
            "XDG_CONFIG_HOME": self._tmp.name,
            "HOME": self._tmp.name,
            "SESSIONS_TIMEZONE": "America/New_York",
            "SESSIONS_UPCOMING_LIMIT": "5",
        }
        patcher = patch.dict(os.environ, env)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_cli(self, *argv):
        with capture_output() as (out, err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()


class TestExpandCommand(CLITestCase):

    def test_text_output(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli("expand", "--file", path)
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "Session s-1:")
        self.assertEqual(lines[1], "  Mon, 1 Jan 2024 - 3:00 PM")
        self.assertEqual(lines[-1], "  Wed, 31 Jan 2024 - 3:00 PM")
        self.assertEqual(len(lines), 11)

    def test_json_output(self):
        with temp_sessions_file([session_record(cancel="2024-01-15")]) as path:
            code, out, _ = self.run_cli("expand", "-f", path, "-o", "json")
        self.assertEqual(code, 0)
        rows = json.loads(out)
        self.assertEqual(len(rows), 9)
        self.assertNotIn("2024-01-15", [r["date"] for r in rows])
        self.assertEqual(rows[0]["start"], "2024-01-01T15:00:00-05:00")

    def test_select_by_id(self):
        records = [session_record(), session_record(sessionid="s-2", daysofweek="fri")]
        with temp_sessions_file(records) as path:
            code, out, _ = self.run_cli("expand", "-f", path, "--id", "s-2")
        self.assertEqual(code, 0)
        self.assertNotIn("Session s-1:", out)
        self.assertIn("  Fri, 5 Jan 2024 - 3:00 PM", out)

    def test_unknown_id(self):
        with temp_sessions_file([session_record()]) as path:
            code, _, err = self.run_cli("expand", "-f", path, "--id", "nope")
        self.assertEqual(code, 6)
        self.assertIn("Session not found: nope", err)

    def test_missing_file(self):
        code, _, err = self.run_cli("expand", "-f", os.path.join(self._tmp.name, "none.yaml"))
        self.assertEqual(code, 6)
        self.assertIn("Sessions file not found", err)

    def test_timezone_flag(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli("expand", "-f", path, "--tz", "UTC")
        self.assertEqual(code, 0)
        self.assertIn("  Mon, 1 Jan 2024 - 3:00 PM", out)

    def test_unknown_timezone(self):
        with temp_sessions_file([session_record()]) as path:
            code, _, err = self.run_cli("expand", "-f", path, "--tz", "Nowhere/Land")
        self.assertEqual(code, 3)
        self.assertIn("Unknown timezone", err)


class TestUpcomingAndToday(CLITestCase):

    def test_upcoming(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli(
                "upcoming", "-f", path, "--now", "2024-01-09T12:00", "--limit", "2")
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), [
            "Session s-1:",
            "  Wed, 10 Jan 2024 - 3:00 PM",
            "  Mon, 15 Jan 2024 - 3:00 PM",
        ])

    def test_upcoming_after_end(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli("upcoming", "-f", path, "--now", "2024-03-01T00:00")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "No upcoming practices.")

    def test_upcoming_bad_now(self):
        with temp_sessions_file([session_record()]) as path:
            code, _, err = self.run_cli("upcoming", "-f", path, "--now", "tomorrow")
        self.assertEqual(code, 2)
        self.assertIn("Invalid --now value", err)

    def test_upcoming_limit_must_be_positive(self):
        with temp_sessions_file([session_record()]) as path:
            code, _, err = self.run_cli("upcoming", "-f", path, "--limit", "0")
        self.assertEqual(code, 2)
        self.assertIn("--limit must be positive", err)

    def test_today(self):
        records = [session_record(), session_record(sessionid="s-2", starttime="09:00", endtime="10:00")]
        with temp_sessions_file(records) as path:
            code, out, _ = self.run_cli("today", "-f", path, "--now", "2024-01-03T15:00")
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), [
            "9:00 AM - 10:00 AM  [completed]  session s-2",
            "3:00 PM - 4:30 PM  [active]  session s-1",
        ])

    def test_today_nothing_scheduled(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli("today", "-f", path, "--now", "2024-01-02T12:00")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "No practices today.")


class TestCheckCommand(CLITestCase):

    def test_valid(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli("check", "-f", path)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "Session s-1: ok")

    def test_invalid(self):
        records = [session_record(), session_record(sessionid="bad", enddate="2023-12-01")]
        with temp_sessions_file(records) as path:
            code, out, _ = self.run_cli("check", "-f", path)
        self.assertEqual(code, 1)
        self.assertIn("Session bad: invalid", out)
        self.assertIn("  - End date must be after start date", out)

    def test_unquoted_yaml_days(self):
        path = Path(self._tmp.name) / "sessions.yaml"
        path.write_text(
            "sessions:\n"
            "  - sessionid: s-1\n"
            "    startdate: 2024-01-01\n"
            "    starttime: 15:00\n"
            "    endtime: 16:00\n"
            "    daysofweek: 1\n"
            "  - sessionid: s-2\n"
            "    startdate: 2024-01-01\n"
            "    starttime: 15:00\n"
            "    endtime: 16:00\n"
            "    daysofweek: 3.5\n",
            encoding="utf-8",
        )
        code, out, _ = self.run_cli("check", "-f", str(path))
        self.assertEqual(code, 1)
        self.assertIn("Session s-1: ok", out)
        self.assertIn("Session s-2: invalid", out)
        self.assertIn("  - Select at least one valid day of the week", out)


class TestCancelDateCommand(CLITestCase):

    def _write(self, text):
        path = Path(self._tmp.name) / "sessions.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_dry_run_leaves_file(self):
        with temp_sessions_file([session_record()]) as path:
            before = Path(path).read_text(encoding="utf-8")
            code, out, _ = self.run_cli("cancel-date", "-f", path, "--id", "s-1", "--date", "2024-01-15")
            self.assertEqual(Path(path).read_text(encoding="utf-8"), before)
        self.assertEqual(code, 0)
        self.assertIn("[dry-run] Would cancel 2024-01-15 for session s-1 (use --apply)", out)
        self.assertIn("Cancelled dates: 2024-01-15", out)

    def test_apply_and_restore(self):
        with temp_sessions_file([session_record()]) as path:
            code, out, _ = self.run_cli(
                "cancel-date", "-f", path, "--id", "s-1", "--date", "2024-01-15", "--apply")
            self.assertEqual(code, 0)
            self.assertIn("Cancelled 2024-01-15 for session s-1", out)
            saved = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
            self.assertEqual(json.loads(saved["sessions"][0]["cancel"]), ["2024-01-15"])

            _, out, _ = self.run_cli(
                "cancel-date", "-f", path, "--id", "s-1", "--date", "2024-01-15", "--apply")
            self.assertIn("already cancelled", out)

            code, out, _ = self.run_cli(
                "cancel-date", "-f", path, "--id", "s-1", "--date", "2024-01-15", "--restore", "--apply")
            self.assertEqual(code, 0)
            self.assertIn("Restored 2024-01-15", out)
            saved = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
            self.assertNotIn("cancel", saved["sessions"][0])

    def test_apply_keeps_unquoted_times(self):
        path = self._write(
            "sessions:\n"
            "  - sessionid: s-9\n"
            "    startdate: 2024-01-01\n"
            "    enddate: 2024-01-31\n"
            "    starttime: 18:00\n"
            "    endtime: 19:30\n"
            "    daysofweek: tue\n"
        )
        code, _, _ = self.run_cli("cancel-date", "-f", str(path), "--id", "s-9", "--date", "2024-01-09", "--apply")
        self.assertEqual(code, 0)
        record = yaml.safe_load(path.read_text(encoding="utf-8"))["sessions"][0]
        self.assertEqual(record["starttime"], "18:00")
        self.assertEqual(record["endtime"], "19:30")

    def test_unknown_session(self):
        with temp_sessions_file([session_record()]) as path:
            code, _, err = self.run_cli("cancel-date", "-f", path, "--id", "x", "--date", "2024-01-15")
        self.assertEqual(code, 6)
        self.assertIn("Session not found: x", err)


class TestDaysCommands(CLITestCase):

    def test_parse(self):
        code, out, _ = self.run_cli("days", "parse", "Mon, miércoles")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "monday,wednesday")

    def test_parse_json(self):
        code, out, _ = self.run_cli("days", "parse", "sun, 1", "-o", "json")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"indexes": [0, 6], "days": ["monday", "sunday"]})

    def test_parse_invalid(self):
        code, _, err = self.run_cli("days", "parse", "mon, someday")
        self.assertEqual(code, 2)
        self.assertIn("someday", err)

    def test_validate(self):
        self.assertEqual(self.run_cli("days", "validate", "lunes, martes")[:2], (0, "valid\n"))
        self.assertEqual(self.run_cli("days", "validate", "mon,,tue")[:2], (1, "invalid\n"))

    def test_format(self):
        self.assertEqual(self.run_cli("days", "format", "wed,mon")[1].strip(), "Mon, Wed")
        self.assertEqual(self.run_cli("days", "format", "wed,mon", "--locale", "es")[1].strip(), "Lun, Mié")


class TestModuleInvocation(unittest.TestCase):

    def test_help(self):
        proc = run_module("--help")
        self.assertEqual(proc.returncode, 0)
        for name in ("expand", "upcoming", "today", "check", "cancel-date", "days"):
            self.assertIn(name, proc.stdout)


if __name__ == "__main__":
    unittest.main()

"""Shared test fixtures and utilities.

Common helpers for the sessions test suite: temp YAML files, stdout/stderr
capture, and a subprocess runner for module invocation.
"""

from __future__ import annotations

import datetime as _dt
import io
import os
import subprocess
import sys
import tempfile
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]


# -----------------------------------------------------------------------------
# Path helpers
# -----------------------------------------------------------------------------


def repo_root() -> Path:
    return REPO_ROOT


def run(cmd: Sequence[str], cwd: Optional[str] = None, env: Optional[Dict[str, str]] = None):
    return subprocess.run(  # noqa: S603
        cmd, cwd=cwd or str(REPO_ROOT), env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
    )


def run_module(*args: str):
    """Run ``python -m sessions ...`` from the repo root."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
    return run([sys.executable, "-m", "sessions", *args], env=env)


# -----------------------------------------------------------------------------
# YAML helpers
# -----------------------------------------------------------------------------


def write_yaml(data: Any, dir: Optional[str] = None, filename: str = "sessions.yaml") -> str:
    """Write data to a YAML file in ``dir`` (a new temp dir by default)."""
    td = dir or tempfile.mkdtemp()
    p = os.path.join(td, filename)
    with open(p, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False, allow_unicode=True)
    return p


@contextmanager
def temp_sessions_file(records: List[Dict[str, Any]]):
    """Yield a path to a temporary ``sessions:`` YAML file."""
    with tempfile.TemporaryDirectory() as td:
        yield write_yaml({"sessions": records}, dir=td)


# -----------------------------------------------------------------------------
# Output capture helpers
# -----------------------------------------------------------------------------


@contextmanager
def capture_stdout():
    buf = io.StringIO()
    with redirect_stdout(buf):
        yield buf


@contextmanager
def capture_output():
    """Capture both streams; yields (stdout, stderr) buffers."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        yield out, err


# -----------------------------------------------------------------------------
# Sample data
# -----------------------------------------------------------------------------


def session_record(**overrides: Any) -> Dict[str, Any]:
    """A database-shaped session row; January 2024, Mon/Wed 15:00-16:30."""
    record: Dict[str, Any] = {
        "sessionid": "s-1",
        "startdate": "2024-01-01",
        "enddate": "2024-01-31",
        "starttime": "15:00",
        "endtime": "16:30",
        "daysofweek": "monday,wednesday",
        "repeat": "weekly",
        "cancel": None,
    }
    record.update(overrides)
    return record


def jan(day: int) -> _dt.date:
    return _dt.date(2024, 1, day)

"""Shared constants used across the schedule tooling.

Config search paths, date/time formats and display defaults live here so
the library and the CLI agree on them.
"""

from __future__ import annotations

import os

# -----------------------------------------------------------------------------
# Config paths
# -----------------------------------------------------------------------------

def _config_roots() -> list[str]:
    """Return ordered list of config root directories."""
    roots: list[str] = []
    env_cfg = os.environ.get("CREDENTIALS")
    if env_cfg:
        roots.append(os.path.expanduser(os.path.dirname(env_cfg)))
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        roots.append(os.path.expanduser(xdg))
    roots.append(os.path.expanduser("~/.config"))
    return roots


def credential_ini_paths() -> list[str]:
    """Return ordered list of credentials.ini paths to search.

    The ``[sessions]`` section of the first file that defines a key wins.
    """
    paths: list[str] = []

    env_creds = os.environ.get("CREDENTIALS")
    if env_creds:
        paths.append(os.path.expanduser(env_creds))

    for root in _config_roots():
        paths.append(os.path.join(root, "credentials.ini"))
        paths.append(os.path.join(root, "disciplinerift", "credentials.ini"))

    seen: set[str] = set()
    unique: list[str] = []
    for p in paths:
        if p and p not in seen:
            seen.add(p)
            unique.append(p)
    return unique


# -----------------------------------------------------------------------------
# Date and time formats
# -----------------------------------------------------------------------------

FMT_YMD = "%Y%m%d"


# -----------------------------------------------------------------------------
# Display defaults
# -----------------------------------------------------------------------------

# Practices are scheduled and shown in Eastern time unless configured otherwise
DEFAULT_DISPLAY_TZ = "America/New_York"

# The session drawer lists this many upcoming practices
DEFAULT_UPCOMING_LIMIT = 5

DEFAULT_REPEAT = "weekly"

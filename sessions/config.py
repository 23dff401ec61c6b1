"""Display settings: timezone and upcoming-list length.

Resolution order: explicit argument > environment > credentials.ini
``[sessions]`` / ``[sessions.<profile>]`` section > built-in defaults.
"""
from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.cli_errors import ConfigError
from core.constants import DEFAULT_DISPLAY_TZ, DEFAULT_UPCOMING_LIMIT, credential_ini_paths

LOG = logging.getLogger(__name__)

_SECTION = "sessions"
ENV_TIMEZONE = "SESSIONS_TIMEZONE"
ENV_UPCOMING_LIMIT = "SESSIONS_UPCOMING_LIMIT"


@dataclass(frozen=True)
class ScheduleSettings:
    timezone: str = DEFAULT_DISPLAY_TZ
    upcoming_limit: int = DEFAULT_UPCOMING_LIMIT

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _read_ini(profile: Optional[str]) -> Dict[str, str]:
    """Merge ``[sessions]`` then ``[sessions.<profile>]`` across INI paths.

    Earlier paths win for a given key; the profile section overrides the base.
    """
    base: Dict[str, str] = {}
    prof: Dict[str, str] = {}
    for p in credential_ini_paths():
        if not os.path.exists(p):
            continue
        cp = configparser.ConfigParser()
        try:
            cp.read(p, encoding="utf-8")
        except configparser.Error as exc:
            raise ConfigError(f"Cannot read {p}: {exc}") from exc
        if cp.has_section(_SECTION):
            for k, v in cp.items(_SECTION):
                base.setdefault(k, v)
        if profile and cp.has_section(f"{_SECTION}.{profile}"):
            for k, v in cp.items(f"{_SECTION}.{profile}"):
                prof.setdefault(k, v)
        LOG.debug("Read settings from %s", p)
    base.update(prof)
    return base


def _check_zone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {name}", hint="Use an IANA name like America/New_York") from exc
    return name


def _check_limit(value: object) -> int:
    try:
        limit = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"Invalid upcoming limit: {value}") from None
    if limit <= 0:
        raise ConfigError(f"Upcoming limit must be positive: {value}")
    return limit


def load_settings(
    profile: Optional[str] = None,
    *,
    timezone: Optional[str] = None,
    upcoming_limit: Optional[int] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ScheduleSettings:
    """Resolve display settings for the CLI and library callers."""
    env = os.environ if env is None else env
    ini = _read_ini(profile)

    tz = timezone or env.get(ENV_TIMEZONE) or ini.get("timezone") or DEFAULT_DISPLAY_TZ
    limit_raw = (
        upcoming_limit
        if upcoming_limit is not None
        else env.get(ENV_UPCOMING_LIMIT) or ini.get("upcoming_limit") or DEFAULT_UPCOMING_LIMIT
    )
    settings = ScheduleSettings(timezone=_check_zone(tz.strip()), upcoming_limit=_check_limit(limit_raw))
    LOG.debug("Settings resolved: %s", settings)
    return settings

"""CLI output formatting utilities.

Renders command results as text, JSON, YAML or an aligned table.
"""
from __future__ import annotations

import datetime as _dt
import json
import sys
from dataclasses import dataclass, asdict, is_dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Sequence, TextIO

import yaml


class OutputFormat(str, Enum):
    """Output format options."""
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False
    quiet: bool = False
    file: Optional[TextIO] = None

    @property
    def stream(self) -> TextIO:
        return self.file or sys.stdout


class OutputWriter:
    """Handles formatted output for CLI commands."""

    def __init__(self, config: Optional[OutputConfig] = None):
        self.config = config or OutputConfig()

    @property
    def structured(self) -> bool:
        """True when the caller asked for machine-readable output."""
        return self.config.format in (OutputFormat.JSON, OutputFormat.YAML)

    def print(self, *args, **kwargs) -> None:
        if self.config.quiet:
            return
        kwargs.setdefault("file", self.config.stream)
        print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    def print_hint(self, message: str) -> None:
        print(f"Hint: {message}", file=sys.stderr)

    def print_dry_run(self, message: str) -> None:
        self.print(f"[dry-run] {message}")

    def print_data(self, data: Any, headers: Optional[List[str]] = None) -> None:
        """Print data in the configured format."""
        fmt = self.config.format
        if fmt == OutputFormat.JSON:
            self._print_json(data)
        elif fmt == OutputFormat.YAML:
            self._print_yaml(data)
        elif fmt == OutputFormat.TABLE:
            self._print_table(data, headers)
        else:
            self._print_text(data)

    def print_list(self, items: Sequence[Any], *, bullet: str = "-", indent: int = 0) -> None:
        if self.structured:
            self.print_data(list(items))
            return
        prefix = " " * indent
        for item in items:
            self.print(f"{prefix}{bullet} {item}")

    def print_dict(self, data: Dict[str, Any], *, separator: str = ": ", indent: int = 0) -> None:
        if self.structured:
            self.print_data(data)
            return
        prefix = " " * indent
        for key, value in data.items():
            self.print(f"{prefix}{key}{separator}{value}")

    def _print_json(self, data: Any) -> None:
        normalized = self._normalize(data)
        self.print(json.dumps(normalized, indent=2, default=str, ensure_ascii=False))

    def _print_yaml(self, data: Any) -> None:
        normalized = self._normalize(data)
        self.print(
            yaml.safe_dump(normalized, default_flow_style=False, sort_keys=False, allow_unicode=True),
            end="",
        )

    def _print_table(self, data: Any, headers: Optional[List[str]] = None) -> None:
        rows = [self._normalize(r) for r in self._to_rows(data)]
        if not rows:
            return
        if headers is None and isinstance(rows[0], dict):
            headers = list(rows[0].keys())
        if not headers:
            for row in rows:
                self.print(" | ".join(str(v) for v in row) if isinstance(row, (list, tuple)) else str(row))
            return

        str_rows = [self._row_to_strings(row, headers) for row in rows]
        widths = [len(h) for h in headers]
        for str_row in str_rows:
            for i, val in enumerate(str_row[: len(widths)]):
                widths[i] = max(widths[i], len(val))

        header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
        self.print(header_line)
        self.print("-" * len(header_line))
        for str_row in str_rows:
            self.print(" | ".join(v.ljust(widths[i]) for i, v in enumerate(str_row)).rstrip())

    @staticmethod
    def _row_to_strings(row: Any, headers: List[str]) -> List[str]:
        if isinstance(row, dict):
            return [str(row.get(h, "")) for h in headers]
        if isinstance(row, (list, tuple)):
            return [str(v) for v in row]
        return [str(row)]

    def _print_text(self, data: Any) -> None:
        if isinstance(data, str):
            self.print(data)
        elif isinstance(data, dict):
            self.print_dict(data)
        elif isinstance(data, (list, tuple)):
            for item in data:
                self.print(item)
        elif is_dataclass(data) and not isinstance(data, type):
            self.print_dict(asdict(data))
        else:
            self.print(str(data))

    def _normalize(self, data: Any) -> Any:
        """Reduce dataclasses, enums, dates and paths to JSON/YAML-safe values."""
        if is_dataclass(data) and not isinstance(data, type):
            return self._normalize(asdict(data))
        if isinstance(data, dict):
            return {k: self._normalize(v) for k, v in data.items()}
        if isinstance(data, (list, tuple, set, frozenset)):
            items = sorted(data) if isinstance(data, (set, frozenset)) else data
            return [self._normalize(v) for v in items]
        if isinstance(data, Enum):
            return data.value
        if isinstance(data, (_dt.date, _dt.datetime)):
            return data.isoformat()
        if isinstance(data, PurePath):
            return str(data)
        return data

    @staticmethod
    def _to_rows(data: Any) -> List[Any]:
        if isinstance(data, (list, tuple)):
            return list(data)
        return [data]

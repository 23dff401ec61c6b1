"""Shared YAML read/write helpers for session files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

__all__ = ["load_config", "dump_config", "load_records", "extract_records"]


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML file into a dict; returns {} if missing/empty."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = yaml.safe_load(text)
    if data is None:
        return {}
    # Non-mapping roots are handed back unchanged; callers decide
    return data  # type: ignore[return-value]


def load_records(path: str, key: str = "sessions") -> List[Dict[str, Any]]:
    """Load a list of mapping records from a YAML file."""
    return extract_records(load_config(path), key)


def extract_records(data: Any, key: str = "sessions") -> List[Dict[str, Any]]:
    """Return the record mappings held by a loaded YAML document.

    Accepts either ``{key: [...]}``, a bare top-level list, or a single
    mapping (treated as one record). The returned dicts are the document's
    own objects, so editing them edits the document.
    """
    if isinstance(data, dict) and key in data:
        data = data.get(key) or []
    elif isinstance(data, dict):
        data = [data] if data else []
    if not isinstance(data, list):
        raise ValueError(f"Invalid file: '{key}' must be a list")
    records: List[Dict[str, Any]] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Invalid file: {key}[{i}] must be a mapping")
        records.append(item)
    return records


def dump_config(path: str, data: Any) -> None:
    """Write a dict (or list) to YAML with stable ordering for humans."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
    )

"""
report.py — Render a diff result for audit logs and terminals.

A diff result is plain nested data; nothing here changes it.
"""
from __future__ import annotations

import json
from typing import Any

from recdiff.core.diff import CHANGE_TYPE, DELETED, MODIFIED, NEW, DiffResult


def _is_entry_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(v, dict) and CHANGE_TYPE in v for v in value)
    )


def _change_marker(change_type: str | None) -> str:
    if change_type == NEW:
        return "+"
    if change_type == DELETED:
        return "-"
    return "~"


def summarise(result: DiffResult) -> dict[str, int]:
    """Count changes at every depth of *result*.

    Returns:
        ``{"fields_changed", "new", "modified", "deleted"}`` totals.
        Identities of new entries and fields of deleted snapshots are not
        counted as changed fields.
    """
    counts = {"fields_changed": 0, NEW: 0, MODIFIED: 0, DELETED: 0}

    def walk(level: DiffResult, count_fields: bool) -> None:
        for key, value in level.items():
            if key == CHANGE_TYPE:
                continue
            if _is_entry_list(value):
                for entry in value:
                    change_type = entry[CHANGE_TYPE]
                    counts[change_type] = counts.get(change_type, 0) + 1
                    walk(entry, count_fields and change_type == MODIFIED)
            elif count_fields:
                counts["fields_changed"] += 1

    walk(result, True)
    return counts


def as_json(result: DiffResult, indent: int | None = 2) -> str:
    """Serialise *result* to JSON; dates and other scalars fall back to ``str``."""
    return json.dumps(result, indent=indent, default=str)


def as_text_report(result: DiffResult, title: str = "Record Diff Report") -> str:
    """Human-readable multi-line report of *result*."""
    lines: list[str] = [title, "=" * 60]

    if not result:
        lines.append("")
        lines.append("No differences.")
        return "\n".join(lines)

    lines.append("")
    lines.append("Summary:")
    for key, val in summarise(result).items():
        lines.append(f"  {key}: {val}")

    lines.append("")
    lines.append("Changes:")
    _render_level(result, lines, depth=1)
    return "\n".join(lines)


def _render_level(level: DiffResult, lines: list[str], depth: int) -> None:
    pad = "  " * depth
    for key, value in level.items():
        if key == CHANGE_TYPE:
            continue
        if _is_entry_list(value):
            lines.append(f"{pad}{key}:")
            for entry in value:
                change_type = entry.get(CHANGE_TYPE)
                lines.append(f"{pad}  {_change_marker(change_type)} {change_type}")
                _render_level(entry, lines, depth + 2)
        else:
            lines.append(f"{pad}{key}: {value!r}")

"""
Console pane view models.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from codeplayer.domain import LogKind, LogRecord

EMPTY_CONSOLE_TEXT = "No console output yet..."

_STYLES: Dict[LogKind, Dict[str, str]] = {
    LogKind.ERROR: {"icon": "❌", "css_class": "log-error"},
    LogKind.WARN: {"icon": "⚠️", "css_class": "log-warn"},
    LogKind.INFO: {"icon": "ℹ️", "css_class": "log-info"},
    LogKind.LOG: {"icon": "📝", "css_class": "log-log"},
}


def present_record(record: LogRecord) -> Dict[str, Any]:
    style = _STYLES.get(record.kind, _STYLES[LogKind.LOG])
    view = record.to_dict()
    view.update(style)
    return view


def present(records: Iterable[LogRecord]) -> Dict[str, Any]:
    items: List[Dict[str, Any]] = [present_record(r) for r in records]
    return {
        "records": items,
        "count": len(items),
        "placeholder": EMPTY_CONSOLE_TEXT if not items else None,
    }

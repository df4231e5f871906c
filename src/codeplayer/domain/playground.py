"""
Playground domain types: source buffers, execution requests and log records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class LogKind(str, Enum):
    LOG = "log"
    WARN = "warn"
    ERROR = "error"
    INFO = "info"

    @classmethod
    def parse(cls, value: Any) -> Optional["LogKind"]:
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class SourceBundle:
    """Immutable snapshot of the three editor buffers."""

    markup: str = ""
    styles: str = ""
    script: str = ""

    @classmethod
    def of(
        cls,
        markup: Optional[str] = None,
        styles: Optional[str] = None,
        script: Optional[str] = None,
    ) -> "SourceBundle":
        return cls(markup=markup or "", styles=styles or "", script=script or "")

    def to_dict(self) -> Dict[str, str]:
        return {"html": self.markup, "css": self.styles, "js": self.script}


@dataclass
class SourceBuffers:
    """
    Mutable editor buffers owned by one editing session.

    ``update`` only touches the buffers that are given and reports whether
    anything actually changed.
    """

    markup: str = ""
    styles: str = ""
    script: str = ""

    def update(
        self,
        markup: Optional[str] = None,
        styles: Optional[str] = None,
        script: Optional[str] = None,
    ) -> bool:
        changed = False
        if markup is not None and markup != self.markup:
            self.markup = markup
            changed = True
        if styles is not None and styles != self.styles:
            self.styles = styles
            changed = True
        if script is not None and script != self.script:
            self.script = script
            changed = True
        return changed

    def snapshot(self) -> SourceBundle:
        return SourceBundle(markup=self.markup, styles=self.styles, script=self.script)


@dataclass(frozen=True)
class ExecutionRequest:
    sources: SourceBundle
    capture_console: bool
    execution_id: int


def display_time(ts: Optional[datetime] = None) -> str:
    return (ts or datetime.now()).strftime("%H:%M:%S")


@dataclass(frozen=True)
class LogRecord:
    kind: LogKind
    message: str
    execution_id: int
    timestamp: str = field(default_factory=display_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "execution_id": self.execution_id,
        }

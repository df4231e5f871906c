from .playground import (
    ExecutionRequest,
    LogKind,
    LogRecord,
    SourceBuffers,
    SourceBundle,
    display_time,
)

__all__ = [
    "ExecutionRequest",
    "LogKind",
    "LogRecord",
    "SourceBuffers",
    "SourceBundle",
    "display_time",
]

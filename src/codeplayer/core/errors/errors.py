"""
Unified errors for the playground, graded by severity so callers can degrade
(retry, drop, or surface) instead of crashing the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ErrorSeverity(Enum):
    WARNING = "warning"      # recoverable, usually retried or dropped
    ERROR = "error"          # the request fails
    CRITICAL = "critical"    # the service cannot continue


@dataclass
class CodePlayerError(Exception):
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    code: str = "UNKNOWN"
    context: Dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


@dataclass
class SandboxNotReadyError(CodePlayerError):
    code: str = "SANDBOX_NOT_READY"
    severity: ErrorSeverity = ErrorSeverity.WARNING


@dataclass
class RelayMessageError(CodePlayerError):
    code: str = "RELAY_MESSAGE"
    severity: ErrorSeverity = ErrorSeverity.WARNING


@dataclass
class SessionNotFoundError(CodePlayerError):
    code: str = "SESSION_NOT_FOUND"


@dataclass
class SnippetNotFoundError(CodePlayerError):
    code: str = "SNIPPET_NOT_FOUND"


@dataclass
class SlugGenerationError(CodePlayerError):
    code: str = "SLUG_GENERATION"


@dataclass
class EmailQuotaError(CodePlayerError):
    code: str = "EMAIL_QUOTA"


@dataclass
class MailDeliveryError(CodePlayerError):
    code: str = "MAIL_DELIVERY"


@dataclass
class ConfigError(CodePlayerError):
    code: str = "CONFIG_ERROR"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL

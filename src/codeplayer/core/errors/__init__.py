"""
Unified error module.
"""

from .errors import (
    ErrorSeverity,
    CodePlayerError,
    SandboxNotReadyError,
    RelayMessageError,
    SessionNotFoundError,
    SnippetNotFoundError,
    SlugGenerationError,
    EmailQuotaError,
    MailDeliveryError,
    ConfigError,
)

__all__ = [
    "ErrorSeverity",
    "CodePlayerError",
    "SandboxNotReadyError",
    "RelayMessageError",
    "SessionNotFoundError",
    "SnippetNotFoundError",
    "SlugGenerationError",
    "EmailQuotaError",
    "MailDeliveryError",
    "ConfigError",
]

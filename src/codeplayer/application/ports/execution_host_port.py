from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ExecutionHostPort(Protocol):
    """
    Isolated execution host.

    ``render`` replaces the whole sandbox document (clean slate, nothing
    carried over from the previous run). Implementations raise
    ``SandboxNotReadyError`` while the sandbox cannot accept a document yet.
    """

    def is_ready(self) -> bool:
        """Whether a render issued now would land."""

    def render(self, document: str) -> None:
        """Replace the sandbox content with ``document``."""

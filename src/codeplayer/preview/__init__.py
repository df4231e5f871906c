"""
Sandboxed live-preview pipeline.

Components:
- composer: builds the preview document from markup, styles and script
- shim: console interception injected into the sandbox
- host: isolated execution hosts and the bounded render retry
- relay: sandbox -> host console message channel
- controller: execution identity, run/clear, console accumulation
- session: per-editor wiring and the session registry
"""

from codeplayer.preview.composer import compose, compose_document, compose_static
from codeplayer.preview.controller import ControllerState, ExecutionController
from codeplayer.preview.host import (
    FrameExecutionHost,
    InMemoryExecutionHost,
    render_with_retry,
)
from codeplayer.preview.relay import RelayChannel, RelayMessage
from codeplayer.preview.session import PlaygroundSession, SessionRegistry

__all__ = [
    # Composer
    "compose",
    "compose_document",
    "compose_static",
    # Controller
    "ControllerState",
    "ExecutionController",
    # Host
    "FrameExecutionHost",
    "InMemoryExecutionHost",
    "render_with_retry",
    # Relay
    "RelayChannel",
    "RelayMessage",
    # Sessions
    "PlaygroundSession",
    "SessionRegistry",
]

# codeplayer/__init__.py
"""
Code Player - HTML/CSS/JavaScript playground

- Three editors (markup, styles, script) with a live sandboxed preview
- Console capture relayed from the sandbox on explicit runs
- Save/share snippets under short slugs
- Project download and preview email
"""

from __future__ import annotations

__version__ = "1.0.0"
__author__ = "Code Player Team"


# Lazy imports keep `import codeplayer` light (no FastAPI/SQLAlchemy).
def __getattr__(name: str):
    if name == "create_app":
        from codeplayer.api.main import create_app
        return create_app
    if name == "ExecutionController":
        from codeplayer.preview.controller import ExecutionController
        return ExecutionController
    if name == "PlaygroundSession":
        from codeplayer.preview.session import PlaygroundSession
        return PlaygroundSession
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "create_app",
    "ExecutionController",
    "PlaygroundSession",
]

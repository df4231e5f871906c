"""
Console interception shim injected ahead of the user script.

The shim wraps ``console.log/warn/error/info`` inside the sandbox. The wrapped
function always calls the original; when capture is on it also serialises the
arguments and posts ``{type, logType, executionId, message}`` to the parent
window. ``shouldCapture`` and ``executionId`` are baked in as literals because
the sandbox cannot read host state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from codeplayer.domain import LogKind

CONSOLE_MESSAGE_TYPE = "console"
CAPTURED_KINDS: Tuple[str, ...] = tuple(kind.value for kind in LogKind)

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Documents carry raw user code, so autoescaping stays off here.
template_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    undefined=StrictUndefined,
)


def render_shim(should_capture: bool, execution_id: int) -> str:
    template = template_env.get_template("shim.js.j2")
    return template.render(
        should_capture=bool(should_capture),
        execution_id=int(execution_id),
        message_type=CONSOLE_MESSAGE_TYPE,
        kinds=list(CAPTURED_KINDS),
    )

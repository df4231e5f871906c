"""
Document Composer - serialises the three editor buffers into one document.

Layout of a composed document:
- styles in a ``<style>`` block in the head
- the console shim in a ``<script>`` block in the head
- markup in the body
- the user script after the markup, so DOM lookups resolve

Malformed markup, CSS or script is never rejected here; the sandbox parses
leniently and reports script errors through the shim.
"""

from __future__ import annotations

from codeplayer.domain import ExecutionRequest, SourceBundle
from codeplayer.preview.shim import render_shim, template_env

# Execution id embedded by silent runs; their shim never posts, so it is inert.
SILENT_EXECUTION_ID = 0

BLANK_DOCUMENT = "<!DOCTYPE html><html><head></head><body></body></html>"


def compose_document(
    sources: SourceBundle,
    *,
    capture_console: bool,
    execution_id: int,
) -> str:
    template = template_env.get_template("document.html.j2")
    return template.render(
        styles=sources.styles or "",
        markup=sources.markup or "",
        script=sources.script or "",
        shim=render_shim(capture_console, execution_id),
    )


def compose(request: ExecutionRequest) -> str:
    return compose_document(
        request.sources,
        capture_console=request.capture_console,
        execution_id=request.execution_id,
    )


def compose_static(sources: SourceBundle) -> str:
    """Shim-free document for email previews and exported projects."""
    template = template_env.get_template("static.html.j2")
    return template.render(
        styles=sources.styles or "",
        markup=sources.markup or "",
        script=sources.script or "",
    )

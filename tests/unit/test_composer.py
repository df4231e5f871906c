from __future__ import annotations

from codeplayer.domain import ExecutionRequest, SourceBundle
from codeplayer.preview.composer import SILENT_EXECUTION_ID, compose, compose_document, compose_static
from codeplayer.preview.shim import CAPTURED_KINDS, render_shim


def _sources() -> SourceBundle:
    return SourceBundle.of(
        '<div id="app"></div>',
        "body { color: red; }",
        'document.getElementById("app").textContent = "ok";',
    )


def test_compose_is_deterministic_apart_from_execution_id():
    a = compose_document(_sources(), capture_console=True, execution_id=3)
    b = compose_document(_sources(), capture_console=True, execution_id=3)
    c = compose_document(_sources(), capture_console=True, execution_id=4)

    assert a == b
    assert a != c
    assert a.replace("var executionId = 3;", "var executionId = 4;") == c


def test_compose_places_styles_shim_markup_then_script():
    doc = compose_document(_sources(), capture_console=False, execution_id=0)

    style_at = doc.index("body { color: red; }")
    shim_at = doc.index("var shouldCapture")
    markup_at = doc.index('<div id="app"></div>')
    script_at = doc.index('document.getElementById("app")')

    assert style_at < doc.index("</head>")
    assert shim_at < doc.index("</head>")
    assert markup_at < script_at


def test_compose_empty_buffers_is_well_formed():
    doc = compose_document(SourceBundle(), capture_console=False, execution_id=SILENT_EXECUTION_ID)

    assert doc.startswith("<!DOCTYPE html>")
    assert "<style></style>" in doc
    assert doc.rstrip().endswith("</html>")


def test_compose_keeps_malformed_input_verbatim():
    sources = SourceBundle.of("<div><span>unclosed", "body {", "function (")
    doc = compose_document(sources, capture_console=True, execution_id=1)

    assert "<div><span>unclosed" in doc
    assert "body {" in doc
    assert "function (" in doc


def test_compose_request_matches_compose_document():
    request = ExecutionRequest(sources=_sources(), capture_console=True, execution_id=9)
    assert compose(request) == compose_document(_sources(), capture_console=True, execution_id=9)


def test_shim_embeds_literals():
    capturing = render_shim(True, 7)
    silent = render_shim(False, 0)

    assert "var shouldCapture = true;" in capturing
    assert "var executionId = 7;" in capturing
    assert "var shouldCapture = false;" in silent
    assert "var executionId = 0;" in silent
    for kind in CAPTURED_KINDS:
        assert f'"{kind}"' in capturing
    assert 'type: "console"' in capturing


def test_static_document_has_no_shim():
    doc = compose_static(_sources())

    assert "postMessage" not in doc
    assert "body { color: red; }" in doc
    assert doc.index('<div id="app"></div>') < doc.index('document.getElementById("app")')

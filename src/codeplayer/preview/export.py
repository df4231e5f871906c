"""
Export the editor buffers as a small static project (index.html, styles.css,
script.js), zipped for download.
"""

from __future__ import annotations

import io
import re
import zipfile
from typing import Dict

from codeplayer.domain import SourceBundle

_HTML_TAG = re.compile(r"<html[^>]*>", re.IGNORECASE)
_HEAD_TAG = re.compile(r"<head[^>]*>", re.IGNORECASE)
_BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)
_HTML_CLOSE = re.compile(r"</html>", re.IGNORECASE)
_CSS_LINK = re.compile(r"<link[^>]*styles\.css", re.IGNORECASE)
_JS_SCRIPT = re.compile(r"<script[^>]*script\.js", re.IGNORECASE)

STYLESHEET_LINK = '<link rel="stylesheet" href="styles.css">'
SCRIPT_TAG = '<script src="script.js"></script>'


def _wrap_fragment(sources: SourceBundle) -> str:
    head = f"\n    {STYLESHEET_LINK}" if sources.styles else ""
    script = f"\n    {SCRIPT_TAG}" if sources.script else ""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '    <meta charset="utf-8">'
        f"{head}\n"
        "</head>\n"
        "<body>\n"
        f"{sources.markup}"
        f"{script}\n"
        "</body>\n"
        "</html>\n"
    )


def _inject_links(sources: SourceBundle) -> str:
    html = sources.markup
    if sources.styles and not _CSS_LINK.search(html):
        if _HEAD_TAG.search(html):
            html = _HEAD_TAG.sub(lambda m: f"{m.group(0)}\n    {STYLESHEET_LINK}", html, count=1)
        else:
            html = _HTML_TAG.sub(
                lambda m: f"{m.group(0)}\n<head>\n    {STYLESHEET_LINK}\n</head>", html, count=1
            )
    if sources.script and not _JS_SCRIPT.search(html):
        if _BODY_CLOSE.search(html):
            html = _BODY_CLOSE.sub(lambda m: f"    {SCRIPT_TAG}\n{m.group(0)}", html, count=1)
        else:
            html = _HTML_CLOSE.sub(lambda m: f"<body>\n    {SCRIPT_TAG}\n</body>\n{m.group(0)}", html, count=1)
    return html


def build_index_html(sources: SourceBundle) -> str:
    """Full document for the markup; a full ``<html>`` document is kept and linked up."""
    if _HTML_TAG.search(sources.markup):
        return _inject_links(sources)
    return _wrap_fragment(sources)


def project_files(sources: SourceBundle) -> Dict[str, str]:
    files = {"index.html": build_index_html(sources)}
    if sources.styles:
        files["styles.css"] = sources.styles
    if sources.script:
        files["script.js"] = sources.script
    return files


def make_zip_bytes(sources: SourceBundle) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in project_files(sources).items():
            zf.writestr(name, content)
    return buf.getvalue()

from __future__ import annotations

import io
import time
import zipfile

import pytest
from fastapi.testclient import TestClient

from codeplayer.api.main import create_app
from codeplayer.config import AppConfig, PreviewConfig, StorageConfig

ALICE = {"X-Playground-User": "alice"}
BOB = {"X-Playground-User": "bob"}


@pytest.fixture
def client(tmp_path):
    config = AppConfig(
        preview=PreviewConfig(
            render_delay=0,
            run_start_delay=0,
            settle_delay=0,
            not_ready_delay=0.001,
            error_delay=0,
            max_render_attempts=2,
        ),
        storage=StorageConfig(db_url=f"sqlite:///{tmp_path / 'codeplayer_e2e.db'}"),
    )
    with TestClient(create_app(config)) as c:
        yield c


def _wait_for_logs(client: TestClient, session_id: str, count: int, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        logs = client.get(f"/api/sessions/{session_id}/logs").json()
        if logs["count"] >= count or time.monotonic() > deadline:
            return logs
        time.sleep(0.01)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_session_run_relay_and_clear(client):
    created = client.post("/api/sessions", json={"html": "<p>hi</p>"})
    assert created.status_code == 201
    session_id = created.json()["session_id"]
    assert created.json()["console"]["placeholder"] == "No console output yet..."

    run = client.post(f"/api/sessions/{session_id}/run").json()
    assert run["execution_id"] == 1

    queued = client.post(
        f"/api/sessions/{session_id}/relay",
        json={"type": "console", "logType": "log", "executionId": 1, "message": "hi"},
    )
    assert queued.status_code == 202
    assert queued.json() == {"queued": True}

    stale = client.post(
        f"/api/sessions/{session_id}/relay",
        json={"type": "console", "logType": "log", "executionId": 0, "message": "stale"},
    )
    assert stale.status_code == 202

    logs = _wait_for_logs(client, session_id, 1)
    assert [(r["type"], r["message"]) for r in logs["records"]] == [("log", "hi")]

    cleared = client.post(f"/api/sessions/{session_id}/clear").json()
    assert cleared["execution_id"] == 2
    assert client.get(f"/api/sessions/{session_id}/logs").json()["count"] == 0


def test_relay_drops_malformed_payloads(client):
    session_id = client.post("/api/sessions").json()["session_id"]

    for payload in ({"type": "other"}, [1, 2], {"type": "console", "logType": "nope", "executionId": 1}):
        resp = client.post(f"/api/sessions/{session_id}/relay", json=payload)
        assert resp.status_code == 202
        assert resp.json() == {"queued": False}


def test_update_sources_and_frame_headers(client):
    session_id = client.post("/api/sessions").json()["session_id"]

    changed = client.put(f"/api/sessions/{session_id}/sources", json={"css": "p { color: red; }"}).json()
    assert changed["changed"] is True
    assert changed["sources"]["css"] == "p { color: red; }"
    again = client.put(f"/api/sessions/{session_id}/sources", json={"css": "p { color: red; }"}).json()
    assert again["changed"] is False

    frame = client.get(f"/api/sessions/{session_id}/frame")
    assert frame.status_code == 200
    assert frame.headers["content-security-policy"] == "sandbox allow-scripts allow-modals"
    assert frame.headers["cache-control"] == "no-store"


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/does-not-exist").status_code == 404
    assert client.post("/api/sessions/does-not-exist/run").status_code == 404


def test_close_session(client):
    session_id = client.post("/api/sessions").json()["session_id"]
    assert client.delete(f"/api/sessions/{session_id}").json()["closed"] is True
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_export_zip(client):
    session_id = client.post("/api/sessions", json={"html": "<p>x</p>", "css": "p {}", "js": "void 0;"}).json()[
        "session_id"
    ]

    resp = client.get(f"/api/sessions/{session_id}/export")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        assert sorted(zf.namelist()) == ["index.html", "script.js", "styles.css"]


def test_save_share_and_edit_rights(client):
    assert client.post("/api/code/save", json={"html": "<p>x</p>"}).status_code == 401

    saved = client.post("/api/code/save", json={"html": "<p>x</p>", "css": "", "js": ""}, headers=ALICE)
    assert saved.status_code == 200
    share_id = saved.json()["shareId"]
    assert saved.json()["message"] == "Code saved"

    shared = client.get(f"/api/code/shared/{share_id}").json()
    assert shared["html"] == "<p>x</p>"
    assert "alice" not in shared.values()

    assert client.get(f"/api/code/shared/{share_id}/can-edit", headers=ALICE).json() == {"canEdit": True}
    assert client.get(f"/api/code/shared/{share_id}/can-edit", headers=BOB).json() == {"canEdit": False}

    denied = client.post("/api/code/save", json={"html": "<p>bob</p>", "shareId": share_id}, headers=BOB)
    assert denied.status_code == 404

    updated = client.post("/api/code/save", json={"html": "<p>v2</p>", "shareId": share_id}, headers=ALICE)
    assert updated.json() == {"message": "Code updated", "shareId": share_id}

    page = client.get(f"/{share_id}")
    assert page.status_code == 200
    assert "&lt;p&gt;v2&lt;/p&gt;" in page.text

    assert client.get("/api/code/shared/zzzzzzz").status_code == 404
    assert client.get("/zzzzzzz").status_code == 404


def test_playground_page(client):
    page = client.get("/")
    assert page.status_code == 200
    assert 'sandbox="allow-scripts allow-modals"' in page.text
    assert "No console output yet..." in page.text


def test_email_once_per_user(client):
    assert client.get("/api/email/can-send", headers=ALICE).json() == {"canSend": True}

    sent = client.post("/api/email/send-test", json={"email": "alice@example.com", "html": "<p>x</p>"}, headers=ALICE)
    assert sent.status_code == 200
    assert sent.json() == {"message": "Email sent"}

    assert client.get("/api/email/can-send", headers=ALICE).json() == {"canSend": False}
    again = client.post("/api/email/send-test", json={"email": "alice@example.com"}, headers=ALICE)
    assert again.status_code == 409

    bad = client.post("/api/email/send-test", json={"email": "not-an-address"}, headers=BOB)
    assert bad.status_code == 422


def test_shared_snippet_exposes_nothing_usable_as_owner_header(client):
    share_id = client.post("/api/code/save", json={"html": "<p>mine</p>"}, headers=ALICE).json()["shareId"]

    shared = client.get(f"/api/code/shared/{share_id}").json()
    assert "userId" not in shared

    for value in shared.values():
        if not isinstance(value, str) or not value.strip():
            continue
        header = {"X-Playground-User": value}
        assert client.get(f"/api/code/shared/{share_id}/can-edit", headers=header).json() == {"canEdit": False}
        overwrite = client.post("/api/code/save", json={"html": "<p>taken</p>", "shareId": share_id}, headers=header)
        assert overwrite.status_code == 404

    assert client.get(f"/api/code/shared/{share_id}").json()["html"] == "<p>mine</p>"


def _wait_for_revision(client: TestClient, session_id: str, revision: int, timeout: float = 2.0) -> int:
    deadline = time.monotonic() + timeout
    while True:
        current = client.get(f"/api/sessions/{session_id}").json()["revision"]
        if current >= revision or time.monotonic() > deadline:
            return current
        time.sleep(0.01)


def test_frame_serves_capturing_document_once_for_its_revision(client):
    session_id = client.post("/api/sessions").json()["session_id"]
    # Stands in for an open event stream: the preview frame is attached.
    client.app.state.sessions.get(session_id).host.attach()

    client.put(f"/api/sessions/{session_id}/sources", json={"js": 'console.log("hi");'})
    silent_rev = _wait_for_revision(client, session_id, 1)
    assert silent_rev == 1

    assert client.post(f"/api/sessions/{session_id}/run").json()["accepted"] is True
    capture_rev = _wait_for_revision(client, session_id, 2)
    assert capture_rev == 2

    stale = client.get(f"/api/sessions/{session_id}/frame", params={"rev": silent_rev}).text
    assert "var shouldCapture = true;" not in stale
    assert 'console.log("hi");' not in stale

    current = client.get(f"/api/sessions/{session_id}/frame", params={"rev": capture_rev}).text
    assert "var shouldCapture = true;" in current
    assert "var executionId = 1;" in current

    reloaded = client.get(f"/api/sessions/{session_id}/frame", params={"rev": capture_rev}).text
    assert "var shouldCapture = true;" not in reloaded
    assert 'console.log("hi");' in reloaded

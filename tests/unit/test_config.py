from __future__ import annotations

import pytest

from codeplayer.config import AppConfig, load_config
from codeplayer.core.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "CODEPLAYER_CONFIG",
        "CODEPLAYER_DB_URL",
        "CODEPLAYER_SMTP_HOST",
        "CODEPLAYER_SMTP_PORT",
        "CODEPLAYER_SMTP_USER",
        "CODEPLAYER_SMTP_PASSWORD",
        "CODEPLAYER_MAIL_FROM",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()

    assert config.preview.max_render_attempts == 20
    assert config.preview.not_ready_delay == pytest.approx(0.05)
    assert config.preview.settle_delay == pytest.approx(0.1)
    assert config.storage.slug_length == 7
    assert config.email.smtp_host is None


def test_from_yaml(tmp_path):
    path = tmp_path / "codeplayer.yaml"
    path.write_text(
        "server:\n"
        "  port: 9000\n"
        "preview:\n"
        "  settle_delay: 0.5\n"
        "storage:\n"
        "  slug_length: 8\n",
        encoding="utf-8",
    )

    config = AppConfig.from_yaml(path)

    assert config.server.port == 9000
    assert config.preview.settle_delay == pytest.approx(0.5)
    assert config.preview.run_start_delay == pytest.approx(0.01)
    assert config.storage.slug_length == 8
    assert config.raw["server"] == {"port": 9000}


def test_config_env_var_points_at_file(monkeypatch, tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("sessions:\n  ttl_minutes: 5\n", encoding="utf-8")
    monkeypatch.setenv("CODEPLAYER_CONFIG", str(path))

    assert load_config().sessions.ttl_minutes == 5


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CODEPLAYER_DB_URL", "sqlite:///:memory:")
    monkeypatch.setenv("CODEPLAYER_SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("CODEPLAYER_SMTP_PORT", "2525")
    monkeypatch.setenv("CODEPLAYER_MAIL_FROM", "bot@example.com")

    config = load_config()

    assert config.storage.db_url == "sqlite:///:memory:"
    assert config.email.smtp_host == "smtp.example.com"
    assert config.email.smtp_port == 2525
    assert config.email.sender == "bot@example.com"


def test_bad_smtp_port_is_config_error(monkeypatch):
    monkeypatch.setenv("CODEPLAYER_SMTP_PORT", "not-a-port")
    with pytest.raises(ConfigError):
        load_config()


@pytest.mark.parametrize(
    "content",
    ["- just\n- a list\n", "preview:\n  max_render_attempts: 0\n"],
)
def test_invalid_yaml_is_config_error(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        AppConfig.from_yaml(path)


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError):
        AppConfig.from_yaml(tmp_path / "nope.yaml")

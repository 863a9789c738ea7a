"""Tests for application settings."""

import pytest

from moment_composer.config import Settings


def test_defaults_disable_optional_features(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GOOGLE_CLIENT_ID", "KNOT_CLIENT_ID", "SUNO_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.google_configured is False
    assert settings.knot_configured is False
    assert settings.knot_merchant_id == 45
    assert settings.capture_interval_seconds == 1.0
    assert settings.capture_fallback_seconds == 30.0
    assert settings.auth_redirect_path == "/webview"


def test_google_requires_all_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "cid")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")
    monkeypatch.delenv("GOOGLE_REDIRECT_URI", raising=False)

    assert Settings(_env_file=None).google_configured is False

    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "https://app.example.com/auth/google/callback")

    assert Settings(_env_file=None).google_configured is True


def test_knot_configured_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KNOT_CLIENT_ID", "kid")
    monkeypatch.setenv("KNOT_SECRET", "ksecret")
    monkeypatch.setenv("KNOT_MERCHANT_ID", "12")

    settings = Settings(_env_file=None)

    assert settings.knot_configured is True
    assert settings.knot_merchant_id == 12

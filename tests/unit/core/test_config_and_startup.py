from __future__ import annotations

import pytest

import clientpulse.core.startup as startup_module
from clientpulse.core.config import _build_config
from clientpulse.core.exceptions import ConfigurationError


class _Cfg:
    def __init__(self, required: bool) -> None:
        self.DB_CONNECTIVITY_REQUIRED = required
        self.ENV = "development"

    @property
    def is_production(self) -> bool:
        return False


def test_defaults_are_valid(monkeypatch):
    monkeypatch.delenv("METRICS_CACHE_TTL_SECONDS", raising=False)
    monkeypatch.delenv("RECENT_ALERTS_LIMIT", raising=False)
    cfg = _build_config("development")
    assert cfg.METRICS_CACHE_TTL_SECONDS == 30
    assert cfg.RECENT_ALERTS_LIMIT == 5


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("DATABASE_URL", "mysql://localhost/db"),
        ("METRICS_CACHE_TTL_SECONDS", "-1"),
        ("PERSISTENCE_MAX_RETRIES", "-2"),
        ("LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_raise_configuration_error(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError):
        _build_config("development")


def test_startup_skips_raise_when_db_optional_and_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg(required=False))
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    startup_module.validate_startup_config()


def test_startup_raises_when_db_required_and_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg(required=True))
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    with pytest.raises(RuntimeError, match="Database connectivity check failed"):
        startup_module.validate_startup_config()


def test_bootstrap_creates_schema_on_every_backend(monkeypatch):
    created = []
    monkeypatch.setattr(startup_module, "configure_logging", lambda: None)
    monkeypatch.setattr(startup_module, "validate_startup_config", lambda: None)
    monkeypatch.setattr(startup_module, "get_active_database_url", lambda: "postgresql://db/clientpulse")
    monkeypatch.setattr(startup_module, "create_schema", lambda: created.append(True))

    startup_module.bootstrap()

    assert created == [True]

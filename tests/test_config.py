from ponzimap.config import Settings


def test_defaults(monkeypatch):
    for name in ("PONZI_GRID_SIZE", "PONZI_REFERENCE_TOKEN", "PONZI_AUTO_REFRESH", "PONZI_SQL_POLL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.grid_size == 256
    assert settings.reference_tokens == ()
    assert settings.auto_refresh is False
    assert settings.sql_poll_seconds == 5.0


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PONZI_GRID_SIZE", "16")
    monkeypatch.setenv("PONZI_REFERENCE_TOKEN", "0x1, 0x2,")
    monkeypatch.setenv("PONZI_AUTO_REFRESH", "1")
    monkeypatch.setenv("PONZI_PRICE_POLL_SECONDS", "45")
    settings = Settings.from_env()
    assert settings.grid_size == 16
    assert settings.reference_tokens == ("0x1", "0x2")
    assert settings.auto_refresh is True
    assert settings.price_poll_seconds == 45.0


def test_bad_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("PONZI_GRID_SIZE", "big")
    monkeypatch.setenv("PONZI_HTTP_TIMEOUT", "soon")
    settings = Settings.from_env()
    assert settings.grid_size == 256
    assert settings.http_timeout == 10.0

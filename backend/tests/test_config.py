from geoquest import config
from geoquest.config import Settings, validate_config


def test_defaults():
    settings = Settings()

    assert settings.api_prefix.startswith("/")
    assert settings.combat_session_ttl_seconds > 0
    assert settings.mcp_transport in ("stdio", "sse", "streamable-http")


def test_validate_config_flags_bad_values(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "settings", Settings(combat_session_ttl_seconds=0))
    assert validate_config() is False

    monkeypatch.setattr(config, "settings", Settings(combat_data_dir=str(tmp_path / "missing")))
    assert validate_config() is False

    monkeypatch.setattr(config, "settings", Settings(combat_data_dir=str(tmp_path), combat_session_ttl_seconds=60, mcp_port=9102))
    assert validate_config() is True

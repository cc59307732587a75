import json

import pytest

from finance_tracker.config import DEFAULT_DATABASE_URL, AppConfig


def test_defaults():
    cfg = AppConfig.load(env={})
    assert cfg.port == 5000
    assert cfg.database_url == DEFAULT_DATABASE_URL
    assert cfg.cors_origins == ["http://localhost:3000"]


def test_env_overrides_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"port": 7000, "log_level": "debug", "cors_origins": ["http://a.test/"]}))
    cfg = AppConfig.load(path, env={"PORT": "8080", "CORS_ORIGINS": "http://b.test, https://c.test/"})
    assert cfg.port == 8080
    assert cfg.log_level == "DEBUG"
    assert cfg.cors_origins == ["http://b.test", "https://c.test"]


def test_missing_file_uses_defaults(tmp_path):
    cfg = AppConfig.load(tmp_path / "absent.json", env={})
    assert cfg.port == 5000


@pytest.mark.parametrize("port", ["abc", "0", "-1"])
def test_invalid_port(port):
    with pytest.raises(ValueError):
        AppConfig.load(env={"PORT": port})


def test_engine_options_carry_timeout():
    sqlite_cfg = AppConfig(database_url="sqlite://", request_timeout=12)
    assert sqlite_cfg.engine_options() == {"connect_args": {"timeout": 12}}
    pg_cfg = AppConfig(database_url="postgresql://db/finance", request_timeout=12)
    assert pg_cfg.engine_options()["pool_timeout"] == 12

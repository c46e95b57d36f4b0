import json

from config import DEFAULTS, Config


def test_creates_file_with_defaults(config_path):
    cfg = Config()
    assert config_path.exists()
    assert json.loads(config_path.read_text()) == DEFAULTS
    assert cfg.get("page_size") == 25


def test_set_persists(config_path):
    Config().set("page_size", 50)
    assert Config().get("page_size") == 50


def test_environment_overrides_file(monkeypatch):
    Config().set("page_size", 50)
    monkeypatch.setenv("JOBSFILTER_PAGE_SIZE", "10")
    monkeypatch.setenv("JOBSFILTER_DATABASE_URL", "sqlite://")
    cfg = Config()
    assert cfg.get("page_size") == 10
    assert cfg.get("database_url") == "sqlite://"
    assert cfg.all()["page_size"] == 10


def test_missing_key_falls_back(config_path):
    config_path.write_text(json.dumps({"log_level": "DEBUG"}))
    cfg = Config()
    assert cfg.get("log_level") == "DEBUG"
    assert cfg.get("db_timeout") == DEFAULTS["db_timeout"]
    assert cfg.get("unknown", "fallback") == "fallback"

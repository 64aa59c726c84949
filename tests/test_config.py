import pytest

from content_i18n.config import load_config


_ENV = (
    "DATABASE_URL",
    "CONTENT_LANGS",
    "CONTENT_DEFAULT_LANG",
    "CONTENT_REQUIRED_LANGS",
    "CONTENT_STORE",
    "CONTENT_API_URL",
    "CONTENT_API_KEY",
    "CONTENT_CACHE_TTL",
    "CONTENT_ENFORCE_UNIQUE",
    "CONTENT_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_load_config_requires_database_url():
    with pytest.raises(RuntimeError):
        load_config()


def test_load_config_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/cms")

    cfg = load_config()
    assert cfg.pg_dsn == "postgresql://localhost/cms"
    assert cfg.languages == ("en", "pt")
    assert cfg.default_language == "en"
    assert cfg.required_languages == ("en", "pt")
    assert cfg.cache_ttl_seconds == 300
    assert cfg.enforce_unique is True
    assert cfg.language_settings().default == "en"


def test_load_config_reads_languages(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/cms")
    monkeypatch.setenv("CONTENT_LANGS", "pt, en,es,pt")
    monkeypatch.setenv("CONTENT_DEFAULT_LANG", "en")
    monkeypatch.setenv("CONTENT_REQUIRED_LANGS", "en,pt")
    monkeypatch.setenv("CONTENT_ENFORCE_UNIQUE", "false")

    cfg = load_config()
    assert cfg.languages == ("pt", "en", "es")
    assert cfg.required_languages == ("en", "pt")
    assert cfg.enforce_unique is False


def test_load_config_rejects_unsupported_default(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/cms")
    monkeypatch.setenv("CONTENT_DEFAULT_LANG", "fr")

    with pytest.raises(RuntimeError):
        load_config()


def test_load_config_rejects_unsupported_required_language(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/cms")
    monkeypatch.setenv("CONTENT_REQUIRED_LANGS", "en,de")

    with pytest.raises(RuntimeError):
        load_config()


def test_load_config_rest_store(monkeypatch):
    monkeypatch.setenv("CONTENT_STORE", "rest")
    monkeypatch.setenv("CONTENT_API_URL", "https://db.example.org/rest/v1")
    monkeypatch.setenv("CONTENT_API_KEY", "anon-key")

    cfg = load_config()
    assert cfg.store == "rest"
    assert cfg.pg_dsn is None
    assert cfg.api_url.endswith("/rest/v1")


def test_load_config_rest_store_requires_key(monkeypatch):
    monkeypatch.setenv("CONTENT_STORE", "rest")
    monkeypatch.setenv("CONTENT_API_URL", "https://db.example.org/rest/v1")

    with pytest.raises(RuntimeError):
        load_config()

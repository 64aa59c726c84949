from __future__ import annotations

import os
from dataclasses import dataclass

from .languages import LanguageSettings, parse_languages

STORE_BACKENDS = ("postgres", "rest")


@dataclass(frozen=True)
class Config:
    pg_dsn: str | None

    languages: tuple[str, ...] = ("en", "pt")
    default_language: str = "en"
    required_languages: tuple[str, ...] = ("en", "pt")

    store: str = "postgres"
    api_url: str | None = None
    api_key: str | None = None
    http_timeout: int = 30

    cache_ttl_seconds: int = 300
    enforce_unique: bool = True

    def language_settings(self) -> LanguageSettings:
        return LanguageSettings(supported=self.languages, default=self.default_language)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default) not in ("0", "false", "False")


def load_config() -> Config:
    def req(name: str) -> str:
        value = os.getenv(name)
        if not value:
            raise RuntimeError(f"Missing required env var: {name}")
        return value

    languages = parse_languages(os.getenv("CONTENT_LANGS", "en,pt"))
    if not languages:
        raise RuntimeError("CONTENT_LANGS must list at least one language")
    default_language = os.getenv("CONTENT_DEFAULT_LANG", languages[0]).strip()
    if default_language not in languages:
        raise RuntimeError(
            f"CONTENT_DEFAULT_LANG={default_language} is not one of CONTENT_LANGS"
        )

    raw_required = os.getenv("CONTENT_REQUIRED_LANGS")
    required_languages = parse_languages(raw_required) if raw_required else languages
    unsupported = [lang for lang in required_languages if lang not in languages]
    if unsupported:
        raise RuntimeError(
            f"CONTENT_REQUIRED_LANGS has unsupported languages: {','.join(unsupported)}"
        )

    store = os.getenv("CONTENT_STORE", "postgres").strip().lower()
    if store not in STORE_BACKENDS:
        raise RuntimeError(f"CONTENT_STORE must be one of: {', '.join(STORE_BACKENDS)}")

    pg_dsn = os.getenv("DATABASE_URL")
    api_url = os.getenv("CONTENT_API_URL")
    api_key = os.getenv("CONTENT_API_KEY")
    if store == "postgres":
        pg_dsn = req("DATABASE_URL")
    else:
        api_url = req("CONTENT_API_URL")
        api_key = req("CONTENT_API_KEY")

    try:
        cache_ttl = int(os.getenv("CONTENT_CACHE_TTL", "300"))
        http_timeout = int(os.getenv("CONTENT_HTTP_TIMEOUT", "30"))
    except ValueError as exc:
        raise RuntimeError("CONTENT_CACHE_TTL and CONTENT_HTTP_TIMEOUT must be integers") from exc

    cfg = Config(
        pg_dsn=pg_dsn,
        languages=languages,
        default_language=default_language,
        required_languages=required_languages,
        store=store,
        api_url=api_url,
        api_key=api_key,
        http_timeout=http_timeout,
        cache_ttl_seconds=cache_ttl,
        enforce_unique=_flag("CONTENT_ENFORCE_UNIQUE", "1"),
    )
    return cfg

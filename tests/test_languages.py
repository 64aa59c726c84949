import pytest

from content_i18n.languages import DEFAULT_LANGUAGES, LanguageSettings, parse_languages


def test_default_languages():
    assert DEFAULT_LANGUAGES.supported == ("en", "pt")
    assert DEFAULT_LANGUAGES.default == "en"
    assert DEFAULT_LANGUAGES.is_supported("pt")
    assert not DEFAULT_LANGUAGES.is_supported("fr")
    assert not DEFAULT_LANGUAGES.is_supported("")


def test_require_rejects_unsupported():
    assert DEFAULT_LANGUAGES.require("en") == "en"
    with pytest.raises(ValueError):
        DEFAULT_LANGUAGES.require("vi")


def test_default_must_be_supported():
    with pytest.raises(ValueError):
        LanguageSettings(supported=("en", "pt"), default="es")


def test_sort_languages_default_first():
    settings = LanguageSettings(supported=("pt", "en", "vi"), default="en")
    assert settings.sort_languages(["zz", "vi", "pt", "en", "de"]) == ["en", "pt", "vi", "de", "zz"]


def test_parse_languages_dedupes():
    assert parse_languages(" en,pt,,en ") == ("en", "pt")

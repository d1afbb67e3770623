"""Tests for language configuration."""

from __future__ import annotations

import pytest

from config.languages import (
    FALLBACK_LANGUAGE,
    LANGUAGE_CODE_MAP,
    LANGUAGES,
    LanguageConfig,
    get_language,
    get_supported_languages,
    resolve_language,
)


# -----------------------------------------------------------------------
# LANGUAGES registry tests
# -----------------------------------------------------------------------


class TestLanguagesRegistry:
    def test_seven_call_languages(self) -> None:
        assert set(LANGUAGES) == {"hi", "en", "ta", "bn", "te", "mr", "kn"}

    def test_all_entries_are_language_config(self) -> None:
        for code, config in LANGUAGES.items():
            assert isinstance(config, LanguageConfig), f"LANGUAGES['{code}'] should be a LanguageConfig instance"
            assert config.code == code

    def test_speech_codes_are_indian_locales(self) -> None:
        for code, config in LANGUAGES.items():
            assert config.gcp_stt_code.endswith("-IN"), f"{code} STT code should be an Indian locale"
            assert config.default_voice.startswith(config.gcp_tts_code), (
                f"{code} default voice should belong to its TTS locale"
            )

    def test_hindi_is_fallback(self) -> None:
        assert FALLBACK_LANGUAGE == "hi"
        assert LANGUAGES["hi"].default_voice == "hi-IN-Wavenet-A"


# -----------------------------------------------------------------------
# Lookup helpers
# -----------------------------------------------------------------------


class TestGetLanguage:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("hi", "hi"),
            ("hin", "hi"),
            ("Hindi", "hi"),
            ("hi-IN", "hi"),
            ("en-US", "en"),
            ("bangla", "bn"),
            (" ta ", "ta"),
        ],
    )
    def test_resolves_codes_and_aliases(self, code: str, expected: str) -> None:
        config = get_language(code)
        assert config is not None, f"get_language({code!r}) should resolve"
        assert config.code == expected

    def test_unknown_returns_none(self) -> None:
        assert get_language("xx") is None


class TestResolveLanguage:
    @pytest.mark.parametrize("code", [None, "", "fr", "xx-YY"])
    def test_unsupported_falls_back_to_hindi(self, code: str | None) -> None:
        assert resolve_language(code) == "hi"

    def test_supported_is_canonicalised(self) -> None:
        assert resolve_language("kn-IN") == "kn"
        assert resolve_language("english") == "en"


def test_supported_languages_in_registry_order() -> None:
    assert [lang.code for lang in get_supported_languages()] == list(LANGUAGES)


def test_all_aliases_resolve_to_valid_languages() -> None:
    for alias, canonical in LANGUAGE_CODE_MAP.items():
        assert alias == alias.lower(), f"alias '{alias}' must be lower-case"
        assert canonical in LANGUAGES, f"Alias '{alias}' -> '{canonical}' does not map to a valid language"

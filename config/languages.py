"""Language configuration for the seven languages EchoAid answers calls in.

Each ``LanguageConfig`` carries the native name plus the Google Cloud
Speech codes and the default telephony voice, so the speech and
localization layers never hard-code locale strings themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

__all__ = [
    "FALLBACK_LANGUAGE",
    "LanguageConfig",
    "LANGUAGES",
    "LANGUAGE_CODE_MAP",
    "get_language",
    "resolve_language",
    "get_supported_languages",
]


@dataclass(frozen=True, slots=True)
class LanguageConfig:
    """Immutable descriptor for a single language supported by EchoAid."""

    code: str
    """ISO 639-1 code."""

    name_english: str
    """Language name in English."""

    name_native: str
    """Language name in its own script."""

    gcp_stt_code: str
    """Google Cloud Speech-to-Text language code (e.g. ``hi-IN``)."""

    gcp_tts_code: str
    """Google Cloud Text-to-Speech language code."""

    default_voice: str
    """Voice used when the caller does not ask for one."""


FALLBACK_LANGUAGE: Final[str] = "hi"

# ---------------------------------------------------------------------------
# Language registry
# ---------------------------------------------------------------------------

LANGUAGES: Final[dict[str, LanguageConfig]] = {
    "hi": LanguageConfig(
        code="hi",
        name_english="Hindi",
        name_native="हिन्दी",
        gcp_stt_code="hi-IN",
        gcp_tts_code="hi-IN",
        default_voice="hi-IN-Wavenet-A",
    ),
    "en": LanguageConfig(
        code="en",
        name_english="English",
        name_native="English",
        gcp_stt_code="en-IN",
        gcp_tts_code="en-IN",
        default_voice="en-IN-Wavenet-A",
    ),
    "ta": LanguageConfig(
        code="ta",
        name_english="Tamil",
        name_native="தமிழ்",
        gcp_stt_code="ta-IN",
        gcp_tts_code="ta-IN",
        default_voice="ta-IN-Wavenet-A",
    ),
    "bn": LanguageConfig(
        code="bn",
        name_english="Bengali",
        name_native="বাংলা",
        gcp_stt_code="bn-IN",
        gcp_tts_code="bn-IN",
        default_voice="bn-IN-Wavenet-A",
    ),
    "te": LanguageConfig(
        code="te",
        name_english="Telugu",
        name_native="తెలుగు",
        gcp_stt_code="te-IN",
        gcp_tts_code="te-IN",
        default_voice="te-IN-Standard-A",
    ),
    "mr": LanguageConfig(
        code="mr",
        name_english="Marathi",
        name_native="मराठी",
        gcp_stt_code="mr-IN",
        gcp_tts_code="mr-IN",
        default_voice="mr-IN-Wavenet-A",
    ),
    "kn": LanguageConfig(
        code="kn",
        name_english="Kannada",
        name_native="ಕನ್ನಡ",
        gcp_stt_code="kn-IN",
        gcp_tts_code="kn-IN",
        default_voice="kn-IN-Wavenet-A",
    ),
}

# Aliases callers and carriers commonly send instead of the ISO code.
LANGUAGE_CODE_MAP: Final[dict[str, str]] = {
    "hin": "hi",
    "hindi": "hi",
    "eng": "en",
    "english": "en",
    "tam": "ta",
    "tamil": "ta",
    "ben": "bn",
    "bengali": "bn",
    "bangla": "bn",
    "tel": "te",
    "telugu": "te",
    "mar": "mr",
    "marathi": "mr",
    "kan": "kn",
    "kannada": "kn",
    "hi-in": "hi",
    "en-in": "en",
    "en-us": "en",
    "ta-in": "ta",
    "bn-in": "bn",
    "te-in": "te",
    "mr-in": "mr",
    "kn-in": "kn",
}


def get_language(code: str) -> LanguageConfig | None:
    """Return the ``LanguageConfig`` for *code*, checking aliases.

    Returns ``None`` if the language is not found.
    """
    key = code.strip().lower()
    canonical = LANGUAGE_CODE_MAP.get(key, key)
    return LANGUAGES.get(canonical)


def resolve_language(code: str | None) -> str:
    """Return a supported canonical code, falling back to Hindi."""
    if not code:
        return FALLBACK_LANGUAGE
    lang = get_language(code)
    return lang.code if lang is not None else FALLBACK_LANGUAGE


def get_supported_languages() -> list[LanguageConfig]:
    """Return all supported languages in registry order."""
    return list(LANGUAGES.values())

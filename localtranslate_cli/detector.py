"""Language detection for translation."""

from __future__ import annotations

import regex

from .types import FOREIGN_LANGUAGE, LOCAL_LANGUAGE, Language

# Japanese script: Hiragana, Katakana, and Han (kanji)
JAPANESE_PATTERN = regex.compile(r'[\p{Hiragana}\p{Katakana}\p{Han}]')


def detect_language(text: str) -> Language:
    """
    Classify text as the local or the foreign language.

    A single Hiragana, Katakana or Han character is enough for Japanese.
    Everything else, including empty input, is English. This is a script
    check, not a statistical language identifier.

    Args:
        text: Input text to analyze

    Returns:
        LOCAL_LANGUAGE or FOREIGN_LANGUAGE
    """
    if JAPANESE_PATTERN.search(text):
        return LOCAL_LANGUAGE
    return FOREIGN_LANGUAGE


def get_target_language(source: Language) -> Language:
    """Return the other language of the pair."""
    return source.opposite


def format_language_indicator(source: Language, target: Language) -> str:
    """
    Format a human-readable language direction indicator.

    Returns:
        Formatted string like "[ja→en]"
    """
    return f"[{source.code}→{target.code}]"


def get_language_name(language: Language) -> str:
    """Human-readable name, e.g. "Japanese (日本語)"."""
    if language.native_name == language.value:
        return language.value
    return f"{language.value} ({language.native_name})"


def is_valid_language(code: str) -> bool:
    """Check if a language code or name is supported."""
    try:
        Language.from_code(code)
    except ValueError:
        return False
    return True

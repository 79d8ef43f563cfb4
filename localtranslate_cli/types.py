"""Core value types: languages, model kinds, requests and results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Language(str, Enum):
    """The two languages the translator works between.

    The value is the English name, which is what prompt templates embed.
    """

    JAPANESE = "Japanese"
    ENGLISH = "English"

    @property
    def code(self) -> str:
        return _LANGUAGE_CODES[self]

    @property
    def native_name(self) -> str:
        return _NATIVE_NAMES[self]

    @property
    def opposite(self) -> Language:
        return Language.ENGLISH if self is Language.JAPANESE else Language.JAPANESE

    @classmethod
    def from_code(cls, value: str) -> Language:
        """
        Parse a language from a code or name.

        Accepts "ja", "en", "japanese", "english" (case-insensitive).

        Raises:
            ValueError: If the value names neither language
        """
        key = value.strip().lower()
        for language in cls:
            if key in (language.code, language.value.lower()):
                return language
        raise ValueError(f"Unsupported language: {value}. Must be one of: ja, en")


_LANGUAGE_CODES = {
    Language.JAPANESE: "ja",
    Language.ENGLISH: "en",
}

_NATIVE_NAMES = {
    Language.JAPANESE: "日本語",
    Language.ENGLISH: "English",
}

# Local is the language the script heuristic recognises; Foreign is everything else
LOCAL_LANGUAGE = Language.JAPANESE
FOREIGN_LANGUAGE = Language.ENGLISH


class ModelKind(str, Enum):
    """Supported model variants. Each maps to exactly one adapter."""

    PLAMO = "plamo"
    ELYZA = "elyza"
    LLAMA3 = "llama3"
    QWEN3_8B = "qwen3_8b"
    QWEN3_4B = "qwen3_4b"
    ALMA = "alma"
    TRANSLATEGEMMA = "translategemma"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(kind.value for kind in cls)


@dataclass(frozen=True)
class TranslationRequest:
    """A single translation request. A missing source means auto-detect."""

    text: str
    target_language: Language | None = None
    source_language: Language | None = None


@dataclass(frozen=True)
class TranslationResult:
    """
    Outcome of one successful translation.

    Attributes:
        translated_text: Cleaned model output
        detected_source_language: Set only when the source was auto-detected
        duration_seconds: Wall-clock time spent in translate()
        token_count: Generated token count, when known
    """

    translated_text: str
    detected_source_language: Language | None
    duration_seconds: float
    token_count: int | None = None

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError(f"duration_seconds must be non-negative, got {self.duration_seconds}")


@dataclass(frozen=True)
class ProcessInvocationConfig:
    """Everything needed to launch one llama.cpp completion process."""

    executable_path: Path
    weights_path: Path
    context_size: int = 4096
    temperature: float = 0.1
    max_tokens: int = 2048

    def __post_init__(self) -> None:
        if self.context_size <= 0:
            raise ValueError(f"context_size must be positive, got {self.context_size}")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be between 0.0 and 1.0, got {self.temperature}")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

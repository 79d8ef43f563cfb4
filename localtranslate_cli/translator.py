"""Translation engine driving llama.cpp with per-model adapters."""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Iterable

from .adapters import AdapterSpec, get_adapter
from .config import Config, get_config
from .detector import detect_language, get_target_language
from .errors import ConfigurationError, EmptyInputError, InferenceError, NotReadyError
from .runner import LlamaCppRunner, ProcessRunner, default_candidates, get_executor, resolve_executable
from .types import (
    Language,
    ModelKind,
    ProcessInvocationConfig,
    TranslationRequest,
    TranslationResult,
)

logger = logging.getLogger(__name__)


class Translator:
    """
    Translates text between Japanese and English with a local GGUF model.

    The translator owns its readiness: translate() refuses to run until
    load_model() has confirmed both the weights file and a llama.cpp
    executable. Each translate() call spawns exactly one process.

    Example:
        translator = Translator(Path("ALMA-7B-Ja.gguf"), ModelKind.ALMA)
        translator.load_model()
        result = translator.translate("こんにちは", target_language=Language.ENGLISH)
        print(result.translated_text)
    """

    def __init__(
        self,
        weights_path: Path | str,
        model_kind: ModelKind,
        *,
        context_size: int = 4096,
        temperature: float = 0.1,
        max_tokens: int = 2048,
        executable: Path | None = None,
        executable_candidates: Iterable[Path] | None = None,
        runner: ProcessRunner | None = None,
        adapter: AdapterSpec | None = None,
    ):
        self._weights_path = Path(weights_path).expanduser()
        self._model_kind = ModelKind(model_kind)
        self._context_size = context_size
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._candidates = (
            list(executable_candidates)
            if executable_candidates is not None
            else default_candidates(executable)
        )
        self._runner: ProcessRunner = runner or LlamaCppRunner()
        self._adapter = adapter or get_adapter(self._model_kind)
        self._invocation: ProcessInvocationConfig | None = None
        self._ready = False

    @classmethod
    def from_config(cls, config: Config | None = None, **kwargs) -> Translator:
        """
        Build a translator from the YAML settings.

        Raises:
            ConfigurationError: The config file names an unknown model kind
        """
        config = config or get_config()
        try:
            model_kind = config.model_kind
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return cls(
            config.model_path,
            model_kind,
            context_size=config.context_size,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            executable=config.executable,
            **kwargs,
        )

    @property
    def is_ready(self) -> bool:
        """True between a successful load_model() and unload_model()."""
        return self._ready

    @property
    def model_kind(self) -> ModelKind:
        return self._model_kind

    @property
    def adapter(self) -> AdapterSpec:
        return self._adapter

    @property
    def weights_path(self) -> Path:
        return self._weights_path

    @property
    def executable_path(self) -> Path | None:
        """Resolved executable, once loaded."""
        return self._invocation.executable_path if self._invocation else None

    def load_model(self) -> None:
        """
        Verify the weights file and locate llama.cpp.

        A second call while ready does nothing. The model itself is loaded
        by llama.cpp on every translate() call.

        Raises:
            ConfigurationError: Weights missing or no usable executable
        """
        if self._ready:
            return

        if not self._weights_path.is_file():
            raise ConfigurationError(f"Model file not found: {self._weights_path}")

        executable = resolve_executable(self._candidates)
        try:
            self._invocation = ProcessInvocationConfig(
                executable_path=executable,
                weights_path=self._weights_path,
                context_size=self._context_size,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid inference settings: {e}") from e

        self._ready = True
        logger.info("Loaded %s from %s", self._adapter.name, self._weights_path)

    def unload_model(self) -> None:
        """Mark the translator as not ready."""
        if self._ready:
            logger.info("Unloaded %s", self._adapter.name)
        self._ready = False

    def __enter__(self) -> Translator:
        self.load_model()
        return self

    def __exit__(self, *exc_info) -> None:
        self.unload_model()

    def translate(
        self,
        text: str,
        source_language: Language | None = None,
        target_language: Language | None = None,
    ) -> TranslationResult:
        """
        Translate text, detecting the source language when not given.

        Args:
            text: Text to translate
            source_language: Source language, or None to auto-detect
            target_language: Target language, or None for the opposite of the source

        Returns:
            TranslationResult; detected_source_language is set only when
            the source was auto-detected

        Raises:
            NotReadyError: load_model() has not succeeded
            EmptyInputError: Text is empty or whitespace only
            InferenceError: The llama.cpp process failed
        """
        start = time.perf_counter()

        if not self._ready or self._invocation is None:
            raise NotReadyError()

        trimmed = text.strip()
        if not trimmed:
            raise EmptyInputError()

        detected: Language | None = None
        if source_language is None:
            detected = detect_language(trimmed)
        source = source_language or detected
        target = target_language or get_target_language(source)

        normalized = self._adapter.normalize_input(trimmed)
        prompt = self._adapter.build_prompt(normalized, source, target)

        try:
            raw = self._runner.run(prompt, self._invocation, self._adapter.stop_sequences)
        except InferenceError as e:
            logger.warning("Translation failed (%s→%s): %s", source.code, target.code, e)
            raise

        translated = self._adapter.clean_output(raw)
        duration = time.perf_counter() - start
        logger.debug("Translated %d chars in %.2fs", len(trimmed), duration)

        return TranslationResult(
            translated_text=translated,
            detected_source_language=detected,
            duration_seconds=duration,
        )

    def translate_request(self, request: TranslationRequest) -> TranslationResult:
        """Translate a TranslationRequest."""
        return self.translate(request.text, request.source_language, request.target_language)

    def translate_async(
        self,
        text: str,
        source_language: Language | None = None,
        target_language: Language | None = None,
    ) -> Future[TranslationResult]:
        """
        Run translate() on a worker thread.

        Errors are delivered through the returned future.
        """
        return get_executor().submit(self.translate, text, source_language, target_language)

    async def atranslate(
        self,
        text: str,
        source_language: Language | None = None,
        target_language: Language | None = None,
    ) -> TranslationResult:
        """Awaitable translate(); the process wait happens off the event loop."""
        return await asyncio.wrap_future(self.translate_async(text, source_language, target_language))


# Global translator instance
_translator: Translator | None = None


def get_translator() -> Translator:
    """Get the global translator instance, built from the config."""
    global _translator
    if _translator is None:
        _translator = Translator.from_config()
    return _translator


def reset_translator() -> None:
    """Unload and drop the global translator instance."""
    global _translator
    if _translator is not None:
        _translator.unload_model()
    _translator = None

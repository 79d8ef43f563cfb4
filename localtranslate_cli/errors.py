"""Exception hierarchy. Every message is meant to be shown to the user as-is."""

from __future__ import annotations


class TranslationError(Exception):
    """Base class for all translation failures."""


class ConfigurationError(TranslationError):
    """Weights file or llama.cpp executable missing; raised from load_model()."""


class NotReadyError(ConfigurationError):
    """translate() called before a successful load_model()."""

    def __init__(self, message: str = "Translation model is not loaded. Call load_model() first."):
        super().__init__(message)


class ValidationError(TranslationError, ValueError):
    """Input rejected before any process is spawned."""


class EmptyInputError(ValidationError):
    """Input is empty or whitespace only."""

    def __init__(self, message: str = "Text to translate is empty."):
        super().__init__(message)


class InferenceError(TranslationError, RuntimeError):
    """The inference process failed for this call."""


class SpawnError(InferenceError):
    """The executable could not be started."""


class NonZeroExitError(InferenceError):
    """The executable exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        super().__init__(f"llama.cpp exited with status {exit_code}: {detail}")


class DecodeError(InferenceError):
    """Standard output was not valid UTF-8."""

"""LocalTranslate CLI - on-device Japanese/English translation through llama.cpp."""

__version__ = "0.1.0"

from .types import (
    Language,
    ModelKind,
    TranslationRequest,
    TranslationResult,
    ProcessInvocationConfig,
    LOCAL_LANGUAGE,
    FOREIGN_LANGUAGE,
)
from .errors import (
    TranslationError,
    ConfigurationError,
    NotReadyError,
    ValidationError,
    EmptyInputError,
    InferenceError,
    SpawnError,
    NonZeroExitError,
    DecodeError,
)
from .config import (
    MODEL_REGISTRY,
    ModelEntry,
    get_config,
)
from .adapters import (
    AdapterSpec,
    get_adapter,
    normalize_whitespace,
)
from .detector import (
    detect_language,
    get_target_language,
    get_language_name,
    is_valid_language,
)
from .runner import (
    LlamaCppRunner,
    ProcessRunner,
    build_arguments,
    resolve_executable,
)
from .model import (
    get_weights_path,
    is_model_ready,
    get_model_info,
)
from .translator import (
    Translator,
    get_translator,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "Language",
    "ModelKind",
    "TranslationRequest",
    "TranslationResult",
    "ProcessInvocationConfig",
    "LOCAL_LANGUAGE",
    "FOREIGN_LANGUAGE",
    # Errors
    "TranslationError",
    "ConfigurationError",
    "NotReadyError",
    "ValidationError",
    "EmptyInputError",
    "InferenceError",
    "SpawnError",
    "NonZeroExitError",
    "DecodeError",
    # Config
    "MODEL_REGISTRY",
    "ModelEntry",
    "get_config",
    # Adapters
    "AdapterSpec",
    "get_adapter",
    "normalize_whitespace",
    # Detection
    "detect_language",
    "get_target_language",
    "get_language_name",
    "is_valid_language",
    # Runner
    "LlamaCppRunner",
    "ProcessRunner",
    "build_arguments",
    "resolve_executable",
    # Model
    "get_weights_path",
    "is_model_ready",
    "get_model_info",
    # Translation
    "Translator",
    "get_translator",
]

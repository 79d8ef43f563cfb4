"""Configuration management for LocalTranslate CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal
import yaml

from .types import Language, ModelKind

# Default paths
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "localtranslate"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "localtranslate"

DEFAULT_MODEL_KIND = ModelKind.ALMA

# Inference defaults
DEFAULT_CONTEXT_SIZE = 4096
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 2048

# "auto" translates into the opposite of the detected language
TargetSetting = Literal["auto", "ja", "en"]
DEFAULT_TARGET = "auto"


@dataclass(frozen=True)
class ModelEntry:
    """One installable model, as listed in the registry."""

    name: str
    file_name: str
    kind: ModelKind
    license_note: str
    size_description: str


# First entry per kind is the default weights file for that kind
MODEL_REGISTRY: tuple[ModelEntry, ...] = (
    ModelEntry(
        name="PLaMo-2-translate Q3_K_M",
        file_name="plamo-2-translate-Q3_K_M.gguf",
        kind=ModelKind.PLAMO,
        license_note="PLaMo Community License - personal use only",
        size_description="~4.6 GB",
    ),
    ModelEntry(
        name="PLaMo-2-translate Q4_K_S",
        file_name="plamo-2-translate-Q4_K_S.gguf",
        kind=ModelKind.PLAMO,
        license_note="PLaMo Community License - personal use only",
        size_description="~5.5 GB",
    ),
    ModelEntry(
        name="ELYZA-JP-8B Q4_K_M",
        file_name="Llama-3-ELYZA-JP-8B-q4_k_m.gguf",
        kind=ModelKind.ELYZA,
        license_note="Llama 3 Community License - commercial use allowed",
        size_description="~4.9 GB",
    ),
    ModelEntry(
        name="Llama-3.1-8B-Instruct Q4_K_M",
        file_name="Meta-Llama-3.1-8B-Instruct-Q4_K_M.gguf",
        kind=ModelKind.LLAMA3,
        license_note="Llama 3.1 Community License - commercial use allowed",
        size_description="~4.9 GB",
    ),
    ModelEntry(
        name="Qwen3-8B Q4_K_M",
        file_name="Qwen3-8B-Q4_K_M.gguf",
        kind=ModelKind.QWEN3_8B,
        license_note="Apache 2.0 - commercial use allowed",
        size_description="~5.0 GB",
    ),
    ModelEntry(
        name="Qwen3-4B-Instruct Q4_K_M",
        file_name="Qwen3-4B-Instruct-2507-Q4_K_M.gguf",
        kind=ModelKind.QWEN3_4B,
        license_note="Apache 2.0 - commercial use allowed",
        size_description="~2.5 GB",
    ),
    ModelEntry(
        name="ALMA-7B-Ja Q4_K_M (recommended)",
        file_name="webbigdata-ALMA-7B-Ja-q4_K_M.gguf",
        kind=ModelKind.ALMA,
        license_note="MIT License - commercial use allowed",
        size_description="~4.1 GB",
    ),
    ModelEntry(
        name="TranslateGemma-4B Q4_K_M",
        file_name="translategemma-4b-it-Q4_K_M.gguf",
        kind=ModelKind.TRANSLATEGEMMA,
        license_note="Gemma Terms of Use",
        size_description="~2.5 GB",
    ),
)


def get_models_dir() -> Path:
    """Directory holding downloaded GGUF weight files."""
    return DEFAULT_CACHE_DIR / "models"


def get_registry_entry(kind: ModelKind) -> ModelEntry:
    """Default registry entry for a model kind."""
    for entry in MODEL_REGISTRY:
        if entry.kind == kind:
            return entry
    raise KeyError(f"No registry entry for model kind: {kind}")


def get_default_config_data() -> dict:
    """Return the default configuration as a dictionary."""
    return {
        "model": {
            "kind": DEFAULT_MODEL_KIND.value,
            "path": None,  # GGUF weights; defaults to the registry file in the cache dir
        },
        "runtime": {
            "executable": None,  # llama-completion; auto-detected when unset
            "context_size": DEFAULT_CONTEXT_SIZE,
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
        },
        "translation": {
            "target": DEFAULT_TARGET,
        },
        "ui": {
            "show_detected_language": True,
            "colored_output": True,
        },
    }


def create_default_config(config_path: Path | None = None) -> Path:
    """
    Create the default config file if it doesn't exist.

    Args:
        config_path: Path to config file. Defaults to ~/.config/localtranslate/config.yaml

    Returns:
        Path to the config file
    """
    path = config_path or (DEFAULT_CONFIG_DIR / "config.yaml")

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(get_default_config_data(), f, default_flow_style=False, sort_keys=False)

    return path


class Config:
    """Configuration for LocalTranslate CLI."""

    def __init__(self, config_path: Path | None = None, auto_create: bool = True):
        self.config_path = config_path or (DEFAULT_CONFIG_DIR / "config.yaml")

        # Auto-create config file with defaults on first run
        if auto_create and not self.config_path.exists():
            create_default_config(self.config_path)

        self._data = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file or return defaults."""
        if self.config_path.exists():
            with open(self.config_path) as f:
                return yaml.safe_load(f) or {}
        return get_default_config_data()

    def _section(self, name: str) -> dict:
        if not isinstance(self._data.get(name), dict):
            self._data[name] = {}
        return self._data[name]

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            yaml.dump(self._data, f, default_flow_style=False, sort_keys=False)

    @property
    def model_kind(self) -> ModelKind:
        """
        Configured model variant.

        Raises:
            ValueError: If the config file names an unknown kind
        """
        kind = self._data.get("model", {}).get("kind", DEFAULT_MODEL_KIND.value)
        if kind not in ModelKind.values():
            raise ValueError(
                f"Invalid model kind: {kind} (in {self.config_path}). Must be one of {ModelKind.values()}"
            )
        return ModelKind(kind)

    @model_kind.setter
    def model_kind(self, value: ModelKind | str) -> None:
        if value not in ModelKind.values():
            raise ValueError(f"Invalid model kind: {value}. Must be one of {ModelKind.values()}")
        self._section("model")["kind"] = ModelKind(value).value

    @property
    def model_path(self) -> Path:
        """Path to the GGUF weights file."""
        path = self._data.get("model", {}).get("path")
        if path:
            return Path(path).expanduser()
        return get_models_dir() / get_registry_entry(self.model_kind).file_name

    @model_path.setter
    def model_path(self, value: Path | None) -> None:
        self._section("model")["path"] = str(value) if value else None

    @property
    def executable(self) -> Path | None:
        """Explicit llama.cpp executable, or None to auto-detect."""
        path = self._data.get("runtime", {}).get("executable")
        return Path(path).expanduser() if path else None

    @executable.setter
    def executable(self, value: Path | None) -> None:
        self._section("runtime")["executable"] = str(value) if value else None

    @property
    def context_size(self) -> int:
        """Context window size passed as -c."""
        return self._data.get("runtime", {}).get("context_size", DEFAULT_CONTEXT_SIZE)

    @context_size.setter
    def context_size(self, value: int) -> None:
        if value <= 0:
            raise ValueError("Context size must be a positive integer")
        self._section("runtime")["context_size"] = value

    @property
    def temperature(self) -> float:
        """Sampling temperature passed as --temp."""
        return self._data.get("runtime", {}).get("temperature", DEFAULT_TEMPERATURE)

    @temperature.setter
    def temperature(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError("Temperature must be between 0.0 and 1.0")
        self._section("runtime")["temperature"] = value

    @property
    def max_tokens(self) -> int:
        """Maximum tokens to generate."""
        return self._data.get("runtime", {}).get("max_tokens", DEFAULT_MAX_TOKENS)

    @max_tokens.setter
    def max_tokens(self, value: int) -> None:
        if value <= 0:
            raise ValueError("Max tokens must be a positive integer")
        self._section("runtime")["max_tokens"] = value

    @property
    def target_language(self) -> Language | None:
        """Fixed target language, or None to translate into the opposite of the input."""
        target = self._data.get("translation", {}).get("target", DEFAULT_TARGET)
        if target in ("ja", "en"):
            return Language.from_code(target)
        return None

    @target_language.setter
    def target_language(self, value: Language | None) -> None:
        self._section("translation")["target"] = value.code if value else DEFAULT_TARGET

    @property
    def show_language_indicator(self) -> bool:
        """Whether to show [ja→en] prefix in output."""
        return self._data.get("ui", {}).get("show_detected_language", True)

    @property
    def colored_output(self) -> bool:
        """Whether to use colored terminal output."""
        return self._data.get("ui", {}).get("colored_output", True)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None

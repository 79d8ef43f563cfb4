"""Model registry lookups: weights paths and on-disk status.

Downloading weights is left to the user (or a separate tool); this module
only tells the translator where the GGUF file for a model kind lives.
"""

from __future__ import annotations

from pathlib import Path

from .adapters import get_adapter
from .config import (
    MODEL_REGISTRY,
    get_config,
    get_models_dir,
    get_registry_entry,
)
from .types import ModelKind


def get_weights_path(kind: ModelKind | None = None) -> Path:
    """
    Resolve the weights file for a model kind.

    Args:
        kind: Model kind. If None, uses config default (including any
            explicit model.path override).
    """
    config = get_config()
    if kind is None or kind == config.model_kind:
        return config.model_path
    return get_models_dir() / get_registry_entry(kind).file_name


def is_model_ready(kind: ModelKind | None = None) -> bool:
    """Check if the weights file exists."""
    return get_weights_path(kind).is_file()


def list_models() -> list[dict]:
    """List all registry models with their download status."""
    models_dir = get_models_dir()
    models = []

    for entry in MODEL_REGISTRY:
        path = models_dir / entry.file_name
        info = {
            "name": entry.name,
            "kind": entry.kind.value,
            "file_name": entry.file_name,
            "license": entry.license_note,
            "size_description": entry.size_description,
            "path": str(path),
            "downloaded": path.is_file(),
        }

        if info["downloaded"]:
            info["actual_size_gb"] = round(path.stat().st_size / (1024 ** 3), 2)

        models.append(info)

    return models


def get_model_info(kind: ModelKind | None = None) -> dict:
    """Get information about a model."""
    config = get_config()
    kind = kind or config.model_kind
    entry = get_registry_entry(kind)
    adapter = get_adapter(kind)
    weights_path = get_weights_path(kind)

    info = {
        "kind": kind.value,
        "name": entry.name,
        "adapter": adapter.name,
        "license": entry.license_note,
        "local_path": str(weights_path),
        "stop_sequences": list(adapter.stop_sequences),
        "ready": weights_path.is_file(),
    }

    if info["ready"]:
        info["size_gb"] = round(weights_path.stat().st_size / (1024 ** 3), 2)

    return info

"""Shared fixtures for LocalTranslate CLI tests."""

from pathlib import Path

import pytest

from localtranslate_cli.types import ProcessInvocationConfig


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def temp_cache_dir(tmp_path):
    """Create a temporary cache directory."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


@pytest.fixture
def temp_weights(temp_cache_dir):
    """Create a fake ALMA weights file in the models directory."""
    models_dir = temp_cache_dir / "models"
    models_dir.mkdir(parents=True, exist_ok=True)
    weights = models_dir / "webbigdata-ALMA-7B-Ja-q4_K_M.gguf"
    weights.write_bytes(b"GGUF")
    return weights


@pytest.fixture
def fake_executable(tmp_path):
    """Create an executable file standing in for llama-completion."""
    path = tmp_path / "bin" / "llama-completion"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def invocation(tmp_path, fake_executable):
    """An invocation config pointing at the fake executable."""
    return ProcessInvocationConfig(
        executable_path=fake_executable,
        weights_path=tmp_path / "model.gguf",
    )


@pytest.fixture
def mock_config(temp_config_dir, temp_cache_dir, monkeypatch):
    """Patch config paths to use temp directories."""
    from localtranslate_cli import config
    from localtranslate_cli import translator

    monkeypatch.setattr(config, "DEFAULT_CONFIG_DIR", temp_config_dir)
    monkeypatch.setattr(config, "DEFAULT_CACHE_DIR", temp_cache_dir)
    monkeypatch.delenv("LOCALTRANSLATE_LLAMA", raising=False)

    # Reset global state
    config.reset_config()
    translator.reset_translator()

    yield config.get_config()

    # Cleanup
    config.reset_config()
    translator.reset_translator()


class FakeRunner:
    """Process runner substitute that records calls and returns canned output."""

    def __init__(self, output="translated text", error=None):
        self.output = output
        self.error = error
        self.calls = []

    @property
    def call_count(self):
        return len(self.calls)

    def run(self, prompt, config, stop_sequences):
        self.calls.append((prompt, config, tuple(stop_sequences)))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def fake_runner():
    """A runner that returns "translated text"."""
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory for runners with custom output or error."""
    return FakeRunner


@pytest.fixture
def sample_texts():
    """Sample texts in both languages for testing."""
    return {
        "japanese": [
            "こんにちは",
            "ありがとう",
            "カタカナ",
            "日本語",
            "今日は良い天気ですね",
        ],
        "english": [
            "Hello there",
            "The weather is nice today",
            "Thank you",
            "Good morning",
        ],
        "mixed": [
            "私はcoffeeが好きです",
            "Hello 世界",
        ],
    }


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()

"""Tests for translation engine."""

import asyncio
import logging
import re

import pytest

from localtranslate_cli.adapters import AdapterSpec
from localtranslate_cli.errors import (
    ConfigurationError,
    EmptyInputError,
    InferenceError,
    NonZeroExitError,
    NotReadyError,
    SpawnError,
    ValidationError,
)
from localtranslate_cli.translator import (
    Translator,
    get_translator,
    reset_translator,
)
from localtranslate_cli.types import Language, ModelKind, TranslationRequest


@pytest.fixture
def weights(tmp_path):
    path = tmp_path / "model.gguf"
    path.write_bytes(b"GGUF")
    return path


@pytest.fixture
def make_translator(weights, fake_executable, fake_runner):
    """Build a translator wired to a fake runner and executable."""
    def _make(kind=ModelKind.ALMA, runner=None, **kwargs):
        return Translator(
            weights,
            kind,
            executable_candidates=[fake_executable],
            runner=runner or fake_runner,
            **kwargs,
        )
    return _make


@pytest.fixture
def loaded(make_translator):
    translator = make_translator()
    translator.load_model()
    return translator


class TestTranslatorLifecycle:
    """Test load and unload."""

    def test_initial_state(self, make_translator):
        """Test translator initial state."""
        translator = make_translator()

        assert translator.is_ready is False
        assert translator.model_kind == ModelKind.ALMA
        assert translator.adapter.name == "ALMA-7B-Ja (GGUF)"
        assert translator.executable_path is None

    def test_load_model(self, make_translator, fake_executable):
        translator = make_translator()
        translator.load_model()

        assert translator.is_ready is True
        assert translator.executable_path == fake_executable

    def test_load_model_idempotent(self, make_translator, fake_executable):
        """Test a second load while ready changes nothing."""
        translator = make_translator()
        translator.load_model()
        translator.load_model()

        assert translator.is_ready is True
        assert translator.executable_path == fake_executable

    def test_missing_weights(self, tmp_path, fake_executable, fake_runner):
        """Test missing weights fail the load."""
        translator = Translator(
            tmp_path / "absent.gguf",
            ModelKind.ALMA,
            executable_candidates=[fake_executable],
            runner=fake_runner,
        )
        with pytest.raises(ConfigurationError, match="Model file not found"):
            translator.load_model()
        assert translator.is_ready is False

    def test_missing_executable(self, weights, tmp_path, fake_runner):
        """Test a missing executable fails the load."""
        translator = Translator(
            weights,
            ModelKind.ALMA,
            executable_candidates=[tmp_path / "no-such-llama"],
            runner=fake_runner,
        )
        with pytest.raises(ConfigurationError, match="llama-completion was not found"):
            translator.load_model()
        assert translator.is_ready is False

    def test_invalid_settings(self, make_translator):
        """Test out-of-range parameters surface as configuration errors."""
        translator = make_translator(temperature=2.0)
        with pytest.raises(ConfigurationError, match="temperature"):
            translator.load_model()

    def test_explicit_executable_override(self, weights, fake_executable, fake_runner):
        """Test the executable argument is probed first."""
        translator = Translator(weights, ModelKind.ALMA, executable=fake_executable, runner=fake_runner)
        translator.load_model()
        assert translator.executable_path == fake_executable

    def test_unload_model(self, loaded):
        loaded.unload_model()
        assert loaded.is_ready is False

    def test_context_manager(self, make_translator):
        """Test the with block loads and unloads."""
        translator = make_translator()
        with translator as active:
            assert active is translator
            assert translator.is_ready is True
        assert translator.is_ready is False

    def test_from_config(self, mock_config, temp_weights, fake_executable, fake_runner):
        """Test construction from YAML settings."""
        mock_config.executable = fake_executable
        mock_config.max_tokens = 128

        translator = Translator.from_config(runner=fake_runner)
        translator.load_model()
        translator.translate("Hello")

        invocation = fake_runner.calls[0][1]
        assert translator.weights_path == temp_weights
        assert invocation.executable_path == fake_executable
        assert invocation.max_tokens == 128

    def test_from_config_unknown_kind(self, mock_config, tmp_path, fake_runner):
        """Test a misspelled kind is reported instead of picking another adapter."""
        weights = tmp_path / "elyza.gguf"
        weights.write_bytes(b"GGUF")
        mock_config._data["model"] = {"kind": "elyzaa", "path": str(weights)}

        with pytest.raises(ConfigurationError, match="elyzaa"):
            Translator.from_config(runner=fake_runner)

    def test_get_translator_unknown_kind(self, mock_config):
        mock_config._data["model"] = {"kind": "elyzaa", "path": None}

        with pytest.raises(ConfigurationError, match="Invalid model kind"):
            get_translator()


class TestTranslate:
    """Test translate()."""

    def test_not_ready(self, make_translator, fake_runner):
        """Test translate before load raises without spawning."""
        translator = make_translator()
        with pytest.raises(NotReadyError):
            translator.translate("Hello")
        assert fake_runner.call_count == 0

    def test_not_ready_after_unload(self, loaded, fake_runner):
        loaded.unload_model()
        with pytest.raises(NotReadyError):
            loaded.translate("Hello")
        assert fake_runner.call_count == 0

    @pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
    def test_empty_input(self, loaded, fake_runner, text):
        """Test blank input is rejected before any process runs."""
        with pytest.raises(ValidationError):
            loaded.translate(text)
        assert fake_runner.call_count == 0

    def test_empty_input_error_type(self, loaded):
        with pytest.raises(EmptyInputError, match="empty"):
            loaded.translate("   ")

    def test_auto_detect_japanese(self, loaded, fake_runner):
        """Test Japanese input is detected and translated to English."""
        result = loaded.translate("こんにちは")

        assert result.detected_source_language == Language.JAPANESE
        prompt = fake_runner.calls[0][0]
        assert prompt == "Translate this from Japanese to English:\nJapanese: こんにちは\nEnglish:"

    def test_auto_detect_english(self, loaded, fake_runner):
        """Test English input is detected and translated to Japanese."""
        result = loaded.translate("Good morning")

        assert result.detected_source_language == Language.ENGLISH
        assert "from English to Japanese" in fake_runner.calls[0][0]

    def test_explicit_source_not_reported(self, loaded):
        """Test detected_source_language is unset when the source is given."""
        result = loaded.translate("Hello", source_language=Language.ENGLISH)
        assert result.detected_source_language is None

    def test_explicit_target(self, loaded, fake_runner):
        """Test an explicit target is used as given."""
        loaded.translate("こんにちは", target_language=Language.JAPANESE)
        assert "from Japanese to Japanese" in fake_runner.calls[0][0]

    def test_input_trimmed_and_normalized(self, make_translator, fake_runner):
        """Test trimming and newline normalization before the template."""
        translator = make_translator(kind=ModelKind.PLAMO)
        translator.load_model()
        translator.translate("  first\r\n\r\n\r\n\r\nsecond  ")

        prompt = fake_runner.calls[0][0]
        assert "\nfirst\n\nsecond\n" in prompt
        assert "\r" not in prompt

    def test_adapter_stop_sequences_passed(self, make_translator, fake_runner):
        translator = make_translator(kind=ModelKind.QWEN3_8B)
        translator.load_model()
        translator.translate("Hello")

        assert fake_runner.calls[0][2] == ("<|im_end|>", "<|endoftext|>")

    def test_one_process_per_call(self, loaded, fake_runner):
        loaded.translate("one")
        loaded.translate("two")
        assert fake_runner.call_count == 2

    def test_output_cleaned(self, make_translator, make_runner):
        """Test raw output is cleaned with the adapter rules."""
        runner = make_runner(output="以下が翻訳結果です：\nGood morning<|eot_id|>[end of text]\n")
        translator = make_translator(kind=ModelKind.ELYZA, runner=runner)
        translator.load_model()

        result = translator.translate("おはようございます")
        assert result.translated_text == "Good morning"

    def test_result_fields(self, loaded):
        result = loaded.translate("Hello")

        assert result.translated_text == "translated text"
        assert result.duration_seconds >= 0
        assert result.token_count is None

    def test_inference_error_propagates(self, make_translator, make_runner):
        """Test process failures reach the caller with stderr intact."""
        runner = make_runner(error=NonZeroExitError(1, "boom"))
        translator = make_translator(runner=runner)
        translator.load_model()

        with pytest.raises(InferenceError, match="boom"):
            translator.translate("Hello")
        assert translator.is_ready is True

    def test_inference_error_logged(self, make_translator, make_runner, caplog):
        runner = make_runner(error=SpawnError("cannot start"))
        translator = make_translator(runner=runner)
        translator.load_model()

        with caplog.at_level(logging.WARNING, logger="localtranslate_cli.translator"):
            with pytest.raises(SpawnError):
                translator.translate("Hello")
        assert "cannot start" in caplog.text

    def test_custom_adapter_end_to_end(self, make_translator, make_runner):
        """Test a chat-style adapter with its own stop token and prefix rule."""
        adapter = AdapterSpec(
            name="custom chat",
            prompt_template=lambda text, source, target: f"<user>{source.code}>{target.code}: {text}<EOT><assistant>",
            stop_sequences=("<EOT>",),
            control_tokens=("<EOT>",),
            cleanup_patterns=(re.compile(r"^Result: "),),
        )
        runner = make_runner(output="Result: Konnichiwa<EOT>")
        translator = make_translator(runner=runner, adapter=adapter)
        translator.load_model()

        result = translator.translate("こんにちは", target_language=Language.ENGLISH)

        assert result.translated_text == "Konnichiwa"
        assert runner.calls[0][0] == "<user>ja>en: こんにちは<EOT><assistant>"
        assert runner.calls[0][2] == ("<EOT>",)

    def test_translate_request(self, loaded, fake_runner):
        request = TranslationRequest(text="Hello", target_language=Language.JAPANESE)
        result = loaded.translate_request(request)

        assert result.detected_source_language == Language.ENGLISH
        assert fake_runner.call_count == 1


class TestConcurrentTranslate:
    """Test non-blocking entry points."""

    def test_translate_async(self, loaded):
        future = loaded.translate_async("Hello")
        assert future.result(timeout=5).translated_text == "translated text"

    def test_translate_async_error(self, make_translator):
        """Test errors are delivered through the future."""
        translator = make_translator()
        future = translator.translate_async("Hello")
        with pytest.raises(NotReadyError):
            future.result(timeout=5)

    def test_many_in_flight(self, loaded, fake_runner):
        futures = [loaded.translate_async(f"text {i}") for i in range(8)]
        results = [f.result(timeout=5) for f in futures]

        assert len(results) == 8
        assert fake_runner.call_count == 8

    def test_atranslate(self, loaded):
        result = asyncio.run(loaded.atranslate("こんにちは"))
        assert result.detected_source_language == Language.JAPANESE

    def test_atranslate_error(self, loaded):
        with pytest.raises(EmptyInputError):
            asyncio.run(loaded.atranslate(" "))


class TestGlobalTranslator:
    """Test global translator singleton."""

    def test_get_translator_singleton(self, mock_config):
        """Test that get_translator returns same instance."""
        assert get_translator() is get_translator()

    def test_get_translator_uses_config(self, mock_config):
        mock_config.model_kind = ModelKind.TRANSLATEGEMMA
        translator = get_translator()
        assert translator.model_kind == ModelKind.TRANSLATEGEMMA

    def test_reset_translator(self, mock_config):
        """Test that reset_translator clears the singleton."""
        first = get_translator()
        reset_translator()
        assert get_translator() is not first

"""Per-model prompt grammars, stop sequences, and output cleanup.

Each supported ``ModelKind`` maps to one ``AdapterSpec``. The table is
closed: adding a model means adding a ``ModelKind`` member and an entry in
``_ADAPTERS``. A missing entry fails at import time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Pattern

from .types import Language, ModelKind

PromptTemplate = Callable[[str, Language, Language], str]
Normalizer = Callable[[str], str]

# llama.cpp appends this to stdout when generation reaches end of stream
END_OF_TEXT_MARKER = "[end of text]"

_BLANK_LINE_RUN = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """
    Unify line endings and collapse runs of blank lines.

    ``\\r\\n`` and ``\\r`` become ``\\n``; any run of three or more newlines
    becomes exactly two, so paragraph breaks survive.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _BLANK_LINE_RUN.sub("\n\n", text)


def flatten_newlines(text: str) -> str:
    """Replace every line break with a space."""
    return normalize_whitespace(text).replace("\n", " ")


@dataclass(frozen=True)
class AdapterSpec:
    """
    Everything that differs between models.

    Attributes:
        name: Display name
        prompt_template: Renders (text, source, target) into the model's prompt
        stop_sequences: Markers passed to llama.cpp as reverse prompts, in order
        control_tokens: Literal tokens removed from the output wherever they occur
        cleanup_patterns: Anchored preamble patterns, first match wins
        input_normalizer: Applied to the input before the template
    """

    name: str
    prompt_template: PromptTemplate
    stop_sequences: tuple[str, ...]
    control_tokens: tuple[str, ...] = ()
    cleanup_patterns: tuple[Pattern[str], ...] = ()
    input_normalizer: Normalizer = field(default=normalize_whitespace)

    def __post_init__(self) -> None:
        if not self.stop_sequences:
            raise ValueError(f"Adapter {self.name!r} must declare at least one stop sequence")

    def build_prompt(self, text: str, source: Language, target: Language) -> str:
        return self.prompt_template(text, source, target)

    def normalize_input(self, text: str) -> str:
        return self.input_normalizer(text)

    def clean_output(self, raw: str) -> str:
        """
        Strip control tokens and a leading preamble from raw model output.

        Control tokens are removed until none remain. Then the first cleanup
        pattern that matches at the start of the text drops everything up to
        the end of its match; later patterns are not tried.
        """
        text = raw
        while any(token in text for token in self.control_tokens):
            for token in self.control_tokens:
                text = text.replace(token, "")
        text = text.strip()

        for pattern in self.cleanup_patterns:
            match = pattern.match(text)
            if match:
                text = text[match.end():]
                break

        return text.strip()


def _preamble_patterns(*preambles: str) -> tuple[Pattern[str], ...]:
    """
    Anchor each preamble and let it absorb any preambles stacked after it.

    The first pattern that matches still wins, but its match runs through
    the whole leading run of preambles, so cleaning twice changes nothing.
    """
    any_preamble = "|".join(f"(?:{p})" for p in preambles)
    return tuple(
        re.compile(rf"^(?:{p})(?:\s*(?:{any_preamble}))*") for p in preambles
    )


# --- A: PLaMo-2-translate ----------------------------------------------------

PLAMO_OP = "<|plamo:op|>"


def _plamo_prompt(text: str, source: Language, target: Language) -> str:
    return (
        f"{PLAMO_OP}dataset translation\n"
        f"{PLAMO_OP}input lang={source.value}\n"
        f"{text}\n"
        f"{PLAMO_OP}output lang={target.value}\n"
    )


# --- B / C: Llama 3 chat (ELYZA-JP and generic instruct) ----------------------

LLAMA3_EOT = "<|eot_id|>"
LLAMA3_END_OF_TEXT = "<|end_of_text|>"

ELYZA_SYSTEM_PROMPT = (
    "あなたは翻訳APIです。入力された全文を翻訳して出力してください。"
    "途中で止めず、最後まで翻訳してください。"
    "「翻訳結果」「以下」などの前置きや説明は絶対に付けないでください。"
)

LLAMA3_SYSTEM_PROMPT = "You are a professional translator. Reply with the translation only."

# Preambles chat models put before the translation
ENGLISH_PREAMBLES = (
    r"(?i:(?:here is|here's|the following is) (?:the |my )?(?:full |complete )?translation[^:\n]*[:：])\s*",
    r"(?i:translation(?: result)?\s*[:：])\s*",
)

JAPANESE_PREAMBLES = (
    r"以下[がは]翻訳結果です[。：:]*\s*",
    r"翻訳結果[：:]*\s*",
    r"以下[がは].*?翻訳.*?です[。：:]*\s*",
    r".*?を翻訳しました[。：:]*\s*",
)


def _llama3_chat(system_prompt: str, user_prompt: str) -> str:
    return (
        "<|begin_of_text|>"
        f"<|start_header_id|>system<|end_header_id|>\n\n{system_prompt}{LLAMA3_EOT}"
        f"<|start_header_id|>user<|end_header_id|>\n\n{user_prompt}{LLAMA3_EOT}"
        "<|start_header_id|>assistant<|end_header_id|>\n\n"
    )


def _elyza_prompt(text: str, source: Language, target: Language) -> str:
    if target is Language.JAPANESE:
        user_prompt = f"以下の英語を全て日本語に翻訳してください:\n{text}"
    else:
        user_prompt = f"以下の日本語を全て英語に翻訳してください:\n{text}"
    return _llama3_chat(ELYZA_SYSTEM_PROMPT, user_prompt)


def _llama3_prompt(text: str, source: Language, target: Language) -> str:
    return _llama3_chat(
        LLAMA3_SYSTEM_PROMPT,
        f"Translate from {source.value} to {target.value}:\n{text}",
    )


# --- D: Qwen3 ChatML ----------------------------------------------------------

QWEN_IM_START = "<|im_start|>"
QWEN_IM_END = "<|im_end|>"
QWEN_END_OF_TEXT = "<|endoftext|>"

QWEN3_SYSTEM_PROMPT = (
    "You are a translator. Translate the given text accurately and completely. "
    "Output only the translation without any explanations or preambles."
)


def _qwen3_prompt(text: str, source: Language, target: Language) -> str:
    user_prompt = f"Translate the following {source.value} text to {target.value}:\n\n{text} /no_think"
    return (
        f"{QWEN_IM_START}system\n{QWEN3_SYSTEM_PROMPT}{QWEN_IM_END}\n"
        f"{QWEN_IM_START}user\n{user_prompt}{QWEN_IM_END}\n"
        f"{QWEN_IM_START}assistant\n"
    )


# --- E: ALMA-7B-Ja ------------------------------------------------------------

ALMA_EOS = "</s>"


def _alma_prompt(text: str, source: Language, target: Language) -> str:
    return f"Translate this from {source.value} to {target.value}:\n{source.value}: {text}\n{target.value}:"


# --- F: TranslateGemma --------------------------------------------------------

GEMMA_START_OF_TURN = "<start_of_turn>"
GEMMA_END_OF_TURN = "<end_of_turn>"


def _translategemma_prompt(text: str, source: Language, target: Language) -> str:
    instruction = f"Translate the following text from {source.value} to {target.value}. Output only the translation."
    return f"{GEMMA_START_OF_TURN}user\n{instruction}\n\n{text}{GEMMA_END_OF_TURN}\n{GEMMA_START_OF_TURN}model\n"


_QWEN3_ADAPTER = AdapterSpec(
    name="Qwen3 (GGUF)",
    prompt_template=_qwen3_prompt,
    stop_sequences=(QWEN_IM_END, QWEN_END_OF_TEXT),
    control_tokens=(
        END_OF_TEXT_MARKER, QWEN_IM_END, QWEN_IM_START, QWEN_END_OF_TEXT,
        # /no_think should suppress these, but an empty trace still slips through
        "<think>", "</think>",
    ),
)

_ADAPTERS: dict[ModelKind, AdapterSpec] = {
    ModelKind.PLAMO: AdapterSpec(
        name="PLaMo-2-translate (GGUF)",
        prompt_template=_plamo_prompt,
        stop_sequences=(PLAMO_OP,),
        control_tokens=(END_OF_TEXT_MARKER, PLAMO_OP),
    ),
    ModelKind.ELYZA: AdapterSpec(
        name="ELYZA-JP-8B (GGUF)",
        prompt_template=_elyza_prompt,
        stop_sequences=(LLAMA3_EOT,),
        control_tokens=(END_OF_TEXT_MARKER, LLAMA3_EOT, LLAMA3_END_OF_TEXT),
        cleanup_patterns=_preamble_patterns(*JAPANESE_PREAMBLES, *ENGLISH_PREAMBLES),
    ),
    ModelKind.LLAMA3: AdapterSpec(
        name="Llama-3-8B-Instruct (GGUF)",
        prompt_template=_llama3_prompt,
        stop_sequences=(LLAMA3_EOT,),
        control_tokens=(END_OF_TEXT_MARKER, LLAMA3_EOT, LLAMA3_END_OF_TEXT),
        cleanup_patterns=_preamble_patterns(*ENGLISH_PREAMBLES),
    ),
    ModelKind.QWEN3_8B: _QWEN3_ADAPTER,
    ModelKind.QWEN3_4B: _QWEN3_ADAPTER,
    ModelKind.ALMA: AdapterSpec(
        name="ALMA-7B-Ja (GGUF)",
        prompt_template=_alma_prompt,
        stop_sequences=(ALMA_EOS,),
        control_tokens=(END_OF_TEXT_MARKER, ALMA_EOS),
        # ALMA stops generating at the first blank line
        input_normalizer=flatten_newlines,
    ),
    ModelKind.TRANSLATEGEMMA: AdapterSpec(
        name="TranslateGemma-4B (GGUF)",
        prompt_template=_translategemma_prompt,
        stop_sequences=(GEMMA_END_OF_TURN,),
        control_tokens=(END_OF_TEXT_MARKER, GEMMA_END_OF_TURN, GEMMA_START_OF_TURN, "<eos>"),
    ),
}

_missing = [kind.value for kind in ModelKind if kind not in _ADAPTERS]
if _missing:
    raise RuntimeError(f"No adapter registered for model kinds: {', '.join(_missing)}")


def get_adapter(kind: ModelKind) -> AdapterSpec:
    """Return the adapter for a model kind."""
    return _ADAPTERS[ModelKind(kind)]

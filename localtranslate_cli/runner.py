"""llama.cpp process runner.

Each translation spawns one ``llama-completion`` process:

    <executable> -m <weights> -p <prompt> -n <max_tokens> -c <context_size>
                 --temp <temperature> --no-display-prompt --no-conversation
                 [-r <stop>]...

With ``--no-display-prompt`` stdout holds only the generated continuation.
A non-zero exit status is a failure and stderr carries the diagnostic.
There is no retry and no timeout; the token budget bounds the run time.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from .errors import ConfigurationError, DecodeError, NonZeroExitError, SpawnError
from .types import ProcessInvocationConfig

logger = logging.getLogger(__name__)

EXECUTABLE_ENV_VAR = "LOCALTRANSLATE_LLAMA"

# Shipped alongside the package (e.g. by an app bundle build)
BUNDLED_EXECUTABLE = Path(__file__).parent / "bin" / "llama-completion"

SYSTEM_EXECUTABLES = (
    Path("/opt/homebrew/bin/llama-completion"),
    Path("/usr/local/bin/llama-completion"),
    Path("/opt/homebrew/bin/llama-cli"),
    Path("/usr/local/bin/llama-cli"),
)

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def get_executor() -> ThreadPoolExecutor:
    """Shared worker threads that wait on inference processes."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(thread_name_prefix="localtranslate")
        return _executor


def default_candidates(override: Path | None = None) -> list[Path]:
    """
    Candidate executable locations, in probe order.

    An explicit override comes first, then $LOCALTRANSLATE_LLAMA, then the
    bundled binary, then the usual Homebrew and /usr/local installs.
    """
    candidates: list[Path] = []
    if override is not None:
        candidates.append(Path(override).expanduser())
    env_path = os.environ.get(EXECUTABLE_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(BUNDLED_EXECUTABLE)
    candidates.extend(SYSTEM_EXECUTABLES)
    return candidates


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_executable(candidates: Iterable[Path] | None = None) -> Path:
    """
    Return the first candidate that exists and is executable.

    Raises:
        ConfigurationError: If no candidate qualifies
    """
    probed = list(candidates) if candidates is not None else default_candidates()
    for path in probed:
        if is_executable(path):
            logger.debug("Using llama.cpp executable %s", path)
            return path

    searched = "\n".join(f"  {path}" for path in probed)
    raise ConfigurationError(
        "llama-completion was not found. Install llama.cpp (brew install llama.cpp) "
        f"or set {EXECUTABLE_ENV_VAR}.\nSearched:\n{searched}"
    )


def build_arguments(
    prompt: str,
    config: ProcessInvocationConfig,
    stop_sequences: Sequence[str],
) -> list[str]:
    """Assemble the full argv for one completion run."""
    args = [
        str(config.executable_path),
        "-m", str(config.weights_path),
        "-p", prompt,
        "-n", str(config.max_tokens),
        "-c", str(config.context_size),
        "--temp", str(config.temperature),
        "--no-display-prompt",
        "--no-conversation",
    ]
    for stop in stop_sequences:
        args += ["-r", stop]
    return args


class ProcessRunner(Protocol):
    """Anything that turns a prompt into raw model output."""

    def run(
        self,
        prompt: str,
        config: ProcessInvocationConfig,
        stop_sequences: Sequence[str],
    ) -> str:
        ...


class LlamaCppRunner:
    """Runs one llama.cpp completion process per call."""

    def run(
        self,
        prompt: str,
        config: ProcessInvocationConfig,
        stop_sequences: Sequence[str],
    ) -> str:
        """
        Run llama.cpp to completion and return its stdout.

        Blocks until the process exits; Translator.translate_async() runs
        it on a worker thread.

        Raises:
            SpawnError: The executable could not be started
            NonZeroExitError: The process exited with a non-zero status
            DecodeError: Stdout was not valid UTF-8
        """
        args = build_arguments(prompt, config, stop_sequences)
        logger.debug(
            "Spawning %s (%d args, %d stop sequences)",
            config.executable_path, len(args), len(stop_sequences),
        )

        # capture_output drains both pipes before the exit status is read
        try:
            completed = subprocess.run(args, capture_output=True, stdin=subprocess.DEVNULL)
        except OSError as e:
            raise SpawnError(f"Could not start {config.executable_path}: {e}") from e

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            raise NonZeroExitError(completed.returncode, stderr)

        try:
            return completed.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Could not decode llama.cpp output as UTF-8: {e}") from e

"""Subprocess-based assistant adapter for CLI language-model agents."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from tasksift.assistant.base import AnalysisRequest, AssistantRunError, IntentRequest
from tasksift.assistant.failure_classifier import (
    classify_assistant_failure,
    invalid_response_failure,
)
from tasksift.assistant.parsing import parse_intent_output
from tasksift.assistant.prompts import build_analysis_prompt, build_intent_prompt
from tasksift.config import AssistantSettings
from tasksift.models import AssistantParse

logger = logging.getLogger(__name__)

_PLACEHOLDERS = ("model", "prompt", "prompt_file")


@dataclass(slots=True)
class CommandResult:
    """Captured outcome of one assistant command run."""

    exit_code: int
    timed_out: bool
    stdout: str
    stderr: str


class CliAssistant:
    """Run an assistant command template for intent parsing and analysis.

    The template may reference ``{model}``, ``{prompt}`` and ``{prompt_file}``.
    """

    def __init__(
        self,
        settings: AssistantSettings,
        *,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> None:
        self._settings = settings
        self._cancel_requested = cancel_requested

    def parse(self, request: IntentRequest) -> AssistantParse:
        stdout = self._call(build_intent_prompt(request))
        parsed = parse_intent_output(stdout)
        if parsed is None:
            raise AssistantRunError(
                invalid_response_failure(
                    model=self._settings.model,
                    message="Assistant returned no JSON intent payload.",
                ),
            )
        return parsed

    def analyze(self, request: AnalysisRequest) -> str:
        stdout = self._call(build_analysis_prompt(request)).strip()
        if not stdout:
            raise AssistantRunError(
                invalid_response_failure(
                    model=self._settings.model,
                    message="Assistant returned an empty response.",
                ),
            )
        return stdout

    def _call(self, prompt: str) -> str:
        with tempfile.TemporaryDirectory(prefix="tasksift-") as workdir:
            prompt_file = Path(workdir) / "prompt.txt"
            prompt_file.write_text(prompt, "utf-8")
            run_args = build_run_args(
                command_template=self._settings.command_template,
                model=self._settings.model,
                prompt=prompt,
                prompt_file=prompt_file,
            )
            logger.debug("Running assistant command %s", run_args[0])
            result = self._run(run_args, Path(workdir))

        if result.timed_out or result.exit_code != 0:
            failure = classify_assistant_failure(
                model=self._settings.model,
                exit_code=None if result.timed_out else result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                timed_out=result.timed_out,
            )
            raise AssistantRunError(failure)
        return result.stdout

    def _run(self, run_args: list[str], workdir: Path) -> CommandResult:
        stdout_path = workdir / "stdout.txt"
        stderr_path = workdir / "stderr.txt"
        env = os.environ.copy()
        env["TASKSIFT_ASSISTANT_MODEL"] = self._settings.model
        try:
            with (
                stdout_path.open("w", encoding="utf-8") as stdout_handle,
                stderr_path.open("w", encoding="utf-8") as stderr_handle,
            ):
                exit_code, timed_out = _run_subprocess(
                    run_args=run_args,
                    env=env,
                    timeout_seconds=self._settings.timeout_seconds,
                    stdout_handle=stdout_handle,
                    stderr_handle=stderr_handle,
                    cancel_requested=self._cancel_requested,
                )
        except FileNotFoundError as error:
            raise AssistantRunError(
                classify_assistant_failure(
                    model=self._settings.model,
                    exit_code=None,
                    stdout="",
                    stderr="",
                    message=f"Assistant command not found: {run_args[0]}",
                ),
            ) from error
        except OSError as error:
            raise AssistantRunError(
                classify_assistant_failure(
                    model=self._settings.model,
                    exit_code=None,
                    stdout="",
                    stderr=str(error),
                    message=f"Assistant command failed to start: {error}",
                ),
            ) from error
        return CommandResult(
            exit_code=exit_code,
            timed_out=timed_out,
            stdout=stdout_path.read_text("utf-8"),
            stderr=stderr_path.read_text("utf-8"),
        )


def build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    prompt_file: Path,
) -> list[str]:
    """Split the template into argv and substitute placeholders per argument."""

    stripped = command_template.strip()
    if not stripped:
        raise ValueError("Assistant command template is empty. Set TASKSIFT_ASSISTANT_COMMAND.")
    if "{prompt}" not in stripped and "{prompt_file}" not in stripped:
        raise ValueError("Assistant command template must include {prompt} or {prompt_file}.")

    values = {"model": model, "prompt": prompt, "prompt_file": str(prompt_file)}
    try:
        argv = [part.format(**values) for part in shlex.split(stripped)]
    except KeyError as error:
        raise ValueError(
            f"Unsupported command template placeholder: {error}. "
            f"Supported: {', '.join(_PLACEHOLDERS)}",
        ) from error
    if not argv:
        raise ValueError("Assistant command template rendered empty command.")
    return argv


def _run_subprocess(  # noqa: PLR0913
    *,
    run_args: list[str],
    env: dict[str, str],
    timeout_seconds: int,
    stdout_handle: IO[str],
    stderr_handle: IO[str],
    cancel_requested: Callable[[], bool] | None,
) -> tuple[int, bool]:
    process = subprocess.Popen(  # noqa: S603
        run_args,
        env=env,
        stdout=stdout_handle,
        stderr=stderr_handle,
        text=True,
    )
    start_monotonic = time.monotonic()

    while True:
        returncode = process.poll()
        if returncode is not None:
            return returncode, False

        if time.monotonic() - start_monotonic >= timeout_seconds:
            _terminate_process(process)
            return 124, True

        if cancel_requested is not None and cancel_requested():
            _terminate_process(process)
            return 130, False

        time.sleep(0.05)


def _terminate_process(process: subprocess.Popen[str]) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=2)

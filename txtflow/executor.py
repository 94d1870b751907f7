"""Subprocess execution for command pipelines."""

import asyncio
import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from txtflow.errors import (
    StageExitError,
    StageLaunchError,
    StageTimeoutError,
    TxtflowError,
)
from txtflow.result import Failure, Output, PipelineResult
from txtflow.tokenizer import Command, parse_command_line

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Result of running a single pipeline stage."""

    stdout: bytes
    stderr: bytes
    return_code: int
    argv: list[str]


def run_stage(
    argv: Sequence[str],
    input_data: bytes,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> StageResult:
    """
    Run one program to completion and capture its output.

    Args:
        argv: Program and arguments. Not passed through a shell.
        input_data: Bytes written to the program's stdin.
        timeout: Maximum time to wait in seconds (None for no timeout).
        cwd: Working directory for the program.

    Returns:
        StageResult with captured stdout, stderr and return code.

    Raises:
        OSError: If the program cannot be spawned.
        subprocess.TimeoutExpired: If timeout is exceeded. The child has
            already been killed when this propagates.
    """
    result = subprocess.run(
        list(argv),
        input=input_data,
        capture_output=True,
        timeout=timeout,
        cwd=cwd,
    )
    return StageResult(
        stdout=result.stdout,
        stderr=result.stderr,
        return_code=result.returncode,
        argv=list(argv),
    )


def _exit_text(return_code: int) -> str:
    """Describe a non-success exit status when stderr has nothing to say."""
    if return_code < 0:
        try:
            return f"signal: {signal.Signals(-return_code).name}"
        except ValueError:
            return f"signal: {-return_code}"
    return f"exit status {return_code}"


def execute_pipeline(
    commands: Sequence[Command],
    source: bytes,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> bytes:
    """
    Run commands in sequence, feeding each stage's stdout to the next.

    Every stage runs to completion before the next one starts. The first
    failing stage stops the pipeline.

    Args:
        commands: Tokenized pipeline stages.
        source: Input for the first stage.
        timeout: Per-stage timeout in seconds (None for no timeout).
        cwd: Working directory for every stage.

    Returns:
        Captured stdout of the last stage (`source` if there are no stages).

    Raises:
        StageLaunchError: If a program cannot be spawned.
        StageExitError: If a program exits with a non-zero status.
        StageTimeoutError: If a program exceeds the timeout.
    """
    data = source
    for index, command in enumerate(commands):
        logger.debug("Stage %d: running %r (%d bytes in)", index, command.argv, len(data))
        try:
            stage = run_stage(command.argv, data, timeout=timeout, cwd=cwd)
        except subprocess.TimeoutExpired as e:
            raise StageTimeoutError(
                index, command.text, f"timed out after {e.timeout:g} seconds"
            ) from e
        except OSError as e:
            reason = e.strerror or str(e)
            if cwd is not None and not os.path.isdir(cwd):
                detail = f"working directory '{cwd}' is not usable: {reason}"
            else:
                detail = f"could not launch '{command.program}': {reason}"
            raise StageLaunchError(index, command.text, detail) from e

        if stage.return_code != 0:
            stderr = stage.stderr.decode("utf-8", errors="replace").strip()
            raise StageExitError(
                index,
                command.text,
                stderr or _exit_text(stage.return_code),
                return_code=stage.return_code,
            )

        data = stage.stdout
    return data


def run_pipeline(
    command_line: str,
    source: bytes,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> PipelineResult:
    """
    Parse and execute a command line against a source buffer snapshot.

    This is the error boundary: parse, tokenize and stage errors are all
    returned as a Failure rather than raised.

    Args:
        command_line: Raw command line as typed.
        source: Immutable snapshot of the source buffer.
        timeout: Per-stage timeout in seconds (None for no timeout).
        cwd: Working directory for every stage.

    Returns:
        Output with the final stage's stdout, or Failure.

    Example:
        >>> run_pipeline("grep b", b"a\\nb\\nc\\n")
        Output(data=b'b\\n')
    """
    if not command_line.strip():
        return Output(source)

    try:
        commands = parse_command_line(command_line)
        data = execute_pipeline(commands, source, timeout=timeout, cwd=cwd)
    except TxtflowError as e:
        logger.info("Pipeline failed: %s", e)
        return Failure(message=str(e), segment_index=getattr(e, "segment_index", None))
    return Output(data)


async def run_pipeline_async(
    command_line: str,
    source: bytes,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> PipelineResult:
    """Run `run_pipeline` in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(
        run_pipeline, command_line, source, timeout=timeout, cwd=cwd
    )

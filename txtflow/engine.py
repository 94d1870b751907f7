"""Control loop glue: owns engine state and serializes pipeline executions."""

import asyncio
import logging
from typing import Callable, Optional, TextIO

from txtflow.config import EngineConfig
from txtflow.executor import run_pipeline_async
from txtflow.ingest import encode_source, stream_chunks
from txtflow.result import (
    ExecutionState,
    ExecutionStatus,
    Failure,
    Output,
    PipelineResult,
)

logger = logging.getLogger(__name__)

ResultCallback = Callable[[PipelineResult], None]


class PipelineEngine:
    """
    Re-runs the current command line whenever it or the source changes.

    All state lives on the event loop thread: `submit` and `ingest_chunk`
    must be called from it. Executions run in a worker thread, one at a
    time. A trigger that arrives while an execution is in flight marks the
    engine dirty; when the execution completes the engine takes a fresh
    snapshot and runs again. Pending triggers collapse into that one rerun,
    so results always arrive in execution order.

    Create the engine inside a running event loop.

    Example:
        >>> engine = PipelineEngine()
        >>> engine.ingest_chunk("a")
        >>> engine.submit("wc -l")
        >>> await engine.wait_idle()
        >>> engine.output
        b'1\\n'
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        on_result: Optional[ResultCallback] = None,
    ):
        """
        Args:
            config: Execution settings. Defaults to EngineConfig().
            on_result: Called on the loop thread once per completed execution.
        """
        self.config = config or EngineConfig()
        self._listeners: list[ResultCallback] = [on_result] if on_result else []
        self.results: "asyncio.Queue[PipelineResult]" = asyncio.Queue()

        self._chunks: list[str] = []
        self._frozen = False
        self._command_line = ""
        self._state = ExecutionState()
        self._output = b""
        self._error: Optional[str] = None
        self._last_result: Optional[PipelineResult] = None

        self._dirty = False
        self._worker: Optional["asyncio.Task[None]"] = None

    @property
    def command_line(self) -> str:
        return self._command_line

    @property
    def source(self) -> str:
        """Accumulated source buffer."""
        return "".join(self._chunks)

    @property
    def frozen(self) -> bool:
        """True once ingestion has reached end of data."""
        return self._frozen

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def output(self) -> bytes:
        """Last good output. Failures never replace it."""
        return self._output

    @property
    def error_message(self) -> Optional[str]:
        """Message of the latest failure, cleared by the next success."""
        return self._error

    @property
    def last_result(self) -> Optional[PipelineResult]:
        return self._last_result

    def submit(self, command_line: str) -> None:
        """Replace the command line and trigger an execution."""
        self._command_line = command_line
        self._trigger("submit")

    def ingest_chunk(self, text: str) -> None:
        """
        Append one line to the source buffer and trigger an execution.

        Raises:
            RuntimeError: If ingestion has already finished.
        """
        if self._frozen:
            raise RuntimeError("source buffer is frozen, ingestion has finished")
        self._chunks.append(text + "\n")
        self._trigger("ingest")

    def freeze(self) -> None:
        """Mark the source buffer complete."""
        self._frozen = True

    async def ingest(self, stream: TextIO) -> None:
        """
        Ingest every line of `stream`, then freeze the source buffer.

        Raises:
            OSError: If reading the stream fails. The buffer is left unfrozen.
        """
        async for chunk in stream_chunks(stream):
            self.ingest_chunk(chunk)
        self.freeze()
        logger.debug("Source buffer frozen at %d lines", len(self._chunks))

    async def wait_idle(self) -> None:
        """Wait until no execution is running or pending."""
        while self._worker is not None:
            await asyncio.wait({self._worker})

    async def run_once(self, command_line: str) -> PipelineResult:
        """
        Submit `command_line` and return the result it produces.

        Raises:
            RuntimeError: If the execution ended without delivering a result.
        """
        self.submit(command_line)
        await self.wait_idle()
        if self._last_result is None:
            raise RuntimeError(f"no result was delivered for {command_line!r}")
        return self._last_result

    def add_listener(self, callback: ResultCallback) -> None:
        """Call `callback` on the loop thread once per completed execution."""
        self._listeners.append(callback)

    def remove_listener(self, callback: ResultCallback) -> None:
        self._listeners.remove(callback)

    def _trigger(self, reason: str) -> None:
        self._dirty = True
        if self._worker is None:
            logger.debug("Trigger (%s): starting execution", reason)
            self._worker = asyncio.get_running_loop().create_task(self._work())
        else:
            logger.debug("Trigger (%s): execution in flight, rerun queued", reason)

    async def _execute(self) -> PipelineResult:
        command_line = self._command_line
        try:
            snapshot = encode_source(self.source)
            return await run_pipeline_async(
                command_line,
                snapshot,
                timeout=self.config.timeout,
                cwd=self.config.cwd,
            )
        except Exception as e:
            logger.exception("Unexpected error running %r", command_line)
            return Failure(message=f"Error: Command '{command_line}' failed. {e}")

    async def _work(self) -> None:
        try:
            while self._dirty:
                self._dirty = False
                self._state = ExecutionState(ExecutionStatus.RUNNING)
                self._deliver(await self._execute())
        finally:
            self._worker = None
            if self._state.status is ExecutionStatus.RUNNING:
                self._state = ExecutionState(ExecutionStatus.IDLE)

    def _deliver(self, result: PipelineResult) -> None:
        self._state = ExecutionState(ExecutionStatus.DONE, result)
        self._last_result = result
        if isinstance(result, Output):
            self._output = result.data
            self._error = None
        elif isinstance(result, Failure):
            self._error = result.message

        self.results.put_nowait(result)
        for callback in list(self._listeners):
            try:
                callback(result)
            except Exception:
                logger.exception("Result listener %r failed", callback)

        self._state = ExecutionState(ExecutionStatus.IDLE)

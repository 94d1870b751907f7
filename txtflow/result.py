"""Result and state values exchanged between the executor and the engine."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union


@dataclass(frozen=True)
class Output:
    """Successful pipeline result: the final stage's captured stdout."""

    data: bytes

    @property
    def text(self) -> str:
        """Output decoded as UTF-8, undecodable bytes replaced."""
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Failure:
    """Failed pipeline result.

    Attributes:
        message: Human-readable message, shown to the user verbatim.
        segment_index: Index of the failing stage, or None when the
            whole command line failed to parse.
    """

    message: str
    segment_index: Optional[int] = None


PipelineResult = Union[Output, Failure]


class ExecutionStatus(Enum):
    """Lifecycle of a pipeline execution.

    Attributes:
        IDLE: Nothing running, ready for the next trigger.
        RUNNING: An execution is in flight.
        DONE: An execution just completed; its result is attached.
    """

    IDLE = auto()
    RUNNING = auto()
    DONE = auto()


@dataclass(frozen=True)
class ExecutionState:
    """Snapshot of the engine's execution state."""

    status: ExecutionStatus = ExecutionStatus.IDLE
    result: Optional[PipelineResult] = None

"""txtflow - Pipe text through a chain of shell commands and watch the result."""

from txtflow.config import EngineConfig, load_config
from txtflow.engine import PipelineEngine
from txtflow.errors import (
    EmptySegmentError,
    MismatchedQuoteError,
    ParseError,
    StageError,
    StageExitError,
    StageLaunchError,
    StageTimeoutError,
    TokenizeError,
    TxtflowError,
    UnterminatedQuoteError,
)
from txtflow.executor import execute_pipeline, run_pipeline, run_pipeline_async
from txtflow.result import ExecutionState, ExecutionStatus, Failure, Output, PipelineResult
from txtflow.splitter import split_segments
from txtflow.tokenizer import Command, parse_command_line, tokenize

__version__ = "0.1.0"
__all__ = [
    "PipelineEngine",
    "EngineConfig",
    "load_config",
    # Parsing
    "split_segments",
    "tokenize",
    "parse_command_line",
    "Command",
    # Execution
    "execute_pipeline",
    "run_pipeline",
    "run_pipeline_async",
    # Results
    "Output",
    "Failure",
    "PipelineResult",
    "ExecutionState",
    "ExecutionStatus",
    # Errors
    "TxtflowError",
    "ParseError",
    "MismatchedQuoteError",
    "UnterminatedQuoteError",
    "EmptySegmentError",
    "TokenizeError",
    "StageError",
    "StageLaunchError",
    "StageExitError",
    "StageTimeoutError",
]

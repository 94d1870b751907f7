"""Exceptions raised while parsing and executing command pipelines."""

from typing import Optional


class TxtflowError(Exception):
    """Base class for all txtflow errors."""


class ParseError(TxtflowError):
    """Raised when a command line cannot be split into pipeline segments."""


class MismatchedQuoteError(ParseError):
    """A quoted span was closed with a different quote character."""

    def __init__(self, opened: str, attempted: str):
        self.opened = opened
        self.attempted = attempted
        super().__init__(
            f"malformatted command string: mismatched quotes {opened} & {attempted}"
        )


class UnterminatedQuoteError(ParseError):
    """A quoted span was still open at the end of the line."""

    def __init__(self, quote_char: str):
        self.quote_char = quote_char
        super().__init__(f"malformatted command string: unclosed quote {quote_char}")


class EmptySegmentError(ParseError):
    """Two separators (or a separator and a line edge) enclose no command."""

    def __init__(self, segment_index: Optional[int] = None):
        self.segment_index = segment_index
        super().__init__("Syntax error: missing command between pipes")


class TokenizeError(TxtflowError):
    """A segment could not be split into a program and its arguments."""

    def __init__(self, segment_text: str, detail: str, segment_index: int = 0):
        self.segment_text = segment_text
        self.detail = detail
        self.segment_index = segment_index
        super().__init__(f"Failed to parse command {segment_text}: {detail}")


class StageError(TxtflowError):
    """
    A pipeline stage failed.

    Attributes:
        segment_index: Position of the failing stage in the pipeline.
        segment_text: The segment exactly as typed.
        detail: Captured diagnostic text, or the launch/exit error text
            when the process wrote nothing to stderr.
    """

    def __init__(self, segment_index: int, segment_text: str, detail: str):
        self.segment_index = segment_index
        self.segment_text = segment_text
        self.detail = detail
        super().__init__(f"Error: Command '{segment_text}' failed. {detail}")


class StageLaunchError(StageError):
    """The stage's program could not be spawned."""


class StageExitError(StageError):
    """The stage exited with a non-success status."""

    def __init__(
        self, segment_index: int, segment_text: str, detail: str, return_code: int
    ):
        self.return_code = return_code
        super().__init__(segment_index, segment_text, detail)


class StageTimeoutError(StageError):
    """The stage ran longer than the configured timeout and was killed."""

"""Shell-word tokenization of pipeline segments."""

import shlex
from dataclasses import dataclass

from txtflow.errors import TokenizeError
from txtflow.splitter import split_segments


@dataclass(frozen=True)
class Command:
    """A tokenized pipeline segment: one external program invocation."""

    program: str
    args: tuple[str, ...]
    text: str  # segment as typed, used in error messages

    @property
    def argv(self) -> list[str]:
        """Argument vector suitable for process spawning."""
        return [self.program, *self.args]


def tokenize(segment: str, index: int = 0) -> Command:
    """
    Split one segment into a program name and its arguments.

    Uses POSIX shell word splitting: whitespace separates words, quotes and
    backslash escapes are honoured. Nothing is expanded.

    Args:
        segment: Trimmed segment text.
        index: Position of the segment in the pipeline, for error reporting.

    Returns:
        Command for the segment.

    Raises:
        TokenizeError: If the segment is malformed or contains no words.
    """
    try:
        words = shlex.split(segment, comments=False, posix=True)
    except ValueError as e:
        raise TokenizeError(segment, str(e), segment_index=index) from e

    if not words:
        raise TokenizeError(segment, "no command given", segment_index=index)

    return Command(program=words[0], args=tuple(words[1:]), text=segment)


def parse_command_line(line: str) -> list[Command]:
    """
    Derive the full pipeline from a command line.

    Returns:
        One Command per segment, in pipeline order. Empty for a blank line.

    Raises:
        ParseError: If the line cannot be split into segments.
        TokenizeError: If a segment cannot be tokenized.
    """
    return [tokenize(segment, index) for index, segment in enumerate(split_segments(line))]

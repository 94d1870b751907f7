"""Quote-aware splitting of a command line into pipeline segments."""

from dataclasses import dataclass

from txtflow.errors import EmptySegmentError, MismatchedQuoteError, UnterminatedQuoteError

QUOTE_CHARS = ("'", '"', "`")
PIPE = "|"


@dataclass(frozen=True)
class ScanState:
    """Base class for splitter scanner states."""

    pass


@dataclass(frozen=True)
class NoQuote(ScanState):
    """Outside of any quoted span; `|` separates segments."""

    pass


@dataclass(frozen=True)
class InQuote(ScanState):
    """Inside a span opened by `char`; `|` is literal."""

    char: str


NO_QUOTE = NoQuote()


def step(state: ScanState, char: str) -> ScanState:
    """
    Advance the scanner by one character.

    Args:
        state: Current scanner state.
        char: Next character of the command line.

    Returns:
        The state after consuming `char`.

    Raises:
        MismatchedQuoteError: If `char` is a quote character that differs
            from the one that opened the current span.
    """
    if char not in QUOTE_CHARS:
        return state
    if isinstance(state, InQuote):
        if state.char == char:
            return NO_QUOTE
        raise MismatchedQuoteError(opened=state.char, attempted=char)
    return InQuote(char=char)


def split_segments(line: str) -> list[str]:
    """
    Split a command line on unquoted `|` separators.

    Each segment is trimmed of surrounding whitespace. Quote characters are
    kept in the segment text so the tokenizer can interpret them.

    Args:
        line: Raw command line as typed.

    Returns:
        Ordered list of segment strings. Empty for a blank line.

    Raises:
        MismatchedQuoteError: On a close attempt with the wrong quote char.
        UnterminatedQuoteError: If a quoted span is open at end of line.
        EmptySegmentError: If any segment is empty or whitespace only.

    Example:
        >>> split_segments("grep 'a|b' | wc -l")
        ["grep 'a|b'", 'wc -l']
    """
    if not line.strip():
        return []

    segments: list[str] = []
    current: list[str] = []
    state: ScanState = NO_QUOTE

    for char in line:
        if char == PIPE and isinstance(state, NoQuote):
            segments.append("".join(current).strip())
            current = []
            continue
        state = step(state, char)
        current.append(char)

    if isinstance(state, InQuote):
        raise UnterminatedQuoteError(state.char)

    segments.append("".join(current).strip())

    for index, segment in enumerate(segments):
        if not segment:
            raise EmptySegmentError(segment_index=index)

    return segments

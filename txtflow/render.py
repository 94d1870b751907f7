"""Text helpers for displaying pipeline output."""

from txtflow.result import Output


def count_lines(text: str) -> int:
    """Count lines, treating a missing final newline as one more line."""
    if not text:
        return 0
    count = text.count("\n")
    if not text.endswith("\n"):
        count += 1
    return count


def display_text(output: Output) -> str:
    """Output text with one trailing newline trimmed."""
    text = output.text
    if text.endswith("\n"):
        text = text[:-1]
    return text


def add_line_numbers(text: str) -> str:
    """
    Prefix every line with its right-aligned 1-based number.

    Example:
        >>> add_line_numbers("a\\nb")
        '1 a\\n2 b\\n'
    """
    lines = text.split("\n")
    width = len(str(len(lines)))
    return "".join(f"{i:>{width}} {line}\n" for i, line in enumerate(lines, start=1))

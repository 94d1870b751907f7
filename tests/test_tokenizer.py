import pytest

from txtflow.errors import EmptySegmentError, TokenizeError
from txtflow.tokenizer import Command, parse_command_line, tokenize


def test_tokenize_simple():
    cmd = tokenize("wc -l")
    assert cmd == Command(program="wc", args=("-l",), text="wc -l")
    assert cmd.argv == ["wc", "-l"]


def test_tokenize_quotes_and_escapes():
    cmd = tokenize(r"""grep -e 'a|b' "two words" back\ slash""")
    assert cmd.argv == ["grep", "-e", "a|b", "two words", "back slash"]


def test_tokenize_does_not_expand():
    cmd = tokenize("echo $HOME *.py")
    assert cmd.args == ("$HOME", "*.py")


def test_tokenize_keeps_hash():
    assert tokenize("grep #tag").args == ("#tag",)


def test_tokenize_error_carries_segment():
    with pytest.raises(TokenizeError) as exc_info:
        tokenize("echo 'oops", index=2)
    err = exc_info.value
    assert err.segment_text == "echo 'oops"
    assert err.segment_index == 2
    assert str(err).startswith("Failed to parse command echo 'oops: ")


def test_tokenize_no_words():
    with pytest.raises(TokenizeError, match="no command given"):
        tokenize("   ")


def test_parse_command_line():
    commands = parse_command_line("grep 'a|b' | sort -r")
    assert [c.argv for c in commands] == [["grep", "a|b"], ["sort", "-r"]]
    assert [c.text for c in commands] == ["grep 'a|b'", "sort -r"]


def test_parse_command_line_blank():
    assert parse_command_line("  ") == []


def test_parse_command_line_empty_segment():
    with pytest.raises(EmptySegmentError):
        parse_command_line("sort || uniq")

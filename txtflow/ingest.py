"""Incremental ingestion of source data, one line per chunk."""

import asyncio
import io
import logging
import os
import threading
from typing import AsyncIterator, Iterator, TextIO, Union

logger = logging.getLogger(__name__)

# Undecodable input bytes become lone surrogates and are encoded back to the
# same bytes when the source buffer is handed to a pipeline.
ENCODING = "utf-8"
ERRORS = "surrogateescape"


def encode_source(text: str) -> bytes:
    """Encode source text back to the bytes it was read from."""
    return text.encode(ENCODING, errors=ERRORS)


def is_interactive(stream: TextIO) -> bool:
    """
    Return True if the stream is attached to a terminal.

    A terminal carries keystrokes, not data, so nothing is ingested from it.
    Streams without a file descriptor (e.g. io.StringIO) count as data.
    """
    try:
        return os.isatty(stream.fileno())
    except (AttributeError, OSError, ValueError):
        return False


def tolerate_undecodable(stream: TextIO) -> TextIO:
    """
    Switch a text stream to surrogateescape decoding, if it still can be.

    Only streams that have not been read from yet can change their error
    handler; anything else is returned unchanged.
    """
    if isinstance(stream, io.TextIOWrapper) and stream.errors != ERRORS:
        try:
            stream.reconfigure(errors=ERRORS)
        except io.UnsupportedOperation:
            logger.debug("Stream already read from, keeping errors=%s", stream.errors)
    return stream


def _strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def iter_chunks(stream: TextIO) -> Iterator[str]:
    """
    Yield lines from the stream without their line terminator.

    Yields nothing when the stream is a terminal.
    """
    if is_interactive(stream):
        logger.debug("Input is a terminal, nothing to ingest")
        return
    for line in tolerate_undecodable(stream):
        yield _strip_newline(line)


class _EndOfStream:
    pass


_EOF = _EndOfStream()


async def read_lines(stream: TextIO) -> AsyncIterator[str]:
    """
    Asynchronously yield raw lines (terminators included) from any stream.

    Reads happen on a daemon thread that hands each line to the event loop,
    so the loop keeps running while a slow producer is silent, and a reader
    blocked on a terminal or an endless source never holds up interpreter
    exit.

    Raises:
        OSError: If reading fails. Lines read before the failure are
            yielded first.
    """
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[Union[str, BaseException, _EndOfStream]]" = asyncio.Queue()

    def put(item: Union[str, BaseException, _EndOfStream]) -> bool:
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # loop already closed, nobody is listening
            return False
        return True

    def reader() -> None:
        try:
            for line in iter(stream.readline, ""):
                if not put(line):
                    return
        except (OSError, ValueError) as e:
            put(e)
            return
        put(_EOF)

    threading.Thread(target=reader, name="txtflow-reader", daemon=True).start()

    while True:
        item = await queue.get()
        if item is _EOF:
            return
        if isinstance(item, BaseException):
            raise OSError(f"Reading input failed: {item}") from item
        yield item


async def stream_chunks(stream: TextIO) -> AsyncIterator[str]:
    """
    Asynchronously yield lines from the stream as they arrive.

    The iterator ends at EOF and cannot be restarted. Yields nothing when
    the stream is a terminal.

    Args:
        stream: Text stream to read, typically stdin.

    Yields:
        Lines without their line terminator.

    Raises:
        OSError: If reading fails before EOF.
    """
    if is_interactive(stream):
        logger.debug("Input is a terminal, nothing to ingest")
        return

    count = 0
    async for line in read_lines(tolerate_undecodable(stream)):
        count += 1
        yield _strip_newline(line)
    logger.debug("Ingestion finished after %d lines", count)

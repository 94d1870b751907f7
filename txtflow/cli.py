"""
Command line front end.

Usage:
    some-command | txtflow                 # interactive session
    some-command | txtflow -c "grep x | wc -l"
    tail -f app.log | txtflow -c "grep ERROR" --follow

In an interactive session every line typed at the terminal replaces the
command line and re-runs it against everything read from stdin so far.
Session output goes to stderr; stdout only ever receives the command line
emitted by `:x`, so `cmd=$(... | txtflow)` captures it for reuse.
"""

import argparse
import asyncio
import contextlib
import logging
import sys
from typing import Optional, TextIO

from txtflow import __version__
from txtflow.config import EngineConfig, load_config
from txtflow.engine import PipelineEngine
from txtflow.ingest import is_interactive, iter_chunks, read_lines
from txtflow.logging_config import setup_logging
from txtflow.render import add_line_numbers, count_lines, display_text
from txtflow.result import Failure, Output, PipelineResult

logger = logging.getLogger(__name__)

PROMPT = "txtflow> "
HELP_TEXT = (
    "Type a pipeline (e.g. 'grep hello | wc -l') and press Enter to run it.\n"
    "An empty line shows the input unchanged.\n"
    ":p - print output | :n - toggle line numbers | :h - help\n"
    ":x - exit and print command | :q - exit"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txtflow",
        description="Pipe stdin through a chain of commands and see the result.",
    )
    parser.add_argument(
        "-c", "--command",
        help="Run this pipeline once instead of starting a session",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="With -c, print a fresh result every time a line of input arrives",
    )
    parser.add_argument(
        "-n", "--line-numbers",
        action="store_true",
        help="Prefix output lines with their number",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Kill a stage after this many seconds (default: wait forever)",
    )
    parser.add_argument("--cwd", help="Working directory for pipeline stages")
    parser.add_argument("--log-file", help="Also write debug logs to this file")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log to stderr (-v info, -vv debug)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def format_output(output: Output, line_numbers: bool = False) -> str:
    """Text to show for an output, always ending with a newline when non-empty."""
    text = display_text(output)
    if line_numbers:
        return add_line_numbers(text)
    return text + "\n" if text else ""


def _write_result(
    result: PipelineResult, stdout: TextIO, stderr: TextIO, line_numbers: bool
) -> None:
    if isinstance(result, Failure):
        print(result.message, file=stderr)
    else:
        stdout.write(format_output(result, line_numbers))
        stdout.flush()


async def run_command(
    command: str,
    config: EngineConfig,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
    follow: bool = False,
    line_numbers: bool = False,
) -> int:
    """
    Run one pipeline against stdin and print the result.

    Args:
        command: Command line to run.
        config: Engine settings.
        stdin: Source data. A terminal counts as no data.
        stdout: Where output is written.
        stderr: Where failure messages are written.
        follow: Print a result for every execution while input streams in,
            instead of only the final one.
        line_numbers: Number the output lines.

    Returns:
        0 if the last execution succeeded, 1 if it failed or reading the
        input failed.
    """
    if follow:
        engine = PipelineEngine(
            config,
            on_result=lambda result: _write_result(result, stdout, stderr, line_numbers),
        )
        engine.submit(command)
        try:
            await engine.ingest(stdin)
        except OSError as e:
            await engine.wait_idle()
            print(e, file=stderr)
            return 1
        await engine.wait_idle()
        result = engine.last_result
    else:
        engine = PipelineEngine(config)
        try:
            for chunk in iter_chunks(stdin):
                engine.ingest_chunk(chunk)
        except OSError as e:
            print(f"Reading input failed: {e}", file=stderr)
            return 1
        engine.freeze()
        result = await engine.run_once(command)
        _write_result(result, stdout, stderr, line_numbers)

    return 1 if isinstance(result, Failure) else 0


def _show(engine: PipelineEngine, session: TextIO, line_numbers: bool) -> None:
    output = Output(engine.output)
    session.write(f"── Output ({count_lines(display_text(output))} lines) ──\n")
    session.write(format_output(output, line_numbers))
    if engine.error_message:
        session.write(f"!! {engine.error_message}\n")
    session.flush()


def live_status(engine: PipelineEngine) -> str:
    """One-line summary shown when new input re-runs the pipeline."""
    if engine.error_message:
        status = f"!! {engine.error_message}"
    else:
        status = f"output {count_lines(display_text(Output(engine.output)))} lines"
    return f"~ {count_lines(engine.source)} input lines, {status} (:p to print)"


async def run_session(
    engine: PipelineEngine,
    commands: TextIO,
    session: TextIO,
    source: Optional[TextIO] = None,
    line_numbers: bool = False,
) -> Optional[str]:
    """
    Read command lines from `commands` until the user exits.

    Results of reruns caused by incoming data are announced with a one-line
    status; `:p` prints the full output.

    Args:
        engine: Engine to drive.
        commands: Stream the user types into.
        session: Stream the session is displayed on.
        source: Optional data stream ingested in the background.
        line_numbers: Initial line number setting.

    Returns:
        The command line to emit when the user chose `:x`, else None.
    """
    waiting = False

    def announce(result: PipelineResult) -> None:
        if waiting:
            return
        session.write(f"\n{live_status(engine)}\n{PROMPT}")
        session.flush()

    async def ingest(stream: TextIO) -> None:
        try:
            await engine.ingest(stream)
        except OSError as e:
            session.write(f"\n!! {e}\n{PROMPT}")
            session.flush()

    engine.add_listener(announce)
    ingestion = None
    if source is not None:
        ingestion = asyncio.get_running_loop().create_task(ingest(source))

    emit: Optional[str] = None
    lines = read_lines(commands)
    session.write(HELP_TEXT + "\n" + PROMPT)
    session.flush()
    try:
        async for raw in lines:
            line = raw.rstrip("\r\n")
            directive = line.strip()

            if directive == ":q":
                break
            if directive == ":x":
                emit = engine.command_line
                break
            if directive == ":h":
                session.write(HELP_TEXT + "\n")
            elif directive == ":n":
                line_numbers = not line_numbers
                _show(engine, session, line_numbers)
            elif directive == ":p":
                _show(engine, session, line_numbers)
            else:
                waiting = True
                engine.submit(line)
                await engine.wait_idle()
                waiting = False
                _show(engine, session, line_numbers)

            session.write(PROMPT)
            session.flush()
        else:
            session.write("\n")
    finally:
        engine.remove_listener(announce)
        await lines.aclose()
        if ingestion is not None and not ingestion.done():
            ingestion.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ingestion

    return emit


def _open_terminal(stdin: TextIO) -> TextIO:
    """Stream to read typed commands from: stdin itself, or the controlling tty."""
    if is_interactive(stdin):
        return stdin
    return open("/dev/tty", encoding="utf-8")


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config().with_overrides(
            timeout=args.timeout,
            cwd=args.cwd,
            log_file=args.log_file,
        )
    except ValueError as e:
        print(f"txtflow: {e}", file=sys.stderr)
        return 2

    if args.verbose:
        level = logging.DEBUG if args.verbose > 1 else logging.INFO
    else:
        level = config.log_level
    setup_logging(level=level, log_file=config.log_file)

    if args.command is not None:
        return asyncio.run(
            run_command(
                args.command,
                config,
                sys.stdin,
                sys.stdout,
                sys.stderr,
                follow=args.follow,
                line_numbers=args.line_numbers,
            )
        )

    try:
        terminal = _open_terminal(sys.stdin)
    except OSError as e:
        print(f"Alas, there's been an error: {e}", file=sys.stderr)
        return 1

    async def session() -> Optional[str]:
        engine = PipelineEngine(config)
        source = None if terminal is sys.stdin else sys.stdin
        return await run_session(
            engine, terminal, sys.stderr, source=source, line_numbers=args.line_numbers
        )

    try:
        emit = asyncio.run(session())
    except KeyboardInterrupt:
        emit = None
    finally:
        if terminal is not sys.stdin:
            terminal.close()

    if emit:
        print(emit)
    return 0


if __name__ == "__main__":
    sys.exit(main())

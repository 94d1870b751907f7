import asyncio
import io
import time

import pytest

from conftest import require
from txtflow import cli
from txtflow.config import EngineConfig
from txtflow.engine import PipelineEngine
from txtflow.result import Output


def run_command(command, data, **kwargs):
    out, err = io.StringIO(), io.StringIO()
    code = asyncio.run(
        cli.run_command(command, EngineConfig(), io.StringIO(data), out, err, **kwargs)
    )
    return code, out.getvalue(), err.getvalue()


@require("grep")
def test_run_command():
    assert run_command("grep b", "a\nb\nc\n") == (0, "b\n", "")


def test_run_command_blank_echoes_input():
    assert run_command("", "a\nb\n") == (0, "a\nb\n", "")


def test_run_command_failure():
    code, out, err = run_command("nosuchprogram123", "a\n")
    assert code == 1
    assert out == ""
    assert "Error: Command 'nosuchprogram123' failed." in err


@require("grep")
def test_run_command_line_numbers():
    assert run_command("grep -v b", "a\nb\nc\n", line_numbers=True) == (0, "1 a\n2 c\n", "")


@require("wc")
def test_run_command_follow():
    code, out, err = run_command("wc -l", "x\ny\n", follow=True)
    assert code == 0
    assert err == ""
    assert out.split()[-1] == "2"


def test_format_output():
    assert cli.format_output(Output(b"")) == ""
    assert cli.format_output(Output(b"a")) == "a\n"
    assert cli.format_output(Output(b"a\n")) == "a\n"


@require("grep")
def test_session_exit_and_emit():
    session = io.StringIO()

    async def scenario():
        engine = PipelineEngine()
        for line in ("a", "b"):
            engine.ingest_chunk(line)
        commands = io.StringIO("grep b\n:n\n:x\n")
        return await cli.run_session(engine, commands, session)

    assert asyncio.run(scenario()) == "grep b"
    shown = session.getvalue()
    assert "Output (1 lines)" in shown
    assert "1 b\n" in shown


def test_session_reports_failure_and_keeps_output():
    session = io.StringIO()

    async def scenario():
        engine = PipelineEngine()
        engine.ingest_chunk("kept")
        commands = io.StringIO("\ngrep 'oops\n:q\n")
        return await cli.run_session(engine, commands, session)

    assert asyncio.run(scenario()) is None
    shown = session.getvalue()
    assert shown.count("kept\n") == 2
    assert "!! malformatted command string: unclosed quote '" in shown


def test_session_ends_on_eof():
    async def scenario():
        return await cli.run_session(PipelineEngine(), io.StringIO(""), io.StringIO())

    assert asyncio.run(scenario()) is None


def test_session_ingests_source():
    async def scenario():
        engine = PipelineEngine()
        commands = io.StringIO(":q\n")
        await cli.run_session(engine, commands, io.StringIO(), source=io.StringIO("a\n"))
        return engine

    # ingestion may or may not finish before :q, but never raises
    assert asyncio.run(scenario()).source in ("", "a\n")


@require("grep")
def test_main_command(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("a\nb\n"))
    assert cli.main(["-c", "grep a"]) == 0
    assert capsys.readouterr().out == "a\n"


def test_main_emits_command(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("a\n"))
    monkeypatch.setattr(cli, "_open_terminal", lambda stdin: io.StringIO("wc -l\n:x\n"))
    assert cli.main([]) == 0
    assert capsys.readouterr().out == "wc -l\n"


def test_main_plain_exit_emits_nothing(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    monkeypatch.setattr(cli, "_open_terminal", lambda stdin: io.StringIO("cat\n:q\n"))
    assert cli.main([]) == 0
    assert capsys.readouterr().out == ""


def test_main_terminal_unavailable(monkeypatch, capsys):
    def no_terminal(stdin):
        raise OSError("No such device or address: '/dev/tty'")

    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    monkeypatch.setattr(cli, "_open_terminal", no_terminal)
    assert cli.main([]) == 1
    assert capsys.readouterr().err.startswith("Alas, there's been an error: ")


def test_main_invalid_env(monkeypatch, capsys):
    monkeypatch.setenv("TXTFLOW_TIMEOUT", "later")
    assert cli.main(["-c", "cat"]) == 2
    assert "TXTFLOW_TIMEOUT" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])
    assert exc_info.value.code == 0
    assert "txtflow 0.1.0" in capsys.readouterr().out


def run_command_bytes(command, data, **kwargs):
    out, err = io.StringIO(), io.StringIO()
    stdin = io.TextIOWrapper(io.BytesIO(data), encoding="utf-8")
    code = asyncio.run(cli.run_command(command, EngineConfig(), stdin, out, err, **kwargs))
    return code, out.getvalue(), err.getvalue()


@require("wc")
def test_run_command_undecodable_input():
    code, out, err = run_command_bytes("wc -l", b"caf\xe9 ok\nline2\n")
    assert (code, out.strip(), err) == (0, "2", "")


@require("wc")
def test_run_command_follow_undecodable_input():
    code, out, err = run_command_bytes("wc -l", b"one\ncaf\xe9\nthree\n", follow=True)
    assert code == 0
    assert err == ""
    assert out.split()[-1] == "3"


def test_run_command_follow_read_error():
    class FailingStream(io.StringIO):
        def readline(self, *args):
            line = super().readline(*args)
            if not line:
                raise OSError("device went away")
            return line

    out, err = io.StringIO(), io.StringIO()
    code = asyncio.run(
        cli.run_command("", EngineConfig(), FailingStream("a\n"), out, err, follow=True)
    )
    assert code == 1
    assert "Reading input failed: device went away" in err.getvalue()


def test_live_status():
    async def scenario():
        engine = PipelineEngine()
        engine.ingest_chunk("a")
        engine.ingest_chunk("b")
        await engine.run_once("")
        ok = cli.live_status(engine)
        await engine.run_once("grep 'x")
        return ok, cli.live_status(engine)

    ok, failed = asyncio.run(scenario())
    assert ok == "~ 2 input lines, output 2 lines (:p to print)"
    assert failed.startswith("~ 2 input lines, !! malformatted command string")


def test_session_announces_reruns_from_input():
    class SlowCommands(io.StringIO):
        def readline(self, *args):
            time.sleep(0.5)
            return super().readline(*args)

    session = io.StringIO()

    async def scenario():
        engine = PipelineEngine()
        await cli.run_session(
            engine, SlowCommands(":q\n"), session, source=io.StringIO("a\nb\n")
        )

    asyncio.run(scenario())
    assert "~ 2 input lines, output 2 lines (:p to print)" in session.getvalue()

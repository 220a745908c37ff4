from __future__ import annotations

import contextlib
import io
from collections.abc import Iterable

import pytest
from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput
from rich.console import Console

from receipt_reconciler.session import ReconciliationSession
from receipt_reconciler.term_ui import (
    Command,
    CommandError,
    build_frame_table,
    build_pool_table,
    execute,
    parse_command,
    prompt_ledger_path,
    run_session,
)


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def _console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, width=200, color_system=None), buf


def _lines(lines: Iterable[str]):
    it = iter(lines)

    def _read(_prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return _read


# ---- parsing -----------------------------------------------------------------


def test_parse_command_numbers_and_aliases():
    assert parse_command("assign 1 0") == Command("assign", (1, 0))
    assert parse_command("  ls ") == Command("list")
    assert parse_command("Q") == Command("quit")
    assert parse_command("show-hidden ON") == Command("show-hidden", ("on",))
    assert parse_command("") is None


@pytest.mark.parametrize(
    "text, message",
    [
        ("frobnicate", "unknown command"),
        ("hide", "usage: hide N"),
        ("assign 1", "usage: assign N F"),
        ("hide x", "N must be a number"),
        ("clear -1", "must not be negative"),
        ("show-hidden maybe", "usage: show-hidden"),
    ],
)
def test_parse_command_errors(text, message):
    with pytest.raises(CommandError) as exc:
        parse_command(text)
    assert message in str(exc.value)


# ---- dispatch ----------------------------------------------------------------


def test_execute_assign_and_refuse_occupied_row(make_ledger):
    session = ReconciliationSession.open(make_ledger(receipts=("a.pdf", "b.pdf")))
    console, buf = _console()

    execute(session, Command("assign", (0, 0)), console)
    execute(session, Command("assign", (0, 0)), console)

    out = buf.getvalue()
    assert "Assigned a.pdf to row 000." in out
    assert "Row 000 already holds a.pdf; clear it first." in out
    assert session.metadata[0].receipt.endswith("a.pdf")
    assert [p.name for p in session.pool] == ["b.pdf"]
    assert not session.gesture.armed


def test_execute_hide_reports_visible_count(make_ledger):
    session = ReconciliationSession.open(make_ledger())
    console, buf = _console()
    execute(session, Command("hide", (0,)), console)
    assert "Row 000 hidden (2 visible)." in buf.getvalue()


def test_frame_table_marks_misnamed_receipts(make_ledger):
    session = ReconciliationSession.open(make_ledger(receipts=("scan.pdf",)))
    session.assign(1, session.pool[0])
    session.set_hidden(0, True)
    session.set_show_hidden(True)
    console, buf = _console()

    console.print(build_frame_table(session.frame()))

    out = buf.getvalue()
    assert "Ledger (2/3 visible)" in out
    assert "scan.pdf" in out
    assert "hidden" in out
    assert "Power/Water" in out


# ---- prompt loop -------------------------------------------------------------


def test_run_session_applies_commands_and_saves_on_exit(make_ledger):
    ledger = make_ledger(receipts=("foo.pdf",))
    session = ReconciliationSession.open(ledger)
    console, buf = _console()

    code = run_session(
        session,
        console=console,
        read_line=_lines(["assign 1 0", "rename 1", "bogus", "clear 9", "toggle 2", "quit"]),
    )

    assert code == 0
    out = buf.getvalue()
    assert "Receipt is now 001-2022-01-05-1200.00EUR-Rent.pdf." in out
    assert "unknown command 'bogus'" in out
    assert "Error: row index 9 out of range" in out
    assert session.dirty is False
    assert session.state_path.exists()
    assert (ledger.resolve().parent / "001-2022-01-05-1200.00EUR-Rent.pdf").exists()


def test_run_session_eof_without_changes_does_not_write_state(make_ledger):
    session = ReconciliationSession.open(make_ledger())
    console, _buf = _console()
    assert run_session(session, console=console, read_line=_lines(["list", "files"])) == 0
    assert not session.state_path.exists()


def test_run_session_returns_error_when_final_save_fails(make_ledger):
    session = ReconciliationSession.open(make_ledger())
    session.state_path.mkdir()
    console, buf = _console()
    code = run_session(session, console=console, read_line=_lines(["hide 1"]))
    assert code == 1
    assert "Save failed" in buf.getvalue()


# ---- ledger path prompt ------------------------------------------------------


def test_prompt_ledger_path_accepts_relative_csv(make_ledger):
    ledger = make_ledger()
    with pipe_session() as (pipe, sess):
        pipe.send_text("ledger.csv\r")
        result = prompt_ledger_path(start_dir=ledger.parent, session=sess)
    assert result == ledger


def test_prompt_ledger_path_rejects_non_csv_then_accepts(make_ledger):
    ledger = make_ledger()
    (ledger.parent / "notes.txt").write_text("x", encoding="utf-8")
    with pipe_session() as (pipe, sess):
        # The validator keeps the prompt open; clear the line and type again.
        pipe.send_text("notes.txt\r\x01\x0bledger.csv\r")
        result = prompt_ledger_path(start_dir=ledger.parent, session=sess)
    assert result == ledger


def test_pool_table_title_stays_on_one_line(tmp_path):
    buf = io.StringIO()
    console = Console(file=buf, width=80, color_system=None)
    console.print(build_pool_table([tmp_path / "a.pdf"]))
    assert "Files (1 unassigned)" in buf.getvalue()


def test_frame_table_title_stays_on_one_line(make_ledger):
    session = ReconciliationSession.open(make_ledger("h;h;h;h\n"))
    console, buf = _console()
    console.print(build_frame_table(session.frame()))
    assert "Ledger (0/0 visible)" in buf.getvalue()

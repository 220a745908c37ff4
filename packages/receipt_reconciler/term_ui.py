"""Terminal front end (prompt_toolkit + rich).

This module stays thin: it parses one command line at a time, forwards it to
the session, and renders the session's read model as rich tables. Keeping
parsing (:func:`parse_command`) and dispatch (:func:`execute`) separate from
the prompt loop makes both easy to test without a terminal.

Rows are addressed by the number shown in the ``#`` column (the underlying
ledger row index); receipts in the pool by the number shown in the files
table.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import PathCompleter, WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .errors import ReconcilerError
from .ledger import LEDGER_EXTENSION
from .logging_setup import get_logger
from .models import Frame
from .session import ReconciliationSession

_logger = get_logger("receipt_reconciler.term_ui")

PROMPT = "reconcile> "

# name -> (argument names, help)
COMMANDS: dict[str, tuple[tuple[str, ...], str]] = {
    "list": ((), "show the ledger table"),
    "files": ((), "show unassigned receipt files"),
    "hide": (("N",), "hide row N"),
    "unhide": (("N",), "unhide row N"),
    "toggle": (("N",), "toggle the hidden flag of row N"),
    "show-hidden": (("[on|off]",), "include hidden rows in the table (toggles without argument)"),
    "assign": (("N", "F"), "attach file F to row N"),
    "clear": (("N",), "detach the receipt of row N"),
    "clear-all": ((), "detach every receipt"),
    "rename": (("N",), "rename row N's receipt to its canonical name"),
    "open": (("N",), "open row N's receipt in the default viewer"),
    "open-file": (("F",), "open file F in the default viewer"),
    "refresh": ((), "rescan the receipt directory"),
    "save": ((), "write the state file"),
    "help": ((), "list commands"),
    "quit": ((), "save and leave"),
}

ALIASES = {"ls": "list", "q": "quit", "exit": "quit", "?": "help"}

_ON = {"on", "true", "yes", "1"}
_OFF = {"off", "false", "no", "0"}


class CommandError(ValueError):
    """The command line could not be understood."""


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    args: tuple[int | str, ...] = ()


def parse_command(text: str) -> Command | None:
    """Parse one command line; ``None`` for blank input.

    Numeric arguments are converted to ``int``. Raises :class:`CommandError`
    for unknown commands or wrong argument counts.
    """

    parts = text.split()
    if not parts:
        return None
    name = ALIASES.get(parts[0].lower(), parts[0].lower())
    if name not in COMMANDS:
        raise CommandError(f"unknown command {parts[0]!r} (type 'help')")
    raw_args = parts[1:]

    if name == "show-hidden":
        if len(raw_args) > 1 or (raw_args and raw_args[0].lower() not in _ON | _OFF):
            raise CommandError("usage: show-hidden [on|off]")
        return Command(name, tuple(a.lower() for a in raw_args))

    expected, _help = COMMANDS[name]
    if len(raw_args) != len(expected):
        usage = " ".join((name, *expected))
        raise CommandError(f"usage: {usage}")
    args: list[int | str] = []
    for label, raw in zip(expected, raw_args, strict=True):
        try:
            value = int(raw)
        except ValueError:
            raise CommandError(f"{label} must be a number, got {raw!r}") from None
        if value < 0:
            raise CommandError(f"{label} must not be negative")
        args.append(value)
    return Command(name, tuple(args))


# ----------------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------------


def build_frame_table(frame: Frame) -> Table:
    title = f"Ledger ({frame.visible_count}/{frame.total_rows} visible)"
    if frame.show_hidden:
        title += " - showing hidden"
    # Titles never wrap, however narrow the columns.
    table = Table(title=title, show_lines=False, min_width=len(title) + 4)
    table.add_column("", no_wrap=True)
    table.add_column("#", justify="right", no_wrap=True)
    for i in range(frame.max_cells):
        table.add_column(str(i))
    table.add_column("Receipt", no_wrap=True)

    for row in frame.rows:
        if row.receipt_filename is None:
            receipt = Text("-")
        else:
            receipt = Text(row.receipt_filename, style="" if row.name_correct else "red")
        cells = [Text(c) for c in row.cells] + [Text("")] * (frame.max_cells - len(row.cells))
        table.add_row(
            "hidden" if row.hidden else "",
            f"{row.index:03d}",
            *cells,
            receipt,
            style="dim" if row.hidden else None,
        )
    return table


def build_pool_table(pool: Sequence[Path]) -> Table:
    title = f"Files ({len(pool)} unassigned)"
    table = Table(title=title, min_width=len(title) + 4)
    table.add_column("F", justify="right", no_wrap=True)
    table.add_column("File")
    for i, path in enumerate(pool):
        table.add_row(str(i), Text(path.name))
    return table


def _say(console: Console, message: str) -> None:
    console.print(message, markup=False, highlight=False)


def _warn(console: Console, message: str) -> None:
    console.print(Text(message, style="red"))


def render_frame(frame: Frame, console: Console) -> None:
    if not frame.rows:
        _say(console, "No rows to display.")
    console.print(build_frame_table(frame))


def render_pool(pool: Sequence[Path], console: Console) -> None:
    console.print(build_pool_table(pool))


def render_help(console: Console) -> None:
    for name, (args, help_text) in COMMANDS.items():
        _say(console, f"  {' '.join((name, *args)):<22} {help_text}")


# ----------------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------------


def _assign_via_gesture(
    session: ReconciliationSession, index: int, file_no: int, console: Console
) -> None:
    path = session.pick_receipt(file_no)
    if not session.hover_row(index):
        current = session.metadata.receipt_filename(index)
        session.gesture.reset()
        _warn(console, f"Row {index:03d} already holds {current}; clear it first.")
        return
    session.release()
    _say(console, f"Assigned {path.name} to row {index:03d}.")


def execute(session: ReconciliationSession, cmd: Command, console: Console) -> None:
    """Apply ``cmd`` to ``session`` and print feedback.

    Engine errors propagate to the caller (the prompt loop reports them).
    """

    name, args = cmd.name, cmd.args
    if name == "list":
        render_frame(session.frame(), console)
    elif name == "files":
        render_pool(session.pool, console)
    elif name == "help":
        render_help(console)
    elif name == "hide":
        session.set_hidden(int(args[0]), True)
        _say(console, f"Row {int(args[0]):03d} hidden ({session.visible_count} visible).")
    elif name == "unhide":
        session.set_hidden(int(args[0]), False)
        _say(console, f"Row {int(args[0]):03d} visible ({session.visible_count} visible).")
    elif name == "toggle":
        hidden = session.toggle_hidden(int(args[0]))
        state = "hidden" if hidden else "visible"
        _say(console, f"Row {int(args[0]):03d} {state} ({session.visible_count} visible).")
    elif name == "show-hidden":
        value = (not session.show_hidden) if not args else args[0] in _ON
        session.set_show_hidden(value)
        _say(console, f"Show hidden: {'on' if value else 'off'}.")
    elif name == "assign":
        _assign_via_gesture(session, int(args[0]), int(args[1]), console)
    elif name == "clear":
        previous = session.clear(int(args[0]))
        if previous is None:
            _say(console, f"Row {int(args[0]):03d} holds no receipt.")
        else:
            _say(console, f"Cleared {os.path.basename(previous)} from row {int(args[0]):03d}.")
    elif name == "clear-all":
        _say(console, f"Cleared {session.clear_all()} receipt(s).")
    elif name == "rename":
        result = session.rename(int(args[0]))
        if result is None:
            _say(console, f"Row {int(args[0]):03d} holds no receipt.")
        else:
            _say(console, f"Receipt is now {os.path.basename(result)}.")
    elif name == "open":
        if not session.open_receipt(int(args[0])):
            _say(console, "Nothing opened.")
    elif name == "open-file":
        if not session.open_pool_file(int(args[0])):
            _say(console, "Nothing opened.")
    elif name == "refresh":
        _say(console, f"{len(session.refresh_pool())} unassigned file(s).")
    elif name == "save":
        outcome = session.save()
        if outcome.ok:
            _say(console, f"Saved {outcome.path}.")
        else:
            _warn(console, f"Save failed: {outcome.error}")


def _default_reader(session: PromptSession | None) -> Callable[[str], str]:
    completer = WordCompleter(sorted([*COMMANDS, *ALIASES]), ignore_case=True, sentence=True)
    if session is None:
        sess: PromptSession = PromptSession(completer=completer)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            completer=completer,
        )
    return sess.prompt


def run_session(
    session: ReconciliationSession,
    *,
    console: Console | None = None,
    prompt_session: PromptSession | None = None,
    read_line: Callable[[str], str] | None = None,
) -> int:
    """Interactive command loop; returns a process exit code.

    Parameters
    ----------
    read_line:
        Optional injection point for tests. Receives the prompt string and
        returns one line; raising ``EOFError`` ends the loop. When omitted, a
        prompt_toolkit session with command completion is used.
    """

    console = console or Console()
    reader = read_line or _default_reader(prompt_session)

    render_frame(session.frame(), console)
    render_pool(session.pool, console)

    while True:
        try:
            text = reader(PROMPT)
        except EOFError:
            break
        except KeyboardInterrupt:
            continue
        try:
            cmd = parse_command(text)
        except CommandError as e:
            _warn(console, str(e))
            continue
        if cmd is None:
            continue
        if cmd.name == "quit":
            break
        try:
            execute(session, cmd, console)
        except (ReconcilerError, IndexError) as e:
            _logger.debug("command failed: %s", text, exc_info=True)
            _warn(console, f"Error: {e}")

    if session.dirty:
        outcome = session.save()
        if not outcome.ok:
            _warn(console, f"Save failed: {outcome.error}")
            return 1
        _say(console, f"Saved {outcome.path}.")
    return 0


# ----------------------------------------------------------------------------
# Ledger path prompt
# ----------------------------------------------------------------------------


def _is_ledger_name(name: str) -> bool:
    return name.lower().endswith(f".{LEDGER_EXTENSION}")


def prompt_ledger_path(
    *,
    start_dir: str | os.PathLike[str] | None = None,
    session: PromptSession | None = None,
    message: str = "Ledger file (Tab to complete • Esc to cancel): ",
) -> Path | None:
    """Ask for the ledger file with path completion limited to CSV files.

    Returns the chosen path, or ``None`` when canceled via Esc.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    base = Path(start_dir) if start_dir is not None else Path.cwd()

    def _resolve(text: str) -> Path:
        p = Path(text.strip()).expanduser()
        return p if p.is_absolute() else base / p

    completer = PathCompleter(
        get_paths=lambda: [os.fspath(base)],
        expanduser=True,
        file_filter=lambda name: os.path.isdir(name) or _is_ledger_name(name),
    )

    class _LedgerValidator(Validator):
        def validate(self, document) -> None:
            p = _resolve(document.text)
            if not _is_ledger_name(p.name):
                raise ValidationError(message=f"Choose a .{LEDGER_EXTENSION} file")
            if not p.is_file():
                raise ValidationError(message=f"No such file: {p}")

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    value = sess.prompt(
        message,
        completer=completer,
        validator=_LedgerValidator(),
        validate_while_typing=False,
    )
    if value is None:
        return None
    return _resolve(value)


__all__ = [
    "COMMANDS",
    "Command",
    "CommandError",
    "parse_command",
    "build_frame_table",
    "build_pool_table",
    "render_frame",
    "render_pool",
    "execute",
    "run_session",
    "prompt_ledger_path",
]

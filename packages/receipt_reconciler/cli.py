"""CLI for the ``receipt_reconciler`` package.

This module exposes callable command handlers (``cmd_review``,
``cmd_status``) and a Typer-based console interface. Settings are read from
the environment after loading a local ``.env`` with ``python-dotenv``;
command-line options override them. Engine logic lives in
``receipt_reconciler.session`` and the modules it composes.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text

from .config import ReconcilerSettings, normalize_delimiter
from .errors import LedgerLoadError, NamingError
from .logging_setup import configure_logging, get_logger
from .naming import canonical_name

if TYPE_CHECKING:
    from .session import ReconciliationSession

_logger = get_logger("receipt_reconciler.cli")


def _is_interactive() -> bool:
    """Return True when both stdin and stdout are attached to a TTY."""

    try:
        return sys.stdin.isatty() and sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _load_settings() -> ReconcilerSettings | None:
    try:
        return ReconcilerSettings.from_env()
    except ValueError as e:
        _error(f"invalid configuration: {e}")
        return None


def _open_session(
    ledger: Path,
    *,
    settings: ReconcilerSettings,
    delimiter: str | None,
    header: bool | None,
) -> ReconciliationSession | None:
    """Open a session or report why it cannot start (returns ``None``)."""

    from .session import ReconciliationSession

    try:
        delim = normalize_delimiter(delimiter) if delimiter is not None else settings.delimiter
    except ValueError as e:
        _error(str(e))
        return None
    try:
        return ReconciliationSession.open(
            ledger,
            delimiter=delim,
            has_header=settings.has_header if header is None else header,
            state_file=settings.state_file,
            receipt_ext=settings.receipt_ext,
        )
    except LedgerLoadError as e:
        _logger.debug("session open failed path=%s", e.path, exc_info=True)
        _error(str(e))
        return None


def cmd_review(
    ledger: Path | None,
    *,
    delimiter: str | None = None,
    header: bool | None = None,
    show_hidden: bool | None = None,
) -> int:
    """Run the interactive reconciliation session and return an exit code.

    The ledger path comes from ``ledger``, else ``RECEIPT_RECONCILER_LEDGER``,
    else an interactive path prompt (TTY only).
    """

    from .term_ui import prompt_ledger_path, run_session

    settings = _load_settings()
    if settings is None:
        return 1

    path = ledger or settings.ledger
    if path is None:
        if not _is_interactive():
            _error("no ledger given; pass --ledger or set RECEIPT_RECONCILER_LEDGER")
            return 1
        path = prompt_ledger_path()
        if path is None:
            print("No ledger selected.", file=sys.stderr)
            return 1

    session = _open_session(path, settings=settings, delimiter=delimiter, header=header)
    if session is None:
        return 1
    if show_hidden is not None:
        session.set_show_hidden(show_hidden)
    return run_session(session)


def cmd_status(
    ledger: Path | None,
    *,
    delimiter: str | None = None,
    header: bool | None = None,
    include_hidden: bool = False,
    mismatched_only: bool = False,
    console: Console | None = None,
) -> int:
    """Print the ledger table (or only misnamed receipts) without changing state."""

    from .term_ui import render_frame, render_pool

    settings = _load_settings()
    if settings is None:
        return 1
    path = ledger or settings.ledger
    if path is None:
        _error("no ledger given; pass --ledger or set RECEIPT_RECONCILER_LEDGER")
        return 1

    session = _open_session(path, settings=settings, delimiter=delimiter, header=header)
    if session is None:
        return 1

    console = console or Console()
    if mismatched_only:
        mismatched = session.mismatched_rows()
        if not mismatched:
            console.print("All assigned receipts carry their canonical names.", markup=False)
            return 0
        for index in mismatched:
            current = session.metadata.receipt_filename(index)
            try:
                row = session.ledger.row(index)
                expected = canonical_name(index, row, ext=session.receipt_ext)
            except NamingError as e:
                expected = f"<{e}>"
            console.print(Text(f"{index:03d}  {current} -> {expected}"))
        return 0

    if include_hidden:
        session.set_show_hidden(True)
    render_frame(session.frame(), console)
    render_pool(session.pool, console)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Attach receipt PDFs to ledger rows and rename them after the row. "
        "Loads RECEIPT_RECONCILER_* settings from a local .env before running."
    ),
)


LedgerOption = Annotated[
    Path | None,
    typer.Option(
        "--ledger",
        help="Path to the ledger CSV (falls back to RECEIPT_RECONCILER_LEDGER).",
        dir_okay=False,
        file_okay=True,
        exists=False,  # the handler reports missing files itself
    ),
]
DelimiterOption = Annotated[
    str | None,
    typer.Option("--delimiter", help="Single-byte field delimiter (default ';'; 'tab' for tabs)."),
]
HeaderOption = Annotated[
    bool | None,
    typer.Option("--header/--no-header", help="Whether the first record is a header row."),
]


@app.command("review")
def review_cmd(
    ledger: LedgerOption = None,
    delimiter: DelimiterOption = None,
    header: HeaderOption = None,
    show_hidden: Annotated[
        bool | None,
        typer.Option("--show-hidden/--hide-hidden", help="Start with hidden rows shown."),
    ] = None,
) -> None:
    """Open an interactive session for a ledger and its receipt directory."""

    code = cmd_review(ledger, delimiter=delimiter, header=header, show_hidden=show_hidden)
    if code:
        raise typer.Exit(code)


@app.command("status")
def status_cmd(
    ledger: LedgerOption = None,
    delimiter: DelimiterOption = None,
    header: HeaderOption = None,
    include_hidden: Annotated[
        bool, typer.Option("--all", help="Include hidden rows in the table.")
    ] = False,
    mismatched_only: Annotated[
        bool,
        typer.Option("--mismatched-only", help="List only receipts whose name is not canonical."),
    ] = False,
) -> None:
    """Print the ledger with assignments and the unassigned receipts."""

    code = cmd_status(
        ledger,
        delimiter=delimiter,
        header=header,
        include_hidden=include_hidden,
        mismatched_only=mismatched_only,
    )
    if code:
        raise typer.Exit(code)


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level", help="Logging level (falls back to RECEIPT_RECONCILER_LOG_LEVEL)."
        ),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    app()

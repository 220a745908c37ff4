"""Best-effort opening of receipts in the platform's default viewer."""

from __future__ import annotations

import os
import platform
import subprocess
from os import PathLike

from .logging_setup import get_logger

_logger = get_logger("receipt_reconciler.viewer")


def open_in_viewer(path: str | PathLike[str]) -> bool:
    """Ask the OS to open ``path``; return whether the request was handed off.

    Failures are logged at DEBUG and otherwise ignored.
    """

    target = os.fspath(path)
    try:
        system = platform.system()
        if system == "Windows":
            os.startfile(target)  # type: ignore[attr-defined]
        elif system == "Darwin":
            subprocess.Popen(["open", target])
        else:
            subprocess.Popen(
                ["xdg-open", target], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
            )
    except OSError:
        _logger.debug("open in viewer failed path=%s", target, exc_info=True)
        return False
    return True


__all__ = ["open_in_viewer"]

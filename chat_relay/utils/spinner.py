"""Waiting indicator shown until the first reply token arrives."""
from __future__ import annotations

from rich.console import Console
from yaspin import yaspin  # type: ignore


class Spinner:
    """Display a small spinner next to a prefix while work is done.

    Only animates when *console* is attached to a real terminal; otherwise
    the prefix is printed once and ``start``/``stop`` are otherwise no-ops.
    """

    def __init__(self, console: Console, prefix: str = ""):
        self._console = console
        self._prefix = prefix
        self._started = False
        self._animated = console.is_terminal
        # spinner after the text so prefix stays at the start
        self._spinner = yaspin(text="", side="right") if self._animated else None

    def start(self) -> None:
        if self._started:
            return
        self._console.print(self._prefix, end="")
        self._console.file.flush()
        if self._spinner is not None:
            self._spinner.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        if self._spinner is not None:
            self._spinner.stop()
            self._console.print(f"\r{self._prefix}", end="")
            self._console.file.flush()
        self._started = False

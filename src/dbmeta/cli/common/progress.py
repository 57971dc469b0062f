"""Progress formatting utilities for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from dbmeta.cli.common.output import console as default_console
from dbmeta.core.events import EventKind, RunEvent

_MAX_LABEL_WIDTH = 64

_STYLES = {
    EventKind.STAGE: ("title", "›"),
    EventKind.INFO: ("meta", " "),
    EventKind.WARNING: ("warn", "⚠"),
    EventKind.STATEMENT: ("ok", "✓"),
    EventKind.FAILED: ("err", "✗"),
    EventKind.DONE: ("ok", "✓"),
}


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def format_event(event: RunEvent) -> str:
    """
    Render one event as a Rich-markup line.

    Statement events are prefixed with their position in the run,
    e.g. `[3/7] create table USERS`.
    """
    style, icon = _STYLES.get(event.kind, ("meta", " "))
    message = event.message
    if event.kind == EventKind.STATEMENT and event.current and event.total:
        message = f"[{event.current}/{event.total}] {_truncate(message, _MAX_LABEL_WIDTH)}"
    message = escape(message)
    return f"[{style}]{icon}[/] {message}"


class RunProgress:
    """
    Event sink that renders a run with rich.

    Stage, warning, failure and completion events are printed as lines.
    Statement events drive a progress bar; they are also printed when
    `verbose` is set.

    Usage:
        with RunProgress() as progress:
            build(..., on_event=progress)
    """

    def __init__(self, console: Console | None = None, *, verbose: bool = False) -> None:
        self.console = console or default_console
        self.verbose = verbose
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}[/]"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._task: TaskID | None = None

    def __enter__(self) -> RunProgress:
        self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._progress.stop()

    def __call__(self, event: RunEvent) -> None:
        if event.kind == EventKind.STATEMENT:
            self._advance(event)
            if not self.verbose:
                return
        self._progress.console.print(format_event(event))

    def _advance(self, event: RunEvent) -> None:
        description = _truncate(event.message, _MAX_LABEL_WIDTH)
        if self._task is None:
            self._task = self._progress.add_task(description, total=max(event.total or 1, 1))
        self._progress.update(
            self._task, completed=event.current or 0, description=description
        )

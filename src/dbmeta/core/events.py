"""Progress events emitted by the build, update and export flows.

The orchestrators do not print. They report what they do through an
optional callback receiving RunEvent values; the CLI renders them with rich,
tests collect them in a list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """
    Kind of progress event.

    Values:
        STAGE: A new stage of the run started (extract, load, diff, apply...).
        INFO: Informational message inside a stage.
        WARNING: Non-fatal problem (unreadable file, unparseable script).
        STATEMENT: A statement or script was applied successfully.
        FAILED: A statement failed; the run stops after this event.
        DONE: The run finished.
    """

    STAGE = "stage"
    INFO = "info"
    WARNING = "warning"
    STATEMENT = "statement"
    FAILED = "failed"
    DONE = "done"


@dataclass(frozen=True)
class RunEvent:
    """
    A single progress event.

    Attributes:
        kind: Event kind.
        message: Human-readable description.
        category: Object category the event refers to, if any.
        current: 1-based index of the statement within the run, if any.
        total: Number of statements planned for the run, if known.
    """

    kind: EventKind
    message: str
    category: str | None = None
    current: int | None = None
    total: int | None = None


EventSink = Callable[[RunEvent], None]


class EventEmitter:
    """Forwards events to an optional sink and mirrors them to the log."""

    _LEVELS = {
        EventKind.WARNING: logging.WARNING,
        EventKind.FAILED: logging.ERROR,
        EventKind.STATEMENT: logging.DEBUG,
    }

    def __init__(self, sink: EventSink | None = None) -> None:
        self.sink = sink

    def emit(self, kind: EventKind, message: str, **fields) -> RunEvent:
        event = RunEvent(kind=kind, message=message, **fields)
        logger.log(self._LEVELS.get(kind, logging.INFO), message)
        if self.sink is not None:
            self.sink(event)
        return event

    def stage(self, message: str) -> RunEvent:
        return self.emit(EventKind.STAGE, message)

    def info(self, message: str) -> RunEvent:
        return self.emit(EventKind.INFO, message)

    def warning(self, message: str) -> RunEvent:
        return self.emit(EventKind.WARNING, message)

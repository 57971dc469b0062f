"""Sequential statement application with success accounting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from dbmeta.core.errors import ExecutionError
from dbmeta.core.events import EventEmitter, EventKind
from dbmeta.core.ports import StatementExecutor

_PREVIEW_LEN = 100


@dataclass(frozen=True)
class Step:
    """
    One unit of work sent to the executor.

    Attributes:
        category: Object category ("domain", "table", "procedure").
        action: What the step does ("create", "alter", "add column", ...).
        object_name: Name of the object the step applies to.
        sql: Statement or script batch to execute.
        detail: Optional sub-object (e.g. the column name).
    """

    category: str
    action: str
    object_name: str
    sql: str
    detail: str | None = None

    @property
    def label(self) -> str:
        target = f"{self.object_name}.{self.detail}" if self.detail else self.object_name
        return f"{self.action} {self.category} {target}"


def preview(sql: str) -> str:
    """Return the first non-empty line of `sql`, capped for messages."""
    lines = [line.strip() for line in sql.strip().splitlines() if line.strip()]
    if not lines:
        return "[empty script]"
    first = lines[0]
    return first if len(first) <= _PREVIEW_LEN else f"{first[:_PREVIEW_LEN]}..."


def apply_steps(
    executor: StatementExecutor,
    target: str,
    steps: Sequence[Step],
    emitter: EventEmitter,
) -> int:
    """
    Execute steps one at a time, in order.

    Returns:
        Number of steps executed.

    Raises:
        ExecutionError: On the first failing step. The error records how many
            steps of the failing category (and of the whole run) succeeded
            before it; nothing already applied is rolled back.
    """
    total = len(steps)
    per_category_total: dict[str, int] = {}
    for step in steps:
        per_category_total[step.category] = per_category_total.get(step.category, 0) + 1

    per_category_done: dict[str, int] = {}
    executed = 0

    for step in steps:
        done_in_category = per_category_done.get(step.category, 0)
        try:
            executor.execute(target, step.sql)
        except Exception as exc:
            message = (
                f"Failed to {step.label}: {exc}. "
                f"{done_in_category} of {per_category_total[step.category]} "
                f"{step.category} statement(s) succeeded before the failure "
                f"({executed} of {total} overall). Script: {preview(step.sql)}"
            )
            emitter.emit(
                EventKind.FAILED,
                message,
                category=step.category,
                current=executed + 1,
                total=total,
            )
            raise ExecutionError(
                message,
                category=step.category,
                statement=step.sql,
                succeeded=done_in_category,
                total=per_category_total[step.category],
                executed=executed,
            ) from exc

        executed += 1
        per_category_done[step.category] = done_in_category + 1
        emitter.emit(
            EventKind.STATEMENT,
            step.label,
            category=step.category,
            current=executed,
            total=total,
        )

    return executed

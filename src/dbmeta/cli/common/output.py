"""Output formatting utilities for the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

from dbmeta.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_DANGER,
)

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


def _yes_no(flag: bool) -> str:
    return "[ok]yes[/]" if flag else "[meta]no[/]"


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("auto_enter",):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts so they stand out from log output."""
        return f"[dbmeta] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def confirm(self, message: str, *, default: bool = False, danger: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.
            danger: Use the red style for prompts that modify a database.

        Returns:
            True if the user confirms, False otherwise (including Ctrl-C).
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_DANGER if danger else QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def warnings(self, messages: Iterable[str]) -> None:
        """Print each warning message on its own line."""
        for msg in messages:
            self.warn(msg)

    def snapshot_table(self, snapshot: Any, title: str = "Objects") -> None:
        """
        Render one row per object of a schema snapshot.

        Expects an object with `.domains`, `.tables`, `.procedures`
        (like dbmeta.core.models.SchemaSnapshot).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Kind", style="meta", no_wrap=True)
        t.add_column("Name", style="ok")
        t.add_column("Details")

        for d in snapshot.domains:
            nullable = "" if d.is_nullable else " NOT NULL"
            t.add_row("domain", d.name, f"{d.data_type}{nullable}")
        for tbl in snapshot.tables:
            t.add_row("table", tbl.name, f"{len(tbl.columns)} column(s)")
        for p in snapshot.procedures:
            t.add_row("procedure", p.name, "")

        console.print(t)

    def plan_table(self, steps: Iterable[Any], title: str = "Planned changes") -> None:
        """
        Render a change plan, one row per statement in execution order.

        Expects objects with `.category`, `.action`, `.object_name`,
        optional `.detail` (like dbmeta.core.apply.Step).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("#", style="meta", justify="right", no_wrap=True)
        t.add_column("Category", style="meta", no_wrap=True)
        t.add_column("Action", no_wrap=True)
        t.add_column("Object", style="ok")

        for i, step in enumerate(steps, start=1):
            target = step.object_name
            if getattr(step, "detail", None):
                target = f"{target}.{step.detail}"
            t.add_row(str(i), step.category, step.action, target)

        console.print(t)

    def statements(self, steps: Iterable[Any]) -> None:
        """Print the SQL of each step, highlighted."""
        for step in steps:
            console.print(f"[meta]-- {step.label}[/]")
            console.print(Syntax(step.sql.strip(), "sql", word_wrap=True))

    def reconcile_report_table(self, report: Any, title: str = "Update summary") -> None:
        """Render a ReconcileReport as a two-column summary table."""
        t = Table(title=title, show_lines=False, show_header=False)
        t.add_column("Item", style="meta")
        t.add_column("Count", justify="right")

        t.add_row("Domains created", str(report.domains_created))
        t.add_row("Domains altered", str(report.domains_altered))
        t.add_row("Tables created", str(report.tables_created))
        t.add_row("Tables altered", str(report.tables_altered))
        t.add_row("Procedures replaced", str(report.procedures_replaced))
        t.add_row("Statements planned", str(report.statements_planned))
        t.add_row("Statements executed", str(report.statements_executed))
        t.add_row("Dry run", _yes_no(report.dry_run))

        console.print(t)

    def build_report_table(self, report: Any, title: str = "Build summary") -> None:
        """Render a BuildReport as a two-column summary table."""
        t = Table(title=title, show_lines=False, show_header=False)
        t.add_column("Item", style="meta")
        t.add_column("Count", justify="right")

        t.add_row("Domains", str(report.domains))
        t.add_row("Tables", str(report.tables))
        t.add_row("Procedures", str(report.procedures))
        t.add_row("Total scripts", str(report.total))

        console.print(t)


out = Out()

"""Exporting a live schema to a definition set on disk."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dbmeta.core.errors import InvalidArgumentError
from dbmeta.core.events import EventEmitter, EventKind, EventSink
from dbmeta.core.generator import save_to_files
from dbmeta.core.models import SchemaSnapshot
from dbmeta.core.ports import MetadataSource


@dataclass(frozen=True)
class ExportReport:
    """Outcome of an export run."""

    output_root: Path
    snapshot: SchemaSnapshot
    files: tuple[Path, ...] = field(default_factory=tuple)


def export(
    source: MetadataSource,
    target: str,
    output_root: str | Path,
    *,
    on_event: EventSink | None = None,
) -> ExportReport:
    """
    Extract the schema of `target` and write it under `output_root`.

    Nothing is written when the database holds no user objects.

    Raises:
        InvalidArgumentError: If `target` or `output_root` is empty.
    """
    if target is None or not str(target).strip():
        raise InvalidArgumentError("Target database must not be empty.")
    if output_root is None or not str(output_root).strip():
        raise InvalidArgumentError("Output directory must not be empty.")

    emitter = EventEmitter(on_event)
    root = Path(output_root).resolve()

    emitter.stage("Extracting metadata")
    snapshot = SchemaSnapshot.of(
        source.extract_domains(target),
        source.extract_tables(target),
        source.extract_procedures(target),
    )

    if snapshot.total == 0:
        emitter.warning("No metadata found in the database; nothing to export")
        return ExportReport(output_root=root, snapshot=snapshot)

    emitter.info(
        f"Found {snapshot.total} object(s): {len(snapshot.domains)} domain(s), "
        f"{len(snapshot.tables)} table(s), {len(snapshot.procedures)} procedure(s)"
    )

    emitter.stage(f"Writing scripts to {root}")
    files = save_to_files(root, snapshot.domains, snapshot.tables, snapshot.procedures)
    emitter.emit(EventKind.DONE, f"Wrote {len(files)} file(s)", total=len(files))
    return ExportReport(output_root=root, snapshot=snapshot, files=tuple(files))

"""Loading definition scripts from a directory tree.

A definition root either uses the partitioned layout written by
`save_to_files` (`domains/`, `tables/`, `procedures/` sub-directories) or is
a flat directory of `*.sql` files, in which case every file is classified by
its content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dbmeta.core.classify import ScriptType, classify_script
from dbmeta.core.errors import DefinitionsNotFoundError, InvalidArgumentError
from dbmeta.core.generator import DOMAINS_DIR, PROCEDURES_DIR, TABLES_DIR

logger = logging.getLogger(__name__)

_LAYOUT: tuple[tuple[ScriptType, str], ...] = (
    (ScriptType.DOMAIN, DOMAINS_DIR),
    (ScriptType.TABLE, TABLES_DIR),
    (ScriptType.PROCEDURE, PROCEDURES_DIR),
)


@dataclass(frozen=True)
class ScriptFile:
    """Raw contents of one `.sql` file."""

    path: Path
    text: str


@dataclass(frozen=True)
class RawScripts:
    """
    Scripts as returned by a repository, before classification.

    Attributes:
        groups: Scripts per kind when the partitioned layout exists,
                otherwise None.
        flat: Scripts found directly in the root (flat layout only).
        skipped: Files that could not be read.
    """

    groups: dict[ScriptType, tuple[ScriptFile, ...]] | None = None
    flat: tuple[ScriptFile, ...] = ()
    skipped: tuple[Path, ...] = ()


@dataclass(frozen=True)
class ScriptSet:
    """Scripts partitioned into domains, tables and procedures."""

    domains: tuple[ScriptFile, ...] = ()
    tables: tuple[ScriptFile, ...] = ()
    procedures: tuple[ScriptFile, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.domains) + len(self.tables) + len(self.procedures)


class ScriptRepository(Protocol):
    """Interface for reading definition scripts from a root location."""

    def load(self, root: str | Path) -> RawScripts:
        """Return all scripts under `root`, partitioned when possible."""
        ...


def validate_definitions_root(root: str | Path | None) -> Path:
    """
    Check that a definitions root was given and exists.

    Raises:
        InvalidArgumentError: If `root` is empty.
        DefinitionsNotFoundError: If `root` is not an existing directory.
    """
    if root is None or not str(root).strip():
        raise InvalidArgumentError("Scripts directory must not be empty.")
    path = Path(root)
    if not path.is_dir():
        raise DefinitionsNotFoundError(f"Scripts directory not found: {path}")
    return path


class DirectoryScriptRepository:
    """Reads `*.sql` files (UTF-8) from a directory tree."""

    def _read_dir(self, directory: Path) -> tuple[list[ScriptFile], list[Path]]:
        files: list[ScriptFile] = []
        skipped: list[Path] = []
        for path in sorted(directory.glob("*.sql")):
            if not path.is_file():
                continue
            try:
                text = path.read_text(encoding="utf-8-sig")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Could not read %s: %s", path, exc)
                skipped.append(path)
                continue
            if text.strip():
                files.append(ScriptFile(path=path, text=text))
        return files, skipped

    def load(self, root: str | Path) -> RawScripts:
        """Load scripts from the partitioned layout, or the flat root."""
        path = validate_definitions_root(root)

        groups: dict[ScriptType, tuple[ScriptFile, ...]] = {}
        skipped: list[Path] = []
        for script_type, dirname in _LAYOUT:
            sub = path / dirname
            if sub.is_dir():
                files, bad = self._read_dir(sub)
                groups[script_type] = tuple(files)
                skipped += bad
                logger.debug("Loaded %d %s script(s) from %s", len(files), dirname, sub)

        if any(groups.values()):
            return RawScripts(groups=groups, skipped=tuple(skipped))

        logger.info("No script sub-directories found; classifying files in %s", path)
        files, bad = self._read_dir(path)
        return RawScripts(flat=tuple(files), skipped=tuple(skipped + bad))


def partition_scripts(raw: RawScripts) -> ScriptSet:
    """
    Turn repository output into a ScriptSet.

    Pre-partitioned groups are taken as-is. Flat scripts are classified by
    content; unclassifiable files are skipped with a warning.
    """
    warnings = [f"Could not read {p.name}" for p in raw.skipped]

    if raw.groups is not None:
        return ScriptSet(
            domains=raw.groups.get(ScriptType.DOMAIN, ()),
            tables=raw.groups.get(ScriptType.TABLE, ()),
            procedures=raw.groups.get(ScriptType.PROCEDURE, ()),
            warnings=tuple(warnings),
        )

    buckets: dict[ScriptType, list[ScriptFile]] = {
        ScriptType.DOMAIN: [],
        ScriptType.TABLE: [],
        ScriptType.PROCEDURE: [],
    }
    for script in raw.flat:
        script_type = classify_script(script.text)
        if script_type is ScriptType.UNKNOWN:
            msg = f"Cannot detect script type: {script.path.name}"
            logger.warning(msg)
            warnings.append(msg)
            continue
        buckets[script_type].append(script)

    return ScriptSet(
        domains=tuple(buckets[ScriptType.DOMAIN]),
        tables=tuple(buckets[ScriptType.TABLE]),
        procedures=tuple(buckets[ScriptType.PROCEDURE]),
        warnings=tuple(warnings),
    )


def load_script_set(
    root: str | Path, repository: ScriptRepository | None = None
) -> ScriptSet:
    """Load and partition all scripts under `root`."""
    repo = repository or DirectoryScriptRepository()
    script_set = partition_scripts(repo.load(root))
    logger.info(
        "Loaded %d script(s): %d domain, %d table, %d procedure",
        script_set.total,
        len(script_set.domains),
        len(script_set.tables),
        len(script_set.procedures),
    )
    return script_set

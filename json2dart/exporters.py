# File: json2dart/exporters.py
"""
Json2Dart - Artifact Writer (File-System Manager)
===================================================

Responsible for:
    1. Writing generated Dart files atomically (write-to-temp then rename).
    2. Skipping writes whose content is byte-identical to what is on disk,
       so an unchanged API leaves file timestamps untouched.
    3. Recording every written file with its checksum for the run report.

Each file write is atomic on its own.  A failure mid-API leaves files that
were already written intact and raises ``OSError`` to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from json2dart.utils import count_lines, read_file, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.exporters")


# ---------------------------------------------------------------------------
# Data classes for write results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single generated file."""

    path: str
    size_bytes: int
    line_count: int
    sha256: str
    changed: bool
    created: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "size_bytes": self.size_bytes,
            "line_count": self.line_count,
            "sha256": self.sha256,
            "changed": self.changed,
            "created": self.created,
        }


@dataclass(frozen=False, slots=True)
class WriteLog:
    """Every ``FileRecord`` produced by one ``ArtifactWriter``."""

    records: List[FileRecord] = field(default_factory=list)

    @property
    def changed_paths(self) -> List[str]:
        return [r.path for r in self.records if r.changed]

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.records if r.changed)


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class ArtifactWriter:
    """
    Writes generated files and keeps a log of what changed.

    Usage::

        writer = ArtifactWriter()
        record = writer.write(Path("lib/login/mapper.dart"), content)
        if record.changed:
            ...

    Thread-safety: NOT thread-safe.  The orchestrator uses one writer per
    API unit.
    """

    __slots__ = ("_atomic_writes", "_log")

    def __init__(self, *, atomic_writes: bool = True) -> None:
        self._atomic_writes: bool = atomic_writes
        self._log: WriteLog = WriteLog()

    @property
    def log(self) -> WriteLog:
        return self._log

    def write(self, path: Path, content: str) -> FileRecord:
        """
        Write *content* to *path* unless the file already holds it.

        Raises ``OSError`` when the file cannot be read or written.
        """
        existing: Optional[str] = read_file(path) if path.is_file() else None
        created: bool = existing is None
        changed: bool = existing != content

        if changed:
            write_file(path, content, atomic=self._atomic_writes)
            logger.debug(
                "%s %s (%d lines).",
                "Created" if created else "Updated",
                path,
                count_lines(content),
            )
        else:
            logger.debug("Unchanged: %s", path)

        record: FileRecord = FileRecord(
            path=str(path),
            size_bytes=len(content.encode("utf-8")),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
            changed=changed,
            created=created,
        )
        self._log.records.append(record)
        return record


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FileRecord",
    "WriteLog",
    "ArtifactWriter",
]

logger.debug("json2dart.exporters loaded — %d public symbols.", len(__all__))

# File: json2dart/errors.py
"""
Json2Dart - Exception Taxonomy
================================
Every failure the generation pipeline can report is one of the classes
below (or a plain ``OSError`` for file-system writes).

Propagation rules used by the orchestrator:
    - ``ConfigurationError`` surfaces immediately with an actionable message.
    - ``SampleFormatError`` and ``OSError`` fail only the affected API unit.
    - ``PatchAnchorNotFound`` never leaves the patch engine; it is downgraded
      to a warning plus an end-of-file append.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.errors")


class Json2DartError(Exception):
    """Base class for all json2dart errors."""


class ConfigurationError(Json2DartError):
    """
    A configuration file or API entry is unusable.

    ``context`` carries the location (feature / page / api / key) so the
    CLI can print where the problem is.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        where: str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({where})"


class SampleFormatError(Json2DartError):
    """A JSON sample file is missing, unreadable or has an unusable shape."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"Invalid sample {path}: {reason}")
        self.path: str = str(path)
        self.reason: str = reason


class PatchAnchorNotFound(Json2DartError):
    """An aggregate file lost the anchor that closes a declaring section."""

    def __init__(self, path: Union[str, Path], section: str) -> None:
        super().__init__(f"Anchor for section '{section}' not found in {path}")
        self.path: str = str(path)
        self.section: str = section


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Json2DartError",
    "ConfigurationError",
    "SampleFormatError",
    "PatchAnchorNotFound",
]

logger.debug("json2dart.errors loaded — %d public symbols.", len(__all__))

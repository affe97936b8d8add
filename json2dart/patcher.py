# File: json2dart/patcher.py
"""
Json2Dart - Aggregate File Patch Engine
=========================================
Merges per-API fragments into files shared by every API of a page
(remote data source, repositories, mapper) without disturbing the
blocks other APIs own.

An aggregate file is parsed into an ordered list of nodes:

    ImportNode   ``import '...';`` / ``export`` / ``part`` lines
    TextNode     any other line, kept verbatim
    BlockNode    lines between ``// json2dart:begin <section>:<api>`` and
                 ``// json2dart:end <section>:<api>``
    AnchorNode   ``// json2dart:anchor <section>``; new blocks of that
                 section are inserted right before it

Serialisation joins the nodes back with ``"\\n"`` so a parse/serialise
round trip is lossless, and re-patching an unchanged API is byte-identical.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from json2dart.errors import PatchAnchorNotFound
from json2dart.exporters import ArtifactWriter, FileRecord
from json2dart.utils import read_file, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.patcher")

# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

MARKER_PREFIX: str = "// json2dart:"

_BEGIN_RE: re.Pattern[str] = re.compile(
    r"^(?P<indent>\s*)// json2dart:begin (?P<section>[\w-]+):(?P<api>\S+)\s*$"
)
_END_RE: re.Pattern[str] = re.compile(
    r"^\s*// json2dart:end (?P<section>[\w-]+):(?P<api>\S+)\s*$"
)
_ANCHOR_RE: re.Pattern[str] = re.compile(
    r"^(?P<indent>\s*)// json2dart:anchor (?P<section>[\w-]+)\s*$"
)
_IMPORT_RE: re.Pattern[str] = re.compile(
    r"^\s*(?:import|export|part)\s+['\"][^'\"]+['\"][^;]*;\s*$"
)
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")

# Per-API model files an aggregate imports; dropped together with the
# API's blocks when pruning.
_API_IMPORT_TEMPLATE: str = r"[/']{api}_(?:body|response|entity|extra)\.dart'"


def begin_marker(section: str, api: str) -> str:
    return f"{MARKER_PREFIX}begin {section}:{api}"


def end_marker(section: str, api: str) -> str:
    return f"{MARKER_PREFIX}end {section}:{api}"


def anchor_marker(section: str) -> str:
    return f"{MARKER_PREFIX}anchor {section}"


def normalize_import(line: str) -> str:
    """
    Canonical form of a directive line, used to detect duplicates.

    Examples:
        >>> normalize_import('import  "package:core/core.dart" ;')
        "import 'package:core/core.dart';"
    """
    text: str = _WHITESPACE_RE.sub(" ", line.strip().replace('"', "'"))
    return text.replace(" ;", ";")


# ---------------------------------------------------------------------------
# Fragment model
# ---------------------------------------------------------------------------


class AggregateKind(str, Enum):
    """Page-level files that accumulate one block per API."""

    REMOTE_DATA_SOURCE = "remote_data_source"
    REPOSITORY_IMPL = "repository_impl"
    DOMAIN_REPOSITORY = "domain_repository"
    MAPPER = "mapper"


@dataclass(slots=True)
class AggregateFragment:
    """
    Everything one API contributes to one aggregate file.

    ``blocks`` maps a section name to the block body (already indented).
    ``skeleton`` is the content of the file when it does not exist yet; it
    must contain one anchor per section.
    """

    kind: AggregateKind
    api: str
    relative_path: str
    skeleton: str
    imports: List[str] = field(default_factory=list)
    blocks: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Document model
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TextNode:
    line: str


@dataclass(slots=True)
class ImportNode:
    line: str

    @property
    def key(self) -> str:
        return normalize_import(self.line)


@dataclass(slots=True)
class AnchorNode:
    line: str
    section: str
    indent: str


@dataclass(slots=True)
class BlockNode:
    section: str
    api: str
    begin: str
    end: str
    body: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return self.section, self.api

    def lines(self) -> List[str]:
        return [self.begin, *self.body, self.end]


Node = Union[TextNode, ImportNode, AnchorNode, BlockNode]


class DartDocument:
    """Ordered node list of one aggregate file."""

    __slots__ = ("nodes",)

    def __init__(self, nodes: Optional[List[Node]] = None) -> None:
        self.nodes: List[Node] = nodes if nodes is not None else []

    # -- Parsing / serialisation ---------------------------------------------

    @classmethod
    def parse(cls, text: str) -> "DartDocument":
        lines: List[str] = text.split("\n")
        nodes: List[Node] = []
        index: int = 0

        while index < len(lines):
            line: str = lines[index]

            begin = _BEGIN_RE.match(line)
            if begin is not None:
                close: Optional[int] = _find_block_end(
                    lines, index + 1, begin.group("section"), begin.group("api")
                )
                if close is not None:
                    nodes.append(
                        BlockNode(
                            section=begin.group("section"),
                            api=begin.group("api"),
                            begin=line,
                            end=lines[close],
                            body=lines[index + 1:close],
                        )
                    )
                    index = close + 1
                    continue
                logger.debug("Unterminated block marker kept as text: %r", line)

            anchor = _ANCHOR_RE.match(line)
            if anchor is not None:
                nodes.append(
                    AnchorNode(
                        line=line,
                        section=anchor.group("section"),
                        indent=anchor.group("indent"),
                    )
                )
            elif _IMPORT_RE.match(line):
                nodes.append(ImportNode(line))
            else:
                nodes.append(TextNode(line))
            index += 1

        return cls(nodes)

    def render(self) -> str:
        out: List[str] = []
        for node in self.nodes:
            if isinstance(node, BlockNode):
                out.extend(node.lines())
            else:
                out.append(node.line)
        return "\n".join(out)

    # -- Queries --------------------------------------------------------------

    def blocks(self) -> List[BlockNode]:
        return [n for n in self.nodes if isinstance(n, BlockNode)]

    def api_ids(self) -> List[str]:
        seen: List[str] = []
        for block in self.blocks():
            if block.api not in seen:
                seen.append(block.api)
        return seen

    def find_block(self, section: str, api: str) -> Optional[int]:
        for index, node in enumerate(self.nodes):
            if isinstance(node, BlockNode) and node.key == (section, api):
                return index
        return None

    def find_anchor(self, section: str) -> Optional[int]:
        for index, node in enumerate(self.nodes):
            if isinstance(node, AnchorNode) and node.section == section:
                return index
        return None

    def import_keys(self) -> Set[str]:
        return {n.key for n in self.nodes if isinstance(n, ImportNode)}

    # -- Mutations ------------------------------------------------------------

    def add_imports(self, imports: Iterable[str]) -> int:
        """Append imports not yet present after the last import line."""
        known: Set[str] = self.import_keys()
        fresh: List[ImportNode] = []
        for raw in imports:
            key: str = normalize_import(raw)
            if key and key not in known:
                known.add(key)
                fresh.append(ImportNode(key))
        if not fresh:
            return 0

        last: Optional[int] = None
        for index, node in enumerate(self.nodes):
            if isinstance(node, ImportNode):
                last = index

        if last is None:
            self.nodes[0:0] = [*fresh, TextNode("")]
        else:
            self.nodes[last + 1:last + 1] = fresh
        return len(fresh)

    def upsert_block(self, section: str, api: str, body: str) -> None:
        """
        Replace the ``(section, api)`` block in place, or insert it before
        the section anchor.

        Raises ``PatchAnchorNotFound`` when a new block has nowhere to go.
        """
        existing: Optional[int] = self.find_block(section, api)
        if existing is not None:
            old: BlockNode = self.nodes[existing]  # type: ignore[assignment]
            indent: str = _BEGIN_RE.match(old.begin).group("indent")  # type: ignore[union-attr]
            self.nodes[existing] = _make_block(section, api, body, indent)
            return

        anchor: Optional[int] = self.find_anchor(section)
        if anchor is None:
            raise PatchAnchorNotFound("<document>", section)
        anchor_node: AnchorNode = self.nodes[anchor]  # type: ignore[assignment]
        self.nodes[anchor:anchor] = [
            _make_block(section, api, body, anchor_node.indent),
            TextNode(""),
        ]

    def append_block(self, section: str, api: str, body: str) -> None:
        """Append a keyed block at the end of the file."""
        position: int = len(self.nodes)
        if position and isinstance(self.nodes[-1], TextNode) and not self.nodes[-1].line:
            position -= 1
        self.nodes[position:position] = [
            TextNode(""),
            _make_block(section, api, body, ""),
        ]

    def remove_api(self, api: str) -> int:
        """Drop every block and model import of *api*; return blocks removed."""
        stems: str = "|".join(sorted({re.escape(api), re.escape(to_snake_case(api))}))
        import_re: re.Pattern[str] = re.compile(
            _API_IMPORT_TEMPLATE.format(api=f"(?:{stems})")
        )
        kept: List[Node] = []
        removed: int = 0
        skip_separator: bool = False
        for node in self.nodes:
            if isinstance(node, BlockNode) and node.api == api:
                removed += 1
                skip_separator = True
                continue
            if skip_separator and isinstance(node, TextNode) and not node.line:
                skip_separator = False
                continue
            skip_separator = False
            if isinstance(node, ImportNode) and import_re.search(node.line):
                continue
            kept.append(node)
        self.nodes = kept
        return removed


def _find_block_end(
    lines: List[str], start: int, section: str, api: str
) -> Optional[int]:
    for index in range(start, len(lines)):
        end = _END_RE.match(lines[index])
        if end is not None and (end.group("section"), end.group("api")) == (section, api):
            return index
        if _BEGIN_RE.match(lines[index]):
            return None
    return None


def _make_block(section: str, api: str, body: str, indent: str) -> BlockNode:
    return BlockNode(
        section=section,
        api=api,
        begin=f"{indent}{begin_marker(section, api)}",
        end=f"{indent}{end_marker(section, api)}",
        body=body.rstrip("\n").split("\n"),
    )


# ---------------------------------------------------------------------------
# Patch operations
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PatchOutcome:
    """Result of one ``patch`` / ``prune`` call."""

    path: str
    changed: bool
    created: bool
    warnings: List[str] = field(default_factory=list)
    record: Optional[FileRecord] = None


class PatchEngine:
    """
    Applies ``AggregateFragment``s to files on disk.

    Usage::

        engine = PatchEngine(writer)
        outcome = engine.patch(page_dir / fragment.relative_path, "login", fragment)
    """

    __slots__ = ("_writer",)

    def __init__(self, writer: Optional[ArtifactWriter] = None) -> None:
        self._writer: ArtifactWriter = writer or ArtifactWriter()

    def patch(
        self,
        path: Path,
        api_id: str,
        fragment: AggregateFragment,
    ) -> PatchOutcome:
        """
        Merge *fragment* into the file at *path*.

        Raises ``OSError`` when the file cannot be read or written.
        """
        created: bool = not path.is_file()
        source: str = fragment.skeleton if created else read_file(path)
        document: DartDocument = DartDocument.parse(source)
        warnings: List[str] = []

        document.add_imports(fragment.imports)
        for section, body in fragment.blocks.items():
            try:
                document.upsert_block(section, api_id, body)
            except PatchAnchorNotFound:
                message: str = (
                    f"Anchor for section '{section}' not found in {path}; "
                    f"appended block for '{api_id}' at end of file."
                )
                logger.warning(message)
                warnings.append(message)
                document.append_block(section, api_id, body)

        record: FileRecord = self._writer.write(path, document.render())
        return PatchOutcome(
            path=str(path),
            changed=record.changed,
            created=created,
            warnings=warnings,
            record=record,
        )

    def prune(self, path: Path, keep_api_ids: Iterable[str]) -> PatchOutcome:
        """Remove blocks (and model imports) of APIs not in *keep_api_ids*."""
        if not path.is_file():
            return PatchOutcome(path=str(path), changed=False, created=False)

        keep: Set[str] = set(keep_api_ids)
        document: DartDocument = DartDocument.parse(read_file(path))
        stale: List[str] = [a for a in document.api_ids() if a not in keep]
        if not stale:
            return PatchOutcome(path=str(path), changed=False, created=False)

        for api in stale:
            document.remove_api(api)
            logger.info("Pruned stale API '%s' from %s.", api, path)

        record: FileRecord = self._writer.write(path, document.render())
        return PatchOutcome(
            path=str(path), changed=record.changed, created=False, record=record
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MARKER_PREFIX",
    "begin_marker",
    "end_marker",
    "anchor_marker",
    "normalize_import",
    "AggregateKind",
    "AggregateFragment",
    "TextNode",
    "ImportNode",
    "AnchorNode",
    "BlockNode",
    "DartDocument",
    "PatchOutcome",
    "PatchEngine",
]

logger.debug("json2dart.patcher loaded — %d public symbols.", len(__all__))

# File: json2dart/inference.py
"""
Json2Dart - Type Inference Engine
===================================
Derives a canonical type tree (``TypeSpec``) from one example document.

Rules (applied recursively):
    - ``bool`` → bool (checked before int, ``bool`` subclasses ``int``)
    - ``int`` → int, ``float`` → double
    - ISO-8601-like string → datetime, any other string → string
    - object → ``ObjectSpec`` with fields in declaration order; an empty
      object still yields a concrete zero-field class
    - array → ``ListSpec`` of the **first element only**; later elements
      are ignored even when shaped differently; empty array → List(dynamic)
    - null or anything unrecognised → dynamic

The single-sample heuristics are relied upon by generated code and must
not be "improved" into union types.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Mapping, Tuple, Union

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.inference")

# Date, optional time (``T`` or whitespace separated), optional fraction,
# optional zone.
_DATETIME_RE: re.Pattern[str] = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:(?:\s|T)?\d{2}:\d{2}(?::\d{2})?)?"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:?\d{2})?$"
)


# ---------------------------------------------------------------------------
# Type tree
# ---------------------------------------------------------------------------


class PrimitiveKind(str, Enum):
    """Leaf types a sample value can infer to."""

    INT = "int"
    DOUBLE = "double"
    BOOL = "bool"
    STRING = "string"
    DATETIME = "datetime"
    DYNAMIC = "dynamic"


@dataclass(frozen=True, slots=True)
class PrimitiveSpec:
    kind: PrimitiveKind

    @property
    def is_dynamic(self) -> bool:
        return self.kind is PrimitiveKind.DYNAMIC


@dataclass(frozen=True, slots=True)
class ObjectSpec:
    """An object node. ``fields`` keeps the sample's key order."""

    fields: Tuple[Tuple[str, "TypeSpec"], ...] = ()

    @property
    def field_names(self) -> List[str]:
        return [name for name, _ in self.fields]

    def get(self, name: str) -> "TypeSpec":
        for key, spec in self.fields:
            if key == name:
                return spec
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True, slots=True)
class ListSpec:
    element: "TypeSpec"


TypeSpec = Union[PrimitiveSpec, ObjectSpec, ListSpec]

INT: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.INT)
DOUBLE: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.DOUBLE)
BOOL: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.BOOL)
STRING: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.STRING)
DATETIME: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.DATETIME)
DYNAMIC: PrimitiveSpec = PrimitiveSpec(PrimitiveKind.DYNAMIC)


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------


def is_datetime_string(value: str) -> bool:
    """True when *value* looks like an ISO-8601 date or date-time."""
    return _DATETIME_RE.match(value) is not None


def infer(sample: Any) -> TypeSpec:
    """
    Infer the ``TypeSpec`` of one sample value.

    Examples:
        >>> infer({"id": 1, "tags": []})
        ObjectSpec(fields=(('id', PrimitiveSpec(kind=<PrimitiveKind.INT: 'int'>)), ...
    """
    if sample is None:
        return DYNAMIC
    if isinstance(sample, bool):
        return BOOL
    if isinstance(sample, int):
        return INT
    if isinstance(sample, float):
        return DOUBLE
    if isinstance(sample, str):
        return DATETIME if is_datetime_string(sample) else STRING
    if isinstance(sample, Mapping):
        return ObjectSpec(
            fields=tuple((str(key), infer(value)) for key, value in sample.items())
        )
    if isinstance(sample, (list, tuple)):
        if not sample:
            return ListSpec(DYNAMIC)
        return ListSpec(infer(sample[0]))

    logger.debug("Unrecognised sample value of type %s.", type(sample).__name__)
    return DYNAMIC


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def unwrap_list(spec: TypeSpec) -> TypeSpec:
    """Strip every ``ListSpec`` layer and return the innermost element."""
    while isinstance(spec, ListSpec):
        spec = spec.element
    return spec


def object_nodes(
    spec: TypeSpec,
    path: Tuple[str, ...] = (),
) -> Iterator[Tuple[Tuple[str, ...], ObjectSpec]]:
    """
    Yield ``(path, node)`` for every object node in depth-first pre-order.

    List elements share the path of the field that holds the list.
    """
    node: TypeSpec = unwrap_list(spec)
    if not isinstance(node, ObjectSpec):
        return
    yield path, node
    for name, child in node.fields:
        yield from object_nodes(child, path + (name,))


def count_object_nodes(spec: TypeSpec) -> int:
    return sum(1 for _ in object_nodes(spec))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PrimitiveKind",
    "PrimitiveSpec",
    "ObjectSpec",
    "ListSpec",
    "TypeSpec",
    "INT",
    "DOUBLE",
    "BOOL",
    "STRING",
    "DATETIME",
    "DYNAMIC",
    "is_datetime_string",
    "infer",
    "unwrap_list",
    "object_nodes",
    "count_object_nodes",
]

logger.debug("json2dart.inference loaded — %d public symbols.", len(__all__))

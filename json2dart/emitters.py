# File: json2dart/emitters.py
"""
Json2Dart - Model Artifact Emitters
=====================================
Turns an inferred ``ObjectSpec`` tree into Dart source for every artifact
kind.  A single depth-first walker (``ModelEmitter``) renders one
``class X extends Equatable`` per object node; what each class contains is
decided by an ``ArtifactPolicy``:

    Body      raw body bag, null-guarded ``toMap`` entries, path params,
              multipart files
    Response  ``fromMap`` / ``fromJson`` / ``toMap`` / ``toJson``
    Entity    plain fields and ``copyWith``
    Extra     Response-shaped, every name ends in ``Extra``

Mapper extensions are page-aggregate content and are produced by
``MapperEmitter`` as an ``AggregateFragment``.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Class names come from the ``ClassNameRegistry`` passed in; the
      emitters keep no naming state of their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from json2dart.inference import (
    ListSpec,
    ObjectSpec,
    PrimitiveKind,
    PrimitiveSpec,
    TypeSpec,
    object_nodes,
)
from json2dart.models import DEFAULT_DATE_EXPRESSION, ArtifactKind
from json2dart.naming import ClassNameRegistry
from json2dart.patcher import AggregateFragment, AggregateKind, anchor_marker
from json2dart.utils import dart_field_name, dart_string_literal, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.emitters")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "
_DOUBLE_INDENT: str = "    "
_TRIPLE_INDENT: str = "      "

_PRIMITIVE_DART_TYPES: Dict[PrimitiveKind, str] = {
    PrimitiveKind.INT: "int",
    PrimitiveKind.DOUBLE: "double",
    PrimitiveKind.BOOL: "bool",
    PrimitiveKind.STRING: "String",
    PrimitiveKind.DATETIME: "DateTime",
    PrimitiveKind.DYNAMIC: "dynamic",
}

_CORE_IMPORT: str = "import 'package:core/core.dart';"

MAPPER_SECTION: str = "extensions"
MAPPER_FILE: str = "mapper.dart"


# ---------------------------------------------------------------------------
# Policy & results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArtifactPolicy:
    """What the walker puts into each class of one artifact kind."""

    kind: ArtifactKind
    from_map: bool = False
    to_map: bool = False
    json_codec: bool = False
    copy_with: bool = False
    raw_body: bool = False
    guard_null_entries: bool = False
    date_expression: str = DEFAULT_DATE_EXPRESSION

    @classmethod
    def body(cls, date_expression: str = DEFAULT_DATE_EXPRESSION) -> "ArtifactPolicy":
        return cls(
            kind=ArtifactKind.BODY,
            to_map=True,
            raw_body=True,
            guard_null_entries=True,
            date_expression=date_expression,
        )

    @classmethod
    def response(
        cls, date_expression: str = DEFAULT_DATE_EXPRESSION
    ) -> "ArtifactPolicy":
        return cls(
            kind=ArtifactKind.RESPONSE,
            from_map=True,
            to_map=True,
            json_codec=True,
            date_expression=date_expression,
        )

    @classmethod
    def entity(cls) -> "ArtifactPolicy":
        return cls(kind=ArtifactKind.ENTITY, copy_with=True)

    @classmethod
    def extra(
        cls, date_expression: str = DEFAULT_DATE_EXPRESSION
    ) -> "ArtifactPolicy":
        return cls(
            kind=ArtifactKind.EXTRA,
            from_map=True,
            to_map=True,
            json_codec=True,
            date_expression=date_expression,
        )


@dataclass(frozen=True, slots=True)
class DartField:
    """One JSON key of an object node and its Dart identifier."""

    key: str
    name: str
    spec: TypeSpec
    path: Tuple[str, ...]


@dataclass(slots=True)
class ArtifactFragment:
    """Generated text of one artifact file and the classes it defines."""

    kind: ArtifactKind
    content: str
    root_class: str
    class_names: List[str] = field(default_factory=list)
    relative_path: str = ""


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def dart_fields(
    node: ObjectSpec,
    path: Tuple[str, ...],
    reserved: Iterable[str] = (),
) -> List[DartField]:
    """
    Map the keys of *node* to unique Dart identifiers.

    Keys that camel-case to the same identifier (``user_id`` / ``userId``)
    or to a *reserved* member get a numeric tail.
    """
    taken = set(reserved)
    fields: List[DartField] = []
    for key, spec in node.fields:
        base: str = dart_field_name(key)
        name: str = base
        counter: int = 2
        while name in taken:
            name = f"{base}{counter}"
            counter += 1
        taken.add(name)
        fields.append(DartField(key=key, name=name, spec=spec, path=path + (key,)))
    return fields


def nullable(dart_type: str) -> str:
    return dart_type if dart_type == "dynamic" else f"{dart_type}?"


def allocate_tree(
    registry: ClassNameRegistry,
    spec: ObjectSpec,
    kind: ArtifactKind,
) -> List[str]:
    """Allocate a name for every object node, root first, in pre-order."""
    names: List[str] = []
    for path, _ in object_nodes(spec):
        base: str = path[-1] if path else registry.api_name
        names.append(registry.allocate(path, base, kind, is_root=not path))
    return names


def _props(names: Sequence[str]) -> List[str]:
    return [
        f"{_INDENT}@override",
        f"{_INDENT}List<Object?> get props => [{', '.join(names)}];",
    ]


# ---------------------------------------------------------------------------
# Model walker
# ---------------------------------------------------------------------------


class ModelEmitter:
    """
    Depth-first class renderer for Body, Response, Entity and Extra files.

    Usage::

        registry = ClassNameRegistry("login")
        emitter = ModelEmitter(ArtifactPolicy.response(), registry)
        fragment = emitter.emit(infer(sample))
    """

    def __init__(self, policy: ArtifactPolicy, registry: ClassNameRegistry) -> None:
        self._policy: ArtifactPolicy = policy
        self._registry: ClassNameRegistry = registry

    @property
    def kind(self) -> ArtifactKind:
        return self._policy.kind

    @property
    def policy(self) -> ArtifactPolicy:
        return self._policy

    # -- Public API -----------------------------------------------------------

    def emit(
        self,
        spec: ObjectSpec,
        *,
        path_params: Sequence[str] = (),
        multipart: bool = False,
        relative_path: str = "",
    ) -> ArtifactFragment:
        """Render the whole class forest of *spec* as one Dart file."""
        names: List[str] = allocate_tree(self._registry, spec, self.kind)

        classes: List[str] = []
        for path, node in object_nodes(spec):
            is_root: bool = not path
            classes.append(
                self.render_class(
                    path,
                    node,
                    path_params=path_params if is_root else (),
                    multipart=multipart and is_root,
                )
            )

        content: str = "\n".join(self._imports(multipart)) + "\n\n"
        content += "\n\n".join(classes) + "\n"

        logger.debug(
            "Emitted %s file for '%s': %d class(es).",
            self.kind.value,
            self._registry.api_name,
            len(classes),
        )
        return ArtifactFragment(
            kind=self.kind,
            content=content,
            root_class=names[0],
            class_names=names,
            relative_path=relative_path,
        )

    def render_class(
        self,
        path: Tuple[str, ...],
        node: ObjectSpec,
        *,
        path_params: Sequence[str] = (),
        multipart: bool = False,
    ) -> str:
        """Render one ``class X extends Equatable`` for the node at *path*."""
        policy: ArtifactPolicy = self._policy
        name: str = self._class_name(path)
        extra_members, params, fields = self.layout(
            path, node, path_params=path_params, multipart=multipart
        )

        sections: List[List[str]] = []
        sections.append(self._constructor(name, extra_members, params, fields))
        if policy.from_map:
            sections.append(self._from_map(name, fields))
        if policy.json_codec:
            sections.append(
                [
                    f"{_INDENT}factory {name}.fromJson(String source) =>",
                    f"{_DOUBLE_INDENT}{_INDENT}{name}.fromMap(json.decode(source));",
                ]
            )
        sections.append(self._declarations(extra_members, params, fields))
        if policy.to_map:
            sections.append(self._to_map(fields))
        if policy.json_codec:
            sections.append([f"{_INDENT}String toJson() => json.encode(toMap());"])
        if policy.copy_with:
            sections.append(self._copy_with(name, fields))
        sections.append(
            _props([m for m, _ in extra_members] + params + [f.name for f in fields])
        )

        lines: List[str] = [f"class {name} extends Equatable {{"]
        for index, section in enumerate(sections):
            if not section:
                continue
            if index:
                lines.append("")
            lines.extend(section)
        lines.append("}")
        return "\n".join(lines)

    def layout(
        self,
        path: Tuple[str, ...],
        node: ObjectSpec,
        *,
        path_params: Sequence[str] = (),
        multipart: bool = False,
    ) -> Tuple[List[Tuple[str, str]], List[str], List[DartField]]:
        """Extra members, path parameters and JSON fields of one class."""
        extra_members: List[Tuple[str, str]] = []
        if self._policy.raw_body:
            extra_members.append(("rawBody", "Map<String, dynamic>?"))
        if multipart:
            extra_members.append(("files", "Map<String, List<File>>?"))
        params: List[str] = [dart_field_name(p) for p in path_params]

        reserved: List[str] = [m for m, _ in extra_members] + params
        return extra_members, params, dart_fields(node, path, reserved)

    def class_name(self, path: Tuple[str, ...]) -> str:
        return self._class_name(path)

    def dart_type(self, spec: TypeSpec, path: Tuple[str, ...]) -> str:
        if isinstance(spec, PrimitiveSpec):
            return _PRIMITIVE_DART_TYPES[spec.kind]
        if isinstance(spec, ObjectSpec):
            return self._class_name(path)
        return f"List<{self.dart_type(spec.element, path)}>"

    # -- Class members --------------------------------------------------------

    def _class_name(self, path: Tuple[str, ...]) -> str:
        name: Optional[str] = self._registry.lookup(path, self.kind)
        if name is None:
            base: str = path[-1] if path else self._registry.api_name
            name = self._registry.allocate(path, base, self.kind, is_root=not path)
        return name

    def _constructor(
        self,
        name: str,
        extra_members: List[Tuple[str, str]],
        params: List[str],
        fields: List[DartField],
    ) -> List[str]:
        args: List[str] = [f"this.{m}," for m, _ in extra_members]
        args.extend(f"required this.{p}," for p in params)
        args.extend(f"this.{f.name}," for f in fields)
        if not args:
            return [f"{_INDENT}const {name}();"]
        lines: List[str] = [f"{_INDENT}const {name}({{"]
        lines.extend(f"{_DOUBLE_INDENT}{arg}" for arg in args)
        lines.append(f"{_INDENT}}});")
        return lines

    def _declarations(
        self,
        extra_members: List[Tuple[str, str]],
        params: List[str],
        fields: List[DartField],
    ) -> List[str]:
        lines: List[str] = [f"{_INDENT}final {t} {m};" for m, t in extra_members]
        lines.extend(f"{_INDENT}final String {p};" for p in params)
        for f in fields:
            lines.append(
                f"{_INDENT}final {nullable(self.dart_type(f.spec, f.path))} {f.name};"
            )
        return lines

    def _from_map(self, name: str, fields: List[DartField]) -> List[str]:
        lines: List[str] = [
            f"{_INDENT}factory {name}.fromMap(Map<String, dynamic> map) {{"
        ]
        if not fields:
            lines.append(f"{_DOUBLE_INDENT}return const {name}();")
        else:
            lines.append(f"{_DOUBLE_INDENT}return {name}(")
            for f in fields:
                source: str = f"map[{dart_string_literal(f.key)}]"
                lines.append(
                    f"{_TRIPLE_INDENT}{f.name}: {self._decode(f.spec, f.path, source)},"
                )
            lines.append(f"{_DOUBLE_INDENT});")
        lines.append(f"{_INDENT}}}")
        return lines

    def _to_map(self, fields: List[DartField]) -> List[str]:
        entries: List[str] = []
        if self._policy.raw_body:
            entries.append("if (rawBody?.isNotEmpty ?? false) ...rawBody ?? {},")
        for f in fields:
            key: str = dart_string_literal(f.key)
            value: str = self._encode(f.spec, f.name)
            if self._policy.guard_null_entries:
                entries.append(f"if ({f.name} != null) {key}: {value},")
            else:
                entries.append(f"{key}: {value},")

        lines: List[str] = [f"{_INDENT}Map<String, dynamic> toMap() {{"]
        if not entries:
            lines.append(f"{_DOUBLE_INDENT}return {{}};")
        else:
            lines.append(f"{_DOUBLE_INDENT}return {{")
            lines.extend(f"{_TRIPLE_INDENT}{entry}" for entry in entries)
            lines.append(f"{_DOUBLE_INDENT}}};")
        lines.append(f"{_INDENT}}}")
        return lines

    def _copy_with(self, name: str, fields: List[DartField]) -> List[str]:
        if not fields:
            return [
                f"{_INDENT}{name} copyWith() {{",
                f"{_DOUBLE_INDENT}return const {name}();",
                f"{_INDENT}}}",
            ]
        lines: List[str] = [f"{_INDENT}{name} copyWith({{"]
        for f in fields:
            lines.append(
                f"{_DOUBLE_INDENT}{nullable(self.dart_type(f.spec, f.path))} {f.name},"
            )
        lines.append(f"{_INDENT}}}) {{")
        lines.append(f"{_DOUBLE_INDENT}return {name}(")
        for f in fields:
            lines.append(f"{_TRIPLE_INDENT}{f.name}: {f.name} ?? this.{f.name},")
        lines.append(f"{_DOUBLE_INDENT});")
        lines.append(f"{_INDENT}}}")
        return lines

    # -- Expressions ----------------------------------------------------------

    def _encode(self, spec: TypeSpec, variable: str) -> str:
        if isinstance(spec, ObjectSpec):
            return f"{variable}?.toMap()"
        if isinstance(spec, ListSpec):
            inner: Optional[str] = self._encode_element(spec.element, "e")
            if inner is None:
                return variable
            return f"{variable}?.map((e) => {inner}).toList()"
        if isinstance(spec, PrimitiveSpec) and spec.kind is PrimitiveKind.DATETIME:
            return f"{variable}?{self._policy.date_expression}"
        return variable

    def _encode_element(self, spec: TypeSpec, variable: str) -> Optional[str]:
        if isinstance(spec, ObjectSpec):
            return f"{variable}.toMap()"
        if isinstance(spec, ListSpec):
            inner: Optional[str] = self._encode_element(spec.element, "e")
            if inner is None:
                return None
            return f"{variable}.map((e) => {inner}).toList()"
        if isinstance(spec, PrimitiveSpec) and spec.kind is PrimitiveKind.DATETIME:
            return f"{variable}{self._policy.date_expression}"
        return None

    def _decode(self, spec: TypeSpec, path: Tuple[str, ...], source: str) -> str:
        if isinstance(spec, ObjectSpec):
            return f"{source} == null ? null : {self._class_name(path)}.fromMap({source})"
        if isinstance(spec, ListSpec):
            element: Optional[str] = self._decode_element(spec.element, path, "e")
            if element is None:
                return f"{source} is List ? List.from({source}) : null"
            return (
                f"{source} is List ? List.from(({source} as List)"
                f".where((element) => element != null)"
                f".map((e) => {element}){_unparsed_dropped(spec.element)}) : null"
            )
        kind: PrimitiveKind = spec.kind
        if kind is PrimitiveKind.INT:
            return f"int.tryParse({source}?.toString() ?? '')"
        if kind is PrimitiveKind.DOUBLE:
            return f"double.tryParse({source}?.toString() ?? '')"
        if kind is PrimitiveKind.DATETIME:
            return f"DateTime.tryParse({source} ?? '')"
        return source

    def _decode_element(
        self, spec: TypeSpec, path: Tuple[str, ...], variable: str
    ) -> Optional[str]:
        if isinstance(spec, ObjectSpec):
            return f"{self._class_name(path)}.fromMap({variable})"
        if isinstance(spec, ListSpec):
            inner: Optional[str] = self._decode_element(spec.element, path, "e")
            if inner is None:
                return f"List.from({variable})"
            return (
                f"List.from(({variable} as List)"
                f".where((element) => element != null)"
                f".map((e) => {inner}){_unparsed_dropped(spec.element)})"
            )
        kind: PrimitiveKind = spec.kind
        if kind is PrimitiveKind.INT:
            return f"int.tryParse({variable}.toString()) ?? 0"
        if kind is PrimitiveKind.DOUBLE:
            return f"double.tryParse({variable}.toString()) ?? 0"
        if kind is PrimitiveKind.DATETIME:
            return f"DateTime.tryParse({variable}.toString())"
        return None

    # -- File header ----------------------------------------------------------

    def _imports(self, multipart: bool) -> List[str]:
        lines: List[str] = []
        if self._policy.json_codec:
            lines.extend(["import 'dart:convert';", ""])
        if multipart:
            lines.extend(["import 'dart:io';", ""])
        lines.append(_CORE_IMPORT)
        return lines


# ---------------------------------------------------------------------------
# Mapper extensions
# ---------------------------------------------------------------------------


class MapperEmitter:
    """
    Renders ``toEntity`` / ``toResponse`` extensions for one API.

    The registry must be the one that named the API's Response and Entity
    classes, so the extension targets resolve to the same names.
    """

    def __init__(self, registry: ClassNameRegistry) -> None:
        self._registry: ClassNameRegistry = registry
        self._file_stem: str = to_snake_case(registry.api_name)

    @property
    def response_alias(self) -> str:
        return f"{self._file_stem}_response"

    @property
    def entity_alias(self) -> str:
        return f"{self._file_stem}_entity"

    def imports(self) -> List[str]:
        return [
            f"import 'data/models/response/{self._file_stem}_response.dart' "
            f"as {self.response_alias};",
            f"import 'domain/entities/{self._file_stem}_entity.dart' "
            f"as {self.entity_alias};",
        ]

    def emit(self, spec: ObjectSpec) -> AggregateFragment:
        allocate_tree(self._registry, spec, ArtifactKind.RESPONSE)

        extensions: List[str] = []
        for path, node in object_nodes(spec):
            extensions.append(self.render_extensions(path, node))

        return AggregateFragment(
            kind=AggregateKind.MAPPER,
            api=self._registry.api_name,
            relative_path=MAPPER_FILE,
            skeleton=mapper_skeleton(),
            imports=self.imports(),
            blocks={MAPPER_SECTION: "\n\n".join(extensions)},
        )

    def render_extensions(self, path: Tuple[str, ...], node: ObjectSpec) -> str:
        response: str = f"{self.response_alias}.{self._name(path, ArtifactKind.RESPONSE)}"
        entity: str = f"{self.entity_alias}.{self._name(path, ArtifactKind.ENTITY)}"
        response_ext, entity_ext = self._registry.extension_names(path)
        fields: List[DartField] = dart_fields(node, path)

        lines: List[str] = [f"extension {response_ext} on {response} {{"]
        lines.extend(self._conversion(entity, "toEntity", fields))
        lines.append("}")
        lines.append("")
        lines.append(f"extension {entity_ext} on {entity} {{")
        lines.extend(self._conversion(response, "toResponse", fields))
        lines.append("}")
        return "\n".join(lines)

    def _name(self, path: Tuple[str, ...], kind: ArtifactKind) -> str:
        name: Optional[str] = self._registry.lookup(path, kind)
        if name is None:
            raise KeyError(path)
        return name

    def _conversion(
        self, target: str, method: str, fields: List[DartField]
    ) -> List[str]:
        if not fields:
            return [f"{_INDENT}{target} {method}() => const {target}();"]
        lines: List[str] = [f"{_INDENT}{target} {method}() => {target}("]
        for f in fields:
            lines.append(
                f"{_DOUBLE_INDENT}{_DOUBLE_INDENT}{f.name}: "
                f"{_convert(f.spec, f.name, method)},"
            )
        lines.append(f"{_TRIPLE_INDENT});")
        return lines


def _unparsed_dropped(spec: TypeSpec) -> str:
    """Filter that drops list elements whose date string did not parse."""
    if isinstance(spec, PrimitiveSpec) and spec.kind is PrimitiveKind.DATETIME:
        return ".whereType<DateTime>()"
    return ""


def _convert(spec: TypeSpec, variable: str, method: str) -> str:
    if isinstance(spec, ObjectSpec):
        return f"{variable}?.{method}()"
    if isinstance(spec, ListSpec):
        inner: Optional[str] = _convert_element(spec.element, "e", method)
        if inner is not None:
            return f"{variable}?.map((e) => {inner}).toList()"
    return variable


def _convert_element(spec: TypeSpec, variable: str, method: str) -> Optional[str]:
    if isinstance(spec, ObjectSpec):
        return f"{variable}.{method}()"
    if isinstance(spec, ListSpec):
        inner: Optional[str] = _convert_element(spec.element, "e", method)
        if inner is not None:
            return f"{variable}.map((e) => {inner}).toList()"
    return None


def mapper_skeleton() -> str:
    return f"{anchor_marker(MAPPER_SECTION)}\n"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAPPER_SECTION",
    "MAPPER_FILE",
    "ArtifactPolicy",
    "DartField",
    "ArtifactFragment",
    "dart_fields",
    "nullable",
    "allocate_tree",
    "ModelEmitter",
    "MapperEmitter",
    "mapper_skeleton",
]

logger.debug("json2dart.emitters loaded — %d public symbols.", len(__all__))

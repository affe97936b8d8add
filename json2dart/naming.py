# File: json2dart/naming.py
"""
Json2Dart - Class Name Registry
=================================
Assigns collision-free Dart class names to the object nodes of one type
tree.  A registry instance lives for a single API generation call and is
passed explicitly to every emitter that needs a name.

Naming model:
    - Every path (tuple of field names from the root) receives one *stem*,
      decided the first time any kind asks for it.
    - A stem is accepted only if the names it renders for **every** artifact
      kind are free, so Response / Entity / Mapper / Extra names for one
      path differ only in their suffix.
    - Candidate order for a nested node: bare field name, enclosing-chain
      prefixes (nearest first, then the API name), suffixed variant, Greek
      letter prefixes, numeric tail.
    - Mapper names end up in one ``mapper.dart`` per page, so they are
      claimed through a page-wide ``MapperScope`` shared by the registries
      of every API of that page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from json2dart.models import ArtifactKind
from json2dart.utils import to_pascal_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.naming")

# Names visible in every generated library through dart:core or the
# project's core package; a generated class must never shadow them.
RESERVED_CLASS_NAMES: FrozenSet[str] = frozenset({
    "BigInt", "Comparable", "DateTime", "Duration", "Enum", "Error",
    "Exception", "Expando", "Function", "Future", "Iterable", "Iterator",
    "List", "Map", "MapEntry", "Null", "Object", "Pattern", "Record",
    "RegExp", "Set", "Sink", "StackTrace", "Stream", "String",
    "StringBuffer", "Symbol", "Type", "Uri", "bool", "double", "dynamic",
    "int", "num", "void", "Never",
    # dart:io, dart:convert, dart:typed_data
    "File", "Directory", "HttpClient", "Uint8List", "Encoding",
    # package:core
    "Equatable", "Either", "Left", "Right", "Response", "UseCase",
    "StreamUseCase", "CacheStrategy", "MorphemeHttp", "MorphemeFailure",
    "MorphemeException", "InternalFailure",
})

GREEK_PREFIXES: Tuple[str, ...] = (
    "Alpha", "Beta", "Gamma", "Delta", "Epsilon", "Zeta", "Eta", "Theta",
    "Iota", "Kappa", "Lambda", "Mu", "Nu", "Xi", "Omicron", "Pi", "Rho",
    "Sigma", "Tau", "Upsilon", "Phi", "Chi", "Psi", "Omega",
)

Path = Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class _StemDecision:
    stem: str
    suffixed: bool
    is_root: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def class_stem(field_name: str) -> str:
    """
    Pascal-case *field_name* into something usable as a class identifier.

    Examples:
        >>> class_stem("user_address")
        'UserAddress'
        >>> class_stem("2fa")
        'Value2Fa'
    """
    stem: str = to_pascal_case(field_name)
    if not stem:
        return "Value"
    if stem[0].isdigit():
        return f"Value{stem}"
    return stem


# ---------------------------------------------------------------------------
# Page-wide mapper names
# ---------------------------------------------------------------------------


class MapperScope:
    """
    Mapper names shared by every API of one page.

    All APIs of a page write their extensions into the same ``mapper.dart``,
    so a nested mapper name is only accepted when no other API of the page
    owns it.  Root names (the API's Pascal name) are reserved up front for
    their own API; a nested name that runs into one gets a numeric tail.

    Usage:
        scope = MapperScope(["get_user", "get_user_profile"])
        scope.claim("get_user", ("profile",), "GetUserProfile")
        # 'GetUserProfile2'
    """

    __slots__ = ("_owners", "_claims")

    def __init__(self, api_names: Iterable[str] = ()) -> None:
        self._owners: Dict[str, Tuple[str, Path]] = {}
        self._claims: Dict[Tuple[str, Path], str] = {}
        for api_name in api_names:
            self.claim(str(api_name), (), class_stem(str(api_name)))

    def claim(self, api_name: str, path: Path, candidate: str) -> str:
        """Return the page-unique mapper name for ``(api_name, path)``."""
        key: Tuple[str, Path] = (api_name, path)
        claimed: Optional[str] = self._claims.get(key)
        if claimed is not None:
            return claimed

        name: str = candidate
        counter: int = 2
        while name in self._owners:
            name = f"{candidate}{counter}"
            counter += 1
        if name != candidate:
            logger.debug(
                "Mapper name %r is taken on this page; %s/%s uses %r.",
                candidate,
                api_name,
                "/".join(path) or "<root>",
                name,
            )
        self._owners[name] = key
        self._claims[key] = name
        return name

    def __len__(self) -> int:
        return len(self._claims)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ClassNameRegistry:
    """
    Per-API allocator of class names.

    Usage:
        registry = ClassNameRegistry("get_user")
        registry.allocate((), "get_user", ArtifactKind.RESPONSE, is_root=True)
        # 'GetUserResponse'
        registry.allocate(("address",), "address", ArtifactKind.RESPONSE)
        # 'Address'
    """

    __slots__ = ("api_name", "api_pascal", "_reserved", "_stems", "_taken", "_mappers")

    def __init__(
        self,
        api_name: str,
        reserved: Optional[FrozenSet[str]] = None,
        mapper_scope: Optional[MapperScope] = None,
    ) -> None:
        self.api_name: str = api_name
        self.api_pascal: str = class_stem(api_name)
        self._reserved: FrozenSet[str] = (
            RESERVED_CLASS_NAMES if reserved is None else reserved
        )
        self._stems: Dict[Path, _StemDecision] = {}
        self._taken: Dict[ArtifactKind, Set[str]] = {
            kind: set() for kind in ArtifactKind
        }
        self._mappers: MapperScope = (
            MapperScope([api_name]) if mapper_scope is None else mapper_scope
        )

    # -- Public API -----------------------------------------------------------

    def allocate(
        self,
        path: Path,
        base_name: str,
        kind: ArtifactKind,
        is_root: bool = False,
    ) -> str:
        """Return the class name for ``(path, kind)``, deciding its stem once."""
        decision: Optional[_StemDecision] = self._stems.get(path)
        if decision is None:
            decision = self._decide(path, base_name, is_root)
            self._stems[path] = decision
            for each in ArtifactKind:
                self._taken[each].add(self._render(decision, each))
            logger.debug(
                "Allocated stem %r for %s (root=%s, suffixed=%s).",
                decision.stem,
                "/".join(path) or "<root>",
                decision.is_root,
                decision.suffixed,
            )
        return self._public(path, decision, ArtifactKind(kind))

    def lookup(self, path: Path, kind: ArtifactKind) -> Optional[str]:
        decision: Optional[_StemDecision] = self._stems.get(path)
        if decision is None:
            return None
        return self._public(path, decision, ArtifactKind(kind))

    def extension_names(self, path: Path) -> Tuple[str, str]:
        """``(ResponseMapper, EntityMapper)`` extension names for *path*."""
        mapper: Optional[str] = self.lookup(path, ArtifactKind.MAPPER)
        if mapper is None:
            raise KeyError(path)
        return f"{mapper}ResponseMapper", f"{mapper}EntityMapper"

    def names(self, kind: ArtifactKind) -> Dict[Path, str]:
        """Every allocated ``path -> name`` for one kind, in allocation order."""
        return {
            path: self._public(path, decision, ArtifactKind(kind))
            for path, decision in self._stems.items()
        }

    def __len__(self) -> int:
        return len(self._stems)

    def __repr__(self) -> str:
        return f"<ClassNameRegistry {self.api_name} ({len(self)} paths)>"

    # -- Internals ------------------------------------------------------------

    def _public(self, path: Path, decision: _StemDecision, kind: ArtifactKind) -> str:
        name: str = self._render(decision, kind)
        if kind is ArtifactKind.MAPPER:
            return self._mappers.claim(self.api_name, path, name)
        return name

    def _render(self, decision: _StemDecision, kind: ArtifactKind) -> str:
        if kind is ArtifactKind.MAPPER:
            if decision.is_root:
                return self.api_pascal
            return f"{self.api_pascal}{decision.stem}"
        if decision.is_root or decision.suffixed:
            return f"{decision.stem}{kind.suffix}"
        if kind is ArtifactKind.EXTRA:
            return f"{decision.stem}Extra"
        return decision.stem

    def _is_free(self, decision: _StemDecision) -> bool:
        for kind in ArtifactKind:
            name: str = self._render(decision, kind)
            if name in self._reserved or name in self._taken[kind]:
                return False
        return True

    def _decide(self, path: Path, base_name: str, is_root: bool) -> _StemDecision:
        if is_root:
            # Roots own their suffix; they are allocated before any child.
            return _StemDecision(class_stem(base_name), False, True)

        for stem, suffixed in self._candidates(path, base_name):
            decision = _StemDecision(stem, suffixed, False)
            if self._is_free(decision):
                return decision
        raise AssertionError("numeric tail candidates are unbounded")

    def _candidates(
        self, path: Path, base_name: str
    ) -> Iterator[Tuple[str, bool]]:
        base: str = class_stem(base_name)
        yield base, False

        # Enclosing chain, nearest first: user.address -> UserAddress,
        # then DataUserAddress, and finally the API name.
        enclosing: List[str] = [class_stem(name) for name in path[:-1]]
        prefix: str = ""
        for name in reversed(enclosing):
            prefix = name + prefix
            yield prefix + base, False
        yield self.api_pascal + prefix + base, False

        yield base, True

        for letter in GREEK_PREFIXES:
            yield letter + base, False

        counter: int = 2
        while True:
            yield f"{base}{counter}", False
            counter += 1


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RESERVED_CLASS_NAMES",
    "GREEK_PREFIXES",
    "class_stem",
    "MapperScope",
    "ClassNameRegistry",
]

logger.debug("json2dart.naming loaded — %d public symbols.", len(__all__))

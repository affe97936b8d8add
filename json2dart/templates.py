# File: json2dart/templates.py
"""
Json2Dart - Data & Domain Layer Templates
===========================================
Renders the call-site code that wires an API into a page:

    1. Remote data source interface + implementation (aggregate)
    2. Repository implementation (aggregate)
    3. Domain repository interface (aggregate)
    4. Use case (one file per API)

Aggregates come back as ``AggregateFragment`` objects whose blocks the
patch engine merges into the page files; the use case is a whole file.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Template methods are stateless; one ``LayerTemplates`` per API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from json2dart.errors import ConfigurationError
from json2dart.models import ApiConfig, CacheStrategy, ReturnData
from json2dart.patcher import AggregateFragment, AggregateKind, anchor_marker
from json2dart.utils import (
    dart_field_name,
    dart_string_literal,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "
_DOUBLE_INDENT: str = "    "
_TRIPLE_INDENT: str = "      "
_QUAD_INDENT: str = "        "

_CORE_IMPORT: str = "import 'package:core/core.dart';"
_CONVERT_IMPORT: str = "import 'dart:convert';"
_TYPED_DATA_IMPORT: str = "import 'dart:typed_data';"

INTERFACE_SECTION: str = "interface"
IMPLEMENTATION_SECTION: str = "implementation"

# Return type per ``return_data`` for everything except ``model``.
_RAW_RETURN_TYPES: Dict[str, str] = {
    ReturnData.HEADER.value: "Map<String, String>",
    ReturnData.BODY_BYTES.value: "Uint8List",
    ReturnData.BODY_STRING.value: "String",
    ReturnData.STATUS_CODE.value: "int",
    ReturnData.RAW.value: "Response",
}

_RAW_RETURN_STATEMENTS: Dict[str, str] = {
    ReturnData.HEADER.value: "return response.headers;",
    ReturnData.BODY_BYTES.value: "return response.bodyBytes;",
    ReturnData.BODY_STRING.value: "return response.body;",
    ReturnData.STATUS_CODE.value: "return response.statusCode;",
    ReturnData.RAW.value: "return response;",
}

# Shapes an SSE stream can deliver; each event arrives as a String.
STREAMABLE_RETURN_DATA: FrozenSet[str] = frozenset({
    ReturnData.MODEL.value,
    ReturnData.BODY_STRING.value,
    ReturnData.RAW.value,
})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def cache_strategy_expression(
    strategy: str,
    ttl: Optional[int] = None,
    keep_expired_cache: Optional[bool] = None,
) -> str:
    """
    Dart constructor call for a cache strategy.

    Examples:
        >>> cache_strategy_expression("just_async", ttl=5)
        'JustAsyncStrategy()'
        >>> cache_strategy_expression("async_or_cache", 60, True)
        'AsyncOrCacheStrategy(ttlValue: const Duration(minutes: 60), keepExpiredCache: true,)'
    """
    class_name: str = f"{to_pascal_case(strategy)}Strategy"
    if strategy == CacheStrategy.JUST_ASYNC.value:
        return f"{class_name}()"

    args: List[str] = []
    if ttl is not None:
        args.append(f"ttlValue: const Duration(minutes: {ttl})")
    if keep_expired_cache is not None:
        args.append(f"keepExpiredCache: {'true' if keep_expired_cache else 'false'}")
    if not args:
        return f"{class_name}()"
    return f"{class_name}({', '.join(args)},)"


def dart_literal(value: Any) -> str:
    """Render a JSON scalar or container as a Dart literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return dart_string_literal(value)
    if isinstance(value, dict):
        entries: str = ", ".join(
            f"{dart_string_literal(str(k))}: {dart_literal(v)}" for k, v in value.items()
        )
        return f"{{{entries}}}"
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(dart_literal(v) for v in value)}]"
    return dart_string_literal(str(value))


def headers_expression(headers: Dict[str, Any]) -> str:
    """Static headers merged with the caller's ``headers`` argument."""
    return (
        f"<String, dynamic>{dart_literal(headers)}"
        ".map((key, value) => MapEntry(key, value.toString()))"
        "..addAll(headers ?? {})"
    )


# ---------------------------------------------------------------------------
# Per-API context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ApiContext:
    """Everything the layer templates need to know about one API."""

    api: ApiConfig
    page_name: str
    project_name: str
    apps_name: Optional[str] = None
    body_list: bool = False
    response_list: bool = False
    headers: Optional[Dict[str, Any]] = None

    @property
    def api_file(self) -> str:
        return to_snake_case(self.api.name)

    @property
    def api_class(self) -> str:
        return to_pascal_case(self.api.name)

    @property
    def api_method(self) -> str:
        return to_camel_case(self.api.name)

    @property
    def page_file(self) -> str:
        return to_snake_case(self.page_name)

    @property
    def page_class(self) -> str:
        return to_pascal_case(self.page_name)


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------


class LayerTemplates:
    """
    Renders the data/domain layer code for one API.

    Usage::

        templates = LayerTemplates(ApiContext(api, "auth", "my_app"))
        fragment = templates.remote_data_source()
    """

    def __init__(self, context: ApiContext) -> None:
        self._ctx: ApiContext = context
        self._api: ApiConfig = context.api

    # ===================================================================
    # Type resolution
    # ===================================================================

    @property
    def is_stream(self) -> bool:
        return bool(self._api.is_sse)

    @property
    def future_class(self) -> str:
        return "Stream" if self.is_stream else "Future"

    @property
    def body_class(self) -> str:
        name: str = f"{self._ctx.api_class}Body"
        return f"List<{name}>" if self._ctx.body_list else name

    @property
    def response_class(self) -> str:
        return self._resolve_class("Response")

    @property
    def entity_class(self) -> str:
        return self._resolve_class("Entity")

    def _resolve_class(self, suffix: str) -> str:
        return_data: str = self._api.return_data
        if return_data == ReturnData.MODEL.value:
            name: str = f"{self._ctx.api_class}{suffix}"
            return f"List<{name}>" if self._ctx.response_list else name
        if return_data == ReturnData.RAW.value and self.is_stream:
            return "String"
        return _RAW_RETURN_TYPES[return_data]

    @property
    def endpoint(self) -> str:
        ctx: ApiContext = self._ctx
        apps_suffix: str = to_pascal_case(ctx.apps_name) if ctx.apps_name else ""
        name: str = (
            f"{to_pascal_case(ctx.project_name)}Endpoints."
            f"{ctx.api_method}{apps_suffix}"
        )
        params: List[str] = self._api.path_params
        if not params:
            return name
        if ctx.body_list:
            raise ConfigurationError(
                "Path parameters need an object body, not a list sample",
                {"api": self._api.name, "path": self._api.path},
            )
        return f"{name}({', '.join(f'body.{dart_field_name(p)}' for p in params)})"

    # ===================================================================
    # Shared pieces
    # ===================================================================

    def _parameters(self) -> List[str]:
        """Parameter list lines of every generated API method."""
        lines: List[str] = [
            f"{_DOUBLE_INDENT}{self.body_class} body, {{",
            f"{_DOUBLE_INDENT}Map<String, String>? headers,",
        ]
        if self._api.applies_cache_strategy:
            lines.append(f"{_DOUBLE_INDENT}CacheStrategy? cacheStrategy,")
        return lines

    def _signature(self, return_type: str, name: str, suffix: str) -> List[str]:
        lines: List[str] = [f"{_INDENT}{return_type} {name}("]
        lines.extend(self._parameters())
        lines.append(f"{_INDENT}}}){suffix}")
        return lines

    def _forward_arguments(self, indent: str) -> List[str]:
        lines: List[str] = [f"{indent}body,", f"{indent}headers: headers,"]
        if self._api.applies_cache_strategy:
            lines.append(f"{indent}cacheStrategy: cacheStrategy,")
        return lines

    def _model_imports(self, body: str, entity: Optional[str] = None) -> List[str]:
        imports: List[str] = []
        if self._api.return_data == ReturnData.BODY_BYTES.value:
            imports.append(_TYPED_DATA_IMPORT)
        imports.append(f"import '{body}/{self._ctx.api_file}_body.dart';")
        if entity is not None and self._api.returns_model:
            imports.append(f"import '{entity}/{self._ctx.api_file}_entity.dart';")
        return imports

    # ===================================================================
    # 1. Remote data source
    # ===================================================================

    def remote_data_source(self) -> AggregateFragment:
        ctx: ApiContext = self._ctx
        imports: List[str] = []
        if ctx.body_list or ctx.response_list:
            imports.append(_CONVERT_IMPORT)
        imports.extend(self._model_imports("../models/body"))
        if self._api.returns_model:
            imports.append(
                f"import '../models/response/{ctx.api_file}_response.dart';"
            )

        return_type: str = f"{self.future_class}<{self.response_class}>"
        interface: List[str] = self._signature(return_type, ctx.api_method, ";")

        implementation: List[str] = [f"{_INDENT}@override"]
        implementation.extend(
            self._signature(
                return_type,
                ctx.api_method,
                " async* {" if self.is_stream else " async {",
            )
        )
        implementation.extend(self._data_source_body())
        implementation.append(f"{_INDENT}}}")

        return AggregateFragment(
            kind=AggregateKind.REMOTE_DATA_SOURCE,
            api=self._api.name,
            relative_path=f"data/datasources/{ctx.page_file}_remote_data_source.dart",
            skeleton=self.remote_data_source_skeleton(),
            imports=imports,
            blocks={
                INTERFACE_SECTION: "\n".join(interface),
                IMPLEMENTATION_SECTION: "\n".join(implementation),
            },
        )

    def remote_data_source_skeleton(self) -> str:
        page: str = self._ctx.page_class
        lines: List[str] = [
            _CORE_IMPORT,
            "",
            f"abstract class {page}RemoteDataSource {{",
            f"{_INDENT}{anchor_marker(INTERFACE_SECTION)}",
            "}",
            "",
            f"class {page}RemoteDataSourceImpl implements {page}RemoteDataSource {{",
            f"{_INDENT}{page}RemoteDataSourceImpl({{required this.http}});",
            "",
            f"{_INDENT}final MorphemeHttp http;",
            "",
            f"{_INDENT}{anchor_marker(IMPLEMENTATION_SECTION)}",
            "}",
            "",
        ]
        return "\n".join(lines)

    def _http_arguments(self) -> List[str]:
        api: ApiConfig = self._api
        args: List[str] = [f"{self.endpoint},"]

        if self._ctx.body_list:
            args.append("body: jsonEncode(body.map((e) => e.toMap()).toList()),")
        elif api.is_multipart:
            args.append(
                "body: body.toMap().map((key, value) => MapEntry(key, value.toString())),"
            )
            args.append("files: body.files,")
        else:
            args.append("body: body.toMap(),")

        if self._ctx.headers is not None:
            args.append(f"headers: {headers_expression(self._ctx.headers)},")
        else:
            args.append("headers: headers,")

        if api.applies_cache_strategy:
            directive = api.cache_strategy
            if directive is None:
                args.append("cacheStrategy: cacheStrategy,")
            else:
                default: str = cache_strategy_expression(
                    directive.strategy, directive.ttl, directive.keep_expired_cache
                )
                args.append(f"cacheStrategy: cacheStrategy ?? {default},")
        return args

    def _data_source_body(self) -> List[str]:
        call: str = self._api.http_call
        args: List[str] = [f"{_TRIPLE_INDENT}{a}" for a in self._http_arguments()]

        if self.is_stream:
            lines: List[str] = [f"{_DOUBLE_INDENT}final responses = http.{call}("]
            lines.extend(args)
            lines.append(f"{_DOUBLE_INDENT});")
            lines.append(f"{_DOUBLE_INDENT}await for (final response in responses) {{")
            lines.extend(f"{_TRIPLE_INDENT}{line}" for line in self._stream_yield())
            lines.append(f"{_DOUBLE_INDENT}}}")
            return lines

        lines = [f"{_DOUBLE_INDENT}final response = await http.{call}("]
        lines.extend(args)
        lines.append(f"{_DOUBLE_INDENT});")
        lines.extend(f"{_DOUBLE_INDENT}{line}" for line in self._future_return())
        return lines

    def _future_return(self) -> List[str]:
        return_data: str = self._api.return_data
        if return_data != ReturnData.MODEL.value:
            return [_RAW_RETURN_STATEMENTS[return_data]]
        response: str = f"{self._ctx.api_class}Response"
        if self._ctx.response_list:
            return [
                "final mapResponse = jsonDecode(response.body);",
                "return mapResponse is List",
                f"{_DOUBLE_INDENT}? List.from(mapResponse.map((e) => {response}.fromMap(e)))",
                f"{_DOUBLE_INDENT}: [{response}.fromMap(mapResponse)];",
            ]
        return [f"return {response}.fromJson(response.body);"]

    def _stream_yield(self) -> List[str]:
        if self._api.return_data != ReturnData.MODEL.value:
            return ["yield response;"]
        response: str = f"{self._ctx.api_class}Response"
        if self._ctx.response_list:
            return [
                "final mapResponse = jsonDecode(response);",
                "yield mapResponse is List",
                f"{_DOUBLE_INDENT}? List.from(mapResponse.map((e) => {response}.fromMap(e)))",
                f"{_DOUBLE_INDENT}: [{response}.fromMap(mapResponse)];",
            ]
        return [f"yield {response}.fromJson(response);"]

    # ===================================================================
    # 2. Repository implementation
    # ===================================================================

    def repository_impl(self) -> AggregateFragment:
        ctx: ApiContext = self._ctx
        imports: List[str] = self._model_imports("../models/body", "../../domain/entities")
        if self._api.returns_model:
            imports.append("import '../../mapper.dart';")

        return_type: str = (
            f"{self.future_class}<Either<MorphemeFailure, {self.entity_class}>>"
        )
        lines: List[str] = [f"{_INDENT}@override"]
        lines.extend(
            self._signature(
                return_type,
                ctx.api_method,
                " async* {" if self.is_stream else " async {",
            )
        )
        lines.extend(self._repository_body())
        lines.append(f"{_INDENT}}}")

        return AggregateFragment(
            kind=AggregateKind.REPOSITORY_IMPL,
            api=self._api.name,
            relative_path=f"data/repositories/{ctx.page_file}_repository_impl.dart",
            skeleton=self.repository_impl_skeleton(),
            imports=imports,
            blocks={IMPLEMENTATION_SECTION: "\n".join(lines)},
        )

    def repository_impl_skeleton(self) -> str:
        ctx: ApiContext = self._ctx
        page: str = ctx.page_class
        lines: List[str] = [
            _CORE_IMPORT,
            "",
            f"import '../../domain/repositories/{ctx.page_file}_repository.dart';",
            f"import '../datasources/{ctx.page_file}_remote_data_source.dart';",
            "",
            f"class {page}RepositoryImpl implements {page}Repository {{",
            f"{_INDENT}{page}RepositoryImpl({{",
            f"{_DOUBLE_INDENT}required this.remoteDataSource,",
            f"{_INDENT}}});",
            "",
            f"{_INDENT}final {page}RemoteDataSource remoteDataSource;",
            "",
            f"{_INDENT}{anchor_marker(IMPLEMENTATION_SECTION)}",
            "}",
            "",
        ]
        return "\n".join(lines)

    def _entity_value(self) -> str:
        if not self._api.returns_model:
            return "data"
        if self._ctx.response_list:
            return "data.map((e) => e.toEntity()).toList()"
        return "data.toEntity()"

    def _repository_body(self) -> List[str]:
        method: str = self._ctx.api_method
        keyword: str = "yield" if self.is_stream else "return"

        lines: List[str] = [f"{_DOUBLE_INDENT}try {{"]
        if self.is_stream:
            lines.append(f"{_TRIPLE_INDENT}final response = remoteDataSource.{method}(")
            lines.extend(self._forward_arguments(_QUAD_INDENT))
            lines.append(f"{_TRIPLE_INDENT});")
            lines.append(f"{_TRIPLE_INDENT}await for (final data in response) {{")
            lines.append(f"{_QUAD_INDENT}yield Right({self._entity_value()});")
            lines.append(f"{_TRIPLE_INDENT}}}")
        else:
            lines.append(
                f"{_TRIPLE_INDENT}final data = await remoteDataSource.{method}("
            )
            lines.extend(self._forward_arguments(_QUAD_INDENT))
            lines.append(f"{_TRIPLE_INDENT});")
            lines.append(f"{_TRIPLE_INDENT}return Right({self._entity_value()});")
        lines.extend(
            [
                f"{_DOUBLE_INDENT}}} on MorphemeException catch (e) {{",
                f"{_TRIPLE_INDENT}{keyword} Left(e.toMorphemeFailure());",
                f"{_DOUBLE_INDENT}}} catch (e) {{",
                f"{_TRIPLE_INDENT}{keyword} Left(InternalFailure(e.toString()));",
                f"{_DOUBLE_INDENT}}}",
            ]
        )
        return lines

    # ===================================================================
    # 3. Domain repository
    # ===================================================================

    def domain_repository(self) -> AggregateFragment:
        ctx: ApiContext = self._ctx
        return_type: str = (
            f"{self.future_class}<Either<MorphemeFailure, {self.entity_class}>>"
        )
        return AggregateFragment(
            kind=AggregateKind.DOMAIN_REPOSITORY,
            api=self._api.name,
            relative_path=f"domain/repositories/{ctx.page_file}_repository.dart",
            skeleton=self.domain_repository_skeleton(),
            imports=self._model_imports("../../data/models/body", "../entities"),
            blocks={
                INTERFACE_SECTION: "\n".join(
                    self._signature(return_type, ctx.api_method, ";")
                )
            },
        )

    def domain_repository_skeleton(self) -> str:
        lines: List[str] = [
            _CORE_IMPORT,
            "",
            f"abstract class {self._ctx.page_class}Repository {{",
            f"{_INDENT}{anchor_marker(INTERFACE_SECTION)}",
            "}",
            "",
        ]
        return "\n".join(lines)

    # ===================================================================
    # 4. Use case
    # ===================================================================

    def use_case_path(self) -> str:
        return f"domain/usecases/{self._ctx.api_file}_use_case.dart"

    def use_case(self) -> str:
        ctx: ApiContext = self._ctx
        base: str = "StreamUseCase" if self.is_stream else "UseCase"
        return_type: str = (
            f"{self.future_class}<Either<MorphemeFailure, {self.entity_class}>>"
        )

        lines: List[str] = [_CORE_IMPORT, ""]
        lines.extend(self._model_imports("../../data/models/body", "../entities"))
        lines.append(f"import '../repositories/{ctx.page_file}_repository.dart';")
        lines.append("")
        lines.append(
            f"class {ctx.api_class}UseCase implements "
            f"{base}<{self.entity_class}, {self.body_class}> {{"
        )
        lines.append(f"{_INDENT}{ctx.api_class}UseCase({{")
        lines.append(f"{_DOUBLE_INDENT}required this.repository,")
        lines.append(f"{_INDENT}}});")
        lines.append("")
        lines.append(f"{_INDENT}final {ctx.page_class}Repository repository;")
        lines.append("")
        lines.append(f"{_INDENT}@override")
        lines.extend(self._signature(return_type, "call", " {"))
        lines.append(f"{_DOUBLE_INDENT}return repository.{ctx.api_method}(")
        lines.extend(self._forward_arguments(_TRIPLE_INDENT))
        lines.append(f"{_DOUBLE_INDENT});")
        lines.append(f"{_INDENT}}}")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    def all_fragments(self) -> List[AggregateFragment]:
        return [
            self.remote_data_source(),
            self.repository_impl(),
            self.domain_repository(),
        ]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "INTERFACE_SECTION",
    "IMPLEMENTATION_SECTION",
    "STREAMABLE_RETURN_DATA",
    "cache_strategy_expression",
    "dart_literal",
    "headers_expression",
    "ApiContext",
    "LayerTemplates",
]

logger.debug("json2dart.templates loaded — %d public symbols.", len(__all__))

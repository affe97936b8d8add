# File: json2dart/validators.py
"""
Json2Dart - Configuration Validators
======================================
Semantic checks that run over raw YAML entries **before** they become
pydantic models, so every problem of an entry is reported at once and with
its location instead of one ``ValidationError`` at a time.

Pydantic still guards structure when ``build_api_config`` turns a clean
entry into an ``ApiConfig``; this module adds the rules pydantic cannot
express (streaming + return data compatibility, file-name clashes between
APIs of one page, filter combinations).

Usage by downstream modules:
    from json2dart.validators import build_api_config
    api = build_api_config("login", raw_entry)   # ConfigurationError on failure
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import ValidationError as PydanticValidationError

from json2dart.errors import ConfigurationError
from json2dart.models import (
    ApiConfig,
    CacheStrategy,
    HttpMethod,
    PageConfig,
    ProjectConfig,
    ReturnData,
)
from json2dart.templates import STREAMABLE_RETURN_DATA
from json2dart.utils import DART_KEYWORDS, to_camel_case, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the validators."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "✗",
                "warning": "⚠",
                "info": "ℹ",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)

    def raise_for_errors(self, message: str, context: Dict[str, Any]) -> None:
        """Raise ``ConfigurationError`` carrying every error message."""
        if not self.has_errors:
            return
        details: str = "; ".join(e.message for e in self.errors)
        raise ConfigurationError(f"{message}: {details}", context)


# ---------------------------------------------------------------------------
# Reference sets
# ---------------------------------------------------------------------------

_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

_METHODS: FrozenSet[str] = frozenset(m.value for m in HttpMethod)
_CACHE_STRATEGIES: FrozenSet[str] = frozenset(c.value for c in CacheStrategy)
_RETURN_DATA: FrozenSet[str] = frozenset(r.value for r in ReturnData)

_KNOWN_KEYS: FrozenSet[str] = frozenset({
    "method", "path", "body", "response", "header", "cache_strategy",
    "return_data", "dir_extra",
})
_PATH_KEYS: FrozenSet[str] = frozenset({"body", "response", "header", "dir_extra"})


# ---------------------------------------------------------------------------
# API entry validators
# ---------------------------------------------------------------------------


def validate_api_name(name: str) -> ValidationResult:
    """API names become Dart class, method and file names."""
    result: ValidationResult = ValidationResult()
    ctx: Dict[str, Any] = {"api": name}

    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        result.add_error(
            "INVALID_API_NAME",
            f"API name '{name}' must start with a letter and contain only "
            f"letters, digits and underscores.",
            ctx,
        )
        return result

    if to_camel_case(name) in DART_KEYWORDS:
        result.add_error(
            "API_NAME_DART_KEYWORD",
            f"API name '{name}' becomes the Dart keyword '{to_camel_case(name)}'.",
            ctx,
        )
    return result


def _validate_cache_strategy(
    value: Any, ctx: Dict[str, Any], result: ValidationResult
) -> None:
    if isinstance(value, str):
        value = {"strategy": value}
    if not isinstance(value, Mapping):
        result.add_error(
            "INVALID_CACHE_STRATEGY",
            "'cache_strategy' must be a strategy name or a mapping.",
            ctx,
        )
        return

    strategy: Any = value.get("strategy")
    if strategy not in _CACHE_STRATEGIES:
        result.add_error(
            "INVALID_CACHE_STRATEGY",
            f"Unknown cache strategy '{strategy}'. "
            f"Expected one of: {', '.join(sorted(_CACHE_STRATEGIES))}.",
            ctx,
        )

    ttl: Any = value.get("ttl")
    if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0):
        result.add_error(
            "INVALID_CACHE_TTL",
            f"'ttl' must be a non-negative number of minutes, got {ttl!r}.",
            ctx,
        )

    keep: Any = value.get("keep_expired_cache")
    if keep is not None and not isinstance(keep, bool):
        result.add_error(
            "INVALID_KEEP_EXPIRED_CACHE",
            f"'keep_expired_cache' must be true or false, got {keep!r}.",
            ctx,
        )


def validate_api_entry(name: str, raw: Any) -> ValidationResult:
    """
    Validate one raw API entry:
    - Entry is a mapping with ``method`` and ``path``
    - ``method``, ``cache_strategy`` and ``return_data`` use known values
    - Streaming methods only return shapes an event stream can carry
    - Sample / header / extra locations are strings
    """
    result: ValidationResult = validate_api_name(name)
    ctx: Dict[str, Any] = {"api": name}

    if not isinstance(raw, Mapping):
        result.add_error(
            "API_NOT_MAPPING",
            f"API entry '{name}' must be a mapping, got {type(raw).__name__}.",
            ctx,
        )
        return result

    method: Any = raw.get("method")
    if method is None:
        result.add_error("MISSING_METHOD", f"API '{name}' has no 'method'.", ctx)
    elif method not in _METHODS:
        result.add_error(
            "INVALID_METHOD",
            f"Unknown method '{method}'. "
            f"Expected one of: {', '.join(sorted(_METHODS))}.",
            ctx,
        )

    path: Any = raw.get("path")
    if path is None:
        result.add_error("MISSING_PATH", f"API '{name}' has no 'path'.", ctx)
    elif not isinstance(path, str):
        result.add_error(
            "INVALID_PATH", f"'path' must be a string, got {path!r}.", ctx
        )

    return_data: Any = raw.get("return_data") or ReturnData.MODEL.value
    if return_data not in _RETURN_DATA:
        result.add_error(
            "INVALID_RETURN_DATA",
            f"Unknown return_data '{return_data}'. "
            f"Expected one of: {', '.join(sorted(_RETURN_DATA))}.",
            ctx,
        )

    is_sse: bool = isinstance(method, str) and method.endswith("Sse")
    is_multipart: bool = isinstance(method, str) and "multipart" in method.lower()

    if is_sse and return_data in _RETURN_DATA and return_data not in STREAMABLE_RETURN_DATA:
        result.add_error(
            "RETURN_DATA_NOT_STREAMABLE",
            f"return_data '{return_data}' is not available for streaming "
            f"method '{method}'.",
            ctx,
        )

    cache: Any = raw.get("cache_strategy")
    if cache is not None:
        _validate_cache_strategy(cache, ctx, result)
        if is_sse or is_multipart:
            result.add_warning(
                "CACHE_STRATEGY_IGNORED",
                f"cache_strategy is ignored for method '{method}'.",
                ctx,
            )

    for key in _PATH_KEYS:
        value: Any = raw.get(key)
        if value is not None and not isinstance(value, str):
            result.add_error(
                "INVALID_FILE_REFERENCE",
                f"'{key}' must be a path string, got {type(value).__name__}.",
                {**ctx, "key": key},
            )

    for key in raw:
        if key not in _KNOWN_KEYS:
            result.add_info(
                "UNKNOWN_API_KEY", f"Ignoring key '{key}'.", {**ctx, "key": key}
            )

    logger.debug("validate_api_entry(%s): %d issue(s).", name, len(result))
    return result


def validate_page_entries(page: PageConfig) -> ValidationResult:
    """APIs of one page must not share generated file names."""
    result: ValidationResult = ValidationResult()
    seen: Dict[str, str] = {}
    for name in page.api_names:
        file_stem: str = to_snake_case(str(name))
        if file_stem in seen:
            result.add_error(
                "DUPLICATE_API_FILE",
                f"APIs '{seen[file_stem]}' and '{name}' both generate "
                f"'{file_stem}_*.dart'.",
                {"page": page.name, "api": name},
            )
        else:
            seen[file_stem] = str(name)
    return result


def validate_project_config(config: ProjectConfig) -> ValidationResult:
    """Run-level filter combinations."""
    result: ValidationResult = ValidationResult()
    if config.page_name and not config.feature_name:
        result.add_error(
            "PAGE_WITHOUT_FEATURE",
            "A page filter needs a feature filter (--feature-name).",
            {"page": config.page_name},
        )
    return result


# ---------------------------------------------------------------------------
# Model construction
# ---------------------------------------------------------------------------


def build_api_config(
    name: str,
    raw: Any,
    context: Optional[Dict[str, Any]] = None,
) -> ApiConfig:
    """
    Validate *raw* and build the ``ApiConfig`` for API *name*.

    Raises ``ConfigurationError`` listing every problem found.
    """
    ctx: Dict[str, Any] = {**(context or {}), "api": name}
    result: ValidationResult = validate_api_entry(name, raw)
    for warning in result.warnings:
        logger.warning("%s (api=%s)", warning.message, name)
    result.raise_for_errors(f"Invalid API '{name}'", ctx)

    try:
        return ApiConfig.model_validate({**raw, "name": name})
    except PydanticValidationError as exc:
        details: str = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid API '{name}': {details}", ctx) from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_api_name",
    "validate_api_entry",
    "validate_page_entries",
    "validate_project_config",
    "build_api_config",
]

logger.debug("json2dart.validators loaded — %d public symbols.", len(__all__))

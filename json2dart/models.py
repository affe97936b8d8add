# File: json2dart/models.py
"""
Json2Dart - Core Data Models
==============================
Pydantic V2 models representing the json2dart configuration hierarchy
(project → configuration file → feature → page → API entry) and the
enumerations shared by every stage of the pipeline:
Config Loading → Validation → Inference → Emission → Patching.

YAML-sourced models ignore unknown keys because ``json2dart.yaml`` files
routinely carry helper keys (``base_url``, ``environment_url``, anchor
holders under ``remote``) that belong to other tools.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the project
# ---------------------------------------------------------------------------


class HttpMethod(str, Enum):
    """HTTP verbs and streaming classes accepted in an API entry."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"

    # Multipart submissions
    MULTIPART = "multipart"
    POST_MULTIPART = "postMultipart"
    PATCH_MULTIPART = "patchMultipart"

    # Server-sent events
    GET_SSE = "getSse"
    POST_SSE = "postSse"
    PUT_SSE = "putSse"
    PATCH_SSE = "patchSse"
    DELETE_SSE = "deleteSse"


class CacheStrategy(str, Enum):
    """Client cache strategies understood by ``MorphemeHttp``."""

    ASYNC_OR_CACHE = "async_or_cache"
    CACHE_OR_ASYNC = "cache_or_async"
    JUST_ASYNC = "just_async"
    JUST_CACHE = "just_cache"


class ReturnData(str, Enum):
    """Shape of the value a generated data-source method returns."""

    MODEL = "model"
    HEADER = "header"
    BODY_BYTES = "body_bytes"
    BODY_STRING = "body_string"
    STATUS_CODE = "status_code"
    RAW = "raw"


class ArtifactKind(str, Enum):
    """Parallel class families emitted from one inferred shape."""

    BODY = "body"
    RESPONSE = "response"
    ENTITY = "entity"
    MAPPER = "mapper"
    EXTRA = "extra"

    @property
    def suffix(self) -> str:
        """Class-name suffix given to root classes of this kind."""
        return _ARTIFACT_SUFFIXES[self.value]


_ARTIFACT_SUFFIXES: Dict[str, str] = {
    "body": "Body",
    "response": "Response",
    "entity": "Entity",
    "mapper": "",
    "extra": "Extra",
}

_SSE_METHODS: FrozenSet[str] = frozenset({
    HttpMethod.GET_SSE.value,
    HttpMethod.POST_SSE.value,
    HttpMethod.PUT_SSE.value,
    HttpMethod.PATCH_SSE.value,
    HttpMethod.DELETE_SSE.value,
})

# path_to_regexp style placeholders: /users/:id/posts/:post_id
_PATH_PARAM_RE: re.Pattern[str] = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_SOURCE_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="ignore",
)


# ---------------------------------------------------------------------------
# API entry
# ---------------------------------------------------------------------------


class CacheDirective(BaseModel):
    """``cache_strategy`` value of an API entry, in its long form."""

    model_config = _SOURCE_CONFIG

    strategy: CacheStrategy = Field(..., description="Cache strategy name.")
    ttl: Optional[int] = Field(
        default=None, ge=0, description="Time to live in minutes."
    )
    keep_expired_cache: Optional[bool] = Field(
        default=None, description="Serve expired entries while refreshing."
    )

    def __repr__(self) -> str:
        return f"<CacheDirective {self.strategy} ttl={self.ttl}>"


class ApiConfig(BaseModel):
    """
    One API entry of a page.

    ``name`` is the YAML key of the entry; every other field maps to the
    key of the same name inside the entry.
    """

    model_config = _SOURCE_CONFIG

    name: str = Field(..., min_length=1, description="API name (YAML key).")
    method: HttpMethod = Field(..., description="HTTP verb or streaming class.")
    path: str = Field(..., description="URL path template with :placeholders.")
    body: Optional[str] = Field(
        default=None, description="Path to the request body JSON sample."
    )
    response: Optional[str] = Field(
        default=None, description="Path to the response JSON sample."
    )
    header: Optional[str] = Field(
        default=None, description="Path to a JSON file of static headers."
    )
    cache_strategy: Optional[CacheDirective] = Field(
        default=None, description="Client cache directive."
    )
    return_data: ReturnData = Field(
        default=ReturnData.MODEL.value,
        description="Shape returned by the data source.",
    )
    dir_extra: Optional[str] = Field(
        default=None,
        description="Directory receiving the optional *Extra* model file.",
    )

    @field_validator("cache_strategy", mode="before")
    @classmethod
    def _expand_short_cache_strategy(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"strategy": v}
        return v

    @field_validator("return_data", mode="before")
    @classmethod
    def _default_return_data(cls, v: Any) -> Any:
        return ReturnData.MODEL.value if v is None else v

    # -- Derived helpers ------------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def path_params(self) -> List[str]:
        """Placeholder names of ``path`` in order of appearance, deduplicated."""
        seen: List[str] = []
        for match in _PATH_PARAM_RE.finditer(self.path):
            if match.group(1) not in seen:
                seen.append(match.group(1))
        return seen

    @computed_field  # type: ignore[misc]
    @property
    def is_multipart(self) -> bool:
        return "multipart" in str(self.method).lower()

    @computed_field  # type: ignore[misc]
    @property
    def is_sse(self) -> bool:
        return self.method in _SSE_METHODS

    @computed_field  # type: ignore[misc]
    @property
    def applies_cache_strategy(self) -> bool:
        """Cache directives are meaningless for multipart and SSE calls."""
        return not self.is_multipart and not self.is_sse

    @computed_field  # type: ignore[misc]
    @property
    def returns_model(self) -> bool:
        return self.return_data == ReturnData.MODEL.value

    @property
    def http_call(self) -> str:
        """Name of the ``MorphemeHttp`` method the data source invokes."""
        if self.method == HttpMethod.MULTIPART.value:
            return HttpMethod.POST_MULTIPART.value
        return str(self.method)

    def __repr__(self) -> str:
        return f"<ApiConfig {self.name} {self.method} {self.path}>"


# ---------------------------------------------------------------------------
# Hierarchy containers
# ---------------------------------------------------------------------------


class PageConfig(BaseModel):
    """
    A page of a feature and its raw API entries.

    Entries stay raw here so a single malformed API fails only its own
    unit during generation instead of the whole file at load time.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Page name.")
    apis: Dict[str, Any] = Field(
        default_factory=dict, description="API name → raw entry mapping."
    )

    @computed_field  # type: ignore[misc]
    @property
    def api_names(self) -> List[str]:
        return list(self.apis.keys())


class FeatureConfig(BaseModel):
    """A feature (YAML top-level key) with its pages and output location."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Feature name.")
    feature_dir: str = Field(..., description="Absolute feature directory.")
    apps_name: Optional[str] = Field(
        default=None, description="Apps name when the feature lives under apps/."
    )
    pages: List[PageConfig] = Field(default_factory=list, description="Pages.")

    def get_page(self, name: str) -> Optional[PageConfig]:
        for page in self.pages:
            if page.name == name:
                return page
        return None

    def __repr__(self) -> str:
        return f"<FeatureConfig {self.name} ({len(self.pages)} pages)>"


class Json2DartSettings(BaseModel):
    """The ``json2dart:`` section of a configuration file."""

    model_config = _SOURCE_CONFIG

    body_format_date_time: Optional[str] = Field(
        default=None, description="Date pattern for request bodies."
    )
    response_format_date_time: Optional[str] = Field(
        default=None, description="Date pattern for serialised responses."
    )
    api: bool = Field(default=True, description="Generate data/domain layers.")
    replace: bool = Field(
        default=False, description="Prune blocks of APIs no longer configured."
    )
    endpoint: bool = Field(default=True, description="Consumed by the endpoint tool.")
    unit_test: bool = Field(
        default=False, alias="unit-test", description="Generate model and mapper unit tests."
    )
    run_format: bool = Field(
        default=True, alias="format", description="Consumed by the formatter."
    )
    cubit: bool = Field(default=True, description="Consumed by the presentation tool.")

    @computed_field  # type: ignore[misc]
    @property
    def body_date_expression(self) -> str:
        if self.body_format_date_time:
            return f".toFormatDateTimeBody('{self.body_format_date_time}')"
        return DEFAULT_DATE_EXPRESSION

    @computed_field  # type: ignore[misc]
    @property
    def response_date_expression(self) -> str:
        if self.response_format_date_time:
            return f".toFormatDateTimeResponse('{self.response_format_date_time}')"
        return DEFAULT_DATE_EXPRESSION


DEFAULT_DATE_EXPRESSION: str = ".toIso8601String()"


class ConfigFile(BaseModel):
    """One parsed ``*json2dart.yaml`` file."""

    model_config = _SHARED_CONFIG

    path: str = Field(..., description="Location of the YAML file.")
    apps_name: Optional[str] = Field(default=None, description="Apps prefix.")
    settings: Json2DartSettings = Field(default_factory=Json2DartSettings)
    features: List[FeatureConfig] = Field(default_factory=list)

    def get_feature(self, name: str) -> Optional[FeatureConfig]:
        for feature in self.features:
            if feature.name == name:
                return feature
        return None


class ProjectConfig(BaseModel):
    """
    Run-level settings: where the project lives and which subset to generate.

    ``api`` / ``replace`` / ``unit_test`` override the per-file settings when
    not None.
    """

    model_config = _SHARED_CONFIG

    root_dir: str = Field(default=".", description="Project root directory.")
    project_name: str = Field(
        default="", description="Name used for the {Project}Endpoints class."
    )
    apps_name: Optional[str] = Field(default=None, description="Apps filter.")
    feature_name: Optional[str] = Field(default=None, description="Feature filter.")
    page_name: Optional[str] = Field(default=None, description="Page filter.")
    api: Optional[bool] = Field(default=None, description="Override of `api`.")
    replace: Optional[bool] = Field(
        default=None, description="Override of `replace`."
    )
    unit_test: Optional[bool] = Field(
        default=None, description="Override of `unit-test`."
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "HttpMethod",
    "CacheStrategy",
    "ReturnData",
    "ArtifactKind",
    "CacheDirective",
    "ApiConfig",
    "PageConfig",
    "FeatureConfig",
    "Json2DartSettings",
    "ConfigFile",
    "ProjectConfig",
    "DEFAULT_DATE_EXPRESSION",
]

logger.debug("json2dart.models loaded — %d public symbols.", len(__all__))

# File: json2dart/__init__.py
"""
Json2Dart — Flutter Model & Layer Generator
=============================================

Generates Dart code for a layered Flutter architecture from JSON samples:
Equatable body / response / entity models, mapper extensions, remote data
sources, repositories and use cases.  Regeneration merges each API's code
into the shared page files without touching the other APIs.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌─────────────────┐
    │  CLI / Entry │────▶│ Json2DartGenerator│────▶│  ModelEmitter   │
    │   (cli.py)   │     │  (generator.py)   │     │ LayerTemplates  │
    └──────────────┘     └────────┬─────────┘     └─────────────────┘
                                  │
                 ┌────────────┬───┴────────┬────────────┐
                 ▼            ▼            ▼            ▼
           ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐
           │  loader  │ │inference │ │  naming  │ │ patcher  │
           └──────────┘ └──────────┘ └──────────┘ └──────────┘

Usage::

    # As a library
    from json2dart import Json2DartGenerator, ProjectConfig
    report = asyncio.run(Json2DartGenerator(ProjectConfig(root_dir=".")).run())

    # From the command line
    python -m json2dart --feature-name auth --verbose

Public API:
    - Json2DartGenerator — Orchestrator
    - infer              — Sample → TypeSpec inference
    - ClassNameRegistry  — Collision-free class naming
    - ModelEmitter       — Model class renderer
    - PatchEngine        — Block-based merging into aggregate files
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from json2dart.errors import (
    ConfigurationError,
    Json2DartError,
    PatchAnchorNotFound,
    SampleFormatError,
)
from json2dart.models import (
    ApiConfig,
    ArtifactKind,
    CacheStrategy,
    FeatureConfig,
    HttpMethod,
    Json2DartSettings,
    PageConfig,
    ProjectConfig,
    ReturnData,
)
from json2dart.inference import ListSpec, ObjectSpec, PrimitiveSpec, infer
from json2dart.naming import ClassNameRegistry, MapperScope
from json2dart.emitters import ArtifactPolicy, MapperEmitter, ModelEmitter
from json2dart.unit_tests import UnitTestEmitter
from json2dart.templates import ApiContext, LayerTemplates
from json2dart.patcher import DartDocument, PatchEngine
from json2dart.generator import GenerationReport, Json2DartGenerator, UnitResult

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "Json2DartGenerator",
    "GenerationReport",
    "UnitResult",
    # Errors
    "Json2DartError",
    "ConfigurationError",
    "SampleFormatError",
    "PatchAnchorNotFound",
    # Models
    "ApiConfig",
    "ArtifactKind",
    "CacheStrategy",
    "FeatureConfig",
    "HttpMethod",
    "Json2DartSettings",
    "PageConfig",
    "ProjectConfig",
    "ReturnData",
    # Core engine
    "infer",
    "PrimitiveSpec",
    "ObjectSpec",
    "ListSpec",
    "ClassNameRegistry",
    "MapperScope",
    "ArtifactPolicy",
    "ModelEmitter",
    "MapperEmitter",
    "UnitTestEmitter",
    "ApiContext",
    "LayerTemplates",
    "DartDocument",
    "PatchEngine",
]

# File: json2dart/generator.py
"""
Json2Dart - Generation Orchestrator
=====================================

Connects every phase of the pipeline:

    Config Loading → Validation → Inference → Emission → Patching

The ``Json2DartGenerator`` class is both the programmatic API and the
backend of the CLI.

Workflow per API entry::

    1. Validate the raw entry and build an ``ApiConfig`` (validators.py).
    2. Load body / response / header samples through the page cache.
    3. Infer the type trees (inference.py).
    4. Emit Body, Response, Entity and Extra files and the Mapper
       fragment, sharing one name registry per tree (emitters.py).
    5. Render the data-source / repository fragments and the use case
       (templates.py) when the ``api`` flag is on.
    6. Merge every aggregate fragment into its page file (patcher.py).

Error handling strategy:
    - Each API is one unit; a ``Json2DartError`` or ``OSError`` fails only
      that unit.
    - A page whose directory is missing fails as a page unit.
    - A feature never aborts its siblings in the same batch.
    - The final report gives a clear pass/fail verdict.

Concurrency: APIs within a page run sequentially (they share the page's
aggregate files); features run concurrently in batches.  Blocking work is
pushed through ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from json2dart.emitters import (
    ArtifactFragment,
    ArtifactPolicy,
    MapperEmitter,
    ModelEmitter,
)
from json2dart.errors import ConfigurationError, Json2DartError, SampleFormatError
from json2dart.exporters import ArtifactWriter, FileRecord
from json2dart.inference import ObjectSpec, TypeSpec, infer
from json2dart.loader import (
    SampleCache,
    load_config_files,
    read_project_name,
    resolve_path,
)
from json2dart.models import (
    ApiConfig,
    ConfigFile,
    FeatureConfig,
    Json2DartSettings,
    PageConfig,
    ProjectConfig,
)
from json2dart.naming import ClassNameRegistry, MapperScope
from json2dart.patcher import AggregateFragment, PatchEngine, PatchOutcome
from json2dart.templates import ApiContext, LayerTemplates
from json2dart.utils import Timer, to_snake_case
from json2dart.unit_tests import UnitTestEmitter
from json2dart.validators import (
    ValidationResult,
    build_api_config,
    validate_page_entries,
    validate_project_config,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.generator")

# Page-relative aggregate files pruned by ``replace``.
_AGGREGATE_FILES: Tuple[str, ...] = (
    "data/datasources/{page}_remote_data_source.dart",
    "data/repositories/{page}_repository_impl.dart",
    "domain/repositories/{page}_repository.dart",
    "mapper.dart",
)


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class UnitResult:
    """
    Outcome of one API (or of a whole page when ``api`` is None).

    ``files`` lists every file the unit wrote or checked, ``changed`` only
    the ones whose content actually changed.
    """

    feature: str
    page: str
    api: Optional[str] = None
    success: bool = True
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    files: List[FileRecord] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def label(self) -> str:
        parts: List[str] = [self.feature, self.page]
        if self.api is not None:
            parts.append(self.api)
        return "/".join(parts)

    @property
    def changed(self) -> List[str]:
        return [r.path for r in self.files if r.changed]

    def fail(self, exc: BaseException) -> None:
        self.success = False
        self.error = str(exc)
        self.error_type = type(exc).__name__


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Aggregated result of one ``Json2DartGenerator.run()``."""

    success: bool = True
    project_name: str = ""
    root_dir: str = ""
    features: List[str] = field(default_factory=list)
    units: List[UnitResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    @property
    def failed_units(self) -> List[UnitResult]:
        return [u for u in self.units if not u.success]

    @property
    def succeeded_units(self) -> List[UnitResult]:
        return [u for u in self.units if u.success]

    @property
    def changed_files(self) -> List[str]:
        paths: List[str] = []
        for unit in self.units:
            for path in unit.changed:
                if path not in paths:
                    paths.append(path)
        return paths

    def extend(self, units: Sequence[UnitResult]) -> None:
        self.units.extend(units)
        if any(not u.success for u in units):
            self.success = False

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  Json2Dart — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Root:             {self.root_dir}")
        lines.append(f"  Features:         {len(self.features)}")
        lines.append(f"  Units:            {len(self.units)}")
        lines.append(f"  Failed units:     {len(self.failed_units)}")
        lines.append(f"  Files changed:    {len(self.changed_files)}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.units:
            lines.append("  Units:")
            for unit in self.units:
                icon: str = "✓" if unit.success else "✗"
                detail: str = (
                    f"{len(unit.changed)} changed"
                    if unit.success
                    else f"{unit.error_type}: {unit.error}"
                )
                lines.append(f"    {icon} {unit.label:<40s} {detail}")

        unit_warnings: List[str] = [
            f"{u.label}: {w}" for u in self.units for w in u.warnings
        ]
        all_warnings: List[str] = self.warnings + unit_warnings
        if all_warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(all_warnings)}):")
            for warn in all_warnings:
                lines.append(f"    ⚠ {warn}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Batch sizing
# ---------------------------------------------------------------------------


def compute_batch_size(count: int, cpu_count: Optional[int] = None) -> int:
    """
    Number of features generated concurrently.

    Examples:
        >>> compute_batch_size(5, cpu_count=8)
        4
        >>> compute_batch_size(200, cpu_count=8)
        16
    """
    cpus: int = cpu_count or os.cpu_count() or 1
    if count > 100:
        return max(10, 2 * cpus)
    if count > 50:
        return max(5, cpus)
    if count > 10:
        return max(3, math.ceil(0.75 * cpus))
    return max(1, math.ceil(0.5 * cpus))


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


def _shape_spec(shape: Any, source: Optional[str]) -> ObjectSpec:
    spec: TypeSpec = infer(shape)
    if not isinstance(spec, ObjectSpec):
        raise SampleFormatError(source or "<none>", "sample shape must be a JSON object")
    return spec


def _load_headers(
    cache: SampleCache,
    root: Path,
    api: ApiConfig,
    warnings: List[str],
) -> Optional[Dict[str, Any]]:
    if not api.header:
        return None
    path: Path = resolve_path(root, api.header)
    if not path.is_file():
        message: str = f"Header file {path} not found; static headers skipped."
        logger.warning(message)
        warnings.append(message)
        return None
    data: Any = cache.load(api.header)
    if not isinstance(data, dict):
        raise SampleFormatError(path, "header sample must be a JSON object")
    return data


# ---------------------------------------------------------------------------
# Json2DartGenerator: orchestrator
# ---------------------------------------------------------------------------


class Json2DartGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = Json2DartGenerator(ProjectConfig(root_dir="my_app"))
        report = asyncio.run(generator.run())
        print(report.summary())

    ``generate_feature`` / ``generate_features`` can be called directly
    with already parsed configuration.
    """

    def __init__(
        self,
        config: Optional[ProjectConfig] = None,
        *,
        morpheme_yaml: Optional[Path] = None,
        atomic_writes: bool = True,
    ) -> None:
        self._config: ProjectConfig = config or ProjectConfig()
        self._root: Path = Path(self._config.root_dir)
        self._morpheme_yaml: Optional[Path] = morpheme_yaml
        self._atomic_writes: bool = atomic_writes
        self._project_name: str = self._config.project_name

        logger.debug(
            "Json2DartGenerator initialised: root=%s, apps=%s, feature=%s, page=%s.",
            self._root,
            self._config.apps_name,
            self._config.feature_name,
            self._config.page_name,
        )

    @property
    def project_name(self) -> str:
        if not self._project_name:
            self._project_name = read_project_name(self._root, self._morpheme_yaml)
        return self._project_name

    # -----------------------------------------------------------------
    # Public: full run
    # -----------------------------------------------------------------

    async def run(self) -> GenerationReport:
        """
        Load the configuration files and generate every selected feature.

        Raises ``ConfigurationError`` for run-level problems (bad filters,
        missing or malformed configuration files).
        """
        report: GenerationReport = GenerationReport(root_dir=str(self._root))

        with Timer("json2dart run") as t:
            validate_project_config(self._config).raise_for_errors(
                "Invalid run configuration", {"root": str(self._root)}
            )

            files: List[ConfigFile] = await asyncio.to_thread(
                load_config_files, self._root, self._config.apps_name
            )
            report.project_name = await asyncio.to_thread(
                lambda: self.project_name
            )

            jobs: List[Tuple[FeatureConfig, Json2DartSettings]] = self._select(
                files, report
            )
            report.features = [feature.name for feature, _ in jobs]
            report.extend(await self._run_batches(jobs))

        report.total_elapsed_seconds = t.elapsed
        logger.info(
            "Generation finished: %d unit(s), %d failed, %d file(s) changed in %.3fs.",
            len(report.units),
            len(report.failed_units),
            len(report.changed_files),
            t.elapsed,
        )
        return report

    def _select(
        self,
        files: Sequence[ConfigFile],
        report: GenerationReport,
    ) -> List[Tuple[FeatureConfig, Json2DartSettings]]:
        jobs: List[Tuple[FeatureConfig, Json2DartSettings]] = []
        wanted: Optional[str] = self._config.feature_name
        for config_file in files:
            for feature in config_file.features:
                if wanted is None or feature.name == wanted:
                    jobs.append((feature, config_file.settings))

        if wanted is not None and not jobs:
            message: str = f"Feature '{wanted}' is not configured; nothing to generate."
            logger.warning(message)
            report.warnings.append(message)
        return jobs

    # -----------------------------------------------------------------
    # Public: features
    # -----------------------------------------------------------------

    async def generate_features(
        self,
        features: Sequence[FeatureConfig],
        settings: Optional[Json2DartSettings] = None,
    ) -> List[UnitResult]:
        """Generate several features sharing the same settings."""
        shared: Json2DartSettings = settings or Json2DartSettings()
        return await self._run_batches([(f, shared) for f in features])

    async def _run_batches(
        self,
        jobs: Sequence[Tuple[FeatureConfig, Json2DartSettings]],
    ) -> List[UnitResult]:
        results: List[UnitResult] = []
        if not jobs:
            return results

        size: int = compute_batch_size(len(jobs))
        logger.debug("Generating %d feature(s) in batches of %d.", len(jobs), size)

        for start in range(0, len(jobs), size):
            batch = jobs[start:start + size]
            outcomes = await asyncio.gather(
                *(self.generate_feature(f, s) for f, s in batch),
                return_exceptions=True,
            )
            for (feature, _), outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.error(
                        "Feature '%s' aborted: %s", feature.name, outcome,
                        exc_info=outcome,
                    )
                    unit: UnitResult = UnitResult(feature=feature.name, page="*")
                    unit.fail(outcome)
                    results.append(unit)
                else:
                    results.extend(outcome)
        return results

    async def generate_feature(
        self,
        feature: FeatureConfig,
        settings: Optional[Json2DartSettings] = None,
    ) -> List[UnitResult]:
        """Generate every (selected) page of *feature*, one page at a time."""
        effective: Json2DartSettings = settings or Json2DartSettings()
        pages: List[PageConfig] = list(feature.pages)

        wanted: Optional[str] = self._config.page_name
        if wanted is not None:
            pages = [p for p in pages if p.name == wanted]
            if not pages:
                logger.warning(
                    "Page '%s' is not configured in feature '%s'.", wanted, feature.name
                )

        results: List[UnitResult] = []
        with Timer(f"feature {feature.name}") as t:
            for page in pages:
                results.extend(await self.generate_page(feature, page, effective))

        logger.info(
            "Feature '%s': %d unit(s), %d failed in %.3fs.",
            feature.name,
            len(results),
            sum(1 for r in results if not r.success),
            t.elapsed,
        )
        return results

    # -----------------------------------------------------------------
    # Pages
    # -----------------------------------------------------------------

    async def generate_page(
        self,
        feature: FeatureConfig,
        page: PageConfig,
        settings: Json2DartSettings,
    ) -> List[UnitResult]:
        page_dir: Path = Path(feature.feature_dir) / "lib" / page.name

        if not await asyncio.to_thread(page_dir.is_dir):
            unit: UnitResult = UnitResult(feature=feature.name, page=page.name)
            unit.fail(ConfigurationError(
                "Page directory not found", {"directory": str(page_dir)}
            ))
            logger.error("%s: %s", unit.label, unit.error)
            return [unit]

        checks: ValidationResult = validate_page_entries(page)
        if checks.has_errors:
            unit = UnitResult(feature=feature.name, page=page.name)
            unit.fail(ConfigurationError(
                "; ".join(issue.message for issue in checks.errors),
                {"feature": feature.name, "page": page.name},
            ))
            logger.error("%s: %s", unit.label, unit.error)
            return [unit]

        cache: SampleCache = SampleCache(self._root)
        mappers: MapperScope = MapperScope(page.api_names)
        results: List[UnitResult] = []
        for api_name, raw in page.apis.items():
            results.append(
                await asyncio.to_thread(
                    self._generate_api,
                    feature, page, page_dir, str(api_name), raw, settings,
                    cache, mappers,
                )
            )

        if self._flag(settings, "replace"):
            results.extend(await asyncio.to_thread(
                self._prune_page, feature, page, page_dir
            ))
        return results

    def _prune_page(
        self,
        feature: FeatureConfig,
        page: PageConfig,
        page_dir: Path,
    ) -> List[UnitResult]:
        unit: UnitResult = UnitResult(feature=feature.name, page=page.name)
        writer: ArtifactWriter = ArtifactWriter(atomic_writes=self._atomic_writes)
        engine: PatchEngine = PatchEngine(writer)
        page_file: str = to_snake_case(page.name)
        try:
            for template in _AGGREGATE_FILES:
                engine.prune(page_dir / template.format(page=page_file), page.api_names)
        except OSError as exc:
            logger.error("%s: prune failed: %s", unit.label, exc)
            unit.fail(exc)
        unit.files = list(writer.log.records)
        return [unit] if unit.files or not unit.success else []

    # -----------------------------------------------------------------
    # APIs
    # -----------------------------------------------------------------

    def _generate_api(
        self,
        feature: FeatureConfig,
        page: PageConfig,
        page_dir: Path,
        api_name: str,
        raw: Any,
        settings: Json2DartSettings,
        cache: SampleCache,
        mappers: MapperScope,
    ) -> UnitResult:
        unit: UnitResult = UnitResult(feature=feature.name, page=page.name, api=api_name)
        writer: ArtifactWriter = ArtifactWriter(atomic_writes=self._atomic_writes)

        with Timer(f"api {api_name}") as t:
            try:
                self._emit_api(
                    feature, page, page_dir, api_name, raw, settings, cache,
                    mappers, writer, unit,
                )
            except (Json2DartError, OSError) as exc:
                unit.fail(exc)
                logger.error("✗ %s: %s", unit.label, exc)

        unit.files = list(writer.log.records)
        unit.elapsed_seconds = t.elapsed
        if unit.success:
            logger.info(
                "✓ %s (%d file(s) changed, %.3fs).",
                unit.label,
                len(unit.changed),
                t.elapsed,
            )
        return unit

    def _emit_api(
        self,
        feature: FeatureConfig,
        page: PageConfig,
        page_dir: Path,
        api_name: str,
        raw: Any,
        settings: Json2DartSettings,
        cache: SampleCache,
        mappers: MapperScope,
        writer: ArtifactWriter,
        unit: UnitResult,
    ) -> None:
        api: ApiConfig = build_api_config(
            api_name, raw, {"feature": feature.name, "page": page.name}
        )
        file_stem: str = to_snake_case(api.name)

        # -- Samples --
        body_shape, body_list = cache.shape(api.body)
        headers: Optional[Dict[str, Any]] = _load_headers(
            cache, self._root, api, unit.warnings
        )
        response_shape: Dict[str, Any] = {}
        response_list: bool = False
        if api.returns_model:
            response_shape, response_list = cache.shape(api.response)

        # -- Body --
        body_registry: ClassNameRegistry = ClassNameRegistry(api.name)
        body_emitter: ModelEmitter = ModelEmitter(
            ArtifactPolicy.body(settings.body_date_expression), body_registry
        )
        body_spec: ObjectSpec = _shape_spec(body_shape, api.body)
        body: ArtifactFragment = body_emitter.emit(
            body_spec,
            path_params=api.path_params,
            multipart=bool(api.is_multipart),
            relative_path=f"data/models/body/{file_stem}_body.dart",
        )
        writer.write(page_dir / body.relative_path, body.content)

        unit_tests: Optional[UnitTestEmitter] = None
        test_dir: Path = Path(feature.feature_dir) / "test" / f"{page.name}_test"
        if self._flag(settings, "unit_test"):
            unit_tests = UnitTestEmitter(feature.name, page.name, api.name)
            writer.write(
                test_dir / unit_tests.body_test_path,
                unit_tests.body_test(
                    body_emitter,
                    body_spec,
                    body_shape,
                    is_list=body_list,
                    path_params=api.path_params,
                    multipart=bool(api.is_multipart),
                ),
            )

        fragments: List[AggregateFragment] = []

        # -- Response / Entity / Mapper / Extra share one registry --
        if api.returns_model:
            response_spec: ObjectSpec = _shape_spec(response_shape, api.response)
            registry: ClassNameRegistry = ClassNameRegistry(
                api.name, mapper_scope=mappers
            )

            response_emitter: ModelEmitter = ModelEmitter(
                ArtifactPolicy.response(settings.response_date_expression), registry
            )
            response: ArtifactFragment = response_emitter.emit(
                response_spec,
                relative_path=f"data/models/response/{file_stem}_response.dart",
            )
            writer.write(page_dir / response.relative_path, response.content)

            entity: ArtifactFragment = ModelEmitter(
                ArtifactPolicy.entity(), registry
            ).emit(
                response_spec,
                relative_path=f"domain/entities/{file_stem}_entity.dart",
            )
            writer.write(page_dir / entity.relative_path, entity.content)

            fragments.append(MapperEmitter(registry).emit(response_spec))

            if unit_tests is not None:
                writer.write(
                    test_dir / unit_tests.response_test_path,
                    unit_tests.response_test(
                        response_emitter, response_spec, response_shape,
                        is_list=response_list,
                    ),
                )

            if api.dir_extra:
                extra: ArtifactFragment = ModelEmitter(
                    ArtifactPolicy.extra(settings.response_date_expression), registry
                ).emit(response_spec, relative_path=f"{file_stem}_extra.dart")
                writer.write(
                    resolve_path(self._root, api.dir_extra) / extra.relative_path,
                    extra.content,
                )

        # -- Data / domain layers --
        if self._flag(settings, "api"):
            templates: LayerTemplates = LayerTemplates(ApiContext(
                api=api,
                page_name=page.name,
                project_name=self.project_name,
                apps_name=feature.apps_name,
                body_list=body_list,
                response_list=response_list,
                headers=headers,
            ))
            fragments.extend(templates.all_fragments())
            writer.write(page_dir / templates.use_case_path(), templates.use_case())

        # -- Aggregates --
        engine: PatchEngine = PatchEngine(writer)
        for fragment in fragments:
            outcome: PatchOutcome = engine.patch(
                page_dir / fragment.relative_path, api.name, fragment
            )
            unit.warnings.extend(outcome.warnings)

        logger.debug(
            "%s/%s/%s: %d registry path(s), %d aggregate(s).",
            feature.name,
            page.name,
            api.name,
            len(body_registry),
            len(fragments),
        )

    def _flag(self, settings: Json2DartSettings, name: str) -> bool:
        override: Optional[bool] = getattr(self._config, name)
        return bool(getattr(settings, name) if override is None else override)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "UnitResult",
    "GenerationReport",
    "compute_batch_size",
    "Json2DartGenerator",
]

logger.debug("json2dart.generator loaded — %d public symbols.", len(__all__))

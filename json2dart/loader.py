# File: json2dart/loader.py
"""
Json2Dart - Configuration & Sample Loaders
============================================
Reads everything the generator consumes from disk:

    - ``json2dart/*json2dart.yaml`` configuration files (PyYAML)
    - JSON body / response / header samples
    - the project name from ``morpheme.yaml``

and scaffolds a fresh ``json2dart/`` directory for ``json2dart init``.

Error handling strategy:
    - An unreadable or malformed configuration file raises
      ``ConfigurationError``; it is fatal for the whole run.
    - An unreadable or malformed sample raises ``SampleFormatError``; the
      orchestrator isolates it to the API that referenced it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from json2dart.errors import ConfigurationError, SampleFormatError
from json2dart.models import (
    ConfigFile,
    FeatureConfig,
    Json2DartSettings,
    PageConfig,
)
from json2dart.utils import ensure_directory, read_file, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart.loader")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CONFIG_DIR: str = "json2dart"
CONFIG_FILE: str = "json2dart.yaml"
CONFIG_SUFFIX: str = "_json2dart.yaml"
SETTINGS_KEY: str = "json2dart"
MORPHEME_YAML: str = "morpheme.yaml"

_INIT_TEMPLATE: str = """\
# json2dart configuration
#
# level 1: feature name
# level 2: page name
# level 3: api name (a page can hold several apis)
#
# method: get, post, put, patch, delete, multipart, postMultipart,
#         patchMultipart, getSse, postSse, putSse, patchSse, deleteSse
# cache_strategy: async_or_cache, cache_or_async, just_async, just_cache
#   either a name or {strategy, ttl (minutes), keep_expired_cache}
# return_data: model (default), header, body_bytes, body_string,
#              status_code, raw
# dir_extra: directory that receives an extra copy of the response model

json2dart:
  body_format_date_time: yyyy-MM-dd
  response_format_date_time: yyyy-MM-dd HH:mm
  api: true
  endpoint: true
  unit-test: false
  replace: false

  environment_url:
    - &base_url BASE_URL

  remote:
    .login: &login
      base_url: *base_url
      path: /login
      method: post
      # header: json2dart/json/header/login_header.json
      body: json2dart/json/body/login_body.json
      response: json2dart/json/response/login_response.json
      cache_strategy: async_or_cache
    .user_detail: &user_detail
      base_url: *base_url
      path: /users/:user_id
      method: get
      body: json2dart/json/body/user_detail_body.json
      response: json2dart/json/response/user_detail_response.json
      cache_strategy:
        strategy: cache_or_async
        ttl: 60
        keep_expired_cache: true

auth:
  login:
    login: *login
  profile:
    user_detail: *user_detail
"""


# ---------------------------------------------------------------------------
# Raw file readers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """
    Load a YAML mapping.

    An empty file yields ``{}``.  Raises ``ConfigurationError`` for a
    missing file, a YAML syntax error or a non-mapping document.
    """
    if not path.is_file():
        raise ConfigurationError("Configuration file not found", {"file": str(path)})

    try:
        data: Any = yaml.safe_load(read_file(path))
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid YAML: {exc}", {"file": str(path)}
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read file: {exc}", {"file": str(path)}
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}",
            {"file": str(path)},
        )
    return data


def load_json_sample(path: Path) -> Any:
    """Load a JSON sample.  Raises ``SampleFormatError`` on any failure."""
    if not path.is_file():
        raise SampleFormatError(path, "file not found")
    try:
        return json.loads(read_file(path))
    except json.JSONDecodeError as exc:
        raise SampleFormatError(path, f"invalid JSON ({exc})") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SampleFormatError(path, f"unreadable ({exc})") from exc


def sample_shape(path: Path, data: Any) -> Tuple[Dict[str, Any], bool]:
    """
    Reduce a sample to the object used as the shape oracle.

    Returns ``(object, is_list)``.  An array sample yields its first
    element and ``is_list=True``.

    Raises ``SampleFormatError`` for empty arrays, arrays whose first
    element is not an object, and scalar samples.
    """
    if isinstance(data, dict):
        return data, False
    if isinstance(data, list):
        if not data:
            raise SampleFormatError(path, "empty array has no shape to infer")
        first: Any = data[0]
        if not isinstance(first, dict):
            raise SampleFormatError(
                path, f"array elements must be objects, got {type(first).__name__}"
            )
        return first, True
    raise SampleFormatError(
        path, f"expected an object or an array of objects, got {type(data).__name__}"
    )


def resolve_path(root: Path, value: str) -> Path:
    """Resolve a path from a configuration file against the project root."""
    candidate: Path = Path(value).expanduser()
    return candidate if candidate.is_absolute() else root / candidate


# ---------------------------------------------------------------------------
# Sample cache
# ---------------------------------------------------------------------------


class SampleCache:
    """
    Per-page cache of parsed samples.

    Pages frequently point several APIs at the same sample file; each file
    is read and parsed once.  Failures are cached too, so a broken sample
    reports the same error for every API that uses it.
    """

    __slots__ = ("_root", "_entries")

    def __init__(self, root: Path) -> None:
        self._root: Path = root
        self._entries: Dict[Path, Union[Any, SampleFormatError]] = {}

    def load(self, reference: str) -> Any:
        path: Path = resolve_path(self._root, reference)
        if path not in self._entries:
            try:
                self._entries[path] = load_json_sample(path)
            except SampleFormatError as exc:
                self._entries[path] = exc
            logger.debug("Loaded sample %s", path)

        entry: Any = self._entries[path]
        if isinstance(entry, SampleFormatError):
            raise entry
        return entry

    def shape(self, reference: Optional[str]) -> Tuple[Dict[str, Any], bool]:
        """``sample_shape`` of a referenced sample; no reference → ``({}, False)``."""
        if not reference:
            return {}, False
        return sample_shape(resolve_path(self._root, reference), self.load(reference))

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Configuration discovery & parsing
# ---------------------------------------------------------------------------


def apps_name_for(path: Path) -> Optional[str]:
    """
    Apps name encoded in a configuration file name.

    Examples:
        >>> apps_name_for(Path("json2dart/json2dart.yaml")) is None
        True
        >>> apps_name_for(Path("json2dart/shop_json2dart.yaml"))
        'shop'
    """
    name: str = path.name
    if name == CONFIG_FILE or not name.endswith(CONFIG_SUFFIX):
        return None
    return name[: -len(CONFIG_SUFFIX)] or None


def discover_config_files(root: Path, apps_name: Optional[str] = None) -> List[Path]:
    """
    Configuration files of a project, sorted by name.

    With *apps_name* only ``{apps}_json2dart.yaml`` is considered and its
    absence is a ``ConfigurationError``.
    """
    config_dir: Path = root / CONFIG_DIR
    if apps_name:
        path: Path = config_dir / f"{apps_name}{CONFIG_SUFFIX}"
        if not path.is_file():
            raise ConfigurationError(
                f"No configuration for apps '{apps_name}'", {"file": str(path)}
            )
        return [path]

    files: List[Path] = sorted(
        p for p in config_dir.glob(f"*{CONFIG_FILE}") if p.is_file()
    )
    if not files:
        raise ConfigurationError(
            f"No '{CONFIG_FILE}' found; run 'json2dart init' first",
            {"directory": str(config_dir)},
        )
    logger.debug("Discovered %d configuration file(s) in %s.", len(files), config_dir)
    return files


def feature_directory(root: Path, feature: str, apps_name: Optional[str]) -> Path:
    if apps_name:
        return root / "apps" / apps_name / "features" / feature
    return root / "features" / feature


def _as_mapping(value: Any, what: str, context: Dict[str, Any]) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            f"{what} must be a mapping, got {type(value).__name__}", context
        )
    return value


def parse_config(path: Path, root: Path, data: Dict[str, Any]) -> ConfigFile:
    """Turn one loaded YAML mapping into a ``ConfigFile``."""
    apps_name: Optional[str] = apps_name_for(path)
    settings_raw: Dict[str, Any] = _as_mapping(
        data.get(SETTINGS_KEY), f"'{SETTINGS_KEY}' section", {"file": str(path)}
    )
    try:
        settings: Json2DartSettings = Json2DartSettings.model_validate(settings_raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid '{SETTINGS_KEY}' section: {exc}", {"file": str(path)}
        ) from exc

    features: List[FeatureConfig] = []
    for feature_name, feature_raw in data.items():
        if feature_name == SETTINGS_KEY:
            continue
        ctx: Dict[str, Any] = {"file": str(path), "feature": feature_name}
        pages_raw: Dict[str, Any] = _as_mapping(feature_raw, "A feature", ctx)

        pages: List[PageConfig] = []
        for page_name, page_raw in pages_raw.items():
            apis: Dict[str, Any] = _as_mapping(
                page_raw, "A page", {**ctx, "page": page_name}
            )
            pages.append(PageConfig(name=str(page_name), apis=dict(apis)))

        features.append(
            FeatureConfig(
                name=str(feature_name),
                feature_dir=str(feature_directory(root, str(feature_name), apps_name)),
                apps_name=apps_name,
                pages=pages,
            )
        )

    logger.debug(
        "Parsed %s: %d feature(s), apps=%s.", path.name, len(features), apps_name
    )
    return ConfigFile(
        path=str(path), apps_name=apps_name, settings=settings, features=features
    )


def load_config_file(path: Path, root: Path) -> ConfigFile:
    return parse_config(path, root, load_yaml_file(path))


def load_config_files(root: Path, apps_name: Optional[str] = None) -> List[ConfigFile]:
    return [load_config_file(p, root) for p in discover_config_files(root, apps_name)]


# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------


def read_project_name(root: Path, morpheme_yaml: Optional[Path] = None) -> str:
    """
    ``project_name`` from ``morpheme.yaml``.

    Falls back to the root directory name (with a warning) when the file or
    the key is missing.
    """
    path: Path = morpheme_yaml or root / MORPHEME_YAML
    if path.is_file():
        name: Any = load_yaml_file(path).get("project_name")
        if isinstance(name, str) and name.strip():
            return name.strip()
        logger.warning("'project_name' missing in %s.", path)
    else:
        logger.warning("%s not found.", path)

    fallback: str = root.resolve().name
    logger.warning("Using '%s' as project name.", fallback)
    return fallback


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------


def init_project(root: Path) -> List[Path]:
    """
    Create ``json2dart/json2dart.yaml`` and the sample directories.

    An existing configuration file is left untouched.  Returns the paths
    that were created.
    """
    config_dir: Path = root / CONFIG_DIR
    created: List[Path] = []

    config_path: Path = config_dir / CONFIG_FILE
    if config_path.exists():
        logger.info("%s already exists; leaving it untouched.", config_path)
    else:
        write_file(config_path, _INIT_TEMPLATE)
        created.append(config_path)

    for sub in ("json/body", "json/response"):
        directory: Path = config_dir / sub
        if not directory.is_dir():
            ensure_directory(directory)
            created.append(directory)

    logger.info("Initialised json2dart in %s (%d new path(s)).", config_dir, len(created))
    return created


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "SETTINGS_KEY",
    "load_yaml_file",
    "load_json_sample",
    "sample_shape",
    "resolve_path",
    "SampleCache",
    "apps_name_for",
    "discover_config_files",
    "feature_directory",
    "parse_config",
    "load_config_file",
    "load_config_files",
    "read_project_name",
    "init_project",
]

logger.debug("json2dart.loader loaded — %d public symbols.", len(__all__))

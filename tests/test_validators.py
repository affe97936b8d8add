"""
tests/test_validators.py
Unit tests for json2dart.validators and the ApiConfig model it builds.

Tests cover:
- API name rules (identifier, Dart keyword)
- Required keys, known methods and return data
- Streaming / return data compatibility
- Cache directive checks and ignored-cache warnings
- Duplicate generated file names within a page
- Run-level filter combinations
- build_api_config (ConfigurationError, derived ApiConfig helpers)
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from json2dart.errors import ConfigurationError
from json2dart.models import PageConfig, ProjectConfig
from json2dart.validators import (
    ValidationResult,
    build_api_config,
    validate_api_entry,
    validate_api_name,
    validate_page_entries,
    validate_project_config,
)


def _codes(result: ValidationResult) -> List[str]:
    return [item.code for item in result.errors]


@pytest.fixture()
def entry() -> Dict[str, Any]:
    return {"method": "post", "path": "/login", "body": "json/body/login.json"}


# ===========================================================================
# API names
# ===========================================================================


class TestValidateApiName:
    @pytest.mark.parametrize("name", ["login", "getUser", "get_user_2"])
    def test_valid_names(self, name: str) -> None:
        assert validate_api_name(name).is_valid

    @pytest.mark.parametrize("name", ["2fa", "get-user", "_login", ""])
    def test_invalid_identifiers(self, name: str) -> None:
        assert _codes(validate_api_name(name)) == ["INVALID_API_NAME"]

    def test_dart_keyword(self) -> None:
        assert _codes(validate_api_name("class")) == ["API_NAME_DART_KEYWORD"]


# ===========================================================================
# API entries
# ===========================================================================


class TestValidateApiEntry:
    def test_valid_entry(self, entry: Dict[str, Any]) -> None:
        result = validate_api_entry("login", entry)
        assert result.is_valid, f"Expected valid, got errors: {result.errors}"
        assert len(result) == 0

    def test_not_a_mapping(self) -> None:
        assert _codes(validate_api_entry("login", ["post"])) == ["API_NOT_MAPPING"]

    def test_missing_method_and_path(self) -> None:
        codes = _codes(validate_api_entry("login", {}))
        assert "MISSING_METHOD" in codes
        assert "MISSING_PATH" in codes

    def test_unknown_method(self, entry: Dict[str, Any]) -> None:
        entry["method"] = "fetch"
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_METHOD"]

    def test_path_must_be_string(self, entry: Dict[str, Any]) -> None:
        entry["path"] = 12
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_PATH"]

    def test_unknown_return_data(self, entry: Dict[str, Any]) -> None:
        entry["return_data"] = "json"
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_RETURN_DATA"]

    @pytest.mark.parametrize("return_data", ["header", "body_bytes", "status_code"])
    def test_sse_rejects_non_streamable_return_data(self, return_data: str) -> None:
        result = validate_api_entry(
            "watch", {"method": "getSse", "path": "/watch", "return_data": return_data}
        )
        assert _codes(result) == ["RETURN_DATA_NOT_STREAMABLE"]

    @pytest.mark.parametrize("return_data", ["model", "body_string", "raw"])
    def test_sse_accepts_streamable_return_data(self, return_data: str) -> None:
        result = validate_api_entry(
            "watch", {"method": "postSse", "path": "/watch", "return_data": return_data}
        )
        assert result.is_valid

    def test_file_references_must_be_strings(self, entry: Dict[str, Any]) -> None:
        entry["response"] = {"id": 1}
        result = validate_api_entry("login", entry)
        assert _codes(result) == ["INVALID_FILE_REFERENCE"]
        assert result.errors[0].context["key"] == "response"

    def test_unknown_keys_are_info(self, entry: Dict[str, Any]) -> None:
        entry["base_url"] = "BASE_URL"
        result = validate_api_entry("login", entry)
        assert result.is_valid
        assert [i.code for i in result.all_items] == ["UNKNOWN_API_KEY"]
        assert "UNKNOWN_API_KEY" not in result.format_report()
        assert "UNKNOWN_API_KEY" in result.format_report(include_info=True)


class TestCacheStrategy:
    def test_short_and_long_forms(self, entry: Dict[str, Any]) -> None:
        entry["cache_strategy"] = "just_cache"
        assert validate_api_entry("login", entry).is_valid
        entry["cache_strategy"] = {"strategy": "cache_or_async", "ttl": 30, "keep_expired_cache": False}
        assert validate_api_entry("login", entry).is_valid

    def test_unknown_strategy(self, entry: Dict[str, Any]) -> None:
        entry["cache_strategy"] = "forever"
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_CACHE_STRATEGY"]

    def test_non_mapping_directive(self, entry: Dict[str, Any]) -> None:
        entry["cache_strategy"] = 5
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_CACHE_STRATEGY"]

    @pytest.mark.parametrize("ttl", [-1, True, "60"])
    def test_invalid_ttl(self, entry: Dict[str, Any], ttl: Any) -> None:
        entry["cache_strategy"] = {"strategy": "async_or_cache", "ttl": ttl}
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_CACHE_TTL"]

    def test_invalid_keep_expired_cache(self, entry: Dict[str, Any]) -> None:
        entry["cache_strategy"] = {"strategy": "async_or_cache", "keep_expired_cache": "yes"}
        assert _codes(validate_api_entry("login", entry)) == ["INVALID_KEEP_EXPIRED_CACHE"]

    @pytest.mark.parametrize("method", ["multipart", "patchMultipart", "getSse"])
    def test_ignored_for_multipart_and_sse(self, method: str) -> None:
        result = validate_api_entry(
            "upload", {"method": method, "path": "/x", "cache_strategy": "just_async"}
        )
        assert result.is_valid
        assert [w.code for w in result.warnings] == ["CACHE_STRATEGY_IGNORED"]


# ===========================================================================
# Page and project
# ===========================================================================


class TestValidatePageEntries:
    def test_distinct_file_names(self) -> None:
        page = PageConfig(name="login", apis={"login": {}, "logout": {}})
        assert validate_page_entries(page).is_valid

    def test_duplicate_file_names(self) -> None:
        page = PageConfig(name="user", apis={"getUser": {}, "get_user": {}})
        result = validate_page_entries(page)
        assert _codes(result) == ["DUPLICATE_API_FILE"]
        assert "get_user_*.dart" in result.errors[0].message
        assert result.errors[0].context == {"page": "user", "api": "get_user"}


class TestValidateProjectConfig:
    def test_page_needs_feature(self) -> None:
        result = validate_project_config(ProjectConfig(page_name="login"))
        assert _codes(result) == ["PAGE_WITHOUT_FEATURE"]

    def test_page_with_feature(self) -> None:
        config = ProjectConfig(feature_name="auth", page_name="login")
        assert validate_project_config(config).is_valid

    def test_raise_for_errors(self) -> None:
        result = validate_project_config(ProjectConfig(page_name="login"))
        with pytest.raises(ConfigurationError) as exc_info:
            result.raise_for_errors("Invalid run options", {"root": "."})
        assert "feature filter" in str(exc_info.value)
        assert exc_info.value.context == {"root": "."}


class TestValidationResult:
    def test_truthiness_and_merge(self) -> None:
        ok = ValidationResult()
        ok.add_warning("W", "careful")
        assert ok
        bad = ValidationResult()
        bad.add_error("E", "broken")
        assert not bad
        merged = ValidationResult()
        merged.merge(ok)
        merged.merge(bad)
        assert merged.error_count == 1
        assert merged.warning_count == 1
        assert merged.summary() == "Validation: 1 error(s), 1 warning(s), 2 total item(s)."


# ===========================================================================
# build_api_config
# ===========================================================================


class TestBuildApiConfig:
    def test_builds_model(self) -> None:
        api = build_api_config(
            "get_post",
            {
                "method": "get",
                "path": "/users/:user_id/posts/:id/:user_id",
                "cache_strategy": "async_or_cache",
                "return_data": None,
            },
        )
        assert api.name == "get_post"
        assert api.method == "get"
        assert api.path_params == ["user_id", "id"]
        assert api.cache_strategy is not None
        assert api.cache_strategy.strategy == "async_or_cache"
        assert api.cache_strategy.ttl is None
        assert api.returns_model
        assert api.applies_cache_strategy
        assert api.http_call == "get"

    def test_multipart_http_call(self) -> None:
        api = build_api_config("upload", {"method": "multipart", "path": "/upload"})
        assert api.is_multipart
        assert not api.is_sse
        assert not api.applies_cache_strategy
        assert api.http_call == "postMultipart"

    def test_sse_flags(self) -> None:
        api = build_api_config("watch", {"method": "deleteSse", "path": "/watch"})
        assert api.is_sse
        assert not api.applies_cache_strategy

    def test_reports_every_error_with_context(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            build_api_config("login", {"body": 3}, {"feature": "auth", "page": "login"})
        message = str(exc_info.value)
        assert "has no 'method'" in message
        assert "has no 'path'" in message
        assert "'body' must be a path string" in message
        assert exc_info.value.context == {"feature": "auth", "page": "login", "api": "login"}

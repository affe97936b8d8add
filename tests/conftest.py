"""
tests/conftest.py
Shared fixtures for the json2dart test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
Every fixture project is a miniature Flutter workspace:

    {root}/morpheme.yaml
    {root}/json2dart/json2dart.yaml
    {root}/json2dart/json/{body,response}/*.json
    {root}/features/auth/lib/login/
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def write_json(path: pathlib.Path, data: Any) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def write_yaml(path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)
    return path


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def login_body() -> Dict[str, Any]:
    return {"email": "user@mail.com", "password": "secret"}


@pytest.fixture()
def login_response() -> Dict[str, Any]:
    return {
        "token": "abc",
        "expires_in": 3600,
        "created_at": "2023-05-01T10:00:00Z",
        "user": {
            "id": 1,
            "name": "Ann",
            "address": {"city": "Oslo", "zip": "0150"},
        },
        "roles": [{"id": 1, "label": "admin"}],
    }


@pytest.fixture()
def inference_sample() -> Dict[str, Any]:
    """One key per inferable kind."""
    return {
        "a": 1,
        "b": 1.5,
        "c": True,
        "d": "2023-05-01T10:00:00Z",
        "e": "hi",
        "f": None,
        "g": {},
        "h": [],
    }


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def base_config() -> Dict[str, Any]:
    """A json2dart.yaml mapping with one feature, one page, one API."""
    return {
        "json2dart": {
            "body_format_date_time": "yyyy-MM-dd",
            "api": True,
            "replace": False,
            "environment_url": ["BASE_URL"],
        },
        "auth": {
            "login": {
                "login": {
                    "base_url": "BASE_URL",
                    "method": "post",
                    "path": "/login",
                    "body": "json2dart/json/body/login_body.json",
                    "response": "json2dart/json/response/login_response.json",
                    "cache_strategy": "async_or_cache",
                },
            },
        },
    }


@pytest.fixture()
def config_dict(base_config: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(base_config)


@pytest.fixture()
def project_root(
    tmp_path: pathlib.Path,
    config_dict: Dict[str, Any],
    login_body: Dict[str, Any],
    login_response: Dict[str, Any],
) -> pathlib.Path:
    """A project with samples, morpheme.yaml and the login page directory."""
    root = tmp_path / "demo_app"
    (root / "features" / "auth" / "lib" / "login").mkdir(parents=True)
    write_yaml(root / "morpheme.yaml", {"project_name": "demo_app"})
    write_yaml(root / "json2dart" / "json2dart.yaml", config_dict)
    write_json(root / "json2dart" / "json" / "body" / "login_body.json", login_body)
    write_json(
        root / "json2dart" / "json" / "response" / "login_response.json",
        login_response,
    )
    return root


@pytest.fixture()
def page_dir(project_root: pathlib.Path) -> pathlib.Path:
    return project_root / "features" / "auth" / "lib" / "login"

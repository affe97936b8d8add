"""
tests/test_emitters.py
Unit tests for json2dart.emitters (ModelEmitter, MapperEmitter).

Tests cover:
- Field types, nullability and identifiers
- Response decoding / encoding expressions
- Body raw bag, null-guarded entries, path params, multipart files
- Entity copyWith and empty classes
- Extra naming and Response/Entity/Mapper consistency
- Mapper extensions and aliased imports
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from json2dart.emitters import (
    MAPPER_FILE,
    MAPPER_SECTION,
    ArtifactPolicy,
    MapperEmitter,
    ModelEmitter,
    dart_fields,
)
from json2dart.inference import ObjectSpec, infer
from json2dart.models import ArtifactKind
from json2dart.naming import ClassNameRegistry
from json2dart.patcher import AggregateKind, anchor_marker


def _spec(sample: Dict[str, Any]) -> ObjectSpec:
    spec = infer(sample)
    assert isinstance(spec, ObjectSpec)
    return spec


def _lines(content: str) -> List[str]:
    return content.split("\n")


RESPONSE_SAMPLE: Dict[str, Any] = {
    "id": 1,
    "created_at": "2023-05-01",
    "user": {"name": "a"},
    "tags": ["x"],
    "roles": [{"id": 1}],
    "score": 1.5,
    "active": True,
    "meta": None,
}


# ===========================================================================
# Shared field rules
# ===========================================================================


class TestDartFields:
    def test_camel_case_and_keywords(self) -> None:
        fields = dart_fields(_spec({"created_at": 1, "class": 2, "2fa": 3}), ())
        assert [f.name for f in fields] == ["createdAt", "classValue", "value2Fa"]
        assert [f.key for f in fields] == ["created_at", "class", "2fa"]

    def test_colliding_identifiers_get_numeric_tail(self) -> None:
        fields = dart_fields(_spec({"user_id": 1, "userId": 2}), ())
        assert [f.name for f in fields] == ["userId", "userId2"]

    def test_reserved_member_names(self) -> None:
        fields = dart_fields(_spec({"raw_body": 1}), (), reserved=["rawBody"])
        assert fields[0].name == "rawBody2"

    def test_field_paths(self) -> None:
        fields = dart_fields(_spec({"user": {}}), ("data",))
        assert fields[0].path == ("data", "user")


# ===========================================================================
# Response
# ===========================================================================


class TestResponseEmitter:
    @pytest.fixture()
    def content(self) -> str:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        return emitter.emit(_spec(RESPONSE_SAMPLE)).content

    def test_imports(self, content: str) -> None:
        assert content.startswith(
            "import 'dart:convert';\n\nimport 'package:core/core.dart';\n\n"
        )

    def test_declarations(self, content: str) -> None:
        lines = _lines(content)
        for expected in (
            "class LoginResponse extends Equatable {",
            "  final int? id;",
            "  final DateTime? createdAt;",
            "  final User? user;",
            "  final List<String>? tags;",
            "  final List<Roles>? roles;",
            "  final double? score;",
            "  final bool? active;",
            "  final dynamic meta;",
            "class User extends Equatable {",
            "class Roles extends Equatable {",
        ):
            assert expected in lines, expected

    def test_from_map(self, content: str) -> None:
        lines = _lines(content)
        assert "  factory LoginResponse.fromMap(Map<String, dynamic> map) {" in lines
        for expected in (
            "      id: int.tryParse(map['id']?.toString() ?? ''),",
            "      createdAt: DateTime.tryParse(map['created_at'] ?? ''),",
            "      user: map['user'] == null ? null : User.fromMap(map['user']),",
            "      tags: map['tags'] is List ? List.from(map['tags']) : null,",
            "      roles: map['roles'] is List ? List.from((map['roles'] as List)"
            ".where((element) => element != null).map((e) => Roles.fromMap(e))) : null,",
            "      score: double.tryParse(map['score']?.toString() ?? ''),",
            "      active: map['active'],",
        ):
            assert expected in lines, expected

    def test_to_map_and_json(self, content: str) -> None:
        lines = _lines(content)
        for expected in (
            "      'id': id,",
            "      'created_at': createdAt?.toIso8601String(),",
            "      'user': user?.toMap(),",
            "      'tags': tags,",
            "      'roles': roles?.map((e) => e.toMap()).toList(),",
            "  factory LoginResponse.fromJson(String source) =>",
            "      LoginResponse.fromMap(json.decode(source));",
            "  String toJson() => json.encode(toMap());",
        ):
            assert expected in lines, expected

    def test_props(self, content: str) -> None:
        assert (
            "  List<Object?> get props => "
            "[id, createdAt, user, tags, roles, score, active, meta];"
        ) in _lines(content)

    def test_custom_date_expression(self) -> None:
        emitter = ModelEmitter(
            ArtifactPolicy.response(".toFormatDateTimeResponse('yyyy-MM-dd HH:mm')"),
            ClassNameRegistry("login"),
        )
        content = emitter.emit(_spec({"at": "2023-05-01 10:00"})).content
        assert "      'at': at?.toFormatDateTimeResponse('yyyy-MM-dd HH:mm')," in _lines(content)

    def test_list_of_dates(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        lines = _lines(emitter.emit(_spec({"dates": ["2020-01-01"]})).content)
        assert (
            "      dates: map['dates'] is List ? List.from((map['dates'] as List)"
            ".where((element) => element != null)"
            ".map((e) => DateTime.tryParse(e.toString())).whereType<DateTime>()) : null,"
        ) in lines
        assert not any("DateTime.parse(" in line for line in lines)
        assert "      'dates': dates?.map((e) => e.toIso8601String()).toList()," in lines

    def test_nested_list_of_dates(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        lines = _lines(emitter.emit(_spec({"grid": [["2020-01-01"]]})).content)
        decode = [line for line in lines if line.startswith("      grid: ")]
        assert len(decode) == 1
        assert decode[0].endswith(
            ".map((e) => List.from((e as List).where((element) => element != null)"
            ".map((e) => DateTime.tryParse(e.toString())).whereType<DateTime>()))) : null,"
        )

    def test_keys_are_escaped(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        lines = _lines(emitter.emit(_spec({"$price": 1})).content)
        assert "      price: int.tryParse(map['\\$price']?.toString() ?? '')," in lines

    def test_empty_response(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        fragment = emitter.emit(ObjectSpec(()))
        lines = _lines(fragment.content)
        assert "  const LoginResponse();" in lines
        assert "    return const LoginResponse();" in lines
        assert "    return {};" in lines
        assert "  List<Object?> get props => [];" in lines
        assert fragment.class_names == ["LoginResponse"]

    def test_fragment_metadata(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.response(), ClassNameRegistry("login"))
        fragment = emitter.emit(
            _spec(RESPONSE_SAMPLE),
            relative_path="data/models/response/login_response.dart",
        )
        assert fragment.kind is ArtifactKind.RESPONSE
        assert fragment.root_class == "LoginResponse"
        assert fragment.class_names == ["LoginResponse", "User", "Roles"]
        assert fragment.relative_path == "data/models/response/login_response.dart"
        assert fragment.content.endswith("}\n")


# ===========================================================================
# Body
# ===========================================================================


class TestBodyEmitter:
    @pytest.fixture()
    def content(self) -> str:
        emitter = ModelEmitter(
            ArtifactPolicy.body(".toFormatDateTimeBody('yyyy-MM-dd')"),
            ClassNameRegistry("login"),
        )
        return emitter.emit(
            _spec({"email": "x", "dob": "2020-01-01", "address": {"city": "x"}}),
            path_params=["user_id"],
            multipart=True,
        ).content

    def test_imports(self, content: str) -> None:
        assert content.startswith("import 'dart:io';\n\nimport 'package:core/core.dart';\n\n")
        assert "dart:convert" not in content

    def test_constructor(self, content: str) -> None:
        expected = "\n".join([
            "  const LoginBody({",
            "    this.rawBody,",
            "    this.files,",
            "    required this.userId,",
            "    this.email,",
            "    this.dob,",
            "    this.address,",
            "  });",
        ])
        assert expected in content

    def test_declarations(self, content: str) -> None:
        lines = _lines(content)
        for expected in (
            "  final Map<String, dynamic>? rawBody;",
            "  final Map<String, List<File>>? files;",
            "  final String userId;",
            "  final String? email;",
            "  final DateTime? dob;",
            "  final Address? address;",
        ):
            assert expected in lines, expected

    def test_to_map(self, content: str) -> None:
        lines = _lines(content)
        for expected in (
            "      if (rawBody?.isNotEmpty ?? false) ...rawBody ?? {},",
            "      if (email != null) 'email': email,",
            "      if (dob != null) 'dob': dob?.toFormatDateTimeBody('yyyy-MM-dd'),",
            "      if (address != null) 'address': address?.toMap(),",
        ):
            assert expected in lines, expected
        assert "fromMap" not in content

    def test_nested_class_has_raw_body_but_no_path_params(self, content: str) -> None:
        nested = content[content.index("class Address extends Equatable {"):]
        assert "    this.rawBody," in nested
        assert "userId" not in nested
        assert "files" not in nested
        assert "  List<Object?> get props => [rawBody, city];" in _lines(nested)

    def test_props(self, content: str) -> None:
        assert (
            "  List<Object?> get props => [rawBody, files, userId, email, dob, address];"
            in _lines(content)
        )

    def test_empty_body_keeps_raw_bag(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.body(), ClassNameRegistry("logout"))
        content = emitter.emit(ObjectSpec(())).content
        assert "  const LogoutBody({\n    this.rawBody,\n  });" in content
        assert "      if (rawBody?.isNotEmpty ?? false) ...rawBody ?? {}," in _lines(content)

    def test_path_param_shadowing_field(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.body(), ClassNameRegistry("get_user"))
        content = emitter.emit(_spec({"id": 1}), path_params=["id"]).content
        assert "  final String id;" in _lines(content)
        assert "  final int? id2;" in _lines(content)
        assert "      if (id2 != null) 'id': id2," in _lines(content)


# ===========================================================================
# Entity / Extra
# ===========================================================================


class TestEntityEmitter:
    def test_copy_with(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.entity(), ClassNameRegistry("login"))
        content = emitter.emit(_spec({"id": 1, "user": {"name": "a"}})).content
        assert content.startswith("import 'package:core/core.dart';\n\n")
        expected = "\n".join([
            "  LoginEntity copyWith({",
            "    int? id,",
            "    User? user,",
            "  }) {",
            "    return LoginEntity(",
            "      id: id ?? this.id,",
            "      user: user ?? this.user,",
            "    );",
            "  }",
        ])
        assert expected in content
        assert "toMap" not in content
        assert "fromMap" not in content

    def test_empty_entity(self) -> None:
        emitter = ModelEmitter(ArtifactPolicy.entity(), ClassNameRegistry("login"))
        content = emitter.emit(ObjectSpec(())).content
        assert "  const LoginEntity();" in _lines(content)
        assert "  LoginEntity copyWith() {\n    return const LoginEntity();\n  }" in content


class TestCrossArtifactConsistency:
    def test_shared_registry_parallel_names(self) -> None:
        registry = ClassNameRegistry("login")
        spec = _spec({"user": {"address": {}}, "address": {"x": 1}, "list": {}})
        response = ModelEmitter(ArtifactPolicy.response(), registry).emit(spec)
        entity = ModelEmitter(ArtifactPolicy.entity(), registry).emit(spec)
        extra = ModelEmitter(ArtifactPolicy.extra(), registry).emit(spec)

        assert response.class_names == ["LoginResponse", "User", "Address", "LoginAddress", "LoginList"]
        assert entity.class_names == ["LoginEntity", "User", "Address", "LoginAddress", "LoginList"]
        assert extra.class_names == [
            "LoginExtra", "UserExtra", "AddressExtra", "LoginAddressExtra", "LoginListExtra",
        ]
        assert all(name.endswith("Extra") for name in extra.class_names)
        assert "factory LoginExtra.fromJson(String source) =>" in extra.content


# ===========================================================================
# Mapper
# ===========================================================================


class TestMapperEmitter:
    @pytest.fixture()
    def registry(self) -> ClassNameRegistry:
        return ClassNameRegistry("login")

    def test_fragment_shape(self, registry: ClassNameRegistry) -> None:
        fragment = MapperEmitter(registry).emit(_spec({"id": 1}))
        assert fragment.kind is AggregateKind.MAPPER
        assert fragment.api == "login"
        assert fragment.relative_path == MAPPER_FILE
        assert list(fragment.blocks) == [MAPPER_SECTION]
        assert fragment.skeleton == anchor_marker(MAPPER_SECTION) + "\n"
        assert fragment.imports == [
            "import 'data/models/response/login_response.dart' as login_response;",
            "import 'domain/entities/login_entity.dart' as login_entity;",
        ]

    def test_extensions(self, registry: ClassNameRegistry) -> None:
        spec = _spec({"id": 1, "user": {"name": "a"}, "roles": [{"id": 1}], "tags": ["a"]})
        block = MapperEmitter(registry).emit(spec).blocks[MAPPER_SECTION]
        expected = "\n".join([
            "extension LoginResponseMapper on login_response.LoginResponse {",
            "  login_entity.LoginEntity toEntity() => login_entity.LoginEntity(",
            "        id: id,",
            "        user: user?.toEntity(),",
            "        roles: roles?.map((e) => e.toEntity()).toList(),",
            "        tags: tags,",
            "      );",
            "}",
            "",
            "extension LoginEntityMapper on login_entity.LoginEntity {",
            "  login_response.LoginResponse toResponse() => login_response.LoginResponse(",
            "        id: id,",
            "        user: user?.toResponse(),",
            "        roles: roles?.map((e) => e.toResponse()).toList(),",
            "        tags: tags,",
            "      );",
            "}",
        ])
        assert block.startswith(expected)
        assert "extension LoginUserResponseMapper on login_response.User {" in block
        assert "extension LoginRolesEntityMapper on login_entity.Roles {" in block

    def test_empty_object(self, registry: ClassNameRegistry) -> None:
        block = MapperEmitter(registry).emit(ObjectSpec(())).blocks[MAPPER_SECTION]
        assert "  login_entity.LoginEntity toEntity() => const login_entity.LoginEntity();" in block

    def test_snake_case_aliases(self) -> None:
        emitter = MapperEmitter(ClassNameRegistry("getUser"))
        assert emitter.response_alias == "get_user_response"
        assert emitter.entity_alias == "get_user_entity"
        block = emitter.emit(_spec({"id": 1})).blocks[MAPPER_SECTION]
        assert block.startswith(
            "extension GetUserResponseMapper on get_user_response.GetUserResponse {"
        )

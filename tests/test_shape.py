"""
Tests for client shape derivation.

Tests cover:
- Field-level read overrides for unauthorized callers
- Hidden foreign key suppression
- Lifting and deduplication of non-model types
- Determinism
"""

import pytest

from schemagraph import Caller, a, derive_client_shape
from schemagraph.core.errors import FrozenSchemaError


class TestAuthorizationFiltering:
    """Tests for caller-specific shapes."""

    def test_guest_sees_only_public_field(self, todo_graph, guest):
        shape = derive_client_shape(todo_graph, guest)
        todo = shape.models["Todo"]
        assert list(todo.fields) == ["secret"]
        assert todo.operations == ()
        assert todo.create_fields == ()

    def test_owner_sees_model_fields(self, todo_graph, alice):
        shape = derive_client_shape(todo_graph, alice)
        todo = shape.models["Todo"]
        assert list(todo.fields) == ["id", "content", "createdAt", "updatedAt", "owner"]
        assert todo.operations == ("create", "read", "update", "delete")

    def test_writable_fields_exclude_readonly(self, todo_graph, alice):
        todo = derive_client_shape(todo_graph, alice).models["Todo"]
        assert "createdAt" not in todo.create_fields
        assert "content" in todo.create_fields
        assert "content" in todo.update_fields

    def test_model_without_access_is_omitted(self, api_key):
        graph = a.schema({
            "Note": a.model({"body": a.string()}).authorization(lambda allow: [allow.owner()]),
        }).build()
        assert "Note" not in derive_client_shape(graph, api_key).models

    def test_model_without_rules_admits_nobody(self, alice):
        graph = a.schema({"Note": a.model({"body": a.string()})}).build()
        assert derive_client_shape(graph, alice).models == {}
        assert "Note" in derive_client_shape(graph).models

    def test_relationship_to_hidden_model_is_dropped(self, api_key):
        graph = a.schema({
            "Company": a.model({"employees": a.has_many("Employee")}).authorization(
                lambda allow: [allow.public_api_key()]
            ),
            "Employee": a.model({"company": a.belongs_to("Company")}).authorization(
                lambda allow: [allow.owner()]
            ),
        }).build()
        shape = derive_client_shape(graph, api_key)
        assert "Employee" not in shape.models
        assert "employees" not in shape.models["Company"].relationships

    def test_custom_operation_visibility(self, alice, guest):
        graph = a.schema({
            "ping": a.query().returns(a.string()).authorization(
                lambda allow: [allow.authenticated()]
            ),
        }).build()
        assert "ping" in derive_client_shape(graph, alice).custom_operations
        assert "ping" not in derive_client_shape(graph, guest).custom_operations


class TestStructure:
    """Tests for the caller-independent shape."""

    def test_hidden_foreign_keys_suppressed(self):
        graph = a.schema({
            "Company": a.model({"employees": a.has_many("Employee")}),
            "Employee": a.model({"company": a.belongs_to("Company")}),
        }).build()
        shape = derive_client_shape(graph)
        employee = shape.models["Employee"]
        assert "companyId" not in employee.fields
        company = employee.relationships["company"]
        assert company.target == "Company"
        assert not company.many
        assert shape.models["Company"].relationships["employees"].many

    def test_declared_foreign_keys_kept(self, company_schema):
        shape = derive_client_shape(company_schema.build())
        assert "companyId" in shape.models["Employee"].fields

    def test_concrete_field_types(self):
        graph = a.schema({
            "Status": a.enum(["open", "done"]),
            "Todo": a.model({
                "title": a.string().required(),
                "status": a.ref("Status"),
                "tags": a.string().array(),
            }),
        }).build()
        fields = derive_client_shape(graph).models["Todo"].fields
        assert fields["title"].type == "string"
        assert fields["title"].kind == "scalar"
        assert fields["title"].required
        assert fields["status"].type == "Status"
        assert fields["status"].kind == "enum"
        assert fields["tags"].array

    def test_many_to_many_shape(self):
        graph = a.schema({
            "Post": a.model({"tags": a.many_to_many("Tag")}),
            "Tag": a.model({"posts": a.many_to_many("Post")}),
        }).build()
        shape = derive_client_shape(graph)
        tags = shape.models["Post"].relationships["tags"]
        assert tags.many
        assert tags.join_model == "PostTag"
        assert shape.models["PostTag"].identifier == ("postId", "tagId")


class TestNonModelTypes:
    """Tests for lifting enums and custom types."""

    def test_shared_enum_is_listed_once(self):
        graph = a.schema({
            "Status": a.enum(["open", "done"]),
            "Todo": a.model({"status": a.ref("Status")}),
            "Task": a.model({"status": a.ref("Status")}),
        }).build()
        shape = derive_client_shape(graph)
        assert list(shape.enums) == ["Status"]
        assert shape.enums["Status"] == ("open", "done")

    def test_inline_types_lifted_by_field_name(self):
        graph = a.schema({
            "Store": a.model({
                "priority": a.enum(["low", "high"]),
                "location": a.custom_type({"lat": a.float(), "lng": a.float()}),
            }),
        }).build()
        shape = derive_client_shape(graph)
        assert shape.enums["Priority"] == ("low", "high")
        assert list(shape.custom_types["Location"].fields) == ["lat", "lng"]
        assert shape.models["Store"].fields["location"].type == "Location"

    def test_nested_types_lifted_recursively(self):
        graph = a.schema({
            "Address": a.custom_type({
                "street": a.string(),
                "kind": a.enum(["home", "work"]),
            }),
            "User": a.model({"address": a.ref("Address")}),
        }).build()
        shape = derive_client_shape(graph)
        assert "Address" in shape.custom_types
        assert shape.enums["Kind"] == ("home", "work")

    def test_operation_types_lifted(self):
        graph = a.schema({
            "search": a.query().arguments({"mode": a.enum(["fast", "full"])}).returns(a.string()),
        }).build()
        shape = derive_client_shape(graph)
        assert shape.enums["Mode"] == ("fast", "full")
        assert shape.custom_operations["search"].returns.type == "string"


class TestDeterminism:
    """Tests for referential transparency."""

    def test_same_graph_same_shape(self, todo_graph, alice):
        first = derive_client_shape(todo_graph, alice)
        second = derive_client_shape(todo_graph, alice)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_equal_graphs_equal_shapes(self):
        definitions = {
            "Priority": a.enum(["low", "high"]),
            "Todo": a.model({"priority": a.ref("Priority")}),
        }
        first = derive_client_shape(a.schema(definitions).build())
        second = derive_client_shape(a.schema(definitions).build())
        assert first.to_dict() == second.to_dict()

    def test_shape_is_frozen(self, todo_graph):
        shape = derive_client_shape(todo_graph)
        with pytest.raises(FrozenSchemaError):
            shape.models["Todo"].operations = ()

    def test_guest_caller_helper(self):
        assert not Caller.guest().authenticated

"""
Tests for TypeScript rendering of client shapes.
"""

import pytest

from schemagraph import a, derive_client_shape, generate_typescript
from schemagraph.core.shape import FieldShape
from schemagraph.core.typescript_generator import generate_enum_type, map_field_type


@pytest.fixture
def todo_shape():
    graph = a.schema({
        "Todo": a.model({
            "title": a.string().required(),
            "priority": a.enum(["low", "high"]),
            "tags": a.string().array().required(),
            "list": a.belongs_to("TodoList"),
        }),
        "TodoList": a.model({"todos": a.has_many("Todo")}),
    }).build()
    return derive_client_shape(graph)


class TestFieldTypes:
    """Tests for map_field_type."""

    def test_scalars(self):
        assert map_field_type(FieldShape("n", "integer", "scalar", required=True)) == "number"
        assert map_field_type(FieldShape("s", "string", "scalar")) == "string | null"

    def test_arrays(self):
        field = FieldShape("tags", "string", "scalar", required=True, array=True)
        assert map_field_type(field) == "Array<string>"

    def test_named_types(self):
        assert map_field_type(FieldShape("p", "Priority", "enum", required=True)) == "Priority"

    def test_enum_union(self):
        assert generate_enum_type("Priority", ("low", "high")) == "export type Priority = 'low' | 'high'"


class TestGenerateTypescript:
    """Tests for generate_typescript."""

    def test_model_interface(self, todo_shape):
        output = generate_typescript(todo_shape)
        assert "export interface Todo {" in output
        assert "  title: string" in output
        assert "  priority?: Priority | null" in output
        assert "  tags: Array<string>" in output
        assert "  readonly createdAt: string" in output
        assert "  list?: TodoList | null" in output
        assert "  todos?: Todo[]" in output

    def test_hidden_foreign_key_not_rendered(self, todo_shape):
        assert "todoListId" not in generate_typescript(todo_shape)

    def test_inputs(self, todo_shape):
        output = generate_typescript(todo_shape)
        assert "export interface TodoCreateInput {" in output
        assert "export interface TodoUpdateInput {" in output
        create = output.split("export interface TodoCreateInput {")[1].split("}")[0]
        assert "  id?: string" in create
        assert "createdAt" not in create

    def test_names_and_type_map(self, todo_shape):
        output = generate_typescript(todo_shape)
        assert "export type ModelName = 'Todo' | 'TodoList'" in output
        assert "  TodoList: TodoList" in output
        assert "export type Priority = 'low' | 'high'" in output

    def test_output_is_deterministic(self, todo_shape):
        assert generate_typescript(todo_shape) == generate_typescript(todo_shape)

    def test_custom_operations(self):
        graph = a.schema({
            "echo": a.query().arguments({"text": a.string().required()}).returns(a.string()),
        }).build()
        output = generate_typescript(derive_client_shape(graph))
        assert "export interface EchoArguments {" in output
        assert "export type EchoResult = string | null" in output

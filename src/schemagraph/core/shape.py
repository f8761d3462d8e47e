"""
Client shape deriver - projects a SchemaGraph into caller-facing shapes.

The shape is what a transport client sees: concrete field types, typed
relationship references, and every enum and custom type reachable from
them lifted to the top level under its declared or lifted name. Given a
caller, fields, relationships and models the caller cannot read are left
out.

Usage:
    from schemagraph.core.shape import derive_client_shape
    from schemagraph.core.query_types import Caller

    shape = derive_client_shape(graph)
    alice = derive_client_shape(graph, Caller.user("alice"))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .auth import OPERATIONS, field_admits, rule_admits, rules_admit
from .defs import FieldKind
from .frozen import Frozen, FrozenMap
from .graph import ResolvedField, ResolvedModel, ResolvedOperation, SchemaGraph
from .query_types import Caller


@dataclass
class FieldShape(Frozen):
    """Client view of a field. `type` is a scalar kind or a type name."""
    name: str
    type: str
    kind: str  # scalar | enum | customType | model
    required: bool = False
    array: bool = False
    readonly: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "kind": self.kind,
            "required": self.required,
            "array": self.array,
            "readonly": self.readonly,
        }


@dataclass
class RelationshipShape(Frozen):
    name: str
    target: str
    kind: str
    many: bool
    join_model: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"target": self.target, "kind": self.kind, "many": self.many}
        if self.join_model:
            result["join_model"] = self.join_model
        return result


@dataclass
class ModelShape(Frozen):
    """
    Client view of a model.

    `operations` lists the model-level operations the caller may perform;
    `create_fields` / `update_fields` the fields it may write.
    """
    name: str
    identifier: tuple[str, ...]
    fields: FrozenMap[str, FieldShape]
    relationships: FrozenMap[str, RelationshipShape]
    operations: tuple[str, ...] = ()
    create_fields: tuple[str, ...] = ()
    update_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": list(self.identifier),
            "fields": {n: f.to_dict() for n, f in self.fields.items()},
            "relationships": {n: r.to_dict() for n, r in self.relationships.items()},
            "operations": list(self.operations),
            "create_fields": list(self.create_fields),
            "update_fields": list(self.update_fields),
        }


@dataclass
class CustomTypeShape(Frozen):
    name: str
    fields: FrozenMap[str, FieldShape]

    def to_dict(self) -> dict[str, Any]:
        return {"fields": {n: f.to_dict() for n, f in self.fields.items()}}


@dataclass
class OperationShape(Frozen):
    name: str
    kind: str
    arguments: FrozenMap[str, FieldShape]
    returns: Optional[FieldShape] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "arguments": {n: f.to_dict() for n, f in self.arguments.items()},
            "returns": self.returns.to_dict() if self.returns else None,
        }


@dataclass
class ClientShape(Frozen):
    models: FrozenMap[str, ModelShape]
    enums: FrozenMap[str, tuple[str, ...]]
    custom_types: FrozenMap[str, CustomTypeShape]
    custom_operations: FrozenMap[str, OperationShape]

    def to_dict(self) -> dict[str, Any]:
        return {
            "models": {n: m.to_dict() for n, m in self.models.items()},
            "enums": {n: list(v) for n, v in self.enums.items()},
            "custom_types": {n: t.to_dict() for n, t in self.custom_types.items()},
            "custom_operations": {n: o.to_dict() for n, o in self.custom_operations.items()},
        }


def field_shape(field: ResolvedField) -> FieldShape:
    if field.base_type in (FieldKind.ENUM, FieldKind.CUSTOM_TYPE, FieldKind.MODEL):
        type_name, kind = field.type_name or "", field.base_type.value
    else:
        type_name, kind = field.base_type.value, "scalar"
    return FieldShape(
        name=field.name,
        type=type_name,
        kind=kind,
        required=field.is_required,
        array=field.is_array,
        readonly=field.readonly,
    )


class ClientShapeDeriver:
    """
    Builds a ClientShape for one graph and an optional caller.

    Without a caller every model, field and operation is included.
    """

    def __init__(self, graph: SchemaGraph, caller: Optional[Caller] = None):
        self.graph = graph
        self.caller = caller
        self._enums: dict[str, tuple[str, ...]] = {}
        self._custom_types: dict[str, CustomTypeShape] = {}

    def derive(self) -> ClientShape:
        for name, values in self.graph.enums.items():
            self._enums[name] = values
        for name, custom_type in self.graph.custom_types.items():
            self._lift_custom_type(name, custom_type.fields)

        readable = {name: self._readable_fields(model) for name, model in self.graph.models.items()}
        allowed = {name: self._allowed_operations(model) for name, model in self.graph.models.items()}
        visible = {name for name in self.graph.models if readable[name] or allowed[name]}

        models: dict[str, ModelShape] = {}
        for name, model in self.graph.models.items():
            if name not in visible:
                continue
            for field in readable[name]:
                self._collect(field)
            models[name] = self._model_shape(model, readable[name], allowed[name], visible)

        operations: dict[str, OperationShape] = {}
        for name, operation in self.graph.custom_operations.items():
            if self._operation_visible(operation):
                operations[name] = self._operation_shape(operation)

        return ClientShape(
            models=FrozenMap(models),
            enums=FrozenMap(self._enums),
            custom_types=FrozenMap(self._custom_types),
            custom_operations=FrozenMap(operations),
        )

    # --- access ---

    def _readable_fields(self, model: ResolvedModel) -> list[ResolvedField]:
        fields = model.visible_fields
        if self.caller is None:
            return fields
        return [
            f for f in fields
            if field_admits(model.auth_rules, f.auth_rules, self.caller, "read")
        ]

    def _allowed_operations(self, model: ResolvedModel) -> tuple[str, ...]:
        if self.caller is None:
            return OPERATIONS
        return tuple(op for op in OPERATIONS if rules_admit(model.auth_rules, self.caller, op))

    def _writable_fields(self, model: ResolvedModel, operation: str) -> tuple[str, ...]:
        names = []
        for field in model.visible_fields:
            if field.readonly:
                continue
            if self.caller is None or field_admits(
                model.auth_rules, field.auth_rules, self.caller, operation
            ):
                names.append(field.name)
        return tuple(names)

    def _operation_visible(self, operation: ResolvedOperation) -> bool:
        if self.caller is None:
            return True
        return any(
            rule_admits(rule, self.caller, op)
            for rule in operation.auth_rules
            for op in rule.operations
        )

    # --- lifting ---

    def _collect(self, field: ResolvedField) -> None:
        name = field.type_name
        if field.base_type == FieldKind.ENUM and name not in self._enums:
            self._enums[name] = field.enum_values or ()
        elif field.base_type == FieldKind.CUSTOM_TYPE and name not in self._custom_types:
            if field.lifted:
                self._lift_custom_type(name, field.inline_fields or FrozenMap())
            else:
                self._lift_custom_type(name, self.graph.custom_types[name].fields)

    def _lift_custom_type(self, name: str, fields: FrozenMap[str, ResolvedField]) -> None:
        if name in self._custom_types:
            return
        self._custom_types[name] = CustomTypeShape(
            name, FrozenMap({n: field_shape(f) for n, f in fields.items()})
        )
        for nested in fields.values():
            self._collect(nested)

    # --- shapes ---

    def _model_shape(
        self,
        model: ResolvedModel,
        fields: list[ResolvedField],
        operations: tuple[str, ...],
        visible: set[str],
    ) -> ModelShape:
        relationships = {
            name: RelationshipShape(
                name=name,
                target=rel.target,
                kind=rel.kind.value,
                many=rel.is_many,
                join_model=rel.join_model,
            )
            for name, rel in model.relationships.items()
            if rel.target in visible
        }
        return ModelShape(
            name=model.name,
            identifier=model.identifier,
            fields=FrozenMap({f.name: field_shape(f) for f in fields}),
            relationships=FrozenMap(relationships),
            operations=operations,
            create_fields=self._writable_fields(model, "create") if "create" in operations else (),
            update_fields=self._writable_fields(model, "update") if "update" in operations else (),
        )

    def _operation_shape(self, operation: ResolvedOperation) -> OperationShape:
        for argument in operation.arguments.values():
            self._collect(argument)
        if operation.returns is not None:
            self._collect(operation.returns)
        return OperationShape(
            name=operation.name,
            kind=operation.kind.value,
            arguments=FrozenMap({n: field_shape(f) for n, f in operation.arguments.items()}),
            returns=field_shape(operation.returns) if operation.returns else None,
        )


def derive_client_shape(graph: SchemaGraph, caller: Optional[Caller] = None) -> ClientShape:
    """
    Derive the client shape of `graph`, optionally restricted to `caller`.

    Pure and deterministic: equal graphs and callers give equal shapes.
    """
    return ClientShapeDeriver(graph, caller).derive()

"""
Canonical schema graph - the validated, immutable output of a build.

The backend generator consumes SchemaGraph (or its to_dict() form); the
client shape deriver projects it into caller-facing shapes. Every object
reachable from a SchemaGraph raises FrozenSchemaError on mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import SchemaGraphConfig
from .auth import AuthRule
from .defs import Definition, FieldKind, OperationKind, RelationKind
from .frozen import Frozen, FrozenMap, thaw_value
from .utils import fingerprint as compute_fingerprint


@dataclass
class SchemaSource(Frozen):
    """Raw definitions of one authored schema, its schema-wide rules and build config."""
    definitions: FrozenMap[str, Definition]
    auth_rules: tuple[AuthRule, ...] = ()
    config: Optional[SchemaGraphConfig] = None


@dataclass
class ResolvedField(Frozen):
    """
    Field with every symbolic reference resolved.

    `type_name` names the enum, custom type or model an ENUM, CUSTOM_TYPE or
    MODEL field points at (declared or lifted from an inline definition).
    `hidden` marks synthesized foreign keys that clients never see.
    """
    name: str
    base_type: FieldKind
    is_required: bool = False
    is_array: bool = False
    has_default: bool = False
    default_value: Any = None
    auth_rules: tuple[AuthRule, ...] = ()
    type_name: Optional[str] = None
    enum_values: Optional[tuple[str, ...]] = None
    inline_fields: Optional[FrozenMap[str, ResolvedField]] = None
    implicit: bool = False
    hidden: bool = False
    readonly: bool = False
    lifted: bool = False  # type_name was derived from an inline definition

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.base_type.value,
            "required": self.is_required,
            "array": self.is_array,
        }
        if self.type_name:
            result["type_name"] = self.type_name
        if self.enum_values is not None:
            result["enum_values"] = list(self.enum_values)
        if self.inline_fields is not None:
            result["fields"] = {n: f.to_dict() for n, f in self.inline_fields.items()}
        if self.has_default:
            result["default"] = thaw_value(self.default_value)
        if self.auth_rules:
            result["auth"] = [r.to_dict() for r in self.auth_rules]
        for flag in ("implicit", "hidden", "readonly", "lifted"):
            if getattr(self, flag):
                result[flag] = True
        return result


@dataclass
class ResolvedRelationship(Frozen):
    """
    Relationship with concrete foreign keys.

    `references` are fields on the declaring model (belongsTo), on the
    target model (hasOne/hasMany) or on the join model (manyToMany, the
    declaring side's keys).
    """
    name: str
    kind: RelationKind
    target: str
    references: tuple[str, ...]
    inverse: Optional[str] = None
    join_model: Optional[str] = None

    @property
    def is_many(self) -> bool:
        return self.kind in (RelationKind.HAS_MANY, RelationKind.MANY_TO_MANY)

    @property
    def owns_foreign_key(self) -> bool:
        return self.kind == RelationKind.BELONGS_TO

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "target": self.target,
            "references": list(self.references),
        }
        if self.inverse:
            result["inverse"] = self.inverse
        if self.join_model:
            result["join_model"] = self.join_model
        return result


@dataclass
class ResolvedModel(Frozen):
    """Model with resolved fields, identifier, relationships and rules."""
    name: str
    fields: FrozenMap[str, ResolvedField]
    identifier: tuple[str, ...]
    relationships: FrozenMap[str, ResolvedRelationship]
    auth_rules: tuple[AuthRule, ...] = ()
    merged_auth_rules: tuple[AuthRule, ...] = ()
    implicit: bool = False

    @property
    def visible_fields(self) -> list[ResolvedField]:
        return [f for f in self.fields.values() if not f.hidden]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "identifier": list(self.identifier),
            "fields": {n: f.to_dict() for n, f in self.fields.items()},
            "relationships": {n: r.to_dict() for n, r in self.relationships.items()},
            "auth": [r.to_dict() for r in self.auth_rules],
        }
        if self.implicit:
            result["implicit"] = True
        return result


@dataclass
class ResolvedCustomType(Frozen):
    name: str
    fields: FrozenMap[str, ResolvedField]

    def to_dict(self) -> dict[str, Any]:
        return {"fields": {n: f.to_dict() for n, f in self.fields.items()}}


@dataclass
class ResolvedOperation(Frozen):
    name: str
    kind: OperationKind
    arguments: FrozenMap[str, ResolvedField]
    returns: Optional[ResolvedField] = None
    auth_rules: tuple[AuthRule, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "arguments": {n: f.to_dict() for n, f in self.arguments.items()},
            "returns": self.returns.to_dict() if self.returns else None,
            "auth": [r.to_dict() for r in self.auth_rules],
        }


@dataclass
class SchemaGraph(Frozen):
    """
    Complete, validated schema graph.

    `definitions` keeps the authored sources so a combiner can re-resolve
    references against a wider namespace.
    """
    models: FrozenMap[str, ResolvedModel]
    enums: FrozenMap[str, tuple[str, ...]]
    custom_types: FrozenMap[str, ResolvedCustomType]
    custom_operations: FrozenMap[str, ResolvedOperation]
    global_auth_rules: tuple[AuthRule, ...] = ()
    definitions: tuple[SchemaSource, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_fingerprint", compute_fingerprint(self.to_dict()))
        super().__post_init__()

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical dict form."""
        return self._fingerprint

    def get_model(self, name: str) -> Optional[ResolvedModel]:
        return self.models.get(name)

    def to_dict(self) -> dict[str, Any]:
        """Canonical, JSON-ready representation for backend generators."""
        return {
            "models": {n: m.to_dict() for n, m in self.models.items()},
            "enums": {n: list(v) for n, v in self.enums.items()},
            "custom_types": {n: t.to_dict() for n, t in self.custom_types.items()},
            "custom_operations": {n: o.to_dict() for n, o in self.custom_operations.items()},
            "auth": [r.to_dict() for r in self.global_auth_rules],
        }

"""
Authoring namespace for schemas.

Usage:
    from schemagraph import a

    todo_schema = a.schema({
        "Priority": a.enum(["low", "high"]),
        "Todo": a.model({
            "content": a.string().required(),
            "priority": a.ref("Priority"),
        }).authorization(lambda allow: [allow.owner()]),
    })
    graph = todo_schema.build()
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .auth import allow
from .combiner import combine
from .defs import (
    CustomOperationDef,
    FieldDef,
    FieldKind,
    Member,
    ModelDef,
    OperationKind,
    RelationDef,
    RelationKind,
)
from .registry import SchemaBuilder, schema


def _references(references: Optional[Iterable[str] | str]) -> Optional[tuple[str, ...]]:
    if references is None:
        return None
    if isinstance(references, str):
        return (references,)
    return tuple(references)


class SchemaDSL:
    """Factory namespace mirroring the declarative schema vocabulary."""

    allow = allow

    # --- scalar fields ---

    def id(self) -> FieldDef:
        return FieldDef(FieldKind.ID)

    def string(self) -> FieldDef:
        return FieldDef(FieldKind.STRING)

    def integer(self) -> FieldDef:
        return FieldDef(FieldKind.INTEGER)

    def float(self) -> FieldDef:
        return FieldDef(FieldKind.FLOAT)

    def boolean(self) -> FieldDef:
        return FieldDef(FieldKind.BOOLEAN)

    def date(self) -> FieldDef:
        return FieldDef(FieldKind.DATE)

    def time(self) -> FieldDef:
        return FieldDef(FieldKind.TIME)

    def datetime(self) -> FieldDef:
        return FieldDef(FieldKind.DATETIME)

    def timestamp(self) -> FieldDef:
        return FieldDef(FieldKind.TIMESTAMP)

    def email(self) -> FieldDef:
        return FieldDef(FieldKind.EMAIL)

    def json(self) -> FieldDef:
        return FieldDef(FieldKind.JSON)

    def phone(self) -> FieldDef:
        return FieldDef(FieldKind.PHONE)

    def url(self) -> FieldDef:
        return FieldDef(FieldKind.URL)

    def ip_address(self) -> FieldDef:
        return FieldDef(FieldKind.IP_ADDRESS)

    # --- non-model types ---

    def enum(self, values: Iterable[str]) -> FieldDef:
        """
        Enumeration.

        Placed at the top level of a schema it declares a named enum;
        placed on a model or custom type it is an inline enum field.
        """
        return FieldDef(FieldKind.ENUM, enum_values=tuple(values))

    def custom_type(self, fields: Mapping[str, FieldDef]) -> FieldDef:
        """Custom type; top-level declaration or inline field like enum()."""
        return FieldDef(FieldKind.CUSTOM_TYPE, members=tuple(fields.items()))

    def ref(self, name: str) -> FieldDef:
        """Symbolic reference to a named enum or custom type."""
        return FieldDef(FieldKind.REF, ref_name=name)

    # --- models and relationships ---

    def model(self, members: Mapping[str, Member]) -> ModelDef:
        return ModelDef(members=tuple(members.items()))

    def has_one(self, target: str, references: Optional[Iterable[str] | str] = None) -> RelationDef:
        return RelationDef(RelationKind.HAS_ONE, target, _references(references))

    def has_many(self, target: str, references: Optional[Iterable[str] | str] = None) -> RelationDef:
        return RelationDef(RelationKind.HAS_MANY, target, _references(references))

    def belongs_to(self, target: str, references: Optional[Iterable[str] | str] = None) -> RelationDef:
        return RelationDef(RelationKind.BELONGS_TO, target, _references(references))

    def many_to_many(self, target: str, relation_name: Optional[str] = None) -> RelationDef:
        return RelationDef(RelationKind.MANY_TO_MANY, target, relation_name=relation_name)

    # --- custom operations ---

    def query(self) -> CustomOperationDef:
        return CustomOperationDef(OperationKind.QUERY)

    def mutation(self) -> CustomOperationDef:
        return CustomOperationDef(OperationKind.MUTATION)

    def subscription(self) -> CustomOperationDef:
        return CustomOperationDef(OperationKind.SUBSCRIPTION)

    # --- schemas ---

    def schema(self, definitions: Mapping[str, Any], config: Any = None) -> SchemaBuilder:
        return schema(definitions, config=config)

    def combine(self, schemas: Iterable[Any], config: Any = None) -> Any:
        return combine(schemas, config=config)


a = SchemaDSL()

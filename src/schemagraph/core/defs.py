"""
Core definitions for the schemagraph system.

These describe the authoring-side structure of a schema: fields,
relationships, models, enums, custom types and custom operations.
Every definition is immutable; modifiers return a new value.
"""

from __future__ import annotations

import datetime as dt
import ipaddress
import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlparse

from .auth import AuthRule, RuleSpec, normalize_rules
from .frozen import Frozen


class FieldKind(str, Enum):
    """Supported field base types."""

    ID = "id"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    EMAIL = "email"
    JSON = "json"
    PHONE = "phone"
    URL = "url"
    IP_ADDRESS = "ipAddress"
    ENUM = "enum"
    CUSTOM_TYPE = "customType"
    REF = "ref"
    MODEL = "model"  # only in custom operation signatures

    @property
    def is_scalar(self) -> bool:
        return self not in (FieldKind.ENUM, FieldKind.CUSTOM_TYPE, FieldKind.REF, FieldKind.MODEL)


class RelationKind(str, Enum):
    """Relationship kinds."""

    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    MANY_TO_MANY = "manyToMany"


class OperationKind(str, Enum):
    """Custom operation kinds."""

    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclass(eq=True)
class FieldDef(Frozen):
    """
    Definition of a field on a model, custom type or operation signature.

    `ref_name` holds the symbolic name of a REF field, `enum_values` the
    values of an inline enum and `members` the fields of an inline custom
    type.
    """
    base_type: FieldKind
    is_required: bool = False
    is_array: bool = False
    has_default: bool = False
    default_value: Any = None
    auth_rules: tuple[AuthRule, ...] = ()
    ref_name: Optional[str] = None
    enum_values: Optional[tuple[str, ...]] = None
    members: Optional[tuple[tuple[str, FieldDef], ...]] = None
    readonly: bool = False

    def required(self) -> FieldDef:
        return replace(self, is_required=True)

    def array(self) -> FieldDef:
        return replace(self, is_array=True)

    def default(self, value: Any = None) -> FieldDef:
        return replace(self, has_default=True, default_value=value)

    def authorization(self, rules: RuleSpec) -> FieldDef:
        """Append authorization rules to this field."""
        return replace(self, auth_rules=self.auth_rules + normalize_rules(rules))

    @property
    def inline_fields(self) -> dict[str, FieldDef]:
        return dict(self.members or ())


@dataclass(eq=True)
class RelationDef(Frozen):
    """
    Definition of a relationship to another model.

    `references` names the foreign key field(s): on the declaring model for
    belongsTo, on the target model for hasOne/hasMany. `None` means the
    default name is synthesized at build time.
    """
    kind: RelationKind
    target: str
    references: Optional[tuple[str, ...]] = None
    relation_name: Optional[str] = None

    @property
    def is_many(self) -> bool:
        return self.kind in (RelationKind.HAS_MANY, RelationKind.MANY_TO_MANY)


Member = Union[FieldDef, RelationDef]


@dataclass(eq=True)
class ModelDef(Frozen):
    """Definition of a model: fields, relationships, identifier and rules."""
    members: tuple[tuple[str, Member], ...] = ()
    identifier_fields: Optional[tuple[str, ...]] = None
    auth_rules: tuple[AuthRule, ...] = ()
    timestamps_enabled: Optional[bool] = None

    @property
    def fields(self) -> dict[str, FieldDef]:
        return {n: m for n, m in self.members if isinstance(m, FieldDef)}

    @property
    def relationships(self) -> dict[str, RelationDef]:
        return {n: m for n, m in self.members if isinstance(m, RelationDef)}

    def identifier(self, names: Iterable[str]) -> ModelDef:
        """Set the (possibly composite) identifier; checked at build time."""
        return replace(self, identifier_fields=tuple(names))

    def authorization(self, rules: RuleSpec) -> ModelDef:
        """Append model-level authorization rules."""
        return replace(self, auth_rules=self.auth_rules + normalize_rules(rules))

    def timestamps(self, enabled: bool = True) -> ModelDef:
        return replace(self, timestamps_enabled=enabled)


@dataclass(eq=True)
class EnumDef(Frozen):
    """Named enumeration."""
    values: tuple[str, ...]


@dataclass(eq=True)
class CustomTypeDef(Frozen):
    """Named non-model structured type."""
    members: tuple[tuple[str, FieldDef], ...] = ()

    @property
    def fields(self) -> dict[str, FieldDef]:
        return dict(self.members)


@dataclass(eq=True)
class CustomOperationDef(Frozen):
    """Custom query, mutation or subscription signature."""
    kind: OperationKind
    argument_members: tuple[tuple[str, FieldDef], ...] = ()
    return_type: Optional[FieldDef] = None
    auth_rules: tuple[AuthRule, ...] = ()

    @property
    def argument_fields(self) -> dict[str, FieldDef]:
        return dict(self.argument_members)

    def arguments(self, arguments: Mapping[str, FieldDef]) -> CustomOperationDef:
        return replace(self, argument_members=tuple(arguments.items()))

    def returns(self, field: FieldDef) -> CustomOperationDef:
        return replace(self, return_type=field)

    def authorization(self, rules: RuleSpec) -> CustomOperationDef:
        return replace(self, auth_rules=self.auth_rules + normalize_rules(rules))


Definition = Union[ModelDef, EnumDef, CustomTypeDef, CustomOperationDef]


# =============================================================================
# Default value checks
# =============================================================================

_STRING_KINDS = {FieldKind.ID, FieldKind.STRING, FieldKind.PHONE}


def _scalar_error(kind: FieldKind, value: Any, enum_values: Optional[tuple[str, ...]]) -> Optional[str]:
    """Return why `value` is not assignable to `kind`, or None."""
    if kind in _STRING_KINDS:
        return None if isinstance(value, str) else "expected a string"
    if kind == FieldKind.INTEGER:
        ok = isinstance(value, int) and not isinstance(value, bool)
        return None if ok else "expected an integer"
    if kind == FieldKind.FLOAT:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        return None if ok else "expected a number"
    if kind == FieldKind.BOOLEAN:
        return None if isinstance(value, bool) else "expected a boolean"
    if kind == FieldKind.TIMESTAMP:
        ok = isinstance(value, int) and not isinstance(value, bool)
        return None if ok else "expected an integer timestamp"
    if kind == FieldKind.ENUM:
        if enum_values is not None and value not in enum_values:
            return f"expected one of {list(enum_values)}"
        return None
    if kind == FieldKind.JSON:
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            return "expected a JSON-serializable value"
        return None
    if kind == FieldKind.CUSTOM_TYPE:
        return None if isinstance(value, dict) else "expected a mapping"
    if not isinstance(value, str):
        return "expected a string"
    try:
        if kind == FieldKind.DATE:
            dt.date.fromisoformat(value)
        elif kind == FieldKind.TIME:
            dt.time.fromisoformat(value)
        elif kind == FieldKind.DATETIME:
            dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        elif kind == FieldKind.IP_ADDRESS:
            ipaddress.ip_address(value)
    except ValueError:
        return f"expected an ISO/standard {kind.value} string"
    if kind == FieldKind.EMAIL and "@" not in value:
        return "expected an email address"
    if kind == FieldKind.URL and not urlparse(value).scheme:
        return "expected an absolute URL"
    return None


def default_value_error(
    kind: FieldKind,
    value: Any,
    is_array: bool,
    enum_values: Optional[tuple[str, ...]] = None,
) -> Optional[str]:
    """Check a default value against a field type, honouring array fields."""
    if value is None:
        return None
    if is_array:
        if not isinstance(value, (list, tuple)):
            return "expected a list for an array field"
        for item in value:
            error = _scalar_error(kind, item, enum_values)
            if error:
                return f"item {item!r}: {error}"
        return None
    return _scalar_error(kind, value, enum_values)

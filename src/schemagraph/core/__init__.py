"""
Core module - definitions, resolution and derived shapes.
"""

from __future__ import annotations

from .auth import (
    OPERATIONS,
    PROVIDERS,
    Allow,
    AuthRule,
    PrincipalKind,
    allow,
    field_admits,
    rule_admits,
    rules_admit,
)
from .combiner import combine
from .compiler import GraphCompiler
from .defs import (
    CustomOperationDef,
    CustomTypeDef,
    EnumDef,
    FieldDef,
    FieldKind,
    ModelDef,
    OperationKind,
    RelationDef,
    RelationKind,
)
from .dsl import SchemaDSL, a
from .errors import (
    ConfigurationError,
    DanglingRelationshipError,
    FrozenSchemaError,
    SchemaCombineCollisionError,
    SchemaGraphError,
    UnresolvedReferenceError,
)
from .frozen import FrozenMap
from .graph import (
    ResolvedCustomType,
    ResolvedField,
    ResolvedModel,
    ResolvedOperation,
    ResolvedRelationship,
    SchemaGraph,
    SchemaSource,
)
from .query_types import AccessDecision, AccessQuery, AccessScope, Caller
from .registry import SchemaBuilder, schema
from .shape import (
    ClientShape,
    CustomTypeShape,
    FieldShape,
    ModelShape,
    OperationShape,
    RelationshipShape,
    derive_client_shape,
)
from .typescript_generator import generate_typescript

__all__ = [
    # Definitions
    "FieldDef",
    "FieldKind",
    "RelationDef",
    "RelationKind",
    "ModelDef",
    "EnumDef",
    "CustomTypeDef",
    "CustomOperationDef",
    "OperationKind",
    # Authorization
    "OPERATIONS",
    "PROVIDERS",
    "Allow",
    "AuthRule",
    "PrincipalKind",
    "allow",
    "rule_admits",
    "rules_admit",
    "field_admits",
    # Errors
    "SchemaGraphError",
    "ConfigurationError",
    "UnresolvedReferenceError",
    "DanglingRelationshipError",
    "SchemaCombineCollisionError",
    "FrozenSchemaError",
    # Building
    "SchemaDSL",
    "a",
    "SchemaBuilder",
    "schema",
    "combine",
    "GraphCompiler",
    # Graph
    "FrozenMap",
    "SchemaSource",
    "SchemaGraph",
    "ResolvedField",
    "ResolvedRelationship",
    "ResolvedModel",
    "ResolvedCustomType",
    "ResolvedOperation",
    # Shapes
    "ClientShape",
    "ModelShape",
    "FieldShape",
    "RelationshipShape",
    "CustomTypeShape",
    "OperationShape",
    "derive_client_shape",
    "generate_typescript",
    # Capability queries
    "Caller",
    "AccessQuery",
    "AccessScope",
    "AccessDecision",
]

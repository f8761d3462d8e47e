"""
Schemagraph - declarative data schemas resolved into a canonical graph.

Describes models, fields, relationships, enums and authorization rules as
one declarative value and derives:
- a validated, immutable SchemaGraph for backend generators
- a client shape reflecting what a given caller may see and mutate

Usage:
    from schemagraph import a, derive_client_shape

    graph = a.schema({
        "Company": a.model({
            "name": a.string().required(),
            "employees": a.has_many("Employee"),
        }),
        "Employee": a.model({
            "name": a.string(),
            "company": a.belongs_to("Company"),
        }),
    }).authorization(lambda allow: [allow.authenticated()]).build()

    shape = derive_client_shape(graph)
"""

from __future__ import annotations

from .config import SchemaGraphConfig, load_config
from .core import (
    AccessDecision,
    AccessQuery,
    AccessScope,
    AuthRule,
    Caller,
    ClientShape,
    ConfigurationError,
    DanglingRelationshipError,
    FrozenSchemaError,
    GraphCompiler,
    SchemaBuilder,
    SchemaCombineCollisionError,
    SchemaGraph,
    SchemaGraphError,
    UnresolvedReferenceError,
    a,
    allow,
    combine,
    derive_client_shape,
    generate_typescript,
    schema,
)
from .iam import AccessService, access_service

__version__ = "0.1.0"

__all__ = [
    # Authoring
    "a",
    "allow",
    "schema",
    "combine",
    "SchemaBuilder",
    "AuthRule",
    # Graph
    "GraphCompiler",
    "SchemaGraph",
    "ClientShape",
    "derive_client_shape",
    "generate_typescript",
    # Access
    "Caller",
    "AccessQuery",
    "AccessScope",
    "AccessDecision",
    "AccessService",
    "access_service",
    # Config
    "SchemaGraphConfig",
    "load_config",
    # Errors
    "SchemaGraphError",
    "ConfigurationError",
    "UnresolvedReferenceError",
    "DanglingRelationshipError",
    "SchemaCombineCollisionError",
    "FrozenSchemaError",
]

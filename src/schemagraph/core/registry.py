"""
Schema registry - collects authored definitions and builds the graph.

A SchemaBuilder is mutable until its first successful build(); afterwards
it is frozen and build() returns the same SchemaGraph every time.

Usage:
    from schemagraph.core.registry import schema
    from schemagraph import a

    builder = schema({
        "Todo": a.model({"content": a.string()}),
    })
    builder.authorization(lambda allow: [allow.public_api_key()])

    graph = builder.build()
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..config import SchemaGraphConfig
from .auth import AuthRule, RuleSpec, normalize_rules
from .compiler import GraphCompiler
from .defs import CustomTypeDef, EnumDef, FieldDef, FieldKind
from .errors import ConfigurationError, FrozenSchemaError
from .frozen import FrozenMap
from .graph import SchemaGraph, SchemaSource

logger = logging.getLogger(__name__)


def _declaration(definition: Any) -> Any:
    """Top-level enum()/custom_type() fields declare named types."""
    if isinstance(definition, FieldDef):
        if definition.base_type == FieldKind.ENUM:
            return EnumDef(tuple(definition.enum_values or ()))
        if definition.base_type == FieldKind.CUSTOM_TYPE:
            return CustomTypeDef(tuple(definition.members or ()))
    return definition


class SchemaBuilder:
    """
    Named collection of model, enum, custom type and operation definitions.

    Two-phase lifecycle:
    1. Collect definitions (constructor, add(), authorization())
    2. build() resolves everything into a frozen SchemaGraph
    """

    def __init__(
        self,
        definitions: Optional[Mapping[str, Any]] = None,
        config: Optional[SchemaGraphConfig] = None,
    ):
        self.config = config or SchemaGraphConfig()
        self._definitions: dict[str, Any] = {}
        self._auth_rules: tuple[AuthRule, ...] = ()
        self._graph: Optional[SchemaGraph] = None

        for name, definition in (definitions or {}).items():
            self.add(name, definition)

    @property
    def frozen(self) -> bool:
        return self._graph is not None

    @property
    def definitions(self) -> FrozenMap[str, Any]:
        return FrozenMap(self._definitions)

    @property
    def auth_rules(self) -> tuple[AuthRule, ...]:
        return self._auth_rules

    def _ensure_mutable(self) -> None:
        if self.frozen:
            raise FrozenSchemaError("Schema has been built and can no longer be modified")

    def add(self, name: str, definition: Any) -> SchemaBuilder:
        """Register a top-level definition under `name`."""
        self._ensure_mutable()
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Definition name must be a non-empty string, got {name!r}")
        if name in self._definitions:
            raise ConfigurationError(f"'{name}' is already defined", model=name)

        self._definitions[name] = _declaration(definition)
        return self

    def authorization(self, rules: RuleSpec) -> SchemaBuilder:
        """Append schema-wide rules applied to every model of this schema."""
        self._ensure_mutable()
        self._auth_rules = self._auth_rules + normalize_rules(rules)
        return self

    def to_source(self) -> SchemaSource:
        """Snapshot of the authored definitions, as consumed by the compiler."""
        return SchemaSource(FrozenMap(self._definitions), self._auth_rules, self.config)

    def build(self) -> SchemaGraph:
        """
        Resolve and freeze the schema.

        Idempotent: later calls return the graph of the first successful
        build. A failed build leaves the builder mutable.
        """
        if self._graph is not None:
            return self._graph

        logger.info(f"Building schema with {len(self._definitions)} definitions")
        graph = GraphCompiler(self.config).compile([self.to_source()])
        self._graph = graph
        return graph


def schema(
    definitions: Mapping[str, Any],
    config: Optional[SchemaGraphConfig] = None,
) -> SchemaBuilder:
    """Create a SchemaBuilder from a name -> definition mapping."""
    return SchemaBuilder(definitions, config=config)

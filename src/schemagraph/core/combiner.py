"""
Schema combiner - merges independently authored schemas into one graph.

References may cross schema boundaries: the union of the raw definitions
is compiled afresh, so a model in one schema can reference an enum or a
model declared in another.

Usage:
    from schemagraph import a

    graph = a.combine([blog_schema, users_schema])
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from ..config import SchemaGraphConfig
from .compiler import GraphCompiler
from .defs import CustomOperationDef, CustomTypeDef, EnumDef, ModelDef
from .errors import ConfigurationError, SchemaCombineCollisionError
from .graph import SchemaGraph, SchemaSource
from .registry import SchemaBuilder

logger = logging.getLogger(__name__)


def _kind_of(definition: object) -> str:
    if isinstance(definition, ModelDef):
        return "model"
    if isinstance(definition, EnumDef):
        return "enum"
    if isinstance(definition, CustomTypeDef):
        return "custom type"
    if isinstance(definition, CustomOperationDef):
        return "custom operation"
    return type(definition).__name__


def _sources_of(item: Union[SchemaBuilder, SchemaGraph]) -> tuple[SchemaSource, ...]:
    if isinstance(item, SchemaBuilder):
        return (item.to_source(),)
    if isinstance(item, SchemaGraph):
        return item.definitions
    raise ConfigurationError(
        f"Cannot combine {type(item).__name__}; expected a schema or a built schema graph"
    )


def _build_config(sources: list[SchemaSource], config: Optional[SchemaGraphConfig]) -> SchemaGraphConfig:
    """The one config every source was authored under."""
    chosen = config
    for source in sources:
        if source.config is None:
            continue
        if chosen is None:
            chosen = source.config
        elif source.config != chosen:
            raise ConfigurationError(
                f"Cannot combine schemas built with different configs: {chosen.to_dict()} "
                f"vs {source.config.to_dict()}",
                details={"configs": [chosen.to_dict(), source.config.to_dict()]},
            )
    return chosen or SchemaGraphConfig()


def combine(
    schemas: Iterable[Union[SchemaBuilder, SchemaGraph]],
    config: Optional[SchemaGraphConfig] = None,
) -> SchemaGraph:
    """
    Combine schemas into one graph.

    Declared names must be disjoint across all inputs. Each schema's
    schema-wide rules apply to its own models only. The inputs are left
    untouched: builders stay mutable. All inputs must share one build
    config, which `config` may name explicitly.

    Raises:
        SchemaCombineCollisionError: two inputs declare the same name
        ConfigurationError: inputs were authored under different configs
    """
    sources: list[SchemaSource] = []
    for item in schemas:
        sources.extend(_sources_of(item))

    seen: dict[str, str] = {}
    collisions: list[SchemaCombineCollisionError] = []
    for source in sources:
        for name, definition in source.definitions.items():
            kind = _kind_of(definition)
            if name in seen:
                collisions.append(SchemaCombineCollisionError(name, seen[name], kind))
            else:
                seen[name] = kind

    if collisions:
        first = collisions[0]
        first.errors = list(collisions)
        raise first

    logger.debug(f"Combining {len(sources)} schema sources with {len(seen)} definitions")
    graph = GraphCompiler(_build_config(sources, config)).compile(sources)
    logger.info(f"Combined {len(sources)} schemas into {graph.fingerprint}")
    return graph

"""
Graph compiler - resolves authored schema sources into a SchemaGraph.

Validates the schema and produces the frozen, canonical graph.

Usage:
    from schemagraph.core.compiler import GraphCompiler

    compiler = GraphCompiler()
    graph = compiler.compile([builder.to_source()])
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Optional

from ..config import SchemaGraphConfig
from .auth import OPERATIONS, PROVIDERS, AuthRule, PrincipalKind
from .defs import (
    CustomOperationDef,
    CustomTypeDef,
    EnumDef,
    FieldDef,
    FieldKind,
    ModelDef,
    RelationDef,
    RelationKind,
    default_value_error,
)
from .errors import (
    ConfigurationError,
    DanglingRelationshipError,
    SchemaGraphError,
    UnresolvedReferenceError,
)
from .frozen import FrozenMap, freeze_value
from .graph import (
    ResolvedCustomType,
    ResolvedField,
    ResolvedModel,
    ResolvedOperation,
    ResolvedRelationship,
    SchemaGraph,
    SchemaSource,
)
from .utils import capitalize, foreign_key_name, lower_first

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("createdAt", "updatedAt")

# Identifier types a foreign key may hold interchangeably
_KEY_COMPATIBLE = frozenset({FieldKind.ID, FieldKind.STRING})


def _key_types_compatible(fk: ResolvedField, key: ResolvedField) -> bool:
    if fk.base_type == key.base_type:
        # Enum keys must name the same enum
        return fk.base_type != FieldKind.ENUM or fk.type_name == key.type_name
    return fk.base_type in _KEY_COMPATIBLE and key.base_type in _KEY_COMPATIBLE


class GraphCompiler:
    """
    Compiles schema sources to a SchemaGraph.

    Phases, each completed before the next starts:
    1. Partition definitions into models, enums, custom types, operations
    2. Resolve references, lift inline types, check defaults and identifiers
    3. Materialize timestamps, then resolve belongsTo, hasOne/hasMany and
       manyToMany relationships
    4. Materialize owner/group fields and merge authorization rules
    5. Freeze

    Problems are collected per phase; the first one is raised with the
    whole list attached as `errors`.
    """

    def __init__(self, config: Optional[SchemaGraphConfig] = None):
        self.config = config or SchemaGraphConfig()
        self.errors: list[SchemaGraphError] = []

    def compile(self, sources: Iterable[SchemaSource]) -> SchemaGraph:
        """
        Compile sources into a frozen graph.

        Raises:
            SchemaGraphError subclass describing the first problem found
        """
        self._reset(tuple(sources))

        self._partition()
        self._raise_errors()

        self._resolve_types()
        self._raise_errors()

        self._materialize_timestamps()
        self._resolve_relationships(RelationKind.BELONGS_TO)
        self._raise_errors()
        self._resolve_relationships(RelationKind.HAS_ONE, RelationKind.HAS_MANY)
        self._raise_errors()
        self._resolve_relationships(RelationKind.MANY_TO_MANY)
        self._link_many_to_many()
        self._raise_errors()

        self._merge_authorization()
        self._raise_errors()

        graph = self._freeze()
        logger.info(
            f"Compiled schema graph: {len(graph.models)} models "
            f"({len(self._join_models)} join), {len(graph.enums)} enums, "
            f"{len(graph.custom_types)} custom types, "
            f"{len(graph.custom_operations)} custom operations, "
            f"fingerprint={graph.fingerprint}"
        )
        return graph

    # =========================================================================
    # State and error collection
    # =========================================================================

    def _reset(self, sources: tuple[SchemaSource, ...]) -> None:
        self.sources = sources
        self.errors = []

        self._models: dict[str, ModelDef] = {}
        self._enums: dict[str, tuple[str, ...]] = {}
        self._custom_type_defs: dict[str, CustomTypeDef] = {}
        self._operation_defs: dict[str, CustomOperationDef] = {}
        self._origin: dict[str, SchemaSource] = {}

        self._fields: dict[str, dict[str, ResolvedField]] = {}
        self._identifiers: dict[str, tuple[str, ...]] = {}
        self._relationships: dict[str, dict[str, ResolvedRelationship]] = {}
        self._custom_types: dict[str, ResolvedCustomType] = {}
        self._signatures: dict[str, tuple[dict[str, ResolvedField], Optional[ResolvedField]]] = {}
        self._lifted: dict[str, tuple[str, Any]] = {}
        self._synthesized: dict[tuple[str, str], str] = {}
        self._join_models: dict[str, frozenset[str]] = {}
        self._join_owners: dict[tuple[str, str], str] = {}
        self._auth: dict[str, tuple[AuthRule, ...]] = {}

    def _error(self, error: SchemaGraphError) -> None:
        self.errors.append(error)

    def _raise_errors(self) -> None:
        if not self.errors:
            return
        first = self.errors[0]
        first.errors = list(self.errors)
        for extra in self.errors[1:]:
            logger.debug(f"Additional schema error: {extra}")
        raise first

    def _declared(self, name: str) -> bool:
        return (
            name in self._models
            or name in self._enums
            or name in self._custom_type_defs
            or name in self._operation_defs
        )

    # =========================================================================
    # Phase 1: partition
    # =========================================================================

    def _partition(self) -> None:
        try:
            self._id_kind = FieldKind(self.config.default_identifier_type)
        except ValueError:
            self._error(ConfigurationError(
                f"Unknown default identifier type '{self.config.default_identifier_type}'"
            ))

        for source in self.sources:
            for name, definition in source.definitions.items():
                self._origin[name] = source
                if isinstance(definition, ModelDef):
                    self._models[name] = definition
                elif isinstance(definition, EnumDef):
                    if self._check_enum_values(definition.values, name, None):
                        self._enums[name] = tuple(definition.values)
                elif isinstance(definition, CustomTypeDef):
                    self._custom_type_defs[name] = definition
                elif isinstance(definition, CustomOperationDef):
                    self._operation_defs[name] = definition
                else:
                    self._error(ConfigurationError(
                        f"Unsupported definition of type {type(definition).__name__}",
                        model=name,
                    ))

    def _check_enum_values(self, values: Any, model: str, field: Optional[str]) -> bool:
        values = tuple(values or ())
        if not values:
            self._error(ConfigurationError("Enum must declare at least one value", model, field))
            return False
        if not all(isinstance(v, str) and v for v in values):
            self._error(ConfigurationError("Enum values must be non-empty strings", model, field))
            return False
        if len(set(values)) != len(values):
            self._error(ConfigurationError(f"Enum values repeat: {list(values)}", model, field))
            return False
        return True

    # =========================================================================
    # Phase 2: references, inline types, defaults, identifiers
    # =========================================================================

    def _resolve_types(self) -> None:
        for name, type_def in self._custom_type_defs.items():
            fields = self._resolve_members(name, type_def.members)
            self._custom_types[name] = ResolvedCustomType(name, FrozenMap(fields))

        for name, model in self._models.items():
            fields: dict[str, ResolvedField] = {}
            for member_name, member in model.members:
                if isinstance(member, FieldDef):
                    resolved = self._resolve_field(name, member_name, member)
                    if resolved is not None:
                        fields[member_name] = resolved
                elif not isinstance(member, RelationDef):
                    self._error(ConfigurationError(
                        f"Unsupported member of type {type(member).__name__}",
                        model=name,
                        field=member_name,
                    ))
            self._fields[name] = fields
            self._relationships[name] = {}
            self._resolve_identifier(name, model)

        for name, operation in self._operation_defs.items():
            arguments = self._resolve_members(name, operation.argument_members)
            returns = None
            if operation.return_type is not None:
                returns = self._resolve_field(name, "returns", operation.return_type, allow_models=True)
            self._signatures[name] = (arguments, returns)

    def _resolve_members(self, owner: str, members: Iterable[tuple[str, Any]]) -> dict[str, ResolvedField]:
        fields: dict[str, ResolvedField] = {}
        for member_name, member in members:
            if not isinstance(member, FieldDef):
                self._error(ConfigurationError(
                    f"Only fields are allowed here, got {type(member).__name__}",
                    model=owner,
                    field=member_name,
                ))
                continue
            resolved = self._resolve_field(owner, member_name, member)
            if resolved is not None:
                fields[member_name] = resolved
        return fields

    def _resolve_field(
        self,
        owner: str,
        name: str,
        field_def: FieldDef,
        allow_models: bool = False,
    ) -> Optional[ResolvedField]:
        """Resolve one field; records errors and returns None on failure."""
        kind = field_def.base_type
        type_name: Optional[str] = None
        enum_values: Optional[tuple[str, ...]] = None
        inline_fields: Optional[FrozenMap[str, ResolvedField]] = None
        lifted = False

        if kind == FieldKind.REF:
            symbol = field_def.ref_name or ""
            type_name = symbol
            if symbol in self._enums:
                kind = FieldKind.ENUM
                enum_values = self._enums[symbol]
            elif symbol in self._custom_type_defs:
                kind = FieldKind.CUSTOM_TYPE
            elif symbol in self._models and allow_models:
                kind = FieldKind.MODEL
            elif symbol in self._models:
                self._error(ConfigurationError(
                    f"'{symbol}' is a model; reference it through a relationship",
                    model=owner,
                    field=name,
                ))
                return None
            else:
                self._error(UnresolvedReferenceError(symbol, model=owner, field=name))
                return None

        elif kind == FieldKind.ENUM:
            if not self._check_enum_values(field_def.enum_values, owner, name):
                return None
            enum_values = tuple(field_def.enum_values or ())
            type_name = capitalize(name)
            lifted = True
            self._register_lifted(type_name, "enum", list(enum_values), owner, name)

        elif kind == FieldKind.CUSTOM_TYPE:
            nested = self._resolve_members(owner, field_def.members or ())
            inline_fields = FrozenMap(nested)
            type_name = capitalize(name)
            lifted = True
            signature = {n: f.to_dict() for n, f in nested.items()}
            self._register_lifted(type_name, "customType", signature, owner, name)

        elif kind == FieldKind.MODEL:
            self._error(ConfigurationError(
                "Model-typed fields are only allowed in custom operation signatures",
                model=owner,
                field=name,
            ))
            return None

        if field_def.has_default:
            problem = default_value_error(kind, field_def.default_value, field_def.is_array, enum_values)
            if problem:
                suffix = "[]" if field_def.is_array else ""
                self._error(ConfigurationError(
                    f"Default {field_def.default_value!r} is not assignable to "
                    f"{kind.value}{suffix}: {problem}",
                    model=owner,
                    field=name,
                ))

        return ResolvedField(
            name=name,
            base_type=kind,
            is_required=field_def.is_required,
            is_array=field_def.is_array,
            has_default=field_def.has_default,
            default_value=freeze_value(field_def.default_value),
            auth_rules=field_def.auth_rules,
            type_name=type_name,
            enum_values=enum_values,
            inline_fields=inline_fields,
            readonly=field_def.readonly,
            lifted=lifted,
        )

    def _register_lifted(self, type_name: str, kind: str, signature: Any, owner: str, field: str) -> None:
        if self._declared(type_name):
            self._error(ConfigurationError(
                f"Inline {kind} '{type_name}' clashes with a declared definition of the same name",
                model=owner,
                field=field,
            ))
            return

        existing = self._lifted.get(type_name)
        if existing is None:
            self._lifted[type_name] = (kind, signature)
        elif existing != (kind, signature):
            self._error(ConfigurationError(
                f"Inline {kind} '{type_name}' conflicts with another inline definition of the same name",
                model=owner,
                field=field,
            ))

    def _resolve_identifier(self, name: str, model: ModelDef) -> None:
        fields = self._fields[name]

        if model.identifier_fields is None:
            id_name = self.config.default_identifier_field
            existing = fields.get(id_name)
            if existing is None:
                implicit = ResolvedField(id_name, self._id_kind, is_required=True, implicit=True)
                self._fields[name] = {id_name: implicit, **fields}
                logger.debug(f"Materialized implicit identifier {name}.{id_name}")
            elif not existing.is_required:
                self._error(ConfigurationError(
                    f"Identifier field '{id_name}' must be required",
                    model=name,
                    field=id_name,
                ))
            self._identifiers[name] = (id_name,)
            return

        names = model.identifier_fields
        if not names:
            self._error(ConfigurationError("Identifier must name at least one field", model=name))
            return
        if len(set(names)) != len(names):
            self._error(ConfigurationError(f"Identifier repeats a field: {list(names)}", model=name))
            return

        for field_name in names:
            resolved = fields.get(field_name)
            if resolved is None:
                self._error(ConfigurationError(
                    f"Identifier field '{field_name}' is not a field of {name}",
                    model=name,
                    field=field_name,
                ))
            elif not resolved.is_required:
                self._error(ConfigurationError(
                    f"Identifier field '{field_name}' must be required",
                    model=name,
                    field=field_name,
                ))
            elif resolved.is_array or (not resolved.base_type.is_scalar and resolved.base_type != FieldKind.ENUM):
                self._error(ConfigurationError(
                    f"Identifier field '{field_name}' must be a single scalar or enum value",
                    model=name,
                    field=field_name,
                ))
        self._identifiers[name] = tuple(names)

    # =========================================================================
    # Phase 3: implicit fields and relationships
    # =========================================================================

    def _timestamp_fields(self) -> dict[str, ResolvedField]:
        return {
            ts: ResolvedField(ts, FieldKind.DATETIME, is_required=True, implicit=True, readonly=True)
            for ts in TIMESTAMP_FIELDS
        }

    def _materialize_timestamps(self) -> None:
        for name, model in self._models.items():
            enabled = model.timestamps_enabled
            if enabled is None:
                enabled = self.config.timestamps
            if not enabled:
                continue
            fields = self._fields[name]
            for ts, resolved in self._timestamp_fields().items():
                if ts not in fields:
                    fields[ts] = resolved

    def _resolve_relationships(self, *kinds: RelationKind) -> None:
        for name, model in self._models.items():
            for rel_name, rel in model.relationships.items():
                if rel.kind not in kinds:
                    continue
                if rel.kind == RelationKind.BELONGS_TO:
                    resolved = self._resolve_belongs_to(name, rel_name, rel)
                elif rel.kind == RelationKind.MANY_TO_MANY:
                    resolved = self._resolve_many_to_many(name, rel_name, rel)
                else:
                    resolved = self._resolve_has(name, rel_name, rel)
                if resolved is not None:
                    self._relationships[name][rel_name] = resolved

    def _target(self, owner: str, rel_name: str, rel: RelationDef) -> Optional[str]:
        if rel.target not in self._models:
            self._error(DanglingRelationshipError(
                f"Target model '{rel.target}' is not defined",
                model=owner,
                field=rel_name,
                details={"target": rel.target},
            ))
            return None
        return rel.target

    def _key_fields(self, model: str) -> list[ResolvedField]:
        fields = self._fields[model]
        return [fields[n] for n in self._identifiers.get(model, ()) if n in fields]

    def _check_key(self, model: str, rel_name: str, fk: ResolvedField, key: ResolvedField, target: str) -> bool:
        """Foreign key `fk` on `model` must fit identifier field `key` of `target`."""
        if fk.is_array or not _key_types_compatible(fk, key):
            suffix = "[]" if fk.is_array else ""
            self._error(ConfigurationError(
                f"Foreign key '{fk.name}' has type {fk.base_type.value}{suffix}, "
                f"incompatible with {target}.{key.name} ({key.base_type.value})",
                model=model,
                field=rel_name,
            ))
            return False
        return True

    def _check_arity(self, owner: str, rel_name: str, references: tuple[str, ...], keys: list, target: str) -> bool:
        if len(references) != len(keys):
            self._error(ConfigurationError(
                f"Relationship lists {len(references)} foreign key(s) but "
                f"{target} is identified by {len(keys)} field(s)",
                model=owner,
                field=rel_name,
            ))
            return False
        return True

    def _synthesize_foreign_key(self, model: str, fk: str, key: ResolvedField, relation: str) -> None:
        if fk in self._models[model].relationships:
            self._error(ConfigurationError(
                f"Foreign key '{fk}' clashes with relationship '{fk}'; declare references explicitly",
                model=model,
                field=fk,
            ))
            return
        self._fields[model][fk] = ResolvedField(
            fk, key.base_type, type_name=key.type_name, enum_values=key.enum_values, implicit=True, hidden=True
        )
        self._synthesized[(model, fk)] = relation
        logger.debug(f"Materialized hidden foreign key {model}.{fk} for {relation}")

    def _resolve_belongs_to(self, owner: str, rel_name: str, rel: RelationDef) -> Optional[ResolvedRelationship]:
        target = self._target(owner, rel_name, rel)
        if target is None:
            return None
        keys = self._key_fields(target)
        fields = self._fields[owner]

        if rel.references is not None:
            if not self._check_arity(owner, rel_name, rel.references, keys, target):
                return None
            for fk_name, key in zip(rel.references, keys):
                fk = fields.get(fk_name)
                if fk is None:
                    self._error(DanglingRelationshipError(
                        f"Foreign key field '{fk_name}' is not declared on {owner}",
                        model=owner,
                        field=rel_name,
                        details={"foreign_key": fk_name},
                    ))
                    return None
                if not self._check_key(owner, rel_name, fk, key, target):
                    return None
            return ResolvedRelationship(rel_name, rel.kind, target, rel.references)

        relation = f"{owner}.{rel_name}"
        references = []
        for key in keys:
            fk_name = foreign_key_name(target, key.name)
            fk = fields.get(fk_name)
            if fk is None:
                self._synthesize_foreign_key(owner, fk_name, key, relation)
            elif self._synthesized.get((owner, fk_name), relation) != relation:
                self._error(ConfigurationError(
                    f"Foreign key '{fk_name}' is already used by "
                    f"{self._synthesized[(owner, fk_name)]}; declare references explicitly",
                    model=owner,
                    field=rel_name,
                ))
                return None
            elif not self._check_key(owner, rel_name, fk, key, target):
                return None
            references.append(fk_name)
        return ResolvedRelationship(rel_name, rel.kind, target, tuple(references))

    def _resolve_has(self, owner: str, rel_name: str, rel: RelationDef) -> Optional[ResolvedRelationship]:
        target = self._target(owner, rel_name, rel)
        if target is None:
            return None
        keys = self._key_fields(owner)
        target_fields = self._fields[target]
        candidates = [
            (n, r) for n, r in self._relationships[target].items()
            if r.kind == RelationKind.BELONGS_TO and r.target == owner
        ]

        inverse: Optional[str] = None
        if rel.references is not None:
            references = rel.references
            for fk_name in references:
                if fk_name not in target_fields:
                    self._error(DanglingRelationshipError(
                        f"Foreign key field '{fk_name}' is not declared on {target}",
                        model=owner,
                        field=rel_name,
                        details={"foreign_key": fk_name, "target": target},
                    ))
                    return None
            if not self._check_arity(owner, rel_name, references, keys, owner):
                return None
            for fk_name, key in zip(references, keys):
                if not self._check_key(owner, rel_name, target_fields[fk_name], key, owner):
                    return None

            inverse = next((n for n, r in candidates if r.references == references), None)
            if inverse is None and candidates:
                other_name, other = candidates[0]
                self._error(ConfigurationError(
                    f"{rel.kind.value} references {list(references)} on {target}, but "
                    f"{target}.{other_name} (belongsTo) uses {list(other.references)}",
                    model=owner,
                    field=rel_name,
                ))
                return None

        elif len(candidates) == 1:
            inverse, belongs_to = candidates[0]
            references = belongs_to.references

        elif candidates:
            self._error(ConfigurationError(
                f"Ambiguous inverse: {target} declares {len(candidates)} belongsTo "
                f"relationships to {owner}; name the foreign key explicitly",
                model=owner,
                field=rel_name,
            ))
            return None

        else:
            relation = f"{owner}.{rel_name}"
            names = []
            for key in keys:
                fk_name = foreign_key_name(owner, key.name)
                fk = target_fields.get(fk_name)
                if fk is None:
                    self._synthesize_foreign_key(target, fk_name, key, relation)
                elif not self._check_key(owner, rel_name, fk, key, owner):
                    return None
                names.append(fk_name)
            references = tuple(names)

        if inverse is not None:
            belongs_to = self._relationships[target][inverse]
            if belongs_to.inverse is None:
                self._relationships[target][inverse] = replace(belongs_to, inverse=rel_name)

        return ResolvedRelationship(rel_name, rel.kind, target, tuple(references), inverse=inverse)

    def _resolve_many_to_many(self, owner: str, rel_name: str, rel: RelationDef) -> Optional[ResolvedRelationship]:
        target = self._target(owner, rel_name, rel)
        if target is None:
            return None
        if target == owner:
            self._error(ConfigurationError(
                "Self-referencing manyToMany is not supported; declare a join model explicitly",
                model=owner,
                field=rel_name,
            ))
            return None

        join = rel.relation_name or "".join(sorted((owner, target)))
        participants = frozenset((owner, target))
        if self._declared(join) or join in self._lifted:
            self._error(ConfigurationError(
                f"Join model name '{join}' collides with a declared type",
                model=owner,
                field=rel_name,
            ))
            return None

        claimed = self._join_owners.get((owner, join))
        if claimed is not None:
            self._error(ConfigurationError(
                f"Relationships '{claimed}' and '{rel_name}' would share join model '{join}'; "
                f"give them distinct relation names",
                model=owner,
                field=rel_name,
            ))
            return None
        self._join_owners[(owner, join)] = rel_name

        existing = self._join_models.get(join)
        if existing is None:
            self._create_join_model(join, sorted(participants))
        elif existing != participants:
            self._error(ConfigurationError(
                f"Join model '{join}' already links {sorted(existing)}",
                model=owner,
                field=rel_name,
            ))
            return None

        references = tuple(foreign_key_name(owner, key.name) for key in self._key_fields(owner))
        return ResolvedRelationship(rel_name, rel.kind, target, references, join_model=join)

    def _create_join_model(self, join: str, participants: list[str]) -> None:
        fields: dict[str, ResolvedField] = {}
        identifier: list[str] = []
        relationships: dict[str, ResolvedRelationship] = {}

        for participant in participants:
            references = []
            for key in self._key_fields(participant):
                fk_name = foreign_key_name(participant, key.name)
                fields[fk_name] = ResolvedField(
                    fk_name, key.base_type, is_required=True, type_name=key.type_name,
                    enum_values=key.enum_values, implicit=True,
                )
                identifier.append(fk_name)
                references.append(fk_name)
            rel_name = lower_first(participant)
            relationships[rel_name] = ResolvedRelationship(
                rel_name, RelationKind.BELONGS_TO, participant, tuple(references)
            )

        if self.config.timestamps:
            fields.update(self._timestamp_fields())

        self._fields[join] = fields
        self._identifiers[join] = tuple(identifier)
        self._relationships[join] = relationships
        self._join_models[join] = frozenset(participants)
        logger.debug(f"Synthesized join model {join} for {participants[0]} <-> {participants[1]}")

    def _link_many_to_many(self) -> None:
        """Pair manyToMany relationships sharing a join model."""
        sides: dict[str, list[tuple[str, str]]] = {}
        for model, relationships in self._relationships.items():
            for rel_name, rel in relationships.items():
                if rel.kind == RelationKind.MANY_TO_MANY:
                    sides.setdefault(rel.join_model, []).append((model, rel_name))

        for join, pairs in sides.items():
            if len(pairs) != 2:
                continue
            (left, left_rel), (right, right_rel) = pairs
            if left == right:
                continue
            self._relationships[left][left_rel] = replace(
                self._relationships[left][left_rel], inverse=right_rel
            )
            self._relationships[right][right_rel] = replace(
                self._relationships[right][right_rel], inverse=left_rel
            )

    # =========================================================================
    # Phase 4: authorization
    # =========================================================================

    def _merge_authorization(self) -> None:
        for source in self.sources:
            self._fill_rules(None, None, source.auth_rules, materialize=False)
        if self.errors:
            return

        for name, model in self._models.items():
            source = self._origin[name]
            self._auth[name] = self._fill_rules(name, None, source.auth_rules + model.auth_rules)

            fields = self._fields[name]
            for field_name, resolved in list(fields.items()):
                if resolved.auth_rules:
                    fields[field_name] = replace(
                        resolved,
                        auth_rules=self._fill_rules(name, field_name, resolved.auth_rules),
                    )

        for join, participants in self._join_models.items():
            rules = tuple(r for p in sorted(participants) for r in self._auth.get(p, ()))
            self._auth[join] = self._fill_rules(join, None, rules)

        for name, operation in self._operation_defs.items():
            source = self._origin[name]
            self._auth[name] = self._fill_rules(
                name, None, source.auth_rules + operation.auth_rules, materialize=False
            )

    def _fill_rules(
        self,
        model: Optional[str],
        field: Optional[str],
        rules: Iterable[AuthRule],
        materialize: bool = True,
    ) -> tuple[AuthRule, ...]:
        """Validate rules, default their fields and materialize owner/group fields."""
        filled = []
        for rule in rules:
            invalid = [op for op in rule.operations if op not in OPERATIONS]
            if invalid:
                self._error(ConfigurationError(
                    f"Unknown operation(s) {invalid} in {rule.principal.value} rule",
                    model=model,
                    field=field,
                ))
                continue
            if not rule.operations:
                self._error(ConfigurationError(
                    f"{rule.principal.value} rule grants no operations",
                    model=model,
                    field=field,
                ))
                continue
            if rule.provider is not None and rule.provider not in PROVIDERS:
                self._error(ConfigurationError(
                    f"Unknown auth provider '{rule.provider}'",
                    model=model,
                    field=field,
                ))
                continue
            if rule.principal == PrincipalKind.GROUP and not rule.groups:
                self._error(ConfigurationError("Group rule names no groups", model=model, field=field))
                continue

            if rule.is_record_level and rule.param is None:
                default = (
                    self.config.owner_field
                    if rule.principal == PrincipalKind.OWNER
                    else self.config.groups_field
                )
                rule = replace(rule, param=default)
            if rule.is_record_level and materialize and model is not None:
                self._materialize_auth_field(model, rule)
            filled.append(rule)
        return tuple(filled)

    def _materialize_auth_field(self, model: str, rule: AuthRule) -> None:
        field_name = rule.field_name
        fields = self._fields[model]
        existing = fields.get(field_name)
        suffix = "[]" if rule.multiple else ""

        if existing is None:
            if field_name in self._relationships.get(model, {}):
                self._error(ConfigurationError(
                    f"{rule.principal.value} field '{field_name}' clashes with a relationship",
                    model=model,
                    field=field_name,
                ))
                return
            fields[field_name] = ResolvedField(
                field_name, FieldKind.STRING, is_array=rule.multiple, implicit=True
            )
            logger.debug(f"Materialized {rule.principal.value} field {model}.{field_name}{suffix}")
        elif existing.base_type not in _KEY_COMPATIBLE or existing.is_array != rule.multiple:
            self._error(ConfigurationError(
                f"Field '{field_name}' used by a {rule.principal.value} rule must be string{suffix}",
                model=model,
                field=field_name,
            ))

    # =========================================================================
    # Phase 5: freeze
    # =========================================================================

    def _freeze(self) -> SchemaGraph:
        models: dict[str, ResolvedModel] = {}
        for name in list(self._models) + list(self._join_models):
            relationships = self._relationships.get(name, {})
            if name in self._models:
                declared = self._models[name].relationships
                relationships = {n: relationships[n] for n in declared if n in relationships}

            fields = self._fields[name]
            rules = self._auth.get(name, ())
            merged = rules + tuple(r for f in fields.values() for r in f.auth_rules)
            models[name] = ResolvedModel(
                name=name,
                fields=FrozenMap(fields),
                identifier=self._identifiers[name],
                relationships=FrozenMap(relationships),
                auth_rules=rules,
                merged_auth_rules=merged,
                implicit=name in self._join_models,
            )

        operations = {}
        for name, operation in self._operation_defs.items():
            arguments, returns = self._signatures[name]
            operations[name] = ResolvedOperation(
                name=name,
                kind=operation.kind,
                arguments=FrozenMap(arguments),
                returns=returns,
                auth_rules=self._auth.get(name, ()),
            )

        global_rules = tuple(
            r for s in self.sources
            for r in self._fill_rules(None, None, s.auth_rules, materialize=False)
        )

        return SchemaGraph(
            models=FrozenMap(models),
            enums=FrozenMap(self._enums),
            custom_types=FrozenMap(self._custom_types),
            custom_operations=FrozenMap(operations),
            global_auth_rules=global_rules,
            definitions=self.sources,
        )

"""
Custom exceptions for the schemagraph system.

Every error raised while building, combining or freezing a schema graph
derives from SchemaGraphError and carries the offending model and
field/relationship name for diagnosis.
"""

from __future__ import annotations

from typing import Any, Optional


class SchemaGraphError(Exception):
    """Base exception for all schemagraph errors."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.model = model
        self.field = field
        self.details = details or {}
        # All problems found in the phase that raised this error
        self.errors: list[SchemaGraphError] = [self]
        super().__init__(self._format())

    @property
    def location(self) -> str:
        parts = [p for p in (self.model, self.field) if p]
        return ".".join(parts) if parts else "global"

    def _format(self) -> str:
        return f"[{self.location}] {self.message}"


class ConfigurationError(SchemaGraphError):
    """Raised when an identifier, default or modifier combination is malformed."""
    pass


class UnresolvedReferenceError(SchemaGraphError):
    """Raised when a symbolic type reference names no enum or custom type."""

    def __init__(self, symbol: str, model: Optional[str] = None, field: Optional[str] = None):
        self.symbol = symbol
        super().__init__(
            f"Unresolved reference '{symbol}'",
            model=model,
            field=field,
            details={"symbol": symbol},
        )


class DanglingRelationshipError(SchemaGraphError):
    """Raised when a relationship target model or foreign key is absent."""
    pass


class SchemaCombineCollisionError(SchemaGraphError):
    """Raised when two combined schemas declare the same top-level name."""

    def __init__(self, name: str, kind: str, other_kind: Optional[str] = None):
        self.name = name
        self.kind = kind
        other = other_kind or kind
        super().__init__(
            f"Name '{name}' is declared as {kind} and {other} in more than one schema",
            model=name,
            details={"name": name, "kind": kind, "other_kind": other},
        )


class FrozenSchemaError(SchemaGraphError):
    """Raised when a frozen schema graph or a built schema is mutated."""

    def __init__(self, message: str = "Schema is frozen"):
        super().__init__(message)

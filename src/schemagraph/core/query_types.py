"""
Pydantic models for capability queries.

These define who is asking (Caller), what they ask for (AccessQuery) and
the answer (AccessDecision with optional row scopes).
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


Operation = Literal["create", "read", "update", "delete"]


# --- Input types ---

class Caller(BaseModel):
    """
    Authenticated (or anonymous) principal presenting a request.

    Example:
    {
        "provider": "userPools",
        "authenticated": true,
        "identity": "alice",
        "groups": ["Admin"]
    }
    """
    provider: str = "userPools"
    authenticated: bool = False
    identity: Optional[str] = None
    groups: list[str] = Field(default_factory=list)

    @classmethod
    def api_key(cls) -> Caller:
        return cls(provider="apiKey")

    @classmethod
    def guest(cls, provider: str = "identityPool") -> Caller:
        return cls(provider=provider)

    @classmethod
    def user(cls, identity: str, groups: Optional[list[str]] = None, provider: str = "userPools") -> Caller:
        return cls(provider=provider, authenticated=True, identity=identity, groups=groups or [])


class AccessQuery(BaseModel):
    """
    Capability query against a schema graph.

    Example:
    {
        "model": "Todo",
        "operation": "read",
        "caller": {...},
        "fields": ["content", "secret"],
        "record": {"owner": "alice"}
    }
    """
    model: str
    operation: Operation
    caller: Caller
    fields: list[str] = Field(default_factory=list)  # empty: every visible field
    record: Optional[dict[str, Any]] = None


# --- Output types ---

class AccessScope(BaseModel):
    """
    Row filter a backend must apply when access depends on the record.

    Example: owner-based read -> AccessScope(field="owner", op="eq", values=["alice"])
    """
    field: str
    op: Literal["eq", "in", "contains"]
    values: list[str]


class AccessDecision(BaseModel):
    """Answer to an AccessQuery."""
    allow: bool
    model: str
    operation: Operation
    fields: list[str] = Field(default_factory=list)
    denied_fields: list[str] = Field(default_factory=list)
    scopes: list[AccessScope] = Field(default_factory=list)  # OR-combined

"""
IAM (Identity and Access Management) service.

Answers capability queries against a schema graph: whether a caller may
perform an operation on a model, which fields it may touch, and which row
scopes a backend must apply when access depends on the record.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.auth import AuthRule, PrincipalKind, admitting_rules, field_admits, rules_admit
from ..core.errors import ConfigurationError
from ..core.graph import ResolvedModel, SchemaGraph
from ..core.query_types import AccessDecision, AccessQuery, AccessScope, Caller

logger = logging.getLogger(__name__)


def rule_scope(rule: AuthRule, caller: Caller) -> Optional[AccessScope]:
    """Row filter implied by a record-level rule, or None for other rules."""
    field = rule.field_name
    if field is None:
        return None
    if rule.principal == PrincipalKind.OWNER:
        op = "contains" if rule.multiple else "eq"
        return AccessScope(field=field, op=op, values=[caller.identity or ""])
    if rule.principal == PrincipalKind.GROUPS_FROM_FIELD:
        op = "contains" if rule.multiple else "in"
        return AccessScope(field=field, op=op, values=list(caller.groups))
    return None


class AccessService:
    """
    Access control decisions over a SchemaGraph.

    - read: allowed when at least one requested field is readable
    - create/update: allowed when the model admits the operation and every
      requested field is writable; without a field list the model rules
      decide and the writable fields are reported
    - delete: decided by the model rules alone

    Scopes are returned only when access was granted without a record and
    every admitting model rule is record-level (owner or group field).
    """

    def check_access(self, query: AccessQuery, graph: SchemaGraph) -> AccessDecision:
        """
        Check if the caller of `query` can perform its operation.

        Raises:
            ConfigurationError: unknown model or field
        """
        model = graph.get_model(query.model)
        if model is None:
            raise ConfigurationError(f"Unknown model '{query.model}'", model=query.model)

        requested = self._requested_fields(query, model)
        caller, operation, record = query.caller, query.operation, query.record

        model_allows = rules_admit(model.auth_rules, caller, operation, record)

        granted: list[str] = []
        denied: list[str] = []
        if operation == "delete":
            allow = model_allows
        else:
            for name in requested:
                field = model.fields[name]
                writable = operation == "read" or not field.readonly
                if writable and field_admits(model.auth_rules, field.auth_rules, caller, operation, record):
                    granted.append(name)
                else:
                    denied.append(name)
            if operation == "read":
                allow = bool(granted)
            elif not query.fields:
                # No explicit field list: the model decides, fields are informational
                allow = model_allows
            else:
                allow = model_allows and not denied

        scopes: list[AccessScope] = []
        if allow and record is None:
            admitting = admitting_rules(model.auth_rules, caller, operation)
            if admitting and all(r.is_record_level for r in admitting):
                scopes = [s for s in (rule_scope(r, caller) for r in admitting) if s is not None]

        if not allow:
            logger.debug(
                f"Denied {operation} on {model.name} for {caller.provider} caller "
                f"{caller.identity or '<anonymous>'}"
            )

        return AccessDecision(
            allow=allow,
            model=model.name,
            operation=operation,
            fields=granted,
            denied_fields=denied,
            scopes=scopes,
        )

    def _requested_fields(self, query: AccessQuery, model: ResolvedModel) -> list[str]:
        if not query.fields:
            if query.operation in ("create", "update"):
                return [f.name for f in model.visible_fields if not f.readonly]
            return [f.name for f in model.visible_fields]
        for name in query.fields:
            field = model.fields.get(name)
            if field is None or field.hidden:
                raise ConfigurationError(f"Unknown field '{name}'", model=model.name, field=name)
        return list(query.fields)


# Global access service instance
access_service = AccessService()

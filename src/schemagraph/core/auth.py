"""
Authorization rules and their evaluator.

A rule is a flat tagged value: a principal kind, an optional payload
(owner field, group names or group field), the operations it grants and an
optional auth provider. Rule sets compose by disjunction; one evaluator
function interprets every principal kind.

Usage:
    from schemagraph.core.auth import allow

    rules = [
        allow.owner(),
        allow.public_api_key().to(["read"]),
        allow.groups(["Admin"]),
    ]
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from .frozen import Frozen

if TYPE_CHECKING:
    from .query_types import Caller


OPERATIONS = ("create", "read", "update", "delete")

PROVIDERS = ("apiKey", "identityPool", "userPools", "oidc", "iam", "lambda")


class PrincipalKind(str, Enum):
    """Kinds of principal a rule can grant access to."""

    OWNER = "owner"
    GROUP = "group"
    PUBLIC_UNAUTHENTICATED = "publicUnauthenticated"
    PUBLIC_API_KEY = "publicApiKey"
    PRIVATE_AUTHENTICATED = "privateAuthenticated"
    GROUPS_FROM_FIELD = "groupsFromField"


# Kinds whose outcome depends on the record being accessed
RECORD_LEVEL_KINDS = frozenset({PrincipalKind.OWNER, PrincipalKind.GROUPS_FROM_FIELD})


@dataclass(eq=True)
class AuthRule(Frozen):
    """
    Single access rule.

    `param` holds the owner field (OWNER), the group names (GROUP) or the
    field holding group names (GROUPS_FROM_FIELD). `None` for an owner or
    group-field rule means "use the configured default field", which the
    compiler fills in at build time.
    """
    principal: PrincipalKind
    param: Union[str, tuple[str, ...], None] = None
    operations: tuple[str, ...] = OPERATIONS
    provider: Optional[str] = None
    multiple: bool = False  # owner/group field holds a list

    def to(self, operations: Iterable[str]) -> AuthRule:
        """Restrict the rule to `operations` (validated at build time)."""
        return replace(self, operations=tuple(dict.fromkeys(operations)))

    @property
    def is_record_level(self) -> bool:
        return self.principal in RECORD_LEVEL_KINDS

    @property
    def groups(self) -> tuple[str, ...]:
        if self.principal == PrincipalKind.GROUP and isinstance(self.param, tuple):
            return self.param
        return ()

    @property
    def field_name(self) -> Optional[str]:
        """Record field an owner or group-field rule compares against."""
        if self.is_record_level and isinstance(self.param, str):
            return self.param
        return None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "principal": self.principal.value,
            "operations": list(self.operations),
        }
        if self.param is not None:
            result["param"] = list(self.param) if isinstance(self.param, tuple) else self.param
        if self.provider:
            result["provider"] = self.provider
        if self.multiple:
            result["multiple"] = True
        return result


class Allow:
    """Factory namespace for authorization rules."""

    def owner(self, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.OWNER, provider=provider)

    def owner_defined_in(self, field: str, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.OWNER, param=field, provider=provider)

    def owners_defined_in(self, field: str, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.OWNER, param=field, provider=provider, multiple=True)

    def group(self, group: str, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.GROUP, param=(group,), provider=provider)

    def groups(self, groups: Iterable[str], provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.GROUP, param=tuple(groups), provider=provider)

    def group_defined_in(self, field: str, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.GROUPS_FROM_FIELD, param=field, provider=provider)

    def groups_defined_in(self, field: Optional[str] = None, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(
            PrincipalKind.GROUPS_FROM_FIELD, param=field, provider=provider, multiple=True
        )

    def guest(self) -> AuthRule:
        """Unauthenticated identity-pool callers."""
        return AuthRule(PrincipalKind.PUBLIC_UNAUTHENTICATED)

    def public_api_key(self) -> AuthRule:
        return AuthRule(PrincipalKind.PUBLIC_API_KEY)

    def public(self, provider: str = "apiKey") -> AuthRule:
        if provider == "apiKey":
            return self.public_api_key()
        return AuthRule(PrincipalKind.PUBLIC_UNAUTHENTICATED, provider=provider)

    def authenticated(self, provider: Optional[str] = None) -> AuthRule:
        return AuthRule(PrincipalKind.PRIVATE_AUTHENTICATED, provider=provider)

    def private(self, provider: Optional[str] = None) -> AuthRule:
        return self.authenticated(provider)


allow = Allow()

RuleSpec = Union[Iterable[AuthRule], Callable[[Allow], Iterable[AuthRule]]]


def normalize_rules(rules: RuleSpec) -> tuple[AuthRule, ...]:
    """Accept a rule list or a callable receiving `allow`."""
    if callable(rules):
        rules = rules(allow)
    return tuple(rules)


# =============================================================================
# Evaluation
# =============================================================================


def rule_admits(
    rule: AuthRule,
    caller: Caller,
    operation: str,
    record: Optional[dict[str, Any]] = None,
) -> bool:
    """
    Whether `rule` grants `operation` to `caller`.

    Without a record, record-level rules admit any caller that could own or
    share a record; with a record they compare the record's field.
    """
    if operation not in rule.operations:
        return False
    if rule.provider is not None and caller.provider != rule.provider:
        return False

    kind = rule.principal
    if kind == PrincipalKind.PUBLIC_API_KEY:
        return caller.provider == "apiKey"
    if kind == PrincipalKind.PUBLIC_UNAUTHENTICATED:
        return not caller.authenticated and caller.provider != "apiKey"
    if kind == PrincipalKind.PRIVATE_AUTHENTICATED:
        return caller.authenticated
    if kind == PrincipalKind.GROUP:
        return caller.authenticated and bool(set(caller.groups) & set(rule.groups))
    if kind == PrincipalKind.OWNER:
        if not caller.authenticated or not caller.identity:
            return False
        if record is None:
            return True
        value = record.get(rule.field_name or "")
        if rule.multiple:
            return isinstance(value, (list, tuple)) and caller.identity in value
        return value == caller.identity
    if kind == PrincipalKind.GROUPS_FROM_FIELD:
        if not caller.authenticated or not caller.groups:
            return False
        if record is None:
            return True
        value = record.get(rule.field_name or "")
        granted = set(value or []) if isinstance(value, (list, tuple)) else {value}
        return bool(granted & set(caller.groups))
    return False


def admitting_rules(
    rules: Iterable[AuthRule],
    caller: Caller,
    operation: str,
    record: Optional[dict[str, Any]] = None,
) -> list[AuthRule]:
    """Rules in `rules` that grant `operation` to `caller`, in order."""
    return [r for r in rules if rule_admits(r, caller, operation, record)]


def rules_admit(
    rules: Iterable[AuthRule],
    caller: Caller,
    operation: str,
    record: Optional[dict[str, Any]] = None,
) -> bool:
    """Disjunction over a rule set."""
    return any(rule_admits(r, caller, operation, record) for r in rules)


def field_admits(
    model_rules: Iterable[AuthRule],
    field_rules: Iterable[AuthRule],
    caller: Caller,
    operation: str,
    record: Optional[dict[str, Any]] = None,
) -> bool:
    """
    Field-level decision.

    Reads: a field's own rules, when present, decide alone; otherwise the
    model rules decide. Creates and updates need the model rules AND the
    field's own rules. Deletes are decided by the model rules.
    """
    field_rules = tuple(field_rules)
    if operation == "read":
        return rules_admit(field_rules or model_rules, caller, operation, record)
    if not rules_admit(model_rules, caller, operation, record):
        return False
    if operation == "delete" or not field_rules:
        return True
    return rules_admit(field_rules, caller, operation, record)

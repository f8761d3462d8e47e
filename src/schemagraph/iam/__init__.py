"""
IAM (Identity and Access Management) module.
"""

from __future__ import annotations

from .service import AccessService, access_service, rule_scope

__all__ = [
    "AccessService",
    "access_service",
    "rule_scope",
]

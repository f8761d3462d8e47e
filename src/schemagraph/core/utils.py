"""
Utility functions for schemagraph.

Includes:
- Case helpers used for synthesized names (foreign keys, lifted types)
- Deterministic fingerprinting of canonical dicts
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


# =============================================================================
# Case conversion utilities
# =============================================================================

def capitalize(name: str) -> str:
    """
    Upper-case the first character, leave the rest untouched.

    Examples:
        location -> Location
        employeeId -> EmployeeId
    """
    return name[:1].upper() + name[1:]


def lower_first(name: str) -> str:
    """
    Lower-case the first character, leave the rest untouched.

    Examples:
        Company -> company
        LineItem -> lineItem
        URLRecord -> uRLRecord
    """
    return name[:1].lower() + name[1:]


def foreign_key_name(model_name: str, identifier_field: str) -> str:
    """
    Default foreign key name pointing at `model_name`'s identifier field.

    Examples:
        ("Company", "id") -> companyId
        ("Employee", "employeeId") -> employeeEmployeeId
    """
    return f"{lower_first(model_name)}{capitalize(identifier_field)}"


# =============================================================================
# Fingerprinting
# =============================================================================


def fingerprint(data: Any) -> str:
    """SHA-256 over the canonical JSON form of `data`."""
    canonical = json.dumps(data, sort_keys=True, separators=(',', ':'), default=str)
    return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"

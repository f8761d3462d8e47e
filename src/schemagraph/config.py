"""
Configuration loading and validation for schema builds.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass
class SchemaGraphConfig:
    """Options controlling implicit fields synthesized at build time."""
    default_identifier_field: str = "id"
    default_identifier_type: str = "id"
    timestamps: bool = True
    owner_field: str = "owner"
    groups_field: str = "groups"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaGraphConfig":
        """Create config from dictionary."""
        data = data or {}
        return cls(
            default_identifier_field=data.get("default_identifier_field", "id"),
            default_identifier_type=data.get("default_identifier_type", "id"),
            timestamps=bool(data.get("timestamps", True)),
            owner_field=data.get("owner_field", "owner"),
            groups_field=data.get("groups_field", "groups"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for YAML serialization."""
        return {
            "default_identifier_field": self.default_identifier_field,
            "default_identifier_type": self.default_identifier_type,
            "timestamps": self.timestamps,
            "owner_field": self.owner_field,
            "groups_field": self.groups_field,
        }

    def save(self, path: Path | str = "schemagraph.yaml") -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        content = yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        path.write_text(content)


def load_config(path: Path | str = "schemagraph.yaml") -> Optional[SchemaGraphConfig]:
    """Load configuration from YAML file."""
    path = Path(path)
    if not path.exists():
        return None

    data = yaml.safe_load(path.read_text())
    return SchemaGraphConfig.from_dict(data)

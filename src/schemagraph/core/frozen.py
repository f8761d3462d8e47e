"""
Immutable building blocks shared by descriptors and the schema graph.

Frozen records accept attribute assignment only while their dataclass
__init__ runs; afterwards every mutation raises FrozenSchemaError.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, TypeVar

from .errors import FrozenSchemaError

K = TypeVar("K")
V = TypeVar("V")


class Frozen:
    """Mixin for dataclasses that become read-only after construction."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise FrozenSchemaError(
                f"Cannot set '{name}' on frozen {type(self).__name__}"
            )
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, "_sealed", False):
            raise FrozenSchemaError(
                f"Cannot delete '{name}' on frozen {type(self).__name__}"
            )
        object.__delattr__(self, name)


class FrozenMap(Mapping[K, V]):
    """Read-only, insertion-ordered mapping."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[K, V] | None = None):
        object.__setattr__(self, "_data", dict(data or {}))

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __setitem__(self, key: K, value: V) -> None:
        raise FrozenSchemaError(f"Cannot set '{key}': mapping is frozen")

    def __delitem__(self, key: K) -> None:
        raise FrozenSchemaError(f"Cannot delete '{key}': mapping is frozen")

    def __setattr__(self, name: str, value: Any) -> None:
        raise FrozenSchemaError(f"Cannot set '{name}': mapping is frozen")

    def __repr__(self) -> str:
        return f"FrozenMap({self._data!r})"


def freeze_value(value: Any) -> Any:
    """Deep copy of a plain value with lists as tuples and dicts as FrozenMaps."""
    if isinstance(value, Mapping):
        return FrozenMap({k: freeze_value(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_value(v) for v in value)
    return value


def thaw_value(value: Any) -> Any:
    """Inverse of freeze_value, producing JSON-friendly lists and dicts."""
    if isinstance(value, Mapping):
        return {k: thaw_value(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw_value(v) for v in value]
    return value

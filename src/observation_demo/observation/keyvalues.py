"""
observation_demo.observation.keyvalues

Tag model attached to observation contexts.

Responsibilities:
- `KeyValue`: an immutable (key, value) pair.
- `KeyValues`: an ordered set of KeyValue with unique keys (last write wins).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KeyValue:
    key: str
    value: str

    @classmethod
    def of(cls, key: str, value: object) -> KeyValue:
        if not key:
            raise ValueError("KeyValue key must be a non-empty string")
        return cls(key=str(key), value=str(value))


class KeyValues:
    """
    Keys are unique. Re-writing a key replaces its value but keeps the
    key's original position, so iteration order is first-insert order.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[KeyValue] | Mapping[str, object] | None = None) -> None:
        self._items: dict[str, KeyValue] = {}
        if items is not None:
            self.update(items)

    def add(self, key_value: KeyValue) -> None:
        self._items[key_value.key] = key_value

    def set(self, key: str, value: object) -> None:
        self.add(KeyValue.of(key, value))

    def update(self, items: Iterable[KeyValue] | Mapping[str, object]) -> None:
        if isinstance(items, Mapping):
            for k, v in items.items():
                self.set(k, v)
            return
        for kv in items:
            self.add(kv)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def get(self, key: str) -> str | None:
        kv = self._items.get(key)
        return kv.value if kv is not None else None

    def keys(self) -> list[str]:
        return list(self._items)

    def as_dict(self) -> dict[str, str]:
        return {k: kv.value for k, kv in self._items.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[KeyValue]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KeyValues):
            return self.as_dict() == other.as_dict()
        return NotImplemented

    def __repr__(self) -> str:
        inner = ", ".join(f"{kv.key}={kv.value!r}" for kv in self._items.values())
        return f"KeyValues({inner})"


# --- Module Notes -----------------------------------------------------------
# Low-cardinality values end up as metric labels; high-cardinality values as span
# attributes only. The container itself does not care which is which.

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol


class KeyValueStore(Protocol):
    """
    Surface of window.sessionStorage / window.localStorage used by the site.
    """

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def keys(self) -> Iterator[str]: ...


class MemoryStore:
    """
    String-keyed, string-valued store. Values are kept verbatim.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = {}
        for k, v in (initial or {}).items():
            self.set_item(k, v)

    def get_item(self, key: str) -> str | None:
        return self._items.get(str(key))

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"storage values must be str, got {type(value).__name__}")
        self._items[str(key)] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(str(key), None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return str(key) in self._items


@dataclass(slots=True)
class BrowserStorage:
    session: KeyValueStore = field(default_factory=MemoryStore)
    local: KeyValueStore = field(default_factory=MemoryStore)

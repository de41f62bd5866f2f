from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


def freeze(value: Any) -> Any:
    """
    Recursively turn dicts into read-only mappings and lists into tuples.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class BrandConfig:
    """
    Static brand record (identity, contact channels, compliance badges, pricing,
    colors, locale). Immutable after load.
    """

    name: str
    data: Mapping[str, Any]

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> BrandConfig:
        return cls(name=name, data=freeze(data))

    def get(self, dotted_path: str) -> Any:
        """
        Walk a dot-separated key path ("contact.solutions.phone").
        Any absent segment yields None; never raises.
        """
        value: Any = self.data
        for segment in dotted_path.split("."):
            if isinstance(value, Mapping):
                value = value.get(segment)
            elif isinstance(value, tuple) and segment.isdigit():
                idx = int(segment)
                value = value[idx] if idx < len(value) else None
            else:
                return None
            if value is None:
                return None
        return value

    @property
    def site_name(self) -> str:
        return str(self.data.get("siteName", ""))

    @property
    def language(self) -> str:
        return str(self.data.get("language", "en"))

    @property
    def compliance(self) -> tuple[str, ...]:
        return tuple(self.data.get("compliance", ()))

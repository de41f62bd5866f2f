from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def new_client_id() -> str:
    # GA4 accepts any stable opaque string as client_id
    return uuid.uuid4().hex


@dataclass(slots=True)
class IdsService:
    scope: str
    _counters: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def next_id(self, prefix: str) -> str:
        n = self._counters.get(prefix, 0) + 1
        self._counters[prefix] = n
        return f"{prefix}_{self.scope}_{n:08d}"

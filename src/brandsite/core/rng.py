from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass
class RNG:
    """
    Seedable source for variant draws. seed=None draws from OS entropy.
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._r = random.Random(self.seed)

    def choice(self, seq: Sequence[T]) -> T:
        return self._r.choice(seq)

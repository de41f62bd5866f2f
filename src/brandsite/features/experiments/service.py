from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, TypeVar

from brandsite.core.logging import get_logger
from brandsite.features.storage.service import KeyValueStore

T = TypeVar("T")

KEY_PREFIX = "ab_test_"

_logger = get_logger(__name__)


class RngLike(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


def storage_key(experiment: str) -> str:
    return f"{KEY_PREFIX}{experiment}"


def read_variant(experiment: str, storage: KeyValueStore) -> str | None:
    return storage.get_item(storage_key(experiment))


def assign_variants(
    experiments: Mapping[str, Sequence[str]],
    storage: KeyValueStore,
    rng: RngLike,
    *,
    sticky: bool = True,
) -> dict[str, str]:
    """
    Uniform random variant per experiment, persisted under ab_test_<name>.

    sticky=True: a stored assignment that is still a valid variant is reused,
    so re-running within a session is idempotent.
    sticky=False: every call draws again and overwrites (legacy behavior).
    """
    assigned: dict[str, str] = {}
    for name, variants in experiments.items():
        options = list(variants)
        if not options:
            raise ValueError(f"Experiment {name!r} has no variants")

        key = storage_key(name)
        existing = storage.get_item(key) if sticky else None
        if existing is not None and existing in options:
            assigned[name] = existing
            continue

        variant = rng.choice(options)
        storage.set_item(key, variant)
        assigned[name] = variant

    _logger.info(
        "ab tests initialized",
        extra={"feature": "experiments", "properties": assigned},
    )
    return assigned

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime

from brandsite.core.logging import get_logger
from brandsite.core.types import PageContext, iso_utc
from brandsite.features.storage.service import KeyValueStore

ATTRIBUTION_KEY = "marketing_attribution"
UTM_PARAMS: tuple[str, ...] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
)

_logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AttributionRecord:
    timestamp: str
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None
    referrer: str = ""
    landing_page: str = "/"

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, blob: str) -> AttributionRecord:
        data = json.loads(blob)
        if not isinstance(data, dict) or "timestamp" not in data:
            raise ValueError("attribution blob must be an object with a timestamp")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def capture_attribution(
    page: PageContext,
    storage: KeyValueStore,
    *,
    now_utc: datetime | None = None,
) -> AttributionRecord:
    """
    Read UTM parameters and referrer from the current page and persist them for
    the session. UTM values are taken verbatim; absent ones stay None.
    Re-running overwrites with the current URL state.
    """
    query = page.query
    record = AttributionRecord(
        timestamp=iso_utc(now_utc),
        referrer=page.referrer,
        landing_page=page.path,
        **{name: query.get(name) for name in UTM_PARAMS},
    )

    storage.set_item(ATTRIBUTION_KEY, record.to_json())

    _logger.info(
        "marketing attribution",
        extra={"feature": "attribution", "properties": asdict(record)},
    )
    return record


def load_attribution(storage: KeyValueStore) -> AttributionRecord | None:
    blob = storage.get_item(ATTRIBUTION_KEY)
    if blob is None:
        return None
    try:
        return AttributionRecord.from_json(blob)
    except (ValueError, TypeError):
        _logger.warning(
            "discarding malformed attribution blob",
            extra={"feature": "attribution"},
        )
        return None

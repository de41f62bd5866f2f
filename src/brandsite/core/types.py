from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlsplit

DEFAULT_USER_AGENT = "Mozilla/5.0 (brandsite)"


@dataclass(frozen=True, slots=True)
class PageContext:
    """
    Everything the client-side code reads from window.location, document.referrer
    and navigator.userAgent, captured once per page view.
    """

    url: str
    referrer: str = ""
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def hostname(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()

    @property
    def port(self) -> str:
        port = urlsplit(self.url).port
        return "" if port is None else str(port)

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def query(self) -> dict[str, str]:
        # URLSearchParams.get semantics: first value wins, blanks preserved
        parsed = parse_qs(urlsplit(self.url).query, keep_blank_values=True)
        return {k: v[0] for k, v in parsed.items()}


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_utc(dt: datetime | None = None) -> str:
    dt = utc_now() if dt is None else dt
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()

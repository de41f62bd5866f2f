from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import requests

from brandsite.core.config import LeadsConfig
from brandsite.core.logging import get_logger

LEADS_TABLE = "leads"
ASSESSMENTS_TABLE = "assessments"
NOT_CONFIGURED = "Database not configured"


@dataclass(frozen=True, slots=True)
class StoreResult:
    data: dict[str, Any] | None = None
    error: str | None = None
    warning: str | None = None


class LeadStore(Protocol):
    def insert_lead(self, record: dict[str, Any]) -> StoreResult: ...

    def create_assessment(self, lead_id: Any, assessment_type: str) -> StoreResult: ...


class UnconfiguredLeadStore:
    """
    Used when no hosted-database credentials are present. Forms keep working;
    submissions only reach the log.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    def insert_lead(self, record: dict[str, Any]) -> StoreResult:
        self._logger.info(
            "database not configured, lead logged only",
            extra={"feature": "leads", "form_type": record.get("form_type"), "properties": record},
        )
        return StoreResult(warning=NOT_CONFIGURED)

    def create_assessment(self, lead_id: Any, assessment_type: str) -> StoreResult:
        self._logger.info(
            "database not configured, assessment logged only",
            extra={
                "feature": "leads",
                "properties": {"lead_id": lead_id, "assessment_type": assessment_type},
            },
        )
        return StoreResult(warning=NOT_CONFIGURED)


class SupabaseLeadStore:
    """
    Inserts rows through the Supabase REST (PostgREST) API and returns the
    created row. Failures come back in StoreResult.error, never raised.
    """

    def __init__(self, cfg: LeadsConfig, *, session: requests.Session | None = None) -> None:
        if not cfg.configured:
            raise ValueError("SupabaseLeadStore requires supabase_url and supabase_key")
        self.cfg = cfg
        self._session = session or requests.Session()
        self._logger = get_logger(__name__)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": str(self.cfg.supabase_key),
            "Authorization": f"Bearer {self.cfg.supabase_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _insert(self, table: str, row: dict[str, Any]) -> StoreResult:
        url = f"{str(self.cfg.supabase_url).rstrip('/')}/rest/v1/{table}"
        try:
            resp = self._session.post(
                url,
                json=[row],
                headers=self._headers(),
                timeout=self.cfg.timeout_seconds,
            )
            resp.raise_for_status()
            rows = resp.json()
        except (requests.RequestException, ValueError) as exc:
            self._logger.error(
                f"error inserting into {table}: {exc}",
                extra={"feature": "leads"},
            )
            return StoreResult(error=str(exc))

        if isinstance(rows, list):
            return StoreResult(data=rows[0] if rows else None)
        return StoreResult(data=rows if isinstance(rows, dict) else None)

    def insert_lead(self, record: dict[str, Any]) -> StoreResult:
        return self._insert(LEADS_TABLE, record)

    def create_assessment(self, lead_id: Any, assessment_type: str) -> StoreResult:
        return self._insert(
            ASSESSMENTS_TABLE,
            {
                "lead_id": lead_id,
                "assessment_type": assessment_type,
                "status": "pending",
                "score": None,
                "vulnerabilities": {},
                "recommendations": {},
            },
        )


def build_lead_store(cfg: LeadsConfig) -> LeadStore:
    if cfg.configured:
        return SupabaseLeadStore(cfg)
    get_logger(__name__).warning(
        "Supabase credentials not found. Forms will work but data won't be stored.",
        extra={"feature": "leads"},
    )
    return UnconfiguredLeadStore()

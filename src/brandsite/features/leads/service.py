from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from brandsite.core.logging import get_logger
from brandsite.core.types import iso_utc

from .store import LeadStore

DEFAULT_FORM_TYPE = "contact"

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "signup": ("email", "company", "companySize"),
    "demo": ("firstName", "lastName", "email", "company"),
    "contact": ("firstName", "lastName", "email", "company", "message"),
}

# form field -> leads column
OPTIONAL_COLUMNS: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "companySize": "company_size",
    "jobTitle": "job_title",
    "phone": "phone",
    "message": "message",
    "aiUsage": "ai_usage",
    "concerns": "concerns",
    "timeline": "timeline",
    "budget": "budget",
    "challenges": "challenges",
}

SUCCESS_MESSAGE = "Form submitted successfully"
PENDING_MESSAGE = "Form submitted successfully (pending database setup)"
SIGNUP_ASSESSMENT = "free_assessment"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    form_type: str
    missing: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SubmissionResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)


def form_type_of(form: Mapping[str, Any]) -> str:
    return str(form.get("formType") or DEFAULT_FORM_TYPE)


def validate_submission(form: Mapping[str, Any]) -> ValidationResult:
    """
    Unknown form types are validated against the contact field list.
    Empty strings, None and other falsy values count as missing.
    """
    form_type = form_type_of(form)
    required = REQUIRED_FIELDS.get(form_type, REQUIRED_FIELDS[DEFAULT_FORM_TYPE])
    missing = tuple(name for name in required if not form.get(name))
    return ValidationResult(ok=not missing, form_type=form_type, missing=missing)


def build_lead_record(form: Mapping[str, Any], *, now_utc: datetime | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {
        "form_type": form_type_of(form),
        "email": form.get("email"),
        "company": form.get("company"),
    }
    for src, column in OPTIONAL_COLUMNS.items():
        record[column] = form.get(src) or None
    record["metadata"] = dict(form)
    record["source"] = "website"
    record["created_at"] = iso_utc(now_utc)
    return record


class LeadCaptureService:
    """
    Lead-capture flow behind /api/submit-form.

    Only missing fields are reported to the visitor. Storage problems are
    logged and the visitor still gets a success response.
    """

    def __init__(self, store: LeadStore) -> None:
        self.store = store
        self._logger = get_logger(__name__)

    def submit(
        self, form: Mapping[str, Any], *, now_utc: datetime | None = None
    ) -> SubmissionResponse:
        form_type = DEFAULT_FORM_TYPE
        try:
            form_type = form_type_of(form)
            return self._submit(form, now_utc=now_utc)
        except Exception:
            self._logger.exception(
                "form submission error",
                extra={"feature": "leads", "form_type": form_type},
            )
            return SubmissionResponse(
                status=200,
                body={"success": True, "message": SUCCESS_MESSAGE, "formType": form_type},
            )

    def _submit(self, form: Mapping[str, Any], *, now_utc: datetime | None) -> SubmissionResponse:
        validation = validate_submission(form)
        if not validation.ok:
            return SubmissionResponse(
                status=400,
                body={"error": "Missing required fields", "fields": list(validation.missing)},
            )

        form_type = validation.form_type
        record = build_lead_record(form, now_utc=now_utc)
        result = self.store.insert_lead(record)

        if result.warning:
            return SubmissionResponse(
                status=200,
                body={
                    "success": True,
                    "message": PENDING_MESSAGE,
                    "formType": form_type,
                    "warning": result.warning,
                },
            )

        if result.error:
            self._logger.error(
                f"database error: {result.error}",
                extra={"feature": "leads", "form_type": form_type},
            )
            return SubmissionResponse(
                status=200,
                body={"success": True, "message": SUCCESS_MESSAGE, "formType": form_type},
            )

        lead_id = (result.data or {}).get("id")
        if form_type == "signup" and lead_id is not None:
            self.store.create_assessment(lead_id, SIGNUP_ASSESSMENT)

        self._logger.info(
            "lead captured",
            extra={"feature": "leads", "form_type": form_type},
        )
        return SubmissionResponse(
            status=200,
            body={
                "success": True,
                "message": SUCCESS_MESSAGE,
                "formType": form_type,
                "leadId": lead_id,
            },
        )

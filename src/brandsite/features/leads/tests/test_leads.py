from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import pytest
import requests

from brandsite.core.config import LeadsConfig
from brandsite.features.leads.handler import handle_form_request
from brandsite.features.leads.service import (
    PENDING_MESSAGE,
    LeadCaptureService,
    build_lead_record,
    validate_submission,
)
from brandsite.features.leads.store import (
    NOT_CONFIGURED,
    StoreResult,
    SupabaseLeadStore,
    UnconfiguredLeadStore,
    build_lead_store,
)

T0 = datetime(2026, 2, 2, tzinfo=UTC)

SIGNUP = {
    "formType": "signup",
    "email": "ciso@example.com",
    "company": "Example Corp",
    "companySize": "500-1000",
}


# -----------------------
# Test doubles
# -----------------------


@dataclass
class FakeStore:
    lead: StoreResult = field(default_factory=lambda: StoreResult(data={"id": 42}))
    leads: list[dict[str, Any]] = field(default_factory=list)
    assessments: list[tuple[Any, str]] = field(default_factory=list)

    def insert_lead(self, record: dict[str, Any]) -> StoreResult:
        self.leads.append(record)
        return self.lead

    def create_assessment(self, lead_id: Any, assessment_type: str) -> StoreResult:
        self.assessments.append((lead_id, assessment_type))
        return StoreResult(data={"id": 1})


class BrokenStore:
    def insert_lead(self, record):
        raise RuntimeError("driver crashed")

    def create_assessment(self, lead_id, assessment_type):
        raise AssertionError("not reached")


@dataclass
class FakeResponse:
    status_code: int = 201
    payload: Any = None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self.payload


@dataclass
class FakeSession:
    responses: list[FakeResponse]
    calls: list[dict[str, Any]] = field(default_factory=list)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return self.responses.pop(0)


# -----------------------
# Validation
# -----------------------


def test_signup_missing_company_size_is_rejected() -> None:
    form = {k: v for k, v in SIGNUP.items() if k != "companySize"}
    result = validate_submission(form)
    assert result.ok is False
    assert result.missing == ("companySize",)


def test_signup_with_all_required_fields_is_accepted() -> None:
    result = validate_submission(SIGNUP)
    assert result.ok is True
    assert result.form_type == "signup"


@pytest.mark.parametrize(
    "form_type,expected",
    [
        ("demo", ("firstName", "lastName", "email", "company")),
        ("contact", ("firstName", "lastName", "email", "company", "message")),
        ("newsletter", ("firstName", "lastName", "email", "company", "message")),
        (None, ("firstName", "lastName", "email", "company", "message")),
    ],
)
def test_required_fields_per_form_type(form_type, expected) -> None:
    result = validate_submission({"formType": form_type} if form_type else {})
    assert result.missing == expected


def test_blank_values_count_as_missing() -> None:
    result = validate_submission({**SIGNUP, "email": "", "company": None})
    assert result.missing == ("email", "company")


def test_lead_record_maps_columns() -> None:
    record = build_lead_record({**SIGNUP, "jobTitle": "CISO", "phone": ""}, now_utc=T0)
    assert record["form_type"] == "signup"
    assert record["company_size"] == "500-1000"
    assert record["job_title"] == "CISO"
    assert record["phone"] is None
    assert record["first_name"] is None
    assert record["metadata"]["companySize"] == "500-1000"
    assert record["source"] == "website"
    assert record["created_at"] == T0.isoformat()


# -----------------------
# Service
# -----------------------


def test_submit_rejects_missing_fields_with_400() -> None:
    store = FakeStore()
    resp = LeadCaptureService(store).submit({"formType": "signup", "email": "a@b.c"})
    assert resp.status == 400
    assert resp.body == {"error": "Missing required fields", "fields": ["company", "companySize"]}
    assert store.leads == []


def test_signup_creates_assessment() -> None:
    store = FakeStore()
    resp = LeadCaptureService(store).submit(SIGNUP)

    assert resp.status == 200
    assert resp.body["success"] is True
    assert resp.body["leadId"] == 42
    assert store.assessments == [(42, "free_assessment")]


def test_demo_does_not_create_assessment() -> None:
    store = FakeStore()
    form = {"formType": "demo", "firstName": "A", "lastName": "B", "email": "e", "company": "c"}
    LeadCaptureService(store).submit(form)
    assert len(store.leads) == 1
    assert store.assessments == []


def test_unconfigured_store_reports_pending_success() -> None:
    resp = LeadCaptureService(UnconfiguredLeadStore()).submit(SIGNUP)
    assert resp.status == 200
    assert resp.body["message"] == PENDING_MESSAGE
    assert resp.body["warning"] == NOT_CONFIGURED


def test_storage_error_still_reports_success() -> None:
    store = FakeStore(lead=StoreResult(error="duplicate key"))
    resp = LeadCaptureService(store).submit(SIGNUP)
    assert resp.status == 200
    assert resp.body["success"] is True
    assert "leadId" not in resp.body
    assert store.assessments == []


def test_unexpected_exception_still_reports_success() -> None:
    resp = LeadCaptureService(BrokenStore()).submit(SIGNUP)
    assert resp.status == 200
    assert resp.body == {
        "success": True,
        "message": "Form submitted successfully",
        "formType": "signup",
    }


@pytest.mark.parametrize("payload", [None, ["email", "a@b.c"], "email=a@b.c"])
def test_non_mapping_payload_still_reports_success(payload) -> None:
    store = FakeStore()
    resp = LeadCaptureService(store).submit(payload)

    assert resp.status == 200
    assert resp.body["formType"] == "contact"
    assert store.leads == []


# -----------------------
# Hosted database client
# -----------------------

CFG = LeadsConfig(supabase_url="https://proj.supabase.co/", supabase_key="key")


def test_supabase_store_posts_rows() -> None:
    session = FakeSession([FakeResponse(payload=[{"id": 7}]), FakeResponse(payload=[{"id": 1}])])
    store = SupabaseLeadStore(CFG, session=session)  # type: ignore[arg-type]

    assert store.insert_lead({"email": "x"}) == StoreResult(data={"id": 7})
    store.create_assessment(7, "free_assessment")

    assert session.calls[0]["url"] == "https://proj.supabase.co/rest/v1/leads"
    assert session.calls[0]["json"] == [{"email": "x"}]
    assert session.calls[0]["headers"]["Prefer"] == "return=representation"
    assert session.calls[1]["url"].endswith("/rest/v1/assessments")
    assert session.calls[1]["json"][0]["status"] == "pending"


def test_supabase_store_returns_error_instead_of_raising() -> None:
    session = FakeSession([FakeResponse(status_code=409, payload={"message": "conflict"})])
    result = SupabaseLeadStore(CFG, session=session).insert_lead({})  # type: ignore[arg-type]
    assert result.data is None
    assert result.error is not None and "409" in result.error


def test_build_lead_store_depends_on_credentials() -> None:
    assert isinstance(build_lead_store(LeadsConfig()), UnconfiguredLeadStore)
    assert isinstance(build_lead_store(CFG), SupabaseLeadStore)
    with pytest.raises(ValueError):
        SupabaseLeadStore(LeadsConfig())


# -----------------------
# HTTP handler
# -----------------------


def test_handler_preflight_and_method_check() -> None:
    svc = LeadCaptureService(FakeStore())

    resp, headers = handle_form_request("OPTIONS", None, svc)
    assert resp.status == 200
    assert resp.body == {}
    assert headers["Access-Control-Allow-Origin"] == "*"

    resp, _ = handle_form_request("GET", None, svc)
    assert resp.status == 405
    assert resp.body == {"error": "Method not allowed"}


def test_handler_post_runs_submission() -> None:
    resp, _ = handle_form_request("post", SIGNUP, LeadCaptureService(FakeStore()))
    assert resp.status == 200
    assert resp.body["formType"] == "signup"

    resp, _ = handle_form_request("POST", ["not", "a", "form"], LeadCaptureService(FakeStore()))
    assert resp.status == 400

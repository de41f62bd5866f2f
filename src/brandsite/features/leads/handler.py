from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .service import LeadCaptureService, SubmissionResponse

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}


def handle_form_request(
    method: str,
    body: Any,
    service: LeadCaptureService,
) -> tuple[SubmissionResponse, dict[str, str]]:
    """
    Framework-free request handling: preflight, method check, then the
    lead-capture flow. Returns the response and the headers to set on it.
    """
    headers = dict(CORS_HEADERS)
    method = method.upper()

    if method == "OPTIONS":
        return SubmissionResponse(status=200), headers

    if method != "POST":
        return SubmissionResponse(status=405, body={"error": "Method not allowed"}), headers

    form: Mapping[str, Any] = body if isinstance(body, Mapping) else {}
    return service.submit(form), headers

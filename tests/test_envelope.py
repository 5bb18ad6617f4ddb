"""
Tests for the response envelope, request ids and error translation
"""
import re

import pytest
from fastapi import APIRouter

from unitrack.errors import ConflictError, InternalError, NotFoundError, ValidationError
from unitrack.responses import error_response, generate_request_id, paginated_response, success_response

REQUEST_ID = re.compile(r"^req_\d{13}_[0-9a-z]{9}$")


class TestEnvelopeHelpers:
    def test_request_id_format(self):
        ids = {generate_request_id() for _ in range(20)}
        assert all(REQUEST_ID.match(i) for i in ids)
        assert len(ids) == 20

    def test_success(self):
        body = success_response({"ok": True}, request_id="req_1", version="2.0")
        assert body["data"] == {"ok": True}
        assert body["meta"]["version"] == "2.0"
        assert body["meta"]["requestId"] == "req_1"
        assert body["meta"]["timestamp"].endswith("Z")
        assert "error" not in body

    def test_error_without_details(self):
        body = error_response("RESOURCE_CONFLICT", "Already exists")
        assert body["error"] == {"code": "RESOURCE_CONFLICT", "message": "Already exists"}
        assert "requestId" not in body["meta"]
        assert "data" not in body

    @pytest.mark.parametrize("total,limit,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2)])
    def test_total_pages(self, total, limit, pages):
        body = paginated_response([], page=1, limit=limit, total=total)
        assert body["meta"]["pagination"]["totalPages"] == pages

    def test_error_kinds(self):
        assert (ValidationError("x").status_code, ValidationError("x").code) == (422, "VALIDATION_ERROR")
        assert NotFoundError("Widget").message == "Widget not found"
        assert ConflictError("dup").status_code == 409
        assert (InternalError().status_code, InternalError().message) == (500, "An unexpected error occurred")


class TestEnvelopeOverHttp:
    def test_request_id_header_matches_body(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == {"status": "healthy"}
        assert REQUEST_ID.match(response.headers["X-Request-ID"])
        assert body["meta"]["requestId"] == response.headers["X-Request-ID"]
        assert body["meta"]["version"] == "1.0"

    def test_inbound_request_id_is_reused(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req_from_gateway"})
        assert response.headers["X-Request-ID"] == "req_from_gateway"
        assert response.json()["meta"]["requestId"] == "req_from_gateway"

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
        assert "requestId" in response.json()["meta"]

    def test_method_not_allowed(self, client):
        response = client.patch("/api/universities/search")
        assert response.status_code == 405
        assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"

    def test_unexpected_errors_are_not_leaked(self, app, client):
        router = APIRouter()

        @router.get("/api/explode")
        async def explode():
            raise RuntimeError("database password is hunter2")

        app.include_router(router)
        response = client.get("/api/explode")
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        assert "hunter2" not in response.text
        assert REQUEST_ID.match(response.headers["X-Request-ID"])
        assert body["meta"]["requestId"] == response.headers["X-Request-ID"]

    def test_meta_enums(self, client):
        data = client.get("/api/meta/enums").json()["data"]
        statuses = [s["value"] for s in data["application_statuses"]]
        assert statuses == ["not_started", "in_progress", "submitted", "under_review", "decided"]
        decided = data["application_statuses"][-1]
        assert decided["label"] == "Decided" and decided["is_submitted"] is True
        assert {d["value"] for d in data["decision_types"]} == {"accepted", "rejected", "waitlisted"}
        assert {"value": "Early Decision", "deadline_key": "early_decision"} in data["application_types"]

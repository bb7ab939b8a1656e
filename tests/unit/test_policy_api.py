"""Tests for the policy API router."""

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from courial_shield.api.router import router

from policy_test_helpers import NOW, make_claim, make_ledger, make_member, make_payload


@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


def eligibility_body(**overrides):
    body = {
        "member": make_member().model_dump(mode="json"),
        "ledger": make_ledger().model_dump(mode="json"),
        "claim": make_payload(),
        "history": [],
        "submitted_at": NOW.isoformat(),
    }
    body.update(overrides)
    return body


class TestCatalogEndpoints:
    def test_list_plans(self, client):
        resp = client.get("/api/plans")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == ["free", "basic", "pro", "professional"]

    def test_denial_code_by_legacy_id(self, client):
        resp = client.get("/api/denial-codes/d001")
        assert resp.status_code == 200
        assert resp.json()["code"] == "EXCLUDED_VIOLATION"

    def test_unknown_denial_code_404(self, client):
        resp = client.get("/api/denial-codes/NOPE")
        assert resp.status_code == 404


class TestEligibilityEndpoint:
    def test_eligible(self, client):
        resp = client.post("/api/claims/eligibility", json=eligibility_body())
        assert resp.status_code == 200
        data = resp.json()
        assert data["eligible"] is True
        assert data["denial_code"] is None
        assert len(data["checks"]) == 7

    def test_duplicate_from_history(self, client):
        history = [make_claim(ticket_number="LA-1001").model_dump(mode="json")]
        resp = client.post("/api/claims/eligibility", json=eligibility_body(history=history))
        assert resp.json()["denial_code"] == "DUPLICATE_CLAIM"

    def test_late_submission(self, client):
        claim = make_payload(ticket_date=(NOW - timedelta(days=6)).date().isoformat())
        resp = client.post("/api/claims/eligibility", json=eligibility_body(claim=claim))
        assert resp.status_code == 200
        assert resp.json()["eligible"] is False
        assert resp.json()["denial_code"] == "LATE_SUBMISSION"

    def test_malformed_claim_422(self, client):
        claim = make_payload(ticket_number="  ")
        resp = client.post("/api/claims/eligibility", json=eligibility_body(claim=claim))
        assert resp.status_code == 422
        assert resp.json()["detail"]["field"] == "ticket_number"


class TestPayoutQuoteEndpoint:
    def test_quote_for_plan(self, client):
        resp = client.post("/api/claims/payout-quote", json={"amount": 85, "plan": "basic"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["payout_amount"] == "68.00"
        assert data["member_copay"] == "17.00"

    def test_quote_against_ledger(self, client):
        ledger = make_ledger("pro", used_amount="340").model_dump(mode="json")
        resp = client.post(
            "/api/claims/payout-quote", json={"amount": "200", "ledger": ledger}
        )
        assert resp.json()["payout_amount"] == "10.00"
        assert resp.json()["remaining_cap_applied"] is True

    def test_defaults_to_free_plan(self, client):
        resp = client.post("/api/claims/payout-quote", json={"amount": 200})
        assert resp.json()["payout_amount"] == "100.00"

    def test_unknown_plan_404(self, client):
        resp = client.post("/api/claims/payout-quote", json={"amount": 85, "plan": "platinum"})
        assert resp.status_code == 404

    def test_non_positive_amount_422(self, client):
        resp = client.post("/api/claims/payout-quote", json={"amount": 0, "plan": "basic"})
        assert resp.status_code == 422


class TestCancellationEndpoint:
    def test_blocked(self, client):
        member = make_member(last_claim_payout_date=NOW - timedelta(days=45))
        resp = client.post(
            "/api/members/cancellation-check",
            json={"member": member.model_dump(mode="json"), "now": NOW.isoformat()},
        )
        assert resp.status_code == 200
        assert resp.json()["can_cancel"] is False
        assert resp.json()["days_remaining"] == 45

    def test_allowed(self, client):
        resp = client.post(
            "/api/members/cancellation-check",
            json={"member": make_member().model_dump(mode="json"), "now": NOW.isoformat()},
        )
        assert resp.json()["can_cancel"] is True

from fastapi import Request

from pricemyfloor.core.config import settings
from pricemyfloor.core.dependencies import get_client_ip
from pricemyfloor.database.models import AnalyticsEvent, Lead, LeadStatus
from pricemyfloor.services.lead_intake_service import NO_PREFERENCE_BRAND

URL = "/api/v1/functions/secure-lead-handler"


def submission(**overrides):
    body = {
        "customer_name": "Jamie Homeowner",
        "customer_email": "jamie@example.com",
        "customer_phone": "416-234-5678",
        "postal_code": "m5v2t6",
        "brand_requested": "Shaw Floors",
        "project_size": "750 sq ft",
        "installation_required": True,
    }
    body.update(overrides)
    return body


def test_valid_submission_creates_lead_and_sends_code(client, db, brand, email_client):
    response = client.post(URL, json=submission())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["verification_required"] is True

    lead = db.get(Lead, body["lead_id"])
    assert lead.postal_code == "M5V 2T6"
    assert lead.square_footage == 750
    assert lead.status == LeadStatus.PENDING_VERIFICATION
    assert lead.is_verified is False
    assert lead.client_ip == "testclient"
    assert lead.verification_method == "email"
    assert lead.verification_token == email_client.last_code()
    assert email_client.sent[0]["to"] == "jamie@example.com"


def test_unknown_brand_is_rejected(client, db, brand):
    response = client.post(URL, json=submission(brand_requested="Made Up Floors"))

    assert response.status_code == 400
    assert response.json()["errorType"] == "INVALID_BRAND"
    assert db.query(Lead).count() == 0
    assert db.query(AnalyticsEvent).filter_by(event_name="security_invalid_brand").count() == 1


def test_no_preference_brand_is_accepted(client, brand):
    response = client.post(URL, json=submission(brand_requested=NO_PREFERENCE_BRAND))
    assert response.status_code == 200


def test_invalid_postal_code_is_rejected(client, db, brand):
    response = client.post(URL, json=submission(postal_code="12345"))

    assert response.status_code == 400
    assert response.json()["errorType"] == "VALIDATION_ERROR"
    assert db.query(AnalyticsEvent).filter_by(event_name="security_invalid_postal_code").count() == 1


def test_missing_fields_and_bad_email(client, brand):
    assert client.post(URL, json=submission(customer_name="")).status_code == 400
    response = client.post(URL, json=submission(customer_email="not-an-email"))
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email format"


def test_fourth_submission_from_one_ip_is_rate_limited(client, db, brand):
    for i in range(3):
        response = client.post(URL, json=submission(customer_email=f"person{i}@example.com"))
        assert response.status_code == 200

    response = client.post(URL, json=submission(customer_email="person9@example.com"))

    assert response.status_code == 429
    assert response.json()["errorType"] == "RATE_LIMITED"
    assert db.query(Lead).count() == 3
    assert db.query(AnalyticsEvent).filter_by(event_name="security_rate_limit_exceeded").count() == 1


def test_forwarded_for_ignored_from_untrusted_peer(client, db, brand):
    response = client.post(URL, json=submission(), headers={"X-Forwarded-For": "203.0.113.9"})
    lead = db.get(Lead, response.json()["lead_id"])
    assert lead.client_ip == "testclient"


def test_email_failure_still_creates_lead(client, db, brand, email_client):
    email_client.error = "Resend API error: boom"
    response = client.post(URL, json=submission())

    assert response.status_code == 200
    assert db.query(Lead).count() == 1


def test_third_submission_from_one_email_is_rate_limited(client, db, brand, monkeypatch):
    monkeypatch.setattr(settings.security, "trusted_proxies", ["testclient"])
    emails = ["jamie@example.com", "Jamie@Example.com", "JAMIE@example.com"]
    responses = [
        client.post(URL, json=submission(customer_email=email), headers={"X-Forwarded-For": f"203.0.113.{i}"})
        for i, email in enumerate(emails)
    ]

    assert [r.status_code for r in responses] == [200, 200, 429]
    assert responses[2].json()["errorType"] == "RATE_LIMITED"
    assert db.query(Lead).count() == 2
    assert {lead.client_ip for lead in db.query(Lead)} == {"203.0.113.0", "203.0.113.1"}


def test_forwarded_for_used_from_trusted_proxy():
    request = Request({
        "type": "http",
        "method": "POST",
        "path": URL,
        "headers": [(b"x-forwarded-for", b"203.0.113.9, 10.0.0.1")],
        "client": ("10.0.0.1", 443),
    })
    assert get_client_ip(request) == "203.0.113.9"

    direct = Request({"type": "http", "method": "POST", "path": URL, "headers": [(b"x-real-ip", b"203.0.113.9")], "client": ("198.51.100.20", 443)})
    assert get_client_ip(direct) == "198.51.100.20"

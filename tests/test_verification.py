import asyncio
from datetime import timedelta

from sqlalchemy.exc import OperationalError

from pricemyfloor.database.models import Lead, LeadDistribution, LeadStatus
from pricemyfloor.services.verification_service import VerificationService
from pricemyfloor.utils.helpers import utcnow
from tests.conftest import make_lead, subscribe

SEND_URL = "/api/v1/functions/send-verification"
VERIFY_URL = "/api/v1/functions/verify-lead"


def send_email_code(client, lead):
    return client.post(SEND_URL, json={"leadId": lead.id, "method": "email", "contact": lead.customer_email})


def test_email_code_verifies_lead(client, db, email_client):
    lead = make_lead(db)

    response = send_email_code(client, lead)
    assert response.status_code == 200
    assert response.json()["method"] == "email"

    code = email_client.last_code()
    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": code})

    assert response.status_code == 200
    assert response.json()["success"] is True
    db.refresh(lead)
    assert lead.is_verified is True
    assert lead.status == LeadStatus.VERIFIED
    assert lead.verification_token is None


def test_code_field_alias_is_accepted(client, db, email_client):
    lead = make_lead(db)
    send_email_code(client, lead)

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "code": email_client.last_code()})
    assert response.status_code == 200


def test_wrong_code_leaves_lead_unverified(client, db, email_client):
    lead = make_lead(db)
    send_email_code(client, lead)
    wrong = "000000" if email_client.last_code() != "000000" else "111111"

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": wrong})

    assert response.status_code == 400
    assert response.json()["errorType"] == "INVALID_CODE"
    db.refresh(lead)
    assert lead.is_verified is False


def test_expired_code_is_rejected(client, db):
    lead = make_lead(
        db,
        verification_token="123456",
        verification_method="email",
        verification_expires_at=utcnow() - timedelta(minutes=1),
    )

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": "123456"})

    assert response.status_code == 400
    assert response.json()["errorType"] == "VERIFICATION_EXPIRED"
    db.refresh(lead)
    assert lead.is_verified is False
    assert lead.status == LeadStatus.EXPIRED


def test_missing_expiry_counts_as_expired(client, db):
    lead = make_lead(db, verification_token="123456", verification_method="email")
    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": "123456"})
    assert response.json()["errorType"] == "VERIFICATION_EXPIRED"


def test_resend_within_cooldown_is_rejected(client, db, email_client):
    lead = make_lead(db)
    assert send_email_code(client, lead).status_code == 200

    response = send_email_code(client, lead)

    assert response.status_code == 429
    assert response.json()["errorType"] == "RESEND_COOLDOWN"
    assert len(email_client.sent) == 1


def test_provider_timeout_returns_504(client, db, email_client):
    email_client.delay = 2
    lead = make_lead(db)

    response = send_email_code(client, lead)

    assert response.status_code == 504
    body = response.json()
    assert body["errorType"] == "TIMEOUT"
    assert body["failureCategory"] == "timeout"
    db.refresh(lead)
    assert lead.verification_sent_at is None


def test_sms_send_failure_is_categorised(client, db, sms_client):
    sms_client.error = "Invalid phone number format: +14162345678. Please ensure the number includes country code."
    lead = make_lead(db)

    response = client.post(SEND_URL, json={"leadId": lead.id, "method": "sms", "contact": "416-234-5678"})

    assert response.status_code == 400
    body = response.json()
    assert body["errorType"] == "VERIFICATION_SEND_FAILED"
    assert body["failureCategory"] == "invalid_phone"
    assert body["details"] == "Please check your phone number format and try again."


def test_sms_code_checked_with_provider(client, db, sms_client):
    lead = make_lead(db)
    response = client.post(SEND_URL, json={"leadId": lead.id, "method": "sms", "contact": "(416) 234-5678"})
    assert response.status_code == 200
    assert sms_client.started == ["+14162345678"]

    assert client.post(VERIFY_URL, json={"leadId": lead.id, "token": "999999"}).status_code == 400
    assert client.post(VERIFY_URL, json={"leadId": lead.id, "token": "123456"}).status_code == 200


def test_unknown_lead_and_bad_input(client):
    response = client.post(SEND_URL, json={"leadId": "missing", "method": "email", "contact": "a@example.com"})
    assert response.status_code == 404
    assert response.json()["errorType"] == "LEAD_NOT_FOUND"

    response = client.post(SEND_URL, json={"leadId": "missing", "method": "fax", "contact": "a@example.com"})
    assert response.status_code == 400


def test_temp_lead_can_be_verified(client, db, email_client):
    response = client.post(
        "/api/v1/functions/insert-temp-lead",
        json={"email": "Temp@Example.com", "phone": "4162345678", "method": "email"},
    )
    assert response.status_code == 200
    lead_id = response.json()["leadId"]

    lead = db.get(Lead, lead_id)
    assert lead.customer_email == "temp@example.com"
    assert lead.postal_code == "TEMP"

    client.post(SEND_URL, json={"leadId": lead_id, "method": "email", "contact": "temp@example.com"})
    response = client.post(VERIFY_URL, json={"leadId": lead_id, "token": email_client.last_code()})
    assert response.status_code == 200


def test_verification_triggers_distribution(client, db, email_client, brand, retailer):
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db)
    send_email_code(client, lead)

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": email_client.last_code()})

    assert response.status_code == 200
    assert response.json()["distribution"]["distributions_created"] == 1
    distribution = db.query(LeadDistribution).filter_by(lead_id=lead.id).one()
    assert distribution.retailer_id == retailer.id
    db.refresh(lead)
    assert lead.status == LeadStatus.DISTRIBUTED


def test_second_verify_reports_already_verified(client, db):
    lead = make_lead(db, verified=True)
    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": "123456"})
    assert response.json()["alreadyVerified"] is True


def test_sent_code_with_failed_lead_update_reports_partial_failure(db, email_client, sms_client, monkeypatch):
    lead = make_lead(db)
    service = VerificationService(db, email_client, sms_client)

    def broken_commit():
        raise OperationalError("UPDATE leads", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)
    result = asyncio.run(service.send_verification(lead.id, "email", lead.customer_email))

    assert result["success"] is True
    assert result["partialFailure"] is True
    assert result["errorType"] == "DATABASE_UPDATE_FAILED"
    assert len(email_client.sent) == 1


def test_code_is_voided_after_too_many_wrong_attempts(client, db, email_client):
    lead = make_lead(db)
    send_email_code(client, lead)
    code = email_client.last_code()
    wrong = "000000" if code != "000000" else "111111"

    statuses = [
        client.post(VERIFY_URL, json={"leadId": lead.id, "token": wrong}).json()["errorType"]
        for _ in range(5)
    ]
    assert statuses == ["INVALID_CODE"] * 4 + ["VERIFICATION_EXPIRED"]

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": code})
    assert response.status_code == 400
    assert response.json()["errorType"] == "VERIFICATION_EXPIRED"
    db.refresh(lead)
    assert lead.is_verified is False
    assert lead.status == LeadStatus.EXPIRED


def test_new_code_resets_wrong_attempts(client, db, email_client):
    lead = make_lead(db)
    send_email_code(client, lead)
    wrong = "000000" if email_client.last_code() != "000000" else "111111"
    for _ in range(4):
        client.post(VERIFY_URL, json={"leadId": lead.id, "token": wrong})

    lead.verification_sent_at = utcnow() - timedelta(minutes=5)
    db.commit()
    assert send_email_code(client, lead).status_code == 200

    response = client.post(VERIFY_URL, json={"leadId": lead.id, "token": email_client.last_code()})
    assert response.status_code == 200

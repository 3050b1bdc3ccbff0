import hashlib
import hmac
import json
import time
from decimal import Decimal

from pricemyfloor.database.models import (
    BillingRecord,
    DistributionStatus,
    LeadDistribution,
    PaymentMethod,
    PaymentTransaction,
    PaymentType,
    RetailerLeadCredits,
    TransactionStatus,
)
from tests.conftest import make_lead

CHARGE_URL = "/api/v1/functions/charge-lead-payment"
WEBHOOK_URL = "/api/v1/functions/stripe-webhook"


def make_distribution(db, retailer, price="2.50") -> LeadDistribution:
    lead = make_lead(db, verified=True)
    distribution = LeadDistribution(
        lead_id=lead.id,
        retailer_id=retailer.id,
        lead_price=Decimal(price),
        charge_amount=Decimal(price),
        brand_matched="Shaw Floors",
        status=DistributionStatus.SENT,
        payment_method="pending",
    )
    db.add(distribution)
    db.commit()
    return distribution


def add_card(db, retailer, pm_id="pm_card_visa"):
    retailer.stripe_customer_id = "cus_test"
    db.add(PaymentMethod(retailer_id=retailer.id, stripe_payment_method_id=pm_id, card_brand="visa", card_last4="4242", is_default=True))
    db.commit()


def sign(payload: bytes, secret: str = "whsec_test_secret") -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(retailer_id: str, credits: int = 100) -> bytes:
    event = {
        "id": "evt_test",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test",
                "object": "checkout.session",
                "payment_intent": "pi_credits",
                "amount_total": 20000,
                "currency": "cad",
                "metadata": {"retailer_id": retailer_id, "credits": str(credits), "package_type": "100"},
            }
        },
    }
    return json.dumps(event).encode()


def test_credits_are_used_before_cards(client, db, retailer, admin_headers, stripe_client):
    add_card(db, retailer)
    db.add(RetailerLeadCredits(retailer_id=retailer.id, credits_remaining=2, credits_used=0))
    db.commit()
    distribution = make_distribution(db, retailer)

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["payment_method"] == "credits"
    assert stripe_client.charges == []
    credits = db.query(RetailerLeadCredits).filter_by(retailer_id=retailer.id).one()
    db.refresh(credits)
    assert credits.credits_remaining == 1
    assert credits.credits_used == 1
    transaction = db.query(PaymentTransaction).one()
    assert transaction.payment_type == PaymentType.CREDIT_DEDUCTION
    assert transaction.status == TransactionStatus.COMPLETED


def test_no_card_leaves_distribution_pending(client, db, retailer, admin_headers):
    distribution = make_distribution(db, retailer)

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "No payment method available", "was_paid": False}
    db.refresh(distribution)
    db.refresh(retailer)
    assert distribution.status == DistributionStatus.PAYMENT_PENDING
    assert retailer.current_balance == Decimal("2.50")
    assert db.query(BillingRecord).one().status == "pending"


def test_repeated_charge_without_card_counts_balance_once(client, db, retailer, admin_headers):
    distribution = make_distribution(db, retailer)

    for _ in range(2):
        response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)
        assert response.json()["was_paid"] is False

    db.expire_all()
    assert retailer.current_balance == Decimal("2.50")
    assert db.query(BillingRecord).count() == 1


def test_card_added_later_settles_pending_balance(client, db, retailer, admin_headers, stripe_client):
    distribution = make_distribution(db, retailer)
    client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)
    add_card(db, retailer)

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.json()["was_paid"] is True
    assert len(stripe_client.charges) == 1
    db.expire_all()
    assert retailer.current_balance == Decimal("0.00")
    assert distribution.status == DistributionStatus.SENT
    record = db.query(BillingRecord).one()
    assert (record.billing_type, record.status) == ("lead_charge", "paid")


def test_credit_purchase_settles_pending_balance(client, db, retailer, admin_headers):
    distribution = make_distribution(db, retailer)
    client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)
    db.add(RetailerLeadCredits(retailer_id=retailer.id, credits_remaining=1, credits_used=0))
    db.commit()

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.json()["payment_method"] == "credits"
    db.expire_all()
    assert retailer.current_balance == Decimal("0.00")
    record = db.query(BillingRecord).one()
    assert (record.billing_type, record.status) == ("lead_credit", "paid")


def test_default_card_is_charged(client, db, retailer, admin_headers, stripe_client):
    add_card(db, retailer)
    distribution = make_distribution(db, retailer)

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["was_paid"] is True
    assert stripe_client.charges == [{"amount_cents": 250, "customer": "cus_test", "payment_method": "pm_card_visa"}]
    db.refresh(distribution)
    assert distribution.was_paid is True
    assert distribution.stripe_payment_intent_id == "pi_test_1"

    again = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)
    assert again.json()["already_paid"] is True
    assert len(stripe_client.charges) == 1


def test_declined_card_marks_payment_failed(client, db, retailer, admin_headers, stripe_client):
    stripe_client.decline = "Your card was declined."
    add_card(db, retailer)
    distribution = make_distribution(db, retailer)

    response = client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    assert response.status_code == 402
    assert response.json()["errorType"] == "PAYMENT_ERROR"
    db.refresh(distribution)
    assert distribution.status == DistributionStatus.PAYMENT_FAILED
    assert db.query(PaymentTransaction).one().status == TransactionStatus.FAILED


def test_unknown_distribution(client, admin_headers):
    response = client.post(CHARGE_URL, json={"distributionId": "missing"}, headers=admin_headers)
    assert response.status_code == 404


def test_signed_checkout_webhook_adds_credits_once(client, db, retailer):
    payload = checkout_event(retailer.id)

    for _ in range(2):
        response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})
        assert response.status_code == 200
        assert response.json() == {"received": True}

    credits = db.query(RetailerLeadCredits).filter_by(retailer_id=retailer.id).one()
    assert credits.credits_remaining == 100
    assert db.query(PaymentTransaction).filter_by(payment_type=PaymentType.CREDIT_PURCHASE).count() == 1


def test_webhook_with_bad_signature_is_rejected(client, db, retailer):
    payload = checkout_event(retailer.id)

    response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload, "whsec_wrong")})

    assert response.status_code == 400
    assert db.query(RetailerLeadCredits).count() == 0

    assert client.post(WEBHOOK_URL, content=payload).status_code == 400


def test_payment_intent_succeeded_webhook_settles_charge(client, db, retailer, admin_headers, stripe_client):
    stripe_client.charge_status = "processing"
    add_card(db, retailer)
    distribution = make_distribution(db, retailer)
    client.post(CHARGE_URL, json={"distributionId": distribution.id}, headers=admin_headers)

    payload = json.dumps({
        "id": "evt_ok",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_test_1", "object": "payment_intent", "amount_received": 250}},
    }).encode()
    response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    assert response.status_code == 200
    db.refresh(distribution)
    assert distribution.was_paid is True
    assert distribution.status == DistributionStatus.SENT
    assert db.query(PaymentTransaction).one().status == TransactionStatus.COMPLETED
    assert db.query(BillingRecord).one().status == "paid"


def test_setup_intent_and_saved_cards(client, db, retailer, retailer_headers):
    response = client.post("/api/v1/functions/create-setup-intent", headers=retailer_headers)
    assert response.status_code == 200
    assert response.json() == {"clientSecret": "seti_test_secret", "customerId": "cus_test"}

    url = "/api/v1/functions/save-payment-method"
    first = client.post(url, json={"paymentMethodId": "pm_one"}, headers=retailer_headers)
    second = client.post(url, json={"paymentMethodId": "pm_two"}, headers=retailer_headers)
    duplicate = client.post(url, json={"paymentMethodId": "pm_one"}, headers=retailer_headers)

    assert first.json()["paymentMethod"]["is_default"] is True
    assert second.json()["paymentMethod"]["is_default"] is False
    assert duplicate.status_code == 409

    default_id = first.json()["paymentMethod"]["id"]
    response = client.delete(f"/api/v1/retailer/payment-methods/{default_id}", headers=retailer_headers)
    assert response.status_code == 200

    methods = client.get("/api/v1/retailer/payment-methods", headers=retailer_headers).json()["payment_methods"]
    assert [(m["stripe_payment_method_id"], m["is_default"]) for m in methods] == [("pm_two", True)]


def test_purchase_credits_uses_origin(client, retailer_headers, stripe_client):
    response = client.post(
        "/api/v1/functions/purchase-lead-credits",
        json={"packageType": "200"},
        headers={**retailer_headers, "Origin": "https://pricemyfloor.example"},
    )

    assert response.status_code == 200
    assert response.json()["url"] == "https://checkout.stripe.com/c/cs_test"
    session = stripe_client.checkout_sessions[0]
    assert session["amount_cents"] == 38000
    assert session["metadata"]["credits"] == "200"
    assert session["success_url"].startswith("https://pricemyfloor.example/retailer/credits?success=true")

    bad = client.post("/api/v1/functions/purchase-lead-credits", json={"packageType": "7"}, headers=retailer_headers)
    assert bad.status_code == 400

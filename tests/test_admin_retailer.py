from decimal import Decimal

from pricemyfloor.database.models import (
    AdminAction,
    BillingRecord,
    DistributionStatus,
    FlooringBrand,
    LeadDistribution,
    LeadPurchase,
    RetailerApplication,
)
from tests.conftest import make_lead


def send_lead(db, retailer, price="2.50"):
    lead = make_lead(db, verified=True)
    distribution = LeadDistribution(
        lead_id=lead.id,
        retailer_id=retailer.id,
        lead_price=Decimal(price),
        charge_amount=Decimal(price),
        brand_matched="Shaw Floors",
        status=DistributionStatus.SENT,
    )
    db.add(distribution)
    db.commit()
    return lead, distribution


def test_admin_routes_require_admin(client, retailer_headers):
    assert client.get("/api/v1/admin/dashboard").status_code == 401
    response = client.get("/api/v1/admin/dashboard", headers=retailer_headers)
    assert response.status_code == 403
    assert response.json()["errorType"] == "FORBIDDEN"


def test_retailer_routes_require_retailer(client, admin_headers):
    assert client.get("/api/v1/retailer/dashboard", headers=admin_headers).status_code == 403


def test_reject_application_is_audited(client, db, admin, admin_headers):
    application = RetailerApplication(
        business_name="Nope Floors",
        contact_name="Sam",
        email="sam@example.com",
        phone="4162345678",
        city="Toronto",
        postal_code="M5V 2T6",
    )
    db.add(application)
    db.commit()

    response = client.post(
        f"/api/v1/admin/applications/{application.id}/reject",
        json={"reason": "Outside service area"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    db.refresh(application)
    assert application.status == "rejected"
    assert application.notes == "Outside service area"
    action = db.query(AdminAction).one()
    assert action.action_type == "reject_application"
    assert action.admin_user_id == admin.id
    assert action.ip_address == "testclient"

    listing = client.get("/api/v1/admin/applications?status=rejected", headers=admin_headers).json()
    assert listing["total"] == 1


def test_retailer_status_update(client, db, retailer, admin_headers):
    response = client.patch(f"/api/v1/admin/retailers/{retailer.id}/status", json={"status": "suspended"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"
    assert db.query(AdminAction).one().details == {"from": "approved", "to": "suspended"}

    bad = client.patch(f"/api/v1/admin/retailers/{retailer.id}/status", json={"status": "gone"}, headers=admin_headers)
    assert bad.status_code == 400


def test_brand_management(client, db, admin_headers):
    response = client.post(
        "/api/v1/admin/brands",
        json={"name": "Mohawk Industries", "categories": ["Carpet"], "featured": True},
        headers=admin_headers,
    )
    assert response.status_code == 201
    brand = response.json()
    assert brand["slug"] == "mohawk-industries"

    assert client.post("/api/v1/admin/brands", json={"name": "Mohawk Industries"}, headers=admin_headers).status_code == 409
    assert client.get("/api/v1/brands/mohawk-industries").json()["name"] == "Mohawk Industries"
    options = client.get("/api/v1/brands/options").json()
    assert options["brands"] == ["Mohawk Industries", "No preference - show me options"]

    response = client.delete(f"/api/v1/admin/brands/{brand['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert db.query(FlooringBrand).count() == 0
    assert sorted(a.action_type for a in db.query(AdminAction)) == ["create_brand", "delete_brand"]


def test_coverage_update(client, db, retailer, retailer_headers):
    response = client.put(
        "/api/v1/retailer/coverage",
        json={"postal_code_prefixes": ["l", "L5", "m5v", "L5"]},
        headers=retailer_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["postal_code_prefixes"] == ["L", "L5", "M5V"]
    assert body["warnings"] == ["L overlaps with L5"]
    db.refresh(retailer)
    assert retailer.postal_code_prefixes == ["L", "L5", "M5V"]

    bad = client.put("/api/v1/retailer/coverage", json={"postal_code_prefixes": ["L5J4"]}, headers=retailer_headers)
    assert bad.status_code == 400
    assert "L5J4" in bad.json()["details"]

    too_many = [f"M{digit}" for digit in range(10)] + ["L"]
    assert client.put("/api/v1/retailer/coverage", json={"postal_code_prefixes": too_many}, headers=retailer_headers).status_code == 400


def test_viewing_a_lead_marks_it_viewed(client, db, retailer, retailer_headers):
    lead, distribution = send_lead(db, retailer)

    response = client.get(f"/api/v1/retailer/leads/{lead.id}", headers=retailer_headers)

    assert response.status_code == 200
    assert response.json()["lead"]["customer_phone_display"] == "(416) 234-5678"
    db.refresh(distribution)
    assert distribution.status == DistributionStatus.VIEWED
    assert distribution.viewed_at is not None

    assert client.get("/api/v1/retailer/leads/unknown", headers=retailer_headers).status_code == 404


def test_lock_lead_is_invoiced_once(client, db, retailer, retailer_headers):
    lead, distribution = send_lead(db, retailer)

    response = client.post(f"/api/v1/retailer/leads/{lead.id}/lock", headers=retailer_headers)

    assert response.status_code == 200
    assert response.json()["lock_price"] == 7.5
    db.refresh(lead)
    db.refresh(retailer)
    assert lead.is_locked is True
    assert lead.assigned_retailer_id == retailer.id
    assert retailer.current_balance == Decimal("7.50")
    assert db.query(LeadPurchase).one().purchase_method == "invoice"
    assert db.query(BillingRecord).one().billing_type == "exclusive_lock"

    again = client.post(f"/api/v1/retailer/leads/{lead.id}/lock", headers=retailer_headers)
    assert again.status_code == 409


def test_dashboard_counts(client, db, retailer, retailer_headers):
    lead, _ = send_lead(db, retailer)
    client.post(f"/api/v1/retailer/leads/{lead.id}/responded", headers=retailer_headers)

    body = client.get("/api/v1/retailer/dashboard", headers=retailer_headers).json()

    assert body["total_leads"] == 1
    assert body["leads_this_month"] == 1
    assert body["conversion_rate"] == 100.0
    assert body["monthly_spend"] == 2.5


def test_settings_validation(client, retailer_headers):
    response = client.put(
        "/api/v1/retailer/settings",
        json={"installation_preference": "no", "monthly_budget_cap": "150.00"},
        headers=retailer_headers,
    )
    assert response.status_code == 200
    assert response.json()["monthly_budget_cap"] == 150.0

    bad = client.put("/api/v1/retailer/settings", json={"installation_preference": "maybe"}, headers=retailer_headers)
    assert bad.status_code == 400


def test_admin_lead_listing_and_settings(client, db, retailer, admin_headers):
    send_lead(db, retailer)

    leads = client.get("/api/v1/admin/leads?verified=true", headers=admin_headers).json()
    assert leads["total"] == 1
    assert leads["leads"][0]["distributions"][0]["retailer_id"] == retailer.id

    settings_body = client.get("/api/v1/admin/settings", headers=admin_headers)
    assert settings_body.status_code == 200


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/v1/functions/google-maps-config").json() == {"apiKey": "maps-test-key"}

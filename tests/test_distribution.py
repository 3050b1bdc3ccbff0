import asyncio
from decimal import Decimal

import pytest

from pricemyfloor.database.models import LeadDistribution, RetailerStatus
from pricemyfloor.services.distribution_service import DistributionService, installation_compatible
from pricemyfloor.utils.exceptions import ValidationError
from tests.conftest import make_lead, make_retailer, subscribe
from tests.fakes import FakeEmailClient


def distribute(db, lead):
    return asyncio.run(DistributionService(db).distribute(lead.id))


def test_installation_preference_rules():
    assert installation_compatible("yes", True)
    assert not installation_compatible("yes", False)
    assert installation_compatible("no", False)
    assert not installation_compatible("no", True)
    assert installation_compatible("both", True)


def test_matching_rules(db, brand):
    matching = make_retailer(db, "Match Co", prefixes=["M5"])
    subscribe(db, matching, "Shaw Floors")

    wrong_area = make_retailer(db, "Far Away", prefixes=["V"])
    subscribe(db, wrong_area, "Shaw Floors")

    pending = make_retailer(db, "Pending Co", prefixes=["M"], status=RetailerStatus.PENDING)
    subscribe(db, pending, "Shaw Floors")

    no_coverage = make_retailer(db, "Empty Co", prefixes=[])
    subscribe(db, no_coverage, "Shaw Floors")

    wrong_tier = make_retailer(db, "Big Jobs", prefixes=["M5V"])
    subscribe(db, wrong_tier, "Shaw Floors", tier_key="5000+")

    install_only = make_retailer(db, "Installers", prefixes=["M5"], installation_preference="yes")
    subscribe(db, install_only, "Shaw Floors")

    lead = make_lead(db, verified=True, installation_required=False)
    summary = distribute(db, lead)

    assert summary["distributions_created"] == 1
    assert summary["retailers_notified"][0]["retailer_id"] == matching.id
    assert summary["retailers_notified"][0]["lead_price"] == 2.5


def test_no_preference_lead_matches_any_brand(db, brand):
    retailer = make_retailer(db, prefixes=["M"])
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db, verified=True, brand_requested="No preference - show me options")

    assert distribute(db, lead)["distributions_created"] == 1


def test_redistribution_creates_no_duplicates(db, brand, retailer):
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db, verified=True)

    assert distribute(db, lead)["distributions_created"] == 1
    second = distribute(db, lead)

    assert second["distributions_created"] == 0
    assert second["total_matching_retailers"] == 1
    assert db.query(LeadDistribution).filter_by(lead_id=lead.id).count() == 1


def test_budget_cap_stops_matching(db, brand):
    retailer = make_retailer(db, prefixes=["M5"], monthly_budget_cap=Decimal("4.00"))
    subscribe(db, retailer, "Shaw Floors", lead_price=Decimal("2.50"))

    first = make_lead(db, verified=True, customer_email="one@example.com")
    second = make_lead(db, verified=True, customer_email="two@example.com")

    assert distribute(db, first)["distributions_created"] == 1
    assert distribute(db, second)["distributions_created"] == 0


def test_unverified_lead_is_not_distributed(db, brand, retailer):
    lead = make_lead(db)
    with pytest.raises(ValidationError):
        distribute(db, lead)


def test_distribute_endpoint_is_admin_only(client, db, brand, retailer, retailer_headers, admin_headers):
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db, verified=True)
    url = "/api/v1/functions/distribute-lead"

    assert client.post(url, json={"leadId": lead.id}).status_code == 401
    assert client.post(url, json={"leadId": lead.id}, headers=retailer_headers).status_code == 403

    response = client.post(url, json={"leadId": lead.id}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["distributions_created"] == 1


def test_new_distribution_emails_retailer(db, brand, retailer):
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db, verified=True, timeline="Within a month", notes="Basement <rec room>")
    email_client = FakeEmailClient()

    summary = asyncio.run(DistributionService(db, email_client=email_client).distribute(lead.id))

    assert summary["emails_sent"] == 1
    [email] = email_client.sent
    assert email["to"] == "floorco@example.com"
    assert email["subject"] == "New Flooring Lead: Jamie Homeowner - 300 sq ft"
    assert "(416) 234-5678" in email["html"]
    assert "Basement &lt;rec room&gt;" in email["html"]
    assert "Lead price $2.50 CAD, billed to your account" in email["html"]

    asyncio.run(DistributionService(db, email_client=email_client).distribute(lead.id))
    assert len(email_client.sent) == 1


def test_lead_email_failure_does_not_block_distribution(db, brand, retailer):
    subscribe(db, retailer, "Shaw Floors")
    lead = make_lead(db, verified=True)

    summary = asyncio.run(
        DistributionService(db, email_client=FakeEmailClient(error="Resend API error: boom")).distribute(lead.id)
    )

    assert summary["distributions_created"] == 1
    assert summary["emails_sent"] == 0
    assert db.query(LeadDistribution).filter_by(lead_id=lead.id).count() == 1

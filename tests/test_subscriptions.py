import asyncio
from decimal import Decimal

from pricemyfloor.database.models import BrandSubscription
from pricemyfloor.services.subscription_service import SubscriptionService
from pricemyfloor.utils.keyed_queue import KeyedTaskQueue

TOGGLE_URL = "/api/v1/retailer/subscriptions/toggle"


def test_rapid_toggles_leave_one_row(db, brand, retailer):
    service = SubscriptionService(db, queue=KeyedTaskQueue("test"))

    async def main():
        return await asyncio.gather(
            service.toggle_tier(retailer, "Shaw Floors", "500-1000", True),
            service.toggle_tier(retailer, "Shaw Floors", "500-1000", True),
        )

    first, second = asyncio.run(main())

    assert first["id"] == second["id"]
    assert db.query(BrandSubscription).filter_by(retailer_id=retailer.id).count() == 1


def test_toggle_on_then_off(client, db, brand, retailer, retailer_headers):
    response = client.post(TOGGLE_URL, json={"brand_name": "Shaw Floors", "sqft_tier": "100-500"}, headers=retailer_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["is_active"] is True
    assert body["sqft_tier_min"] == 101
    assert body["sqft_tier_max"] == 500
    # default "both" preference accepts installation
    assert body["accepts_installation"] is True
    assert body["lead_price"] == 3.0

    response = client.post(
        TOGGLE_URL,
        json={"brand_name": "Shaw Floors", "sqft_tier": "100-500", "enabled": False},
        headers=retailer_headers,
    )
    assert response.json()["is_active"] is False
    assert db.query(BrandSubscription).count() == 1


def test_unknown_brand_or_tier(client, brand, retailer_headers):
    response = client.post(TOGGLE_URL, json={"brand_name": "Nope", "sqft_tier": "100-500"}, headers=retailer_headers)
    assert response.status_code == 404

    response = client.post(TOGGLE_URL, json={"brand_name": "Shaw Floors", "sqft_tier": "1-2"}, headers=retailer_headers)
    assert response.status_code == 400


def test_installation_toggle_moves_tier_price(client, db, brand, retailer, retailer_headers):
    response = client.post(TOGGLE_URL, json={"brand_name": "Shaw Floors", "sqft_tier": "0-100"}, headers=retailer_headers)
    subscription_id = response.json()["id"]

    response = client.post(
        f"/api/v1/retailer/subscriptions/{subscription_id}/installation",
        json={"accepts_installation": False},
        headers=retailer_headers,
    )

    assert response.status_code == 200
    assert response.json()["accepts_installation"] is False
    assert response.json()["lead_price"] == 1.0


def test_update_subscription_validates_bounds(client, db, brand, retailer, retailer_headers):
    response = client.post(TOGGLE_URL, json={"brand_name": "Shaw Floors", "sqft_tier": "0-100"}, headers=retailer_headers)
    subscription_id = response.json()["id"]
    url = f"/api/v1/retailer/subscriptions/{subscription_id}"

    response = client.patch(url, json={"lead_price": "4.25"}, headers=retailer_headers)
    assert response.status_code == 200
    assert response.json()["lead_price"] == 4.25

    response = client.patch(url, json={"sqft_tier_min": 200, "sqft_tier_max": 100}, headers=retailer_headers)
    assert response.status_code == 400

    subscription = db.get(BrandSubscription, subscription_id)
    db.refresh(subscription)
    assert subscription.lead_price == Decimal("4.25")


def test_listing_groups_by_brand(client, db, brand, retailer, retailer_headers):
    client.post(TOGGLE_URL, json={"brand_name": "Shaw Floors", "sqft_tier": "0-100"}, headers=retailer_headers)

    response = client.get("/api/v1/retailer/subscriptions", headers=retailer_headers)

    body = response.json()
    assert [tier["key"] for tier in body["tiers"]][0] == "0-100"
    assert body["brands"][0]["brand_name"] == "Shaw Floors"
    assert body["brands"][0]["active_tiers"] == ["0-100"]

"""
Shared fixtures: in-memory database, fake providers and auth helpers
"""
import os
from pathlib import Path

os.environ.setdefault("PRICEMYFLOOR_CONFIG", str(Path(__file__).parent / "config.test.yaml"))

import pytest
from fastapi.testclient import TestClient

from pricemyfloor.core.dependencies import get_email_client, get_sms_client, get_stripe_client
from pricemyfloor.core.security import create_access_token, hash_password
from pricemyfloor.database.connection import DatabasePool
from pricemyfloor.database.models import (
    BrandSubscription,
    FlooringBrand,
    Lead,
    LeadStatus,
    Profile,
    Retailer,
    RetailerStatus,
    Role,
    User,
)
from pricemyfloor.database.session import drop_db, get_session, init_db, init_session_factory, reset_session_factory
from pricemyfloor.main import app
from pricemyfloor.services.pricing import get_tier, tier_price
from tests.fakes import FakeEmailClient, FakeSmsClient, FakeStripeClient


@pytest.fixture(autouse=True)
def database():
    """Fresh in-memory database per test"""
    reset_session_factory()
    DatabasePool.close()
    DatabasePool.initialize()
    init_session_factory()
    init_db()
    yield
    drop_db()
    reset_session_factory()
    DatabasePool.close()


@pytest.fixture
def db(database):
    session = get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def sms_client():
    return FakeSmsClient()


@pytest.fixture
def stripe_client():
    return FakeStripeClient()


@pytest.fixture
def client(email_client, sms_client, stripe_client):
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_sms_client] = lambda: sms_client
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def brand(db):
    brand = FlooringBrand(name="Shaw Floors", slug="shaw-floors", categories=["Carpet", "Vinyl"], featured=True)
    db.add(brand)
    db.commit()
    return brand


def make_user(db, email: str, role: str, retailer_id=None, password: str = "password123") -> User:
    user = User(email=email, password_hash=hash_password(password), is_active=True)
    db.add(user)
    db.flush()
    db.add(Profile(id=user.id, user=user, role=role, retailer_id=retailer_id))
    db.commit()
    return user


def make_retailer(db, name: str = "Floor Co", prefixes=("M5",), status: str = RetailerStatus.APPROVED, **fields) -> Retailer:
    retailer = Retailer(
        business_name=name,
        contact_name="Pat Doe",
        email=f"{name.lower().replace(' ', '')}@example.com",
        postal_code_prefixes=list(prefixes),
        status=status,
        **fields,
    )
    db.add(retailer)
    db.commit()
    return retailer


def subscribe(db, retailer: Retailer, brand_name: str, tier_key: str = "100-500", accepts_installation: bool = False, lead_price=None) -> BrandSubscription:
    tier = get_tier(tier_key)
    subscription = BrandSubscription(
        retailer_id=retailer.id,
        brand_name=brand_name,
        sqft_tier=tier.key,
        sqft_tier_min=tier.min_sqft,
        sqft_tier_max=tier.max_sqft,
        accepts_installation=accepts_installation,
        lead_price=lead_price if lead_price is not None else tier_price(tier, accepts_installation),
        is_active=True,
    )
    db.add(subscription)
    db.commit()
    return subscription


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.profile.role if user.profile else Role.RETAILER)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", Role.ADMIN)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def retailer(db):
    return make_retailer(db)


@pytest.fixture
def retailer_headers(db, retailer):
    user = make_user(db, "owner@floorco.example.com", Role.RETAILER, retailer_id=retailer.id)
    retailer.user_id = user.id
    db.commit()
    return auth_headers(user)


def make_lead(db, verified: bool = False, **fields) -> Lead:
    values = {
        "customer_name": "Jamie Homeowner",
        "customer_email": "jamie@example.com",
        "customer_phone": "+14162345678",
        "postal_code": "M5V 2T6",
        "brand_requested": "Shaw Floors",
        "square_footage": 300,
        "installation_required": False,
        "client_ip": "198.51.100.7",
        "is_verified": verified,
        "status": LeadStatus.VERIFIED if verified else LeadStatus.PENDING_VERIFICATION,
    }
    values.update(fields)
    lead = Lead(**values)
    db.add(lead)
    db.commit()
    return lead

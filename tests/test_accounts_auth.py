from pricemyfloor.database.models import AdminAction, Profile, Retailer, RetailerApplication, RetailerStatus
from tests.conftest import make_retailer, make_user

APPLICATION = {
    "business_name": "Maple Floors",
    "contact_name": "Robin Maple",
    "email": "Robin@MapleFloors.example",
    "phone": "416-234-5678",
    "city": "Toronto",
    "postal_code": "m5v 2t6",
    "brands_carried": ["Shaw Floors"],
}


def submit_application(client, **overrides):
    return client.post("/api/v1/applications", json={**APPLICATION, **overrides})


def test_application_submission(client, db):
    response = submit_application(client)

    assert response.status_code == 201
    application = db.get(RetailerApplication, response.json()["applicationId"])
    assert application.email == "robin@maplefloors.example"
    assert application.postal_code == "M5V 2T6"
    assert application.status == "pending"

    assert submit_application(client).status_code == 409
    assert submit_application(client, email="other@example.com", postal_code="123456").status_code == 400


def test_create_account_then_login_with_emailed_password(client, db, admin, admin_headers, email_client):
    application_id = submit_application(client).json()["applicationId"]

    response = client.post(
        "/api/v1/functions/create-retailer-account",
        json={"applicationId": application_id},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["emailSent"] is True
    retailer = db.get(Retailer, body["retailerId"])
    assert retailer.status == RetailerStatus.APPROVED
    assert retailer.postal_code_prefixes == []
    assert db.query(AdminAction).filter_by(action_type="approve_application").one().admin_user_id == admin.id

    password = email_client.last_temp_password()
    login = client.post("/api/v1/auth/login", json={"email": "robin@maplefloors.example", "password": password})
    assert login.status_code == 200
    user = login.json()["user"]
    assert user["role"] == "retailer"
    assert user["retailer_id"] == retailer.id
    assert user["first_name"] == "Robin"
    assert user["password_reset_required"] is True

    again = client.post(
        "/api/v1/functions/create-retailer-account",
        json={"applicationId": application_id},
        headers=admin_headers,
    )
    assert again.status_code == 400


def test_welcome_email_failure_keeps_account(client, db, admin_headers, email_client):
    email_client.error = "Resend API error: 503"
    application_id = submit_application(client).json()["applicationId"]

    response = client.post(
        "/api/v1/functions/create-retailer-account",
        json={"applicationId": application_id},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["emailSent"] is False
    assert db.query(Retailer).count() == 1


def test_resend_credentials(client, db, admin_headers, email_client):
    retailer = make_retailer(db, "Resend Co")

    response = client.post(
        "/api/v1/functions/resend-retailer-credentials",
        json={"retailerId": retailer.id},
        headers=admin_headers,
    )

    assert response.status_code == 200
    password = email_client.last_temp_password()
    login = client.post("/api/v1/auth/login", json={"email": retailer.email, "password": password})
    assert login.status_code == 200
    assert db.query(AdminAction).filter_by(action_type="resend_credentials").count() == 1


def test_resend_credentials_email_failure_is_an_error(client, db, admin_headers, email_client):
    email_client.error = "Resend API error: 503"
    retailer = make_retailer(db, "Resend Co")

    response = client.post(
        "/api/v1/functions/resend-retailer-credentials",
        json={"retailerId": retailer.id},
        headers=admin_headers,
    )

    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to send credentials email")


def test_resend_credentials_requires_approved_retailer(client, db, admin_headers):
    retailer = make_retailer(db, "Pending Co", status=RetailerStatus.PENDING)
    response = client.post(
        "/api/v1/functions/resend-retailer-credentials",
        json={"retailerId": retailer.id},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_login_rejects_bad_credentials(client, db):
    make_user(db, "someone@example.com", "retailer")

    response = client.post("/api/v1/auth/login", json={"email": "someone@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["errorType"] == "UNAUTHORIZED"


def test_change_password_clears_reset_flag(client, db, retailer):
    user = make_user(db, "owner@example.com", "retailer", retailer_id=retailer.id)
    user.profile.password_reset_required = True
    db.commit()
    token = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "password123"}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    short = client.post("/api/v1/auth/change-password", json={"currentPassword": "password123", "newPassword": "short"}, headers=headers)
    assert short.status_code == 400

    response = client.post(
        "/api/v1/auth/change-password",
        json={"currentPassword": "password123", "newPassword": "a much better password"},
        headers=headers,
    )
    assert response.status_code == 200

    profile = db.get(Profile, user.id)
    db.refresh(profile)
    assert profile.password_reset_required is False
    me = client.get("/api/v1/auth/me", headers=headers).json()
    assert me["password_reset_required"] is False
    assert client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "a much better password"}).status_code == 200


def test_invalid_token_is_rejected(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from cakeland.core.security import hash_password
from cakeland.models.coupon import Coupon
from cakeland.models.user import User, UserRole

COUPONS_URL = "/api/v1/admin/coupons"


def _money(value) -> Decimal:
    return Decimal(str(value))


def _create_user(db: Session, email: str, role: UserRole = UserRole.CUSTOMER) -> User:
    user = User(
        email=email,
        full_name="Coupon Test User",
        password_hash=hash_password("StrongPass1"),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _login(client: TestClient, email: str, password: str = "StrongPass1") -> None:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200


def _create_coupon(client: TestClient, **overrides) -> dict:
    body = {"code": "cake20", "discount_type": "percentage", "discount_value": "20"}
    body.update(overrides)
    response = client.post(COUPONS_URL, json=body)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_coupon_console_requires_admin(client: TestClient, db_session: Session):
    assert client.get(COUPONS_URL).status_code == 401

    _create_user(db_session, "shopper@example.com")
    _login(client, "shopper@example.com")

    response = client.get(COUPONS_URL)

    assert response.status_code == 403
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Admin access required"


def test_admin_creates_normalized_coupon(admin_client: TestClient, db_session: Session):
    data = _create_coupon(
        admin_client,
        code="  diwali ",
        discount_value="12.345",
        min_order_amount="",
        max_discount_amount="250",
        valid_until="2099-12-31T23:59:00Z",
    )

    assert data["code"] == "DIWALI"
    assert data["discount_type"] == "percentage"
    assert _money(data["discount_value"]) == Decimal("12.35")
    assert data["min_order_amount"] is None
    assert _money(data["max_discount_amount"]) == Decimal("250")
    assert data["valid_until"].startswith("2099-12-31T23:59:00")
    assert data["is_active"] is True
    assert db_session.query(Coupon).count() == 1


def test_invalid_coupon_returns_field_error(admin_client: TestClient, db_session: Session):
    response = admin_client.post(
        COUPONS_URL,
        json={"code": "BAD", "discount_type": "percentage", "discount_value": "150"},
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Percentage discount cannot exceed 100"
    assert payload["errors"] == [
        {"field": "discount_value", "message": "Percentage discount cannot exceed 100"}
    ]
    assert db_session.query(Coupon).count() == 0


def test_past_valid_until_is_rejected(admin_client: TestClient):
    response = admin_client.post(
        COUPONS_URL,
        json={
            "code": "LATE",
            "discount_type": "fixed",
            "discount_value": "50",
            "valid_until": "2020-01-01T00:00:00Z",
        },
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "valid_until"


def test_duplicate_code_is_reported_as_conflict(admin_client: TestClient):
    _create_coupon(admin_client, code="welcome")

    response = admin_client.post(
        COUPONS_URL,
        json={"code": "WELCOME", "discount_type": "fixed", "discount_value": "75"},
    )

    assert response.status_code == 409
    payload = response.json()
    assert payload["success"] is False
    assert "UNIQUE" in payload["message"]


def test_listing_is_newest_first_and_reflects_writes(admin_client: TestClient):
    _create_coupon(admin_client, code="first")
    assert [c["code"] for c in admin_client.get(COUPONS_URL).json()["data"]] == ["FIRST"]

    _create_coupon(admin_client, code="second")

    response = admin_client.get(COUPONS_URL)
    assert response.status_code == 200
    assert [c["code"] for c in response.json()["data"]] == ["SECOND", "FIRST"]


def test_admin_updates_coupon(admin_client: TestClient):
    created = _create_coupon(admin_client)

    response = admin_client.put(
        f"{COUPONS_URL}/{created['id']}",
        json={
            "code": "CAKE30",
            "discount_type": "fixed",
            "discount_value": "30",
            "min_order_amount": "300",
            "is_active": False,
        },
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == created["id"]
    assert data["code"] == "CAKE30"
    assert data["discount_type"] == "fixed"
    assert _money(data["min_order_amount"]) == Decimal("300")
    assert data["is_active"] is False

    listing = admin_client.get(COUPONS_URL).json()["data"]
    assert [c["code"] for c in listing] == ["CAKE30"]


def test_update_of_missing_coupon_is_not_found(admin_client: TestClient):
    response = admin_client.put(
        f"{COUPONS_URL}/999",
        json={"code": "GHOST", "discount_type": "fixed", "discount_value": "10"},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Coupon not found"


def test_delete_requires_explicit_confirmation(admin_client: TestClient, db_session: Session):
    created = _create_coupon(admin_client)

    response = admin_client.delete(f"{COUPONS_URL}/{created['id']}")
    assert response.status_code == 400
    assert response.json()["message"] == "Deleting a coupon must be confirmed"
    assert db_session.query(Coupon).count() == 1

    response = admin_client.delete(f"{COUPONS_URL}/{created['id']}", params={"confirm": "true"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert admin_client.get(COUPONS_URL).json()["data"] == []

    response = admin_client.delete(f"{COUPONS_URL}/{created['id']}", params={"confirm": "true"})
    assert response.status_code == 404


def test_customer_previews_coupon_against_order_total(client: TestClient, db_session: Session):
    _create_user(db_session, "owner@example.com", role=UserRole.ADMIN)
    _login(client, "owner@example.com")
    _create_coupon(client, code="big20", discount_value="20", max_discount_amount="100")
    _create_coupon(client, code="min500", discount_value="10", min_order_amount="500")
    _create_coupon(client, code="off", discount_type="fixed", discount_value="40", is_active=False)

    _create_user(db_session, "buyer@example.com")
    _login(client, "buyer@example.com")

    capped = client.post("/api/v1/coupons/validate", json={"coupon_code": " big20 ", "order_total": "1000"})
    assert capped.status_code == 200
    data = capped.json()["data"]
    assert data["valid"] is True
    assert _money(data["discount_amount"]) == Decimal("100")
    assert _money(data["final_total"]) == Decimal("900")
    assert data["coupon_details"]["code"] == "BIG20"

    below = client.post("/api/v1/coupons/validate", json={"coupon_code": "MIN500", "order_total": "400"})
    data = below.json()["data"]
    assert data["valid"] is False
    assert data["reason"] == "below_minimum"
    assert data["message"] == "Minimum order value of ₹500.00 required"
    assert _money(data["final_total"]) == Decimal("400")

    just_short = client.post("/api/v1/coupons/validate", json={"coupon_code": "MIN500", "order_total": "499.995"})
    assert just_short.json()["data"]["reason"] == "below_minimum"

    inactive = client.post("/api/v1/coupons/validate", json={"coupon_code": "OFF", "order_total": "400"})
    assert inactive.json()["data"]["reason"] == "inactive"

    unknown = client.post("/api/v1/coupons/validate", json={"coupon_code": "NOPE", "order_total": "400"})
    assert unknown.json()["data"]["reason"] == "not_found"
    assert unknown.json()["data"]["message"] == "Invalid coupon code"

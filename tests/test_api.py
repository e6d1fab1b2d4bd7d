"""HTTP tests through the FastAPI app: envelopes, cookie auth flow, role gates and the order lifecycle."""

import unittest
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.core.database import get_db
from app.core.roles import Role
from app.main import app
from app.models import Product
from tests.factories import DEFAULT_PASSWORD, create_user, make_engine

PREFIX = "/api/v1"


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        engine = make_engine()
        self.Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def seed_user(self, email: str, role: Role = Role.USER) -> None:
        with self.Session() as db:
            create_user(db, email, role)

    def login(self, email: str, client: TestClient | None = None) -> dict:
        client = client or TestClient(app)
        response = client.post(
            f"{PREFIX}/auth/login", json={"email": email, "password": DEFAULT_PASSWORD}
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]

    def bearer(self, email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.login(email)['access_token']}"}


class TestEnvelopes(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get(f"{PREFIX}/health/")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["statusCode"], 200)
        self.assertEqual(body["message_key"], "health.ok")
        self.assertEqual(body["data"]["status"], "ok")
        self.assertEqual(body["data"]["database"], "connected")
        self.assertTrue(body["data"]["auth_configured"])

    def test_root_uses_envelope(self) -> None:
        body = self.client.get("/").json()
        self.assertEqual(body["statusCode"], 200)
        self.assertEqual(body["message_key"], "health.service_info")
        self.assertEqual(body["data"]["name"], "Rental Hub API")

    def test_success_envelope_shape(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/register",
            json={"email": "new@example.com", "password": "password123", "name": "New"},
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["statusCode"], 201)
        self.assertEqual(body["message_key"], "auth.register.success")
        self.assertEqual(body["data"]["user"]["email"], "new@example.com")
        self.assertEqual(body["data"]["user"]["role"], "user")
        self.assertNotIn("refresh_token", body["data"])
        self.assertNotIn("password_hash", body["data"]["user"])

    def test_error_envelope_shape(self) -> None:
        self.seed_user("taken@example.com")
        response = self.client.post(
            f"{PREFIX}/auth/register",
            json={"email": "taken@example.com", "password": "password123", "name": "Dup"},
        )
        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body["statusCode"], 409)
        self.assertEqual(body["message_key"], "auth.register.email_already_exists")
        self.assertIsNone(body["data"])
        self.assertEqual(body["path"], f"{PREFIX}/auth/register")
        self.assertIn("timestamp", body)

    def test_unknown_fields_rejected(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/register",
            json={
                "email": "new@example.com",
                "password": "password123",
                "name": "New",
                "role": "admin",
            },
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message_key"], "error.validation")

    def test_unknown_route_uses_error_envelope(self) -> None:
        response = self.client.get(f"{PREFIX}/nothing-here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message_key"], "error.not_found")


class TestAuthFlow(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.seed_user("alice@example.com")

    def test_login_sets_scoped_httponly_cookies(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )
        self.assertEqual(response.status_code, 200)
        cookies = response.headers.get_list("set-cookie")
        refresh = next(c for c in cookies if c.startswith("refresh_token="))
        access = next(c for c in cookies if c.startswith("access_token="))
        self.assertIn(f"Path={PREFIX}/auth/refresh", refresh)
        self.assertIn("HttpOnly", refresh)
        self.assertIn("SameSite=strict", refresh)
        self.assertIn("Path=/", access)
        self.assertNotIn("refresh_token", response.json()["data"])

    def test_bad_credentials(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message_key"], "auth.login.invalid_credentials")

    def test_profile_with_bearer(self) -> None:
        response = TestClient(app).get(f"{PREFIX}/auth/profile", headers=self.bearer("alice@example.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["email"], "alice@example.com")

    def test_profile_with_cookie(self) -> None:
        self.login("alice@example.com", client=self.client)
        response = self.client.get(f"{PREFIX}/auth/profile")
        self.assertEqual(response.status_code, 200)

    def test_profile_without_token(self) -> None:
        response = self.client.get(f"{PREFIX}/auth/profile")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message_key"], "auth.token.missing")

    def test_garbage_token(self) -> None:
        response = self.client.get(
            f"{PREFIX}/auth/profile", headers={"Authorization": "Bearer not.a.jwt"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message_key"], "auth.token.invalid")

    def test_refresh_from_cookie(self) -> None:
        self.login("alice@example.com", client=self.client)
        response = self.client.post(f"{PREFIX}/auth/refresh")
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["data"]["access_token"])

    def test_refresh_token_single_use_via_body(self) -> None:
        response = TestClient(app).post(
            f"{PREFIX}/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )
        old_refresh = response.cookies["refresh_token"]

        first = TestClient(app).post(f"{PREFIX}/auth/refresh", json={"refresh_token": old_refresh})
        self.assertEqual(first.status_code, 200, first.text)
        self.assertNotEqual(first.cookies["refresh_token"], old_refresh)

        reused = TestClient(app).post(f"{PREFIX}/auth/refresh", json={"refresh_token": old_refresh})
        self.assertEqual(reused.status_code, 401)

    def test_access_token_is_not_a_refresh_token(self) -> None:
        access = self.login("alice@example.com")["access_token"]
        response = TestClient(app).post(
            f"{PREFIX}/auth/refresh", headers={"Authorization": f"Bearer {access}"}
        )
        self.assertEqual(response.status_code, 401)

    def test_logout_ends_session(self) -> None:
        client = TestClient(app)
        login = client.post(
            f"{PREFIX}/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )
        refresh_token = login.cookies["refresh_token"]
        headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

        response = TestClient(app).post(f"{PREFIX}/auth/logout", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["data"])

        again = TestClient(app).post(f"{PREFIX}/auth/refresh", json={"refresh_token": refresh_token})
        self.assertEqual(again.status_code, 401)


class TestRoleGates(ApiTestCase):
    def test_customer_cannot_create_products(self) -> None:
        self.seed_user("alice@example.com")
        response = TestClient(app).post(
            f"{PREFIX}/products",
            json={"name": "Tent", "slug": "tent", "price": 5, "inventory_total": 3},
            headers=self.bearer("alice@example.com"),
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message_key"], "auth.role.insufficient")

    def test_mod_cannot_create_admin(self) -> None:
        self.seed_user("mod@example.com", Role.MOD)
        response = TestClient(app).post(
            f"{PREFIX}/users",
            json={
                "email": "boss@example.com",
                "password": "password123",
                "name": "Boss",
                "role": "admin",
            },
            headers=self.bearer("mod@example.com"),
        )
        self.assertEqual(response.status_code, 403)

    def test_users_me(self) -> None:
        self.seed_user("alice@example.com")
        response = TestClient(app).get(f"{PREFIX}/users/me", headers=self.bearer("alice@example.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["email"], "alice@example.com")


class TestOrderLifecycle(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.seed_user("alice@example.com")
        self.seed_user("admin@example.com", Role.ADMIN)
        self.customer = self.bearer("alice@example.com")
        self.admin = self.bearer("admin@example.com")
        response = self.client.post(
            f"{PREFIX}/products",
            json={"name": "Camera", "slug": "camera", "price": "10.25", "inventory_total": 5},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.product_id = response.json()["data"]["id"]
        self.assertEqual(Decimal(str(response.json()["data"]["price"])), Decimal("10.25"))

    def available(self) -> int:
        with self.Session() as db:
            return db.get(Product, self.product_id).inventory_available

    def create_order(self, quantity: int) -> dict:
        start = datetime.now(UTC) + timedelta(days=1)
        return self.client.post(
            f"{PREFIX}/orders",
            json={
                "items": [{"product_id": self.product_id, "quantity": quantity}],
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=2)).isoformat(),
            },
            headers=self.customer,
        )

    def test_cancel_returns_stock(self) -> None:
        response = self.create_order(3)
        self.assertEqual(response.status_code, 201, response.text)
        order = response.json()["data"]
        self.assertEqual(order["status"], "Order Placed")
        self.assertEqual(Decimal(str(order["amount"])), Decimal("61.50"))
        self.assertEqual(Decimal(str(order["late_fee"])), Decimal("0"))
        self.assertIsNone(order["actual_return_date"])
        self.assertIsNone(order["late_fee_reason"])
        self.assertEqual(self.available(), 2)

        forbidden = self.client.put(f"{PREFIX}/orders/{order['id']}/cancel", headers=self.customer)
        self.assertEqual(forbidden.status_code, 403)

        cancelled = self.client.put(f"{PREFIX}/orders/{order['id']}/cancel", headers=self.admin)
        self.assertEqual(cancelled.status_code, 200)
        self.assertEqual(cancelled.json()["data"]["status"], "Cancelled")
        self.assertEqual(self.available(), 5)

    def test_insufficient_stock(self) -> None:
        response = self.create_order(6)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message_key"], "products.inventory.insufficient")
        self.assertEqual(self.available(), 5)

    def test_invalid_transition(self) -> None:
        order_id = self.create_order(1).json()["data"]["id"]
        response = self.client.put(f"{PREFIX}/orders/{order_id}/complete", headers=self.admin)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message_key"], "orders.invalid_status")

    def test_lifecycle_and_payment(self) -> None:
        order_id = self.create_order(2).json()["data"]["id"]
        for step, status in (
            ("pick-up", "Picked Up"),
            ("in-progress", "In Progress"),
            ("complete", "Completed"),
        ):
            response = self.client.put(f"{PREFIX}/orders/{order_id}/{step}", headers=self.admin)
            self.assertEqual(response.status_code, 200, response.text)
            self.assertEqual(response.json()["data"]["status"], status)
        self.assertEqual(self.available(), 5)

        paid = self.client.put(
            f"{PREFIX}/orders/{order_id}/payment-status",
            json={"status": "done"},
            headers=self.admin,
        )
        self.assertEqual(paid.json()["data"]["payment_status"], "done")

    def test_orders_are_owner_scoped(self) -> None:
        order_id = self.create_order(1).json()["data"]["id"]
        self.seed_user("bob@example.com")
        bob = self.bearer("bob@example.com")
        self.assertEqual(self.client.get(f"{PREFIX}/orders/{order_id}", headers=bob).status_code, 404)
        self.assertEqual(self.client.get(f"{PREFIX}/orders", headers=bob).json()["data"], [])
        mine = self.client.get(f"{PREFIX}/orders", headers=self.customer).json()["data"]
        self.assertEqual([o["id"] for o in mine], [order_id])

"""Tests for API endpoints"""
import pytest
from fastapi.testclient import TestClient

from api.index import app
from storefront.cart.service import CartStoreRegistry
from storefront.cart.storage import InMemoryCartStorage
from storefront.checkout.service import CheckoutService
from storefront.config import get_settings
from storefront.errors import CheckoutError
from storefront.routers import deps
from storefront.services.catalog import CatalogService
from storefront.services.payments import PaymentService

SESSION = {"X-Cart-Session": "session-test"}


@pytest.fixture
def registry(monkeypatch):
    registry = CartStoreRegistry(InMemoryCartStorage())
    monkeypatch.setattr(deps, "_cart_registry", registry)
    return registry


@pytest.fixture
def client(db, fake_payments, registry):
    """Test client with the catalog and Stripe replaced by fakes"""
    app.dependency_overrides[deps.get_catalog_service] = lambda: CatalogService(db)
    app.dependency_overrides[deps.get_checkout_service] = lambda: CheckoutService(db, fake_payments, settings=get_settings())
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(client, artwork_id="art-1", size="small", quantity=1):
    return client.post(
        "/api/cart/items", json={"artworkId": artwork_id, "size": size, "quantity": quantity}, headers=SESSION
    )


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ==================== CATALOG ====================

def test_list_artworks_newest_first(client):
    response = client.get("/api/artworks")

    assert response.status_code == 200
    data = response.json()
    assert [a["id"] for a in data["artworks"]] == ["art-2", "art-1", "art-3"]
    assert data["artworks"][1]["price_display"] == "$150.00"


def test_list_artworks_by_collection(client):
    response = client.get("/api/artworks", params={"collection_id": "col-2"})
    assert [a["id"] for a in response.json()["artworks"]] == ["art-3"]


def test_get_artwork_detail(client):
    response = client.get("/api/artworks/art-1")

    assert response.status_code == 200
    data = response.json()
    large = next(s for s in data["sizes"] if s["size"] == "large")
    assert large["sold_out"] is True
    assert [a["id"] for a in data["related"]] == ["art-2"]


def test_get_artwork_not_found(client):
    assert client.get("/api/artworks/nope").status_code == 404


def test_collections(client):
    data = client.get("/api/collections").json()
    assert [c["id"] for c in data["collections"]] == ["col-1", "col-2"]

    detail = client.get("/api/collections/col-1").json()
    assert detail["name"] == "Coastlines"
    assert {a["id"] for a in detail["artworks"]} == {"art-1", "art-2"}

    assert client.get("/api/collections/none").status_code == 404


# ==================== CART ====================

def test_new_visitor_gets_session_cookie(client):
    response = client.get("/api/cart")

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert "cart_session" in response.cookies
    assert response.headers["X-Cart-Session"] == response.cookies["cart_session"]


def test_add_item_uses_catalog_price(client):
    response = _add(client, quantity=2)

    assert response.status_code == 200
    data = response.json()
    assert data["items"][0]["unitPriceCents"] == 15000
    assert data["items"][0]["title"] == "Quiet Harbour"
    assert data["items"][0]["sizeDisplay"] == "30x30cm"
    assert data["totalItems"] == 2
    assert data["totalCents"] == 30000
    assert data["totalDisplay"] == "$300.00"
    assert data["isOpen"] is False


def test_add_item_merges(client):
    _add(client)
    data = _add(client).json()
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 2


def test_add_unknown_artwork_or_size(client):
    assert _add(client, artwork_id="nope").status_code == 404
    assert _add(client, size="poster").status_code == 400


def test_add_invalid_quantity(client):
    assert _add(client, quantity=0).status_code == 422


def test_update_and_remove(client):
    _add(client)
    _add(client, artwork_id="art-2", size="medium")

    data = client.patch(
        "/api/cart/items", json={"artworkId": "art-1", "size": "small", "quantity": 3}, headers=SESSION
    ).json()
    assert data["totalItems"] == 4

    data = client.patch(
        "/api/cart/items", json={"artworkId": "art-1", "size": "small", "quantity": 0}, headers=SESSION
    ).json()
    assert [i["artworkId"] for i in data["items"]] == ["art-2"]

    data = client.request(
        "DELETE", "/api/cart/items", json={"artworkId": "art-2", "size": "medium"}, headers=SESSION
    ).json()
    assert data["items"] == []


def test_clear_cart(client):
    _add(client)
    data = client.delete("/api/cart", headers=SESSION).json()
    assert data["items"] == []


def test_drawer_endpoints(client):
    assert client.post("/api/cart/open", headers=SESSION).json()["isOpen"] is True
    assert client.post("/api/cart/toggle", headers=SESSION).json()["isOpen"] is False
    client.post("/api/cart/open", headers=SESSION)
    assert client.post("/api/cart/close", headers=SESSION).json()["isOpen"] is False


def test_sessions_are_isolated(client):
    _add(client)
    other = client.get("/api/cart", headers={"X-Cart-Session": "someone-else"}).json()
    assert other["items"] == []


def test_storage_failure_returns_503(client, registry):
    store = registry.get("session-test")

    def broken_save(session_id, payload):
        raise ConnectionError("redis down")

    store._storage = type(
        "Broken", (), {"load": staticmethod(lambda session_id: None), "save": staticmethod(broken_save)}
    )()

    response = _add(client)

    assert response.status_code == 503
    assert store.items == ()


def test_validate_and_accept_price(client, registry, fake_supabase):
    _add(client)
    fake_supabase.tables["artworks"][0]["sizes"][0]["price"] = 17500

    data = client.post("/api/cart/validate", headers=SESSION).json()
    assert data["ok"] is False
    assert data["issues"][0]["issue"] == "price_changed"
    assert registry.get("session-test").items[0].unit_price_cents == 15000

    data = client.post(
        "/api/cart/items/accept-price", json={"artworkId": "art-1", "size": "small"}, headers=SESSION
    ).json()
    assert data["items"][0]["unitPriceCents"] == 17500

    assert client.post("/api/cart/validate", headers=SESSION).json()["ok"] is True


# ==================== CHECKOUT ====================

CUSTOMER = {"customerInfo": {"name": "Ann", "email": "ann@example.test"}}


def test_checkout_empty_cart(client):
    response = client.post("/api/checkout", json=CUSTOMER, headers=SESSION)
    assert response.status_code == 400


def test_checkout_invalid_email(client):
    _add(client)
    response = client.post("/api/checkout", json={"customerInfo": {"email": "nope"}}, headers=SESSION)
    assert response.status_code == 422


def test_checkout_success(client, fake_payments):
    _add(client)

    response = client.post("/api/checkout", json=CUSTOMER, headers=SESSION)

    assert response.status_code == 200
    assert response.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}
    assert fake_payments.created[0]["customer_email"] == "ann@example.test"


def test_checkout_conflict_lists_issues(client, fake_supabase):
    _add(client)
    fake_supabase.tables["artworks"][0]["sizes"][0]["editions_sold"] = 10

    response = client.post("/api/checkout", json=CUSTOMER, headers=SESSION)

    assert response.status_code == 409
    assert response.json()["issues"][0]["issue"] == "sold_out"


def test_checkout_gateway_message_verbatim(client, fake_payments, registry):
    _add(client)
    fake_payments.error = CheckoutError("Your card was declined.")

    response = client.post("/api/checkout", json=CUSTOMER, headers=SESSION)

    assert response.status_code == 400
    assert response.json()["detail"] == "Your card was declined."
    assert registry.get("session-test").total_items == 1


def test_checkout_session_lookup(client, fake_payments):
    fake_payments.sessions["cs_test_1"] = {
        "id": "cs_test_1",
        "payment_status": "paid",
        "payment_intent": "pi_1",
        "amount_total": 15000,
        "customer_details": {"name": "Ann", "email": "ann@example.test"},
    }

    response = client.get("/api/checkout/session", params={"session_id": "cs_test_1"})

    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert client.get("/api/checkout/session").status_code == 400


def test_confirm_clears_paid_cart(client, fake_payments, registry):
    _add(client)
    fake_payments.sessions["cs_test_1"] = {"id": "cs_test_1", "payment_status": "paid", "payment_intent": None}

    response = client.post("/api/checkout/confirm", params={"session_id": "cs_test_1"}, headers=SESSION)

    assert response.status_code == 200
    assert response.json()["cart_cleared"] is True
    assert registry.get("session-test").items == ()


# ==================== WEBHOOK ====================

def test_stripe_webhook_bad_signature(client, fake_payments):
    fake_payments.verify_webhook = PaymentService(secret_key="sk", webhook_secret="whsec_unit").verify_webhook

    response = client.post(
        "/api/webhooks/stripe", content=b'{"type": "checkout.session.completed"}', headers={"stripe-signature": "t=1,v1=00"}
    )
    assert response.status_code == 400


def test_stripe_webhook_handler_failure(client, fake_payments):
    def explode(payload, signature):
        raise RuntimeError("db down")

    fake_payments.verify_webhook = explode

    response = client.post("/api/webhooks/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=00"})

    assert response.status_code == 500


def test_stripe_webhook_ignored_event(client, fake_payments):
    fake_payments.verify_webhook = lambda payload, signature: {"type": "charge.refunded", "data": {"object": {}}}

    response = client.post("/api/webhooks/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=00"})

    assert response.status_code == 200
    assert response.json() == {"received": True, "order_id": None}


def test_cart_written_by_another_worker_is_served(client, registry):
    _add(client)
    other_worker = CartStoreRegistry(registry.storage)
    other_worker.get("session-test").add_item("art-2", "medium", 22000, 1, title="Salt Marsh")

    data = client.get("/api/cart", headers=SESSION).json()

    assert [i["artworkId"] for i in data["items"]] == ["art-1", "art-2"]
    assert data["totalCents"] == 37000

"""Pytest configuration and fixtures"""
import copy
import os
from typing import Any, Dict, List, Optional

import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("APP_URL", "https://shop.test")
# Carts stay in memory during tests
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)

from storefront.cart.service import CartStore  # noqa: E402
from storefront.cart.storage import InMemoryCartStorage  # noqa: E402
from storefront.services.database import Database  # noqa: E402


# ==================== FAKE SUPABASE ====================

class _Result:
    def __init__(self, data):
        self.data = data


class _FakeQuery:
    """Chainable stand-in for a postgrest query builder."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self._mode = "select"
        self._payload: Optional[Dict[str, Any]] = None
        self._filters: List = []
        self._order = None
        self._limit: Optional[int] = None

    def select(self, *_):
        self._mode = "select"
        return self

    def insert(self, data: Dict[str, Any]):
        self._mode = "insert"
        self._payload = data
        return self

    def update(self, data: Dict[str, Any]):
        self._mode = "update"
        self._payload = data
        return self

    def eq(self, field: str, value):
        self._filters.append(lambda row, f=field, v=value: row.get(f) == v)
        return self

    def in_(self, field: str, values):
        self._filters.append(lambda row, f=field, vs=list(values): row.get(f) in vs)
        return self

    def order(self, field: str, desc: bool = False):
        self._order = (field, desc)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    async def execute(self):
        if self.client.fail_on and self.table in self.client.fail_on:
            raise RuntimeError(f"{self.table} unavailable")

        rows = self.client.tables.setdefault(self.table, [])
        if self._mode == "insert":
            row = {"id": f"{self.table}-{len(rows) + 1}", "created_at": "2026-03-01T12:00:00+00:00", **self._payload}
            rows.append(row)
            self.client.inserts.append((self.table, self._payload))
            return _Result([copy.deepcopy(row)])

        matched = [row for row in rows if all(check(row) for check in self._filters)]
        if self._mode == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            self.client.updates.append((self.table, self._payload))
            return _Result([copy.deepcopy(row) for row in matched])

        if self._order:
            field, desc = self._order
            default = 0 if field == "order" else ""
            matched.sort(key=lambda row: row.get(field) or default, reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return _Result([copy.deepcopy(row) for row in matched])


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = tables or {}
        self.inserts: List = []
        self.updates: List = []
        self.fail_on: set = set()

    def table(self, name: str):
        return _FakeQuery(self, name)


# ==================== CATALOG ROWS ====================

def make_artwork_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "art-1",
        "title": "Quiet Harbour",
        "description": "Morning fog over the harbour",
        "year": 2023,
        "medium": "Oil on canvas",
        "collection_id": "col-1",
        "featured": True,
        "images": [
            {"url": "/images/harbour.jpg", "alt": "Quiet Harbour", "type": "main"},
            {"url": "/images/harbour-detail.jpg", "alt": "Detail", "type": "detail"},
        ],
        "sizes": [
            {"size": "small", "price": 15000, "edition_limit": 10, "editions_sold": 3, "size_display": "30x30cm"},
            {"size": "large", "price": 45000, "edition_limit": 5, "editions_sold": 5, "size_display": "90x90cm"},
        ],
        "created_at": "2026-01-02T00:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def artwork_rows():
    return [
        make_artwork_row(),
        make_artwork_row(
            id="art-2",
            title="Salt Marsh",
            featured=False,
            images="/images/marsh.jpg",
            sizes=[{"size": "medium", "price": 22000, "edition_limit": 3, "editions_sold": 1}],
            created_at="2026-02-10T00:00:00+00:00",
        ),
        make_artwork_row(
            id="art-3",
            title="Night Ferry",
            collection_id="col-2",
            featured=False,
            sizes=[{"size": "small", "price": 12000, "edition_limit": 20, "editions_sold": 0}],
            created_at="2025-11-20T00:00:00+00:00",
        ),
    ]


@pytest.fixture
def collection_rows():
    return [
        {"id": "col-2", "name": "Nocturnes", "featured": False, "order": 2},
        {"id": "col-1", "name": "Coastlines", "featured": True, "order": 1, "cover_image": "/images/coast.jpg"},
    ]


@pytest.fixture
def fake_supabase(artwork_rows, collection_rows):
    return FakeSupabase({"artworks": artwork_rows, "collections": collection_rows, "orders": []})


@pytest.fixture
def db(fake_supabase):
    return Database(fake_supabase)


# ==================== CART ====================

@pytest.fixture
def storage():
    return InMemoryCartStorage()


@pytest.fixture
def store(storage):
    return CartStore("session-abc", storage)


# ==================== FAKE STRIPE ====================

class FakePayments:
    """Records Stripe calls; returns canned sessions."""

    def __init__(self):
        self.created: List[Dict[str, Any]] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.line_items: Dict[str, List[Dict[str, Any]]] = {}
        self.error: Optional[Exception] = None

    async def create_checkout_session(self, **kwargs):
        if self.error:
            raise self.error
        self.created.append(kwargs)
        return {"session_id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    async def retrieve_checkout_session(self, session_id: str):
        if self.error:
            raise self.error
        return self.sessions[session_id]

    async def list_line_items(self, session_id: str):
        return self.line_items.get(session_id, [])

    async def aclose(self):
        pass


@pytest.fixture
def fake_payments():
    return FakePayments()

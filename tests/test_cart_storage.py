"""Tests for the cart snapshot codec and storage backends"""
import json

import pytest

from storefront.cart.models import CartLineItem
from storefront.cart.snapshot import CorruptSnapshotError, decode_snapshot, encode_snapshot
from storefront.cart.storage import RedisCartStorage
from storefront.db import RedisKeys


class _FakeRedis:
    def __init__(self):
        self.data = {}
        self.expiry = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def delete(self, key):
        self.data.pop(key, None)
        return 1


def _item(**overrides):
    data = {"artworkId": "a1", "size": "M", "unitPriceCents": 5000, "quantity": 1, "title": "X", "imageUrl": "/x.jpg"}
    data.update(overrides)
    return data


def test_encode_is_versioned_and_compact():
    raw = encode_snapshot((CartLineItem("a1", "M", 5000, 2, "X", "/x.jpg", size_display="Medium"),))

    assert " " not in raw
    assert json.loads(raw) == {"version": 1, "items": [_item(quantity=2, sizeDisplay="Medium")]}


def test_decode_version_1():
    items = decode_snapshot(json.dumps({"version": 1, "items": [_item(quantity=2)]}))

    assert items == (CartLineItem("a1", "M", 5000, 2, "X", "/x.jpg"),)


def test_decode_accepts_bytes():
    items = decode_snapshot(json.dumps({"version": 1, "items": [_item()]}).encode("utf-8"))
    assert len(items) == 1


def test_decode_merges_duplicate_keys():
    raw = json.dumps({"version": 1, "items": [_item(quantity=1), _item(artworkId="a2"), _item(quantity=2)]})

    items = decode_snapshot(raw)

    assert [(i.artwork_id, i.quantity) for i in items] == [("a1", 3), ("a2", 1)]


def test_decode_ignores_unknown_fields():
    items = decode_snapshot(json.dumps({"version": 1, "items": [_item(isOpen=True)], "isOpen": True}))
    assert len(items) == 1


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "42",
        json.dumps({"version": 2, "items": []}),
        json.dumps({"version": 1, "items": [_item(quantity=0)]}),
        json.dumps({"version": 1, "items": [_item(quantity="2")]}),
        json.dumps({"version": 1, "items": [_item(unitPriceCents=-5)]}),
        json.dumps({"version": 1, "items": [_item(artworkId="")]}),
        json.dumps([{"size": "M"}]),
    ],
)
def test_decode_rejects_corrupt(raw):
    with pytest.raises(CorruptSnapshotError):
        decode_snapshot(raw)


def test_redis_storage_round_trip_uses_key_and_ttl():
    redis = _FakeRedis()
    storage = RedisCartStorage(redis=redis, ttl_seconds=60)

    storage.save("s1", '{"version":1,"items":[]}')

    key = RedisKeys.cart_key("s1")
    assert key == "storefront:cart:s1"
    assert redis.expiry[key] == 60
    assert storage.load("s1") == '{"version":1,"items":[]}'

    storage.delete("s1")
    assert storage.load("s1") is None


def test_redis_storage_decodes_bytes():
    redis = _FakeRedis()
    redis.data[RedisKeys.cart_key("s1")] = b'{"version":1,"items":[]}'

    assert RedisCartStorage(redis=redis).load("s1") == '{"version":1,"items":[]}'

import pytest
from flask import current_app

from erp.services.document_store import Collection, DocumentStore, UnavailableStore, get_store
from erp.schemas import PRODUCT_POLICY
from erp.validation import NotFoundError


def test_create_stamps_id_and_created_at(db_session):
    store = get_store()
    key = store.create("products", {"name": "Lawn Suit"})

    record = store.get_by_id("products", key)
    assert record["id"] == key
    assert record["name"] == "Lawn Suit"
    assert record["createdAt"].endswith("Z")
    assert "updatedAt" not in record


def test_update_merges_fields_and_stamps_updated_at(db_session):
    store = get_store()
    key = store.create("products", {"name": "Lawn Suit", "stock": 4})

    store.update("products", key, {"stock": 3})

    record = store.get_by_id("products", key)
    assert record["name"] == "Lawn Suit"
    assert record["stock"] == 3
    assert record["updatedAt"].endswith("Z")


def test_update_missing_record_raises(db_session):
    with pytest.raises(NotFoundError):
        get_store().update("products", "missing", {"stock": 1})


def test_get_all_is_scoped_to_one_path(db_session):
    store = get_store()
    store.create("products", {"name": "A"})
    store.create("products", {"name": "B"})
    store.create("employees", {"name": "C"})

    names = sorted(r["name"] for r in store.get_all("products"))
    assert names == ["A", "B"]
    assert store.get_by_id("products", "nope") is None


def test_delete_removes_nested_records(db_session):
    store = get_store()
    key = store.create("products", {"name": "A"})
    store.create(f"products/{key}/history", {"date": "2026-01-01"})

    store.delete("products", key)

    assert store.get_by_id("products", key) is None
    assert store.get_all(f"products/{key}/history") == []


def test_subscribe_replays_now_and_after_each_mutation(db_session):
    store = get_store()
    snapshots = []

    unsubscribe = store.subscribe("products", snapshots.append)
    assert snapshots == [[]]

    key = store.create("products", {"name": "A"})
    assert [r["name"] for r in snapshots[-1]] == ["A"]

    store.update("products", key, {"name": "B"})
    assert snapshots[-1][0]["name"] == "B"

    store.delete("products", key)
    assert snapshots[-1] == []
    assert len(snapshots) == 4

    unsubscribe()
    store.create("products", {"name": "C"})
    assert len(snapshots) == 4
    assert store.listener_count("products") == 0


def test_nested_writes_notify_parent_listeners(db_session):
    store = get_store()
    snapshots = []
    unsubscribe = store.subscribe("products", snapshots.append)
    try:
        store.create("products/abc/history", {"date": "2026-01-01"})
        assert len(snapshots) == 2
    finally:
        unsubscribe()


def test_delete_notifies_listeners_on_nested_paths(db_session):
    store = get_store()
    key = store.create("products", {"name": "A"})
    store.create(f"products/{key}/history", {"date": "2026-01-01"})
    snapshots = []
    unsubscribe = store.subscribe(f"products/{key}/history", snapshots.append)
    try:
        assert len(snapshots[-1]) == 1

        store.delete("products", key)

        assert len(snapshots) == 2
        assert snapshots[-1] == []
    finally:
        unsubscribe()


def test_failing_listener_does_not_stop_others(db_session):
    store = get_store()
    received = []

    def broken(records):
        raise RuntimeError("listener bug")

    off_broken = store.subscribe("sales", broken)
    off_ok = store.subscribe("sales", received.append)
    try:
        store.create("sales", {"total": 10})
        assert len(received) == 2
    finally:
        off_broken()
        off_ok()


def test_unavailable_store_is_a_no_op(app):
    store = UnavailableStore()
    snapshots = []

    assert store.create("products", {"name": "A"}) is None
    assert store.get_all("products") == []
    assert store.get_by_id("products", "x") is None
    store.update("products", "x", {"name": "B"})
    store.delete("products", "x")

    unsubscribe = store.subscribe("products", snapshots.append)
    unsubscribe()
    assert snapshots == []
    assert store.available is False


def test_collection_require_names_the_record_type(db_session):
    products = Collection(get_store(), "products", PRODUCT_POLICY)
    with pytest.raises(NotFoundError, match="Product not found"):
        products.require("missing")


def test_app_store_variant_follows_config(app):
    assert isinstance(current_app.extensions["erp.store"], DocumentStore)

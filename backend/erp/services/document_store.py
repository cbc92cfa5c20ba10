# Overview: Path-addressed document store with push subscriptions; every service reads and writes through it.

"""
Document store

Records live at `<path>/<id>`. The store offers the small contract the rest
of the ERP is written against:

- create(path, data) -> id        stamps `id` and `createdAt`
- get_all(path) -> list           order is not part of the contract
- get_by_id(path, id) -> dict | None
- update(path, id, partial)       merges fields, stamps `updatedAt`
- delete(path, id)                removes the record and anything nested under it
- subscribe(path, callback)       replays the whole collection now and after every
                                  mutation under `path`; returns an unsubscribe function

Failures are logged and re-raised to the caller. There is no retry, no
backoff and no offline queue.

DocumentStore persists through Flask-SQLAlchemy (one row per record).
UnavailableStore is the explicit "no store configured" variant.
"""

from __future__ import annotations

import threading
import uuid
from typing import Any, Callable

from flask import current_app, Flask
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Document
from ..validation import NotFoundError, RecordPolicy
from erp.time_utils import now_iso, utcnow


Listener = Callable[[list[dict]], None]
Unsubscribe = Callable[[], None]

STORE_EXTENSION_KEY = "erp.store"


def _normalize_path(path: str) -> str:
    cleaned = "/".join(part for part in str(path).split("/") if part)
    if not cleaned:
        raise ValueError("Store path must not be empty")
    return cleaned


def _path_covers(listener_path: str, mutated_path: str) -> bool:
    return mutated_path == listener_path or mutated_path.startswith(listener_path + "/")


class DocumentStore:
    """SQL-backed document store with an in-process listener registry."""

    available = True

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ writes

    def create(self, path: str, data: dict[str, Any]) -> str:
        path = _normalize_path(path)
        key = uuid.uuid4().hex
        record = {**data, "id": key, "createdAt": now_iso()}
        try:
            db.session.add(Document(collection=path, key=key, data=record))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Error creating %s", path)
            raise
        self._notify(path)
        return key

    def update(self, path: str, record_id: str, data: dict[str, Any]) -> None:
        path = _normalize_path(path)
        try:
            doc = db.session.query(Document).filter_by(collection=path, key=record_id).first()
            if doc is None:
                raise NotFoundError(f"{path}/{record_id} not found")
            doc.data = {**doc.data, **data, "id": record_id, "updatedAt": now_iso()}
            doc.updated_at = utcnow()
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Error updating %s/%s", path, record_id)
            raise
        self._notify(path)

    def delete(self, path: str, record_id: str) -> None:
        path = _normalize_path(path)
        nested_prefix = f"{path}/{record_id}/"
        try:
            db.session.query(Document).filter_by(collection=path, key=record_id).delete()
            db.session.query(Document).filter(
                Document.collection.startswith(nested_prefix, autoescape=True)
            ).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Error deleting %s/%s", path, record_id)
            raise
        self._notify(path)
        self._notify_below(f"{path}/{record_id}")

    # ------------------------------------------------------------------- reads

    def get_all(self, path: str) -> list[dict]:
        path = _normalize_path(path)
        try:
            docs = (
                db.session.query(Document)
                .filter_by(collection=path)
                .order_by(Document.id.asc())
                .all()
            )
        except SQLAlchemyError:
            current_app.logger.exception("Error getting %s", path)
            raise
        return [dict(doc.data) for doc in docs]

    def get_by_id(self, path: str, record_id: str) -> dict | None:
        path = _normalize_path(path)
        try:
            doc = db.session.query(Document).filter_by(collection=path, key=record_id).first()
        except SQLAlchemyError:
            current_app.logger.exception("Error getting %s/%s", path, record_id)
            raise
        return dict(doc.data) if doc else None

    # ----------------------------------------------------------- subscriptions

    def subscribe(self, path: str, callback: Listener) -> Unsubscribe:
        path = _normalize_path(path)
        with self._lock:
            self._listeners.setdefault(path, []).append(callback)

        self._deliver(path, callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._listeners.get(path, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._listeners.pop(path, None)

        return unsubscribe

    def listener_count(self, path: str | None = None) -> int:
        with self._lock:
            if path is not None:
                return len(self._listeners.get(_normalize_path(path), []))
            return sum(len(callbacks) for callbacks in self._listeners.values())

    def _notify(self, mutated_path: str) -> None:
        with self._lock:
            targets = [
                (listener_path, list(callbacks))
                for listener_path, callbacks in self._listeners.items()
                if _path_covers(listener_path, mutated_path)
            ]
        for listener_path, callbacks in targets:
            for callback in callbacks:
                self._deliver(listener_path, callback)

    def _notify_below(self, removed_path: str) -> None:
        """Listeners on a deleted record's own subpaths, which lost their records too."""
        with self._lock:
            targets = [
                (listener_path, list(callbacks))
                for listener_path, callbacks in self._listeners.items()
                if _path_covers(removed_path, listener_path)
            ]
        for listener_path, callbacks in targets:
            for callback in callbacks:
                self._deliver(listener_path, callback)

    def _deliver(self, path: str, callback: Listener) -> None:
        records = self.get_all(path)
        try:
            callback(records)
        except Exception:
            current_app.logger.exception("Subscriber for %s failed", path)


class UnavailableStore:
    """
    Store variant used when no backing database is configured.

    Reads return empty results, writes are skipped, subscriptions are no-ops.
    Each call logs a warning so the missing configuration is visible.
    """

    available = False

    def _warn(self, operation: str) -> None:
        current_app.logger.warning("Document store not configured, skipping %s", operation)

    def create(self, path: str, data: dict[str, Any]) -> str | None:
        self._warn(f"create on {path}")
        return None

    def update(self, path: str, record_id: str, data: dict[str, Any]) -> None:
        self._warn(f"update on {path}/{record_id}")

    def delete(self, path: str, record_id: str) -> None:
        self._warn(f"delete on {path}/{record_id}")

    def get_all(self, path: str) -> list[dict]:
        self._warn(f"read of {path}")
        return []

    def get_by_id(self, path: str, record_id: str) -> dict | None:
        self._warn(f"read of {path}/{record_id}")
        return None

    def subscribe(self, path: str, callback: Listener) -> Unsubscribe:
        self._warn(f"subscribe to {path}")
        return lambda: None

    def listener_count(self, path: str | None = None) -> int:
        return 0


class Collection:
    """
    The generic store client bound to one path and one record type.

    Services are composed from Collections instead of subclassing a base
    wrapper, e.g. ``Collection(store, "products", PRODUCT_POLICY)``.
    """

    def __init__(self, store, path: str, policy: RecordPolicy | None = None):
        self.store = store
        self.path = _normalize_path(path)
        self.policy = policy

    @property
    def label(self) -> str:
        return self.policy.name if self.policy else self.path

    def create(self, data: dict[str, Any]) -> str | None:
        return self.store.create(self.path, data)

    def all(self) -> list[dict]:
        return self.store.get_all(self.path)

    def get(self, record_id: str) -> dict | None:
        return self.store.get_by_id(self.path, record_id)

    def require(self, record_id: str) -> dict:
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return record

    def update(self, record_id: str, data: dict[str, Any]) -> None:
        self.store.update(self.path, record_id, data)

    def delete(self, record_id: str) -> None:
        self.store.delete(self.path, record_id)

    def subscribe(self, callback: Listener) -> Unsubscribe:
        return self.store.subscribe(self.path, callback)


def init_store(app: Flask):
    """Attach the configured store variant to the app."""
    store = DocumentStore() if app.config.get("STORE_ENABLED", True) else UnavailableStore()
    app.extensions[STORE_EXTENSION_KEY] = store
    return store


def get_store():
    return current_app.extensions[STORE_EXTENSION_KEY]

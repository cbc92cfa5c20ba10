# Overview: Server-Sent Events endpoint exposing store subscriptions over HTTP.

import json
import queue

from flask import Blueprint, Response, jsonify, stream_with_context

from ..schemas import STREAMABLE
from ..services.document_store import get_store
from ..decorators import require_auth


stream_bp = Blueprint("stream", __name__, url_prefix="/api/stream")

KEEPALIVE_SECONDS = 15


def format_event(event: str, payload) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


@stream_bp.get("/<collection>")
@require_auth
def stream_route(collection: str):
    """
    Stream a collection as `snapshot` events.

    One snapshot is sent immediately and another after every change under
    the collection. The store listener is removed when the client goes away.
    """
    if collection not in STREAMABLE:
        return jsonify({"error": "Unknown collection"}), 404

    store = get_store()
    updates: queue.Queue = queue.Queue()
    unsubscribe = store.subscribe(collection, updates.put)

    def generate():
        try:
            while True:
                try:
                    records = updates.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                yield format_event("snapshot", records)
        finally:
            unsubscribe()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )

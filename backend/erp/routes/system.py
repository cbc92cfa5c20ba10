# backend/erp/routes/system.py
"""
System health endpoint.

Reports whether the document store is configured and reachable.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Document
from ..services.document_store import get_store
from erp.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """
    Check the document store.

    - UnavailableStore: "degraded" (the API runs, nothing is persisted)
    - DocumentStore: counts records and live listeners
    """
    start_time = time.time()
    store = get_store()
    if not store.available:
        return {
            "status": "degraded",
            "latency_ms": 0,
            "warning": "Document store not configured",
        }

    try:
        record_count = db.session.query(Document).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "records": record_count,
                "listeners": store.listener_count(),
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Document store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: store unreachable
    """
    store_health = check_store_health()

    http_status = 503 if store_health["status"] == "unhealthy" else 200
    response = {
        "status": store_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "store": store_health,
        }
    }
    return response, http_status

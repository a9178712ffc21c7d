"""Logging middleware."""
import uuid
import json
import logging
from typing import Dict, Any, List
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def log_request(
    request_id: str,
    path: str,
    outcome: str,
    routing_keys: List[str] = None,
    metadata: Dict[str, Any] = None
):
    """
    Log webhook request with structured data.

    Args:
        request_id: Unique request ID
        path: Request path
        outcome: What the listener did (digested, challenge, unauthorized, ...)
        routing_keys: Keys the message was dispatched to (optional)
        metadata: Additional metadata
    """
    log_data = {
        "request_id": request_id,
        "path": path,
        "outcome": outcome,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if routing_keys:
        log_data["routing_keys"] = routing_keys

    if metadata:
        log_data["metadata"] = metadata

    logger.info(json.dumps(log_data, ensure_ascii=False, default=str))


def generate_request_id() -> str:
    """Generate unique request ID."""
    return str(uuid.uuid4())

"""Audit trail functionality for the SAML IdP.

This module provides structured audit logging for tracking issued assertions.
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)

# Key fields rendered first, in this order
FIELD_ORDER = [
    "status",
    "assertion_id",
    "issuer",
    "audience",
    "name_id_format",
    "attribute_count",
    "signed",
    "encrypted",
    "error_message",
    "correlation_id",
]


def log_audit_event(event_type: str, details: Dict[str, Any]) -> str:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Audit events are
    logged at INFO level for successful operations and ERROR level for failures.

    Args:
        event_type: Type of operation (e.g., "ASSERTION_BUILT", "ASSERTION_SIGNED",
                   "ASSERTION_ENCRYPTED")
        details: Event details. Common fields include assertion_id, issuer,
                 audience, status and error_message. The dictionary is not modified.

    Returns:
        The formatted audit message

    Example:
        >>> log_audit_event("ASSERTION_BUILT", {
        ...     "assertion_id": "_abc",
        ...     "audience": "https://sp.example.com",
        ...     "status": "success",
        ... })
    """
    details = dict(details)
    details.setdefault("timestamp", time.time())
    details.setdefault("correlation_id", str(uuid.uuid4()))

    message_parts = [f"AUDIT [{event_type}]"]

    for field in FIELD_ORDER:
        if field in details:
            message_parts.append(f"{field}={details[field]}")

    for key, value in details.items():
        if key not in FIELD_ORDER and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    if details.get("status") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)
    return audit_message

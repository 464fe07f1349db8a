"""Validity window computation for SAML assertions.

Every instant in an assertion is derived from one captured "now" so the
IssueInstant, Conditions, bearer confirmation and session expiry can never
disagree with each other.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from ..models.saml import TimeWindow

logger = logging.getLogger(__name__)

# Clock skew allowance subtracted from NotBefore
CLOCK_SKEW_SECONDS = 5

# Bearer SubjectConfirmationData lifetime, independent of assertion validity
SUBJECT_CONFIRMATION_SECONDS = 3 * 60

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC timestamp with second precision.

    Args:
        value: Datetime to format (naive values are treated as UTC)

    Returns:
        Timestamp string such as ``2010-06-01T13:00:00Z``
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(ISO_FORMAT)


def compute_time_window(
    now: datetime, validity_duration: int, session_duration: int
) -> TimeWindow:
    """Compute the validity instants of an assertion.

    Args:
        now: Captured current time; microseconds are dropped
        validity_duration: Assertion validity in seconds (Conditions NotOnOrAfter)
        session_duration: Session validity in seconds; 0 means no session limit

    Returns:
        TimeWindow with all instants in UTC

    Example:
        >>> window = compute_time_window(datetime(2010, 6, 1, 13, tzinfo=timezone.utc), 3600, 0)
        >>> format_timestamp(window.not_before)
        '2010-06-01T12:59:55Z'
        >>> window.session_not_on_or_after is None
        True
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    issued_at = now.astimezone(timezone.utc).replace(microsecond=0)

    session_not_on_or_after: Optional[datetime] = None
    if session_duration:
        session_not_on_or_after = issued_at + timedelta(seconds=session_duration)

    window = TimeWindow(
        issued_at=issued_at,
        not_before=issued_at - timedelta(seconds=CLOCK_SKEW_SECONDS),
        not_on_or_after_condition=issued_at + timedelta(seconds=validity_duration),
        not_on_or_after_subject=issued_at + timedelta(seconds=SUBJECT_CONFIRMATION_SECONDS),
        session_not_on_or_after=session_not_on_or_after,
    )

    logger.debug(
        f"Computed time window: issued_at={format_timestamp(issued_at)}, "
        f"validity={validity_duration}s, session={session_duration}s"
    )
    return window


def time_window_strings(window: TimeWindow) -> Dict[str, Optional[str]]:
    """Render every instant of a time window as an ISO 8601 string.

    Returns:
        Dictionary keyed by TimeWindow field name; the session entry is None
        when the session has no limit
    """
    return {
        "issued_at": format_timestamp(window.issued_at),
        "not_before": format_timestamp(window.not_before),
        "not_on_or_after_condition": format_timestamp(window.not_on_or_after_condition),
        "not_on_or_after_subject": format_timestamp(window.not_on_or_after_subject),
        "session_not_on_or_after": (
            format_timestamp(window.session_not_on_or_after)
            if window.session_not_on_or_after is not None
            else None
        ),
    }

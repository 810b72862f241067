
# decides which overview issues are worth enriching.

# "confirmed" (paused, dormant) is deliberately missing from ACTIVE_STATUSES:
# stale paused incidents must not be surfaced as current.

from datetime import datetime, timedelta
from enum import Enum

from service_health.config import HISTORY_WINDOW_DAYS

ACTIVE_STATUSES: frozenset[str] = frozenset({
    "investigating",
    "serviceInterruption",
    "serviceDegradation",
    "extendedRecovery",
})

RESOLVED_STATUSES: frozenset[str] = frozenset({
    "serviceRestored",
    "postIncidentReviewPublished",
    "resolved",
})

HISTORY_WINDOW = timedelta(days=HISTORY_WINDOW_DAYS)


class IssueCategory(Enum):
    ACTIVE = "active"
    RECENTLY_RESOLVED = "recently_resolved"
    IGNORED = "ignored"


def classify(
    status: str | None,
    end_time: datetime | None,
    last_modified: datetime | None,
    now: datetime,
) -> IssueCategory:
    """
    Classify one incident by status and, for resolved ones, recency.

    A resolved incident counts as recent when its effective end (end time,
    else last-modified time) is no older than HISTORY_WINDOW before now,
    boundary included. Resolved incidents with neither timestamp are ignored.
    """
    if status in ACTIVE_STATUSES:
        return IssueCategory.ACTIVE

    if status in RESOLVED_STATUSES:
        effective_end = end_time or last_modified
        if effective_end is not None and effective_end >= now - HISTORY_WINDOW:
            return IssueCategory.RECENTLY_RESOLVED

    return IssueCategory.IGNORED


# IncidentEnricher: turns an issue id into a NormalizedIncident.

# responsibilities:
#   - look the incident up through the detail source (normally GraphClient)
#   - extract scope of impact / root cause from the most recent post
#   - prefer the explicit impactDescription over an extracted "User impact"
#   - normalize the post history, capped for history entries
#
# Failure policy: a lookup that fails, for whatever reason, is logged and
# yields None. Callers skip that incident; nothing is stubbed in its place.

import logging
from typing import Any, Protocol

from service_health.errors import IncidentFetchError
from service_health.extractor import extract_sections
from service_health.models import NormalizedIncident, parse_dt
from service_health.updates import normalize_updates, post_content

log = logging.getLogger(__name__)


class IssueSource(Protocol):
    async def fetch_issue(self, issue_id: str) -> Any: ...


def build_incident(detail: dict[str, Any], historical: bool = False) -> NormalizedIncident:
    """Assemble a NormalizedIncident from a full issue detail record."""
    posts = detail.get("posts") or []

    # "latest" means last in upstream arrival order, not newest by timestamp
    latest = posts[-1] if posts and isinstance(posts[-1], dict) else None
    sections = extract_sections(post_content(latest) if latest else "")

    return NormalizedIncident(
        id=detail.get("id") or "",
        title=detail.get("title") or "",
        start_time=parse_dt(detail.get("startDateTime")),
        end_time=parse_dt(detail.get("endDateTime")),
        last_modified=parse_dt(detail.get("lastModifiedDateTime")),
        status=detail.get("status") or "",
        severity=detail.get("classification"),
        user_impact=detail.get("impactDescription") or sections.user_impact,
        scope_of_impact=sections.scope_of_impact,
        root_cause=sections.root_cause,
        feature=detail.get("feature"),
        is_resolved=detail.get("isResolved"),
        posts=normalize_updates(posts, historical=historical),
    )


class IncidentEnricher:
    """
    Fetches full incident detail and normalizes it.

    source is any IssueSource; the production one is GraphClient.
    """

    def __init__(self, source: IssueSource) -> None:
        self._source = source

    async def enrich(self, issue_id: str, historical: bool = False) -> NormalizedIncident | None:
        try:
            detail = await self._source.fetch_issue(issue_id)
            if not isinstance(detail, dict):
                raise IncidentFetchError(issue_id, "detail response is not an object")
            incident = build_incident(detail, historical=historical)
            post_count = len(detail.get("posts") or [])

        except IncidentFetchError as exc:
            log.error("Error fetching %s: %s", issue_id, exc)
            return None

        except Exception as exc:
            log.exception("Unexpected error enriching %s: %s", issue_id, exc)
            return None

        log.info(
            "Fetched %s: %d updates%s",
            issue_id, post_count, " (history)" if historical else "",
        )
        return incident

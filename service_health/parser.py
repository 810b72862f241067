
# parses the Graph healthOverviews?$expand=issues response into ServiceOverview
# objects, one per service, each carrying its embedded issue summaries.

# The payload is treated as untrusted: missing keys fall back to defaults and
# a missing "issues" list means the service simply has no incidents. Only a
# payload without a top-level "value" list is rejected outright, since then
# there is nothing to enrich.

from typing import Any

from service_health.errors import OverviewFetchError
from service_health.models import IssueSummary, ServiceOverview, parse_dt


def _parse_issue(issue: dict[str, Any]) -> IssueSummary:
    return IssueSummary(
        id=issue.get("id") or "",
        title=issue.get("title") or "",
        status=issue.get("status") or "",
        classification=issue.get("classification"),
        start_time=parse_dt(issue.get("startDateTime")),
        end_time=parse_dt(issue.get("endDateTime")),
        last_modified=parse_dt(issue.get("lastModifiedDateTime")),
    )


def parse_overviews(data: Any) -> list[ServiceOverview]:
    """
    Parse a healthOverviews payload, preserving upstream service order.

    Raises:
        OverviewFetchError  if the payload has no "value" list
    """
    if not isinstance(data, dict) or not isinstance(data.get("value"), list):
        raise OverviewFetchError("Overview response has no 'value' list")

    result: list[ServiceOverview] = []
    for item in data["value"]:
        if not isinstance(item, dict):
            continue
        result.append(ServiceOverview(
            service=item.get("service") or "",
            status=item.get("status") or "",
            id=item.get("id") or "",
            issues=[
                _parse_issue(issue)
                for issue in item.get("issues") or []
                if isinstance(issue, dict) and issue.get("id")
            ],
        ))
    return result

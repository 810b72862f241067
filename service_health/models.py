import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

log = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d+)")

def parse_dt(value: str | None) -> datetime | None:
    """
    Parse an ISO 8601 timestamp string into an aware UTC datetime.

    Graph returns strings like '2024-11-03T14:32:00Z', sometimes with seven
    fractional digits ('2024-11-03T14:32:00.1234567Z'). Naive values are taken
    as UTC. Anything unparseable comes back as None.
    """
    if not value:
        return None
    if not isinstance(value, str):
        log.warning("Could not parse datetime string: %r", value)
        return None

    # fromisoformat is picky about fraction width; Graph sends up to seven digits
    text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], value.strip())
    text = text.replace("Z", "+00:00")

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        log.warning("Could not parse datetime string: %r", value)
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_dt(dt: datetime | None) -> str | None:
    """ISO 8601 UTC timestamp with a Z suffix, e.g. 2026-02-21T12:39:08Z"""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class NormalizedUpdate:
    """One post from an incident's update history."""
    created_at: datetime
    post_type: str | None
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdAt": format_dt(self.created_at),
            "postType": self.post_type,
            "content": self.content,
        }


@dataclass
class NormalizedIncident:
    """
    A fully enriched incident as it appears in the snapshot document.

    service_name is only set for history entries, where incidents from every
    service are merged into one list.
    """
    id: str
    title: str
    start_time: datetime | None
    end_time: datetime | None
    last_modified: datetime | None
    status: str
    severity: str | None
    user_impact: str
    scope_of_impact: str
    root_cause: str
    feature: str | None
    is_resolved: bool | None
    posts: list[NormalizedUpdate] = field(default_factory=list)
    service_name: str | None = None

    @property
    def effective_end(self) -> datetime | None:
        return self.end_time or self.last_modified

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "startTime": format_dt(self.start_time),
            "endTime": format_dt(self.end_time),
            "lastModified": format_dt(self.last_modified),
            "status": self.status,
            "severity": self.severity,
            "userImpact": self.user_impact,
            "scopeOfImpact": self.scope_of_impact,
            "rootCause": self.root_cause,
            "feature": self.feature,
            "isResolved": self.is_resolved,
            "posts": [post.to_dict() for post in self.posts],
        }
        if self.service_name is not None:
            data["serviceName"] = self.service_name
        return data


@dataclass
class IssueSummary:
    """An incident as embedded in the overview payload, before enrichment."""
    id: str
    title: str
    status: str
    classification: str | None
    start_time: datetime | None
    end_time: datetime | None
    last_modified: datetime | None


@dataclass
class ServiceOverview:
    service: str
    status: str
    id: str
    issues: list[IssueSummary] = field(default_factory=list)


@dataclass
class ServiceEntry:
    service: str
    status: str
    id: str
    issues: list[NormalizedIncident] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "status": self.status,
            "id": self.id,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class HealthSnapshot:
    last_updated: datetime
    services: list[ServiceEntry]
    history: list[NormalizedIncident]
    resolved_count: int = 0   # qualifying history entries before the cap

    @property
    def active_count(self) -> int:
        return sum(len(entry.issues) for entry in self.services)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastUpdated": format_dt(self.last_updated),
            "services": [entry.to_dict() for entry in self.services],
            "history": [incident.to_dict() for incident in self.history],
        }


# SnapshotBuilder: aggregates per-service overviews into a HealthSnapshot.

# Concurrency model:
#   Every enrichment lookup is an independent asyncio task. A semaphore bounds
#   how many are in flight. asyncio.gather returns results in request order,
#   so active issues keep their upstream order within each service. The
#   enricher never raises; a failed lookup comes back as None and is skipped
#   without affecting its siblings.

import asyncio
import logging
from datetime import datetime, timezone

from service_health.classifier import IssueCategory, classify
from service_health.config import HISTORY_LIMIT, MAX_CONCURRENT_REQUESTS
from service_health.enricher import IncidentEnricher
from service_health.models import (
    HealthSnapshot,
    NormalizedIncident,
    ServiceEntry,
    ServiceOverview,
)

log = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _history_sort_key(incident: NormalizedIncident) -> datetime:
    """Effective end time; incidents with neither timestamp sort last."""
    return incident.effective_end or _OLDEST


class SnapshotBuilder:

    def __init__(
        self,
        enricher: IncidentEnricher,
        concurrency_limit: int = MAX_CONCURRENT_REQUESTS,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self._enricher = enricher
        self._concurrency_limit = concurrency_limit
        self._history_limit = history_limit

    async def _enrich(
        self, semaphore: asyncio.Semaphore, issue_id: str, historical: bool,
    ) -> NormalizedIncident | None:
        async with semaphore:
            return await self._enricher.enrich(issue_id, historical=historical)

    async def build(self, overviews: list[ServiceOverview], now: datetime) -> HealthSnapshot:
        # created per run so the builder is not tied to one event loop
        semaphore = asyncio.Semaphore(self._concurrency_limit)
        active_jobs: list[list[str]] = []
        history_jobs: list[tuple[str, str]] = []   # (service name, issue id)

        for overview in overviews:
            active_ids: list[str] = []
            for issue in overview.issues:
                category = classify(issue.status, issue.end_time, issue.last_modified, now)
                if category is IssueCategory.ACTIVE:
                    active_ids.append(issue.id)
                elif category is IssueCategory.RECENTLY_RESOLVED:
                    history_jobs.append((overview.service, issue.id))
            active_jobs.append(active_ids)

        log.debug(
            "Enriching %d active and %d resolved issue(s) across %d service(s)",
            sum(len(ids) for ids in active_jobs), len(history_jobs), len(overviews),
        )

        active_results = await asyncio.gather(*(
            asyncio.gather(*(self._enrich(semaphore, issue_id, False) for issue_id in ids))
            for ids in active_jobs
        ))
        history_results = await asyncio.gather(*(
            self._enrich(semaphore, issue_id, True) for _, issue_id in history_jobs
        ))

        services: list[ServiceEntry] = []
        for overview, results in zip(overviews, active_results):
            services.append(ServiceEntry(
                service=overview.service,
                status=overview.status,
                id=overview.id,
                issues=[incident for incident in results if incident is not None],
            ))

        history: list[NormalizedIncident] = []
        for (service_name, _), incident in zip(history_jobs, history_results):
            if incident is None:
                continue
            incident.service_name = service_name
            history.append(incident)

        history.sort(key=_history_sort_key, reverse=True)

        return HealthSnapshot(
            last_updated=now,
            services=services,
            history=history[:self._history_limit],
            resolved_count=len(history),
        )


# HealthCollector: the top-level orchestrator for one collection run.

# Responsibilities:
#   - Create a shared aiohttp session and connection pool
#   - Authenticate, then fetch the tenant-wide health overview
#   - Hand the parsed overview to SnapshotBuilder and persist the result
#
# The run is a finite batch job: it returns once the snapshot is on disk.
# Fatal errors (authentication, overview fetch) propagate to the caller
# before anything is written.

import logging
from datetime import datetime, timezone

import aiohttp

from service_health.builder import SnapshotBuilder
from service_health.config import HISTORY_WINDOW_DAYS, MAX_CONCURRENT_REQUESTS, Settings
from service_health.enricher import IncidentEnricher
from service_health.http_client import GraphClient
from service_health.models import HealthSnapshot
from service_health.parser import parse_overviews
from service_health.store import write_snapshot

log = logging.getLogger(__name__)


class HealthCollector:

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def run(self, now: datetime | None = None) -> HealthSnapshot:
        now = now or datetime.now(tz=timezone.utc)

        connector = aiohttp.TCPConnector(limit=MAX_CONCURRENT_REQUESTS)
        async with aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": "ServiceHealth/1.0 (health-collector)"},
        ) as session:

            client = GraphClient(session)
            await client.fetch_token(self._settings)

            overviews = parse_overviews(await client.fetch_overviews())
            log.info("Fetched health overview for %d service(s)", len(overviews))

            builder = SnapshotBuilder(IncidentEnricher(client))
            snapshot = await builder.build(overviews, now)

        write_snapshot(snapshot, self._settings.output_path)
        log.info(
            "Health data updated. %d active issues, %d resolved in past %d days.",
            snapshot.active_count, snapshot.resolved_count, HISTORY_WINDOW_DAYS,
        )
        return snapshot

import asyncio
from datetime import datetime, timedelta, timezone

from service_health.builder import SnapshotBuilder
from service_health.enricher import IncidentEnricher
from service_health.models import format_dt
from service_health.parser import parse_overviews

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _ts(delta: timedelta) -> str:
    return format_dt(NOW - delta)


def _summary(issue_id, status, end=None, modified=None):
    return {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "status": status,
        "classification": "advisory",
        "startDateTime": _ts(timedelta(days=60)),
        "endDateTime": end,
        "lastModifiedDateTime": modified or _ts(timedelta(hours=1)),
    }


def _detail(summary, posts=1):
    detail = dict(summary)
    detail["impactDescription"] = f"Impact of {summary['id']}"
    detail["posts"] = [
        {
            "createdDateTime": _ts(timedelta(hours=i)),
            "postType": "regular",
            "description": {"content": f"update {i}"},
        }
        for i in range(posts)
    ]
    return detail


def _overview(*services):
    return parse_overviews({"value": [
        {"service": name, "status": "serviceOperational", "id": name, "issues": issues}
        for name, issues in services
    ]})


def _build(overviews, source):
    builder = SnapshotBuilder(IncidentEnricher(source))
    return asyncio.run(builder.build(overviews, NOW))


def test_end_to_end_two_services(make_source):
    active = _summary("A1", "serviceDegradation")
    stale = _summary("R1", "serviceRestored", end=_ts(timedelta(days=40)))
    source = make_source({"A1": _detail(active), "R1": _detail(stale)})

    snapshot = _build(_overview(("Exchange Online", [active, stale]), ("Teams", [])), source)
    document = snapshot.to_dict()

    assert document["lastUpdated"] == "2025-03-01T12:00:00Z"
    assert [s["service"] for s in document["services"]] == ["Exchange Online", "Teams"]
    assert [i["id"] for i in document["services"][0]["issues"]] == ["A1"]
    assert document["services"][1]["issues"] == []
    assert document["history"] == []
    assert source.calls == ["A1"]


def test_paused_incidents_never_surface(make_source):
    active = _summary("A1", "investigating")
    paused = _summary("P1", "confirmed")
    source = make_source({"A1": _detail(active), "P1": _detail(paused)})

    snapshot = _build(_overview(("SharePoint Online", [paused, active])), source)

    assert [i.id for i in snapshot.services[0].issues] == ["A1"]
    assert "P1" not in source.calls


def test_active_issues_keep_upstream_order(make_source):
    issues = [_summary(f"A{n}", "serviceInterruption") for n in (3, 1, 2)]
    source = make_source({i["id"]: _detail(i, posts=12) for i in issues})

    snapshot = _build(_overview(("Teams", issues)), source)

    assert [i.id for i in snapshot.services[0].issues] == ["A3", "A1", "A2"]
    assert all(len(i.posts) == 12 for i in snapshot.services[0].issues)


def test_history_is_tagged_sorted_and_capped(make_source):
    exchange = [
        _summary(f"E{n}", "resolved", end=_ts(timedelta(hours=2 * n)))
        for n in range(30)
    ]
    teams = [
        _summary(f"T{n}", "postIncidentReviewPublished", end=_ts(timedelta(hours=2 * n + 1)))
        for n in range(30)
    ]
    details = {i["id"]: _detail(i, posts=8) for i in exchange + teams}
    source = make_source(details)

    snapshot = _build(_overview(("Exchange Online", exchange), ("Teams", teams)), source)

    assert snapshot.resolved_count == 60
    assert len(snapshot.history) == 50
    ends = [i.effective_end for i in snapshot.history]
    assert ends == sorted(ends, reverse=True)
    assert snapshot.history[0].id == "E0"
    assert snapshot.history[1].id == "T0"
    # the ten oldest are dropped
    kept = {i.id for i in snapshot.history}
    assert not kept & {f"E{n}" for n in range(25, 30)}
    assert not kept & {f"T{n}" for n in range(25, 30)}
    assert all(len(i.posts) <= 5 for i in snapshot.history)
    assert snapshot.history[0].service_name == "Exchange Online"
    assert snapshot.history[1].to_dict()["serviceName"] == "Teams"
    assert all(s.issues == [] for s in snapshot.services)


def test_history_uses_last_modified_when_no_end(make_source):
    older = _summary("R1", "serviceRestored", end=_ts(timedelta(days=3)))
    newer = _summary("R2", "serviceRestored", modified=_ts(timedelta(days=1)))
    source = make_source({"R1": _detail(older), "R2": _detail(newer)})

    snapshot = _build(_overview(("Intune", [older, newer])), source)

    assert [i.id for i in snapshot.history] == ["R2", "R1"]


def test_failed_lookups_are_skipped(make_source):
    ok = _summary("A1", "extendedRecovery")
    broken = _summary("A2", "extendedRecovery")
    resolved_ok = _summary("R1", "resolved", end=_ts(timedelta(days=1)))
    resolved_broken = _summary("R2", "resolved", end=_ts(timedelta(days=2)))
    source = make_source(
        {"A1": _detail(ok), "R1": _detail(resolved_ok)},
        failing={"A2", "R2"},
    )

    snapshot = _build(_overview(("Exchange Online", [broken, ok, resolved_broken, resolved_ok])), source)

    assert [i.id for i in snapshot.services[0].issues] == ["A1"]
    assert [i.id for i in snapshot.history] == ["R1"]
    assert snapshot.resolved_count == 1
    assert sorted(source.calls) == ["A1", "A2", "R1", "R2"]


def test_builder_can_be_reused_across_event_loops(make_source):
    issues = [_summary(f"A{n}", "investigating") for n in range(4)]
    source = make_source({i["id"]: _detail(i) for i in issues})
    builder = SnapshotBuilder(IncidentEnricher(source), concurrency_limit=1)
    overviews = _overview(("Teams", issues))

    first = asyncio.run(builder.build(overviews, NOW))
    second = asyncio.run(builder.build(overviews, NOW))

    assert [i.id for i in first.services[0].issues] == ["A0", "A1", "A2", "A3"]
    assert [i.id for i in second.services[0].issues] == ["A0", "A1", "A2", "A3"]

"""
Unit tests for the aggregation engine.

Covers:
    - country / device grouping with count ordering and first-seen ties
    - hour-of-day bucketing in UTC
    - top referrers with k and tie-break
    - named time windows and the 24h fallback
    - snapshot and range summary composition
    - empty input
"""

from datetime import datetime, timedelta, timezone

import pytest

from linktrack.analytics import aggregation as agg
from linktrack.models import TrackingEvent, new_id

NOW = datetime(2024, 5, 17, 14, 30, tzinfo=timezone.utc)


def ev(link_id="l1", ts=NOW, **kwargs):
    return TrackingEvent(id=new_id(), link_id=link_id, timestamp=ts, **kwargs)


def test_clicks_by_country_counts_descending():
    events = [ev(country="US"), ev(country="US"), ev(country="FR")]
    assert agg.clicks_by_country(events) == [("US", 2), ("FR", 1)]


def test_clicks_by_country_ties_keep_first_seen_and_skip_missing():
    events = [ev(country="DE"), ev(), ev(country="JP"), ev(country=""), ev(country="JP"), ev(country="DE")]
    result = agg.clicks_by_country(events)
    assert result == [("DE", 2), ("JP", 2)]
    assert result[0].country == "DE" and result[0].count == 2


def test_device_stats_excludes_missing():
    events = [ev(device_type="mobile"), ev(device_type=None), ev(device_type="desktop"), ev(device_type="mobile")]
    assert agg.device_stats(events) == [("mobile", 2), ("desktop", 1)]


def test_clicks_by_hour_single_bucket():
    buckets = agg.clicks_by_hour([ev(ts=datetime(2024, 1, 1, 14, 5, tzinfo=timezone.utc))])
    assert len(buckets) == 24
    assert [b.hour for b in buckets] == list(range(24))
    assert buckets[14].count == 1
    assert sum(b.count for b in buckets) == 1


def test_clicks_by_hour_accumulates_across_days_and_converts_to_utc():
    plus_two = timezone(timedelta(hours=2))
    events = [
        ev(ts=datetime(2024, 1, 1, 14, 5, tzinfo=timezone.utc)),
        ev(ts=datetime(2024, 1, 5, 14, 50, tzinfo=timezone.utc)),
        ev(ts=datetime(2024, 1, 3, 16, 0, tzinfo=plus_two)),  # 14:00 UTC
        ev(ts=datetime(2024, 1, 3, 3, 0)),  # naive -> UTC
    ]
    buckets = agg.clicks_by_hour(events)
    assert buckets[14].count == 3
    assert buckets[3].count == 1
    assert buckets[16].count == 0


def test_top_referrers_k_and_stable_ties():
    # a:5, b:3, c:3, d:1 with "b" seen before "c"
    events = [ev(referrer=r) for r in ["b", "c", "a", "a", "a", "a", "a", "b", "b", "c", "c", "d"]]
    result = agg.top_referrers(events, k=3)
    assert len(result) == 3
    assert result[0] == ("a", 5)
    assert [r.referrer for r in result[1:]] == ["b", "c"]
    assert [r.count for r in result[1:]] == [3, 3]


def test_top_referrers_excludes_empty_and_handles_small_k():
    events = [ev(referrer=""), ev(referrer=None), ev(referrer="x")]
    assert agg.top_referrers(events) == [("x", 1)]
    assert agg.top_referrers(events, k=0) == []


@pytest.mark.parametrize(
    "name,delta",
    [("1h", timedelta(hours=1)), ("24h", timedelta(days=1)), ("7d", timedelta(days=7)), ("30d", timedelta(days=30))],
)
def test_resolve_cutoff_named_ranges(name, delta):
    assert agg.resolve_cutoff(name, now=NOW) == NOW - delta


@pytest.mark.parametrize("name", ["", None, "90d", "forever"])
def test_resolve_cutoff_unknown_falls_back_to_24h(name):
    assert agg.resolve_cutoff(name, now=NOW) == NOW - timedelta(days=1)


def test_window_filter_1h():
    old = ev(ts=NOW - timedelta(hours=2))
    recent = ev(ts=NOW - timedelta(minutes=30))
    edge = ev(ts=NOW - timedelta(hours=1))
    cutoff = agg.resolve_cutoff("1h", now=NOW)
    assert agg.window_filter([old, recent, edge], cutoff) == [recent, edge]


def test_summarize_recent_events_newest_first_and_limited():
    events = [ev(ts=NOW + timedelta(seconds=i), country="US") for i in range(15)]
    snap = agg.summarize(events, total_links=1, recent_limit=10)
    assert snap.total_links == 1
    assert snap.total_clicks == 15
    assert len(snap.recent_events) == 10
    assert snap.recent_events[0] is events[-1]
    assert snap.recent_events[-1] is events[5]
    assert snap.top_countries == [("US", 15)]


def test_summarize_zero_recent_limit():
    assert agg.summarize([ev()], total_links=1, recent_limit=0).recent_events == []


def test_summarize_empty():
    snap = agg.summarize([], total_links=0, recent_limit=20)
    assert snap.total_clicks == 0
    assert snap.recent_events == []
    assert snap.top_countries == []
    assert snap.device_stats == []
    assert len(snap.clicks_by_hour) == 24
    assert all(b.count == 0 for b in snap.clicks_by_hour)


def test_snapshot_to_dict_shape():
    snap = agg.summarize([ev(country="US", device_type="mobile")], total_links=3, recent_limit=5)
    data = snap.to_dict()
    assert data["totalLinks"] == 3
    assert data["topCountries"] == [{"country": "US", "count": 1}]
    assert data["deviceStats"] == [{"type": "mobile", "count": 1}]
    assert data["clicksByHour"][14] == {"hour": 14, "count": 1}
    assert data["recentEvents"][0]["country"] == "US"


def test_summarize_range():
    events = [
        ev(ts=NOW - timedelta(days=2), country="CN", referrer="old.com"),
        ev(ts=NOW - timedelta(hours=3), country="US", referrer="a.com"),
        ev(ts=NOW - timedelta(hours=2), country="FR", referrer="a.com"),
        ev(ts=NOW - timedelta(minutes=5), country="US", referrer="b.com"),
    ]
    summary = agg.summarize_range(events, "24h", now=NOW)
    assert summary.total_clicks == 3
    assert summary.unique_countries == 2
    assert summary.top_referrers == [("a.com", 2), ("b.com", 1)]
    assert [(h.hour, h.count) for h in summary.hourly_distribution] == [(11, 1), (12, 1), (14, 1)]
    assert summary.cutoff == NOW - timedelta(days=1)


def test_summarize_range_unknown_range_reports_default():
    summary = agg.summarize_range([], "bogus", now=NOW)
    assert summary.time_range == "24h"
    assert summary.total_clicks == 0
    assert summary.top_referrers == []
    assert summary.hourly_distribution == []
    assert summary.to_dict()["topReferrers"] == []

"""
Aggregation engine for LinkTrack.

Responsibilities:
    - Group click events by country, device type, referrer and hour of day
    - Filter events to a named time window ("1h", "24h", "7d", "30d")
    - Build the analytics snapshot and the time-range summary

Rules shared by every grouping:
    - Events with a missing or empty value are left out of that breakdown
      (they still count toward totals).
    - Output is ordered by count descending; ties keep first-seen order.
    - Hours are UTC. Naive timestamps are treated as UTC.

All functions are pure: they take an already-resolved event list and never
touch storage. Empty input yields empty lists and zero counts, never an error.

LLM Prompt Example:
    "Show how to implement stable top-K grouping in O(n) with an insertion-ordered
    counter and a stable sort, and why that gives deterministic tie-breaking."
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from linktrack.models import TrackingEvent, utcnow

DEFAULT_TIME_RANGE = "24h"

TIME_RANGES: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


class CountryCount(NamedTuple):
    country: str
    count: int


class DeviceCount(NamedTuple):
    device_type: str
    count: int


class ReferrerCount(NamedTuple):
    referrer: str
    count: int


class HourCount(NamedTuple):
    hour: int
    count: int


@dataclass
class AnalyticsSnapshot:
    total_links: int = 0
    total_clicks: int = 0
    recent_events: List[TrackingEvent] = field(default_factory=list)
    top_countries: List[CountryCount] = field(default_factory=list)
    clicks_by_hour: List[HourCount] = field(default_factory=list)
    device_stats: List[DeviceCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalLinks": self.total_links,
            "totalClicks": self.total_clicks,
            "recentEvents": [e.to_dict() for e in self.recent_events],
            "topCountries": [{"country": c, "count": n} for c, n in self.top_countries],
            "clicksByHour": [{"hour": h, "count": n} for h, n in self.clicks_by_hour],
            "deviceStats": [{"type": d, "count": n} for d, n in self.device_stats],
        }


@dataclass
class RangeSummary:
    time_range: str
    cutoff: datetime
    total_clicks: int = 0
    unique_countries: int = 0
    top_referrers: List[ReferrerCount] = field(default_factory=list)
    hourly_distribution: List[HourCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeRange": self.time_range,
            "cutoff": self.cutoff.isoformat(),
            "totalClicks": self.total_clicks,
            "uniqueCountries": self.unique_countries,
            "topReferrers": [[r, n] for r, n in self.top_referrers],
            "hourlyDistribution": [{"hour": h, "count": n} for h, n in self.hourly_distribution],
        }


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _ranked(values: Iterable[Optional[str]]) -> List[tuple]:
    """
    Count non-empty values, most frequent first.

    Counter keeps first-insertion order and `sorted` is stable, so equal
    counts stay in first-seen order.
    """
    counts = Counter(v for v in values if v)
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


# ---------------------------------------------------------------------
# Group-by operations
# ---------------------------------------------------------------------
def clicks_by_country(events: Iterable[TrackingEvent]) -> List[CountryCount]:
    return [CountryCount(c, n) for c, n in _ranked(e.country for e in events)]


def device_stats(events: Iterable[TrackingEvent]) -> List[DeviceCount]:
    return [DeviceCount(d, n) for d, n in _ranked(e.device_type for e in events)]


def top_referrers(events: Iterable[TrackingEvent], k: int = 5) -> List[ReferrerCount]:
    if k <= 0:
        return []
    return [ReferrerCount(r, n) for r, n in _ranked(e.referrer for e in events)[:k]]


def clicks_by_hour(events: Iterable[TrackingEvent]) -> List[HourCount]:
    """
    Clicks per hour of day (UTC), always 24 buckets.

    This is a distribution, not a time series: 14:05 on Monday and 14:50 on
    Friday both land in bucket 14.
    """
    buckets = [0] * 24
    for event in events:
        buckets[_as_utc(event.timestamp).hour] += 1
    return [HourCount(hour, count) for hour, count in enumerate(buckets)]


# ---------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------
def resolve_cutoff(time_range: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Turn a named range into an absolute cutoff.

    Unrecognised or missing ranges fall back to "24h".
    """
    delta = TIME_RANGES.get(time_range or "", TIME_RANGES[DEFAULT_TIME_RANGE])
    return _as_utc(now or utcnow()) - delta


def window_filter(events: Iterable[TrackingEvent], cutoff: datetime) -> List[TrackingEvent]:
    """Events with `timestamp >= cutoff`, order preserved."""
    cutoff = _as_utc(cutoff)
    return [e for e in events if _as_utc(e.timestamp) >= cutoff]


# ---------------------------------------------------------------------
# Composite views
# ---------------------------------------------------------------------
def summarize(events: List[TrackingEvent], total_links: int, recent_limit: int) -> AnalyticsSnapshot:
    """
    Build an analytics snapshot over an already-scoped event list.

    Args:
        events: events in insertion order (one link's, or all of them).
        total_links: 1 for a single-link view, the registry size otherwise.
        recent_limit: how many of the newest events to include, newest first.

    Every breakdown is computed from `events` alone, so a single-link view only
    ever lists countries and devices that link actually received.
    """
    recent = list(reversed(events[-recent_limit:])) if recent_limit > 0 else []
    return AnalyticsSnapshot(
        total_links=total_links,
        total_clicks=len(events),
        recent_events=recent,
        top_countries=clicks_by_country(events),
        clicks_by_hour=clicks_by_hour(events),
        device_stats=device_stats(events),
    )


def summarize_range(
    events: Iterable[TrackingEvent],
    time_range: Optional[str] = DEFAULT_TIME_RANGE,
    now: Optional[datetime] = None,
    top_k: int = 5,
) -> RangeSummary:
    """
    Summary of the events inside a named time window.

    `hourly_distribution` lists only hours that received clicks.
    """
    name = time_range if time_range in TIME_RANGES else DEFAULT_TIME_RANGE
    cutoff = resolve_cutoff(name, now)
    scoped = window_filter(events, cutoff)
    return RangeSummary(
        time_range=name,
        cutoff=cutoff,
        total_clicks=len(scoped),
        unique_countries=len({e.country for e in scoped if e.country}),
        top_referrers=top_referrers(scoped, top_k),
        hourly_distribution=[h for h in clicks_by_hour(scoped) if h.count > 0],
    )

"""
TrackingManager module for LinkTrack.

Responsibilities:
    - Single entry point for callers (HTTP handlers, scripts, tests)
    - Link creation and lookup through the injected link registry
    - The only click write path: resolve link, reject inactive, append, count
    - Analytics views over registry + event log snapshots

Design notes:
    - Storage is injected (in-memory or PostgreSQL); the manager never knows which.
    - Appending an event and incrementing the link's cached counter happen under
      one lock, as does toggling `is_active`, so a burst of concurrent clicks never
      loses an increment and a deactivated link rejects the very next click.
      Shared backends also make the pair one transaction (`append_click`), since
      the lock only covers this process.
    - The clock is injectable so tests can pin "now".

LLM Prompt Example:
    "Design a facade that keeps a cached counter consistent with an append-only
    log under concurrent writers, without a lock spanning reads."
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from linktrack.analytics import aggregation
from linktrack.analytics.aggregation import AnalyticsSnapshot, RangeSummary
from linktrack.analytics.export import events_to_csv
from linktrack.config import settings
from linktrack.errors import LinkInactiveError, LinkNotFoundError
from linktrack.models import ClickResult, TrackingEvent, TrackingLink, new_id, utcnow
from linktrack.storage.base import BaseEventLog, BaseLinkRegistry

log = logging.getLogger(__name__)

# Payload keys mapped onto first-class event fields; anything else is passed through.
_EVENT_FIELDS = {
    "country": "country",
    "deviceType": "device_type",
    "device_type": "device_type",
    "referrer": "referrer",
    "userAgent": "user_agent",
    "user_agent": "user_agent",
}


class TrackingManager:
    """
    Coordinates link creation, click ingestion and analytics reads.
    """

    def __init__(
        self,
        registry: BaseLinkRegistry,
        event_log: BaseEventLog,
        clock: Callable[[], datetime] = utcnow,
        recent_events_link: Optional[int] = None,
        recent_events_global: Optional[int] = None,
        top_referrers: Optional[int] = None,
    ):
        """
        Args:
            registry (BaseLinkRegistry): Link store.
            event_log (BaseEventLog): Click event store.
            clock (Callable): Returns the current UTC time.
            recent_events_link (int): Recent events shown in a single-link view.
            recent_events_global (int): Recent events shown in the global view.
            top_referrers (int): Referrers listed by `get_summary`.
        """
        self.registry = registry
        self.event_log = event_log
        self.clock = clock
        self.recent_events_link = (
            settings.RECENT_EVENTS_LINK if recent_events_link is None else recent_events_link
        )
        self.recent_events_global = (
            settings.RECENT_EVENTS_GLOBAL if recent_events_global is None else recent_events_global
        )
        self.top_referrers = settings.TOP_REFERRERS if top_referrers is None else top_referrers
        self._write_lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Links
    # ---------------------------------------------------------------------
    def create_link(
        self,
        url: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        custom_code: Optional[str] = None,
    ) -> TrackingLink:
        """
        Create a tracking link.

        Raises:
            InvalidUrlError: URL is not absolute http(s).
            InvalidCodeError: custom code is not Base62 or too long.
            DuplicateCodeError: custom code is taken.
            CapacityError: no free generated code within the attempt budget.
        """
        return self.registry.create_link(
            url, short_code=custom_code, title=title, description=description
        )

    def get_link(self, link_id: str) -> TrackingLink:
        link = self.registry.get_link(link_id)
        if link is None:
            raise LinkNotFoundError()
        return link

    def get_link_by_short_code(self, code: str) -> TrackingLink:
        link = self.registry.get_link_by_short_code(code)
        if link is None:
            raise LinkNotFoundError()
        return link

    def list_links(self) -> List[TrackingLink]:
        """All links in creation order; callers reverse for newest-first."""
        return self.registry.get_all_links()

    def set_active(self, link_id: str, active: bool) -> TrackingLink:
        with self._write_lock:
            if not self.registry.set_active(link_id, active):
                raise LinkNotFoundError()
        log.info("Link %s %s", link_id, "activated" if active else "deactivated")
        return self.get_link(link_id)

    # ---------------------------------------------------------------------
    # Clicks
    # ---------------------------------------------------------------------
    def _build_event(self, link_id: str, payload: Optional[Dict[str, Any]]) -> TrackingEvent:
        fields: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in (payload or {}).items():
            target = _EVENT_FIELDS.get(key)
            if target:
                fields[target] = value or None
            else:
                extra[key] = value
        return TrackingEvent(
            id=new_id(),
            link_id=link_id,
            timestamp=self.clock(),
            extra=extra,
            **fields,
        )

    def record_click(self, link_id: str, payload: Optional[Dict[str, Any]] = None) -> ClickResult:
        """
        Record one visit and return where to redirect.

        Steps:
            1. Resolve the link (LinkNotFoundError if absent).
            2. Reject inactive links (LinkInactiveError); nothing is appended.
            3. Build the event with a fresh id and the current time.
            4. Append it and bump the link's click counter as one step.

        Args:
            link_id (str): Target link id.
            payload (dict): Enrichment data (country, deviceType, referrer,
                userAgent, plus any passthrough fields).
        """
        with self._write_lock:
            link = self.registry.get_link(link_id)
            if link is None:
                log.info("Click rejected: unknown link %s", link_id)
                raise LinkNotFoundError()
            if not link.is_active:
                log.info("Click rejected: link %s is inactive", link_id)
                raise LinkInactiveError()

            event = self._build_event(link.id, payload)
            self.event_log.append_click(event, self.registry)

        log.debug("Recorded click %s for link %s", event.id, link.id)
        return ClickResult(event_id=event.id, redirect_url=link.original_url)

    def record_click_by_short_code(
        self, code: str, payload: Optional[Dict[str, Any]] = None
    ) -> ClickResult:
        return self.record_click(self.get_link_by_short_code(code).id, payload)

    def list_events(
        self, link_id: Optional[str] = None, time_range: Optional[str] = None
    ) -> List[TrackingEvent]:
        """
        Events in insertion order, optionally scoped to one link and/or a named
        window. The window uses the same cutoff rule as `get_summary`.
        """
        if link_id is not None:
            self.get_link(link_id)
        events = self.event_log.get_events(link_id)
        if time_range is None:
            return events
        cutoff = aggregation.resolve_cutoff(time_range, self.clock())
        return aggregation.window_filter(events, cutoff)

    # ---------------------------------------------------------------------
    # Analytics
    # ---------------------------------------------------------------------
    def get_analytics(self, link_id: Optional[str] = None) -> AnalyticsSnapshot:
        """
        Analytics snapshot for one link or for everything.

        A single-link view shows the 10 most recent events, the global view 20.
        """
        if link_id is not None:
            link = self.get_link(link_id)
            return aggregation.summarize(
                self.event_log.get_events(link.id),
                total_links=1,
                recent_limit=self.recent_events_link,
            )
        return aggregation.summarize(
            self.event_log.get_events(),
            total_links=self.registry.count(),
            recent_limit=self.recent_events_global,
        )

    def get_summary(self, time_range: Optional[str] = aggregation.DEFAULT_TIME_RANGE) -> RangeSummary:
        """Global summary of clicks inside a named window ("1h", "24h", "7d", "30d")."""
        return aggregation.summarize_range(
            self.event_log.get_events(),
            time_range=time_range,
            now=self.clock(),
            top_k=self.top_referrers,
        )

    def export_events_csv(self, link_id: Optional[str] = None, time_range: Optional[str] = None) -> str:
        return events_to_csv(self.list_events(link_id, time_range))

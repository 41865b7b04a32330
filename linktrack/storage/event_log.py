"""
In-memory event log for LinkTrack.

Responsibilities:
    - Append click events to a global, insertion-ordered log
    - Maintain a per-link secondary index for O(events-for-link) retrieval

Design:
    - Both views are updated by one append under one lock; there is no other
      mutation path, so the per-link index and the global log never disagree.
    - Events are immutable once appended, so reads hand out new lists holding
      the same event objects.

LLM Prompt Example:
    "Explain how to keep a primary log and a secondary index consistent by
    routing every write through one locked append operation."
"""

import threading
from typing import Dict, List, Optional

from linktrack.models import TrackingEvent
from linktrack.storage.base import BaseEventLog


class EventLog(BaseEventLog):
    def __init__(self):
        """
        Internal schema:
            self._events  = [TrackingEvent, ...]                 (global, insertion order)
            self._by_link = {link_id: [TrackingEvent, ...]}      (per link, insertion order)
        """
        self._lock = threading.Lock()
        self._events: List[TrackingEvent] = []
        self._by_link: Dict[str, List[TrackingEvent]] = {}

    def add_event(self, event: TrackingEvent) -> None:
        with self._lock:
            self._events.append(event)
            self._by_link.setdefault(event.link_id, []).append(event)

    def get_events(self, link_id: Optional[str] = None) -> List[TrackingEvent]:
        with self._lock:
            if link_id is None:
                return list(self._events)
            return list(self._by_link.get(link_id, ()))

    def count(self, link_id: Optional[str] = None) -> int:
        with self._lock:
            if link_id is None:
                return len(self._events)
            return len(self._by_link.get(link_id, ()))

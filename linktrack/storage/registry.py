"""
In-memory link registry for LinkTrack.

Responsibilities:
    - Store links with a primary `id -> link` index and a unique `short_code -> link` index
    - Reserve short codes atomically (check and insert under one lock)
    - Toggle the active flag and keep the cached click counter

Design:
    - Reference implementation of BaseLinkRegistry; keeps tests fast and deterministic.
    - One `threading.Lock` guards both indices, so a reader never sees a link in
      one index and not the other.
    - Callers always receive copies; the stored records change only through this class.
"""

import threading
from typing import Dict, List, Optional

from linktrack.models import TrackingLink
from linktrack.storage.base import BaseLinkRegistry


class LinkRegistry(BaseLinkRegistry):
    def __init__(self, *args, **kwargs):
        """
        Internal schema:
            self._by_id   = {link_id: TrackingLink}     (dict order == creation order)
            self._by_code = {short_code: link_id}
        """
        super().__init__(*args, **kwargs)
        self._lock = threading.Lock()
        self._by_id: Dict[str, TrackingLink] = {}
        self._by_code: Dict[str, str] = {}

    def _reserve(self, link: TrackingLink) -> bool:
        with self._lock:
            if link.short_code in self._by_code:
                return False
            self._by_id[link.id] = self._copy(link)
            self._by_code[link.short_code] = link.id
            return True

    def get_link(self, link_id: str) -> Optional[TrackingLink]:
        with self._lock:
            link = self._by_id.get(link_id)
            return self._copy(link) if link else None

    def get_link_by_short_code(self, code: str) -> Optional[TrackingLink]:
        with self._lock:
            link_id = self._by_code.get(code)
            return self._copy(self._by_id[link_id]) if link_id else None

    def get_all_links(self) -> List[TrackingLink]:
        with self._lock:
            return [self._copy(link) for link in self._by_id.values()]

    def set_active(self, link_id: str, active: bool) -> bool:
        with self._lock:
            link = self._by_id.get(link_id)
            if link is None:
                return False
            link.is_active = bool(active)
            return True

    def increment_clicks(self, link_id: str) -> bool:
        with self._lock:
            link = self._by_id.get(link_id)
            if link is None:
                return False
            link.click_count += 1
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)

"""
Domain records for LinkTrack.

TrackingLink
    A short, trackable redirect link. Only `is_active` and `click_count`
    change after creation.

TrackingEvent
    One recorded visit to a link. Events are append-only and never mutated.

`to_dict()` on both records yields the camelCase wire shape the HTTP layer
and CSV export use.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: datetime) -> str:
    return value.isoformat()


@dataclass
class TrackingLink:
    id: str
    original_url: str
    short_code: str
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    click_count: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "originalUrl": self.original_url,
            "shortCode": self.short_code,
            "title": self.title,
            "description": self.description,
            "createdAt": _iso(self.created_at),
            "clickCount": self.click_count,
            "isActive": self.is_active,
        }


@dataclass
class TrackingEvent:
    id: str
    link_id: str
    timestamp: datetime = field(default_factory=utcnow)
    country: Optional[str] = None
    device_type: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    # Opaque passthrough: screen size, coordinates, anything the enricher adds
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "linkId": self.link_id,
            "timestamp": _iso(self.timestamp),
            "country": self.country,
            "deviceType": self.device_type,
            "referrer": self.referrer,
            "userAgent": self.user_agent,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data


@dataclass(frozen=True)
class ClickResult:
    """Outcome of a recorded click: the new event id and where to send the visitor."""
    event_id: str
    redirect_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"eventId": self.event_id, "redirectUrl": self.redirect_url}

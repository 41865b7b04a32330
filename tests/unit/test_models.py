from datetime import datetime, timezone

from linktrack.analytics.export import events_to_csv, export_filename
from linktrack.models import ClickResult, TrackingEvent, TrackingLink

NOW = datetime(2024, 5, 17, 14, 30, tzinfo=timezone.utc)


def test_link_to_dict_uses_wire_names():
    link = TrackingLink(id="l1", original_url="https://x.com", short_code="abc123", created_at=NOW)
    assert link.to_dict() == {
        "id": "l1",
        "originalUrl": "https://x.com",
        "shortCode": "abc123",
        "title": None,
        "description": None,
        "createdAt": "2024-05-17T14:30:00+00:00",
        "clickCount": 0,
        "isActive": True,
    }


def test_event_to_dict_flattens_extra_without_overwriting():
    event = TrackingEvent(
        id="e1", link_id="l1", timestamp=NOW, country="US", extra={"screenWidth": 390, "country": "XX"}
    )
    data = event.to_dict()
    assert data["linkId"] == "l1"
    assert data["country"] == "US"
    assert data["screenWidth"] == 390


def test_click_result_to_dict():
    assert ClickResult("e1", "https://x.com").to_dict() == {"eventId": "e1", "redirectUrl": "https://x.com"}


def test_events_to_csv_empty_has_header_only():
    assert events_to_csv([]).strip() == "id,linkId,timestamp,country,deviceType,referrer,userAgent"


def test_export_filename():
    assert export_filename("abc") == "tracking-data-abc.csv"
    assert export_filename() == "tracking-data-all.csv"

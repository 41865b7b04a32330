"""
CSV export of click events.

Columns follow the event wire shape; passthrough fields found on any event
are appended as extra columns in first-seen order.
"""

import csv
import io
from typing import Iterable, List, Optional

from linktrack.models import TrackingEvent

BASE_COLUMNS = ["id", "linkId", "timestamp", "country", "deviceType", "referrer", "userAgent"]


def events_to_csv(events: Iterable[TrackingEvent]) -> str:
    rows = [e.to_dict() for e in events]
    columns: List[str] = list(BASE_COLUMNS)
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, restval="", extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return buf.getvalue()


def export_filename(link_id: Optional[str] = None) -> str:
    return f"tracking-data-{link_id}.csv" if link_id else "tracking-data-all.csv"

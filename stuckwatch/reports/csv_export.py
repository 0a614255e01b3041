"""CSV export of stuck reports.

File layout (what the downloads have always looked like):
- Unquoted header `Link YID,URL,Country Code,Created At`
- Every data field double-quoted, embedded quotes doubled
- `\\n` between lines, no trailing newline after the last row
- Created At rendered as a US-style local date/time, not raw ISO
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from stuckwatch.reports.report_types import StuckItem, StuckReport, parse_timestamp


HEADERS = ["Link YID", "URL", "Country Code", "Created At"]
FIELDS = ["link_yid", "url", "country_code", "createdAt"]
MISSING_COUNTRY = "N/A"
INVALID_DATE = "Invalid Date"


class NoDataToExport(ValueError):
    """Raised when an export is requested for an empty display set."""

    def __init__(self, message: str = "No data available to download"):
        super().__init__(message)


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str
    rows: int


def format_locale_datetime(value, tz: Optional[tzinfo] = None) -> str:
    """Render like en-US Date.toLocaleString(): `1/2/2024, 3:04:05 PM`.

    Converted to `tz`, or to the local zone when tz is None.
    """
    dt = parse_timestamp(value)
    if dt is None:
        return INVALID_DATE
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(tz)
    hour = dt.hour % 12 or 12
    meridiem = "PM" if dt.hour >= 12 else "AM"
    return f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


def to_csv_row(item: StuckItem) -> Dict[str, str]:
    created = item.created_at if item.created_at is not None else item.raw_created_at
    return {
        "link_yid": item.link_yid or "",
        "url": item.url or "",
        "country_code": item.country_code or MISSING_COUNTRY,
        "createdAt": created,
    }


def convert_to_csv(rows: Iterable[Dict], tz: Optional[tzinfo] = None) -> str:
    rows = list(rows)
    header = ",".join(HEADERS)
    if not rows:
        return header + "\n"

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([
            row.get("link_yid") or "",
            row.get("url") or "",
            row.get("country_code") or MISSING_COUNTRY,
            format_locale_datetime(row.get("createdAt"), tz),
        ])
    return header + "\n" + output.getvalue().rstrip("\n")


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Read back a file produced by convert_to_csv."""
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None:
        return []
    return [dict(zip(FIELDS, rec)) for rec in reader if rec]


def generate_filename(prefix: str, count: Optional[int] = None, now: Optional[datetime] = None) -> str:
    """`<prefix>[-<count>-items]-YYYY-MM-DDTHH-MM-SS.csv`, timestamp in UTC."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    count_suffix = f"-{count}-items" if count is not None else ""
    return f"{prefix}{count_suffix}-{timestamp}.csv"


def build_bulk_export(report: Optional[StuckReport], prefix: str, *, now: Optional[datetime] = None,
                      tz: Optional[tzinfo] = None) -> CsvExport:
    """Export every displayed row; the filename carries the displayed total."""
    if report is None or report.is_empty:
        raise NoDataToExport()
    rows = [to_csv_row(r) for r in report.results]
    return CsvExport(
        filename=generate_filename(prefix, report.total, now=now),
        content=convert_to_csv(rows, tz),
        rows=len(rows),
    )


def build_single_export(item: Optional[StuckItem], prefix: str, *, now: Optional[datetime] = None,
                        tz: Optional[tzinfo] = None) -> CsvExport:
    if item is None:
        raise NoDataToExport()
    return CsvExport(
        filename=generate_filename(f"{prefix}-{item.link_yid}", now=now),
        content=convert_to_csv([to_csv_row(item)], tz),
        rows=1,
    )

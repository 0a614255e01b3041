"""Stuck report data types shared by the service, the client and the exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort parse of a createdAt value (datetime or ISO-8601 string)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def iso_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix.

    Naive datetimes are UTC (that is what pymongo hands back by default).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class StuckItem:
    """Lightweight projection of one link record."""

    link_yid: Optional[str]
    url: Optional[str]
    country_code: Optional[str] = None
    created_at: Optional[datetime] = None
    # kept verbatim when it could not be parsed so exports can still show something
    raw_created_at: Any = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "StuckItem":
        channel = doc.get("source_channel") or {}
        country = channel.get("country_code") if isinstance(channel, dict) else None
        created = doc.get("createdAt")
        return cls(
            link_yid=doc.get("link_yid"),
            url=doc.get("url"),
            country_code=country or None,
            created_at=parse_timestamp(created),
            raw_created_at=created,
        )

    # JSON payloads have the same shape as the projected documents
    from_payload = from_document

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"link_yid": self.link_yid, "url": self.url}
        if self.country_code:
            out["source_channel"] = {"country_code": self.country_code}
        if self.created_at is not None:
            out["createdAt"] = iso_timestamp(self.created_at)
        elif self.raw_created_at is not None:
            out["createdAt"] = str(self.raw_created_at)
        return out


@dataclass(frozen=True)
class StuckReport:
    """True matching count plus a capped sample of matching links."""

    total: int
    results: List[StuckItem] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return len(self.results) < self.total

    @property
    def is_empty(self) -> bool:
        return not self.results

    def find(self, link_yid: str) -> Optional[StuckItem]:
        return next((r for r in self.results if r.link_yid == link_yid), None)

    def to_payload(self) -> Dict[str, Any]:
        return {"total": self.total, "results": [r.to_payload() for r in self.results]}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StuckReport":
        items = payload.get("results") or []
        return cls(
            total=int(payload.get("total") or 0),
            results=[StuckItem.from_payload(it) for it in items if isinstance(it, dict)],
        )

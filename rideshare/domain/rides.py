"""
Ride field rules.

Pure functions shared by the ride store and the search service:

* place normalisation (trim + lower-case) applied at write time and to
  search filters, so set-intersection is a plain equality test;
* departure-mode validation (scheduled needs ``ride_time``, window needs
  ``flexible_window_minutes`` and an anchor timestamp);
* effective departure time and its human-readable label.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Mapping, Optional

from .enums import DepartureType
from .errors import invalid_input

NOW_THRESHOLD_MINUTES = 5

OPTIONAL_TEXT_FIELDS = ("seat_layout", "payment_contact", "car_info", "extra_notes")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite hands them back naive)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_places(values: Iterable[str]) -> list[str]:
    """Trim and lower-case every place, dropping blanks."""
    normalized = (str(v).strip().lower() for v in values)
    return [v for v in normalized if v]


def parse_place_filter(raw: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated query value; ``None`` when nothing usable remains."""
    if raw is None or not raw.strip():
        return None
    places = normalize_places(raw.split(","))
    return places or None


def require_places(value: Any, field: str) -> list[str]:
    if not isinstance(value, (list, tuple)) or not value:
        raise invalid_input(f"{field} path is required")
    places = normalize_places(value)
    if not places:
        raise invalid_input(f"{field} must be a non-empty array")
    return places


def parse_departure_type(value: Any) -> DepartureType:
    try:
        return DepartureType(value)
    except ValueError:
        raise invalid_input("departure_type must be 'scheduled' or 'window'") from None


def require_ride_time(value: Any) -> datetime:
    if value is None:
        raise invalid_input("ride_time is required for scheduled rides")
    if not isinstance(value, datetime):
        raise invalid_input("ride_time must be a datetime")
    return as_utc(value)


def require_window_minutes(value: Any) -> int:
    if value is None:
        raise invalid_input("flexible_window_minutes is required for window rides")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise invalid_input("flexible_window_minutes must be a non-negative integer")
    return value


def require_total_seats(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise invalid_input("total_seats must be > 0")
    return value


def require_price(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise invalid_input("price_per_person must be >= 0")
    return float(value)


def effective_departure(
    departure_type: DepartureType,
    ride_time: Optional[datetime],
    window_minutes: Optional[int],
    window_anchored_at: Optional[datetime],
) -> datetime:
    """Scheduled rides leave at ``ride_time``; window rides at anchor + window."""
    if departure_type == DepartureType.SCHEDULED:
        if ride_time is None:
            raise invalid_input("ride_time is required for scheduled rides")
        return as_utc(ride_time)
    if window_minutes is None or window_anchored_at is None:
        raise invalid_input("flexible_window_minutes is required for window rides")
    return as_utc(window_anchored_at) + timedelta(minutes=window_minutes)


def departure_label(
    departure_type: DepartureType,
    departs_at: datetime,
    window_minutes: Optional[int],
    tz: tzinfo = timezone.utc,
) -> str:
    """``"07:30 AM"`` for scheduled rides, ``"Now"`` / ``"Leaving in N mins"`` for windows."""
    if departure_type == DepartureType.SCHEDULED:
        return as_utc(departs_at).astimezone(tz).strftime("%I:%M %p")
    if window_minutes is not None and window_minutes <= NOW_THRESHOLD_MINUTES:
        return "Now"
    return f"Leaving in {window_minutes} mins"


# ── Creation payload ──────────────────────────────────────────────────


@dataclass(frozen=True)
class RideDraft:
    """A fully validated ride, ready to be persisted."""

    source: list[str]
    destination: list[str]
    departure_type: DepartureType
    ride_time: Optional[datetime]
    flexible_window_minutes: Optional[int]
    window_anchored_at: Optional[datetime]
    total_seats: int
    price_per_person: Optional[float] = None
    seat_layout: Optional[str] = None
    payment_contact: Optional[str] = None
    car_info: Optional[str] = None
    extra_notes: Optional[str] = None

    @property
    def departs_at(self) -> datetime:
        return effective_departure(
            self.departure_type,
            self.ride_time,
            self.flexible_window_minutes,
            self.window_anchored_at,
        )


def build_ride_draft(
    fields: Mapping[str, Any], now: Optional[datetime] = None
) -> RideDraft:
    """Validate a creation payload.  Raises ``DomainError(INVALID_INPUT)``."""
    source = require_places(fields.get("source"), "source")
    destination = require_places(fields.get("destination"), "destination")
    departure_type = parse_departure_type(fields.get("departure_type"))

    ride_time = None
    window_minutes = None
    anchored_at = None
    if departure_type == DepartureType.SCHEDULED:
        ride_time = require_ride_time(fields.get("ride_time"))
    else:
        window_minutes = require_window_minutes(fields.get("flexible_window_minutes"))
        anchored_at = now or utcnow()

    return RideDraft(
        source=source,
        destination=destination,
        departure_type=departure_type,
        ride_time=ride_time,
        flexible_window_minutes=window_minutes,
        window_anchored_at=anchored_at,
        total_seats=require_total_seats(fields.get("total_seats")),
        price_per_person=require_price(fields.get("price_per_person")),
        **{name: fields.get(name) for name in OPTIONAL_TEXT_FIELDS},
    )

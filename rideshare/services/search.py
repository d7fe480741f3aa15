"""
Ride discovery (read-only)
==========================

Returns rides a passenger can still request on a given calendar day:

* ``status = active`` and ``available_seats > 0``;
* effective departure inside the day (in ``search_timezone``) and still
  in the future -- for window rides this means the window has not closed;
* optional source / destination filters, matched by set intersection with
  the ride's normalised places.

Ordering: effective departure ascending, then newest ride first.

No locks are taken.  Seat counts are a point-in-time read and may change
right after it; the lifecycle engine rechecks capacity at accept time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from rideshare.config import settings
from rideshare.domain.enums import DepartureType
from rideshare.domain.errors import invalid_input
from rideshare.domain.rides import as_utc, departure_label, utcnow
from rideshare.infrastructure.database import Database
from rideshare.infrastructure.repositories import RideRepository


@dataclass(frozen=True)
class RideSummary:
    id: int
    source: list[str]
    destination: list[str]
    departure_type: DepartureType
    departs_at: datetime
    departure_label: str
    available_seats: int
    price_per_person: Optional[float]
    seat_layout: Optional[str]
    car_info: Optional[str]
    extra_notes: Optional[str]
    driver_id: int
    driver_name: str


@dataclass(frozen=True)
class SearchPage:
    page: int
    limit: int
    results: list[RideSummary]


class RideSearch:
    def __init__(
        self,
        db: Database,
        *,
        max_page_size: int = settings.max_page_size,
        timezone: str = settings.search_timezone,
    ):
        self.db = db
        self.max_page_size = max_page_size
        self.tz = ZoneInfo(timezone)

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        starts = datetime.combine(day, time.min, tzinfo=self.tz)
        return as_utc(starts), as_utc(starts + timedelta(days=1))

    async def search(
        self,
        *,
        source_filters: Optional[list[str]] = None,
        destination_filters: Optional[list[str]] = None,
        day: Optional[date] = None,
        page: int = 1,
        limit: int = settings.default_page_size,
        now: Optional[datetime] = None,
    ) -> SearchPage:
        if page < 1 or limit < 1:
            raise invalid_input("invalid pagination parameters")
        limit = min(limit, self.max_page_size)

        now = as_utc(now) if now else utcnow()
        starts, ends = self.day_bounds(day or now.astimezone(self.tz).date())

        async with self.db.transaction() as session:
            rows = await RideRepository(session).search_bookable(
                source_filters=source_filters,
                destination_filters=destination_filters,
                starts=starts,
                ends=ends,
                now=now,
                limit=limit,
                offset=(page - 1) * limit,
            )

        return SearchPage(
            page=page,
            limit=limit,
            results=[self._summary(ride, driver_name) for ride, driver_name in rows],
        )

    def _summary(self, ride, driver_name: str) -> RideSummary:
        departure_type = DepartureType(ride.departure_type)
        departs_at = as_utc(ride.departs_at)
        return RideSummary(
            id=ride.id,
            source=ride.source,
            destination=ride.destination,
            departure_type=departure_type,
            departs_at=departs_at,
            departure_label=departure_label(
                departure_type, departs_at, ride.flexible_window_minutes, self.tz
            ),
            available_seats=ride.available_seats,
            price_per_person=ride.price_per_person,
            seat_layout=ride.seat_layout,
            car_info=ride.car_info,
            extra_notes=ride.extra_notes,
            driver_id=ride.driver_id,
            driver_name=driver_name,
        )

"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Repositories never commit: the caller owns
the transaction (see ``Database.transaction``).

Locking
-------
``*_for_update`` methods issue ``SELECT ... FOR UPDATE`` and are meant to be
used only by the request lifecycle engine and the ride store's update path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import Row, and_, case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RideModel, RideRequestModel, RideStopModel, UserModel
from rideshare.domain.enums import DepartureType, RequestStatus, RideStatus, StopKind
from rideshare.domain.errors import DomainError, ErrorKind, invalid_input
from rideshare.domain.rides import (
    OPTIONAL_TEXT_FIELDS,
    RideDraft,
    effective_departure,
    parse_departure_type,
    require_places,
    require_price,
    require_ride_time,
    require_window_minutes,
    utcnow,
)


def _stops(kind: StopKind, places: list[str]) -> list[RideStopModel]:
    return [
        RideStopModel(kind=kind, position=i, place=place)
        for i, place in enumerate(places)
    ]


# ── Partial-update handlers ───────────────────────────────────────────


def _set_places(kind: StopKind):
    def handler(ride: RideModel, value: Any) -> None:
        places = require_places(value, kind.value)
        kept = [s for s in ride.stops if s.kind != kind]
        ride.stops = kept + _stops(kind, places)

    return handler


def _set_text(name: str):
    def handler(ride: RideModel, value: Any) -> None:
        if value is not None and not isinstance(value, str):
            raise invalid_input(f"{name} must be a string")
        setattr(ride, name, value)

    return handler


def _set_status(ride: RideModel, value: Any) -> None:
    try:
        ride.status = RideStatus(value)
    except ValueError:
        raise invalid_input("status must be 'active' or 'inactive'") from None


def _set_price(ride: RideModel, value: Any) -> None:
    ride.price_per_person = require_price(value)


# Closed set of updatable fields.  Departure fields are handled together
# because they interact (mode switch, window re-anchoring).
FIELD_HANDLERS = {
    "source": _set_places(StopKind.SOURCE),
    "destination": _set_places(StopKind.DESTINATION),
    "status": _set_status,
    "price_per_person": _set_price,
    **{name: _set_text(name) for name in OPTIONAL_TEXT_FIELDS},
}
DEPARTURE_FIELDS = frozenset({"departure_type", "ride_time", "flexible_window_minutes"})
UPDATABLE_FIELDS = frozenset(FIELD_HANDLERS) | DEPARTURE_FIELDS


def _apply_departure(ride: RideModel, patch: Mapping[str, Any], now: datetime) -> None:
    current = DepartureType(ride.departure_type)
    target = current
    if "departure_type" in patch:
        target = parse_departure_type(patch["departure_type"])
        if target == DepartureType.SCHEDULED and "ride_time" not in patch:
            raise invalid_input("ride_time is required for scheduled rides")
        if target == DepartureType.WINDOW and "flexible_window_minutes" not in patch:
            raise invalid_input("flexible_window_minutes is required for window rides")

    if target == DepartureType.SCHEDULED:
        if "flexible_window_minutes" in patch:
            raise invalid_input("flexible_window_minutes only applies to window rides")
        if "ride_time" in patch:
            ride.ride_time = require_ride_time(patch["ride_time"])
        ride.flexible_window_minutes = None
        ride.window_anchored_at = None
    else:
        if "ride_time" in patch:
            raise invalid_input("ride_time only applies to scheduled rides")
        if "flexible_window_minutes" in patch:
            minutes = require_window_minutes(patch["flexible_window_minutes"])
            # Switching mode or changing the window restarts it from now
            if current != DepartureType.WINDOW or minutes != ride.flexible_window_minutes:
                ride.flexible_window_minutes = minutes
                ride.window_anchored_at = now
        ride.ride_time = None

    ride.departure_type = target
    ride.departs_at = effective_departure(
        target, ride.ride_time, ride.flexible_window_minutes, ride.window_anchored_at
    )


def apply_ride_patch(
    ride: RideModel, patch: Mapping[str, Any], now: Optional[datetime] = None
) -> None:
    """Apply a field-level partial update.  Raises ``DomainError(INVALID_INPUT)``."""
    if not patch:
        raise invalid_input("No valid fields to update")
    unknown = set(patch) - UPDATABLE_FIELDS
    if unknown:
        raise invalid_input(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    for name, handler in FIELD_HANDLERS.items():
        if name in patch:
            handler(ride, patch[name])
    if DEPARTURE_FIELDS & patch.keys():
        _apply_departure(ride, patch, now or utcnow())


# ── Repositories ──────────────────────────────────────────────────────


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def get_for_update(self, ride_id: int) -> Optional[RideModel]:
        """SELECT ... FOR UPDATE; the lock is held until the transaction ends."""
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.id == ride_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def adjust_seats(self, ride_id: int, delta: int) -> Optional[int]:
        """
        Atomically add *delta* to ``available_seats``.

        Returns the new count, or ``None`` when the result would leave
        ``[0, total_seats]`` (the row is left untouched).
        """
        result = await self.session.execute(
            update(RideModel)
            .where(
                RideModel.id == ride_id,
                RideModel.available_seats + delta >= 0,
                RideModel.available_seats + delta <= RideModel.total_seats,
            )
            .values(available_seats=RideModel.available_seats + delta)
            .returning(RideModel.available_seats)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def create(self, driver_id: int, draft: RideDraft) -> RideModel:
        ride = RideModel(
            driver_id=driver_id,
            departure_type=draft.departure_type,
            ride_time=draft.ride_time,
            flexible_window_minutes=draft.flexible_window_minutes,
            window_anchored_at=draft.window_anchored_at,
            departs_at=draft.departs_at,
            total_seats=draft.total_seats,
            available_seats=draft.total_seats,
            status=RideStatus.ACTIVE,
            price_per_person=draft.price_per_person,
            seat_layout=draft.seat_layout,
            payment_contact=draft.payment_contact,
            car_info=draft.car_info,
            extra_notes=draft.extra_notes,
            stops=_stops(StopKind.SOURCE, draft.source)
            + _stops(StopKind.DESTINATION, draft.destination),
        )
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def update(
        self, ride_id: int, driver_id: int, patch: Mapping[str, Any]
    ) -> RideModel:
        ride = await self.get_for_update(ride_id)
        if ride is None:
            raise DomainError(ErrorKind.RIDE_NOT_FOUND)
        if ride.driver_id != driver_id:
            raise DomainError(
                ErrorKind.UNAUTHORIZED, "You are not allowed to modify this ride"
            )
        apply_ride_patch(ride, patch)
        await self.session.flush()
        await self.session.refresh(ride)
        return ride

    async def search_bookable(
        self,
        *,
        source_filters: Optional[list[str]],
        destination_filters: Optional[list[str]],
        starts: datetime,
        ends: datetime,
        now: datetime,
        limit: int,
        offset: int,
    ) -> list[Row]:
        """Active rides with free seats departing in ``[starts, ends)`` and after *now*.

        Returns ``(RideModel, driver_name)`` rows.
        """
        query = (
            select(RideModel, UserModel.name.label("driver_name"))
            .join(UserModel, UserModel.id == RideModel.driver_id)
            .where(
                RideModel.status == RideStatus.ACTIVE,
                RideModel.available_seats > 0,
                RideModel.departs_at >= starts,
                RideModel.departs_at < ends,
                RideModel.departs_at > now,
            )
        )
        for kind, places in (
            (StopKind.SOURCE, source_filters),
            (StopKind.DESTINATION, destination_filters),
        ):
            if places:
                query = query.where(
                    RideModel.stops.any(
                        and_(RideStopModel.kind == kind, RideStopModel.place.in_(places))
                    )
                )
        query = (
            query.order_by(
                RideModel.departs_at.asc(),
                RideModel.created_at.desc(),
                RideModel.id.desc(),
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.all())


def _accepted_first():
    return case((RideRequestModel.status == RequestStatus.ACCEPTED, 0), else_=1)


class RideRequestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_ride_and_passenger(
        self, ride_id: int, passenger_id: int
    ) -> Optional[RideRequestModel]:
        result = await self.session.execute(
            select(RideRequestModel).where(
                RideRequestModel.ride_id == ride_id,
                RideRequestModel.passenger_id == passenger_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(
        self, request_id: int
    ) -> Optional[tuple[RideRequestModel, RideModel]]:
        """Lock the request *and* its ride row (``FOR UPDATE`` covers both tables)."""
        result = await self.session.execute(
            select(RideRequestModel, RideModel)
            .join(RideModel, RideModel.id == RideRequestModel.ride_id)
            .where(RideRequestModel.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        return (row[0], row[1]) if row else None

    async def insert_pending(self, ride_id: int, passenger_id: int) -> RideRequestModel:
        """Raises ``IntegrityError`` if the (ride, passenger) pair already exists."""
        request = RideRequestModel(
            ride_id=ride_id,
            passenger_id=passenger_id,
            status=RequestStatus.PENDING,
        )
        self.session.add(request)
        await self.session.flush()
        return request

    async def set_status(
        self, request: RideRequestModel, status: RequestStatus
    ) -> RideRequestModel:
        request.status = status
        await self.session.flush()
        await self.session.refresh(request)
        return request

    async def count_accepted(self, ride_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(RideRequestModel)
            .where(
                RideRequestModel.ride_id == ride_id,
                RideRequestModel.status == RequestStatus.ACCEPTED,
            )
        )
        return result.scalar() or 0

    async def list_by_ride(self, ride_id: int) -> list[Row]:
        """``(request, passenger_name, phone_number)``; accepted first, then oldest first."""
        result = await self.session.execute(
            select(
                RideRequestModel,
                UserModel.name.label("passenger_name"),
                UserModel.phone_number,
            )
            .join(UserModel, UserModel.id == RideRequestModel.passenger_id)
            .where(RideRequestModel.ride_id == ride_id)
            .order_by(
                _accepted_first(),
                RideRequestModel.created_at.asc(),
                RideRequestModel.id.asc(),
            )
        )
        return list(result.all())

    async def list_by_passenger(self, passenger_id: int) -> list[Row]:
        """``(request, ride, driver_name)``; accepted first, then newest first."""
        result = await self.session.execute(
            select(RideRequestModel, RideModel, UserModel.name.label("driver_name"))
            .join(RideModel, RideModel.id == RideRequestModel.ride_id)
            .join(UserModel, UserModel.id == RideModel.driver_id)
            .where(RideRequestModel.passenger_id == passenger_id)
            .order_by(
                _accepted_first(),
                RideRequestModel.created_at.desc(),
                RideRequestModel.id.desc(),
            )
        )
        return list(result.all())


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, *, name: str, email: str, phone_number: Optional[str] = None
    ) -> UserModel:
        user = UserModel(name=name, email=email, phone_number=phone_number)
        self.session.add(user)
        await self.session.flush()
        return user

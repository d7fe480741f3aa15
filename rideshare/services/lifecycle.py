"""
Request Lifecycle Engine
========================

Owns every status transition of a ride request and the matching change to
the ride's ``available_seats`` counter.

Central invariant
-----------------
For every ride::

    available_seats == total_seats - count(requests WHERE status = 'accepted')

Concurrency safety
------------------
* No in-process locks: the service may run as several processes.
* ``accept`` / ``revoke`` run in one transaction and start with
  ``SELECT ... FOR UPDATE`` over the request *and* its ride.  Racing
  accepts for the last seat are serialised on the ride row; the loser
  re-reads ``available_seats`` under the lock and fails with RIDE_FULL.
* ``create`` is deliberately *not* locked.  Its capacity check is advisory
  (the authoritative one is the locked recheck in ``accept``) and the
  UNIQUE ``(ride_id, passenger_id)`` constraint is the authoritative
  duplicate guard.
* Any exception inside ``Database.transaction`` rolls everything back, so
  a seat change is never observable without its status flip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Row
from sqlalchemy.exc import IntegrityError

from rideshare.domain.enums import RequestStatus, RideStatus
from rideshare.domain.errors import DomainError, ErrorKind
from rideshare.domain.lifecycle import SEAT_DELTAS, transition
from rideshare.infrastructure.database import Database
from rideshare.infrastructure.models import RideModel, RideRequestModel
from rideshare.infrastructure.repositories import RideRepository, RideRequestRepository

logger = logging.getLogger(__name__)


class SeatInvariantViolation(RuntimeError):
    """Releasing a seat would push ``available_seats`` above ``total_seats``."""


@dataclass(frozen=True)
class SeatAudit:
    ride_id: int
    total_seats: int
    available_seats: int
    accepted_requests: int

    @property
    def consistent(self) -> bool:
        return (
            0 <= self.available_seats <= self.total_seats
            and self.available_seats == self.total_seats - self.accepted_requests
        )


class RequestLifecycle:
    def __init__(self, db: Database):
        self.db = db

    # ── Passenger ─────────────────────────────────────────────────────

    async def create(self, ride_id: int, passenger_id: int) -> RideRequestModel:
        """Create a PENDING request for *passenger_id* on *ride_id*."""
        try:
            async with self.db.transaction() as session:
                ride = await RideRepository(session).get_by_id(ride_id)
                if ride is None:
                    raise DomainError(ErrorKind.RIDE_NOT_FOUND)
                if ride.driver_id == passenger_id:
                    raise DomainError(ErrorKind.SELF_REQUEST)
                if ride.status != RideStatus.ACTIVE:
                    raise DomainError(ErrorKind.RIDE_INACTIVE)
                if ride.available_seats <= 0:
                    raise DomainError(ErrorKind.RIDE_FULL)

                requests = RideRequestRepository(session)
                if await requests.find_by_ride_and_passenger(ride_id, passenger_id):
                    raise DomainError(ErrorKind.DUPLICATE_REQUEST)
                request = await requests.insert_pending(ride_id, passenger_id)
        except IntegrityError as exc:
            # Only the (ride, passenger) pair existing makes this a duplicate;
            # any other violated constraint is a storage failure.
            if not await self._request_exists(ride_id, passenger_id):
                raise
            raise DomainError(ErrorKind.DUPLICATE_REQUEST) from exc

        logger.info(
            "Request %d created: ride=%d passenger=%d", request.id, ride_id, passenger_id
        )
        return request

    async def list_for_passenger(self, passenger_id: int) -> list[Row]:
        async with self.db.transaction() as session:
            return await RideRequestRepository(session).list_by_passenger(passenger_id)

    # ── Driver ────────────────────────────────────────────────────────

    async def accept(self, request_id: int, driver_id: int) -> RideRequestModel:
        """Reserve a seat for the request.  Authoritative capacity check."""
        return await self._move(request_id, driver_id, RequestStatus.ACCEPTED)

    async def revoke(self, request_id: int, driver_id: int) -> RideRequestModel:
        """Release an accepted request's seat and put it back to PENDING."""
        return await self._move(request_id, driver_id, RequestStatus.PENDING)

    async def list_for_ride(self, ride_id: int, driver_id: int) -> list[Row]:
        async with self.db.transaction() as session:
            ride = await RideRepository(session).get_by_id(ride_id)
            # Missing and foreign rides are indistinguishable to the caller
            if ride is None or ride.driver_id != driver_id:
                raise DomainError(
                    ErrorKind.UNAUTHORIZED, "Unauthorized or ride not found"
                )
            return await RideRequestRepository(session).list_by_ride(ride_id)

    async def audit_seats(
        self, ride_id: int, driver_id: Optional[int] = None
    ) -> SeatAudit:
        """Compare the stored seat counter with the accepted requests."""
        async with self.db.transaction() as session:
            ride = await RideRepository(session).get_by_id(ride_id)
            if ride is None:
                raise DomainError(ErrorKind.RIDE_NOT_FOUND)
            if driver_id is not None and ride.driver_id != driver_id:
                raise DomainError(ErrorKind.UNAUTHORIZED)
            accepted = await RideRequestRepository(session).count_accepted(ride_id)
            return SeatAudit(
                ride_id=ride.id,
                total_seats=ride.total_seats,
                available_seats=ride.available_seats,
                accepted_requests=accepted,
            )

    # ── Internals ─────────────────────────────────────────────────────

    async def _request_exists(self, ride_id: int, passenger_id: int) -> bool:
        """Re-check in a fresh transaction; the failed one is already rolled back."""
        async with self.db.transaction() as session:
            found = await RideRequestRepository(session).find_by_ride_and_passenger(
                ride_id, passenger_id
            )
        return found is not None

    async def _move(
        self, request_id: int, driver_id: int, target: RequestStatus
    ) -> RideRequestModel:
        try:
            async with self.db.transaction() as session:
                requests = RideRequestRepository(session)
                locked = await requests.get_for_update(request_id)
                if locked is None:
                    raise DomainError(ErrorKind.REQUEST_NOT_FOUND)
                request, ride = locked
                if ride.driver_id != driver_id:
                    raise DomainError(
                        ErrorKind.UNAUTHORIZED, "You are not the driver of this ride"
                    )

                status = transition(request.status, target)
                await self._adjust_seats(session, ride, SEAT_DELTAS[status])
                await requests.set_status(request, status)
        except DomainError as exc:
            logger.debug(
                "Request %d -> %s rejected: %s", request_id, target.value, exc.kind.name
            )
            raise

        logger.info(
            "Request %d %s by driver %d (ride=%d)",
            request_id,
            status.value,
            driver_id,
            ride.id,
        )
        return request

    async def _adjust_seats(self, session, ride: RideModel, delta: int) -> int:
        if delta < 0 and ride.available_seats + delta < 0:
            raise DomainError(ErrorKind.RIDE_FULL)

        seats = await RideRepository(session).adjust_seats(ride.id, delta)
        if seats is None:
            if delta < 0:
                raise DomainError(ErrorKind.RIDE_FULL)
            raise SeatInvariantViolation(
                f"Ride {ride.id}: releasing a seat would exceed total_seats"
            )
        return seats

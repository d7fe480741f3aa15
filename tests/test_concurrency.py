"""
Concurrency safety tests.

Demonstrates:
1. Two drivers racing to accept the last seat -- exactly one wins, the
   other sees RIDE_FULL, and the seat counter never goes negative.
2. Many concurrent accepts on a small ride never oversell it.
3. Racing accept / revoke calls leave the counter consistent.
4. Identical concurrent requests from one passenger create one row.
5. The ride store refuses to move the counter outside ``[0, total_seats]``.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from rideshare.domain.errors import DomainError, ErrorKind
from rideshare.domain.enums import RequestStatus
from rideshare.infrastructure.models import RideRequestModel
from rideshare.infrastructure.repositories import RideRepository, UserRepository
from tests.conftest import scheduled_ride


def _outcomes(results):
    ok = [r for r in results if not isinstance(r, BaseException)]
    failed = [r for r in results if isinstance(r, BaseException)]
    return ok, failed


@pytest.mark.asyncio
async def test_concurrent_accepts_for_last_seat(rides, lifecycle, users):
    ride = await rides.create(users["driver"], scheduled_ride(total_seats=1))
    first = await lifecycle.create(ride.id, users["alice"])
    second = await lifecycle.create(ride.id, users["bob"])

    results = await asyncio.gather(
        lifecycle.accept(first.id, users["driver"]),
        lifecycle.accept(second.id, users["driver"]),
        return_exceptions=True,
    )

    ok, failed = _outcomes(results)
    assert len(ok) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], DomainError)
    assert failed[0].kind is ErrorKind.RIDE_FULL

    audit = await lifecycle.audit_seats(ride.id)
    assert audit.available_seats == 0
    assert audit.accepted_requests == 1
    assert audit.consistent


@pytest.mark.asyncio
async def test_many_concurrent_accepts_never_oversell(db, rides, lifecycle, users):
    async with db.transaction() as session:
        repo = UserRepository(session)
        passengers = [
            (await repo.create(name=f"P{i}", email=f"p{i}@example.com")).id
            for i in range(6)
        ]
    ride = await rides.create(users["driver"], scheduled_ride(total_seats=2))
    requests = [await lifecycle.create(ride.id, p) for p in passengers]

    results = await asyncio.gather(
        *(lifecycle.accept(r.id, users["driver"]) for r in requests),
        return_exceptions=True,
    )

    ok, failed = _outcomes(results)
    assert len(ok) == 2
    assert all(e.kind is ErrorKind.RIDE_FULL for e in failed)
    audit = await lifecycle.audit_seats(ride.id)
    assert audit.available_seats == 0
    assert audit.consistent


@pytest.mark.asyncio
async def test_double_submitted_accept(rides, lifecycle, users):
    ride = await rides.create(users["driver"], scheduled_ride(total_seats=3))
    request = await lifecycle.create(ride.id, users["alice"])

    results = await asyncio.gather(
        lifecycle.accept(request.id, users["driver"]),
        lifecycle.accept(request.id, users["driver"]),
        return_exceptions=True,
    )

    ok, failed = _outcomes(results)
    assert len(ok) == 1
    assert failed[0].kind is ErrorKind.REQUEST_ALREADY_ACCEPTED
    audit = await lifecycle.audit_seats(ride.id)
    assert audit.available_seats == 2
    assert audit.consistent


@pytest.mark.asyncio
async def test_racing_accept_and_revoke_stay_consistent(rides, lifecycle, users):
    ride = await rides.create(users["driver"], scheduled_ride(total_seats=2))
    accepted = await lifecycle.create(ride.id, users["alice"])
    pending = await lifecycle.create(ride.id, users["bob"])
    await lifecycle.accept(accepted.id, users["driver"])

    await asyncio.gather(
        lifecycle.revoke(accepted.id, users["driver"]),
        lifecycle.accept(pending.id, users["driver"]),
        lifecycle.revoke(accepted.id, users["driver"]),
        return_exceptions=True,
    )

    audit = await lifecycle.audit_seats(ride.id)
    assert audit.consistent
    assert audit.accepted_requests == 1


@pytest.mark.asyncio
async def test_identical_concurrent_requests_create_one_row(db, rides, lifecycle, users):
    ride = await rides.create(users["driver"], scheduled_ride())

    results = await asyncio.gather(
        *(lifecycle.create(ride.id, users["alice"]) for _ in range(3)),
        return_exceptions=True,
    )

    ok, failed = _outcomes(results)
    assert len(ok) == 1
    assert ok[0].status == RequestStatus.PENDING
    assert all(e.kind is ErrorKind.DUPLICATE_REQUEST for e in failed)

    async with db.transaction() as session:
        count = await session.scalar(
            select(func.count())
            .select_from(RideRequestModel)
            .where(RideRequestModel.ride_id == ride.id)
        )
    assert count == 1


class TestSeatCounterBounds:
    """The store-level guard behind the lifecycle engine."""

    @pytest.mark.asyncio
    async def test_cannot_go_below_zero(self, db, rides, users):
        ride = await rides.create(users["driver"], scheduled_ride(total_seats=1))
        async with db.transaction() as session:
            repo = RideRepository(session)
            assert await repo.adjust_seats(ride.id, -1) == 0
            assert await repo.adjust_seats(ride.id, -1) is None
        assert (await rides.get(ride.id)).available_seats == 0

    @pytest.mark.asyncio
    async def test_cannot_exceed_total(self, db, rides, users):
        ride = await rides.create(users["driver"], scheduled_ride(total_seats=2))
        async with db.transaction() as session:
            assert await RideRepository(session).adjust_seats(ride.id, +1) is None
        assert (await rides.get(ride.id)).available_seats == 2

    @pytest.mark.asyncio
    async def test_unknown_ride(self, db):
        async with db.transaction() as session:
            assert await RideRepository(session).adjust_seats(12345, -1) is None

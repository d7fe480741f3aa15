"""Ride discovery: filters, bookability, ordering, pagination and labels."""

from datetime import date, datetime, timedelta, timezone

import pytest

from rideshare.domain.enums import DepartureType
from rideshare.domain.errors import DomainError, ErrorKind
from rideshare.services.search import RideSearch
from tests.conftest import scheduled_ride, tomorrow_at, window_ride


def _tomorrow() -> date:
    return tomorrow_at(0).date()


def _ids(page):
    return [r.id for r in page.results]


# ── filters ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_filters_match_by_intersection(rides, search, users):
    campus = await rides.create(users["driver"], scheduled_ride())
    library = await rides.create(
        users["driver"],
        scheduled_ride(source=["Library"], destination=["Airport", "Central Station"]),
    )

    page = await search.search(source_filters=["hostel 4"], day=_tomorrow())
    assert _ids(page) == [campus.id]

    page = await search.search(
        source_filters=["library", "main gate"],
        destination_filters=["airport"],
        day=_tomorrow(),
    )
    assert _ids(page) == [library.id]

    page = await search.search(destination_filters=["central station"], day=_tomorrow())
    assert set(_ids(page)) == {campus.id, library.id}


@pytest.mark.asyncio
async def test_no_filter_returns_all_bookable(rides, search, users):
    await rides.create(users["driver"], scheduled_ride())
    await rides.create(users["other_driver"], scheduled_ride(source=["Library"]))
    page = await search.search(day=_tomorrow())
    assert len(page.results) == 2


@pytest.mark.asyncio
async def test_unknown_place_returns_nothing(rides, search, users):
    await rides.create(users["driver"], scheduled_ride())
    page = await search.search(source_filters=["nowhere"], day=_tomorrow())
    assert page.results == []


# ── bookability ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_inactive_rides_are_hidden(rides, search, users):
    ride = await rides.create(users["driver"], scheduled_ride())
    await rides.update(ride.id, users["driver"], {"status": "inactive"})
    assert (await search.search(day=_tomorrow())).results == []


@pytest.mark.asyncio
async def test_full_rides_are_hidden(rides, lifecycle, search, users):
    ride = await rides.create(users["driver"], scheduled_ride(total_seats=1))
    request = await lifecycle.create(ride.id, users["alice"])
    await lifecycle.accept(request.id, users["driver"])
    assert (await search.search(day=_tomorrow())).results == []

    await lifecycle.revoke(request.id, users["driver"])
    assert _ids(await search.search(day=_tomorrow())) == [ride.id]


@pytest.mark.asyncio
async def test_departed_rides_are_hidden(rides, search, users):
    early = await rides.create(users["driver"], scheduled_ride(ride_time=tomorrow_at(8)))
    late = await rides.create(users["driver"], scheduled_ride(ride_time=tomorrow_at(10)))

    page = await search.search(day=_tomorrow(), now=tomorrow_at(9))
    assert _ids(page) == [late.id]
    assert early.id not in _ids(page)


@pytest.mark.asyncio
async def test_other_days_are_excluded(rides, search, users):
    await rides.create(
        users["driver"], scheduled_ride(ride_time=tomorrow_at(9) + timedelta(days=1))
    )
    assert (await search.search(day=_tomorrow())).results == []


@pytest.mark.asyncio
async def test_open_window_ride_is_found_on_its_departure_day(rides, search, users):
    ride = await rides.create(users["driver"], window_ride(flexible_window_minutes=30))
    day = ride.departs_at.astimezone(timezone.utc).date()

    page = await search.search(day=day)
    assert _ids(page) == [ride.id]
    assert page.results[0].departure_type is DepartureType.WINDOW


@pytest.mark.asyncio
async def test_closed_window_ride_is_hidden(rides, search, users):
    ride = await rides.create(users["driver"], window_ride(flexible_window_minutes=30))
    later = ride.departs_at + timedelta(minutes=1)
    page = await search.search(day=later.date(), now=later)
    assert page.results == []


# ── ordering and pagination ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_ordered_by_departure_then_newest(rides, search, users):
    late = await rides.create(users["driver"], scheduled_ride(ride_time=tomorrow_at(10)))
    early_old = await rides.create(users["driver"], scheduled_ride(ride_time=tomorrow_at(8)))
    early_new = await rides.create(
        users["other_driver"], scheduled_ride(ride_time=tomorrow_at(8))
    )

    page = await search.search(day=_tomorrow())
    assert _ids(page) == [early_new.id, early_old.id, late.id]


@pytest.mark.asyncio
async def test_pagination(db, rides, users):
    created = [
        await rides.create(users["driver"], scheduled_ride(ride_time=tomorrow_at(8 + i)))
        for i in range(3)
    ]
    search = RideSearch(db, max_page_size=2)

    first = await search.search(day=_tomorrow(), page=1, limit=2)
    second = await search.search(day=_tomorrow(), page=2, limit=2)
    third = await search.search(day=_tomorrow(), page=3, limit=2)

    assert _ids(first) == [created[0].id, created[1].id]
    assert _ids(second) == [created[2].id]
    assert third.results == []


@pytest.mark.asyncio
async def test_limit_is_capped(search):
    page = await search.search(day=_tomorrow(), limit=500)
    assert page.limit == 50


@pytest.mark.asyncio
@pytest.mark.parametrize("page, limit", [(0, 10), (-1, 10), (1, 0)])
async def test_invalid_pagination(search, page, limit):
    with pytest.raises(DomainError) as exc:
        await search.search(day=_tomorrow(), page=page, limit=limit)
    assert exc.value.kind is ErrorKind.INVALID_INPUT


# ── summaries ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_summary_projection(rides, search, users):
    await rides.create(
        users["driver"],
        scheduled_ride(ride_time=tomorrow_at(7, 5), price_per_person=40, car_info="Swift"),
    )
    summary = (await search.search(day=_tomorrow())).results[0]

    assert summary.departure_label == "07:05 AM"
    assert summary.driver_name == "Dana Driver"
    assert summary.driver_id == users["driver"]
    assert summary.source == ["main gate", "hostel 4"]
    assert summary.available_seats == 3
    assert summary.price_per_person == 40.0
    assert summary.car_info == "Swift"


@pytest.mark.asyncio
async def test_window_labels(rides, search, users):
    soon = await rides.create(users["driver"], window_ride(flexible_window_minutes=3))
    later = await rides.create(users["driver"], window_ride(flexible_window_minutes=30))
    day = later.departs_at.astimezone(timezone.utc).date()
    if soon.departs_at.astimezone(timezone.utc).date() != day:
        pytest.skip("window straddles midnight")

    labels = {r.id: r.departure_label for r in (await search.search(day=day)).results}
    assert labels == {soon.id: "Now", later.id: "Leaving in 30 mins"}


def test_day_bounds_follow_search_timezone():
    search = RideSearch(None, timezone="Asia/Kolkata")
    starts, ends = search.day_bounds(date(2026, 10, 20))
    assert starts == datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
    assert ends == datetime(2026, 10, 20, 18, 30, tzinfo=timezone.utc)

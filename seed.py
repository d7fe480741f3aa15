"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 8 sample users (drivers and passengers)
  - 5 sample rides (scheduled and window departures)
  - a handful of requests, some accepted through the lifecycle engine so
    seat counts are consistent from the start
"""

import asyncio
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import func, select

from rideshare.config import settings
from rideshare.infrastructure.database import create_database
from rideshare.infrastructure.models import UserModel
from rideshare.infrastructure.repositories import UserRepository
from rideshare.services.lifecycle import RequestLifecycle
from rideshare.services.rides import RideService


USERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com", "phone_number": "+91-9000000001"},
    {"name": "Priya Patel", "email": "priya@example.com", "phone_number": "+91-9000000002"},
    {"name": "Rohan Mehta", "email": "rohan@example.com", "phone_number": "+91-9000000003"},
    {"name": "Sneha Gupta", "email": "sneha@example.com", "phone_number": "+91-9000000004"},
    {"name": "Vikram Singh", "email": "vikram@example.com", "phone_number": None},
    {"name": "Ananya Reddy", "email": "ananya@example.com", "phone_number": "+91-9000000006"},
    {"name": "Karan Joshi", "email": "karan@example.com", "phone_number": None},
    {"name": "Meera Nair", "email": "meera@example.com", "phone_number": "+91-9000000008"},
]


def _tomorrow_at(hour: int, minute: int = 0) -> datetime:
    tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)
    return datetime.combine(tomorrow, time(hour, minute), tzinfo=timezone.utc)


# (driver index, ride fields)
RIDES = [
    (0, {
        "source": ["Main Gate", "Hostel 4"],
        "destination": ["Central Station"],
        "departure_type": "scheduled",
        "ride_time": _tomorrow_at(7, 30),
        "total_seats": 3,
        "price_per_person": 80.0,
        "car_info": "White hatchback, KA-01-1234",
    }),
    (0, {
        "source": ["Central Station"],
        "destination": ["Main Gate"],
        "departure_type": "scheduled",
        "ride_time": _tomorrow_at(18, 0),
        "total_seats": 3,
        "price_per_person": 80.0,
    }),
    (1, {
        "source": ["Library"],
        "destination": ["Airport", "Terminal 2"],
        "departure_type": "window",
        "flexible_window_minutes": 30,
        "total_seats": 4,
        "seat_layout": "2 back, 1 front",
        "extra_notes": "Large bags welcome",
    }),
    (2, {
        "source": ["Hostel 4"],
        "destination": ["City Mall"],
        "departure_type": "window",
        "flexible_window_minutes": 5,
        "total_seats": 2,
    }),
    (3, {
        "source": ["Main Gate"],
        "destination": ["Airport"],
        "departure_type": "scheduled",
        "ride_time": _tomorrow_at(5, 45),
        "total_seats": 1,
        "payment_contact": "upi:sneha@bank",
    }),
]

# (ride index, passenger index, accept?)
REQUESTS = [
    (0, 4, True),
    (0, 5, True),
    (0, 6, False),
    (2, 7, True),
    (2, 4, False),
    (4, 5, True),
]


async def seed():
    db = create_database(settings)
    try:
        async with db.transaction() as session:
            # Check if already seeded
            count = await session.scalar(select(func.count()).select_from(UserModel))
            if count:
                print("Database already seeded. Skipping.")
                return

            users = UserRepository(session)
            user_ids = [(await users.create(**u)).id for u in USERS]
        print(f"  Created {len(user_ids)} users")

        ride_service = RideService(db)
        ride_ids = []
        for driver, fields in RIDES:
            ride = await ride_service.create(user_ids[driver], fields)
            ride_ids.append(ride.id)
        print(f"  Created {len(ride_ids)} rides")

        lifecycle = RequestLifecycle(db)
        accepted = 0
        for ride_idx, passenger, accept in REQUESTS:
            request = await lifecycle.create(ride_ids[ride_idx], user_ids[passenger])
            if accept:
                driver = RIDES[ride_idx][0]
                await lifecycle.accept(request.id, user_ids[driver])
                accepted += 1
        print(f"  Created {len(REQUESTS)} requests ({accepted} accepted)")

        print("\nSeed complete!")
    finally:
        await db.dispose()


async def main():
    print("Seeding database...")
    await seed()


if __name__ == "__main__":
    asyncio.run(main())

"""Ride store operations, each wrapped in its own transaction."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from rideshare.domain.errors import DomainError, ErrorKind
from rideshare.domain.rides import build_ride_draft
from rideshare.infrastructure.database import Database
from rideshare.infrastructure.models import RideModel
from rideshare.infrastructure.repositories import RideRepository

logger = logging.getLogger(__name__)


class RideService:
    def __init__(self, db: Database):
        self.db = db

    async def create(self, driver_id: int, fields: Mapping[str, Any]) -> RideModel:
        # Validation happens before a transaction is even opened
        draft = build_ride_draft(fields)
        async with self.db.transaction() as session:
            ride = await RideRepository(session).create(driver_id, draft)
        logger.info(
            "Ride %d created by driver %d (%s, %d seats)",
            ride.id,
            driver_id,
            draft.departure_type.value,
            draft.total_seats,
        )
        return ride

    async def update(
        self, ride_id: int, driver_id: int, patch: Mapping[str, Any]
    ) -> RideModel:
        async with self.db.transaction() as session:
            ride = await RideRepository(session).update(ride_id, driver_id, patch)
        logger.info("Ride %d updated: %s", ride_id, ", ".join(sorted(patch)))
        return ride

    async def get(self, ride_id: int) -> RideModel:
        async with self.db.transaction() as session:
            ride = await RideRepository(session).get_by_id(ride_id)
        if ride is None:
            raise DomainError(ErrorKind.RIDE_NOT_FOUND)
        return ride

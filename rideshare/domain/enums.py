"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class DepartureType(str, enum.Enum):
    SCHEDULED = "scheduled"
    WINDOW = "window"


class StopKind(str, enum.Enum):
    SOURCE = "source"
    DESTINATION = "destination"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


# State machine: maps current status -> set of valid next statuses.
# There is no terminal state; revoking an accepted request returns it to PENDING.
REQUEST_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.PENDING: {RequestStatus.ACCEPTED},
    RequestStatus.ACCEPTED: {RequestStatus.PENDING},
}

"""
Request state machine (State Pattern).

    absent -> PENDING -> ACCEPTED -> PENDING (revoke) -> ACCEPTED ...

Seat accounting rides on the same transitions: entering ACCEPTED takes one
seat from the ride, leaving it gives the seat back.
"""

from __future__ import annotations

from .enums import REQUEST_TRANSITIONS, RequestStatus
from .errors import DomainError, ErrorKind

# Error raised when the target state cannot be reached from the current one.
_REJECTIONS: dict[RequestStatus, ErrorKind] = {
    RequestStatus.ACCEPTED: ErrorKind.REQUEST_ALREADY_ACCEPTED,
    RequestStatus.PENDING: ErrorKind.REQUEST_NOT_ACCEPTED,
}

# Change applied to the ride's available seats when entering a state.
SEAT_DELTAS: dict[RequestStatus, int] = {
    RequestStatus.ACCEPTED: -1,
    RequestStatus.PENDING: +1,
}


def transition(current: RequestStatus, target: RequestStatus) -> RequestStatus:
    """Return *target* if reachable from *current*, else raise ``DomainError``."""
    current = RequestStatus(current)
    if target not in REQUEST_TRANSITIONS.get(current, set()):
        raise DomainError(_REJECTIONS[target])
    return target

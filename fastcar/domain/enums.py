"""Domain enumerations and state-transition rules."""

import enum


class TripStatus(str, enum.Enum):
    SEARCHING = "searching"
    ACCEPTED = "accepted"
    STARTED = "started"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    NO_DRIVER = "no_driver"


class TripAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    NO_DRIVER = "no_driver"


TERMINAL_STATUSES: frozenset[TripStatus] = frozenset(
    {
        TripStatus.COMPLETED,
        TripStatus.REJECTED,
        TripStatus.CANCELLED,
        TripStatus.NO_DRIVER,
    }
)

ACTIVE_STATUSES: frozenset[TripStatus] = frozenset(TripStatus) - TERMINAL_STATUSES


# State machine: maps action -> (statuses it may be applied from, target status).
# ``no_driver`` is an operator override and applies from every status.
TRIP_TRANSITIONS: dict[TripAction, tuple[frozenset[TripStatus], TripStatus]] = {
    TripAction.ACCEPT: (frozenset({TripStatus.SEARCHING}), TripStatus.ACCEPTED),
    TripAction.REJECT: (frozenset({TripStatus.SEARCHING}), TripStatus.REJECTED),
    TripAction.START: (frozenset({TripStatus.ACCEPTED}), TripStatus.STARTED),
    TripAction.COMPLETE: (frozenset({TripStatus.STARTED}), TripStatus.COMPLETED),
    TripAction.CANCEL: (ACTIVE_STATUSES, TripStatus.CANCELLED),
    TripAction.NO_DRIVER: (frozenset(TripStatus), TripStatus.NO_DRIVER),
}


class EventKind(str, enum.Enum):
    TRIP_CREATED = "trip:created"
    TRIP_UPDATED = "trip:update"
    TRIP_SNAPSHOT = "trips"


class Group(str, enum.Enum):
    DISPATCH = "dispatch"
    DRIVERS = "drivers"

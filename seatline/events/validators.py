"""Field validation for events, venues and RSVP requests.

Each validator raises a ``ValidationError`` subclass and returns nothing (or the
parsed value) on success, so malformed input never reaches the capacity engine.
"""

import math

from seatline.events.dtos import (
    EventDTO,
    EventValidationError,
    EventVisibility,
    InvalidCoordinatesError,
    InvalidRSVPStatusError,
    RSVPStatus,
    VenueDTO,
)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000

# waitlisted is assigned by the engine, never requested
REQUESTABLE_STATUSES = frozenset({RSVPStatus.GOING, RSVPStatus.INTERESTED, RSVPStatus.DECLINED})


def validate_event(event: EventDTO) -> None:
    if not event.title or not event.title.strip():
        raise EventValidationError("event title cannot be empty")
    if len(event.title) > MAX_TITLE_LENGTH:
        raise EventValidationError(f"event title cannot exceed {MAX_TITLE_LENGTH} characters")
    if event.description is not None and len(event.description) > MAX_DESCRIPTION_LENGTH:
        raise EventValidationError(
            f"event description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )
    if event.capacity is not None:
        if isinstance(event.capacity, bool) or not isinstance(event.capacity, int):
            raise EventValidationError("event capacity must be an integer")
        if event.capacity < 0:
            raise EventValidationError("event capacity cannot be negative")
    if not event.start_at < event.end_at:
        raise EventValidationError("event end time must be after start time")
    try:
        EventVisibility(event.visibility)
    except ValueError:
        raise EventValidationError(f"invalid event visibility: {event.visibility!r}") from None


def validate_rsvp_status(value: str | RSVPStatus) -> RSVPStatus:
    """Parse a requested RSVP status."""
    try:
        status = RSVPStatus(value)
    except ValueError:
        raise InvalidRSVPStatusError(f"invalid RSVP status: {value!r}") from None
    if status not in REQUESTABLE_STATUSES:
        raise InvalidRSVPStatusError(f"RSVP status {status.value!r} cannot be requested")
    return status


def validate_coordinates(latitude: float, longitude: float) -> None:
    for name, value, bound in (("latitude", latitude, 90), ("longitude", longitude, 180)):
        if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
            raise InvalidCoordinatesError(f"{name} must be a finite number")
        if not -bound <= value <= bound:
            raise InvalidCoordinatesError(f"{name} must be between -{bound} and {bound}")


def validate_venue(venue: VenueDTO) -> None:
    if not venue.name or not venue.name.strip():
        raise EventValidationError("venue name cannot be empty")
    if venue.latitude is not None or venue.longitude is not None:
        if venue.latitude is None or venue.longitude is None:
            raise InvalidCoordinatesError("latitude and longitude must be provided together")
        validate_coordinates(venue.latitude, venue.longitude)

"""Capacity and waitlist decisions for event RSVPs.

Every function here is pure: it works on an event and a consistent snapshot of
that event's RSVPs and returns a new decision. Callers are responsible for
reading the snapshot and writing the result inside one transaction that
serialises RSVP writes per event.
"""

from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID

from seatline.events.dtos import (
    AlreadyRSVPedError,
    CannotPromoteFromWaitlistError,
    CapacityInfoDTO,
    EventAtCapacityError,
    EventDTO,
    EventRSVPDTO,
    NotRSVPedError,
    RSVPOutcomeDTO,
    RSVPStatus,
)

UNLIMITED = -1


def count_going(rsvps: list[EventRSVPDTO]) -> int:
    return sum(1 for rsvp in rsvps if rsvp.status == RSVPStatus.GOING)


def count_waitlisted(rsvps: list[EventRSVPDTO]) -> int:
    return sum(1 for rsvp in rsvps if rsvp.status == RSVPStatus.WAITLISTED)


def waitlist_in_order(rsvps: list[EventRSVPDTO]) -> list[EventRSVPDTO]:
    """Waitlisted RSVPs, first come first served.

    ``sorted`` is stable, so equal timestamps keep their snapshot order.
    """
    waitlisted = [rsvp for rsvp in rsvps if rsvp.status == RSVPStatus.WAITLISTED]
    return sorted(waitlisted, key=lambda rsvp: rsvp.created_at)


def _find(rsvps: list[EventRSVPDTO], user_id: UUID) -> EventRSVPDTO | None:
    for rsvp in rsvps:
        if rsvp.user_id == user_id:
            return rsvp
    return None


def can_join(existing_rsvps: list[EventRSVPDTO], user_id: UUID) -> None:
    if _find(existing_rsvps, user_id) is not None:
        raise AlreadyRSVPedError(user_id)


def _seat_or_waitlist(
    event: EventDTO, other_rsvps: list[EventRSVPDTO], requested: RSVPStatus
) -> tuple[RSVPStatus, bool]:
    if requested != RSVPStatus.GOING:
        return requested, False
    if event.can_accept_rsvp(count_going(other_rsvps)):
        return RSVPStatus.GOING, False
    return RSVPStatus.WAITLISTED, True


def process_new_rsvp(
    event: EventDTO,
    existing_rsvps: list[EventRSVPDTO],
    user_id: UUID,
    requested_status: RSVPStatus,
    now: datetime | None = None,
) -> RSVPOutcomeDTO:
    """Decide the status of a first-time RSVP."""
    can_join(existing_rsvps, user_id)
    now = now or datetime.now(UTC)

    status, was_waitlisted = _seat_or_waitlist(event, existing_rsvps, requested_status)
    rsvp = EventRSVPDTO(
        event_id=event.id,
        user_id=user_id,
        status=status,
        created_at=now,
        updated_at=now,
    )
    return RSVPOutcomeDTO(rsvp=rsvp, was_waitlisted=was_waitlisted)


def update_rsvp(
    event: EventDTO,
    rsvps: list[EventRSVPDTO],
    user_id: UUID,
    new_status: RSVPStatus,
    now: datetime | None = None,
) -> RSVPOutcomeDTO:
    """Re-evaluate an existing RSVP whose owner asked for ``new_status``.

    ``rsvps`` is the full snapshot including the user's own record. The
    record keeps its ``created_at`` so a user who stays waitlisted keeps their
    place in line.
    """
    existing = _find(rsvps, user_id)
    if existing is None:
        raise NotRSVPedError(user_id)
    others = [rsvp for rsvp in rsvps if rsvp.user_id != user_id]
    now = now or datetime.now(UTC)

    status, was_waitlisted = _seat_or_waitlist(event, others, new_status)
    updated = replace(existing, status=status, updated_at=now)

    promoted: list[UUID] = []
    if new_status == RSVPStatus.DECLINED and existing.status == RSVPStatus.GOING:
        promoted = get_users_to_promote(event, others, 1)

    return RSVPOutcomeDTO(
        rsvp=updated,
        was_waitlisted=was_waitlisted,
        was_promoted=bool(promoted),
        promoted_users=promoted,
    )


def withdraw_rsvp(
    event: EventDTO,
    rsvps: list[EventRSVPDTO],
    user_id: UUID,
) -> RSVPOutcomeDTO:
    """Remove a user's RSVP. A vacated seat promotes one waitlisted user."""
    existing = _find(rsvps, user_id)
    if existing is None:
        raise NotRSVPedError(user_id)
    others = [rsvp for rsvp in rsvps if rsvp.user_id != user_id]

    promoted: list[UUID] = []
    if existing.status == RSVPStatus.GOING:
        promoted = get_users_to_promote(event, others, 1)

    return RSVPOutcomeDTO(
        rsvp=existing,
        was_promoted=bool(promoted),
        promoted_users=promoted,
    )


def get_users_to_promote(
    event: EventDTO, rsvps: list[EventRSVPDTO], available_spots: int
) -> list[UUID]:
    if not event.has_capacity or available_spots <= 0:
        return []
    return [rsvp.user_id for rsvp in waitlist_in_order(rsvps)[:available_spots]]


def calculate_available_spots(event: EventDTO, rsvps: list[EventRSVPDTO]) -> int:
    if not event.has_capacity:
        return UNLIMITED
    return max(event.capacity - count_going(rsvps), 0)


def get_capacity_info(event: EventDTO, rsvps: list[EventRSVPDTO]) -> CapacityInfoDTO:
    going = count_going(rsvps)
    waitlisted = count_waitlisted(rsvps)
    return CapacityInfoDTO(
        capacity=event.capacity,
        going_count=going,
        waitlisted_count=waitlisted,
        available_spots=calculate_available_spots(event, rsvps),
        is_at_capacity=event.has_capacity and going >= event.capacity,
        has_waitlist=waitlisted > 0,
    )


def assert_can_seat(event: EventDTO, rsvps: list[EventRSVPDTO]) -> None:
    if not event.can_accept_rsvp(count_going(rsvps)):
        raise EventAtCapacityError()


def promote_from_waitlist(
    event: EventDTO,
    rsvps: list[EventRSVPDTO],
    user_id: UUID,
    now: datetime | None = None,
) -> EventRSVPDTO:
    """Seat a waitlisted user, checking that a seat is actually free."""
    existing = _find(rsvps, user_id)
    if existing is None or existing.status != RSVPStatus.WAITLISTED:
        raise CannotPromoteFromWaitlistError(user_id, "user is not on the waitlist")
    try:
        assert_can_seat(event, rsvps)
    except EventAtCapacityError:
        raise CannotPromoteFromWaitlistError(user_id, "no seat available") from None
    return replace(existing, status=RSVPStatus.GOING, updated_at=now or datetime.now(UTC))

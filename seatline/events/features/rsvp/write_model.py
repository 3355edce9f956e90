"""Write model for RSVPs.

Every mutation locks the event row, reads the RSVP snapshot, lets the capacity
engine decide and writes the result in the same transaction. Concurrent
requests for one event are therefore serialised and the going count can never
exceed the capacity. Notifications go out only after the transaction commits.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatline.config.database import async_session_manager
from seatline.errors import PermissionDeniedError
from seatline.events import capacity
from seatline.events.dtos import (
    CannotPromoteFromWaitlistError,
    EventDTO,
    EventNotFoundError,
    EventRSVPDTO,
    RSVPOutcomeDTO,
    RSVPStatus,
)
from seatline.events.repository.orm_models import Event, EventRSVP
from seatline.events.repository.read_models import load_event_rsvps, to_event_dto
from seatline.events.validators import validate_event, validate_rsvp_status

logger = logging.getLogger(__name__)


class PermissionGate(Protocol):
    async def can_rsvp(self, event: EventDTO, user_id: UUID) -> bool: ...


class AllowAllPermissionGate:
    async def can_rsvp(self, event: EventDTO, user_id: UUID) -> bool:
        return True


class RSVPNotifier(Protocol):
    async def on_rsvp_confirmation(self, event_id: UUID, user_id: UUID, status: RSVPStatus): ...

    async def on_rsvp_withdrawal(self, event_id: UUID, user_id: UUID): ...


class RSVPWriteModel(ABC):
    @abstractmethod
    async def submit_rsvp(
        self, event_id: UUID, user_id: UUID, status: RSVPStatus | str
    ) -> RSVPOutcomeDTO:
        """Create a first RSVP. A full event puts a going request on the waitlist."""
        raise NotImplementedError

    @abstractmethod
    async def update_rsvp(
        self, event_id: UUID, user_id: UUID, status: RSVPStatus | str
    ) -> RSVPOutcomeDTO:
        """Change an existing RSVP. Declining a seat promotes the head of the waitlist."""
        raise NotImplementedError

    @abstractmethod
    async def withdraw_rsvp(self, event_id: UUID, user_id: UUID) -> RSVPOutcomeDTO:
        """Remove an RSVP. A vacated seat promotes the head of the waitlist."""
        raise NotImplementedError


class SqlRSVPWriteModel(RSVPWriteModel):
    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        notifier: RSVPNotifier | None = None,
        permission_gate: PermissionGate | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.notifier = notifier
        self.permission_gate = permission_gate or AllowAllPermissionGate()

    async def submit_rsvp(
        self, event_id: UUID, user_id: UUID, status: RSVPStatus | str
    ) -> RSVPOutcomeDTO:
        requested = validate_rsvp_status(status)
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event, rsvps = await self._lock_event(session, event_id)
            await self._check_permission(event, user_id)

            outcome = capacity.process_new_rsvp(event, rsvps, user_id, requested)
            session.add(
                EventRSVP(
                    event_id=event_id,
                    user_id=user_id,
                    status=outcome.rsvp.status,
                    created_at=outcome.rsvp.created_at,
                    updated_at=outcome.rsvp.updated_at,
                )
            )
            await session.flush()

        logger.info(
            "User %s RSVPed %s to event %s", user_id, outcome.rsvp.status.value, event_id
        )
        await self._notify(event_id, outcome)
        return outcome

    async def update_rsvp(
        self, event_id: UUID, user_id: UUID, status: RSVPStatus | str
    ) -> RSVPOutcomeDTO:
        requested = validate_rsvp_status(status)
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event, rsvps = await self._lock_event(session, event_id)
            await self._check_permission(event, user_id)

            outcome = capacity.update_rsvp(event, rsvps, user_id, requested)
            record = await session.get(EventRSVP, (event_id, user_id))
            record.status = outcome.rsvp.status
            record.updated_at = outcome.rsvp.updated_at

            current = [outcome.rsvp if rsvp.user_id == user_id else rsvp for rsvp in rsvps]
            promoted = await self._apply_promotions(session, event, current, outcome.promoted_users)
            outcome = replace(outcome, promoted_users=promoted, was_promoted=bool(promoted))
            await session.flush()

        logger.info(
            "User %s changed RSVP to %s for event %s", user_id, outcome.rsvp.status.value, event_id
        )
        await self._notify(event_id, outcome)
        return outcome

    async def withdraw_rsvp(self, event_id: UUID, user_id: UUID) -> RSVPOutcomeDTO:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event, rsvps = await self._lock_event(session, event_id)
            await self._check_permission(event, user_id)

            outcome = capacity.withdraw_rsvp(event, rsvps, user_id)
            record = await session.get(EventRSVP, (event_id, user_id))
            await session.delete(record)

            current = [rsvp for rsvp in rsvps if rsvp.user_id != user_id]
            promoted = await self._apply_promotions(session, event, current, outcome.promoted_users)
            outcome = replace(outcome, promoted_users=promoted, was_promoted=bool(promoted))
            await session.flush()

        logger.info("User %s withdrew from event %s", user_id, event_id)
        await self._notify(event_id, outcome, withdrawn=True)
        return outcome

    async def _lock_event(
        self, session: AsyncSession, event_id: UUID
    ) -> tuple[EventDTO, list[EventRSVPDTO]]:
        result = await session.execute(
            select(Event).where(Event.uuid == event_id).with_for_update()
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise EventNotFoundError(event_id)
        event_dto = to_event_dto(event)
        validate_event(event_dto)
        return event_dto, await load_event_rsvps(session, event_id)

    async def _check_permission(self, event: EventDTO, user_id: UUID) -> None:
        if not await self.permission_gate.can_rsvp(event, user_id):
            raise PermissionDeniedError(f"user {user_id} may not RSVP to event {event.id}")

    async def _apply_promotions(
        self,
        session: AsyncSession,
        event: EventDTO,
        current: list[EventRSVPDTO],
        candidates: list[UUID],
    ) -> list[UUID]:
        """Seat the candidates that still fit. Returns the users actually promoted."""
        now = datetime.now(UTC)
        promoted_users = []
        for candidate in candidates:
            try:
                promoted = capacity.promote_from_waitlist(event, current, candidate, now)
            except CannotPromoteFromWaitlistError as e:
                # capacity lowered below the going count
                logger.warning("Skipping promotion for event %s: %s", event.id, e)
                continue
            record = await session.get(EventRSVP, (event.id, candidate))
            record.status = promoted.status
            record.updated_at = promoted.updated_at
            current = [promoted if rsvp.user_id == candidate else rsvp for rsvp in current]
            promoted_users.append(candidate)
            logger.info("User %s promoted from the waitlist of event %s", candidate, event.id)
        return promoted_users

    async def _notify(self, event_id: UUID, outcome: RSVPOutcomeDTO, withdrawn: bool = False) -> None:
        if self.notifier is None:
            return
        actor = outcome.rsvp.user_id

        # the RSVP is committed already, a failed notification must not undo it
        if withdrawn:
            try:
                await self.notifier.on_rsvp_withdrawal(event_id, actor)
            except Exception:
                logger.exception("Could not cancel reminders of user %s for event %s", actor, event_id)
        recipients: list[tuple[UUID, RSVPStatus]] = []
        if not withdrawn:
            recipients.append((actor, outcome.rsvp.status))
        recipients.extend((user_id, RSVPStatus.GOING) for user_id in outcome.promoted_users)

        for user_id, status in recipients:
            try:
                await self.notifier.on_rsvp_confirmation(event_id, user_id, status)
            except Exception:
                logger.exception(
                    "Could not send RSVP confirmation to user %s for event %s", user_id, event_id
                )

"""Event read models - return DTOs, never ORM models."""

from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatline.config.database import async_session_manager
from seatline.events.dtos import (
    EventDetailsDTO,
    EventDTO,
    EventRSVPDTO,
    EventVisibility,
    RSVPStatus,
    VenueDTO,
)
from seatline.events.repository.orm_models import Event, EventRSVP, Venue
from seatline.groups.dtos import GroupDTO
from seatline.models.base import ensure_utc
from seatline.models.group import Group
from seatline.users.repository.read_models import SqlUserReadModel


def to_event_dto(event: Event) -> EventDTO:
    return EventDTO(
        id=event.uuid,
        host_user_id=event.host_user_id,
        title=event.title,
        start_at=ensure_utc(event.start_at),
        end_at=ensure_utc(event.end_at),
        capacity=event.capacity,
        group_id=event.group_id,
        venue_id=event.venue_id,
        visibility=EventVisibility(event.visibility),
        description=event.description,
        timezone=event.timezone,
    )


def to_rsvp_dto(rsvp: EventRSVP) -> EventRSVPDTO:
    return EventRSVPDTO(
        event_id=rsvp.event_id,
        user_id=rsvp.user_id,
        status=RSVPStatus(rsvp.status),
        created_at=ensure_utc(rsvp.created_at),
        updated_at=ensure_utc(rsvp.updated_at),
    )


async def load_event_rsvps(session: AsyncSession, event_id: UUID) -> list[EventRSVPDTO]:
    """RSVP snapshot for one event, oldest first."""
    result = await session.execute(
        select(EventRSVP).where(EventRSVP.event_id == event_id).order_by(EventRSVP.created_at)
    )
    return [to_rsvp_dto(rsvp) for rsvp in result.scalars().all()]


class EventReadModel(ABC):
    @abstractmethod
    async def get_event(self, event_id: UUID) -> EventDTO | None:
        raise NotImplementedError

    @abstractmethod
    async def get_event_with_details(self, event_id: UUID) -> EventDetailsDTO | None:
        """Return the event with its host, venue and group, or None if missing."""
        raise NotImplementedError

    @abstractmethod
    async def get_event_rsvps(self, event_id: UUID) -> list[EventRSVPDTO]:
        raise NotImplementedError


class SqlEventReadModel(EventReadModel):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_event(self, event_id: UUID) -> EventDTO | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await session.get(Event, event_id)
            return to_event_dto(event) if event is not None else None

    async def get_event_with_details(self, event_id: UUID) -> EventDetailsDTO | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await session.get(Event, event_id)
            if event is None:
                return None

            venue = None
            if event.venue_id is not None:
                venue_row = await session.get(Venue, event.venue_id)
                if venue_row is not None:
                    venue = VenueDTO(
                        id=venue_row.uuid,
                        name=venue_row.name,
                        address=venue_row.address,
                        city=venue_row.city,
                        country=venue_row.country,
                        latitude=venue_row.latitude,
                        longitude=venue_row.longitude,
                    )

            group = None
            if event.group_id is not None:
                group_row = await session.get(Group, event.group_id)
                if group_row is not None:
                    group = GroupDTO(
                        id=group_row.uuid, name=group_row.name, description=group_row.description
                    )

            host = await SqlUserReadModel(session_overwrite=session).get_user_with_profile(
                event.host_user_id
            )
            return EventDetailsDTO(event=to_event_dto(event), host=host, venue=venue, group=group)

    async def get_event_rsvps(self, event_id: UUID) -> list[EventRSVPDTO]:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            return await load_event_rsvps(session, event_id)

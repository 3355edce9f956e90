from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from seatline.config.table_names import TableNames
from seatline.events.dtos import EventVisibility, RSVPStatus
from seatline.models.base import Base, BaseModel, TimeStamp


class Venue(Base, TimeStamp):
    __tablename__ = TableNames.VENUES.value

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Venue {self.name}>"


class Event(Base, TimeStamp):
    __tablename__ = TableNames.EVENTS.value

    host_user_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.GROUPS.value}.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    venue_id: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.VENUES.value}.uuid", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    visibility: Mapped[str] = mapped_column(
        Enum(
            EventVisibility,
            name="event_visibility_enum",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=EventVisibility.PUBLIC,
        nullable=False,
    )
    # NULL means unlimited
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)

    def __repr__(self) -> str:
        return f"<Event {self.title} on {self.start_at}>"


class EventRSVP(BaseModel):
    __tablename__ = TableNames.EVENT_RSVP.value
    __table_args__ = (Index("idx_event_rsvp_event_status", "event_id", "status"),)

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.EVENTS.value}.uuid", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        Enum(RSVPStatus, name="rsvp_status_enum", values_callable=lambda x: [e.value for e in x]),
        default=RSVPStatus.INTERESTED,
        nullable=False,
    )
    # set by the application so waitlist order does not depend on clock resolution of the db
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<EventRSVP {self.user_id} -> {self.event_id} ({self.status})>"

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from seatline.errors import DomainRuleError, NotFoundError, ValidationError
from seatline.groups.dtos import GroupDTO
from seatline.users.dtos import UserWithProfileDTO


class AlreadyRSVPedError(DomainRuleError):
    """Raised when a user who already has an RSVP tries to join again."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__("user has already RSVPed to this event")


class NotRSVPedError(DomainRuleError):
    """Raised when updating or withdrawing an RSVP that does not exist."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__("user has not RSVPed to this event")


class EventAtCapacityError(DomainRuleError):
    def __init__(self) -> None:
        super().__init__("event is at capacity")


class CannotPromoteFromWaitlistError(DomainRuleError):
    def __init__(self, user_id: UUID, reason: str) -> None:
        self.user_id = user_id
        super().__init__(f"cannot promote user from waitlist: {reason}")


class EventNotFoundError(NotFoundError):
    entity = "event"


class EventValidationError(ValidationError):
    pass


class InvalidRSVPStatusError(ValidationError):
    pass


class InvalidCoordinatesError(ValidationError):
    pass


class RSVPStatus(str, Enum):
    GOING = "going"
    INTERESTED = "interested"
    DECLINED = "declined"
    WAITLISTED = "waitlisted"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class EventVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    GROUP_ONLY = "group_only"


@dataclass(frozen=True)
class EventDTO:
    """DTO for the fields of an event the RSVP engine and triggers need."""

    id: UUID
    host_user_id: UUID
    title: str
    start_at: datetime
    end_at: datetime
    # None means unlimited
    capacity: int | None = None
    group_id: UUID | None = None
    venue_id: UUID | None = None
    visibility: EventVisibility = EventVisibility.PUBLIC
    description: str | None = None
    timezone: str = "UTC"

    @property
    def has_capacity(self) -> bool:
        return self.capacity is not None

    def can_accept_rsvp(self, current_going_count: int) -> bool:
        if not self.has_capacity:
            return True
        return current_going_count < self.capacity


@dataclass(frozen=True)
class VenueDTO:
    id: UUID
    name: str
    address: str = ""
    city: str = ""
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @property
    def full_address(self) -> str:
        if self.city and self.country:
            return f"{self.address}, {self.city}, {self.country}"
        return self.address


@dataclass(frozen=True)
class EventDetailsDTO:
    """DTO for an event together with its host, venue and group."""

    event: EventDTO
    host: UserWithProfileDTO | None = None
    venue: VenueDTO | None = None
    group: GroupDTO | None = None


@dataclass(frozen=True)
class EventRSVPDTO:
    """DTO for one (event, user) RSVP record."""

    event_id: UUID
    user_id: UUID
    status: RSVPStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class RSVPOutcomeDTO:
    """Result of an RSVP decision. Not persisted."""

    rsvp: EventRSVPDTO
    was_waitlisted: bool = False
    was_promoted: bool = False
    # users promoted from the waitlist because of this action, FIFO order
    promoted_users: list[UUID] = field(default_factory=list)


@dataclass(frozen=True)
class CapacityInfoDTO:
    capacity: int | None
    going_count: int
    waitlisted_count: int
    # -1 means unlimited
    available_spots: int
    is_at_capacity: bool
    has_waitlist: bool

"""In-memory models for testing - no database required."""

import asyncio
import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from seatline.events.dtos import EventDetailsDTO, EventDTO, EventRSVPDTO, RSVPStatus, VenueDTO
from seatline.events.repository.read_models import EventReadModel
from seatline.groups.dtos import GroupDTO, GroupMemberDTO, GroupWithMembersDTO
from seatline.groups.repository.read_models import GroupReadModel
from seatline.notifications.channels.base import DeliveryChannel, DeliveryError
from seatline.notifications.dispatcher import DeliveryDispatcher
from seatline.notifications.lifecycle import (
    MAX_RETRY_COUNT,
    Notification,
    NotificationNotFoundError,
    NotificationStatus,
    NotificationType,
)
from seatline.notifications.repository.store import NotificationStore
from seatline.notifications.service import NotificationService
from seatline.notifications.templates import NotificationTemplates
from seatline.notifications.triggers import NotificationTriggerService
from seatline.users.dtos import ProfileDTO, UserDTO, UserWithProfileDTO
from seatline.users.repository.read_models import UserReadModel

# =============================================================================
# Config
# =============================================================================


@dataclass
class FakeConfig:
    notification_batch_size: int = 50
    notification_delivery_timeout_seconds: float = 1.0
    notification_max_concurrency: int = 10
    notification_reminder_offsets_minutes: list[int] = field(default_factory=lambda: [24 * 60, 2 * 60])
    notification_retention_days: int = 90


# =============================================================================
# Store
# =============================================================================


class InMemoryNotificationStore(NotificationStore):
    def __init__(self):
        self._notifications: dict[UUID, Notification] = {}

    @staticmethod
    def _copy(notification: Notification) -> Notification:
        loaded = copy.deepcopy(notification)
        loaded.remember_stored_state()
        return loaded

    @property
    def all(self) -> list[Notification]:
        return [self._copy(n) for n in self._notifications.values()]

    async def create(self, notification: Notification) -> None:
        await self.create_many([notification])

    async def create_many(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            notification.validate()
        for notification in notifications:
            self._notifications[notification.id] = copy.deepcopy(notification)
            notification.remember_stored_state()

    async def get_by_id(self, notification_id: UUID) -> Notification | None:
        notification = self._notifications.get(notification_id)
        return self._copy(notification) if notification else None

    async def update(self, notification: Notification) -> bool:
        stored = self._notifications.get(notification.id)
        if stored is None:
            raise NotificationNotFoundError(notification.id)
        if not notification.may_overwrite(stored.status, stored.retry_count):
            return False
        notification.claimed_until = None
        notification.remember_stored_state()
        self._notifications[notification.id] = copy.deepcopy(notification)
        return True

    async def claim(
        self, notification: Notification, until: datetime, now: datetime | None = None
    ) -> bool:
        now = now or datetime.now(UTC)
        stored = self._notifications.get(notification.id)
        if stored is None or stored.is_terminal:
            return False
        if not notification.may_overwrite(stored.status, stored.retry_count):
            return False
        if stored.is_claimed(now):
            return False
        stored.claimed_until = until
        notification.claimed_until = until
        return True

    async def delete(self, notification_id: UUID) -> None:
        self._notifications.pop(notification_id, None)

    async def get_user_notifications(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        mine = [n for n in self._notifications.values() if n.user_id == user_id]
        mine.sort(key=lambda n: n.created_at, reverse=True)
        return [self._copy(n) for n in mine[offset : offset + limit]]

    async def get_pending_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        now = now or datetime.now(UTC)
        due = [
            n
            for n in self._notifications.values()
            if n.status == NotificationStatus.PENDING and n.scheduled_at <= now and not n.is_claimed(now)
        ]
        due.sort(key=lambda n: n.scheduled_at)
        return [self._copy(n) for n in due[:limit]]

    async def get_failed_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        now = now or datetime.now(UTC)
        failed = [
            n
            for n in self._notifications.values()
            if n.status == NotificationStatus.FAILED
            and n.retry_count < MAX_RETRY_COUNT
            and not n.is_claimed(now)
        ]
        failed.sort(key=lambda n: n.created_at)
        return [self._copy(n) for n in failed[:limit]]

    async def get_pending_reminders(self, user_id: UUID, event_id: UUID) -> list[Notification]:
        reminders = [
            n
            for n in self._notifications.values()
            if n.user_id == user_id
            and n.type == NotificationType.EVENT_REMINDER
            and n.status == NotificationStatus.PENDING
            and n.payload.event_id == str(event_id)
        ]
        reminders.sort(key=lambda n: n.scheduled_at)
        return [self._copy(n) for n in reminders]

    async def delete_old_notifications(self, older_than: datetime) -> int:
        old = [n.id for n in self._notifications.values() if n.created_at < older_than]
        for notification_id in old:
            del self._notifications[notification_id]
        return len(old)


# =============================================================================
# Read models
# =============================================================================


def make_user(
    email: str | None = None,
    display_name: str | None = None,
    communication_preferences: dict | None = None,
) -> UserWithProfileDTO:
    return UserWithProfileDTO(
        user=UserDTO(id=uuid4(), email=email or f"{uuid4().hex[:8]}@example.com"),
        profile=ProfileDTO(
            display_name=display_name,
            communication_preferences=communication_preferences or {},
        ),
    )


def make_event(
    host_user_id: UUID,
    capacity: int | None = None,
    start_at: datetime | None = None,
    group_id: UUID | None = None,
    title: str = "Friday Night Draft",
) -> EventDTO:
    start_at = start_at or datetime.now(UTC) + timedelta(days=7)
    return EventDTO(
        id=uuid4(),
        host_user_id=host_user_id,
        title=title,
        start_at=start_at,
        end_at=start_at + timedelta(hours=3),
        capacity=capacity,
        group_id=group_id,
        description="Bring your own sleeves",
    )


class InMemoryUserReadModel(UserReadModel):
    def __init__(self, users: list[UserWithProfileDTO] | None = None):
        self._users = {user.user.id: user for user in users or []}

    def add(self, user: UserWithProfileDTO) -> UserWithProfileDTO:
        self._users[user.user.id] = user
        return user

    async def get_user_with_profile(self, user_id: UUID) -> UserWithProfileDTO | None:
        return self._users.get(user_id)


class InMemoryEventReadModel(EventReadModel):
    def __init__(self, users: InMemoryUserReadModel):
        self._users = users
        self._events: dict[UUID, EventDTO] = {}
        self._venues: dict[UUID, VenueDTO] = {}
        self._rsvps: dict[UUID, list[EventRSVPDTO]] = {}

    def add(self, event: EventDTO, venue: VenueDTO | None = None) -> EventDTO:
        self._events[event.id] = event
        if venue is not None:
            self._venues[event.id] = venue
        self._rsvps.setdefault(event.id, [])
        return event

    def add_rsvp(self, event_id: UUID, user_id: UUID, status: RSVPStatus) -> None:
        now = datetime.now(UTC)
        self._rsvps[event_id].append(
            EventRSVPDTO(event_id=event_id, user_id=user_id, status=status, created_at=now, updated_at=now)
        )

    async def get_event(self, event_id: UUID) -> EventDTO | None:
        return self._events.get(event_id)

    async def get_event_with_details(self, event_id: UUID) -> EventDetailsDTO | None:
        event = self._events.get(event_id)
        if event is None:
            return None
        return EventDetailsDTO(
            event=event,
            host=await self._users.get_user_with_profile(event.host_user_id),
            venue=self._venues.get(event_id),
        )

    async def get_event_rsvps(self, event_id: UUID) -> list[EventRSVPDTO]:
        return list(self._rsvps.get(event_id, []))


class InMemoryGroupReadModel(GroupReadModel):
    def __init__(self):
        self._groups: dict[UUID, GroupWithMembersDTO] = {}

    def add(self, name: str, member_ids: list[UUID], description: str | None = None) -> GroupDTO:
        group = GroupDTO(id=uuid4(), name=name, description=description)
        self._groups[group.id] = GroupWithMembersDTO(
            group=group, members=[GroupMemberDTO(user_id=user_id) for user_id in member_ids]
        )
        return group

    async def get_group_with_members(self, group_id: UUID) -> GroupWithMembersDTO | None:
        return self._groups.get(group_id)


# =============================================================================
# Channels
# =============================================================================


class RecordingChannel(DeliveryChannel):
    """Records messages instead of sending them."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send_content(self, recipients, subject, html_body, text_body) -> str | None:
        self.sent.append(
            {"recipients": recipients, "subject": subject, "html_body": html_body, "text_body": text_body}
        )
        return f"msg-{len(self.sent)}"


class FailingChannel(DeliveryChannel):
    def __init__(self, message: str = "mailbox unavailable"):
        self.message = message
        self.attempts = 0

    async def send_content(self, recipients, subject, html_body, text_body) -> str | None:
        self.attempts += 1
        raise DeliveryError(self.message)


class BlockingChannel(DeliveryChannel):
    """Holds every send until ``release`` is set."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.attempts = 0

    async def send_content(self, recipients, subject, html_body, text_body) -> str | None:
        self.attempts += 1
        self.started.set()
        await self.release.wait()
        return "msg-blocked"


# =============================================================================
# Wiring
# =============================================================================


@dataclass
class NotificationHarness:
    store: InMemoryNotificationStore
    users: InMemoryUserReadModel
    events: InMemoryEventReadModel
    groups: InMemoryGroupReadModel
    channel: DeliveryChannel
    config: FakeConfig
    dispatcher: DeliveryDispatcher
    service: NotificationService
    triggers: NotificationTriggerService


def create_harness(
    channel: DeliveryChannel | None = None, config: FakeConfig | None = None
) -> NotificationHarness:
    store = InMemoryNotificationStore()
    users = InMemoryUserReadModel()
    events = InMemoryEventReadModel(users)
    groups = InMemoryGroupReadModel()
    channel = channel or RecordingChannel()
    config = config or FakeConfig()
    dispatcher = DeliveryDispatcher(
        store=store,
        user_read_model=users,
        templates=NotificationTemplates(frontend_url="https://seatline.test"),
        channel=channel,
        config=config,
    )
    service = NotificationService(store=store, dispatcher=dispatcher, config=config)
    triggers = NotificationTriggerService(
        notification_service=service,
        event_read_model=events,
        group_read_model=groups,
        user_read_model=users,
    )
    return NotificationHarness(
        store=store,
        users=users,
        events=events,
        groups=groups,
        channel=channel,
        config=config,
        dispatcher=dispatcher,
        service=service,
        triggers=triggers,
    )

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from seatline.events.dtos import EventDTO
from seatline.notifications.lifecycle import (
    InvalidNotificationTransitionError,
    Notification,
    NotificationNotFoundError,
    NotificationStatus,
)
from seatline.notifications.payloads import EventReminderPayload, NotificationPayload
from seatline.notifications.repository.store import NotificationStore

if TYPE_CHECKING:
    from seatline.notifications.dispatcher import DeliveryDispatcher, DeliveryOutcome

logger = logging.getLogger(__name__)

EVENT_START_FORMAT = "%Y-%m-%d %H:%M"


class NotificationServiceConfig(Protocol):
    notification_reminder_offsets_minutes: list[int]
    notification_retention_days: int


def reminder_label(offset: timedelta) -> str:
    minutes = int(offset.total_seconds() // 60)
    if minutes % 1440 == 0:
        days = minutes // 1440
        return "1 day" if days == 1 else f"{days} days"
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


class NotificationService:
    """Creates, schedules and cancels notifications. Delivery belongs to the dispatcher."""

    def __init__(
        self,
        store: NotificationStore,
        dispatcher: "DeliveryDispatcher",
        config: NotificationServiceConfig,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.config = config

    async def create_notification(
        self,
        user_id: UUID,
        payload: NotificationPayload,
        scheduled_at: datetime | None = None,
    ) -> Notification:
        notification = Notification(user_id=user_id, payload=payload)
        if scheduled_at is not None:
            notification.scheduled_at = scheduled_at
        await self.store.create(notification)
        return notification

    async def create_notifications(
        self, items: list[tuple[UUID, NotificationPayload]]
    ) -> list[Notification]:
        notifications = [Notification(user_id=user_id, payload=payload) for user_id, payload in items]
        if notifications:
            await self.store.create_many(notifications)
        return notifications

    async def send_immediately(
        self, user_id: UUID, payload: NotificationPayload
    ) -> "DeliveryOutcome":
        """Store a notification and deliver it now.

        A failed delivery is recorded on the notification and left for the
        retry sweep; it is not raised.
        """
        notification = await self.create_notification(user_id, payload)
        return await self.dispatcher.deliver(notification)

    def reminder_offsets(self) -> list[timedelta]:
        return [timedelta(minutes=minutes) for minutes in self.config.notification_reminder_offsets_minutes]

    def build_event_reminders(
        self, event: EventDTO, user_ids: list[UUID], now: datetime | None = None
    ) -> list[Notification]:
        now = now or datetime.now(UTC)
        reminders = []
        for offset in self.reminder_offsets():
            reminder_at = event.start_at - offset
            if reminder_at <= now:
                continue
            payload = EventReminderPayload(
                event_id=str(event.id),
                event_title=event.title,
                event_start_time=event.start_at.strftime(EVENT_START_FORMAT),
                reminder_type=reminder_label(offset),
            )
            for user_id in user_ids:
                reminders.append(
                    Notification(user_id=user_id, payload=payload, scheduled_at=reminder_at)
                )
        return reminders

    async def schedule_event_reminders(
        self, event: EventDTO, user_ids: list[UUID], now: datetime | None = None
    ) -> list[Notification]:
        reminders = self.build_event_reminders(event, user_ids, now)
        if reminders:
            await self.store.create_many(reminders)
        return reminders

    async def cancel_notification(self, notification_id: UUID) -> Notification:
        notification = await self.store.get_by_id(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        notification.mark_as_cancelled()
        if not await self.store.update(notification):
            # delivered between the read and the write
            raise InvalidNotificationTransitionError(
                notification_id, NotificationStatus.SENT, NotificationStatus.CANCELLED.value
            )
        logger.info("Cancelled notification %s", notification_id)
        return notification

    async def cancel_event_reminders(self, event_id: UUID, user_id: UUID) -> int:
        """Cancel the pending reminders of one user for one event. Returns how many."""
        cancelled = 0
        for reminder in await self.store.get_pending_reminders(user_id, event_id):
            reminder.mark_as_cancelled()
            if await self.store.update(reminder):
                cancelled += 1
        if cancelled:
            logger.info(
                "Cancelled %s reminders of user %s for event %s", cancelled, user_id, event_id
            )
        return cancelled

    async def get_user_notifications(
        self, user_id: UUID, limit: int = 20, offset: int = 0
    ) -> list[Notification]:
        return await self.store.get_user_notifications(user_id, limit=limit, offset=offset)

    async def cleanup_old_notifications(self, older_than_days: int | None = None) -> int:
        days = older_than_days if older_than_days is not None else self.config.notification_retention_days
        cutoff = datetime.now(UTC) - timedelta(days=days)
        deleted = await self.store.delete_old_notifications(cutoff)
        logger.info("Deleted %s notifications created before %s", deleted, cutoff.isoformat())
        return deleted

"""Delivery of due and retryable notifications.

A sweep pulls pending notifications whose time has come plus failed ones that
are still under the retry ceiling, and delivers them concurrently. Retry timing
is driven by how often sweeps run; no per-notification backoff is computed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from seatline.notifications.channels.base import DeliveryChannel
from seatline.notifications.lifecycle import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from seatline.notifications.repository.store import NotificationStore
from seatline.notifications.templates import NotificationTemplates
from seatline.users.dtos import UserWithProfileDTO
from seatline.users.repository.read_models import UserReadModel

logger = logging.getLogger(__name__)

# added to the delivery timeout to give the lease room for lookup, rendering and persisting
LEASE_GRACE = timedelta(seconds=60)

# keys of Profile.communication_preferences
PREFERENCE_KEYS = {
    NotificationType.RSVP_CONFIRMATION: "event_rsvp",
    NotificationType.EVENT_UPDATE: "event_updates",
    NotificationType.EVENT_REMINDER: "event_reminders",
    NotificationType.GROUP_INVITE: "group_invites",
    NotificationType.GROUP_EVENT: "group_events",
}


class DispatcherConfig(Protocol):
    notification_batch_size: int
    notification_delivery_timeout_seconds: float
    notification_max_concurrency: int


@dataclass(frozen=True)
class DeliveryOutcome:
    notification_id: UUID
    status: NotificationStatus
    error: str | None = None
    # another attempt for the same notification was already running, here or elsewhere
    skipped: bool = False


@dataclass
class SweepResult:
    sent: int = 0
    failed: int = 0
    cancelled: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.sent + self.failed + self.cancelled

    def add(self, outcome: DeliveryOutcome) -> None:
        if outcome.skipped:
            self.skipped += 1
        elif outcome.status == NotificationStatus.SENT:
            self.sent += 1
        elif outcome.status == NotificationStatus.CANCELLED:
            self.cancelled += 1
        else:
            self.failed += 1


def wants_notification(recipient: UserWithProfileDTO, notification_type: NotificationType) -> bool:
    """Missing profile or preference means enabled."""
    if recipient.profile is None:
        return True
    enabled = recipient.profile.communication_preferences.get(PREFERENCE_KEYS[notification_type])
    return enabled is not False


class DeliveryDispatcher:
    def __init__(
        self,
        store: NotificationStore,
        user_read_model: UserReadModel,
        templates: NotificationTemplates,
        channel: DeliveryChannel,
        config: DispatcherConfig,
    ):
        self.store = store
        self.user_read_model = user_read_model
        self.templates = templates
        self.channel = channel
        self.config = config
        self._in_flight: set[UUID] = set()

    async def fetch_due(self, limit: int, now: datetime | None = None) -> list[Notification]:
        return await self.store.get_pending_notifications(limit, now=now)

    async def fetch_retryable(self, limit: int, now: datetime | None = None) -> list[Notification]:
        return await self.store.get_failed_notifications(limit, now=now)

    def lease_until(self, now: datetime | None = None) -> datetime:
        now = now or datetime.now(UTC)
        return now + timedelta(seconds=self.config.notification_delivery_timeout_seconds) + LEASE_GRACE

    async def deliver(self, notification: Notification) -> DeliveryOutcome:
        if notification.id in self._in_flight:
            return DeliveryOutcome(notification.id, notification.status, skipped=True)
        if notification.is_terminal or (
            notification.status == NotificationStatus.FAILED and not notification.can_retry()
        ):
            return DeliveryOutcome(notification.id, notification.status, skipped=True)

        self._in_flight.add(notification.id)
        try:
            if not await self.store.claim(notification, self.lease_until()):
                logger.debug("Notification %s is already being delivered", notification.id)
                return DeliveryOutcome(notification.id, notification.status, skipped=True)
            return await self._attempt(notification)
        finally:
            self._in_flight.discard(notification.id)

    async def _attempt(self, notification: Notification) -> DeliveryOutcome:
        recipient = await self.user_read_model.get_user_with_profile(notification.user_id)
        if recipient is None:
            notification.mark_as_failed(f"recipient {notification.user_id} not found")
            return await self._persist(notification)

        if not wants_notification(recipient, notification.type):
            notification.mark_as_cancelled()
            logger.info(
                "Notification %s cancelled, user %s opted out of %s",
                notification.id,
                notification.user_id,
                notification.type.value,
            )
            return await self._persist(notification)

        try:
            rendered = self.templates.render(notification.type, notification.payload)
            await asyncio.wait_for(
                self.channel.send_content(
                    recipients=[recipient.user.email],
                    subject=rendered.subject,
                    html_body=rendered.html_body,
                    text_body=rendered.text_body,
                ),
                timeout=self.config.notification_delivery_timeout_seconds,
            )
        except TimeoutError:
            notification.mark_as_failed(
                f"delivery timed out after {self.config.notification_delivery_timeout_seconds}s"
            )
        except Exception as e:
            notification.mark_as_failed(str(e) or e.__class__.__name__)
        else:
            notification.mark_as_sent(datetime.now(UTC))

        return await self._persist(notification)

    async def _persist(self, notification: Notification) -> DeliveryOutcome:
        if not await self.store.update(notification):
            stored = await self.store.get_by_id(notification.id)
            status = stored.status if stored is not None else NotificationStatus.CANCELLED
            logger.info(
                "Notification %s changed during delivery, keeping %s", notification.id, status.value
            )
            return DeliveryOutcome(notification.id, status)

        if notification.status == NotificationStatus.SENT:
            logger.info("Notification %s sent to user %s", notification.id, notification.user_id)
        elif notification.status == NotificationStatus.FAILED:
            if notification.can_retry():
                logger.warning(
                    "Notification %s failed (attempt %s): %s",
                    notification.id,
                    notification.retry_count,
                    notification.error_message,
                )
            else:
                logger.error(
                    "Notification %s failed permanently after %s attempts: %s",
                    notification.id,
                    notification.retry_count,
                    notification.error_message,
                )
        return DeliveryOutcome(notification.id, notification.status, notification.error_message)

    async def process_batch(self, limit: int | None = None) -> SweepResult:
        """Run one sweep over due and retryable notifications."""
        limit = limit or self.config.notification_batch_size
        due = await self.fetch_due(limit)
        retryable = await self.fetch_retryable(limit)

        batch: dict[UUID, Notification] = {}
        for notification in [*due, *retryable]:
            batch.setdefault(notification.id, notification)

        semaphore = asyncio.Semaphore(self.config.notification_max_concurrency)

        async def deliver_bounded(notification: Notification) -> DeliveryOutcome:
            async with semaphore:
                return await self.deliver(notification)

        outcomes = await asyncio.gather(*(deliver_bounded(n) for n in batch.values()))

        result = SweepResult()
        for outcome in outcomes:
            result.add(outcome)
        if batch:
            logger.info(
                "Sweep finished: %s sent, %s failed, %s cancelled, %s skipped",
                result.sent,
                result.failed,
                result.cancelled,
                result.skipped,
            )
        return result

    async def run_forever(self, interval_seconds: float) -> None:
        while True:
            try:
                await self.process_batch()
            except Exception:
                logger.exception("Notification sweep failed")
            await asyncio.sleep(interval_seconds)

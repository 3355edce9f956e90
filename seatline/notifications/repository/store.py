"""Notification persistence. Returns lifecycle entities, never ORM models.

Writes are compare-and-set against the state a copy was loaded with, so a
stale copy can never move a notification backwards. Delivery is guarded by a
lease (``claimed_until``) taken before the channel is called; only one
dispatcher, in any process, holds it at a time.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from seatline.config.database import async_session_manager
from seatline.models.base import ensure_utc
from seatline.notifications.lifecycle import (
    MAX_RETRY_COUNT,
    Notification,
    NotificationNotFoundError,
    NotificationStatus,
    NotificationType,
)
from seatline.notifications.payloads import parse_payload
from seatline.notifications.repository.orm_models import NotificationRecord


class NotificationStore(ABC):
    """Durable storage of notifications keyed by id."""

    @abstractmethod
    async def create(self, notification: Notification) -> None:
        raise NotImplementedError

    @abstractmethod
    async def create_many(self, notifications: list[Notification]) -> None:
        """Store all notifications or none of them."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, notification_id: UUID) -> Notification | None:
        raise NotImplementedError

    @abstractmethod
    async def update(self, notification: Notification) -> bool:
        """Persist lifecycle fields and release the delivery lease.

        Returns False, and writes nothing, when ``Notification.may_overwrite``
        rejects the stored state: the row was sent, cancelled, or changed by
        someone else since this copy was loaded.
        """
        raise NotImplementedError

    @abstractmethod
    async def claim(
        self, notification: Notification, until: datetime, now: datetime | None = None
    ) -> bool:
        """Take the delivery lease until ``until``.

        Returns False when the notification is gone, changed since it was
        loaded, or leased to someone else.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, notification_id: UUID) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_user_notifications(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        """Newest first."""
        raise NotImplementedError

    @abstractmethod
    async def get_pending_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        """Unleased pending notifications due by ``now``, earliest scheduled first."""
        raise NotImplementedError

    @abstractmethod
    async def get_failed_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        """Unleased failed notifications still under the retry ceiling, oldest first."""
        raise NotImplementedError

    @abstractmethod
    async def get_pending_reminders(self, user_id: UUID, event_id: UUID) -> list[Notification]:
        """Pending event reminders of one user for one event."""
        raise NotImplementedError

    @abstractmethod
    async def delete_old_notifications(self, older_than: datetime) -> int:
        raise NotImplementedError


def _to_record(notification: Notification) -> NotificationRecord:
    return NotificationRecord(
        uuid=notification.id,
        user_id=notification.user_id,
        type=notification.type.value,
        payload=notification.payload.to_dict(),
        status=notification.status,
        scheduled_at=notification.scheduled_at,
        sent_at=notification.sent_at,
        retry_count=notification.retry_count,
        error_message=notification.error_message,
        claimed_until=notification.claimed_until,
        created_at=notification.created_at,
    )


def _to_notification(record: NotificationRecord) -> Notification:
    notification = Notification(
        id=record.uuid,
        user_id=record.user_id,
        payload=parse_payload(record.type, record.payload),
        status=NotificationStatus(record.status),
        scheduled_at=ensure_utc(record.scheduled_at),
        sent_at=ensure_utc(record.sent_at),
        retry_count=record.retry_count,
        error_message=record.error_message,
        claimed_until=ensure_utc(record.claimed_until),
        created_at=ensure_utc(record.created_at),
    )
    notification.remember_stored_state()
    return notification


def _unleased(now: datetime):
    return or_(NotificationRecord.claimed_until.is_(None), NotificationRecord.claimed_until <= now)


class SqlNotificationStore(NotificationStore):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def create(self, notification: Notification) -> None:
        await self.create_many([notification])

    async def create_many(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            notification.validate()
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            session.add_all([_to_record(notification) for notification in notifications])
            await session.flush()
        for notification in notifications:
            notification.remember_stored_state()

    async def get_by_id(self, notification_id: UUID) -> Notification | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            record = await session.get(NotificationRecord, notification_id)
            return _to_notification(record) if record is not None else None

    async def _lock(self, session: AsyncSession, notification_id: UUID) -> NotificationRecord | None:
        result = await session.execute(
            select(NotificationRecord)
            .where(NotificationRecord.uuid == notification_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def update(self, notification: Notification) -> bool:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            record = await self._lock(session, notification.id)
            if record is None:
                raise NotificationNotFoundError(notification.id)
            if not notification.may_overwrite(NotificationStatus(record.status), record.retry_count):
                return False

            record.status = notification.status
            record.sent_at = notification.sent_at
            record.retry_count = notification.retry_count
            record.error_message = notification.error_message
            record.scheduled_at = notification.scheduled_at
            record.claimed_until = None
            await session.flush()
        notification.claimed_until = None
        notification.remember_stored_state()
        return True

    async def claim(
        self, notification: Notification, until: datetime, now: datetime | None = None
    ) -> bool:
        now = now or datetime.now(UTC)
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            record = await self._lock(session, notification.id)
            if record is None:
                return False
            status = NotificationStatus(record.status)
            if status not in (NotificationStatus.PENDING, NotificationStatus.FAILED):
                return False
            if not notification.may_overwrite(status, record.retry_count):
                return False
            claimed_until = ensure_utc(record.claimed_until)
            if claimed_until is not None and claimed_until > now:
                return False

            record.claimed_until = until
            await session.flush()
        notification.claimed_until = until
        return True

    async def delete(self, notification_id: UUID) -> None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            await session.execute(
                delete(NotificationRecord).where(NotificationRecord.uuid == notification_id)
            )

    async def get_user_notifications(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(NotificationRecord)
                .where(NotificationRecord.user_id == user_id)
                .order_by(NotificationRecord.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [_to_notification(record) for record in result.scalars().all()]

    async def get_pending_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        now = now or datetime.now(UTC)
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(NotificationRecord)
                .where(
                    NotificationRecord.status == NotificationStatus.PENDING,
                    NotificationRecord.scheduled_at <= now,
                    _unleased(now),
                )
                .order_by(NotificationRecord.scheduled_at.asc())
                .limit(limit)
            )
            return [_to_notification(record) for record in result.scalars().all()]

    async def get_failed_notifications(
        self, limit: int, now: datetime | None = None
    ) -> list[Notification]:
        now = now or datetime.now(UTC)
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(NotificationRecord)
                .where(
                    NotificationRecord.status == NotificationStatus.FAILED,
                    NotificationRecord.retry_count < MAX_RETRY_COUNT,
                    _unleased(now),
                )
                .order_by(NotificationRecord.created_at.asc())
                .limit(limit)
            )
            return [_to_notification(record) for record in result.scalars().all()]

    async def get_pending_reminders(self, user_id: UUID, event_id: UUID) -> list[Notification]:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(NotificationRecord)
                .where(
                    NotificationRecord.user_id == user_id,
                    NotificationRecord.type == NotificationType.EVENT_REMINDER.value,
                    NotificationRecord.status == NotificationStatus.PENDING,
                )
                .order_by(NotificationRecord.scheduled_at.asc())
            )
            reminders = [_to_notification(record) for record in result.scalars().all()]
        # event_id lives in the JSON payload
        return [r for r in reminders if r.payload.event_id == str(event_id)]

    async def delete_old_notifications(self, older_than: datetime) -> int:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                delete(NotificationRecord).where(NotificationRecord.created_at < older_than)
            )
            return result.rowcount or 0

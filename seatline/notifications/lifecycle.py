"""Notification record and its delivery lifecycle.

    pending --send ok--> sent                  (terminal)
    pending --error----> failed
    failed  --retry ok-> sent
    failed  --error----> failed                 (retry_count + 1)
    pending/failed ----> cancelled              (terminal)

A notification that failed ``MAX_RETRY_COUNT`` times stays ``failed`` and is
kept for diagnostics; ``can_retry`` keeps it out of further sweeps.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from seatline.errors import DomainRuleError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from seatline.notifications.payloads import NotificationPayload

MAX_RETRY_COUNT = 5


class NotificationType(str, Enum):
    RSVP_CONFIRMATION = "rsvp_confirmation"
    EVENT_UPDATE = "event_update"
    EVENT_REMINDER = "event_reminder"
    GROUP_INVITE = "group_invite"
    GROUP_EVENT = "group_event"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class InvalidNotificationError(ValidationError):
    pass


class InvalidNotificationTransitionError(DomainRuleError):
    def __init__(self, notification_id: UUID, current: "NotificationStatus", target: str) -> None:
        self.notification_id = notification_id
        super().__init__(
            f"notification {notification_id} cannot move from {current.value} to {target}"
        )


class NotificationNotFoundError(NotFoundError):
    entity = "notification"


@dataclass
class Notification:
    user_id: UUID
    payload: "NotificationPayload"
    scheduled_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: NotificationStatus = NotificationStatus.PENDING
    sent_at: datetime | None = None
    retry_count: int = 0
    error_message: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: UUID = field(default_factory=uuid4)
    # a dispatcher holds the delivery lease until then
    claimed_until: datetime | None = field(default=None, compare=False)
    # status and retry count as last read from or written to the store
    loaded_status: NotificationStatus | None = field(default=None, compare=False, repr=False)
    loaded_retry_count: int | None = field(default=None, compare=False, repr=False)

    @property
    def type(self) -> NotificationType:
        return self.payload.notification_type

    def validate(self) -> None:
        try:
            NotificationType(self.type)
            NotificationStatus(self.status)
        except ValueError as e:
            raise InvalidNotificationError(str(e)) from None
        if self.retry_count < 0:
            raise InvalidNotificationError("retry count cannot be negative")
        if self.retry_count > MAX_RETRY_COUNT:
            raise InvalidNotificationError(f"retry count cannot exceed {MAX_RETRY_COUNT}")

    def is_ready_to_send(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return self.status == NotificationStatus.PENDING and now >= self.scheduled_at

    def can_retry(self) -> bool:
        return self.status == NotificationStatus.FAILED and self.retry_count < MAX_RETRY_COUNT

    def is_claimed(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return self.claimed_until is not None and self.claimed_until > now

    @property
    def is_terminal(self) -> bool:
        return self.status in (NotificationStatus.SENT, NotificationStatus.CANCELLED)

    def _ensure_deliverable(self, target: str) -> None:
        if self.is_terminal:
            raise InvalidNotificationTransitionError(self.id, self.status, target)

    def mark_as_sent(self, now: datetime | None = None) -> None:
        self._ensure_deliverable(NotificationStatus.SENT.value)
        self.status = NotificationStatus.SENT
        self.sent_at = now or datetime.now(UTC)

    def mark_as_failed(self, error_message: str) -> None:
        """Record a failed attempt. Used for the first failure and every retry failure."""
        self._ensure_deliverable(NotificationStatus.FAILED.value)
        self.status = NotificationStatus.FAILED
        self.error_message = error_message
        self.retry_count = min(self.retry_count + 1, MAX_RETRY_COUNT)

    def mark_as_cancelled(self) -> None:
        if self.status == NotificationStatus.CANCELLED:
            return
        self._ensure_deliverable(NotificationStatus.CANCELLED.value)
        self.status = NotificationStatus.CANCELLED

    def remember_stored_state(self) -> None:
        self.loaded_status = self.status
        self.loaded_retry_count = self.retry_count

    def may_overwrite(self, stored_status: NotificationStatus, stored_retry_count: int) -> bool:
        """Whether this copy may replace the stored lifecycle state.

        ``sent`` is never overwritten. A cancellation wins over anything else
        that is not ``sent``. Any other write requires the stored row to be
        unchanged since this copy was loaded.
        """
        if stored_status == NotificationStatus.SENT:
            return False
        if self.status == NotificationStatus.CANCELLED:
            return True
        if stored_status == NotificationStatus.CANCELLED:
            return False
        if self.loaded_status is None:
            return True
        return stored_status == self.loaded_status and stored_retry_count == self.loaded_retry_count

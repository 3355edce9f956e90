"""Typed notification payloads.

One frozen dataclass per notification type. At the storage boundary a payload
is a flat JSON object (``to_dict``) and is rebuilt with ``parse_payload``.
"""

from dataclasses import MISSING, asdict, dataclass, fields
from typing import Any, ClassVar

from seatline.notifications.lifecycle import InvalidNotificationError, NotificationType


@dataclass(frozen=True)
class NotificationPayload:
    notification_type: ClassVar[NotificationType]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}
        missing = [
            f.name
            for f in fields(cls)
            if f.default is MISSING and f.default_factory is MISSING and f.name not in data
        ]
        if missing:
            raise InvalidNotificationError(
                f"{cls.notification_type.value} payload is missing {', '.join(missing)}"
            )
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class RSVPConfirmationPayload(NotificationPayload):
    notification_type: ClassVar[NotificationType] = NotificationType.RSVP_CONFIRMATION

    user_name: str
    event_id: str
    event_title: str
    rsvp_status: str
    event_date: str
    event_time: str
    venue_name: str | None = None
    venue_address: str | None = None
    event_description: str | None = None


@dataclass(frozen=True)
class EventUpdatePayload(NotificationPayload):
    notification_type: ClassVar[NotificationType] = NotificationType.EVENT_UPDATE

    user_name: str
    event_id: str
    event_title: str
    update_message: str
    event_date: str
    event_time: str
    venue_name: str | None = None
    venue_address: str | None = None
    event_description: str | None = None


@dataclass(frozen=True)
class EventReminderPayload(NotificationPayload):
    notification_type: ClassVar[NotificationType] = NotificationType.EVENT_REMINDER

    event_id: str
    event_title: str
    event_start_time: str
    reminder_type: str


@dataclass(frozen=True)
class GroupInvitePayload(NotificationPayload):
    notification_type: ClassVar[NotificationType] = NotificationType.GROUP_INVITE

    user_name: str
    group_id: str
    group_name: str
    inviter_name: str
    role: str
    invite_token: str
    group_description: str | None = None


@dataclass(frozen=True)
class GroupEventPayload(NotificationPayload):
    notification_type: ClassVar[NotificationType] = NotificationType.GROUP_EVENT

    user_name: str
    group_name: str
    event_id: str
    event_title: str
    event_date: str
    event_time: str
    host_name: str | None = None
    venue_name: str | None = None
    venue_address: str | None = None
    event_description: str | None = None


PAYLOAD_TYPES: dict[NotificationType, type[NotificationPayload]] = {
    cls.notification_type: cls
    for cls in (
        RSVPConfirmationPayload,
        EventUpdatePayload,
        EventReminderPayload,
        GroupInvitePayload,
        GroupEventPayload,
    )
}


def parse_payload(notification_type: str | NotificationType, data: dict[str, Any]) -> NotificationPayload:
    try:
        payload_cls = PAYLOAD_TYPES[NotificationType(notification_type)]
    except ValueError:
        raise InvalidNotificationError(f"invalid notification type: {notification_type!r}") from None
    return payload_cls.from_dict(data)

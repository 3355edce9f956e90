"""Turns domain occurrences into notifications.

Every trigger reads all the context it needs before creating anything, so a
missing event, group or user aborts the trigger with a ``NotFoundError`` and
no recipient is notified.
"""

import logging
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from seatline.events.dtos import (
    EventDetailsDTO,
    EventNotFoundError,
    RSVPStatus,
)
from seatline.events.repository.read_models import EventReadModel
from seatline.groups.dtos import GroupNotFoundError, GroupRole, GroupWithMembersDTO
from seatline.groups.repository.read_models import GroupReadModel
from seatline.notifications.dispatcher import DeliveryOutcome
from seatline.notifications.lifecycle import Notification
from seatline.notifications.payloads import (
    EventUpdatePayload,
    GroupEventPayload,
    GroupInvitePayload,
    NotificationPayload,
    RSVPConfirmationPayload,
)
from seatline.notifications.service import NotificationService
from seatline.users.dtos import UserNotFoundError, UserWithProfileDTO
from seatline.users.repository.read_models import UserReadModel

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

# statuses that hold or wait for a seat, and so care about changes
UPDATE_RECIPIENT_STATUSES = frozenset({RSVPStatus.GOING, RSVPStatus.WAITLISTED})


def _local_start(details: EventDetailsDTO) -> datetime:
    try:
        return details.event.start_at.astimezone(ZoneInfo(details.event.timezone))
    except (ZoneInfoNotFoundError, ValueError):
        return details.event.start_at


def _event_fields(details: EventDetailsDTO) -> dict[str, str | None]:
    start = _local_start(details)
    return {
        "event_id": str(details.event.id),
        "event_title": details.event.title,
        "event_date": start.strftime(DATE_FORMAT),
        "event_time": start.strftime(TIME_FORMAT),
        "venue_name": details.venue.name if details.venue else None,
        "venue_address": details.venue.full_address if details.venue else None,
        "event_description": details.event.description,
    }


class NotificationTriggerService:
    def __init__(
        self,
        notification_service: NotificationService,
        event_read_model: EventReadModel,
        group_read_model: GroupReadModel,
        user_read_model: UserReadModel,
    ):
        self.notification_service = notification_service
        self.event_read_model = event_read_model
        self.group_read_model = group_read_model
        self.user_read_model = user_read_model

    async def _get_event(self, event_id: UUID) -> EventDetailsDTO:
        details = await self.event_read_model.get_event_with_details(event_id)
        if details is None:
            raise EventNotFoundError(event_id)
        return details

    async def _get_group(self, group_id: UUID) -> GroupWithMembersDTO:
        group = await self.group_read_model.get_group_with_members(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    async def _get_user(self, user_id: UUID) -> UserWithProfileDTO:
        user = await self.user_read_model.get_user_with_profile(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def _get_users(self, user_ids: list[UUID]) -> list[UserWithProfileDTO]:
        return [await self._get_user(user_id) for user_id in user_ids]

    async def on_rsvp_confirmation(
        self,
        event_id: UUID,
        user_id: UUID,
        status: RSVPStatus,
        now: datetime | None = None,
    ) -> DeliveryOutcome:
        """Confirm an RSVP right away.

        Reminders from an earlier RSVP are cancelled; going users get fresh ones.
        """
        details = await self._get_event(event_id)
        user = await self._get_user(user_id)
        await self.notification_service.cancel_event_reminders(event_id, user_id)

        payload = RSVPConfirmationPayload(
            user_name=user.display_name,
            rsvp_status=RSVPStatus(status).value,
            **_event_fields(details),
        )
        outcome = await self.notification_service.send_immediately(user_id, payload)

        if status == RSVPStatus.GOING:
            await self.notification_service.schedule_event_reminders(
                details.event, [user_id], now=now
            )
        return outcome

    async def on_rsvp_withdrawal(self, event_id: UUID, user_id: UUID) -> int:
        """Drop the reminders of a user who no longer has an RSVP."""
        return await self.notification_service.cancel_event_reminders(event_id, user_id)

    async def on_event_update(self, event_id: UUID, change_message: str) -> list[Notification]:
        details = await self._get_event(event_id)
        rsvps = await self.event_read_model.get_event_rsvps(event_id)
        recipients = await self._get_users(
            [rsvp.user_id for rsvp in rsvps if rsvp.status in UPDATE_RECIPIENT_STATUSES]
        )

        items: list[tuple[UUID, NotificationPayload]] = [
            (
                recipient.user.id,
                EventUpdatePayload(
                    user_name=recipient.display_name,
                    update_message=change_message,
                    **_event_fields(details),
                ),
            )
            for recipient in recipients
        ]
        notifications = await self.notification_service.create_notifications(items)
        logger.info("Queued %s event update notifications for event %s", len(notifications), event_id)
        return notifications

    async def on_new_group_event(self, event_id: UUID, group_id: UUID) -> list[Notification]:
        details = await self._get_event(event_id)
        group = await self._get_group(group_id)
        members = await self._get_users(
            [member.user_id for member in group.members if member.user_id != details.event.host_user_id]
        )
        host_name = details.host.display_name if details.host else None

        items: list[tuple[UUID, NotificationPayload]] = [
            (
                member.user.id,
                GroupEventPayload(
                    user_name=member.display_name,
                    group_name=group.group.name,
                    host_name=host_name,
                    **_event_fields(details),
                ),
            )
            for member in members
        ]
        notifications = await self.notification_service.create_notifications(items)
        logger.info(
            "Queued %s group event notifications for event %s in group %s",
            len(notifications),
            event_id,
            group_id,
        )
        return notifications

    async def on_group_invite(
        self,
        group_id: UUID,
        invitee_id: UUID,
        inviter_id: UUID,
        role: GroupRole | str,
        invite_token: str,
    ) -> Notification:
        group = await self._get_group(group_id)
        invitee = await self._get_user(invitee_id)
        inviter = await self._get_user(inviter_id)

        payload = GroupInvitePayload(
            user_name=invitee.display_name,
            group_id=str(group.group.id),
            group_name=group.group.name,
            inviter_name=inviter.display_name,
            role=GroupRole(role).value,
            invite_token=invite_token,
            group_description=group.group.description,
        )
        return await self.notification_service.create_notification(invitee_id, payload)

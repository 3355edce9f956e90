import html
from dataclasses import dataclass
from typing import Any

from seatline.errors import SeatlineError
from seatline.notifications.lifecycle import NotificationType
from seatline.notifications.payloads import NotificationPayload

TO_BE_ANNOUNCED = "To be announced"


class TemplateNotFoundError(SeatlineError):
    def __init__(self, notification_type: str) -> None:
        super().__init__(f"no template for notification type {notification_type!r}")


@dataclass(frozen=True)
class RenderedNotification:
    subject: str
    html_body: str
    text_body: str


_HTML_LAYOUT = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
{content}
    <hr style="border: none; border-top: 1px solid #ddd; margin: 30px 0;">
    <p style="font-size: 12px; color: #888; text-align: center;">
        You can change which emails you receive in your profile settings.
    </p>
</body>
</html>
"""

_DETAILS_HTML = """
    <div style="background-color: #f4f6fb; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <p><strong>Event:</strong> {event_title}</p>
        <p><strong>Date:</strong> {event_date} at {event_time}</p>
        <p><strong>Location:</strong> {location}</p>
    </div>
"""

_BUTTON_HTML = """
    <div style="text-align: center; margin: 30px 0;">
        <a href="{action_url}" style="background-color: #3a5a98; color: white; padding: 15px 30px; text-decoration: none; border-radius: 5px;">
            {action_label}
        </a>
    </div>
"""


@dataclass
class NotificationTemplates:
    frontend_url: str
    app_name: str = "Seatline"

    RSVP_CONFIRMATION_SUBJECT = "RSVP Confirmation - {event_title}"
    RSVP_CONFIRMATION_HTML = (
        """
    <p>Hi {user_name},</p>
    <p>We recorded your RSVP as <strong>{rsvp_status}</strong>.</p>
"""
        + _DETAILS_HTML
        + _BUTTON_HTML
    )
    RSVP_CONFIRMATION_TEXT = """Hi {user_name},

We recorded your RSVP as {rsvp_status}.

Event: {event_title}
Date: {event_date} at {event_time}
Location: {location}

View the event: {action_url}

{app_name} Team
"""

    EVENT_UPDATE_SUBJECT = "Event Updated - {event_title}"
    EVENT_UPDATE_HTML = (
        """
    <p>Hi {user_name},</p>
    <p>The event "{event_title}" has been updated:</p>
    <p style="white-space: pre-line;">{update_message}</p>
"""
        + _DETAILS_HTML
        + _BUTTON_HTML
    )
    EVENT_UPDATE_TEXT = """Hi {user_name},

The event "{event_title}" has been updated:

{update_message}

Event: {event_title}
Date: {event_date} at {event_time}
Location: {location}

View the event: {action_url}

{app_name} Team
"""

    EVENT_REMINDER_SUBJECT = "Reminder - {event_title} starts in {reminder_type}"
    EVENT_REMINDER_HTML = (
        """
    <p>Hi,</p>
    <p>This is a reminder that "{event_title}" starts in {reminder_type}, at {event_start_time}.</p>
"""
        + _BUTTON_HTML
    )
    EVENT_REMINDER_TEXT = """Hi,

This is a reminder that "{event_title}" starts in {reminder_type}, at {event_start_time}.

View the event: {action_url}

{app_name} Team
"""

    GROUP_INVITE_SUBJECT = "Invitation to group {group_name}"
    GROUP_INVITE_HTML = (
        """
    <p>Hi {user_name},</p>
    <p>{inviter_name} invited you to join the group "{group_name}" as {role}.</p>
    <p>{group_description}</p>
"""
        + _BUTTON_HTML
    )
    GROUP_INVITE_TEXT = """Hi {user_name},

{inviter_name} invited you to join the group "{group_name}" as {role}.

{group_description}

Accept the invitation: {action_url}

{app_name} Team
"""

    GROUP_EVENT_SUBJECT = "New event in group {group_name}"
    GROUP_EVENT_HTML = (
        """
    <p>Hi {user_name},</p>
    <p>{host_name} created a new event in the group "{group_name}".</p>
"""
        + _DETAILS_HTML
        + _BUTTON_HTML
    )
    GROUP_EVENT_TEXT = """Hi {user_name},

{host_name} created a new event in the group "{group_name}".

Event: {event_title}
Date: {event_date} at {event_time}
Location: {location}

View the event and RSVP: {action_url}

{app_name} Team
"""

    def get_templates(self, notification_type: str | NotificationType) -> tuple[str, str, str]:
        """Returns: (subject, html_body, text_body)"""
        try:
            prefix = NotificationType(notification_type).name
        except ValueError:
            raise TemplateNotFoundError(str(notification_type)) from None
        try:
            return (
                getattr(self, f"{prefix}_SUBJECT"),
                getattr(self, f"{prefix}_HTML"),
                getattr(self, f"{prefix}_TEXT"),
            )
        except AttributeError:
            raise TemplateNotFoundError(str(notification_type)) from None

    def _context(self, payload: NotificationPayload) -> dict[str, Any]:
        context: dict[str, Any] = {
            key: "" if value is None else str(value) for key, value in payload.to_dict().items()
        }
        context["app_name"] = self.app_name

        if "venue_name" in context:
            venue = ", ".join(part for part in (context["venue_name"], context["venue_address"]) if part)
            context["location"] = venue or TO_BE_ANNOUNCED
        if context.get("host_name") == "":
            context["host_name"] = "Someone"

        base_url = self.frontend_url.rstrip("/")
        if payload.notification_type == NotificationType.GROUP_INVITE:
            context["action_url"] = f"{base_url}/groups/{context['group_id']}/join?token={context['invite_token']}"
            context["action_label"] = "Accept invitation"
        else:
            context["action_url"] = f"{base_url}/events/{context['event_id']}"
            context["action_label"] = "View event"
        return context

    def render(
        self, notification_type: str | NotificationType, payload: NotificationPayload
    ) -> RenderedNotification:
        subject_template, html_template, text_template = self.get_templates(notification_type)
        context = self._context(payload)
        escaped = {key: html.escape(value) for key, value in context.items()}

        return RenderedNotification(
            subject=subject_template.format_map(context),
            html_body=_HTML_LAYOUT.format(content=html_template.format_map(escaped)),
            text_body=text_template.format_map(context),
        )

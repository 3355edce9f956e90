from seatline.config.settings import settings
from seatline.notifications.channels.base import DeliveryChannel, DeliveryError
from seatline.notifications.channels.resend_service import ResendDeliveryChannel
from seatline.notifications.channels.smtp_service import SMTPDeliveryChannel


def get_delivery_channel() -> DeliveryChannel:
    if settings.resend_api_key:
        return ResendDeliveryChannel(config=settings)
    return SMTPDeliveryChannel(config=settings)


__all__ = [
    "DeliveryChannel",
    "DeliveryError",
    "ResendDeliveryChannel",
    "SMTPDeliveryChannel",
    "get_delivery_channel",
]

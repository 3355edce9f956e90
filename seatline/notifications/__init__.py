from seatline.config.settings import settings
from seatline.events.repository.read_models import SqlEventReadModel
from seatline.groups.repository.read_models import SqlGroupReadModel
from seatline.notifications.channels import get_delivery_channel
from seatline.notifications.dispatcher import DeliveryDispatcher, DeliveryOutcome, SweepResult
from seatline.notifications.repository.store import NotificationStore, SqlNotificationStore
from seatline.notifications.service import NotificationService
from seatline.notifications.templates import NotificationTemplates
from seatline.notifications.triggers import NotificationTriggerService
from seatline.users.repository.read_models import SqlUserReadModel


def get_dispatcher(store: NotificationStore | None = None) -> DeliveryDispatcher:
    return DeliveryDispatcher(
        store=store or SqlNotificationStore(),
        user_read_model=SqlUserReadModel(),
        templates=NotificationTemplates(frontend_url=settings.frontend_url),
        channel=get_delivery_channel(),
        config=settings,
    )


def get_notification_service() -> NotificationService:
    store = SqlNotificationStore()
    return NotificationService(store=store, dispatcher=get_dispatcher(store), config=settings)


def get_trigger_service() -> NotificationTriggerService:
    return NotificationTriggerService(
        notification_service=get_notification_service(),
        event_read_model=SqlEventReadModel(),
        group_read_model=SqlGroupReadModel(),
        user_read_model=SqlUserReadModel(),
    )


__all__ = [
    "DeliveryDispatcher",
    "DeliveryOutcome",
    "NotificationService",
    "NotificationTemplates",
    "NotificationTriggerService",
    "SweepResult",
    "get_dispatcher",
    "get_notification_service",
    "get_trigger_service",
]

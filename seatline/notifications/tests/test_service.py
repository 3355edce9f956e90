from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from seatline.notifications.lifecycle import (
    InvalidNotificationError,
    InvalidNotificationTransitionError,
    Notification,
    NotificationNotFoundError,
    NotificationStatus,
)
from seatline.notifications.payloads import EventReminderPayload
from seatline.notifications.service import reminder_label
from seatline.notifications.tests.inmemory_models import (
    FakeConfig,
    create_harness,
    make_event,
)


def reminder_payload() -> EventReminderPayload:
    return EventReminderPayload(
        event_id=str(uuid4()),
        event_title="Cube Draft",
        event_start_time="2026-03-11 19:00",
        reminder_type="1 day",
    )


@pytest.mark.parametrize(
    "offset,label",
    [
        (timedelta(days=1), "1 day"),
        (timedelta(days=2), "2 days"),
        (timedelta(hours=2), "2 hours"),
        (timedelta(hours=1), "1 hour"),
        (timedelta(minutes=30), "30 minutes"),
    ],
)
def test_reminder_label(offset, label):
    assert reminder_label(offset) == label


async def test_create_notification_defaults_to_now():
    harness = create_harness()
    before = datetime.now(UTC)

    notification = await harness.service.create_notification(uuid4(), reminder_payload())

    assert notification.status == NotificationStatus.PENDING
    assert notification.scheduled_at >= before
    assert await harness.store.get_by_id(notification.id) == notification


async def test_create_notification_honours_schedule():
    harness = create_harness()
    later = datetime.now(UTC) + timedelta(days=2)

    notification = await harness.service.create_notification(uuid4(), reminder_payload(), later)

    assert notification.scheduled_at == later
    assert await harness.dispatcher.fetch_due(10) == []


async def test_invalid_batch_stores_nothing():
    harness = create_harness()
    good = Notification(user_id=uuid4(), payload=reminder_payload())
    bad = Notification(user_id=uuid4(), payload=reminder_payload(), retry_count=-1)

    with pytest.raises(InvalidNotificationError):
        await harness.store.create_many([good, bad])

    assert harness.store.all == []


async def test_schedule_event_reminders_uses_configured_offsets():
    harness = create_harness(config=FakeConfig(notification_reminder_offsets_minutes=[60, 30]))
    start = datetime(2026, 9, 1, 19, 0, tzinfo=UTC)
    event = make_event(uuid4(), start_at=start)
    users = [uuid4(), uuid4()]

    reminders = await harness.service.schedule_event_reminders(event, users, now=start - timedelta(days=1))

    assert len(reminders) == 4
    assert {n.scheduled_at for n in reminders} == {start - timedelta(hours=1), start - timedelta(minutes=30)}
    assert {n.payload.reminder_type for n in reminders} == {"1 hour", "30 minutes"}
    assert reminders[0].payload.event_start_time == "2026-09-01 19:00"


async def test_schedule_event_reminders_after_start_schedules_nothing():
    harness = create_harness()
    start = datetime(2026, 9, 1, 19, 0, tzinfo=UTC)

    reminders = await harness.service.schedule_event_reminders(
        make_event(uuid4(), start_at=start), [uuid4()], now=start + timedelta(minutes=1)
    )

    assert reminders == []
    assert harness.store.all == []


async def test_cancel_notification():
    harness = create_harness()
    notification = await harness.service.create_notification(uuid4(), reminder_payload())

    await harness.service.cancel_notification(notification.id)

    stored = await harness.store.get_by_id(notification.id)
    assert stored.status == NotificationStatus.CANCELLED
    assert await harness.dispatcher.fetch_due(10) == []


async def test_cancel_missing_notification_raises():
    harness = create_harness()

    with pytest.raises(NotificationNotFoundError):
        await harness.service.cancel_notification(uuid4())


async def test_user_notifications_newest_first():
    harness = create_harness()
    user_id = uuid4()
    base = datetime(2026, 1, 1, tzinfo=UTC)
    for day in range(3):
        await harness.store.create(
            Notification(user_id=user_id, payload=reminder_payload(), created_at=base + timedelta(days=day))
        )
    await harness.store.create(Notification(user_id=uuid4(), payload=reminder_payload()))

    page = await harness.service.get_user_notifications(user_id, limit=2)
    rest = await harness.service.get_user_notifications(user_id, limit=2, offset=2)

    assert [n.created_at for n in page] == [base + timedelta(days=2), base + timedelta(days=1)]
    assert [n.created_at for n in rest] == [base]


async def test_cleanup_deletes_notifications_past_retention():
    harness = create_harness(config=FakeConfig(notification_retention_days=30))
    old = Notification(
        user_id=uuid4(), payload=reminder_payload(), created_at=datetime.now(UTC) - timedelta(days=31)
    )
    recent = Notification(user_id=uuid4(), payload=reminder_payload())
    await harness.store.create_many([old, recent])

    deleted = await harness.service.cleanup_old_notifications()

    assert deleted == 1
    assert [n.id for n in harness.store.all] == [recent.id]
    assert await harness.service.cleanup_old_notifications(older_than_days=0) == 1


async def test_cancel_sent_notification_raises_and_keeps_it_sent():
    harness = create_harness()
    notification = await harness.service.create_notification(uuid4(), reminder_payload())
    notification.mark_as_sent()
    await harness.store.update(notification)

    with pytest.raises(InvalidNotificationTransitionError):
        await harness.service.cancel_notification(notification.id)

    assert (await harness.store.get_by_id(notification.id)).status == NotificationStatus.SENT


async def test_cancel_event_reminders_counts_only_that_event():
    harness = create_harness()
    user_id = uuid4()
    event = make_event(uuid4(), start_at=datetime.now(UTC) + timedelta(days=5))
    other_event = make_event(uuid4(), start_at=datetime.now(UTC) + timedelta(days=5))
    await harness.service.schedule_event_reminders(event, [user_id])
    await harness.service.schedule_event_reminders(other_event, [user_id])

    cancelled = await harness.service.cancel_event_reminders(event.id, user_id)

    assert cancelled == len(harness.service.reminder_offsets())
    assert await harness.service.cancel_event_reminders(event.id, user_id) == 0
    remaining = await harness.store.get_pending_reminders(user_id, other_event.id)
    assert len(remaining) == cancelled

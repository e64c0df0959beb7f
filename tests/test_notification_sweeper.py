"""Tests for the pending notification sweep."""

import asyncio
from datetime import timedelta

import pytest

from aquarent.core.notification_config import SweepConfig
from aquarent.models.notification import NotificationChannel, NotificationStatus, NotificationType
from aquarent.services.notification_sweeper import NotificationSweeper
from aquarent.utils.helpers import as_utc, utcnow

EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS
PUSH = NotificationChannel.PUSH


def _sweeper(notifications, **options) -> NotificationSweeper:
    return NotificationSweeper(
        notifications.store,
        notifications.directory,
        notifications.dispatcher,
        SweepConfig(**options),
    )


async def _status(notifications, notification_id) -> str:
    return (await notifications.store.get(notification_id)).status


@pytest.mark.asyncio
async def test_deferred_notification_delivered_once_due(notifications, users, senders) -> None:
    scheduled_at = utcnow() + timedelta(hours=1)
    notification_id = await notifications.dispatcher.send(
        user_id="user_full",
        title="Service visit",
        message="Technician arrives at 10am",
        type=NotificationType.SERVICE_REMINDER,
        channels=[EMAIL, SMS],
        scheduled_at=scheduled_at,
    )

    early = await notifications.sweeper.process_pending_notifications()
    assert early.processed == 0
    assert await _status(notifications, notification_id) == NotificationStatus.PENDING.value

    result = await notifications.sweeper.process_pending_notifications(
        now=scheduled_at + timedelta(seconds=1)
    )

    assert result.sent == [notification_id]
    assert await _status(notifications, notification_id) == NotificationStatus.SENT.value
    assert len(senders[EMAIL].calls) == 1
    assert len(senders[SMS].calls) == 1


@pytest.mark.asyncio
async def test_sweep_leaves_no_due_record_pending(notifications, users, senders, insert_notification) -> None:
    senders[SMS].error = RuntimeError("twilio down")
    ids = [
        await insert_notification(channels=(EMAIL,)),
        await insert_notification(channels=(SMS,)),
        await insert_notification(user_id="user_phone", channels=(PUSH, EMAIL)),
        await insert_notification(channels="{broken"),
    ]

    result = await notifications.sweeper.process_pending_notifications()

    assert result.processed == 4
    assert await notifications.store.list_due() == []
    for notification_id in ids:
        assert await _status(notifications, notification_id) != NotificationStatus.PENDING.value


@pytest.mark.asyncio
async def test_future_records_are_not_touched(notifications, users, senders, insert_notification) -> None:
    later = await insert_notification(scheduled_at=utcnow() + timedelta(days=1))
    due = await insert_notification()

    result = await notifications.sweeper.process_pending_notifications()

    assert result.sent == [due]
    assert await _status(notifications, later) == NotificationStatus.PENDING.value
    assert len(senders[EMAIL].calls) == 1


@pytest.mark.asyncio
async def test_channel_failures_still_mark_sent(notifications, users, senders, insert_notification) -> None:
    senders[EMAIL].result = False
    notification_id = await insert_notification(channels=(EMAIL,))

    result = await notifications.sweeper.process_pending_notifications()

    assert result.sent == [notification_id]
    assert await _status(notifications, notification_id) == NotificationStatus.SENT.value


@pytest.mark.asyncio
async def test_corrupt_channel_blob_fails_only_that_record(notifications, users, senders, insert_notification) -> None:
    broken = await insert_notification(channels='["email", "pigeon"]')
    healthy = await insert_notification(channels=(EMAIL,))

    result = await notifications.sweeper.process_pending_notifications()

    assert result.failed == [broken]
    assert result.sent == [healthy]
    assert await _status(notifications, broken) == NotificationStatus.FAILED.value
    assert (await notifications.store.get(broken)).to_dict()["channels"] == []


@pytest.mark.asyncio
async def test_orphaned_record_stays_pending(notifications, users, senders, insert_notification) -> None:
    orphan = await insert_notification(user_id="user_deleted")

    result = await notifications.sweeper.process_pending_notifications()

    assert result.skipped == [orphan]
    assert result.processed == 0
    assert await _status(notifications, orphan) == NotificationStatus.PENDING.value
    assert senders[EMAIL].calls == []


@pytest.mark.asyncio
async def test_orphaned_record_failed_when_configured(notifications, users, insert_notification) -> None:
    orphan = await insert_notification(user_id="user_deleted")
    sweeper = _sweeper(notifications, fail_orphaned=True)

    result = await sweeper.process_pending_notifications()

    assert result.failed == [orphan]
    assert await _status(notifications, orphan) == NotificationStatus.FAILED.value


@pytest.mark.asyncio
async def test_slow_record_times_out_as_failed(notifications, users, senders, insert_notification) -> None:
    senders[EMAIL].delay = 1.0
    notification_id = await insert_notification(channels=(EMAIL,))
    sweeper = _sweeper(notifications, record_timeout=0.05)

    result = await sweeper.process_pending_notifications()

    assert result.failed == [notification_id]
    assert await _status(notifications, notification_id) == NotificationStatus.FAILED.value


@pytest.mark.asyncio
async def test_concurrent_workers_process_every_record(notifications, users, senders, insert_notification) -> None:
    senders[EMAIL].delay = 0.01
    ids = [await insert_notification() for _ in range(7)]
    sweeper = _sweeper(notifications, concurrency=3)

    result = await sweeper.process_pending_notifications()

    assert sorted(result.sent) == sorted(ids)
    assert len(senders[EMAIL].calls) == 7


@pytest.mark.asyncio
async def test_one_sweep_drains_more_than_a_batch(notifications, users, insert_notification) -> None:
    ids = [await insert_notification() for _ in range(3)]
    sweeper = _sweeper(notifications, batch_size=2)

    result = await sweeper.process_pending_notifications()

    assert sorted(result.sent) == sorted(ids)
    for notification_id in ids:
        assert await _status(notifications, notification_id) == NotificationStatus.SENT.value


@pytest.mark.asyncio
async def test_orphans_do_not_starve_later_records(notifications, users, senders, insert_notification) -> None:
    now = utcnow()
    orphans = [
        await insert_notification(user_id="user_deleted", scheduled_at=now - timedelta(hours=3)),
        await insert_notification(user_id="user_deleted", scheduled_at=now - timedelta(hours=2)),
        await insert_notification(user_id="user_deleted", scheduled_at=now - timedelta(hours=2)),
    ]
    real = await insert_notification(scheduled_at=now - timedelta(hours=1))
    sweeper = _sweeper(notifications, batch_size=2)

    result = await sweeper.process_pending_notifications()

    assert result.sent == [real]
    assert sorted(result.skipped) == sorted(orphans)
    assert await _status(notifications, real) == NotificationStatus.SENT.value
    for orphan in orphans:
        assert await _status(notifications, orphan) == NotificationStatus.PENDING.value

    again = await sweeper.process_pending_notifications()
    assert again.sent == []
    assert len(senders[EMAIL].calls) == 1


@pytest.mark.asyncio
async def test_oldest_schedule_processed_first(notifications, users, senders, insert_notification) -> None:
    now = utcnow()
    newer = await insert_notification(title="newer", scheduled_at=now - timedelta(minutes=1))
    older = await insert_notification(title="older", scheduled_at=now - timedelta(hours=1))

    result = await notifications.sweeper.process_pending_notifications()

    assert result.sent == [older, newer]
    assert [c[1] for c in senders[EMAIL].calls] == ["older", "newer"]


@pytest.mark.asyncio
async def test_second_sweep_does_not_resend(notifications, users, senders, insert_notification) -> None:
    await insert_notification()

    await notifications.sweeper.process_pending_notifications()
    result = await notifications.sweeper.process_pending_notifications()

    assert result.summary()["sent"] == 0
    assert len(senders[EMAIL].calls) == 1


@pytest.mark.asyncio
async def test_sweep_updates_timestamp(notifications, users, insert_notification) -> None:
    notification_id = await insert_notification()
    before = await notifications.store.get(notification_id)

    await notifications.sweeper.process_pending_notifications()

    after = await notifications.store.get(notification_id)
    assert as_utc(after.updated_at) >= as_utc(before.updated_at)
    assert as_utc(after.created_at) == as_utc(before.created_at)


@pytest.mark.asyncio
async def test_cancelled_sweep_finishes_record_in_flight(notifications, users, senders, insert_notification) -> None:
    now = utcnow()
    first = await insert_notification(scheduled_at=now - timedelta(minutes=2))
    second = await insert_notification(scheduled_at=now - timedelta(minutes=1))
    senders[EMAIL].delay = 0.2
    sweeper = _sweeper(notifications, concurrency=1)

    sweep = asyncio.ensure_future(sweeper.process_pending_notifications())
    await senders[EMAIL].started.wait()
    sweep.cancel()
    with pytest.raises(asyncio.CancelledError):
        await sweep
    await sweeper.wait_for_in_flight()

    assert await _status(notifications, first) == NotificationStatus.SENT.value
    assert await _status(notifications, second) == NotificationStatus.PENDING.value
    assert len(senders[EMAIL].calls) == 1

"""Tests for the notification HTTP endpoints."""

from datetime import timedelta

import pytest

from aquarent.models.notification import NotificationChannel
from aquarent.utils.helpers import utcnow

BASE = "/api/v1/notifications"


def _body(**overrides):
    body = {
        "user_id": "user_full",
        "title": "Order confirmed",
        "message": "Installation is scheduled for tomorrow",
        "type": "order_confirmation",
        "channels": ["email", "sms"],
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_send_immediately(client, users, senders) -> None:
    response = await client.post(f"{BASE}/", json=_body(reference_id="ord_1", reference_type="order"))

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Notification sent"
    assert data["notification"]["status"] == "sent"
    assert data["notification"]["channels"] == ["email", "sms"]
    assert data["notification"]["reference_id"] == "ord_1"
    assert len(senders[NotificationChannel.EMAIL].calls) == 1
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_send_scheduled(client, users, senders) -> None:
    scheduled_at = (utcnow() + timedelta(hours=3)).isoformat()

    response = await client.post(f"{BASE}/", json=_body(scheduled_at=scheduled_at))

    assert response.status_code == 201
    assert response.json()["notification"]["status"] == "pending"
    assert senders[NotificationChannel.EMAIL].calls == []


@pytest.mark.asyncio
async def test_send_to_unknown_user(client, users, notifications) -> None:
    response = await client.post(f"{BASE}/", json=_body(user_id="user_missing"))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_NOT_FOUND"
    assert await notifications.store.list_for_user("user_missing") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("channels", [[], ["fax"]])
async def test_send_with_bad_channels(client, users, notifications, channels) -> None:
    response = await client.post(f"{BASE}/", json=_body(channels=channels))

    assert response.status_code == 422
    assert await notifications.store.list_for_user("user_full") == []


@pytest.mark.asyncio
async def test_get_notification(client, users) -> None:
    created = (await client.post(f"{BASE}/", json=_body())).json()["notification"]

    response = await client.get(f"{BASE}/{created['id']}")

    assert response.status_code == 200
    assert response.json()["notification"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_get_missing_notification(client) -> None:
    response = await client.get(f"{BASE}/notif_0_missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_notifications(client, users) -> None:
    await client.post(f"{BASE}/", json=_body(channels=["sms"]))
    await client.post(f"{BASE}/", json=_body(channels=["email"], type="promotion"))

    everything = await client.get(BASE + "/", params={"user_id": "user_full"})
    promotions = await client.get(BASE + "/", params={"user_id": "user_full", "type": "promotion"})
    by_sms = await client.get(BASE + "/", params={"user_id": "user_full", "channel": "sms"})

    assert len(everything.json()["notifications"]) == 2
    assert [n["type"] for n in promotions.json()["notifications"]] == ["promotion"]
    assert [n["channels"] for n in by_sms.json()["notifications"]] == [["sms"]]


@pytest.mark.asyncio
async def test_process_pending(client, users, insert_notification) -> None:
    due = await insert_notification()

    response = await client.post(f"{BASE}/process-pending")

    assert response.status_code == 200
    assert response.json() == {
        "sent": 1,
        "failed": 0,
        "skipped": 0,
        "sent_ids": [due],
        "failed_ids": [],
        "skipped_ids": [],
    }


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

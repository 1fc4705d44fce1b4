"""Notification tests: audience rules, read state, deletion limits."""

from __future__ import annotations

import pytest

from rmg_portal.common.constants import UserRole
from rmg_portal.notifications.service import NotificationService
from tests.conftest import add_employee, auth_header


@pytest.fixture
async def seeded(db, test_employee, rmg_user):
    """One personal, one role-wide and one broadcast notification."""
    personal = await NotificationService.create_notification(
        db, recipient_id=test_employee.id, title="Personal", message="Just for you",
    )
    rmg_wide = await NotificationService.create_notification(
        db, role=UserRole.rmg.value, title="RMG", message="Bench review due",
    )
    broadcast = await NotificationService.create_notification(
        db, role="all", title="Broadcast", message="Office closed Friday",
    )
    await db.commit()
    return personal, rmg_wide, broadcast


class TestNotificationAudience:
    async def test_employee_sees_personal_and_broadcast(self, client, seeded, auth_headers):
        resp = await client.get("/api/notifications", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        titles = sorted(n["title"] for n in body["data"])
        assert titles == ["Broadcast", "Personal"]
        assert body["meta"]["unread"] == 2

    async def test_role_member_sees_role_rows(self, client, seeded, rmg_headers):
        resp = await client.get("/api/notifications", headers=rmg_headers)
        titles = sorted(n["title"] for n in resp.json()["data"])
        assert titles == ["Broadcast", "RMG"]

    async def test_unread_count(self, client, seeded, auth_headers):
        resp = await client.get("/api/notifications/unread-count", headers=auth_headers)
        assert resp.json()["data"]["count"] == 2

    async def test_create_requires_audience(self, client, auth_headers):
        resp = await client.post(
            "/api/notifications",
            json={"title": "Nobody", "message": "No audience"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    async def test_create_for_recipient(self, client, db, auth_headers):
        target = await add_employee(db, name="Target")
        resp = await client.post(
            "/api/notifications",
            json={"recipient_id": str(target.id), "title": "Hi", "message": "Hello"},
            headers=auth_headers,
        )
        assert resp.status_code == 201

        resp = await client.get("/api/notifications", headers=auth_header(target))
        assert [n["title"] for n in resp.json()["data"]] == ["Hi"]


class TestNotificationReadState:
    async def test_mark_read(self, client, seeded, auth_headers):
        personal = seeded[0]
        resp = await client.patch(
            f"/api/notifications/{personal.id}/read", headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["is_read"] is True
        assert resp.json()["data"]["read_at"] is not None

        resp = await client.get("/api/notifications?is_read=false", headers=auth_headers)
        assert [n["title"] for n in resp.json()["data"]] == ["Broadcast"]

    async def test_cannot_read_someone_elses(self, client, seeded, rmg_headers):
        personal = seeded[0]
        resp = await client.patch(
            f"/api/notifications/{personal.id}/read", headers=rmg_headers,
        )
        assert resp.status_code == 403

    async def test_mark_all_read(self, client, seeded, auth_headers):
        resp = await client.patch("/api/notifications/read-all", headers=auth_headers)
        assert resp.json()["data"]["count"] == 2

        resp = await client.get("/api/notifications/unread-count", headers=auth_headers)
        assert resp.json()["data"]["count"] == 0


class TestNotificationDelete:
    async def test_delete_personal(self, client, seeded, auth_headers):
        personal = seeded[0]
        resp = await client.delete(f"/api/notifications/{personal.id}", headers=auth_headers)
        assert resp.status_code == 200

    async def test_shared_rows_cannot_be_deleted(self, client, seeded, auth_headers):
        broadcast = seeded[2]
        resp = await client.delete(f"/api/notifications/{broadcast.id}", headers=auth_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Shared notifications cannot be deleted."

    async def test_clear_all_only_removes_personal(self, client, seeded, auth_headers):
        resp = await client.delete("/api/notifications/clear-all", headers=auth_headers)
        assert resp.json()["data"]["count"] == 1

        resp = await client.get("/api/notifications", headers=auth_headers)
        assert [n["title"] for n in resp.json()["data"]] == ["Broadcast"]

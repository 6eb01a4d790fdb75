"""Notification visibility, read state and cleanup."""

import pytest

from sundus.extensions import db
from sundus.models import Notification
from sundus.services import notification_service
from sundus.services.notification_service import NotificationError


@pytest.fixture
def feed(db_session, cashier_user, plain_user):
    """One staff-wide order notification, one for the cashier, one for the plain user."""
    notification_service.create_system_notification("new_order", "New online order", "New online order received #1", related_id="1", related_type="sale")
    notification_service.create_system_notification("order_status", "Order Status Update", "Order #1 status updated to accepted", related_id="1", related_type="order", user_id=cashier_user.id)
    notification_service.create_system_notification("system", "Hello", "Welcome", user_id=plain_user.id)
    db_session.commit()


def test_create_rejects_unknown_type(db_session):
    with pytest.raises(NotificationError):
        notification_service.create_system_notification("party", "t", "m")


def test_create_does_not_commit(db_session):
    notification_service.create_system_notification("system", "t", "m")
    db_session.rollback()
    assert db_session.query(Notification).count() == 0


def test_staff_see_own_and_staff_wide(client, feed, cashier_headers):
    resp = client.get("/api/v1/notifications", headers=cashier_headers)
    assert resp.status_code == 200
    assert resp.json["total"] == 2
    assert {n["type"] for n in resp.json["data"]} == {"new_order", "order_status"}


def test_plain_user_sees_only_own(client, feed, user_headers):
    resp = client.get("/api/v1/notifications", headers=user_headers)
    assert [n["type"] for n in resp.json["data"]] == ["system"]


def test_filters(client, feed, cashier_headers):
    resp = client.get("/api/v1/notifications?type=new_order&relatedId=1", headers=cashier_headers)
    assert resp.json["total"] == 1

    resp = client.get("/api/v1/notifications?relatedType=order", headers=cashier_headers)
    assert resp.json["data"][0]["type"] == "order_status"


def test_pagination_is_clamped(client, feed, cashier_headers):
    resp = client.get("/api/v1/notifications?limit=0&offset=-5", headers=cashier_headers)
    assert resp.json["limit"] == 1
    assert resp.json["offset"] == 0
    assert resp.json["count"] == 1
    assert resp.json["total"] == 2


def test_unread_counts(client, feed, cashier_headers):
    resp = client.get("/api/v1/notifications/unread-count", headers=cashier_headers)
    assert resp.json["data"]["count"] == 2

    resp = client.get("/api/v1/notifications/unread-online-orders-count", headers=cashier_headers)
    assert resp.json["data"]["count"] == 1


def test_mark_read_and_mark_all(client, feed, cashier_headers):
    note = db.session.query(Notification).filter_by(type="new_order").one()
    resp = client.put(f"/api/v1/notifications/{note.id}/read", headers=cashier_headers)
    assert resp.status_code == 200
    assert resp.json["data"]["isRead"] is True

    resp = client.get("/api/v1/notifications?isRead=false", headers=cashier_headers)
    assert resp.json["total"] == 1

    resp = client.put("/api/v1/notifications/mark-all-read", headers=cashier_headers)
    assert resp.json["data"]["updated"] == 1


def test_cannot_touch_someone_elses_notification(client, feed, user_headers):
    note = db.session.query(Notification).filter_by(type="order_status").one()
    resp = client.delete(f"/api/v1/notifications/{note.id}", headers=user_headers)
    assert resp.status_code == 404


def test_delete_own_leaves_staff_wide_rows(client, feed, cashier_headers):
    resp = client.delete("/api/v1/notifications", headers=cashier_headers)
    assert resp.json["data"]["deleted"] == 1
    assert db.session.query(Notification).filter_by(type="new_order").count() == 1


def test_online_order_feed_requires_role(client, feed, user_headers, cashier_headers):
    assert client.get("/api/v1/notifications/online-orders", headers=user_headers).status_code == 403

    resp = client.get("/api/v1/notifications/online-orders", headers=cashier_headers)
    assert resp.status_code == 200
    assert resp.json["total"] == 1


def test_admin_feed(client, feed, admin_headers, cashier_headers):
    assert client.get("/api/v1/notifications/admin", headers=cashier_headers).status_code == 403

    resp = client.get("/api/v1/notifications/admin", headers=admin_headers)
    assert resp.json["total"] == 3

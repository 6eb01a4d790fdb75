"""Store settings and the online-ordering availability window."""

from datetime import datetime

import pytest

from sundus.models import Setting
from sundus.services import settings_service


def test_defaults_created_on_first_read(client):
    resp = client.get("/api/v1/settings")
    assert resp.status_code == 200
    data = resp.json["data"]
    assert data["id"] == 1
    assert data["invoice_next_number"] == 1001
    assert data["online_orders_enabled"] is True


def test_update_requires_manager(client, cashier_headers):
    resp = client.put("/api/v1/settings", json={"store_name": "Café Sundus"}, headers=cashier_headers)
    assert resp.status_code == 403


def test_partial_update(client, admin_headers):
    resp = client.put("/api/v1/settings", json={
        "store_name": "Café Sundus",
        "tax_rate": "5.5",
        "online_orders_days": [1, 2, 3],
    }, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json["data"]
    assert data["store_name"] == "Café Sundus"
    assert data["tax_rate"] == 5.5
    assert data["online_orders_days"] == [1, 2, 3]
    assert data["currency_code"] == "UGX"


@pytest.mark.parametrize("patch", [
    {"tax_rate": -1},
    {"invoice_next_number": 0},
    {"mobile_pin_digits": 20},
    {"online_orders_start_time": "25:99"},
    {"online_orders_days": [7]},
    {"online_orders_days": "mon"},
    {"email": "not-an-email"},
    {"id": 2},
    {"favourite_colour": "green"},
])
def test_rejected_updates(client, admin_headers, patch):
    assert client.put("/api/v1/settings", json=patch, headers=admin_headers).status_code == 400


def test_status_endpoint_is_public(client):
    resp = client.get("/api/v1/settings/online-orders/status")
    assert resp.status_code == 200
    assert resp.json["data"]["isOpen"] is True
    assert resp.json["data"]["reason"] is None


# 2024-06-05 was a Wednesday (day 3 when Sunday is 0)
WEDNESDAY_NOON = datetime(2024, 6, 5, 12, 0)


def _settings(**values):
    base = {
        "online_orders_enabled": True,
        "online_orders_start_time": None,
        "online_orders_end_time": None,
        "online_orders_days": None,
    }
    base.update(values)
    return Setting(**base)


def test_disabled():
    status = settings_service.online_ordering_status(_settings(online_orders_enabled=False), WEDNESDAY_NOON)
    assert (status["isOpen"], status["reason"]) == (False, "disabled")


def test_day_filter():
    status = settings_service.online_ordering_status(_settings(online_orders_days=[0, 6]), WEDNESDAY_NOON)
    assert (status["isOpen"], status["reason"], status["today"]) == (False, "closed_today", 3)

    status = settings_service.online_ordering_status(_settings(online_orders_days=[3]), WEDNESDAY_NOON)
    assert status["isOpen"] is True


@pytest.mark.parametrize("start,end,hour,expected", [
    ("08:00", "17:00", 12, True),
    ("08:00", "17:00", 17, False),
    ("08:00", "17:00", 7, False),
    ("18:00", "02:00", 23, True),
    ("18:00", "02:00", 1, True),
    ("18:00", "02:00", 12, False),
    ("09:00", "09:00", 3, True),
])
def test_time_window(start, end, hour, expected):
    now = WEDNESDAY_NOON.replace(hour=hour)
    status = settings_service.online_ordering_status(
        _settings(online_orders_start_time=start, online_orders_end_time=end),
        now,
    )
    assert status["isOpen"] is expected
    if not expected:
        assert status["reason"] == "outside_hours"


def test_half_open_window_is_ignored():
    status = settings_service.online_ordering_status(_settings(online_orders_start_time="08:00"), WEDNESDAY_NOON.replace(hour=3))
    assert status["isOpen"] is True


# 2024-06-08 was a Saturday (day 6)
SATURDAY_1AM = datetime(2024, 6, 8, 1, 0)


def test_overnight_tail_counts_as_the_opening_day():
    friday_night = _settings(online_orders_days=[5], online_orders_start_time="18:00", online_orders_end_time="02:00")
    status = settings_service.online_ordering_status(friday_night, SATURDAY_1AM)
    assert status["isOpen"] is True
    assert status["today"] == 6

    saturday_only = _settings(online_orders_days=[6], online_orders_start_time="18:00", online_orders_end_time="02:00")
    status = settings_service.online_ordering_status(saturday_only, SATURDAY_1AM)
    assert (status["isOpen"], status["reason"]) == (False, "closed_today")

    status = settings_service.online_ordering_status(saturday_only, SATURDAY_1AM.replace(hour=19))
    assert status["isOpen"] is True

# Overview: Service-layer operations for store settings; encapsulates business logic and database work.

"""
Settings Service

The store keeps exactly one settings row (id = 1). It is created with model
defaults the first time anything reads it, so GET never 404s on a fresh
database.
"""

from __future__ import annotations

from datetime import datetime, time

from ..extensions import db
from ..models import Setting, SETTINGS_ROW_ID
from sundus.time_utils import parse_hhmm

# Everything except identity and timestamps can be changed through the API
SETTINGS_MUTABLE_FIELDS = {
    c.key for c in Setting.__table__.columns if c.key not in ("id", "created_at", "updated_at")
}


def get_settings(*, commit: bool = True) -> Setting:
    """Return the settings row, creating it with defaults on first access."""
    settings = db.session.get(Setting, SETTINGS_ROW_ID)
    if settings is None:
        settings = Setting(id=SETTINGS_ROW_ID)
        db.session.add(settings)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    return settings


def update_settings(patch: dict) -> Setting:
    """Apply a validated patch (see validation.enforce_rules_settings)."""
    settings = get_settings(commit=False)
    for k, v in patch.items():
        if k not in SETTINGS_MUTABLE_FIELDS:
            continue
        setattr(settings, k, v)
    db.session.commit()
    return settings


def next_receipt_number(settings: Setting) -> str:
    """
    Reserve the next invoice number and return the formatted receipt number.

    Increments the counter on the row; the caller commits it together with
    the sale that uses the number.
    """
    number = settings.invoice_next_number or 1
    settings.invoice_next_number = number + 1
    return f"{settings.invoice_prefix or ''}{number}{settings.invoice_suffix or ''}"


def _in_window(now: time, start: time, end: time) -> bool:
    if start == end:
        return True
    if start < end:
        return start <= now < end
    # Window wraps past midnight, e.g. 18:00 - 02:00
    return now >= start or now < end


def online_ordering_status(settings: Setting, now: datetime | None = None) -> dict:
    """
    Whether online ordering is open at `now` (server local time).

    Closed when disabled, when today is not in online_orders_days (0 =
    Sunday; an empty/missing list means every day), or when outside the
    start/end window. The window only applies when both ends are set. The
    early-morning tail of a window that wraps past midnight belongs to the
    day the window opened.
    """
    now = now or datetime.now()
    today = (now.weekday() + 1) % 7
    days = settings.online_orders_days or []
    start = parse_hhmm(settings.online_orders_start_time)
    end = parse_hhmm(settings.online_orders_end_time)

    window_day = today
    if start is not None and end is not None and start > end and now.time() < end:
        window_day = (today - 1) % 7

    if not settings.online_orders_enabled:
        is_open, reason = False, "disabled"
    elif days and window_day not in days:
        is_open, reason = False, "closed_today"
    elif start is not None and end is not None and not _in_window(now.time(), start, end):
        is_open, reason = False, "outside_hours"
    else:
        is_open, reason = True, None

    return {
        "isOpen": is_open,
        "reason": reason,
        "enabled": bool(settings.online_orders_enabled),
        "startTime": settings.online_orders_start_time,
        "endTime": settings.online_orders_end_time,
        "days": days,
        "today": today,
    }

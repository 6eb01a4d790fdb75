# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Notification, Sale, SaleItem


def clear_transactional_data() -> dict:
    """
    Delete notifications, sale items, sales and customers in one transaction.

    Catalog, settings and user accounts are kept. Returns the per-table
    counts of deleted rows.
    """
    try:
        counts = {
            "notifications": db.session.query(Notification).delete(synchronize_session=False),
            "saleItems": db.session.query(SaleItem).delete(synchronize_session=False),
            "sales": db.session.query(Sale).delete(synchronize_session=False),
            "customers": db.session.query(Customer).delete(synchronize_session=False),
        }
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return counts

# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products Service

Products are hard-deleted only while no sale line references them; once
sold, a product can still be deactivated (is_active = false) or hidden from
the online menu (available_online = false).
"""
from __future__ import annotations

from ..extensions import db
from ..models import Category, Product, SaleItem
from ..validation import ConflictError, ValidationError

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "price", "cost", "sku", "barcode", "is_generated_barcode",
    "category_id", "image_url", "is_active", "available_online",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_unique(field: str, value, exclude_id: int | None = None) -> None:
    if value is None:
        return
    query = db.session.query(Product.id).filter(getattr(Product, field) == value)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"{field.upper()} already exists.")


def _check_category(category_id: int | None) -> None:
    if category_id is not None and db.session.get(Category, category_id) is None:
        raise ValidationError("Category not found")


def list_products(
    *,
    category_id: int | None = None,
    active: bool | None = None,
    online: bool | None = None,
    search: str | None = None,
) -> dict:
    """
    Product listing, ordered by name.

    Returns:
        Dict with 'items' and 'count'.
    """
    query = db.session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if active is not None:
        query = query.filter(Product.is_active.is_(active))
    if online is not None:
        query = query.filter(Product.available_online.is_(online))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.barcode.ilike(like),
        ))

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def list_online_menu() -> dict:
    """Public menu: active, online-visible products grouped in category display order."""
    products = (
        db.session.query(Product)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(Product.is_active.is_(True), Product.available_online.is_(True))
        .order_by(Category.display_order.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU or barcode already exists
        ValidationError: If category_id does not exist
    """
    _check_unique("sku", patch.get("sku"))
    _check_unique("barcode", patch.get("barcode"))
    _check_category(patch.get("category_id"))

    p = Product()
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update a product.

    Returns:
        Updated product dict, or None if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    if "sku" in patch and patch["sku"] != p.sku:
        _check_unique("sku", patch["sku"], exclude_id=p.id)
    if "barcode" in patch and patch["barcode"] != p.barcode:
        _check_unique("barcode", patch["barcode"], exclude_id=p.id)
    if "category_id" in patch:
        _check_category(patch["category_id"])

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product that has never been sold.

    Returns:
        True if deleted, False if not found

    Raises:
        ConflictError: If any sale line references the product
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    in_use = db.session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
    if in_use is not None:
        raise ConflictError("Product has sales history; deactivate it instead.")

    db.session.delete(p)
    db.session.commit()
    return True

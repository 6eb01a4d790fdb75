# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, ValidationError

CATEGORY_MUTABLE_FIELDS = {"name", "description", "display_order", "is_active"}


def _check_name(name: str | None, exclude_id: int | None = None) -> None:
    if name is None:
        return
    query = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A category with this name already exists.")


def list_categories(*, active: bool | None = None) -> list[Category]:
    query = db.session.query(Category)
    if active is not None:
        query = query.filter(Category.is_active.is_(active))
    return query.order_by(Category.display_order.asc(), Category.name.asc()).all()


def get_category(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def create_category(*, patch: dict) -> Category:
    _check_name(patch.get("name"))

    if "display_order" not in patch:
        # New categories go to the end of the list
        last = db.session.query(db.func.max(Category.display_order)).scalar()
        patch = {**patch, "display_order": (last + 1) if last is not None else 0}

    category = Category()
    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(*, category_id: int, patch: dict) -> Category | None:
    category = db.session.get(Category, category_id)
    if category is None:
        return None

    if "name" in patch and patch["name"] != category.name:
        _check_name(patch["name"], exclude_id=category.id)

    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)
    db.session.commit()
    return category


def delete_category(*, category_id: int) -> bool:
    category = db.session.get(Category, category_id)
    if category is None:
        return False

    in_use = db.session.query(Product.id).filter(Product.category_id == category_id).first()
    if in_use is not None:
        raise ConflictError("Category still has products; move or delete them first.")

    db.session.delete(category)
    db.session.commit()
    return True


def reorder_categories(ordered_ids) -> list[Category]:
    """Set display_order from the position of each id in the list."""
    if not isinstance(ordered_ids, list) or not ordered_ids:
        raise ValidationError("ids must be a non-empty array of category ids")
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in ordered_ids):
        raise ValidationError("ids must contain integers")
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("ids must not repeat")

    categories = {c.id: c for c in db.session.query(Category).filter(Category.id.in_(ordered_ids)).all()}
    missing = [i for i in ordered_ids if i not in categories]
    if missing:
        raise ValidationError(f"Unknown category ids: {', '.join(str(i) for i in missing)}")

    for position, category_id in enumerate(ordered_ids):
        categories[category_id].display_order = position
    db.session.commit()
    return list_categories()

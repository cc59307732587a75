"""Category management and the default category bootstrap."""

from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy import func, select

from .db import atomic, store_errors
from .errors import ConflictError, NotFoundError, ValidationError
from .filters import parse_type
from .models import EXPENSE, INCOME, Category, Transaction, db
from .users import get_user

logger = logging.getLogger(__name__)


# Starter set every new user receives, as (name, type).
DEFAULT_CATEGORIES: Tuple[Tuple[str, str], ...] = (
    ("Food & Dining", EXPENSE),
    ("Rent", EXPENSE),
    ("Utilities", EXPENSE),
    ("Transportation", EXPENSE),
    ("Entertainment", EXPENSE),
    ("Shopping", EXPENSE),
    ("Healthcare", EXPENSE),
    ("Education", EXPENSE),
    ("Other Expense", EXPENSE),
    ("Salary", INCOME),
    ("Freelance", INCOME),
    ("Investment", INCOME),
    ("Gift", INCOME),
    ("Other Income", INCOME),
)


def list_categories(user_id: str) -> List[Category]:
    get_user(user_id)
    return _fetch_categories(user_id)


def _fetch_categories(user_id: str) -> List[Category]:
    with store_errors():
        return list(
            db.session.scalars(
                select(Category)
                .where(Category.user_id == user_id)
                .order_by(func.lower(Category.name), Category.name, Category.id)
            )
        )


def get_category(category_id: str, user_id: str) -> Category:
    """Category owned by ``user_id``; foreign categories look missing."""
    with store_errors():
        category = db.session.get(Category, category_id) if category_id else None
    if category is None or category.user_id != user_id:
        raise NotFoundError("Category not found")
    return category


def create_category(user_id: str, name: str, type: str) -> Category:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")
    kind = parse_type(type)
    user_id = str(user_id or "").strip()
    if not user_id:
        raise ValidationError("userId is required")
    get_user(user_id)
    try:
        with atomic() as session:
            category = Category(user_id=user_id, name=name, type=kind)
            session.add(category)
    except ConflictError as exc:
        raise ConflictError(f"Category '{name}' already exists") from exc
    logger.info("Created %s category %r for user %s", kind, name, user_id)
    return category


def delete_category(category_id: str, user_id: str) -> None:
    """Delete an unused category; categories still referenced are kept."""
    with atomic() as session:
        category = get_category(category_id, user_id)
        in_use = session.scalar(
            select(func.count(Transaction.id)).where(Transaction.category_id == category.id)
        )
        if in_use:
            raise ConflictError("Cannot delete a category that has transactions")
        session.delete(category)
    logger.info("Deleted category %s for user %s", category_id, user_id)


def ensure_default_categories(user_id: str) -> List[Category]:
    """Seed the starter categories once; later calls return the existing set.

    Two concurrent first calls race on the (user_id, name) unique constraint;
    the loser rolls back and returns what the winner inserted.
    """
    try:
        get_user(user_id)
    except NotFoundError as exc:
        raise NotFoundError("User not found; create user first") from exc

    existing = _fetch_categories(user_id)
    if existing:
        return existing

    try:
        with atomic() as session:
            session.add_all(
                Category(user_id=user_id, name=name, type=kind) for name, kind in DEFAULT_CATEGORIES
            )
    except ConflictError:
        logger.info("Default categories for user %s were seeded concurrently", user_id)
    else:
        logger.info("Seeded %d default categories for user %s", len(DEFAULT_CATEGORIES), user_id)
    return _fetch_categories(user_id)

"""Transaction CRUD.

Every write checks that the transaction's type matches its category's type
and that the caller owns both the transaction and the category.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from .categories import get_category
from .db import atomic, store_errors
from .errors import NotFoundError, ValidationError
from .filters import NO_FILTERS, TransactionFilters, parse_date, parse_type
from .models import CENT, Category, Transaction, db
from .users import get_user

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 255
# Keeps per-user sums of integer cents well inside 64 bits.
MAX_AMOUNT = Decimal("999999999999.99")


def parse_amount(value) -> Decimal:
    """Non-negative decimal with at most two fractional digits."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("amount is required")
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as exc:
        raise ValidationError("amount must be a number") from exc
    if not amount.is_finite():
        raise ValidationError("amount must be a number")
    if amount < 0:
        raise ValidationError("amount must not be negative")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"amount must not exceed {MAX_AMOUNT}")
    try:
        rounded = amount.quantize(CENT)
    except InvalidOperation as exc:
        raise ValidationError("amount must be a number") from exc
    if amount != rounded:
        raise ValidationError("amount must have at most two decimal places")
    return rounded


def _clean_description(value) -> str:
    text = str(value or "").strip()
    if len(text) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return text


def _category_for(category_id: str, user_id: str, kind: Optional[str]) -> Category:
    category_id = str(category_id or "").strip()
    if not category_id:
        raise ValidationError("categoryId is required")
    try:
        category = get_category(category_id, user_id)
    except NotFoundError as exc:
        raise ValidationError("categoryId does not refer to one of your categories") from exc
    if kind is not None and category.type != kind:
        raise ValidationError(
            f"Category '{category.name}' is an {category.type} category and cannot be used for an {kind} transaction"
        )
    return category


def get_transaction(transaction_id: str, user_id: str) -> Transaction:
    """Transaction owned by ``user_id``; foreign transactions look missing."""
    txn = None
    if transaction_id:
        with store_errors():
            txn = db.session.get(Transaction, transaction_id, options=[joinedload(Transaction.category)])
    if txn is None or txn.user_id != user_id:
        raise NotFoundError("Transaction not found")
    return txn


def list_transactions(user_id: str, filters: TransactionFilters = NO_FILTERS) -> List[Transaction]:
    get_user(user_id)
    stmt = (
        select(Transaction)
        .options(joinedload(Transaction.category))
        .where(Transaction.user_id == user_id, *filters.clauses())
        .order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id)
    )
    with store_errors():
        return list(db.session.scalars(stmt))


def create_transaction(
    user_id: str,
    category_id: str,
    type: str,
    amount,
    description,
    date,
) -> Transaction:
    kind = parse_type(type)
    value = parse_amount(amount)
    when = parse_date(date)
    text = _clean_description(description)
    if not user_id:
        raise ValidationError("userId is required")
    get_user(user_id)

    with atomic() as session:
        category = _category_for(category_id, user_id, kind)
        txn = Transaction(
            user_id=user_id,
            category=category,
            type=kind,
            amount=value,
            description=text,
            date=when,
        )
        session.add(txn)
    logger.info("Created %s transaction %s for user %s", kind, txn.id, user_id)
    return txn


def update_transaction(
    transaction_id: str,
    user_id: str,
    amount,
    description,
    date,
    category_id: str,
    type: Optional[str] = None,
) -> Transaction:
    """Replace amount, description, date and category.

    The type follows the new category; an explicit ``type`` must agree with it.
    """
    kind = parse_type(type) if type else None
    value = parse_amount(amount)
    when = parse_date(date)
    text = _clean_description(description)

    with atomic():
        txn = get_transaction(transaction_id, user_id)
        category = _category_for(category_id, user_id, kind)
        txn.category = category
        txn.type = category.type
        txn.amount = value
        txn.description = text
        txn.date = when
    logger.info("Updated transaction %s for user %s", transaction_id, user_id)
    return txn


def delete_transaction(transaction_id: str, user_id: str) -> None:
    with atomic() as session:
        txn = get_transaction(transaction_id, user_id)
        session.delete(txn)
    logger.info("Deleted transaction %s for user %s", transaction_id, user_id)

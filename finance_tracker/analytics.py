"""Income/expense aggregation.

Totals are summed in the database over integer cents and returned as
``Decimal``; empty sums are zero, never ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import func, select

from .db import store_errors
from .filters import NO_FILTERS, TransactionFilters
from .models import CENT, EXPENSE, INCOME, Category, Transaction, db
from .users import get_user

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Summary:
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return (self.total_income - self.total_expenses).quantize(CENT)

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalIncome": float(self.total_income),
            "totalExpenses": float(self.total_expenses),
            "balance": float(self.balance),
        }


def _total(user_id: str, kind: str, filters: TransactionFilters) -> Decimal:
    stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
        Transaction.user_id == user_id,
        Transaction.type == kind,
        *filters.clauses(),
    )
    with store_errors():
        value = db.session.execute(stmt).scalar_one()
    return Decimal(value or 0).quantize(CENT)


def summarize(user_id: str, filters: TransactionFilters = NO_FILTERS) -> Summary:
    """Total income, total expenses and balance for ``user_id``.

    Raises NotFoundError for an unknown user.
    """
    get_user(user_id)
    return Summary(
        total_income=_total(user_id, INCOME, filters),
        total_expenses=_total(user_id, EXPENSE, filters),
    )


def spending_by_category(user_id: str, filters: TransactionFilters = NO_FILTERS) -> List[Dict]:
    """Per-category totals, largest first."""
    get_user(user_id)
    total = func.coalesce(func.sum(Transaction.amount), 0)
    stmt = (
        select(Category.id, Category.name, Category.type, total.label("total"))
        .join(Transaction, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id, *filters.clauses())
        .group_by(Category.id, Category.name, Category.type)
        .order_by(total.desc(), Category.name)
    )
    with store_errors():
        rows = db.session.execute(stmt).all()
    return [
        {
            "categoryId": row.id,
            "name": row.name,
            "type": row.type,
            "total": float(Decimal(row.total or 0).quantize(CENT)),
        }
        for row in rows
    ]

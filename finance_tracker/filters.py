"""Filter parsing shared by transaction listing and summaries.

Query parameters (all optional):
    startDate, endDate (YYYY-MM-DD, inclusive), type (income|expense), categoryId
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .errors import ValidationError
from .models import TRANSACTION_TYPES, Transaction


def parse_date(value, field: str = "date") -> dt.date:
    """Parse a calendar date; a full ISO timestamp is truncated to its date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    day, rest = text[:10], text[10:]
    try:
        parsed = dt.date.fromisoformat(day)
        if rest:
            # Only a "T" or space followed by a valid time may trail the date.
            if rest[0] not in "T ":
                raise ValueError(rest)
            dt.time.fromisoformat(rest[1:].removesuffix("Z"))
    except ValueError as exc:
        raise ValidationError(f"{field} must be in YYYY-MM-DD format") from exc
    return parsed


def parse_type(value, field: str = "type") -> str:
    text = str(value or "").strip().lower()
    if text not in TRANSACTION_TYPES:
        raise ValidationError(f"{field} must be one of: {', '.join(TRANSACTION_TYPES)}")
    return text


@dataclass(frozen=True)
class TransactionFilters:
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    type: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "TransactionFilters":
        start = args.get("startDate") or None
        end = args.get("endDate") or None
        kind = args.get("type") or None
        category_id = (args.get("categoryId") or "").strip() or None
        filters = cls(
            start_date=parse_date(start, "startDate") if start else None,
            end_date=parse_date(end, "endDate") if end else None,
            type=parse_type(kind) if kind else None,
            category_id=category_id,
        )
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise ValidationError("startDate must not be after endDate")
        return filters

    def clauses(self) -> List:
        """SQL conditions on Transaction for the active filters."""
        conditions = []
        if self.start_date is not None:
            conditions.append(Transaction.date >= self.start_date)
        if self.end_date is not None:
            conditions.append(Transaction.date <= self.end_date)
        if self.type is not None:
            conditions.append(Transaction.type == self.type)
        if self.category_id is not None:
            conditions.append(Transaction.category_id == self.category_id)
        return conditions


NO_FILTERS = TransactionFilters()

"""SQLAlchemy models for the Finance Tracker service."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import Optional

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.types import Integer, TypeDecorator


db = SQLAlchemy()

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

CENT = Decimal("0.01")


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class Money(TypeDecorator):
    """Decimal amount stored as integer minor units (cents).

    SUM() over this column stays integral in the database, so totals are exact
    on every backend including SQLite.
    """

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int((Decimal(value) * 100).to_integral_value())

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return (Decimal(int(value)) / 100).quantize(CENT)


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(128), primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    categories = db.relationship("Category", back_populates="user", cascade="all, delete-orphan")
    transactions = db.relationship("Transaction", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "createdAt": _iso(self.created_at),
        }


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_categories_type"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(128), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    user = db.relationship("User", back_populates="categories")
    transactions = db.relationship("Transaction", back_populates="category", passive_deletes="all")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "userId": self.user_id,
            "createdAt": _iso(self.created_at),
        }


class Transaction(db.Model):
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        db.CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(128), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = db.Column(
        db.String(32),
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False, default="")
    type = db.Column(db.String(16), nullable=False)
    amount = db.Column(Money, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    user = db.relationship("User", back_populates="transactions")
    category = db.relationship("Category", back_populates="transactions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": float(self.amount),
            "description": self.description,
            "date": self.date.isoformat(),
            "type": self.type,
            "categoryId": self.category_id,
            "userId": self.user_id,
            "createdAt": _iso(self.created_at),
            "category": self.category.to_dict() if self.category else None,
        }

"""Utility helpers for relational persistence."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from flask import Flask
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import AppConfig
from .errors import ConflictError, OutOfRangeError, StoreError
from .models import db

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE clauses unless this is set per connection.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def configure_db(app: Flask, config: AppConfig) -> None:
    app.config["SQLALCHEMY_DATABASE_URI"] = config.database_url
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = config.engine_options()
    db.init_app(app)


def init_db() -> None:
    """Create missing tables; existing tables are left untouched."""
    with store_errors():
        db.create_all()
    logger.info("Database initialized at %s", db.engine.url.render_as_string(hide_password=True))


def _out_of_range(exc: SQLAlchemyError) -> bool:
    # SQLite reports SUM() overflow as an OperationalError; other backends raise DataError.
    if isinstance(exc, DataError):
        return True
    return isinstance(exc, OperationalError) and "integer overflow" in str(exc.orig).lower()


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate low-level store failures into StoreError.

    Numeric overflow is not retryable and surfaces as OutOfRangeError instead.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        if _out_of_range(exc):
            logger.warning("Value out of range: %s", exc.orig)
            raise OutOfRangeError("Values exceed the supported numeric range") from exc
        logger.exception("Store operation failed")
        raise StoreError("Storage is temporarily unavailable; retry later") from exc


@contextmanager
def atomic() -> Iterator[Session]:
    """One store transaction: commit on success, roll back on any error.

    Constraint violations surface as ConflictError.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Write rejected by constraint: %s", exc.orig)
        raise ConflictError("Conflicts with an existing record") from exc
    except (DataError, OperationalError) as exc:
        session.rollback()
        if not _out_of_range(exc):
            logger.exception("Store transaction failed")
            raise StoreError("Storage is temporarily unavailable; retry later") from exc
        logger.warning("Value out of range: %s", exc.orig)
        raise OutOfRangeError("Values exceed the supported numeric range") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Store transaction failed")
        raise StoreError("Storage is temporarily unavailable; retry later") from exc
    except Exception:
        session.rollback()
        raise

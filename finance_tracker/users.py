"""User records keyed by the identity provider's id."""

from __future__ import annotations

import logging
from typing import Optional

from .db import atomic, store_errors
from .errors import NotFoundError, ValidationError
from .models import User, db

logger = logging.getLogger(__name__)


def get_user(user_id: str) -> User:
    with store_errors():
        user = db.session.get(User, user_id) if user_id else None
    if user is None:
        raise NotFoundError("User not found")
    return user


def upsert_user(user_id: str, email: str, name: Optional[str] = None) -> User:
    """Create the user, or refresh email and name when it already exists."""
    user_id = str(user_id or "").strip()
    email = str(email or "").strip()
    if not user_id:
        raise ValidationError("id is required")
    if not email:
        raise ValidationError("email is required")
    name = str(name or "").strip() or email.split("@")[0]

    with atomic() as session:
        user = session.get(User, user_id)
        if user is None:
            user = User(id=user_id, email=email, name=name)
            session.add(user)
            logger.info("Created user %s", user_id)
        else:
            user.email = email
            user.name = name
    return user

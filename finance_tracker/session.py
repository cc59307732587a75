"""Explicit auth session object.

Callers hold a ``SessionManager`` instead of reading global auth state. Change
events are delivered one at a time in the order they happened: if a handler
changes the session while it runs, the new event is queued and delivered once
the current round of handlers has finished.

This module is library API for embedding callers (a desktop shell or a
script that drives sign-in itself); the HTTP app in ``webapp`` does not
import it.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from .errors import ConflictError
from .users import upsert_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.metadata.get("name") or self.email.split("@")[0]


@dataclass(frozen=True)
class SessionEvent:
    name: str  # "signed_in" | "signed_out"
    user: Optional[SessionUser]


Handler = Callable[[SessionEvent], None]


class SessionManager:
    def __init__(self) -> None:
        self._user: Optional[SessionUser] = None
        self._handlers: List[Handler] = []
        self._pending: Deque[SessionEvent] = deque()
        self._state_lock = threading.Lock()
        self._dispatch_lock = threading.RLock()
        self._dispatching = False

    @property
    def current(self) -> Optional[SessionUser]:
        return self._user

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        with self._state_lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._state_lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def set_session(self, user: Optional[SessionUser]) -> None:
        with self._state_lock:
            self._user = user
            self._pending.append(SessionEvent("signed_in" if user else "signed_out", user))
        self._drain()

    def clear(self) -> None:
        self.set_session(None)

    def _drain(self) -> None:
        with self._dispatch_lock:
            # Re-entrant call from inside a handler: the outer loop delivers it.
            if self._dispatching:
                return
            self._dispatching = True
            try:
                while True:
                    with self._state_lock:
                        if not self._pending:
                            return
                        event = self._pending.popleft()
                        handlers = list(self._handlers)
                    for handler in handlers:
                        handler(event)
            finally:
                self._dispatching = False


def sync_user_record(event: SessionEvent) -> None:
    """Session handler that mirrors the signed-in user into the store."""
    if event.user is None:
        return
    try:
        upsert_user(event.user.id, event.user.email, event.user.display_name)
    except ConflictError:
        # Created concurrently by another request; the record exists.
        logger.info("User %s already exists", event.user.id)

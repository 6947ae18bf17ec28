"""In-memory store of open report drafts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .types import Draft, DraftKey

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftSessionStore:
    """
    Open drafts keyed by (owner, context).

    - one draft per key; ``set`` replaces whatever was there
    - expiry is lazy: ``get`` hides an expired draft but leaves it in place
      so the caller can tell the owner it expired before purging it
    - no locking, all access happens on the bot's event loop
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=15), clock: Callable[[], datetime] = utcnow):
        self.ttl = ttl
        self._clock = clock
        self._items: dict[DraftKey, Draft] = {}

    def __len__(self) -> int:
        return len(self._items)

    def now(self) -> datetime:
        return self._clock()

    def expiry_from_now(self) -> datetime:
        return self._clock() + self.ttl

    def peek(self, key: DraftKey) -> Draft | None:
        """Stored draft for ``key`` even if it has expired."""
        return self._items.get(key)

    def get(self, key: DraftKey) -> Draft | None:
        draft = self._items.get(key)
        if draft is None or self._expired(draft):
            return None
        return draft

    def is_expired(self, key: DraftKey) -> bool:
        draft = self._items.get(key)
        return draft is not None and self._expired(draft)

    def set(self, key: DraftKey, draft: Draft) -> None:
        previous = self._items.get(key)
        if previous is not None and previous is not draft:
            logger.info(f"Discarding previous draft {previous.case_number} for {key}")
        self._items[key] = draft

    def touch(self, key: DraftKey) -> None:
        draft = self._items.get(key)
        if draft is not None:
            draft.expires_at = self.expiry_from_now()

    def delete(self, key: DraftKey) -> None:
        self._items.pop(key, None)

    def _expired(self, draft: Draft) -> bool:
        return self._clock() > draft.expires_at

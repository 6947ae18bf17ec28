"""Cached option lists for the location and event-type pickers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from mdt_reports.core.protocols import SheetStore

logger = logging.getLogger(__name__)

MAX_OPTIONS = 25  # Discord select menu limit


class LookupLists:
    """Reads one column per list from the lists tab, caching each for ``ttl_seconds``."""

    def __init__(
        self,
        sheets: SheetStore,
        table: str,
        ranges: dict[str, str],
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sheets = sheets
        self.table = table
        self.ranges = ranges
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._items: dict[str, tuple[float, list[str]]] = {}

    @classmethod
    def from_settings(cls, settings, sheets: SheetStore) -> "LookupLists":
        return cls(
            sheets,
            settings.lists_tab,
            {"location": settings.locations_range, "event_type": settings.event_types_range},
            ttl_seconds=settings.lookup_cache_seconds,
        )

    def options(self, name: str) -> list[str]:
        if name not in self.ranges:
            raise KeyError(f"No lookup list named {name!r}")

        with self._lock:
            cached = self._items.get(name)
            if cached is not None and self._clock() - cached[0] < self.ttl_seconds:
                return list(cached[1])

        values = unique_options(self.sheets.read_column(self.table, self.ranges[name]))
        logger.info(f"Loaded {len(values)} {name} options from {self.table}")

        with self._lock:
            self._items[name] = (self._clock(), values)
        return list(values)

    def locations(self) -> list[str]:
        return self.options("location")

    def event_types(self) -> list[str]:
        return self.options("event_type")


def unique_options(values: list[str], limit: int = MAX_OPTIONS) -> list[str]:
    seen: set[str] = set()
    options: list[str] = []
    for value in values:
        text = (value or "").strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        options.append(text)
        if len(options) >= limit:
            break
    return options

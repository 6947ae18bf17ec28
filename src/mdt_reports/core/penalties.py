"""Penalty reference table and charge aggregation."""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from .types import PenaltyRecord, PenaltyTotals

if TYPE_CHECKING:
    from .protocols import SheetStore

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"[^\d.\-]")
PAGE_SIZE = 25


class PenaltyIndex:
    """Immutable lookup over one fetch of the penalty table."""

    def __init__(self, records: Iterable[PenaltyRecord]):
        self.records: tuple[PenaltyRecord, ...] = tuple(records)
        self.by_code: dict[str, PenaltyRecord] = {}
        self.by_name: dict[str, PenaltyRecord] = {}
        groups: dict[str, list[PenaltyRecord]] = {}

        for record in self.records:
            self.by_code.setdefault(record.code.lower(), record)
            self.by_name.setdefault(record.name.lower(), record)
            groups.setdefault(record.group, []).append(record)

        self._groups = {
            key: tuple(sorted(items, key=_code_sort_key))
            for key, items in sorted(groups.items(), key=lambda item: _code_sort_key_text(item[0]))
        }

    def __len__(self) -> int:
        return len(self.records)

    def resolve(self, token: str) -> PenaltyRecord | None:
        text = token.strip().lower()
        if not text:
            return None
        if text.isdigit():
            return self.by_code.get(text)
        return self.by_name.get(text)

    def groups(self) -> list[str]:
        return list(self._groups)

    def group(self, key: str) -> tuple[PenaltyRecord, ...]:
        return self._groups.get(key, ())

    def page(self, key: str, page: int = 0, size: int = PAGE_SIZE) -> tuple[PenaltyRecord, ...]:
        records = self.group(key)
        start = max(page, 0) * size
        return records[start:start + size]

    def page_count(self, key: str, size: int = PAGE_SIZE) -> int:
        return max(1, -(-len(self.group(key)) // size))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[str]]) -> "PenaltyIndex":
        """Build an index from sheet rows: code, name, description, jail minutes, fine."""
        records: list[PenaltyRecord] = []
        for row in rows:
            cells = [str(cell).strip() for cell in row] + [""] * 5
            code, name, description, jail, fine = cells[:5]
            if not code or not name:
                continue
            records.append(
                PenaltyRecord(
                    code=code,
                    name=name,
                    description=description,
                    jail_minutes=int(parse_amount(jail)),
                    fine=parse_amount(fine),
                )
            )
        return cls(records)


def parse_amount(value: str | None) -> Decimal:
    """Parse a sheet amount such as ``"$1,200"`` or ``"30 min"``; blanks and junk are 0."""
    text = NUMBER_RE.sub("", value or "")
    if not text:
        return Decimal(0)
    try:
        return Decimal(text)
    except InvalidOperation:
        logger.debug(f"Unparseable penalty amount: {value!r}")
        return Decimal(0)


def split_charges(charge_text: str | None) -> list[str]:
    """Split a comma-separated charge list, dropping blanks and case-insensitive repeats."""
    seen: set[str] = set()
    tokens: list[str] = []
    for raw in (charge_text or "").split(","):
        token = raw.strip()
        folded = token.lower()
        if not token or folded in seen:
            continue
        seen.add(folded)
        tokens.append(token)
    return tokens


def aggregate(index: PenaltyIndex, charge_text: str | None) -> PenaltyTotals:
    totals = PenaltyTotals()
    counted: set[str] = set()

    for token in split_charges(charge_text):
        record = index.resolve(token)
        if record is None:
            totals.unknown.append(token)
            continue
        # a code and its offence name are the same charge
        if record.code in counted:
            continue
        counted.add(record.code)
        totals.fine += record.fine
        totals.jail_minutes += record.jail_minutes
        totals.found.append(record.display())

    return totals


def merge_charges(charge_text: str | None, additions: Iterable[str]) -> str:
    """Append picked charges to the free-text list, skipping ones already present."""
    tokens = split_charges(charge_text)
    present = {token.lower() for token in tokens}
    for item in additions:
        item = item.strip()
        if item and item.lower() not in present:
            present.add(item.lower())
            tokens.append(item)
    return ", ".join(tokens)


class PenaltyCatalog:
    """Loads the penalty table from the spreadsheet and caches the index."""

    def __init__(
        self,
        sheets: "SheetStore",
        table: str,
        range_spec: str,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sheets = sheets
        self.table = table
        self.range_spec = range_spec
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._index: PenaltyIndex | None = None
        self._loaded_at = 0.0

    def get(self) -> PenaltyIndex:
        with self._lock:
            now = self._clock()
            if self._index is not None and now - self._loaded_at < self.ttl_seconds:
                return self._index

        rows = self.sheets.read_rows(self.table, self.range_spec)
        index = PenaltyIndex.from_rows(rows)
        logger.info(f"Loaded {len(index)} penalty records from {self.table}")

        with self._lock:
            self._index = index
            self._loaded_at = self._clock()
        return index

    def invalidate(self) -> None:
        with self._lock:
            self._index = None


def _code_sort_key(record: PenaltyRecord) -> tuple[int, str]:
    return _code_sort_key_text(record.code)


def _code_sort_key_text(code: str) -> tuple[int, str]:
    digits = "".join(ch for ch in code if ch.isdigit())
    return (int(digits) if digits else 0, code)

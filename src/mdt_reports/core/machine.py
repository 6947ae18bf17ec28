"""Draft lifecycle transitions.

Every user action on a draft is an ``Event``. ``step`` looks the
(status, event) pair up in ``TRANSITIONS`` and returns the next status and
the side effects the controller must run, in order. Pairs missing from the
table are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidTransition
from .types import DraftStatus


class Event(str, Enum):
    EDIT = "edit"
    QUICK_PICK = "quick_pick"
    REGENERATE = "regenerate"
    CONFIRM = "confirm"
    COMMIT_OK = "commit_ok"
    COMMIT_FAILED = "commit_failed"
    CANCEL = "cancel"
    EXPIRE = "expire"


class Effect(str, Enum):
    APPLY_CHANGES = "apply_changes"
    RECOMPUTE_TOTALS = "recompute_totals"
    REFRESH_PREVIEW = "refresh_preview"
    ALLOCATE = "allocate"
    PERSIST = "persist"
    FINALIZE_PREVIEW = "finalize_preview"
    DISCARD = "discard"
    AUDIT = "audit"
    NOTIFY = "notify"


@dataclass(slots=True, frozen=True)
class Step:
    status: DraftStatus
    effects: tuple[Effect, ...]


OPEN = DraftStatus.OPEN
AWAITING = DraftStatus.AWAITING_CONFIRMATION

_MUTATE = (Effect.APPLY_CHANGES, Effect.RECOMPUTE_TOTALS, Effect.REFRESH_PREVIEW)

TRANSITIONS: dict[tuple[DraftStatus, Event], Step] = {
    (OPEN, Event.EDIT): Step(OPEN, _MUTATE),
    (OPEN, Event.QUICK_PICK): Step(OPEN, _MUTATE),
    (OPEN, Event.REGENERATE): Step(OPEN, (Effect.RECOMPUTE_TOTALS, Effect.REFRESH_PREVIEW)),
    (OPEN, Event.CONFIRM): Step(AWAITING, (Effect.ALLOCATE, Effect.PERSIST)),
    (AWAITING, Event.COMMIT_OK): Step(
        DraftStatus.COMMITTED,
        (Effect.DISCARD, Effect.FINALIZE_PREVIEW, Effect.NOTIFY, Effect.AUDIT),
    ),
    (AWAITING, Event.COMMIT_FAILED): Step(OPEN, (Effect.NOTIFY, Effect.AUDIT)),
    (OPEN, Event.CANCEL): Step(
        DraftStatus.CANCELED,
        (Effect.DISCARD, Effect.FINALIZE_PREVIEW, Effect.NOTIFY, Effect.AUDIT),
    ),
    (OPEN, Event.EXPIRE): Step(DraftStatus.EXPIRED, (Effect.DISCARD, Effect.NOTIFY)),
    (AWAITING, Event.EXPIRE): Step(DraftStatus.EXPIRED, (Effect.DISCARD, Effect.NOTIFY)),
}


def step(status: DraftStatus, event: Event) -> Step:
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        if status is AWAITING:
            raise InvalidTransition("This report is already being submitted.") from None
        raise InvalidTransition(f"Cannot {event.value.replace('_', ' ')} a {status.value} report.") from None

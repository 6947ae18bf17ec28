from datetime import date, timedelta

from conftest import Clock
from mdt_reports.core.sessions import DraftSessionStore
from mdt_reports.core.types import ArrestFields, Draft, DraftKey, ReportType

KEY = DraftKey(owner_id=1, context_id=100)


def make_store(clock):
    return DraftSessionStore(ttl=timedelta(minutes=15), clock=clock)


def make_draft(store, owner_id=1, context_id=100, case_number="AL-20250615-1000"):
    return Draft(
        owner_id=owner_id,
        context_id=context_id,
        report_type=ReportType.ARREST_LOG,
        case_number=case_number,
        sequence=1000,
        created_on=date(2025, 6, 15),
        fields=ArrestFields("Ofc. Reyes", "John Doe", "101", "Legion Square", "Radar"),
        expires_at=store.expiry_from_now(),
    )


def test_set_get_delete():
    store = make_store(Clock())
    draft = make_draft(store)

    store.set(KEY, draft)
    assert store.get(KEY) is draft
    assert store.get(DraftKey(2, 100)) is None

    store.delete(KEY)
    assert store.get(KEY) is None
    store.delete(KEY)


def test_expired_draft_is_absent_but_detectable():
    clock = Clock()
    store = make_store(clock)
    draft = make_draft(store)
    store.set(KEY, draft)
    draft.fields.charges = "201"

    clock.advance(minutes=15)
    assert store.get(KEY) is draft

    clock.advance(seconds=1)
    assert store.get(KEY) is None
    assert store.is_expired(KEY)
    assert store.peek(KEY) is draft
    assert len(store) == 1


def test_new_draft_replaces_previous_for_same_key():
    store = make_store(Clock())
    old = make_draft(store)
    new = make_draft(store, case_number="AL-20250615-1001")

    store.set(KEY, old)
    store.set(KEY, new)

    assert store.get(KEY) is new
    assert len(store) == 1


def test_keys_are_independent_per_context():
    store = make_store(Clock())
    first = make_draft(store)
    other_guild = make_draft(store, context_id=200)

    store.set(first.key, first)
    store.set(other_guild.key, other_guild)

    assert store.get(DraftKey(1, 100)) is first
    assert store.get(DraftKey(1, 200)) is other_guild


def test_touch_slides_expiry():
    clock = Clock()
    store = make_store(clock)
    draft = make_draft(store)
    store.set(KEY, draft)

    clock.advance(minutes=10)
    store.touch(KEY)
    clock.advance(minutes=10)

    assert store.get(KEY) is draft

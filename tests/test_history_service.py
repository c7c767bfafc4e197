import threading
from datetime import datetime, timezone

import pytest

from cliphistory.clipboard import describe_image
from cliphistory.errors import EntryNotFoundError
from cliphistory.models import ClipKind, EventKind, Outcome
from cliphistory.services import ClipboardHistory


def contents(history):
    return [entry.content for entry in history.query()]


def assert_ordered(entries):
    flags = [e.starred for e in entries]
    assert flags == sorted(flags, reverse=True)
    for group in (True, False):
        times = [e.captured_at for e in entries if e.starred is group]
        assert times == sorted(times, reverse=True)


def test_capture_creates_unstarred_entry(history):
    result = history.capture("hello")

    assert result.outcome == Outcome.CREATED
    assert result.changed and result.persisted
    entry = result.entry
    assert entry.content == "hello"
    assert entry.kind == ClipKind.TEXT
    assert entry.payload is None
    assert entry.starred is False
    assert entry.entry_id.startswith("i_")


def test_duplicate_capture_is_a_noop(history):
    history.capture("hello", ClipKind.TEXT)
    second = history.capture("hello", ClipKind.TEXT)

    assert second.outcome == Outcome.DUPLICATE
    assert second.entry is None
    assert not second.changed
    assert contents(history) == ["hello"]


def test_same_content_different_kind_is_not_a_duplicate(history):
    history.capture("Image (2x2)", ClipKind.TEXT)
    result = history.capture("Image (2x2)", ClipKind.IMAGE, b"\x89PNG")

    assert result.outcome == Outcome.CREATED
    assert len(history) == 2


def test_duplicate_detected_anywhere_in_history(history):
    for text in ("a", "b", "c"):
        history.capture(text)

    assert history.capture("a").outcome == Outcome.DUPLICATE
    assert contents(history) == ["c", "b", "a"]


def test_empty_content_is_accepted(history):
    assert history.capture("").outcome == Outcome.CREATED
    assert history.capture("").outcome == Outcome.DUPLICATE


def test_newest_capture_goes_first_after_starred(history):
    a = history.capture("a").entry
    history.capture("b")
    history.toggle_starred(a.entry_id)
    history.capture("c")

    assert contents(history) == ["a", "c", "b"]
    assert_ordered(history.query())


def test_ids_are_unique(history):
    ids = {history.capture(str(i)).entry.entry_id for i in range(50)}
    assert len(ids) == 50


def test_timestamps_strictly_increase_with_a_frozen_clock(storage):
    frozen = datetime(2026, 5, 1, tzinfo=timezone.utc)
    history = ClipboardHistory(storage, clock=lambda: frozen)
    first = history.capture("a").entry
    second = history.capture("b").entry

    assert second.captured_at > first.captured_at
    assert contents(history) == ["b", "a"]


def test_eviction_keeps_most_recent(storage, clock):
    history = ClipboardHistory(storage, max_entries=3, clock=clock)
    for text in ("a", "b", "c"):
        history.capture(text)

    result = history.capture("d")

    assert [e.content for e in result.evicted] == ["a"]
    assert contents(history) == ["d", "c", "b"]
    assert len(storage.records) == 3


def test_eviction_trims_by_position_even_when_tail_is_starred(storage, clock):
    history = ClipboardHistory(storage, max_entries=2, clock=clock)
    a = history.capture("a").entry
    b = history.capture("b").entry
    history.toggle_starred(a.entry_id)
    history.toggle_starred(b.entry_id)

    result = history.capture("c")

    # both slots are held by starred entries, so the new clip falls off the tail
    assert result.outcome == Outcome.CREATED
    assert [e.content for e in result.evicted] == ["c"]
    assert contents(history) == ["b", "a"]
    assert result.entry.entry_id not in storage.records


def test_length_never_exceeds_cap(storage, clock):
    history = ClipboardHistory(storage, max_entries=5, clock=clock)
    for i in range(20):
        history.capture(f"clip {i}")
        if i % 3 == 0:
            history.toggle_starred(history.query()[-1].entry_id)
        assert len(history) <= 5
        assert_ordered(history.query())


def test_delete_removes_entry(history, storage):
    entry = history.capture("a").entry
    history.capture("b")

    result = history.delete(entry.entry_id)

    assert result.outcome == Outcome.DELETED
    assert result.entry == entry
    assert contents(history) == ["b"]
    assert entry.entry_id not in storage.records


def test_delete_unknown_id_is_not_an_error(history):
    history.capture("a")

    result = history.delete("i_missing")

    assert result.outcome == Outcome.NOT_FOUND
    assert not result.changed
    assert len(history) == 1


def test_deleted_content_can_be_captured_again(history):
    entry = history.capture("a").entry
    history.delete(entry.entry_id)

    assert history.capture("a").outcome == Outcome.CREATED


def test_clear_all(history, storage):
    for text in ("a", "b"):
        history.capture(text)

    result = history.clear_all()

    assert result.outcome == Outcome.CLEARED
    assert history.query() == []
    assert storage.records == {}


def test_star_moves_entry_to_front(history):
    a = history.capture("a").entry
    history.capture("b")

    result = history.toggle_starred(a.entry_id)

    assert result.outcome == Outcome.UPDATED
    assert result.entry.starred is True
    entries = history.query()
    assert [e.content for e in entries] == ["a", "b"]
    assert entries[0].starred is True
    assert entries[1].starred is False


def test_star_is_persisted(history, storage):
    a = history.capture("a").entry
    history.toggle_starred(a.entry_id)

    assert storage.records[a.entry_id].starred is True


def test_unstar_returns_entry_to_its_chronological_slot(history):
    for text in ("a", "b", "c", "d"):
        history.capture(text)
    b = history.query("b")[0]

    history.toggle_starred(b.entry_id)
    assert contents(history) == ["b", "d", "c", "a"]

    history.toggle_starred(b.entry_id)
    assert contents(history) == ["d", "c", "b", "a"]


def test_toggle_is_self_inverse_among_starred_peers(history):
    for text in ("a", "b", "c"):
        history.capture(text)
    for entry in history.query():
        history.toggle_starred(entry.entry_id)
    before = history.query()

    middle = before[1]
    history.toggle_starred(middle.entry_id)
    history.toggle_starred(middle.entry_id)

    assert history.query() == before
    assert_ordered(history.query())


def test_starred_entries_are_ordered_newest_first(history):
    for text in ("a", "b", "c"):
        history.capture(text)
    for text in ("a", "c", "b"):
        history.toggle_starred(history.query(text)[0].entry_id)

    assert contents(history) == ["c", "b", "a"]
    assert all(e.starred for e in history.query())


def test_toggle_unknown_id_raises(history):
    history.capture("a")

    with pytest.raises(EntryNotFoundError) as excinfo:
        history.toggle_starred("i_missing")

    assert excinfo.value.entry_id == "i_missing"
    assert contents(history) == ["a"]


def test_restore_text_places_content_on_clipboard(history, clipboard):
    entry = history.capture("hello").entry
    history.capture("other")

    result = history.restore(entry.entry_id)

    assert result.outcome == Outcome.RESTORED
    assert clipboard.text == "hello"
    assert contents(history) == ["other", "hello"]


def test_restore_image_places_payload_on_clipboard(history, clipboard):
    description = describe_image(640, 480)
    entry = history.capture(description, ClipKind.IMAGE, b"\x89PNG...").entry

    history.restore(entry.entry_id)

    assert clipboard.image.payload == b"\x89PNG..."
    assert clipboard.image.content == "Image (640x480)"


def test_restore_image_without_payload_is_rejected(history):
    entry = history.capture("Image (1x1)", ClipKind.IMAGE).entry

    assert history.restore(entry.entry_id).outcome == Outcome.REJECTED


def test_restore_without_sink_is_rejected(storage, clock):
    history = ClipboardHistory(storage, clock=clock)
    entry = history.capture("a").entry

    result = history.restore(entry.entry_id)

    assert result.outcome == Outcome.REJECTED
    assert result.entry == entry


def test_restore_unknown_id_raises(history):
    with pytest.raises(EntryNotFoundError):
        history.restore("i_missing")


def test_query_filters_case_insensitively_preserving_order(history):
    for text in ("Hello world", "goodbye", "say HELLO"):
        history.capture(text)

    assert [e.content for e in history.query("hello")] == ["say HELLO", "Hello world"]
    assert history.query("nothing") == []
    assert len(history.query("")) == 3


def test_query_returns_a_copy(history):
    history.capture("a")
    history.query().clear()

    assert len(history) == 1


def test_set_max_entries_trims_immediately(history, storage):
    for text in ("c", "b", "a"):
        history.capture(text)

    result = history.set_max_entries(1)

    assert result.outcome == Outcome.CONFIGURED
    assert [e.content for e in result.evicted] == ["b", "c"]
    assert contents(history) == ["a"]
    assert len(storage.records) == 1


def test_set_max_entries_keeps_starred_first(history):
    c = history.capture("c").entry
    history.capture("b")
    history.capture("a")
    history.toggle_starred(c.entry_id)

    history.set_max_entries(1)

    assert contents(history) == ["c"]


@pytest.mark.parametrize("value", [0, -1, 2.5, True])
def test_set_max_entries_rejects_invalid_values(history, value):
    with pytest.raises(ValueError):
        history.set_max_entries(value)


def test_set_poll_interval(history):
    history.set_poll_interval(2)

    assert history.poll_interval == 2.0
    with pytest.raises(ValueError):
        history.set_poll_interval(0)
    with pytest.raises(ValueError):
        history.set_poll_interval(float("inf"))
    assert history.poll_interval == 2.0


def test_get_and_contains(history):
    entry = history.capture("a").entry

    assert history.get(entry.entry_id) == entry
    assert entry.entry_id in history
    assert "i_missing" not in history
    with pytest.raises(EntryNotFoundError):
        history.get("i_missing")


def test_subscribers_receive_events(history):
    events = []
    unsubscribe = history.subscribe(events.append)

    a = history.capture("a").entry
    history.capture("a")
    history.toggle_starred(a.entry_id)
    history.toggle_starred(a.entry_id)
    history.restore(a.entry_id)
    history.delete(a.entry_id)
    history.clear_all()
    unsubscribe()
    history.capture("b")

    assert [e.kind for e in events] == [
        EventKind.CAPTURED,
        EventKind.STARRED,
        EventKind.UNSTARRED,
        EventKind.RESTORED,
        EventKind.DELETED,
        EventKind.CLEARED,
    ]


def test_eviction_emits_events(storage, clock):
    history = ClipboardHistory(storage, max_entries=1, clock=clock)
    events = []
    history.subscribe(events.append)

    history.capture("a")
    history.capture("b")

    assert [(e.kind, e.entry.content) for e in events] == [
        (EventKind.CAPTURED, "a"),
        (EventKind.CAPTURED, "b"),
        (EventKind.EVICTED, "a"),
    ]


def test_failing_listener_does_not_break_store(history, caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    history.subscribe(broken)
    history.subscribe(received.append)

    result = history.capture("a")

    assert result.outcome == Outcome.CREATED
    assert len(received) == 1
    assert "History listener failed" in caplog.text


def test_concurrent_captures_preserve_invariants(storage):
    history = ClipboardHistory(storage, max_entries=25)

    def worker(prefix):
        for i in range(40):
            result = history.capture(f"{prefix}-{i % 30}")
            if result.entry is not None and i % 7 == 0:
                try:
                    history.toggle_starred(result.entry.entry_id)
                except EntryNotFoundError:
                    pass  # evicted by another thread

    threads = [threading.Thread(target=worker, args=(name,)) for name in "abcd"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    entries = history.query()
    assert len(entries) <= 25
    assert len({(e.content, e.kind) for e in entries}) == len(entries)
    assert_ordered(entries)

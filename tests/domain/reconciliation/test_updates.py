from __future__ import annotations

from datetime import timedelta

from entrysync.domain.reconciliation import ItemOutcome
from tests.helpers.receiver import (
    NOW,
    FakeStore,
    FakeUnitOfWork,
    make_entry,
    make_harness,
    make_incoming,
    words,
)


def _store() -> FakeStore:
    store = FakeStore()
    store.add_feed()
    store.subscribe(1)
    store.subscribe(2)
    return store


def test_small_update_rewrites_entry_without_notifying() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content="X"))
    harness = make_harness()
    uow = FakeUnitOfWork(store)

    outcome, notified = harness.reconciler.updates.apply(
        uow, entry, make_incoming(content="X and a bit", title="Edited")
    )

    assert outcome is ItemOutcome.UPDATED
    assert notified == 0
    assert entry.content == "X and a bit"
    assert entry.title == "Edited"
    assert entry.summary == "X and a bit"
    assert entry.original is not None
    assert entry.original.content == "X"
    assert store.updated == []
    assert harness.metrics.counts["entry.update"] == 1
    assert "entry.update_big" not in harness.metrics.counts
    assert uow.commits == 1


def test_significant_update_notifies_subscribers() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content="X"))
    harness = make_harness()

    outcome, notified = harness.reconciler.updates.apply(
        FakeUnitOfWork(store), entry, make_incoming(content="X" + words(51))
    )

    assert outcome is ItemOutcome.UPDATED
    assert notified == 2
    assert store.markers_for(entry) == [1, 2]
    assert harness.metrics.counts["entry.update_big"] == 1
    assert harness.metrics.counts["entry.update"] == 1


def test_equal_length_update_counts_as_no_change() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content="abc"))
    harness = make_harness()

    harness.reconciler.updates.apply(FakeUnitOfWork(store), entry, make_incoming(content="xyz"))

    assert harness.metrics.counts["entry.no_change"] == 1
    assert harness.metrics.counts["entry.update"] == 1
    assert entry.content == "xyz"


def test_stale_entry_is_left_alone() -> None:
    store = _store()
    entry = store.add_entry(
        make_entry(content="X", published=NOW - timedelta(days=30)),
    )
    harness = make_harness()
    uow = FakeUnitOfWork(store)

    outcome, notified = harness.reconciler.updates.apply(
        uow, entry, make_incoming(content="X" + words(200))
    )

    assert outcome is ItemOutcome.STALE
    assert notified == 0
    assert entry.content == "X"
    assert entry.original is None
    assert uow.commits == 0
    assert harness.metrics.counts == {}


def test_update_of_empty_entry_does_not_notify() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content=""))
    harness = make_harness()

    _, notified = harness.reconciler.updates.apply(
        FakeUnitOfWork(store), entry, make_incoming(content=words(400))
    )

    assert notified == 0
    assert entry.original is None
    assert store.updated == []


def test_snapshot_survives_repeated_updates() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content="first", title="First"))
    harness = make_harness()

    for version in ("second", "third"):
        harness.reconciler.updates.apply(
            FakeUnitOfWork(store), entry, make_incoming(content=version, title=version)
        )

    assert entry.original is not None
    assert entry.original.content == "first"
    assert entry.original.title == "First"
    assert entry.content == "third"


def test_fanout_failure_keeps_committed_update() -> None:
    store = _store()
    entry = store.add_entry(make_entry(content="X"))
    harness = make_harness()
    uow = FakeUnitOfWork(store, fail_markers=True)

    outcome, notified = harness.reconciler.updates.apply(
        uow, entry, make_incoming(content="X" + words(100))
    )

    assert outcome is ItemOutcome.UPDATED
    assert notified == 0
    assert entry.content == "X" + words(100)
    assert uow.commits == 1
    assert uow.rollbacks == 1
    assert harness.errors.categories == ["reconcile.fanout"]
    assert harness.metrics.counts["entry.update"] == 1


def test_update_keeps_posts_threaded_into_the_entry() -> None:
    store = _store()
    parent = store.add_entry(make_entry("root", content="X"))
    harness = make_harness()
    uow = FakeUnitOfWork(store)
    reply = make_incoming("reply", data={"in_reply_to": "upstream-root"})
    harness.reconciler.threads.thread(uow, reply, store.feeds[1])

    for version in ("X edited", "X edited again"):
        harness.reconciler.updates.apply(
            uow, parent, make_incoming("root", content=version, data={"tags": ["new"]})
        )

    assert [post["public_id"] for post in parent.thread] == ["reply"]
    assert parent.data["tags"] == ["new"]
    assert parent.thread_tip == "upstream-reply"

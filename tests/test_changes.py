from __future__ import annotations

import pytest

from quickassist.changes import ChangeKind, PendingChanges, PendingDelete, PendingReplace, StaleChange, UnknownChange
from quickassist.reconciler import parse_candidates


def test_delete_needs_commit(store) -> None:
    changes = PendingChanges(store)
    change = changes.propose_delete(1702)

    assert change.kind is ChangeKind.DELETE
    assert len(store) == 3

    outcome = changes.commit(change.token)
    assert outcome.deleted is True
    assert store.ids() == {1701, 1703}


def test_discard_is_noop(store, memory_snapshots) -> None:
    changes = PendingChanges(store)
    change = changes.propose_delete(1701)

    assert changes.discard(change.token) is True
    assert changes.discard(change.token) is False
    assert len(store) == 3
    assert memory_snapshots.writes == 0
    with pytest.raises(UnknownChange):
        changes.commit(change.token)


def test_propose_delete_unknown_id_is_noop(store, memory_snapshots) -> None:
    changes = PendingChanges(store)
    change = changes.propose_delete(12345)

    assert isinstance(change, PendingDelete)
    assert change.describe()["recordId"] == 12345
    assert changes.commit(change.token).deleted is False
    assert len(store) == 3
    assert memory_snapshots.writes == 0


def test_tokens_are_single_use(store) -> None:
    changes = PendingChanges(store)
    change = changes.propose_delete(1701)
    changes.commit(change.token)
    with pytest.raises(UnknownChange):
        changes.commit(change.token)


def test_delete_commit_after_record_vanished_is_noop(store) -> None:
    changes = PendingChanges(store)
    first = changes.propose_delete(1703)
    second = changes.propose_delete(1703)
    changes.commit(first.token)

    outcome = changes.commit(second.token)
    assert outcome.deleted is False
    assert store.ids() == {1701, 1702}


def test_replace_commit_swaps_catalog(store) -> None:
    changes = PendingChanges(store)
    candidates = parse_candidates('[{"id": 1, "title": "Only", "text": "one"}]')
    change = changes.propose_replace(candidates)

    assert change.describe()["incoming"] == 1
    assert len(store) == 3

    outcome = changes.commit(change.token)
    assert [record.id for record in store.list()] == [1]
    assert outcome.as_dict()["total"] == 1


def test_stale_replace_is_refused(store) -> None:
    changes = PendingChanges(store)
    change = changes.propose_replace(parse_candidates("[]"))
    store.create("Newer", "edit made after the proposal")

    with pytest.raises(StaleChange):
        changes.commit(change.token)
    assert len(store) == 4


def test_replace_proposal_has_its_own_type(store) -> None:
    change = PendingChanges(store).propose_replace(parse_candidates("[]"))
    assert isinstance(change, PendingReplace)
    assert change.kind is ChangeKind.IMPORT_REPLACE
    assert change.describe()["rejected"] == 0


def test_open_proposals_are_bounded(store) -> None:
    changes = PendingChanges(store, max_open=3)
    tokens = [changes.propose_delete(1701).token for _ in range(5)]

    assert len(changes) == 3
    with pytest.raises(UnknownChange):
        changes.get(tokens[0])
    assert changes.get(tokens[-1]).token == tokens[-1]


def test_stale_replace_proposals_are_pruned(store) -> None:
    changes = PendingChanges(store)
    stale = changes.propose_replace(parse_candidates("[]"))
    store.create("Newer", "edit")

    changes.propose_delete(1701)
    assert len(changes) == 1
    with pytest.raises(UnknownChange):
        changes.get(stale.token)

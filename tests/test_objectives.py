import pytest

from scorekeeper.scoring.objectives import Objective, ObjectiveStore


def _store():
    return ObjectiveStore.from_objectives(
        [
            Objective("count", default=0, min=0, max=3),
            Objective("free", default=None),
            Objective("floor", default=5, min=2),
        ]
    )


def test_inc_clamps_to_max():
    store = _store()
    store.inc("count")
    store.inc("count", 5)
    assert store.value("count") == 3


def test_inc_unbounded_from_unset():
    store = _store()
    store.inc("free")
    store.inc("free", 2)
    assert store.value("free") == 3


def test_dec_clamps_to_min():
    store = _store()
    store.dec("floor", 10)
    assert store.value("floor") == 2
    store.dec("free")
    assert store.value("free") == 0


def test_subscribers_notified_on_change_only():
    store = _store()
    seen = []
    unsubscribe = store.subscribe("count", seen.append)
    store.inc("count")
    store.set("count", 1)
    store.inc("free")
    unsubscribe()
    store.inc("count")
    assert seen == ["count"]


def test_reset_restores_defaults():
    store = _store()
    store.inc("count")
    store.set("floor", 9)
    store.reset()
    assert store.snapshot() == {"count": 0, "free": None, "floor": 5}


def test_unknown_objective():
    store = _store()
    with pytest.raises(KeyError):
        store.inc("nope")
    with pytest.raises(KeyError):
        store.subscribe("nope", lambda name: None)

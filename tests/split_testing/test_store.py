"""Tests for the in-memory experiment store."""
from src.split_testing.manager import ExperimentManager
from src.split_testing.store import InMemoryExperimentStore


def test_store_roundtrip():
    """put/get/list/delete by experiment id."""
    store = InMemoryExperimentStore()
    manager = ExperimentManager(store=store)
    exp = manager.create_experiment(
        "t", "c", [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}], "clicks"
    )
    assert store.get(exp.id) is exp
    assert store.list() == [exp]
    assert store.delete(exp.id)
    assert store.get(exp.id) is None
    assert not store.delete(exp.id)


def test_managers_do_not_share_state():
    """Each manager gets its own store by default."""
    m1, m2 = ExperimentManager(), ExperimentManager()
    m1.create_experiment("t", "c", [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}], "clicks")
    assert len(m1.list_experiments()) == 1
    assert m2.list_experiments() == []

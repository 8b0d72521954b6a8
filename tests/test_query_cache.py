from unittest.mock import MagicMock

import pytest

from procedures import ProcedureError
from query_cache import Mutation, QueryCache, query_key


def test_query_key_ignores_none_params_and_order():
    assert query_key("p", a=1, b=None) == query_key("p", a=1)
    assert query_key("p", a=1, b=2) == query_key("p", b=2, a=1)
    assert query_key("p", a=1) != query_key("q", a=1)

def test_fetch_caches_until_invalidated(cache):
    loader = MagicMock(side_effect=["first", "second"])
    key = query_key("p", x=1)
    assert cache.fetch(key, loader) == "first"
    assert cache.fetch(key, loader) == "first"
    assert loader.call_count == 1

    assert cache.invalidate(key) == 1
    assert cache.fetch(key, loader) == "second"

def test_invalidate_by_procedure(cache):
    cache.set_data(query_key("a", n=1), 1)
    cache.set_data(query_key("a", n=2), 2)
    cache.set_data(query_key("b"), 3)
    assert cache.invalidate(procedure="a") == 2
    assert cache.invalidate() == 3

def test_failed_fetch_records_error_and_keeps_data(cache):
    key = query_key("p")
    cache.set_data(key, "old")
    cache.invalidate(key)
    with pytest.raises(ProcedureError):
        cache.fetch(key, MagicMock(side_effect=ProcedureError("Failed")))
    assert str(cache.get_error(key)) == "Failed"
    assert cache.get_data(key) == "old"
    assert not cache.is_fetching(key)
    # an error entry is retried on the next read
    assert cache.fetch(key, lambda: "new") == "new"
    assert cache.get_error(key) is None

def test_set_data_marks_fresh(cache):
    key = query_key("p")
    cache.set_data(key, [1, 2])
    assert cache.fetch(key, MagicMock(side_effect=AssertionError("should not load"))) == [1, 2]


def test_mutation_success_callback_order():
    events = []
    m = Mutation(
        lambda **v: events.append(("fn", v)) or "ok",
        on_mutate=lambda v: events.append("mutate") or {"ctx": 1},
        on_success=lambda r, v, c: events.append(("success", r, c)),
        on_error=lambda e, v, c: events.append("error"),
        on_settled=lambda r, e, v, c: events.append(("settled", r, e)),
    )
    assert m.mutate(x=1) == "ok"
    assert events == ["mutate", ("fn", {"x": 1}), ("success", "ok", {"ctx": 1}), ("settled", "ok", None)]
    assert m.error is None
    assert not m.is_pending

def test_mutation_failure_rolls_back_and_settles():
    events = []
    def fail(**v):
        raise ProcedureError("Failed to delete vector")
    m = Mutation(
        fail,
        on_mutate=lambda v: {"snapshot": "before"},
        on_success=lambda r, v, c: events.append("success"),
        on_error=lambda e, v, c: events.append(("error", str(e), c["snapshot"])),
        on_settled=lambda r, e, v, c: events.append(("settled", str(e))),
    )
    assert m.mutate(vector_id="v") is None
    assert events == [("error", "Failed to delete vector", "before"), ("settled", "Failed to delete vector")]
    assert str(m.error) == "Failed to delete vector"

def test_mutation_does_not_swallow_programming_errors():
    settled = []
    m = Mutation(MagicMock(side_effect=KeyError("bug")),
                 on_settled=lambda r, e, v, c: settled.append(True))
    with pytest.raises(KeyError):
        m.mutate()
    assert settled == [True]
    assert not m.is_pending

"""
Controllers behind the viewer panels: sorting, optimistic updates, routing.
"""
import pytest

from namespace_admin import Namespace, VectorPage, VectorRecord
from procedures import ProcedureError, StarredList
from views import (
    NamespaceListController, VectorListController,
    build_route, display_name, load_vector_detail, parse_route, sort_namespaces,
)


NAMESPACES = [
    Namespace(name="zeta", vector_count=1),
    Namespace(name="alpha", vector_count=10),
    Namespace(name="mid", vector_count=99),
    Namespace(name="beta", vector_count=10),
]

def names(nss):
    return [n.name for n in nss]


# ---- sorting ----
def test_alphabetical_puts_starred_first_each_group_sorted():
    out = sort_namespaces(NAMESPACES, starred={"zeta", "beta"}, mode="alphabetical")
    assert names(out) == ["beta", "zeta", "alpha", "mid"]

def test_vector_count_sort():
    out = sort_namespaces(NAMESPACES, starred={"zeta"}, mode="vector_count")
    assert names(out) == ["zeta", "mid", "alpha", "beta"]

def test_unknown_sort_mode():
    with pytest.raises(ValueError):
        sort_namespaces(NAMESPACES, [], mode="random")

def test_default_namespace_has_a_label():
    assert display_name("") == "(default)"
    assert display_name("docs") == "docs"


# ---- routing ----
@pytest.mark.parametrize("ns,vec", [
    ("docs", "v1"),
    ("my space/ns", "id#1?x=%2F"),
    ("ünïcode", ""),
    ("", ""),
])
def test_route_round_trip(ns, vec):
    route = build_route(ns, vec)
    assert parse_route(route) == (ns, vec)

def test_route_segments_are_percent_encoded():
    assert build_route("a/b", "c d") == "/a%2Fb/c%20d"
    assert build_route("a") == "/a"
    assert build_route() == "/"
    assert parse_route(None) == ("", "")


# ---- namespace list ----
def test_sorted_namespaces_marks_starred(api, admin, cache):
    admin.list_namespaces.return_value = NAMESPACES
    api.starred_namespaces.star(namespace="mid")
    ctl = NamespaceListController(api, cache)

    rows = ctl.sorted_namespaces("idx")

    assert [(n.name, s) for n, s in rows] == [
        ("mid", True), ("alpha", False), ("beta", False), ("zeta", False)]

def test_star_is_optimistic_then_reconciled(api, cache):
    ctl = NamespaceListController(api, cache)
    assert ctl.starred() == []

    ctl.toggle_star("docs", is_starred=False)

    assert ctl.star_mutation.error is None
    assert ctl.starred() == ["docs"]
    ctl.toggle_star("docs", is_starred=True)
    assert ctl.starred() == []

def test_star_failure_rolls_back(api, cache, store):
    store.star("docs")
    ctl = NamespaceListController(api, cache)
    # cached view is stale: thinks nothing is starred
    cache.set_data(ctl.starred_key, StarredList(starred_namespaces=[]))
    seen = []
    original_set = cache.set_data
    def spy(key, data):
        seen.append(list(data.starred_namespaces))
        original_set(key, data)
    cache.set_data = spy

    ctl.toggle_star("docs", is_starred=False)  # backend rejects the duplicate

    assert seen == [["docs"], []]  # optimistic add, then rollback
    assert str(ctl.error) == "Failed to star namespace"
    # settle invalidated the query, so the next read reconciles with the store
    assert ctl.starred() == ["docs"]

def test_error_reflects_only_the_latest_toggle(api, cache):
    ctl = NamespaceListController(api, cache)

    ctl.toggle_star("docs", is_starred=True)  # not starred yet, so unstar fails
    assert str(ctl.error) == "Failed to unstar namespace"

    ctl.toggle_star("docs", is_starred=False)
    assert ctl.error is None
    assert ctl.starred() == ["docs"]

def test_star_round_trip_leaves_set_unchanged(api, cache, store):
    store.star("keep")
    ctl = NamespaceListController(api, cache)
    before = ctl.starred()
    ctl.toggle_star("x", False)
    ctl.toggle_star("x", True)
    assert ctl.starred() == before


# ---- vector list ----
def bound_list(api, cache, page_size=3):
    ctl = VectorListController(api, cache, page_size=page_size)
    ctl.bind("idx", "ns")
    return ctl

def test_page_requires_index_and_namespace(api, admin, cache):
    ctl = VectorListController(api, cache)
    assert ctl.page() == VectorPage()
    assert ctl.delete_vector("a") is None
    admin.list_vector_page.assert_not_called()

def test_page_is_loaded_with_token_and_limit(api, admin, cache):
    ctl = bound_list(api, cache)
    assert ctl.page().vectors == ["a", "b", "c"]
    admin.list_vector_page.assert_called_once_with("idx", "ns", pagination_token=None, limit=3)

    assert ctl.next_page()
    ctl.page()
    assert admin.list_vector_page.call_args.kwargs["pagination_token"] == "t1"
    assert ctl.previous_page()
    assert ctl.paginator.token is None

def test_switching_namespace_resets_pagination(api, cache):
    ctl = bound_list(api, cache)
    ctl.page()
    ctl.next_page()
    assert ctl.paginator.page_index == 1
    assert ctl.bind("idx", "other")
    assert ctl.paginator.page_index == 0

def test_delete_removes_id_optimistically(api, admin, cache):
    ctl = bound_list(api, cache)
    ctl.page()
    shown = []
    admin.delete_vector.side_effect = lambda *a: shown.append(cache.get_data(ctl.query_key).vectors)

    ctl.delete_vector("b")

    assert shown == [["a", "c"]]
    admin.delete_vector.assert_called_once_with("idx", "ns", "b")
    assert ctl.error is None
    # the page and the namespace counts are refetched after settling
    admin.list_vector_page.return_value = VectorPage(vectors=["a", "c"])
    assert ctl.page().vectors == ["a", "c"]
    assert admin.list_vector_page.call_count == 2

def test_delete_failure_restores_displayed_list(api, admin, cache):
    ctl = bound_list(api, cache)
    before = ctl.page()
    admin.delete_vector.side_effect = RuntimeError("quota")

    assert ctl.delete_vector("b") is None

    assert cache.get_data(ctl.query_key) == before
    assert str(ctl.error) == "Failed to delete vector"

def test_error_clears_after_a_later_successful_delete(api, admin, cache):
    ctl = bound_list(api, cache)
    ctl.page()
    admin.delete_all_vectors.side_effect = RuntimeError("nope")
    ctl.delete_all()
    assert str(ctl.error) == "Failed to delete all vectors"

    ctl.delete_vector("a")
    assert ctl.error is None

def test_delete_invalidates_namespace_counts(api, admin, cache):
    admin.list_namespaces.return_value = [Namespace(name="ns", vector_count=3)]
    ns_ctl = NamespaceListController(api, cache)
    ns_ctl.namespaces("idx")
    ctl = bound_list(api, cache)
    ctl.page()

    ctl.delete_vector("a")
    ns_ctl.namespaces("idx")

    assert admin.list_namespaces.call_count == 2

def test_delete_all_success_resets_to_first_page(api, admin, cache):
    ctl = bound_list(api, cache)
    ctl.page()
    ctl.next_page()
    ctl.page()
    assert ctl.paginator.page_index == 1

    assert ctl.delete_all().success
    assert ctl.paginator.page_index == 0
    admin.delete_all_vectors.assert_called_once_with("idx", "ns")
    admin.list_vector_page.return_value = VectorPage()
    assert ctl.page() == VectorPage()

def test_delete_all_failure_restores_page(api, admin, cache):
    ctl = bound_list(api, cache)
    before = ctl.page()
    admin.delete_all_vectors.side_effect = RuntimeError("nope")
    ctl.delete_all()
    assert cache.get_data(ctl.query_key) == before
    assert str(ctl.error) == "Failed to delete all vectors"

def test_summary_with_and_without_total(api, cache):
    ctl = bound_list(api, cache, page_size=50)
    more = VectorPage(vectors=[str(i) for i in range(50)], next_page_token="t")
    assert ctl.summary(more) == "Showing 1–50+"
    assert ctl.summary(more, known_total=1200) == "1,200 total vectors"
    assert ctl.page_label(more, known_total=1200) == "Page 1 • 1–50 of 1,200"
    assert ctl.page_label(more) == "Page 1"
    ctl.paginator.next("t")
    last = VectorPage(vectors=["x", "y"])
    assert ctl.summary(last) == "52 total vectors"


# ---- vector detail ----
def test_detail_nothing_selected(api, admin):
    assert load_vector_detail(api, "idx", "ns", "") is None
    admin.fetch_vector.assert_not_called()

def test_detail_found_and_not_found(api, admin):
    admin.fetch_vector.return_value = VectorRecord(id="v1", values=[1.0])
    assert load_vector_detail(api, "idx", "ns", "v1").found
    admin.fetch_vector.return_value = None
    detail = load_vector_detail(api, "idx", "ns", "ghost")
    assert detail.found is False

def test_detail_backend_error_surfaces_as_procedure_error(api, admin):
    admin.fetch_vector.side_effect = RuntimeError("down")
    with pytest.raises(ProcedureError, match="Failed to fetch vector"):
        load_vector_detail(api, "idx", "ns", "v1")

"""
views.py
--------
UI-independent logic behind the three viewer panels:
- namespace list (sorting, optimistic star/unstar)
- vector list (pagination, optimistic delete / delete-all)
- vector detail (single fetch, never cached)
plus the URL route helpers.

Streamlit code in main.py only renders what these controllers return.
"""
from __future__ import annotations
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote, unquote

from namespace_admin import Namespace, VectorPage
from pagination import Paginator
from procedures import Api, NamespaceListing, StarredList, VectorDetail
from query_cache import Mutation, QueryCache, query_key
from utils.config import PAGE_SIZE

LIST_NAMESPACES = "pinecone.listNamespaces"
LIST_VECTORS = "pinecone.listVectorsInNamespace"
LIST_STARRED = "starredNamespaces.list"

SORT_MODES = ("alphabetical", "vector_count")
DEFAULT_NAMESPACE_LABEL = "(default)"


# ---- Routing ----
def build_route(namespace: str = "", vector_id: str = "") -> str:
    if namespace and vector_id:
        return f"/{quote(namespace, safe='')}/{quote(vector_id, safe='')}"
    if namespace:
        return f"/{quote(namespace, safe='')}"
    return "/"

def parse_route(route: Optional[str]) -> Tuple[str, str]:
    """Inverse of build_route: returns (namespace, vector_id), blanks when absent."""
    parts = [p for p in (route or "").split("/") if p]
    namespace = unquote(parts[0]) if parts else ""
    vector_id = unquote(parts[1]) if len(parts) > 1 else ""
    return namespace, vector_id


# ---- Namespace list ----
def display_name(namespace: str) -> str:
    """Pinecone reports its default namespace as an empty name."""
    return namespace or DEFAULT_NAMESPACE_LABEL

def sort_namespaces(namespaces: Iterable[Namespace], starred: Iterable[str],
                    mode: str = "alphabetical") -> List[Namespace]:
    """Starred namespaces first; within each group by name, or by count (desc) then name."""
    starred_set = set(starred)
    if mode == "vector_count":
        key = lambda ns: (ns.name not in starred_set, -ns.vector_count, ns.name)
    elif mode == "alphabetical":
        key = lambda ns: (ns.name not in starred_set, ns.name)
    else:
        raise ValueError(f"Unknown sort mode: {mode}")
    return sorted(namespaces, key=key)


class NamespaceListController:
    def __init__(self, api: Api, cache: QueryCache):
        self.api = api
        self.cache = cache
        self.starred_key = query_key(LIST_STARRED)
        self.star_mutation = Mutation(
            api.starred_namespaces.star,
            on_mutate=lambda v: self._optimistic(v["namespace"], add=True),
            on_error=self._rollback,
            on_settled=self._settle,
        )
        self.unstar_mutation = Mutation(
            api.starred_namespaces.unstar,
            on_mutate=lambda v: self._optimistic(v["namespace"], add=False),
            on_error=self._rollback,
            on_settled=self._settle,
        )
        self._last: Optional[Mutation] = None

    def namespaces(self, index_name: str) -> NamespaceListing:
        key = query_key(LIST_NAMESPACES, index_name=index_name)
        return self.cache.fetch(key, lambda: self.api.pinecone.list_namespaces(index_name=index_name))

    def starred(self) -> List[str]:
        data = self.cache.fetch(self.starred_key, self.api.starred_namespaces.list)
        return list(data.starred_namespaces)

    def sorted_namespaces(self, index_name: str, mode: str = "alphabetical") -> List[Tuple[Namespace, bool]]:
        starred = set(self.starred())
        listing = self.namespaces(index_name)
        return [(ns, ns.name in starred) for ns in sort_namespaces(listing.namespaces, starred, mode)]

    def toggle_star(self, namespace: str, is_starred: bool):
        self._last = self.unstar_mutation if is_starred else self.star_mutation
        return self._last.mutate(namespace=namespace)

    @property
    def error(self):
        """Failure of the most recent star/unstar, if it failed."""
        return self._last.error if self._last else None

    def _optimistic(self, namespace: str, add: bool) -> dict:
        self.cache.cancel(self.starred_key)
        previous: Optional[StarredList] = self.cache.get_data(self.starred_key)
        if previous is not None:
            names = [n for n in previous.starred_namespaces if n != namespace]
            if add:
                names.append(namespace)
            self.cache.set_data(self.starred_key, StarredList(starred_namespaces=names))
        return {"previous": previous}

    def _rollback(self, error, variables, context) -> None:
        if context and context.get("previous") is not None:
            self.cache.set_data(self.starred_key, context["previous"])

    def _settle(self, result, error, variables, context) -> None:
        self.cache.invalidate(self.starred_key)


# ---- Vector list ----
class VectorListController:
    def __init__(self, api: Api, cache: QueryCache, page_size: int = PAGE_SIZE):
        self.api = api
        self.cache = cache
        self.paginator = Paginator(page_size=page_size)
        self.index_name = ""
        self.namespace = ""
        self.delete_mutation = Mutation(
            api.pinecone.delete_vector,
            on_mutate=self._optimistic_delete,
            on_error=self._rollback,
            on_settled=self._settle_delete,
        )
        self.delete_all_mutation = Mutation(
            api.pinecone.delete_all_vectors,
            on_mutate=self._optimistic_delete_all,
            on_success=self._delete_all_succeeded,
            on_error=self._rollback,
        )
        self._last: Optional[Mutation] = None

    def bind(self, index_name: str, namespace: str) -> bool:
        """Point the list at another index/namespace; returns True when that reset pagination."""
        self.index_name, self.namespace = index_name or "", namespace or ""
        changed = self.paginator.bind(self.index_name, self.namespace)
        if changed:
            self._last = None
        return changed

    @property
    def query_key(self):
        if not self.index_name or not self.namespace:
            return None
        return query_key(LIST_VECTORS, index_name=self.index_name, namespace=self.namespace,
                         pagination_token=self.paginator.token, limit=self.paginator.page_size)

    def page(self) -> VectorPage:
        key = self.query_key
        if key is None:
            return VectorPage()
        return self.cache.fetch(key, lambda: self.api.pinecone.list_vectors_in_namespace(
            index_name=self.index_name,
            namespace=self.namespace,
            pagination_token=self.paginator.token,
            limit=self.paginator.page_size,
        ))

    def next_page(self) -> bool:
        data: Optional[VectorPage] = self.cache.get_data(self.query_key) if self.query_key else None
        return self.paginator.next(data.next_page_token if data else None)

    def previous_page(self) -> bool:
        return self.paginator.previous()

    def delete_vector(self, vector_id: str):
        if not self.index_name or not self.namespace:
            return None
        self._last = self.delete_mutation
        return self.delete_mutation.mutate(index_name=self.index_name, namespace=self.namespace,
                                           vector_id=vector_id)

    def delete_all(self):
        if not self.index_name or not self.namespace:
            return None
        self._last = self.delete_all_mutation
        return self.delete_all_mutation.mutate(index_name=self.index_name, namespace=self.namespace)

    @property
    def error(self):
        return self._last.error if self._last else None

    def summary(self, page: VectorPage, known_total: Optional[int] = None) -> str:
        has_next = bool(page.next_page_token)
        total = self.paginator.total_count(len(page.vectors), has_next, known_total)
        if total is not None:
            return f"{total:,} total vectors"
        start, end = self.paginator.visible_range(len(page.vectors))
        return f"Showing {start:,}–{end:,}{'+' if has_next else ''}"

    def page_label(self, page: VectorPage, known_total: Optional[int] = None) -> str:
        label = f"Page {self.paginator.page_index + 1}"
        total = self.paginator.total_count(len(page.vectors), bool(page.next_page_token), known_total)
        if total is not None:
            start, end = self.paginator.visible_range(len(page.vectors))
            label += f" • {start:,}–{end:,} of {total:,}"
        return label

    def _snapshot(self) -> dict:
        key = self.query_key
        if key is None:
            return {"key": None, "previous": None}
        self.cache.cancel(key)
        return {"key": key, "previous": self.cache.get_data(key)}

    def _optimistic_delete(self, variables) -> dict:
        context = self._snapshot()
        previous: Optional[VectorPage] = context["previous"]
        if previous is not None:
            remaining = [i for i in previous.vectors if i != variables["vector_id"]]
            self.cache.set_data(context["key"], previous.model_copy(update={"vectors": remaining}))
        return context

    def _optimistic_delete_all(self, variables) -> dict:
        context = self._snapshot()
        previous: Optional[VectorPage] = context["previous"]
        if previous is not None:
            self.cache.set_data(context["key"], previous.model_copy(update={"vectors": []}))
        return context

    def _rollback(self, error, variables, context) -> None:
        if context and context.get("key") is not None and context.get("previous") is not None:
            self.cache.set_data(context["key"], context["previous"])

    def _invalidate_counts(self, index_name: str) -> None:
        self.cache.invalidate(query_key(LIST_NAMESPACES, index_name=index_name))

    def _settle_delete(self, result, error, variables, context) -> None:
        if context and context.get("key") is not None:
            self.cache.invalidate(context["key"])
        self._invalidate_counts(variables["index_name"])

    def _delete_all_succeeded(self, result, variables, context) -> None:
        self.paginator.reset()
        self.cache.invalidate(procedure=LIST_VECTORS)
        self._invalidate_counts(variables["index_name"])


# ---- Vector detail ----
def load_vector_detail(api: Api, index_name: str, namespace: str, vector_id: str) -> Optional[VectorDetail]:
    """Fetch straight through the procedure; None when nothing is selected."""
    if not (index_name and namespace and vector_id):
        return None
    return api.pinecone.fetch_vector(index_name=index_name, namespace=namespace, vector_id=vector_id)

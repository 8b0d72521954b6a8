"""
namespace_admin.py
------------------
Data-access helpers for a Pinecone index: namespaces, vector id pages,
single-vector fetch and deletes.

Everything here is a thin delegation to the Pinecone SDK plus reshaping of
its responses. SDK errors propagate to the caller unchanged.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field
from utils.config import get_index, NAMESPACE_PAGE_LIMIT

# ---- Models ----
class Namespace(BaseModel):
    name: str
    vector_count: int = Field(0, ge=0)

class VectorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    metadata: Optional[Dict[str, Any]] = None
    values: List[float] = Field(default_factory=list)
    sparse_values: Optional[Dict[str, List[Any]]] = None

class VectorPage(BaseModel):
    vectors: List[str] = Field(default_factory=list)
    next_page_token: Optional[str] = None


def _get(obj: Any, key: str, default: Any = None) -> Any:
    # SDK responses are objects; some older calls hand back plain dicts.
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)

def _next_token(response: Any) -> Optional[str]:
    return _get(_get(response, "pagination"), "next") or None


# ---- Namespaces ----
def merge_namespaces(stats_counts: Mapping[str, Optional[int]], listed: Iterable[str]) -> List[Namespace]:
    """
    Union of the stats summary and the namespace listing, deduplicated by name.
    Stats entries win on count and come first, including the default namespace
    (reported by stats under an empty name); names only seen in the listing are
    reported with a zero count.
    """
    merged: Dict[str, Namespace] = {}
    for name, count in stats_counts.items():
        if name not in merged:
            merged[name] = Namespace(name=name, vector_count=count or 0)
    for name in listed:
        if name and name not in merged:
            merged[name] = Namespace(name=name, vector_count=0)
    return list(merged.values())

def _stats_counts(index) -> Dict[str, Optional[int]]:
    stats = index.describe_index_stats()
    namespaces = _get(stats, "namespaces") or {}
    return {name: _get(summary, "vector_count") for name, summary in namespaces.items()}

def _collect_namespace_names(index) -> List[str]:
    names: List[str] = []
    token = None
    while True:
        page = index.list_namespaces_paginated(limit=NAMESPACE_PAGE_LIMIT, pagination_token=token)
        for ns in _get(page, "namespaces") or []:
            name = _get(ns, "name")
            if name and name not in names:
                names.append(name)
        token = _next_token(page)
        if not token:
            return names

def list_namespaces(index_name: str) -> List[Namespace]:
    index = get_index(index_name)
    # Neither call alone is guaranteed complete: stats can lag behind new namespaces.
    return merge_namespaces(_stats_counts(index), _collect_namespace_names(index))


# ---- Vectors ----
def list_vector_page(index_name: str, namespace: str, *,
                     pagination_token: Optional[str] = None,
                     limit: Optional[int] = None) -> VectorPage:
    kwargs: Dict[str, Any] = {"namespace": namespace}
    if limit is not None:
        kwargs["limit"] = limit
    if pagination_token:
        kwargs["pagination_token"] = pagination_token
    page = get_index(index_name).list_paginated(**kwargs)
    ids = [_get(v, "id") for v in (_get(page, "vectors") or [])]
    return VectorPage(vectors=[i for i in ids if i], next_page_token=_next_token(page))

def _sparse_to_dict(sparse: Any) -> Optional[Dict[str, List[Any]]]:
    if not sparse:
        return None
    return {
        "indices": list(_get(sparse, "indices") or []),
        "values": list(_get(sparse, "values") or []),
    }

def fetch_vector(index_name: str, namespace: str, vector_id: str) -> Optional[VectorRecord]:
    """
    Fetch one vector by id. Returns None when the id does not exist in the
    namespace.
    """
    response = get_index(index_name).fetch(ids=[vector_id], namespace=namespace)
    vector = (_get(response, "vectors") or {}).get(vector_id)
    if vector is None:
        return None
    return VectorRecord(
        id=_get(vector, "id") or vector_id,
        metadata=_get(vector, "metadata"),
        values=list(_get(vector, "values") or []),
        sparse_values=_sparse_to_dict(_get(vector, "sparse_values")),
    )

def delete_vector(index_name: str, namespace: str, vector_id: str) -> None:
    get_index(index_name).delete(ids=[vector_id], namespace=namespace)

def delete_all_vectors(index_name: str, namespace: str) -> None:
    """
    Delete ALL vectors in the namespace. Irreversible.
    """
    get_index(index_name).delete(delete_all=True, namespace=namespace)

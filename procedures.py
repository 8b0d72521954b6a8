"""
procedures.py
-------------
Typed query/mutation procedures used by the UI and the admin CLI.

Every procedure validates its input with a pydantic schema before touching the
backend, and converts any backend failure into a ProcedureError carrying a
fixed, generic message. The original exception is logged and chained.
"""
from __future__ import annotations
import functools
import json
from typing import Annotated, Any, Callable, List, Optional, Type

from langsmith import traceable
from pydantic import AfterValidator, BaseModel, Field, ValidationError

import namespace_admin
from namespace_admin import Namespace, VectorPage, VectorRecord
from namespace_store import StarredNamespaceStore
from utils.config import MAX_PAGE_LIMIT, STARRED_DB_PATH
from utils.logger import get_logger

log = get_logger("procedures")

def _not_blank(value: str) -> str:
    # Names go to Pinecone exactly as given; " docs" and "docs" are different namespaces.
    if not value.strip():
        raise ValueError("must not be blank")
    return value

NonEmptyStr = Annotated[str, AfterValidator(_not_blank)]

class ProcedureError(Exception):
    """Uniform failure surfaced to callers of a procedure."""

class InvalidInputError(ProcedureError):
    """Input rejected before reaching the backend."""


# ---- Input schemas ----
class EmptyInput(BaseModel):
    pass

class IndexInput(BaseModel):
    index_name: NonEmptyStr

class NamespaceInput(IndexInput):
    namespace: NonEmptyStr

class ListVectorsInput(NamespaceInput):
    pagination_token: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1, le=MAX_PAGE_LIMIT)

class VectorInput(NamespaceInput):
    vector_id: NonEmptyStr

class StarInput(BaseModel):
    namespace: NonEmptyStr


# ---- Output schemas ----
class NamespaceListing(BaseModel):
    namespaces: List[Namespace]
    total_namespaces: int

class VectorDetail(BaseModel):
    found: bool
    record: Optional[VectorRecord] = None
    stringified: str

class MutationResult(BaseModel):
    success: bool = True

class StarredList(BaseModel):
    starred_namespaces: List[str]

class StarredStatus(BaseModel):
    is_starred: bool


NOT_FOUND_TEXT = "not found"

def stringify_record(record: VectorRecord) -> str:
    payload = {
        "id": record.id,
        "metadata": record.metadata,
        "values": record.values,
        "sparseValues": record.sparse_values,
    }
    return json.dumps(payload, indent=2)

def _summarize(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "input"
        parts.append(f"{loc}: {e.get('msg')}")
    return "; ".join(parts)


def procedure(name: str, failure_message: str, schema: Type[BaseModel]) -> Callable:
    """
    Wrap a router method as a procedure: validate keyword arguments into
    `schema`, call the method with the parsed input, and map any backend
    error to ProcedureError(failure_message).
    """
    def decorator(fn: Callable) -> Callable:
        traced = traceable(run_type="tool", name=name)(fn)

        @functools.wraps(fn)
        def wrapper(self, **kwargs: Any):
            try:
                data = schema(**kwargs)
            except ValidationError as e:
                raise InvalidInputError(f"Invalid input for {name}: {_summarize(e)}") from e
            try:
                return traced(self, data)
            except Exception as e:
                log.exception("%s failed: %s", name, e)
                raise ProcedureError(failure_message) from e

        return wrapper
    return decorator


# ---- Routers ----
class PineconeRouter:
    def __init__(self, admin=namespace_admin):
        self.admin = admin

    @procedure("pinecone.listNamespaces", "Failed to fetch namespaces", IndexInput)
    def list_namespaces(self, data: IndexInput) -> NamespaceListing:
        namespaces = self.admin.list_namespaces(data.index_name)
        return NamespaceListing(namespaces=namespaces, total_namespaces=len(namespaces))

    @procedure("pinecone.listVectorsInNamespace", "Failed to list vectors", ListVectorsInput)
    def list_vectors_in_namespace(self, data: ListVectorsInput) -> VectorPage:
        return self.admin.list_vector_page(
            data.index_name, data.namespace,
            pagination_token=data.pagination_token or None,
            limit=data.limit,
        )

    @procedure("pinecone.fetchVector", "Failed to fetch vector", VectorInput)
    def fetch_vector(self, data: VectorInput) -> VectorDetail:
        record = self.admin.fetch_vector(data.index_name, data.namespace, data.vector_id)
        if record is None:
            return VectorDetail(found=False, stringified=NOT_FOUND_TEXT)
        return VectorDetail(found=True, record=record, stringified=stringify_record(record))

    @procedure("pinecone.deleteVector", "Failed to delete vector", VectorInput)
    def delete_vector(self, data: VectorInput) -> MutationResult:
        self.admin.delete_vector(data.index_name, data.namespace, data.vector_id)
        log.info("Deleted vector '%s' from %s/%s", data.vector_id, data.index_name, data.namespace)
        return MutationResult()

    @procedure("pinecone.deleteAllVectors", "Failed to delete all vectors", NamespaceInput)
    def delete_all_vectors(self, data: NamespaceInput) -> MutationResult:
        self.admin.delete_all_vectors(data.index_name, data.namespace)
        log.info("Deleted all vectors in %s/%s", data.index_name, data.namespace)
        return MutationResult()


class StarredNamespacesRouter:
    def __init__(self, store: StarredNamespaceStore):
        self.store = store

    @procedure("starredNamespaces.list", "Failed to fetch starred namespaces", EmptyInput)
    def list(self, data: EmptyInput) -> StarredList:
        return StarredList(starred_namespaces=self.store.list_starred())

    @procedure("starredNamespaces.star", "Failed to star namespace", StarInput)
    def star(self, data: StarInput) -> MutationResult:
        self.store.star(data.namespace)
        return MutationResult()

    @procedure("starredNamespaces.unstar", "Failed to unstar namespace", StarInput)
    def unstar(self, data: StarInput) -> MutationResult:
        self.store.unstar(data.namespace)
        return MutationResult()

    @procedure("starredNamespaces.isStarred", "Failed to check starred status", StarInput)
    def is_starred(self, data: StarInput) -> StarredStatus:
        return StarredStatus(is_starred=self.store.is_starred(data.namespace))


class Api:
    """Both routers behind one object, e.g. `api.pinecone.fetch_vector(...)`."""
    def __init__(self, pinecone: PineconeRouter, starred_namespaces: StarredNamespacesRouter):
        self.pinecone = pinecone
        self.starred_namespaces = starred_namespaces

def build_api(db_path: str = STARRED_DB_PATH) -> Api:
    store = StarredNamespaceStore(db_path)
    store.init_db()
    return Api(PineconeRouter(), StarredNamespacesRouter(store))

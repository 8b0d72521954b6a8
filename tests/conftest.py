from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import namespace_admin
from namespace_admin import VectorPage
from namespace_store import StarredNamespaceStore
from procedures import Api, PineconeRouter, StarredNamespacesRouter
from query_cache import QueryCache


def namespaces_response(names, next_token=None):
    """Shape of Index.list_namespaces_paginated()."""
    return SimpleNamespace(
        namespaces=[SimpleNamespace(name=n, record_count=0) for n in names],
        pagination=SimpleNamespace(next=next_token) if next_token else None,
    )

def stats_response(counts):
    """Shape of Index.describe_index_stats()."""
    return SimpleNamespace(
        namespaces={name: SimpleNamespace(vector_count=c) for name, c in counts.items()},
        dimension=3,
    )

def list_response(ids, next_token=None):
    """Shape of Index.list_paginated()."""
    return SimpleNamespace(
        vectors=[SimpleNamespace(id=i) for i in ids],
        pagination=SimpleNamespace(next=next_token) if next_token else None,
    )


@pytest.fixture
def fake_index(monkeypatch):
    """Stand-in for a Pinecone Index handle, returned for every index name."""
    index = MagicMock()
    calls = []
    def get_index(name):
        calls.append(name)
        return index
    monkeypatch.setattr(namespace_admin, "get_index", get_index)
    index.requested_names = calls
    return index

@pytest.fixture
def store(tmp_path):
    s = StarredNamespaceStore(str(tmp_path / "db" / "starred.db"))
    s.init_db()
    return s

@pytest.fixture
def admin():
    """Mocked data-access layer for procedure/view tests."""
    m = MagicMock()
    m.list_vector_page.return_value = VectorPage(vectors=["a", "b", "c"], next_page_token="t1")
    m.list_namespaces.return_value = []
    m.fetch_vector.return_value = None
    return m

@pytest.fixture
def api(admin, store):
    return Api(PineconeRouter(admin=admin), StarredNamespacesRouter(store))

@pytest.fixture
def cache():
    return QueryCache()

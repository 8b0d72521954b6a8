"""
query_cache.py
--------------
Client-side query cache and optimistic mutations for the viewer.

Queries are cached per (procedure, params) key until invalidated. A Mutation
takes a snapshot in `on_mutate`, applies its optimistic change, and on failure
hands the snapshot back to `on_error` so the caller can restore it.
`on_settled` always runs afterwards to reconcile with the backend.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from procedures import ProcedureError
from utils.logger import get_logger

log = get_logger("query_cache")

QueryKey = Tuple[str, Tuple[Tuple[str, Hashable], ...]]

def query_key(procedure: str, **params: Hashable) -> QueryKey:
    """Build a cache key; params that are None are left out."""
    return procedure, tuple(sorted((k, v) for k, v in params.items() if v is not None))

@dataclass
class _Entry:
    data: Any = None
    error: Optional[Exception] = None
    stale: bool = True
    fetching: bool = False


class QueryCache:
    def __init__(self):
        self._entries: Dict[QueryKey, _Entry] = {}

    def _entry(self, key: QueryKey) -> _Entry:
        return self._entries.setdefault(key, _Entry())

    def fetch(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        """
        Return the cached data for `key`, calling `loader` when the entry is
        missing or stale. A ProcedureError from the loader is recorded on the
        entry and re-raised; previously cached data is kept.
        """
        entry = self._entry(key)
        if not entry.stale and entry.error is None:
            return entry.data
        entry.fetching = True
        try:
            data = loader()
        except ProcedureError as e:
            entry.error = e
            raise
        finally:
            entry.fetching = False
        entry.data, entry.error, entry.stale = data, None, False
        return data

    def get_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_data(self, key: QueryKey, data: Any) -> None:
        entry = self._entry(key)
        entry.data, entry.error, entry.stale = data, None, False

    def get_error(self, key: QueryKey) -> Optional[Exception]:
        entry = self._entries.get(key)
        return entry.error if entry else None

    def is_fetching(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return bool(entry and entry.fetching)

    def cancel(self, key: QueryKey) -> None:
        """Drop the in-flight marker so a pending load cannot overwrite an optimistic write."""
        entry = self._entries.get(key)
        if entry:
            entry.fetching = False

    def invalidate(self, key: Optional[QueryKey] = None, *, procedure: Optional[str] = None) -> int:
        """
        Mark entries stale so the next fetch reloads them. Matches one key,
        every key of one procedure, or (with neither) everything.
        """
        count = 0
        for k, entry in self._entries.items():
            if key is not None and k != key:
                continue
            if procedure is not None and k[0] != procedure:
                continue
            entry.stale = True
            count += 1
        return count


class Mutation:
    def __init__(self, fn: Callable[..., Any], *,
                 on_mutate: Optional[Callable[[Dict[str, Any]], Any]] = None,
                 on_success: Optional[Callable[[Any, Dict[str, Any], Any], None]] = None,
                 on_error: Optional[Callable[[Exception, Dict[str, Any], Any], None]] = None,
                 on_settled: Optional[Callable[[Any, Optional[Exception], Dict[str, Any], Any], None]] = None):
        self.fn = fn
        self.on_mutate = on_mutate
        self.on_success = on_success
        self.on_error = on_error
        self.on_settled = on_settled
        self.is_pending = False
        self.error: Optional[ProcedureError] = None

    def mutate(self, **variables: Any) -> Any:
        """
        Run the mutation. Returns the procedure result, or None when it failed;
        the failure is kept on `self.error` for inline display.
        """
        self.is_pending = True
        self.error = None
        result = None
        context = self.on_mutate(variables) if self.on_mutate else None
        try:
            result = self.fn(**variables)
        except ProcedureError as e:
            self.error = e
            log.warning("Mutation failed, rolling back: %s", e)
            if self.on_error:
                self.on_error(e, variables, context)
        else:
            if self.on_success:
                self.on_success(result, variables, context)
        finally:
            self.is_pending = False
            if self.on_settled:
                self.on_settled(result, self.error, variables, context)
        return result

"""
pagination.py
-------------
Forward-only backend cursors turned into Previous/Next navigation.

The backend only hands out a token for the next page, so the paginator keeps
a stack of the tokens it has already used. The current page index is always
the depth of that stack.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from utils.config import PAGE_SIZE

@dataclass
class Paginator:
    page_size: int = PAGE_SIZE
    token: Optional[str] = None
    previous_tokens: List[Optional[str]] = field(default_factory=list)
    scope: Tuple[str, ...] = ()

    @property
    def page_index(self) -> int:
        return len(self.previous_tokens)

    @property
    def has_previous(self) -> bool:
        return bool(self.previous_tokens)

    def reset(self) -> None:
        self.token = None
        self.previous_tokens = []

    def bind(self, *scope: str) -> bool:
        """Attach to an (index, namespace) pair; switching to another pair starts over at page 0."""
        if scope == self.scope:
            return False
        self.scope = scope
        self.reset()
        return True

    def next(self, next_token: Optional[str]) -> bool:
        if not next_token:
            return False
        self.previous_tokens.append(self.token)
        self.token = next_token
        return True

    def previous(self) -> bool:
        if not self.previous_tokens:
            return False
        self.token = self.previous_tokens.pop()
        return True

    def visible_range(self, page_len: int) -> Tuple[int, int]:
        """1-based (start, end) of the rows on this page; start is 0 when the page is empty."""
        start = self.page_index * self.page_size
        return (start + 1 if page_len else 0), start + page_len

    def total_count(self, page_len: int, has_next: bool, known_total: Optional[int] = None) -> Optional[int]:
        """
        Known total when the caller has one (namespace stats), otherwise only
        computable once we are on the last page.
        """
        if known_total is not None:
            return known_total
        if not has_next:
            return page_len + self.page_index * self.page_size
        return None

"""Deduplicating scope store for one root scope tree.

Every scope created through ``tagged``/``sub_scope`` goes through
``ScopeRegistry.get_or_create`` keyed by its canonical identity key, so each
distinct (prefix, tags) pair is materialized once for the life of the tree.

One registry per independently configured root; there is no process-wide
instance. The registry also carries the tree's closed flag, which timers
consult on every record.
"""
from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .scope import Scope


class ScopeRegistry:
    def __init__(self) -> None:
        self._subscopes: dict[str, Scope] = {}
        # Single lock per registry; creation is rare next to lookups.
        self._allocation_lock = threading.Lock()
        self._closed = threading.Event()

    def get(self, key: str) -> Scope | None:
        return self._subscopes.get(key)

    def get_or_create(self, key: str, factory: Callable[[], Scope]) -> Scope:
        """Return the scope stored under key, creating it with factory() if absent.

        The lookup is lock-free; factory() runs inside the allocation lock and
        only when the key is still absent after re-checking, so concurrent
        callers all receive the same instance.
        """
        scope = self._subscopes.get(key)
        if scope is not None:
            return scope
        with self._allocation_lock:
            scope = self._subscopes.get(key)
            if scope is None:
                scope = factory()
                self._subscopes[key] = scope
            return scope

    def scopes(self) -> tuple[Scope, ...]:
        """Point-in-time copy of all scopes, safe to iterate while others allocate."""
        return tuple(self._subscopes.copy().values())

    def __len__(self) -> int:
        return len(self._subscopes)

    def __contains__(self, key: object) -> bool:
        return key in self._subscopes

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def mark_closed(self) -> bool:
        """Flag the tree closed; True only for the call that actually closed it."""
        with self._allocation_lock:
            if self._closed.is_set():
                return False
            self._closed.set()
            return True


__all__ = ["ScopeRegistry"]

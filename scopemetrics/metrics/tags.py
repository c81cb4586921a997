"""Immutable tag sets and canonical scope identity keys.

A scope is identified by its fully-qualified prefix plus its tag set. Tag
order carries no meaning, so identity goes through ``key_for_prefixed_tags``
which sorts keys and produces a stable string such as::

    svc.db+env=prod,region=eu

Separator characters inside names are backslash-escaped so two different
(prefix, tags) pairs can never produce the same key.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping

_ESCAPES = str.maketrans({"\\": "\\\\", "+": "\\+", "=": "\\=", ",": "\\,"})


class TagSet(Mapping[str, str]):
    """Read-only mapping of tag key to tag value.

    Exposes only read operations; item assignment and deletion raise
    TypeError like any other immutable mapping. Hashable, and equal to any
    mapping holding the same pairs.
    """

    __slots__ = ("_items", "_hash")

    def __init__(self, tags: Mapping[str, str] | None = None):
        self._items: dict[str, str] = {str(k): str(v) for k, v in tags.items()} if tags else {}
        self._hash: int | None = None

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._items.items()))
        return self._hash

    def __repr__(self) -> str:
        return f"TagSet({self._items!r})"

    def merge(self, overrides: Mapping[str, str] | None) -> TagSet:
        return merge_tags(self, overrides)

    def to_dict(self) -> dict[str, str]:
        return dict(self._items)


EMPTY_TAGS = TagSet()


def merge_tags(parent: Mapping[str, str] | None, overrides: Mapping[str, str] | None) -> TagSet:
    """Return parent's tags with overrides applied; overrides win on key collision."""
    if not overrides:
        if isinstance(parent, TagSet):
            return parent
        return TagSet(parent) if parent else EMPTY_TAGS
    merged: dict[str, str] = dict(parent) if parent else {}
    merged.update(overrides)
    return TagSet(merged)


def key_for_prefixed_tags(prefix: str | None, tags: Mapping[str, str] | None) -> str:
    """Serialize a prefix/tags combination into its canonical identity key."""
    prefix = (prefix or "").translate(_ESCAPES)
    if not tags:
        return prefix + "+"
    pairs = (
        f"{str(k).translate(_ESCAPES)}={str(tags[k]).translate(_ESCAPES)}"
        for k in sorted(tags)
    )
    return prefix + "+" + ",".join(pairs)


__all__ = ["TagSet", "EMPTY_TAGS", "merge_tags", "key_for_prefixed_tags"]

"""Append-only, order-preserving item storage."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator, List, Optional

from dk_common.errors import ContractError
from dk_content.models import Item, ItemDraft


class ItemRegistry:
    """Ordered item list with strictly increasing insertion indices.

    Indices start at 1 and are never reused. There is no update or delete:
    changing an item means appending a new one.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self._items: List[Item] = []
        self._next_index = 1
        for item in items or ():
            self._adopt(item)

    def _adopt(self, item: Item) -> None:
        if item.index < self._next_index:
            raise ContractError(
                "Item indices must be strictly increasing",
                context={"index": item.index, "next_index": self._next_index},
            )
        self._items.append(item)
        self._next_index = item.index + 1

    def append(self, draft: ItemDraft) -> Item:
        """Finalize ``draft`` with the next insertion index and store it."""
        if not draft.kind:
            raise ContractError("Cannot append an item without a kind")
        item = Item.from_draft(draft, self._next_index)
        self._items.append(item)
        self._next_index += 1
        return item

    def all(self) -> List[Item]:
        return list(self._items)

    def copy(self) -> "ItemRegistry":
        clone = ItemRegistry()
        clone._items = list(self._items)
        clone._next_index = self._next_index
        return clone

    @classmethod
    def from_items(cls, items: Iterable[Item], renumber: bool = True) -> "ItemRegistry":
        """Build a registry from existing items, optionally renumbering from 1."""
        if not renumber:
            return cls(items)
        registry = cls()
        for item in items:
            registry._items.append(replace(item, index=registry._next_index))
            registry._next_index += 1
        return registry

    @property
    def next_index(self) -> int:
        return self._next_index

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

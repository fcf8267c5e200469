"""Tests for the append-only item registry."""

from __future__ import annotations

import pytest

from dk_common.errors import ContractError
from dk_content.models import Item, ItemDraft
from dk_content.registry import ItemRegistry


pytestmark = pytest.mark.unit_content


def test_append_assigns_increasing_indices() -> None:
    registry = ItemRegistry()

    first = registry.append(ItemDraft(kind="bar", params={"x_var": "age"}))
    second = registry.append(ItemDraft(kind="text", path=("notes",)))

    assert (first.index, second.index) == (1, 2)
    assert [item.kind for item in registry] == ["bar", "text"]
    assert registry.next_index == 3


def test_items_are_immutable() -> None:
    registry = ItemRegistry()
    item = registry.append(ItemDraft(kind="bar", params={"x_var": "age"}))

    with pytest.raises(TypeError):
        item.params["x_var"] = "income"  # type: ignore[index]
    with pytest.raises(AttributeError):
        item.title = "changed"  # type: ignore[misc]


def test_copy_is_independent() -> None:
    registry = ItemRegistry()
    registry.append(ItemDraft(kind="bar"))
    clone = registry.copy()

    clone.append(ItemDraft(kind="scatter"))

    assert len(registry) == 1
    assert len(clone) == 2


def test_append_without_kind_is_a_contract_error() -> None:
    with pytest.raises(ContractError):
        ItemRegistry().append(ItemDraft(kind=""))


def test_from_items_renumbers_or_checks_order() -> None:
    items = [
        Item(kind="bar", path=(), index=7, params={}),
        Item(kind="pie", path=(), index=3, params={}),
    ]

    renumbered = ItemRegistry.from_items(items)
    assert [item.index for item in renumbered] == [1, 2]

    with pytest.raises(ContractError):
        ItemRegistry.from_items(items, renumber=False)

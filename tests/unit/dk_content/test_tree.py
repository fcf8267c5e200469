"""Tests for folding items into the group tree."""

from __future__ import annotations

import pytest

from dk_common.errors import ContractError
from dk_content.models import GroupNode, Item, LabelTable
from dk_content.tree import TreeBuilder, build_tree, humanize, iter_items, plan_sections


pytestmark = pytest.mark.unit_content


def _item(index: int, path=(), kind: str = "bar", title=None) -> Item:
    return Item(kind=kind, path=tuple(path), index=index, params={}, title=title)


def test_demographics_example() -> None:
    items = [
        _item(1, ("demo", "age"), title="Age"),
        _item(2, ("demo", "gender"), title="Gender"),
        _item(3, ("politics",), title="Votes"),
        _item(4, ("demo", "age"), kind="histogram", title="Age spread"),
    ]
    labels = {"demo": "Demographics", "demo.age": "Age Group"}

    nodes = build_tree(items, labels)

    assert len(nodes) == 2
    demo, politics = nodes
    assert isinstance(demo, GroupNode)
    assert demo.label == "Demographics"
    assert [child.label for child in demo.children] == ["Age Group", "Gender"]
    age = demo.children[0]
    assert [leaf.index for leaf in age.children] == [1, 4]
    # Single-item top-level group collapses to the item itself.
    assert isinstance(politics, Item)
    assert politics.index == 3
    assert politics.title == "Votes"


def test_group_sits_at_earliest_member() -> None:
    items = [
        _item(1, ()),
        _item(2, ("b",)),
        _item(3, ("a",)),
        _item(4, ("b",)),
        _item(5, ("a",)),
    ]

    nodes = build_tree(items)

    assert isinstance(nodes[0], Item)
    assert [node.key for node in nodes[1:]] == ["b", "a"]
    assert [leaf.index for leaf in iter_items(nodes)] == [1, 2, 4, 3, 5]


def test_nested_group_position_uses_deep_members() -> None:
    items = [
        _item(1, ("top", "late")),
        _item(2, ("top", "early", "deep")),
        _item(3, ("top", "late")),
    ]

    (top,) = build_tree(items, collapse="never")

    assert [child.key for child in top.children] == ["late", "early"]
    assert top.children[1].position == 2


def test_collapse_uses_group_label_as_missing_title() -> None:
    nodes = build_tree([_item(1, ("solo_group",))])

    assert isinstance(nodes[0], Item)
    assert nodes[0].title == "Solo Group"


def test_collapse_policies() -> None:
    items = [_item(1, ("a", "b")), _item(2, ("a", "c")), _item(3, ("a", "c"))]

    never = build_tree([_item(1, ("x",))], collapse="never")
    assert isinstance(never[0], GroupNode)

    (root_tree,) = build_tree(items, collapse="root")
    assert all(isinstance(child, GroupNode) for child in root_tree.children)

    (recursive_tree,) = build_tree(items, collapse="recursive")
    assert isinstance(recursive_tree.children[0], Item)
    assert isinstance(recursive_tree.children[1], GroupNode)


def test_label_fallbacks() -> None:
    builder = TreeBuilder(label_fallback="verbatim")
    assert builder.label_for(("age_group",)) == "age_group"

    labeled = TreeBuilder({"a/b": "Qualified", "b": "Bare"})
    assert labeled.label_for(("a", "b")) == "Qualified"
    assert labeled.label_for(("c", "b")) == "Bare"
    assert humanize("age_group-detail") == "Age Group Detail"


def test_dotted_keys_do_not_cross_segment_boundaries() -> None:
    table = LabelTable({"a/v1.2": "Release", "a.v1.2": "Nested"})

    assert table.resolve(("a", "v1.2")) == "Release"
    assert LabelTable({"a.v1.2": "Nested"}).resolve(("a", "v1.2")) is None
    assert LabelTable({"v1.2": "Version"}).resolve(("v1.2",)) == "Version"
    assert TreeBuilder({"demo.age": "Age Group"}).label_for(("demo", "age")) == "Age Group"


def test_group_with_nested_subgroup_and_standalone_item() -> None:
    items = [
        _item(1, ("demographics",), title="Overview"),
        _item(2, ("demographics", "details"), title="Details"),
        _item(3, (), title="Standalone"),
    ]

    nodes = build_tree(items)

    assert len(nodes) == 2
    group, standalone = nodes
    assert isinstance(group, GroupNode)
    assert group.key == "demographics"
    assert group.label == "Demographics"
    overview, details = group.children
    assert isinstance(overview, Item) and overview.index == 1
    assert isinstance(details, GroupNode)
    assert details.key == "details"
    assert details.full_path == ("demographics", "details")
    assert [leaf.title for leaf in details.children] == ["Details"]
    assert isinstance(standalone, Item)
    assert standalone.title == "Standalone"


def test_non_items_are_rejected() -> None:
    with pytest.raises(ContractError):
        build_tree([{"kind": "bar"}])


def test_plan_sections_shared_and_separate() -> None:
    items = [
        _item(1, ("a",)),
        _item(2, ("a",)),
        _item(3, ("b",)),
        _item(4, ("b",)),
        _item(5, ()),
        _item(6, ("c",)),
        _item(7, ("c",)),
    ]
    nodes = build_tree(items)

    shared = plan_sections(nodes, shared_first_level=True)
    assert [(section.kind, len(section.nodes)) for section in shared] == [
        ("tabset", 2),
        ("item", 1),
        ("tabset", 1),
    ]

    separate = plan_sections(nodes, shared_first_level=False)
    assert [section.kind for section in separate] == ["tabset", "tabset", "item", "tabset"]
    assert [section.position for section in separate] == [1, 3, 5, 6]

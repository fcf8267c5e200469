"""
Fold a flat item list into the nested group tree consumed by emitters.

The fold is order-insensitive: items for the same group may be interleaved
with unrelated items, and a group still appears exactly once, at the position
of its earliest member.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Literal, Mapping, Optional, Sequence, Union

from dk_common.errors import ContractError
from dk_content.models import GroupNode, Item, LabelTable, Node, node_position
from dk_content.paths import GroupPath

logger = logging.getLogger(__name__)

_WORD_SEPARATORS = re.compile(r"[_\-\s]+")


def humanize(key: str) -> str:
    """``"age_group-detail"`` -> ``"Age Group Detail"``."""
    words = [word for word in _WORD_SEPARATORS.split(key) if word]
    return " ".join(word[:1].upper() + word[1:] for word in words) or key


@dataclass
class _Bucket:
    key: str
    full_path: GroupPath
    position: int
    entries: List[Union[Item, "_Bucket"]] = field(default_factory=list)
    groups: dict = field(default_factory=dict)

    def child(self, key: str, index: int) -> "_Bucket":
        bucket = self.groups.get(key)
        if bucket is None:
            bucket = _Bucket(key=key, full_path=self.full_path + (key,), position=index)
            self.groups[key] = bucket
            self.entries.append(bucket)
        bucket.position = min(bucket.position, index)
        return bucket


def _check_items(items: Iterable[object]) -> List[Item]:
    checked: List[Item] = []
    for item in items:
        if not isinstance(item, Item):
            raise ContractError(
                f"Tree input must be Item, got {type(item).__name__}",
                context={"value": item},
            )
        if not item.kind:
            raise ContractError(
                "Tree input contains an item without a kind",
                context={"index": item.index},
            )
        checked.append(item)
    return checked


def _insert(root: _Bucket, item: Item) -> None:
    node = root
    for key in item.path[:-1]:
        node = node.child(key, item.index)
    node.child(item.path[-1], item.index).entries.append(item)


def _position(entry: Union[Item, _Bucket]) -> int:
    return entry.position if isinstance(entry, _Bucket) else entry.index


class TreeBuilder:
    """Materialize items into ``GroupNode`` / ``Item`` nodes.

    Args:
        labels: Explicit display labels.
        collapse: ``"never"``, ``"root"`` (single-item top-level groups become
            standalone items) or ``"recursive"`` (same rule at every depth).
        label_fallback: ``"humanize"`` or ``"verbatim"`` for unlabeled groups.
    """

    def __init__(
        self,
        labels: Optional[Mapping[str, str]] = None,
        *,
        collapse: Literal["never", "root", "recursive"] = "root",
        label_fallback: Literal["humanize", "verbatim"] = "humanize",
    ):
        self.labels = labels if isinstance(labels, LabelTable) else LabelTable(labels)
        self.collapse = collapse
        self.label_fallback = label_fallback

    def label_for(self, full_path: GroupPath) -> str:
        explicit = self.labels.resolve(full_path)
        if explicit is not None:
            return explicit
        key = full_path[-1]
        return humanize(key) if self.label_fallback == "humanize" else key

    def build(self, items: Iterable[Item]) -> List[Node]:
        ordered = sorted(_check_items(items), key=lambda item: item.index)
        root = _Bucket(key="", full_path=(), position=0)
        for item in ordered:
            if item.path:
                _insert(root, item)
            else:
                root.entries.append(item)
        nodes = self._finalize_entries(root.entries, depth=0)
        logger.debug(
            "Materialized %d items into %d top-level nodes", len(ordered), len(nodes)
        )
        return nodes

    def _finalize_entries(self, entries: Sequence[Union[Item, _Bucket]], depth: int) -> List[Node]:
        ordered = sorted(entries, key=_position)
        result: List[Node] = []
        for entry in ordered:
            if isinstance(entry, Item):
                result.append(entry)
            else:
                result.append(self._finalize_group(entry, depth))
        return result

    def _should_collapse(self, depth: int) -> bool:
        if self.collapse == "recursive":
            return True
        return self.collapse == "root" and depth == 0

    def _finalize_group(self, bucket: _Bucket, depth: int) -> Node:
        children = self._finalize_entries(bucket.entries, depth + 1)
        label = self.label_for(bucket.full_path)
        if (
            self._should_collapse(depth)
            and len(children) == 1
            and isinstance(children[0], Item)
        ):
            only = children[0]
            return replace(only, title=only.title or label)
        return GroupNode(
            key=bucket.key,
            full_path=bucket.full_path,
            label=label,
            children=tuple(children),
            position=bucket.position,
        )


def build_tree(
    items: Iterable[Item],
    labels: Optional[Mapping[str, str]] = None,
    *,
    collapse: Literal["never", "root", "recursive"] = "root",
    label_fallback: Literal["humanize", "verbatim"] = "humanize",
) -> List[Node]:
    """Functional shorthand for ``TreeBuilder(...).build(items)``."""
    return TreeBuilder(labels, collapse=collapse, label_fallback=label_fallback).build(items)


def iter_items(nodes: Iterable[Node]) -> Iterator[Item]:
    """Every leaf in document order."""
    for node in nodes:
        if isinstance(node, GroupNode):
            yield from node.items()
        else:
            yield node


@dataclass(frozen=True)
class LayoutSection:
    """A run of top-level nodes rendered together.

    ``tabset`` sections hold group nodes sharing one tab strip; ``item``
    sections hold a single standalone item.
    """

    kind: Literal["tabset", "item"]
    nodes: tuple

    @property
    def position(self) -> int:
        return node_position(self.nodes[0])


def plan_sections(nodes: Sequence[Node], shared_first_level: bool = True) -> List[LayoutSection]:
    """
    Group the top-level sequence into layout sections.

    With ``shared_first_level`` consecutive top-level groups share one tab
    strip; otherwise each group is an independent stacked section with its own
    sub-tabs. Standalone items always form their own section.
    """
    sections: List[LayoutSection] = []
    run: List[GroupNode] = []

    def flush() -> None:
        if run:
            sections.append(LayoutSection(kind="tabset", nodes=tuple(run)))
            run.clear()

    for node in nodes:
        if isinstance(node, GroupNode):
            if shared_first_level:
                run.append(node)
            else:
                sections.append(LayoutSection(kind="tabset", nodes=(node,)))
        else:
            flush()
            sections.append(LayoutSection(kind="item", nodes=(node,)))
    flush()
    return sections

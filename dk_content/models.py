"""Core data model: items, group nodes, label tables and validation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from dk_content.paths import LABEL_DELIMITER, GroupPath, join_path, label_key, slash_path


def _freeze(params: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(params or {}))


@dataclass(frozen=True)
class ItemDraft:
    """An item before the registry gives it an insertion index."""

    kind: str
    path: GroupPath = ()
    params: Mapping[str, Any] = field(default_factory=dict)
    title: Optional[str] = None
    tab_title: Optional[str] = None
    dataset: Optional[str] = None


@dataclass(frozen=True)
class Item:
    """A leaf unit of content, immutable once appended."""

    kind: str
    path: GroupPath
    index: int
    params: Mapping[str, Any]
    title: Optional[str] = None
    tab_title: Optional[str] = None
    dataset: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: ItemDraft, index: int) -> "Item":
        return cls(
            kind=draft.kind,
            path=tuple(draft.path),
            index=index,
            params=_freeze(draft.params),
            title=draft.title,
            tab_title=draft.tab_title,
            dataset=draft.dataset,
        )

    @property
    def display_tab_title(self) -> Optional[str]:
        return self.tab_title if self.tab_title is not None else self.title

    def get(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "path": list(self.path),
            "index": self.index,
            "title": self.title,
            "tab_title": self.tab_title,
            "dataset": self.dataset,
            "params": dict(self.params),
        }


@dataclass(frozen=True)
class GroupNode:
    """A materialized tab group.

    ``position`` is the smallest insertion index found anywhere below the
    node; it decides where the group sits among its siblings.
    """

    key: str
    full_path: GroupPath
    label: str
    children: Tuple["Node", ...]
    position: int

    def items(self) -> Iterator[Item]:
        """Depth-first iteration over every leaf below this node."""
        for child in self.children:
            if isinstance(child, GroupNode):
                yield from child.items()
            else:
                yield child

    @property
    def dotted_path(self) -> str:
        return join_path(self.full_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "path": list(self.full_path),
            "label": self.label,
            "position": self.position,
            "children": [child.to_dict() for child in self.children],
        }


Node = Union[GroupNode, Item]


def node_position(node: Node) -> int:
    return node.position if isinstance(node, GroupNode) else node.index


class LabelTable(Mapping[str, str]):
    """Display labels keyed by full path (``a/b`` or dotted ``a.b``) or bare key (``b``).

    Lookup order for a group at ``("a", "b")``: the slash key ``a/b``, then the
    dotted key ``a.b``, then the bare key ``b``. The dotted form is skipped when
    a path segment itself contains a dot, so a group keyed ``v1.2`` never
    picks up the qualified label of ``("v1", "2")``; spell qualified labels
    with ``/`` when keys contain dots.
    """

    def __init__(self, labels: Optional[Mapping[str, str]] = None):
        self._labels: Dict[str, str] = {}
        for key, value in (labels or {}).items():
            self._labels[label_key(str(key))] = str(value)

    def __getitem__(self, key: str) -> str:
        return self._labels[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __repr__(self) -> str:
        return f"LabelTable({self._labels!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LabelTable):
            return self._labels == other._labels
        if isinstance(other, Mapping):
            return self._labels == dict(other)
        return NotImplemented

    def resolve(self, full_path: GroupPath) -> Optional[str]:
        """Qualified label first, then the bare key."""
        if not full_path:
            return None
        if len(full_path) > 1:
            qualified = self._labels.get(slash_path(full_path))
            if qualified is None and not any(LABEL_DELIMITER in key for key in full_path):
                qualified = self._labels.get(join_path(full_path))
            if qualified is not None:
                return qualified
        return self._labels.get(full_path[-1])

    def updated(self, labels: Optional[Mapping[str, str]]) -> "LabelTable":
        """New table with ``labels`` applied on top (last write wins per key)."""
        merged = LabelTable(self._labels)
        for key, value in (labels or {}).items():
            merged._labels[label_key(str(key))] = str(value)
        return merged


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in one item's spec."""

    item_index: int
    kind: str
    field: str
    message: str
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_index": self.item_index,
            "kind": self.kind,
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    issues: Tuple[ValidationIssue, ...] = ()

    def by_item(self) -> Dict[int, List[ValidationIssue]]:
        grouped: Dict[int, List[ValidationIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.item_index, []).append(issue)
        return grouped


@dataclass(frozen=True)
class MergeConflict:
    """Divergent collection-level settings found while merging."""

    setting: str
    values: Tuple[Any, ...]
    chosen: Any
    message: str

"""Split a materialized top-level sequence into pages at pagination markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from dk_content.kinds import PAGINATION_KIND
from dk_content.models import Item, Node


@dataclass(frozen=True)
class PageSection:
    """Nodes rendered on one output page and the marker that closed it, if any."""

    nodes: tuple
    pagination_after: Optional[Item] = None

    @property
    def is_last(self) -> bool:
        return self.pagination_after is None


def is_pagination_marker(node: Node) -> bool:
    return isinstance(node, Item) and node.kind == PAGINATION_KIND


def split_sections(nodes: Sequence[Node]) -> List[PageSection]:
    """Split at top-level pagination markers, dropping empty sections."""
    sections: List[PageSection] = []
    current: List[Node] = []
    for node in nodes:
        if is_pagination_marker(node):
            if current:
                sections.append(PageSection(nodes=tuple(current), pagination_after=node))
            current = []
            continue
        current.append(node)
    if current:
        sections.append(PageSection(nodes=tuple(current)))
    return sections

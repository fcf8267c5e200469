"""Human-readable structure of a collection, rendered with rich."""

from __future__ import annotations

import io
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from dk_content.models import GroupNode, Item, Node


def _leaf_label(item: Item) -> str:
    label = f"[bold]{item.kind.upper()}[/bold]"
    caption = item.title or item.get("x_var") or item.get("content")
    if isinstance(caption, str) and caption:
        first_line = caption.splitlines()[0]
        label += f": {escape(first_line[:60])}"
    if item.get("filter"):
        label += " [dim]\\[filtered][/dim]"
    if item.dataset:
        label += f" [dim](data: {item.dataset})[/dim]"
    return label


def _add_node(parent: Tree, node: Node) -> None:
    if isinstance(node, GroupNode):
        branch = parent.add(f"[cyan]{escape(node.label)}[/cyan]")
        for child in node.children:
            _add_node(branch, child)
    else:
        parent.add(_leaf_label(node))


def build_rich_tree(collection: Any, title: Optional[str] = None) -> Tree:
    nodes = collection.materialize()
    heading = title or f"Collection: {len(collection)} item(s)"
    if collection.conflicts:
        heading += f" [yellow]({len(collection.conflicts)} merge conflict(s))[/yellow]"
    tree = Tree(heading)
    for node in nodes:
        _add_node(tree, node)
    return tree


def describe(target: Any) -> str:
    """Plain-text tree of a Collection or Page."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=100, color_system=None)
    console.print(target)
    return buffer.getvalue().rstrip("\n")

"""Declarative dashboard content: collections, group trees and spec validation."""

from dk_content.api import (
    Collection,
    ContentBlock,
    Page,
    SpecValidator,
    TreeBuilder,
    combine,
    create_content,
    create_viz,
    load_collection,
    normalize_path,
    prepare_render,
)

__all__ = [
    "Collection",
    "combine",
    "ContentBlock",
    "create_content",
    "create_viz",
    "load_collection",
    "normalize_path",
    "Page",
    "prepare_render",
    "SpecValidator",
    "TreeBuilder",
]

"""Stable content API surface."""

from dk_content.collection import (
    Collection,
    ContentBlock,
    block,
    create_content,
    create_viz,
    text_block,
)
from dk_content.describe import build_rich_tree, describe
from dk_content.handoff import RenderPlan, prepare_render
from dk_content.kinds import KindRegistry, KindSpec, default_registry, suggest
from dk_content.loader import load_collection
from dk_content.merge import combine, merge_collections
from dk_content.models import (
    GroupNode,
    Item,
    ItemDraft,
    LabelTable,
    MergeConflict,
    ValidationIssue,
    ValidationResult,
)
from dk_content.page import Page
from dk_content.pagination import PageSection, split_sections
from dk_content.paths import join_path, normalize_path
from dk_content.registry import ItemRegistry
from dk_content.tree import LayoutSection, TreeBuilder, build_tree, plan_sections
from dk_content.validation import SpecValidator, format_issue, validate_items

__all__ = [
    "block",
    "build_rich_tree",
    "build_tree",
    "Collection",
    "combine",
    "ContentBlock",
    "create_content",
    "create_viz",
    "default_registry",
    "describe",
    "format_issue",
    "GroupNode",
    "Item",
    "ItemDraft",
    "ItemRegistry",
    "join_path",
    "KindRegistry",
    "KindSpec",
    "LabelTable",
    "LayoutSection",
    "load_collection",
    "merge_collections",
    "MergeConflict",
    "normalize_path",
    "Page",
    "PageSection",
    "plan_sections",
    "prepare_render",
    "RenderPlan",
    "SpecValidator",
    "split_sections",
    "suggest",
    "text_block",
    "TreeBuilder",
    "validate_items",
    "ValidationIssue",
    "ValidationResult",
]

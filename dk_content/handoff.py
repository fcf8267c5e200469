"""
Render hand-off: everything an emitter needs, validated up front.

The core never emits documents itself. ``prepare_render`` materializes the
collection once and returns the tree, its layout sections and its page split
so that an emitter only walks data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from dk_common.errors import SpecValidationError
from dk_common.settings import DashkitSettings
from dk_content.models import Node, ValidationIssue
from dk_content.pagination import PageSection, split_sections
from dk_content.tree import LayoutSection, plan_sections
from dk_content.validation import format_issue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderPlan:
    nodes: Tuple[Node, ...]
    sections: Tuple[LayoutSection, ...]
    pages: Tuple[PageSection, ...]
    issues: Tuple[ValidationIssue, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.issues


def prepare_render(
    collection: Any,
    data: Any = None,
    settings: Optional[DashkitSettings] = None,
) -> RenderPlan:
    """
    Validate and materialize ``collection`` for an emitter.

    Validation always collects every issue. With ``refuse_invalid_render``
    set, any issue raises; otherwise issues travel on the plan.

    Raises:
        SpecValidationError: If the collection is invalid and rendering
            invalid collections is refused.
    """
    resolved = settings or collection.settings
    result = collection.validate(data, stop_on_first_error=False, settings=resolved)
    if not result.valid and resolved.refuse_invalid_render:
        first = result.issues[0]
        message = format_issue(first, collection.kinds.find(first.kind))
        if len(result.issues) > 1:
            message += f"\n… and {len(result.issues) - 1} more issue(s)"
        raise SpecValidationError(message, issues=result.issues)

    nodes = collection.materialize(resolved)
    shared = collection.explicit_shared_first_level
    if shared is None:
        shared = resolved.shared_first_level

    pages = split_sections(nodes)
    sections: List[LayoutSection] = []
    for page in pages:
        sections.extend(plan_sections(page.nodes, shared))
    for conflict in collection.conflicts:
        logger.info("Rendering with merge conflict: %s", conflict.message)
    logger.debug("Prepared render plan: %d nodes, %d pages", len(nodes), len(pages))
    return RenderPlan(
        nodes=tuple(nodes),
        sections=tuple(sections),
        pages=tuple(pages),
        issues=result.issues,
    )

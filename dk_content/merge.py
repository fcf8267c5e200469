"""
Combine collections.

Merging is a flattening concatenation: items are laid end to end in argument
order and renumbered from 1, so merging is associative with respect to item
order. Collection-level settings that disagree are reported as
``MergeConflict`` records on the result instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from dk_common.errors import ContractError
from dk_content.models import Item, LabelTable, MergeConflict
from dk_content.registry import ItemRegistry

logger = logging.getLogger(__name__)


def _distinct(values: Sequence[Any]) -> List[Any]:
    """Distinct values by identity, keeping first-seen order."""
    seen: List[Any] = []
    for value in values:
        if not any(value is other for other in seen):
            seen.append(value)
    return seen


def _resolve_setting(
    name: str,
    values: Sequence[Any],
    conflicts: List[MergeConflict],
    *,
    by_identity: bool = False,
) -> Any:
    """Last explicitly set value wins; disagreeing explicit values are flagged."""
    explicit = [value for value in values if value is not None]
    if not explicit:
        return None
    chosen = explicit[-1]
    distinct = _distinct(explicit) if by_identity else list(dict.fromkeys(explicit))
    if len(distinct) > 1:
        shown = tuple(_describe_value(value) for value in distinct)
        conflict = MergeConflict(
            setting=name,
            values=shown,
            chosen=_describe_value(chosen),
            message=(
                f"Merged collections disagree on '{name}' ({', '.join(map(str, shown))}); "
                f"using {_describe_value(chosen)}"
            ),
        )
        conflicts.append(conflict)
    return chosen


def _describe_value(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    shape = getattr(value, "shape", None)
    if shape is not None:
        return f"<{type(value).__name__} {shape}>"
    return f"<{type(value).__name__}>"


def _merge_datasets(
    maps: Sequence[Dict[str, Any]], conflicts: List[MergeConflict]
) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    bindings: Dict[str, List[Any]] = {}
    for mapping in maps:
        for name, handle in mapping.items():
            merged[name] = handle
            bindings.setdefault(name, []).append(handle)
    for name, handles in bindings.items():
        _resolve_setting(f"datasets.{name}", handles, conflicts, by_identity=True)
    return merged


def merge_collections(collections: Sequence[Any]):
    """
    Merge collections into a new one.

    Rules:
        - items are concatenated in argument order and renumbered from 1;
        - labels and defaults are merged key by key, later collections win;
        - ``shared_first_level`` and the default dataset take the last value
          that was set explicitly; disagreeing values add a ``MergeConflict``;
        - named datasets are merged by name, later wins, rebinding a name to a
          different handle adds a ``MergeConflict``;
        - conflicts already present on the inputs are carried over.
    """
    from dk_content.collection import Collection

    for position, collection in enumerate(collections):
        if not isinstance(collection, Collection):
            raise ContractError(
                f"merge_collections() argument {position + 1} is not a Collection",
                context={"type": type(collection).__name__},
            )
    if not collections:
        return Collection()

    items: List[Item] = []
    labels = LabelTable()
    defaults: Dict[str, Any] = {}
    conflicts: List[MergeConflict] = []
    for collection in collections:
        items.extend(collection.items)
        labels = labels.updated(collection.labels)
        defaults.update(collection.defaults)
        conflicts.extend(collection.conflicts)

    carried = len(conflicts)
    shared = _resolve_setting(
        "shared_first_level",
        [collection.explicit_shared_first_level for collection in collections],
        conflicts,
    )
    data = _resolve_setting(
        "data", [collection.data for collection in collections], conflicts, by_identity=True
    )
    datasets = _merge_datasets([dict(collection.datasets) for collection in collections], conflicts)

    for conflict in conflicts[carried:]:
        logger.warning(conflict.message)

    first = collections[0]
    merged = Collection._from_parts(
        registry=ItemRegistry.from_items(items, renumber=True),
        labels=labels,
        defaults=defaults,
        data=data,
        datasets=datasets,
        shared_first_level=shared,
        conflicts=tuple(conflicts),
        kinds=first.kinds,
        settings=first.settings,
    )
    logger.debug("Merged %d collections into %d items", len(collections), len(items))
    return merged


def combine(*parts: Any):
    """
    Combine content containers without operator overloading.

    Accepts any mix of ``Collection``, ``ContentBlock`` and ``Page``. When the
    first part is a Page, the rest are added to it as content and the Page is
    returned; otherwise the result is a merged Collection.
    """
    from dk_content.collection import Collection
    from dk_content.page import Page

    if not parts:
        return Collection()
    head, rest = parts[0], parts[1:]
    if isinstance(head, Page):
        return head.add_content(*(_as_collection(part) for part in rest))
    return merge_collections([_as_collection(part) for part in parts])


def _as_collection(part: Any):
    from dk_content.collection import Collection, ContentBlock
    from dk_content.page import Page

    if isinstance(part, Collection):
        return part
    if isinstance(part, ContentBlock):
        return Collection().add_block(part.kind, tabgroup=part.tabgroup, title=part.title, **part.params)
    if isinstance(part, Page):
        return part.to_collection()
    raise ContractError(
        f"Cannot combine object of type {type(part).__name__}",
        context={"type": type(part).__name__},
    )

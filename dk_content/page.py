"""Named dashboard pages holding direct items plus attached collections."""

from __future__ import annotations

import functools
from typing import Any, Mapping, Optional, Tuple

from dk_common.errors import ContentError, ContractError
from dk_content.collection import Collection


class Page:
    """
    A named page.

    Items added with ``add_viz``/``add_text``/... go into the page's own
    collection; ``add_content`` attaches whole collections. ``to_collection``
    merges the direct items first, then each attached collection in order,
    with the page's datasets and labels bound on the result.
    """

    def __init__(
        self,
        name: str,
        *,
        data: Any = None,
        datasets: Optional[Mapping[str, Any]] = None,
        shared_first_level: bool = True,
        defaults: Optional[Mapping[str, Any]] = None,
    ):
        if not isinstance(name, str) or not name.strip():
            raise ContentError("Page name must be a non-empty string", context={"name": name})
        self.name = name
        self.data = data
        self.datasets = dict(datasets or {})
        self.shared_first_level = shared_first_level
        self._direct = Collection(defaults=defaults)
        self._contents: Tuple[Collection, ...] = ()
        self._labels: dict = {}

    def _copy(self) -> "Page":
        new = Page.__new__(Page)
        new.__dict__.update(self.__dict__)
        new.datasets = dict(self.datasets)
        new._labels = dict(self._labels)
        return new

    def _with_direct(self, direct: Collection) -> "Page":
        new = self._copy()
        new._direct = direct
        return new

    @property
    def contents(self) -> Tuple[Collection, ...]:
        return self._contents

    def add_content(self, *collections: Any) -> "Page":
        """Attach collections (or anything ``combine`` accepts) after the direct items."""
        from dk_content.merge import _as_collection

        attached = []
        for part in collections:
            if isinstance(part, Page):
                raise ContractError("Pages cannot be nested", context={"page": part.name})
            attached.append(_as_collection(part))
        new = self._copy()
        new._contents = self._contents + tuple(attached)
        return new

    def set_labels(self, labels: Optional[Mapping[str, str]] = None, **more: str) -> "Page":
        new = self._copy()
        new._labels.update(labels or {})
        new._labels.update(more)
        return new

    def to_collection(self) -> Collection:
        from dk_content.merge import merge_collections

        merged = merge_collections([self._direct, *self._contents])
        return (
            merged.set_labels(self._labels)
            .with_data(self.data, **self.datasets)
            .with_shared_first_level(self.shared_first_level)
        )

    def describe(self) -> str:
        from dk_content.describe import describe

        return describe(self)

    def __rich__(self):
        from dk_content.describe import build_rich_tree

        return build_rich_tree(self.to_collection(), title=f"Page: {self.name}")

    def __repr__(self) -> str:
        return f"Page({self.name!r}, direct={len(self._direct)}, contents={len(self._contents)})"


def _delegate(name: str):
    target = getattr(Collection, name)

    @functools.wraps(target)
    def method(self: Page, *args: Any, **kwargs: Any) -> Page:
        return self._with_direct(getattr(self._direct, name)(*args, **kwargs))

    return method


for _name in (
    "add_viz",
    "add_vizzes",
    "add_block",
    "add_text",
    "add_image",
    "add_video",
    "add_iframe",
    "add_callout",
    "add_divider",
    "add_code",
    "add_spacer",
    "add_table",
    "add_accordion",
    "add_card",
    "add_html",
    "add_quote",
    "add_badge",
    "add_metric",
    "add_value_box",
    "add_value_box_row",
    "add_pagination",
):
    setattr(Page, _name, _delegate(_name))
del _name

"""
The content collection: a pipeable builder of visualizations and content blocks.

Every ``add_*`` / ``set_*`` / ``with_*`` call returns a NEW collection; the
receiver is never modified. Pipelines can therefore branch freely::

    base = create_viz(type="bar").set_labels({"demo": "Demographics"})
    age = base.add_viz(x_var="age", tabgroup="demo")
    income = base.add_viz(x_var="income", tabgroup="demo")   # base is unchanged
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from dk_common.errors import ContentError, DatasetError
from dk_common.settings import DashkitSettings
from dk_content.kinds import PAGINATION_KIND, KindRegistry, default_registry
from dk_content.models import Item, ItemDraft, LabelTable, MergeConflict, Node, ValidationResult
from dk_content.paths import normalize_path
from dk_content.registry import ItemRegistry
from dk_content.tree import LayoutSection, TreeBuilder, plan_sections
from dk_content.validation import SpecValidator

logger = logging.getLogger(__name__)

# Parameters add_viz handles itself; everything else is passed to the renderer.
VIZ_FIELDS = ("type", "tabgroup", "title", "tab_title", "title_tabset", "data")
EXPANDABLE_PARAMS = ("response_var", "x_var", "y_var", "stack_var", "questions", "group_var", "title")
TEXT_POSITIONS = ("above", "below")
CALLOUT_TYPES = ("note", "tip", "warning", "caution", "important")
IMAGE_ALIGNMENTS = ("center", "left", "right")
_ICON_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+:[a-zA-Z0-9_-]+$")


@dataclass(frozen=True)
class ContentBlock:
    """A content block not yet placed in a collection (see ``combine``)."""

    kind: str
    params: Mapping[str, Any] = field(default_factory=dict)
    tabgroup: Any = None
    title: Optional[str] = None


def block(kind: str, *, tabgroup: Any = None, title: Optional[str] = None, **params: Any) -> ContentBlock:
    """Create a standalone content block."""
    canonical = default_registry().resolve(kind)
    return ContentBlock(kind=canonical, params=MappingProxyType(dict(params)), tabgroup=tabgroup, title=title)


def text_block(*lines: str, tabgroup: Any = None) -> ContentBlock:
    """Standalone text block; lines are joined with newlines."""
    if not lines:
        raise ContentError("text_block() needs at least one line of text")
    return block("text", tabgroup=tabgroup, content="\n".join(str(line) for line in lines))


def _require_str(name: str, value: Any, allow_none: bool = True) -> None:
    if value is None and allow_none:
        return
    if not isinstance(value, str) or not value.strip():
        raise ContentError(
            f"{name} must be a non-empty string{' or None' if allow_none else ''}",
            context={name: value},
        )


def _require_choice(name: str, value: Any, choices: Sequence[str]) -> None:
    if value not in choices:
        raise ContentError(
            f"{name} must be one of: {', '.join(choices)}",
            context={name: value},
        )


class Collection:
    """Ordered items plus the labels, defaults and datasets they render with.

    Args:
        labels: Display labels for group keys (bare ``key`` or ``a/b`` paths).
        data: The default dataset handle (usually a DataFrame).
        datasets: Named dataset handles, selected per item with ``data=``.
        shared_first_level: Render top-level groups in one tab strip; ``None``
            leaves the choice to settings (and lets a later merge decide).
        defaults: Parameters applied to every later ``add_viz`` call.
        kinds: Kind registry (defaults to the built-in kinds).
        settings: Build settings (defaults to ``DashkitSettings()``).
    """

    def __init__(
        self,
        labels: Optional[Mapping[str, str]] = None,
        *,
        data: Any = None,
        datasets: Optional[Mapping[str, Any]] = None,
        shared_first_level: Optional[bool] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        kinds: Optional[KindRegistry] = None,
        settings: Optional[DashkitSettings] = None,
    ):
        self._registry = ItemRegistry()
        self.labels = LabelTable(labels)
        self.defaults: Mapping[str, Any] = MappingProxyType(dict(defaults or {}))
        self.data = data
        self.datasets: Mapping[str, Any] = MappingProxyType(dict(datasets or {}))
        self._shared_first_level = shared_first_level
        self.conflicts: Tuple[MergeConflict, ...] = ()
        self.kinds = kinds or default_registry()
        self.settings = settings or DashkitSettings()

    @classmethod
    def _from_parts(
        cls,
        *,
        registry: ItemRegistry,
        labels: LabelTable,
        defaults: Mapping[str, Any],
        data: Any,
        datasets: Mapping[str, Any],
        shared_first_level: Optional[bool],
        conflicts: Tuple[MergeConflict, ...],
        kinds: KindRegistry,
        settings: Optional[DashkitSettings] = None,
    ) -> "Collection":
        new = cls(
            data=data,
            datasets=datasets,
            shared_first_level=shared_first_level,
            defaults=defaults,
            kinds=kinds,
            settings=settings,
        )
        new._registry = registry
        new.labels = labels
        new.conflicts = tuple(conflicts)
        return new

    def _evolve(self, **changes: Any) -> "Collection":
        parts = {
            "registry": self._registry,
            "labels": self.labels,
            "defaults": self.defaults,
            "data": self.data,
            "datasets": self.datasets,
            "shared_first_level": self._shared_first_level,
            "conflicts": self.conflicts,
            "kinds": self.kinds,
            "settings": self.settings,
        }
        parts.update(changes)
        return Collection._from_parts(**parts)

    def _append(self, draft: ItemDraft) -> "Collection":
        registry = self._registry.copy()
        item = registry.append(draft)
        logger.debug("Added %s item %d at path %s", item.kind, item.index, "/".join(item.path) or "-")
        return self._evolve(registry=registry)

    def _path(self, tabgroup: Any):
        return normalize_path(tabgroup, warn=self.settings.warn_ambiguous_paths)

    # -- inspection ---------------------------------------------------------

    @property
    def items(self) -> Tuple[Item, ...]:
        return tuple(self._registry)

    @property
    def explicit_shared_first_level(self) -> Optional[bool]:
        return self._shared_first_level

    @property
    def shared_first_level(self) -> bool:
        if self._shared_first_level is None:
            return self.settings.shared_first_level
        return self._shared_first_level

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def __len__(self) -> int:
        return len(self._registry)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._registry)

    def __repr__(self) -> str:
        return f"Collection(items={len(self)}, labels={len(self.labels)}, conflicts={len(self.conflicts)})"

    def __rich__(self):
        from dk_content.describe import build_rich_tree

        return build_rich_tree(self)

    def describe(self) -> str:
        from dk_content.describe import describe

        return describe(self)

    # -- visualizations -----------------------------------------------------

    def add_viz(
        self,
        type: Optional[str] = None,
        *,
        tabgroup: Any = None,
        title: Optional[str] = None,
        tab_title: Optional[str] = None,
        text: Optional[str] = None,
        icon: Optional[str] = None,
        text_position: Optional[str] = None,
        height: Optional[float] = None,
        filter: Optional[str] = None,
        data: Optional[str] = None,
        drop_na_vars: Any = None,
        **params: Any,
    ) -> "Collection":
        """
        Append one visualization.

        Effective parameters are the collection defaults overlaid with every
        argument given here (``None`` means "not given"). They are resolved now
        and frozen into the item, so later default changes do not affect it.

        Raises:
            ContentError: If the type is missing or unknown, or an argument has
                the wrong shape.
        """
        given = {
            "type": type,
            "tabgroup": tabgroup,
            "title": title,
            "tab_title": tab_title,
            "text": text,
            "icon": icon,
            "text_position": text_position,
            "height": height,
            "filter": filter,
            "data": data,
            "drop_na_vars": drop_na_vars,
        }
        effective: Dict[str, Any] = dict(self.defaults)
        effective.update({key: value for key, value in given.items() if value is not None})
        effective.update(params)
        return self._append(self._viz_draft(effective))

    def _viz_draft(self, effective: Dict[str, Any]) -> ItemDraft:
        kind_name = effective.pop("type", None)
        if not isinstance(kind_name, str) or not kind_name.strip():
            raise ContentError(
                "'type' parameter is required\n"
                f"ℹ Available types: {', '.join(self.kinds.names('viz')[:6])}, ...\n"
                'ℹ Example: add_viz(type="histogram", x_var="age")'
            )
        kind = self.kinds.resolve(kind_name.strip())
        if not self.kinds.is_category(kind, "viz"):
            raise ContentError(
                f"'{kind_name}' is not a visualization type; use add_block() for content blocks",
                context={"type": kind_name},
            )

        tabgroup = effective.pop("tabgroup", None)
        title = effective.pop("title", None)
        tab_title = effective.pop("tab_title", None) or effective.pop("title_tabset", None)
        effective.pop("title_tabset", None)
        data = effective.pop("data", None)

        if title is not None and not isinstance(title, str):
            raise ContentError("title must be a string or None", context={"title": title})
        if tab_title is not None and not isinstance(tab_title, str):
            raise ContentError("tab_title must be a string or None", context={"tab_title": tab_title})
        if effective.get("text") is not None and not isinstance(effective["text"], str):
            raise ContentError("text must be a string or None", context={"text": effective["text"]})
        _require_str("data", data)
        _require_str("filter", effective.get("filter"))

        effective.setdefault("text_position", "above")
        _require_choice("text_position", effective["text_position"], TEXT_POSITIONS)

        height = effective.get("height")
        if height is not None and (
            isinstance(height, bool) or not isinstance(height, (int, float)) or height <= 0
        ):
            raise ContentError("height must be a positive number or None", context={"height": height})

        icon = effective.get("icon")
        if icon is not None:
            _require_str("icon", icon)
            if not _ICON_PATTERN.match(icon) and "{{< iconify" not in icon:
                logger.warning(
                    "Icon '%s' should be in format 'collection:name' (e.g. 'ph:users-three')", icon
                )

        effective.setdefault("drop_na_vars", False)
        return ItemDraft(
            kind=kind,
            path=self._path(tabgroup),
            params=effective,
            title=title,
            tab_title=tab_title,
            dataset=data,
        )

    def add_vizzes(
        self,
        *,
        tabgroup_template: Optional[str] = None,
        title_template: Optional[str] = None,
        **params: Any,
    ) -> "Collection":
        """
        Append one visualization per element of the list-valued parameters.

        Lists given for any of ``EXPANDABLE_PARAMS`` are expanded in lockstep
        (they must share a length); every other parameter is repeated. A
        ``tabgroup`` list of the same length is distributed one per item.
        Templates are ``str.format`` strings receiving ``i`` (1-based) and the
        iteration's parameters, e.g. ``"survey/{x_var}"``.
        """
        vector_params = [
            name
            for name in EXPANDABLE_PARAMS
            if isinstance(params.get(name), (list, tuple)) and len(params[name]) > 1
        ]
        if not vector_params:
            raise ContentError(
                "No expandable parameters found with more than one value. "
                "Use add_viz() for single visualizations. "
                f"Expandable parameters: {', '.join(EXPANDABLE_PARAMS)}"
            )
        lengths = {name: len(params[name]) for name in vector_params}
        count = lengths[vector_params[0]]
        if any(length != count for length in lengths.values()):
            found = ", ".join(f"{name} = {length}" for name, length in lengths.items())
            raise ContentError(
                f"All expandable list parameters must have the same length. Found: {found}",
                context=lengths,
            )

        tabgroups = None
        raw_tabgroup = params.get("tabgroup")
        if isinstance(raw_tabgroup, (list, tuple)) and len(raw_tabgroup) == count:
            tabgroups = params.pop("tabgroup")

        result = self
        for position in range(count):
            iteration = {
                name: value[position] if name in vector_params else value
                for name, value in params.items()
            }
            if tabgroup_template is not None:
                iteration["tabgroup"] = _render_template(tabgroup_template, position, iteration)
            elif tabgroups is not None:
                iteration["tabgroup"] = tabgroups[position]
            if title_template is not None:
                iteration["title"] = _render_template(title_template, position, iteration)
            result = result.add_viz(**iteration)
        return result

    # -- content blocks -----------------------------------------------------

    def add_block(
        self,
        kind: str,
        *,
        tabgroup: Any = None,
        title: Optional[str] = None,
        tab_title: Optional[str] = None,
        data: Optional[str] = None,
        **params: Any,
    ) -> "Collection":
        """Append a content block of any registered block kind."""
        canonical = self.kinds.resolve(kind)
        if not self.kinds.is_category(canonical, "block"):
            raise ContentError(
                f"'{kind}' is not a content block kind",
                context={"kind": kind},
            )
        _require_str("data", data)
        return self._append(
            ItemDraft(
                kind=canonical,
                path=self._path(tabgroup),
                params=params,
                title=title,
                tab_title=tab_title,
                dataset=data,
            )
        )

    def add_text(self, *lines: str, tabgroup: Any = None, title: Optional[str] = None) -> "Collection":
        """Append a markdown text block; lines are joined with newlines."""
        if not lines:
            raise ContentError("add_text() needs at least one line of text")
        content = "\n".join(str(line) for line in lines)
        return self.add_block("text", tabgroup=tabgroup, title=title, content=content)

    def add_image(
        self,
        src: str,
        *,
        alt: Optional[str] = None,
        caption: Optional[str] = None,
        width: Optional[str] = None,
        height: Optional[str] = None,
        align: str = "center",
        link: Optional[str] = None,
        css_class: Optional[str] = None,
        tabgroup: Any = None,
    ) -> "Collection":
        _require_str("src", src, allow_none=False)
        _require_choice("align", align, IMAGE_ALIGNMENTS)
        for name, value in (("alt", alt), ("caption", caption), ("width", width),
                            ("height", height), ("link", link), ("css_class", css_class)):
            if value is not None and not isinstance(value, str):
                raise ContentError(f"{name} must be a string or None", context={name: value})
        return self.add_block(
            "image",
            tabgroup=tabgroup,
            src=src,
            alt=alt or "",
            caption=caption,
            width=width,
            height=height,
            align=align,
            link=link,
            css_class=css_class,
        )

    def add_video(
        self,
        src: str,
        *,
        caption: Optional[str] = None,
        width: Optional[str] = None,
        height: Optional[str] = None,
        tabgroup: Any = None,
    ) -> "Collection":
        _require_str("src", src, allow_none=False)
        return self.add_block(
            "video", tabgroup=tabgroup, url=src, caption=caption, width=width, height=height
        )

    def add_iframe(
        self, src: str, *, height: str = "500px", width: str = "100%", tabgroup: Any = None
    ) -> "Collection":
        _require_str("src", src, allow_none=False)
        return self.add_block("iframe", tabgroup=tabgroup, url=src, height=height, width=width)

    def add_callout(
        self,
        text: str,
        *,
        type: str = "note",
        title: Optional[str] = None,
        icon: Optional[str] = None,
        collapse: bool = False,
        tabgroup: Any = None,
    ) -> "Collection":
        _require_choice("type", type, CALLOUT_TYPES)
        return self.add_block(
            "callout",
            tabgroup=tabgroup,
            title=title,
            callout_type=type,
            content=text,
            icon=icon,
            collapse=collapse,
        )

    def add_divider(self, style: str = "default", *, tabgroup: Any = None) -> "Collection":
        return self.add_block("divider", tabgroup=tabgroup, style=style)

    def add_code(
        self,
        code: str,
        *,
        language: str = "python",
        caption: Optional[str] = None,
        filename: Optional[str] = None,
        tabgroup: Any = None,
    ) -> "Collection":
        return self.add_block(
            "code", tabgroup=tabgroup, code=code, language=language, caption=caption, filename=filename
        )

    def add_spacer(self, height: str = "2rem", *, tabgroup: Any = None) -> "Collection":
        return self.add_block("spacer", tabgroup=tabgroup, height=height)

    def add_table(self, table: Any, *, caption: Optional[str] = None, tabgroup: Any = None) -> "Collection":
        """Append a table block; ``table`` is any tabular object, e.g. a DataFrame."""
        return self.add_block(
            "table",
            tabgroup=tabgroup,
            table=table,
            caption=caption,
            is_dataframe=hasattr(table, "columns"),
        )

    def add_accordion(self, title: str, text: str, *, open: bool = False, tabgroup: Any = None) -> "Collection":
        return self.add_block("accordion", tabgroup=tabgroup, title=title, text=text, open=open)

    def add_card(
        self, text: str, *, title: Optional[str] = None, footer: Optional[str] = None, tabgroup: Any = None
    ) -> "Collection":
        return self.add_block("card", tabgroup=tabgroup, title=title, text=text, footer=footer)

    def add_html(self, html: str, *, tabgroup: Any = None) -> "Collection":
        return self.add_block("html", tabgroup=tabgroup, html=html)

    def add_quote(
        self,
        quote: str,
        *,
        attribution: Optional[str] = None,
        cite: Optional[str] = None,
        tabgroup: Any = None,
    ) -> "Collection":
        return self.add_block("quote", tabgroup=tabgroup, quote=quote, attribution=attribution, cite=cite)

    def add_badge(self, text: str, *, color: str = "primary", tabgroup: Any = None) -> "Collection":
        return self.add_block("badge", tabgroup=tabgroup, text=text, color=color)

    def add_metric(
        self,
        value: Any,
        title: str,
        *,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        subtitle: Optional[str] = None,
        tabgroup: Any = None,
    ) -> "Collection":
        return self.add_block(
            "metric", tabgroup=tabgroup, title=title, value=value, icon=icon, color=color, subtitle=subtitle
        )

    def add_value_box(
        self,
        title: str,
        value: Any,
        *,
        logo_url: Optional[str] = None,
        logo_text: Optional[str] = None,
        bg_color: str = "#2c3e50",
        description: Optional[str] = None,
        description_title: str = "About this source",
        tabgroup: Any = None,
    ) -> "Collection":
        return self.add_block(
            "value-box",
            tabgroup=tabgroup,
            title=title,
            **_value_box_params(title, value, logo_url, logo_text, bg_color, description, description_title),
        )

    def add_value_box_row(self, boxes: Sequence[Mapping[str, Any]], *, tabgroup: Any = None) -> "Collection":
        """Append a row of value boxes; each box is a mapping with at least title and value."""
        rendered: List[Dict[str, Any]] = []
        for position, box in enumerate(boxes, start=1):
            if "title" not in box or "value" not in box:
                raise ContentError(
                    f"Value box {position} needs 'title' and 'value'",
                    context={"box": dict(box)},
                )
            rendered.append(
                _value_box_params(
                    box["title"],
                    box["value"],
                    box.get("logo_url"),
                    box.get("logo_text"),
                    box.get("bg_color", "#2c3e50"),
                    box.get("description"),
                    box.get("description_title", "About this source"),
                )
            )
        if not rendered:
            raise ContentError("add_value_box_row() needs at least one box")
        return self.add_block("value-box-row", tabgroup=tabgroup, boxes=rendered)

    def add_pagination(self, **params: Any) -> "Collection":
        """Append a page-break sentinel; emitters split output documents here."""
        draft = ItemDraft(kind=PAGINATION_KIND, params={"pagination_break": True, **params})
        return self._append(draft)

    # -- collection-level settings -------------------------------------------

    def set_labels(self, labels: Optional[Mapping[str, str]] = None, **more: str) -> "Collection":
        """Set group display labels; last write wins per key."""
        merged = dict(labels or {})
        merged.update(more)
        return self._evolve(labels=self.labels.updated(merged))

    def with_defaults(self, **defaults: Any) -> "Collection":
        """Overlay defaults for subsequent ``add_viz`` calls only."""
        merged = dict(self.defaults)
        merged.update(defaults)
        return self._evolve(defaults=MappingProxyType(merged))

    def with_data(self, data: Any = None, **datasets: Any) -> "Collection":
        """Bind the default dataset and/or named datasets."""
        merged = dict(self.datasets)
        merged.update(datasets)
        return self._evolve(
            data=self.data if data is None else data,
            datasets=MappingProxyType(merged),
        )

    def with_shared_first_level(self, shared: bool) -> "Collection":
        return self._evolve(shared_first_level=bool(shared))

    def with_settings(self, settings: DashkitSettings) -> "Collection":
        return self._evolve(settings=settings)

    # -- combination, materialization, validation ----------------------------

    def combine(self, *others: Any) -> "Collection":
        """Merge this collection with others (collections or content blocks)."""
        from dk_content.merge import combine

        return combine(self, *others)

    def materialize(self, settings: Optional[DashkitSettings] = None) -> List[Node]:
        """Snapshot the items as a nested tree of groups and leaves."""
        resolved = settings or self.settings
        builder = TreeBuilder(
            self.labels,
            collapse=resolved.collapse_policy,
            label_fallback=resolved.label_fallback,
        )
        return builder.build(self.items)

    def sections(self, settings: Optional[DashkitSettings] = None) -> List[LayoutSection]:
        resolved = settings or self.settings
        shared = (
            resolved.shared_first_level
            if self._shared_first_level is None
            else self._shared_first_level
        )
        return plan_sections(self.materialize(resolved), shared)

    def bound_datasets(self) -> Optional[Dict[str, Any]]:
        """Every bound dataset by name (the default one under ``"default"``)."""
        bound: Dict[str, Any] = {}
        if self.data is not None:
            bound["default"] = self.data
        bound.update(self.datasets)
        return bound or None

    def resolve_dataset(self, item: Item) -> Any:
        """
        The dataset handle an item renders with.

        Raises:
            DatasetError: If the item names a dataset that is not bound.
        """
        if item.dataset is None:
            if self.data is not None:
                return self.data
            if len(self.datasets) == 1:
                return next(iter(self.datasets.values()))
            return None
        if item.dataset not in self.datasets:
            raise DatasetError(
                f"Item {item.index} uses dataset '{item.dataset}' which is not bound",
                context={"item_index": item.index, "known": sorted(self.datasets)},
            )
        return self.datasets[item.dataset]

    def bound_items(self) -> List[Tuple[Item, Any]]:
        """Items paired with their resolved dataset handle, in insertion order."""
        return [(item, self.resolve_dataset(item)) for item in self.items]

    def validate(
        self,
        data: Any = None,
        *,
        stop_on_first_error: Optional[bool] = None,
        settings: Optional[DashkitSettings] = None,
    ) -> ValidationResult:
        """Validate every item, against ``data`` or the collection's bound datasets."""
        resolved = settings or self.settings
        validator = SpecValidator(self.kinds, resolved.suggestion_max_distance)
        stop = resolved.fail_fast if stop_on_first_error is None else stop_on_first_error
        dataset = data if data is not None else self.bound_datasets()
        return validator.validate(self.items, dataset, stop_on_first_error=stop)


def _value_box_params(
    title: Any,
    value: Any,
    logo_url: Optional[str],
    logo_text: Optional[str],
    bg_color: str,
    description: Optional[str],
    description_title: str,
) -> Dict[str, Any]:
    return {
        "box_title": title,
        "value": value,
        "logo_url": logo_url,
        "logo_text": logo_text,
        "bg_color": bg_color,
        "description": description,
        "description_title": description_title,
    }


def _render_template(template: str, position: int, values: Mapping[str, Any]) -> str:
    context = dict(values)
    context["i"] = position + 1
    try:
        return template.format(**context)
    except (KeyError, IndexError) as exc:
        raise ContentError(
            f"Template {template!r} refers to an unknown value: {exc}",
            context={"template": template},
            cause=exc,
        ) from exc


def create_content(labels: Optional[Mapping[str, str]] = None, **defaults: Any) -> Collection:
    """New empty collection; keyword arguments become ``add_viz`` defaults."""
    return Collection(labels, defaults=defaults)


def create_viz(labels: Optional[Mapping[str, str]] = None, **defaults: Any) -> Collection:
    """Alias of ``create_content`` kept for visualization-first pipelines."""
    return create_content(labels, **defaults)

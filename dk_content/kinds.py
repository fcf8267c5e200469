"""
Kind declarations and the kind registry.

Every item carries a ``kind``. This module is the single place that says which
kinds exist, which parameters each one requires, and which parameters name
dataset columns. New chart kinds extend the table here or register through the
``dashkit.kinds`` entry-point group.
"""

from __future__ import annotations

import importlib.metadata
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Literal, Optional, Tuple

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from dk_common.errors import ContentError

logger = logging.getLogger(__name__)

KIND_SCHEMA_VERSION = "1.0"
ENTRYPOINT_GROUP = "dashkit.kinds"
PAGINATION_KIND = "pagination-break"

KindCategory = Literal["viz", "block", "sentinel"]


@dataclass(frozen=True)
class KindSpec:
    """Declaration of one item kind.

    ``required`` lists fields that must all be present; an entry written as
    ``"url|src"`` is satisfied by any of its options. ``required_alternatives``
    holds OR-groups: at least one inner tuple must be fully present.
    """

    name: str
    category: KindCategory
    required: Tuple[str, ...] = ()
    required_alternatives: Tuple[Tuple[str, ...], ...] = ()
    column_params: Tuple[str, ...] = ()
    renderer: Optional[str] = None
    example: Optional[str] = None
    aliases: Tuple[str, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "required": list(self.required),
            "required_alternatives": [list(alt) for alt in self.required_alternatives],
            "column_params": list(self.column_params),
            "renderer": self.renderer,
            "example": self.example,
            "aliases": list(self.aliases),
        }


def _viz(name: str, **kwargs: Any) -> KindSpec:
    renderer = "viz_" + name.replace("-", "")
    return KindSpec(name=name, category="viz", renderer=renderer, **kwargs)


def _block(name: str, **kwargs: Any) -> KindSpec:
    return KindSpec(name=name, category="block", **kwargs)


BUILTIN_KINDS: Tuple[KindSpec, ...] = (
    _viz(
        "bar",
        required=("x_var",),
        column_params=("x_var", "group_var", "weight_var"),
        example='add_viz(type="bar", x_var="category")',
    ),
    _viz(
        "stacked-bar",
        required_alternatives=(("x_var", "stack_var"), ("x_vars",)),
        column_params=("x_var", "y_var", "stack_var", "x_vars", "weight_var"),
        example=(
            'add_viz(type="stacked-bar", x_var="age_group", stack_var="gender") OR '
            'add_viz(type="stacked-bar", x_vars=["q1", "q2", "q3"])'
        ),
        aliases=("stackedbar",),
    ),
    _viz(
        "stacked-bars",
        required=("x_vars",),
        column_params=("x_vars",),
        example='add_viz(type="stacked-bars", x_vars=["q1", "q2", "q3"])',
        aliases=("stackedbars",),
    ),
    _viz(
        "scatter",
        required=("x_var", "y_var"),
        column_params=("x_var", "y_var", "color_var", "size_var"),
        example='add_viz(type="scatter", x_var="weight", y_var="mpg")',
    ),
    _viz(
        "histogram",
        required=("x_var",),
        column_params=("x_var", "y_var", "group_var", "weight_var"),
        example='add_viz(type="histogram", x_var="age")',
    ),
    _viz(
        "density",
        required=("x_var",),
        column_params=("x_var", "group_var", "weight_var"),
        example='add_viz(type="density", x_var="income")',
    ),
    _viz(
        "treemap",
        required=("group_var", "value_var"),
        column_params=("group_var", "subgroup_var", "value_var", "color_var"),
        example='add_viz(type="treemap", group_var="category", value_var="count")',
    ),
    _viz(
        "boxplot",
        required=("y_var",),
        column_params=("y_var", "x_var", "weight_var"),
        example='add_viz(type="boxplot", y_var="score")',
    ),
    _viz(
        "map",
        required=("value_var",),
        column_params=("value_var", "join_var", "click_var"),
        example='add_viz(type="map", value_var="population", join_var="country_code")',
    ),
    _viz(
        "heatmap",
        required=("x_var", "y_var", "value_var"),
        column_params=("x_var", "y_var", "value_var"),
        example='add_viz(type="heatmap", x_var="hour", y_var="day", value_var="count")',
    ),
    _viz(
        "timeline",
        required=("time_var", "y_var"),
        column_params=("time_var", "y_var", "group_var"),
        example='add_viz(type="timeline", time_var="date", y_var="value")',
    ),
    _viz("pie", aliases=("donut",)),
    _viz("lollipop"),
    _viz("funnel", aliases=("pyramid",)),
    _viz("waffle"),
    _viz("dumbbell"),
    _viz("gauge"),
    _viz("sankey"),
    _block("text"),
    _block("image", required=("src",)),
    # Some builders persist `url`, others `src`.
    _block("video", required=("url|src",)),
    _block("iframe", required=("url|src",)),
    _block("code", required=("code",)),
    _block("callout"),
    _block("divider"),
    _block("spacer"),
    _block("table"),
    _block("accordion"),
    _block("card"),
    _block("html"),
    _block("quote"),
    _block("badge"),
    _block("metric"),
    _block("value-box", aliases=("value_box",)),
    _block("value-box-row", aliases=("value_box_row",)),
    KindSpec(name=PAGINATION_KIND, category="sentinel", aliases=("pagination",)),
)


class KindRegistry:
    """In-memory registry of kinds, with lazy entry-point discovery."""

    def __init__(self, kinds: Optional[Iterable[KindSpec]] = None, discover: bool = True):
        self._kinds: Dict[str, KindSpec] = {}
        self._aliases: Dict[str, str] = {}
        self._pending_entrypoints: Dict[str, importlib.metadata.EntryPoint] = {}
        for spec in BUILTIN_KINDS if kinds is None else kinds:
            self.register(spec)
        if discover:
            self._discover_entrypoint_kinds()

    def register(self, spec: Any) -> None:
        """Register a kind declaration (later registrations replace earlier ones)."""
        if not isinstance(spec, KindSpec):
            raise TypeError(f"Unknown kind declaration type: {type(spec)}")
        self._kinds[spec.name] = spec
        for alias in spec.aliases:
            self._aliases[alias] = spec.name

    def resolve(self, name: str) -> str:
        """Return the canonical kind name for ``name`` or an alias of it."""
        if name in self._kinds:
            return name
        if name in self._aliases:
            return self._aliases[name]
        if name in self._pending_entrypoints:
            self._load_entrypoint(name)
            if name in self._kinds:
                return name
        raise ContentError(
            _unknown_kind_message(name, self.names()),
            context={"kind": name},
        )

    def get(self, name: str) -> KindSpec:
        return self._kinds[self.resolve(name)]

    def find(self, name: str) -> Optional[KindSpec]:
        """Like ``get`` but returns None for unknown kinds."""
        canonical = self._aliases.get(name, name)
        return self._kinds.get(canonical)

    def is_category(self, name: str, category: KindCategory) -> bool:
        spec = self.find(name)
        return spec is not None and spec.category == category

    def names(self, category: Optional[KindCategory] = None) -> list[str]:
        return [
            name
            for name, spec in self._kinds.items()
            if category is None or spec.category == category
        ]

    def available(self, load_entrypoints: bool = False) -> Dict[str, KindSpec]:
        if load_entrypoints:
            for name in list(self._pending_entrypoints):
                self._load_entrypoint(name)
        return dict(self._kinds)

    def describe(self) -> Dict[str, Any]:
        """Inspectable snapshot of every declaration, tagged with the schema version."""
        return {
            "schema_version": KIND_SCHEMA_VERSION,
            "kinds": [spec.to_dict() for spec in self._kinds.values()],
        }

    def _discover_entrypoint_kinds(self) -> None:
        """Collect entry points without importing them. Loaded on demand."""
        try:
            eps = importlib.metadata.entry_points().select(group=ENTRYPOINT_GROUP)
        except Exception as exc:
            logger.debug("Failed to read entry points for group %s: %s", ENTRYPOINT_GROUP, exc)
            eps = ()
        for entry_point in eps:
            self._pending_entrypoints.setdefault(entry_point.name, entry_point)

    def _load_entrypoint(self, name: str) -> None:
        entry_point = self._pending_entrypoints.pop(name, None)
        if entry_point is None:
            return
        try:
            self.register(entry_point.load())
        except ImportError as exc:
            logger.debug("Skipping kind entry point %s due to missing dependency: %s", name, exc)
        except Exception as exc:
            logger.warning("Failed to load kind entry point %s: %s", name, exc)


def suggest(value: str, options: Iterable[str], max_distance: int = 2) -> Optional[str]:
    """Closest option by case-insensitive edit distance, if within ``max_distance``."""
    match = process.extractOne(
        value,
        sorted(set(options)),
        scorer=Levenshtein.distance,
        processor=str.lower,
        score_cutoff=max_distance,
    )
    if match is None:
        return None
    return match[0]


def _unknown_kind_message(name: str, available: list[str]) -> str:
    msg = f"Unknown kind '{name}'"
    suggestion = suggest(name, available)
    if suggestion is not None:
        msg += f"\nℹ Did you mean '{suggestion}'?"
    shown = ", ".join(available[:6])
    if len(available) > 6:
        shown += ", ..."
    return msg + f"\nℹ Available kinds: {shown}"


_default_registry: Optional[KindRegistry] = None


def default_registry() -> KindRegistry:
    """Process-wide registry with the built-in kinds (created on first use)."""
    global _default_registry
    if _default_registry is None:
        _default_registry = KindRegistry()
    return _default_registry

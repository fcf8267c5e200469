"""
Group path normalization.

A group path (``tabgroup``) says where an item nests in the tab hierarchy.
Callers may spell it as a slash string, an explicit level map, or a list; all
of them are reduced to a tuple of trimmed, non-empty keys here.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Iterable, Mapping, Tuple

from dk_common.errors import StructuralWarning

logger = logging.getLogger(__name__)

GroupPath = Tuple[str, ...]

SEPARATOR = "/"
LABEL_DELIMITER = "."
# Characters users sometimes reach for as separators; they stay part of the key.
_SUSPECT_SEPARATORS = ("\\", ">", "|")


def _note_ambiguity(value: Any, reason: str, warn: bool) -> None:
    message = f"Ambiguous group path {value!r}: {reason}"
    logger.debug(message)
    if warn:
        warnings.warn(message, StructuralWarning, stacklevel=3)


def _clean(keys: Iterable[Any]) -> GroupPath:
    cleaned = (str(key).strip() for key in keys if key is not None)
    return tuple(key for key in cleaned if key)


def _from_string(value: str, warn: bool) -> GroupPath:
    suspects = [ch for ch in _SUSPECT_SEPARATORS if ch in value]
    if suspects:
        _note_ambiguity(
            value,
            f"{', '.join(repr(ch) for ch in suspects)} is not a group separator "
            f"(use {SEPARATOR!r}); kept as part of the key",
            warn,
        )
    if SEPARATOR in value:
        return _clean(value.split(SEPARATOR))
    return _clean([value])


def _is_level(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and key.strip().isdigit()


def _from_mapping(value: Mapping[Any, Any], warn: bool) -> GroupPath:
    if value and all(_is_level(key) for key in value):
        ordered = sorted(value.items(), key=lambda pair: int(pair[0]))
        return _clean(level_key for _, level_key in ordered)
    _note_ambiguity(value, "levels are not all numeric; using insertion order", warn)
    return _clean(value.values())


def normalize_path(value: Any, *, warn: bool = False) -> GroupPath:
    """
    Reduce a group path value to a canonical tuple of keys.

    Accepted shapes:
        - ``None``: no grouping, returns ``()``.
        - ``"a/b/c"``: split on ``/``, segments trimmed, empty segments dropped.
        - ``"a"``: one-element path.
        - ``{2: "details", 1: "demographics"}``: sorted by level.
        - ``["a", "b"]``: taken verbatim (trimmed, blanks dropped).

    Never raises: anything else becomes a single key ``str(value)``. A result
    of ``()`` means the item is standalone.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return _from_string(value, warn)
    if isinstance(value, Mapping):
        return _from_mapping(value, warn)
    if isinstance(value, (list, tuple)):
        if all(isinstance(key, str) for key in value):
            return _clean(value)
        _note_ambiguity(value, "non-string keys were converted with str()", warn)
        return _clean(value)
    _note_ambiguity(value, f"unsupported type {type(value).__name__}; used as one key", warn)
    return _clean([value])


def join_path(path: Iterable[str]) -> str:
    """Render a path as the dotted key used in label tables (``a.b.c``)."""
    return LABEL_DELIMITER.join(path)


def slash_path(path: Iterable[str]) -> str:
    """Render a path with the group separator (``a/b/c``); never ambiguous."""
    return SEPARATOR.join(path)


def label_key(raw: str) -> str:
    """
    Canonical label-table key.

    Slash spellings are normalized (``" a / b "`` -> ``"a/b"``). Dotted keys are
    kept verbatim: ``"v1.2"`` may name the bare key ``v1.2`` or the path
    ``("v1", "2")``, and the label table decides at lookup time.
    """
    return slash_path(normalize_path(raw)) if SEPARATOR in raw else raw.strip()

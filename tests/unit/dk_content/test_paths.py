"""Tests for group path normalization."""

from __future__ import annotations

import pytest

from dk_common.errors import StructuralWarning
from dk_content.paths import join_path, label_key, normalize_path


pytestmark = pytest.mark.unit_content


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ()),
        ("", ()),
        ("demo", ("demo",)),
        ("demo/age", ("demo", "age")),
        (" demo / age /", ("demo", "age")),
        ("a//b", ("a", "b")),
        ({2: "details", 1: "demographics"}, ("demographics", "details")),
        ({"1": "x", "10": "z", "2": "y"}, ("x", "y", "z")),
        (["a", " b ", ""], ("a", "b")),
        (("a", "b"), ("a", "b")),
        (42, ("42",)),
    ],
)
def test_normalize_path_shapes(value, expected) -> None:
    assert normalize_path(value) == expected


@pytest.mark.parametrize("value", ["a/b/c", {1: "a", 2: "b"}, ["x", "y"], "solo"])
def test_normalization_is_a_fixed_point(value) -> None:
    once = normalize_path(value)

    assert normalize_path(list(once)) == once
    assert normalize_path("/".join(once)) == once


def test_suspect_separator_kept_in_key_and_warns_when_asked() -> None:
    assert normalize_path("demo>age") == ("demo>age",)

    with pytest.warns(StructuralWarning, match="not a group separator"):
        assert normalize_path("demo\\age", warn=True) == ("demo\\age",)


def test_non_numeric_mapping_uses_insertion_order() -> None:
    with pytest.warns(StructuralWarning):
        assert normalize_path({"top": "a", "sub": "b"}, warn=True) == ("a", "b")


def test_label_keys() -> None:
    assert join_path(("a", "b")) == "a.b"
    assert label_key("a/b") == "a/b"
    assert label_key(" a / b ") == "a/b"
    assert label_key("v1.2") == "v1.2"
    assert label_key(" demo ") == "demo"

"""Tests for YAML collection files."""

from __future__ import annotations

import textwrap

import pytest

from dk_common.errors import ConfigurationError
from dk_common.settings import DashkitSettings
from dk_content.loader import load_collection


pytestmark = pytest.mark.unit_content


def _write(tmp_path, content: str):
    path = tmp_path / "collection.yml"
    path.write_text(textwrap.dedent(content))
    return path


def test_load_collection(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
        labels: {demo: Demographics}
        shared_first_level: false
        defaults: {type: bar}
        items:
          - {x_var: age, tabgroup: demo/age, title: Age}
          - {type: histogram, x_var: income, tabgroup: demo/income, data: survey}
          - {block: text, content: "Notes", tabgroup: demo}
          - {pagination: true}
          - {block: image, src: logo.png}
        """,
    )

    collection = load_collection(path, DashkitSettings(collapse_policy="never"))

    assert [item.kind for item in collection] == ["bar", "histogram", "text", "pagination-break", "image"]
    assert collection.items[0].title == "Age"
    assert collection.items[1].dataset == "survey"
    assert collection.items[2].get("content") == "Notes"
    assert collection.explicit_shared_first_level is False
    assert collection.settings.collapse_policy == "never"
    assert collection.labels.resolve(("demo",)) == "Demographics"


@pytest.mark.parametrize(
    "content, match",
    [
        ("items:\n  - {type: bar, block: text}\n", "only one of"),
        ("items: {not: a list}\n", "Invalid collection file"),
        ("unknown_key: 1\n", "Invalid collection file"),
        ("- a\n- b\n", "must contain a mapping"),
        ("items: [unclosed\n", "not valid YAML"),
        ("items:\n  - {type: barr, x_var: a}\n", "Item 1: Unknown kind 'barr'"),
    ],
)
def test_invalid_collection_files(tmp_path, content: str, match: str) -> None:
    with pytest.raises(ConfigurationError, match=match):
        load_collection(_write(tmp_path, content))


def test_missing_collection_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_collection(tmp_path / "absent.yml")

"""Tests for pages."""

from __future__ import annotations

import pandas as pd
import pytest

from dk_common.errors import ContentError, ContractError
from dk_content.collection import Collection, text_block
from dk_content.merge import combine
from dk_content.page import Page


pytestmark = pytest.mark.unit_content


def test_direct_items_come_before_attached_content() -> None:
    survey = Collection({"demo": "Demographics"}).add_viz("bar", x_var="age", tabgroup="demo")
    page = (
        Page("Overview", defaults={"type": "histogram"})
        .add_text("Welcome")
        .add_viz(x_var="income")
        .add_content(survey)
    )

    collection = page.to_collection()

    assert [(item.index, item.kind) for item in collection] == [
        (1, "text"),
        (2, "histogram"),
        (3, "bar"),
    ]
    assert collection.labels.resolve(("demo",)) == "Demographics"


def test_page_is_immutable_and_binds_data() -> None:
    frame = pd.DataFrame({"x": [1]})
    page = Page("Data", data=frame, shared_first_level=False)

    with_text = page.add_text("hi").set_labels(x="Ex")

    assert len(page.to_collection()) == 0
    collection = with_text.to_collection()
    assert collection.data is frame
    assert collection.shared_first_level is False
    assert dict(collection.labels) == {"x": "Ex"}


def test_combine_with_page_head_adds_content() -> None:
    page = combine(Page("Notes"), Collection().add_viz("bar", x_var="a"), text_block("done"))

    assert isinstance(page, Page)
    assert [item.kind for item in page.to_collection()] == ["bar", "text"]


def test_page_validation() -> None:
    with pytest.raises(ContentError):
        Page("  ")
    with pytest.raises(ContractError, match="cannot be nested"):
        Page("outer").add_content(Page("inner"))


def test_page_describe() -> None:
    page = Page("Overview").add_viz("bar", x_var="a", tabgroup="g", title="Alpha")

    text = page.describe()

    assert "Page: Overview" in text
    assert "BAR: Alpha" in text

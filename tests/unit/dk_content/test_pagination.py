"""Tests for page splitting and the render hand-off."""

from __future__ import annotations

import pytest

from dk_common.errors import SpecValidationError
from dk_common.settings import DashkitSettings
from dk_content.collection import Collection
from dk_content.handoff import prepare_render
from dk_content.models import GroupNode
from dk_content.pagination import split_sections


pytestmark = pytest.mark.unit_content


def _paged() -> Collection:
    return (
        Collection()
        .add_viz("bar", x_var="a", tabgroup="g")
        .add_viz("bar", x_var="b", tabgroup="g")
        .add_pagination()
        .add_pagination()
        .add_viz("bar", x_var="c", tabgroup="h")
        .add_viz("bar", x_var="d", tabgroup="h")
        .add_pagination()
    )


def test_split_sections_at_markers() -> None:
    pages = split_sections(_paged().materialize())

    assert len(pages) == 2
    assert pages[0].pagination_after.index == 3
    assert pages[1].pagination_after.index == 7
    assert all(isinstance(node, GroupNode) for page in pages for node in page.nodes)


def test_split_without_markers_is_one_page() -> None:
    nodes = Collection().add_viz("bar", x_var="a").materialize()

    (page,) = split_sections(nodes)

    assert page.is_last
    assert len(page.nodes) == 1


def test_prepare_render_builds_plan() -> None:
    plan = prepare_render(_paged(), data=["a", "b", "c", "d"])

    assert plan.valid
    assert len(plan.pages) == 2
    assert [section.kind for section in plan.sections] == ["tabset", "tabset"]
    assert len(plan.nodes) == 5


def test_prepare_render_refuses_invalid_collections() -> None:
    collection = Collection().add_viz("bar", x_var="aa").add_viz("scatter", x_var="a")

    with pytest.raises(SpecValidationError) as excinfo:
        prepare_render(collection, data=["a"])

    assert len(excinfo.value.issues) == 2
    assert "and 1 more issue" in str(excinfo.value)


def test_prepare_render_can_annotate_instead() -> None:
    collection = Collection().add_viz("scatter", x_var="a")

    plan = prepare_render(collection, settings=DashkitSettings(refuse_invalid_render=False))

    assert not plan.valid
    assert [issue.field for issue in plan.issues] == ["y_var"]
    assert len(plan.nodes) == 1

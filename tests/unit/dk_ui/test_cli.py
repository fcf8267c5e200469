"""CLI behavior tests using Typer's CliRunner."""

from __future__ import annotations

import json
import logging
import textwrap

import pytest
from typer.testing import CliRunner

import dk_ui.cli as cli


pytestmark = pytest.mark.unit_ui

runner = CliRunner()

COLLECTION = """
labels: {demo: Demographics}
defaults: {type: bar}
items:
  - {x_var: age_group, tabgroup: demo/age, title: Age}
  - {x_var: gender, tabgroup: demo/gender, title: Gender}
  - {pagination: true}
  - {type: scatter, x_var: income, y_var: score, tabgroup: money}
"""


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch: pytest.MonkeyPatch):
    for name in ("DK_LOG_LEVEL", "DK_LOG_FILE", "DK_LOG_JSON", "DK_FAIL_FAST", "DK_COLLAPSE_POLICY"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def collection_file(tmp_path):
    path = tmp_path / "collection.yml"
    path.write_text(textwrap.dedent(COLLECTION))
    return path


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("age_group,gender,income,score\n18-25,f,100,3\n")
    return path


def test_tree_shows_groups_and_pages(collection_file) -> None:
    result = runner.invoke(cli.app, ["tree", str(collection_file)])

    assert result.exit_code == 0, result.output
    assert "Demographics" in result.output
    assert "BAR: Age" in result.output
    assert "SCATTER" in result.output
    assert "4 item(s), 2 section(s), 2 page(s); shared tab strip" in result.output


def test_tree_options(collection_file) -> None:
    result = runner.invoke(
        cli.app,
        ["tree", str(collection_file), "--collapse", "never", "--no-shared", "--labels", "money=Finance"],
    )

    assert result.exit_code == 0, result.output
    assert "Finance" in result.output
    assert "separate tab sets" in result.output


def test_tree_rejects_unknown_collapse(collection_file) -> None:
    result = runner.invoke(cli.app, ["tree", str(collection_file), "--collapse", "sometimes"])

    assert result.exit_code == 1
    assert "Unknown collapse policy" in result.output


def test_validate_against_csv(collection_file, data_file) -> None:
    result = runner.invoke(cli.app, ["validate", str(collection_file), "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    assert "4 item(s) valid" in result.output


def test_validate_reports_issues_as_json(tmp_path, collection_file) -> None:
    data = tmp_path / "other.csv"
    data.write_text("age_grp,sex,income,score\n")

    result = runner.invoke(
        cli.app,
        ["validate", str(collection_file), "--data", str(data), "--collect-all", "--json"],
    )

    assert result.exit_code == 1
    report = json.loads(result.stdout)
    assert report["valid"] is False
    assert [(issue["item_index"], issue["field"]) for issue in report["issues"]] == [
        (1, "x_var"),
        (2, "x_var"),
    ]
    assert report["issues"][0]["suggestion"] == "age_grp"


def test_validate_fail_fast_message(tmp_path, collection_file) -> None:
    data = tmp_path / "other.csv"
    data.write_text("age_grp,gender,income,score\n")

    result = runner.invoke(cli.app, ["validate", str(collection_file), "--data", str(data)])

    assert result.exit_code == 1
    assert "Did you mean 'age_grp'?" in result.output


def test_validate_bad_file_as_json(tmp_path) -> None:
    path = tmp_path / "broken.yml"
    path.write_text("items:\n  - {type: barr}\n")

    result = runner.invoke(cli.app, ["validate", str(path), "--json"])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error_type"] == "ConfigurationError"
    assert "Unknown kind 'barr'" in payload["error"]


def test_kinds_json() -> None:
    result = runner.invoke(cli.app, ["kinds", "--json"])

    assert result.exit_code == 0, result.output
    names = {kind["name"] for kind in json.loads(result.stdout)["kinds"]}
    assert {"bar", "stacked-bar", "text", "pagination-break"} <= names


def test_kinds_table() -> None:
    result = runner.invoke(cli.app, ["kinds"])

    assert result.exit_code == 0, result.output
    assert "Registered Kinds" in result.output

"""Presenters turning content objects into rich renderables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from rich.table import Table

from dk_content.kinds import KindRegistry
from dk_content.models import MergeConflict, ValidationResult


@dataclass
class TableModel:
    title: str
    columns: list[str]
    rows: list[list[str]]


def build_issue_table(result: ValidationResult) -> TableModel:
    """Transform validation issues into a TableModel."""
    rows = [
        [
            str(issue.item_index),
            issue.kind,
            issue.field,
            issue.message,
            issue.suggestion or "",
        ]
        for issue in result.issues
    ]
    return TableModel(
        title="Validation Issues",
        columns=["Item", "Kind", "Field", "Problem", "Suggestion"],
        rows=rows,
    )


def build_kinds_table(registry: KindRegistry) -> TableModel:
    rows: List[List[str]] = []
    for name, spec in registry.available(load_entrypoints=True).items():
        required = list(spec.required)
        required.extend(" + ".join(alt) for alt in spec.required_alternatives)
        rows.append(
            [
                name,
                spec.category,
                " | ".join(required) if spec.required_alternatives else ", ".join(required),
                ", ".join(spec.aliases),
            ]
        )
    return TableModel(
        title="Registered Kinds",
        columns=["Kind", "Category", "Required", "Aliases"],
        rows=rows,
    )


def build_conflict_table(conflicts: Iterable[MergeConflict]) -> TableModel:
    rows = [
        [conflict.setting, ", ".join(str(v) for v in conflict.values), str(conflict.chosen)]
        for conflict in conflicts
    ]
    return TableModel(title="Merge Conflicts", columns=["Setting", "Values", "Chosen"], rows=rows)


def render_table(model: TableModel, styles: Sequence[str] = ()) -> Table:
    """Render a TableModel as a rich Table."""
    table = Table(title=model.title, show_lines=False)
    for position, column in enumerate(model.columns):
        style = styles[position] if position < len(styles) else None
        table.add_column(column, style=style)
    for row in model.rows:
        table.add_row(*row)
    return table

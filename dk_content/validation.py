"""
Spec validation against the kind table and, optionally, dataset columns.

Validation is read-only: it never touches the items and keeps no state
between calls, so repeated runs over the same inputs give the same issues.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from dk_common.errors import ContractError, SpecValidationError
from dk_content.kinds import KindRegistry, KindSpec, default_registry, suggest
from dk_content.models import Item, ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

ColumnSet = FrozenSet[str]
DEFAULT_DATASET = "default"


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def column_set(data: Any) -> ColumnSet:
    """Column names of a DataFrame-like object or an iterable of names."""
    columns = getattr(data, "columns", None)
    if columns is not None:
        return frozenset(str(col) for col in columns)
    if isinstance(data, str):
        return frozenset([data])
    return frozenset(str(col) for col in data)


def _is_dataset_map(data: Any) -> bool:
    return isinstance(data, Mapping) and not hasattr(data, "columns")


def suggestion_threshold(name: str, max_distance: int) -> int:
    """Distance allowed for a suggestion, scaled down for short names."""
    return min(max_distance, max(1, len(name) // 3))


class SpecValidator:
    """Check item specs against required-field and column tables.

    Args:
        kinds: Kind registry holding the declarations (defaults to built-ins).
        max_distance: Upper bound on the edit distance of a column suggestion.
    """

    def __init__(self, kinds: Optional[KindRegistry] = None, max_distance: int = 2):
        self.kinds = kinds or default_registry()
        self.max_distance = max_distance

    def validate(
        self,
        items: Sequence[Item],
        dataset: Any = None,
        stop_on_first_error: bool = True,
    ) -> ValidationResult:
        """
        Validate ``items``.

        Args:
            items: Items to check, in any order (issues are reported by index).
            dataset: ``None``, a DataFrame, an iterable of column names, or a
                mapping of dataset name to either of those.
            stop_on_first_error: Raise on the first issue instead of
                collecting every issue.

        Raises:
            SpecValidationError: In fail-fast mode, carrying the first issue.
            ContractError: If ``items`` holds something that is not an Item.
        """
        datasets = self._prepare_datasets(dataset)
        issues: List[ValidationIssue] = []
        for item in sorted(self._check(items), key=lambda it: it.index):
            for issue in self._validate_item(item, datasets):
                if stop_on_first_error:
                    raise SpecValidationError(format_issue(issue, self._spec(item)), issues=[issue])
                issues.append(issue)
        if issues:
            logger.info("Validation found %d issue(s) in %d item(s)", len(issues), len({i.item_index for i in issues}))
        return ValidationResult(valid=not issues, issues=tuple(issues))

    def _check(self, items: Iterable[Any]) -> List[Item]:
        checked = []
        for item in items:
            if not isinstance(item, Item) or not item.kind:
                raise ContractError(
                    "validate() expects Items with a kind",
                    context={"value": item},
                )
            checked.append(item)
        return checked

    def _spec(self, item: Item) -> Optional[KindSpec]:
        return self.kinds.find(item.kind)

    def _prepare_datasets(self, dataset: Any) -> Optional[Dict[str, ColumnSet]]:
        if dataset is None:
            return None
        if _is_dataset_map(dataset):
            return {str(name): column_set(data) for name, data in dataset.items()}
        return {DEFAULT_DATASET: column_set(dataset)}

    def _validate_item(
        self, item: Item, datasets: Optional[Dict[str, ColumnSet]]
    ) -> List[ValidationIssue]:
        spec = self._spec(item)
        if spec is None or spec.category == "sentinel":
            logger.debug("Skipping validation for item %d (%s)", item.index, item.kind)
            return []
        issues = self._required_issues(item, spec)
        if datasets is not None and spec.column_params:
            issues.extend(self._column_issues(item, spec, datasets))
        return issues

    def _required_issues(self, item: Item, spec: KindSpec) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for field_name in spec.required:
            options = field_name.split("|")
            if all(is_missing(item.get(option)) for option in options):
                issues.append(
                    ValidationIssue(
                        item_index=item.index,
                        kind=item.kind,
                        field=field_name,
                        message=f"'{' or '.join(options)}' parameter is required for {spec.name}",
                    )
                )
        if spec.required_alternatives:
            satisfied = any(
                all(not is_missing(item.get(param)) for param in alternative)
                for alternative in spec.required_alternatives
            )
            if not satisfied:
                rendered = " OR ".join(
                    "(" + " + ".join(alternative) + ")" for alternative in spec.required_alternatives
                )
                issues.append(
                    ValidationIssue(
                        item_index=item.index,
                        kind=item.kind,
                        field="|".join("+".join(alt) for alt in spec.required_alternatives),
                        message=f"{spec.name} requires one of: {rendered}",
                    )
                )
        return issues

    def _resolve_columns(
        self, item: Item, datasets: Dict[str, ColumnSet]
    ) -> tuple[Optional[ColumnSet], Optional[ValidationIssue]]:
        if item.dataset is not None:
            if item.dataset in datasets:
                return datasets[item.dataset], None
            known = sorted(datasets)
            hint = suggest(item.dataset, known, self.max_distance)
            return None, ValidationIssue(
                item_index=item.index,
                kind=item.kind,
                field="data",
                message=f"Dataset '{item.dataset}' is not bound (known: {', '.join(known)})",
                suggestion=hint,
            )
        if DEFAULT_DATASET in datasets:
            return datasets[DEFAULT_DATASET], None
        if len(datasets) == 1:
            return next(iter(datasets.values())), None
        return None, None

    def _column_issues(
        self, item: Item, spec: KindSpec, datasets: Dict[str, ColumnSet]
    ) -> List[ValidationIssue]:
        columns, dataset_issue = self._resolve_columns(item, datasets)
        if dataset_issue is not None:
            return [dataset_issue]
        if columns is None:
            return []
        issues: List[ValidationIssue] = []
        for param in spec.column_params:
            value = item.get(param)
            if is_missing(value):
                continue
            if isinstance(value, str):
                names = [value]
            elif isinstance(value, (list, tuple)):
                names = [v for v in value if isinstance(v, str)]
            else:
                issues.append(
                    ValidationIssue(
                        item_index=item.index,
                        kind=item.kind,
                        field=param,
                        message=(
                            f"{param} must be a column name (or a list of names), "
                            f"got {type(value).__name__}"
                        ),
                    )
                )
                continue
            for name in names:
                if name in columns:
                    continue
                hint = suggest(name, columns, suggestion_threshold(name, self.max_distance))
                message = f"Column '{name}' ({param}) not found in data"
                if hint is not None:
                    message += f". Did you mean '{hint}'?"
                issues.append(
                    ValidationIssue(
                        item_index=item.index,
                        kind=item.kind,
                        field=param,
                        message=message,
                        suggestion=hint,
                    )
                )
        return issues


def format_issue(issue: ValidationIssue, spec: Optional[KindSpec] = None) -> str:
    """Actionable one-issue message: where, what, and how to fix it."""
    lines = [
        f"✖ Validation error in {issue.kind} (item {issue.item_index}):",
        f"  • {issue.message}",
    ]
    if issue.suggestion and f"'{issue.suggestion}'" not in issue.message:
        lines.append(f"ℹ Did you mean '{issue.suggestion}'?")
    if spec is not None and spec.example:
        lines.append(f"ℹ Example: {spec.example}")
    return "\n".join(lines)


def validate_items(
    items: Sequence[Item],
    dataset: Any = None,
    stop_on_first_error: bool = True,
    kinds: Optional[KindRegistry] = None,
    max_distance: int = 2,
) -> ValidationResult:
    """Functional shorthand for ``SpecValidator(...).validate(...)``."""
    return SpecValidator(kinds, max_distance).validate(items, dataset, stop_on_first_error)

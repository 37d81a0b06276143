from __future__ import annotations

"""
Configuration and dataset lint helpers.

Config problems that would break a run are errors; stale or odd settings
are warnings. Dataset lint runs on an already accepted dataset and only
ever produces warnings.
"""

from dataclasses import dataclass
import math
from typing import Iterable, Mapping

from .models import Dataset, Plan


@dataclass(frozen=True)
class ValidationIssue:
    level: str  # "warning" | "error"
    code: str
    path: str
    message: str


_KNOWN_TOP_LEVEL_KEYS = {
    "dataset",
    "quotes",
    "quotes_csv_path",
    "outputs",
}

_REQUIRED_QUOTE_FIELDS = ("plan", "sex", "age", "sum_assured")


def _as_mapping(value: object) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        return value
    return {}


def _add_issue(
    issues: list[ValidationIssue],
    *,
    level: str,
    code: str,
    path: str,
    message: str,
) -> None:
    issues.append(ValidationIssue(level=level, code=code, path=path, message=message))


def _validate_top_level_keys(config: Mapping[str, object], issues: list[ValidationIssue]) -> None:
    for key in sorted(config.keys()):
        if key not in _KNOWN_TOP_LEVEL_KEYS:
            _add_issue(
                issues,
                level="warning",
                code="unknown_top_level_key",
                path=key,
                message="Unknown top-level key. Check for typos or stale settings.",
            )


def _validate_dataset_settings(config: Mapping[str, object], issues: list[ValidationIssue]) -> None:
    dataset_cfg = config.get("dataset")
    if dataset_cfg is not None and not isinstance(dataset_cfg, Mapping):
        _add_issue(
            issues,
            level="error",
            code="invalid_dataset_section",
            path="dataset",
            message="dataset must be a mapping with a path.",
        )
        return
    if not str(_as_mapping(dataset_cfg).get("path", "")).strip():
        _add_issue(
            issues,
            level="error",
            code="missing_dataset_path",
            path="dataset.path",
            message="dataset.path is required.",
        )


def _validate_quote_settings(config: Mapping[str, object], issues: list[ValidationIssue]) -> None:
    quotes = config.get("quotes")
    has_csv = bool(config.get("quotes_csv_path"))
    if quotes is None and not has_csv:
        _add_issue(
            issues,
            level="error",
            code="missing_quote_source",
            path="quotes/quotes_csv_path",
            message="Set quotes, quotes_csv_path, or both.",
        )
        return
    if quotes is None:
        return
    if not isinstance(quotes, list):
        _add_issue(
            issues,
            level="error",
            code="invalid_quotes_type",
            path="quotes",
            message="quotes must be a list.",
        )
        return

    seen_ids: set[str] = set()
    for index, entry in enumerate(quotes):
        path = f"quotes[{index}]"
        if not isinstance(entry, Mapping):
            _add_issue(
                issues,
                level="error",
                code="invalid_quote_entry",
                path=path,
                message="Each quote must be a mapping.",
            )
            continue
        missing = [field for field in _REQUIRED_QUOTE_FIELDS if entry.get(field) is None]
        if missing:
            _add_issue(
                issues,
                level="error",
                code="missing_quote_field",
                path=path,
                message=f"Missing fields: {', '.join(missing)}",
            )
        raw_id = entry.get("id")
        if raw_id is None:
            continue
        quote_id = str(raw_id)
        if quote_id in seen_ids:
            _add_issue(
                issues,
                level="error",
                code="duplicate_quote_id",
                path=f"{path}.id",
                message=f"Duplicate quote id: {quote_id}",
            )
            continue
        seen_ids.add(quote_id)


def _validate_output_settings(config: Mapping[str, object], issues: list[ValidationIssue]) -> None:
    outputs = config.get("outputs")
    if outputs is not None and not isinstance(outputs, Mapping):
        _add_issue(
            issues,
            level="error",
            code="invalid_outputs_section",
            path="outputs",
            message="outputs must be a mapping.",
        )


def validate_config(config: Mapping[str, object]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    _validate_top_level_keys(config, issues)
    _validate_dataset_settings(config, issues)
    _validate_quote_settings(config, issues)
    _validate_output_settings(config, issues)
    return issues


def _lint_rate_table(plan: Plan, issues: list[ValidationIssue]) -> None:
    path = f"plans[{plan.plan_key}].rates"
    seen_ages: set[float] = set()
    for row in plan.rates:
        if row.age in seen_ages:
            _add_issue(
                issues,
                level="warning",
                code="duplicate_rate_age",
                path=path,
                message=f"Age {row.age} appears more than once; the first row is used.",
            )
        seen_ages.add(row.age)
        if not plan.age_range.contains(row.age):
            _add_issue(
                issues,
                level="warning",
                code="rate_row_outside_age_range",
                path=path,
                message=f"Age {row.age} is outside ageRange and can never be quoted.",
            )

    low = math.ceil(plan.age_range.min)
    high = math.floor(plan.age_range.max)
    covered = {
        int(age) for age in seen_ages if float(age).is_integer() and low <= age <= high
    }
    missing_count = (high - low + 1) - len(covered)
    if missing_count > 0:
        # one of the first len(covered) + 1 ages is always missing
        first_missing = next(
            age for age in range(low, low + len(covered) + 1) if age not in covered
        )
        _add_issue(
            issues,
            level="warning",
            code="rate_table_gap",
            path=path,
            message=(
                f"{missing_count} age(s) inside ageRange have no rate row "
                f"(first missing: {first_missing})."
            ),
        )


def _lint_discounts(plan: Plan, issues: list[ValidationIssue]) -> None:
    path = f"plans[{plan.plan_key}].discounts"
    thresholds = [tier.min_sum for tier in plan.discounts]
    if len(set(thresholds)) != len(thresholds):
        _add_issue(
            issues,
            level="warning",
            code="duplicate_discount_threshold",
            path=path,
            message="Several tiers share a minSum; the last one in source order wins.",
        )

    if plan.is_rate_table:
        lowest_rate = min(min(row.male_rate, row.female_rate) for row in plan.rates)
    else:
        lowest_rate = float(plan.fixed_rate)
    for tier in plan.discounts:
        if tier.discount_per_1000 >= lowest_rate:
            _add_issue(
                issues,
                level="warning",
                code="discount_floors_rate",
                path=path,
                message=(
                    f"Discount {tier.discount_per_1000:g} from minSum {tier.min_sum:g} "
                    "can reduce the effective rate to zero."
                ),
            )


def lint_dataset(dataset: Dataset) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for plan in dataset.plans:
        if plan.is_rate_table:
            _lint_rate_table(plan, issues)
        _lint_discounts(plan, issues)
    return issues


def has_validation_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.level == "error" for issue in issues)


def format_validation_issues(
    issues: Iterable[ValidationIssue],
    *,
    prefix: str = "config_validation",
) -> list[str]:
    lines: list[str] = []
    for issue in issues:
        lines.append(f"{prefix}:{issue.level}: [{issue.code}] {issue.path} - {issue.message}")
    return lines

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from premium.dataset import load_dataset  # noqa: E402
from premium.validation import (  # noqa: E402
    format_validation_issues,
    has_validation_errors,
    lint_dataset,
    validate_config,
)


def _base_config() -> dict:
    return {
        "dataset": {"path": "data/plans.json"},
        "quotes": [
            {
                "id": "q1",
                "plan": "term10",
                "sex": "male",
                "age": 30,
                "sum_assured": 500_000,
            }
        ],
        "outputs": {"excel_path": "out/quotes.xlsx"},
    }


def _table_dataset(**plan_overrides):
    plan = {
        "planKey": "table",
        "planName": "Table",
        "ageRange": {"min": 30, "max": 32},
        "minSumAssured": 100_000,
        "calculationType": "rateTable",
        "rates": [
            {"age": 30, "male": 4.5, "female": 4.0},
            {"age": 31, "male": 4.6, "female": 4.1},
            {"age": 32, "male": 4.8, "female": 4.2},
        ],
    }
    plan.update(plan_overrides)
    return load_dataset({"plans": [plan]})


def test_base_config_is_clean() -> None:
    assert validate_config(_base_config()) == []


def test_validate_config_warns_for_unknown_keys() -> None:
    config = _base_config()
    config["typo_top"] = {}

    issues = validate_config(config)
    assert [issue.code for issue in issues] == ["unknown_top_level_key"]
    assert not has_validation_errors(issues)


def test_validate_config_requires_dataset_path() -> None:
    config = _base_config()
    config["dataset"] = {}
    issues = validate_config(config)
    assert has_validation_errors(issues)
    assert any(issue.code == "missing_dataset_path" for issue in issues)

    config["dataset"] = "data/plans.json"
    assert any(issue.code == "invalid_dataset_section" for issue in validate_config(config))


def test_validate_config_requires_a_quote_source() -> None:
    config = _base_config()
    del config["quotes"]
    issues = validate_config(config)
    assert any(issue.code == "missing_quote_source" for issue in issues)

    config["quotes_csv_path"] = "data/quote_requests.csv"
    assert validate_config(config) == []


def test_validate_config_reports_bad_quote_entries() -> None:
    config = _base_config()
    config["quotes"].append("not-a-mapping")
    config["quotes"].append({"id": "q1", "plan": "term10", "sex": "female", "age": 40, "sum_assured": 1})
    config["quotes"].append({"id": "q3", "plan": "term10"})

    issues = validate_config(config)
    codes = {issue.code for issue in issues}
    assert has_validation_errors(issues)
    assert codes == {"invalid_quote_entry", "duplicate_quote_id", "missing_quote_field"}


def test_validate_config_reports_non_list_quotes_and_outputs() -> None:
    config = _base_config()
    config["quotes"] = {"id": "q1"}
    config["outputs"] = ["out/quotes.xlsx"]
    codes = {issue.code for issue in validate_config(config)}
    assert codes == {"invalid_quotes_type", "invalid_outputs_section"}


def test_format_validation_issues_contains_prefix() -> None:
    config = _base_config()
    config["typo_top"] = {}
    lines = format_validation_issues(validate_config(config), prefix="premium.cli run")
    assert lines
    assert all(line.startswith("premium.cli run:warning:") for line in lines)


def test_lint_clean_table_has_no_issues() -> None:
    assert lint_dataset(_table_dataset()) == []


def test_lint_reports_rate_table_problems() -> None:
    dataset = _table_dataset(
        rates=[
            {"age": 30, "male": 4.5, "female": 4.0},
            {"age": 30, "male": 4.5, "female": 4.0},
            {"age": 40, "male": 6.0, "female": 5.0},
        ]
    )
    codes = [issue.code for issue in lint_dataset(dataset)]
    assert "duplicate_rate_age" in codes
    assert "rate_row_outside_age_range" in codes
    assert "rate_table_gap" in codes
    assert all(issue.level == "warning" for issue in lint_dataset(dataset))


def test_lint_reports_discount_problems() -> None:
    dataset = _table_dataset(
        discounts=[
            {"minSum": 1_000_000, "discountPer1000": 0.5},
            {"minSum": 1_000_000, "discountPer1000": 4.0},
        ]
    )
    codes = [issue.code for issue in lint_dataset(dataset)]
    assert codes == ["duplicate_discount_threshold", "discount_floors_rate"]


def test_validate_config_warns_for_stray_run_key() -> None:
    config = _base_config()
    config["run"] = {"name": "trial"}
    issues = validate_config(config)
    assert [(issue.code, issue.path) for issue in issues] == [("unknown_top_level_key", "run")]


def test_lint_gap_counts_missing_ages() -> None:
    dataset = _table_dataset(
        ageRange={"min": 30, "max": 35},
        rates=[
            {"age": 30, "male": 4.5, "female": 4.0},
            {"age": 32, "male": 4.8, "female": 4.2},
            {"age": 33, "male": 5.0, "female": 4.4},
        ],
    )
    gaps = [issue for issue in lint_dataset(dataset) if issue.code == "rate_table_gap"]
    assert len(gaps) == 1
    assert gaps[0].message.startswith("3 age(s)")
    assert "(first missing: 31)" in gaps[0].message


def test_lint_gap_on_very_wide_age_range() -> None:
    dataset = _table_dataset(
        ageRange={"min": 0, "max": 1_000_000_000},
        rates=[
            {"age": 0, "male": 4.5, "female": 4.0},
            {"age": 1, "male": 4.6, "female": 4.1},
        ],
    )
    gaps = [issue for issue in lint_dataset(dataset) if issue.code == "rate_table_gap"]
    assert len(gaps) == 1
    assert gaps[0].message.startswith("999999999 age(s)")
    assert "(first missing: 2)" in gaps[0].message

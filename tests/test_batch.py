from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from premium.batch import (  # noqa: E402
    SUMMARY_COLUMNS,
    build_premium_sheet,
    build_quote_request,
    coerce_int,
    parse_quote_requests,
    run_quotes,
)
from premium.dataset import load_dataset  # noqa: E402
from premium.errors import PlanNotFoundError  # noqa: E402
from premium.models import Dataset  # noqa: E402


def _dataset() -> Dataset:
    return load_dataset(
        {
            "plans": [
                {
                    "planKey": "plan_a",
                    "planName": "Plan A",
                    "ageRange": {"min": 20, "max": 60},
                    "minSumAssured": 100_000,
                    "calculationType": "fixedRatePer1000",
                    "fixedRate": 5,
                },
                {
                    "planKey": "plan_b",
                    "planName": "Plan B",
                    "ageRange": {"min": 29, "max": 31},
                    "minSumAssured": 100_000,
                    "calculationType": "rateTable",
                    "rates": [
                        {"age": 29, "male": 4.4, "female": 3.9},
                        {"age": 30, "male": 4.5, "female": 4.0},
                    ],
                    "discounts": [{"minSum": 1_000_000, "discountPer1000": 0.5}],
                },
            ]
        }
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (30, 30),
        (30.9, 30),
        ("45", 45),
        (" 1,000,000 ", 1_000_000),
        ("12.7", 12),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("inf"), None),
    ],
)
def test_coerce_int(raw: object, expected: int | None) -> None:
    assert coerce_int(raw) == expected


def test_build_quote_request_normalises_inputs() -> None:
    request = build_quote_request(
        {"plan": " plan_a ", "sex": " MALE", "age": "30", "sum_assured": "500,000"},
        fallback_id="q9",
    )
    assert request.quote_id == "q9"
    assert request.plan_key == "plan_a"
    assert request.sex == "male"
    assert request.age == 30
    assert request.sum_assured == 500_000


def test_build_quote_request_keeps_unreadable_values() -> None:
    request = build_quote_request(
        {"id": 7, "plan": "plan_a", "sex": "male", "age": "thirty", "sum_assured": 1},
        fallback_id="unused",
    )
    assert request.quote_id == "7"
    assert request.age == "thirty"


def test_parse_quote_requests_reads_inline_then_csv(tmp_path: Path) -> None:
    csv_path = tmp_path / "requests.csv"
    csv_path.write_text(
        "id,plan,sex,age,sum_assured\n"
        "c1,plan_b,female,30,2000000\n"
        ",plan_a,male,,100000\n",
        encoding="utf-8",
    )
    config = {
        "quotes": [{"id": "i1", "plan": "plan_a", "sex": "male", "age": 30, "sum_assured": 500_000}],
        "quotes_csv_path": "requests.csv",
    }

    requests = parse_quote_requests(config, base_dir=tmp_path)
    assert [request.quote_id for request in requests] == ["i1", "c1", "q3"]
    assert requests[1].sum_assured == 2_000_000
    assert requests[2].age == ""


def test_parse_quote_requests_errors(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="missing"):
        parse_quote_requests({}, base_dir=tmp_path)
    with pytest.raises(ValueError, match="not found"):
        parse_quote_requests({"quotes_csv_path": "nope.csv"}, base_dir=tmp_path)

    bad_csv = tmp_path / "bad.csv"
    bad_csv.write_text("id,plan\nx,plan_a\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing columns"):
        parse_quote_requests({"quotes_csv_path": "bad.csv"}, base_dir=tmp_path)


def test_run_quotes_records_failures_without_stopping() -> None:
    config = {
        "quotes": [
            {"id": "ok", "plan": "plan_a", "sex": "male", "age": 30, "sum_assured": 500_000},
            {"id": "low", "plan": "plan_a", "sex": "male", "age": 30, "sum_assured": 50_000},
            {"id": "gap", "plan": "plan_b", "sex": "male", "age": 31, "sum_assured": 500_000},
            {"id": "disc", "plan": "plan_b", "sex": "female", "age": 30, "sum_assured": 2_000_000},
        ]
    }
    result = run_quotes(_dataset(), parse_quote_requests(config))

    assert list(result.summary.columns) == list(SUMMARY_COLUMNS)
    rows = result.summary.set_index("quote_id")
    assert rows.loc["ok", "status"] == "ok"
    assert rows.loc["ok", "annual_premium"] == 2500
    assert rows.loc["low", "error_code"] == "sum_below_minimum"
    assert rows.loc["gap", "error_code"] == "rate_not_found"
    assert rows.loc["disc", "effective_rate"] == 3.5
    assert rows.loc["disc", "annual_premium"] == 7000
    assert [outcome.ok for outcome in result.outcomes] == [True, False, False, True]


def test_run_quotes_with_no_requests_has_empty_summary() -> None:
    result = run_quotes(_dataset(), [])
    assert result.outcomes == []
    assert result.summary.empty
    assert list(result.summary.columns) == list(SUMMARY_COLUMNS)


def test_build_premium_sheet_covers_age_range() -> None:
    sheet = build_premium_sheet(_dataset(), "plan_b", 200_000)
    assert list(sheet["age"]) == [29, 30, 31]
    rows = sheet.set_index("age")
    assert rows.loc[30, "male_annual"] == 900
    assert rows.loc[30, "female_annual"] == 800
    assert rows.loc[31, "male_annual"] == "rate_not_found"


def test_build_premium_sheet_unknown_plan() -> None:
    assert build_premium_sheet(_dataset(), "nope", 200_000) == PlanNotFoundError("nope")

from __future__ import annotations

"""
Batch quoting over a dataset snapshot.

Requests come from the run config (`quotes:`) and/or a CSV file with the
columns id, plan, sex, age, sum_assured. A failing request is recorded with
its error code; it never stops the rest of the batch.
"""

from dataclasses import dataclass
import math
from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from .errors import CalculationError
from .models import Dataset, Sex
from .paths import resolve_path
from .premium import PremiumResult, compute_premium

QUOTE_CSV_COLUMNS = ("id", "plan", "sex", "age", "sum_assured")
SUMMARY_COLUMNS = (
    "quote_id",
    "plan",
    "sex",
    "age",
    "sum_assured",
    "status",
    "error_code",
    "error_message",
    "base_rate",
    "effective_rate",
    "annual_premium",
    "semi_annual",
    "quarter",
    "month",
)
_PREMIUM_COLUMNS = ("annual_premium", "semi_annual", "quarter", "month")


@dataclass(frozen=True)
class QuoteRequest:
    """
    One premium request as supplied by the caller.

    age / sum_assured hold the coerced integer when the raw input could be
    read as a number, and the raw input otherwise.
    """

    quote_id: str
    plan_key: str
    sex: object
    age: object
    sum_assured: object


@dataclass(frozen=True)
class QuoteOutcome:
    request: QuoteRequest
    result: PremiumResult | CalculationError

    @property
    def ok(self) -> bool:
        return isinstance(self.result, PremiumResult)


@dataclass(frozen=True)
class QuoteBatchResult:
    outcomes: list[QuoteOutcome]
    summary: pd.DataFrame


def coerce_int(value: object) -> int | None:
    """
    Read a form-style input as an integer, truncating any fraction.

    Returns None when the value is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None


def _coerced_or_raw(value: object) -> object:
    coerced = coerce_int(value)
    return value if coerced is None else coerced


def build_quote_request(entry: Mapping[str, object], fallback_id: str) -> QuoteRequest:
    raw_id = entry.get("id")
    quote_id = fallback_id if raw_id in (None, "") else str(raw_id)
    raw_sex = entry.get("sex")
    return QuoteRequest(
        quote_id=quote_id,
        plan_key=str(entry.get("plan", "")).strip(),
        sex=raw_sex.strip().lower() if isinstance(raw_sex, str) else raw_sex,
        age=_coerced_or_raw(entry.get("age")),
        sum_assured=_coerced_or_raw(entry.get("sum_assured")),
    )


def load_quote_requests_csv(path: Path) -> list[dict[str, object]]:
    """
    Load quote request rows as dicts of strings.
    """
    if not path.is_file():
        raise ValueError(f"Quote request file not found: {path}")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [column for column in QUOTE_CSV_COLUMNS[1:] if column not in df.columns]
    if missing:
        raise ValueError(f"Quote request file is missing columns: {', '.join(missing)}")
    return df.to_dict(orient="records")


def parse_quote_requests(
    config: Mapping[str, object],
    base_dir: Path | None = None,
) -> list[QuoteRequest]:
    """
    Collect inline quotes first, then CSV rows.
    """
    base_dir = base_dir or Path.cwd()
    entries: list[Mapping[str, object]] = []

    inline = config.get("quotes")
    if isinstance(inline, list):
        entries.extend(entry for entry in inline if isinstance(entry, Mapping))

    csv_path = config.get("quotes_csv_path")
    if csv_path:
        entries.extend(load_quote_requests_csv(resolve_path(base_dir, str(csv_path))))

    if not entries:
        raise ValueError("Quote requests are missing.")
    return [
        build_quote_request(entry, fallback_id=f"q{position + 1}")
        for position, entry in enumerate(entries)
    ]


def _summary_row(outcome: QuoteOutcome) -> dict[str, object]:
    request = outcome.request
    row: dict[str, object] = {
        "quote_id": request.quote_id,
        "plan": request.plan_key,
        "sex": request.sex,
        "age": request.age,
        "sum_assured": request.sum_assured,
        "status": "ok" if outcome.ok else "error",
        "error_code": None,
        "error_message": None,
        "base_rate": None,
        "effective_rate": None,
        "annual_premium": None,
        "semi_annual": None,
        "quarter": None,
        "month": None,
    }
    result = outcome.result
    if isinstance(result, PremiumResult):
        row.update(
            base_rate=result.base_rate,
            effective_rate=result.effective_rate,
            annual_premium=result.annual_premium,
            semi_annual=result.semi_annual,
            quarter=result.quarter,
            month=result.month,
        )
    else:
        row.update(error_code=result.code, error_message=result.message)
    return row


def run_quotes(dataset: Dataset, requests: Iterable[QuoteRequest]) -> QuoteBatchResult:
    outcomes = [
        QuoteOutcome(
            request=request,
            result=compute_premium(
                dataset,
                request.plan_key,
                request.sex,
                request.age,
                request.sum_assured,
            ),
        )
        for request in requests
    ]
    summary = pd.DataFrame(
        [_summary_row(outcome) for outcome in outcomes],
        columns=list(SUMMARY_COLUMNS),
    )
    # nullable ints keep whole-currency premiums from turning into floats
    summary = summary.astype({column: "Int64" for column in _PREMIUM_COLUMNS})
    return QuoteBatchResult(outcomes=outcomes, summary=summary)


def build_premium_sheet(
    dataset: Dataset,
    plan_key: str,
    sum_assured: float,
) -> pd.DataFrame | CalculationError:
    """
    Premiums for every accepted age of one plan, both sexes.

    Ages without a quote (for example gaps in the rate table) carry the
    error code instead of amounts.
    """
    plan = dataset.index.get(plan_key)
    if isinstance(plan, CalculationError):
        return plan

    rows: list[dict[str, object]] = []
    for age in range(int(plan.age_range.min), int(plan.age_range.max) + 1):
        row: dict[str, object] = {"age": age}
        for sex in Sex:
            result = compute_premium(dataset, plan_key, sex, age, sum_assured)
            if isinstance(result, PremiumResult):
                row[f"{sex.value}_annual"] = result.annual_premium
                row[f"{sex.value}_month"] = result.month
            else:
                row[f"{sex.value}_annual"] = result.code
                row[f"{sex.value}_month"] = None
        rows.append(row)
    return pd.DataFrame(rows)

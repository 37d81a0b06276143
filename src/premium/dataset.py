from __future__ import annotations

"""
Dataset validation.

Turns the parsed JSON rate dataset into an immutable `Dataset`, or returns
the first reason it is rejected. A dataset is accepted whole or not at all.

Checks run in this order and stop at the first failure:
1. top-level object with a non-empty `plans` list
2. optional modal factor override (malformed overrides fall back silently)
3. per plan: key/name, unique key, age range, minimum sum assured, calculation type
4. rate table rows, or the fixed rate
5. discount tiers
"""

import json
import math
from pathlib import Path
from typing import Any, Mapping

from .errors import DatasetEmptyError, DatasetError, DatasetFormatError, PlanSchemaError
from .models import (
    DEFAULT_MODAL_FACTORS,
    AgeRange,
    CalculationType,
    Dataset,
    DatasetInfo,
    DiscountTier,
    ModalFactors,
    Plan,
    RateRow,
)
from .plan_index import PlanIndex


def is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:  # ints beyond float range
        return False


def _as_int_if_integral(value: float) -> float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _optional_text(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def read_modal_factors(data: Mapping[str, Any]) -> ModalFactors:
    """
    Pick the modal factor override, or the defaults.

    `metadata.modalFactors` wins over a top-level `modalFactors` whenever it
    is present, even when empty. The override is used only when all four
    factors are positive numbers.
    """
    metadata = data.get("metadata")
    raw = metadata.get("modalFactors") if isinstance(metadata, Mapping) else None
    if raw is None:
        raw = data.get("modalFactors")
    if not isinstance(raw, Mapping):
        return DEFAULT_MODAL_FACTORS

    values = [raw.get(key) for key in ("annual", "semiAnnual", "quarterly", "monthly")]
    if not all(is_number(value) and value > 0 for value in values):
        return DEFAULT_MODAL_FACTORS
    annual, semi_annual, quarterly, monthly = values
    return ModalFactors(
        annual=float(annual),
        semi_annual=float(semi_annual),
        quarterly=float(quarterly),
        monthly=float(monthly),
    )


def _read_rate_rows(plan_key: str, raw_rates: object) -> tuple[RateRow, ...] | PlanSchemaError:
    if not isinstance(raw_rates, list) or not raw_rates:
        return PlanSchemaError(plan_key, "rates", "Rate table plans need at least one rate row.")
    rows: list[RateRow] = []
    for index, raw_row in enumerate(raw_rates):
        if not isinstance(raw_row, Mapping):
            return PlanSchemaError(plan_key, f"rates[{index}]", "Rate row must be an object.")
        if not is_number(raw_row.get("age")):
            return PlanSchemaError(plan_key, f"rates[{index}].age", "Rate row age must be numeric.")
        if not (is_number(raw_row.get("male")) and is_number(raw_row.get("female"))):
            return PlanSchemaError(
                plan_key, f"rates[{index}]", "Male and female rates must be numeric."
            )
        rows.append(
            RateRow(
                age=_as_int_if_integral(raw_row["age"]),
                male_rate=float(raw_row["male"]),
                female_rate=float(raw_row["female"]),
            )
        )
    return tuple(rows)


def _read_discounts(plan_key: str, raw_discounts: object) -> tuple[DiscountTier, ...] | PlanSchemaError:
    if raw_discounts is None:
        return ()
    if not isinstance(raw_discounts, list):
        return PlanSchemaError(plan_key, "discounts", "Discounts must be a list.")
    tiers: list[DiscountTier] = []
    for raw_tier in raw_discounts:
        if not isinstance(raw_tier, Mapping):
            return PlanSchemaError(plan_key, "discounts", "Discount tier must be an object.")
        min_sum = raw_tier.get("minSum")
        discount = raw_tier.get("discountPer1000")
        # missing values count as zero
        min_sum = 0 if min_sum is None else min_sum
        discount = 0 if discount is None else discount
        if not (is_number(min_sum) and is_number(discount)):
            return PlanSchemaError(
                plan_key, "discounts", "minSum and discountPer1000 must be numeric."
            )
        tiers.append(DiscountTier(min_sum=float(min_sum), discount_per_1000=float(discount)))
    # sorted() is stable, so equal thresholds keep their source order
    return tuple(sorted(tiers, key=lambda tier: tier.min_sum))


def _read_plan(
    position: int,
    raw_plan: object,
    seen_keys: set[str],
) -> Plan | PlanSchemaError:
    fallback_key = f"#{position + 1}"
    if not isinstance(raw_plan, Mapping):
        return PlanSchemaError(fallback_key, "plan", "Plan must be an object.")

    raw_key = raw_plan.get("planKey")
    raw_name = raw_plan.get("planName")
    if not raw_key or not raw_name:
        return PlanSchemaError(
            str(raw_key) if raw_key else fallback_key,
            "planKey" if not raw_key else "planName",
            "planKey and planName are required.",
        )
    plan_key = str(raw_key)
    if plan_key in seen_keys:
        return PlanSchemaError(plan_key, "planKey", "Plan keys must be unique.")

    age_range = raw_plan.get("ageRange")
    if (
        not isinstance(age_range, Mapping)
        or not is_number(age_range.get("min"))
        or not is_number(age_range.get("max"))
    ):
        return PlanSchemaError(plan_key, "ageRange", "ageRange.min and ageRange.max must be numeric.")
    if age_range["min"] > age_range["max"]:
        return PlanSchemaError(plan_key, "ageRange", "ageRange.min must not exceed ageRange.max.")

    min_sum_assured = raw_plan.get("minSumAssured")
    if not is_number(min_sum_assured) or min_sum_assured <= 0:
        return PlanSchemaError(plan_key, "minSumAssured", "minSumAssured must be a positive number.")

    raw_type = raw_plan.get("calculationType")
    try:
        calculation_type = CalculationType(raw_type)
    except ValueError:
        return PlanSchemaError(
            plan_key, "calculationType", f"Unsupported calculationType: {raw_type!r}"
        )

    rates: tuple[RateRow, ...] = ()
    fixed_rate: float | None = None
    if calculation_type is CalculationType.RATE_TABLE:
        rows = _read_rate_rows(plan_key, raw_plan.get("rates"))
        if isinstance(rows, PlanSchemaError):
            return rows
        rates = rows
    else:
        raw_fixed = raw_plan.get("fixedRate")
        if not is_number(raw_fixed):
            return PlanSchemaError(plan_key, "fixedRate", "fixedRate must be numeric.")
        fixed_rate = float(raw_fixed)

    discounts = _read_discounts(plan_key, raw_plan.get("discounts"))
    if isinstance(discounts, PlanSchemaError):
        return discounts

    return Plan(
        plan_key=plan_key,
        plan_name=str(raw_name),
        age_range=AgeRange(
            min=_as_int_if_integral(age_range["min"]),
            max=_as_int_if_integral(age_range["max"]),
        ),
        min_sum_assured=float(min_sum_assured),
        calculation_type=calculation_type,
        rates=rates,
        fixed_rate=fixed_rate,
        discounts=discounts,
    )


def load_dataset(raw: object) -> Dataset | DatasetError:
    """
    Validate a parsed rate dataset.

    Returns a `Dataset` or the first `DatasetError` found.
    """
    if not isinstance(raw, Mapping):
        return DatasetFormatError()
    raw_plans = raw.get("plans")
    if raw_plans is not None and not isinstance(raw_plans, list):
        return DatasetFormatError("plans must be a list.")
    if not raw_plans:
        return DatasetEmptyError()

    modal_factors = read_modal_factors(raw)

    plans: list[Plan] = []
    seen_keys: set[str] = set()
    for position, raw_plan in enumerate(raw_plans):
        plan = _read_plan(position, raw_plan, seen_keys)
        if isinstance(plan, PlanSchemaError):
            return plan
        seen_keys.add(plan.plan_key)
        plans.append(plan)

    file_info = raw.get("fileInfo")
    file_info = file_info if isinstance(file_info, Mapping) else {}
    info = DatasetInfo(
        version=_optional_text(file_info.get("version")),
        last_updated=_optional_text(file_info.get("lastUpdated")),
    )
    plan_tuple = tuple(plans)
    return Dataset(
        plans=plan_tuple,
        modal_factors=modal_factors,
        info=info,
        index=PlanIndex(plan_tuple),
    )


def read_dataset_file(path: Path) -> object:
    """
    Read a rate dataset JSON file into plain Python values.
    """
    if not path.is_file():
        raise ValueError(f"Dataset file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Dataset file is not valid JSON: {path}") from exc

from __future__ import annotations

"""
Annual and modal premium calculation.

Every function here is pure: it reads a validated `Dataset`/`Plan` and
returns either a result record or a `CalculationError` value.

Units
- sum_assured / premiums: currency (whole units after ceiling)
- rates: currency per 1000 sum assured
"""

from dataclasses import dataclass
from decimal import Decimal
import math

from .dataset import is_number
from .errors import (
    AgeOutOfRangeError,
    CalculationError,
    InvalidRequestError,
    SumBelowMinimumError,
)
from .models import Dataset, ModalFactors, Plan, Sex
from .rates import apply_discount_tiers, exact_decimal, resolve_base_rate


@dataclass(frozen=True)
class PremiumBreakdown:
    base_rate: float
    effective_rate: float
    annual_premium: int


@dataclass(frozen=True)
class ModalPremiums:
    annual: int
    semi_annual: int
    quarter: int
    month: int


@dataclass(frozen=True)
class PremiumResult:
    """
    Full quote for one request.

    Units
    - base_rate / effective_rate: per 1000 sum assured
    - annual_premium / semi_annual / quarter / month: currency
    """

    base_rate: float
    effective_rate: float
    annual_premium: int
    semi_annual: int
    quarter: int
    month: int


def ceil_to(value: float | Decimal, unit: int = 1) -> int:
    """Round up to the next multiple of `unit` (never down, never to nearest)."""
    return int(math.ceil(value / unit) * unit)


def parse_sex(value: object) -> Sex | InvalidRequestError:
    if isinstance(value, Sex):
        return value
    if isinstance(value, str):
        try:
            return Sex(value.strip().lower())
        except ValueError:
            pass
    return InvalidRequestError(field="sex", value=value)


def parse_age(value: object) -> int | InvalidRequestError:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return InvalidRequestError(field="age", value=value)


def parse_sum_assured(value: object) -> float | InvalidRequestError:
    if not is_number(value):
        return InvalidRequestError(field="sum_assured", value=value)
    return value


def compute_annual_premium(
    plan: Plan,
    sex: Sex,
    age: int,
    sum_assured: float,
) -> PremiumBreakdown | CalculationError:
    """
    Annual premium for one plan.

    Checks run in order and stop at the first failure: age range,
    minimum sum assured, base rate lookup.
    """
    if not plan.age_range.contains(age):
        return AgeOutOfRangeError(min_age=plan.age_range.min, max_age=plan.age_range.max)
    if sum_assured < plan.min_sum_assured:
        return SumBelowMinimumError(minimum=plan.min_sum_assured)

    base_rate = resolve_base_rate(plan, age, sex)
    if isinstance(base_rate, CalculationError):
        return base_rate

    effective_rate = apply_discount_tiers(plan.discounts, sum_assured, base_rate)
    annual_premium = ceil_to(exact_decimal(sum_assured) / 1000 * exact_decimal(effective_rate))
    return PremiumBreakdown(
        base_rate=base_rate,
        effective_rate=effective_rate,
        annual_premium=annual_premium,
    )


def derive_modal_premiums(annual_premium: int, factors: ModalFactors) -> ModalPremiums:
    """
    Installments for each payment period.

    Each period is rounded up on its own; `month * 12` may exceed the annual
    premium.

    Products are taken on the decimal values, so 2500 * 0.27 is exactly 675.
    """
    return ModalPremiums(
        annual=ceil_to(annual_premium * exact_decimal(factors.annual)),
        semi_annual=ceil_to(annual_premium * exact_decimal(factors.semi_annual)),
        quarter=ceil_to(annual_premium * exact_decimal(factors.quarterly)),
        month=ceil_to(annual_premium * exact_decimal(factors.monthly)),
    )


def compute_premium(
    dataset: Dataset,
    plan_key: str,
    sex: Sex | str,
    age: int,
    sum_assured: float,
) -> PremiumResult | CalculationError:
    """
    Quote one request against a dataset snapshot.

    Returns a `PremiumResult` or the `CalculationError` that stopped it.
    The dataset is never modified.
    """
    plan = dataset.index.get(plan_key)
    if isinstance(plan, CalculationError):
        return plan

    parsed_sex = parse_sex(sex)
    if isinstance(parsed_sex, CalculationError):
        return parsed_sex
    parsed_age = parse_age(age)
    if isinstance(parsed_age, CalculationError):
        return parsed_age
    parsed_sum = parse_sum_assured(sum_assured)
    if isinstance(parsed_sum, CalculationError):
        return parsed_sum

    breakdown = compute_annual_premium(plan, parsed_sex, parsed_age, parsed_sum)
    if isinstance(breakdown, CalculationError):
        return breakdown

    modal = derive_modal_premiums(breakdown.annual_premium, dataset.modal_factors)
    return PremiumResult(
        base_rate=breakdown.base_rate,
        effective_rate=breakdown.effective_rate,
        annual_premium=breakdown.annual_premium,
        semi_annual=modal.semi_annual,
        quarter=modal.quarter,
        month=modal.month,
    )

from __future__ import annotations

"""
Typed records for a validated rate dataset.

Units
- rates / fixed_rate / discount_per_1000: currency per 1000 sum assured
- min_sum_assured / min_sum: currency
- ages: years
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .plan_index import PlanIndex


class CalculationType(str, Enum):
    RATE_TABLE = "rateTable"
    FIXED_RATE_PER_1000 = "fixedRatePer1000"


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class AgeRange:
    min: int
    max: int

    def contains(self, age: int) -> bool:
        return self.min <= age <= self.max


@dataclass(frozen=True)
class RateRow:
    """
    One rate table row.

    Units
    - age: years
    - male_rate / female_rate: base rate per 1000 sum assured
    """

    age: float
    male_rate: float
    female_rate: float

    def rate_for(self, sex: Sex) -> float:
        return self.male_rate if sex is Sex.MALE else self.female_rate


@dataclass(frozen=True)
class DiscountTier:
    min_sum: float
    discount_per_1000: float


@dataclass(frozen=True)
class ModalFactors:
    """
    Multipliers converting an annual premium into an installment.
    """

    annual: float = 1.0
    semi_annual: float = 0.52
    quarterly: float = 0.27
    monthly: float = 0.09


DEFAULT_MODAL_FACTORS = ModalFactors()


@dataclass(frozen=True)
class Plan:
    """
    One insurance plan after validation.

    `rates` is non-empty only for rate table plans and `fixed_rate` is set
    only for fixed-rate plans. `discounts` is sorted ascending by `min_sum`.
    """

    plan_key: str
    plan_name: str
    age_range: AgeRange
    min_sum_assured: float
    calculation_type: CalculationType
    rates: tuple[RateRow, ...] = ()
    fixed_rate: float | None = None
    discounts: tuple[DiscountTier, ...] = ()

    @property
    def is_rate_table(self) -> bool:
        return self.calculation_type is CalculationType.RATE_TABLE


@dataclass(frozen=True)
class DatasetInfo:
    version: str | None = None
    last_updated: str | None = None


@dataclass(frozen=True)
class Dataset:
    """
    Immutable snapshot produced by `premium.dataset.load_dataset`.
    """

    plans: tuple[Plan, ...]
    modal_factors: ModalFactors
    info: DatasetInfo
    index: PlanIndex

from __future__ import annotations

"""
Plan lookup built once per validated dataset.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from .errors import PlanNotFoundError
from .models import Plan


class PlanIndex:
    """
    Read-only mapping from plan key to plan.

    Iteration follows the dataset order so that plan lists can be shown
    in the order the dataset author wrote them.
    """

    def __init__(self, plans: Iterable[Plan]) -> None:
        by_key: dict[str, Plan] = {}
        for plan in plans:
            if plan.plan_key in by_key:
                raise ValueError(f"Duplicate plan key: {plan.plan_key}")
            by_key[plan.plan_key] = plan
        self._by_key: Mapping[str, Plan] = MappingProxyType(by_key)
        self._order: tuple[str, ...] = tuple(by_key)

    def get(self, plan_key: str) -> Plan | PlanNotFoundError:
        plan = self._by_key.get(plan_key)
        if plan is None:
            return PlanNotFoundError(plan_key=plan_key)
        return plan

    def keys(self) -> tuple[str, ...]:
        return self._order

    def __contains__(self, plan_key: object) -> bool:
        return plan_key in self._by_key

    def __iter__(self) -> Iterator[Plan]:
        return (self._by_key[key] for key in self._order)

    def __len__(self) -> int:
        return len(self._order)


@dataclass(frozen=True)
class PlanHint:
    """
    Display facts for one plan.

    Units
    - min_age / max_age: accepted issue ages (years)
    - table_min_age / table_max_age: ages present in the rate table, None for fixed-rate plans
    - min_sum_assured: currency
    """

    plan_key: str
    plan_name: str
    calculation_type: str
    min_age: int
    max_age: int
    min_sum_assured: float
    table_min_age: float | None
    table_max_age: float | None
    discount_tier_count: int


def describe_plan(plan: Plan) -> PlanHint:
    table_min = table_max = None
    if plan.is_rate_table and plan.rates:
        ages = [row.age for row in plan.rates]
        table_min, table_max = min(ages), max(ages)
    return PlanHint(
        plan_key=plan.plan_key,
        plan_name=plan.plan_name,
        calculation_type=plan.calculation_type.value,
        min_age=plan.age_range.min,
        max_age=plan.age_range.max,
        min_sum_assured=plan.min_sum_assured,
        table_min_age=table_min,
        table_max_age=table_max,
        discount_tier_count=len(plan.discounts),
    )

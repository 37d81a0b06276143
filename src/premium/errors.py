from __future__ import annotations

"""
Failure values for dataset loading and premium calculation.

These are returned, not raised. Callers branch on the type:

    result = compute_premium(dataset, "term10", "male", 30, 500_000)
    if isinstance(result, CalculationError):
        print(result.code, result.message)
"""

from dataclasses import dataclass


class DatasetError:
    """Base for every reason a raw dataset is rejected."""

    code = "dataset_error"

    @property
    def message(self) -> str:
        return "Dataset rejected."


class CalculationError:
    """Base for every reason a single premium request fails."""

    code = "calculation_error"

    @property
    def message(self) -> str:
        return "Premium calculation failed."


@dataclass(frozen=True)
class DatasetFormatError(DatasetError):
    detail: str = "Dataset must be a JSON object."

    code = "dataset_format"

    @property
    def message(self) -> str:
        return self.detail


@dataclass(frozen=True)
class DatasetEmptyError(DatasetError):
    code = "dataset_empty"

    @property
    def message(self) -> str:
        return "Dataset contains no plans."


@dataclass(frozen=True)
class PlanSchemaError(DatasetError):
    plan_key: str
    field: str
    detail: str = ""

    code = "plan_schema"

    @property
    def message(self) -> str:
        text = f"Plan {self.plan_key} has an invalid {self.field}."
        return f"{text} {self.detail}" if self.detail else text


@dataclass(frozen=True)
class PlanNotFoundError(CalculationError):
    plan_key: str

    code = "plan_not_found"

    @property
    def message(self) -> str:
        return f"Plan not found: {self.plan_key}"


@dataclass(frozen=True)
class AgeOutOfRangeError(CalculationError):
    min_age: int
    max_age: int

    code = "age_out_of_range"

    @property
    def message(self) -> str:
        return f"Age is outside the supported range ({self.min_age}-{self.max_age})."


@dataclass(frozen=True)
class SumBelowMinimumError(CalculationError):
    minimum: float

    code = "sum_below_minimum"

    @property
    def message(self) -> str:
        return f"Sum assured must be at least {self.minimum:g}."


@dataclass(frozen=True)
class RateNotFoundError(CalculationError):
    age: int
    supported_min: float | None = None
    supported_max: float | None = None

    code = "rate_not_found"

    @property
    def message(self) -> str:
        if self.supported_min is None or self.supported_max is None:
            return f"No rate for age {self.age}."
        return (
            f"No rate for age {self.age} "
            f"(table covers ages {self.supported_min:g}-{self.supported_max:g})."
        )


@dataclass(frozen=True)
class InvalidRequestError(CalculationError):
    field: str
    value: object = None

    code = "invalid_request"

    @property
    def message(self) -> str:
        return f"Invalid {self.field}: {self.value!r}"

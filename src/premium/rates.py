from __future__ import annotations  # 型注釈の前方参照を可能にするため

"""
Base rate resolution and discount tiers.

Notation
- base rate: premium per 1000 sum assured before discounts
- effective rate: base rate after the discount tier is applied
"""

from decimal import Decimal  # 2進小数の誤差を避けて10進で計算するため
from typing import Sequence  # 入力の期待形を型注釈で示すため

from .errors import RateNotFoundError  # レートが見つからない場合の結果値
from .models import DiscountTier, Plan, Sex  # 検証済みの型付きレコード


def exact_decimal(value: float) -> Decimal:  # データセットに書かれた10進値そのものを得る
    """
    Decimal with the value as written in the dataset.

    repr() of a float is the shortest string that reads back to the same
    float, so 4.4 becomes Decimal("4.4") rather than 4.4000000000000003...
    """
    return Decimal(repr(value))  # 最短表現を経由して10進化する


def rate_table_age_bounds(plan: Plan) -> tuple[float, float] | None:  # テーブルに存在する年齢の範囲を返す
    """
    Smallest and largest ages present in the plan's rate table.

    Returns None for fixed-rate plans.
    """
    if not plan.is_rate_table or not plan.rates:  # 固定レートならテーブルは参照しない
        return None  # 範囲なし
    ages = [row.age for row in plan.rates]  # 行の年齢だけを取り出す
    return min(ages), max(ages)  # 最小・最大年齢を返す


def resolve_base_rate(plan: Plan, age: int, sex: Sex) -> float | RateNotFoundError:  # 1000あたりの基本レートを求める
    """
    Resolve the base rate per 1000 sum assured.

    Units
    - age: years, matched exactly against the table (no interpolation)
    - sex: Sex.MALE / Sex.FEMALE
    """
    if not plan.is_rate_table:  # 固定レート型は年齢・性別に関係なく一定
        return float(plan.fixed_rate)  # fixedRateをそのまま返す

    for row in plan.rates:  # 先頭から完全一致する年齢の行を探す
        if row.age == age:  # 補間や近傍探索はしない
            return row.rate_for(sex)  # 性別に対応するレートを返す

    bounds = rate_table_age_bounds(plan)  # 診断用にテーブルの年齢範囲を添える
    if bounds is None:  # 行が無い場合は範囲も無い
        return RateNotFoundError(age=age)  # 範囲なしで失敗を返す
    return RateNotFoundError(age=age, supported_min=bounds[0], supported_max=bounds[1])  # 範囲付きで失敗を返す


def select_discount(tiers: Sequence[DiscountTier], sum_assured: float) -> float:  # 適用する割引額を1つ選ぶ
    """
    Pick the discount of the highest qualifying tier.

    Tiers are scanned in ascending `min_sum` order and each qualifying tier
    overwrites the previous one, so discounts never stack.
    """
    selected = 0.0  # どの段階にも該当しなければ割引なし
    for tier in sorted(tiers, key=lambda item: item.min_sum):  # 閾値の昇順で走査する
        if tier.min_sum <= sum_assured:  # 保険金額が閾値以上なら該当
            selected = tier.discount_per_1000  # 上書きするので最後に該当した段階だけが残る
    return selected  # 選ばれた割引額を返す


def apply_discount_tiers(  # 割引後の実効レートを求める
    tiers: Sequence[DiscountTier],  # プランの割引段階
    sum_assured: float,  # 申込保険金額
    base_rate: float,  # 割引前の基本レート
) -> float:  # 実効レート（負にはならない）
    """
    Apply the staircase discount to a base rate, floored at zero.
    """
    if not tiers:  # 割引段階が無ければ何もしない
        return base_rate  # 基本レートをそのまま返す
    discount = select_discount(tiers, sum_assured)  # 最上位の該当段階の割引額
    effective = exact_decimal(base_rate) - exact_decimal(discount)  # 10進で差し引く
    return max(0.0, float(effective))  # 負のレートにならないよう0で止める

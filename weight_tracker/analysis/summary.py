"""一覧表示・グラフ用の集計."""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from weight_tracker.interfaces.record_store import Record, parse_record_date


@dataclass(frozen=True)
class WeightSummary:
    """有効な記録の最小・最大体重.

    有効な記録が無い場合は min/max とも 0.0。
    """

    min_weight: float
    max_weight: float
    count: int


def is_valid_record(record: Record) -> bool:
    """体重が正の有限数で、日付が解釈できる記録か."""
    weight = record.weight
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return False
    if not math.isfinite(weight) or weight <= 0:
        return False
    return parse_record_date(record.date) is not None


def summarize(records: Sequence[Record]) -> WeightSummary:
    """最小・最大体重を算出する.

    NaN など不正な体重は 0 として扱わず、集計から除外する。
    """
    weights = np.array(
        [r.weight for r in records if is_valid_record(r)], dtype=float
    )
    if weights.size == 0:
        return WeightSummary(min_weight=0.0, max_weight=0.0, count=0)
    return WeightSummary(
        min_weight=round(float(np.min(weights)), 1),
        max_weight=round(float(np.max(weights)), 1),
        count=int(weights.size),
    )


def short_label(date: str) -> str:
    """グラフ軸用の短い日付表記 (dd/mm). 解釈できなければ元の文字列."""
    ts = parse_record_date(date)
    if ts is None:
        return date
    return f"{ts.day:02d}/{ts.month:02d}"

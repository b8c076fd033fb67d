"""
semtools Descriptive Statistics
===============================
profile 大小等數值序列的描述統計

包含:
- 平均、母體變異數、標準差
- 最大、最小、計數、非零計數
- 四分位數 (線性內插)
- 百分位數索引 (profile 長度查詢)

版本: 1.0.0
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray


# =============================================================================
# Type Aliases
# =============================================================================
Number = Union[int, float]
ValueArray = NDArray[np.float64]


# =============================================================================
# Descriptive Statistics
# =============================================================================
def describe(values: Sequence[Number]) -> Dict[str, Optional[float]]:
    """
    描述統計

    Args:
        values: 數值序列

    Returns:
        average, variance, standardDeviation, max, min, count, countNonZero,
        q1, median, q3；空序列時除計數外皆為 None
    """
    arr: ValueArray = np.asarray(values, dtype=np.float64)
    count = int(arr.size)

    if count == 0:
        return {
            "average": None,
            "variance": None,
            "standardDeviation": None,
            "max": None,
            "min": None,
            "count": 0,
            "countNonZero": 0,
            "q1": None,
            "median": None,
            "q3": None,
        }

    variance = float(np.var(arr))
    q1, median, q3 = np.percentile(arr, [25, 50, 75])
    return {
        "average": float(np.mean(arr)),
        "variance": variance,
        "standardDeviation": float(np.sqrt(variance)),
        "max": float(np.max(arr)),
        "min": float(np.min(arr)),
        "count": count,
        "countNonZero": int(np.count_nonzero(arr)),
        "q1": float(q1),
        "median": float(median),
        "q3": float(q3),
    }


def percentile_index(percentile: float, n_values: int) -> int:
    """
    不超過指定百分位數的位置索引

    round(percentile * (n - 1) / 100 - 0.5)，.5 向上進位，小於 0 時為 0
    """
    position = percentile * (n_values - 1) / 100.0 - 0.5
    # Rounds .5 up, not numpy's half to even
    index = int(np.floor(position + 0.5))
    return max(index, 0)


def value_at_percentile(
    values: Sequence[Number],
    percentile: float,
    increasing_sort: bool = False,
) -> Optional[Number]:
    """
    排序後取百分位數位置的值

    Args:
        values: 數值序列
        percentile: 百分位數 (0-100)
        increasing_sort: 遞增排序 (預設遞減)
    """
    if not values:
        return None
    ordered = sorted(values, reverse=not increasing_sort)
    index = min(percentile_index(percentile, len(ordered)), len(ordered) - 1)
    return ordered[index]


__all__ = [
    "describe",
    "percentile_index",
    "value_at_percentile",
]

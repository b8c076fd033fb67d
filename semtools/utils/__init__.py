"""
semtools Utilities
==================
通用工具

使用方式:
    from semtools.utils import describe, value_at_percentile
"""

from semtools.utils.statistics import (
    describe,
    percentile_index,
    value_at_percentile,
)


__all__ = [
    "describe",
    "percentile_index",
    "value_at_percentile",
]

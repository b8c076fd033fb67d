"""
Unit Tests for Statistics Utilities
===================================
測試描述統計與百分位數索引
"""
import pytest

from semtools.utils import describe, percentile_index, value_at_percentile


class TestDescribe:
    """測試描述統計"""

    def test_values(self):
        """測試一般序列"""
        stats = describe([1, 2, 3, 4, 0])
        assert stats["average"] == pytest.approx(2.0)
        assert stats["variance"] == pytest.approx(2.0)
        assert stats["count"] == 5
        assert stats["countNonZero"] == 4
        assert stats["q1"] == pytest.approx(1.0)
        assert stats["median"] == pytest.approx(2.0)
        assert stats["q3"] == pytest.approx(3.0)

    def test_empty(self):
        """測試空序列"""
        stats = describe([])
        assert stats["count"] == 0
        assert stats["average"] is None
        assert stats["median"] is None


class TestPercentiles:
    """測試百分位數"""

    @pytest.mark.parametrize(
        "percentile, n_values, expected",
        [(0, 4, 0), (50, 4, 1), (66.67, 4, 2), (100, 4, 3), (50, 2, 0), (100, 1, 0)],
    )
    def test_percentile_index(self, percentile, n_values, expected):
        """測試位置索引 (.5 進位)"""
        assert percentile_index(percentile, n_values) == expected

    def test_value_at_percentile(self):
        """測試排序方向"""
        values = [3, 1, 2]
        assert value_at_percentile(values, 0, increasing_sort=True) == 1
        assert value_at_percentile(values, 0) == 3
        assert value_at_percentile(values, 200, increasing_sort=True) == 3

    def test_value_at_percentile_empty(self):
        """測試空序列"""
        assert value_at_percentile([], 50) is None

"""Tests for the Data sample container."""

import pytest

from dispatchsimulator.instrumentation.data import Data

# === Helpers ===


def _make_data(pairs: list[tuple[float, float]]) -> Data:
    """Create Data from (time_s, value) pairs."""
    d = Data()
    for t, v in pairs:
        d.add_stat(v, t)
    return d


# === Basic Operations ===


class TestDataBasic:
    def test_empty_data(self):
        d = Data()
        assert d.count() == 0
        assert d.values == []
        assert not d
        assert d.mean() == 0.0
        assert d.max() == 0.0
        assert d.percentile(0.5) == 0.0

    def test_add_stat(self):
        d = Data()
        d.add_stat(0.3, 1.0)
        assert d.values == [(1.0, 0.3)]
        assert d

    def test_clear(self):
        d = _make_data([(0.0, 1.0), (1.0, 2.0)])
        d.clear()
        assert len(d) == 0

    def test_max_samples_keeps_most_recent(self):
        d = Data(max_samples=2)
        for t in (1.0, 2.0, 3.0):
            d.add_stat(t * 10, t)
        assert d.values == [(2.0, 20.0), (3.0, 30.0)]


# === Slicing ===


class TestDataBetween:
    def test_inclusive_start_exclusive_end(self):
        d = _make_data([(1.0, 10), (2.0, 20), (3.0, 30)])
        assert d.between(1.0, 3.0).raw_values() == [10, 20]


# === Aggregations ===


class TestAggregations:
    def test_mean_and_max(self):
        d = _make_data([(0.0, 0.1), (1.0, 0.3), (2.0, 1.0)])
        assert d.mean() == pytest.approx(1.4 / 3)
        assert d.max() == pytest.approx(1.0)

    def test_percentile_interpolates(self):
        d = _make_data([(float(i), float(i)) for i in range(11)])
        assert d.percentile(0.5) == pytest.approx(5.0)
        assert d.percentile(0.95) == pytest.approx(9.5)
        assert d.percentile(0) == 0.0
        assert d.percentile(1) == 10.0

    def test_std(self):
        assert _make_data([(0.0, 5.0)]).std() == 0.0
        assert _make_data([(0.0, 1.0), (1.0, 3.0)]).std() == pytest.approx(1.0)

    def test_bucket_means(self):
        d = _make_data([(0.1, 1.0), (0.9, 3.0), (2.5, 10.0)])
        starts, means = d.bucket_means(window_s=1.0)
        assert starts == [0.0, 2.0]
        assert means == [2.0, 10.0]

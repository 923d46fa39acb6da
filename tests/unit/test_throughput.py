"""Unit tests for the rolling throughput estimator."""

import pytest

from forcebuffer.throughput import ThroughputEstimator


class TestThroughputEstimator:
    """Rate samples from buffered-extent deltas."""

    def test_empty_average_is_zero(self):
        assert ThroughputEstimator().average_rate() == 0.0

    def test_first_update_only_sets_baseline(self):
        estimator = ThroughputEstimator()
        estimator.update(10.0, 100.0)
        assert estimator.sample_count() == 0
        assert estimator.average_rate() == 0.0

    def test_rate_from_delta(self):
        estimator = ThroughputEstimator()
        estimator.update(10.0, 100.0)
        estimator.update(30.0, 102.0)
        assert estimator.average_rate() == pytest.approx(10.0)

    def test_non_increasing_extent_adds_no_sample(self):
        estimator = ThroughputEstimator()
        estimator.update(10.0, 100.0)
        estimator.update(10.0, 101.0)
        estimator.update(5.0, 102.0)
        assert estimator.sample_count() == 0

        # Baseline still advances
        estimator.update(9.0, 103.0)
        assert estimator.average_rate() == pytest.approx(4.0)

    def test_zero_elapsed_adds_no_sample(self):
        estimator = ThroughputEstimator()
        estimator.update(10.0, 100.0)
        estimator.update(20.0, 100.0)
        assert estimator.sample_count() == 0

    def test_window_evicts_oldest(self):
        estimator = ThroughputEstimator(window=5)
        extent = 0.0
        estimator.update(extent, 0.0)
        # Rates 1, 2, 3, 4, 5, 6 -> window keeps 2..6
        for t, rate in enumerate([1, 2, 3, 4, 5, 6], start=1):
            extent += rate
            estimator.update(extent, float(t))
        assert estimator.sample_count() == 5
        assert estimator.average_rate() == pytest.approx(4.0)

    def test_reset_clears_samples_and_baseline(self):
        estimator = ThroughputEstimator()
        estimator.update(0.0, 0.0)
        estimator.update(10.0, 1.0)
        estimator.reset()
        assert estimator.sample_count() == 0
        estimator.update(50.0, 2.0)
        assert estimator.sample_count() == 0

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            ThroughputEstimator(window=0)

"""Unit tests for the success/failure strategy adapter."""

from forcebuffer.strategy import Strategy, StrategyAdapter


def assert_invariant(adapter: StrategyAdapter) -> None:
    if adapter.strategy is Strategy.NORMAL:
        assert adapter.step_multiplier == 1.0
    else:
        assert 1.0 <= adapter.step_multiplier <= 2.0


class TestStrategyAdapter:
    """Escalation, decay and reset behaviour."""

    def test_starts_normal(self):
        adapter = StrategyAdapter()
        assert adapter.strategy is Strategy.NORMAL
        assert adapter.step_multiplier == 1.0
        assert adapter.consecutive_failures == 0

    def test_four_failures_stay_normal(self):
        adapter = StrategyAdapter()
        for _ in range(4):
            adapter.record_outcome(False)
        assert adapter.strategy is Strategy.NORMAL
        assert adapter.step_multiplier == 1.0

    def test_five_failures_go_aggressive(self):
        adapter = StrategyAdapter()
        for _ in range(5):
            adapter.record_outcome(False)
        assert adapter.strategy is Strategy.AGGRESSIVE
        assert adapter.step_multiplier == 1.5

    def test_ten_failures_reach_ceiling(self):
        adapter = StrategyAdapter()
        for _ in range(10):
            adapter.record_outcome(False)
            assert_invariant(adapter)
        assert adapter.strategy is Strategy.AGGRESSIVE
        assert adapter.step_multiplier == 2.0

        # Further failures never push past the ceiling
        for _ in range(20):
            adapter.record_outcome(False)
        assert adapter.step_multiplier == 2.0

    def test_decay_from_one_point_five(self):
        adapter = StrategyAdapter()
        for _ in range(5):
            adapter.record_outcome(False)
        assert adapter.step_multiplier == 1.5

        expected = [1.4, 1.3, 1.2, 1.1]
        for value in expected:
            adapter.record_outcome(True)
            assert adapter.strategy is Strategy.AGGRESSIVE
            assert adapter.step_multiplier == value

        adapter.record_outcome(True)
        assert adapter.strategy is Strategy.NORMAL
        assert adapter.step_multiplier == 1.0

        # Never below the floor
        adapter.record_outcome(True)
        assert adapter.step_multiplier == 1.0

    def test_success_resets_failure_count(self):
        adapter = StrategyAdapter()
        for _ in range(3):
            adapter.record_outcome(False)
        adapter.record_outcome(True)
        assert adapter.consecutive_failures == 0

    def test_new_failure_run_does_not_lower_multiplier(self):
        adapter = StrategyAdapter()
        for _ in range(10):
            adapter.record_outcome(False)
        adapter.record_outcome(True)  # 1.9
        for _ in range(5):
            adapter.record_outcome(False)
        assert adapter.step_multiplier == 1.9
        assert_invariant(adapter)

    def test_reset(self):
        adapter = StrategyAdapter()
        for _ in range(12):
            adapter.record_outcome(False)
        adapter.reset()
        assert adapter.snapshot() == {
            "strategy": "normal",
            "step_multiplier": 1.0,
            "consecutive_failures": 0,
        }

"""Tests for sibling weight rebalancing."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from progress_engine.core.exceptions import ManualWeightingError, NoPeriodDefinedError
from progress_engine.domain.hierarchy import MidGoal, SubGoal, Task, WeightMethod
from progress_engine.domain.weights import (
    apply_weights,
    days_between,
    equal_shares,
    period_days,
    period_shares,
    rebalance,
)

pytestmark = pytest.mark.unit

START = datetime(2024, 3, 1)


def _dated(node_id: str, days: int, cls=SubGoal):
    return cls(id=node_id, start_date=START, end_date=START + timedelta(days=days))


class TestDaysBetween:
    def test_whole_days(self):
        assert days_between(START, START + timedelta(days=10)) == 10

    def test_partial_day_rounds_up(self):
        assert days_between(START, START + timedelta(hours=1)) == 1
        assert days_between(START, START + timedelta(days=2, seconds=1)) == 3

    def test_same_instant_is_zero(self):
        assert days_between(START, START) == 0

    def test_dates(self):
        assert days_between(date(2024, 1, 1), date(2024, 2, 1)) == 31

    def test_mixed_date_and_datetime(self):
        assert days_between(date(2024, 3, 1), START + timedelta(days=2, hours=1)) == 3
        assert days_between(START, date(2024, 3, 11)) == 10

    def test_mixed_naive_and_aware(self):
        aware_end = datetime(2024, 3, 5, tzinfo=UTC)
        assert days_between(START, aware_end) == 4
        assert days_between(aware_end, START + timedelta(days=6)) == 2

    def test_aware_offsets_compared_in_utc(self):
        plus_two = timezone(timedelta(hours=2))
        start = datetime(2024, 3, 1, 2, tzinfo=plus_two)
        assert days_between(start, START + timedelta(days=1)) == 1

    def test_period_days_missing_or_negative(self):
        assert period_days(SubGoal(id="x", start_date=START)) == 0
        assert period_days(SubGoal(id="x", end_date=START)) == 0
        assert period_days(SubGoal(id="x", start_date=START, end_date=START - timedelta(days=4))) == 0


class TestEqual:
    def test_three_siblings_remainder_on_first(self):
        siblings = [SubGoal(id="A"), SubGoal(id="B"), SubGoal(id="C")]
        assert rebalance(siblings, WeightMethod.EQUAL) == {"A": 33.34, "B": 33.33, "C": 33.33}

    def test_deterministic_across_calls(self):
        siblings = [SubGoal(id="A"), SubGoal(id="B"), SubGoal(id="C")]
        results = [rebalance(siblings, "EQUAL") for _ in range(5)]
        assert all(r == results[0] for r in results)

    def test_single_sibling_gets_everything(self):
        assert rebalance([Task(id="only")], WeightMethod.EQUAL) == {"only": 100.0}

    @pytest.mark.parametrize("count", range(1, 41))
    def test_sums_to_100(self, count):
        weights = rebalance([Task(id=str(i)) for i in range(count)], WeightMethod.EQUAL)
        assert abs(sum(weights.values()) - 100) < 1e-9

    def test_seven_siblings(self):
        weights = rebalance([Task(id=str(i)) for i in range(7)], WeightMethod.EQUAL)
        assert weights["0"] == 14.32
        assert set(list(weights.values())[1:]) == {14.28}

    def test_equal_shares_in_hundredths(self):
        assert equal_shares(3) == [3334, 3333, 3333]
        assert equal_shares(0) == []

    def test_preserves_input_order(self):
        weights = rebalance([SubGoal(id="z"), SubGoal(id="a")], WeightMethod.EQUAL)
        assert list(weights) == ["z", "a"]


class TestPeriod:
    def test_proportional_remainder_on_first(self):
        siblings = [_dated("a", 10), _dated("b", 20), _dated("c", 30)]
        weights = rebalance(siblings, WeightMethod.PERIOD)
        assert weights == {"a": 16.67, "b": 33.33, "c": 50.0}
        assert abs(sum(weights.values()) - 100) < 1e-9

    def test_float_truncation_can_drop_a_hundredth(self):
        siblings = [_dated("a", 10), _dated("b", 29), _dated("c", 61)]
        weights = rebalance(siblings, WeightMethod.PERIOD)
        assert weights == {"a": 10.01, "b": 28.99, "c": 61.0}
        assert period_shares([10, 29, 61]) == [1001, 2899, 6100]

    def test_undated_siblings_get_zero(self):
        siblings = [_dated("a", 7, MidGoal), MidGoal(id="b"), _dated("c", 3, MidGoal)]
        assert rebalance(siblings, WeightMethod.PERIOD) == {"a": 70.0, "b": 0.0, "c": 30.0}

    def test_remainder_goes_to_first_even_if_undated(self):
        siblings = [Task(id="undated"), _dated("x", 1, Task), _dated("y", 2, Task)]
        weights = rebalance(siblings, WeightMethod.PERIOD)
        assert weights == {"undated": 0.01, "x": 33.33, "y": 66.66}

    def test_no_dates_raises(self):
        siblings = [Task(id="a"), Task(id="b")]
        with pytest.raises(NoPeriodDefinedError) as exc_info:
            rebalance(siblings, WeightMethod.PERIOD)
        assert exc_info.value.level == "task"

    def test_period_shares_zero_total_raises(self):
        with pytest.raises(NoPeriodDefinedError):
            period_shares([0, 0])


class TestManualAndEdges:
    def test_empty_group_returns_empty(self):
        assert rebalance([], WeightMethod.EQUAL) == {}

    def test_manual_method_is_not_computable(self):
        with pytest.raises(ManualWeightingError):
            rebalance([SubGoal(id="a")], WeightMethod.MANUAL)

    def test_manual_group_requires_override(self):
        siblings = [SubGoal(id="a", weight_method=WeightMethod.MANUAL), SubGoal(id="b")]
        with pytest.raises(ManualWeightingError):
            rebalance(siblings, WeightMethod.EQUAL)
        assert rebalance(siblings, WeightMethod.EQUAL, override=True) == {"a": 50.0, "b": 50.0}

    def test_invalid_method_string(self):
        with pytest.raises(ValueError):
            rebalance([SubGoal(id="a")], "RANDOM")


class TestApplyWeights:
    def test_writes_weight_and_method_tag(self):
        siblings = [SubGoal(id="a", weight=10.0, weight_method=WeightMethod.MANUAL), SubGoal(id="b")]
        apply_weights(siblings, {"a": 60.0, "b": 40.0}, "PERIOD")
        assert [(s.weight, s.weight_method) for s in siblings] == [
            (60.0, WeightMethod.PERIOD),
            (40.0, WeightMethod.PERIOD),
        ]

    def test_ignores_ids_not_in_group(self):
        siblings = [Task(id="a", weight=5.0)]
        apply_weights(siblings, {"other": 99.0}, WeightMethod.EQUAL)
        assert siblings[0].weight == 5.0

"""Tests for weighted progress aggregation."""

import math

import pytest

from progress_engine.domain.hierarchy import Level, MidGoal, Mission, SubGoal, Task
from progress_engine.domain.progress import (
    build_progress_report,
    compute_mid_goal_progress,
    compute_mission_progress,
    compute_progress,
    compute_sub_goal_progress,
    round_percentage,
    weighted_mean,
)

pytestmark = pytest.mark.unit


def _sub_goal(weights, progresses, sub_id="sg"):
    return SubGoal(
        id=sub_id,
        weight=100.0,
        tasks=[Task(id=f"{sub_id}-t{i}", weight=w, progress=p) for i, (w, p) in enumerate(zip(weights, progresses))],
    )


class TestWeightedMean:
    def test_empty_returns_zero(self):
        assert weighted_mean([]) == 0.0

    def test_zero_total_weight_returns_zero(self):
        assert weighted_mean([(80.0, 0.0), (20.0, 0.0)]) == 0.0

    def test_weights_are_relative_shares(self):
        """Weights need not sum to 100."""
        assert weighted_mean([(100.0, 1.0), (0.0, 3.0)]) == 25.0

    def test_malformed_weights_count_as_zero(self):
        assert weighted_mean([(100.0, -5.0), (40.0, 10.0)]) == 40.0
        assert weighted_mean([(100.0, math.nan), (40.0, 10.0)]) == 40.0


class TestSubGoalProgress:
    def test_rollup_example(self):
        """Weights [30, 30, 40] with progress [100, 50, 0] give 45."""
        sub_goal = _sub_goal([30, 30, 40], [100, 50, 0])
        assert compute_sub_goal_progress(sub_goal) == 45.0

    def test_no_tasks_is_zero(self):
        assert compute_sub_goal_progress(SubGoal(id="empty")) == 0.0

    def test_all_zero_weights_is_zero(self):
        assert compute_sub_goal_progress(_sub_goal([0, 0], [100, 100])) == 0.0

    def test_out_of_range_stored_progress_is_clamped(self):
        sub_goal = _sub_goal([50, 50], [150, -10])
        assert compute_sub_goal_progress(sub_goal) == 50.0


class TestUpperLevels:
    def test_mid_goal_without_sub_goals_is_zero(self):
        assert compute_mid_goal_progress(MidGoal(id="mg")) == 0.0

    def test_mission_without_mid_goals_is_zero(self):
        assert compute_mission_progress(Mission(id="m")) == 0.0

    def test_end_to_end_scenario(self, sample_mission):
        assert compute_mission_progress(sample_mission) == 50.0

    def test_mid_goal_weighted_mean_of_sub_goals(self):
        mid_goal = MidGoal(
            id="mg",
            sub_goals=[
                SubGoal(id="a", weight=25.0, tasks=[Task(id="a1", weight=1.0, progress=100.0)]),
                SubGoal(id="b", weight=75.0, tasks=[Task(id="b1", weight=1.0, progress=20.0)]),
            ],
        )
        assert compute_mid_goal_progress(mid_goal) == pytest.approx(40.0)

    def test_no_intermediate_rounding(self):
        """Levels compose from unrounded values; rounding is applied once at the end."""
        mission = Mission(
            id="m",
            mid_goals=[
                MidGoal(
                    id="mg",
                    weight=1.0,
                    sub_goals=[_sub_goal([1, 1, 1], [100, 0, 0], "x")],
                )
            ],
        )
        assert compute_mission_progress(mission) == pytest.approx(100 / 3)
        assert round_percentage(compute_mission_progress(mission)) == 33.33

    def test_compute_progress_dispatches_on_level(self, sample_mission):
        mid_goal = sample_mission.mid_goals[0]
        sub_goal = mid_goal.sub_goals[0]
        assert compute_progress(sub_goal.tasks[1]) == 100.0
        assert compute_progress(sub_goal) == 50.0
        assert compute_progress(mid_goal) == 50.0
        assert compute_progress(sample_mission) == 50.0

    def test_idempotent(self, sample_mission):
        first = compute_mission_progress(sample_mission)
        second = compute_mission_progress(sample_mission)
        assert first == second

    def test_reweighting_changes_rollup_without_touching_progress(self, sample_mission):
        tasks = sample_mission.mid_goals[0].sub_goals[0].tasks
        tasks[0].weight, tasks[1].weight = 70.0, 30.0
        assert compute_mission_progress(sample_mission) == pytest.approx(30.0)
        assert [t.progress for t in tasks] == [0.0, 100.0]


class TestRoundPercentage:
    def test_two_decimals(self):
        assert round_percentage(200 / 3) == 66.67
        assert round_percentage(12.344) == 12.34
        assert round_percentage(45.0) == 45.0


class TestProgressReport:
    def test_report_mirrors_hierarchy(self, sample_mission):
        report = build_progress_report(sample_mission)

        assert report.id == "m1"
        assert report.level == Level.MISSION
        assert report.progress == 50.0
        assert report.target_percentage == 60.0
        assert report.on_target is False

        mid = report.children[0]
        assert (mid.id, mid.level, mid.progress, mid.weight) == ("mg1", Level.MID_GOAL, 50.0, 100.0)
        sub = mid.children[0]
        assert sub.level == Level.SUB_GOAL
        assert [(t.id, t.progress) for t in sub.children] == [("t1", 0.0), ("t2", 100.0)]

    def test_on_target_when_progress_reaches_target(self, sample_mission):
        sample_mission.target_percentage = 50.0
        assert build_progress_report(sample_mission).on_target is True

    def test_children_follow_sibling_order(self):
        mission = Mission(
            id="m",
            mid_goals=[MidGoal(id="later", order=2), MidGoal(id="first", order=1)],
        )
        assert [c.id for c in build_progress_report(mission).children] == ["first", "later"]

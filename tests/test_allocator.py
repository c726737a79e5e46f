"""
Tests for the fairness-adjusted greedy allocator.

Matrices are built by hand so each case controls the exact scores.
"""
from collections import Counter

import pytest

from smart_assign.services.allocator import AllocationState, GreedyAllocator, fairness_multiplier
from tests.conftest import make_decision as draft


def matrix_of(rows):
    """{sop_id: {user_id: score}} -> score matrix."""
    return {
        sop_id: {user_id: draft(sop_id, user_id, score) for user_id, score in scores.items()}
        for sop_id, scores in rows.items()
    }


def assigned(decisions):
    return [(d.sop_id, d.assigned_to) for d in decisions]


class TestFairnessMultiplier:

    def test_disabled_at_zero_weight(self):
        state = AllocationState(max_per_person=3, counts={"a": 3, "b": 1})
        assert fairness_multiplier("a", state, 0) == 1.0

    def test_discounts_above_average(self):
        state = AllocationState(max_per_person=5, counts={"a": 3, "b": 1})
        # surplus 1 -> component 0.7
        assert fairness_multiplier("a", state, 0.2) == pytest.approx(0.94)

    def test_no_discount_below_average(self):
        state = AllocationState(max_per_person=5, counts={"a": 3, "b": 1})
        assert fairness_multiplier("b", state, 0.2) == pytest.approx(1.0)
        assert fairness_multiplier("new", state, 1.0) == pytest.approx(1.0)

    def test_component_floor(self):
        state = AllocationState(max_per_person=20, counts={"a": 10, "b": 1})
        assert fairness_multiplier("a", state, 1.0) == pytest.approx(0.3)

    def test_average_only_covers_assigned_staff(self):
        state = AllocationState(max_per_person=3)
        assert state.average_count() == 0.0
        state.record("a")
        state.record("a")
        assert state.average_count() == 2.0
        assert fairness_multiplier("a", state, 1.0) == 1.0


class TestGreedyAllocator:

    def test_strongest_task_is_resolved_first(self):
        matrix = matrix_of({
            "t1": {"a": 0.6, "b": 0.5},
            "t2": {"a": 0.9, "b": 0.45},
        })
        decisions = GreedyAllocator(fairness_weight=0.2, max_per_person=1).allocate(matrix)
        assert assigned(decisions) == [("t2", "a"), ("t1", "b")]

    def test_alternatives_are_next_best(self):
        matrix = matrix_of({"t1": {"d": 0.6, "a": 0.9, "c": 0.7, "b": 0.8}})
        matrix["t1"]["b"] = draft("t1", "b", 0.8, ["Strong skill match"])

        decision, = GreedyAllocator(fairness_weight=0.2, max_per_person=3).allocate(matrix)

        assert decision.assigned_to == "a"
        assert [(alt.user_id, alt.score, alt.reason) for alt in decision.alternative_assignees] == [
            ("b", 0.8, "Strong skill match"),
            ("c", 0.7, "Alternative option"),
        ]

    def test_cap_leaves_task_unassigned(self):
        matrix = matrix_of({"t1": {"a": 0.8}, "t2": {"a": 0.7}})
        decisions = GreedyAllocator(fairness_weight=0.2, max_per_person=1).allocate(matrix)
        assert assigned(decisions) == [("t1", "a")]

    def test_excluded_staff_are_skipped(self):
        matrix = matrix_of({"t1": {"a": 0.9, "b": 0.5}})
        decisions = GreedyAllocator(0.2, 3, exclude_users=["a"]).allocate(matrix)
        assert assigned(decisions) == [("t1", "b")]
        assert decisions[0].alternative_assignees == []

    def test_low_scores_fall_back_to_least_loaded(self):
        matrix = matrix_of({
            "t1": {"a": 0.35, "b": 0.3},
            "t2": {"a": 0.35, "b": 0.3},
        })
        decisions = GreedyAllocator(fairness_weight=0.2, max_per_person=3).allocate(matrix)
        assert assigned(decisions) == [("t1", "a"), ("t2", "b")]
        assert all(d.alternative_assignees == [] for d in decisions)

    def test_fallback_respects_cap(self):
        matrix = matrix_of({"t1": {"a": 0.3}, "t2": {"a": 0.2}})
        decisions = GreedyAllocator(fairness_weight=0.2, max_per_person=1).allocate(matrix)
        assert assigned(decisions) == [("t1", "a")]

    def test_fallback_never_picks_excluded_staff(self):
        matrix = matrix_of({"t1": {"a": 0.3}})
        assert GreedyAllocator(0.2, 3, exclude_users=["a"]).allocate(matrix) == []

    def test_fairness_spreads_work(self):
        matrix = matrix_of({
            "t1": {"a": 0.5, "b": 0.95},
            "t2": {"a": 0.9, "b": 0.5},
            "t3": {"a": 0.85, "b": 0.3},
            "t4": {"a": 0.45, "b": 0.42},
        })
        greedy = GreedyAllocator(fairness_weight=0, max_per_person=3).allocate(matrix)
        fair = GreedyAllocator(fairness_weight=1, max_per_person=3).allocate(matrix)

        assert Counter(d.assigned_to for d in greedy) == {"a": 3, "b": 1}
        assert Counter(d.assigned_to for d in fair) == {"a": 2, "b": 2}
        assert ("t4", "b") in assigned(fair)

    def test_runs_do_not_share_counts(self):
        allocator = GreedyAllocator(fairness_weight=0.2, max_per_person=1)
        matrix = matrix_of({"t1": {"a": 0.8}})
        assert assigned(allocator.allocate(matrix)) == [("t1", "a")]
        assert assigned(allocator.allocate(matrix)) == [("t1", "a")]

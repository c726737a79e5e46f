from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
import logging

from smart_assign.models.schemas import AssignmentDecision, AlternativeAssignee
from smart_assign.services.matrix import ScoreMatrix

logger = logging.getLogger(__name__)

ACCEPTANCE_THRESHOLD = 0.4
MAX_ALTERNATIVES = 2


@dataclass
class AllocationState:
    """Running assignment counts for one allocation run."""
    max_per_person: int
    excluded: Set[str] = field(default_factory=set)
    counts: Dict[str, int] = field(default_factory=dict)

    def count(self, candidate_id: str) -> int:
        return self.counts.get(candidate_id, 0)

    def average_count(self) -> float:
        # Only candidates that already hold an assignment this run
        if not self.counts:
            return 0.0
        return sum(self.counts.values()) / len(self.counts)

    def can_take(self, candidate_id: str) -> bool:
        return candidate_id not in self.excluded and self.count(candidate_id) < self.max_per_person

    def record(self, candidate_id: str) -> None:
        self.counts[candidate_id] = self.count(candidate_id) + 1


def fairness_multiplier(candidate_id: str, state: AllocationState, fairness_weight: float) -> float:
    """Discounts candidates holding more assignments than the run average."""
    if fairness_weight == 0:
        return 1.0

    surplus = max(0.0, state.count(candidate_id) - state.average_count())
    fairness_score = max(0.3, 1 - surplus * 0.3)
    return 1 - fairness_weight + fairness_weight * fairness_score


class GreedyAllocator:
    """
    Fairness-adjusted greedy allocation over a score matrix.
    Tasks with the strongest best match are resolved first.
    """

    def __init__(self, fairness_weight: float, max_per_person: int, exclude_users: Optional[List[str]] = None):
        self.fairness_weight = fairness_weight
        self.max_per_person = max_per_person
        self.exclude_users = set(exclude_users or [])

    def allocate(self, matrix: ScoreMatrix) -> List[AssignmentDecision]:
        state = AllocationState(max_per_person=self.max_per_person, excluded=set(self.exclude_users))
        assignments: List[AssignmentDecision] = []

        # 1. Best achievable score first; ties keep input order
        task_order = sorted(
            (sop_id for sop_id, row in matrix.items() if row),
            key=lambda sop_id: max(d.assignment_score for d in matrix[sop_id].values()),
            reverse=True,
        )

        for sop_id in task_order:
            # 2. Candidates for this task, best first
            ranked = sorted(matrix[sop_id].values(), key=lambda d: d.assignment_score, reverse=True)

            decision = self._pick_above_threshold(ranked, state)
            if decision is None:
                decision = self._pick_least_loaded(ranked, state)

            if decision is None:
                logger.info("SOP %s left unassigned: every candidate is capped or excluded", sop_id)
                continue

            assignments.append(decision)
            state.record(decision.assigned_to)

        return assignments

    def _pick_above_threshold(self, ranked: List[AssignmentDecision], state: AllocationState) -> Optional[AssignmentDecision]:
        for draft in ranked:
            if not state.can_take(draft.assigned_to):
                continue

            adjusted = draft.assignment_score * fairness_multiplier(draft.assigned_to, state, self.fairness_weight)
            if adjusted > ACCEPTANCE_THRESHOLD:
                return draft.model_copy(update={
                    "alternative_assignees": self._alternatives(ranked, draft.assigned_to),
                })
        return None

    def _pick_least_loaded(self, ranked: List[AssignmentDecision], state: AllocationState) -> Optional[AssignmentDecision]:
        """Fallback when nobody clears the threshold. Excluded staff are never eligible."""
        pool = [d for d in ranked if d.assigned_to not in state.excluded]
        if not pool:
            return None

        least_loaded = pool[0]
        for draft in pool[1:]:
            if state.count(draft.assigned_to) < state.count(least_loaded.assigned_to):
                least_loaded = draft

        if state.count(least_loaded.assigned_to) >= state.max_per_person:
            return None

        logger.debug(
            "SOP %s fell back to least-loaded candidate %s (score %.3f)",
            least_loaded.sop_id, least_loaded.assigned_to, least_loaded.assignment_score,
        )
        return least_loaded

    def _alternatives(self, ranked: List[AssignmentDecision], chosen_id: str) -> List[AlternativeAssignee]:
        others = [d for d in ranked if d.assigned_to != chosen_id and d.assigned_to not in self.exclude_users]
        return [
            AlternativeAssignee(
                user_id=alt.assigned_to,
                score=alt.assignment_score,
                reason=alt.reasoning.key_factors[0] if alt.reasoning.key_factors else "Alternative option",
            )
            for alt in others[:MAX_ALTERNATIVES]
        ]

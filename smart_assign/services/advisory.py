from collections import Counter
from typing import List, Dict, Optional
import numpy as np

from smart_assign.models.schemas import AssignmentDecision, OptimizationMetrics, Candidate, SOPTask
from smart_assign.services.scoring import round_half_up

OVERLOAD_COUNT = 4
LOW_CONFIDENCE_SCORE = 0.4
REASSIGNMENT_SCORE = 0.5


def assignment_counts(assignments: List[AssignmentDecision]) -> Dict[str, int]:
    """Per-assignee counts, in order of first assignment."""
    return dict(Counter(a.assigned_to for a in assignments))


def gini_coefficient(counts: List[int]) -> float:
    """Standard Gini over ascending counts, 1-indexed."""
    ordered = sorted(counts)
    n = len(ordered)
    total = sum(ordered)
    if n == 0 or total == 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * c for i, c in enumerate(ordered))
    return weighted / (n * total)


class AdvisoryService:
    def calculate_metrics(self, assignments: List[AssignmentDecision]) -> OptimizationMetrics:
        """
        Aggregate quality of one run's decisions.
        Workload balance and fairness are computed over staff who received work.
        """
        if not assignments:
            return OptimizationMetrics()

        scores = np.array([a.assignment_score for a in assignments])
        skills = np.array([a.reasoning.skill_match_score for a in assignments])
        confidences = np.array([a.reasoning.overall_confidence for a in assignments])

        counts = list(assignment_counts(assignments).values())
        counts_arr = np.array(counts, dtype=float)
        mean_count = float(counts_arr.mean())
        workload_balance = max(0.0, 1 - float(counts_arr.std()) / max(1.0, mean_count))

        fairness_index = 1 - abs(gini_coefficient(counts))

        return OptimizationMetrics(
            total_score=round_half_up(float(scores.mean())),
            skill_utilization=round_half_up(float(skills.mean())),
            workload_balance=round_half_up(workload_balance),
            expected_completion_rate=round_half_up(float(confidences.mean())),
            fairness_index=round_half_up(fairness_index),
        )

    def generate_recommendations(self, assignments: List[AssignmentDecision], metrics: OptimizationMetrics) -> List[str]:
        recommendations = []

        if metrics.skill_utilization < 0.6:
            recommendations.append("Consider providing additional training to improve skill matching")

        if metrics.workload_balance < 0.7:
            recommendations.append("Workload distribution could be more balanced across team members")

        if metrics.expected_completion_rate < 0.8:
            recommendations.append("Some assignments may need additional support or extended deadlines")

        if any(a.assignment_score < REASSIGNMENT_SCORE for a in assignments):
            recommendations.append("Some SOPs may require reassignment or additional training resources")

        if metrics.fairness_index < 0.8:
            recommendations.append("Consider redistributing assignments to improve fairness")

        return recommendations

    def generate_warnings(
        self,
        assignments: List[AssignmentDecision],
        candidates: List[Candidate],
        tasks: List[SOPTask],
        must_include_users: Optional[List[str]] = None,
    ) -> List[str]:
        warnings = []
        names = {c.id: c.full_name for c in candidates}

        # 1. Overloaded staff
        for staff_id, count in assignment_counts(assignments).items():
            if count > OVERLOAD_COUNT:
                warnings.append(f"{names.get(staff_id) or 'Staff member'} assigned {count} SOPs - may be overloaded")

        # 2. Low confidence
        low_confidence = [a for a in assignments if a.assignment_score < LOW_CONFIDENCE_SCORE]
        if low_confidence:
            warnings.append(f"{len(low_confidence)} assignments have low confidence scores")

        # 3. Unassigned SOPs
        assigned_ids = {a.sop_id for a in assignments}
        unassigned = [t for t in tasks if t.id not in assigned_ids]
        if unassigned:
            warnings.append(f"{len(unassigned)} SOPs could not be assigned optimally")

        # 4. Required staff that never reached scoring
        for user_id in must_include_users or []:
            if user_id not in names:
                warnings.append(f"Required staff member {user_id} is not available for assignment")

        return warnings

# Singleton
advisory_service = AdvisoryService()

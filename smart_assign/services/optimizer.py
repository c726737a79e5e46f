from typing import List, Optional
from datetime import datetime, timezone
import logging

from smart_assign.core.config import settings
from smart_assign.core.exceptions import EmptyInputError
from smart_assign.models.schemas import (
    Candidate, SOPTask, OptimizationConfig, AssignmentConstraints, OptimizationResult,
    AssignmentDecision, AssignmentRecord
)
from smart_assign.services.scoring import AssignmentScorer, assignment_scorer, as_utc
from smart_assign.services.matrix import build_assignment_matrix
from smart_assign.services.allocator import GreedyAllocator
from smart_assign.services.advisory import AdvisoryService, advisory_service

logger = logging.getLogger(__name__)


def filter_candidates(candidates: List[Candidate], constraints: AssignmentConstraints) -> List[Candidate]:
    """
    Applies the run's staff constraints before scoring.
    Must-include staff bypass the role allow-list; the exclude list always wins.
    """
    excluded = set(constraints.exclude_users)
    required_roles = set(constraints.required_roles)
    must_include = set(constraints.must_include_users)

    eligible = []
    for candidate in candidates:
        if candidate.id in excluded:
            continue
        if required_roles and candidate.role not in required_roles and candidate.id not in must_include:
            continue
        eligible.append(candidate)
    return eligible


class AssignmentOptimizer:
    """
    Assigns a batch of SOP tasks to staff.
    Holds no per-run state, so one instance can serve concurrent requests.
    """

    def __init__(self, scorer: AssignmentScorer = assignment_scorer, advisory: AdvisoryService = advisory_service):
        self.scorer = scorer
        self.advisory = advisory

    def optimize(
        self,
        tasks: List[SOPTask],
        candidates: List[Candidate],
        config: Optional[OptimizationConfig] = None,
        now: Optional[datetime] = None,
    ) -> OptimizationResult:
        config = config or OptimizationConfig()
        now = as_utc(now) if now else datetime.now(timezone.utc)
        constraints = config.constraints

        # 1. Constraint filtering
        eligible = filter_candidates(candidates, constraints)
        if not eligible:
            raise EmptyInputError("No available staff found for assignment")
        if not tasks:
            raise EmptyInputError("No valid SOPs found for assignment")

        # 2. Score matrix
        matrix = build_assignment_matrix(
            tasks, eligible, config.assignment_criteria, config.priority, now, self.scorer
        )

        # 3. Greedy allocation
        max_per_person = constraints.max_assignments_per_person or settings.DEFAULT_MAX_ASSIGNMENTS_PER_PERSON
        allocator = GreedyAllocator(
            fairness_weight=config.assignment_criteria.fairness_weight,
            max_per_person=max_per_person,
            exclude_users=constraints.exclude_users,
        )
        assignments = allocator.allocate(matrix)

        # 4. Metrics & advice
        metrics = self.advisory.calculate_metrics(assignments)
        recommendations = self.advisory.generate_recommendations(assignments, metrics)
        warnings = self.advisory.generate_warnings(
            assignments, eligible, tasks, constraints.must_include_users
        )

        logger.info(
            "Optimized %d SOPs across %d staff: %d assigned, total score %.3f",
            len(tasks), len(eligible), len(assignments), metrics.total_score,
        )

        return OptimizationResult(
            assignments=assignments,
            optimization_metrics=metrics,
            recommendations=recommendations,
            warnings=warnings,
            target_completion_date=config.target_completion_date,
        )

    def apply_accepted(
        self,
        decisions: List[AssignmentDecision],
        assigned_by: str,
        restaurant_id: Optional[str] = None,
        priority: str = "medium",
        now: Optional[datetime] = None,
    ) -> List[AssignmentRecord]:
        """Turns accepted decisions into assignment records ready to be stored."""
        assigned_at = as_utc(now) if now else datetime.now(timezone.utc)
        return [
            AssignmentRecord(
                restaurant_id=restaurant_id,
                sop_id=d.sop_id,
                assigned_to=d.assigned_to,
                assigned_by=assigned_by,
                assigned_at=assigned_at,
                due_date=d.recommended_due_date,
                priority=priority,
                status="pending",
                notes=f"AI-optimized assignment (score: {d.assignment_score})",
            )
            for d in decisions
        ]

# Singleton
assignment_optimizer = AssignmentOptimizer()

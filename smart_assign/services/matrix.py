from typing import Dict, List
from datetime import datetime

from smart_assign.core.exceptions import EmptyInputError
from smart_assign.models.schemas import Candidate, SOPTask, AssignmentCriteria, AssignmentDecision
from smart_assign.services.scoring import AssignmentScorer

# sop_id -> candidate_id -> draft decision, both in input order
ScoreMatrix = Dict[str, Dict[str, AssignmentDecision]]


def build_assignment_matrix(
    tasks: List[SOPTask],
    candidates: List[Candidate],
    criteria: AssignmentCriteria,
    priority: str,
    now: datetime,
    scorer: AssignmentScorer,
) -> ScoreMatrix:
    """Scores every (task, candidate) pair. Candidates must already be constraint-filtered."""
    if not candidates:
        raise EmptyInputError("No available staff found for assignment")
    if not tasks:
        raise EmptyInputError("No valid SOPs found for assignment")

    matrix: ScoreMatrix = {}
    for task in tasks:
        matrix[task.id] = {
            candidate.id: scorer.score_assignment(task, candidate, criteria, priority, now)
            for candidate in candidates
        }
    return matrix

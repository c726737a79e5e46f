from typing import List, Dict, Optional
from datetime import datetime, timedelta, timezone
import math

from smart_assign.models.schemas import (
    Candidate, SOPTask, AssignmentCriteria, AssignmentDecision, AssignmentReasoning,
    ActiveCommitment, CompletionRecord, ACTIVE_STATUSES
)

# Keywords each role is expected to cover. Admin handles every category.
ROLE_SKILL_MAP: Dict[str, List[str]] = {
    "chef": ["cooking", "food", "kitchen", "prep", "recipe"],
    "server": ["service", "customer", "dining", "order", "table"],
    "manager": ["management", "admin", "supervision", "operation"],
    "admin": [],
}
ADMIN_ROLE_AFFINITY = 0.8

DIFFICULTY_TARGET_LEVEL = {"beginner": 3, "intermediate": 6, "advanced": 9}
DEFAULT_TARGET_LEVEL = 5

DEFAULT_TASK_MINUTES = 30       # Used for missing task/commitment estimates
IDEAL_WORKLOAD_MINUTES = 180    # 3 hours of open work
RECENT_WINDOW_DAYS = 30

DUE_DAYS_BY_PRIORITY = {"urgent": 1, "high": 2, "medium": 3, "low": 5}
DEFAULT_DUE_DAYS = 3


def round_half_up(value: float, digits: int = 3) -> float:
    """Rounds halves away from zero instead of Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def as_utc(value: datetime) -> datetime:
    """Treats naive timestamps as UTC so they compare with an aware 'now'."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def active_commitments(candidate: Candidate) -> List[ActiveCommitment]:
    return [a for a in candidate.current_assignments if a.status in ACTIVE_STATUSES]


def is_fully_completed(record: CompletionRecord) -> bool:
    return record.progress_percentage == 100


class AssignmentScorer:
    """
    Scores one (SOP task, candidate) pair across four criteria:
    skill, availability, workload and historical performance.
    All sub-scores are in [0, 1].
    """

    # --- SKILL MATCH ---
    def role_skill_match(self, role: str, category: str, tags: List[str]) -> float:
        """Fraction of the role's keywords found in the category or tags, scaled to 0.8."""
        if role == "admin":
            return ADMIN_ROLE_AFFINITY

        role_skills = ROLE_SKILL_MAP.get(role, [])
        match_count = sum(
            1 for skill in role_skills
            if skill in category or any(skill in tag for tag in tags)
        )
        return min(1.0, match_count / max(1, len(role_skills))) * 0.8

    def experience_match(self, task: SOPTask, candidate: Candidate) -> float:
        relevant = [h for h in candidate.performance_history if h.difficulty_level == task.difficulty_level]
        if not relevant:
            return 0.3

        completion_rate = sum(1 for h in relevant if is_fully_completed(h)) / len(relevant)
        return min(1.0, completion_rate + len(relevant) * 0.05)

    def skill_match_score(self, task: SOPTask, candidate: Candidate) -> float:
        tags = [t.lower() for t in task.tags]
        category = task.category.lower()
        score = 0.5  # Base score

        # 1. Role affinity
        score += self.role_skill_match(candidate.role, category, tags) * 0.4

        # 2. Proficiency of skills that overlap the task
        # Blank names or categories would match everything as substrings
        relevant = [
            s for s in candidate.skills
            if (s.skill_name and any(s.skill_name.lower() in tag for tag in tags))
            or (category and category in s.skill_category.lower())
        ]
        if relevant:
            avg_level = sum(s.proficiency_level for s in relevant) / len(relevant)
            required_level = DIFFICULTY_TARGET_LEVEL.get(task.difficulty_level, DEFAULT_TARGET_LEVEL)
            level_match = 1 - abs(avg_level - required_level) / 10
            score += max(0.0, level_match) * 0.4

        # 3. Experience at the same difficulty
        score += self.experience_match(task, candidate) * 0.2

        return clamp(score, 0.0, 1.0)

    # --- AVAILABILITY ---
    def availability_score(self, candidate: Candidate, now: datetime) -> float:
        active = active_commitments(candidate)
        score = 1.0

        score -= min(0.8, len(active) * 0.1)

        overdue = [a for a in active if a.due_date is not None and as_utc(a.due_date) < now]
        score -= len(overdue) * 0.15

        high_priority = [a for a in active if a.priority in ("high", "urgent")]
        score -= len(high_priority) * 0.1

        return clamp(score, 0.1, 1.0)

    # --- WORKLOAD ---
    def workload_score(self, candidate: Candidate) -> float:
        """
        Highest when open work is near the ideal 3 hours.
        Under-utilised staff score 0.7-1.0, overloaded staff decay towards 0.2.
        """
        total_minutes = sum(
            a.estimated_minutes if a.estimated_minutes is not None else DEFAULT_TASK_MINUTES
            for a in active_commitments(candidate)
        )
        ratio = total_minutes / IDEAL_WORKLOAD_MINUTES

        if ratio <= 0.5:
            score = 0.7 + ratio * 0.6
        elif ratio <= 1.0:
            score = 1.0
        elif ratio <= 1.5:
            score = 1.0 - (ratio - 1.0) * 0.4
        else:
            score = max(0.2, 0.8 - (ratio - 1.5) * 0.3)

        return clamp(score, 0.1, 1.0)

    # --- PERFORMANCE ---
    def performance_score(self, candidate: Candidate, now: datetime) -> float:
        history = candidate.performance_history
        if not history:
            return 0.6  # Neutral score for new staff

        score = 0.5

        # 1. Overall completion rate
        completion_rate = sum(1 for h in history if is_fully_completed(h)) / len(history)
        score += completion_rate * 0.4

        # 2. Time efficiency against the default reference duration
        efficiencies = [
            clamp(DEFAULT_TASK_MINUTES / max(h.time_spent, 1), 0.0, 1.0)
            for h in history if is_fully_completed(h)
        ]
        if efficiencies:
            score += (sum(efficiencies) / len(efficiencies)) * 0.3

        # 3. Recent trend
        cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
        recent = [h for h in history if h.last_accessed is not None and as_utc(h.last_accessed) > cutoff]
        if len(recent) >= 3:
            recent_rate = sum(1 for h in recent if is_fully_completed(h)) / len(recent)
            score += (recent_rate - completion_rate) * 0.3

        return clamp(score, 0.1, 1.0)

    # --- EXPLANATION ---
    def identify_key_factors(self, scores: Dict[str, float]) -> List[str]:
        factors = []
        for factor, score in sorted(scores.items(), key=lambda kv: kv[1], reverse=True):
            if score > 0.7:
                factors.append(f"Strong {factor} match")
            elif score > 0.5:
                factors.append(f"Good {factor} alignment")
            elif score < 0.3:
                factors.append(f"Limited {factor} match")
        return factors[:3]

    # --- TIME ESTIMATES ---
    def estimate_completion_time(self, task: SOPTask, candidate: Candidate) -> float:
        base_time = task.estimated_read_time or DEFAULT_TASK_MINUTES
        adjusted = base_time

        if candidate.skills:
            avg_level = sum(s.proficiency_level for s in candidate.skills) / len(candidate.skills)
            adjusted *= max(0.5, 1 - ((avg_level - 5) / 10) * 0.3)

        completed = [h for h in candidate.performance_history if is_fully_completed(h)]
        if completed:
            avg_actual = sum(h.time_spent for h in completed) / len(completed)
            if avg_actual > 0:
                adjusted = (adjusted + avg_actual) / 2

        return max(10.0, adjusted)

    def recommended_due_date(self, estimated_minutes: float, priority: str, now: datetime) -> datetime:
        days = DUE_DAYS_BY_PRIORITY.get(priority, DEFAULT_DUE_DAYS)
        if estimated_minutes > 60:
            days += 1
        if estimated_minutes > 120:
            days += 1
        return now + timedelta(days=days)

    # --- COMPOSITE ---
    def score_assignment(
        self,
        task: SOPTask,
        candidate: Candidate,
        criteria: AssignmentCriteria,
        priority: str,
        now: datetime,
    ) -> AssignmentDecision:
        """
        Builds the draft decision for assigning `task` to `candidate`.
        The composite ignores fairness; that is applied during allocation.
        """
        skill = self.skill_match_score(task, candidate)
        availability = self.availability_score(candidate, now)
        workload = self.workload_score(candidate)
        performance = self.performance_score(candidate, now)

        overall = (
            skill * criteria.skill_weight
            + availability * criteria.availability_weight
            + workload * criteria.workload_weight
            + performance * criteria.performance_weight
        )
        # Weights are not required to sum to 1
        composite = round_half_up(clamp(overall, 0.0, 1.0))

        key_factors = self.identify_key_factors({
            "skill": skill,
            "availability": availability,
            "workload": workload,
            "performance": performance,
        })

        estimated = self.estimate_completion_time(task, candidate)

        return AssignmentDecision(
            sop_id=task.id,
            assigned_to=candidate.id,
            assignment_score=composite,
            reasoning=AssignmentReasoning(
                skill_match_score=round_half_up(skill),
                availability_score=round_half_up(availability),
                workload_score=round_half_up(workload),
                performance_score=round_half_up(performance),
                overall_confidence=min(0.95, composite),
                key_factors=key_factors,
            ),
            estimated_completion_time=int(round_half_up(estimated, 0)),
            recommended_due_date=self.recommended_due_date(estimated, priority, now),
        )

# Singleton
assignment_scorer = AssignmentScorer()

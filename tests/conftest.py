"""Builders shared by the assignment engine tests."""
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pytest

from smart_assign.models.schemas import (
    ActiveCommitment, AssignmentDecision, AssignmentReasoning, Candidate, CompletionRecord,
    SkillProfile, SOPTask
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def make_task(
    sop_id: str,
    *,
    difficulty: str = "beginner",
    minutes: Optional[float] = 30,
    tags: Iterable[str] = (),
    category: str = "Service",
) -> SOPTask:
    return SOPTask(
        id=sop_id,
        title=f"SOP {sop_id}",
        difficulty_level=difficulty,
        estimated_read_time=minutes,
        tags=list(tags),
        category=category,
    )


def make_candidate(
    user_id: str,
    *,
    role: str = "server",
    skills: Iterable[SkillProfile] = (),
    assignments: Iterable[ActiveCommitment] = (),
    history: Iterable[CompletionRecord] = (),
    name: Optional[str] = None,
) -> Candidate:
    return Candidate(
        id=user_id,
        full_name=name or user_id.title(),
        role=role,
        skills=list(skills),
        current_assignments=list(assignments),
        performance_history=list(history),
    )


def skill(name: str, level: float, category: str = "") -> SkillProfile:
    return SkillProfile(skill_name=name, skill_category=category, proficiency_level=level)


def commitment(
    minutes: Optional[float] = 30,
    *,
    priority: str = "medium",
    status: str = "pending",
    due_in_days: Optional[float] = 2,
) -> ActiveCommitment:
    due = NOW + timedelta(days=due_in_days) if due_in_days is not None else None
    return ActiveCommitment(estimated_minutes=minutes, due_date=due, priority=priority, status=status)


def completion(
    progress: float = 100,
    *,
    difficulty: str = "beginner",
    time_spent: float = 30,
    days_ago: float = 60,
) -> CompletionRecord:
    return CompletionRecord(
        difficulty_level=difficulty,
        progress_percentage=progress,
        time_spent=time_spent,
        last_accessed=NOW - timedelta(days=days_ago),
    )


def make_decision(
    sop_id: str,
    user_id: str,
    score: float,
    key_factors: Iterable[str] = (),
    *,
    skill_score: Optional[float] = None,
) -> AssignmentDecision:
    """A draft decision with every sub-score set to `score` unless overridden."""
    return AssignmentDecision(
        sop_id=sop_id,
        assigned_to=user_id,
        assignment_score=score,
        reasoning=AssignmentReasoning(
            skill_match_score=score if skill_score is None else skill_score,
            availability_score=score,
            workload_score=score,
            performance_score=score,
            overall_confidence=min(0.95, score),
            key_factors=list(key_factors),
        ),
        estimated_completion_time=30,
        recommended_due_date=NOW,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def team() -> List[Candidate]:
    """Four staff members with different strengths."""
    return [
        make_candidate("alice", role="server", skills=[skill("service", 6), skill("dining", 7)]),
        make_candidate("bruno", role="chef", skills=[skill("prep", 8, "kitchen")], assignments=[commitment(60)]),
        make_candidate("chloe", role="manager", history=[completion(), completion(), completion(50)]),
        make_candidate("dev", role="admin", assignments=[commitment(90, priority="high")]),
    ]


@pytest.fixture
def sops() -> List[SOPTask]:
    return [
        make_task("sop-1", tags=["service", "table"], category="Dining Service"),
        make_task("sop-2", difficulty="intermediate", minutes=45, tags=["prep"], category="Kitchen"),
        make_task("sop-3", difficulty="advanced", minutes=90, tags=["audit"], category="Operations"),
        make_task("sop-4", tags=["order"], category="Customer Service"),
        make_task("sop-5", difficulty="intermediate", tags=["cleaning"], category="Kitchen"),
    ]

from typing import List, Dict, Any, Optional
import logging
from pydantic import ValidationError

from smart_assign.models.schemas import (
    Candidate, SOPTask, SkillProfile, ActiveCommitment, CompletionRecord
)

logger = logging.getLogger(__name__)


class RecordMapper:
    """
    Converts the nested rows returned by the assignment store into the
    flat Candidate / SOPTask shapes the optimizer consumes.
    """

    def _nested(self, row: Dict[str, Any], key: str) -> Dict[str, Any]:
        # Supabase returns a dict for to-one joins, occasionally a one-item list
        value = row.get(key) or {}
        if isinstance(value, list):
            value = value[0] if value else {}
        return value

    def _id(self, row: Dict[str, Any]) -> Optional[str]:
        # A missing id is left for pydantic to reject
        value = row.get("id")
        return str(value) if value is not None else None

    def to_candidate(self, row: Dict[str, Any]) -> Candidate:
        skills = [
            SkillProfile(
                skill_name=s.get("skill_name") or "",
                skill_category=s.get("skill_category") or "",
                proficiency_level=s.get("proficiency_level") or 0,
            )
            for s in row.get("skill_profiles") or []
        ]

        commitments = []
        for a in row.get("current_assignments") or []:
            commitments.append(ActiveCommitment(
                sop_id=a.get("sop_id"),
                estimated_minutes=self._nested(a, "sop_document").get("estimated_read_time"),
                due_date=a.get("due_date"),
                priority=a.get("priority") or "medium",
                status=a.get("status") or "pending",
            ))

        history = [
            CompletionRecord(
                difficulty_level=self._nested(h, "sop_document").get("difficulty_level"),
                progress_percentage=h.get("progress_percentage") or 0,
                time_spent=h.get("time_spent") or 0,
                last_accessed=h.get("last_accessed"),
            )
            for h in row.get("performance_history") or []
        ]

        return Candidate(
            id=self._id(row),
            full_name=row.get("full_name"),
            email=row.get("email"),
            role=row.get("role"),
            skills=skills,
            current_assignments=commitments,
            performance_history=history,
        )

    def to_task(self, row: Dict[str, Any]) -> SOPTask:
        category = self._nested(row, "category")
        return SOPTask(
            id=self._id(row),
            title=row.get("title"),
            difficulty_level=row.get("difficulty_level") or "beginner",
            estimated_read_time=row.get("estimated_read_time"),
            tags=row.get("tags") or [],
            category=category.get("name") or "",
        )

    def to_candidates(self, rows: List[Dict[str, Any]]) -> List[Candidate]:
        """Rows that fail validation (e.g. a role the engine does not know) are skipped."""
        candidates = []
        for row in rows:
            candidate = self._safe(self.to_candidate, row)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def to_tasks(self, rows: List[Dict[str, Any]]) -> List[SOPTask]:
        tasks = []
        for row in rows:
            task = self._safe(self.to_task, row)
            if task is not None:
                tasks.append(task)
        return tasks

    def _safe(self, convert, row: Dict[str, Any]) -> Optional[Any]:
        try:
            return convert(row)
        except ValidationError as e:
            logger.warning("Skipping record %s: %s", row.get("id"), e.errors()[0]["msg"])
            return None

record_mapper = RecordMapper()

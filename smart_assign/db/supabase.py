from functools import lru_cache
from typing import List, Dict, Any, Optional
import logging
from supabase import create_client, Client

from smart_assign.core.config import settings
from smart_assign.core.exceptions import StoreNotConfiguredError, StoreError
from smart_assign.models.schemas import AssignmentConstraints, AssignmentRecord, ACTIVE_STATUSES

logger = logging.getLogger(__name__)

STAFF_SELECT = """
    id, full_name, email, role, is_active,
    skill_profiles:staff_skill_profiles(skill_name, skill_category, proficiency_level),
    current_assignments:sop_assignments!assigned_to(
        id, sop_id, due_date, status, priority,
        sop_document:sop_documents!inner(estimated_read_time)
    ),
    performance_history:user_progress(
        progress_percentage, time_spent, last_accessed,
        sop_document:sop_documents!inner(difficulty_level)
    )
"""

SOP_SELECT = """
    id, title, difficulty_level, estimated_read_time, tags,
    category:sop_categories!inner(id, name)
"""


@lru_cache
def get_supabase() -> Client:
    url: Optional[str] = settings.SUPABASE_URL
    key: Optional[str] = settings.SUPABASE_KEY
    if not url or not key:
        raise StoreNotConfiguredError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


class AssignmentStore:
    """
    Data-access, persistence and audit collaborator backed by Supabase.
    Every call is scoped to one restaurant.
    """

    def __init__(self, client: Client):
        self.client = client

    def _run(self, description: str, query) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as e:
            logger.exception("Supabase call failed: %s", description)
            raise StoreError(f"Failed to {description}: {e}") from e
        return response.data or []

    def fetch_staff(self, restaurant_id: str, constraints: AssignmentConstraints) -> List[Dict[str, Any]]:
        query = (
            self.client.table("auth_users")
            .select(STAFF_SELECT)
            .eq("restaurant_id", restaurant_id)
            .eq("is_active", True)
        )
        # Must-include staff may sit outside the role allow-list, so roles are filtered in the optimizer
        if constraints.required_roles and not constraints.must_include_users:
            query = query.in_("role", list(constraints.required_roles))
        if constraints.exclude_users:
            query = query.not_.in_("id", list(constraints.exclude_users))
        return self._run("fetch staff", query)

    def fetch_sops(self, restaurant_id: str, sop_ids: List[str]) -> List[Dict[str, Any]]:
        query = (
            self.client.table("sop_documents")
            .select(SOP_SELECT)
            .in_("id", sop_ids)
            .eq("restaurant_id", restaurant_id)
            .eq("is_active", True)
        )
        return self._run("fetch SOPs", query)

    def fetch_open_assignments(self, restaurant_id: str, assignment_ids: List[str]) -> List[Dict[str, Any]]:
        query = (
            self.client.table("sop_assignments")
            .select("id, sop_id, assigned_to, status")
            .in_("id", assignment_ids)
            .eq("restaurant_id", restaurant_id)
            .in_("status", list(ACTIVE_STATUSES))
        )
        return self._run("fetch open assignments", query)

    def insert_assignments(self, records: List[AssignmentRecord]) -> List[Dict[str, Any]]:
        if not records:
            return []
        payload = [r.model_dump(mode="json") for r in records]
        return self._run("create assignments", self.client.table("sop_assignments").insert(payload))

    def update_assignment(self, assignment_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self._run(
            "update assignment",
            self.client.table("sop_assignments").update(fields).eq("id", assignment_id),
        )
        return rows[0] if rows else None

    def record_audit(self, actor_id: str, action: str, resource_type: str, details: Dict[str, Any]) -> None:
        self._run("record audit event", self.client.table("audit_logs").insert({
            "user_id": actor_id,
            "action": action,
            "resource_type": resource_type,
            "details": details,
        }))
        logger.info("Audit %s on %s by %s", action, resource_type, actor_id)


def get_assignment_store() -> AssignmentStore:
    """FastAPI dependency; overridden in tests."""
    return AssignmentStore(get_supabase())

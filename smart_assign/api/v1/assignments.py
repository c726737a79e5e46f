from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
import logging

from smart_assign.core.exceptions import EmptyInputError, StoreNotConfiguredError, StoreError
from smart_assign.db.supabase import AssignmentStore, get_assignment_store
from smart_assign.models.schemas import (
    OptimizeRequest, OptimizationResult, ApplyRequest, AssignmentRecord,
    SmartAssignRequest, SmartAssignResponse, ReoptimizeRequest, ReoptimizeResponse,
    OptimizationConfig, Priority
)
from smart_assign.services.optimizer import assignment_optimizer
from smart_assign.services.record_mapper import record_mapper

logger = logging.getLogger(__name__)

router = APIRouter()


def to_http_error(e: Exception) -> HTTPException:
    """Maps engine errors onto status codes; anything unexpected is a 500."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, EmptyInputError):
        return HTTPException(status_code=400, detail={"error": str(e), "errorCode": "VALIDATION_ERROR"})
    if isinstance(e, StoreNotConfiguredError):
        return HTTPException(status_code=503, detail={"error": str(e), "errorCode": "STORE_UNAVAILABLE"})
    if isinstance(e, StoreError):
        return HTTPException(status_code=502, detail={"error": str(e), "errorCode": "STORE_ERROR"})
    logger.exception("Unexpected error in assignment endpoint")
    return HTTPException(status_code=500, detail={"error": str(e), "errorCode": "OPTIMIZATION_ERROR"})


def optimize_from_store(store: AssignmentStore, restaurant_id: str, sop_ids: List[str], config: OptimizationConfig) -> OptimizationResult:
    staff_rows = store.fetch_staff(restaurant_id, config.constraints)
    sop_rows = store.fetch_sops(restaurant_id, sop_ids)
    return assignment_optimizer.optimize(
        record_mapper.to_tasks(sop_rows),
        record_mapper.to_candidates(staff_rows),
        config,
    )


@router.post("/optimize", response_model=OptimizationResult)
def optimize_assignments(request: OptimizeRequest):
    """
    Pure optimization over caller-supplied staff and SOPs.
    Nothing is read from or written to the store.
    """
    try:
        return assignment_optimizer.optimize(request.tasks, request.candidates, request.config)
    except Exception as e:
        raise to_http_error(e)


@router.post("/apply", response_model=List[AssignmentRecord], status_code=201)
async def apply_assignments(request: ApplyRequest, store: AssignmentStore = Depends(get_assignment_store)):
    """Converts accepted decisions into assignment records and (optionally) stores them."""
    try:
        records = assignment_optimizer.apply_accepted(
            request.decisions, request.assigned_by, request.restaurant_id, request.priority
        )
        if request.persist:
            store.insert_assignments(records)
        return records
    except Exception as e:
        raise to_http_error(e)


@router.get("/recommendations", response_model=OptimizationResult)
async def get_recommendations(
    restaurant_id: str,
    sop_ids: str = Query("", description="Comma-separated SOP ids"),
    priority: Priority = "medium",
    store: AssignmentStore = Depends(get_assignment_store),
):
    """Preview of the optimal assignments for the given SOPs."""
    ids = [s for s in sop_ids.split(",") if s]
    if not ids:
        raise HTTPException(status_code=400, detail={"error": "At least one SOP ID is required", "errorCode": "VALIDATION_ERROR"})

    try:
        return optimize_from_store(store, restaurant_id, ids, OptimizationConfig(priority=priority))
    except Exception as e:
        raise to_http_error(e)


@router.post("/smart-assign", response_model=SmartAssignResponse, status_code=201)
async def create_smart_assignments(request: SmartAssignRequest, store: AssignmentStore = Depends(get_assignment_store)):
    """
    Optimize, persist and audit in one step:
    1. Load staff and SOPs for the restaurant.
    2. Run the optimizer.
    3. Store the resulting assignments.
    """
    try:
        optimization = optimize_from_store(store, request.restaurant_id, request.sop_ids, request.config)

        records = assignment_optimizer.apply_accepted(
            optimization.assignments, request.requested_by, request.restaurant_id, request.config.priority
        )
        created = store.insert_assignments(records)

        store.record_audit(request.requested_by, "CREATE", "smart_assignments", {
            "sop_ids": request.sop_ids,
            "assignments_created": len(created),
            "optimization_score": optimization.optimization_metrics.total_score,
        })

        return {
            "created_assignments": created,
            "optimization_summary": optimization.optimization_metrics,
            "recommendations": optimization.recommendations,
            "warnings": optimization.warnings,
        }
    except Exception as e:
        raise to_http_error(e)


@router.put("/reoptimize", response_model=ReoptimizeResponse)
async def reoptimize_assignments(request: ReoptimizeRequest, store: AssignmentStore = Depends(get_assignment_store)):
    """Re-runs the optimizer over open assignments and moves them to the new assignees."""
    try:
        existing = store.fetch_open_assignments(request.restaurant_id, request.assignment_ids)
        if not existing:
            raise HTTPException(status_code=404, detail={"error": "No optimizable assignments found", "errorCode": "NOT_FOUND"})

        sop_ids = [a["sop_id"] for a in existing]
        optimization = optimize_from_store(store, request.restaurant_id, sop_ids, request.config)

        by_sop = {a["sop_id"]: a for a in existing}
        updated = []
        for decision in optimization.assignments:
            current = by_sop.get(decision.sop_id)
            if current is None:
                continue
            row = store.update_assignment(current["id"], {
                "assigned_to": decision.assigned_to,
                "due_date": decision.recommended_due_date.isoformat(),
                "notes": f"Re-optimized assignment (score: {decision.assignment_score})",
            })
            if row:
                updated.append(row)

        store.record_audit(request.requested_by, "UPDATE", "assignment_optimization", {
            "assignments_optimized": len(updated),
            "optimization_score": optimization.optimization_metrics.total_score,
        })

        return {
            "updated_assignments": updated,
            "optimization_summary": optimization.optimization_metrics,
            "recommendations": optimization.recommendations,
            "warnings": optimization.warnings,
        }
    except Exception as e:
        raise to_http_error(e)

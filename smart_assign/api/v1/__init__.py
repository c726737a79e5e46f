from fastapi import APIRouter
from smart_assign.api.v1 import assignments

router = APIRouter()

# Registering the sub-routers
router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])

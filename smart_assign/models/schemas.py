from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

Role = Literal["chef", "server", "manager", "admin"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
Priority = Literal["low", "medium", "high", "urgent"]
AssignmentStatus = Literal["pending", "in_progress", "completed", "cancelled"]

ACTIVE_STATUSES = ("pending", "in_progress")

# --- CORE ENTITIES ---

class SkillProfile(BaseModel):
    skill_name: str
    skill_category: str = ""
    proficiency_level: float = Field(ge=0, le=10)  # 1-10 scale

class ActiveCommitment(BaseModel):
    sop_id: Optional[str] = None
    estimated_minutes: Optional[float] = None  # Defaults to 30 when scoring
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    status: AssignmentStatus = "pending"

class CompletionRecord(BaseModel):
    difficulty_level: Optional[Difficulty] = None
    progress_percentage: float = Field(ge=0, le=100)
    time_spent: float = 0.0  # Minutes
    last_accessed: Optional[datetime] = None

class Candidate(BaseModel):
    id: str                # UUID of the staff member
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    skills: List[SkillProfile] = []
    current_assignments: List[ActiveCommitment] = []
    performance_history: List[CompletionRecord] = []

class SOPTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: Optional[str] = None
    difficulty_level: Difficulty
    estimated_read_time: Optional[float] = None  # Standard duration in minutes
    tags: List[str] = []
    category: str = ""

# --- RUN CONFIGURATION ---

class AssignmentCriteria(BaseModel):
    skill_weight: float = Field(0.3, ge=0, le=1)
    availability_weight: float = Field(0.25, ge=0, le=1)
    workload_weight: float = Field(0.2, ge=0, le=1)
    performance_weight: float = Field(0.25, ge=0, le=1)
    fairness_weight: float = Field(0.2, ge=0, le=1)  # 0 disables fairness

class AssignmentConstraints(BaseModel):
    max_assignments_per_person: Optional[int] = Field(None, ge=1)
    required_roles: List[Role] = []
    exclude_users: List[str] = []
    must_include_users: List[str] = []

class OptimizationConfig(BaseModel):
    assignment_criteria: AssignmentCriteria = Field(default_factory=AssignmentCriteria)
    priority: Priority = "medium"
    target_completion_date: Optional[datetime] = None
    constraints: AssignmentConstraints = Field(default_factory=AssignmentConstraints)

# --- DECISIONS ---

class AssignmentReasoning(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_match_score: float
    availability_score: float
    workload_score: float
    performance_score: float
    overall_confidence: float  # Never above 0.95
    key_factors: List[str]     # At most 3, strongest first

class AlternativeAssignee(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    score: float
    reason: str

class AssignmentDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    sop_id: str
    assigned_to: str
    assignment_score: float
    reasoning: AssignmentReasoning
    estimated_completion_time: int  # Minutes
    recommended_due_date: datetime
    alternative_assignees: List[AlternativeAssignee] = []

class OptimizationMetrics(BaseModel):
    total_score: float = 0.0
    skill_utilization: float = 0.0
    workload_balance: float = 0.0
    expected_completion_rate: float = 0.0
    fairness_index: float = 0.0

class OptimizationResult(BaseModel):
    assignments: List[AssignmentDecision]
    optimization_metrics: OptimizationMetrics
    recommendations: List[str]
    warnings: List[str]
    target_completion_date: Optional[datetime] = None

class AssignmentRecord(BaseModel):
    restaurant_id: Optional[str] = None
    sop_id: str
    assigned_to: str
    assigned_by: str
    assigned_at: datetime
    due_date: datetime
    priority: Priority = "medium"
    status: AssignmentStatus = "pending"
    notes: str

# --- API REQUESTS/RESPONSES ---

class OptimizeRequest(BaseModel):
    tasks: List[SOPTask]
    candidates: List[Candidate]
    config: OptimizationConfig = Field(default_factory=OptimizationConfig)

class ApplyRequest(BaseModel):
    decisions: List[AssignmentDecision]
    assigned_by: str
    restaurant_id: Optional[str] = None
    priority: Priority = "medium"
    persist: bool = True

class SmartAssignRequest(BaseModel):
    restaurant_id: str
    requested_by: str
    sop_ids: List[str] = Field(min_length=1)
    config: OptimizationConfig = Field(default_factory=OptimizationConfig)

class ReoptimizeRequest(BaseModel):
    restaurant_id: str
    requested_by: str
    assignment_ids: List[str] = Field(min_length=1)
    config: OptimizationConfig = Field(default_factory=OptimizationConfig)

class SmartAssignResponse(BaseModel):
    created_assignments: List[dict]
    optimization_summary: OptimizationMetrics
    recommendations: List[str]
    warnings: List[str]

class ReoptimizeResponse(BaseModel):
    updated_assignments: List[dict]
    optimization_summary: OptimizationMetrics
    recommendations: List[str]
    warnings: List[str]

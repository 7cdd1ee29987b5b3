"""
Pydantic schemas for the estimator API endpoints.

Monetary and size values are Decimals and serialize as strings so no
precision is lost in transit.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from estimator.models import EstimatorSettings, Project, Task


# ==================== Requests ====================

class ProjectCreate(BaseModel):
    """Request to create a project."""
    name: str = Field(..., description="Project name")
    description: str = Field(..., description="Project description")


class ProjectUpdate(BaseModel):
    """Request to rename or re-describe a project."""
    name: Optional[str] = None
    description: Optional[str] = None


class TaskCreate(BaseModel):
    """Request to add a task to a project."""
    name: str = Field(..., description="Task name")
    description: str = Field("", description="Task description")
    complexity: str = Field(..., description="low, medium, high or veryHigh")
    size_factor: Decimal = Field(..., description="Estimated hours or size units")


class TaskUpdate(BaseModel):
    """Partial task update. Omitted fields keep their value."""
    name: Optional[str] = None
    description: Optional[str] = None
    complexity: Optional[str] = None
    size_factor: Optional[Decimal] = None


class GenerateTasksRequest(BaseModel):
    """Request to draft tasks with the configured LLM."""
    description: str = Field(..., description="Free-text project description")


class LLMConfigUpdate(BaseModel):
    """LLM settings. A missing api_key or model keeps the stored value."""
    provider: str = Field(..., description="claude or openai")
    api_key: Optional[str] = None
    model: Optional[str] = None


class SettingsUpdate(BaseModel):
    """Partial settings update. Omitted top-level fields are unchanged."""
    base_rate: Optional[Decimal] = None
    complexity_factors: Optional[Dict[str, Decimal]] = None
    llm: Optional[LLMConfigUpdate] = None


# ==================== Responses ====================

class TaskResponse(BaseModel):
    """A priced task."""
    id: str
    name: str
    description: str
    complexity: str
    size_factor: Decimal
    calculated_cost: Decimal

    @classmethod
    def from_domain(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            name=task.name,
            description=task.description,
            complexity=getattr(task.complexity, "value", task.complexity),
            size_factor=task.size_factor,
            calculated_cost=task.calculated_cost,
        )


class ProjectResponse(BaseModel):
    """A project with its tasks and total."""
    id: str
    name: str
    description: str
    tasks: List[TaskResponse]
    total_cost: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            tasks=[TaskResponse.from_domain(task) for task in project.tasks],
            total_cost=project.total_cost,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]


class DeleteProjectResponse(BaseModel):
    deleted: bool


class TaskMutationResponse(BaseModel):
    """The created task and its recalculated project."""
    task: TaskResponse
    project: ProjectResponse


class GeneratedTasksResponse(BaseModel):
    """Tasks appended by the generator and the recalculated project."""
    tasks: List[TaskResponse]
    project: ProjectResponse


class LLMConfigResponse(BaseModel):
    """LLM settings with the key withheld."""
    provider: str
    model: str
    api_key_configured: bool


class SettingsResponse(BaseModel):
    base_rate: Decimal
    complexity_factors: Dict[str, Decimal]
    llm: LLMConfigResponse

    @classmethod
    def from_domain(cls, settings: EstimatorSettings) -> "SettingsResponse":
        return cls(
            base_rate=settings.base_rate,
            complexity_factors={
                level.value: factor for level, factor in settings.complexity_factors.items()
            },
            llm=LLMConfigResponse(
                provider=settings.llm.provider.value,
                model=settings.llm.model,
                api_key_configured=bool(settings.llm.api_key),
            ),
        )


class SettingsUpdateResponse(BaseModel):
    """Updated settings and the outcome of the recalculation sweep."""
    settings: SettingsResponse
    recalculated: List[str]
    failed: List[str]

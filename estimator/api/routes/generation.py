"""
LLM task generation API route.
"""
import structlog
from fastapi import APIRouter, Depends

from estimator.api.dependencies import get_repository, get_task_generator
from estimator.schemas.estimator import (
    GeneratedTasksResponse,
    GenerateTasksRequest,
    ProjectResponse,
    TaskResponse,
)
from estimator.services.repository import ProjectRepository
from estimator.services.task_generation import TaskGenerator, generate_project_tasks

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/projects/{project_id}/generate-tasks",
    response_model=GeneratedTasksResponse,
    summary="Generate tasks with the configured LLM",
    description=(
        "Drafts tasks from a free-text description and appends them to the "
        "project. Fails with EST-901 when the model returns nothing usable."
    ),
)
async def generate_tasks(
    project_id: str,
    request: GenerateTasksRequest,
    repository: ProjectRepository = Depends(get_repository),
    generator: TaskGenerator = Depends(get_task_generator),
) -> GeneratedTasksResponse:
    tasks, project = await generate_project_tasks(
        repository, generator, project_id, request.description
    )
    return GeneratedTasksResponse(
        tasks=[TaskResponse.from_domain(task) for task in tasks],
        project=ProjectResponse.from_domain(project),
    )

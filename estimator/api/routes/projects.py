"""
Project and task API routes.

Every task mutation recalculates the owning project before it is returned.
"""
import structlog
from fastapi import APIRouter, Depends, status

from estimator.api.dependencies import get_repository
from estimator.schemas.estimator import (
    DeleteProjectResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
    TaskCreate,
    TaskMutationResponse,
    TaskResponse,
    TaskUpdate,
)
from estimator.services.repository import ProjectRepository

logger = structlog.get_logger(__name__)

router = APIRouter()


# ==================== Project Endpoints ====================

@router.get(
    "/projects",
    response_model=ProjectListResponse,
    summary="List projects",
)
async def list_projects(
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectListResponse:
    """Return every project in creation order."""
    projects = repository.list_projects()
    return ProjectListResponse(projects=[ProjectResponse.from_domain(p) for p in projects])


@router.post(
    "/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
)
async def create_project(
    request: ProjectCreate,
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectResponse:
    """Create an empty project."""
    project = repository.create_project(request.name, request.description)
    return ProjectResponse.from_domain(project)


@router.get(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
)
async def get_project(
    project_id: str,
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectResponse:
    return ProjectResponse.from_domain(repository.get_project(project_id))


@router.put(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    summary="Update project",
)
async def update_project(
    project_id: str,
    request: ProjectUpdate,
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectResponse:
    """Rename or re-describe a project."""
    project = repository.update_project(
        project_id,
        name=request.name,
        description=request.description,
    )
    return ProjectResponse.from_domain(project)


@router.delete(
    "/projects/{project_id}",
    response_model=DeleteProjectResponse,
    summary="Delete project",
)
async def delete_project(
    project_id: str,
    repository: ProjectRepository = Depends(get_repository),
) -> DeleteProjectResponse:
    """Delete a project. Reports ``deleted: false`` for unknown ids."""
    return DeleteProjectResponse(deleted=repository.delete_project(project_id))


# ==================== Task Endpoints ====================

@router.post(
    "/projects/{project_id}/tasks",
    response_model=TaskMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add task",
)
async def add_task(
    project_id: str,
    request: TaskCreate,
    repository: ProjectRepository = Depends(get_repository),
) -> TaskMutationResponse:
    """Append a task; its cost is computed from the current settings."""
    task, project = repository.add_task(
        project_id,
        name=request.name,
        complexity=request.complexity,
        size_factor=request.size_factor,
        description=request.description,
    )
    return TaskMutationResponse(
        task=TaskResponse.from_domain(task),
        project=ProjectResponse.from_domain(project),
    )


@router.put(
    "/projects/{project_id}/tasks/{task_id}",
    response_model=ProjectResponse,
    summary="Update task",
)
async def update_task(
    project_id: str,
    task_id: str,
    request: TaskUpdate,
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectResponse:
    """Apply a partial update to a task."""
    project = repository.update_task(project_id, task_id, request.model_dump(exclude_none=True))
    return ProjectResponse.from_domain(project)


@router.delete(
    "/projects/{project_id}/tasks/{task_id}",
    response_model=ProjectResponse,
    summary="Delete task",
)
async def delete_task(
    project_id: str,
    task_id: str,
    repository: ProjectRepository = Depends(get_repository),
) -> ProjectResponse:
    return ProjectResponse.from_domain(repository.delete_task(project_id, task_id))

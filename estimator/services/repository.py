"""
Project/task repository.

Sole writer of persisted project state. Every mutation reads the full
collection, applies its change, recalculates the affected project and writes
the collection back while holding the storage lock.
"""
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import structlog

from estimator.exceptions import (
    EstimatorError,
    InvalidSizeFactorError,
    ProjectNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from estimator.models import (
    Complexity,
    EstimatorSettings,
    Project,
    RecalculationSummary,
    Task,
    TaskDraft,
    to_decimal,
    utcnow,
)
from estimator.services.pricing import recalculate
from estimator.services.settings_store import SettingsStore
from estimator.storage.base import EstimatorStorage

logger = structlog.get_logger(__name__)

TASK_FIELDS = ("name", "description", "complexity", "size_factor")


def _require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(
            f"{field_name} is required",
            errors=[{"field": field_name, "message": "must not be empty"}],
        )
    return str(value)


def _size_factor(value: Any):
    size_factor = to_decimal(value, "size_factor")
    if size_factor < 0:
        raise InvalidSizeFactorError(size_factor)
    return size_factor


def _index_of(projects: List[Project], project_id: str) -> int:
    for index, project in enumerate(projects):
        if project.id == project_id:
            return index
    raise ProjectNotFoundError(project_id)


class ProjectRepository:
    """CRUD over projects and tasks plus the recalculation trigger."""

    def __init__(self, storage: EstimatorStorage, settings_store: Optional[SettingsStore] = None):
        self._storage = storage
        self._settings_store = settings_store or SettingsStore(storage)

    @property
    def settings_store(self) -> SettingsStore:
        return self._settings_store

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> List[Project]:
        """Return every project in storage order."""
        with self._storage.lock:
            return self._storage.load_all_projects()

    def get_project(self, project_id: str) -> Project:
        """Return one project or raise ProjectNotFoundError."""
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            return projects[_index_of(projects, project_id)]

    def create_project(self, name: str, description: str) -> Project:
        """
        Create an empty project.

        Raises:
            ValidationError: If name or description is empty.
        """
        project = Project(
            name=_require_text(name, "name"),
            description=_require_text(description, "description"),
        )
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            projects.append(project)
            self._storage.write_all_projects(projects)

        logger.info("project_created", project_id=project.id, name=project.name)
        return project

    def update_project(
        self,
        project_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Project:
        """Rename or re-describe a project. None keeps the current value."""
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            index = _index_of(projects, project_id)
            project = projects[index]

            updated = replace(
                project,
                name=project.name if name is None else _require_text(name, "name"),
                description=(
                    project.description
                    if description is None
                    else _require_text(description, "description")
                ),
                updated_at=utcnow(),
            )
            projects[index] = updated
            self._storage.write_all_projects(projects)

        logger.info("project_updated", project_id=project_id)
        return updated

    def delete_project(self, project_id: str) -> bool:
        """Remove a project. Returns False if it did not exist."""
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            remaining = [project for project in projects if project.id != project_id]
            if len(remaining) == len(projects):
                logger.info("project_delete_missing", project_id=project_id)
                return False
            self._storage.write_all_projects(remaining)

        logger.info("project_deleted", project_id=project_id)
        return True

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(
        self,
        project_id: str,
        name: str,
        complexity: Any,
        size_factor: Any,
        description: Optional[str] = "",
    ) -> Tuple[Task, Project]:
        """
        Append a new priced task to a project.

        Args:
            project_id: Owning project.
            name: Task name, must not be empty.
            complexity: One of low, medium, high, veryHigh.
            size_factor: Non-negative size in hours or units.
            description: Optional free text.

        Returns:
            The new task and the recalculated project.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            ValidationError: On empty name, bad complexity or negative size.
        """
        task = Task(
            name=_require_text(name, "name"),
            description=description or "",
            complexity=Complexity.parse(complexity),
            size_factor=_size_factor(size_factor),
        )
        added, updated = self._append_tasks(project_id, [task])

        logger.info(
            "task_added",
            project_id=project_id,
            task_id=task.id,
            calculated_cost=str(added[0].calculated_cost),
            total_cost=str(updated.total_cost),
        )
        return added[0], updated

    def add_tasks(self, project_id: str, drafts: List[TaskDraft]) -> Tuple[List[Task], Project]:
        """
        Append several tasks in one write.

        Either every draft is added or, if validation or the write fails,
        none is.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            ValidationError: If any draft is invalid.
        """
        tasks = [
            Task(
                name=_require_text(draft.name, "name"),
                description=draft.description or "",
                complexity=Complexity.parse(draft.complexity),
                size_factor=_size_factor(draft.size_factor),
            )
            for draft in drafts
        ]
        added, updated = self._append_tasks(project_id, tasks)

        logger.info(
            "tasks_added",
            project_id=project_id,
            count=len(added),
            total_cost=str(updated.total_cost),
        )
        return added, updated

    def _append_tasks(self, project_id: str, tasks: List[Task]) -> Tuple[List[Task], Project]:
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            index = _index_of(projects, project_id)
            settings = self._settings_store.get()

            project = projects[index]
            updated = recalculate(replace(project, tasks=project.tasks + tasks), settings)
            projects[index] = updated
            self._storage.write_all_projects(projects)

        return updated.tasks[len(project.tasks):], updated

    def update_task(self, project_id: str, task_id: str, fields: Dict[str, Any]) -> Project:
        """
        Apply a partial update to a task and recalculate its project.

        Only name, description, complexity and size_factor are applied;
        any other key, including calculated_cost, is ignored.
        """
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            index = _index_of(projects, project_id)
            project = projects[index]

            task_index = project.find_task(task_id)
            if task_index is None:
                raise TaskNotFoundError(project_id, task_id)

            changes: Dict[str, Any] = {}
            if fields.get("name") is not None:
                changes["name"] = _require_text(fields["name"], "name")
            if fields.get("description") is not None:
                changes["description"] = fields["description"]
            if fields.get("complexity") is not None:
                changes["complexity"] = Complexity.parse(fields["complexity"])
            if fields.get("size_factor") is not None:
                changes["size_factor"] = _size_factor(fields["size_factor"])

            tasks = list(project.tasks)
            tasks[task_index] = replace(tasks[task_index], **changes)

            updated = recalculate(replace(project, tasks=tasks), self._settings_store.get())
            projects[index] = updated
            self._storage.write_all_projects(projects)

        logger.info(
            "task_updated",
            project_id=project_id,
            task_id=task_id,
            fields=sorted(changes),
            total_cost=str(updated.total_cost),
        )
        return updated

    def delete_task(self, project_id: str, task_id: str) -> Project:
        """Remove a task and recalculate its project."""
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            index = _index_of(projects, project_id)
            project = projects[index]

            if project.find_task(task_id) is None:
                raise TaskNotFoundError(project_id, task_id)

            tasks = [task for task in project.tasks if task.id != task_id]
            updated = recalculate(replace(project, tasks=tasks), self._settings_store.get())
            projects[index] = updated
            self._storage.write_all_projects(projects)

        logger.info(
            "task_deleted",
            project_id=project_id,
            task_id=task_id,
            total_cost=str(updated.total_cost),
        )
        return updated

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def on_settings_changed(self, settings: EstimatorSettings) -> RecalculationSummary:
        """
        Recalculate every stored project against ``settings``.

        A project whose recalculation fails is kept exactly as stored; the
        rest are still written.
        """
        summary = RecalculationSummary()
        with self._storage.lock:
            projects = self._storage.load_all_projects()
            for index, project in enumerate(projects):
                try:
                    projects[index] = recalculate(project, settings)
                except EstimatorError as e:
                    summary.failed.append(project.id)
                    logger.warning(
                        "project_recalculation_failed",
                        project_id=project.id,
                        error_code=e.error_code,
                        error=e.message,
                    )
                    continue
                summary.recalculated.append(project.id)
            self._storage.write_all_projects(projects)

        logger.info(
            "settings_recalculation_complete",
            recalculated=len(summary.recalculated),
            failed=len(summary.failed),
        )
        return summary

    def update_settings(self, partial: Dict[str, Any]) -> Tuple[EstimatorSettings, RecalculationSummary]:
        """Persist merged settings, then recalculate every project."""
        with self._storage.lock:
            settings = self._settings_store.set(partial)
            summary = self.on_settings_changed(settings)
        return settings, summary

"""
Unit tests for the project/task repository.
"""
from decimal import Decimal

import pytest

from estimator.exceptions import (
    InvalidComplexityError,
    InvalidSizeFactorError,
    ProjectNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from estimator.models import Complexity, Project, Task, TaskDraft
from estimator.services.repository import ProjectRepository
from estimator.storage import InMemoryStorage


@pytest.fixture
def project(repository: ProjectRepository) -> Project:
    return repository.create_project("Website", "Marketing site rebuild")


class TestProjects:
    """Tests for project CRUD."""

    def test_create_project(self, repository: ProjectRepository):
        project = repository.create_project("Website", "Marketing site rebuild")

        assert project.id
        assert project.tasks == []
        assert project.total_cost == Decimal("0")
        assert project.created_at == project.updated_at
        assert repository.get_project(project.id) == project

    @pytest.mark.parametrize("name, description", [("", "desc"), ("name", ""), ("   ", "desc")])
    def test_create_requires_name_and_description(self, repository: ProjectRepository, name, description):
        with pytest.raises(ValidationError):
            repository.create_project(name, description)

        assert repository.list_projects() == []

    def test_list_projects_in_creation_order(self, repository: ProjectRepository):
        first = repository.create_project("A", "a")
        second = repository.create_project("B", "b")

        assert [p.id for p in repository.list_projects()] == [first.id, second.id]

    def test_get_unknown_project(self, repository: ProjectRepository):
        with pytest.raises(ProjectNotFoundError) as exc_info:
            repository.get_project("missing")

        assert exc_info.value.http_status == 404

    def test_update_project(self, repository: ProjectRepository, project: Project):
        updated = repository.update_project(project.id, description="New scope")

        assert updated.name == "Website"
        assert updated.description == "New scope"
        assert updated.created_at == project.created_at
        assert updated.updated_at >= project.updated_at

    def test_update_project_rejects_empty_name(self, repository: ProjectRepository, project: Project):
        with pytest.raises(ValidationError):
            repository.update_project(project.id, name="")

    def test_delete_project(self, repository: ProjectRepository, project: Project):
        assert repository.delete_project(project.id) is True
        assert repository.delete_project(project.id) is False

        with pytest.raises(ProjectNotFoundError):
            repository.get_project(project.id)
        with pytest.raises(ProjectNotFoundError):
            repository.add_task(project.id, "Late", "low", 1)

    def test_delete_unknown_project_returns_false(self, repository: ProjectRepository):
        assert repository.delete_project("missing") is False


class TestTasks:
    """Tests for task mutations and recalculation."""

    def test_add_task_prices_and_totals(self, repository: ProjectRepository, project: Project):
        task, updated = repository.add_task(project.id, "Build pages", "high", 5, "All pages")

        assert task.calculated_cost == Decimal("2000")
        assert task.description == "All pages"
        assert updated.total_cost == Decimal("2000")
        assert updated.tasks == [task]
        assert repository.get_project(project.id) == updated

    def test_add_and_delete_scenario(self, repository: ProjectRepository, project: Project):
        repository.add_task(project.id, "Build pages", "high", 5)
        small, updated = repository.add_task(project.id, "Copy edits", "low", 3)

        assert small.calculated_cost == Decimal("300")
        assert updated.total_cost == Decimal("2300")

        after_delete = repository.delete_task(project.id, small.id)

        assert after_delete.total_cost == Decimal("2000")
        assert [t.name for t in after_delete.tasks] == ["Build pages"]

    def test_add_then_delete_restores_total(self, repository: ProjectRepository, project: Project):
        _, before = repository.add_task(project.id, "Base", "medium", "1.25")

        task, _ = repository.add_task(project.id, "Extra", "veryHigh", "0.3")
        restored = repository.delete_task(project.id, task.id)

        assert restored.total_cost == before.total_cost

    def test_duplicate_names_keep_insertion_order(self, repository: ProjectRepository, project: Project):
        for size in (1, 2, 3):
            repository.add_task(project.id, "Review", "low", size)

        tasks = repository.get_project(project.id).tasks
        assert [t.size_factor for t in tasks] == [Decimal("1"), Decimal("2"), Decimal("3")]
        assert len({t.id for t in tasks}) == 3

    def test_add_task_unknown_project(self, repository: ProjectRepository):
        with pytest.raises(ProjectNotFoundError):
            repository.add_task("missing", "Task", "low", 1)

    @pytest.mark.parametrize(
        "name, complexity, size, error",
        [
            ("", "low", 1, ValidationError),
            ("Task", "extreme", 1, InvalidComplexityError),
            ("Task", "low", -2, InvalidSizeFactorError),
            ("Task", "low", "abc", ValidationError),
        ],
    )
    def test_add_task_validation(self, repository: ProjectRepository, project: Project, name, complexity, size, error):
        with pytest.raises(error):
            repository.add_task(project.id, name, complexity, size)

        assert repository.get_project(project.id).tasks == []

    def test_add_tasks_in_one_step(self, repository: ProjectRepository, project: Project):
        drafts = [
            TaskDraft(name="Schema", description="", complexity=Complexity.MEDIUM, size_factor=Decimal("3")),
            TaskDraft(name="API", description="REST", complexity=Complexity.HIGH, size_factor=Decimal("5")),
        ]

        tasks, updated = repository.add_tasks(project.id, drafts)

        assert [t.calculated_cost for t in tasks] == [Decimal("600"), Decimal("2000")]
        assert updated.total_cost == Decimal("2600")
        assert repository.get_project(project.id) == updated

    def test_add_tasks_invalid_draft_adds_nothing(self, repository: ProjectRepository, project: Project):
        drafts = [
            TaskDraft(name="Good", description="", complexity=Complexity.LOW, size_factor=Decimal("1")),
            TaskDraft(name="Bad", description="", complexity=Complexity.LOW, size_factor=Decimal("-1")),
        ]

        with pytest.raises(InvalidSizeFactorError):
            repository.add_tasks(project.id, drafts)

        assert repository.get_project(project.id).tasks == []

    def test_update_task_partial(self, repository: ProjectRepository, project: Project):
        task, _ = repository.add_task(project.id, "Build pages", "high", 5, "All pages")

        updated = repository.update_task(project.id, task.id, {"size_factor": 2})

        changed = updated.tasks[0]
        assert changed.id == task.id
        assert changed.name == "Build pages"
        assert changed.description == "All pages"
        assert changed.complexity == Complexity.HIGH
        assert changed.calculated_cost == Decimal("800")
        assert updated.total_cost == Decimal("800")

    def test_update_task_ignores_calculated_cost(self, repository: ProjectRepository, project: Project):
        task, _ = repository.add_task(project.id, "Build pages", "high", 5)

        updated = repository.update_task(
            project.id, task.id, {"complexity": "low", "calculated_cost": 1, "id": "other"}
        )

        assert updated.tasks[0].id == task.id
        assert updated.tasks[0].calculated_cost == Decimal("500")

    def test_update_task_validation(self, repository: ProjectRepository, project: Project):
        task, _ = repository.add_task(project.id, "Build pages", "high", 5)

        with pytest.raises(InvalidSizeFactorError):
            repository.update_task(project.id, task.id, {"size_factor": -1})
        with pytest.raises(InvalidComplexityError):
            repository.update_task(project.id, task.id, {"complexity": "huge"})

        assert repository.get_project(project.id).tasks[0].size_factor == Decimal("5")

    def test_update_unknown_task(self, repository: ProjectRepository, project: Project):
        with pytest.raises(TaskNotFoundError):
            repository.update_task(project.id, "missing", {"name": "x"})
        with pytest.raises(ProjectNotFoundError):
            repository.update_task("missing", "missing", {"name": "x"})

    def test_delete_unknown_task(self, repository: ProjectRepository, project: Project):
        with pytest.raises(TaskNotFoundError) as exc_info:
            repository.delete_task(project.id, "missing")

        assert exc_info.value.details == {"project_id": project.id, "task_id": "missing"}


class TestSettingsRecalculation:
    """Tests for settings-triggered recalculation."""

    def test_doubling_base_rate_doubles_totals(self, repository: ProjectRepository):
        first = repository.create_project("A", "a")
        second = repository.create_project("B", "b")
        repository.add_task(first.id, "One", "high", 5)
        repository.add_task(second.id, "Two", "low", "2.5")
        before = {p.id: p.total_cost for p in repository.list_projects()}

        settings, summary = repository.update_settings({"base_rate": 200})

        assert settings.base_rate == Decimal("200")
        assert sorted(summary.recalculated) == sorted([first.id, second.id])
        assert summary.failed == []
        for project in repository.list_projects():
            assert project.total_cost == before[project.id] * 2

    def test_new_factor_applies_to_every_task(self, repository: ProjectRepository):
        project = repository.create_project("A", "a")
        repository.add_task(project.id, "One", "high", 1)

        repository.update_settings({"complexity_factors": {"low": 1, "medium": 2, "high": 10, "veryHigh": 8}})

        assert repository.get_project(project.id).total_cost == Decimal("1000")

    def test_invalid_settings_leave_projects_untouched(self, repository: ProjectRepository):
        project = repository.create_project("A", "a")
        _, before = repository.add_task(project.id, "One", "high", 1)

        with pytest.raises(ValidationError):
            repository.update_settings({"base_rate": -5})

        assert repository.get_project(project.id) == before

    def test_failing_project_kept_as_stored(self, storage: InMemoryStorage, repository: ProjectRepository):
        good = repository.create_project("Good", "fine")
        repository.add_task(good.id, "One", "low", 1)

        broken = Project(
            name="Broken",
            description="legacy data",
            tasks=[Task(name="Old", complexity="extreme", size_factor=Decimal("1"), calculated_cost=Decimal("7"))],
            total_cost=Decimal("7"),
        )
        storage.write_all_projects(storage.load_all_projects() + [broken])

        summary = repository.on_settings_changed(repository.settings_store.set({"base_rate": 300}))

        assert summary.recalculated == [good.id]
        assert summary.failed == [broken.id]
        assert repository.get_project(good.id).total_cost == Decimal("300")
        stored_broken = repository.get_project(broken.id)
        assert stored_broken.total_cost == Decimal("7")
        assert stored_broken.updated_at == broken.updated_at

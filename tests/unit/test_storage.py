"""
Unit tests for the storage backends.
"""
import json
from decimal import Decimal
from pathlib import Path

import pytest

from estimator.config import AppSettings
from estimator.database import make_engine
from estimator.exceptions import StorageError
from estimator.models import Complexity, EstimatorSettings, LLMConfig, LLMProvider, Project, Task
from estimator.storage import InMemoryStorage, JsonFileStorage, create_storage
from estimator.storage.sql import SqlStorage


def sample_project() -> Project:
    return Project(
        name="Shop",
        description="Online shop",
        tasks=[
            Task(name="Cart", complexity=Complexity.MEDIUM, size_factor=Decimal("0.1"),
                 calculated_cost=Decimal("20.0")),
            Task(name="Checkout", complexity=Complexity.VERY_HIGH, size_factor=Decimal("2"),
                 description="Payments", calculated_cost=Decimal("1600")),
        ],
        total_cost=Decimal("1620.0"),
    )


@pytest.fixture(params=["memory", "json", "sql"])
def backend(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryStorage()
    if request.param == "json":
        return JsonFileStorage(tmp_path / "data")
    return SqlStorage(make_engine(f"sqlite:///{tmp_path / 'estimator.db'}"))


class TestBackends:
    """Behaviour shared by every backend."""

    def test_empty_store(self, backend):
        assert backend.load_all_projects() == []
        assert backend.load_settings() is None

    def test_projects_round_trip(self, backend):
        project = sample_project()

        backend.write_all_projects([project])
        loaded = backend.load_all_projects()

        assert loaded == [project]
        assert loaded[0].tasks[0].size_factor == Decimal("0.1")
        assert loaded[0].created_at == project.created_at

    def test_write_replaces_collection(self, backend):
        backend.write_all_projects([sample_project(), sample_project()])
        backend.write_all_projects([])

        assert backend.load_all_projects() == []

    def test_settings_round_trip(self, backend):
        settings = EstimatorSettings(
            base_rate=Decimal("125.50"),
            llm=LLMConfig(provider=LLMProvider.OPENAI, api_key="sk-test", model="gpt-4o"),
        )

        backend.write_settings(settings)

        assert backend.load_settings() == settings

    def test_loaded_projects_are_copies(self, backend):
        backend.write_all_projects([sample_project()])

        backend.load_all_projects()[0].tasks.clear()

        assert len(backend.load_all_projects()[0].tasks) == 2


class TestJsonFileStorage:
    """JSON file specifics."""

    def test_missing_file_initialised_empty(self, tmp_path: Path):
        storage = JsonFileStorage(tmp_path / "data")

        assert storage.load_all_projects() == []
        assert json.loads(storage.projects_path.read_text()) == []

    def test_money_stored_as_strings(self, tmp_path: Path):
        storage = JsonFileStorage(tmp_path)
        storage.write_all_projects([sample_project()])

        stored = json.loads(storage.projects_path.read_text())

        assert stored[0]["total_cost"] == "1620.0"
        assert stored[0]["tasks"][1]["complexity"] == "veryHigh"

    def test_corrupt_file_raises_storage_error(self, tmp_path: Path):
        storage = JsonFileStorage(tmp_path)
        storage.projects_path.write_text("{not json")

        with pytest.raises(StorageError) as exc_info:
            storage.load_all_projects()

        assert exc_info.value.http_status == 500

    def test_unserializable_payload_raises_storage_error(self, tmp_path: Path):
        storage = JsonFileStorage(tmp_path)
        project = sample_project()
        project.description = object()

        with pytest.raises(StorageError):
            storage.write_all_projects([project])

        assert list(tmp_path.iterdir()) == []

    def test_no_temp_files_left(self, tmp_path: Path):
        storage = JsonFileStorage(tmp_path)
        storage.write_all_projects([sample_project()])
        storage.write_settings(EstimatorSettings())

        assert sorted(p.name for p in tmp_path.iterdir()) == ["projects.json", "settings.json"]


class TestSqlStorage:
    """SQL specifics."""

    def test_persists_across_instances(self, tmp_path: Path):
        url = f"sqlite:///{tmp_path / 'estimator.db'}"
        project = sample_project()
        SqlStorage(make_engine(url)).write_all_projects([project])

        assert SqlStorage(make_engine(url)).load_all_projects() == [project]


class TestCreateStorage:
    """Backend selection from configuration."""

    def test_memory(self):
        assert create_storage(AppSettings(storage_backend="memory")).backend_name == "memory"

    def test_json(self, tmp_path: Path):
        storage = create_storage(AppSettings(storage_backend="json", data_dir=tmp_path))

        assert isinstance(storage, JsonFileStorage)
        assert storage.data_dir == tmp_path

    def test_sql(self, tmp_path: Path):
        storage = create_storage(
            AppSettings(storage_backend="sql", database_url=f"sqlite:///{tmp_path / 'x.db'}")
        )

        assert storage.backend_name == "sql"

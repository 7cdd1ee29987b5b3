"""
In-memory storage backend.

Keeps serialized copies so callers never share mutable state with the store.
"""
from typing import Any, Dict, List, Optional

from estimator.models import EstimatorSettings, Project
from estimator.storage.base import EstimatorStorage


class InMemoryStorage(EstimatorStorage):
    """Process-local storage, used by tests and the ``memory`` backend."""

    def __init__(self):
        super().__init__()
        self._projects: List[Dict[str, Any]] = []
        self._settings: Optional[Dict[str, Any]] = None

    @property
    def backend_name(self) -> str:
        return "memory"

    def load_all_projects(self) -> List[Project]:
        return [Project.from_dict(data) for data in self._projects]

    def write_all_projects(self, projects: List[Project]) -> None:
        self._projects = [project.to_dict() for project in projects]

    def load_settings(self) -> Optional[EstimatorSettings]:
        if self._settings is None:
            return None
        return EstimatorSettings.from_dict(self._settings)

    def write_settings(self, settings: EstimatorSettings) -> None:
        self._settings = settings.to_dict()

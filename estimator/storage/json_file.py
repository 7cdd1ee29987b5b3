"""
JSON file storage backend.

Stores ``projects.json`` and ``settings.json`` under a data directory.
Writes go to a temporary file first and are then renamed into place.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional

import structlog

from estimator.exceptions import StorageError
from estimator.models import EstimatorSettings, Project
from estimator.storage.base import EstimatorStorage

logger = structlog.get_logger(__name__)


class JsonFileStorage(EstimatorStorage):
    """Flat-file storage rooted at ``data_dir``."""

    PROJECTS_FILE = "projects.json"
    SETTINGS_FILE = "settings.json"

    def __init__(self, data_dir: Path):
        super().__init__()
        self.data_dir = Path(data_dir)

    @property
    def backend_name(self) -> str:
        return "json"

    @property
    def projects_path(self) -> Path:
        return self.data_dir / self.PROJECTS_FILE

    @property
    def settings_path(self) -> Path:
        return self.data_dir / self.SETTINGS_FILE

    def _read(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("storage_read_failed", path=str(path), error=str(e))
            raise StorageError(f"Failed to read {path.name}", details={"path": str(path)})

    def _write(self, path: Path, payload: Any) -> None:
        tmp_path = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("storage_write_failed", path=str(path), error=str(e))
            raise StorageError(f"Failed to write {path.name}", details={"path": str(path)})
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

    def load_all_projects(self) -> List[Project]:
        data = self._read(self.projects_path)
        if data is None:
            self._write(self.projects_path, [])
            return []
        return [Project.from_dict(item) for item in data]

    def write_all_projects(self, projects: List[Project]) -> None:
        self._write(self.projects_path, [project.to_dict() for project in projects])

    def load_settings(self) -> Optional[EstimatorSettings]:
        data = self._read(self.settings_path)
        if data is None:
            return None
        return EstimatorSettings.from_dict(data)

    def write_settings(self, settings: EstimatorSettings) -> None:
        self._write(self.settings_path, settings.to_dict())
